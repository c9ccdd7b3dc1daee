"""
Parallax Discord Bot - System Info Command
==========================================

/sysinfo: CPU, memory and uptime of the host running the bot.
"""

from datetime import datetime
from typing import Dict

import discord
import psutil

from parallax.commands.ping import GUILD_INSTALL, USER_INSTALL
from parallax.interaction.command import Command, CommandData, CommandScope


def _format_duration(seconds: float) -> str:
    """Format seconds as "2d 3h 4m"."""
    minutes, _ = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def system_resources() -> Dict[str, float]:
    """Snapshot of host and process resource usage."""
    process = psutil.Process()
    memory = psutil.virtual_memory()
    return {
        "cpu_percent": round(psutil.cpu_percent(interval=None), 1),
        "mem_percent": round(memory.percent, 1),
        "mem_used_gb": round(memory.used / (1024 ** 3), 1),
        "mem_total_gb": round(memory.total / (1024 ** 3), 1),
        "bot_mem_mb": round(process.memory_info().rss / (1024 * 1024), 1),
        "host_uptime": datetime.now().timestamp() - psutil.boot_time(),
    }


class SysInfoCommand(Command):
    """Shows the system information of the host."""

    def __init__(self, context) -> None:
        super().__init__(
            context,
            CommandData(
                name="sysinfo",
                description="Shows the system information of the server.",
                integration_types=(GUILD_INSTALL, USER_INSTALL),
            ),
            scope=CommandScope.GLOBAL,
        )

    async def exec(self, interaction: discord.Interaction) -> None:
        resources = system_resources()
        bot_uptime = (datetime.now() - self.context.start_time).total_seconds()

        embed = discord.Embed(title="System", color=discord.Color.blurple())
        embed.set_author(name="Parallax Server System Information")
        embed.add_field(name="CPU Usage", value=f"{resources['cpu_percent']}%", inline=True)
        embed.add_field(
            name="Memory Usage",
            value=f"{resources['mem_percent']}% ({resources['mem_used_gb']}/{resources['mem_total_gb']} GB)",
            inline=True,
        )
        embed.add_field(name="Bot Memory", value=f"{resources['bot_mem_mb']} MB", inline=True)
        embed.add_field(name="Host Uptime", value=_format_duration(resources["host_uptime"]), inline=True)
        embed.add_field(name="Bot Uptime", value=_format_duration(bot_uptime), inline=True)

        await interaction.response.send_message(embed=embed, ephemeral=True)


__all__ = ["SysInfoCommand", "system_resources"]
