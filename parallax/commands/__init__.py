"""
Parallax Discord Bot - Commands Package
=======================================

Application command handlers registered at start-up.

DESIGN:
    Each command is a Command subclass that builds its own CommandData.
    The dispatcher instantiates every class in COMMANDS once with the
    bot context; the reconciler then syncs the declarations to Discord.

    To add a new command:
    1. Create new_command.py in this directory with a Command subclass
    2. Add the class to COMMANDS below

Available Commands:
    /ping: Gateway latency (global)
    /sysinfo: Host CPU, memory and uptime (global)
    /botconfig: Runtime bot settings (control server, owner)
    /gateway: Membership screening settings (manage server)
"""

from parallax.commands.botconfig import BotConfigCommand
from parallax.commands.gateway import GatewayCommand
from parallax.commands.ping import PingCommand
from parallax.commands.sysinfo import SysInfoCommand


# =============================================================================
# Command Registry
# =============================================================================

COMMANDS = [
    PingCommand,
    SysInfoCommand,
    BotConfigCommand,
    GatewayCommand,
]


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "BotConfigCommand",
    "COMMANDS",
    "GatewayCommand",
    "PingCommand",
    "SysInfoCommand",
]
