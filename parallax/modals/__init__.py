"""
Parallax Discord Bot - Modals Package
=====================================

Static list of modal submit handlers registered at start-up.
"""

from parallax.modals.botconfig import BotConfigModal

MODALS = [
    BotConfigModal,
]

__all__ = ["BotConfigModal", "MODALS"]
