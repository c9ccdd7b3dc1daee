"""
Parallax Discord Bot - Source Package
=====================================

Package Structure:
- bot.py: Discord client and event wiring
- core/: Configuration, database, logging, telemetry, context, health
- interaction/: Commands, components, modals, registries, reconciler, dispatcher
- commands/: Application command handlers
- components/: Message component handlers
- modals/: Modal submit handlers
- services/: Membership gateway
- utils/: Task queues, role helpers, error handling, async helpers
"""

__version__ = "1.0.0"
