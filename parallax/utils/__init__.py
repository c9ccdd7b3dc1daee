"""
Parallax Discord Bot - Utilities Package
========================================

Task queues, role helpers, error handling and async helpers.
"""

from .queuer import QueueRegistry, TaskQueue

__all__ = ["QueueRegistry", "TaskQueue"]
