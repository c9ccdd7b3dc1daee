"""
Parallax Discord Bot - Services Package
=======================================

Long-lived feature services driven by gateway events.
"""

from .gateway import GatewayService

__all__ = ["GatewayService"]
