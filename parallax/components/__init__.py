"""
Parallax Discord Bot - Components Package
=========================================

Static list of message component handlers registered at start-up.
"""

from parallax.components.gateway import GatewayComponent

COMPONENTS = [
    GatewayComponent,
]

__all__ = ["COMPONENTS", "GatewayComponent"]
