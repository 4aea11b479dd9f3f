"""OSC over UDP transport."""

from .osc import OscEndpoint

__all__ = ["OscEndpoint"]
