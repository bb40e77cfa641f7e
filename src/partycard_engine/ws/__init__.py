"""
WebSocket server and event handling for the party card game.
"""

from .events import *
from .server import app

__all__ = ["app"]
