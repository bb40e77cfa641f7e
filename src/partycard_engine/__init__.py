"""
Party card game session engine: rules, rooms and the WebSocket transport.
"""

__version__ = "1.0.0"
