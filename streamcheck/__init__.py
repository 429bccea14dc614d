"""
streamcheck - Twitch live-stream status for a configured list of channels.
"""

__version__ = "0.1.0"
