"""
stream-watcher

Polls Twitch for viewer-count changes on a set of channels and shows
desktop notifications when they change.
"""

__version__ = "0.1.0"
