"""
Twitch, token cache and notification helpers.
"""
