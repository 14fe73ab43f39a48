"""TLBuddy - YouTube livestream translation relay for Discord."""

__version__ = "1.0.0"
