"""Whitelist portal: Discord login, application intake and moderation workflow."""

__version__ = "0.1.0"
