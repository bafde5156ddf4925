"""Domain records (accounts, preferences) free of persistence concerns."""

from .accounts import Account, Preferences, SessionUser, Theme, level_for_xp

__all__ = ["Account", "Preferences", "SessionUser", "Theme", "level_for_xp"]
