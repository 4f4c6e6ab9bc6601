"""HTTP service for storing users, their names and profile pictures."""

__version__ = "0.1.0"