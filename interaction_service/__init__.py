"""Like, match, conversation and notification backend for a dating app."""

__version__ = "0.1.0"
