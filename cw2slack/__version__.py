"""Version information for cw2slack."""

__version__ = "0.1.0"
