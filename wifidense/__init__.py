"""Dense Wi-Fi scenario bench."""

__version__ = "1.0.0"
