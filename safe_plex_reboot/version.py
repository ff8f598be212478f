"""Version information for Safe Plex Reboot."""

__version__ = "1.0.0"
