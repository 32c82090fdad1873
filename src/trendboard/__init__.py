"""trendboard - refreshing dashboard panels over public data feeds."""

__version__ = "0.1.0"
