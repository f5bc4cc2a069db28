"""gabeln: Telegram notifications for GitHub forks."""

__version__ = "0.1.0"
