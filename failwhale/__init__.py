"""FailWhale - GitHub Actions reaction-GIF notifier."""

__version__ = "1.0.0"
