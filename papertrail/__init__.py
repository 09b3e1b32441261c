"""papertrail: Markdown notes with a live, scroll-synchronized preview."""

__version__ = "0.3.0"
