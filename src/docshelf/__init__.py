"""docshelf - keep a reviewed local copy of the Claude Code documentation."""

__version__ = "0.1.0"
