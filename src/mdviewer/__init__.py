"""mdviewer - terminal Markdown document viewer."""

__version__ = "0.1.0"
