"""Organize a directory of arXiv PDFs into a browsable, indexed link tree."""

__version__ = "0.1.0"
