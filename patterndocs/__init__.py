"""patterndocs - link and index integrity checks for Markdown pattern catalogs."""

__version__ = "0.1.0"
