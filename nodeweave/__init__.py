"""NodeWeave: interactive graph editor with force-directed auto-layout."""

__version__ = "0.1.0"
