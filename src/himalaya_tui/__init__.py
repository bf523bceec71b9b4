"""Modal terminal mail browser driven by the himalaya CLI."""

__version__ = "0.1.0"
