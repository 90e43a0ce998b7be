"""gramcheck: HTTP grammar checking over pluggable backends."""

__version__ = "0.1.0"
