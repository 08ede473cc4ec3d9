"""Release preparation for single-file modules."""

__version__ = "0.1.0"
