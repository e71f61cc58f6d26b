"""Internal implementation of the index module."""
