"""snapmixer - terminal mixer for Snapcast groups and clients."""

__version__ = "0.3.0"
