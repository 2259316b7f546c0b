"""HTTP surface of the Feza financial assistant."""

__version__ = "0.1.0"
