"""Article acquisition and rewrite pipeline."""

__version__ = "1.0.0"
