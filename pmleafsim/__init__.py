"""Cost-model simulators for persistent-memory B+-tree leaf designs."""

__version__ = "0.1.0"

__all__ = ["rng", "stats", "mixed", "article1", "article2", "article3"]