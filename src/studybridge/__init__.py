"""Backend-for-frontend middleware for the study apps."""

__version__ = "0.1.0"
