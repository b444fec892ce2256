"""Conference registration backend with payment receipt verification."""

__version__ = "0.1.0"
