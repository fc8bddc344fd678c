"""PSW shift documentation backend."""

__version__ = "1.0.0"
