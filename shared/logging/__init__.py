from .structured import JSONFormatter, setup_logging, setup_structured_logging

__all__ = ["JSONFormatter", "setup_logging", "setup_structured_logging"]
