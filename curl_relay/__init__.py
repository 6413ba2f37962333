"""curl-relay: parse curl command lines and relay them as HTTP requests."""

__version__ = "1.0.0"
