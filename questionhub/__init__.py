"""Question-and-answer HTTP service with a gRPC answer server, in-memory or SQL storage and a Redis answer cache."""

__version__ = "0.0.1"