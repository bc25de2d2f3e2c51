"""HTTP API for the RAG search server."""

__version__ = "0.1.0"
