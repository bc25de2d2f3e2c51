"""Document ingestion."""

from src.application.ingest.use_case import IngestResult, IngestUseCase

__all__ = ["IngestResult", "IngestUseCase"]
