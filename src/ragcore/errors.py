"""Exception hierarchy for the ragcore retrieval engine.

Propagation rules:
  - ConfigurationError  terminal, raised before any provider call
  - ProviderError       per-item; captured in EmbeddingFailure, never raised by batch calls
  - EmbeddingError      an operation made no progress because embedding failed
  - StoreError          terminal for insert/delete/update; swallowed by search fallback
"""

from __future__ import annotations


class RagCoreError(Exception):
    """Base class for every error raised by ragcore."""


class ConfigurationError(RagCoreError):
    """Missing credentials or invalid configuration."""


class ProviderError(RagCoreError):
    """The embedding provider failed for a single input."""


class EmbeddingError(RagCoreError):
    """No usable embedding could be produced for an operation."""


class StoreError(RagCoreError):
    """A corpus store mutation failed."""


class RecordNotFoundError(StoreError):
    """No corpus record exists with the requested id."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"Corpus record {record_id} not found.")
        self.record_id = record_id
