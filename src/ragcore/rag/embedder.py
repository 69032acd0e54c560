"""Embedding client: LiteLLM async embeddings with per-item failure isolation.

All embedding calls in ragcore route through this module:
  - ``embed()`` maps one text to one vector and raises on failure.
  - ``embed_batch()`` fans out one provider call per text with
    ``asyncio.gather`` and returns a vector or an EmbeddingFailure per input,
    in input order. One bad item never aborts the batch.

No retries are performed here (``num_retries=0``); callers own retry policy.
Credentials are checked before any provider call.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from numbers import Real

import litellm

from ragcore.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

DEFAULT_EMBEDDING_MODEL = "voyage/voyage-2"

# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "azure": "AZURE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        ConfigurationError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise ConfigurationError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


@dataclass
class EmbeddingFailure:
    """Placeholder for an input whose embedding could not be produced.

    Attributes:
        index: Position of the input in the batch.
        text: The input text.
        error: The provider error that caused the failure.
    """

    index: int
    text: str
    error: ProviderError


EmbeddingResult = list[float] | EmbeddingFailure


class EmbeddingClient:
    """Async wrapper around ``litellm.aembedding`` for a single model.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        api_key: Explicit credential; when None the provider's env var is required.
    """

    def __init__(self, model: str = DEFAULT_EMBEDDING_MODEL, api_key: str | None = None) -> None:
        self.model = model
        self._api_key = api_key

    async def embed(self, text: str) -> list[float]:
        """Embed a single *text*.

        Raises:
            ConfigurationError: If no credential is available.
            ProviderError: If the provider call fails or returns no usable vector.
        """
        self._check_credentials()
        return await self._embed_one(text)

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed every text concurrently; one result per input, input order.

        Raises:
            ConfigurationError: If no credential is available (whole batch fails).
        """
        self._check_credentials()
        if not texts:
            return []

        outcomes = await asyncio.gather(
            *(self._embed_one(text) for text in texts), return_exceptions=True
        )

        results: list[EmbeddingResult] = []
        for i, (text, outcome) in enumerate(zip(texts, outcomes)):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome  # CancelledError / KeyboardInterrupt
                error = outcome if isinstance(outcome, ProviderError) else ProviderError(str(outcome))
                logger.warning("[EMBEDDER] Item %d failed: %s", i, error)
                results.append(EmbeddingFailure(index=i, text=text, error=error))
            else:
                results.append(outcome)

        failed = sum(1 for r in results if isinstance(r, EmbeddingFailure))
        logger.info(
            "[EMBEDDER] Embedded %d/%d texts (%s)", len(texts) - failed, len(texts), self.model
        )
        return results

    # ------------------------------------------------------------------
    # Provider call
    # ------------------------------------------------------------------

    async def _embed_one(self, text: str) -> list[float]:
        kwargs: dict = {"model": self.model, "input": [text], "num_retries": 0}
        if self._api_key:
            kwargs["api_key"] = self._api_key
        try:
            response = await litellm.aembedding(**kwargs)
        except Exception as exc:
            raise ProviderError(f"Embedding request failed: {exc}") from exc
        return _extract_vector(response)

    def _check_credentials(self) -> None:
        if self._api_key:
            return
        validate_api_key(self.model)


def _extract_vector(response: object) -> list[float]:
    """Pull the first embedding out of a LiteLLM response, validating its shape."""
    try:
        vector = response.data[0]["embedding"]
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise ProviderError(f"Malformed embedding response: {exc!r}") from exc

    if not isinstance(vector, list) or not vector:
        raise ProviderError("Malformed embedding response: empty or non-list vector")
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in vector):
        raise ProviderError("Malformed embedding response: non-numeric vector values")
    return [float(v) for v in vector]
