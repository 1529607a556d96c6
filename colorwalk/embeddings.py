"""
Text embedding providers.

A place's title, address, and description are embedded into a single
semantic vector. Two places can share a near-identical palette (a neon
alley in Tokyo and a casino floor in Las Vegas); the text embedding is
what separates them.
"""

import os
import logging
from abc import ABC, abstractmethod
from typing import Optional

import openai

from .errors import EmbeddingError

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = os.environ.get("COLORWALK_EMBEDDING_MODEL", "text-embedding-3-small")
EMBEDDING_DIM = int(os.environ.get("COLORWALK_EMBEDDING_DIM", "1536"))
EMBEDDING_TIMEOUT = float(os.environ.get("COLORWALK_EMBEDDING_TIMEOUT", "10"))


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embeddings from the OpenAI API (text-embedding-3-small by default)."""

    def __init__(self, model_name: str = None, api_key: str = None,
                 timeout: float = None, dimension: int = None):
        self.model_name = model_name or EMBEDDING_MODEL
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.timeout = EMBEDDING_TIMEOUT if timeout is None else timeout
        self._dimension = dimension or EMBEDDING_DIM
        self._client = None

    @property
    def client(self) -> openai.OpenAI:
        """Lazy-loaded API client. Retries are disabled; callers decide."""
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    def embed_text(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        try:
            response = self.client.embeddings.create(
                model=self.model_name,
                input=text,
                encoding_format="float",
            )
        except openai.OpenAIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        vector = list(response.data[0].embedding)
        logger.info(
            f"Text embedding generated: dims={len(vector)}, "
            f"input={text[:60]!r}"
        )
        return vector

    def get_dimension(self) -> int:
        return self._dimension


def build_place_text(title: Optional[str] = None,
                     description: Optional[str] = None,
                     address: Optional[str] = None) -> str:
    """
    Compose the text that represents a place for embedding.

    Format: "{title}. located at {address}. {description}". The address
    is included because place names often carry visual meaning on their
    own ("Tokyo neon alley"). Empty parts are skipped.
    """
    parts = [
        (title or "").strip(),
        f"located at {address.strip()}" if address and address.strip() else "",
        (description or "").strip(),
    ]
    return ". ".join(p for p in parts if p).strip()
