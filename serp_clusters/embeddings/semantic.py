"""
Pluggable semantic similarity providers.

A provider turns keyword texts into vectors and measures the cosine distance
between two vectors. Two backends exist:

DisabledProvider
    No semantic signal. ``embed`` returns empty vectors and every distance is
    1.0. The cluster engine skips semantic work entirely when the provider
    kind is ``"none"``, so this class is only a safe default.
EmbeddingProvider
    Embeds all texts of a run in a single request through a LangChain
    ``Embeddings`` model (OpenAI ``text-embedding-3-small`` by default) or an
    injected sentence-transformers model.

New backends subclass :class:`SemanticProvider`; the cluster engine only
depends on ``embed``, ``distance`` and ``pairwise_distances``.

Examples
--------
>>> from serp_clusters.embeddings import get_semantic_provider
>>> provider = get_semantic_provider("openai", api_key="sk-...")
>>> vectors = provider.embed(["running shoes", "trail running shoes"])
>>> provider.distance(vectors[0], vectors[1])
0.12
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import numpy as np
import openai
from sklearn.metrics.pairwise import cosine_similarity

from serp_clusters.DEFAULT_CONSTS import (
    API_KEY_ENV_VAR,
    DEFAULT_EMBEDDING_CHUNK_SIZE,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_EMBEDDING_TIMEOUT,
    MAX_DISTANCE,
    SELF_DISTANCE,
)
from serp_clusters.exceptions import (
    ConfigurationError,
    EmbeddingAuthenticationError,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
    UpstreamError,
    ValidationError,
)
from serp_clusters.types import SemanticProviderKind

LOGGER = logging.getLogger(__name__)


class SemanticProvider(ABC):
    """Interface of a semantic similarity backend."""

    kind: SemanticProviderKind

    @property
    def max_texts_per_request(self) -> Optional[int]:
        """Largest number of texts :meth:`embed` sends in one request; None if unbounded."""
        return None

    @abstractmethod
    def embed(self, texts: List[str]) -> List[np.ndarray]:
        """
        Embed texts, one vector per text in input order.

        Parameters
        ----------
        texts : List[str]
            Texts to embed; all of them go into one request

        Returns
        -------
        List[np.ndarray]
            Vectors, same length and order as ``texts``
        """

    @abstractmethod
    def distance(self, vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
        """Cosine distance in [0, 2]; 1.0 when either vector is empty or zero."""

    def pairwise_distances(self, vectors: Sequence[np.ndarray]) -> np.ndarray:
        """
        Distance matrix over all vectors.

        The upper triangle is computed with :meth:`distance` and mirrored; the
        diagonal is 0.

        Returns
        -------
        np.ndarray
            Symmetric float matrix of shape (N, N)
        """
        n = len(vectors)
        matrix = np.zeros((n, n), dtype=float)
        for i in range(n):
            for j in range(i + 1, n):
                matrix[i, j] = matrix[j, i] = self.distance(vectors[i], vectors[j])
        return matrix


class DisabledProvider(SemanticProvider):
    """Provider used when semantic similarity is switched off."""

    kind = SemanticProviderKind.DISABLED

    def embed(self, texts: List[str]) -> List[np.ndarray]:
        return [np.empty(0, dtype=float) for _ in texts]

    def distance(self, vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
        return MAX_DISTANCE


def _cosine_distance(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    a = np.asarray(vector_a, dtype=float).ravel()
    b = np.asarray(vector_b, dtype=float).ravel()
    if a.size == 0 or b.size == 0:
        return MAX_DISTANCE
    if a.shape != b.shape:
        raise UpstreamError(
            f"Embedding dimensions differ: {a.size} vs {b.size}"
        )

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return MAX_DISTANCE

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    return 1.0 - min(1.0, max(-1.0, similarity))


def _translate_openai_error(exc: openai.APIError) -> UpstreamError:
    """Map an OpenAI client error to the matching upstream error kind."""
    status = getattr(exc, "status_code", None)
    if isinstance(exc, openai.APITimeoutError):
        return EmbeddingTimeoutError(f"Embedding request timed out: {exc}")
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return EmbeddingAuthenticationError(
            f"Embedding service rejected the credential: {exc}", status_code=status
        )
    if isinstance(exc, openai.RateLimitError):
        return EmbeddingRateLimitError(
            f"Embedding service rate limit or quota exceeded: {exc}",
            status_code=status,
        )
    return UpstreamError(f"Embedding request failed: {exc}", status_code=status)


class EmbeddingProvider(SemanticProvider):
    """
    Embedding-backed provider.

    Parameters
    ----------
    api_key : Optional[str]
        OpenAI credential. Falls back to the ``OPENAI_API_KEY`` environment
        variable. Not needed when ``embedding_model`` is given.
    model_name : str
        Embedding model identifier sent with the request
    embedding_model : Optional[Any]
        Pre-built model: a LangChain ``Embeddings`` (``embed_documents``) or
        a sentence-transformers model (``encode``)
    timeout : float
        Request timeout in seconds for the default OpenAI client
    chunk_size : int
        Maximum texts per request. ``embed`` rejects larger batches so that
        one call is always one request.

    Raises
    ------
    ValueError
        If ``embedding_model`` has neither ``embed_documents`` nor ``encode``
    """

    kind = SemanticProviderKind.EMBEDDING

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        embedding_model: Optional[Any] = None,
        timeout: float = DEFAULT_EMBEDDING_TIMEOUT,
        chunk_size: int = DEFAULT_EMBEDDING_CHUNK_SIZE,
    ):
        self.api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV_VAR)
        self.model_name = model_name
        self.timeout = timeout
        if chunk_size < 1:
            raise ValidationError(f"chunk_size must be at least 1, got {chunk_size}")
        self.chunk_size = chunk_size

        self._model = embedding_model
        self.model_type = (
            self._detect_model_type(embedding_model) if embedding_model is not None else None
        )

    @property
    def max_texts_per_request(self) -> Optional[int]:
        return self.chunk_size

    @staticmethod
    def _detect_model_type(model: Any) -> str:
        if hasattr(model, "embed_documents"):
            return "langchain"
        if hasattr(model, "encode"):
            return "sentence-transformers"
        raise ValueError(
            f"Unable to detect model type for {type(model).__name__}. "
            "Expected a LangChain Embeddings or sentence-transformers model"
        )

    def _get_model(self) -> Any:
        """Return the embedding model, building the OpenAI client on first use."""
        if self._model is not None:
            return self._model

        if not self.api_key:
            raise ConfigurationError(
                f"An OpenAI API key is required for semantic clustering. "
                f"Pass api_key or set {API_KEY_ENV_VAR}"
            )

        try:
            from langchain_openai import OpenAIEmbeddings
        except ImportError:
            raise ImportError(
                "langchain-openai is required for the embedding provider. "
                "Install with: pip install langchain-openai"
            )

        LOGGER.info(f"Creating OpenAI embedding client: {self.model_name}")
        self._model = OpenAIEmbeddings(
            model=self.model_name,
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=0,
            chunk_size=self.chunk_size,
            check_embedding_ctx_length=False,
        )
        self.model_type = "langchain"
        return self._model

    def embed(self, texts: List[str]) -> List[np.ndarray]:
        """
        Embed all texts in one request.

        Raises
        ------
        ValidationError
            If there are more texts than fit in one request
            (``chunk_size``); raised before any request
        ConfigurationError
            If no credential is available; raised before any request
        UpstreamError
            If the request fails, times out, or returns the wrong number of
            vectors. Authentication and rate limit failures raise the
            :class:`EmbeddingAuthenticationError` and
            :class:`EmbeddingRateLimitError` subclasses. Failures of an
            injected model are wrapped in :class:`UpstreamError` with the
            original error as ``__cause__``.
        """
        texts = list(texts)
        if len(texts) > self.chunk_size:
            raise ValidationError(
                f"Cannot embed {len(texts)} texts in one request, the limit is "
                f"{self.chunk_size}"
            )

        model = self._get_model()
        if not texts:
            return []

        LOGGER.info(f"Embedding {len(texts)} texts with {self.model_name}")

        try:
            if self.model_type == "langchain":
                raw = model.embed_documents(texts)
            else:
                raw = model.encode(
                    texts,
                    batch_size=len(texts),
                    show_progress_bar=False,
                    convert_to_numpy=True,
                )
        except openai.APIError as exc:
            raise _translate_openai_error(exc) from exc
        except Exception as exc:
            raise UpstreamError(
                f"Embedding model {type(model).__name__} failed: {exc}"
            ) from exc

        vectors = [np.asarray(vector, dtype=float) for vector in raw]
        if len(vectors) != len(texts):
            raise UpstreamError(
                f"Embedding service returned {len(vectors)} vectors for "
                f"{len(texts)} texts"
            )

        LOGGER.debug(f"Received embeddings of dimension {vectors[0].size}")
        return vectors

    def distance(self, vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
        return _cosine_distance(vector_a, vector_b)

    def pairwise_distances(self, vectors: Sequence[np.ndarray]) -> np.ndarray:
        """Vectorised cosine distance matrix, same values as :meth:`distance`."""
        n = len(vectors)
        matrix = np.full((n, n), MAX_DISTANCE, dtype=float)

        flat = [np.asarray(vector, dtype=float).ravel() for vector in vectors]
        valid = [i for i, vector in enumerate(flat) if vector.size and np.linalg.norm(vector) > 0]
        if valid:
            dims = {flat[i].size for i in valid}
            if len(dims) > 1:
                raise UpstreamError(f"Embedding dimensions differ: {sorted(dims)}")
            similarities = np.clip(cosine_similarity(np.vstack([flat[i] for i in valid])), -1.0, 1.0)
            matrix[np.ix_(valid, valid)] = 1.0 - similarities

        np.fill_diagonal(matrix, SELF_DISTANCE)
        return matrix


def get_semantic_provider(
    kind: Any, api_key: Optional[str] = None, **kwargs
) -> SemanticProvider:
    """
    Build the provider for a provider kind.

    Parameters
    ----------
    kind : SemanticProviderKind or str
        ``"none"`` or ``"openai"`` (aliases accepted)
    api_key : Optional[str]
        Credential for the embedding provider
    **kwargs
        Extra :class:`EmbeddingProvider` options

    Raises
    ------
    ValidationError
        If ``kind`` is unknown
    """
    kind = SemanticProviderKind.parse(kind)
    if kind is SemanticProviderKind.DISABLED:
        return DisabledProvider()
    return EmbeddingProvider(api_key=api_key, **kwargs)
