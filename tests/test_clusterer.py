"""Tests for the union-find cluster engine."""

from unittest.mock import MagicMock, patch

import httpx
import numpy as np
import openai
import pytest

from serp_clusters.clustering import KeywordClusterer, cluster_keywords
from serp_clusters.embeddings.semantic import EmbeddingProvider, SemanticProvider
from serp_clusters.exceptions import (
    ConfigurationError,
    EmbeddingRateLimitError,
    UpstreamError,
    ValidationError,
)
from serp_clusters.types import ClusteringParams, Keyword


def _urls(*names):
    return [f"https://{name}.com/page" for name in names]


SHARED = ["s1", "s2", "s3", "s4"]


def _params(**overrides):
    values = dict(overlap_threshold=3, distance_threshold=0.35, min_cluster_size=2,
                  semantic_provider="none")
    values.update(overrides)
    return ClusteringParams(**values)


def _embedding_provider(vectors):
    """EmbeddingProvider backed by a mock LangChain model with fixed vectors."""
    model = MagicMock()
    model.embed_documents.side_effect = lambda texts: [list(v) for v in vectors]
    return EmbeddingProvider(embedding_model=model), model


@pytest.fixture
def pair():
    """Two keywords sharing 4 of their top-10 URLs."""
    return [
        Keyword("running shoes", id="1", serp_urls=_urls(*SHARED, "a1"), search_volume=1000),
        Keyword("best running shoes", id="2", serp_urls=_urls(*SHARED, "b1"), search_volume=500),
    ]


@pytest.fixture
def chain():
    """A-B and B-C share 3 URLs each, A-C share none."""
    return [
        Keyword("a", serp_urls=_urls("x1", "x2", "x3", "a1")),
        Keyword("b", serp_urls=_urls("x1", "x2", "x3", "y1", "y2", "y3")),
        Keyword("c", serp_urls=_urls("y1", "y2", "y3", "c1")),
    ]


def _assert_partition(result, keywords):
    clustered = [m.keyword_text for c in result.clusters for m in c.members]
    unclustered = [k.text for k in result.unclustered]
    assert sorted(clustered + unclustered) == sorted(k.text for k in keywords), (
        "Every keyword appears exactly once across clusters and unclustered"
    )
    assert not set(clustered) & set(unclustered), "No keyword is both clustered and unclustered"


class TestScenarios:
    """Reference scenarios for the merge rule."""

    def test_overlap_meets_threshold(self, pair):
        result = cluster_keywords(pair, _params(overlap_threshold=3))
        assert len(result.clusters) == 1, "Pair sharing 4 URLs merges at threshold 3"
        assert result.clusters[0].keyword_texts == ["running shoes", "best running shoes"], (
            "Members are listed in input order"
        )
        assert result.unclustered == [], "Nothing left unclustered"

    def test_overlap_below_threshold(self, pair):
        result = cluster_keywords(pair, _params(overlap_threshold=5))
        assert result.clusters == [], "Pair sharing 4 URLs does not merge at threshold 5"
        assert [k.text for k in result.unclustered] == ["running shoes", "best running shoes"], (
            "Both keywords are unclustered"
        )

    def test_semantic_veto(self, pair):
        provider, _ = _embedding_provider([[1.0, 0.0], [0.5, np.sqrt(0.75)]])  # distance 0.5
        result = cluster_keywords(
            pair,
            _params(semantic_provider="openai", distance_threshold=0.3),
            semantic_provider=provider,
        )
        assert result.clusters == [], "Semantic distance above threshold vetoes the overlap match"
        assert len(result.unclustered) == 2, "Both keywords are unclustered"

    def test_semantic_agreement(self, pair):
        provider, _ = _embedding_provider([[1.0, 0.0], [0.5, np.sqrt(0.75)]])
        result = cluster_keywords(
            pair,
            _params(semantic_provider="openai", distance_threshold=0.6),
            semantic_provider=provider,
        )
        assert len(result.clusters) == 1, "Distance below the threshold lets the overlap match stand"

    def test_distance_equal_to_threshold_merges(self, pair):
        provider, _ = _embedding_provider([[1.0, 0.0], [2.0, 0.0]])
        result = cluster_keywords(
            pair,
            _params(semantic_provider="openai", distance_threshold=0.0),
            semantic_provider=provider,
        )
        assert len(result.clusters) == 1, "Distance equal to the threshold still merges"

    def test_semantic_cannot_create_merge(self, pair):
        provider, _ = _embedding_provider([[1.0, 0.0], [1.0, 0.0]])
        result = cluster_keywords(
            pair,
            _params(semantic_provider="openai", overlap_threshold=5, distance_threshold=0.9),
            semantic_provider=provider,
        )
        assert result.clusters == [], "Identical meaning without enough overlap does not merge"

    def test_transitive_closure(self, chain):
        result = cluster_keywords(chain, _params(overlap_threshold=3))
        assert len(result.clusters) == 1, "A-B and B-C merges put A, B and C together"
        assert sorted(result.clusters[0].keyword_texts) == ["a", "b", "c"], "All three clustered"


class TestRepresentative:
    """Test representative selection by the engine."""

    def test_highest_volume_wins(self, pair):
        keywords = [pair[1], pair[0]]  # lower volume first
        result = cluster_keywords(keywords, _params())
        assert result.clusters[0].representative == "running shoes", "Highest volume is representative"
        assert result.clusters[0].name == "Cluster: running shoes", "Name derives from representative"

    def test_tie_goes_to_first_input(self):
        keywords = [Keyword(t, serp_urls=_urls(*SHARED), search_volume=100) for t in ["x", "y", "z"]]
        result = cluster_keywords(keywords, _params())
        assert result.clusters[0].representative == "x", "Ties are broken by input order"

    def test_missing_volume_counts_as_zero(self):
        keywords = [
            Keyword("no volume", serp_urls=_urls(*SHARED)),
            Keyword("some volume", serp_urls=_urls(*SHARED), search_volume=10),
            Keyword("zero volume", serp_urls=_urls(*SHARED), search_volume=0),
        ]
        result = cluster_keywords(keywords, _params())
        assert result.clusters[0].representative == "some volume", "Absent volume ranks as 0"

    def test_exactly_one_representative(self, chain):
        result = cluster_keywords(chain, _params())
        for cluster in result.clusters:
            flags = [m.is_representative for m in cluster.members]
            assert sum(flags) == 1, "Every cluster has exactly one representative"

    def test_members_carry_serp_data(self, pair):
        member = cluster_keywords(pair, _params()).clusters[0].members[0]
        assert member.keyword_id == "1", "Keyword id copied to member"
        assert member.serp_urls == tuple(pair[0].serp_urls), "SERP URLs copied to member"


class TestMinClusterSize:
    """Test discarding of undersized groups."""

    def test_whole_group_unclustered(self, chain):
        result = cluster_keywords(chain, _params(min_cluster_size=4))
        assert result.clusters == [], "Group of 3 is below min size 4"
        assert [k.text for k in result.unclustered] == ["a", "b", "c"], (
            "All members of a discarded group are unclustered, in input order"
        )

    def test_min_size_one_keeps_singletons(self, pair):
        result = cluster_keywords(pair, _params(overlap_threshold=5, min_cluster_size=1))
        assert len(result.clusters) == 2, "Singletons are clusters when min size is 1"
        assert all(c.members[0].is_representative for c in result.clusters), (
            "A singleton is its own representative"
        )

    def test_mixed_input(self, pair, chain):
        loner = Keyword("loner", serp_urls=_urls("z1", "z2"))
        keywords = pair + [loner] + chain
        result = cluster_keywords(keywords, _params(min_cluster_size=3))

        assert [sorted(c.keyword_texts) for c in result.clusters] == [["a", "b", "c"]], (
            "Only the chain reaches 3 members"
        )
        for cluster in result.clusters:
            assert len(cluster) >= 3, "No cluster below min size"
        _assert_partition(result, keywords)

    def test_cluster_order_follows_first_member(self, pair, chain):
        result = cluster_keywords(chain + pair, _params())
        assert [c.keyword_texts[0] for c in result.clusters] == ["a", "running shoes"], (
            "Clusters are ordered by the input position of their first member"
        )


class TestEngineBehaviour:
    """Test engine edge cases, determinism and provider use."""

    def test_empty_input(self):
        result = cluster_keywords([], _params())
        assert result.clusters == [] and result.unclustered == [], "Empty input, empty result"

    def test_params_echoed(self, pair):
        params = _params(overlap_threshold=4)
        assert cluster_keywords(pair, params).params is params, "Result carries the params used"

    def test_keywords_without_serp_never_merge(self):
        keywords = [Keyword("a"), Keyword("b", serp_urls=None), Keyword("c", serp_urls="bad")]
        result = cluster_keywords(keywords, _params(overlap_threshold=1))
        assert result.clusters == [], "Missing SERP data scores 0 and never merges"
        assert len(result.unclustered) == 3, "All are unclustered"

    def test_zero_threshold_merges_everything(self):
        keywords = [Keyword("a"), Keyword("b"), Keyword("c")]
        result = cluster_keywords(keywords, _params(overlap_threshold=0))
        assert len(result.clusters) == 1, "Score 0 meets a threshold of 0"

    def test_deterministic(self, pair, chain):
        keywords = pair + chain
        first = cluster_keywords(keywords, _params())
        second = cluster_keywords(keywords, _params())
        assert first == second, "Same input and params yield the same result"

    def test_clusterer_reusable(self, pair, chain):
        clusterer = KeywordClusterer(_params())
        assert len(clusterer.cluster(pair).clusters) == 1, "First run"
        assert len(clusterer.cluster(chain).clusters) == 1, "Second run is independent of the first"

    def test_disabled_semantic_never_consults_provider(self, pair):
        provider = MagicMock(spec=SemanticProvider)
        cluster_keywords(pair, _params(), semantic_provider=provider)
        provider.embed.assert_not_called()
        provider.pairwise_distances.assert_not_called()

    def test_single_embedding_request(self, pair, chain):
        keywords = pair + chain
        provider, model = _embedding_provider([[1.0, 0.0]] * len(keywords))
        cluster_keywords(keywords, _params(semantic_provider="openai"), semantic_provider=provider)
        model.embed_documents.assert_called_once_with([k.text for k in keywords])

    def test_upstream_error_aborts_run(self, pair):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        model = MagicMock()
        model.embed_documents.side_effect = openai.RateLimitError(
            "quota", response=httpx.Response(429, request=request), body=None
        )
        provider = EmbeddingProvider(embedding_model=model)
        with pytest.raises(EmbeddingRateLimitError):
            cluster_keywords(pair, _params(semantic_provider="openai"), semantic_provider=provider)

    def test_missing_credential(self, pair, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            cluster_keywords(pair, _params(semantic_provider="openai"))

    def test_input_size_limit(self, pair, chain):
        with pytest.raises(ValidationError, match="more than the limit"):
            cluster_keywords(pair + chain, _params(), max_keywords=4)

    def test_semantic_run_limited_to_one_request(self, pair, chain):
        model = MagicMock()
        provider = EmbeddingProvider(embedding_model=model, chunk_size=4)

        with pytest.raises(ValidationError, match="in one request"):
            cluster_keywords(pair + chain, _params(semantic_provider="openai"), semantic_provider=provider)
        model.embed_documents.assert_not_called()

    def test_request_limit_ignored_without_semantic(self, pair, chain):
        provider = EmbeddingProvider(embedding_model=MagicMock(), chunk_size=4)
        result = cluster_keywords(pair + chain, _params(), semantic_provider=provider)
        assert result.summary()["n_clustered"] == 5, "Overlap-only runs are not bound by request size"

    def test_default_client_request_count(self, pair, chain):
        keywords = pair + chain
        provider = EmbeddingProvider(api_key="sk-test", chunk_size=len(keywords))
        client = provider._get_model().client

        with patch.object(
            client,
            "create",
            side_effect=lambda input, **kwargs: {"data": [{"embedding": [1.0, 0.0]} for _ in input]},
        ) as create:
            cluster_keywords(keywords, _params(semantic_provider="openai"), semantic_provider=provider)
            with pytest.raises(ValidationError, match="in one request"):
                cluster_keywords(
                    keywords + [Keyword("extra")],
                    _params(semantic_provider="openai"),
                    semantic_provider=provider,
                )

        assert [len(c.kwargs["input"]) for c in create.call_args_list] == [len(keywords)], (
            "Exactly one embedding request per accepted run"
        )

    def test_mismatched_embedding_sizes_abort_run(self, pair):
        provider, _ = _embedding_provider([[1.0, 0.0], [1.0, 0.0, 0.0]])
        with pytest.raises(UpstreamError, match="dimensions differ"):
            cluster_keywords(pair, _params(semantic_provider="openai"), semantic_provider=provider)

    def test_rejects_non_keyword_items(self):
        with pytest.raises(ValidationError, match="not a Keyword"):
            cluster_keywords(["running shoes"], _params())

    def test_rejects_non_params(self, pair):
        with pytest.raises(ValidationError, match="params must be ClusteringParams"):
            KeywordClusterer({"overlap_threshold": 3})

    def test_default_params(self, pair):
        result = KeywordClusterer().cluster(pair)
        assert len(result.clusters) == 1, "Defaults (overlap 3, size 2) cluster the pair"
