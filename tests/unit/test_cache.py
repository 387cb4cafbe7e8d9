"""
Unit tests for ad_trace_analyzer.core.cache module.
"""
import pytest
from ad_trace_analyzer import AdTraceAnalyzer, AnalysisConfig
from ad_trace_analyzer.core.cache import ArtifactCache, fingerprint


class TestFingerprint:
    def test_stable_across_key_order(self):
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})

    def test_changes_with_content(self):
        assert fingerprint([{"requestId": "A"}]) != fingerprint([{"requestId": "B"}])


class TestArtifactCache:
    """Tests for the LRU artifact cache."""

    def test_factory_called_once(self):
        cache = ArtifactCache()
        calls = []

        def factory():
            calls.append(1)
            return "value"

        assert cache.get_or_create("k", factory) == "value"
        assert cache.get_or_create("k", factory) == "value"
        assert len(calls) == 1
        assert (cache.hits, cache.misses) == (1, 1)

    def test_least_recently_used_evicted(self):
        cache = ArtifactCache(maxsize=2)
        cache.get_or_create("a", lambda: 1)
        cache.get_or_create("b", lambda: 2)
        cache.get("a")
        cache.get_or_create("c", lambda: 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_invalidate(self):
        cache = ArtifactCache()
        cache.get_or_create("a", lambda: 1)
        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert cache.get("a") is None

    def test_zero_size_stores_nothing(self):
        cache = ArtifactCache(maxsize=0)
        assert cache.get_or_create("a", lambda: 1) == 1
        assert len(cache) == 0

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            ArtifactCache(maxsize=-1)

    def test_clear(self):
        cache = ArtifactCache()
        cache.get_or_create("a", lambda: 1)
        cache.clear()
        assert len(cache) == 0


class TestAnalyzerCaching:
    """Tests for analysis results shared through the cache."""

    def test_identical_inputs_share_result(self, chain_requests):
        analyzer = AdTraceAnalyzer()
        first = analyzer.analyze(chain_requests, [])
        second = analyzer.analyze([dict(r) for r in chain_requests], [])
        assert first is second

    def test_changed_input_is_recomputed(self, chain_requests, make_request):
        analyzer = AdTraceAnalyzer()
        first = analyzer.analyze(chain_requests, [])
        second = analyzer.analyze(chain_requests + [make_request("D", 0, 10)], [])
        assert first is not second
        assert first.fingerprint != second.fingerprint

    def test_config_is_part_of_key(self, chain_requests):
        cache = ArtifactCache()
        first = AdTraceAnalyzer(cache=cache).analyze(chain_requests, [])
        second = AdTraceAnalyzer(AnalysisConfig(max_concurrent_requests=1), cache=cache).analyze(chain_requests, [])
        assert first.fingerprint != second.fingerprint
        assert len(cache) == 2

    def test_invalidate_forces_recompute(self, chain_requests):
        analyzer = AdTraceAnalyzer()
        first = analyzer.analyze(chain_requests, [])
        assert analyzer.invalidate(first) is True
        assert analyzer.analyze(chain_requests, []) is not first
