"""Test in-memory recency cache."""

import pytest

from app.cache.lru_cache import RecencyCache


class TestRecencyCache:
    """Test RecencyCache class."""

    def test_should_reject_zero_capacity(self):
        """Test capacity must be positive."""
        with pytest.raises(ValueError, match="at least 1"):
            RecencyCache(0)

    def test_should_store_and_get(self):
        """Test basic put and get."""
        cache = RecencyCache(2)
        cache.put("a", "A")

        assert cache.get("a") == "A"
        assert cache.get("missing") is None

    def test_should_evict_least_recently_used(self):
        """Test promoted entries survive eviction."""
        cache = RecencyCache(2)
        cache.put("a", "A")
        cache.put("b", "B")
        cache.promote("a")
        cache.put("c", "C")

        assert "b" not in cache
        assert cache.keys() == ["c", "a"]

    def test_should_not_promote_on_get(self):
        """Test reads do not change recency."""
        cache = RecencyCache(2)
        cache.put("a", "A")
        cache.put("b", "B")
        cache.get("a")
        cache.put("c", "C")

        assert "a" not in cache
        assert len(cache) == 2

    def test_should_replace_existing_key_without_growing(self):
        """Test put on existing key updates value and recency."""
        cache = RecencyCache(2)
        cache.put("a", "A")
        cache.put("b", "B")
        cache.put("a", "A2")

        assert cache.size == 2
        assert cache.get("a") == "A2"
        assert cache.keys() == ["a", "b"]

    def test_should_report_promote_of_missing_key(self):
        """Test promote returns False for unknown keys."""
        assert RecencyCache(1).promote("missing") is False

    def test_should_remove_entry(self):
        """Test remove."""
        cache = RecencyCache(2)
        cache.put("a", "A")

        assert cache.remove("a") is True
        assert cache.remove("a") is False

    def test_should_discard_matching_entries(self):
        """Test predicate-based removal."""
        cache = RecencyCache(5)
        for value in range(5):
            cache.put(str(value), value)

        removed = cache.discard_if(lambda value: value % 2 == 0)

        assert removed == 3
        assert cache.keys() == ["3", "1"]

    def test_should_clear(self):
        """Test clear empties the cache."""
        cache = RecencyCache(2)
        cache.put("a", "A")
        cache.clear()

        assert len(cache) == 0
        assert cache.capacity == 2
