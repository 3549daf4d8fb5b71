"""Tests for the in-memory and on-disk TTL caches."""

import json
from unittest.mock import patch

from versioning.cache import FileCache, TTLCache, cache_dir, safe_key_segment


class TestSafeKeySegment:
    """Tests for safe_key_segment."""

    def test_replaces_unsafe_characters(self):
        assert safe_key_segment("cf-files-1/1.20 1") == "cf-files-1_1.20_1"

    def test_empty(self):
        assert safe_key_segment("") == "_"


class TestTTLCache:
    """Tests for TTLCache."""

    def test_set_and_get(self):
        cache = TTLCache()
        cache.set("k", [1, 2])

        assert cache.get("k") == [1, 2]
        assert cache.get("missing") is None

    @patch("versioning.cache.time.time")
    def test_expiry(self, mock_time):
        mock_time.return_value = 1000.0
        cache = TTLCache(default_ttl=60)
        cache.set("k", "v")

        mock_time.return_value = 1059.0
        assert cache.get("k") == "v"

        mock_time.return_value = 1061.0
        assert cache.get("k") is None

    def test_invalidate_and_clear(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")
        assert cache.get("a") is None
        cache.clear()
        assert cache.get("b") is None


class TestFileCache:
    """Tests for FileCache."""

    def test_default_directory(self, data_dir):
        assert FileCache().directory == cache_dir() == data_dir / "cache"

    def test_persists_across_instances(self, tmp_path):
        FileCache(tmp_path).set("mr-versions-sodium", [{"id": "a"}])

        assert FileCache(tmp_path).get("mr-versions-sodium") == [{"id": "a"}]

    @patch("versioning.cache.time.time")
    def test_file_layout(self, mock_time, tmp_path):
        mock_time.return_value = 500.0
        cache = FileCache(tmp_path, default_ttl=10)
        cache.set("cf-files-1-1.20-1", {"x": 1})

        with open(tmp_path / "cf-files-1-1.20-1.json", "r", encoding="utf-8") as fh:
            assert json.load(fh) == {"value": {"x": 1}, "fetched_at": 500.0, "expires_at": 510.0}

    @patch("versioning.cache.time.time")
    def test_expiry(self, mock_time, tmp_path):
        mock_time.return_value = 100.0
        cache = FileCache(tmp_path)
        cache.set("k", "v", ttl=5)

        mock_time.return_value = 106.0
        assert cache.get("k") is None

    def test_corrupt_file_is_a_miss(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.path_for("k").write_text("{broken", encoding="utf-8")

        assert cache.get("k") is None

    def test_invalidate(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.set("k", 1)
        cache.invalidate("k")
        cache.invalidate("k")

        assert cache.get("k") is None

    def test_clear_removes_directory(self, tmp_path):
        directory = tmp_path / "cache"
        cache = FileCache(directory)
        cache.set("k", 1)

        cache.clear()

        assert not directory.exists()
        cache.clear()
