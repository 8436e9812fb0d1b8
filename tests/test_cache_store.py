"""Tests for cache_store.py"""

import os

import pytest

from cache_store import CacheStore, cache_key
from config import CACHE_KEY_LENGTH
from error_handling import CacheError


class TestCacheKey:
    def test_deterministic(self):
        assert cache_key("https://a.example/sub") == cache_key("https://a.example/sub")

    def test_distinct_and_fixed_width(self):
        keys = {cache_key(f"https://sub.example.com/{i}?token={i * 7}") for i in range(10000)}
        assert len(keys) == 10000
        assert all(len(k) == CACHE_KEY_LENGTH for k in keys)
        assert all(int(k, 16) >= 0 for k in keys)


class TestCacheStore:
    def test_save_and_load(self, cache):
        cache.save("https://a.example/sub", b'{"outbounds": []}')
        assert cache.load("https://a.example/sub") == b'{"outbounds": []}'

    def test_round_trip_arbitrary_bytes(self, cache):
        for data in (b"", b"\xff\xfe\x00{not utf8}", "{\"tag\": \"Япония\"}".encode("utf-16")):
            cache.save("https://a.example/sub", data)
            assert cache.load("https://a.example/sub") == data

    def test_load_missing(self, cache):
        assert cache.load("https://nothing.example/") is None

    def test_overwrite(self, cache):
        cache.save("https://a.example/sub", b"one")
        cache.save("https://a.example/sub", b"two")
        assert cache.load("https://a.example/sub") == b"two"

    def test_file_naming(self, cache):
        path = cache.save("https://a.example/sub", b"x")
        assert os.path.dirname(path) == cache.cache_dir
        assert os.path.basename(path) == cache_key("https://a.example/sub") + ".json"

    def test_no_temp_files_left(self, cache):
        cache.save("https://a.example/sub", b"x")
        assert os.listdir(cache.cache_dir) == [cache_key("https://a.example/sub") + ".json"]

    def test_clear_single(self, cache):
        cache.save("https://a.example/sub", b"a")
        cache.save("https://b.example/sub", b"b")
        assert cache.clear("https://a.example/sub") == 1
        assert cache.load("https://a.example/sub") is None
        assert cache.load("https://b.example/sub") == b"b"

    def test_clear_all(self, cache):
        cache.save("https://a.example/sub", b"a")
        cache.save("https://b.example/sub", b"b")
        assert cache.clear() == 2
        assert cache.load("https://a.example/sub") is None
        assert cache.load("https://b.example/sub") is None

    def test_clear_keeps_foreign_files(self, cache):
        cache.save("https://a.example/sub", b"a")
        other = os.path.join(cache.cache_dir, "notes.txt")
        with open(other, "w") as f:
            f.write("keep")
        cache.clear()
        assert os.path.exists(other)

    def test_clear_missing_dir(self, tmp_path):
        store = CacheStore(str(tmp_path / "never-created"))
        assert store.clear() == 0
        assert store.clear("https://a.example/sub") == 0

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = CacheStore(str(blocker))
        with pytest.raises(CacheError):
            store.save("https://a.example/sub", b"x")

    def test_lock_per_url(self, cache):
        assert cache.lock_for("https://a.example/sub") is cache.lock_for("https://a.example/sub")
        assert cache.lock_for("https://a.example/sub") is not cache.lock_for("https://b.example/sub")

    def test_default_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SUBROUTER_CACHE_DIR", str(tmp_path / "env-cache"))
        assert CacheStore().cache_dir == str(tmp_path / "env-cache")
