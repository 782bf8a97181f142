import tempfile
import unittest
from pathlib import Path

from benchdiff.errors import CacheCorruption, IOFailure
from benchdiff.io.layout import filter_hash
from pipeline.cache import BuildCache


class TestBuildCache(unittest.TestCase):
    def test_resolve_uses_ref_and_filter_hash(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/b", "./pkg/a"])
            self.assertEqual(Path(td) / "abc1234" / "bin" / filter_hash(["./pkg/a", "./pkg/b"]), bin_dir)
            self.assertEqual(cache.resolve("abc1234", ["./pkg/a", "./pkg/b"]), bin_dir)
            self.assertEqual(filter_hash(["./pkg/a"]), BuildCache.cache_key(["./pkg/a"]))

    def test_lookup_miss_and_hit(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            self.assertIsNone(cache.lookup(bin_dir))

            # An empty directory is a hit: a filter matching no tested packages.
            bin_dir.mkdir(parents=True)
            self.assertEqual(set(), cache.lookup(bin_dir))

            (bin_dir / "org_repo_pkg_kv").write_bytes(b"")
            (bin_dir / "org_repo_pkg_sql").write_bytes(b"")
            self.assertEqual({"org_repo_pkg_kv", "org_repo_pkg_sql"}, cache.lookup(bin_dir))

    def test_nested_directory_is_corruption(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            (bin_dir / "stray").mkdir(parents=True)
            with self.assertRaises(CacheCorruption):
                cache.lookup(bin_dir)

    def test_file_in_place_of_directory_is_corruption(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            bin_dir.parent.mkdir(parents=True)
            bin_dir.write_text("not a dir", encoding="utf-8")
            with self.assertRaises(CacheCorruption):
                cache.lookup(bin_dir)

    def test_populate_keeps_directory_on_success(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            with cache.populate(bin_dir) as d:
                (d / "org_repo_pkg_kv").write_bytes(b"")
            self.assertEqual({"org_repo_pkg_kv"}, cache.lookup(bin_dir))

    def test_populate_removes_directory_on_failure(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            with self.assertRaises(RuntimeError):
                with cache.populate(bin_dir) as d:
                    (d / "partial").write_bytes(b"")
                    raise RuntimeError("compile failed")
            self.assertFalse(bin_dir.exists())
            self.assertIsNone(cache.lookup(bin_dir))

    def test_populate_refuses_existing_directory(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cache = BuildCache(td)
            bin_dir = cache.resolve("abc1234", ["./pkg/..."])
            bin_dir.mkdir(parents=True)
            with self.assertRaises(IOFailure):
                with cache.populate(bin_dir):
                    pass
            self.assertTrue(bin_dir.exists())


if __name__ == "__main__":
    unittest.main()
