"""Tests for the smart split analysis cache."""

import unittest

from commit_wizard.grouping.cache import AnalysisCache
from commit_wizard.grouping.group_model import FileGroup


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def sample_groups():
    return [FileGroup(id="g1", name="Auth", files=["auth.py"], confidence=0.9)]


class TestCacheKey(unittest.TestCase):
    def test_key_ignores_file_order_and_duplicates(self) -> None:
        first = AnalysisCache.make_key(["b.py", "a.py"], "diff", "gpt-4o", 0.7)
        second = AnalysisCache.make_key(["a.py", "b.py", "a.py"], "diff", "gpt-4o", 0.7)
        self.assertEqual(first, second)

    def test_key_is_case_sensitive(self) -> None:
        self.assertNotEqual(
            AnalysisCache.make_key(["A.py"], "diff", "gpt-4o", 0.7),
            AnalysisCache.make_key(["a.py"], "diff", "gpt-4o", 0.7),
        )

    def test_key_only_uses_diff_prefix(self) -> None:
        prefix = "x" * 1000
        self.assertEqual(
            AnalysisCache.make_key(["a.py"], prefix + "tail one", "gpt-4o", 0.7),
            AnalysisCache.make_key(["a.py"], prefix + "tail two", "gpt-4o", 0.7),
        )
        self.assertNotEqual(
            AnalysisCache.make_key(["a.py"], "y" + prefix, "gpt-4o", 0.7),
            AnalysisCache.make_key(["a.py"], prefix, "gpt-4o", 0.7),
        )

    def test_key_depends_on_model_parameters(self) -> None:
        base = AnalysisCache.make_key(["a.py"], "diff", "gpt-4o", 0.7)
        self.assertNotEqual(base, AnalysisCache.make_key(["a.py"], "diff", "gpt-4o-mini", 0.7))
        self.assertNotEqual(base, AnalysisCache.make_key(["a.py"], "diff", "gpt-4o", 0.3))


class TestAnalysisCache(unittest.TestCase):
    def test_set_then_get_returns_copies(self) -> None:
        cache = AnalysisCache(clock=FakeClock())
        cache.set("k", sample_groups())
        result = cache.get("k")
        self.assertTrue(result.hit)
        self.assertEqual(result.groups[0].files, ["auth.py"])
        result.groups[0].files.append("mutated.py")
        self.assertEqual(cache.get("k").groups[0].files, ["auth.py"])

    def test_miss_for_unknown_key(self) -> None:
        cache = AnalysisCache(clock=FakeClock())
        self.assertFalse(cache.get("missing").hit)

    def test_entry_valid_until_ttl_and_expired_after(self) -> None:
        clock = FakeClock(1000.0)
        cache = AnalysisCache(ttl_minutes=1, clock=clock)
        cache.set("k", sample_groups())
        clock.now = 1000.0 + 60
        self.assertTrue(cache.get("k").hit)
        clock.now = 1000.0 + 60 + 0.001
        self.assertFalse(cache.get("k").hit)
        self.assertEqual(cache.stats().size, 0)

    def test_disabled_cache_never_stores(self) -> None:
        cache = AnalysisCache(enabled=False, clock=FakeClock())
        cache.set("k", sample_groups())
        self.assertFalse(cache.get("k").hit)
        self.assertEqual(cache.stats().size, 0)
        self.assertFalse(cache.stats().enabled)

    def test_oldest_entry_evicted_when_full(self) -> None:
        clock = FakeClock(0.0)
        cache = AnalysisCache(max_size=2, clock=clock)
        for key in ("A", "B", "C"):
            cache.set(key, sample_groups())
            clock.now += 1
        self.assertFalse(cache.get("A").hit)
        self.assertTrue(cache.get("B").hit)
        self.assertTrue(cache.get("C").hit)

    def test_size_never_exceeds_capacity(self) -> None:
        clock = FakeClock(0.0)
        cache = AnalysisCache(max_size=5, clock=clock)
        for index in range(40):
            cache.set(f"key-{index}", sample_groups())
            clock.now += 1
            self.assertLessEqual(cache.stats().size, 5)
        self.assertTrue(cache.get("key-39").hit)

    def test_cleanup_prefers_expired_entries(self) -> None:
        clock = FakeClock(0.0)
        cache = AnalysisCache(ttl_minutes=1, max_size=3, clock=clock)
        cache.set("old", sample_groups())
        clock.now = 100.0
        cache.set("fresh-1", sample_groups())
        cache.set("fresh-2", sample_groups())
        cache.set("fresh-3", sample_groups())
        self.assertEqual(sorted(cache.keys()), ["fresh-1", "fresh-2", "fresh-3"])

    def test_overwriting_key_does_not_evict(self) -> None:
        clock = FakeClock(0.0)
        cache = AnalysisCache(max_size=2, clock=clock)
        cache.set("A", sample_groups())
        cache.set("B", sample_groups())
        cache.set("A", [FileGroup(files=["new.py"])])
        self.assertEqual(cache.stats().size, 2)
        self.assertEqual(cache.get("A").groups[0].files, ["new.py"])

    def test_clear(self) -> None:
        cache = AnalysisCache(clock=FakeClock())
        cache.set("k", sample_groups())
        cache.clear()
        self.assertEqual(cache.stats().size, 0)


if __name__ == "__main__":
    unittest.main()
