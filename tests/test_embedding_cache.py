import threading
import unittest

from contract_rag.cache import EmbeddingCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_minutes(self, minutes: float) -> None:
        self.now += minutes * 60


class EmbeddingCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()

    def _cache(self, capacity: int = 100, ttl_minutes: float = 60) -> EmbeddingCache:
        return EmbeddingCache(capacity=capacity, ttl_minutes=ttl_minutes, clock=self.clock)

    def test_defaults(self):
        cache = EmbeddingCache()
        self.assertEqual(cache.capacity, 100)
        self.assertEqual(cache.ttl_ms, 60 * 60 * 1000)

    def test_missing_key_is_absent(self):
        cache = self._cache()
        self.assertIsNone(cache.get("nothing here"))
        self.assertEqual(cache.stats().misses, 1)

    def test_all_keys_retrievable_under_capacity(self):
        cache = self._cache(capacity=5)
        for i in range(5):
            cache.set(f"q{i}", [float(i)])
        cache.set("q2", [22.0])
        for i in range(5):
            expected = [22.0] if i == 2 else [float(i)]
            self.assertEqual(cache.get(f"q{i}"), expected)
        self.assertEqual(len(cache), 5)

    def test_keys_are_exact_text(self):
        cache = self._cache()
        cache.set("Contract term", [1.0])
        self.assertIsNone(cache.get("contract term"))
        self.assertIsNone(cache.get("Contract term "))
        self.assertEqual(cache.get("Contract term"), [1.0])

    def test_lru_scenario(self):
        cache = self._cache(capacity=2)
        cache.set("a", [1])
        cache.set("b", [2])
        self.assertEqual(cache.get("a"), [1])
        self.assertEqual(cache.keys(), ["b", "a"])
        cache.set("c", [3])
        self.assertIsNone(cache.get("b"))
        self.assertEqual(cache.get("a"), [1])
        self.assertEqual(cache.get("c"), [3])
        self.assertEqual(cache.stats().evictions, 1)

    def test_evicts_before_insert_only_for_new_keys(self):
        cache = self._cache(capacity=3)
        for key in ("a", "b", "c"):
            cache.set(key, [0.0])
        cache.set("b", [9.0])
        self.assertEqual(len(cache), 3)
        self.assertEqual(cache.stats().evictions, 0)
        self.assertEqual(cache.keys(), ["a", "c", "b"])

        cache.set("d", [4.0])
        self.assertEqual(len(cache), 3)
        self.assertNotIn("a", cache)
        self.assertEqual(cache.keys(), ["c", "b", "d"])

    def test_overflow_evicts_exactly_the_oldest(self):
        cache = self._cache(capacity=3)
        for i in range(10):
            cache.set(f"k{i}", [float(i)])
            self.assertLessEqual(len(cache), 3)
        self.assertEqual(cache.keys(), ["k7", "k8", "k9"])
        for i in range(7):
            self.assertIsNone(cache.get(f"k{i}"))
        self.assertEqual(cache.stats().evictions, 7)

    def test_capacity_one(self):
        cache = self._cache(capacity=1)
        cache.set("a", [1])
        cache.set("b", [2])
        self.assertIsNone(cache.get("a"))
        self.assertEqual(cache.get("b"), [2])

    def test_entry_expires_after_ttl(self):
        cache = self._cache(ttl_minutes=60)
        cache.set("x", [1.0])
        self.clock.advance_minutes(59)
        self.assertEqual(cache.get("x"), [1.0])
        self.clock.advance_minutes(2)
        self.assertIsNone(cache.get("x"))
        self.assertNotIn("x", cache)
        self.assertEqual(cache.stats().expirations, 1)

    def test_zero_ttl_expires_immediately(self):
        cache = self._cache(capacity=100, ttl_minutes=0)
        cache.set("x", [9])
        self.assertIsNone(cache.get("x"))

    def test_expired_entry_stays_until_touched(self):
        cache = self._cache(ttl_minutes=1)
        cache.set("x", [1.0])
        self.clock.advance_minutes(5)
        self.assertIn("x", cache)
        self.assertEqual(len(cache), 1)
        self.assertIsNone(cache.get("x"))
        self.assertEqual(len(cache), 0)

    def test_hit_does_not_extend_expiry(self):
        cache = self._cache(ttl_minutes=10)
        cache.set("x", [1.0])
        self.clock.advance_minutes(6)
        self.assertEqual(cache.get("x"), [1.0])
        self.clock.advance_minutes(6)
        self.assertIsNone(cache.get("x"))

    def test_set_refreshes_value_and_deadline(self):
        cache = self._cache(ttl_minutes=10)
        cache.set("x", [1.0])
        self.clock.advance_minutes(8)
        cache.set("x", [2.0])
        self.clock.advance_minutes(8)
        self.assertEqual(cache.get("x"), [2.0])
        self.assertEqual(len(cache), 1)

    def test_set_revives_expired_key_without_eviction(self):
        cache = self._cache(capacity=2, ttl_minutes=1)
        cache.set("a", [1])
        cache.set("b", [2])
        self.clock.advance_minutes(5)
        cache.set("a", [3])
        self.assertEqual(cache.stats().evictions, 0)
        self.assertEqual(cache.get("a"), [3])
        self.assertIsNone(cache.get("b"))

    def test_expired_entries_still_count_toward_capacity(self):
        cache = self._cache(capacity=2, ttl_minutes=1)
        cache.set("a", [1])
        cache.set("b", [2])
        self.clock.advance_minutes(5)
        cache.set("c", [3])
        self.assertEqual(cache.keys(), ["b", "c"])

    def test_stats_and_hit_rate(self):
        cache = self._cache()
        self.assertEqual(cache.hit_rate(), 0.0)
        cache.set("a", [1])
        cache.get("a")
        cache.get("a")
        cache.get("b")
        stats = cache.stats()
        self.assertEqual(stats.hits, 2)
        self.assertEqual(stats.misses, 1)
        self.assertEqual(stats.size, 1)
        self.assertAlmostEqual(cache.hit_rate(), 2 / 3)
        self.assertEqual(stats.to_dict()["capacity"], 100)

    def test_clear(self):
        cache = self._cache()
        cache.set("a", [1])
        cache.clear()
        self.assertEqual(len(cache), 0)
        self.assertIsNone(cache.get("a"))

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            EmbeddingCache(capacity=0)
        with self.assertRaises(ValueError):
            EmbeddingCache(ttl_minutes=-1)

    def test_concurrent_writers_respect_capacity(self):
        cache = EmbeddingCache(capacity=50)

        def writer(prefix: str) -> None:
            for i in range(200):
                cache.set(f"{prefix}-{i}", [float(i)])
                cache.get(f"{prefix}-{i // 2}")

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(cache), 50)

    def test_size_and_membership_wait_for_lock(self):
        cache = self._cache()
        cache.set("a", [1.0])
        results = []

        def reader() -> None:
            results.append((len(cache), "a" in cache, cache.hit_rate()))

        with cache._lock:
            t = threading.Thread(target=reader)
            t.start()
            t.join(timeout=0.2)
            self.assertTrue(t.is_alive())
            self.assertEqual(results, [])
        t.join()
        self.assertEqual(results, [(1, True, 0.0)])

    def test_returned_vector_is_a_copy(self):
        cache = self._cache()
        cache.set("a", [1.0, 2.0])
        vec = cache.get("a")
        vec.append(99.0)
        vec[0] = -1.0
        self.assertEqual(cache.get("a"), [1.0, 2.0])

    def test_stored_vector_is_a_copy(self):
        cache = self._cache()
        original = [1.0, 2.0]
        cache.set("a", original)
        original.append(3.0)
        self.assertEqual(cache.get("a"), [1.0, 2.0])


if __name__ == "__main__":
    unittest.main()
