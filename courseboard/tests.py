from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings

from courseboard.middleware import _parse_rate


class ParseRateTests(SimpleTestCase):
    def test_parses_units(self):
        self.assertEqual(_parse_rate("5/15m"), (5, 900))
        self.assertEqual(_parse_rate("120/m"), (120, 60))
        self.assertEqual(_parse_rate("100/60s"), (100, 60))

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            _parse_rate("lots")


@override_settings(RATE_LIMITS={"sensitive": {r"^/api/assignments/$": "1/m"}})
class RateLimitMiddlewareTests(TestCase):
    def setUp(self):
        cache.clear()
        self.addCleanup(cache.clear)

    def test_sensitive_path_is_limited(self):
        first = self.client.get("/api/assignments/")
        second = self.client.get("/api/assignments/")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 429)
        self.assertEqual(second.json()["code"], "rate_limited")

    def test_other_paths_are_not_limited(self):
        for _ in range(3):
            self.assertEqual(self.client.get("/api/assignments/424242/").status_code, 404)
