import unittest

from fundspace.config import Settings, resolve_news_api_key


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = Settings.from_env({})
        self.assertEqual(s.fetch_timeout, 10.0)
        self.assertEqual(s.cache_ttl, 300.0)
        self.assertEqual(s.result_limit, 10)
        self.assertEqual(s.items_per_feed, 8)
        self.assertEqual(s.image_policy, "fallback")
        self.assertIsNone(s.news_api_key)
        self.assertTrue(s.rate_limit_enabled)

    def test_overrides(self):
        s = Settings.from_env({
            "RSS_FETCH_TIMEOUT": "4.5",
            "RSS_RESULT_LIMIT": "6",
            "RSS_IMAGE_POLICY": "Exclude",
            "RATELIMIT_ENABLED": "false",
            "RSS_SNAPSHOT_DIR": "/tmp/snaps",
        })
        self.assertEqual(s.fetch_timeout, 4.5)
        self.assertEqual(s.result_limit, 6)
        self.assertEqual(s.image_policy, "exclude")
        self.assertFalse(s.rate_limit_enabled)
        self.assertEqual(s.snapshot_dir, "/tmp/snaps")

    def test_invalid_values_fail_fast(self):
        with self.assertRaises(ValueError):
            Settings.from_env({"RSS_RESULT_LIMIT": "ten"})
        with self.assertRaises(ValueError):
            Settings.from_env({"RSS_FETCH_TIMEOUT": "0"})
        with self.assertRaises(ValueError):
            Settings.from_env({"RSS_IMAGE_POLICY": "maybe"})

    def test_api_key_precedence(self):
        self.assertEqual(resolve_news_api_key({"NEWS_API_KEY": "a", "NEWSAPI_KEY": "b"}), "a")
        self.assertEqual(resolve_news_api_key({"NEWSAPI_KEY": "b"}), "b")
        self.assertIsNone(resolve_news_api_key({"NEWS_API_KEY": "  "}))


if __name__ == "__main__":
    unittest.main()
