import os
import unittest

from weathercache.config import FORECAST_CACHE_TTL_SECONDS, Settings


class TestConfig(unittest.TestCase):
    def _with_env(self, **env):
        previous = {k: os.environ.get(k) for k in env}
        os.environ.update(env)
        self.addCleanup(self._restore, previous)

    @staticmethod
    def _restore(previous):
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def test_settings_defaults(self):
        previous = os.environ.pop("WEATHERCACHE_CACHE_BACKEND", None)
        try:
            s = Settings()
            self.assertEqual(s.forecast_cache_ttl_seconds, 30 * 60)
            self.assertEqual(s.forecast_cache_ttl_seconds, FORECAST_CACHE_TTL_SECONDS)
            self.assertEqual(s.cache_backend, "memory")
            self.assertEqual(s.geocoder_timeout_seconds, 5.0)
            self.assertEqual(s.weather_timeout_seconds, 10.0)
        finally:
            if previous is not None:
                os.environ["WEATHERCACHE_CACHE_BACKEND"] = previous

    def test_settings_env_override(self):
        self._with_env(
            WEATHERCACHE_OPENWEATHER_API_KEY="owm-key",
            WEATHERCACHE_CACHE_BACKEND="redis",
            WEATHERCACHE_CACHE_REDIS_URL="redis://localhost:6379/0",
        )
        s = Settings()
        self.assertEqual(s.openweather_api_key, "owm-key")
        self.assertEqual(s.cache_backend, "redis")
        self.assertEqual(s.cache_redis_url, "redis://localhost:6379/0")

    def test_base_urls_drop_trailing_slash(self):
        self._with_env(
            WEATHERCACHE_OPENWEATHER_BASE_URL="http://weather.test/data/2.5/",
            WEATHERCACHE_GEOAPIFY_BASE_URL="http://geo.test/v1/",
        )
        s = Settings()
        self.assertEqual(s.openweather_base_url, "http://weather.test/data/2.5")
        self.assertEqual(s.geoapify_base_url, "http://geo.test/v1")


if __name__ == "__main__":
    unittest.main()
