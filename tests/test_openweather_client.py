import math
import unittest

import requests

from weathercache.domain import (
    CurrentConditions,
    DailyForecast,
    WeatherEndpoint,
    WeatherFailureKind,
    WeatherFetchFailure,
)
from weathercache.providers.openweather_client import (
    OpenWeatherClient,
    bucket_daily_forecasts,
    format_day_label,
)

LOGGER_NAME = "weathercache.providers.openweather_client"
JAN_01_2024_UTC = 1704067200  # Monday 00:00


class DummyResp:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummySession:
    def __init__(self, resp=None, error=None):
        self.resp = resp
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error:
            raise self.error
        return self.resp


def _client(session):
    return OpenWeatherClient("test_weather_api_key", base_url="https://owm.test/data/2.5", timeout=10, session=session)


def _sample(ts, temp, description="cloudy"):
    return {
        "dt": ts,
        "main": {"temp": temp, "temp_min": temp - 2, "temp_max": temp + 2},
        "weather": [{"description": description}],
    }


def _current_payload():
    return {
        "main": {"temp": 75.5, "feels_like": 76.0, "temp_min": 70.0, "temp_max": 80.0},
        "weather": [{"description": "clear sky"}],
        "name": "Mountain View",
    }


class TestFetchCurrent(unittest.TestCase):
    def test_success_parses_payload(self):
        session = DummySession(DummyResp(_current_payload()))

        current = _client(session).fetch_current(37.422, -122.084)

        self.assertEqual(
            current,
            CurrentConditions(
                temperature=75.5,
                feels_like=76.0,
                temp_min=70.0,
                temp_max=80.0,
                description="clear sky",
                city_name="Mountain View",
            ),
        )
        call = session.calls[0]
        self.assertEqual(call["url"], "https://owm.test/data/2.5/weather")
        self.assertEqual(call["params"]["units"], "metric")
        self.assertEqual(call["params"]["appid"], "test_weather_api_key")
        self.assertEqual((call["params"]["lat"], call["params"]["lon"]), (37.422, -122.084))
        self.assertEqual(call["timeout"], 10)

    def test_http_error_returns_failure_and_logs_body(self):
        session = DummySession(DummyResp(None, status_code=401, text='{"message":"Unauthorized"}'))
        with self.assertLogs(LOGGER_NAME, level="ERROR") as cm:
            result = _client(session).fetch_current(37.422, -122.084)
        self.assertIsInstance(result, WeatherFetchFailure)
        self.assertEqual(result.kind, WeatherFailureKind.HTTP_STATUS)
        self.assertEqual(result.status_code, 401)
        self.assertIn('OpenWeatherMap API error: 401 - {"message":"Unauthorized"}', "\n".join(cm.output))

    def test_connection_error_returns_failure(self):
        session = DummySession(error=requests.ConnectionError("Failed to connect"))
        with self.assertLogs(LOGGER_NAME, level="ERROR") as cm:
            result = _client(session).fetch_current(37.422, -122.084)
        self.assertEqual(result.kind, WeatherFailureKind.CONNECTION)
        self.assertIn("Connection to OpenWeatherMap failed: Failed to connect", "\n".join(cm.output))

    def test_timeout_returns_failure(self):
        session = DummySession(error=requests.Timeout("read timed out"))
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = _client(session).fetch_current(37.422, -122.084)
        self.assertEqual(result.kind, WeatherFailureKind.TIMEOUT)

    def test_invalid_json_returns_failure(self):
        session = DummySession(DummyResp(ValueError("Expecting value: line 1 column 1 (char 0)")))
        with self.assertLogs(LOGGER_NAME, level="ERROR") as cm:
            result = _client(session).fetch_current(37.422, -122.084)
        self.assertEqual(result.kind, WeatherFailureKind.PARSE)
        self.assertIn("Failed to parse OpenWeatherMap response", "\n".join(cm.output))

    def test_missing_main_block_returns_failure(self):
        session = DummySession(DummyResp({"weather": [{"description": "clear sky"}]}))
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = _client(session).fetch_current(37.422, -122.084)
        self.assertEqual(result.endpoint, WeatherEndpoint.CURRENT)
        self.assertEqual(result.kind, WeatherFailureKind.PARSE)


class TestFetchExtended(unittest.TestCase):
    def test_nine_samples_become_two_days(self):
        samples = [_sample(JAN_01_2024_UTC, 70, "light rain")]
        samples += [_sample(JAN_01_2024_UTC + 3600 * 3 * i, 72) for i in range(1, 8)]
        samples.append(_sample(JAN_01_2024_UTC + 86400, 60, "sunny"))
        session = DummySession(DummyResp({"list": samples}))

        days = _client(session).fetch_extended(37.422, -122.084)

        self.assertEqual(
            days,
            (
                DailyForecast(date="Monday, Jan 01", temp_min=70.0, temp_max=72.0, description="light rain"),
                DailyForecast(date="Tuesday, Jan 02", temp_min=60.0, temp_max=60.0, description="sunny"),
            ),
        )
        self.assertEqual(session.calls[0]["url"], "https://owm.test/data/2.5/forecast")
        self.assertEqual(session.calls[0]["params"]["units"], "metric")

    def test_city_timezone_shifts_day_label(self):
        # 02:00 UTC on Jan 01 is still Dec 31 at UTC-8.
        samples = [_sample(JAN_01_2024_UTC + 7200, 10)]
        session = DummySession(DummyResp({"list": samples, "city": {"timezone": -8 * 3600}}))

        days = _client(session).fetch_extended(37.422, -122.084)

        self.assertEqual(days[0].date, "Sunday, Dec 31")

    def test_server_error_returns_failure_for_whole_call(self):
        session = DummySession(DummyResp(None, status_code=500, text='{"message":"Internal Server Error"}'))
        with self.assertLogs(LOGGER_NAME, level="ERROR") as cm:
            result = _client(session).fetch_extended(37.422, -122.084)
        self.assertIsInstance(result, WeatherFetchFailure)
        self.assertEqual(result.endpoint, WeatherEndpoint.FORECAST)
        self.assertIn(
            'OpenWeatherMap Forecast API error: 500 - {"message":"Internal Server Error"}',
            "\n".join(cm.output),
        )

    def test_malformed_sample_fails_whole_call(self):
        samples = [_sample(JAN_01_2024_UTC, 70), {"dt": JAN_01_2024_UTC + 10800}]
        session = DummySession(DummyResp({"list": samples}))
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = _client(session).fetch_extended(37.422, -122.084)
        self.assertEqual(result.kind, WeatherFailureKind.PARSE)


class TestBucketDailyForecasts(unittest.TestCase):
    def test_length_is_min_of_five_and_ceil_n_over_eight(self):
        for n in (1, 7, 8, 9, 16, 33, 40, 41, 56):
            samples = [_sample(JAN_01_2024_UTC + 10800 * i, float(i)) for i in range(n)]
            days = bucket_daily_forecasts(samples)
            self.assertEqual(len(days), min(5, math.ceil(n / 8)), msg=f"n={n}")

    def test_min_max_span_each_group_including_partial_tail(self):
        temps = [5, 9, 1, 7, 3, 8, 2, 6, 11, 4, 12]
        samples = [_sample(JAN_01_2024_UTC + 10800 * i, t) for i, t in enumerate(temps)]

        days = bucket_daily_forecasts(samples)

        self.assertEqual((days[0].temp_min, days[0].temp_max), (1.0, 9.0))
        self.assertEqual((days[1].temp_min, days[1].temp_max), (4.0, 12.0))

    def test_description_comes_from_first_sample(self):
        samples = [_sample(JAN_01_2024_UTC, 1, "fog")] + [_sample(JAN_01_2024_UTC + 10800, 2, "rain")]
        self.assertEqual(bucket_daily_forecasts(samples)[0].description, "fog")

    def test_group_without_first_sample_is_skipped(self):
        samples = [_sample(JAN_01_2024_UTC + 10800 * i, 10) for i in range(8)]
        samples += [None] + [_sample(JAN_01_2024_UTC + 86400 + 10800 * i, 20) for i in range(1, 8)]

        days = bucket_daily_forecasts(samples)

        self.assertEqual(len(days), 1)
        self.assertEqual(days[0].temp_max, 10.0)

    def test_empty_list_gives_no_days(self):
        self.assertEqual(bucket_daily_forecasts([]), ())

    def test_format_day_label(self):
        self.assertEqual(format_day_label(JAN_01_2024_UTC), "Monday, Jan 01")


if __name__ == "__main__":
    unittest.main()
