import datetime as dt
import unittest

import requests

from surftribe.config import Settings
from surftribe.data_sources.stormglass_client import (
    ApiUsage,
    StormglassClient,
    StormglassConfigError,
    StormglassError,
    best_source_value,
    calculate_rating,
)
from surftribe.domain import CompassPoint, ForecastSource, Rating

POINT_URL = "https://api.stormglass.io/v2/weather/point"
NOW = dt.datetime(2025, 6, 1, 6, 0, tzinfo=dt.timezone.utc)


class DummyResp:
    def __init__(self, payload, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


class RecordingSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(response, api_key="sg-test-key"):
    session = RecordingSession(response)
    settings = Settings(stormglass_api_key=api_key)
    return StormglassClient(session=session, clock=lambda: NOW, settings=settings), session


def _payload(hours, meta=None):
    return {"hours": hours, "meta": meta or {"cost": 1, "dailyQuota": 10, "requestCount": 1}}


class TestBestSourceValue(unittest.TestCase):
    def test_priority_order(self):
        self.assertEqual(best_source_value({"meteo": 1.0, "sg": 2.0, "noaa": 3.0}), 3.0)
        self.assertEqual(best_source_value({"meteo": 1.0, "icon": 2.0}), 2.0)
        self.assertEqual(best_source_value({"meteo": 1.0}), 1.0)

    def test_falls_back_to_first_value(self):
        self.assertEqual(best_source_value({"dwd": 4.0, "ecmwf": 5.0}), 4.0)

    def test_missing_or_empty(self):
        self.assertIsNone(best_source_value(None))
        self.assertIsNone(best_source_value({}))


class TestCalculateRating(unittest.TestCase):
    def test_thresholds(self):
        self.assertIs(calculate_rating(7, 13), Rating.EPIC)
        self.assertIs(calculate_rating(6, 11), Rating.GOOD)
        self.assertIs(calculate_rating(4, 10), Rating.GOOD)
        self.assertIs(calculate_rating(2, 7), Rating.FAIR)
        self.assertIs(calculate_rating(8, 6), Rating.POOR)
        self.assertIs(calculate_rating(1, 3), Rating.POOR)


class TestFetchForecast(unittest.TestCase):
    def test_missing_key_fails_fast(self):
        client, session = _client(DummyResp(_payload([])), api_key=None)
        with self.assertRaises(StormglassConfigError):
            client.fetch_forecast(32.85, -117.25)
        self.assertEqual(session.calls, [])

    def test_http_error_carries_status_and_body(self):
        client, _ = _client(DummyResp({}, status_code=402, text='{"errors":{"key":"quota exceeded"}}'))
        with self.assertRaises(StormglassError) as ctx:
            client.fetch_forecast(32.85, -117.25)
        self.assertEqual(ctx.exception.status_code, 402)
        self.assertIn("402", str(ctx.exception))
        self.assertIn("quota exceeded", str(ctx.exception))

    def test_transport_error_is_wrapped(self):
        client, _ = _client(requests.ConnectionError("reset"))
        with self.assertRaises(StormglassError) as ctx:
            client.fetch_forecast(32.85, -117.25)
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_malformed_payload_raises(self):
        client, _ = _client(DummyResp({"meta": {}}))
        with self.assertRaises(StormglassError):
            client.fetch_forecast(32.85, -117.25)

    def test_non_numeric_model_value_raises_stormglass_error(self):
        hours = [{"time": "2025-06-01T00:00:00+00:00", "swellHeight": {"noaa": "1.5"}}]
        client, _ = _client(DummyResp(_payload(hours)))
        with self.assertRaises(StormglassError) as ctx:
            client.fetch_forecast(32.85, -117.25)
        self.assertIn("Malformed Stormglass response", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, TypeError)

    def test_hours_not_a_list_raises_stormglass_error(self):
        client, _ = _client(DummyResp({"hours": None}))
        with self.assertRaises(StormglassError):
            client.fetch_forecast(32.85, -117.25)

    def test_request_shape(self):
        client, session = _client(DummyResp(_payload([])))
        self.assertEqual(client.fetch_forecast(32.85, -117.25, days=3), [])

        call = session.calls[0]
        self.assertEqual(call["url"], POINT_URL)
        self.assertEqual(call["headers"], {"Authorization": "sg-test-key"})
        self.assertEqual(call["params"]["lat"], 32.85)
        self.assertEqual(call["params"]["lng"], -117.25)
        self.assertEqual(
            call["params"]["params"].split(","),
            [
                "waveHeight",
                "wavePeriod",
                "waveDirection",
                "windSpeed",
                "windDirection",
                "swellHeight",
                "swellPeriod",
                "swellDirection",
            ],
        )
        self.assertEqual(call["params"]["start"], NOW.isoformat())
        self.assertEqual(call["params"]["end"], (NOW + dt.timedelta(days=3)).isoformat())

    def test_daily_aggregation(self):
        hours = [
            {
                "time": "2025-06-01T00:00:00+00:00",
                "swellHeight": {"noaa": 1.5, "sg": 9.9},
                "swellPeriod": {"noaa": 13.0},
                "swellDirection": {"noaa": 270.0},
                "windSpeed": {"sg": 5.0},
                "windDirection": {"noaa": 90.0},
            },
            {
                "time": "2025-06-01T01:00:00+00:00",
                "swellHeight": {"noaa": 2.5},
                "swellPeriod": {"sg": 11.0},
                "swellDirection": {"icon": 270.0},
                "windSpeed": {"sg": 5.0},
                "windDirection": {"icon": 100.0},
            },
        ]
        client, _ = _client(DummyResp(_payload(hours)))

        reports = client.fetch_forecast(32.85, -117.25)

        self.assertEqual(len(reports), 1)
        day = reports[0]
        self.assertEqual(day.date, "2025-06-01")
        self.assertEqual(day.wave_height_min, 7)  # mean 2.0 m -> round(6.56)
        self.assertEqual(day.wave_height_max, 8)  # max 2.5 m -> round(8.2)
        self.assertEqual(day.swell_period_sec, 12)
        self.assertIs(day.rating, Rating.EPIC)
        self.assertEqual(day.wind_speed, 10)  # 5 m/s -> 9.72 kn
        self.assertIs(day.wind_direction, CompassPoint.E)
        self.assertIs(day.swell_direction, CompassPoint.W)
        self.assertIs(day.source, ForecastSource.STORMGLASS)
        self.assertIsNone(day.shape)

    def test_generic_wave_fields_are_fallback_only(self):
        hours = [
            {
                "time": "2025-06-01T00:00:00+00:00",
                "waveHeight": {"sg": 3.0},
                "wavePeriod": {"sg": 8.0},
                "waveDirection": {"sg": 180.0},
            },
            {
                "time": "2025-06-01T01:00:00+00:00",
                "waveHeight": {"sg": 9.0},
                "swellHeight": {"sg": 1.0},
                "wavePeriod": {"sg": 20.0},
                "swellPeriod": {"sg": 8.0},
            },
        ]
        client, _ = _client(DummyResp(_payload(hours)))

        day = client.fetch_forecast(0, 0)[0]

        # heights 3.0 and 1.0 m: mean 2.0 -> 7 ft, max 3.0 -> 10 ft
        self.assertEqual(day.wave_height_min, 7)
        self.assertEqual(day.wave_height_max, 10)
        self.assertEqual(day.swell_period_sec, 8)
        self.assertIs(day.swell_direction, CompassPoint.S)
        self.assertIs(day.rating, Rating.FAIR)

    def test_empty_fields_average_to_zero_and_clamp(self):
        hours = [{"time": "2025-06-01T00:00:00+00:00", "swellHeight": {}}]
        client, _ = _client(DummyResp(_payload(hours)))

        day = client.fetch_forecast(0, 0)[0]

        self.assertEqual(day.wave_height_min, 1)
        self.assertEqual(day.wave_height_max, 1)
        self.assertEqual(day.wind_speed, 0)
        self.assertEqual(day.swell_period_sec, 0)
        self.assertIs(day.wind_direction, CompassPoint.N)
        self.assertIs(day.rating, Rating.POOR)

    def test_buckets_follow_upstream_dates_in_order(self):
        hours = [
            {"time": "2025-06-01T22:00:00+00:00", "swellHeight": {"noaa": 0.1}},
            {"time": "2025-06-01T23:00:00+00:00", "swellHeight": {"noaa": 0.2}},
            {"time": "2025-06-02T00:00:00+00:00", "swellHeight": {"noaa": 1.0}},
            {"time": "2025-06-03T00:00:00+00:00", "swellHeight": {"noaa": 2.0}},
        ]
        client, _ = _client(DummyResp(_payload(hours)))

        reports = client.fetch_forecast(0, 0)

        self.assertEqual([r.date for r in reports], ["2025-06-01", "2025-06-02", "2025-06-03"])
        self.assertTrue(all(r.wave_height_min >= 1 and r.wave_height_max >= 1 for r in reports))
        self.assertEqual(reports[1].wave_height_max, 3)


class TestApiUsage(unittest.TestCase):
    def test_no_key_returns_none(self):
        client, session = _client(DummyResp(_payload([])), api_key=None)
        self.assertIsNone(client.get_api_usage())
        self.assertEqual(session.calls, [])

    def test_reads_meta(self):
        client, session = _client(DummyResp(_payload([], meta={"cost": 1, "dailyQuota": 10, "requestCount": 4})))
        self.assertEqual(client.get_api_usage(), ApiUsage(request_count=4, daily_quota=10))
        self.assertEqual(session.calls[0]["params"]["params"], "waveHeight")

    def test_defaults_when_meta_missing(self):
        client, _ = _client(DummyResp({"hours": []}))
        self.assertEqual(client.get_api_usage(), ApiUsage(request_count=0, daily_quota=50))

    def test_malformed_meta_returns_none(self):
        client, _ = _client(DummyResp({"hours": [], "meta": [1]}))
        self.assertIsNone(client.get_api_usage())

        client, _ = _client(DummyResp({"hours": [], "meta": {"requestCount": "many", "dailyQuota": 10}}))
        self.assertIsNone(client.get_api_usage())

        client, _ = _client(DummyResp([{"meta": {}}]))
        self.assertIsNone(client.get_api_usage())

    def test_failure_returns_none(self):
        client, _ = _client(DummyResp({}, status_code=500))
        self.assertIsNone(client.get_api_usage())

        client, _ = _client(requests.Timeout("slow"))
        self.assertIsNone(client.get_api_usage())


if __name__ == "__main__":
    unittest.main()
