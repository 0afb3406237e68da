import unittest

import requests

from surftribe.config import Settings
from surftribe.data_sources.factory import DEFAULT_SOURCE_NAME, build_data_source, build_session
from surftribe.data_sources.spitcast_client import SpitcastClient
from surftribe.data_sources.stormglass_client import StormglassClient


class TestDataSourceFactory(unittest.TestCase):
    def test_default_source_is_stormglass(self):
        self.assertEqual(DEFAULT_SOURCE_NAME, "stormglass")
        ds = build_data_source(settings=Settings(forecast_source="stormglass", stormglass_api_key="k"))
        self.assertIsInstance(ds, StormglassClient)

    def test_explicit_source_overrides_settings(self):
        ds = build_data_source("Spitcast", Settings(forecast_source="stormglass"))
        self.assertIsInstance(ds, SpitcastClient)

    def test_missing_stormglass_key_still_builds(self):
        ds = build_data_source("stormglass", Settings(stormglass_api_key=None))
        self.assertIsInstance(ds, StormglassClient)

    def test_unknown_source_raises(self):
        with self.assertRaises(ValueError):
            build_data_source("surfline", Settings())

    def test_build_session(self):
        session = build_session()
        self.assertIsInstance(session, requests.Session)
        self.assertEqual(session.headers["Accept"], "application/json")


if __name__ == "__main__":
    unittest.main()
