"""
Tests for environment-driven settings.
"""

import warnings

from portal_analytics.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.DEFAULT_PASSING_SCORE == 60.0
        assert settings.ENGAGEMENT_WEEKS == 5
        assert settings.CSV_NOT_AVAILABLE == "N/A"

    def test_env_prefix(self, monkeypatch):
        # Given: Overrides in the environment
        monkeypatch.setenv("ANALYTICS_ENGAGEMENT_WEEKS", "8")
        monkeypatch.setenv("ANALYTICS_DEFAULT_PASSING_SCORE", "50")

        # When: Settings are loaded
        settings = Settings(_env_file=None)

        # Then: Prefixed variables win over defaults
        assert settings.ENGAGEMENT_WEEKS == 8
        assert settings.DEFAULT_PASSING_SCORE == 50.0

    def test_loads_without_deprecation_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            Settings(_env_file=None)
