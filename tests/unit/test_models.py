"""
Tests for snapshot types
"""

import pytest

from dockwidgets.models import (
    MediaApp,
    NowPlayingSnapshot,
    Rect,
    TemperatureUnit,
    WeatherReport,
    WeatherSnapshot,
    display_temperature,
)
from dockwidgets.utils.errors import NetworkError


class TestNowPlayingSnapshot:
    """Test the now-playing value"""

    def test_empty(self):
        snapshot = NowPlayingSnapshot.empty()

        assert snapshot.source_app is MediaApp.NONE
        assert not snapshot.is_playing
        assert not snapshot.has_media
        assert snapshot.display_text == ""

    def test_value_equality(self):
        """Test snapshots with equal fields compare equal"""
        first = NowPlayingSnapshot("X", "Y", "Z", MediaApp.SPOTIFY, True)
        second = NowPlayingSnapshot("X", "Y", "Z", MediaApp.SPOTIFY, True)

        assert first == second
        assert first != NowPlayingSnapshot("X", "Y", "Z", MediaApp.SPOTIFY, False)

    def test_display_text(self):
        assert NowPlayingSnapshot("Song", "Band").display_text == "Song – Band"
        assert NowPlayingSnapshot("Song", "Band", "Record").display_text == "Song – Band (Record)"

    def test_immutable(self):
        snapshot = NowPlayingSnapshot("Song", "Band")

        with pytest.raises(AttributeError):
            snapshot.title = "Other"

    def test_display_names(self):
        assert MediaApp.MUSIC.display_name == "Apple Music"
        assert MediaApp.NONE.display_name == "No music playing"


class TestWeather:
    """Test weather values and unit conversion"""

    @pytest.fixture
    def snapshot(self):
        return WeatherSnapshot("Lisbon", 20, "Clear Sky", "clear")

    def test_celsius_unchanged(self, snapshot):
        assert display_temperature(snapshot, TemperatureUnit.CELSIUS) == 20

    @pytest.mark.parametrize("celsius,fahrenheit", [(20, 68), (-40, -40), (21, 70), (0, 32), (37, 99)])
    def test_fahrenheit(self, celsius, fahrenheit):
        snapshot = WeatherSnapshot("Anywhere", celsius, "Clear Sky", "clear")

        assert display_temperature(snapshot, TemperatureUnit.FAHRENHEIT) == fahrenheit

    def test_report_ok(self, snapshot):
        assert WeatherReport(snapshot=snapshot).ok
        assert not WeatherReport().ok
        assert not WeatherReport(error=NetworkError("down")).ok

    def test_error_reports_differ(self):
        """Test two failures are distinct values so each one is published"""
        assert WeatherReport(error=NetworkError("down")) != WeatherReport(error=NetworkError("down"))


class TestRect:
    """Test rectangle helpers"""

    def test_edges(self):
        rect = Rect(10, 20, 100, 50)

        assert (rect.min_x, rect.max_x, rect.mid_x) == (10, 110, 60)
        assert (rect.min_y, rect.max_y, rect.mid_y) == (20, 70, 45)

    def test_is_empty(self):
        assert Rect(0, 0, 0, 10).is_empty
        assert not Rect(0, 0, 1, 1).is_empty
