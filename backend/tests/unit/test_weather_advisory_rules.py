"""Unit tests for weather-driven staff advisories."""

from fakes import NOW, make_weather
from hotelops.schemas.operations import OpsWindow
from hotelops.schemas.weather import WeatherContext
from hotelops.services.weather_advisory_rules import _ActionList, clamp_text, derive_actions


def _ops(arrivals=0, departures=0, inhouse=0) -> OpsWindow:
    return OpsWindow(
        window_start_utc=NOW,
        window_end_utc=NOW,
        arrivals_next_24h=arrivals,
        departures_next_24h=departures,
        inhouse_now=inhouse,
    )


def _clock():
    return NOW


class TestDeriveActions:
    """Tests for derive_actions."""

    def test_rainy_storm_with_busy_arrivals(self):
        weather = make_weather(rain_risk="high", summary="storm expected", high_c=35, low_c=10)

        result = derive_actions(weather, _ops(arrivals=25, departures=5, inhouse=10), clock=_clock)
        by_title = {a.title: a for a in result.actions}

        assert by_title["Stage umbrellas at reception"].priority == "high"
        assert by_title["Issue weather safety advisory at check-in"].priority == "high"
        assert by_title["Increase hydration station checks"].priority == "medium"
        assert by_title["Add lobby arrival coverage for peak check-in"].priority == "high"
        assert "Proceed with standard operations plan" not in by_title
        assert result.generated_at_utc == NOW

    def test_high_priority_actions_come_first(self):
        weather = make_weather(rain_risk="high", summary="storm expected", high_c=35, low_c=10)

        result = derive_actions(weather, _ops(arrivals=25), clock=_clock)

        assert [a.priority for a in result.actions] == ["high", "high", "high", "medium", "medium"]
        assert result.actions[0].title == "Stage umbrellas at reception"

    def test_caps_at_five_unique_actions(self):
        weather = make_weather(
            rain_risk="high", summary="thunderstorm with strong wind", high_c=35, low_c=3, is_fresh=False
        )

        result = derive_actions(weather, _ops(arrivals=25, departures=20, inhouse=50), clock=_clock)
        titles = [a.title.lower() for a in result.actions]

        assert len(result.actions) == 5
        assert len(set(titles)) == len(titles)
        assert [a.priority for a in result.actions] == ["high"] * 4 + ["medium"]
        assert result.actions[0].title == "Refresh weather forecast now"

    def test_calm_weather_gets_placeholder(self):
        result = derive_actions(make_weather(), _ops(), clock=_clock)

        assert len(result.actions) == 1
        assert result.actions[0].title == "Proceed with standard operations plan"
        assert result.actions[0].priority == "low"

    def test_cold_departures_need_transport(self):
        weather = make_weather(low_c=3)

        result = derive_actions(weather, _ops(departures=16), clock=_clock)
        titles = [a.title for a in result.actions]

        assert "Prepare cold-weather arrival support" in titles
        transport = next(a for a in result.actions if a.title == "Coordinate early transport readiness")
        assert "(16)" in transport.reason

    def test_ops_rules_skipped_without_ops_window(self):
        weather = make_weather(rain_risk="high")

        result = derive_actions(weather, None, clock=_clock)

        assert "Add lobby arrival coverage for peak check-in" not in [a.title for a in result.actions]

    def test_no_weather_means_no_actions(self):
        assert derive_actions(None, _ops(arrivals=50), clock=_clock).actions == []

    def test_weather_without_sync_means_no_actions(self):
        assert derive_actions(WeatherContext(), _ops(), clock=_clock).actions == []

    def test_text_is_clamped(self):
        weather = make_weather(high_c=35)

        result = derive_actions(weather, _ops(), clock=_clock)

        for action in result.actions:
            assert len(action.title) <= 60
            assert len(action.reason) <= 120


class TestActionList:
    """Tests for title dedup and text clamping."""

    def test_duplicate_titles_ignored_case_insensitively(self):
        actions = _ActionList()
        actions.add("Stage umbrellas at reception", "first", "high")
        actions.add("STAGE UMBRELLAS AT RECEPTION", "second", "low")

        assert len(actions.items) == 1
        assert actions.items[0].reason == "first"

    def test_clamp_text_collapses_whitespace(self):
        assert clamp_text("  wet \n  floors   ahead ", 60) == "wet floors ahead"
        assert clamp_text("x" * 200, 120) == "x" * 120
