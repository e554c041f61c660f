"""Tests for command parsing and execution."""

import pytest

from unitconv.core.errors import FetchError, IncompatibleUnits, ParseError, UnknownCurrency, UnknownUnit
from unitconv.services.commands import (
    HELP_TEXT,
    Command,
    CommandKind,
    CommandProcessor,
    format_number,
    parse_command,
    units_listing,
)


class TestParse:
    @pytest.mark.parametrize("word", ["units", "help", "exit", "  exit  "])
    def test_keywords(self, word):
        assert parse_command(word).kind is CommandKind(word.strip())

    def test_conversion(self):
        assert parse_command("100 m -> km") == Command(CommandKind.CONVERT, 100.0, "m", "km")

    def test_conversion_spacing_and_sign(self):
        assert parse_command("-2.5 kg->lb") == Command(CommandKind.CONVERT, -2.5, "kg", "lb")

    @pytest.mark.parametrize(
        "line",
        ["", "invalid", "100 m km", "m -> km", "1,5 m -> km", "1 m -> ", "Units", "1e3 m -> km"],
    )
    def test_invalid(self, line):
        with pytest.raises(ParseError):
            parse_command(line)


class TestFormatting:
    @pytest.mark.parametrize(
        "value,text",
        [(1000.0, "1000"), (0.001, "0.001"), (1.0, "1"), (340.1940000001, "340.194"), (1234567.0, "1.23457e+06")],
    )
    def test_six_significant_digits(self, value, text):
        assert format_number(value) == text

    def test_units_listing_groups_by_category(self):
        text = units_listing()
        assert text.index("Length:") < text.index("meter (m)") < text.index("Mass:")
        assert "kilogram (kg)" in text
        assert "USD, EUR" in text


class TestProcessor:
    def run(self, cache, line):
        return CommandProcessor(cache).execute(parse_command(line))

    @pytest.mark.parametrize(
        "line,text",
        [("1 km -> m", "1000 m"), ("1 m -> km", "0.001 km"), ("100 cm -> m", "1 m"), ("1 kilogram -> g", "1000 g")],
    )
    def test_static_conversions(self, cache, provider, line, text):
        assert self.run(cache, line).text == text
        assert provider.calls == 0

    def test_help_and_units(self, cache):
        assert self.run(cache, "help").text == HELP_TEXT
        assert "Available units:" in self.run(cache, "units").text

    def test_exit_returns_none(self, cache):
        assert self.run(cache, "exit") is None

    def test_currency_conversion_fetches_first(self, cache, provider):
        output = self.run(cache, "10 USD -> EUR")
        assert output.text == "9 EUR"
        assert output.warnings == []
        assert provider.calls == 1

    def test_currency_fetch_failure_is_reported(self, cache, provider):
        provider.fail_with = "network unreachable"
        with pytest.raises(FetchError, match="network unreachable"):
            self.run(cache, "1 USD -> EUR")

    def test_stale_fallback_warning_is_returned(self, cache, provider, clock):
        cache.refresh()
        clock.advance(days=8)
        provider.fail_with = "timeout"
        output = self.run(cache, "1 EUR -> GBP")
        assert output.text == format_number(0.8 / 0.9) + " GBP"
        assert len(output.warnings) == 1
        assert "timeout" in output.warnings[0]

    @pytest.mark.parametrize(
        "line,exc",
        [
            ("1 m -> kg", IncompatibleUnits),
            ("1 m -> USD", IncompatibleUnits),
            ("1 furlong -> m", UnknownUnit),
            ("1 USD -> XYZ", UnknownCurrency),
        ],
    )
    def test_errors(self, cache, line, exc):
        with pytest.raises(exc):
            self.run(cache, line)
