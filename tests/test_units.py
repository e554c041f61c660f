"""Tests for the static unit registry."""

import pytest

from unitconv.models import units
from unitconv.models.units import Category, all_units, category, factor_to_base, lookup_unit


class TestRegistry:
    def test_every_category_has_a_base_unit(self):
        for cat, members in units.units_by_category().items():
            bases = [u for u in members if factor_to_base(u) == 1.0]
            assert len(bases) == 1, cat
        assert units.METER.category is Category.LENGTH
        assert units.KILOGRAM.category is Category.MASS

    def test_all_units_lists_name_and_abbreviation(self):
        listing = all_units()
        assert ("meter", "m", units.METER) in listing
        assert ("ounce", "oz", units.OUNCE) in listing
        assert len(listing) == len(units.UNITS)

    def test_names_and_abbreviations_are_unique(self):
        tokens = [t for name, abbr, _ in all_units() for t in (name, abbr)]
        assert len(tokens) == len(set(tokens))

    @pytest.mark.parametrize(
        "token,expected",
        [
            ("m", units.METER),
            ("meter", units.METER),
            ("km", units.KILOMETER),
            ("in", units.INCH),
            ("lb", units.POUND),
            ("t", units.TON),
        ],
    )
    def test_lookup_by_name_or_abbreviation(self, token, expected):
        assert lookup_unit(token) is expected

    def test_lookup_is_case_sensitive(self):
        assert lookup_unit("KM") is None
        assert lookup_unit("Meter") is None

    def test_category_and_factor(self):
        assert category(units.FOOT) is Category.LENGTH
        assert factor_to_base(units.FOOT) == pytest.approx(0.3048)
        assert factor_to_base(units.GRAM) == pytest.approx(0.001)

    def test_str_shows_name_and_abbreviation(self):
        assert str(units.CENTIMETER) == "centimeter (cm)"
