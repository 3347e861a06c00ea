"""
Тесты юлианского дня и выбора смещения окна.
"""
import datetime as dt

import pytest

from icities.models.day_model import DayDate
from icities.models.errors import DegenerateGeometry, OracleExhausted
from icities.services.permutation_service import (
    compute_legacy_permutation,
    compute_permutation,
    julian_day,
    permutation_space,
    select_permutation,
)
from tests.conftest import make_spec


class TestJulianDay:
    @pytest.mark.parametrize("date, expected", [
        ((2000, 1, 1), 2451545),
        ((1970, 1, 1), 2440588),
        ((1858, 11, 17), 2400001),
        ((2024, 2, 29), 2460370),
    ])
    def test_known_values(self, date, expected):
        assert julian_day(*date) == expected

    def test_matches_proleptic_ordinal(self):
        day = dt.date(1600, 3, 1)
        while day < dt.date(2100, 1, 1):
            assert julian_day(day.year, day.month, day.day) == day.toordinal() + 1721425
            day += dt.timedelta(days=97)

    def test_consecutive_days(self):
        assert julian_day(2023, 12, 31) + 1 == julian_day(2024, 1, 1)
        assert julian_day(2024, 2, 28) + 2 == julian_day(2024, 3, 1)


class TestComputePermutation:
    def test_worked_example(self):
        julian = 136 * 18000 + 10
        result = compute_permutation(64, 64, 32, julian, 0x05)

        assert (result.loop_x, result.loop_y) == (33, 33)
        assert result.permutation_total == 136
        assert result.permutation == 10
        assert result.offset == 85
        assert (result.offset_x, result.offset_y) == (19, 2)

    def test_only_low_three_bits_jitter(self):
        a = compute_permutation(64, 64, 32, 1000, 0x05)
        b = compute_permutation(64, 64, 32, 1000, 0xF5)
        assert a == b

    def test_offsets_stay_in_bounds(self):
        for crop_width in range(8, 72, 8):
            for crop_height in range(8, 72, 8):
                for rectangle in range(8, min(crop_width, crop_height) + 1, 8):
                    loop_area = (crop_width - rectangle + 1) * (crop_height - rectangle + 1)
                    if loop_area < 8:
                        with pytest.raises(DegenerateGeometry):
                            compute_permutation(crop_width, crop_height, rectangle, 0, 0)
                        continue
                    for julian in (0, 1, 2451545, 2460370, 2460371):
                        for byte in (0, 7, 0x80, 0xFF):
                            r = compute_permutation(crop_width, crop_height, rectangle, julian, byte)
                            assert 0 <= r.offset_x < r.loop_x
                            assert 0 <= r.offset_y < r.loop_y

    def test_degenerate_space(self):
        with pytest.raises(DegenerateGeometry):
            permutation_space(32, 32, 32)

    def test_configurable_step(self):
        assert permutation_space(64, 64, 32, permutation_step=16) == 1089 // 16
        with pytest.raises(DegenerateGeometry):
            permutation_space(64, 64, 32, permutation_step=0)

    def test_legacy_arithmetic(self):
        julian = 136 * 18000 + 10
        result = compute_legacy_permutation(64, 64, 32, julian, 8)

        assert result.permutation == 10
        assert result.offset == 80
        assert (result.offset_x, result.offset_y) == (14, 2)


class TestSelectPermutation:
    def test_draws_exactly_one_byte(self, fixed_oracle):
        oracle = fixed_oracle([0x05, 0x99])
        day = DayDate(2024, 1, 1)

        result = select_permutation(make_spec(), day, oracle)

        assert oracle.drawn == 1
        assert result.julian_day == julian_day(2024, 1, 1)
        assert result == compute_permutation(64, 64, 32, result.julian_day, 0x05)

    def test_empty_oracle(self, fixed_oracle):
        with pytest.raises(OracleExhausted):
            select_permutation(make_spec(), DayDate(2024, 1, 1), fixed_oracle([]))

    def test_without_oracle_uses_legacy(self):
        day = DayDate(2024, 1, 1)
        result = select_permutation(make_spec(), day, None, permutation_step=8)
        assert result == compute_legacy_permutation(64, 64, 32, julian_day(2024, 1, 1), 8)
