"""Tests for error/channel threshold parsing and resolution."""

from __future__ import annotations

from fractions import Fraction

import pytest

from imgcmp import (
    AbsoluteThreshold,
    RatioThreshold,
    parse_channel_threshold,
    parse_error_threshold,
)


def test_absolute_threshold_resolves_to_count() -> None:
    assert AbsoluteThreshold(7).resolve(10, 10) == 7
    assert AbsoluteThreshold(0).resolve(1, 1) == 0


def test_ratio_threshold_scales_by_pixel_count() -> None:
    assert RatioThreshold(0.5).resolve(10, 10) == 50
    assert RatioThreshold(0.33).resolve(10, 10) == 33


def test_ratio_threshold_truncates() -> None:
    """Partial pixels are dropped, never rounded up."""
    assert RatioThreshold(Fraction(1, 3)).resolve(10, 10) == 33
    assert RatioThreshold(Fraction(999, 1000)).resolve(10, 10) == 99


def test_parse_absolute_count() -> None:
    assert parse_error_threshold('0') == AbsoluteThreshold(0)
    assert parse_error_threshold('125') == AbsoluteThreshold(125)
    assert parse_error_threshold(' 3 ') == AbsoluteThreshold(3)


def test_parse_percentage() -> None:
    threshold = parse_error_threshold('5%')
    assert isinstance(threshold, RatioThreshold)
    assert threshold.ratio == Fraction(1, 20)
    assert parse_error_threshold('2.5%').ratio == Fraction(1, 40)
    assert parse_error_threshold('100%').resolve(4, 4) == 16


def test_parsed_percentage_resolves_exactly() -> None:
    """29% of 100 pixels is 29, without float truncation artifacts."""
    assert parse_error_threshold('29%').resolve(10, 10) == 29
    assert parse_error_threshold('33%').resolve(10, 10) == 33


@pytest.mark.parametrize('text', ['', 'abc', '1.5', '-1', '%', 'x%', '-5%', '101%', 'nan%'])
def test_parse_error_threshold_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_error_threshold(text)


def test_threshold_str() -> None:
    assert str(AbsoluteThreshold(12)) == '12'
    assert str(parse_error_threshold('2.5%')) == '2.5%'


def test_channel_threshold_truncates() -> None:
    assert parse_channel_threshold(0) == 0
    assert parse_channel_threshold('1') == 255
    assert parse_channel_threshold(0.5) == 127
    assert parse_channel_threshold('0.1') == 25


@pytest.mark.parametrize('value', ['-0.1', '1.01', 'abc'])
def test_channel_threshold_rejects(value: str) -> None:
    with pytest.raises(ValueError):
        parse_channel_threshold(value)


@pytest.mark.parametrize(('ratio', 'expected'), [(0.29, 29), (0.57, 57), (0.07, 7), (1, 100)])
def test_float_ratio_resolves_by_decimal_value(ratio: float, expected: int) -> None:
    assert RatioThreshold(ratio).resolve(10, 10) == expected


def test_float_ratio_is_normalized() -> None:
    assert RatioThreshold(0.29) == RatioThreshold(Fraction(29, 100))


def test_negative_absolute_threshold_rejected() -> None:
    with pytest.raises(ValueError):
        AbsoluteThreshold(-1)


@pytest.mark.parametrize('ratio', [-0.5, 1.5, Fraction(-1, 100)])
def test_ratio_out_of_range_rejected(ratio) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValueError):
        RatioThreshold(ratio)
