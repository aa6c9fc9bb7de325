from decimal import Decimal

import pytest

from progressive import (
    ALLOW_ZERO_LENGTH_SELECTION,
    SKIP_FIRST_NUMBER,
    CustomStep,
    FixedStep,
    Options,
    parse_step,
    resolve_options,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("10", FixedStep(10)),
        (" 4 ", FixedStep(4)),
        ("-2", FixedStep(-2)),
        ("1e2", FixedStep(100)),
        (7, FixedStep(7)),
        ("0.5", CustomStep(Decimal("0.5"), 1)),
        ("0.25", CustomStep(Decimal("0.25"), 2)),
        (0.25, CustomStep(Decimal("0.25"), 2)),
    ],
)
def test_parse_step(value, expected) -> None:
    assert parse_step(value) == expected


@pytest.mark.parametrize(
    "value", [None, "", "   ", "abc", "0", "0.0", "nan", "inf", True]
)
def test_unusable_step_cancels(value) -> None:
    assert parse_step(value) is None


def test_decrement_negates_step() -> None:
    assert parse_step("3", decrement=True) == FixedStep(-3)
    assert parse_step("0.5", decrement=True) == CustomStep(Decimal("-0.5"), 1)


def test_precision_follows_user_input() -> None:
    step = parse_step("0.50")
    assert step.precision == 2
    assert step.render(step.apply(1)) == "1.50"


def test_fixed_step_is_exact_for_large_values() -> None:
    assert FixedStep(1).apply(2**63) == 2**63 + 1


def test_options_default_to_false() -> None:
    assert resolve_options({}) == Options(False, False)


def test_options_read_persisted_defaults() -> None:
    defaults = {SKIP_FIRST_NUMBER: True, ALLOW_ZERO_LENGTH_SELECTION: True}
    assert resolve_options(defaults) == Options(True, True)


def test_explicit_options_win() -> None:
    defaults = {SKIP_FIRST_NUMBER: True, ALLOW_ZERO_LENGTH_SELECTION: False}
    options = resolve_options(
        defaults, skip_first_number=False, allow_zero_length_selection=True
    )
    assert options == Options(skip_first_number=False, allow_zero_length_selection=True)


def test_decrement_keeps_every_digit() -> None:
    step = parse_step("0.1234567890123456789012345678901", decrement=True)
    assert step.delta == Decimal("-0.1234567890123456789012345678901")
    assert step.precision == 31


@pytest.mark.parametrize(
    "step, expected",
    [
        (FixedStep(10), "+10 per number"),
        (FixedStep(-1), "-1 per number"),
        (CustomStep(Decimal("0.5"), 1), "+0.5 per number (1 decimal)"),
        (CustomStep(Decimal("-0.25"), 2), "-0.25 per number (2 decimals)"),
    ],
)
def test_describe(step, expected) -> None:
    assert step.describe() == expected
