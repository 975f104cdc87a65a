import math

import numpy as np
import pytest

from automation.curves import (
    MIN_EXPONENTIAL_VALUE,
    CurveKind,
    exponential,
    exponential_defined,
    linear,
    ramp,
    ramp_block,
    target,
    target_block,
)
from automation.errors import DomainError, InvalidCurveError


def test_curve_kind_parses_names_and_aliases():
    assert CurveKind.parse("linear") is CurveKind.LINEAR
    assert CurveKind.parse(" Exponential ") is CurveKind.EXPONENTIAL
    assert CurveKind.parse("decay") is CurveKind.TARGET
    assert CurveKind.parse(CurveKind.STEP) is CurveKind.STEP
    with pytest.raises(InvalidCurveError):
        CurveKind.parse("wobble")
    with pytest.raises(InvalidCurveError):
        CurveKind.parse(3)


def test_invalid_curve_error_is_a_value_error():
    with pytest.raises(ValueError):
        CurveKind.parse("cubic")


def test_only_linear_and_exponential_are_ramps():
    assert CurveKind.LINEAR.is_ramp
    assert CurveKind.EXPONENTIAL.is_ramp
    assert not CurveKind.STEP.is_ramp
    assert not CurveKind.TARGET.is_ramp


def test_exponential_domain_checks():
    assert exponential_defined(100.0, 2_000.0)
    assert exponential_defined(-1.0, -0.5)
    assert not exponential_defined(0.0, 1.0)
    assert not exponential_defined(1.0, MIN_EXPONENTIAL_VALUE / 10.0)
    assert not exponential_defined(-1.0, 1.0)
    with pytest.raises(DomainError):
        exponential(0.0, 1.0, 0.5)


def test_scalar_interpolation_formulas():
    assert linear(0.0, 10.0, 0.25) == pytest.approx(2.5)
    assert exponential(100.0, 2_000.0, 0.5) == pytest.approx(447.2136, rel=1e-6)
    assert target(1.0, 0.0, 0.5, 0.5) == pytest.approx(math.exp(-1.0))
    assert target(1.0, 0.0, 0.5, 0.0) == 0.0


def test_ramp_holds_start_when_exponential_is_undefined():
    assert ramp(CurveKind.EXPONENTIAL, 0.0, 5.0, 0.5) == 0.0
    with pytest.raises(InvalidCurveError):
        ramp(CurveKind.STEP, 0.0, 1.0, 0.5)


def test_block_helpers_match_scalar_helpers():
    times = np.linspace(1.0, 2.0, 11)
    block = ramp_block(CurveKind.EXPONENTIAL, 100.0, 400.0, times, 1.0, 2.0)
    expected = [ramp(CurveKind.EXPONENTIAL, 100.0, 400.0, t - 1.0) for t in times]
    assert np.allclose(block, expected, rtol=1e-12)

    decay = target_block(1.0, 0.25, times, 1.0, 0.3)
    expected_decay = [target(1.0, 0.25, t - 1.0, 0.3) for t in times]
    assert np.allclose(decay, expected_decay, rtol=1e-12)

    held = ramp_block(CurveKind.EXPONENTIAL, 0.0, 4.0, times, 1.0, 2.0)
    assert np.all(held == 0.0)
