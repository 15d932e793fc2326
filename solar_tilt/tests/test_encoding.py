from __future__ import annotations

import math

import numpy as np
import pytest

from solar_tilt.logic.encoding import (
    HALF_PI,
    apply_position,
    decode,
    decode_position,
    encode,
    encode_angles,
    position_to_string,
)
from solar_tilt.simulation.panels import PanelField


@pytest.mark.parametrize("v", [0.0, 0.25, 0.5, 0.7, 1.0, 1e-9, 0.999999])
def test_encode_decode_round_trip(v: float) -> None:
    assert encode(decode(v)) == pytest.approx(v, abs=1e-12)


def test_decode_range_endpoints() -> None:
    assert decode(0.0) == pytest.approx(-HALF_PI)
    assert decode(0.5) == pytest.approx(0.0)
    assert decode(1.0) == pytest.approx(HALF_PI)


def test_vector_helpers_match_scalars() -> None:
    angles = [-1.2, 0.0, 0.4]
    encoded = encode_angles(angles)
    assert np.allclose(encoded, [encode(a) for a in angles])
    assert np.allclose(decode_position(encoded), angles)


def test_apply_position_sets_rows_in_order() -> None:
    field = PanelField.rows(3)
    angles = apply_position(field, [0.0, 0.5, 1.0])
    assert angles == pytest.approx((-math.pi / 2, 0.0, math.pi / 2))
    assert field.tilt_angles() == pytest.approx(angles)


def test_apply_position_rejects_wrong_length() -> None:
    field = PanelField.rows(2)
    with pytest.raises(ValueError):
        apply_position(field, [0.5])


def test_position_to_string_formats_degrees_and_unit() -> None:
    text = position_to_string(np.array([0.5, 1.0]), 123.456789)
    assert text == "F(0.000°, 90.000°) = 123.45679 kWh"
