"""core.tessellate の輪郭コマンドと polyline サンプリングのテスト。"""

from __future__ import annotations

import numpy as np
import pytest

from swaypath.core.animation import AnimationFrame
from swaypath.core.shape import Shape, Vec2
from swaypath.core.tessellate import (
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    point_resolver,
    sample_cubic_bezier,
    to_outline,
    to_polyline,
)


def _shape() -> Shape:
    return Shape.from_dict(
        {
            "position": {"local": {"x": 0, "y": 0}, "global": {"x": 0, "y": 0}},
            "controlPoints": [
                {"id": "p0", "x": 0, "y": 0},
                {"id": "c1", "x": 0, "y": 10},
                {"id": "c2", "x": 10, "y": 10},
                {"id": "p3", "x": 10, "y": 0},
                {"id": "p4", "x": 5, "y": -5},
            ],
            "segments": [
                {"id": "curve", "type": "bezier", "points": ["p0", "c1", "c2", "p3"]},
                {"id": "l1", "type": "line", "points": ["p3", "p4"]},
                {"id": "l2", "type": "line", "points": ["p4", "p0"]},
            ],
            "closePath": True,
        }
    )


def test_outline_commands() -> None:
    shape = _shape()
    commands = to_outline(shape.segments, point_resolver(shape), close_path=True)
    assert commands == (
        MoveTo(0.0, 0.0),
        CubicTo(0.0, 10.0, 10.0, 10.0, 10.0, 0.0),
        LineTo(5.0, -5.0),
        LineTo(0.0, 0.0),
        ClosePath(),
    )


def test_outline_first_line_segment_moves_then_lines() -> None:
    shape = _shape()
    commands = to_outline(shape.segments[1:], point_resolver(shape), close_path=False)
    assert commands == (MoveTo(10.0, 0.0), LineTo(5.0, -5.0), LineTo(0.0, 0.0))


def test_outline_empty_segments() -> None:
    assert to_outline([], point_resolver(_shape()), close_path=True) == ()


def test_single_bezier_polyline_has_resolution_plus_one_points() -> None:
    shape = _shape()
    for n in (1, 4, 16, 32):
        poly = to_polyline(shape.segments[:1], point_resolver(shape), False, n)
        assert poly.shape == (n + 1, 2)
        np.testing.assert_array_equal(poly[0], [0.0, 0.0])
        np.testing.assert_array_equal(poly[-1], [10.0, 0.0])


def test_bezier_midpoint_matches_formula() -> None:
    samples = sample_cubic_bezier((0, 0), (0, 10), (10, 10), (10, 0), 2)
    # B(0.5) = 0.125*P0 + 0.375*P1 + 0.375*P2 + 0.125*P3
    np.testing.assert_allclose(samples[1], [5.0, 7.5], rtol=0.0, atol=1e-12)


def test_polyline_drops_shared_joint_samples() -> None:
    shape = _shape()
    poly = to_polyline(shape.segments, point_resolver(shape), True, 4)
    # bezier 5 点 + line 1 点 + line 1 点
    assert poly.shape == (7, 2)
    np.testing.assert_allclose(poly[4], [10.0, 0.0])
    np.testing.assert_allclose(poly[5], [5.0, -5.0])
    np.testing.assert_allclose(poly[6], [0.0, 0.0])
    assert not np.any(np.all(np.diff(poly, axis=0) == 0.0, axis=1))


def test_polyline_rejects_bad_resolution() -> None:
    shape = _shape()
    with pytest.raises(ValueError):
        to_polyline(shape.segments, point_resolver(shape), False, 0)


def test_polyline_empty_segments() -> None:
    assert to_polyline([], point_resolver(_shape()), False, 8).shape == (0, 2)


def test_point_resolver_applies_frame_and_offsets() -> None:
    base = _shape()
    shape = Shape.from_dict(
        {**base.to_dict(), "position": {"local": {"x": 1, "y": 2}, "global": {"x": 0, "y": 0}}}
    )
    frame = AnimationFrame(control_points={"p4": Vec2(50.0, 60.0)})
    resolve = point_resolver(shape, frame, offset=(10.0, 0.0))
    assert resolve("p4") == (61.0, 62.0)
    assert resolve("p0") == (11.0, 2.0)
    with pytest.raises(KeyError):
        resolve("ghost")
