"""core.animation のフレーム計算・キーフレーム補間・ループ時刻のテスト。"""

from __future__ import annotations

from typing import Any

import pytest

from swaypath.core.animation import (
    compute_frame,
    interpolate_keyframes,
    loop_time,
    render_style_template,
)
from swaypath.core.easing import ease_in
from swaypath.core.shape import Keyframe, Shape


def _shape(animations: dict[str, Any] | None, variables: dict[str, Any] | None = None) -> Shape:
    data: dict[str, Any] = {
        "id": "s",
        "controlPoints": [
            {"id": "a", "x": 0, "y": 0},
            {"id": "b", "x": 10, "y": 20},
        ],
        "segments": [{"id": "ab", "type": "line", "points": ["a", "b"]}],
        "variables": variables or {},
    }
    if animations is not None:
        data["animations"] = animations
    return Shape.from_dict(data)


def test_keyframe_interpolation_examples() -> None:
    keyframes = [Keyframe(time=0.0, x=0.0), Keyframe(time=2.0, x=10.0)]
    assert interpolate_keyframes(keyframes, 1.0, "x") == pytest.approx(5.0)
    assert interpolate_keyframes(keyframes, -1.0, "x") == pytest.approx(0.0)
    assert interpolate_keyframes(keyframes, 5.0, "x") == pytest.approx(10.0)


def test_keyframe_single_and_empty() -> None:
    assert interpolate_keyframes([Keyframe(time=1.0, x=7.0)], 99.0, "x") == 7.0
    assert interpolate_keyframes([], 1.0, "x") is None


def test_keyframe_missing_axis_returns_none() -> None:
    keyframes = [Keyframe(time=0.0, x=0.0), Keyframe(time=2.0, x=10.0)]
    assert interpolate_keyframes(keyframes, 1.0, "y") is None


def test_keyframe_picks_bracketing_pair() -> None:
    keyframes = [
        Keyframe(time=0.0, y=0.0),
        Keyframe(time=1.0, y=10.0),
        Keyframe(time=3.0, y=30.0),
    ]
    assert interpolate_keyframes(keyframes, 2.0, "y") == pytest.approx(20.0)
    assert interpolate_keyframes(keyframes, 1.0, "y") == pytest.approx(10.0)


def test_keyframe_easing_applies_to_progress() -> None:
    keyframes = [Keyframe(time=0.0, x=0.0), Keyframe(time=2.0, x=10.0)]
    assert interpolate_keyframes(keyframes, 1.0, "x", ease_in) == pytest.approx(2.5)


def test_formula_axis_uses_standard_and_shape_variables() -> None:
    shape = _shape(
        {
            "duration": 4,
            "controlPointAnimations": {
                "b": {"formula": {"x": {"expression": "base + t * k", "variables": {"k": 2}}}}
            },
        },
        variables={"base": 100},
    )
    frame = compute_frame(shape, 1.5)
    # y は式もキーフレームも無いので静的座標。
    assert frame.control_points["b"].x == pytest.approx(103.0)
    assert frame.control_points["b"].y == pytest.approx(20.0)
    assert "a" not in frame.control_points


def test_formula_local_variables_override_shape_variables() -> None:
    shape = _shape(
        {
            "duration": 2,
            "controlPointAnimations": {
                "a": {"formula": {"y": {"expression": "amp * n", "variables": {"amp": 8}}}}
            },
        },
        variables={"amp": 1},
    )
    assert compute_frame(shape, 1.0).control_points["a"].y == pytest.approx(4.0)


def test_failed_axis_falls_back_to_static_coordinate_only() -> None:
    shape = _shape(
        {
            "duration": 2,
            "controlPointAnimations": {
                "b": {
                    "formula": {
                        "x": {"expression": "broken +"},
                        "y": {"expression": "t * 10"},
                    }
                },
                "a": {"formula": {"x": {"expression": "5"}}},
            },
        }
    )
    frame = compute_frame(shape, 1.0)
    assert frame.control_points["b"].x == pytest.approx(10.0)
    assert frame.control_points["b"].y == pytest.approx(10.0)
    assert frame.control_points["a"].x == pytest.approx(5.0)


def test_mixed_formula_and_keyframes() -> None:
    shape = _shape(
        {
            "duration": 2,
            "controlPointAnimations": {
                "b": {
                    "formula": {"x": {"expression": "t"}},
                    "keyframes": [{"time": 0, "y": 0}, {"time": 2, "y": 40}],
                }
            },
        }
    )
    frame = compute_frame(shape, 0.5)
    assert frame.control_points["b"].x == pytest.approx(0.5)
    assert frame.control_points["b"].y == pytest.approx(10.0)


def test_indirect_variable_in_formula() -> None:
    shape = _shape(
        {
            "duration": 1,
            "controlPointAnimations": {"a": {"formula": {"x": {"expression": "|var:sway| + 1"}}}},
        },
        variables={"sway": "|var:amp| * 2", "amp": 3},
    )
    assert compute_frame(shape, 0.0).control_points["a"].x == pytest.approx(7.0)


def test_global_position_animation() -> None:
    shape = _shape(
        {
            "duration": 2,
            "positionAnimations": {
                "global": {
                    "formula": {"x": {"expression": "t * 100"}},
                    "keyframes": [{"time": 0, "y": 0}, {"time": 2, "y": 50}],
                }
            },
        }
    )
    frame = compute_frame(shape, 1.0)
    assert frame.global_position is not None
    assert frame.global_position.x == pytest.approx(100.0)
    assert frame.global_position.y == pytest.approx(25.0)


def test_global_position_defaults_to_origin_on_failure() -> None:
    shape = _shape(
        {"duration": 2, "positionAnimations": {"global": {"formula": {"x": {"expression": "?"}}}}}
    )
    frame = compute_frame(shape, 1.0)
    assert frame.global_position is not None
    assert (frame.global_position.x, frame.global_position.y) == (0.0, 0.0)


def test_style_templates() -> None:
    shape = _shape(
        {
            "duration": 4,
            "styleAnimations": {
                "opacity": "${n}",
                "transform": "rotate(${t * 10}deg) scale(${bad +})",
                "fill": "green",
            },
        }
    )
    frame = compute_frame(shape, 2.0)
    assert frame.style["opacity"] == "0.5"
    assert frame.style["transform"] == "rotate(20deg) scale(0)"
    assert frame.style["fill"] == "green"


def test_render_style_template_substitutes_variables() -> None:
    out = render_style_template("rgba(0, ${|var:g|}, 0, 1)", {"g": 128})
    assert out == "rgba(0, 128, 0, 1)"


def test_unknown_animated_point_is_skipped() -> None:
    shape = _shape(
        {"duration": 1, "controlPointAnimations": {"ghost": {"formula": {"x": {"expression": "1"}}}}}
    )
    assert compute_frame(shape, 0.0).control_points == {}


def test_no_animations_gives_empty_frame() -> None:
    frame = compute_frame(_shape(None), 1.0)
    assert frame.control_points == {}
    assert frame.global_position is None
    assert frame.style == {}


def test_compute_frame_is_reproducible() -> None:
    shape = _shape(
        {
            "duration": 3,
            "controlPointAnimations": {
                "b": {"formula": {"x": {"expression": "sin(t) * 10"}, "y": {"expression": "cos(t)"}}}
            },
        }
    )
    assert compute_frame(shape, 1.25) == compute_frame(shape, 1.25)


def test_loop_time_infinite() -> None:
    local, done = loop_time(7.5, 3.0, 0)
    assert local == pytest.approx(1.5)
    assert done is False


def test_loop_time_finite_loops() -> None:
    local, done = loop_time(5.9, 3.0, 2)
    assert local == pytest.approx(2.9)
    assert done is False

    local, done = loop_time(6.0, 3.0, 2)
    assert done is True
    assert local == pytest.approx(3.0)


def test_loop_time_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError):
        loop_time(1.0, 0.0, 0)
