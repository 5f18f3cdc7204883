"""core.color の hex → rgba 正規化のテスト。"""

from __future__ import annotations

import pytest

from swaypath.core.color import (
    hex_to_rgba,
    normalize_shape_colors,
    normalize_style_colors,
    parse_hex_color,
)
from swaypath.core.shape import Shape


def test_parse_hex_color_forms() -> None:
    assert parse_hex_color("#f00") == (255, 0, 0, 1.0)
    assert parse_hex_color("00ff00") == (0, 255, 0, 1.0)
    r, g, b, a = parse_hex_color("#0000ff80")
    assert (r, g, b) == (0, 0, 255)
    assert a == pytest.approx(128 / 255)


@pytest.mark.parametrize("text", ["#12", "#12345", "red", "#gggggg"])
def test_parse_hex_color_rejects_invalid(text: str) -> None:
    with pytest.raises(ValueError):
        parse_hex_color(text)


def test_hex_to_rgba() -> None:
    assert hex_to_rgba("#ff8000") == "rgba(255, 128, 0, 1)"


def test_normalize_style_folds_opacity() -> None:
    style = {"fill": "#00ff00", "fillOpacity": 0, "stroke": "#000", "strokeWidth": 2}
    out = normalize_style_colors(style)
    assert out == {"fill": "rgba(0, 255, 0, 0)", "stroke": "rgba(0, 0, 0, 1)", "strokeWidth": 2}
    # 入力は変更しない。
    assert style["fillOpacity"] == 0


def test_normalize_style_leaves_named_colors() -> None:
    assert normalize_style_colors({"fill": "green"}) == {"fill": "green"}


def test_normalize_shape_colors_touches_segments() -> None:
    shape = Shape.from_dict(
        {
            "controlPoints": [{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 1, "y": 0}],
            "segments": [
                {"id": "ab", "type": "line", "points": ["a", "b"], "style": {"stroke": "#fff"}}
            ],
            "style": {"fill": "#000000"},
        }
    )
    out = normalize_shape_colors(shape)
    assert out.style == {"fill": "rgba(0, 0, 0, 1)"}
    assert out.segments[0].style == {"stroke": "rgba(255, 255, 255, 1)"}
    assert shape.style == {"fill": "#000000"}


def test_normalize_style_skips_unparsable_values() -> None:
    style = {"fill": "#12345", "stroke": "#fff", "strokeOpacity": "half"}
    assert normalize_style_colors(style) == {"fill": "#12345", "stroke": "rgba(255, 255, 255, 1)"}
