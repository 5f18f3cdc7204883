"""
どこで: `src/swaypath/core/color.py`。
何を: style の hex 色（#RGB/#RRGGBB/#RRGGBBAA と *Opacity）を rgba() 文字列へ正規化する。
なぜ: 2D/GPU どちらのレンダラにも同じ色表現を渡せるようにするため。
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from .shape import Shape

_logger = logging.getLogger(__name__)

COLOR_PROPERTIES = ("fill", "stroke")


def _clamp01(value: float) -> float:
    v = float(value)
    return 0.0 if v < 0.0 else 1.0 if v > 1.0 else v


def _format_alpha(alpha: float) -> str:
    a = _clamp01(alpha)
    if a.is_integer():
        return str(int(a))
    return repr(a)


def parse_hex_color(text: str) -> tuple[int, int, int, float]:
    """hex 色文字列を (r, g, b, a) に変換して返す。

    Parameters
    ----------
    text : str
        ``#RGB`` / ``#RRGGBB`` / ``#RRGGBBAA``（``#`` は省略可）。

    Returns
    -------
    tuple[int, int, int, float]
        r, g, b は 0..255、a は 0..1。

    Raises
    ------
    ValueError
        hex として解釈できない場合。
    """

    clean = str(text).strip().lstrip("#")
    alpha = 1.0
    if len(clean) == 8:
        alpha = int(clean[6:8], 16) / 255.0
        clean = clean[:6]
    if len(clean) == 3:
        clean = "".join(ch + ch for ch in clean)
    if len(clean) != 6:
        raise ValueError(f"hex 色として解釈できない: {text!r}")
    r = int(clean[0:2], 16)
    g = int(clean[2:4], 16)
    b = int(clean[4:6], 16)
    return r, g, b, _clamp01(alpha)


def hex_to_rgba(text: str) -> str:
    """hex 色文字列を ``rgba(r, g, b, a)`` に変換して返す。"""

    r, g, b, a = parse_hex_color(text)
    return f"rgba({r}, {g}, {b}, {_format_alpha(a)})"


def normalize_style_colors(style: dict[str, Any]) -> dict[str, Any]:
    """style の fill/stroke を rgba() に正規化した新しい dict を返す。

    Notes
    -----
    ``fillOpacity`` / ``strokeOpacity`` がある場合は alpha として取り込み、キーは削除する。
    8 桁 hex が既に alpha を持つ場合は hex 側の alpha を優先する。
    hex でない値（色名、rgba() など）や解釈できない hex はそのまま残す。
    """

    out = dict(style)
    for prop in COLOR_PROPERTIES:
        value = out.get(prop)
        if not isinstance(value, str) or not value.startswith("#"):
            continue
        try:
            r, g, b, a = parse_hex_color(value)
        except ValueError:
            _logger.debug("hex 色として解釈できないため正規化しない: %s=%r", prop, value)
            continue
        opacity_key = f"{prop}Opacity"
        if opacity_key in out:
            try:
                opacity = float(out[opacity_key])
            except (TypeError, ValueError):
                _logger.debug("不正な %s を無視: %r", opacity_key, out[opacity_key])
                opacity = None
            del out[opacity_key]
            if opacity is not None and len(value.lstrip("#")) != 8:
                # 8 bit に量子化してから取り込む（hex alpha と同じ精度にそろえる）。
                a = round(_clamp01(opacity) * 255.0) / 255.0
        out[prop] = f"rgba({r}, {g}, {b}, {_format_alpha(a)})"
    return out


def normalize_shape_colors(shape: Shape) -> Shape:
    """Shape 全体とセグメントごとの style の色を正規化した新しい Shape を返す。"""

    segments = tuple(
        dataclasses.replace(seg, style=normalize_style_colors(seg.style)) if seg.style else seg
        for seg in shape.segments
    )
    return dataclasses.replace(
        shape,
        style=normalize_style_colors(shape.style),
        segments=segments,
    )


__all__ = ["hex_to_rgba", "normalize_shape_colors", "normalize_style_colors", "parse_hex_color"]
