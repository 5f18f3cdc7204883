"""
どこで: `src/swaypath/export/svg.py`。
何を: realize 済みの形状を SVG path / SVG ファイルとして書き出す関数を提供する。
なぜ: 表示ループなしで結果を確認・比較できる最小の headless 出力を用意するため。
"""

from __future__ import annotations

from collections.abc import Sequence
from html import escape
from pathlib import Path
from typing import Any

from swaypath.core.pipeline import RealizedShape
from swaypath.core.runtime_config import runtime_config
from swaypath.core.tessellate import ClosePath, CubicTo, LineTo, MoveTo, PathCommand

_SVG_NS = "http://www.w3.org/2000/svg"

# SVG 属性として書き出す style キー（camelCase → kebab-case）。
_STYLE_ATTRS = {
    "fill": "fill",
    "stroke": "stroke",
    "strokeWidth": "stroke-width",
    "opacity": "opacity",
    "strokeLinecap": "stroke-linecap",
    "strokeLinejoin": "stroke-linejoin",
}


def _fmt(value: float, *, decimals: int) -> str:
    """SVG 出力向けに float を決定的な文字列へ変換して返す。"""
    text = f"{float(value):.{int(decimals)}f}"
    if text.startswith("-0") and float(text) == 0.0:
        return text[1:]
    return text


def outline_to_svg_d(commands: Sequence[PathCommand], *, decimals: int | None = None) -> str:
    """輪郭パスコマンド列を SVG path の d 属性へ変換して返す。"""

    dec = runtime_config().svg_decimals if decimals is None else int(decimals)

    def f(v: float) -> str:
        return _fmt(v, decimals=dec)

    parts: list[str] = []
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            parts.append(f"M {f(cmd.x)} {f(cmd.y)}")
        elif isinstance(cmd, LineTo):
            parts.append(f"L {f(cmd.x)} {f(cmd.y)}")
        elif isinstance(cmd, CubicTo):
            parts.append(
                f"C {f(cmd.c1x)} {f(cmd.c1y)}, {f(cmd.c2x)} {f(cmd.c2y)}, {f(cmd.x)} {f(cmd.y)}"
            )
        elif isinstance(cmd, ClosePath):
            parts.append("Z")
        else:
            raise TypeError(f"未知のパスコマンド: {type(cmd)!r}")
    return " ".join(parts)


def _style_attrs(style: dict[str, Any], *, fill_path: bool) -> str:
    attrs: dict[str, str] = {}
    for key, attr in _STYLE_ATTRS.items():
        value = style.get(key)
        if value is None:
            continue
        attrs[attr] = escape(str(value), quote=True)
    if not fill_path:
        attrs["fill"] = "none"
    attrs.setdefault("stroke", "black")
    return " ".join(f'{k}="{v}"' for k, v in attrs.items())


def export_svg(
    shapes: Sequence[RealizedShape],
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
) -> Path:
    """RealizedShape 列を SVG として保存する。

    Parameters
    ----------
    shapes : Sequence[RealizedShape]
        realize 済みの形状列。各形状は global_position へ平行移動して配置する。
    path : str or Path
        出力先パス。
    canvas_size : tuple[int, int]
        キャンバス寸法（viewBox）。

    Returns
    -------
    Path
        保存先パス。

    Raises
    ------
    ValueError
        canvas_size が正でない場合。
    """
    _path = Path(path)
    canvas_w, canvas_h = canvas_size
    if canvas_w <= 0 or canvas_h <= 0:
        raise ValueError("canvas_size は正の値である必要がある")

    dec = runtime_config().svg_decimals
    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        (
            f'<svg xmlns="{_SVG_NS}" viewBox="0 0 {int(canvas_w)} {int(canvas_h)}" '
            f'width="{int(canvas_w)}" height="{int(canvas_h)}">'
        )
    )

    for shape in shapes:
        if not shape.outline:
            continue
        d = outline_to_svg_d(shape.outline, decimals=dec)
        gx = _fmt(shape.global_position.x, decimals=dec)
        gy = _fmt(shape.global_position.y, decimals=dec)
        attrs = _style_attrs(shape.style, fill_path=shape.fill_path)
        shape_id = escape(shape.shape_id, quote=True)
        lines.append(
            f'  <path id="{shape_id}" transform="translate({gx} {gy})" d="{d}" {attrs} />'
        )

    lines.append("</svg>")

    _path.parent.mkdir(parents=True, exist_ok=True)
    with _path.open("w", encoding="utf-8", newline="\n") as f:
        f.write("\n".join(lines) + "\n")

    return _path


__all__ = ["export_svg", "outline_to_svg_d"]
