"""
どこで: `src/swaypath/core/tessellate.py`。
何を: 順序付きセグメントと点解決関数から、輪郭パスコマンド列またはサンプル済み polyline を作る。
なぜ: 線描画（パス）と塗り描画（三角形分割の入力）で同じセグメント走査規則を共有するため。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from .animation import AnimationFrame
from .shape import BezierSegment, LineSegment, Segment, Shape

PointResolver = Callable[[str], tuple[float, float]]


@dataclass(frozen=True, slots=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class CubicTo:
    """3 次ベジエ曲線コマンド（制御点 2 つと終点、絶対座標）。"""

    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class ClosePath:
    pass


PathCommand = MoveTo | LineTo | CubicTo | ClosePath


def point_resolver(
    shape: Shape,
    frame: AnimationFrame | None = None,
    *,
    offset: tuple[float, float] = (0.0, 0.0),
) -> PointResolver:
    """Shape（と任意のアニメーションフレーム）から点解決関数を作る。

    Parameters
    ----------
    shape : Shape
        制御点の参照表を持つ形状。
    frame : AnimationFrame or None
        アニメーション済みの位置。含まれる点は静的座標より優先する。
    offset : tuple[float, float], default (0.0, 0.0)
        追加の平行移動。

    Returns
    -------
    PointResolver
        ``point_id -> (x, y)``。座標には ``shape.position.local`` と offset を加える。

    Raises
    ------
    KeyError
        返した関数に未知の点 id を渡した場合。
    """

    table = shape.point_table()
    overrides = frame.control_points if frame is not None else {}
    dx = float(shape.position.local.x) + float(offset[0])
    dy = float(shape.position.local.y) + float(offset[1])

    def resolve(point_id: str) -> tuple[float, float]:
        animated = overrides.get(point_id)
        if animated is not None:
            return float(animated.x) + dx, float(animated.y) + dy
        cp = table[point_id]
        return float(cp.x) + dx, float(cp.y) + dy

    return resolve


def to_outline(
    segments: Sequence[Segment],
    resolve_point: PointResolver,
    close_path: bool = False,
) -> tuple[PathCommand, ...]:
    """セグメント列を輪郭パスコマンド列に変換する。

    Notes
    -----
    先頭セグメントだけが MoveTo を出し、以降は継続コマンドのみを出す。
    各セグメントの始点が直前の終点と一致することは検証しない。
    """

    commands: list[PathCommand] = []
    for index, segment in enumerate(segments):
        points = [resolve_point(pid) for pid in segment.point_ids]
        if index == 0:
            commands.append(MoveTo(*points[0]))
        if isinstance(segment, LineSegment):
            commands.append(LineTo(*points[1]))
        elif isinstance(segment, BezierSegment):
            (c1x, c1y), (c2x, c2y), (x, y) = points[1], points[2], points[3]
            commands.append(CubicTo(c1x, c1y, c2x, c2y, x, y))
        else:
            raise TypeError(f"未知のセグメント型: {type(segment)!r}")

    if close_path and commands:
        commands.append(ClosePath())
    return tuple(commands)


def sample_cubic_bezier(
    p0: tuple[float, float],
    p1: tuple[float, float],
    p2: tuple[float, float],
    p3: tuple[float, float],
    resolution: int,
) -> np.ndarray:
    """3 次ベジエを t∈[0,1] の等間隔 ``resolution+1`` 点でサンプルする。

    Returns
    -------
    np.ndarray
        float64 shape (resolution+1, 2)。先頭は p0、末尾は p3 に厳密に一致する。
    """

    if resolution < 1:
        raise ValueError(f"resolution は 1 以上である必要がある: got={resolution}")
    t = np.linspace(0.0, 1.0, int(resolution) + 1, dtype=np.float64)[:, None]
    mt = 1.0 - t
    ctrl = np.asarray([p0, p1, p2, p3], dtype=np.float64)
    return (
        (mt * mt * mt) * ctrl[0]
        + (3.0 * mt * mt * t) * ctrl[1]
        + (3.0 * mt * t * t) * ctrl[2]
        + (t * t * t) * ctrl[3]
    )


def to_polyline(
    segments: Sequence[Segment],
    resolve_point: PointResolver,
    close_path: bool = False,
    curve_resolution: int = 32,
) -> np.ndarray:
    """セグメント列をサンプル済み polyline に変換する。

    Parameters
    ----------
    segments : Sequence[Segment]
        順序付きセグメント列。
    resolve_point : PointResolver
        点 id → 座標。
    close_path : bool, default False
        閉路かどうか。閉路でも先頭点の複製は末尾に追加しない（閉じ辺は暗黙）。
    curve_resolution : int, default 32
        ベジエ 1 本あたりの分割数。

    Returns
    -------
    np.ndarray
        float64 shape (N, 2)。2 本目以降のセグメントは先頭サンプルを落とし、継ぎ目の重複を避ける。
    """

    if curve_resolution < 1:
        raise ValueError(f"curve_resolution は 1 以上である必要がある: got={curve_resolution}")

    chunks: list[np.ndarray] = []
    for index, segment in enumerate(segments):
        points = [resolve_point(pid) for pid in segment.point_ids]
        if isinstance(segment, LineSegment):
            chunk = np.asarray(points, dtype=np.float64)
        elif isinstance(segment, BezierSegment):
            chunk = sample_cubic_bezier(points[0], points[1], points[2], points[3], curve_resolution)
        else:
            raise TypeError(f"未知のセグメント型: {type(segment)!r}")
        if index > 0:
            chunk = chunk[1:]
        chunks.append(chunk)

    if not chunks:
        return np.zeros((0, 2), dtype=np.float64)
    return np.concatenate(chunks, axis=0)


__all__ = [
    "ClosePath",
    "CubicTo",
    "LineTo",
    "MoveTo",
    "PathCommand",
    "PointResolver",
    "point_resolver",
    "sample_cubic_bezier",
    "to_outline",
    "to_polyline",
]
