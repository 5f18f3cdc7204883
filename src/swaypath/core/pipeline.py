# どこで: `src/swaypath/core/pipeline.py`。
# 何を: 1 tick 分の「アニメ計算 → 輪郭/polyline → 三角形分割」をまとめて実行する。
# なぜ: 読み手（レンダラ）が途中まで更新されたスナップショットを見ないよう、順序を 1 関数に固定するため。

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .animation import AnimationFrame, compute_frame
from .color import normalize_style_colors
from .runtime_config import runtime_config
from .shape import Shape, Vec2
from .tessellate import PathCommand, point_resolver, to_outline, to_polyline
from .triangulate import triangles_to_vertex_buffer, triangulate


@dataclass(frozen=True, slots=True)
class RealizedShape:
    """レンダラへ渡す 1 フレーム分の描画プリミティブ。

    Notes
    -----
    座標は shape ローカル（``position.local`` 適用済み）。
    ``global_position`` への配置はレンダラ側で行う。
    """

    shape_id: str
    outline: tuple[PathCommand, ...]
    polyline: np.ndarray
    triangles: np.ndarray
    vertex_buffer: np.ndarray
    global_position: Vec2
    style: dict[str, Any]
    close_path: bool
    fill_path: bool


def _fill_ring(polyline: np.ndarray) -> np.ndarray:
    # 輪郭が幾何的に閉じている場合、末尾の重複点を落として三角形分割に渡す。
    if polyline.shape[0] >= 2 and np.allclose(polyline[0], polyline[-1]):
        return polyline[:-1]
    return polyline


def realize_shape(
    shape: Shape,
    frame: AnimationFrame | None = None,
    *,
    curve_resolution: int | None = None,
) -> RealizedShape:
    """Shape とアニメーションフレームから描画プリミティブを作る。

    Parameters
    ----------
    shape : Shape
        静的な（合成済みの）形状。
    frame : AnimationFrame or None
        そのフレームのアニメーション結果。None なら静的座標のみ。
    curve_resolution : int or None
        ベジエ分割数。None なら runtime config の値。

    Returns
    -------
    RealizedShape
        輪郭コマンド・polyline・（fillPath のときのみ）三角形と頂点バッファ。
        style の hex 色（と fillOpacity/strokeOpacity）は rgba() に正規化済み。
    """

    resolution = (
        runtime_config().curve_resolution if curve_resolution is None else int(curve_resolution)
    )
    resolve = point_resolver(shape, frame)
    outline = to_outline(shape.segments, resolve, shape.close_path)
    polyline = to_polyline(shape.segments, resolve, shape.close_path, resolution)

    if shape.fill_path:
        ring = _fill_ring(polyline)
        triangles = triangulate(ring)
        vertex_buffer = triangles_to_vertex_buffer(ring, triangles)
    else:
        triangles = np.zeros((0, 3), dtype=np.int64)
        vertex_buffer = np.zeros((0,), dtype=np.float32)

    style = dict(shape.style)
    global_position = shape.position.global_
    if frame is not None:
        style.update(frame.style)
        if frame.global_position is not None:
            global_position = frame.global_position
    # アニメーション済みの値も含めて hex 色を rgba() にそろえる。
    style = normalize_style_colors(style)

    return RealizedShape(
        shape_id=shape.id,
        outline=outline,
        polyline=polyline,
        triangles=triangles,
        vertex_buffer=vertex_buffer,
        global_position=global_position,
        style=style,
        close_path=shape.close_path,
        fill_path=shape.fill_path,
    )


def realize_at(
    shape: Shape,
    current_time: float,
    *,
    curve_resolution: int | None = None,
) -> RealizedShape:
    """ループ内時刻 current_time のフレームを計算してから realize する。"""

    cfg = runtime_config()
    frame = compute_frame(shape, current_time, max_substitutions=cfg.max_substitutions)
    return realize_shape(shape, frame, curve_resolution=curve_resolution)


__all__ = ["RealizedShape", "realize_at", "realize_shape"]
