"""
単純多角形（穴なし・自己交差なし）の耳切り三角形分割。

塗り描画用に、サンプル済み輪郭 polyline を頂点インデックスの三角形列へ変換する。
最悪 O(n^2)。曲線輪郭で典型的な数十〜数百頂点を想定する。
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit  # type: ignore[attr-defined]

_logger = logging.getLogger(__name__)


def polygon_signed_area(points: np.ndarray) -> float:
    """多角形の符号付き面積を返す（反時計回りで正）。"""

    pts = np.asarray(points, dtype=np.float64)
    if pts.shape[0] < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    return float(0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


@njit(cache=True)  # type: ignore[misc]
def _area2(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    # 三角形 abc の符号付き面積の 2 倍。
    return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)


@njit(cache=True)  # type: ignore[misc]
def _point_in_triangle(
    px: float,
    py: float,
    ax: float,
    ay: float,
    bx: float,
    by: float,
    cx: float,
    cy: float,
) -> bool:
    area = _area2(ax, ay, bx, by, cx, cy)
    s = _area2(px, py, bx, by, cx, cy) / area
    t = _area2(ax, ay, px, py, cx, cy) / area
    u = _area2(ax, ay, bx, by, px, py) / area
    return s >= 0.0 and t >= 0.0 and u >= 0.0 and s <= 1.0 and t <= 1.0 and u <= 1.0


@njit(cache=True)  # type: ignore[misc]
def _earclip_njit(xs: np.ndarray, ys: np.ndarray) -> tuple[np.ndarray, int]:
    """反時計回りの頂点列を耳切りし、(三角形配列, 残り頂点数) を返す。"""

    n = xs.shape[0]
    indices = np.arange(n)
    m = n
    out = np.empty((n - 2, 3), dtype=np.int64)
    k = 0

    while m > 3:
        ear_found = False
        for i in range(m):
            ip = (i + m - 1) % m
            inx = (i + 1) % m
            i0 = indices[ip]
            i1 = indices[i]
            i2 = indices[inx]
            ax = xs[i0]
            ay = ys[i0]
            bx = xs[i1]
            by = ys[i1]
            cx = xs[i2]
            cy = ys[i2]
            if _area2(ax, ay, bx, by, cx, cy) <= 0.0:
                continue

            inside = False
            for j in range(m):
                if j == ip or j == i or j == inx:
                    continue
                p = indices[j]
                if _point_in_triangle(xs[p], ys[p], ax, ay, bx, by, cx, cy):
                    inside = True
                    break
            if inside:
                continue

            out[k, 0] = i0
            out[k, 1] = i1
            out[k, 2] = i2
            k += 1
            for j in range(i, m - 1):
                indices[j] = indices[j + 1]
            m -= 1
            ear_found = True
            break

        if not ear_found:
            break

    if m == 3:
        out[k, 0] = indices[0]
        out[k, 1] = indices[1]
        out[k, 2] = indices[2]
        k += 1

    return out[:k], m


def triangulate(points: np.ndarray) -> np.ndarray:
    """単純多角形を耳切りで三角形分割する。

    Parameters
    ----------
    points : np.ndarray
        shape (N, 2) の頂点列。閉じ辺は暗黙（先頭点を末尾に重複させない）。

    Returns
    -------
    np.ndarray
        int64 shape (M, 3)。各行は入力 points へのインデックス。
        凸な n 角形では M = n - 2。

    Notes
    -----
    時計回りの入力は内部で反転して処理し、インデックスは入力順に戻して返す。
    途中で耳が見つからない（退化/自己交差）場合は、それまでの三角形だけを返す。
    """

    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] < 3:
        return np.zeros((0, 3), dtype=np.int64)
    if pts.shape[1] < 2:
        raise ValueError("points は shape (N, 2) である必要がある")

    n = pts.shape[0]
    order = np.arange(n, dtype=np.int64)
    if polygon_signed_area(pts) < 0.0:
        order = order[::-1].copy()

    xs = np.ascontiguousarray(pts[order, 0])
    ys = np.ascontiguousarray(pts[order, 1])
    triangles, remaining = _earclip_njit(xs, ys)

    if remaining > 3:
        _logger.debug(
            "耳が見つからず部分的な三角形分割を返す: vertices=%d triangles=%d remaining=%d",
            n,
            int(triangles.shape[0]),
            int(remaining),
        )
    return order[triangles]


def triangles_to_vertex_buffer(points: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """三角形インデックスを GPU 向けのフラットな頂点座標バッファに展開する。

    Returns
    -------
    np.ndarray
        float32 shape (3 * M * 2,)。
    """

    pts = np.asarray(points, dtype=np.float64)
    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    if tris.shape[0] == 0:
        return np.zeros((0,), dtype=np.float32)
    return pts[tris][:, :, :2].reshape(-1).astype(np.float32)


__all__ = ["polygon_signed_area", "triangles_to_vertex_buffer", "triangulate"]
