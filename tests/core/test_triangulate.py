"""core.triangulate の耳切り三角形分割のテスト。"""

from __future__ import annotations

import math

import numpy as np
import pytest

from swaypath.core.triangulate import (
    polygon_signed_area,
    triangles_to_vertex_buffer,
    triangulate,
)


def _regular_polygon(n: int, *, radius: float = 10.0, ccw: bool = True) -> np.ndarray:
    angles = np.linspace(0.0, 2.0 * math.pi, n, endpoint=False)
    pts = np.stack([radius * np.cos(angles), radius * np.sin(angles)], axis=1)
    return pts if ccw else pts[::-1].copy()


def _triangle_areas(points: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    a = points[triangles[:, 0]]
    b = points[triangles[:, 1]]
    c = points[triangles[:, 2]]
    return 0.5 * ((b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0]))


@pytest.mark.parametrize("n", [3, 4, 5, 8, 17, 64])
@pytest.mark.parametrize("ccw", [True, False])
def test_convex_polygon_gives_n_minus_2_triangles(n: int, ccw: bool) -> None:
    points = _regular_polygon(n, ccw=ccw)
    triangles = triangulate(points)

    assert triangles.shape == (n - 2, 3)
    assert triangles.min() >= 0 and triangles.max() < n
    areas = _triangle_areas(points, triangles)
    # インデックスは入力順のまま、三角形は常に反時計回り。
    assert np.all(areas > 0.0)
    assert areas.sum() == pytest.approx(abs(polygon_signed_area(points)), rel=1e-9)


def test_signed_area_orientation() -> None:
    square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64)
    assert polygon_signed_area(square) == pytest.approx(1.0)
    assert polygon_signed_area(square[::-1]) == pytest.approx(-1.0)


def test_concave_polygon_area_is_preserved() -> None:
    # L 字型（凹多角形）
    points = np.array(
        [[0, 0], [4, 0], [4, 1], [1, 1], [1, 4], [0, 4]],
        dtype=np.float64,
    )
    triangles = triangulate(points)
    assert triangles.shape == (4, 3)
    assert _triangle_areas(points, triangles).sum() == pytest.approx(7.0)


def test_fewer_than_three_points() -> None:
    assert triangulate(np.zeros((0, 2))).shape == (0, 3)
    assert triangulate(np.array([[0.0, 0.0], [1.0, 1.0]])).shape == (0, 3)


def test_degenerate_input_returns_partial_result_without_hanging() -> None:
    # 全点が一直線上: 凸な耳が存在しない。
    points = np.array([[0, 0], [1, 0], [2, 0], [3, 0]], dtype=np.float64)
    triangles = triangulate(points)
    assert triangles.shape[1] == 3
    assert triangles.shape[0] < 2


def test_vertex_buffer_layout() -> None:
    points = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64)
    triangles = triangulate(points)
    buf = triangles_to_vertex_buffer(points, triangles)
    assert buf.dtype == np.float32
    assert buf.shape == (3 * 2 * 2,)
    np.testing.assert_allclose(buf[:6], points[triangles[0]].reshape(-1))


def test_vertex_buffer_empty() -> None:
    buf = triangles_to_vertex_buffer(np.zeros((0, 2)), np.zeros((0, 3), dtype=np.int64))
    assert buf.shape == (0,)
