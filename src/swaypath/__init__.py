# どこで: `src/swaypath/__init__.py`。
# 何を: ルート `swaypath` パッケージを定義し、主要 API を再エクスポートする。
# なぜ: import 起点を `swaypath` に統一するため。

from __future__ import annotations

from swaypath.core.animation import AnimationFrame, compute_frame, loop_time
from swaypath.core.expression import EvalFailure, evaluate, substitute_variables
from swaypath.core.modification import Modification, apply_modification
from swaypath.core.pipeline import RealizedShape, realize_at, realize_shape
from swaypath.core.shape import Shape, ShapeError
from swaypath.core.tessellate import point_resolver, to_outline, to_polyline
from swaypath.core.triangulate import triangulate
from swaypath.runtime.animator import ShapeAnimator

__all__ = [
    "AnimationFrame",
    "EvalFailure",
    "Modification",
    "RealizedShape",
    "Shape",
    "ShapeAnimator",
    "ShapeError",
    "apply_modification",
    "compute_frame",
    "evaluate",
    "loop_time",
    "point_resolver",
    "realize_at",
    "realize_shape",
    "substitute_variables",
    "to_outline",
    "to_polyline",
    "triangulate",
]
