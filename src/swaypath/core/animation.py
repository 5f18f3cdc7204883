# どこで: `src/swaypath/core/animation.py`。
# 何を: Shape と時刻から、そのフレームの制御点位置・グローバル位置・style を計算する。
# なぜ: 式/キーフレーム/テンプレートの評価規則を 1 か所に閉じ、描画側を純粋な読み手にするため。

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .easing import EasingFunc, get_easing, linear
from .expression import (
    DEFAULT_MAX_SUBSTITUTIONS,
    EvalFailure,
    evaluate,
    standard_variables,
    substitute_variables,
)
from .shape import ControlPoint, FormulaSpec, Keyframe, PointAnimation, Shape, Vec2

_logger = logging.getLogger(__name__)

GLOBAL_POINT_ID = "global"

_TEMPLATE_RE = re.compile(r"\$\{(.*?)\}")


@dataclass(frozen=True, slots=True)
class AnimationFrame:
    """1 フレーム分のアニメーション結果（一時的なスナップショット）。

    Parameters
    ----------
    control_points : dict[str, Vec2]
        アニメーション対象の制御点 id → 位置。対象外の点は含まない。
    global_position : Vec2 or None
        グローバル位置アニメーションがある場合のみ値を持つ。
    style : dict[str, str]
        style テンプレートを評価した結果。
    local_time : float
        このフレームの計算に使ったループ内時刻。
    """

    control_points: dict[str, Vec2] = field(default_factory=dict)
    global_position: Vec2 | None = None
    style: dict[str, str] = field(default_factory=dict)
    local_time: float = 0.0


def loop_time(elapsed: float, duration: float, loops: int) -> tuple[float, bool]:
    """経過時間をループ内時刻に変換する。

    Returns
    -------
    tuple[float, bool]
        (ループ内時刻, 終了済みか)。終了済みのときの時刻は ``duration``。
    """

    d = float(duration)
    if d <= 0.0:
        raise ValueError(f"duration は正の値である必要がある: got={duration}")
    e = float(elapsed)
    if int(loops) == 0:
        return e % d, False
    total = float(loops) * d
    if e >= total:
        return d, True
    return e % d, False


def interpolate_keyframes(
    keyframes: Sequence[Keyframe],
    t: float,
    axis: str,
    easing: EasingFunc = linear,
) -> float | None:
    """キーフレーム列を時刻 t で線形補間した軸の値を返す。

    Notes
    -----
    最初のキーフレームより前は先頭値、最後より後は末尾値、1 個だけなら定数。
    区間の両端どちらかが axis を持たない場合は None。
    """

    if not keyframes:
        return None
    if len(keyframes) == 1:
        return keyframes[0].value(axis)

    first = keyframes[0]
    last = keyframes[-1]
    if t <= first.time:
        return first.value(axis)
    if t >= last.time:
        return last.value(axis)

    times = [kf.time for kf in keyframes]
    i = bisect.bisect_right(times, t) - 1
    kf0 = keyframes[i]
    kf1 = keyframes[i + 1]
    v0 = kf0.value(axis)
    v1 = kf1.value(axis)
    if v0 is None or v1 is None:
        return None

    span = kf1.time - kf0.time
    if span <= 0.0:
        return v1
    progress = easing((t - kf0.time) / span)
    return v0 + (v1 - v0) * progress


def _merge_variables(*tables: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for table in tables:
        merged.update(table)
    return merged


def _evaluate_formula(
    spec: FormulaSpec | None,
    variables: Mapping[str, Any],
    max_substitutions: int,
) -> float | None:
    if spec is None:
        return None
    scope = _merge_variables(variables, spec.variables)
    value = evaluate(spec.expression, scope, max_substitutions=max_substitutions)
    if isinstance(value, EvalFailure):
        return None
    return value


def animate_point(
    point: ControlPoint,
    animation: PointAnimation,
    t: float,
    variables: Mapping[str, Any],
    *,
    easing: EasingFunc = linear,
    max_substitutions: int = DEFAULT_MAX_SUBSTITUTIONS,
) -> Vec2:
    """1 点分の位置を計算する。

    Notes
    -----
    軸ごとに「式 → キーフレーム → 静的座標」の順で最初に得られた値を使う。
    ある軸の式が失敗しても、他の軸や他の点の計算には影響しない。
    """

    formula = animation.formula
    x = _evaluate_formula(formula.x if formula else None, variables, max_substitutions)
    y = _evaluate_formula(formula.y if formula else None, variables, max_substitutions)

    if x is None:
        x = interpolate_keyframes(animation.keyframes, t, "x", easing)
    if y is None:
        y = interpolate_keyframes(animation.keyframes, t, "y", easing)

    return Vec2(
        x=float(point.x) if x is None else float(x),
        y=float(point.y) if y is None else float(y),
    )


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def render_style_template(
    template: str,
    variables: Mapping[str, Any],
    *,
    max_substitutions: int = DEFAULT_MAX_SUBSTITUTIONS,
) -> str:
    """``${expr}`` を含むテンプレートを評価済み文字列にして返す。

    各プレースホルダは独立に置換・評価され、失敗したものは ``0`` になる。
    """

    if "${" not in template:
        return template

    def _replace(match: re.Match[str]) -> str:
        inner = substitute_variables(match.group(1), variables, max_substitutions)
        value = evaluate(inner, variables, max_substitutions=max_substitutions)
        if isinstance(value, EvalFailure):
            return "0"
        return _format_number(value)

    return _TEMPLATE_RE.sub(_replace, template)


def frame_variables(shape: Shape, t: float) -> dict[str, Any]:
    """標準変数 t/d/n と shape.variables を合成した変数表を返す。"""

    anim = shape.animations
    duration = anim.duration if anim is not None else 0.0
    return _merge_variables(standard_variables(t, duration), shape.variables)


def compute_frame(
    shape: Shape,
    current_time: float,
    *,
    max_substitutions: int = DEFAULT_MAX_SUBSTITUTIONS,
) -> AnimationFrame:
    """ループ内時刻 current_time（秒）におけるフレームを計算する。

    Parameters
    ----------
    shape : Shape
        アニメーション宣言を持つ Shape。宣言が無ければ空のフレームを返す。
    current_time : float
        ループ内時刻。ループ処理は `loop_time` / ShapeAnimator 側で行う。
    max_substitutions : int, default 10
        `|var:...|` 置換の反復上限。

    Returns
    -------
    AnimationFrame
        計算結果。式が ``random()`` を使わない限り、同じ入力には同じ結果を返す。
    """

    anim = shape.animations
    t = float(current_time)
    if anim is None:
        return AnimationFrame(local_time=t)

    easing = get_easing(anim.easing)
    variables = frame_variables(shape, t)
    table = shape.point_table()

    points: dict[str, Vec2] = {}
    for point_id, point_anim in anim.control_point_animations.items():
        point = table.get(point_id)
        if point is None:
            _logger.debug("未知の制御点のアニメーションを無視: shape=%s point=%s", shape.id, point_id)
            continue
        points[point_id] = animate_point(
            point,
            point_anim,
            t,
            variables,
            easing=easing,
            max_substitutions=max_substitutions,
        )

    global_position: Vec2 | None = None
    global_anim = anim.global_animation
    if global_anim is not None:
        origin = ControlPoint(id=GLOBAL_POINT_ID, x=0.0, y=0.0)
        global_position = animate_point(
            origin,
            global_anim,
            t,
            variables,
            easing=easing,
            max_substitutions=max_substitutions,
        )

    style = {
        prop: render_style_template(template, variables, max_substitutions=max_substitutions)
        for prop, template in anim.style_animations.items()
    }

    return AnimationFrame(
        control_points=points,
        global_position=global_position,
        style=style,
        local_time=t,
    )


__all__ = [
    "AnimationFrame",
    "GLOBAL_POINT_ID",
    "animate_point",
    "compute_frame",
    "frame_variables",
    "interpolate_keyframes",
    "loop_time",
    "render_style_template",
]
