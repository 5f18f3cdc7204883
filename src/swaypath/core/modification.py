# どこで: `src/swaypath/core/modification.py`。
# 何を: 疎な差分記述（Modification）を基底 Shape に重ねて派生 Shape を作る。
# なぜ: 同じ基底形状から、元を壊さずにバリエーション（位置/形/style/アニメ）を量産するため。

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any

from .runtime_config import runtime_config
from .shape import (
    AnimationBlock,
    Shape,
    ShapeError,
    Vec2,
    VariableValue,
    _as_dict,
    _as_float,
    _as_optional_float,
    _variables_from_raw,
)

_TEMPLATE_RE = re.compile(r"\$\{(.*?)\}")


@dataclass(frozen=True, slots=True)
class PointOffset:
    x_offset: float = 0.0
    y_offset: float = 0.0


@dataclass(frozen=True, slots=True)
class Modification:
    """基底 Shape への差分。

    Notes
    -----
    位置と制御点は加算（デルタ）、それ以外は上書き/浅いマージ。
    animations は dict のまま保持し、適用時に既定値を補って AnimationBlock にする。
    """

    modify_position: Vec2 | None = None
    modify_control_points: dict[str, PointOffset] = field(default_factory=dict)
    style_changes: dict[str, dict[str, Any]] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    fill_path: bool | None = None
    close_path: bool | None = None
    width: float | None = None
    height: float | None = None
    variables: dict[str, VariableValue] = field(default_factory=dict)
    animations: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Modification":
        """JSON 形式の dict から Modification を生成する。

        Raises
        ------
        ShapeError
            値の型が不正な場合。未知の点/セグメント id はここでは検査しない。
        """

        d = _as_dict(data, "modification")

        modify_position = None
        if d.get("modifyPosition") is not None:
            raw = _as_dict(d["modifyPosition"], "modifyPosition")
            modify_position = Vec2(
                x=_as_float(raw.get("x", 0.0) or 0.0, "modifyPosition.x"),
                y=_as_float(raw.get("y", 0.0) or 0.0, "modifyPosition.y"),
            )

        offsets: dict[str, PointOffset] = {}
        for pid, raw in _as_dict(d.get("modifyControlPoints") or {}, "modifyControlPoints").items():
            o = _as_dict(raw, f"modifyControlPoints.{pid}")
            offsets[str(pid)] = PointOffset(
                x_offset=_as_float(o.get("xOffset") or 0.0, f"modifyControlPoints.{pid}.xOffset"),
                y_offset=_as_float(o.get("yOffset") or 0.0, f"modifyControlPoints.{pid}.yOffset"),
            )

        style_changes = {
            str(seg_id): _as_dict(raw, f"styleChanges.{seg_id}")
            for seg_id, raw in _as_dict(d.get("styleChanges") or {}, "styleChanges").items()
        }

        animations = None
        if d.get("animations") is not None:
            animations = copy.deepcopy(_as_dict(d["animations"], "animations"))

        return cls(
            modify_position=modify_position,
            modify_control_points=offsets,
            style_changes=style_changes,
            style=_as_dict(d.get("style") or {}, "style"),
            fill_path=None if d.get("fillPath") is None else bool(d["fillPath"]),
            close_path=None if d.get("closePath") is None else bool(d["closePath"]),
            width=_as_optional_float(d.get("width"), "width"),
            height=_as_optional_float(d.get("height"), "height"),
            variables=_variables_from_raw(d.get("variables"), "variables"),
            animations=animations,
        )


def _split_style_templates(style: dict[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
    """style から ``${...}`` テンプレート値を抜き出す。

    Returns
    -------
    tuple[dict[str, Any], dict[str, str]]
        (プレースホルダを 0 にした静的 style, プロパティ → テンプレート)。
    """

    static: dict[str, Any] = {}
    templates: dict[str, str] = {}
    for key, value in style.items():
        if isinstance(value, str) and "${" in value:
            templates[key] = value
            static[key] = _TEMPLATE_RE.sub("0", value)
        else:
            static[key] = value
    return static, templates


def apply_modification(
    base: Shape,
    modification: Modification | dict[str, Any],
    *,
    default_duration: float | None = None,
    default_loops: int | None = None,
) -> Shape:
    """Modification を適用した新しい Shape を返す（base は変更しない）。

    Parameters
    ----------
    base : Shape
        基底形状。
    modification : Modification or dict
        差分記述。dict の場合は `Modification.from_dict` で解釈する。
    default_duration, default_loops : optional
        置換する animations に duration/loops が無い場合の既定値。
        None なら runtime config の animation.default_duration/default_loops。

    Returns
    -------
    Shape
        派生形状。

    Notes
    -----
    適用順は固定: 位置デルタ → 制御点オフセット → セグメント style → shape style
    → fillPath/closePath/width/height/variables → animations。
    未知の制御点/セグメント id は黙って読み飛ばす。
    同じ base に同じ差分を適用すれば常に同じ結果になるが、結果へ再適用すると
    デルタ（位置・オフセット）は累積する。
    """

    mod = modification if isinstance(modification, Modification) else Modification.from_dict(modification)
    if default_duration is None or default_loops is None:
        cfg = runtime_config()
        default_duration = cfg.default_duration if default_duration is None else default_duration
        default_loops = cfg.default_loops if default_loops is None else default_loops
    data = copy.deepcopy(base.to_dict())

    if mod.modify_position is not None:
        glob = data["position"]["global"]
        glob["x"] = float(glob["x"]) + mod.modify_position.x
        glob["y"] = float(glob["y"]) + mod.modify_position.y

    if mod.modify_control_points:
        points = {cp["id"]: cp for cp in data["controlPoints"]}
        for pid, offset in mod.modify_control_points.items():
            cp = points.get(pid)
            if cp is None:
                continue
            cp["x"] = float(cp["x"]) + offset.x_offset
            cp["y"] = float(cp["y"]) + offset.y_offset

    if mod.style_changes:
        segments = {seg["id"]: seg for seg in data["segments"]}
        for seg_id, changes in mod.style_changes.items():
            seg = segments.get(seg_id)
            if seg is None:
                continue
            seg["style"] = {**seg.get("style", {}), **copy.deepcopy(changes)}

    promoted: dict[str, str] = {}
    if mod.style:
        static_style, promoted = _split_style_templates(copy.deepcopy(mod.style))
        data["style"] = {**data.get("style", {}), **static_style}

    if mod.fill_path is not None:
        data["fillPath"] = mod.fill_path
    if mod.close_path is not None:
        data["closePath"] = mod.close_path
    if mod.width is not None:
        data["width"] = mod.width
    if mod.height is not None:
        data["height"] = mod.height
    if mod.variables:
        data["variables"] = {**data.get("variables", {}), **mod.variables}

    if mod.animations is not None:
        # duration/loops の欠落は Shape.from_dict が既定値で補う。
        data["animations"] = copy.deepcopy(mod.animations)

    if promoted:
        anim = data.get("animations")
        if anim is None:
            anim = AnimationBlock(duration=default_duration, loops=default_loops).to_dict()
            data["animations"] = anim
        anim["styleAnimations"] = {**(anim.get("styleAnimations") or {}), **promoted}

    try:
        return Shape.from_dict(data, default_duration=default_duration, default_loops=default_loops)
    except ShapeError as exc:
        raise ShapeError(f"modification の適用結果が不正: {exc}") from exc


__all__ = ["Modification", "PointOffset", "apply_modification"]
