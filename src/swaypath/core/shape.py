# どこで: `src/swaypath/core/shape.py`。
# 何を: 制御点・セグメント・アニメーション宣言からなる Shape のデータモデルを定義する。
# なぜ: JSON 由来の緩い dict を、検証済みの不変値として各段（合成/アニメ/分割）へ渡すため。

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence, cast

from .easing import EASINGS
from .runtime_config import runtime_config

PointKind = Literal["anchor", "control"]
VariableValue = float | str

SEGMENT_ARITY = {"line": 2, "bezier": 4}


class ShapeError(ValueError):
    """Shape / Modification 定義の構造違反。"""


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ShapeError(msg)


def _as_dict(value: Any, path: str) -> dict[str, Any]:
    _require(isinstance(value, Mapping), f"{path} は object である必要がある")
    return dict(cast(Mapping[str, Any], value))


def _as_float(value: Any, path: str) -> float:
    _require(
        isinstance(value, (int, float)) and not isinstance(value, bool),
        f"{path} は数値である必要がある: got={value!r}",
    )
    return float(value)


def _as_optional_float(value: Any, path: str) -> float | None:
    if value is None:
        return None
    return _as_float(value, path)


def _as_str(value: Any, path: str) -> str:
    _require(isinstance(value, str) and bool(value), f"{path} は空でない文字列である必要がある")
    return cast(str, value)


def _as_list(value: Any, path: str) -> list[Any]:
    _require(
        isinstance(value, Sequence) and not isinstance(value, (str, bytes)),
        f"{path} は配列である必要がある",
    )
    return list(value)


@dataclass(frozen=True, slots=True)
class Vec2:
    """2 次元座標。"""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": float(self.x), "y": float(self.y)}

    @classmethod
    def from_dict(cls, data: Any, path: str = "vec2") -> "Vec2":
        if data is None:
            return cls(0.0, 0.0)
        d = _as_dict(data, path)
        return cls(
            x=_as_float(d.get("x", 0.0), f"{path}.x"),
            y=_as_float(d.get("y", 0.0), f"{path}.y"),
        )


@dataclass(frozen=True, slots=True)
class ControlPoint:
    """セグメントから id で参照される名前付き座標。"""

    id: str
    x: float
    y: float
    kind: PointKind = "anchor"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "x": float(self.x), "y": float(self.y), "type": self.kind}

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "ControlPoint":
        d = _as_dict(data, path)
        kind = d.get("type", d.get("kind", "anchor"))
        _require(kind in ("anchor", "control"), f"{path}.type は anchor|control: got={kind!r}")
        return cls(
            id=_as_str(d.get("id"), f"{path}.id"),
            x=_as_float(d.get("x"), f"{path}.x"),
            y=_as_float(d.get("y"), f"{path}.y"),
            kind=cast(PointKind, kind),
        )


@dataclass(frozen=True, slots=True)
class LineSegment:
    """2 点 (start, end) を結ぶ直線セグメント。"""

    id: str
    point_ids: tuple[str, str]
    style: dict[str, Any] = field(default_factory=dict)

    kind = "line"


@dataclass(frozen=True, slots=True)
class BezierSegment:
    """4 点 (start, control1, control2, end) の 3 次ベジエセグメント。"""

    id: str
    point_ids: tuple[str, str, str, str]
    style: dict[str, Any] = field(default_factory=dict)

    kind = "bezier"


Segment = LineSegment | BezierSegment


def segment_to_dict(segment: Segment) -> dict[str, Any]:
    """Segment を JSON 形式の dict に変換して返す。"""

    out: dict[str, Any] = {
        "id": segment.id,
        "type": segment.kind,
        "points": list(segment.point_ids),
    }
    if segment.style:
        out["style"] = copy.deepcopy(segment.style)
    return out


def segment_from_dict(data: Any, path: str) -> Segment:
    """JSON 形式の dict から Segment を生成する。

    Notes
    -----
    種別は ``type`` または ``kind``、点列は ``points`` または ``pointIds`` を受け付ける。
    """

    d = _as_dict(data, path)
    seg_id = _as_str(d.get("id"), f"{path}.id")
    kind = d.get("type", d.get("kind"))
    _require(kind in SEGMENT_ARITY, f"{path}.type は line|bezier: got={kind!r}")
    raw_points = d.get("points", d.get("pointIds"))
    point_ids = tuple(
        _as_str(p, f"{path}.points[{i}]")
        for i, p in enumerate(_as_list(raw_points, f"{path}.points"))
    )
    arity = SEGMENT_ARITY[str(kind)]
    _require(
        len(point_ids) == arity,
        f"{path} ({kind}) は {arity} 点が必要: got={len(point_ids)}",
    )
    style = _as_dict(d.get("style") or {}, f"{path}.style")
    if kind == "line":
        return LineSegment(id=seg_id, point_ids=cast(tuple[str, str], point_ids), style=style)
    return BezierSegment(
        id=seg_id,
        point_ids=cast(tuple[str, str, str, str], point_ids),
        style=style,
    )


@dataclass(frozen=True, slots=True)
class FormulaSpec:
    """式文字列と、式ローカルな変数上書き。"""

    expression: str
    variables: dict[str, VariableValue] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"expression": self.expression}
        if self.variables:
            out["variables"] = dict(self.variables)
        return out

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "FormulaSpec":
        d = _as_dict(data, path)
        return cls(
            expression=_as_str(d.get("expression"), f"{path}.expression"),
            variables=_variables_from_raw(d.get("variables"), f"{path}.variables"),
        )


@dataclass(frozen=True, slots=True)
class FormulaAxes:
    """軸ごとの式。片方だけの指定も許す。"""

    x: FormulaSpec | None = None
    y: FormulaSpec | None = None


@dataclass(frozen=True, slots=True)
class Keyframe:
    """時刻付きサンプル。軸の片方が欠けていてもよい。"""

    time: float
    x: float | None = None
    y: float | None = None

    def value(self, axis: str) -> float | None:
        return self.x if axis == "x" else self.y

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"time": float(self.time)}
        if self.x is not None:
            out["x"] = float(self.x)
        if self.y is not None:
            out["y"] = float(self.y)
        return out


@dataclass(frozen=True, slots=True)
class PointAnimation:
    """1 点分のアニメーション（式・キーフレームの混在可）。"""

    formula: FormulaAxes | None = None
    keyframes: tuple[Keyframe, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.formula is not None:
            formula: dict[str, Any] = {}
            if self.formula.x is not None:
                formula["x"] = self.formula.x.to_dict()
            if self.formula.y is not None:
                formula["y"] = self.formula.y.to_dict()
            out["formula"] = formula
        if self.keyframes:
            out["keyframes"] = [kf.to_dict() for kf in self.keyframes]
        return out

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "PointAnimation":
        d = _as_dict(data, path)
        formula: FormulaAxes | None = None
        raw_formula = d.get("formula")
        if raw_formula is not None:
            f = _as_dict(raw_formula, f"{path}.formula")
            formula = FormulaAxes(
                x=FormulaSpec.from_dict(f["x"], f"{path}.formula.x") if f.get("x") else None,
                y=FormulaSpec.from_dict(f["y"], f"{path}.formula.y") if f.get("y") else None,
            )

        keyframes: list[Keyframe] = []
        for i, raw in enumerate(_as_list(d.get("keyframes") or [], f"{path}.keyframes")):
            kp = f"{path}.keyframes[{i}]"
            k = _as_dict(raw, kp)
            keyframes.append(
                Keyframe(
                    time=_as_float(k.get("time"), f"{kp}.time"),
                    x=_as_optional_float(k.get("x"), f"{kp}.x"),
                    y=_as_optional_float(k.get("y"), f"{kp}.y"),
                )
            )
        # 補間は時刻昇順を前提にする（同時刻は定義順を保つ）。
        keyframes.sort(key=lambda kf: kf.time)
        return cls(formula=formula, keyframes=tuple(keyframes))


@dataclass(frozen=True, slots=True)
class AnimationBlock:
    """Shape のアニメーション宣言。

    Parameters
    ----------
    duration : float
        1 ループの長さ（秒）。正の値。
    loops : int
        ループ回数。0 は無限。
    control_point_animations : dict[str, PointAnimation]
        制御点 id → アニメーション。
    position_animations : dict[str, PointAnimation]
        現在は ``"global"`` のみ解釈する。
    style_animations : dict[str, str]
        style プロパティ → ``${expr}`` を含むテンプレート文字列。
    easing : str
        キーフレーム補間のイージング名。
    """

    duration: float = 5.0
    loops: int = 0
    control_point_animations: dict[str, PointAnimation] = field(default_factory=dict)
    position_animations: dict[str, PointAnimation] = field(default_factory=dict)
    style_animations: dict[str, str] = field(default_factory=dict)
    easing: str = "linear"

    def __post_init__(self) -> None:
        _require(self.duration > 0, f"animations.duration は正の値: got={self.duration}")
        _require(self.loops >= 0, f"animations.loops は 0 以上: got={self.loops}")

    @property
    def global_animation(self) -> PointAnimation | None:
        return self.position_animations.get("global")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "duration": float(self.duration),
            "loops": int(self.loops),
            "controlPointAnimations": {
                pid: anim.to_dict() for pid, anim in self.control_point_animations.items()
            },
        }
        if self.position_animations:
            out["positionAnimations"] = {
                key: anim.to_dict() for key, anim in self.position_animations.items()
            }
        if self.style_animations:
            out["styleAnimations"] = dict(self.style_animations)
        if self.easing != "linear":
            out["easing"] = self.easing
        return out

    @classmethod
    def from_dict(
        cls,
        data: Any,
        path: str = "animations",
        *,
        default_duration: float | None = None,
        default_loops: int | None = None,
    ) -> "AnimationBlock":
        """JSON 形式の dict から AnimationBlock を生成する。

        duration/loops が無い（または null の）場合だけ既定値を使う。
        既定値が None なら runtime config の animation.default_duration/default_loops。
        """

        d = _as_dict(data, path)
        raw_duration = d.get("duration")
        if raw_duration is None:
            raw_duration = (
                runtime_config().default_duration if default_duration is None else default_duration
            )
        raw_loops = d.get("loops")
        if raw_loops is None:
            raw_loops = runtime_config().default_loops if default_loops is None else default_loops
        _require(
            isinstance(raw_loops, int) and not isinstance(raw_loops, bool),
            f"{path}.loops は整数である必要がある: got={raw_loops!r}",
        )
        easing = d.get("easing") or "linear"
        _require(easing in EASINGS, f"{path}.easing が未知: got={easing!r}")

        cp_raw = _as_dict(d.get("controlPointAnimations") or {}, f"{path}.controlPointAnimations")
        pos_raw = _as_dict(d.get("positionAnimations") or {}, f"{path}.positionAnimations")
        style_raw = _as_dict(d.get("styleAnimations") or {}, f"{path}.styleAnimations")
        return cls(
            duration=_as_float(raw_duration, f"{path}.duration"),
            loops=int(raw_loops),
            control_point_animations={
                str(pid): PointAnimation.from_dict(a, f"{path}.controlPointAnimations.{pid}")
                for pid, a in cp_raw.items()
            },
            position_animations={
                str(key): PointAnimation.from_dict(a, f"{path}.positionAnimations.{key}")
                for key, a in pos_raw.items()
            },
            style_animations={str(k): str(v) for k, v in style_raw.items()},
            easing=str(easing),
        )


@dataclass(frozen=True, slots=True)
class Position:
    """ローカル（形状内アンカー）とグローバル（配置先）の 2 つの位置。"""

    local: Vec2 = Vec2(0.0, 0.0)
    global_: Vec2 = Vec2(0.0, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {"local": self.local.to_dict(), "global": self.global_.to_dict()}

    @classmethod
    def from_dict(cls, data: Any, path: str = "position") -> "Position":
        if data is None:
            return cls()
        d = _as_dict(data, path)
        # 旧形式の "svg" キーはローカル位置として扱う。
        local_raw = d.get("local", d.get("svg"))
        return cls(
            local=Vec2.from_dict(local_raw, f"{path}.local"),
            global_=Vec2.from_dict(d.get("global"), f"{path}.global"),
        )


def _variables_from_raw(raw: Any, path: str) -> dict[str, VariableValue]:
    """variables を name→値 の dict に正規化する。

    Notes
    -----
    object 形式に加え、``[{"a": 1}, {"b": "|var:a|"}]`` の配列形式も受け付ける。
    値は数値、または ``|var:...|`` 参照を含む文字列。
    """

    if raw is None:
        return {}
    items: list[tuple[str, Any]] = []
    if isinstance(raw, Mapping):
        items.extend((str(k), v) for k, v in raw.items())
    else:
        for i, entry in enumerate(_as_list(raw, path)):
            items.extend((str(k), v) for k, v in _as_dict(entry, f"{path}[{i}]").items())

    out: dict[str, VariableValue] = {}
    for name, value in items:
        if isinstance(value, str):
            out[name] = value
        else:
            out[name] = _as_float(value, f"{path}.{name}")
    return out


@dataclass(frozen=True, slots=True)
class Shape:
    """制御点とセグメントからなる 2D 形状。

    Notes
    -----
    エンジン側からは不変として扱う。派生形状は `apply_modification` が新しい値として返す。
    segments は順序付きで、各セグメントの始点は直前セグメントの終点と一致する契約。
    """

    control_points: tuple[ControlPoint, ...]
    segments: tuple[Segment, ...]
    id: str = "shape"
    width: float | None = None
    height: float | None = None
    position: Position = Position()
    style: dict[str, Any] = field(default_factory=dict)
    fill_path: bool = False
    close_path: bool = False
    variables: dict[str, VariableValue] = field(default_factory=dict)
    animations: AnimationBlock | None = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for cp in self.control_points:
            _require(cp.id not in seen, f"制御点 id が重複している: {cp.id!r}")
            seen.add(cp.id)
        for seg in self.segments:
            for pid in seg.point_ids:
                _require(pid in seen, f"segment {seg.id!r} が未知の制御点を参照: {pid!r}")

    def point_table(self) -> dict[str, ControlPoint]:
        """制御点 id → ControlPoint の参照表を返す。"""
        return {cp.id: cp for cp in self.control_points}

    def segments_using(self, point_id: str) -> tuple[str, ...]:
        """指定した制御点を参照するセグメント id 列を返す。"""
        return tuple(seg.id for seg in self.segments if point_id in seg.point_ids)

    def to_dict(self) -> dict[str, Any]:
        """camelCase の JSON 形式 dict に変換して返す。"""

        out: dict[str, Any] = {
            "id": self.id,
            "position": self.position.to_dict(),
            "controlPoints": [cp.to_dict() for cp in self.control_points],
            "segments": [segment_to_dict(seg) for seg in self.segments],
            "style": copy.deepcopy(self.style),
            "fillPath": bool(self.fill_path),
            "closePath": bool(self.close_path),
            "variables": dict(self.variables),
        }
        if self.width is not None:
            out["width"] = float(self.width)
        if self.height is not None:
            out["height"] = float(self.height)
        if self.animations is not None:
            out["animations"] = self.animations.to_dict()
        return out

    @classmethod
    def from_dict(
        cls,
        data: Any,
        *,
        default_duration: float | None = None,
        default_loops: int | None = None,
    ) -> "Shape":
        """JSON 形式の dict から Shape を生成する。

        Parameters
        ----------
        data : Any
            Shape 定義。``controlPoints`` と ``segments`` は必須。
        default_duration, default_loops : optional
            animations に duration/loops が無い場合の既定値。None なら runtime config の値。

        Returns
        -------
        Shape
            検証済みの Shape。

        Raises
        ------
        ShapeError
            構造違反（必須キー欠落、点数不一致、未知の点参照など）。
        """

        d = _as_dict(data, "shape")
        _require("controlPoints" in d, "shape.controlPoints は必須")
        _require("segments" in d, "shape.segments は必須")

        control_points = tuple(
            ControlPoint.from_dict(raw, f"controlPoints[{i}]")
            for i, raw in enumerate(_as_list(d["controlPoints"], "controlPoints"))
        )
        segments = tuple(
            segment_from_dict(raw, f"segments[{i}]")
            for i, raw in enumerate(_as_list(d["segments"], "segments"))
        )
        animations = None
        if d.get("animations") is not None:
            animations = AnimationBlock.from_dict(
                d["animations"],
                default_duration=default_duration,
                default_loops=default_loops,
            )

        return cls(
            id=str(d.get("id") or "shape"),
            width=_as_optional_float(d.get("width"), "width"),
            height=_as_optional_float(d.get("height"), "height"),
            position=Position.from_dict(d.get("position")),
            control_points=control_points,
            segments=segments,
            style=_as_dict(d.get("style") or {}, "style"),
            fill_path=bool(d.get("fillPath", False)),
            close_path=bool(d.get("closePath", False)),
            variables=_variables_from_raw(d.get("variables"), "variables"),
            animations=animations,
        )


__all__ = [
    "AnimationBlock",
    "BezierSegment",
    "ControlPoint",
    "FormulaAxes",
    "FormulaSpec",
    "Keyframe",
    "LineSegment",
    "PointAnimation",
    "Position",
    "Segment",
    "Shape",
    "ShapeError",
    "Vec2",
    "segment_from_dict",
    "segment_to_dict",
]
