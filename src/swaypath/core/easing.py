"""キーフレーム補間の進行度 (0..1) に適用するイージング関数。"""

from __future__ import annotations

from typing import Callable

EasingFunc = Callable[[float], float]


def linear(p: float) -> float:
    return p


def ease_in(p: float) -> float:
    return p * p


def ease_out(p: float) -> float:
    return p * (2.0 - p)


def ease_in_out(p: float) -> float:
    if p < 0.5:
        return 2.0 * p * p
    return -1.0 + (4.0 - 2.0 * p) * p


EASINGS: dict[str, EasingFunc] = {
    "linear": linear,
    "easeIn": ease_in,
    "easeOut": ease_out,
    "easeInOut": ease_in_out,
}


def get_easing(name: str | None) -> EasingFunc:
    """名前からイージング関数を返す。None は linear。

    Raises
    ------
    ValueError
        未知の名前が指定された場合。
    """
    if name is None:
        return linear
    try:
        return EASINGS[name]
    except KeyError:
        raise ValueError(f"未知の easing: {name!r}") from None


__all__ = ["EASINGS", "EasingFunc", "get_easing"]
