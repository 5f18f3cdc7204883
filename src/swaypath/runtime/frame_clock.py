# どこで: `src/swaypath/runtime/frame_clock.py`。
# 何を: アニメーションを駆動する単調な時刻源（tick source）を提供する。
# なぜ: 実時間・固定ステップ・テストからの手動操作を、同じインターフェースで差し替えるため。

from __future__ import annotations

import time
from typing import Protocol


class FrameClock(Protocol):
    """`t()` で現在時刻（秒）、`tick()` で 1 フレーム進める時刻源。"""

    def t(self) -> float: ...

    def tick(self) -> None: ...


class RealTimeClock:
    """実時間ベースのフレーム時計。

    Notes
    -----
    `t` は `perf_counter()` の差分（秒）。
    """

    def __init__(self, *, start_time: float | None = None) -> None:
        self._start_time = float(time.perf_counter() if start_time is None else start_time)

    def t(self) -> float:
        """現在のフレーム時刻 `t`（秒）を返す。"""

        return float(time.perf_counter() - self._start_time)

    def tick(self) -> None:
        """フレームを進める（実時間では no-op）。"""

        return


class FixedStepClock:
    """固定 fps のタイムライン時計。

    Notes
    -----
    `t` は `t0 + frame_index/fps`。実時間と切り離して決定的にフレームを進める。
    """

    def __init__(self, *, t0: float = 0.0, fps: float) -> None:
        _fps = float(fps)
        if _fps <= 0:
            raise ValueError("fps は正の値である必要がある")
        self._t0 = float(t0)
        self._fps = _fps
        self._frame_index = 0

    @property
    def fps(self) -> float:
        return float(self._fps)

    @property
    def frame_index(self) -> int:
        """現在のフレーム番号（0-based）を返す。"""

        return int(self._frame_index)

    def t(self) -> float:
        return float(self._t0 + float(self._frame_index) / float(self._fps))

    def tick(self) -> None:
        """フレームを 1 つ進める。"""

        self._frame_index += 1


class ManualClock:
    """テストハーネス用の手動時計。`set()` / `advance()` でのみ進む。"""

    def __init__(self, t0: float = 0.0) -> None:
        self._t = float(t0)

    def t(self) -> float:
        return self._t

    def tick(self) -> None:
        return

    def set(self, t: float) -> None:
        value = float(t)
        if value < self._t:
            raise ValueError(f"時刻は巻き戻せない: now={self._t} got={value}")
        self._t = value

    def advance(self, dt: float) -> None:
        self.set(self._t + float(dt))


__all__ = ["FixedStepClock", "FrameClock", "ManualClock", "RealTimeClock"]
