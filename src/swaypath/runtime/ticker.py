# どこで: `src/swaypath/runtime/ticker.py`。
# 何を: フレームごとのコールバック購読と、その解除ハンドルを提供する。
# なぜ: 購読の取得/解放を所有者に明示させ、破棄後も回り続ける tick を残さないため。

from __future__ import annotations

import logging
from typing import Any, Callable

import pyglet

from .frame_clock import FrameClock

_logger = logging.getLogger(__name__)

TickCallback = Callable[[float], None]


class TickHandle:
    """tick 購読ハンドル。`cancel()` は即時で、次の tick からコールバックは呼ばれない。

    with 文で使うと、ブロックを抜けた時点で自動的に解除される。
    """

    def __init__(self, callback: TickCallback, on_cancel: Callable[["TickHandle"], None]) -> None:
        self._callback = callback
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def fire(self, now: float) -> None:
        if self._active:
            self._callback(float(now))

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._on_cancel(self)

    def __enter__(self) -> "TickHandle":
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()


class Ticker:
    """FrameClock を時刻源にした手動駆動の tick 配送。

    表示ループやテストが `tick()` を 1 フレームに 1 回呼ぶ。
    """

    def __init__(self, clock: FrameClock) -> None:
        self._clock = clock
        self._handles: list[TickHandle] = []

    @property
    def clock(self) -> FrameClock:
        return self._clock

    @property
    def subscriber_count(self) -> int:
        return len(self._handles)

    def subscribe(self, callback: TickCallback) -> TickHandle:
        """コールバックを購読し、解除用ハンドルを返す。"""

        handle = TickHandle(callback, self._remove)
        self._handles.append(handle)
        return handle

    def _remove(self, handle: TickHandle) -> None:
        try:
            self._handles.remove(handle)
        except ValueError:
            pass

    def tick(self) -> int:
        """時計を 1 フレーム進め、購読中の全コールバックを呼ぶ。

        Returns
        -------
        int
            呼び出したコールバック数。
        """

        self._clock.tick()
        now = float(self._clock.t())
        fired = 0
        # コールバック内での cancel/subscribe に備えて複製を回す。
        for handle in list(self._handles):
            if not handle.active:
                continue
            handle.fire(now)
            fired += 1
        return fired


class PygletTicker:
    """pyglet の clock スケジューラを tick 源にするアダプタ。

    Notes
    -----
    コールバックには pyglet clock の現在時刻（秒）を渡す。
    `cancel()` は `unschedule` を即座に呼ぶ。
    """

    def __init__(self, *, fps: float = 60.0, clock: Any | None = None) -> None:
        _fps = float(fps)
        if _fps <= 0:
            raise ValueError("fps は正の値である必要がある")
        self._interval = 1.0 / _fps
        self._clock = clock if clock is not None else pyglet.clock.get_default()
        self._scheduled: dict[TickHandle, Callable[..., None]] = {}

    def subscribe(self, callback: TickCallback) -> TickHandle:
        """コールバックを pyglet clock にスケジュールし、解除用ハンドルを返す。"""

        handle = TickHandle(callback, self._unschedule)
        clock = self._clock

        def _on_interval(dt: float) -> None:
            handle.fire(float(clock.time()))

        self._scheduled[handle] = _on_interval
        clock.schedule_interval(_on_interval, self._interval)
        return handle

    def _unschedule(self, handle: TickHandle) -> None:
        func = self._scheduled.pop(handle, None)
        if func is None:
            return
        self._clock.unschedule(func)
        _logger.debug("pyglet tick を解除しました: remaining=%d", len(self._scheduled))


__all__ = ["PygletTicker", "TickCallback", "TickHandle", "Ticker"]
