# どこで: `src/swaypath/runtime/animator.py`。
# 何を: Shape インスタンスごとのアニメーション時計状態とフレームスナップショットを管理する。
# なぜ: ループ回数の終了判定と「終端フレームを保持する」停止状態を、描画ループから切り離すため。

from __future__ import annotations

import logging

from swaypath.core.animation import AnimationFrame, compute_frame, loop_time
from swaypath.core.pipeline import RealizedShape, realize_shape
from swaypath.core.runtime_config import runtime_config
from swaypath.core.shape import Shape
from swaypath.runtime.frame_clock import FrameClock, RealTimeClock
from swaypath.runtime.ticker import PygletTicker, TickHandle, Ticker

_logger = logging.getLogger(__name__)


class ShapeAnimator:
    """1 つの Shape インスタンスのアニメーション状態。

    Notes
    -----
    状態（開始時刻・実行中フラグ・スナップショット）はインスタンス固有で、共有しない。
    loops > 0 で総時間に達すると停止状態へ移り、ループ終端（t = duration）のフレームを保持し続ける。
    """

    def __init__(self, shape: Shape, clock: FrameClock | None = None) -> None:
        self._shape = shape
        self._clock: FrameClock = clock if clock is not None else RealTimeClock()
        self._start_time = 0.0
        self._is_animating = False
        self._finished = False
        self._snapshot: AnimationFrame | None = None
        self._max_substitutions = runtime_config().max_substitutions

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def is_animating(self) -> bool:
        return self._is_animating

    @property
    def finished(self) -> bool:
        """ループ回数を使い切って停止したなら True。"""
        return self._finished

    @property
    def snapshot(self) -> AnimationFrame | None:
        return self._snapshot

    def start(self, now: float | None = None) -> bool:
        """アニメーションを開始する。宣言が無ければ何もせず False を返す。"""

        if self._shape.animations is None:
            return False
        self._start_time = float(self._clock.t() if now is None else now)
        self._is_animating = True
        self._finished = False
        self._snapshot = None
        return True

    def stop(self) -> None:
        """即時停止する（スナップショットは破棄）。"""

        self._is_animating = False
        self._snapshot = None

    def update(self, now: float | None = None) -> AnimationFrame | None:
        """時刻 now（省略時は clock）におけるフレームを計算して返す。

        Returns
        -------
        AnimationFrame or None
            実行中なら新しいフレーム、停止後は保持中のフレーム。未開始なら None。
        """

        anim = self._shape.animations
        if not self._is_animating or anim is None:
            return self._snapshot

        current = float(self._clock.t() if now is None else now)
        elapsed = current - self._start_time
        local_time, done = loop_time(elapsed, anim.duration, anim.loops)
        if done:
            self._is_animating = False
            self._finished = True
            # 終了 tick でループ終端（t = duration）の姿勢を 1 回だけ計算し、以降は凍結する。
            self._snapshot = self._compute(local_time)
            _logger.debug("animation finished: shape=%s elapsed=%.3f", self._shape.id, elapsed)
            return self._snapshot

        self._snapshot = self._compute(local_time)
        return self._snapshot

    def _compute(self, local_time: float) -> AnimationFrame:
        return compute_frame(
            self._shape,
            local_time,
            max_substitutions=self._max_substitutions,
        )

    def realize(self, *, curve_resolution: int | None = None) -> RealizedShape:
        """現在のスナップショットから描画プリミティブを作る（アニメ計算は行わない）。"""

        return realize_shape(self._shape, self._snapshot, curve_resolution=curve_resolution)

    def attach(self, ticker: Ticker | PygletTicker) -> TickHandle:
        """ticker に update を購読させ、ハンドルを返す。

        Notes
        -----
        `start()` の後に呼ぶこと（未開始なら最初の tick で解除される）。
        所有者は破棄時にハンドルを `cancel()` すること。
        アニメーションが終了した tick で購読は自動的に解除される。
        """

        handle: TickHandle | None = None

        def _on_tick(now: float) -> None:
            self.update(now)
            if not self._is_animating and handle is not None:
                handle.cancel()

        handle = ticker.subscribe(_on_tick)
        return handle


__all__ = ["ShapeAnimator"]
