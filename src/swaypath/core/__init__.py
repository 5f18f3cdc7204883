# どこで: `src/swaypath/core/__init__.py`。
# 何を: 形状モデル・式評価・アニメ・合成・分割の中核パッケージ定義。
# なぜ: 描画や入出力に依存しない純粋計算を 1 か所にまとめるため。

from __future__ import annotations

__all__: list[str] = []
