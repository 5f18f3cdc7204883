# どこで: `src/swaypath/runtime/__init__.py`。
# 何を: tick 源・購読ハンドル・インスタンス単位のアニメーション状態をまとめるパッケージ定義。
# なぜ: スケジューリング手段（表示ループ/固定ステップ/テスト）とアルゴリズムを分離するため。

from __future__ import annotations

__all__: list[str] = []
