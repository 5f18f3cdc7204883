# どこで: `src/swaypath/export/__init__.py`。
# 何を: headless 出力（SVG）のパッケージ定義。

from __future__ import annotations

__all__: list[str] = []
