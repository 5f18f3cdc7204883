# どこで: `src/swaypath/core/expression.py`。
# 何を: 制限付き数式の評価器と `|var:NAME|` 間接参照の置換を提供する。
# なぜ: アニメーション式を、変数表と許可関数表以外に触れさせずに毎フレーム評価するため。

from __future__ import annotations

import ast
import logging
import math
import operator
import random
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Mapping

_logger = logging.getLogger(__name__)

DEFAULT_MAX_SUBSTITUTIONS = 10

_VAR_TOKEN_RE = re.compile(r"\|var:([^|]+)\|")


def _round_half_up(x: float) -> float:
    # 0.5 は常に +inf 方向へ丸める（銀行丸めにしない）。
    return float(math.floor(x + 0.5))


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "abs": abs,
    "min": min,
    "max": max,
    "pow": math.pow,
    "sqrt": math.sqrt,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": _round_half_up,
    "exp": math.exp,
    "log": math.log,
    # 非決定的。呼び出し側のテストでは値そのものを比較しないこと。
    "random": random.random,
}
"""式から呼び出せる関数の許可リスト。"""

CONSTANTS: dict[str, float] = {
    "PI": math.pi,
    "TWO_PI": 2.0 * math.pi,
    "E": math.e,
}

_BIN_OPS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


@dataclass(frozen=True, slots=True)
class EvalFailure:
    """式評価の失敗。例外の代わりに値として返す。"""

    expression: str
    reason: str

    def __bool__(self) -> bool:
        return False


class _EvalError(Exception):
    pass


def substitute_variables(
    expression: str,
    variables: Mapping[str, Any],
    max_iterations: int = DEFAULT_MAX_SUBSTITUTIONS,
) -> str:
    """`|var:NAME|` を変数値の文字列で置換して返す。

    Parameters
    ----------
    expression : str
        置換対象の文字列。
    variables : Mapping[str, Any]
        変数名 → 値。値が別の `|var:...|` を含む文字列でもよい。
    max_iterations : int, default 10
        置換を繰り返す上限回数。

    Returns
    -------
    str
        置換後の文字列。

    Notes
    -----
    上限で打ち切る近似であり、循環参照の検出はしない。
    未定義名や打ち切りで残ったトークンはそのまま残り、後段の評価が失敗する。
    名前は長い順に置換する（`|var:ab|` を `|var:a|` より先に扱うため）。
    """

    if not isinstance(expression, str) or "|var:" not in expression:
        return expression

    names = sorted((str(k) for k in variables.keys()), key=len, reverse=True)
    processed = expression
    changed = True
    iterations = 0
    while changed and iterations < int(max_iterations):
        changed = False
        iterations += 1
        for name in names:
            token = f"|var:{name}|"
            if token not in processed:
                continue
            value = variables[name]
            if value is None:
                continue
            replaced = processed.replace(token, str(value))
            if replaced != processed:
                processed = replaced
                changed = True

    if _VAR_TOKEN_RE.search(processed):
        _logger.debug("未解決の変数参照が残っている: %s -> %s", expression, processed)
    return processed


@lru_cache(maxsize=512)
def _parse(expression: str) -> ast.Expression:
    return ast.parse(expression.strip(), mode="eval")


class _Interpreter:
    """許可ノードのみを辿る AST インタプリタ。"""

    def __init__(self, variables: Mapping[str, Any], max_substitutions: int) -> None:
        self._variables = variables
        self._max_substitutions = max_substitutions
        self._resolving: set[str] = set()

    def run(self, tree: ast.Expression) -> float:
        value = self._eval(tree.body)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _EvalError(f"数値でない結果: {value!r}")
        result = float(value)
        if not math.isfinite(result):
            raise _EvalError(f"非有限の結果: {result!r}")
        return result

    def _eval(self, node: ast.AST) -> float:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise _EvalError(f"数値以外のリテラル: {node.value!r}")
            # int のまま累乗させない（巨大整数の計算を避ける）。
            return float(node.value)
        if isinstance(node, ast.Name):
            return self._lookup(node.id)
        if isinstance(node, ast.BinOp):
            op = _BIN_OPS.get(type(node.op))
            if op is None:
                raise _EvalError(f"未対応の演算子: {type(node.op).__name__}")
            return op(self._eval(node.left), self._eval(node.right))
        if isinstance(node, ast.UnaryOp):
            uop = _UNARY_OPS.get(type(node.op))
            if uop is None:
                raise _EvalError(f"未対応の単項演算子: {type(node.op).__name__}")
            return uop(self._eval(node.operand))
        if isinstance(node, ast.Call):
            return self._call(node)
        raise _EvalError(f"未対応の構文: {type(node).__name__}")

    def _call(self, node: ast.Call) -> float:
        if not isinstance(node.func, ast.Name):
            raise _EvalError("関数呼び出しは名前のみ許可")
        func = FUNCTIONS.get(node.func.id)
        if func is None:
            raise _EvalError(f"未定義の関数: {node.func.id}")
        if node.keywords:
            raise _EvalError("キーワード引数は未対応")
        args = [self._eval(a) for a in node.args]
        return float(func(*args))

    def _lookup(self, name: str) -> float:
        if name in self._variables:
            value = self._variables[name]
            if isinstance(value, bool):
                raise _EvalError(f"変数 {name} が数値でない: {value!r}")
            if isinstance(value, (int, float)):
                return float(value)
            if isinstance(value, str):
                return self._eval_variable_text(name, value)
            raise _EvalError(f"変数 {name} が数値でない: {value!r}")
        if name in CONSTANTS:
            return CONSTANTS[name]
        raise _EvalError(f"未定義の変数: {name}")

    def _eval_variable_text(self, name: str, text: str) -> float:
        # 文字列値の変数は、置換後の式として評価する。
        if name in self._resolving:
            raise _EvalError(f"変数 {name} が循環参照している")
        self._resolving.add(name)
        try:
            source = substitute_variables(text, self._variables, self._max_substitutions)
            try:
                tree = _parse(source)
            except SyntaxError as exc:
                raise _EvalError(f"変数 {name} の式が不正: {source!r}") from exc
            return self._eval(tree.body)
        finally:
            self._resolving.discard(name)


def evaluate(
    expression: str,
    variables: Mapping[str, Any] | None = None,
    *,
    max_substitutions: int = DEFAULT_MAX_SUBSTITUTIONS,
) -> float | EvalFailure:
    """制限付き数式を評価して数値を返す。

    Parameters
    ----------
    expression : str
        四則演算・累乗・剰余と許可関数からなる式。`|var:NAME|` を含んでもよい。
    variables : Mapping[str, Any] or None
        式から参照できる変数。定数 PI/TWO_PI/E より優先する。
    max_substitutions : int, default 10
        `|var:...|` 置換の反復上限。

    Returns
    -------
    float or EvalFailure
        評価結果。構文エラー・未定義名・算術エラーは EvalFailure（例外は送出しない）。
    """

    vars_ = variables if variables is not None else {}
    if not isinstance(expression, str) or not expression.strip():
        failure = EvalFailure(str(expression), "空の式")
        _logger.warning("式を評価できない: %r (%s)", failure.expression, failure.reason)
        return failure

    source = substitute_variables(expression, vars_, max_substitutions)
    try:
        tree = _parse(source)
        return _Interpreter(vars_, max_substitutions).run(tree)
    except (SyntaxError, ValueError, TypeError, ArithmeticError, _EvalError, RecursionError) as exc:
        failure = EvalFailure(expression, f"{type(exc).__name__}: {exc}")
        _logger.warning("式を評価できない: %r (%s)", expression, failure.reason)
        return failure


def standard_variables(t: float, duration: float) -> dict[str, float]:
    """アニメーション式で常に使える t / d / n を返す。"""

    d = float(duration)
    return {"t": float(t), "d": d, "n": float(t) / d if d != 0.0 else 0.0}


__all__ = [
    "CONSTANTS",
    "DEFAULT_MAX_SUBSTITUTIONS",
    "EvalFailure",
    "FUNCTIONS",
    "evaluate",
    "standard_variables",
    "substitute_variables",
]
