"""Local evaluator for the store's key-filter DSL.

A filter spec is a list of steps applied left to right to a key::

    [["tokenize", "-", 2], ["string_to_int"], ["less_than", 50]]
    [["or", [["ends_with", "1"]], [["ends_with", "5"]]]]

Transforms replace the value flowing through the chain; predicates turn it
into a bool. ``and``/``or``/``not`` take nested filter specs. A key whose
value cannot be transformed (e.g. ``string_to_int`` on ``"mrv1"``) does not
match.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Sequence
from urllib.parse import unquote_plus

logger = logging.getLogger(__name__)

Step = Callable[[Any], Any]


class _NoMatch(Exception):
    pass


def _levenshtein(a: str, b: str) -> int:
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i]
        for j, cb in enumerate(b, 1):
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + (ca != cb)))
        prev = cur
    return prev[-1]


def _convert(fn: Callable[[Any], Any]) -> Step:
    def step(v):
        try:
            return fn(v)
        except (TypeError, ValueError) as e:
            raise _NoMatch(str(e)) from e
    return step


def _tokenize(args: Sequence[Any]) -> Step:
    sep, pos = args
    pos = int(pos)
    if pos < 1:
        raise ValueError("tokenize position is 1-based")

    def step(v):
        parts = [p for p in str(v).split(sep) if p]
        if pos > len(parts):
            raise _NoMatch(f"no token {pos} in {v!r}")
        return parts[pos - 1]
    return step


def _between(args: Sequence[Any]) -> Step:
    if len(args) == 2:
        lo, hi, inclusive = args[0], args[1], True
    elif len(args) == 3:
        lo, hi, inclusive = args
    else:
        raise ValueError("between takes [low, high] or [low, high, inclusive]")
    if inclusive:
        return lambda v: lo <= v <= hi
    return lambda v: lo < v < hi


def _similar_to(args: Sequence[Any]) -> Step:
    other, distance = args
    return lambda v: _levenshtein(str(v), str(other)) <= int(distance)


def _combine(name: str, args: Sequence[Any]) -> Step:
    subs = [build_filter(a) for a in args]
    if name == "not":
        if len(subs) != 1:
            raise ValueError("not takes exactly one filter")
        only = subs[0]
        return lambda v: not only(v)
    if len(subs) < 2:
        raise ValueError(f"{name} takes at least two filters")
    if name == "and":
        return lambda v: all(f(v) for f in subs)
    return lambda v: any(f(v) for f in subs)


def _one(args: Sequence[Any]) -> Any:
    if len(args) != 1:
        raise ValueError(f"expected one argument, got {list(args)!r}")
    return args[0]


_TRANSFORMS: Dict[str, Callable[[Sequence[Any]], Step]] = {
    "int_to_string": lambda a: _convert(lambda v: str(int(v))),
    "string_to_int": lambda a: _convert(lambda v: int(v)),
    "float_to_string": lambda a: _convert(lambda v: repr(float(v))),
    "string_to_float": lambda a: _convert(lambda v: float(v)),
    "to_upper": lambda a: _convert(lambda v: str(v).upper()),
    "to_lower": lambda a: _convert(lambda v: str(v).lower()),
    "urldecode": lambda a: _convert(lambda v: unquote_plus(str(v))),
    "tokenize": _tokenize,
}

_PREDICATES: Dict[str, Callable[[Sequence[Any]], Step]] = {
    "greater_than": lambda a: (lambda x: lambda v: v > x)(_one(a)),
    "less_than": lambda a: (lambda x: lambda v: v < x)(_one(a)),
    "greater_than_eq": lambda a: (lambda x: lambda v: v >= x)(_one(a)),
    "less_than_eq": lambda a: (lambda x: lambda v: v <= x)(_one(a)),
    "eq": lambda a: (lambda x: lambda v: v == x)(_one(a)),
    "neq": lambda a: (lambda x: lambda v: v != x)(_one(a)),
    "between": _between,
    "set_member": lambda a: (lambda s: lambda v: v in s)(frozenset(a)),
    "matches": lambda a: (lambda rx: lambda v: rx.search(str(v)) is not None)(re.compile(_one(a))),
    "starts_with": lambda a: (lambda x: lambda v: str(v).startswith(x))(str(_one(a))),
    "ends_with": lambda a: (lambda x: lambda v: str(v).endswith(x))(str(_one(a))),
    "similar_to": _similar_to,
}

_COMBINATORS = ("and", "or", "not")


def _build_step(raw: Any) -> Step:
    if not isinstance(raw, (list, tuple)) or not raw or not isinstance(raw[0], str):
        raise ValueError(f"malformed filter step: {raw!r}")
    name, args = raw[0], list(raw[1:])
    if name in _COMBINATORS:
        return _combine(name, args)
    if name in _TRANSFORMS:
        return _TRANSFORMS[name](args)
    if name in _PREDICATES:
        return _PREDICATES[name](args)
    raise ValueError(f"unknown key filter {name!r}")


def build_filter(spec: Sequence[Any]) -> Callable[[Any], bool]:
    if not isinstance(spec, (list, tuple)) or not spec:
        raise ValueError(f"filter spec must be a non-empty list, got {spec!r}")
    steps = [_build_step(s) for s in spec]

    def run(value: Any) -> bool:
        try:
            for step in steps:
                value = step(value)
        except (_NoMatch, TypeError) as e:
            logger.debug("key filter rejected value: %s", e)
            return False
        return bool(value)
    return run


def filter_keys(keys: Iterable[str], spec: Sequence[Any]) -> List[str]:
    match = build_filter(spec)
    return [k for k in keys if match(k)]
