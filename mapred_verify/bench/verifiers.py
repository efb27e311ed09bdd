from __future__ import annotations

from typing import Any, Dict

from mapred_verify.bench.types import ScenarioKind, Verdict, Verifier

NOT_FOUND = "not_found"


def is_not_found(item: Any) -> bool:
    if item == NOT_FOUND:
        return True
    if isinstance(item, dict):
        return NOT_FOUND in item
    if isinstance(item, (list, tuple)) and item:
        return item[0] == NOT_FOUND
    return False


def _shape_error(kind: ScenarioKind, result: Any) -> Verdict:
    return Verdict(False, f"{kind.value}: expected a list result, got {type(result).__name__}")


def map_count(kind: ScenarioKind, result: Any, expected: int) -> Verdict:
    if not isinstance(result, list):
        return _shape_error(kind, result)
    found = [r for r in result if not is_not_found(r)]
    if len(found) == expected:
        return Verdict(True)
    return Verdict(False, f"{kind.value}: expected {expected} results, got {len(found)}")


def reduce_count(kind: ScenarioKind, result: Any, expected: int) -> Verdict:
    if not isinstance(result, list):
        return _shape_error(kind, result)
    if expected == 0 and (result in ([], [0]) or all(is_not_found(r) for r in result)):
        return Verdict(True)
    if result == [expected]:
        return Verdict(True)
    return Verdict(False, f"{kind.value}: expected [{expected}], got {result!r:.200}")


def link_count(kind: ScenarioKind, result: Any, expected: int) -> Verdict:
    if not isinstance(result, list):
        return _shape_error(kind, result)
    # every record links to both neighbours, existing or not
    if len(result) == 2 * expected:
        return Verdict(True)
    return Verdict(False, f"{kind.value}: expected {2 * expected} links, got {len(result)}")


def any_result(kind: ScenarioKind, result: Any, expected: int) -> Verdict:
    if isinstance(result, list):
        return Verdict(True)
    return Verdict(False, f"{kind.value}: result is not a list")


VERIFIERS: Dict[str, Verifier] = {
    "map_count": map_count,
    "reduce_count": reduce_count,
    "link_count": link_count,
    "any_result": any_result,
}


def resolve(name: str) -> Verifier:
    try:
        return VERIFIERS[name]
    except KeyError:
        raise KeyError(f"unknown verifier {name!r}; known: {', '.join(sorted(VERIFIERS))}") from None
