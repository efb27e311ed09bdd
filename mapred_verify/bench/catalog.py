from __future__ import annotations

from pathlib import Path
from typing import Any, List

import yaml

from mapred_verify.bench import verifiers
from mapred_verify.bench.errors import DefinitionLoadError
from mapred_verify.bench.types import Scenario


def _load_yaml(path: str) -> Any:
    p = Path(path)
    if not p.is_file():
        raise DefinitionLoadError(f"test definition file not found: {p}")
    try:
        return yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise DefinitionLoadError(f"cannot read test definition file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise DefinitionLoadError(f"malformed test definition file {p}: {e}") from e


def _entry_fields(i: int, raw: Any) -> tuple:
    # {label, query, verifier} or [label, [query, verifier]]
    if isinstance(raw, dict):
        missing = [k for k in ("label", "query", "verifier") if raw.get(k) is None]
        if missing:
            raise DefinitionLoadError(f"entry {i}: missing keys {missing}")
        return raw["label"], raw["query"], raw["verifier"]
    if isinstance(raw, list) and len(raw) == 2 and isinstance(raw[1], list) and len(raw[1]) == 2:
        label, (query, verifier) = raw
        return label, query, verifier
    raise DefinitionLoadError(f"entry {i}: expected a mapping or [label, [query, verifier]], got {raw!r}")


def parse_catalog(data: Any) -> List[Scenario]:
    if not isinstance(data, list):
        raise DefinitionLoadError(f"test definitions must be a list, got {type(data).__name__}")
    scenarios: List[Scenario] = []
    for i, raw in enumerate(data):
        label, query, verifier_name = _entry_fields(i, raw)
        if not isinstance(label, str) or not label:
            raise DefinitionLoadError(f"entry {i}: label must be a non-empty string")
        try:
            verifier = verifiers.resolve(str(verifier_name))
        except KeyError as e:
            raise DefinitionLoadError(f"entry {i} ({label}): {e.args[0]}") from e
        scenarios.append(Scenario(label=label, query=query, verifier=verifier,
                                  verifier_name=str(verifier_name)))
    return scenarios


def load_catalog(path: str) -> List[Scenario]:
    """Read the ordered scenario list; verifiers are bound here, once."""
    return parse_catalog(_load_yaml(path))
