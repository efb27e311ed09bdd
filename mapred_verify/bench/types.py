from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


class ScenarioKind(str, enum.Enum):
    ENTRIES = "entries"
    BUCKET = "bucket"
    FILTER = "filter"
    MISSING = "missing"
    INDEX = "index"


@dataclass(frozen=True)
class Links:
    prev: str
    next: str


@dataclass(frozen=True)
class Indexes:
    bin_field: str     # "val1a" for even n, "val1b" for odd n
    int_field: int     # n itself


@dataclass(frozen=True)
class FixtureRecord:
    bucket: str
    n: int
    key: str
    body: bytes
    links: Links
    indexes: Indexes


@dataclass(frozen=True)
class Verdict:
    passed: bool
    reason: Optional[str] = None


# (kind, raw result, expected count) -> Verdict
Verifier = Callable[[ScenarioKind, Any, int], Verdict]


@dataclass(frozen=True)
class Scenario:
    label: str
    query: Any               # opaque job description, passed through to the store
    verifier: Verifier
    verifier_name: str = ""


@dataclass(frozen=True)
class SubCase:
    name: str                # e.g. "discrete entries"
    kind: ScenarioKind
    inputs: Any              # JSON-ready input spec for the aggregation job
    expected: int
    timeout_ms: Optional[int] = None
    needs_indexes: bool = False


@dataclass
class VerificationOutcome:
    label: str
    subcase: str
    kind: ScenarioKind
    passed: bool
    elapsed_ms: int
    expected: int
    skipped: bool = False
    reason: Optional[str] = None


@dataclass
class ScenarioReport:
    label: str
    outcomes: List[VerificationOutcome] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes if not o.passed)


@dataclass
class RunReport:
    run_id: str
    key_count: int
    scenarios: List[ScenarioReport] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(s.failures for s in self.scenarios)

    def outcomes(self) -> List[VerificationOutcome]:
        return [o for s in self.scenarios for o in s.outcomes]


@dataclass
class RunConfig:
    node: str
    source_path: str
    key_count: int = 1000
    body_size: int = 1
    populate: bool = False
    run_jobs: bool = False
    testdef: str = "priv/tests.def"
    seed: Optional[int] = None
    json_out: Optional[str] = None
    settings_path: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "node": self.node,
            "source_path": self.source_path,
            "key_count": self.key_count,
            "body_size": self.body_size,
            "populate": self.populate,
            "run_jobs": self.run_jobs,
            "testdef": self.testdef,
            "seed": self.seed,
        }
