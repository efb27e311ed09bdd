from __future__ import annotations

import statistics
import sys
from typing import Any, Dict, List, Optional, TextIO

from mapred_verify.bench.types import RunReport, VerificationOutcome


def _percentile(values: List[int], pct: float) -> int:
    if not values:
        return 0
    ordered = sorted(values)
    idx = min(len(ordered) - 1, max(0, round(pct / 100 * (len(ordered) - 1))))
    return ordered[idx]


class Metrics:
    def aggregate(self, outcomes: List[VerificationOutcome]) -> dict:
        # timings only count sub-cases that actually ran
        by_kind: Dict[str, Dict[str, Any]] = {}
        for o in outcomes:
            row = by_kind.setdefault(o.kind.value, {"count": 0, "passed": 0, "failed": 0,
                                                    "skipped": 0, "_ms": []})
            row["count"] += 1
            row["passed" if o.passed else "failed"] += 1
            if o.skipped:
                row["skipped"] += 1
            elif o.passed:
                row["_ms"].append(o.elapsed_ms)

        for row in by_kind.values():
            ms = row.pop("_ms")
            row["median_ms"] = statistics.median(ms) if ms else 0
            row["max_ms"] = max(ms) if ms else 0

        timed = [o.elapsed_ms for o in outcomes if o.passed and not o.skipped]
        return {
            "by_kind": by_kind,
            "summary": {
                "subcases": len(outcomes),
                "passed": sum(1 for o in outcomes if o.passed),
                "failed": sum(1 for o in outcomes if not o.passed),
                "skipped": sum(1 for o in outcomes if o.skipped),
                "p50_ms": _percentile(timed, 50),
                "p95_ms": _percentile(timed, 95),
            },
        }


class ConsoleReporter:
    """
    Prints progress as the run goes:

        Running 'reduce count'
           Testing discrete entries...OK (12)
           Testing missing object...FAIL
    """

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = out

    def line(self, text: str, end: str = "\n") -> None:
        print(text, end=end, file=self.out or sys.stdout, flush=True)

    def scenario_started(self, label: str) -> None:
        self.line(f"Running {label!r}")

    def subcase_started(self, name: str) -> None:
        self.line(f"   Testing {name}...", end="")

    def subcase_finished(self, outcome: VerificationOutcome) -> None:
        if outcome.passed:
            self.line(f"OK ({outcome.elapsed_ms})")
        else:
            self.line("FAIL")

    def run_finished(self, report: RunReport) -> None:
        total = len(report.outcomes())
        self.line(f"{total - report.failures}/{total} sub-cases passed, {report.failures} failed")
