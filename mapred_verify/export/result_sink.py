from __future__ import annotations

import json
import os
from dataclasses import asdict
from typing import Any, Dict, Optional

from mapred_verify.bench.metrics import Metrics
from mapred_verify.bench.types import RunReport


def report_dict(report: RunReport, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    outcomes = report.outcomes()
    return {
        "ok": report.failures == 0,
        "run_id": report.run_id,
        "key_count": report.key_count,
        "config": config or {},
        "failures": report.failures,
        "scenarios": [
            {
                "label": s.label,
                "failures": s.failures,
                "outcomes": [dict(asdict(o), kind=o.kind.value) for o in s.outcomes],
            }
            for s in report.scenarios
        ],
        "metrics": Metrics().aggregate(outcomes),
    }


class ResultSink:
    def write(self, report: RunReport, path: Optional[str], config: Optional[Dict[str, Any]] = None) -> None:
        if not path:
            return
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report_dict(report, config), f, indent=2)
