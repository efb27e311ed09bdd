from __future__ import annotations

import logging
import random
import re
import time
import uuid
from typing import Callable, Iterable, List, Optional

from mapred_verify.bench.capability import CapabilityProbe
from mapred_verify.bench.errors import VerificationFailure
from mapred_verify.bench.metrics import ConsoleReporter
from mapred_verify.bench.oracle import GroundTruthOracle
from mapred_verify.bench.types import (
    RunReport,
    Scenario,
    ScenarioReport,
    SubCase,
    VerificationOutcome,
)
from mapred_verify.store.client import StoreClient

logger = logging.getLogger(__name__)

# Link phases drop missing inputs instead of emitting not-found markers, so
# missing-key and index checks say nothing about them.
LINK_PHASE = re.compile("link", re.IGNORECASE)

SubCaseBuilder = Callable[[], SubCase]


def is_link_phase(label: str) -> bool:
    return LINK_PHASE.search(label) is not None


class ScenarioRunner:
    """
    Runs every scenario of the catalog against the store, strictly in order.

    Each scenario expands into a battery of sub-cases. For each one the
    oracle builds the inputs and the expected count, the store runs the
    scenario's job over those inputs, and the scenario's verifier compares.
    A failed verification is counted and the run goes on; a store error
    is not caught here and ends the run.
    """

    def __init__(
        self,
        client: StoreClient,
        bucket: str,
        key_count: int,
        rng: Optional[random.Random] = None,
        probe: Optional[CapabilityProbe] = None,
        reporter: Optional[ConsoleReporter] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.key_count = key_count
        self.oracle = GroundTruthOracle(bucket, key_count, rng)
        self.probe = probe if probe is not None else CapabilityProbe(client)
        self.reporter = reporter if reporter is not None else ConsoleReporter()
        self.clock = clock

    def battery(self, label: str) -> List[SubCaseBuilder]:
        o = self.oracle
        cases: List[SubCaseBuilder] = [o.entries, o.bucket_job, o.filter_job]
        if is_link_phase(label):
            return cases
        return cases + [
            lambda: o.missing(1),
            lambda: o.missing(2),
            o.index_full_bucket,
            o.index_key_range,
            o.index_bin_equality,
            o.index_int_equality,
            o.index_int_range,
        ]

    def run(self, scenarios: Iterable[Scenario], run_id: Optional[str] = None) -> RunReport:
        report = RunReport(run_id=run_id or str(uuid.uuid4()), key_count=self.key_count)
        for scenario in scenarios:
            report.scenarios.append(self.run_scenario(scenario))
        self.reporter.run_finished(report)
        return report

    def run_scenario(self, scenario: Scenario) -> ScenarioReport:
        self.reporter.scenario_started(scenario.label)
        result = ScenarioReport(label=scenario.label)
        index_ok: Optional[bool] = None

        for build in self.battery(scenario.label):
            case = build()
            self.reporter.subcase_started(case.name)
            if case.needs_indexes:
                if index_ok is None:
                    index_ok = self.probe.index_supported(self.bucket)
                if not index_ok:
                    outcome = self._skipped(scenario, case)
                    result.outcomes.append(outcome)
                    self.reporter.subcase_finished(outcome)
                    continue
            outcome = self._execute(scenario, case)
            result.outcomes.append(outcome)
            self.reporter.subcase_finished(outcome)
        return result

    def _skipped(self, scenario: Scenario, case: SubCase) -> VerificationOutcome:
        logger.info("%s: %s skipped, backend has no secondary indexes", scenario.label, case.name)
        return VerificationOutcome(
            label=scenario.label, subcase=case.name, kind=case.kind,
            passed=True, elapsed_ms=0, expected=case.expected, skipped=True,
        )

    def _execute(self, scenario: Scenario, case: SubCase) -> VerificationOutcome:
        start = self.clock()
        result = self.client.run_aggregation_job(case.inputs, scenario.query, case.timeout_ms)
        elapsed_ms = round((self.clock() - start) * 1000)

        outcome = VerificationOutcome(
            label=scenario.label, subcase=case.name, kind=case.kind,
            passed=True, elapsed_ms=elapsed_ms, expected=case.expected,
        )
        try:
            self._verify(scenario, case, result)
        except VerificationFailure as e:
            logger.warning("%s", e)
            outcome.passed = False
            outcome.reason = e.reason
        return outcome

    def _verify(self, scenario: Scenario, case: SubCase, result) -> None:
        verdict = scenario.verifier(case.kind, result, case.expected)
        if not verdict.passed:
            raise VerificationFailure(scenario.label, case.name, verdict.reason)
