#!/usr/bin/env python3
"""
mapred-verify: populate a fixture bucket and check map/reduce and
secondary-index queries against it.

    mapred-verify -s http://127.0.0.1:8098 -c ~/src/riak -p true -j true

Exit status is the number of failed sub-cases (0 = all passed).
"""
from __future__ import annotations

import argparse
import logging
import os
import random
import re
import sys
import time
import uuid
from pathlib import Path
from typing import Optional, Sequence

from mapred_verify.bench.capability import CapabilityProbe
from mapred_verify.bench.catalog import load_catalog
from mapred_verify.bench.data_gen import BUCKET
from mapred_verify.bench.errors import DefinitionLoadError, FixtureError, SetupError
from mapred_verify.bench.metrics import ConsoleReporter
from mapred_verify.bench.plan_runner import ScenarioRunner
from mapred_verify.bench.populator import clear, clear_bound, populate
from mapred_verify.bench.types import RunConfig
from mapred_verify.export.result_sink import ResultSink
from mapred_verify.store.client import StoreClient
from mapred_verify.store.factory import StoreFactory

logger = logging.getLogger("mapred_verify")

_BOOL_TRUE = {"true", "1", "yes", "y", "on"}
_BOOL_FALSE = {"false", "0", "no", "n", "off"}

# 255 is reserved for an unloadable test definition file
MAX_FAILURE_STATUS = 254
DEFINITION_LOAD_STATUS = 255


def parse_kbinteger(spec: str) -> int:
    """
    "12" -> 12, "100b" -> 100, "1k" -> 1024, "40k" -> 40960
    """
    m = re.fullmatch(r"\s*(\d+)([kKbB]?)\s*", str(spec))
    if not m:
        raise SetupError(f"invalid size {spec!r}; expected N, Nb or Nk")
    value = int(m.group(1))
    return value * 1024 if m.group(2).lower() == "k" else value


def _parse_bool(s: str) -> bool:
    sl = s.strip().lower()
    if sl in _BOOL_TRUE:
        return True
    if sl in _BOOL_FALSE:
        return False
    raise SetupError(f"invalid boolean value: {s}")


def check_source_tree(path: str) -> None:
    # the store's core and kv applications must both be built under deps/
    for label, sub in (("riak_core", "deps/riak_core/ebin"), ("riak_kv", "deps/riak_kv/ebin")):
        p = Path(path) / sub
        if not p.is_dir():
            raise SetupError(f"path for {label} ({p}) not found or doesn't point to a directory")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mapred-verify", description=__doc__.split("\n\n")[0].strip())
    p.add_argument("-s", dest="node", help="store node, e.g. http://127.0.0.1:8098 (or MRV_NODE)")
    p.add_argument("-c", dest="source_path", help="path to the top of the store's source tree")
    p.add_argument("-k", dest="key_count", type=int, default=1000, help="number of fixture keys")
    p.add_argument("-b", dest="body_size", default="1", help="object size, N{k|b}")
    p.add_argument("-p", dest="populate", default="false", help="clear and populate the bucket (true|false)")
    p.add_argument("-j", dest="run_jobs", default="false", help="run the scenario catalog (true|false)")
    p.add_argument("-f", dest="testdef", default="priv/tests.def", help="test definition file (YAML)")
    p.add_argument("--seed", type=int, help="seed for the discrete-entries sample (default: time based)")
    p.add_argument("--json", dest="json_out", help="also write the run report as JSON")
    p.add_argument("--backends", dest="settings_path", help="YAML describing a multi backend (or MRV_BACKENDS_FILE)")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def setup_environment(args: argparse.Namespace) -> RunConfig:
    node = args.node or os.getenv("MRV_NODE")
    if not node or not args.source_path:
        raise SetupError("both -s <node> and -c <source path> are required")
    check_source_tree(args.source_path)
    if args.key_count < 0:
        raise SetupError(f"key count must be >= 0, got {args.key_count}")
    body_size = parse_kbinteger(args.body_size)
    if body_size < 1:
        raise SetupError("object size must be at least 1 byte")
    return RunConfig(
        node=node,
        source_path=args.source_path,
        key_count=args.key_count,
        body_size=body_size,
        populate=_parse_bool(args.populate),
        run_jobs=_parse_bool(args.run_jobs),
        testdef=args.testdef,
        seed=args.seed,
        json_out=args.json_out,
        settings_path=args.settings_path,
    )


def do_verification(config: RunConfig, client: StoreClient, out=None) -> Optional[int]:
    """Populate and/or run the catalog. Returns the failure count, or None when no jobs ran."""
    reporter = ConsoleReporter(out)
    if config.populate:
        reporter.line(f"Clearing old data from {BUCKET!r}")
        clear(client, BUCKET, clear_bound(config.key_count))
        reporter.line(f"Populating new data to {BUCKET!r}")
        populate(client, BUCKET, config.body_size, config.key_count)

    if not config.run_jobs:
        return None

    scenarios = load_catalog(config.testdef)
    seed = config.seed if config.seed is not None else time.time_ns()
    logger.info("discrete entries sampled with seed %d", seed)

    reporter.line("Verifying map/reduce jobs")
    runner = ScenarioRunner(
        client,
        BUCKET,
        config.key_count,
        rng=random.Random(seed),
        probe=CapabilityProbe(client),
        reporter=reporter,
    )
    report = runner.run(scenarios, run_id=str(uuid.uuid4()))
    ResultSink().write(report, config.json_out, dict(config.as_dict(), seed=seed))
    return report.failures


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = setup_environment(args)
        client = StoreFactory().build(config.node, config.settings_path)["client"]
    except SetupError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    try:
        client.connect()
        failures = do_verification(config, client)
    except SetupError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    except DefinitionLoadError as e:
        print(f"Error loading test definition file: {e}", file=sys.stderr)
        return DEFINITION_LOAD_STATUS
    except FixtureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    if failures is None:
        return 0
    return min(failures, MAX_FAILURE_STATUS)


if __name__ == "__main__":
    raise SystemExit(main())
