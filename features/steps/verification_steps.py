from behave import given, when, then
import yaml

from mapred_verify.bench.capability import CapabilityProbe
from mapred_verify.bench.catalog import parse_catalog
from mapred_verify.bench.data_gen import BUCKET, TOKEN_EVEN, key_for
from mapred_verify.bench.errors import FixtureError
from mapred_verify.bench.metrics import ConsoleReporter
from mapred_verify.bench.plan_runner import ScenarioRunner
from mapred_verify.bench.populator import clear, clear_bound, populate
from mapred_verify.bench.types import ScenarioKind
from mapred_verify.cli import parse_kbinteger
from mapred_verify.store.client import BackendDescriptor


def _populate(context, count: int, size: int = 1):
    clear(context.store, BUCKET, clear_bound(count))
    populate(context.store, BUCKET, size, count)
    context.key_count = count


def _outcome(context, subcase: str):
    for o in context.report.outcomes():
        if o.subcase == subcase:
            return o
    raise AssertionError(f"no sub-case {subcase!r} in the run")


def _scenario(context, label: str):
    for s in context.report.scenarios:
        if s.label == label:
            return s
    raise AssertionError(f"no scenario {label!r} in the run")


@given("an empty store")
def step_empty_store(context):
    assert context.store.keys(BUCKET) == []


@given("a store populated with {count:d} records")
def step_populated_store(context, count):
    _populate(context, count)


@given('writes to "{key}" fail')
def step_writes_fail(context, key):
    context.store.fail_put_on = key


@given('the store backend is "{kind}"')
def step_backend(context, kind):
    context.store.backend = BackendDescriptor(kind=kind)


@given("the catalog:")
def step_catalog(context):
    context.scenarios = parse_catalog(yaml.safe_load(context.text))


@when('I populate {count:d} records of size "{size}"')
def step_populate(context, count, size):
    try:
        _populate(context, count, parse_kbinteger(size))
    except FixtureError as e:
        context.error = e


@when("I run the catalog")
def step_run_catalog(context):
    runner = ScenarioRunner(
        context.store,
        BUCKET,
        context.key_count,
        rng=context.rng,
        probe=CapabilityProbe(context.store),
        reporter=ConsoleReporter(context.out),
    )
    context.jobs_before = len(context.store.jobs)
    context.report = runner.run(context.scenarios)


@then("the bucket holds exactly {count:d} keys from mrv1 to mrv{last:d}")
def step_bucket_keys(context, count, last):
    assert context.error is None, context.error
    expected = sorted(key_for(n) for n in range(1, last + 1))
    actual = context.store.keys(BUCKET)
    assert len(actual) == count, f"{len(actual)} keys"
    assert actual == expected


@then("every inner record links to its neighbours")
def step_links(context):
    records = context.store.buckets[BUCKET]
    for n in range(2, context.key_count):
        links = records[key_for(n)].links
        assert (links.prev, links.next) == (key_for(n - 1), key_for(n + 1)), n


@then('even records carry the "{token}" binary index')
def step_bin_index(context, token):
    assert token == TOKEN_EVEN
    for key, rec in context.store.buckets[BUCKET].items():
        assert (rec.indexes.bin_field == token) == (rec.n % 2 == 0), key
        assert rec.indexes.int_field == rec.n


@then('population fails with a fixture error for "{key}"')
def step_fixture_error(context, key):
    assert isinstance(context.error, FixtureError), context.error
    assert context.error.key == key


@then("the run reports {count:d} failures")
def step_failures(context, count):
    assert context.report.failures == count, context.out.getvalue()


@then('sub-case "{subcase}" passed expecting {expected:d}')
def step_subcase_passed(context, subcase, expected):
    o = _outcome(context, subcase)
    assert o.passed, o.reason
    assert o.expected == expected, o.expected


@then('the output contains "{text}"')
def step_output(context, text):
    assert text in context.out.getvalue(), context.out.getvalue()


@then('scenario "{label}" ran only these sub-cases:')
def step_battery(context, label):
    expected = [row["sub-case"] for row in context.table]
    assert [o.subcase for o in _scenario(context, label).outcomes] == expected


@then("all {count:d} index sub-cases passed with 0 ms without querying the store")
def step_index_skipped(context, count):
    index = [o for o in context.report.outcomes() if o.kind is ScenarioKind.INDEX]
    assert len(index) == count
    assert all(o.passed and o.skipped and o.elapsed_ms == 0 for o in index)
    queried = context.store.jobs[context.jobs_before:]
    assert not any(isinstance(j["inputs"], dict) and "index" in j["inputs"] for j in queried)


@then('scenario "{label}" has failures')
def step_has_failures(context, label):
    assert _scenario(context, label).failures > 0


@then('scenario "{label}" has {count:d} failures')
def step_n_failures(context, label, count):
    assert _scenario(context, label).failures == count
