import io
import random
import sys
from pathlib import Path

# tests/fakes.py lives beside the package, not inside it
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from tests.fakes import InMemoryStore  # noqa: E402


def before_scenario(context, scenario):
    # Fresh store and output capture per scenario
    context.store = InMemoryStore()
    context.out = io.StringIO()
    context.rng = random.Random(20240601)
    context.key_count = 0
    context.scenarios = []
    context.report = None
    context.error = None
