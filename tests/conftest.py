import os
import sys
from pathlib import Path
import pytest
from helpers import mark_by_dir

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


@pytest.fixture(autouse=True)
def _ensure_src_on_syspath():
    # Add project src/ to sys.path for src-layout imports
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))
    yield


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # A developer's .env must not leak into config-driven tests
    for key in list(os.environ):
        if key.startswith("AUTOFIX_RUNNER_"):
            monkeypatch.delenv(key, raising=False)
    yield


TESTS = Path(__file__).parent

def pytest_collection_modifyitems(config, items):
    # Mark tests by directory structure
    mark_by_dir(items, TESTS / "autofix_runner" / "core", pytest.mark.unit)
    mark_by_dir(items, TESTS / "autofix_runner" / "infra", pytest.mark.integration)
    mark_by_dir(items, TESTS / "autofix_runner" / "app", pytest.mark.e2e)
    mark_by_dir(items, TESTS / "autofix_runner" / "shared", pytest.mark.unit)
