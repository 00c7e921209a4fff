"""
Pytest configuration and shared fixtures for all tuplety tests.

Contexts and analyzers are cheap and stateful (caches, reporter), so they are
function-scoped. The annotation grammar is built once per session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from tuplety.context import TyCtxt
from tuplety.analyzer import TupleAnalyzer
from tuplety.frontend.annotations import AnnotationParser
from tuplety.shared.types import TypeVarType, TypeVarTupleType
from tuplety.utils.config import CACHE_ENV_VAR, NARROW_INDEX_ENV_VAR


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser; only use it for annotations without type parameters."""
    return AnnotationParser()


# =============================================================================
# Function-scoped fixtures (default - one per test)
# =============================================================================

@pytest.fixture
def tcx():
    """Fresh type context with the default element predicate."""
    return TyCtxt()


@pytest.fixture
def narrow_tcx():
    """Type context resolving ambiguous indices to the reachable set only."""
    return TyCtxt(narrow_ambiguous_index=True)


@pytest.fixture
def analyzer(tcx, parser):
    return TupleAnalyzer(tcx, parser)


@pytest.fixture
def parser():
    """Parser with ``T``, ``U`` and ``Ts`` declared."""
    p = AnnotationParser()
    p.declare_type_var("T")
    p.declare_type_var("U")
    p.declare_type_var_tuple("Ts")
    return p


@pytest.fixture
def T():
    return TypeVarType("T")


@pytest.fixture
def U():
    return TypeVarType("U")


@pytest.fixture
def Ts():
    return TypeVarTupleType("Ts")


# =============================================================================
# Test execution hooks
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the developer's TUPLETY_* switches out of the tests."""
    monkeypatch.delenv(CACHE_ENV_VAR, raising=False)
    monkeypatch.delenv(NARROW_INDEX_ENV_VAR, raising=False)
    yield


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
