"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rmscheck.check import RMSCheck
from rmscheck.parser import Parser
from rmscheck.state import Compatibility


# =============================================================================
# HELPERS
# =============================================================================

def run_lint(lint, source, compatibility=Compatibility.CONQUERORS, name="test.rms"):
    """Check `source` with a single lint and return only that lint's warnings."""
    warnings = RMSCheck(compatibility, [lint]).add_source(name, source).check().warnings
    return [warning for warning in warnings if warning.code == lint.name]


def atoms_of(source):
    """Parse `source` and return just the atoms."""
    return [atom for atom, _ in Parser(0, source)]


def errors_of(source):
    """Parse `source` and return all parse errors, flattened."""
    return [error for _, errors in Parser(0, source) for error in errors]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_map(fixtures_dir):
    """A small, problem-free map script."""
    return (fixtures_dir / "sample.rms").read_text(encoding="utf-8")
