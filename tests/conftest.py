"""
Pytest configuration and fixtures for Contender tests.
"""

import pytest
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def runner():
    """Provide the DefensiveTestRunner used by the runner-style defensive tests."""
    from tests.test_defensive import DefensiveTestRunner
    test_runner = DefensiveTestRunner()
    yield test_runner
    assert test_runner.failed == 0
