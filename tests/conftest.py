"""Shared fixtures for the test suite."""

import sys
from pathlib import Path

import pytest

# tests/ is inside the repository root
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from primitives.field import GOLDILOCKS_PRIME, get_field  # noqa: E402
from protocol.setup_ctx import SetupCtx  # noqa: E402
from protocol.stark_config import StarkConfig  # noqa: E402

SMALL_PRIME = 97
"""96 = 2^5 * 3, so power-of-two domains up to 32 exist. 5 generates GF(97)*."""

SQUARING_TRACE = [2, 4, 16, 256]


@pytest.fixture(scope="session")
def F():
    return get_field(GOLDILOCKS_PRIME)


@pytest.fixture(scope="session")
def F_small():
    return get_field(SMALL_PRIME)


@pytest.fixture(scope="session")
def setup_ctx() -> SetupCtx:
    """n = 4 squaring instance over Goldilocks."""
    return SetupCtx.from_config(StarkConfig(trace_length=4, blowup=4, n_queries=8))


@pytest.fixture(scope="session")
def fib_setup_ctx() -> SetupCtx:
    """n = 16 FibonacciSq instance over Goldilocks."""
    return SetupCtx.from_config(
        StarkConfig(trace_length=16, blowup=4, n_queries=6, constraints=("fibonacci_square",))
    )
