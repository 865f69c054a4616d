"""Shared fixtures."""

import pytest

from numbergame.context import build_context


@pytest.fixture(scope="session")
def ctx():
    """Context over the standard 1..100 domain."""
    return build_context()


@pytest.fixture(scope="session")
def small_ctx():
    """Context over a small 1..20 domain."""
    return build_context(20)
