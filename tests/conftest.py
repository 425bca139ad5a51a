"""Shared fixtures."""

import pytest

from graphserial import TypeRegistry


@pytest.fixture
def registry() -> TypeRegistry:
    """Fresh registry so locally defined classes never collide."""
    return TypeRegistry()

