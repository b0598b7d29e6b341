# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across test modules."""

from collections.abc import Iterator

import pytest

from ossign.dotenv_loader import reset_dotenv_state
from ossign.logging import SecretFilter


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    """Reset registered secrets and .env loading around each test."""
    SecretFilter.clear_secrets()
    reset_dotenv_state()
    yield
    SecretFilter.clear_secrets()
    reset_dotenv_state()
