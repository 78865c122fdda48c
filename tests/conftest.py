"""Shared fixtures for perch tests."""

import pytest

from perch.config import AppConfig
from perch.http.response import Responder
from perch.routing.pattern import clear_cache


@pytest.fixture(autouse=True)
def _fresh_pattern_cache() -> None:
    clear_cache()


@pytest.fixture
def dev_config() -> AppConfig:
    return AppConfig(env="dev")


@pytest.fixture
def responder() -> Responder:
    return Responder(AppConfig(env="test"))
