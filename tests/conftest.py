"""Shared pytest fixtures."""

import json
import os
from pathlib import Path

import pytest

from sqlquality.analyzer.analyzer import ExplainAnalyzer
from sqlquality.config import Config, reset_config

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "mysql"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep SQLQUALITY_* variables from the host out of every test."""
    for key in [k for k in os.environ if k.startswith("SQLQUALITY_")]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def mysql_plans() -> dict:
    """Load MySQL EXPLAIN FORMAT=JSON fixtures."""
    with open(FIXTURES_DIR / "explain_plans.json") as f:
        return json.load(f)


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def analyzer(config) -> ExplainAnalyzer:
    return ExplainAnalyzer(config=config)
