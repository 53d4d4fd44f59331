"""
Pytest configuration and fixtures for rollcloud-core tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing rollcloud
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def creature_payload() -> dict:
    """Full DiceCloud API payload for a level 5 Paladin/Warlock."""
    with open(FIXTURES_DIR / "dicecloud_creature_sample.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def creature(creature_payload) -> dict:
    return creature_payload["creatures"][0]


@pytest.fixture
def variables(creature_payload) -> dict:
    return creature_payload["creatureVariables"][0]


@pytest.fixture
def properties(creature_payload) -> list:
    return creature_payload["creatureProperties"]
