import copy

import pytest

from rpg_mechanics.models import CharacterState, RuleTemplate

BASE_TEMPLATE = {
    "version": "1.0.0",
    "stats": [
        {
            "id": "strength",
            "name": "Strength",
            "type": "number",
            "defaultValue": 10,
            "minValue": 1,
            "maxValue": 20,
        },
        {
            "id": "agility",
            "name": "Agility",
            "type": "number",
            "defaultValue": 10,
            "minValue": 1,
            "maxValue": 20,
        },
    ],
    "checks": [
        {
            "id": "attack",
            "name": "Attack Check",
            "formula": "strength + agility / 2",
            "successThreshold": 15,
        }
    ],
    "formulas": [
        {
            "id": "damage",
            "name": "Damage Calculation",
            "expression": "strength * 2",
            "variables": ["strength"],
            "returnType": "number",
        }
    ],
    "metadata": {"name": "Basic RPG System", "description": "A simple RPG system for testing"},
}


@pytest.fixture
def template_data():
    return copy.deepcopy(BASE_TEMPLATE)


@pytest.fixture
def template(template_data):
    return RuleTemplate.from_dict(template_data)


@pytest.fixture
def strength_state():
    return CharacterState(template_id="test-template", stats={"strength": 10})


@pytest.fixture
def state():
    return CharacterState(
        template_id="test-template",
        stats={"strength": 12, "agility": 15, "dexterity": 7},
    )
