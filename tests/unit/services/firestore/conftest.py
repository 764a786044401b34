"""
Shared fixtures for document store tests.
"""

import pytest

from localfire.services.firestore import Firestore, Timestamp


def animals_database():
    """Seed with mixed value kinds and subcollections named foodSchedule at three depths."""
    return {
        "animals": [
            {
                "id": "monkey",
                "name": "monkey",
                "type": "mammal",
                "legCount": 2,
                "food": ["banana", "mango"],
                "foodCount": 1,
                "foodEaten": [500, 20],
                "createdAt": Timestamp(1628939119, 0),
            },
            {
                "id": "elephant",
                "name": "elephant",
                "type": "mammal",
                "legCount": 4,
                "food": ["banana", "peanut"],
                "foodCount": 0,
                "foodEaten": [0, 500],
                "createdAt": Timestamp(1628939129, 0),
            },
            {
                "id": "chicken",
                "name": "chicken",
                "type": "bird",
                "legCount": 2,
                "food": ["leaf", "nut", "ant"],
                "foodCount": 4,
                "foodEaten": [80, 20, 16],
                "createdAt": Timestamp(1628939139, 0),
                "_collections": {
                    "foodSchedule": [
                        {"id": "nut", "interval": "whenever"},
                        {"id": "leaf", "interval": "hourly"},
                    ],
                },
            },
            {
                "id": "ant",
                "name": "ant",
                "type": "insect",
                "legCount": 6,
                "food": ["leaf", "bread"],
                "foodCount": 2,
                "foodEaten": [80, 12],
                "createdAt": Timestamp(1628939149, 0),
                "_collections": {
                    "foodSchedule": [
                        {"id": "leaf", "interval": "daily"},
                        {"id": "peanut", "interval": "weekly"},
                    ],
                },
            },
            {"id": "worm", "name": "worm", "legCount": None},
            {"id": "pogo-stick", "name": "pogo-stick", "food": False},
            {
                "id": "cow",
                "name": "cow",
                "appearance": {"color": "brown", "size": "large"},
            },
        ],
        "foodSchedule": [
            {"id": "ants", "interval": "daily"},
            {"id": "cows", "interval": "twice daily"},
        ],
        "nested": [
            {
                "id": "collections",
                "_collections": {
                    "have": [
                        {
                            "id": "lots",
                            "_collections": {
                                "of": [
                                    {
                                        "id": "applications",
                                        "_collections": {
                                            "foodSchedule": [
                                                {"id": "layer4_a", "interval": "daily"},
                                                {"id": "layer4_b", "interval": "weekly"},
                                            ],
                                        },
                                    },
                                ],
                            },
                        },
                    ],
                },
            },
        ],
    }


def characters_database():
    """Small seed with a reference-free subcollection and a nested-path key."""
    return {
        "characters": [
            {
                "id": "homer",
                "name": "Homer",
                "occupation": "technician",
                "address": {"street": "742 Evergreen Terrace"},
            },
            {
                "id": "krusty",
                "name": "Krusty",
                "occupation": "clown",
                "_collections": {
                    "family": [
                        {"id": "herschel", "name": "Herschel Krustofski"},
                    ],
                },
            },
        ],
        "subcollection/as/string": [
            {"id": "first", "value": 1},
            {"id": "second", "value": 2},
        ],
    }


@pytest.fixture
def animals_db():
    """Read-only store over the animals seed with query simulation on."""
    return Firestore(animals_database(), {"simulateQueryFilters": True})


@pytest.fixture
def characters_db():
    """Read-only store over the characters seed."""
    return Firestore(characters_database())


@pytest.fixture
def mutable_db():
    """Mutable store over the characters seed with query simulation on."""
    return Firestore(characters_database(), {"mutable": True, "simulateQueryFilters": True})


@pytest.fixture
def animals_seed():
    return animals_database()


@pytest.fixture
def characters_seed():
    return characters_database()
