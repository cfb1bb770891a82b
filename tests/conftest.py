"""Shared fixtures and helpers for tests."""

import copy
from pathlib import Path
from typing import Any

import pytest

from plinth.canvas.memory import InMemoryCanvas
from plinth.core.snapshot import SnapshotBroker
from plinth.db.memory import InMemoryCollectionStore

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample BuildPlans
# ---------------------------------------------------------------------------

HERO_PLAN: dict[str, Any] = {
    "version": "1.0",
    "siteId": "site-1",
    "sectionName": "hero",
    "order": 1,
    "styles": [
        {
            "name": "hero-section",
            "properties": {"padding-top": "80px", "padding-bottom": "80px"},
            "breakpoints": {"medium": {"padding-top": "40px"}},
        },
        {
            "name": "hero-heading",
            "properties": {"font-size": "48px"},
            "pseudo": {"hover": {"color": "red"}},
        },
        {"name": "hero-cta", "properties": {"background-color": "#111"}},
    ],
    "tree": {
        "type": "Section",
        "className": "hero-section",
        "children": [
            {"type": "Heading", "className": "hero-heading", "headingLevel": 1, "text": "Build faster"},
            {"type": "Paragraph", "className": "hero-copy", "text": "Sections from JSON."},
            {"type": "Button", "className": "hero-cta", "text": "Start", "href": "/start"},
        ],
    },
}


def make_plan(**overrides: Any) -> dict[str, Any]:
    """Return a deep copy of the hero plan with top-level keys replaced."""
    plan = copy.deepcopy(HERO_PLAN)
    plan.update(overrides)
    return plan


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hero_plan() -> dict[str, Any]:
    return make_plan()


@pytest.fixture
def canvas() -> InMemoryCanvas:
    return InMemoryCanvas()


@pytest.fixture
def store() -> InMemoryCollectionStore:
    return InMemoryCollectionStore()


@pytest.fixture
def broker() -> SnapshotBroker:
    return SnapshotBroker()


@pytest.fixture
def plan_factory() -> Any:
    return make_plan
