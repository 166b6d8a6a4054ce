"""
Shared fixtures for module tests.

Provides parent entity fixtures needed by module ORM FK constraints.
All IDs are deterministic so tests can import and use them directly.

DESIGN RULE: Every fixture is opt-in.  No autouse.  Each test explicitly
declares which parent entities it depends on in its function signature.

Parent fixtures commit, which only releases the test savepoint.  A service
that rolls back after a failure therefore keeps the parents visible.
"""

from decimal import Decimal
from uuid import UUID

import pytest

from sgpc_kernel.models.user import UserModel
from sgpc_modules.costs.orm import ServiceModel, TaskModel
from sgpc_modules.costs.service import CostAggregator
from sgpc_modules.inventory.ledger import StockLedger
from sgpc_modules.inventory.orm import MaterialModel
from sgpc_modules.inventory.service import InventoryService
from sgpc_modules.material_request.service import MaterialRequestService
from sgpc_modules.project.orm import ProjectModel

# ---------------------------------------------------------------------------
# Deterministic parent entity IDs
# ---------------------------------------------------------------------------

TEST_REQUESTER_ID = UUID("00000000-0000-4000-a000-000000000001")
TEST_APPROVER_ID = UUID("00000000-0000-4000-a000-000000000002")
TEST_PROJECT_ID = UUID("00000000-0000-4000-a000-000000000010")
TEST_CEMENT_ID = UUID("00000000-0000-4000-a000-000000000020")
TEST_SAND_ID = UUID("00000000-0000-4000-a000-000000000021")
TEST_MASONRY_SERVICE_ID = UUID("00000000-0000-4000-a000-000000000030")
TEST_PAINTING_SERVICE_ID = UUID("00000000-0000-4000-a000-000000000031")
TEST_TASK_ID = UUID("00000000-0000-4000-a000-000000000040")


def _add(session, obj, obj_id):
    existing = session.get(type(obj), obj_id)
    if existing is not None:
        return existing
    obj.id = obj_id
    session.add(obj)
    session.commit()
    return obj


# ---------------------------------------------------------------------------
# Directory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_requester(session, deterministic_clock):
    """A site engineer who raises material requests."""
    user = UserModel.create("Ana Souza", "ana@example.com", deterministic_clock.now())
    return _add(session, user, TEST_REQUESTER_ID)


@pytest.fixture
def test_approver(session, deterministic_clock):
    """A manager who approves or rejects requests."""
    user = UserModel.create("Bruno Lima", "bruno@example.com", deterministic_clock.now())
    return _add(session, user, TEST_APPROVER_ID)


@pytest.fixture
def test_project(session, deterministic_clock):
    """A project with a 1000.00 budget."""
    project = ProjectModel.create(
        "Residencial Aurora", deterministic_clock.now(), total_budget=Decimal("1000"),
    )
    return _add(session, project, TEST_PROJECT_ID)


# ---------------------------------------------------------------------------
# Inventory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cement(session, deterministic_clock):
    """Cement with 100 bags in stock."""
    material = MaterialModel.create(
        name="Cement",
        unit_of_measure="bag",
        unit_price=Decimal("32"),
        at=deterministic_clock.now(),
        current_stock=Decimal("100"),
        minimum_stock=Decimal("20"),
    )
    return _add(session, material, TEST_CEMENT_ID)


@pytest.fixture
def sand(session, deterministic_clock):
    """Sand with 10 m3 in stock, below its minimum."""
    material = MaterialModel.create(
        name="Sand",
        unit_of_measure="m3",
        unit_price=Decimal("120"),
        at=deterministic_clock.now(),
        current_stock=Decimal("10"),
        minimum_stock=Decimal("15"),
    )
    return _add(session, material, TEST_SAND_ID)


# ---------------------------------------------------------------------------
# Cost fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def masonry_service(session, deterministic_clock):
    """Labor 8, material 5, equipment 1 per m2."""
    service = ServiceModel.create(
        name="Masonry",
        unit_of_measurement="m2",
        at=deterministic_clock.now(),
        unit_labor_cost=Decimal("8"),
        unit_material_cost=Decimal("5"),
        unit_equipment_cost=Decimal("1"),
    )
    return _add(session, service, TEST_MASONRY_SERVICE_ID)


@pytest.fixture
def painting_service(session, deterministic_clock):
    """Labor 20 per m2, nothing else."""
    service = ServiceModel.create(
        name="Painting",
        unit_of_measurement="m2",
        at=deterministic_clock.now(),
        unit_labor_cost=Decimal("20"),
    )
    return _add(session, service, TEST_PAINTING_SERVICE_ID)


@pytest.fixture
def test_task(session, deterministic_clock, test_project):
    """A task of ``test_project`` that has not started."""
    task = TaskModel.create(TEST_PROJECT_ID, "Ground floor walls", deterministic_clock.now())
    return _add(session, task, TEST_TASK_ID)


@pytest.fixture
def make_task(session, deterministic_clock, test_project):
    """Factory for extra tasks of ``test_project``."""

    def _make(title: str, **kwargs) -> TaskModel:
        task = TaskModel.create(TEST_PROJECT_ID, title, deterministic_clock.now(), **kwargs)
        session.add(task)
        session.commit()
        return task

    return _make


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stock_ledger(session, deterministic_clock):
    return StockLedger(session, deterministic_clock)


@pytest.fixture
def inventory_service(session, deterministic_clock):
    return InventoryService(session, deterministic_clock)


@pytest.fixture
def request_service(session, deterministic_clock):
    return MaterialRequestService(session, deterministic_clock)


@pytest.fixture
def cost_aggregator(session, deterministic_clock):
    return CostAggregator(session, deterministic_clock)
