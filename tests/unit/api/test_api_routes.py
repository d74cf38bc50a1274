"""HTTP tests for the rule and assignment routes, backed by in-memory adapters."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from assign_engine.adapters.memory.stores import (
    InMemoryRotationCursorRepository,
    InMemoryRuleRepository,
    InMemoryStaffDirectory,
    InMemoryUnitOfWork,
    InMemoryWorkItemRepository,
)
from assign_engine.adapters.persistence.database import get_session
from assign_engine.application.services.rule_locks import RuleLockRegistry
from assign_engine.application.services.strategy_resolver import StrategyResolver
from assign_engine.application.use_cases.apply_rules import ApplyRulesUseCase
from assign_engine.application.use_cases.reassignment_sweep import (
    RunReassignmentSweepUseCase,
)
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.value_objects.enums import ItemStatus
from assign_engine.infrastructure.api.dependencies import (
    get_apply_rules_uc,
    get_item_repo,
    get_rule_repo,
    get_sweep_uc,
)
from assign_engine.main import create_app


class FakeSession:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class CountingSession(FakeSession):
    """Answers the health check counts in order."""

    def __init__(self, counts=(), error=None):
        super().__init__()
        self.counts = list(counts)
        self.error = error

    async def execute(self, statement):
        if self.error:
            raise self.error
        return CountResult(self.counts.pop(0))


class CountResult:
    def __init__(self, value):
        self.value = value

    def scalar_one(self):
        return self.value


class Backend:
    def __init__(self, staff):
        self.session = FakeSession()
        self.rules = InMemoryRuleRepository()
        self.items = InMemoryWorkItemRepository()
        cursors = InMemoryRotationCursorRepository()
        resolver = StrategyResolver(
            self.items, InMemoryStaffDirectory(staff), cursors, lookup_timeout=0.5
        )
        self.apply_uc = ApplyRulesUseCase(
            rule_repo=self.rules,
            item_repo=self.items,
            cursor_repo=cursors,
            resolver=resolver,
            unit_of_work=InMemoryUnitOfWork(self.rules, self.items, cursors),
            locks=RuleLockRegistry(),
        )
        self.sweep_uc = RunReassignmentSweepUseCase(self.apply_uc, self.rules, self.items)


@pytest.fixture
def backend(staff):
    return Backend(staff)


@pytest.fixture
def client(backend):
    app = create_app()
    app.dependency_overrides[get_session] = lambda: backend.session
    app.dependency_overrides[get_rule_repo] = lambda: backend.rules
    app.dependency_overrides[get_item_repo] = lambda: backend.items
    app.dependency_overrides[get_apply_rules_uc] = lambda: backend.apply_uc
    app.dependency_overrides[get_sweep_uc] = lambda: backend.sweep_uc
    return TestClient(app)


def _create_rule(client, **overrides):
    body = {
        "name": "Rotate loans",
        "priority": 10,
        "strategy": {"type": "round_robin", "staff_pool": [1, 2, 3]},
    }
    body.update(overrides)
    return client.post("/api/sheets/loans/rules", json=body)


# ─── Rules ───────────────────────────────────────────────────────────


def test_create_rule(client, backend):
    resp = _create_rule(client)
    assert resp.status_code == 201
    data = resp.json()
    assert data["id"] == 1
    assert data["strategy"] == {"type": "round_robin", "staff_pool": [1, 2, 3]}
    assert data["trigger"]["event"] == "on_create"
    assert data["statistics"]["total_assignments"] == 0
    assert backend.session.commits == 1


def test_create_rule_drops_fields_of_other_strategies(client):
    resp = _create_rule(client, strategy={"type": "by_role", "target_role": "operations", "staff_pool": [1]})
    assert resp.status_code == 201
    assert resp.json()["strategy"] == {"type": "by_role", "target_role": "operations"}


def test_create_rule_empty_pool_rejected(client, backend):
    resp = _create_rule(client, strategy={"type": "least_loaded", "staff_pool": []})
    assert resp.status_code == 422
    assert "staff pool" in resp.json()["detail"]
    assert backend.rules.rules == {}


def test_create_rule_unknown_strategy(client):
    resp = _create_rule(client, strategy={"type": "random"})
    assert resp.status_code == 422


def test_list_and_get_rules(client):
    _create_rule(client, name="low", priority=1)
    _create_rule(client, name="high", priority=9)

    listed = client.get("/api/sheets/loans/rules").json()
    assert listed["total"] == 2
    assert [r["name"] for r in listed["rules"]] == ["high", "low"]

    assert client.get("/api/rules/1").json()["name"] == "low"
    assert client.get("/api/rules/42").status_code == 404


def test_deactivate_rule(client):
    _create_rule(client)
    resp = client.patch("/api/rules/1/status", json={"status": "inactive"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "inactive"
    assert client.patch("/api/rules/9/status", json={"status": "inactive"}).status_code == 404


# ─── Assignment ──────────────────────────────────────────────────────


def test_assign_item_rotates(client, backend):
    _create_rule(client)
    ids = [backend.items.add(WorkItem(id=None, sheet_id="loans", status=ItemStatus.DRAFT)).id for _ in range(2)]

    first = client.post(f"/api/sheets/loans/items/{ids[0]}/assign", json={}).json()
    second = client.post(f"/api/sheets/loans/items/{ids[1]}/assign", json={}).json()

    assert (first["applied"], first["rule_id"], first["assignee_id"]) == (True, 1, 1)
    assert second["assignee_id"] == 2
    assert first["lookup_failures"] == []


def test_assign_item_of_other_sheet_is_404(client, backend):
    item = backend.items.add(WorkItem(id=None, sheet_id="cards", status=ItemStatus.DRAFT))
    assert client.post(f"/api/sheets/loans/items/{item.id}/assign", json={}).status_code == 404


def test_assign_without_rules_is_not_an_error(client, backend):
    item = backend.items.add(WorkItem(id=None, sheet_id="loans", status=ItemStatus.DRAFT))
    resp = client.post(f"/api/sheets/loans/items/{item.id}/assign", json={})
    assert resp.status_code == 200
    assert resp.json()["applied"] is False


def test_creator_rule_assigns_item_creator(client, backend):
    _create_rule(client, strategy={"type": "creator"})
    item = backend.items.add(WorkItem(id=None, sheet_id="loans", status=ItemStatus.DRAFT, created_by=3))

    data = client.post(f"/api/sheets/loans/items/{item.id}/assign", json={}).json()

    assert data["applied"] is True
    assert data["assignee_id"] == 3
    assert backend.items.items[item.id].primary_assignee == 3


# ─── Sweep ───────────────────────────────────────────────────────────


def test_reassignment_sweep(client, backend):
    _create_rule(
        client,
        strategy={"type": "round_robin", "staff_pool": [1, 2]},
        reassignment={"enabled": True, "inactivity_days": 5},
    )
    now = datetime(2026, 3, 16, 9, 0, tzinfo=timezone.utc)
    item = backend.items.add(
        WorkItem(
            id=None,
            sheet_id="loans",
            status=ItemStatus.PENDING_REVIEW,
            primary_assignee=1,
            assigned_to=[1],
            assigned_by_rule_id=1,
            last_activity_at=now - timedelta(days=6),
        )
    )

    resp = client.post("/api/sheets/loans/reassignment-sweep", json={"now": now.isoformat()})

    assert resp.status_code == 200
    data = resp.json()
    assert (data["total"], data["reassigned"], data["failed"]) == (1, 1, 0)
    assert data["results"][0]["new_assignee_id"] == 2
    assert backend.items.items[item.id].primary_assignee == 2


def test_sweep_accepts_timestamp_without_offset(client, backend):
    _create_rule(
        client,
        strategy={"type": "round_robin", "staff_pool": [1, 2]},
        reassignment={"enabled": True, "inactivity_days": 5},
    )
    now = datetime(2026, 3, 16, 9, 0, tzinfo=timezone.utc)
    for idle in (6, 7):
        backend.items.add(
            WorkItem(
                id=None,
                sheet_id="loans",
                status=ItemStatus.PENDING_REVIEW,
                primary_assignee=1,
                assigned_by_rule_id=1,
                last_activity_at=now - timedelta(days=idle),
            )
        )

    resp = client.post("/api/sheets/loans/reassignment-sweep", json={"now": "2026-03-16T09:00:00"})

    assert resp.status_code == 200
    assert (resp.json()["total"], resp.json()["failed"]) == (2, 0)


# ─── Health ──────────────────────────────────────────────────────────


def test_health_reports_engine_tables(client):
    client.app.dependency_overrides[get_session] = lambda: CountingSession(counts=[3, 2])

    data = client.get("/api/health").json()

    assert data == {
        "status": "ok",
        "database": "connected",
        "active_rules": 3,
        "rotation_cursors": 2,
    }


def test_health_degraded_when_tables_unreachable(client):
    client.app.dependency_overrides[get_session] = lambda: CountingSession(
        error=RuntimeError('relation "rotation_cursors" does not exist')
    )

    data = client.get("/api/health").json()

    assert data["status"] == "degraded"
    assert "rotation_cursors" in data["database"]
