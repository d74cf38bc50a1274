"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from assign_engine.domain.entities.staff_member import StaffMember
from assign_engine.domain.value_objects.enums import StaffStatus


@pytest.fixture
def now():
    return datetime(2026, 3, 16, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def staff():
    """A small directory: two operations staff, one reviewer, one suspended."""
    return [
        StaffMember(id=1, name="Aida", role="operations", skills={"kyc", "loans"}, manager_id=10),
        StaffMember(id=2, name="Bolat", role="operations", skills={"kyc"}, supervisor_id=20),
        StaffMember(id=3, name="Chen", role="compliance", skills={"aml", "kyc"}),
        StaffMember(id=4, name="Dana", role="operations", status=StaffStatus.SUSPENDED, skills={"loans"}),
        StaffMember(id=10, name="Mira", role="finance"),
        StaffMember(id=20, name="Serik", role="super_admin"),
    ]
