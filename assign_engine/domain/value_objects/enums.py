"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class RuleStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class TriggerEvent(str, Enum):
    ON_CREATE = "on_create"
    ON_STATUS_CHANGE = "on_status_change"
    ON_PRIORITY_CHANGE = "on_priority_change"
    MANUAL = "manual"


class StrategyType(str, Enum):
    ROUND_ROBIN = "round_robin"
    LEAST_LOADED = "least_loaded"
    BY_ROLE = "by_role"
    BY_SKILL = "by_skill"
    MANUAL_POOL = "manual_pool"
    CREATOR = "creator"


class ReassignTarget(str, Enum):
    NEXT_IN_POOL = "next_in_pool"
    MANAGER = "manager"
    SUPERVISOR = "supervisor"


class FieldOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN_RANGE = "in_range"


class ItemStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"
    LOCKED = "locked"


class ItemPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class StaffStatus(str, Enum):
    ACTIVE = "active"
    PENDING_APPROVAL = "pending_approval"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"
