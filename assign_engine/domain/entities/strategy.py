"""Assignment strategies — one variant per strategy kind.

Each variant carries only the fields it needs, so a ``by_role`` rule can never
hold a staff pool and vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from assign_engine.domain.value_objects.enums import StrategyType


@dataclass(frozen=True)
class RoundRobinStrategy:
    staff_pool: tuple[int, ...] = ()
    type: StrategyType = field(default=StrategyType.ROUND_ROBIN, init=False)


@dataclass(frozen=True)
class LeastLoadedStrategy:
    staff_pool: tuple[int, ...] = ()
    type: StrategyType = field(default=StrategyType.LEAST_LOADED, init=False)


@dataclass(frozen=True)
class ByRoleStrategy:
    target_role: str | None = None
    type: StrategyType = field(default=StrategyType.BY_ROLE, init=False)


@dataclass(frozen=True)
class BySkillStrategy:
    required_skills: frozenset[str] = frozenset()
    # Optional; when empty the whole active staff directory is the candidate list
    staff_pool: tuple[int, ...] = ()
    type: StrategyType = field(default=StrategyType.BY_SKILL, init=False)


@dataclass(frozen=True)
class ManualPoolStrategy:
    staff: tuple[int, ...] = ()
    type: StrategyType = field(default=StrategyType.MANUAL_POOL, init=False)


@dataclass(frozen=True)
class CreatorStrategy:
    type: StrategyType = field(default=StrategyType.CREATOR, init=False)


AssignmentStrategy = Union[
    RoundRobinStrategy,
    LeastLoadedStrategy,
    ByRoleStrategy,
    BySkillStrategy,
    ManualPoolStrategy,
    CreatorStrategy,
]


def strategy_from_dict(raw: dict) -> AssignmentStrategy:
    """Build the variant selected by ``raw["type"]``.

    Sub-fields that belong to other variants are ignored.
    """
    kind = StrategyType(raw.get("type", StrategyType.ROUND_ROBIN.value))
    if kind == StrategyType.ROUND_ROBIN:
        return RoundRobinStrategy(staff_pool=tuple(raw.get("staff_pool") or ()))
    if kind == StrategyType.LEAST_LOADED:
        return LeastLoadedStrategy(staff_pool=tuple(raw.get("staff_pool") or ()))
    if kind == StrategyType.BY_ROLE:
        return ByRoleStrategy(target_role=raw.get("target_role"))
    if kind == StrategyType.BY_SKILL:
        return BySkillStrategy(
            required_skills=frozenset(raw.get("required_skills") or ()),
            staff_pool=tuple(raw.get("staff_pool") or ()),
        )
    if kind == StrategyType.MANUAL_POOL:
        return ManualPoolStrategy(staff=tuple(raw.get("staff") or ()))
    return CreatorStrategy()


def strategy_to_dict(strategy: AssignmentStrategy) -> dict:
    data: dict = {"type": strategy.type.value}
    if isinstance(strategy, (RoundRobinStrategy, LeastLoadedStrategy)):
        data["staff_pool"] = list(strategy.staff_pool)
    elif isinstance(strategy, ByRoleStrategy):
        data["target_role"] = strategy.target_role
    elif isinstance(strategy, BySkillStrategy):
        data["required_skills"] = sorted(strategy.required_skills)
        data["staff_pool"] = list(strategy.staff_pool)
    elif isinstance(strategy, ManualPoolStrategy):
        data["staff"] = list(strategy.staff)
    return data
