"""
Ordered Rule Engine for carrier compliance checks.
Checks are registered explicitly by the component that owns them.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..utils.logging import get_logger
from .models import (
    CarrierRule,
    ComplianceConflict,
    ConflictSeverity,
    ConflictType,
    LineItem,
)

LOGGER = get_logger(__name__)

CheckFn = Callable[[list[LineItem], CarrierRule], list[ComplianceConflict]]


@dataclass
class ComplianceCheck:
    """Definition of a compliance check."""

    check_id: str
    name: str
    description: str
    conflict_type: ConflictType
    severity: ConflictSeverity
    validator: CheckFn | None = None
    enabled: bool = True


class RuleEngine:
    """
    Rule engine for managing and executing compliance checks.

    Checks run in registration order, so conflict lists come out in a
    stable, readable order.
    """

    def __init__(self) -> None:
        self._checks: dict[str, ComplianceCheck] = {}

    def add_check(self, check: ComplianceCheck) -> None:
        """Add a check to the engine."""
        if check.check_id in self._checks:
            raise ValueError(f"Duplicate check id: {check.check_id}")
        self._checks[check.check_id] = check

    def get_check(self, check_id: str) -> ComplianceCheck | None:
        """Get a specific check by ID."""
        return self._checks.get(check_id)

    def enable_check(self, check_id: str) -> bool:
        """Enable a specific check."""
        if check_id in self._checks:
            self._checks[check_id].enabled = True
            return True
        return False

    def disable_check(self, check_id: str) -> bool:
        """Disable a specific check."""
        if check_id in self._checks:
            self._checks[check_id].enabled = False
            return True
        return False

    def execute_check(
        self, check: ComplianceCheck, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        """Execute a single check against a scope."""
        if not check.enabled or check.validator is None:
            return []

        try:
            return check.validator(scope, rule)
        except Exception as e:
            # Log error but don't fail the entire evaluation
            LOGGER.exception("Compliance check %s failed", check.check_id)
            return [
                ComplianceConflict(
                    type=check.conflict_type,
                    severity=ConflictSeverity.INFO,
                    item_description=check.name,
                    reason=f"Check could not be evaluated: {type(e).__name__}: {e}",
                    recommendation="Review this item manually",
                )
            ]

    def execute_all(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        """Execute all enabled checks in registration order."""
        conflicts: list[ComplianceConflict] = []

        for check in self._checks.values():
            if check.enabled:
                conflicts.extend(self.execute_check(check, scope, rule))

        return conflicts

    def list_checks(self) -> list[dict[str, Any]]:
        """List all checks with their status."""
        return [
            {
                "check_id": check.check_id,
                "name": check.name,
                "conflict_type": check.conflict_type.value,
                "severity": check.severity.value,
                "enabled": check.enabled,
                "description": check.description,
            }
            for check in self._checks.values()
        ]
