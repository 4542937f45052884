"""Permission domain entity.

A permission grants one action on one resource, optionally narrowed by
attribute conditions that must all hold for the target entity.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.domain.value_objects.core import PermissionCode
from app.domain.value_objects.permission_condition import PermissionCondition


@dataclass(frozen=True)
class PermissionEntity:
    """Domain entity for permission (identity: id, resource, action).

    Description and conditions are the only mutable parts; updates produce
    a new instance via with_changes().
    """

    id: str
    tenant_id: str
    resource: str
    action: str
    description: str | None = None
    conditions: tuple[PermissionCondition, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        PermissionCode(self.resource, self.action)

    @property
    def code(self) -> str:
        return PermissionCode(self.resource, self.action).value

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions)

    def grants(
        self,
        resource: str,
        action: str,
        entity: Mapping[str, Any] | None = None,
    ) -> bool:
        """Return True if this permission allows action on resource for entity.

        Resource and action must match (wildcards honored). Every condition
        must hold against entity (logical AND); one failing condition
        disqualifies this permission.
        """
        if not PermissionCode(self.resource, self.action).covers(resource, action):
            return False
        return all(c.evaluate(entity) for c in self.conditions)

    def with_changes(
        self,
        *,
        description: str | None = None,
        conditions: tuple[PermissionCondition, ...] | None = None,
    ) -> PermissionEntity:
        """Return a copy with updated description and/or conditions."""
        return PermissionEntity(
            id=self.id,
            tenant_id=self.tenant_id,
            resource=self.resource,
            action=self.action,
            description=self.description if description is None else description,
            conditions=self.conditions if conditions is None else conditions,
        )
