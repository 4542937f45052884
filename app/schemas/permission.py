"""Permission API schemas (with optional attribute conditions)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.enums import ConditionOperator
from app.domain.value_objects import PermissionCondition
from app.domain.value_objects.permission_condition import validate_condition_value


class PermissionConditionSchema(BaseModel):
    """One field/operator/value condition; all conditions of a permission must hold."""

    model_config = ConfigDict(from_attributes=True)

    field: str = Field(..., min_length=1, max_length=200)
    operator: ConditionOperator
    value: Any = None

    @model_validator(mode="after")
    def check_value_shape(self) -> "PermissionConditionSchema":
        validate_condition_value(self.operator, self.value)
        return self

    def to_domain(self) -> PermissionCondition:
        return PermissionCondition(field=self.field, operator=self.operator, value=self.value)


class PermissionCreate(BaseModel):
    """Request body for creating a permission."""

    resource: str = Field(..., min_length=1, max_length=100)
    action: str = Field(..., min_length=1, max_length=64)
    description: str | None = Field(default=None, max_length=500)
    conditions: list[PermissionConditionSchema] = Field(default_factory=list, max_length=20)


class PermissionUpdate(BaseModel):
    """Request body for updating a permission (description and/or conditions)."""

    description: str | None = Field(default=None, max_length=500)
    conditions: list[PermissionConditionSchema] | None = Field(default=None, max_length=20)


class PermissionResponse(BaseModel):
    """Permission list/detail response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    code: str
    resource: str
    action: str
    description: str | None
    conditions: list[PermissionConditionSchema] = Field(default_factory=list)
