from typing import List, Optional
from uuid import UUID

from pydantic import Field, model_validator
from typing_extensions import Self

from removals_crm.schemas.common import CamelModel, LeadSource


class AssignmentConditions(CamelModel):
    """Every present condition must hold for a rule to match."""

    sources: Optional[List[LeadSource]] = None
    postcodes: Optional[List[str]] = None
    min_bedrooms: Optional[int] = Field(default=None, ge=0)
    max_bedrooms: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_bedroom_range(self) -> Self:
        if (
            self.min_bedrooms is not None
            and self.max_bedrooms is not None
            and self.min_bedrooms > self.max_bedrooms
        ):
            raise ValueError(
                f"min_bedrooms ({self.min_bedrooms}) must not exceed "
                f"max_bedrooms ({self.max_bedrooms})"
            )
        return self

    @property
    def has_bedroom_bounds(self) -> bool:
        return self.min_bedrooms is not None or self.max_bedrooms is not None


class AssignmentRuleCreate(CamelModel):
    name: str = Field(..., min_length=1)
    enabled: bool = True
    priority: int = 100
    conditions: AssignmentConditions = Field(default_factory=AssignmentConditions)
    assign_to_user_id: UUID


class AssignmentRuleUpdate(CamelModel):
    """Partial update; only fields that are sent are applied."""

    name: Optional[str] = Field(default=None, min_length=1)
    enabled: Optional[bool] = None
    priority: Optional[int] = None
    conditions: Optional[AssignmentConditions] = None
    assign_to_user_id: Optional[UUID] = None


class AssignmentRule(AssignmentRuleCreate):
    id: str


class StaffWorkload(CamelModel):
    staff_id: UUID
    name: str
    new_leads: int
    total_leads: int
