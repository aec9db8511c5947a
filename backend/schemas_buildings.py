"""
backend/schemas_buildings.py

Pydantic schemas for building records and project aggregates.

Wire format is camelCase (projectId, buildingName, areaClient, ...). Python
attribute names match the snake_case columns of the buildings table, so
`model_fields` doubles as the column list.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Keys the client may send but that are owned by the store
PROTECTED_KEYS = frozenset({"id", "_id", "createdAt", "created_at", "seq"})


# ========================================================================
# BUILDING RECORD
# ========================================================================

class BuildingFields(BaseModel):
    """Client-editable fields of a building inspection record.

    Every field is optional here; the handlers check presence of projectId and
    buildingName on create. Unknown keys are allowed and kept in `model_extra`.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        # Spreadsheet exports often carry numeric ids (projectId: 1001)
        coerce_numbers_to_str=True,
    )

    project_id: Optional[str] = Field(None, description="Project identifier (grouping key)")
    project_sub_id: Optional[str] = Field(None, description="Sub-project identifier")
    project_name: Optional[str] = Field(None, description="Project name (denormalized)")
    building_name: Optional[str] = Field(None, description="Building name")
    address: Optional[str] = None
    area_client: Optional[float] = Field(None, description="Area in square feet")
    qualifying_area: Optional[float] = Field(None, description="Qualifying area in square feet")
    year_pis: Optional[int] = Field(None, alias="yearPIS", description="Year placed in service")
    bldg_type: Optional[str] = None
    inspection_date: Optional[str] = None
    improvements: Optional[str] = None
    attempt_whole_bldg: Optional[str] = None
    legal_entity: Optional[str] = None
    cost_eebcp: Optional[float] = Field(None, alias="costEEBCP")
    allowed_wattage: Optional[float] = None
    proposed_wattage: Optional[float] = None
    baseline_lpd: Optional[float] = Field(None, alias="baselineLPD")
    proposed_lpd: Optional[float] = Field(None, alias="proposedLPD")
    reduction_percent: Optional[float] = None
    confirmed_by: Optional[str] = None
    guaranteed_cat: Optional[str] = None
    possible_cat: Optional[str] = None
    missing_info: Optional[str] = None
    notes: Optional[str] = None
    additional_notes: Optional[str] = None
    sharefile_link: Optional[str] = None
    start_date: Optional[str] = None
    due_date: Optional[str] = None
    submit_fa: Optional[str] = Field(None, alias="submitFA")

    def column_values(self, only_set: bool = False) -> Dict[str, Any]:
        """Column name -> value. With only_set, just the keys the client sent."""
        names = self.model_fields_set if only_set else type(self).model_fields.keys()
        return {name: getattr(self, name) for name in names if name in type(self).model_fields}

    def extra_values(self) -> Dict[str, Any]:
        """Unknown client keys, minus the ones the store owns."""
        extra = self.model_extra or {}
        return {k: v for k, v in extra.items() if k not in PROTECTED_KEYS}


# Column name -> wire name, e.g. "year_pis" -> "yearPIS"
WIRE_NAMES: Dict[str, str] = {
    name: (field.alias or name) for name, field in BuildingFields.model_fields.items()
}


# ========================================================================
# PROJECT AGGREGATES
# ========================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectSummary(_CamelModel):
    """One row per distinct project identifier."""
    project_id: Optional[str] = Field(None, description="Project identifier")
    project_name: str = Field("", description="First-seen project name in the group")
    building_count: int = Field(0, description="Number of building records")
    total_area: float = Field(0.0, description="Sum of areaClient (missing counts as 0)")
    total_qualifying_area: float = Field(0.0, description="Sum of qualifyingArea (missing counts as 0)")


class Pagination(_CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedProjects(_CamelModel):
    """Response schema for paginated project summaries."""
    result: List[ProjectSummary] = Field(default_factory=list)
    pagination: Pagination


class ProjectInfo(_CamelModel):
    """Aggregate for a single project (detail view)."""
    total_buildings: int
    total_area: float
    total_qualifying_area: float


class ProjectWithBuildings(_CamelModel):
    """Full export row: a project and every record in it."""
    project_id: Optional[str] = None
    project_name: str = ""
    building_count: int = 0
    buildings: List[Dict[str, Any]] = Field(default_factory=list)
