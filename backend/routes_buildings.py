"""
backend/routes_buildings.py

Building endpoints: fetch, create, bulk upload, partial edit, delete.

Presence validation happens here, before anything reaches the store:
- create needs projectId and buildingName
- upload needs a non-empty `buildings` array whose every element has both
- edit may not set either of them to null or blank
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Path
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend import buildings
from backend.buildings import UpdateOutcome
from backend.config import API_PREFIX
from backend.routes_projects import require_param
from backend.schemas_buildings import WIRE_NAMES, BuildingFields

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix=f"{API_PREFIX}/buildings",
    tags=["buildings"],
)


def _store_failure(operation: str, exc: Exception) -> HTTPException:
    logger.exception("[BUILDINGS] Error in %s", operation)
    return HTTPException(status_code=500, detail=str(exc) or "Internal server error")


# Grouping key and display name; checked on the parsed model so that
# snake_case keys (project_id, building_name) are covered too
REQUIRED_FIELDS = ("project_id", "building_name")


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _has_required_fields(fields: BuildingFields) -> bool:
    return not any(_is_blank(getattr(fields, name)) for name in REQUIRED_FIELDS)


def _blanked_required_field(fields: BuildingFields) -> Optional[str]:
    """Wire name of a required field the payload sets to null/blank, if any."""
    for name in REQUIRED_FIELDS:
        if name in fields.model_fields_set and _is_blank(getattr(fields, name)):
            return WIRE_NAMES[name]
    return None


def parse_building_fields(payload: Dict[str, Any]) -> BuildingFields:
    """Validate field types; bad values (e.g. areaClient="abc") give a 400."""
    try:
        return BuildingFields.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise HTTPException(status_code=400, detail=f"Invalid value for {location}: {first.get('msg')}")


@router.get("/{building_id}")
def get_building(
    building_id: str = Path(..., description="Building ID"),
) -> Dict[str, Any]:
    require_param(building_id, "Building ID is required")
    try:
        record = buildings.get_building_by_id(building_id)
    except SQLAlchemyError as e:
        raise _store_failure("get_building", e)

    if record is None:
        raise HTTPException(status_code=404, detail="Building not found")
    return record


@router.post("/upload")
def upload_buildings(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """
    Bulk create.

    The whole request is rejected if any element is missing projectId or
    buildingName; nothing is inserted in that case.
    """
    batch = payload.get("buildings")
    if not isinstance(batch, list) or not batch:
        raise HTTPException(status_code=400, detail="buildings array is required and must not be empty")

    if not all(isinstance(item, dict) for item in batch):
        raise HTTPException(status_code=400, detail="Each building must have projectId and buildingName")

    parsed: List[BuildingFields] = [parse_building_fields(item) for item in batch]
    if not all(_has_required_fields(fields) for fields in parsed):
        raise HTTPException(status_code=400, detail="Each building must have projectId and buildingName")

    try:
        inserted_count = buildings.upload_buildings(parsed)
    except SQLAlchemyError as e:
        raise _store_failure("upload_buildings", e)

    return {"success": True, "insertedCount": inserted_count}


@router.post("", status_code=201)
def create_building(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    fields = parse_building_fields(payload)
    if not _has_required_fields(fields):
        raise HTTPException(status_code=400, detail="projectId and buildingName are required")

    try:
        building_id = buildings.create_building(fields)
    except SQLAlchemyError as e:
        raise _store_failure("create_building", e)

    return {"success": True, "id": building_id, "message": "Building created successfully"}


@router.post("/{building_id}/edit")
def update_building(
    building_id: str = Path(..., description="Building ID"),
    payload: Dict[str, Any] = Body(...),
) -> Dict[str, Any]:
    """
    Partial update. id/createdAt in the payload are ignored.

    Both an unknown id and a payload that changes nothing answer 404; the
    message tells the two apart.
    """
    require_param(building_id, "Building ID is required")
    fields = parse_building_fields(payload)
    blanked = _blanked_required_field(fields)
    if blanked:
        raise HTTPException(status_code=400, detail=f"{blanked} cannot be empty")

    try:
        outcome = buildings.update_building(building_id, fields)
    except SQLAlchemyError as e:
        raise _store_failure("update_building", e)

    if outcome is UpdateOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Building not found")
    if outcome is UpdateOutcome.UNCHANGED:
        raise HTTPException(status_code=404, detail="No changes made to building")

    return {"success": True, "message": "Building updated successfully"}


@router.delete("/{building_id}")
def delete_building(
    building_id: str = Path(..., description="Building ID"),
) -> Dict[str, Any]:
    require_param(building_id, "Building ID is required")
    try:
        deleted = buildings.delete_building(building_id)
    except SQLAlchemyError as e:
        raise _store_failure("delete_building", e)

    if not deleted:
        raise HTTPException(status_code=404, detail="Building not found")
    return {"success": True, "message": "Building deleted successfully"}
