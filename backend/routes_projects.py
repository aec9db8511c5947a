"""
backend/routes_projects.py

Project endpoints: paginated summaries, search, full export, per-project
buildings, per-project info and delete-all.

Error shape for every failure is {"error": "<message>"} (see main.py handlers).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, HTTPException, Path, Query
from sqlalchemy.exc import SQLAlchemyError

from backend import aggregations, buildings
from backend.config import API_PREFIX
from backend.schemas_buildings import PaginatedProjects, ProjectInfo

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


router = APIRouter(
    prefix=f"{API_PREFIX}/projects",
    tags=["projects"],
)


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= 1 else default


def parse_pagination(page: Optional[str], limit: Optional[str]) -> Tuple[int, int]:
    """
    Lenient page/limit parsing.

    Missing, non-numeric or < 1 values fall back to the defaults (1 and 20).
    limit is capped at 100.
    """
    return (
        _parse_positive_int(page, DEFAULT_PAGE),
        min(_parse_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT),
    )


def require_param(value: str, message: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=message)
    return value


def store_failure(operation: str, exc: Exception) -> HTTPException:
    """Log a storage error and turn it into a 500 carrying the raw message."""
    logger.exception("[PROJECTS] Error in %s", operation)
    return HTTPException(status_code=500, detail=str(exc) or "Internal server error")


@router.get("/summary", response_model=PaginatedProjects)
def get_projects_summary(
    page: Optional[str] = Query(None, description="Page number (1-indexed, default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)"),
) -> PaginatedProjects:
    """Paginated per-project summaries, project id descending."""
    page_num, page_size = parse_pagination(page, limit)
    try:
        return aggregations.list_project_summaries(page_num, page_size)
    except SQLAlchemyError as e:
        raise store_failure("get_projects_summary", e)


@router.get("/search", response_model=PaginatedProjects)
def search_projects(
    q: Optional[str] = Query(None, description="Substring of project id or name"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> PaginatedProjects:
    """
    Summaries filtered by a case-insensitive substring.

    A blank query is not a search: it returns the plain summary page.
    """
    query = q or ""
    page_num, page_size = parse_pagination(page, limit)
    try:
        if not query.strip():
            return aggregations.list_project_summaries(page_num, page_size)
        return aggregations.search_project_summaries(query, page_num, page_size)
    except SQLAlchemyError as e:
        raise store_failure("search_projects", e)


@router.get("/all")
def get_all_projects() -> Dict[str, Any]:
    """Every project with all of its buildings (export)."""
    try:
        projects = aggregations.get_all_projects_with_buildings()
    except SQLAlchemyError as e:
        raise store_failure("get_all_projects", e)
    return {"result": [p.model_dump(by_alias=True) for p in projects]}


@router.get("/{project_id}/buildings")
def get_buildings_by_project(
    project_id: str = Path(..., description="Project identifier"),
) -> Dict[str, Any]:
    require_param(project_id, "projectId is required")
    try:
        return {"result": buildings.get_buildings_by_project(project_id)}
    except SQLAlchemyError as e:
        raise store_failure("get_buildings_by_project", e)


@router.get("/{project_id}/info", response_model=ProjectInfo)
def get_project_info(
    project_id: str = Path(..., description="Project identifier"),
) -> ProjectInfo:
    require_param(project_id, "projectId is required")
    try:
        info = aggregations.get_project_info(project_id)
    except SQLAlchemyError as e:
        raise store_failure("get_project_info", e)

    if info is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return info


@router.delete("/{project_id}/buildings")
def delete_all_buildings_in_project(
    project_id: str = Path(..., description="Project identifier"),
) -> Dict[str, Any]:
    """Delete every building of a project. An empty project is not an error."""
    require_param(project_id, "projectId is required")
    try:
        success, deleted_count = buildings.delete_all_buildings_in_project(project_id)
    except SQLAlchemyError as e:
        raise store_failure("delete_all_buildings_in_project", e)

    return {
        "success": success,
        "projectId": project_id,
        "deletedCount": deleted_count,
    }
