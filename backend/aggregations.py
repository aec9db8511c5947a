"""
backend/aggregations.py

Project-level read queries over the buildings table.

A "project" is not stored anywhere: it is the set of records sharing a
project_id. Every function here groups on project_id at query time, so results
always reflect the current table contents.
"""

from __future__ import annotations

import logging
import math
from itertools import groupby
from typing import Any, Callable, List, Optional

from sqlalchemy import ColumnElement, FromClause, Select, func, or_, select

from backend.buildings import record_from_row
from backend.db import buildings_table, get_db_connection
from backend.schemas_buildings import (
    PaginatedProjects,
    Pagination,
    ProjectInfo,
    ProjectSummary,
    ProjectWithBuildings,
)

logger = logging.getLogger(__name__)

# Builds a WHERE clause against a given alias of the buildings table
Condition = Callable[[FromClause], ColumnElement[bool]]


def search_condition(query: str) -> Condition:
    """Case-insensitive literal substring match on project id OR project name."""

    def condition(table: FromClause) -> ColumnElement[bool]:
        return or_(
            table.c.project_id.icontains(query, autoescape=True),
            table.c.project_name.icontains(query, autoescape=True),
        )

    return condition


def _grouped_summaries(condition: Optional[Condition] = None) -> Select:
    """
    GROUP BY project_id with count and null-safe area sums.

    projectName is the name on the earliest inserted record of the group
    (restricted to the same filter, if any).
    """
    b = buildings_table
    first_seen = buildings_table.alias("first_seen")

    name_query = select(first_seen.c.project_name).where(
        first_seen.c.project_id.is_not_distinct_from(b.c.project_id)
    )
    if condition is not None:
        name_query = name_query.where(condition(first_seen))
    name_query = name_query.order_by(first_seen.c.seq).limit(1).scalar_subquery()

    stmt = select(
        b.c.project_id.label("project_id"),
        name_query.label("project_name"),
        func.count().label("building_count"),
        func.sum(func.coalesce(b.c.area_client, 0)).label("total_area"),
        func.sum(func.coalesce(b.c.qualifying_area, 0)).label("total_qualifying_area"),
    ).group_by(b.c.project_id)

    if condition is not None:
        stmt = stmt.where(condition(b))
    return stmt


def _summary_from_row(row: Any) -> ProjectSummary:
    return ProjectSummary(
        project_id=row["project_id"],
        project_name=row["project_name"] or "",
        building_count=row["building_count"],
        total_area=row["total_area"] or 0,
        total_qualifying_area=row["total_qualifying_area"] or 0,
    )


def _paginate(stmt: Select, page: int, limit: int) -> PaginatedProjects:
    """Sort groups by project id descending and slice out one page."""
    grouped = stmt.subquery("grouped")
    offset = (page - 1) * limit

    with get_db_connection() as conn:
        # Total counts all groups, not just the returned slice
        total = conn.execute(select(func.count()).select_from(grouped)).scalar_one()
        rows = conn.execute(
            select(grouped)
            .order_by(grouped.c.project_id.desc().nulls_last())
            .limit(limit)
            .offset(offset)
        ).mappings().all()

    return PaginatedProjects(
        result=[_summary_from_row(row) for row in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


def list_project_summaries(page: int = 1, limit: int = 20) -> PaginatedProjects:
    """Paginated summaries of every project."""
    result = _paginate(_grouped_summaries(), page, limit)
    logger.debug(
        "[PROJECTS] Summary page=%s limit=%s total=%s returned=%s",
        page, limit, result.pagination.total, len(result.result),
    )
    return result


def search_project_summaries(query: str, page: int = 1, limit: int = 20) -> PaginatedProjects:
    """Paginated summaries of projects whose id or name contains `query`."""
    result = _paginate(_grouped_summaries(search_condition(query)), page, limit)
    logger.debug(
        "[PROJECTS] Search q=%r page=%s limit=%s total=%s",
        query, page, limit, result.pagination.total,
    )
    return result


def get_project_info(project_id: str) -> Optional[ProjectInfo]:
    """Aggregate for one project, or None if no record carries that id."""
    b = buildings_table
    stmt = select(
        func.count().label("total_buildings"),
        func.sum(func.coalesce(b.c.area_client, 0)).label("total_area"),
        func.sum(func.coalesce(b.c.qualifying_area, 0)).label("total_qualifying_area"),
    ).where(b.c.project_id == project_id)

    with get_db_connection() as conn:
        row = conn.execute(stmt).mappings().one()

    if not row["total_buildings"]:
        return None

    return ProjectInfo(
        total_buildings=row["total_buildings"],
        total_area=row["total_area"] or 0,
        total_qualifying_area=row["total_qualifying_area"] or 0,
    )


def get_all_projects_with_buildings() -> List[ProjectWithBuildings]:
    """
    Every project with its full record list, project id descending.

    Unbounded full-table read: meant for export, assumes a small table.
    """
    b = buildings_table
    stmt = select(b).order_by(b.c.project_id.desc().nulls_last(), b.c.seq)

    with get_db_connection() as conn:
        rows = conn.execute(stmt).mappings().all()

    projects: List[ProjectWithBuildings] = []
    for project_id, group in groupby(rows, key=lambda r: r["project_id"]):
        group_rows = list(group)
        projects.append(
            ProjectWithBuildings(
                project_id=project_id,
                project_name=group_rows[0]["project_name"] or "",
                building_count=len(group_rows),
                buildings=[record_from_row(r) for r in group_rows],
            )
        )

    logger.debug("[PROJECTS] Export: %s projects, %s records", len(projects), len(rows))
    return projects
