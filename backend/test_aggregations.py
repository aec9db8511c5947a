"""
backend/test_aggregations.py

Tests for project grouping, search and pagination (backend/aggregations.py).

Run: pytest backend/test_aggregations.py -v
"""

from __future__ import annotations

import math

import pytest

from backend import aggregations, buildings
from backend.schemas_buildings import BuildingFields


def add(**payload) -> str:
    return buildings.create_building(BuildingFields.model_validate(payload))


@pytest.fixture
def seeded(database):
    """Seven projects P01..P07 with 1..7 buildings each."""
    for n in range(1, 8):
        for i in range(n):
            add(projectId=f"P{n:02d}", projectName=f"Project {n}", buildingName=f"B{i}", areaClient=10)
    return database


class TestSummaries:

    def test_null_safe_sums(self, database):
        add(projectId="P1", buildingName="A", areaClient=100)
        add(projectId="P1", buildingName="B")

        page = aggregations.list_project_summaries(1, 20)
        assert len(page.result) == 1
        summary = page.result[0]
        assert summary.project_id == "P1"
        assert summary.building_count == 2
        assert summary.total_area == 100
        assert summary.total_qualifying_area == 0

    def test_sums_only_present_values(self, database):
        add(projectId="P1", buildingName="A", areaClient=100, qualifyingArea=40)
        add(projectId="P1", buildingName="B", areaClient=50.5)
        add(projectId="P1", buildingName="C", qualifyingArea=10)

        summary = aggregations.list_project_summaries().result[0]
        assert summary.building_count == 3
        assert summary.total_area == pytest.approx(150.5)
        assert summary.total_qualifying_area == pytest.approx(50)

    def test_sorted_by_project_id_descending(self, seeded):
        ids = [s.project_id for s in aggregations.list_project_summaries(1, 20).result]
        assert ids == ["P07", "P06", "P05", "P04", "P03", "P02", "P01"]

    def test_first_seen_project_name(self, database):
        add(projectId="P1", projectName="Original", buildingName="A")
        add(projectId="P1", projectName="Renamed", buildingName="B")

        assert aggregations.list_project_summaries().result[0].project_name == "Original"

    def test_missing_project_name_is_empty_string(self, database):
        add(projectId="P1", buildingName="A")
        assert aggregations.list_project_summaries().result[0].project_name == ""

    def test_empty_store(self, database):
        page = aggregations.list_project_summaries(1, 20)
        assert page.result == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0


class TestPagination:

    @pytest.mark.parametrize("page,limit", [(1, 1), (1, 3), (2, 3), (3, 3), (4, 3), (1, 7), (2, 7), (1, 100), (9, 2)])
    def test_page_slice_and_totals(self, seeded, page, limit):
        total = 7
        result = aggregations.list_project_summaries(page, limit)

        assert result.pagination.total == total
        assert result.pagination.total_pages == math.ceil(total / limit)
        assert result.pagination.page == page
        assert result.pagination.limit == limit
        assert len(result.result) == min(limit, max(0, total - (page - 1) * limit))

    def test_pages_do_not_overlap(self, seeded):
        first = [s.project_id for s in aggregations.list_project_summaries(1, 3).result]
        second = [s.project_id for s in aggregations.list_project_summaries(2, 3).result]
        assert first == ["P07", "P06", "P05"]
        assert second == ["P04", "P03", "P02"]

    def test_page_past_end_is_empty(self, seeded):
        result = aggregations.list_project_summaries(50, 20)
        assert result.result == []
        assert result.pagination.total == 7


class TestSearch:

    def test_matches_project_id_case_insensitively(self, seeded):
        ids = [s.project_id for s in aggregations.search_project_summaries("p03").result]
        assert ids == ["P03"]

    def test_matches_project_name(self, database):
        add(projectId="X1", projectName="Harbor Warehouse", buildingName="A")
        add(projectId="X2", projectName="Airport", buildingName="A")

        result = aggregations.search_project_summaries("WAREHOUSE")
        assert [s.project_id for s in result.result] == ["X1"]
        assert result.pagination.total == 1

    def test_substring_is_literal(self, database):
        add(projectId="A_1", buildingName="A")
        add(projectId="AB1", buildingName="A")
        add(projectId="50%", buildingName="A")
        add(projectId="500", buildingName="A")

        assert [s.project_id for s in aggregations.search_project_summaries("A_").result] == ["A_1"]
        assert [s.project_id for s in aggregations.search_project_summaries("0%").result] == ["50%"]

    def test_search_counts_only_matching_groups(self, seeded):
        result = aggregations.search_project_summaries("Project", 1, 2)
        assert result.pagination.total == 7
        assert result.pagination.total_pages == 4
        assert len(result.result) == 2

    def test_no_match(self, seeded):
        result = aggregations.search_project_summaries("zzz")
        assert result.result == []
        assert result.pagination.total == 0


class TestProjectInfo:

    def test_info_for_project(self, database):
        add(projectId="P1", buildingName="A", areaClient=100, qualifyingArea=80)
        add(projectId="P1", buildingName="B")
        add(projectId="P2", buildingName="C", areaClient=999)

        info = aggregations.get_project_info("P1")
        assert info.total_buildings == 2
        assert info.total_area == 100
        assert info.total_qualifying_area == 80

    def test_unknown_project_is_none(self, database):
        assert aggregations.get_project_info("ghost") is None


class TestExport:

    def test_all_projects_with_buildings(self, database):
        add(projectId="P1", projectName="One", buildingName="A")
        add(projectId="P2", projectName="Two", buildingName="B")
        add(projectId="P2", projectName="Two", buildingName="C")

        projects = aggregations.get_all_projects_with_buildings()
        assert [p.project_id for p in projects] == ["P2", "P1"]
        assert projects[0].building_count == 2
        assert projects[0].project_name == "Two"
        assert {b["buildingName"] for b in projects[0].buildings} == {"B", "C"}
        assert all("id" in b and "createdAt" in b for b in projects[0].buildings)

    def test_export_of_empty_store(self, database):
        assert aggregations.get_all_projects_with_buildings() == []
