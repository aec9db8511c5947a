# frontend/test_table_state.py
# Unit tests for project table state: expandable rows, pagination, debounced search
#
# A plain dict stands in for st.session_state.

import pytest

from frontend import table_state as ts


@pytest.fixture
def ss():
    state = {}
    ts.init_table_state(state, page_limit=20)
    return state


class FakeFetch:
    """Records calls; returns canned buildings or raises."""

    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result if result is not None else [{"id": "a", "buildingName": "A"}]
        self.error = error

    def __call__(self, project_id):
        self.calls.append(project_id)
        if self.error:
            raise self.error
        return self.result


# --------------------------------------------------------------------
# Rows
# --------------------------------------------------------------------

def test_init_defaults(ss):
    assert ss["page"] == 1
    assert ss["page_limit"] == 20
    assert ss["search_committed"] == ""
    assert ss["search_pending"] is None
    assert ts.row_status(ss, "P1") == ts.COLLAPSED


def test_init_keeps_existing_values():
    state = {"page": 4}
    ts.init_table_state(state)
    assert state["page"] == 4


def test_first_expand_fetches_and_caches(ss):
    fetch = FakeFetch()
    assert ts.toggle_row(ss, "P1", fetch) == ts.EXPANDED
    assert fetch.calls == ["P1"]
    assert ts.cached_buildings(ss, "P1") == fetch.result


def test_second_expand_uses_cache(ss):
    fetch = FakeFetch()
    ts.toggle_row(ss, "P1", fetch)  # expand
    ts.toggle_row(ss, "P1", fetch)  # collapse
    assert ts.row_status(ss, "P1") == ts.COLLAPSED
    assert ts.cached_buildings(ss, "P1") is not None

    assert ts.toggle_row(ss, "P1", fetch) == ts.EXPANDED
    assert fetch.calls == ["P1"]


def test_row_is_loading_while_fetching(ss):
    seen = []

    def fetch(project_id):
        seen.append(ts.row_status(ss, project_id))
        return []

    ts.toggle_row(ss, "P1", fetch)
    assert seen == [ts.LOADING]
    assert ts.is_expanded(ss, "P1")


def test_failed_fetch_leaves_row_collapsed(ss):
    fetch = FakeFetch(error=RuntimeError("backend down"))
    with pytest.raises(RuntimeError):
        ts.toggle_row(ss, "P1", fetch)

    assert ts.row_status(ss, "P1") == ts.COLLAPSED
    assert ts.cached_buildings(ss, "P1") is None


def test_rows_are_independent(ss):
    fetch = FakeFetch()
    ts.toggle_row(ss, "P1", fetch)
    ts.toggle_row(ss, "P2", fetch)
    ts.toggle_row(ss, "P1", fetch)

    assert not ts.is_expanded(ss, "P1")
    assert ts.is_expanded(ss, "P2")


def test_invalidate_after_write_clears_cache_and_collapses(ss):
    fetch = FakeFetch()
    ts.toggle_row(ss, "P1", fetch)

    ts.invalidate_after_write(ss)
    assert ss["buildings_cache"] == {}
    assert not ts.is_expanded(ss, "P1")

    ts.toggle_row(ss, "P1", fetch)
    assert fetch.calls == ["P1", "P1"]


# --------------------------------------------------------------------
# Pagination
# --------------------------------------------------------------------

def test_page_change_collapses_but_keeps_cache(ss):
    fetch = FakeFetch()
    ts.toggle_row(ss, "P1", fetch)

    ts.set_page(ss, 2, total_pages=5)
    assert ss["page"] == 2
    assert not ts.is_expanded(ss, "P1")
    assert ts.cached_buildings(ss, "P1") is not None


@pytest.mark.parametrize("requested,total,expected", [(0, 5, 1), (-3, 5, 1), (9, 5, 5), (3, None, 3), (3, 0, 3)])
def test_set_page_clamps(ss, requested, total, expected):
    assert ts.set_page(ss, requested, total) == expected


@pytest.mark.parametrize(
    "page,total,expected",
    [
        (1, 0, []),
        (1, 3, [1, 2, 3]),
        (1, 10, [1, 2, 3, 4, 5]),
        (5, 10, [3, 4, 5, 6, 7]),
        (10, 10, [6, 7, 8, 9, 10]),
    ],
)
def test_page_window(page, total, expected):
    assert ts.page_window(page, total) == expected


# --------------------------------------------------------------------
# Debounced search
# --------------------------------------------------------------------

DELAY = 0.3


def test_term_commits_after_quiet_period(ss):
    ts.propose_search(ss, "warehouse", now=10.0)
    assert not ts.commit_search_if_due(ss, now=10.1, delay=DELAY)
    assert ts.commit_search_if_due(ss, now=10.35, delay=DELAY)
    assert ss["search_committed"] == "warehouse"
    assert ss["search_pending"] is None


def test_new_keystroke_restarts_wait(ss):
    ts.propose_search(ss, "ware", now=10.0)
    ts.propose_search(ss, "wareh", now=10.25)

    assert not ts.commit_search_if_due(ss, now=10.4, delay=DELAY)
    assert ts.search_wait_remaining(ss, now=10.4, delay=DELAY) == pytest.approx(0.15)
    assert ts.commit_search_if_due(ss, now=10.6, delay=DELAY)
    assert ss["search_committed"] == "wareh"


def test_same_term_does_not_restart_wait(ss):
    ts.propose_search(ss, "dock", now=10.0)
    ts.propose_search(ss, "dock", now=10.2)
    assert ts.commit_search_if_due(ss, now=10.35, delay=DELAY)


def test_returning_to_committed_term_cancels(ss):
    ts.propose_search(ss, "dock", now=10.0)
    ts.propose_search(ss, "", now=10.1)
    assert ss["search_pending"] is None
    assert ts.search_wait_remaining(ss, now=10.1, delay=DELAY) == 0.0
    assert not ts.commit_search_if_due(ss, now=11.0, delay=DELAY)


def test_commit_resets_page_and_collapses(ss):
    ts.set_page(ss, 3)
    ts.toggle_row(ss, "P1", FakeFetch())

    ts.propose_search(ss, "alpha", now=0.0)
    ts.commit_search_if_due(ss, now=1.0, delay=DELAY)

    assert ss["page"] == 1
    assert not ts.is_expanded(ss, "P1")


def test_clearing_search_commits_blank_term(ss):
    ts.propose_search(ss, "alpha", now=0.0)
    ts.commit_search_if_due(ss, now=1.0, delay=DELAY)

    ts.propose_search(ss, "", now=2.0)
    assert ts.commit_search_if_due(ss, now=2.5, delay=DELAY)
    assert ss["search_committed"] == ""
