"""
frontend/table_state.py
Session-state helpers for the project table.

All functions take `ss` (st.session_state, or a plain dict in tests) so the
table behaviour can be exercised without a running Streamlit script.

Row state per project id: "collapsed" -> "loading" -> "expanded".
The buildings cache is keyed by project id and survives collapsing; it is only
emptied by invalidate_after_write() (any successful write, or Refresh).
"""

from typing import Any, Callable, Dict, List, Optional

COLLAPSED = "collapsed"
LOADING = "loading"
EXPANDED = "expanded"

BuildingList = List[Dict[str, Any]]


def init_table_state(ss: Dict[str, Any], page_limit: int = 20) -> None:
    ss.setdefault("page", 1)
    ss.setdefault("page_limit", page_limit)

    # Search: raw term typed by the user vs. term the table is showing
    ss.setdefault("search_committed", "")
    ss.setdefault("search_pending", None)  # {"term": str, "since": float} or None

    # Expandable rows
    ss.setdefault("row_state", {})
    ss.setdefault("buildings_cache", {})


# --------------------------------------------------------------------
# Rows
# --------------------------------------------------------------------

def row_status(ss: Dict[str, Any], project_id: str) -> str:
    return ss["row_state"].get(project_id, COLLAPSED)


def is_expanded(ss: Dict[str, Any], project_id: str) -> bool:
    return row_status(ss, project_id) == EXPANDED


def cached_buildings(ss: Dict[str, Any], project_id: str) -> Optional[BuildingList]:
    return ss["buildings_cache"].get(project_id)


def toggle_row(ss: Dict[str, Any], project_id: str, fetch: Callable[[str], BuildingList]) -> str:
    """
    Expand or collapse one project row.

    A cached project expands with no call to `fetch`. Otherwise the row goes
    through "loading" while `fetch` runs; if it raises, the row is left
    collapsed, nothing is cached, and the exception propagates.

    Returns:
        The row's new status
    """
    rows = ss["row_state"]

    if row_status(ss, project_id) == EXPANDED:
        rows[project_id] = COLLAPSED
        return COLLAPSED

    if project_id in ss["buildings_cache"]:
        rows[project_id] = EXPANDED
        return EXPANDED

    rows[project_id] = LOADING
    try:
        buildings = fetch(project_id)
    except Exception:
        rows[project_id] = COLLAPSED
        raise

    ss["buildings_cache"][project_id] = buildings
    rows[project_id] = EXPANDED
    return EXPANDED


def collapse_all(ss: Dict[str, Any]) -> None:
    ss["row_state"] = {}


def invalidate_after_write(ss: Dict[str, Any]) -> None:
    """Drop cached buildings and collapse every row (after create/update/delete/upload or Refresh)."""
    ss["buildings_cache"] = {}
    collapse_all(ss)


# --------------------------------------------------------------------
# Pagination
# --------------------------------------------------------------------

def set_page(ss: Dict[str, Any], page: int, total_pages: Optional[int] = None) -> int:
    """Move to `page` (clamped to 1..total_pages) and collapse rows. Cache is kept."""
    page = max(1, int(page))
    if total_pages:
        page = min(page, total_pages)
    if page != ss["page"]:
        collapse_all(ss)
    ss["page"] = page
    return page


def page_window(page: int, total_pages: int, width: int = 5) -> List[int]:
    """Page numbers to show as buttons, centred on the current page."""
    if total_pages <= 0:
        return []
    width = min(width, total_pages)
    start = max(1, min(page - width // 2, total_pages - width + 1))
    return list(range(start, start + width))


# --------------------------------------------------------------------
# Debounced search
# --------------------------------------------------------------------

def propose_search(ss: Dict[str, Any], raw_term: str, now: float) -> None:
    """
    Record what is in the search box.

    Typing a new term restarts the wait; going back to the committed term
    cancels the pending one.
    """
    pending = ss["search_pending"]

    if raw_term == ss["search_committed"]:
        ss["search_pending"] = None
        return

    if pending is None or pending["term"] != raw_term:
        ss["search_pending"] = {"term": raw_term, "since": now}


def search_wait_remaining(ss: Dict[str, Any], now: float, delay: float) -> float:
    """Seconds until the pending term is due (0.0 when nothing is pending or it is due)."""
    pending = ss["search_pending"]
    if pending is None:
        return 0.0
    return max(0.0, delay - (now - pending["since"]))


def commit_search_if_due(ss: Dict[str, Any], now: float, delay: float) -> bool:
    """
    Commit the pending term once `delay` seconds passed without a change.

    Committing resets the table to page 1.

    Returns:
        True if a new term was committed
    """
    pending = ss["search_pending"]
    if pending is None or now - pending["since"] < delay:
        return False

    ss["search_pending"] = None
    ss["search_committed"] = pending["term"]
    set_page(ss, 1)
    collapse_all(ss)
    return True
