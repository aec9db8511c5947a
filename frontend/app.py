# frontend/app.py
# Building inspection tracker - Project table
#
# Run from repo root: streamlit run frontend/app.py
# Or from frontend folder: streamlit run app.py

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

# Import environment config (robust fallback for different run contexts)
try:
    from frontend.config import ENV, IS_LOCAL, PAGE_LIMIT, SEARCH_DEBOUNCE_SECONDS, configure_logging, get_api_base_url
except ModuleNotFoundError:
    from config import ENV, IS_LOCAL, PAGE_LIMIT, SEARCH_DEBOUNCE_SECONDS, configure_logging, get_api_base_url

# Import centralized API client
try:
    from frontend import api_client
    from frontend.api_client import ApiRequestError
except ModuleNotFoundError:
    import api_client
    from api_client import ApiRequestError

try:
    from frontend.table_state import (
        LOADING, collapse_all, commit_search_if_due, init_table_state, invalidate_after_write,
        is_expanded, page_window, propose_search, row_status, search_wait_remaining, set_page, toggle_row,
        cached_buildings,
    )
    from frontend.transfer import (
        BUILDING_FIELDS, UploadError, export_csv_bytes, form_payload, parse_upload, rows_missing_required,
    )
except ModuleNotFoundError:
    from table_state import (
        LOADING, collapse_all, commit_search_if_due, init_table_state, invalidate_after_write,
        is_expanded, page_window, propose_search, row_status, search_wait_remaining, set_page, toggle_row,
        cached_buildings,
    )
    from transfer import (
        BUILDING_FIELDS, UploadError, export_csv_bytes, form_payload, parse_upload, rows_missing_required,
    )

st.set_page_config(page_title="Inspection Tracker", page_icon="🏢", layout="wide")

configure_logging()
logger = logging.getLogger(__name__)


# --------------------------------------------------------------------
# State helpers
# --------------------------------------------------------------------


def init_state() -> None:
    ss = st.session_state
    init_table_state(ss, PAGE_LIMIT)

    # Deferred UI actions (applied on the next run, before widgets exist)
    ss.setdefault("_toasts", [])
    ss.setdefault("_dialog", None)
    ss.setdefault("_export_csv", None)


init_state()

ss = st.session_state


def notify(message: str, icon: str = "✅") -> None:
    """Queue a toast; shown at the top of the next run so it survives st.rerun()."""
    ss["_toasts"].append((message, icon))


def notify_error(operation: str, err: ApiRequestError) -> None:
    logger.warning("[UI] %s failed: %s", operation, err)
    notify(f"Failed to {operation}. Please try again.", "❌")


def flush_toasts() -> None:
    for message, icon in ss.pop("_toasts", []):
        st.toast(message, icon=icon)
    ss["_toasts"] = []


def open_dialog(kind: str, **params: Any) -> None:
    ss["_dialog"] = {"kind": kind, **params}


def after_write() -> None:
    """Any successful write: drop every client-side read cache and collapse rows."""
    load_summaries.clear()
    invalidate_after_write(ss)
    ss["_export_csv"] = None


# --------------------------------------------------------------------
# Data loading
# --------------------------------------------------------------------


@st.cache_data(show_spinner=False, ttl=300)
def load_summaries(search: str, page: int, limit: int) -> Dict[str, Any]:
    # Raises ApiRequestError, so failures are never cached
    return api_client.fetch_project_summaries(search, page, limit)


# --------------------------------------------------------------------
# Formatting
# --------------------------------------------------------------------


def format_area(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return "—"
    return f"{value:,.0f}"


def format_date(value: Optional[str]) -> str:
    if not value:
        return "—"
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return str(value)


# --------------------------------------------------------------------
# Callbacks (run before the next script run)
# --------------------------------------------------------------------


def on_toggle_row(project_id: str) -> None:
    try:
        toggle_row(ss, project_id, api_client.fetch_project_buildings)
    except ApiRequestError as e:
        notify_error("load buildings", e)


def on_page(page: int, total_pages: int) -> None:
    set_page(ss, page, total_pages)


def on_refresh() -> None:
    after_write()
    notify("Data refreshed", "🔄")


# --------------------------------------------------------------------
# Dialogs
# --------------------------------------------------------------------


def render_building_fields(prefix: str, record: Dict[str, Any]) -> Dict[str, Any]:
    """Input widgets for every known field, prefilled from `record`."""
    values: Dict[str, Any] = {}
    col_a, col_b = st.columns(2)
    for i, (name, label, kind) in enumerate(BUILDING_FIELDS):
        target = col_a if i % 2 == 0 else col_b
        key = f"{prefix}_{name}"
        current = record.get(name)
        required = name in ("projectId", "buildingName")
        label_text = f"{label} *" if required else label

        with target:
            if kind == "number":
                values[name] = st.number_input(
                    label_text, value=float(current) if current is not None else None, key=key, format="%.2f"
                )
            elif kind == "int":
                values[name] = st.number_input(
                    label_text, value=int(current) if current is not None else None, step=1, key=key, format="%d"
                )
            elif kind == "long":
                values[name] = st.text_area(label_text, value=current or "", key=key, height=80)
            elif kind == "date":
                values[name] = st.text_input(label_text, value=current or "", key=key, placeholder="YYYY-MM-DD")
            else:
                values[name] = st.text_input(label_text, value=current or "", key=key)
    return values


@st.dialog("Add Building", width="large")
def add_building_dialog(project_id: str = "", project_name: str = "") -> None:
    prefill = {"projectId": project_id, "projectName": project_name}
    with st.form("add_building_form"):
        values = render_building_fields("add", prefill)
        submitted = st.form_submit_button("Create", type="primary")

    if not submitted:
        return

    payload = form_payload(values)
    if not payload.get("projectId") or not payload.get("buildingName"):
        st.error("Project ID and Building Name are required.")
        return

    try:
        api_client.create_building(payload)
    except ApiRequestError as e:
        logger.warning("[UI] create building failed: %s", e)
        st.toast("Failed to create building. Please try again.", icon="❌")
        return

    after_write()
    notify(f"Building '{payload['buildingName']}' created")
    st.rerun()


@st.dialog("Edit Building", width="large")
def edit_building_dialog(building_id: str) -> None:
    try:
        building = api_client.fetch_building(building_id)
    except ApiRequestError as e:
        logger.warning("[UI] load building failed: %s", e)
        st.error("Failed to load building.")
        return

    with st.form("edit_building_form"):
        values = render_building_fields(f"edit_{building_id}", building)
        submitted = st.form_submit_button("Save", type="primary")

    if not submitted:
        return

    payload = form_payload(values, building)
    if "buildingName" in payload and not payload["buildingName"]:
        st.error("Building Name cannot be empty.")
        return
    if not payload:
        st.info("No changes to save.")
        return

    try:
        api_client.update_building(building_id, payload)
    except ApiRequestError as e:
        logger.warning("[UI] update building failed: %s", e)
        st.toast("Failed to update building. Please try again.", icon="❌")
        return

    after_write()
    notify("Building updated")
    st.rerun()


@st.dialog("Delete Building")
def delete_building_dialog(building_id: str, building_name: str) -> None:
    st.warning(f"Delete **{building_name}**? This cannot be undone.")
    col1, col2 = st.columns(2)
    if col1.button("Delete", type="primary", key="confirm_delete_building"):
        try:
            api_client.delete_building(building_id)
        except ApiRequestError as e:
            logger.warning("[UI] delete building failed: %s", e)
            st.toast("Failed to delete building. Please try again.", icon="❌")
            return
        after_write()
        notify(f"Building '{building_name}' deleted")
        st.rerun()
    if col2.button("Cancel", key="cancel_delete_building"):
        st.rerun()


@st.dialog("Delete All Buildings")
def delete_project_dialog(project_id: str, project_name: str) -> None:
    try:
        info = api_client.fetch_project_info(project_id)
        count = info.get("totalBuildings", 0)
    except ApiRequestError as e:
        # The project may already be empty; show what we can
        logger.info("[UI] project info unavailable for %s: %s", project_id, e)
        count = 0

    label = f"{project_id} ({project_name})" if project_name else project_id
    st.warning(f"Delete all **{count}** building(s) in project **{label}**? This cannot be undone.")
    col1, col2 = st.columns(2)
    if col1.button("Delete all", type="primary", key="confirm_delete_project"):
        try:
            deleted = api_client.delete_project_buildings(project_id)
        except ApiRequestError as e:
            logger.warning("[UI] delete project buildings failed: %s", e)
            st.toast("Failed to delete buildings. Please try again.", icon="❌")
            return
        after_write()
        notify(f"Deleted {deleted} building(s) from {project_id}")
        st.rerun()
    if col2.button("Cancel", key="cancel_delete_project"):
        st.rerun()


@st.dialog("Upload Buildings", width="large")
def upload_dialog() -> None:
    st.caption("JSON array of building objects, or CSV with projectId, buildingName, ... headers.")
    uploaded = st.file_uploader("File", type=["json", "csv"], key="upload_file")
    if uploaded is None:
        return

    try:
        records = parse_upload(uploaded.name, uploaded.getvalue())
    except UploadError as e:
        st.error(str(e))
        return

    if not records:
        st.warning("The file contains no buildings.")
        return

    st.dataframe(pd.DataFrame(records).head(20), use_container_width=True, hide_index=True)
    st.caption(f"{len(records)} building(s) in file")

    missing = rows_missing_required(records)
    if missing:
        shown = ", ".join(str(i) for i in missing[:10])
        st.error(f"Rows missing projectId or buildingName: {shown}{'…' if len(missing) > 10 else ''}")
        return

    if st.button("Upload", type="primary", key="confirm_upload"):
        try:
            inserted = api_client.upload_buildings(records)
        except ApiRequestError as e:
            logger.warning("[UI] upload failed: %s", e)
            st.error(f"Upload failed: {e.message}")
            return
        after_write()
        notify(f"Uploaded {inserted} building(s)")
        st.rerun()


def render_pending_dialog() -> None:
    dialog = ss.pop("_dialog", None)
    ss["_dialog"] = None
    if not dialog:
        return

    kind = dialog.pop("kind")
    if kind == "add":
        add_building_dialog(**dialog)
    elif kind == "edit":
        edit_building_dialog(**dialog)
    elif kind == "delete":
        delete_building_dialog(**dialog)
    elif kind == "delete_project":
        delete_project_dialog(**dialog)
    elif kind == "upload":
        upload_dialog()


# --------------------------------------------------------------------
# Page sections
# --------------------------------------------------------------------


def render_header() -> None:
    st.markdown("## 🏢 Building Inspections")
    if IS_LOCAL:
        st.caption(f"Environment: {ENV} · Backend: {get_api_base_url()}")

    col1, col2, col3, col4 = st.columns([1, 1, 1, 1])
    col1.button("➕ Add Building", on_click=open_dialog, args=("add",), use_container_width=True)
    col2.button("📤 Upload", on_click=open_dialog, args=("upload",), use_container_width=True)
    col3.button("🔄 Refresh", on_click=on_refresh, use_container_width=True)

    with col4:
        if ss.get("_export_csv") is None:
            if st.button("📥 Export CSV", use_container_width=True):
                try:
                    with st.spinner("Preparing export..."):
                        ss["_export_csv"] = export_csv_bytes(api_client.fetch_all_projects())
                except ApiRequestError as e:
                    notify_error("export projects", e)
                    flush_toasts()
                else:
                    st.rerun()
        else:
            st.download_button(
                "⬇️ Download CSV",
                data=ss["_export_csv"],
                file_name=f"inspections_{datetime.now():%Y%m%d_%H%M}.csv",
                mime="text/csv",
                use_container_width=True,
            )


def render_search() -> str:
    """Search box with debounce; returns the committed term."""
    raw = st.text_input(
        "Search projects",
        key="search_input",
        placeholder="Project ID or name",
        label_visibility="collapsed",
    )
    propose_search(ss, raw, time.monotonic())

    remaining = search_wait_remaining(ss, time.monotonic(), SEARCH_DEBOUNCE_SECONDS)
    if remaining > 0:
        # A newer keystroke interrupts this run, which restarts the wait
        time.sleep(remaining)
    commit_search_if_due(ss, time.monotonic(), SEARCH_DEBOUNCE_SECONDS)

    return ss["search_committed"]


def render_buildings(project_id: str) -> None:
    buildings = cached_buildings(ss, project_id) or []
    if not buildings:
        st.caption("No buildings in this project.")
        return

    for building in buildings:
        building_id = building["id"]
        name = building.get("buildingName", "")
        cols = st.columns([3, 4, 2, 2, 2, 1, 1])
        cols[0].markdown(f"**{name}**")
        cols[1].write(building.get("address") or "—")
        cols[2].write(format_area(building.get("areaClient")))
        cols[3].write(format_area(building.get("qualifyingArea")))
        cols[4].write(format_date(building.get("inspectionDate")))
        cols[5].button(
            "✏️", key=f"edit_{building_id}", help="Edit",
            on_click=open_dialog, args=("edit",), kwargs={"building_id": building_id},
        )
        cols[6].button(
            "🗑️", key=f"delete_{building_id}", help="Delete",
            on_click=open_dialog, args=("delete",),
            kwargs={"building_id": building_id, "building_name": name},
        )


def render_table(projects: List[Dict[str, Any]]) -> None:
    header = st.columns([1, 3, 4, 2, 2, 2, 1, 1])
    for col, title in zip(header, ["", "Project ID", "Project Name", "Buildings", "Total Area", "Qualifying Area", "", ""]):
        col.markdown(f"**{title}**")

    for project in projects:
        project_id = project.get("projectId") or ""
        project_name = project.get("projectName") or ""
        status = row_status(ss, project_id)
        arrow = "⏳" if status == LOADING else ("▾" if is_expanded(ss, project_id) else "▸")

        cols = st.columns([1, 3, 4, 2, 2, 2, 1, 1])
        cols[0].button(arrow, key=f"toggle_{project_id}", on_click=on_toggle_row, args=(project_id,))
        cols[1].write(project_id or "—")
        cols[2].write(project_name or "—")
        cols[3].write(str(project.get("buildingCount", 0)))
        cols[4].write(format_area(project.get("totalArea")))
        cols[5].write(format_area(project.get("totalQualifyingArea")))
        cols[6].button(
            "➕", key=f"add_{project_id}", help="Add building to this project",
            on_click=open_dialog, args=("add",),
            kwargs={"project_id": project_id, "project_name": project_name},
        )
        cols[7].button(
            "🗑️", key=f"delete_project_{project_id}", help="Delete all buildings",
            on_click=open_dialog, args=("delete_project",),
            kwargs={"project_id": project_id, "project_name": project_name},
        )

        if is_expanded(ss, project_id):
            with st.container(border=True):
                render_buildings(project_id)


def render_pagination(pagination: Dict[str, Any]) -> None:
    page = pagination.get("page", 1)
    total_pages = pagination.get("totalPages", 0)
    total = pagination.get("total", 0)

    st.caption(f"Page {page} of {max(total_pages, 1)} · {total} project(s)")
    if total_pages <= 1:
        return

    numbers = page_window(page, total_pages)
    cols = st.columns(len(numbers) + 2)
    cols[0].button("‹ Prev", disabled=page <= 1, on_click=on_page, args=(page - 1, total_pages), key="page_prev")
    for col, number in zip(cols[1:-1], numbers):
        col.button(
            str(number), key=f"page_{number}", type="primary" if number == page else "secondary",
            on_click=on_page, args=(number, total_pages),
        )
    cols[-1].button("Next ›", disabled=page >= total_pages, on_click=on_page, args=(page + 1, total_pages), key="page_next")


def main() -> None:
    flush_toasts()
    render_pending_dialog()
    render_header()

    search = render_search()

    try:
        with st.spinner("Loading projects..."):
            data = load_summaries(search, ss["page"], ss["page_limit"])
    except ApiRequestError as e:
        logger.warning("[UI] load projects failed: %s", e)
        st.error("Failed to load projects. Check the backend connection and retry.")
        st.button("Retry", on_click=collapse_all, args=(ss,))
        return

    projects = data.get("result", [])
    if not projects:
        st.info("No projects match your search." if search.strip() else "No projects yet. Add or upload buildings to get started.")
    else:
        render_table(projects)

    render_pagination(data.get("pagination", {}))


if __name__ == "__main__":
    main()