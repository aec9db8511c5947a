"""
frontend/api_client.py
Centralized API client for all backend requests.

- api_request() is the ONLY function that talks HTTP; it never raises and
  returns None when the backend cannot be reached.
- The endpoint helpers below wrap it and raise ApiRequestError on any failure,
  so callers (and st.cache_data) never see a half-successful result.
"""

import logging
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import quote

import requests

# Import config (robust fallback for different run contexts)
try:
    from frontend.config import API_PREFIX, REQUEST_TIMEOUT_SECONDS, get_api_base_url
except ModuleNotFoundError:
    from config import API_PREFIX, REQUEST_TIMEOUT_SECONDS, get_api_base_url

logger = logging.getLogger(__name__)

__all__ = ["ApiRequestError", "api_request", "get_api_base_url"]


class ApiRequestError(Exception):
    """A backend call failed: unreachable, or answered with a non-2xx status."""

    def __init__(self, operation: str, status_code: Optional[int] = None, message: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.message = message
        super().__init__(f"{operation} failed ({status_code or 'no response'}): {message}")


def api_request(
    method: Literal["GET", "POST", "PUT", "DELETE"],
    path: str,
    json: Optional[Any] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = REQUEST_TIMEOUT_SECONDS,
) -> Optional[requests.Response]:
    """
    Make an API request against {base_url}/api{path}.

    Args:
        method: HTTP method (GET, POST, PUT, DELETE)
        path: Endpoint path below /api (e.g., "/projects/summary")
        json: JSON body for POST/PUT requests
        params: Query parameters
        timeout: Request timeout in seconds

    Returns:
        Response object (any status), None on configuration/connection error
    """
    try:
        base_url = get_api_base_url()
    except (RuntimeError, ValueError) as e:
        logger.error("[API] Configuration error: %s", e)
        return None

    url = f"{base_url}{API_PREFIX}{path}"
    headers = {"Accept": "application/json"}
    if json is not None:
        headers["Content-Type"] = "application/json"

    try:
        if method == "GET":
            return requests.get(url, headers=headers, params=params, timeout=timeout)
        if method == "POST":
            return requests.post(url, json=json, headers=headers, params=params, timeout=timeout)
        if method == "PUT":
            return requests.put(url, json=json, headers=headers, params=params, timeout=timeout)
        if method == "DELETE":
            return requests.delete(url, headers=headers, params=params, timeout=timeout)
        raise ValueError(f"Unsupported HTTP method: {method}")

    except requests.exceptions.Timeout:
        logger.warning("[API] Timeout after %ss on %s %s", timeout, method, path)
        return None

    except requests.exceptions.ConnectionError:
        logger.warning("[API] Cannot connect to backend at %s (%s %s)", base_url, method, path)
        return None

    except requests.exceptions.RequestException as e:
        logger.error("[API] Unexpected error on %s %s: %s", method, path, e)
        return None


def error_message(resp: Optional[requests.Response]) -> str:
    """Best-effort `error` string from a failed response body."""
    if resp is None:
        return "Backend unreachable"
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {resp.status_code}"


def _expect_json(resp: Optional[requests.Response], operation: str) -> Any:
    if resp is None or not resp.ok:
        status = resp.status_code if resp is not None else None
        message = error_message(resp)
        logger.warning("[API] %s failed: %s %s", operation, status or "no response", message)
        raise ApiRequestError(operation, status, message)
    return resp.json()


# --------------------------------------------------------------------
# Projects
# --------------------------------------------------------------------

def fetch_project_summaries(search: str, page: int, limit: int) -> Dict[str, Any]:
    """One page of project summaries; a blank search uses the plain summary."""
    params: Dict[str, Any] = {"page": page, "limit": limit}
    if search.strip():
        params["q"] = search
        resp = api_request("GET", "/projects/search", params=params)
    else:
        resp = api_request("GET", "/projects/summary", params=params)
    return _expect_json(resp, "load projects")


def fetch_project_buildings(project_id: str) -> List[Dict[str, Any]]:
    resp = api_request("GET", f"/projects/{quote(project_id, safe='')}/buildings")
    return _expect_json(resp, "load buildings").get("result", [])


def fetch_project_info(project_id: str) -> Dict[str, Any]:
    resp = api_request("GET", f"/projects/{quote(project_id, safe='')}/info")
    return _expect_json(resp, "load project info")


def fetch_all_projects() -> List[Dict[str, Any]]:
    """Every project with its buildings (export)."""
    resp = api_request("GET", "/projects/all", timeout=max(REQUEST_TIMEOUT_SECONDS, 60))
    return _expect_json(resp, "export projects").get("result", [])


def delete_project_buildings(project_id: str) -> int:
    resp = api_request("DELETE", f"/projects/{quote(project_id, safe='')}/buildings")
    return _expect_json(resp, "delete project buildings").get("deletedCount", 0)


# --------------------------------------------------------------------
# Buildings
# --------------------------------------------------------------------

def fetch_building(building_id: str) -> Dict[str, Any]:
    resp = api_request("GET", f"/buildings/{building_id}")
    return _expect_json(resp, "load building")


def create_building(payload: Dict[str, Any]) -> str:
    resp = api_request("POST", "/buildings", json=payload)
    return _expect_json(resp, "create building")["id"]


def update_building(building_id: str, payload: Dict[str, Any]) -> None:
    resp = api_request("POST", f"/buildings/{building_id}/edit", json=payload)
    _expect_json(resp, "update building")


def delete_building(building_id: str) -> None:
    resp = api_request("DELETE", f"/buildings/{building_id}")
    _expect_json(resp, "delete building")


def upload_buildings(batch: List[Dict[str, Any]]) -> int:
    resp = api_request("POST", "/buildings/upload", json={"buildings": batch}, timeout=max(REQUEST_TIMEOUT_SECONDS, 60))
    return _expect_json(resp, "upload buildings").get("insertedCount", 0)
