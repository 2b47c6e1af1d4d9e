"""Thin HTTP client for the lesson planner data service.

Every failure to complete a request (connection refused, DNS, timeout, a
non-2xx status or a body that is not JSON) surfaces as NetworkError. The
client never retries; that decision belongs to the caller.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from lessonplanner.core.config import API_BASE_URL, API_TOKEN, REQUEST_TIMEOUT_SECONDS
from lessonplanner.core.errors import NetworkError

logger = logging.getLogger(__name__)


class RemoteDataClient:

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token or None
        self.timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {"headers": self._headers(), "timeout": self.timeout}
        if payload is not None:
            kwargs["json"] = payload
        try:
            res = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if not 200 <= res.status_code < 300:
            raise NetworkError(f"{method} {path} returned HTTP {res.status_code}", status_code=res.status_code)
        if res.status_code == 204 or not res.content:
            return None
        try:
            return res.json()
        except ValueError as e:
            raise NetworkError(f"{method} {path} returned a non-JSON body") from e

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def login(self, username: str, password: str) -> dict:
        """Exchange credentials for a bearer token and use it for later calls."""
        data = self._request("POST", "/auth/login", {"username": username, "password": password})
        self.token = data["token"]
        return data["user"]

    # ------------------------------------------------------------------
    # Whole dataset
    # ------------------------------------------------------------------
    def export_all(self) -> dict:
        return self._request("GET", "/api/export")

    def import_all(self, dataset: dict) -> dict:
        logger.info("Sending dataset to %s", self.base_url)
        return self._request("POST", "/api/import", dataset)

    # ------------------------------------------------------------------
    # Class-scoped groups
    # ------------------------------------------------------------------
    def get_activities(self) -> List[dict]:
        return self._request("GET", "/api/activities")

    def save_activities(self, activities: List[dict]) -> Any:
        return self._request("PUT", "/api/activities", activities)

    def get_lessons(self, class_name: str) -> dict:
        return self._request("GET", f"/api/lessons/{quote(class_name)}")

    def save_lessons(self, class_name: str, lesson_data: dict) -> Any:
        return self._request("PUT", f"/api/lessons/{quote(class_name)}", lesson_data)

    def get_lesson_plans(self) -> List[dict]:
        return self._request("GET", "/api/lesson-plans")

    def save_lesson_plans(self, plans: List[dict]) -> Any:
        return self._request("PUT", "/api/lesson-plans", plans)

    def get_eyfs(self, class_name: str) -> Dict[str, List[str]]:
        return self._request("GET", f"/api/eyfs/{quote(class_name)}")

    def save_eyfs(self, class_name: str, standards: Dict[str, List[str]]) -> Any:
        return self._request("PUT", f"/api/eyfs/{quote(class_name)}", standards)

    def get_units(self, class_name: str) -> List[dict]:
        return self._request("GET", f"/api/units/{quote(class_name)}")

    def save_units(self, class_name: str, units: List[dict]) -> Any:
        return self._request("PUT", f"/api/units/{quote(class_name)}", units)
