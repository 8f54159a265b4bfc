"""HTTP API client for interacting with the job board server."""
from typing import Any, Dict, List, Optional

import requests

from ..shared.errors import RemoteFailure
from . import storage


class APIClient:
    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        token = storage.get_token()
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise RemoteFailure(_detail(exc.response), status=exc.response.status_code) from exc
        except requests.RequestException as exc:
            raise RemoteFailure(f"Could not reach server: {exc}") from exc
        if not resp.content:
            return None
        return resp.json()

    def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", json=payload)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def logout(self) -> None:
        self._request("POST", "/auth/logout")

    def find_users(self, email: Optional[str] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if email:
            params["email"] = email
        return self._request("GET", "/users", params=params)

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def update_user(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/users/{user_id}", json=payload)

    def post_job(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/jobs", json=payload)

    def list_jobs(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/jobs")

    def get_job(self, job_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/jobs/{job_id}")

    def list_rooms(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/rooms")

    def open_room(self, peer_id: str) -> Dict[str, Any]:
        return self._request("POST", "/rooms", json={"peer_id": peer_id})

    def get_messages(self, room_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/rooms/{room_id}/messages")

    def send_message(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/messages", json=payload)


def _detail(response: Optional[requests.Response]) -> str:
    if response is None:
        return "Request failed"
    try:
        data = response.json()
    except ValueError:
        data = None
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    if isinstance(detail, list):
        problems = [_describe_problem(item) for item in detail]
        problems = [p for p in problems if p]
        if problems:
            return "; ".join(problems)
    return f"HTTP {response.status_code}"


def _describe_problem(item: Any) -> Optional[str]:
    """Render one FastAPI validation entry as ``field: message``."""
    if isinstance(item, str):
        return item.strip() or None
    if not isinstance(item, dict):
        return None
    msg = item.get("msg")
    if not isinstance(msg, str) or not msg.strip():
        return None
    loc = item.get("loc")
    if isinstance(loc, (list, tuple)) and loc:
        return f"{loc[-1]}: {msg.strip()}"
    return msg.strip()
