import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from fieldvisit.client.session import SessionContext, SessionUser
from fieldvisit.schemas.enums import UserRole

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiClient:
    """
    Thin wrapper over the REST API.

    Every failure is raised as ApiError carrying the server's ``error`` text.
    A 401 on an authenticated call triggers one refresh attempt when the
    session holds a refresh token; ``on_session_change`` is called whenever
    the tokens change so the caller can persist them.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        http: Optional[requests.Session] = None,
        timeout: int = 30,
        on_session_change: Optional[Callable[[SessionContext], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.http = http or requests.Session()
        self.timeout = timeout
        self.on_session_change = on_session_change

    # ---- auth ----

    def login(self, phone: str, password: str) -> SessionUser:
        data = self._request("POST", "/api/auth/login", json={"phone": phone, "password": password}, auth=False)
        user = data["user"]
        session_user = SessionUser(
            id=user["id"],
            name=user["name"],
            phone=user["phone"],
            role=UserRole(user["role"]),
        )
        self.session.sign_in(session_user, data["access_token"], data["refresh_token"])
        self._session_changed()
        return session_user

    def logout(self) -> None:
        self.session.sign_out()
        self._session_changed()

    def refresh(self) -> bool:
        if not self.session.refresh_token:
            return False
        try:
            data = self._request(
                "POST", "/api/auth/refresh",
                json={"refresh_token": self.session.refresh_token},
                auth=False,
            )
        except ApiError as e:
            logger.info("Session refresh rejected: %s", e.message)
            return False
        self.session.update_tokens(data["access_token"], data["refresh_token"])
        self._session_changed()
        return True

    # ---- visits ----

    def submit_visit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/visits", json=payload)["visit"]

    def get_my_visits(self, loan_number: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/visits/my", params={"loan_number": loan_number})["visits"]

    def search_visits(self, loan_number: Optional[str] = None, agent_query: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if loan_number:
            params["loan_number"] = loan_number
        if agent_query:
            params["agent_query"] = agent_query
        return self._request("GET", "/api/visits/search", params=params)["visits"]

    # ---- users ----

    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/users")["users"]

    def create_user(self, name: str, phone: str, password: str, role: UserRole) -> Dict[str, Any]:
        payload = {"name": name, "phone": phone, "password": password, "role": role.value}
        return self._request("POST", "/api/users", json=payload)["user"]

    def deactivate_user(self, user_id: str) -> str:
        return self._request("PATCH", f"/api/users/{user_id}/deactivate")["message"]

    def reset_password(self, user_id: str, new_password: str) -> str:
        return self._request(
            "PATCH", f"/api/users/{user_id}/reset-password",
            json={"new_password": new_password},
        )["message"]

    # ---- audit ----

    def get_audit_logs(self, action: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"action": action} if action else None
        return self._request("GET", "/api/audit", params=params)["logs"]

    # ---- photos & location ----

    def upload_photo(self, filename: str, content_type: str, data: bytes) -> str:
        """Upload one photo through a presigned POST and return its public URL."""
        presign = self._request(
            "POST", "/api/uploads/presign",
            json={"filename": filename, "content_type": content_type},
        )
        try:
            response = self.http.post(
                presign["upload_url"],
                data=presign["fields"],
                files={"file": (filename, data, content_type)},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Failed to upload photo: {e}") from e
        if response.status_code not in (200, 201, 204):
            raise ApiError("Failed to upload photo", response.status_code)
        return presign["public_url"]

    def upload_photos(self, photos) -> List[str]:
        return [self.upload_photo(p.filename, p.content_type, p.data) for p in photos]

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        return self._request("GET", "/api/geocode/reverse", params={"lat": latitude, "lon": longitude})["address"]

    # ---- plumbing ----

    def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> Dict[str, Any]:
        response = self._send(method, path, auth, **kwargs)
        if auth and response.status_code == 401 and self.refresh():
            response = self._send(method, path, auth, **kwargs)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or "Request failed", response.status_code)
        return data

    def _send(self, method: str, path: str, auth: bool, **kwargs) -> requests.Response:
        headers = {}
        if auth:
            if not self.session.access_token:
                raise ApiError("Not authenticated", 401)
            headers["Authorization"] = f"Bearer {self.session.access_token}"
        try:
            return self.http.request(method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Network error: {e}") from e

    def _session_changed(self) -> None:
        if self.on_session_change is not None:
            self.on_session_change(self.session)
