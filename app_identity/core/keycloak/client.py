"""Low-level HTTP client for Keycloak Admin API.

Handles service account authentication, token management, and HTTP operations.
"""
from __future__ import annotations
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5
DEFAULT_TOKEN_LIFETIME = 60
TOKEN_REFRESH_LEEWAY = 10


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Client credentials grant with automatic token refresh
    - One pooled ``requests.Session`` released by ``close()``
    - Centralized error handling

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("demo", "app-client", "secret")
        response = client.get("/admin/realms/demo/users/1234")
        client.close()
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL, without the ``/realms/...`` suffix
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, Any] = {}
        self._closed = False

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate as service account and store credentials for auto-refresh.

        Args:
            auth_realm: Realm where service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self.use_service_account(auth_realm, client_id, client_secret)
        self._refresh_token()
        return self._token

    def use_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> None:
        """Store service account credentials; the token is fetched on first request."""
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._token = None
        self._token_expires_at = None

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if self._closed:
            raise KeycloakAPIError(0, "Client is closed", self.base_url)
        if not self._token and self._auth_params:
            self._refresh_token()
        if not self._token or not self._token_expires_at:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")

        # Refresh if token expired or expiring soon
        if datetime.now() >= self._token_expires_at - timedelta(seconds=TOKEN_REFRESH_LEEWAY):
            self._refresh_token()

    def _refresh_token(self) -> None:
        payload = self._get_service_account_token(
            self._auth_params["auth_realm"],
            self._auth_params["client_id"],
            self._auth_params["client_secret"],
        )
        self._token = payload["access_token"]
        lifetime = payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME
        self._token_expires_at = datetime.now() + timedelta(seconds=int(lifetime))

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/admin/realms/demo/users/1234")
            params: Query parameters
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"

        resp = self._session.request("GET", url, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._closed:
            return
        self._closed = True
        self._token = None
        self._session.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_service_account_token(self, auth_realm: str, client_id: str, client_secret: str) -> Dict[str, Any]:
        """Fetch a service account token using client credentials flow."""
        url = f"{self.base_url}/realms/{auth_realm}/protocol/openid-connect/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        }
        resp = self._session.request("POST", url, data=data, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp.json()

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)
