"""Google OAuth login: authorization URL, token exchange, user profile and revocation"""

import secrets
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from rich.console import Console

from finanzen.config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, REDIRECT_URI, SCOPES
from finanzen.exceptions import AuthError

console = Console()

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
USERINFO_URI = "https://www.googleapis.com/oauth2/v3/userinfo"
REVOKE_URI = "https://oauth2.googleapis.com/revoke"

# Seconds a started login may wait for its callback
PENDING_LOGIN_TTL = 600
MAX_PENDING_LOGINS = 1000


@dataclass(frozen=True)
class Token:
    access_token: str
    expiry: Optional[datetime] = None

    def credentials(self) -> Credentials:
        return Credentials(token=self.access_token, expiry=self.expiry)


@dataclass(frozen=True)
class UserProfile:
    name: str
    email: str
    picture: str = ""


class GoogleAuth:
    """
    Web-server OAuth flow. Pending logins are kept in memory, keyed by the
    ``state`` parameter, until the callback exchanges the code. Logins not
    completed within ``PENDING_LOGIN_TTL`` seconds are forgotten.
    """

    def __init__(self, client_id: str | None = None, client_secret: str | None = None,
                 redirect_uri: str | None = None):
        self.client_id = client_id or GOOGLE_CLIENT_ID
        self.client_secret = client_secret or GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or REDIRECT_URI
        # state -> (created at, PKCE code verifier), oldest first
        self._pending: Dict[str, Tuple[float, Optional[str]]] = {}

    def _purge_pending(self) -> None:
        cutoff = time.monotonic() - PENDING_LOGIN_TTL
        for state in [s for s, (created, _) in self._pending.items() if created < cutoff]:
            del self._pending[state]

    def _flow(self, state: Optional[str] = None, code_verifier: Optional[str] = None) -> Flow:
        client_config = {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
            state=state,
            code_verifier=code_verifier,
        )

    def authorization_url(self, state: Optional[str] = None) -> Tuple[str, str]:
        """Returns the Google consent URL and the state to expect on the callback."""
        if not self.client_id:
            raise AuthError("GOOGLE_CLIENT_ID is not configured")
        flow = self._flow(state=state or secrets.token_urlsafe(16))
        url, state = flow.authorization_url(access_type="online", prompt="consent")

        self._purge_pending()
        while len(self._pending) >= MAX_PENDING_LOGINS:
            del self._pending[next(iter(self._pending))]
        self._pending[state] = (time.monotonic(), flow.code_verifier)
        return url, state

    def request_access_token(self, code: str, state: str) -> Token:
        """Exchanges the authorization code returned to the callback for a token."""
        self._purge_pending()
        if state not in self._pending:
            raise AuthError("Unknown or expired login state")
        _, code_verifier = self._pending.pop(state)
        flow = self._flow(state=state, code_verifier=code_verifier)
        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException) as e:
            console.print(f"[red]Google token exchange failed: {e}[/red]")
            raise AuthError(f"Token exchange failed: {e}") from e

        creds = flow.credentials
        return Token(access_token=creds.token, expiry=creds.expiry)

    def fetch_user_profile(self, token: Token) -> UserProfile:
        session = AuthorizedSession(token.credentials())
        try:
            response = session.get(USERINFO_URI)
        except requests.RequestException as e:
            raise AuthError(f"Profile lookup failed: {e}") from e
        if not response.ok:
            raise AuthError(f"Profile lookup failed: {response.status_code}")

        profile = response.json()
        return UserProfile(
            name=profile.get("name", ""),
            email=profile.get("email", ""),
            picture=profile.get("picture", ""),
        )

    def revoke(self, token: Token) -> None:
        try:
            response = requests.post(
                REVOKE_URI,
                params={"token": token.access_token},
                headers={"content-type": "application/x-www-form-urlencoded"},
                timeout=10,
            )
        except requests.RequestException as e:
            raise AuthError(f"Token revocation failed: {e}") from e
        if response.status_code != 200:
            raise AuthError(f"Token revocation failed: {response.status_code}")


class MockAuth:
    """Offline stand-in for GoogleAuth used in mock mode"""

    def __init__(self):
        self.revoked = []

    def authorization_url(self, state: Optional[str] = None) -> Tuple[str, str]:
        state = state or "mock-state"
        return f"http://localhost:8000/api/auth/callback?code=mock-code&state={state}", state

    def request_access_token(self, code: str, state: str) -> Token:
        console.print(f"[bold cyan][Mock][/bold cyan] Exchanging code {code} for a token.")
        return Token(access_token="mock-token")

    def fetch_user_profile(self, token: Token) -> UserProfile:
        return UserProfile(name="Alex Doe", email="alex.doe@example.com",
                           picture="https://via.placeholder.com/40")

    def revoke(self, token: Token) -> None:
        self.revoked.append(token.access_token)
