from __future__ import annotations

import logging

import requests
from requests.auth import HTTPBasicAuth
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from listening_insights.config import Settings
from listening_insights.errors import AuthRefreshError, CredentialMissingError
from listening_insights.token_cache import TokenCache

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
SCOPES = (
    "user-read-private",
    "user-read-email",
    "user-top-read",
    "user-library-read",
)


class TokenRefresher:
    """Mints new access tokens from a refresh token.

    Talks to the accounts service directly: a form-encoded POST with
    ``grant_type=refresh_token`` and HTTP Basic auth built from the client
    id/secret pair. A rejected refresh is fatal for the request; it is never
    retried here.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        cache: TokenCache | None = None,
    ) -> None:
        client_id, client_secret = settings.require_client_credentials()
        self._auth = HTTPBasicAuth(client_id, client_secret)
        self._timeout = settings.http_timeout
        self.session = session or requests.Session()
        self.cache = cache

    def refresh(self, refresh_token: str, stale_token: str | None = None) -> str:
        """Return a fresh access token for ``refresh_token``.

        A cached token is reused unless it is the same ``stale_token`` the
        provider just rejected.
        """
        if not refresh_token:
            raise CredentialMissingError("Missing refresh token")

        if self.cache is not None:
            cached = self.cache.get(refresh_token)
            if cached and cached != stale_token:
                logger.debug("Reusing cached access token")
                return cached

        access_token = self._request_access_token(refresh_token)
        if self.cache is not None:
            self.cache.set(refresh_token, access_token)
        return access_token

    def discard(self, refresh_token: str) -> None:
        if self.cache is not None:
            self.cache.invalidate(refresh_token)

    def _request_access_token(self, refresh_token: str) -> str:
        logger.info("Refreshing Spotify access token")
        try:
            response = self.session.post(
                TOKEN_URL,
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
                auth=self._auth,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise AuthRefreshError(f"Token refresh request failed: {exc}") from exc

        if not response.ok:
            logger.error("Token refresh rejected with status %s", response.status_code)
            raise AuthRefreshError(
                f"Token refresh rejected by Spotify (status {response.status_code}): {_error_detail(response)}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthRefreshError("Token refresh returned a non-JSON body") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise AuthRefreshError("Token refresh response did not include an access token")
        return access_token


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("message", error))
        description = payload.get("error_description")
        if description:
            return f"{error}: {description}" if error else str(description)
        if error:
            return str(error)
    return str(payload)[:200]


def resolve_redirect_uri(settings: Settings, origin: str | None) -> str:
    if settings.redirect_uri:
        return settings.redirect_uri
    if not origin:
        raise CredentialMissingError("No origin provided", kind="origin_missing")
    return f"{origin.rstrip('/')}/callback"


def _oauth_manager(settings: Settings, redirect_uri: str) -> SpotifyOAuth:
    client_id, client_secret = settings.require_client_credentials()
    return SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scope=" ".join(SCOPES),
        show_dialog=True,
        cache_handler=MemoryCacheHandler(),
        open_browser=False,
        requests_timeout=settings.http_timeout,
    )


def build_authorize_url(settings: Settings, redirect_uri: str) -> str:
    url = _oauth_manager(settings, redirect_uri).get_authorize_url()
    logger.info("Generated authorize URL for redirect %s", redirect_uri)
    return url


def exchange_code(settings: Settings, code: str, redirect_uri: str) -> dict:
    """Exchange an authorization code for the provider's token payload."""
    oauth = _oauth_manager(settings, redirect_uri)
    try:
        token_info = oauth.get_access_token(code, as_dict=True, check_cache=False)
    except (SpotifyOauthError, requests.RequestException) as exc:
        raise AuthRefreshError(
            f"Failed to get Spotify access token: {exc}", kind="auth_code_exchange_failed"
        ) from exc
    if not token_info or "access_token" not in token_info:
        raise AuthRefreshError("No access token received", kind="auth_code_exchange_failed")
    return token_info
