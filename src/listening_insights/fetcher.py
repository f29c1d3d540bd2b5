from __future__ import annotations

import logging
from typing import Any

import requests

from listening_insights.errors import ExternalFetchError
from listening_insights.models import FetchResult
from listening_insights.spotify_auth import TokenRefresher

logger = logging.getLogger(__name__)

# Spotify answers an expired or revoked bearer token with either of these.
AUTH_FAILURE_STATUSES = frozenset({401, 403})


def bearer_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


class ResilientFetcher:
    """GETs JSON from the Web API, refreshing the bearer token at most once.

    An auth failure (401/403) triggers exactly one refresh followed by exactly
    one retry of the same request. Any other failure, or a failure of the
    retry itself, is raised as ``ExternalFetchError``. Refresh failures
    propagate unchanged as ``AuthRefreshError``.
    """

    def __init__(
        self,
        refresher: TokenRefresher,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.refresher = refresher
        self.session = session or requests.Session()
        self.timeout = timeout

    def get(
        self,
        url: str,
        access_token: str,
        refresh_token: str,
        params: dict[str, Any] | None = None,
    ) -> FetchResult:
        response = self._send(url, access_token, params)
        if response.status_code not in AUTH_FAILURE_STATUSES:
            return FetchResult(body=self._parse(url, response))

        logger.info("Spotify returned %s for %s, refreshing access token", response.status_code, url)
        new_token = self.refresher.refresh(refresh_token, stale_token=access_token)
        retried = self._send(url, new_token, params)
        if retried.status_code in AUTH_FAILURE_STATUSES:
            # The new token is no good either; never hand it out again.
            self.refresher.discard(refresh_token)
        return FetchResult(body=self._parse(url, retried), access_token=new_token)

    def _send(self, url: str, access_token: str, params: dict[str, Any] | None) -> requests.Response:
        try:
            return self.session.get(url, headers=bearer_headers(access_token), params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalFetchError(f"Request to {url} failed: {exc}", url=url) from exc

    @staticmethod
    def _parse(url: str, response: requests.Response) -> dict:
        if not response.ok:
            detail = _provider_message(response)
            logger.error("Spotify request %s failed with status %s: %s", url, response.status_code, detail)
            raise ExternalFetchError(
                f"Spotify API error ({response.status_code}): {detail}",
                url=url,
                provider_status=response.status_code,
                provider_detail=detail,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalFetchError(
                f"Spotify API returned a non-JSON body for {url}", url=url, provider_status=response.status_code
            ) from exc

        # Some endpoints report errors inside a 200 body.
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            detail = str(body["error"].get("message", body["error"]))
            raise ExternalFetchError(
                f"Spotify API error: {detail}",
                url=url,
                provider_status=body["error"].get("status"),
                provider_detail=detail,
            )
        return body


def _provider_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason or ""
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", error))
    if error:
        return str(error)
    return str(payload)[:200]
