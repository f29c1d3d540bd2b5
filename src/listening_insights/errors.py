"""Failure taxonomy for the insights pipeline.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer reports it with.
"""
from __future__ import annotations


class ListeningInsightsError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ConfigurationError(ListeningInsightsError):
    kind = "configuration"
    status_code = 500


class CredentialMissingError(ListeningInsightsError):
    """The caller did not supply an access/refresh credential pair."""

    kind = "credential_missing"
    status_code = 400


class AuthRefreshError(ListeningInsightsError):
    """The token endpoint rejected the refresh credential; re-authenticate."""

    kind = "auth_refresh_failed"
    status_code = 401


class DataFetchError(ListeningInsightsError):
    kind = "data_fetch_failed"
    status_code = 502


class ExternalFetchError(DataFetchError):
    """Non-auth failure from the data API, with provider detail preserved."""

    kind = "external_fetch_failed"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        provider_status: int | None = None,
        provider_detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.provider_status = provider_status
        self.provider_detail = provider_detail

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.provider_status is not None:
            payload["provider_status"] = self.provider_status
        if self.provider_detail:
            payload["provider_detail"] = self.provider_detail
        return payload


class EmptyResultError(DataFetchError):
    """Not enough listening history to compute insights."""

    kind = "empty_result"
    status_code = 422
