"""Turns a credential pair into averaged audio features and top genres."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import requests

from listening_insights.analysis import average_features, radar_series, top_genres, unique_artist_ids
from listening_insights.config import Settings
from listening_insights.errors import CredentialMissingError, EmptyResultError
from listening_insights.fetcher import ResilientFetcher
from listening_insights.models import CredentialPair, FetchResult, ListeningInsights
from listening_insights.spotify_auth import TokenRefresher
from listening_insights.spotify_service import SpotifyService
from listening_insights.token_cache import TokenCache

logger = logging.getLogger(__name__)


class InsightsAggregator:
    """Runs the three dependent fetches and reduces them.

    Each fetch may refresh the access token once; a refreshed token is threaded
    forward so later fetches in the same run do not refresh again. Any failure
    aborts the whole run.
    """

    def __init__(self, service: SpotifyService, concurrent: bool = True) -> None:
        self.service = service
        self.concurrent = concurrent

    def aggregate(self, credentials: CredentialPair) -> ListeningInsights:
        if not credentials.access_token or not credentials.refresh_token:
            raise CredentialMissingError("Missing tokens")

        refresh_token = credentials.refresh_token
        tracks, result = self.service.get_top_tracks(credentials.access_token, refresh_token)
        access_token = _latest(credentials.access_token, result)
        if not tracks:
            raise EmptyResultError("no tracks")

        track_ids = [t.track_id for t in tracks]
        artist_ids = unique_artist_ids(tracks, limit=SpotifyService.ARTISTS_BATCH_LIMIT)
        logger.info("Looking up %d tracks and %d artists", len(track_ids), len(artist_ids))

        if self.concurrent:
            # Both lookups share the session; they only issue GETs with per-call headers.
            with ThreadPoolExecutor(max_workers=2) as pool:
                features_future = pool.submit(self.service.get_audio_features, track_ids, access_token, refresh_token)
                artists_future = pool.submit(self.service.get_artists, artist_ids, access_token, refresh_token)
                vectors, features_result = features_future.result()
                artists, artists_result = artists_future.result()
        else:
            vectors, features_result = self.service.get_audio_features(track_ids, access_token, refresh_token)
            access_token = _latest(access_token, features_result)
            artists, artists_result = self.service.get_artists(artist_ids, access_token, refresh_token)

        access_token = _latest(_latest(access_token, features_result), artists_result)

        return ListeningInsights(
            features=average_features(vectors),
            genres=top_genres(artists),
            access_token=access_token,
        )


def _latest(access_token: str, result: FetchResult) -> str:
    return result.access_token or access_token


def assemble_response(insights: ListeningInsights, supplied_access_token: str) -> dict:
    """Build the outward payload; the token is included only when rotated."""
    payload: dict = {
        "features": insights.features,
        "genres": [{"name": g.name, "count": g.count} for g in insights.genres],
        "radar": radar_series(insights.features),
    }
    if insights.access_token != supplied_access_token:
        payload["access_token"] = insights.access_token
    return payload


def build_aggregator(
    settings: Settings,
    session: requests.Session,
    cache: TokenCache | None = None,
) -> InsightsAggregator:
    refresher = TokenRefresher(settings, session=session, cache=cache)
    fetcher = ResilientFetcher(refresher, session=session, timeout=settings.http_timeout)
    return InsightsAggregator(SpotifyService(fetcher))


def aggregate(
    access_token: str,
    refresh_token: str,
    settings: Settings | None = None,
    cache: TokenCache | None = None,
) -> dict:
    if not access_token or not refresh_token:
        raise CredentialMissingError("Missing tokens")
    settings = settings or Settings.from_env()
    with requests.Session() as session:
        aggregator = build_aggregator(settings, session, cache=cache)
        insights = aggregator.aggregate(CredentialPair(access_token, refresh_token))
    return assemble_response(insights, access_token)
