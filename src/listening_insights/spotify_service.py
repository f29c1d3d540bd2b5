from __future__ import annotations

import logging
import warnings
from typing import Sequence

from listening_insights.fetcher import ResilientFetcher
from listening_insights.models import ArtistRecord, FetchResult, TrackItem

logger = logging.getLogger(__name__)


class SpotifyService:
    API_BASE_URL = "https://api.spotify.com/v1"

    # Documented batch ceilings of the Web API.
    TOP_ITEMS_LIMIT = 50
    AUDIO_FEATURES_BATCH_LIMIT = 100
    ARTISTS_BATCH_LIMIT = 50

    def __init__(self, fetcher: ResilientFetcher) -> None:
        self.fetcher = fetcher

    def get_top_tracks(
        self,
        access_token: str,
        refresh_token: str,
        limit: int = TOP_ITEMS_LIMIT,
        time_range: str | None = None,
    ) -> tuple[list[TrackItem], FetchResult]:
        params: dict = {"limit": min(limit, self.TOP_ITEMS_LIMIT)}
        if time_range:
            params["time_range"] = time_range
        result = self.fetcher.get(f"{self.API_BASE_URL}/me/top/tracks", access_token, refresh_token, params=params)
        items = result.body.get("items") or []
        tracks = [TrackItem.from_payload(item) for item in items if item and item.get("id")]
        logger.info("Fetched %d top tracks", len(tracks))
        return tracks, result

    def get_audio_features(
        self,
        track_ids: Sequence[str],
        access_token: str,
        refresh_token: str,
    ) -> tuple[list[dict | None], FetchResult]:
        ids = self._cap(track_ids, self.AUDIO_FEATURES_BATCH_LIMIT, "audio-features")
        result = self.fetcher.get(
            f"{self.API_BASE_URL}/audio-features", access_token, refresh_token, params={"ids": ",".join(ids)}
        )
        return list(result.body.get("audio_features") or []), result

    def get_artists(
        self,
        artist_ids: Sequence[str],
        access_token: str,
        refresh_token: str,
    ) -> tuple[list[ArtistRecord], FetchResult]:
        ids = self._cap(artist_ids, self.ARTISTS_BATCH_LIMIT, "artists")
        result = self.fetcher.get(
            f"{self.API_BASE_URL}/artists", access_token, refresh_token, params={"ids": ",".join(ids)}
        )
        # Unknown ids come back as null entries.
        artists = [ArtistRecord.from_payload(a) for a in result.body.get("artists") or [] if a]
        return artists, result

    @staticmethod
    def _cap(ids: Sequence[str], limit: int, endpoint: str) -> list[str]:
        if len(ids) > limit:
            warnings.warn(
                f"{endpoint} accepts at most {limit} ids per request; "
                f"dropping {len(ids) - limit} of {len(ids)}.",
                RuntimeWarning,
                stacklevel=3,
            )
        return list(ids[:limit])
