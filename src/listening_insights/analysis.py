from __future__ import annotations

from collections import Counter
from typing import Iterable

from listening_insights.errors import EmptyResultError
from listening_insights.models import ArtistRecord, GenreCount, TrackItem

# Not comparable as taste signals, so never averaged.
EXCLUDED_FEATURES = frozenset({"duration_ms", "time_signature"})

RADAR_FEATURES = (
    ("danceability", "Danceability"),
    ("energy", "Energy"),
    ("speechiness", "Speechiness"),
    ("acousticness", "Acousticness"),
    ("liveness", "Liveness"),
    ("valence", "Valence"),
)

TOP_GENRE_LIMIT = 5


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def unique_artist_ids(tracks: Iterable[TrackItem], limit: int = 50) -> list[str]:
    """Distinct artist ids in first-appearance order, capped at ``limit``."""
    seen: dict[str, None] = {}
    for track in tracks:
        for artist_id in track.artist_ids:
            seen.setdefault(artist_id, None)
    return list(seen)[:limit]


def average_features(vectors: Iterable[dict | None]) -> dict[str, float]:
    valid = [v for v in vectors if v]
    if not valid:
        raise EmptyResultError("no valid features")

    totals: dict[str, float] = {}
    for vector in valid:
        for key, value in vector.items():
            if key in EXCLUDED_FEATURES or not _is_number(value):
                continue
            totals[key] = totals.get(key, 0.0) + float(value)

    count = len(valid)
    return {key: total / count for key, total in totals.items()}


def top_genres(artists: Iterable[ArtistRecord], limit: int = TOP_GENRE_LIMIT) -> list[GenreCount]:
    counts = Counter(genre for artist in artists for genre in artist.genres)
    # most_common keeps first-seen order among equal counts.
    return [GenreCount(name=name, count=count) for name, count in counts.most_common(limit)]


def radar_series(features: dict[str, float]) -> list[dict]:
    return [{"name": label, "value": float(features.get(key, 0.0))} for key, label in RADAR_FEATURES]
