from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CredentialPair:
    access_token: str
    refresh_token: str


@dataclass(slots=True)
class TrackItem:
    track_id: str
    artist_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict) -> "TrackItem":
        return cls(
            track_id=payload["id"],
            artist_ids=[a["id"] for a in payload.get("artists", []) if a.get("id")],
        )


@dataclass(slots=True)
class ArtistRecord:
    artist_id: str
    genres: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict) -> "ArtistRecord":
        return cls(artist_id=payload.get("id", ""), genres=list(payload.get("genres") or []))


@dataclass(frozen=True, slots=True)
class GenreCount:
    name: str
    count: int


@dataclass(slots=True)
class FetchResult:
    body: dict
    # Set only when the request had to refresh its access credential.
    access_token: str | None = None


@dataclass(slots=True)
class ListeningInsights:
    features: dict[str, float]
    genres: list[GenreCount]
    access_token: str
