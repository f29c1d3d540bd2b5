import unittest
import warnings
from unittest.mock import MagicMock

from listening_insights.models import ArtistRecord, FetchResult, TrackItem
from listening_insights.spotify_service import SpotifyService


def _make_service(body: dict, access_token: str | None = None) -> tuple[SpotifyService, MagicMock]:
    fetcher = MagicMock()
    fetcher.get.return_value = FetchResult(body=body, access_token=access_token)
    return SpotifyService(fetcher), fetcher


class TopTracksTests(unittest.TestCase):
    def test_requests_fifty_top_tracks(self) -> None:
        body = {"items": [{"id": "t1", "artists": [{"id": "a1"}, {"id": "a2"}]}]}
        service, fetcher = _make_service(body)

        tracks, result = service.get_top_tracks("access", "refresh")

        self.assertEqual(tracks, [TrackItem("t1", ["a1", "a2"])])
        self.assertIsNone(result.access_token)
        fetcher.get.assert_called_once_with(
            "https://api.spotify.com/v1/me/top/tracks", "access", "refresh", params={"limit": 50}
        )

    def test_limit_is_capped_and_time_range_forwarded(self) -> None:
        service, fetcher = _make_service({"items": []})

        service.get_top_tracks("access", "refresh", limit=80, time_range="short_term")

        self.assertEqual(fetcher.get.call_args.kwargs["params"], {"limit": 50, "time_range": "short_term"})

    def test_missing_items_means_no_tracks(self) -> None:
        service, _ = _make_service({})
        tracks, _ = service.get_top_tracks("access", "refresh")
        self.assertEqual(tracks, [])


class BatchLookupTests(unittest.TestCase):
    def test_audio_features_joins_ids_with_commas(self) -> None:
        service, fetcher = _make_service({"audio_features": [{"energy": 0.1}, None]}, access_token="new")

        vectors, result = service.get_audio_features(["t1", "t2"], "access", "refresh")

        self.assertEqual(vectors, [{"energy": 0.1}, None])
        self.assertEqual(result.access_token, "new")
        self.assertEqual(fetcher.get.call_args.args[0], "https://api.spotify.com/v1/audio-features")
        self.assertEqual(fetcher.get.call_args.kwargs["params"], {"ids": "t1,t2"})

    def test_artists_skips_null_entries(self) -> None:
        body = {"artists": [{"id": "a1", "genres": ["pop"]}, None, {"id": "a3", "genres": None}]}
        service, fetcher = _make_service(body)

        artists, _ = service.get_artists(["a1", "a2", "a3"], "access", "refresh")

        self.assertEqual(artists, [ArtistRecord("a1", ["pop"]), ArtistRecord("a3", [])])
        self.assertEqual(fetcher.get.call_args.kwargs["params"], {"ids": "a1,a2,a3"})

    def test_artists_batch_is_capped_with_warning(self) -> None:
        service, fetcher = _make_service({"artists": []})
        ids = [f"a{i}" for i in range(60)]

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            service.get_artists(ids, "access", "refresh")

        sent = fetcher.get.call_args.kwargs["params"]["ids"].split(",")
        self.assertEqual(len(sent), SpotifyService.ARTISTS_BATCH_LIMIT)
        self.assertTrue(any("at most 50" in str(w.message) for w in caught))


if __name__ == "__main__":
    unittest.main()
