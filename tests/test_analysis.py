import unittest

from listening_insights.analysis import (
    average_features,
    radar_series,
    top_genres,
    unique_artist_ids,
)
from listening_insights.errors import EmptyResultError
from listening_insights.models import ArtistRecord, GenreCount, TrackItem


def _features(**values) -> dict:
    base = {
        "id": "t1",
        "type": "audio_features",
        "danceability": 0.5,
        "energy": 0.5,
        "valence": 0.5,
        "tempo": 120.0,
        "duration_ms": 200_000,
        "time_signature": 4,
    }
    base.update(values)
    return base


class UniqueArtistIdsTests(unittest.TestCase):
    def test_keeps_first_appearance_order_without_duplicates(self) -> None:
        tracks = [
            TrackItem("t1", ["a1", "a2"]),
            TrackItem("t2", ["a2", "a3"]),
            TrackItem("t3", ["a1"]),
        ]
        self.assertEqual(unique_artist_ids(tracks), ["a1", "a2", "a3"])

    def test_caps_at_limit(self) -> None:
        tracks = [TrackItem(f"t{i}", [f"a{i}", f"b{i}"]) for i in range(50)]

        ids = unique_artist_ids(tracks)

        self.assertEqual(len(ids), 50)
        self.assertEqual(ids[:3], ["a0", "b0", "a1"])


class AverageFeaturesTests(unittest.TestCase):
    def test_averages_numeric_features_over_non_null_vectors(self) -> None:
        vectors = [_features(danceability=0.2, energy=0.4), None, _features(danceability=0.6, energy=0.8)]

        averages = average_features(vectors)

        self.assertAlmostEqual(averages["danceability"], 0.4)
        self.assertAlmostEqual(averages["energy"], 0.6)
        self.assertAlmostEqual(averages["tempo"], 120.0)

    def test_excludes_duration_time_signature_and_non_numeric_fields(self) -> None:
        averages = average_features([_features()])

        self.assertEqual(set(averages), {"danceability", "energy", "valence", "tempo"})

    def test_single_valid_vector_is_returned_exactly(self) -> None:
        track_a = _features(danceability=0.8, energy=0.3, valence=0.65)

        averages = average_features([track_a, None])

        self.assertEqual(averages["danceability"], 0.8)
        self.assertEqual(averages["energy"], 0.3)
        self.assertEqual(averages["valence"], 0.65)

    def test_all_null_vectors_fail(self) -> None:
        with self.assertRaises(EmptyResultError) as exc:
            average_features([None, None])
        self.assertEqual(exc.exception.message, "no valid features")

    def test_empty_input_fails(self) -> None:
        with self.assertRaises(EmptyResultError):
            average_features([])


class TopGenresTests(unittest.TestCase):
    def test_counts_every_genre_of_every_artist(self) -> None:
        artists = [ArtistRecord("a1", ["pop", "rock"]), ArtistRecord("a2", ["pop"])]

        self.assertEqual(top_genres(artists), [GenreCount("pop", 2), GenreCount("rock", 1)])

    def test_ties_keep_first_seen_order(self) -> None:
        artists = [
            ArtistRecord("a1", ["jazz"]),
            ArtistRecord("a2", ["rock", "pop"]),
            ArtistRecord("a3", ["pop", "rock"]),
            ArtistRecord("a4", ["rock", "pop"]),
        ]

        result = top_genres(artists)

        self.assertEqual([g.name for g in result], ["rock", "pop", "jazz"])
        self.assertEqual([g.count for g in result], [3, 3, 1])

    def test_truncates_to_five(self) -> None:
        artists = [ArtistRecord(f"a{i}", [f"g{i}"]) for i in range(8)]

        result = top_genres(artists)

        self.assertEqual([g.name for g in result], ["g0", "g1", "g2", "g3", "g4"])

    def test_artists_without_genres_contribute_nothing(self) -> None:
        self.assertEqual(top_genres([ArtistRecord("a1", []), ArtistRecord("a2", [])]), [])


class RadarSeriesTests(unittest.TestCase):
    def test_reports_six_axes_with_missing_as_zero(self) -> None:
        series = radar_series({"danceability": 0.7, "energy": 0.5})

        self.assertEqual(len(series), 6)
        self.assertEqual(series[0], {"name": "Danceability", "value": 0.7})
        self.assertEqual(series[2], {"name": "Speechiness", "value": 0.0})


if __name__ == "__main__":
    unittest.main()
