"""Playlist valuation and contributor earnings calculation"""
import logging
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from playlist_earnings.config import MAX_REPUTATION_SCORE
from playlist_earnings.models.earnings import (
    ArtistEarning, EarningsSnapshot, PlaylistValue, RatingSignal, Scored, Unavailable
)

logger = logging.getLogger(__name__)

class EarningsCalculator:
    """
    Computes playlist value, contributor shares and claimable amounts.

    Holds no state between calls: every value is recomputed from the
    aggregates the store and reputation source return at call time.

    PV = (songs x minutes) x max(collectors, 1) x rating
    """

    def __init__(self, store, reputation, default_rating: float = 1.0, artist_share: float = 0.5):
        """
        Args:
            store: Playlist/song and collection store (see StorageService)
            reputation: Object with get_signal(playlist_id) -> RatingSignal
            default_rating: Rating used when the reputation source is unavailable
            artist_share: Fraction of a claim credited to the playlist's artists
        """
        self.store = store
        self.reputation = reputation
        self.default_rating = default_rating
        self.artist_share = artist_share

    def calculate_playlist_value(self, playlist_id: str) -> PlaylistValue:
        """
        Calculate the current value of a playlist

        Raises:
            PlaylistNotFound: If the playlist does not exist
        """
        songs = self.store.get_playlist_songs(playlist_id)
        songs_count = len(songs)
        total_minutes = sum(song.duration_seconds for song in songs) / 60

        try:
            collectors_count = self.store.count_collectors(playlist_id)
        except SQLAlchemyError as e:
            logger.warning(f"Collector count unavailable for playlist {playlist_id}, using 0: {e}")
            collectors_count = 0

        signal = self.reputation.get_signal(playlist_id)
        rating = self.derive_rating(signal)

        value = self.calculate_value(songs_count, total_minutes, collectors_count, rating)
        logger.debug(
            f"Playlist {playlist_id}: {songs_count} songs, {total_minutes:.2f} min, "
            f"{collectors_count} collectors, rating {rating:.3f} -> value {value:.4f}"
        )

        return PlaylistValue(
            value=value,
            songs_count=songs_count,
            total_minutes=total_minutes,
            collectors_count=collectors_count,
            rating=rating,
            rating_available=isinstance(signal, Scored),
            calculated_at=datetime.now(timezone.utc)
        )

    def calculate_value(self, songs_count: int, total_minutes: float, collectors_count: int, rating: float) -> float:
        """Apply the value formula. An uncollected playlist counts as one collector."""
        return (songs_count * total_minutes) * max(collectors_count, 1) * rating

    def derive_rating(self, signal: RatingSignal) -> float:
        """
        Map a reputation signal to a rating multiplier

        Scale:
        - score -100 = 0.0
        - score 0 = 1.0
        - score 100 = 2.0
        - Unavailable = default rating
        """
        if isinstance(signal, Unavailable):
            logger.warning(f"Reputation unavailable ({signal.reason}), using default rating {self.default_rating}")
            return self.default_rating

        score = max(-MAX_REPUTATION_SCORE, min(MAX_REPUTATION_SCORE, signal.score))
        return 1 + (score / MAX_REPUTATION_SCORE)

    def calculate_share_coefficient(self, songs_contributed: int, total_songs: int) -> float:
        """Contributor's share of the playlist, proportional to songs added"""
        if total_songs == 0:
            return 0.0
        return songs_contributed / total_songs

    def calculate_entitlement(self, playlist_value: float, share_coefficient: float) -> float:
        return playlist_value * share_coefficient

    def calculate_claimable_amount(self, current_entitlement: float, last_claimed_value: float) -> float:
        """Entitlement gained since the last claim, floored at zero"""
        return max(0.0, current_entitlement - last_claimed_value)

    def calculate_snapshot(self, playlist_id: str, songs_contributed: int, last_claimed_value: float) -> EarningsSnapshot:
        """Compose value, share, entitlement and claimable amount for one contributor"""
        playlist = self.calculate_playlist_value(playlist_id)
        share = self.calculate_share_coefficient(songs_contributed, playlist.songs_count)
        entitlement = self.calculate_entitlement(playlist.value, share)
        claimable = self.calculate_claimable_amount(entitlement, last_claimed_value)

        return EarningsSnapshot(
            playlist=playlist,
            songs_contributed=songs_contributed,
            share_coefficient=share,
            current_entitlement=entitlement,
            last_claimed_value=last_claimed_value,
            claimable_amount=claimable
        )

    def calculate_artist_earnings(self, artist_song_counts: Dict[str, int], claim_amount: float) -> List[ArtistEarning]:
        """Split the artist share of a claim across artists by song credits"""
        total_credits = sum(artist_song_counts.values())
        if total_credits == 0 or claim_amount <= 0:
            return []

        pool = claim_amount * self.artist_share
        return [
            ArtistEarning(artist_id=artist_id, earnings=pool * (count / total_credits))
            for artist_id, count in artist_song_counts.items()
            if count > 0
        ]
