"""Database storage service for playlists, contributions and earnings"""
import logging
import datetime
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from playlist_earnings.exceptions import PlaylistNotFound
from playlist_earnings.models.db import (
    Artist, ArtistEarningRecord, ArtistSong, EarningsClaim, Playlist, PlaylistCollection,
    PlaylistEarnings, PlaylistReputation, PlaylistSong, Song
)
from playlist_earnings.models.earnings import (
    ArtistEarning, EarningsRecordState, EarningsSnapshot, SongDuration
)

logger = logging.getLogger(__name__)

def _to_state(record: PlaylistEarnings, playlist_name: Optional[str] = None) -> EarningsRecordState:
    return EarningsRecordState(
        user_id=record.user_id,
        playlist_id=record.playlist_id,
        songs_contributed=record.songs_contributed or 0,
        last_claimed_value=float(record.last_claimed_value or 0.0),
        total_claimed=float(record.total_claimed or 0.0),
        updated_at=record.updated_at,
        playlist_name=playlist_name
    )

class StorageService:
    """
    Handles all database operations.

    Reads and the claim-path writes (advance_claim, record_claim,
    distribute_artist_earnings) leave the transaction open for the caller
    to commit; add_song_to_playlist and collect_playlist commit themselves.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_playlist_songs(self, playlist_id: str) -> List[SongDuration]:
        """
        Get the playlist's songs in order with their durations

        Raises:
            PlaylistNotFound: If no playlist has this id
        """
        try:
            if self.session.get(Playlist, playlist_id) is None:
                raise PlaylistNotFound(playlist_id)

            rows = (
                self.session.query(Song.id, Song.duration)
                .join(PlaylistSong, PlaylistSong.song_id == Song.id)
                .filter(PlaylistSong.playlist_id == playlist_id)
                .order_by(PlaylistSong.position)
                .all()
            )
            return [SongDuration(song_id=song_id, duration_seconds=duration or 0) for song_id, duration in rows]
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching songs for playlist {playlist_id}: {e}")
            self.session.rollback()
            raise

    def count_collectors(self, playlist_id: str) -> int:
        """Count distinct users that collected the playlist"""
        try:
            count = (
                self.session.query(func.count(func.distinct(PlaylistCollection.user_id)))
                .filter(PlaylistCollection.playlist_id == playlist_id)
                .scalar()
            )
            return count or 0
        except SQLAlchemyError as e:
            logger.error(f"Database error counting collectors for playlist {playlist_id}: {e}")
            self.session.rollback()
            raise

    def get_vote_counts(self, playlist_id: str) -> Optional[Tuple[int, int]]:
        """Get (upvotes, downvotes) for a playlist, or None if nobody has voted"""
        try:
            reputation = self.session.get(PlaylistReputation, playlist_id)
            if reputation is None:
                return None
            return reputation.upvotes or 0, reputation.downvotes or 0
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching reputation for playlist {playlist_id}: {e}")
            self.session.rollback()
            raise

    def add_song_to_playlist(self, playlist_id: str, song_id: str, user_id: Optional[str]) -> int:
        """
        Append a song to a playlist and credit the contributor

        Returns:
            The position the song was placed at
        """
        try:
            if self.session.get(Playlist, playlist_id) is None:
                raise PlaylistNotFound(playlist_id)

            max_position = (
                self.session.query(func.max(PlaylistSong.position))
                .filter(PlaylistSong.playlist_id == playlist_id)
                .scalar()
            )
            next_position = 0 if max_position is None else max_position + 1

            self.session.add(PlaylistSong(
                playlist_id=playlist_id,
                song_id=song_id,
                user_id=user_id,
                position=next_position
            ))

            if user_id:
                record = self.session.query(PlaylistEarnings).filter_by(
                    user_id=user_id, playlist_id=playlist_id
                ).first()
                if record:
                    record.songs_contributed = (record.songs_contributed or 0) + 1
                    record.updated_at = datetime.datetime.now(datetime.UTC)
                else:
                    logger.info(f"Creating earnings record for user {user_id} in playlist {playlist_id}")
                    self.session.add(PlaylistEarnings(
                        user_id=user_id,
                        playlist_id=playlist_id,
                        songs_contributed=1,
                        last_claimed_value=0.0,
                        total_claimed=0.0
                    ))

            self.session.commit()
            logger.info(f"Added song {song_id} to playlist {playlist_id} at position {next_position}")
            return next_position
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error adding song {song_id} to playlist {playlist_id}: {e}")
            raise

    def collect_playlist(self, playlist_id: str, user_id: str) -> bool:
        """Record that a user collected a playlist. Returns False if already collected."""
        try:
            if self.session.get(Playlist, playlist_id) is None:
                raise PlaylistNotFound(playlist_id)

            existing = self.session.query(PlaylistCollection).filter_by(
                playlist_id=playlist_id, user_id=user_id
            ).first()
            if existing:
                return False

            self.session.add(PlaylistCollection(playlist_id=playlist_id, user_id=user_id))
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error collecting playlist {playlist_id} for user {user_id}: {e}")
            raise

    def get_earnings_record(self, user_id: str, playlist_id: str, for_update: bool = False) -> Optional[EarningsRecordState]:
        """Get the user's earnings record for a playlist, optionally row-locked"""
        try:
            query = self.session.query(PlaylistEarnings).filter_by(user_id=user_id, playlist_id=playlist_id)
            if for_update:
                query = query.with_for_update()
            record = query.first()
            return _to_state(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching earnings for user {user_id} in playlist {playlist_id}: {e}")
            self.session.rollback()
            raise

    def list_earnings_records(self, user_id: str) -> List[EarningsRecordState]:
        """Get all of a user's earnings records with playlist names"""
        try:
            rows = (
                self.session.query(PlaylistEarnings, Playlist.name)
                .outerjoin(Playlist, Playlist.id == PlaylistEarnings.playlist_id)
                .filter(PlaylistEarnings.user_id == user_id)
                .order_by(PlaylistEarnings.id)
                .all()
            )
            return [_to_state(record, name) for record, name in rows]
        except SQLAlchemyError as e:
            logger.error(f"Database error listing earnings for user {user_id}: {e}")
            self.session.rollback()
            raise

    def advance_claim(self, user_id: str, playlist_id: str, expected_last_claimed: float,
                      new_last_claimed: float, amount: float) -> bool:
        """
        Move last_claimed_value forward and add to total_claimed.

        Only applies while the stored last_claimed_value still equals
        expected_last_claimed. Returns False when another claim got there first.
        """
        try:
            result = self.session.execute(
                update(PlaylistEarnings)
                .where(
                    PlaylistEarnings.user_id == user_id,
                    PlaylistEarnings.playlist_id == playlist_id,
                    PlaylistEarnings.last_claimed_value == expected_last_claimed
                )
                .values(
                    last_claimed_value=new_last_claimed,
                    total_claimed=PlaylistEarnings.total_claimed + amount,
                    updated_at=datetime.datetime.now(datetime.UTC)
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error advancing claim for user {user_id} in playlist {playlist_id}: {e}")
            raise

    def record_claim(self, user_id: str, playlist_id: str, snapshot: EarningsSnapshot,
                     tokens_minted: int, transaction_id: Optional[str]) -> EarningsClaim:
        """Store the claim with the playlist state it was computed from"""
        try:
            claim = EarningsClaim(
                user_id=user_id,
                playlist_id=playlist_id,
                claim_amount=snapshot.claimable_amount,
                tokens_minted=tokens_minted,
                playlist_value_at_claim=snapshot.playlist.value,
                songs_contributed_at_claim=snapshot.songs_contributed,
                total_songs_at_claim=snapshot.playlist.songs_count,
                collectors_at_claim=snapshot.playlist.collectors_count,
                rating_at_claim=snapshot.playlist.rating,
                transaction_id=transaction_id,
                claimed_at=datetime.datetime.now(datetime.UTC)
            )
            self.session.add(claim)
            self.session.flush()
            return claim
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error recording claim for user {user_id} in playlist {playlist_id}: {e}")
            raise

    def get_artist_song_counts(self, playlist_id: str) -> Dict[str, int]:
        """Count song credits per artist across the playlist's songs"""
        try:
            rows = (
                self.session.query(ArtistSong.artist_id, func.count(ArtistSong.song_id))
                .join(PlaylistSong, PlaylistSong.song_id == ArtistSong.song_id)
                .filter(PlaylistSong.playlist_id == playlist_id)
                .group_by(ArtistSong.artist_id)
                .all()
            )
            return {artist_id: count for artist_id, count in rows}
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching artist credits for playlist {playlist_id}: {e}")
            self.session.rollback()
            raise

    def distribute_artist_earnings(self, playlist_id: str, earnings: List[ArtistEarning]) -> None:
        """Credit artists their share of a claim"""
        now = datetime.datetime.now(datetime.UTC)
        try:
            for entry in earnings:
                if entry.earnings <= 0:
                    continue
                self.session.execute(
                    update(Artist)
                    .where(Artist.id == entry.artist_id)
                    .values(total_earnings=Artist.total_earnings + entry.earnings, last_updated_stats=now)
                    .execution_options(synchronize_session=False)
                )
                self.session.add(ArtistEarningRecord(
                    artist_id=entry.artist_id,
                    playlist_id=playlist_id,
                    amount=entry.earnings,
                    distributed_at=now
                ))
                logger.info(f"Distributed {entry.earnings:.4f} to artist {entry.artist_id}")
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error distributing artist earnings for playlist {playlist_id}: {e}")
            raise
