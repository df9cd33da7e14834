"""SQLAlchemy database models for playlists, contributions and earnings"""
import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)

class Playlist(Base):
    """A collaborative playlist. Songs are ordered through playlist_songs."""
    __tablename__ = 'playlists'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default='')
    created_at = Column(DateTime, default=_utcnow)

class Song(Base):
    """An uploaded song. Only the duration (seconds) feeds the earnings model."""
    __tablename__ = 'songs'

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False, default='')
    duration = Column(Integer, nullable=True)

class PlaylistSong(Base):
    """A song placed in a playlist by a contributor"""
    __tablename__ = 'playlist_songs'

    id = Column(Integer, primary_key=True)
    playlist_id = Column(String, ForeignKey('playlists.id'), nullable=False, index=True)
    song_id = Column(String, ForeignKey('songs.id'), nullable=False)
    user_id = Column(String, nullable=True)
    position = Column(Integer, nullable=False)
    added_at = Column(DateTime, default=_utcnow)

class PlaylistCollection(Base):
    """A user has collected (acquired) a playlist"""
    __tablename__ = 'playlist_collections'
    __table_args__ = (UniqueConstraint('playlist_id', 'user_id'),)

    id = Column(Integer, primary_key=True)
    playlist_id = Column(String, ForeignKey('playlists.id'), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    collected_at = Column(DateTime, default=_utcnow)

class PlaylistReputation(Base):
    """Aggregated community votes for a playlist"""
    __tablename__ = 'playlist_reputation'

    playlist_id = Column(String, ForeignKey('playlists.id'), primary_key=True)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)

class PlaylistEarnings(Base):
    """
    Per (user, playlist) earnings record.
    last_claimed_value is the entitlement at the most recent successful claim
    and never moves backwards.
    """
    __tablename__ = 'playlist_earnings'
    __table_args__ = (UniqueConstraint('user_id', 'playlist_id'),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    playlist_id = Column(String, ForeignKey('playlists.id'), nullable=False)
    songs_contributed = Column(Integer, nullable=False, default=0)
    last_claimed_value = Column(Float, nullable=False, default=0.0)
    total_claimed = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime, default=_utcnow)

class EarningsClaim(Base):
    """Ledger of successful claims with the playlist state they were computed from"""
    __tablename__ = 'earnings_claims'

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    playlist_id = Column(String, nullable=False, index=True)
    claim_amount = Column(Float, nullable=False)
    tokens_minted = Column(Integer, nullable=False)
    playlist_value_at_claim = Column(Float, nullable=False)
    songs_contributed_at_claim = Column(Integer, nullable=False)
    total_songs_at_claim = Column(Integer, nullable=False)
    collectors_at_claim = Column(Integer, nullable=False)
    rating_at_claim = Column(Float, nullable=False)
    transaction_id = Column(String, nullable=True)
    claimed_at = Column(DateTime, default=_utcnow)

class Artist(Base):
    __tablename__ = 'artists'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default='')
    total_earnings = Column(Float, nullable=False, default=0.0)
    last_updated_stats = Column(DateTime, nullable=True)

class ArtistSong(Base):
    __tablename__ = 'artist_songs'

    artist_id = Column(String, ForeignKey('artists.id'), primary_key=True)
    song_id = Column(String, ForeignKey('songs.id'), primary_key=True)

class ArtistEarningRecord(Base):
    """Artist share credited from a listener's claim"""
    __tablename__ = 'artist_earnings'

    id = Column(Integer, primary_key=True)
    artist_id = Column(String, ForeignKey('artists.id'), nullable=False, index=True)
    playlist_id = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    distributed_at = Column(DateTime, default=_utcnow)
