"""Domain models for playlist valuation and contributor earnings"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

@dataclass(frozen=True)
class SongDuration:
    """A song in a playlist, reduced to what the valuation consumes"""
    song_id: str
    duration_seconds: int

@dataclass(frozen=True)
class Scored:
    """A reputation score was obtained (nominally -100..100)"""
    score: float

@dataclass(frozen=True)
class Unavailable:
    """The reputation source could not produce a score"""
    reason: str

RatingSignal = Union[Scored, Unavailable]

@dataclass
class PlaylistValue:
    """Playlist value and the aggregates it was computed from"""
    value: float
    songs_count: int
    total_minutes: float
    collectors_count: int
    rating: float
    rating_available: bool
    calculated_at: datetime

@dataclass
class EarningsSnapshot:
    """A contributor's position in a playlist at one point in time"""
    playlist: PlaylistValue
    songs_contributed: int
    share_coefficient: float
    current_entitlement: float
    last_claimed_value: float
    claimable_amount: float

@dataclass
class ArtistEarning:
    artist_id: str
    earnings: float

@dataclass
class EarningsRecordState:
    """Detached copy of a stored earnings record"""
    user_id: str
    playlist_id: str
    songs_contributed: int
    last_claimed_value: float
    total_claimed: float
    updated_at: Optional[datetime] = None
    playlist_name: Optional[str] = None
