"""Shared fixtures: in-memory database and seeded playlists"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from playlist_earnings.config import Settings
from playlist_earnings.exceptions import TokenMintError
from playlist_earnings.models.db import (
    Artist, ArtistSong, Base, Playlist, PlaylistCollection, PlaylistReputation, PlaylistSong, Song
)
from playlist_earnings.models.responses import MintResult
from playlist_earnings.services.storage import StorageService


class FakeMinter:
    """Records mint calls; optionally fails like an unreachable ledger"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def mint(self, user_id, amount, playlist_id):
        self.calls.append((user_id, amount, playlist_id))
        if self.fail:
            raise TokenMintError("ledger unavailable")
        return MintResult(amount=amount, token_id="0.0.4242", transaction_id=f"tx-{len(self.calls)}")


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


@pytest.fixture
def storage(session):
    return StorageService(session)


@pytest.fixture
def app_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        REPUTATION_SOURCE="votes",
        TOKEN_DECIMALS=0,
        DEFAULT_RATING=1.0,
        ARTIST_SHARE=0.5,
        DISTRIBUTE_ARTIST_EARNINGS=True,
        CLAIM_MAX_RETRIES=3,
    )


def seed_playlist(session, playlist_id, durations, contributors=None, collectors=(), votes=None, name="Road Trip"):
    """
    Create a playlist whose i-th song lasts durations[i] seconds and was
    added by contributors[i].
    """
    contributors = contributors or [None] * len(durations)
    session.add(Playlist(id=playlist_id, name=name))
    for position, (duration, user_id) in enumerate(zip(durations, contributors)):
        song_id = f"{playlist_id}-song-{position}"
        session.add(Song(id=song_id, title=f"Track {position}", duration=duration))
        session.add(PlaylistSong(playlist_id=playlist_id, song_id=song_id, user_id=user_id, position=position))
    for user_id in collectors:
        session.add(PlaylistCollection(playlist_id=playlist_id, user_id=user_id))
    if votes is not None:
        upvotes, downvotes = votes
        session.add(PlaylistReputation(playlist_id=playlist_id, upvotes=upvotes, downvotes=downvotes))
    session.commit()


def credit_artist(session, artist_id, song_ids):
    session.add(Artist(id=artist_id, name=artist_id.title(), total_earnings=0.0))
    for song_id in song_ids:
        session.add(ArtistSong(artist_id=artist_id, song_id=song_id))
    session.commit()
