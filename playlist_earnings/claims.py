"""Earnings claim processing and earnings overview"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from playlist_earnings.config import Settings
from playlist_earnings.calculator import EarningsCalculator
from playlist_earnings.exceptions import (
    ClaimConflict, EarningsError, NoClaimableAmount, NoContribution
)
from playlist_earnings.models.earnings import PlaylistValue
from playlist_earnings.models.responses import ClaimResponse, PlaylistEarningsEntry
from playlist_earnings.services.reputation import build_reputation_source
from playlist_earnings.services.storage import StorageService
from playlist_earnings.services.token import TokenMintAPI, to_token_units

logger = logging.getLogger(__name__)

class EarningsService:
    """Handles earnings claims and listings for contributors"""

    def __init__(self, settings: Settings, session: Session, minter=None, reputation=None):
        """
        Args:
            settings: Application settings
            session: Database session owned by the caller
            minter: Object with mint(user_id, amount, playlist_id) -> MintResult.
                Only required for claim().
            reputation: Reputation source; defaults to the one named in settings
        """
        self.settings = settings
        self.storage = StorageService(session)
        if reputation is None:
            reputation = build_reputation_source(settings, self.storage)
        self.calculator = EarningsCalculator(
            self.storage,
            reputation,
            default_rating=settings.DEFAULT_RATING,
            artist_share=settings.ARTIST_SHARE
        )
        self.minter = minter

    def playlist_value(self, playlist_id: str) -> PlaylistValue:
        return self.calculator.calculate_playlist_value(playlist_id)

    def claim(self, user_id: str, playlist_id: str) -> ClaimResponse:
        """
        Claim everything the user has earned in a playlist since their last claim.

        Compute and persist share one transaction. The record is read under a
        row lock and advanced with a conditional update against the value read,
        so two concurrent claims cannot both pay out the same entitlement.
        Every write is flushed before tokens are minted, so a database failure
        or a mint failure rolls the whole claim back without paying out.

        Raises:
            NoContribution: The user never contributed to the playlist
            PlaylistNotFound: The playlist does not exist
            NoClaimableAmount: Nothing has accrued since the last claim
            TokenMintError: Minting failed; the record is unchanged
            ClaimConflict: Concurrent claims kept invalidating this one
        """
        if self.minter is None:
            raise ValueError("A token minter is required to claim earnings")

        session = self.storage.session
        for attempt in range(1, self.settings.CLAIM_MAX_RETRIES + 1):
            try:
                record = self.storage.get_earnings_record(user_id, playlist_id, for_update=True)
                if record is None:
                    raise NoContribution(user_id, playlist_id)

                snapshot = self.calculator.calculate_snapshot(
                    playlist_id, record.songs_contributed, record.last_claimed_value
                )
                tokens = to_token_units(snapshot.claimable_amount, self.settings.TOKEN_DECIMALS)
                logger.info(
                    f"Claim attempt {attempt} for user {user_id} in playlist {playlist_id}: "
                    f"entitlement {snapshot.current_entitlement:.4f}, last claimed {record.last_claimed_value:.4f}, "
                    f"claimable {snapshot.claimable_amount:.4f} ({tokens} units)"
                )
                if snapshot.claimable_amount <= 0 or tokens <= 0:
                    raise NoClaimableAmount(snapshot.current_entitlement, record.last_claimed_value)

                advanced = self.storage.advance_claim(
                    user_id,
                    playlist_id,
                    expected_last_claimed=record.last_claimed_value,
                    new_last_claimed=snapshot.current_entitlement,
                    amount=snapshot.claimable_amount
                )
                if not advanced:
                    session.rollback()
                    logger.warning(f"Earnings record for user {user_id} in playlist {playlist_id} changed concurrently, retrying")
                    continue

                # Every write is flushed before minting; only the commit follows a payout
                claim = self.storage.record_claim(user_id, playlist_id, snapshot, tokens, transaction_id=None)
                if self.settings.DISTRIBUTE_ARTIST_EARNINGS:
                    artist_earnings = self.calculator.calculate_artist_earnings(
                        self.storage.get_artist_song_counts(playlist_id),
                        snapshot.claimable_amount
                    )
                    self.storage.distribute_artist_earnings(playlist_id, artist_earnings)

                mint = self.minter.mint(user_id, tokens, playlist_id)
            except Exception:
                session.rollback()
                raise

            try:
                claim.transaction_id = mint.transaction_id
                session.commit()
            except Exception as e:
                session.rollback()
                logger.critical(
                    f"Tokens minted (tx {mint.transaction_id}, {tokens} units) but claim for user {user_id} "
                    f"in playlist {playlist_id} failed to persist: {e}"
                )
                raise

            logger.info(f"User {user_id} claimed {snapshot.claimable_amount:.4f} from playlist {playlist_id}")
            return ClaimResponse(
                user_id=user_id,
                playlist_id=playlist_id,
                claimable_amount=snapshot.claimable_amount,
                current_entitlement=snapshot.current_entitlement,
                last_claimed_value=record.last_claimed_value,
                total_claimed=record.total_claimed + snapshot.claimable_amount,
                share_coefficient=snapshot.share_coefficient,
                playlist_value=snapshot.playlist.value,
                rating_available=snapshot.playlist.rating_available,
                mint=mint,
                claimed_at=datetime.now(timezone.utc)
            )

        raise ClaimConflict(
            f"Claim for user {user_id} in playlist {playlist_id} lost {self.settings.CLAIM_MAX_RETRIES} races"
        )

    def list_playlist_earnings(self, user_id: str) -> List[PlaylistEarningsEntry]:
        """Current entitlement and claimable amount for every playlist the user contributed to"""
        entries = []
        for record in self.storage.list_earnings_records(user_id):
            base = dict(
                playlist_id=record.playlist_id,
                playlist_name=record.playlist_name or "Unknown Playlist",
                songs_contributed=record.songs_contributed,
                last_claimed_value=record.last_claimed_value,
                total_claimed=record.total_claimed,
                last_updated=record.updated_at
            )
            try:
                snapshot = self.calculator.calculate_snapshot(
                    record.playlist_id, record.songs_contributed, record.last_claimed_value
                )
            except (EarningsError, SQLAlchemyError) as e:
                logger.error(f"Error calculating earnings for playlist {record.playlist_id}: {e}")
                entries.append(PlaylistEarningsEntry(error=str(e), **base))
                continue

            entries.append(PlaylistEarningsEntry(
                current_entitlement=snapshot.current_entitlement,
                claimable_amount=snapshot.claimable_amount,
                playlist_value=snapshot.playlist.value,
                share_coefficient=snapshot.share_coefficient,
                rating_available=snapshot.playlist.rating_available,
                **base
            ))
        return entries


def build_service(app_settings: Settings, session: Session, with_minter: bool = False) -> EarningsService:
    """Wire an EarningsService with the HTTP collaborators named in settings"""
    minter = None
    if with_minter:
        minter = TokenMintAPI(app_settings.endpoints.token_mint_url, app_settings.FT_TOKEN_ID)
    return EarningsService(app_settings, session, minter=minter)
