"""Response models returned to claim and listing callers"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class MintResult(BaseModel):
    """Outcome of a token mint-and-transfer"""
    amount: int = Field(description="Token units minted and transferred")
    token_id: str = Field(description="Fungible token ID")
    recipient_account_id: Optional[str] = Field(None, description="Ledger account that received the tokens")
    transaction_id: Optional[str] = Field(None, description="Ledger transfer transaction ID")
    mint_status: Optional[str] = None
    transfer_status: Optional[str] = None

class ClaimResponse(BaseModel):
    """
    Represents a successful earnings claim.

    Attributes:
        claimable_amount: Amount paid out by this claim
        current_entitlement: Entitlement at claim time, now the new last_claimed_value
        last_claimed_value: Value the record held before this claim
        total_claimed: Cumulative payout after this claim
        share_coefficient: Contributor's share of the playlist value
        playlist_value: Playlist value at claim time
        mint: Ledger minting outcome
    """
    success: bool = True
    user_id: str
    playlist_id: str
    claimable_amount: float
    current_entitlement: float
    last_claimed_value: float
    total_claimed: float
    share_coefficient: float
    playlist_value: float
    rating_available: bool = True
    mint: MintResult
    claimed_at: datetime

class PlaylistEarningsEntry(BaseModel):
    """One row of a user's earnings overview"""
    playlist_id: str
    playlist_name: str = "Unknown Playlist"
    songs_contributed: int = 0
    last_claimed_value: float = 0.0
    total_claimed: float = 0.0
    current_entitlement: float = 0.0
    claimable_amount: float = 0.0
    playlist_value: float = 0.0
    share_coefficient: float = 0.0
    rating_available: bool = False
    last_updated: Optional[datetime] = None
    error: Optional[str] = None
