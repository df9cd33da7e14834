"""Earnings error types"""


class EarningsError(Exception):
    """Base class for earnings errors"""
    pass


class PlaylistNotFound(EarningsError):
    """The playlist does not exist"""

    def __init__(self, playlist_id: str):
        self.playlist_id = playlist_id
        super().__init__(f"Playlist not found: {playlist_id}")


class NoContribution(EarningsError):
    """The user has no earnings record for the playlist"""

    def __init__(self, user_id: str, playlist_id: str):
        self.user_id = user_id
        self.playlist_id = playlist_id
        super().__init__(f"No contributions found for user {user_id} in playlist {playlist_id}")


class NoClaimableAmount(EarningsError):
    """Nothing to claim at this time. A user-facing condition, not a fault."""

    def __init__(self, current_entitlement: float, last_claimed_value: float):
        self.current_entitlement = current_entitlement
        self.last_claimed_value = last_claimed_value
        super().__init__(
            f"No claimable earnings at this time (entitlement {current_entitlement:.4f}, "
            f"last claimed {last_claimed_value:.4f})"
        )


class ClaimConflict(EarningsError):
    """A concurrent claim kept winning the race for the earnings record"""
    pass


class TokenMintError(EarningsError):
    """Token minting or transfer failed"""
    pass
