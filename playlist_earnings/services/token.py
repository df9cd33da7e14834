"""Token minting service client"""
import logging
import math
from typing import Optional

import requests

from playlist_earnings.exceptions import TokenMintError
from playlist_earnings.models.responses import MintResult

logger = logging.getLogger(__name__)

def to_token_units(amount: float, decimals: int) -> int:
    """Convert an earnings amount to whole token units, rounding down"""
    return math.floor(amount * (10 ** decimals))

def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)

class TokenMintAPI:
    """Mints reward tokens and transfers them to a user's ledger account"""

    def __init__(self, base_url: str, token_id: Optional[str], timeout: float = 30.0):
        if not token_id:
            raise ValueError("FT_TOKEN_ID is required for minting")
        self.base_url = base_url.rstrip('/')
        self.token_id = token_id
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    def mint(self, user_id: str, amount: int, playlist_id: str) -> MintResult:
        """
        Mint and transfer `amount` token units to the user.

        Minting is not idempotent, so failures are not retried.

        Raises:
            TokenMintError: If the request fails or the service reports failure
        """
        url = f'{self.base_url}/token/mint'
        payload = {
            'userId': user_id,
            'tokenId': self.token_id,
            'amount': amount,
            'playlistId': playlist_id,
            'claimType': 'earnings'
        }

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Token mint request to {url} failed: {e}")
            raise TokenMintError(f"Token minting failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok or not body.get('success'):
            error = body.get('error') or f"HTTP {response.status_code}"
            logger.error(f"Token mint rejected for user {user_id}: {error}")
            raise TokenMintError(f"Token minting failed: {error}")

        transaction_id = _optional_str(body.get('transactionId'))
        logger.info(f"Minted {amount} units of {self.token_id} for user {user_id}: {transaction_id}")
        # Tokens are already transferred here; the result must not fail to build
        return MintResult(
            amount=amount,
            token_id=self.token_id,
            recipient_account_id=_optional_str(body.get('recipientAccountId')),
            transaction_id=transaction_id,
            mint_status=_optional_str(body.get('mintStatus')),
            transfer_status=_optional_str(body.get('transferStatus'))
        )
