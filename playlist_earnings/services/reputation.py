"""Reputation sources feeding the playlist rating"""
import logging
import time
from typing import Any, Dict

import requests
from sqlalchemy.exc import SQLAlchemyError

from playlist_earnings.config import Settings, MAX_REPUTATION_SCORE
from playlist_earnings.models.earnings import RatingSignal, Scored, Unavailable

logger = logging.getLogger(__name__)

# --- Constants for request control ---
MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_SECONDS = 0.5
# ------------------------------------

class VoteReputationSource:
    """Derives a -100..100 score from the stored upvote/downvote aggregate"""

    def __init__(self, storage):
        self.storage = storage

    def get_signal(self, playlist_id: str) -> RatingSignal:
        try:
            votes = self.storage.get_vote_counts(playlist_id)
        except SQLAlchemyError as e:
            return Unavailable(reason=f"vote lookup failed: {e}")

        if votes is None:
            return Scored(score=0.0)

        upvotes, downvotes = votes
        total_votes = upvotes + downvotes
        if total_votes == 0:
            return Scored(score=0.0)

        vote_ratio = (upvotes - downvotes) / total_votes
        return Scored(score=vote_ratio * MAX_REPUTATION_SCORE)


class ReputationAPI:
    """Fetches playlist reputation scores from the reputation service"""

    def __init__(self, base_url: str, timeout: float = 5.0, max_attempts: int = MAX_ATTEMPTS):
        if not base_url:
            raise ValueError("Reputation service URL cannot be empty")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def get_signal(self, playlist_id: str) -> RatingSignal:
        """Get the playlist's score, or Unavailable on any failure"""
        try:
            body = self._make_request(f'reputation/playlist/{playlist_id}')
        except requests.exceptions.RequestException as e:
            return Unavailable(reason=f"reputation service error: {e}")

        reputation = body.get('reputation')
        score = reputation.get('score') if isinstance(reputation, dict) else None
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            logger.warning(f"Malformed reputation response for playlist {playlist_id}: {body}")
            return Unavailable(reason="malformed reputation response")
        return Scored(score=float(score))

    def _make_request(self, endpoint: str) -> Dict[str, Any]:
        """GET with retries on connection errors and 5xx responses"""
        url = f'{self.base_url}/{endpoint}'
        last_exception = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.debug(f"Attempt {attempt}/{self.max_attempts}: Making request to {url}")
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                try:
                    json_response = response.json()
                except ValueError:
                    logger.error(f"Failed to decode JSON response from {url}. Response text: {response.text[:200]}")
                    return {}
                return json_response if isinstance(json_response, dict) else {}
            except requests.exceptions.HTTPError as e:
                last_exception = e
                status = e.response.status_code if e.response is not None else 0
                if status < 500:
                    logger.warning(f"Client error ({status}) for {url}. Aborting request.")
                    raise
                logger.warning(f"Reputation server error ({status}) for {url}. Retrying...")
            except requests.exceptions.RequestException as e:
                last_exception = e
                logger.warning(f"Request error on attempt {attempt} for {url}: {e}")

            if attempt < self.max_attempts:
                time.sleep(RETRY_BASE_DELAY_SECONDS * (2 ** (attempt - 1)))

        logger.error(f"Request failed after {self.max_attempts} attempts for {url}.")
        raise last_exception or requests.exceptions.RetryError(f"Request failed after {self.max_attempts} attempts for {url}")


def build_reputation_source(app_settings: Settings, storage):
    """Select the reputation source named by REPUTATION_SOURCE"""
    if app_settings.REPUTATION_SOURCE == 'api':
        endpoints = app_settings.endpoints
        return ReputationAPI(endpoints.reputation_url, timeout=endpoints.timeout_seconds)
    return VoteReputationSource(storage)
