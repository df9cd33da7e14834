"""Reputation source tests"""
from unittest.mock import MagicMock, patch

import pytest
import requests
from sqlalchemy.exc import OperationalError

from conftest import seed_playlist
from playlist_earnings.config import Settings
from playlist_earnings.models.earnings import Scored, Unavailable
from playlist_earnings.services.reputation import (
    ReputationAPI, VoteReputationSource, build_reputation_source
)


def json_response(status, body):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body
    response.text = str(body)
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


class TestVoteReputationSource:

    def test_score_from_votes(self, session, storage):
        seed_playlist(session, "p1", [60], votes=(6, 4))

        signal = VoteReputationSource(storage).get_signal("p1")

        assert isinstance(signal, Scored)
        assert signal.score == pytest.approx(20.0)

    @pytest.mark.parametrize("votes, score", [((10, 0), 100.0), ((0, 5), -100.0), ((3, 3), 0.0)])
    def test_score_range(self, session, storage, votes, score):
        seed_playlist(session, "p1", [60], votes=votes)

        assert VoteReputationSource(storage).get_signal("p1").score == pytest.approx(score)

    def test_no_votes_is_a_neutral_score(self, session, storage):
        seed_playlist(session, "p1", [60])
        seed_playlist(session, "p2", [60], votes=(0, 0))

        source = VoteReputationSource(storage)

        assert source.get_signal("p1") == Scored(0.0)
        assert source.get_signal("p2") == Scored(0.0)

    def test_database_failure_is_unavailable(self):
        storage = MagicMock()
        storage.get_vote_counts.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        signal = VoteReputationSource(storage).get_signal("p1")

        assert isinstance(signal, Unavailable)


class TestReputationAPI:

    def test_scored_response(self):
        api = ReputationAPI("http://reputation.test/api/")
        api.session.get = MagicMock(return_value=json_response(200, {"reputation": {"score": 42}, "messages": []}))

        signal = api.get_signal("p1")

        assert signal == Scored(42.0)
        api.session.get.assert_called_once_with("http://reputation.test/api/reputation/playlist/p1", timeout=5.0)

    @pytest.mark.parametrize("body", [{}, {"reputation": None}, {"reputation": {"score": "high"}}, {"reputation": {"score": True}}])
    def test_malformed_response(self, body):
        api = ReputationAPI("http://reputation.test/api")
        api.session.get = MagicMock(return_value=json_response(200, body))

        assert isinstance(api.get_signal("p1"), Unavailable)

    def test_client_error_is_not_retried(self):
        api = ReputationAPI("http://reputation.test/api")
        api.session.get = MagicMock(return_value=json_response(404, {"error": "not found"}))

        signal = api.get_signal("p1")

        assert isinstance(signal, Unavailable)
        assert api.session.get.call_count == 1

    @patch("playlist_earnings.services.reputation.time.sleep")
    def test_server_error_retried_then_succeeds(self, sleep):
        api = ReputationAPI("http://reputation.test/api")
        api.session.get = MagicMock(side_effect=[
            json_response(503, {}),
            json_response(200, {"reputation": {"score": -10}}),
        ])

        assert api.get_signal("p1") == Scored(-10.0)
        assert sleep.call_count == 1

    @patch("playlist_earnings.services.reputation.time.sleep")
    def test_timeouts_exhaust_retries(self, sleep):
        api = ReputationAPI("http://reputation.test/api", max_attempts=3)
        api.session.get = MagicMock(side_effect=requests.exceptions.Timeout("slow"))

        signal = api.get_signal("p1")

        assert isinstance(signal, Unavailable)
        assert api.session.get.call_count == 3
        assert sleep.call_count == 2

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            ReputationAPI("")


def test_build_reputation_source(storage):
    assert isinstance(build_reputation_source(Settings(REPUTATION_SOURCE="votes"), storage), VoteReputationSource)

    api = build_reputation_source(
        Settings(REPUTATION_SOURCE="api", REPUTATION_API_URL="http://rep.test", REPUTATION_TIMEOUT_SECONDS=2.5),
        storage
    )
    assert isinstance(api, ReputationAPI)
    assert api.timeout == 2.5
