"""
Tests for the CapSolver Turnstile client: task creation, bounded polling,
and the uniform "no token" failure reporting.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.errors import CaptchaFailure
from solvers.capsolver import CapSolverClient


def _response(payload):
    resp = AsyncMock()
    resp.status = 200
    resp.json = AsyncMock(return_value=payload)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def _client_with_replies(*payloads, **kwargs):
    client = CapSolverClient("test-key", **kwargs)
    session = MagicMock()
    session.post = MagicMock(side_effect=[_response(p) for p in payloads])
    session.close = AsyncMock()
    client.session = session
    return client, session


class TestSolveTurnstile:

    @pytest.mark.asyncio
    async def test_token_on_first_poll(self):
        client, session = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            {"errorId": 0, "status": "ready", "solution": {"token": "tok-abc"}},
        )
        with patch("solvers.capsolver.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            token = await client.solve_turnstile("https://irys.xyz/faucet", "site-key")

        assert token == "tok-abc"
        mock_sleep.assert_not_called()

        create_call = session.post.call_args_list[0]
        assert create_call.args[0] == "https://api.capsolver.com/createTask"
        assert create_call.kwargs["json"] == {
            "clientKey": "test-key",
            "task": {
                "type": "AntiTurnstileTaskProxyLess",
                "websiteURL": "https://irys.xyz/faucet",
                "websiteKey": "site-key",
            },
        }
        poll_call = session.post.call_args_list[1]
        assert poll_call.args[0] == "https://api.capsolver.com/getTaskResult"
        assert poll_call.kwargs["json"] == {"clientKey": "test-key", "taskId": "task-1"}

    @pytest.mark.asyncio
    async def test_token_after_processing(self):
        client, session = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            {"errorId": 0, "status": "processing"},
            {"errorId": 0, "status": "processing"},
            {"errorId": 0, "status": "ready", "solution": {"token": "tok-3"}},
            polling_interval=2.0,
        )
        with patch("solvers.capsolver.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            token = await client.solve_turnstile("https://irys.xyz/faucet", "site-key")

        assert token == "tok-3"
        assert mock_sleep.await_count == 2
        for call in mock_sleep.await_args_list:
            assert call.args[0] == 2.0

    @pytest.mark.asyncio
    async def test_timeout_after_max_attempts(self):
        pending = {"errorId": 0, "status": "processing"}
        client, session = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            *([pending] * 15),
        )
        with patch("solvers.capsolver.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            token = await client.solve_turnstile("https://irys.xyz/faucet", "site-key")

        assert token is None
        # 1 createTask + 15 polls, with a sleep only between polls
        assert session.post.call_count == 16
        assert mock_sleep.await_count == 14

    @pytest.mark.asyncio
    async def test_custom_attempt_bound(self):
        pending = {"errorId": 0, "status": "processing"}
        client, session = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            *([pending] * 3),
            max_attempts=3,
            polling_interval=0.5,
        )
        with patch("solvers.capsolver.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await client.solve_turnstile("u", "k") is None
        assert session.post.call_count == 4
        assert [c.args[0] for c in mock_sleep.await_args_list] == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_explicit_failure(self):
        client, session = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            {"errorId": 1, "status": "failed", "errorCode": "ERROR_CAPTCHA_UNSOLVABLE"},
        )
        with patch("solvers.capsolver.asyncio.sleep", new_callable=AsyncMock):
            assert await client.solve_turnstile("u", "k") is None
        assert session.post.call_count == 2

    @pytest.mark.asyncio
    async def test_no_task_id(self):
        client, session = _client_with_replies(
            {"errorId": 1, "errorCode": "ERROR_KEY_DENIED_ACCESS", "errorDescription": "bad key"},
        )
        assert await client.solve_turnstile("u", "k") is None
        assert session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_ready_without_token(self):
        client, _ = _client_with_replies(
            {"errorId": 0, "taskId": "task-1"},
            {"errorId": 0, "status": "ready", "solution": {}},
        )
        assert await client.solve_turnstile("u", "k") is None

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client = CapSolverClient("test-key")
        session = MagicMock()
        session.post = MagicMock(side_effect=ConnectionError("boom"))
        client.session = session
        assert await client.solve_turnstile("u", "k") is None


class TestInternals:

    @pytest.mark.asyncio
    async def test_non_dict_reply_raises(self):
        client, _ = _client_with_replies(["not", "a", "dict"])
        with pytest.raises(CaptchaFailure):
            await client._post("createTask", {})

    @pytest.mark.asyncio
    async def test_get_balance(self):
        client, _ = _client_with_replies({"errorId": 0, "balance": 1.25})
        assert await client.get_balance() == 1.25

    @pytest.mark.asyncio
    async def test_get_balance_error(self):
        client, _ = _client_with_replies({"errorId": 1, "errorDescription": "bad key"})
        assert await client.get_balance() is None

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        with patch("solvers.capsolver.aiohttp.ClientSession") as mock_cls:
            mock_session = MagicMock()
            mock_session.close = AsyncMock()
            mock_cls.return_value = mock_session
            async with CapSolverClient("k") as client:
                assert client.session is mock_session
            mock_session.close.assert_awaited_once()
            assert client.session is None
