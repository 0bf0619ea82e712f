"""CapSolver API client for Cloudflare Turnstile challenges.

The faucet page is protected by Turnstile; this client obtains a token for it
through CapSolver's ``createTask`` / ``getTaskResult`` protocol.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from core.errors import CaptchaFailure

logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL = 2.0
DEFAULT_MAX_ATTEMPTS = 15


class CapSolverClient:
    """Async API client for the CapSolver CAPTCHA-solving service.

    Tasks are created via ``createTask`` and polled for results via
    ``getTaskResult`` a bounded number of times.  Every failure (creation
    failure, solver-reported failure, timeout, transport error) is logged
    and reported uniformly as "no token".

    Supports both context-manager and standalone usage patterns.

    Attributes:
        BASE_URL: CapSolver API base URL.
        TASK_TURNSTILE: Task type string for proxyless Turnstile solving.

    Example::

        async with CapSolverClient(api_key) as solver:
            token = await solver.solve_turnstile(url, site_key)
    """

    BASE_URL = "https://api.capsolver.com"

    TASK_TURNSTILE = "AntiTurnstileTaskProxyLess"

    def __init__(
        self,
        api_key: str,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """Initialise the CapSolver client.

        Args:
            api_key: CapSolver API key.
            polling_interval: Seconds between result polls (default 2).
            max_attempts: Maximum number of result polls per task
                (default 15).
        """
        self.api_key = api_key
        self.polling_interval = polling_interval
        self.max_attempts = max_attempts
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "CapSolverClient":
        """Async context manager entry -- create an aiohttp session."""
        await self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit -- close the aiohttp session."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Lazily create an aiohttp session if one does not already exist."""
        if not self.session:
            self.session = aiohttp.ClientSession()

    async def close(self) -> None:
        """Close the underlying aiohttp session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        await self._ensure_session()
        url = f"{self.BASE_URL}/{endpoint}"
        async with self.session.post(url, json=payload) as resp:
            data = await resp.json(content_type=None)
        if not isinstance(data, dict):
            raise CaptchaFailure(f"Unexpected {endpoint} response: {data!r}")
        return data

    async def _create_task(self, task_data: Dict[str, Any]) -> str:
        """Create a CAPTCHA-solving task on the CapSolver API.

        Args:
            task_data: Task configuration dictionary (must include ``type``).

        Returns:
            The task ID assigned by CapSolver.

        Raises:
            CaptchaFailure: If the API returns no task id.
        """
        payload = {
            "clientKey": self.api_key,
            "task": task_data,
        }

        logger.debug("Creating CapSolver task: %s", task_data.get("type"))
        data = await self._post("createTask", payload)

        task_id = data.get("taskId")
        if not task_id:
            raise CaptchaFailure(
                f"Failed to create captcha task: "
                f"{data.get('errorCode', 'UNKNOWN')} - "
                f"{data.get('errorDescription', data)}"
            )

        logger.info("Created captcha task: %s", task_id)
        return task_id

    async def _get_task_result(self, task_id: str) -> Dict[str, Any]:
        """Poll for task completion and return the solution.

        Polls at most :attr:`max_attempts` times, sleeping
        :attr:`polling_interval` seconds between consecutive polls.

        Args:
            task_id: Task ID obtained from :meth:`_create_task`.

        Returns:
            The ``solution`` dictionary from the CapSolver response.

        Raises:
            CaptchaFailure: If the task fails on the server side or is not
                ready after :attr:`max_attempts` polls.
        """
        payload = {
            "clientKey": self.api_key,
            "taskId": task_id,
        }

        for attempt in range(1, self.max_attempts + 1):
            data = await self._post("getTaskResult", payload)
            status = data.get("status")

            if status == "ready":
                return data.get("solution") or {}

            if status == "failed" or data.get("errorId", 0) != 0:
                raise CaptchaFailure(f"Captcha task failed: {data}")

            logger.debug(
                "CapSolver task %s still %s (poll %d/%d)",
                task_id,
                status or "pending",
                attempt,
                self.max_attempts,
            )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.polling_interval)

        raise CaptchaFailure(
            f"Captcha solving timed out after {self.max_attempts} polls"
        )

    async def solve_turnstile(self, site_url: str, site_key: str) -> Optional[str]:
        """Solve a Cloudflare Turnstile challenge.

        Args:
            site_url: URL of the page where the CAPTCHA appears.
            site_key: Turnstile site key.

        Returns:
            The Turnstile response token, or ``None`` if no token could be
            obtained for any reason.
        """
        task_data: Dict[str, Any] = {
            "type": self.TASK_TURNSTILE,
            "websiteURL": site_url,
            "websiteKey": site_key,
        }

        try:
            task_id = await self._create_task(task_data)
            solution = await self._get_task_result(task_id)
        except CaptchaFailure as e:
            logger.error(str(e))
            return None
        except Exception as e:
            logger.error("Error solving captcha: %s", e, exc_info=True)
            return None

        token = solution.get("token")
        if not token:
            logger.error("Captcha task %s returned no token", task_id)
            return None

        logger.info("Captcha solution received")
        return token

    async def get_balance(self) -> Optional[float]:
        """Retrieve the current CapSolver account balance.

        Returns:
            Account balance in USD, or ``None`` if the check failed.
        """
        try:
            data = await self._post("getBalance", {"clientKey": self.api_key})
        except Exception as e:
            logger.warning("CapSolver balance check failed: %s", e)
            return None

        if data.get("errorId", 0) != 0:
            logger.warning(
                "CapSolver balance check failed: %s",
                data.get("errorDescription", "Unknown error"),
            )
            return None

        balance = float(data.get("balance", 0.0))
        logger.info("CapSolver balance: $%.4f", balance)
        return balance
