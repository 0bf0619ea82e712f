"""Base faucet client and claim result definitions.

This module defines the :class:`FaucetClient` superclass that HTTP faucet
claimers inherit from, and the :class:`ClaimResult` dataclass returned by
every claim attempt.

:class:`FaucetClient` provides:
    * A lazily created, reusable ``aiohttp`` session.
    * Browser-like default headers for the faucet's own web page.
    * A ``claim`` wrapper that guarantees no exception escapes a claim.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)


@dataclass
class ClaimResult:
    """Outcome of a single faucet claim attempt.

    Attributes:
        success: Whether the faucet reported success.
        status: Human-readable status / error description.
        tx_hash: Faucet payout transaction hash, when reported.
    """

    success: bool
    status: str
    tx_hash: Optional[str] = None


class FaucetClient:
    """Abstract base class for HTTP faucet claimers.

    Subclasses **must** implement ``async _claim(wallet_address) -> ClaimResult``
    and should set ``faucet_name``, ``origin`` and ``page_url``.

    Attributes:
        faucet_name: Label used in log lines.
        origin: Value of the ``origin`` header.
        page_url: The faucet web page, sent as ``referer``.
        session: Shared ``aiohttp`` session (created on first use).
    """

    faucet_name = "faucet"

    def __init__(self, origin: str, page_url: str, user_agent: str = DESKTOP_USER_AGENT) -> None:
        self.origin = origin
        self.page_url = page_url
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Headers that make claims look like they come from the faucet page."""
        return {
            "accept": "*/*",
            "content-type": "application/json",
            "origin": self.origin,
            "referer": self.page_url,
            "user-agent": self.user_agent,
        }

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def claim(self, wallet_address: str) -> ClaimResult:
        """
        Claim the faucet for *wallet_address*, exactly once.

        Never raises; any unexpected error becomes a failed result.
        """
        try:
            return await self._claim(wallet_address)
        except Exception as e:
            logger.error(
                f"Error claiming {self.faucet_name} for {wallet_address}: {e}",
                exc_info=True,
            )
            return ClaimResult(success=False, status=f"error: {e}")

    async def _claim(self, wallet_address: str) -> ClaimResult:
        raise NotImplementedError

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        """POST *payload* as JSON with the page headers and decode the reply."""
        session = await self._ensure_session()
        async with session.post(url, json=payload, headers=self.headers) as resp:
            return await resp.json(content_type=None)
