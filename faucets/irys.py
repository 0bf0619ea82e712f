import logging
from typing import Any, Optional

from core.config import IRYS_NETWORK, NetworkSettings
from core.errors import FaucetClaimFailure
from faucets.base import ClaimResult, FaucetClient
from solvers.capsolver import CapSolverClient

logger = logging.getLogger(__name__)


class IrysFaucet(FaucetClient):
    """
    Irys testnet faucet claimer.

    Each claim first solves the Turnstile challenge of the faucet page and then
    posts ``{captchaToken, walletAddress}`` to the faucet API.
    """

    faucet_name = "Irys faucet"

    def __init__(self, solver: CapSolverClient, network: NetworkSettings = IRYS_NETWORK):
        super().__init__(origin=network.faucet_origin, page_url=network.faucet_page_url)
        self.solver = solver
        self.network = network

    async def _claim(self, wallet_address: str) -> ClaimResult:
        captcha_token = await self.solver.solve_turnstile(
            self.network.faucet_page_url, self.network.site_key
        )
        if not captcha_token:
            logger.error(f"Failed to get captcha token for {wallet_address}")
            return ClaimResult(success=False, status="captcha failed")

        payload = {
            "captchaToken": captcha_token,
            "walletAddress": wallet_address,
        }
        try:
            result = await self._post_json(self.network.faucet_api_url, payload)
            tx_hash = self._check_response(result)
        except FaucetClaimFailure as e:
            logger.error(f"Failed to claim faucet for {wallet_address}: {e}")
            return ClaimResult(success=False, status=str(e))

        logger.info(f"Faucet claim successful for {wallet_address}. TX: {tx_hash}")
        return ClaimResult(success=True, status="claimed", tx_hash=tx_hash)

    @staticmethod
    def _check_response(result: Any) -> Optional[str]:
        """Return the payout tx hash of a successful reply or raise."""
        if not isinstance(result, dict) or not result.get("success"):
            raise FaucetClaimFailure(f"faucet replied {result!r}")
        data = result.get("data")
        if isinstance(data, dict):
            return data.get("transactionHash")
        return None
