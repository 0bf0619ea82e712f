"""On-chain game payment for the Irys arcade bot.

:class:`PaymentSubmitter` pays the fixed per-game fee from a wallet to the
arcade contract: it reads nonce, gas estimate and gas price from the chain,
adds a 10% safety buffer to the gas limit, signs locally with the wallet key,
submits the raw transaction and waits for the receipt.

Every step can fail independently; any failure aborts the payment, is logged,
and is reported to the caller as ``None``.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from core.config import IRYS_NETWORK, NetworkSettings
from core.errors import ChainCallFailure
from core.wallet_manager import Wallet

logger = logging.getLogger(__name__)

GAS_BUFFER_PERCENT = 110


def buffered_gas_limit(estimate: int) -> int:
    """Apply the safety buffer to a gas estimate (integer arithmetic)."""
    return int(estimate) * GAS_BUFFER_PERCENT // 100


class PaymentSubmitter:
    """
    Builds, signs and submits the per-game payment transaction.

    Args:
        network: Network constants (RPC URL, chain id, contract, amount).
        w3: Pre-built async web3 client; one is created from
            ``network.rpc_url`` when omitted.
        receipt_timeout: Seconds to wait for the receipt. ``None`` waits
            without a bound of its own.
    """

    def __init__(
        self,
        network: NetworkSettings = IRYS_NETWORK,
        w3: Optional[AsyncWeb3] = None,
        receipt_timeout: Optional[float] = None,
    ) -> None:
        self.network = network
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(network.rpc_url))
        self.receipt_timeout = receipt_timeout
        self.contract_address = Web3.to_checksum_address(network.contract_address)
        self.payment_value = Web3.to_wei(network.payment_amount, "ether")

    async def build_transaction(self, wallet: Wallet) -> Dict[str, Any]:
        """
        Assemble the transaction intent from live network state.

        Raises:
            ChainCallFailure: If any of the nonce, gas estimate or gas price
                reads fails.
        """
        try:
            nonce = await self.w3.eth.get_transaction_count(wallet.address)
        except Exception as e:
            raise ChainCallFailure(f"nonce lookup failed: {e}") from e

        try:
            gas_estimate = await self.w3.eth.estimate_gas({
                "from": wallet.address,
                "to": self.contract_address,
                "value": self.payment_value,
            })
        except Exception as e:
            raise ChainCallFailure(f"gas estimation failed: {e}") from e

        try:
            gas_price = await self.w3.eth.gas_price
        except Exception as e:
            raise ChainCallFailure(f"gas price lookup failed: {e}") from e

        gas_limit = buffered_gas_limit(gas_estimate)

        logger.info(f"Gas Details for wallet {wallet.address}:")
        logger.info(f"- Gas Limit: {gas_limit}")
        logger.info(f"- Gas Price: {gas_price} wei")
        logger.info(f"- Estimated Total Gas Cost: {gas_limit * gas_price} wei")

        return {
            "to": self.contract_address,
            "value": self.payment_value,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self.network.chain_id,
        }

    async def _submit(self, wallet: Wallet, tx: Dict[str, Any]) -> str:
        try:
            signed = Account.sign_transaction(tx, wallet.private_key)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ChainCallFailure(f"sending transaction failed: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Payment transaction sent: {tx_hash_hex}")

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            raise ChainCallFailure(f"waiting for {tx_hash_hex} failed: {e}") from e

        if receipt["status"] != 1:
            raise ChainCallFailure(f"transaction {tx_hash_hex} reverted")
        return tx_hash_hex

    async def pay(self, wallet: Wallet) -> Optional[str]:
        """
        Pay the game fee from *wallet*.

        Returns:
            The confirmed transaction hash, or ``None`` if any step failed.
        """
        try:
            tx = await self.build_transaction(wallet)
            tx_hash = await self._submit(wallet, tx)
        except ChainCallFailure as e:
            logger.error(f"Payment failed for wallet {wallet.address}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error paying for game for {wallet.address}: {e}", exc_info=True)
            return None

        logger.info(f"Payment confirmed for wallet {wallet.address}")
        return tx_hash

    async def get_balance(self, address: str) -> Optional[Decimal]:
        """Native balance of *address* in ether units, ``None`` on RPC failure."""
        try:
            balance_wei = await self.w3.eth.get_balance(address)
        except Exception as e:
            logger.error(f"Balance lookup failed for {address}: {e}")
            return None
        return Web3.from_wei(balance_wei, "ether")

    async def close(self) -> None:
        """Release the provider's HTTP session, if it holds one."""
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is None:
            return
        try:
            await disconnect()
        except Exception as e:
            logger.debug(f"Provider disconnect failed: {e}")
