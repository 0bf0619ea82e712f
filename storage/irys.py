import base64
import logging
import secrets
from typing import Any, Optional, Sequence

import aiohttp

from core.config import IRYS_NETWORK
from core.errors import UploadFailure
from storage.data_item import ANCHOR_LENGTH, EthereumSigner, Tag, create_data_item

logger = logging.getLogger(__name__)


def random_anchor() -> bytes:
    """32 printable bytes, the same shape the Irys SDK uses for anchors."""
    return base64.b64encode(secrets.token_bytes(32))[:ANCHOR_LENGTH]


class IrysUploader:
    """
    Minimal HTTP client for an Irys bundler node.

    Prices are quoted with ``GET /price/{token}/{bytes}`` and signed data items
    are posted to ``POST /tx/{token}``.
    """

    def __init__(
        self,
        node_url: str = IRYS_NETWORK.storage_node_url,
        token: str = IRYS_NETWORK.storage_token,
        timeout: float = 60.0,
    ) -> None:
        self.node_url = node_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self.session

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def get_price(self, num_bytes: int) -> int:
        """
        Upload price for *num_bytes* in the token's atomic units.

        Raises:
            UploadFailure: The node did not return a price.
        """
        session = await self._get_session()
        url = f"{self.node_url}/price/{self.token}/{num_bytes}"
        async with session.get(url) as resp:
            body = await resp.text()
            if resp.status != 200:
                raise UploadFailure(f"Price query failed ({resp.status}): {body[:200]}")
        try:
            return int(body.strip())
        except ValueError:
            raise UploadFailure(f"Unexpected price response: {body[:200]}") from None

    async def upload(
        self,
        data: bytes,
        signer: EthereumSigner,
        tags: Sequence[Tag] = (),
    ) -> str:
        """
        Sign *data* as a data item and post it to the node.

        Returns:
            The id of the stored item.

        Raises:
            UploadFailure: The node rejected the upload.
        """
        item = create_data_item(data, signer, tags=tags, anchor=random_anchor())
        session = await self._get_session()
        url = f"{self.node_url}/tx/{self.token}"
        headers = {"Content-Type": "application/octet-stream"}

        async with session.post(url, data=item.raw, headers=headers) as resp:
            if resp.status not in (200, 201):
                body = await resp.text()
                raise UploadFailure(f"Upload rejected ({resp.status}): {body[:200]}")
            reply: Any = await resp.json(content_type=None)

        if isinstance(reply, dict) and reply.get("id"):
            upload_id = reply["id"]
            if upload_id != item.id:
                logger.warning(f"Node returned id {upload_id}, expected {item.id}")
            return upload_id
        return item.id
