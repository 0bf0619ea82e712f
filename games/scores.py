"""Score records and their publication to the Irys storage network.

A :class:`ScoreRecord` is the JSON document ``{game, score, date}`` plus the
tag set the arcade leaderboard queries on.  :class:`ScorePublisher` signs the
record with the player's wallet key and uploads it through an
:class:`~storage.irys.IrysUploader`.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from core.wallet_manager import Wallet
from games.snake import GAME_NAME
from storage.data_item import EthereumSigner
from storage.irys import IrysUploader

logger = logging.getLogger(__name__)

APPLICATION_ID = "Irys-Arcade"
GAME_VERSION = "1.0"


def shorten_address(address: str) -> str:
    """Display name for a wallet: ``0x1234...abcd`` for long addresses."""
    if len(address) > 10:
        return f"{address[:6]}...{address[-4:]}"
    return address


def _iso_timestamp(moment: datetime) -> str:
    # Same shape as JavaScript's Date.toISOString()
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ScoreRecord:
    """One finished game, ready to be uploaded.

    Attributes:
        address: Player wallet address.
        score: Final score.
        created_at: Submission time (UTC).
        game: Game name.
    """

    address: str
    score: int
    created_at: datetime
    game: str = GAME_NAME

    @classmethod
    def create(cls, address: str, score: int, now: Optional[datetime] = None) -> "ScoreRecord":
        return cls(address=address, score=score, created_at=now or datetime.now(timezone.utc))

    @property
    def timestamp_ms(self) -> int:
        return int(self.created_at.timestamp() * 1000)

    def payload(self) -> bytes:
        """The JSON document stored on the network."""
        document = {
            "game": self.game,
            "score": self.score,
            "date": _iso_timestamp(self.created_at),
        }
        return json.dumps(document, separators=(",", ":")).encode("utf-8")

    def tags(self) -> List[Tuple[str, str]]:
        return [
            ("Content-Type", "application/json"),
            ("Application-Id", APPLICATION_ID),
            ("Score-Entry", "true"),
            ("Game-Name", self.game),
            ("Player-Wallet", self.address),
            ("Player-Name", shorten_address(self.address)),
            ("Score", str(self.score)),
            ("Game-Version", GAME_VERSION),
            ("Timestamp", str(self.timestamp_ms)),
        ]


class ScorePublisher:
    """Uploads score records signed by the player's wallet."""

    def __init__(self, uploader: IrysUploader):
        self.uploader = uploader

    async def publish(self, wallet: Wallet, score: int) -> bool:
        """
        Publish *score* for *wallet*.

        Returns ``True`` iff the upload completed. Errors are logged, never
        raised.
        """
        try:
            record = ScoreRecord.create(wallet.address, score)
            payload = record.payload()
            signer = EthereumSigner(wallet.private_key)

            logger.info(f"Preparing to upload score {score} for wallet {wallet.address}")
            try:
                price = await self.uploader.get_price(len(payload))
                logger.info(f"Price for uploading score: {price}")
            except Exception as e:
                # The quote is informational only
                logger.warning(f"Could not fetch upload price: {e}")

            upload_id = await self.uploader.upload(payload, signer, record.tags())
        except Exception as e:
            logger.error(f"Error submitting game score for {wallet.address}: {e}", exc_info=True)
            return False

        logger.info(
            f"Score {score} successfully submitted for wallet {wallet.address}. "
            f"Transaction ID: {upload_id}"
        )
        return True
