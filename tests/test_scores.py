import json
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from core.errors import UploadFailure
from core.wallet_manager import parse_private_key
from games.scores import ScorePublisher, ScoreRecord, shorten_address
from storage.data_item import EthereumSigner

KEY_A = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS_A = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
MOMENT = datetime(2025, 3, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)


class TestShortenAddress:

    def test_long_address(self):
        assert shorten_address("0x1234567890abcdef1234") == "0x1234...1234"
        assert shorten_address(ADDRESS_A) == "0xf39F...2266"

    def test_short_values_unchanged(self):
        assert shorten_address("0x12345678") == "0x12345678"
        assert shorten_address("") == ""


class TestScoreRecord:

    def test_payload(self):
        record = ScoreRecord.create(ADDRESS_A, 57, now=MOMENT)
        document = json.loads(record.payload())
        assert document == {"game": "snake", "score": 57, "date": "2025-03-01T12:30:45.123Z"}

    def test_tags_in_order(self):
        record = ScoreRecord.create(ADDRESS_A, 57, now=MOMENT)
        assert record.tags() == [
            ("Content-Type", "application/json"),
            ("Application-Id", "Irys-Arcade"),
            ("Score-Entry", "true"),
            ("Game-Name", "snake"),
            ("Player-Wallet", ADDRESS_A),
            ("Player-Name", "0xf39F...2266"),
            ("Score", "57"),
            ("Game-Version", "1.0"),
            ("Timestamp", str(record.timestamp_ms)),
        ]
        assert record.timestamp_ms == int(MOMENT.timestamp() * 1000)


class TestScorePublisher:

    @pytest.fixture
    def wallet(self):
        return parse_private_key(KEY_A, 1)

    @pytest.fixture
    def uploader(self):
        uploader = MagicMock()
        uploader.get_price = AsyncMock(return_value=0)
        uploader.upload = AsyncMock(return_value="item-id-123")
        return uploader

    @pytest.mark.asyncio
    async def test_publish_success(self, wallet, uploader, caplog):
        publisher = ScorePublisher(uploader)
        with caplog.at_level("INFO"):
            assert await publisher.publish(wallet, 42) is True

        data, signer, tags = uploader.upload.await_args.args
        assert json.loads(data)["score"] == 42
        assert isinstance(signer, EthereumSigner)
        assert signer.address == ADDRESS_A
        assert ("Score", "42") in tags
        uploader.get_price.assert_awaited_once_with(len(data))
        assert "Transaction ID: item-id-123" in caplog.text

    @pytest.mark.asyncio
    async def test_price_failure_does_not_block_upload(self, wallet, uploader):
        uploader.get_price.side_effect = UploadFailure("price down")
        publisher = ScorePublisher(uploader)
        assert await publisher.publish(wallet, 42) is True
        uploader.upload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upload_failure_returns_false(self, wallet, uploader):
        uploader.upload.side_effect = UploadFailure("Upload rejected (402)")
        publisher = ScorePublisher(uploader)
        assert await publisher.publish(wallet, 42) is False
