import hashlib

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from storage.data_item import (
    EthereumSigner,
    _encode_long,
    base64url,
    create_data_item,
    deep_hash,
    serialize_tags,
)

KEY_A = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS_A = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ANCHOR = b"A" * 32


@pytest.fixture
def signer():
    return EthereumSigner(KEY_A)


class TestAvroTags:

    @pytest.mark.parametrize("value,encoded", [
        (0, b"\x00"),
        (1, b"\x02"),
        (-1, b"\x01"),
        (63, b"\x7e"),
        (64, b"\x80\x01"),
        (1024, b"\x80\x10"),
    ])
    def test_encode_long(self, value, encoded):
        assert _encode_long(value) == encoded

    def test_single_tag(self):
        assert serialize_tags([("a", "b")]) == b"\x02\x02a\x02b\x00"

    def test_empty(self):
        assert serialize_tags([]) == b""

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            serialize_tags([("", "x")])

    def test_oversized_value_rejected(self):
        with pytest.raises(ValueError):
            serialize_tags([("name", "v" * 3073)])

    def test_too_many_tags_rejected(self):
        with pytest.raises(ValueError):
            serialize_tags([("n", "v")] * 129)


class TestDeepHash:

    def test_blob(self):
        data = b"hello"
        tag = hashlib.sha384(b"blob5").digest()
        expected = hashlib.sha384(tag + hashlib.sha384(data).digest()).digest()
        assert deep_hash(data) == expected

    def test_list_order_matters(self):
        assert deep_hash([b"a", b"b"]) != deep_hash([b"b", b"a"])
        assert len(deep_hash([b"a", [b"b"]])) == 48


class TestEthereumSigner:

    def test_owner_is_uncompressed_public_key(self, signer):
        assert len(signer.public_key) == 65
        assert signer.public_key[0] == 0x04
        assert signer.address == ADDRESS_A

    def test_signature_recovers_address(self, signer):
        message = b"score"
        signature = signer.sign(message)
        assert len(signature) == 65
        recovered = Account.recover_message(encode_defunct(primitive=message), signature=signature)
        assert recovered == ADDRESS_A


class TestCreateDataItem:

    def test_layout(self, signer):
        tags = [("Content-Type", "application/json"), ("Score", "42")]
        item = create_data_item(b'{"score":42}', signer, tags=tags, anchor=ANCHOR)
        raw = item.raw
        tag_bytes = serialize_tags(tags)

        assert raw[0:2] == b"\x03\x00"
        assert raw[2:67] == item.signature
        assert raw[67:132] == signer.public_key == item.owner
        assert raw[132] == 0
        assert raw[133] == 1
        assert raw[134:166] == ANCHOR
        assert int.from_bytes(raw[166:174], "little") == 2
        assert int.from_bytes(raw[174:182], "little") == len(tag_bytes)
        assert raw[182:182 + len(tag_bytes)] == tag_bytes
        assert raw[182 + len(tag_bytes):] == b'{"score":42}'
        assert len(item) == len(raw)

    def test_id_and_signature(self, signer):
        item = create_data_item(b"payload", signer, tags=[("a", "b")], anchor=ANCHOR)
        assert item.id == base64url(hashlib.sha256(item.signature).digest())
        assert len(item.id) == 43

        message = deep_hash([
            b"dataitem", b"1", b"3", signer.public_key, b"", ANCHOR,
            serialize_tags([("a", "b")]), b"payload",
        ])
        recovered = Account.recover_message(encode_defunct(primitive=message), signature=item.signature)
        assert recovered == ADDRESS_A

    def test_without_tags_or_anchor(self, signer):
        item = create_data_item(b"x", signer)
        assert item.raw[132:134] == b"\x00\x00"
        assert item.raw[134:150] == b"\x00" * 16
        assert item.raw[150:] == b"x"

    def test_bad_anchor_length(self, signer):
        with pytest.raises(ValueError):
            create_data_item(b"x", signer, anchor=b"short")
