"""ANS-104 data items signed with an Ethereum key.

The Irys bundler accepts uploads as ANS-104 "data items": a binary envelope
carrying the signature, the signer's public key, optional target and anchor,
an avro-encoded tag list and the payload.  Only the Ethereum signature scheme
(type 3) is implemented.

Binary layout::

    signature type   2 bytes, little endian
    signature        65 bytes (r || s || v)
    owner            65 bytes (uncompressed secp256k1 public key)
    target           1 presence byte [+ 32 bytes]
    anchor           1 presence byte [+ 32 bytes]
    tag count        8 bytes, little endian
    tag byte length  8 bytes, little endian
    tags             avro array of {name: bytes, value: bytes}
    data             remaining bytes

The signed message is the SHA-384 "deep hash" of the item fields, signed with
EIP-191 ``personal_sign`` semantics.  The item id is the base64url encoded
SHA-256 of the signature.
"""

import base64
import hashlib
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

SIGNATURE_TYPE_ETHEREUM = 3
SIGNATURE_LENGTH = 65
OWNER_LENGTH = 65
TARGET_LENGTH = 32
ANCHOR_LENGTH = 32

MAX_TAGS = 128
MAX_TAG_NAME_BYTES = 1024
MAX_TAG_VALUE_BYTES = 3072

Tag = Tuple[str, str]
DeepHashInput = Union[bytes, Sequence["DeepHashInput"]]


def _sha384(data: bytes) -> bytes:
    return hashlib.sha384(data).digest()


def deep_hash(data: DeepHashInput) -> bytes:
    """Arweave deep hash of a blob or a (nested) list of blobs."""
    if isinstance(data, (bytes, bytearray)):
        tag = b"blob" + str(len(data)).encode()
        return _sha384(_sha384(tag) + _sha384(bytes(data)))

    acc = _sha384(b"list" + str(len(data)).encode())
    for chunk in data:
        acc = _sha384(acc + deep_hash(chunk))
    return acc


def _encode_long(value: int) -> bytes:
    """Avro ``long``: zigzag encoding followed by a base-128 varint."""
    n = (value << 1) ^ (value >> 63)
    out = bytearray()
    while n > 0x7F:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def serialize_tags(tags: Sequence[Tag]) -> bytes:
    """Avro-encode *tags*; an empty tag list encodes to no bytes at all.

    Raises:
        ValueError: A tag limit of the bundler is exceeded.
    """
    if not tags:
        return b""
    if len(tags) > MAX_TAGS:
        raise ValueError(f"At most {MAX_TAGS} tags are allowed, got {len(tags)}")

    out = bytearray(_encode_long(len(tags)))
    for name, value in tags:
        name_bytes = name.encode("utf-8")
        value_bytes = value.encode("utf-8")
        if not name_bytes or len(name_bytes) > MAX_TAG_NAME_BYTES:
            raise ValueError(f"Tag name must be 1-{MAX_TAG_NAME_BYTES} bytes: {name!r}")
        if not value_bytes or len(value_bytes) > MAX_TAG_VALUE_BYTES:
            raise ValueError(f"Tag value must be 1-{MAX_TAG_VALUE_BYTES} bytes for {name!r}")
        for field in (name_bytes, value_bytes):
            out += _encode_long(len(field))
            out += field
    out += _encode_long(0)
    return bytes(out)


def base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class EthereumSigner:
    """Signs data items with a secp256k1 private key (signature type 3)."""

    signature_type = SIGNATURE_TYPE_ETHEREUM

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)
        public_key = keys.PrivateKey(bytes(self._account.key)).public_key
        self.public_key = b"\x04" + public_key.to_bytes()

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, message: bytes) -> bytes:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)


@dataclass(frozen=True)
class DataItem:
    """A signed, serialized data item ready for upload."""

    raw: bytes
    id: str
    signature: bytes
    owner: bytes
    tags: Tuple[Tag, ...]
    data: bytes

    def __len__(self) -> int:
        return len(self.raw)


def _optional_field(value: Optional[bytes], length: int, name: str) -> bytes:
    if value is None:
        return b"\x00"
    if len(value) != length:
        raise ValueError(f"{name} must be exactly {length} bytes, got {len(value)}")
    return b"\x01" + value


def create_data_item(
    data: bytes,
    signer: EthereumSigner,
    tags: Sequence[Tag] = (),
    target: Optional[bytes] = None,
    anchor: Optional[bytes] = None,
) -> DataItem:
    """Build and sign a data item for *data*.

    Args:
        data: Payload bytes.
        signer: Signing identity.
        tags: ``(name, value)`` pairs attached to the item.
        target: Optional 32-byte target address.
        anchor: Optional 32-byte anchor (replay protection).

    Raises:
        ValueError: Invalid tags, target or anchor.
    """
    tag_list: List[Tag] = [(str(name), str(value)) for name, value in tags]
    tag_bytes = serialize_tags(tag_list)
    target_field = _optional_field(target, TARGET_LENGTH, "target")
    anchor_field = _optional_field(anchor, ANCHOR_LENGTH, "anchor")

    message = deep_hash([
        b"dataitem",
        b"1",
        str(signer.signature_type).encode(),
        signer.public_key,
        target or b"",
        anchor or b"",
        tag_bytes,
        data,
    ])
    signature = signer.sign(message)
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError(f"Unexpected signature length {len(signature)}")

    raw = b"".join([
        signer.signature_type.to_bytes(2, "little"),
        signature,
        signer.public_key,
        target_field,
        anchor_field,
        len(tag_list).to_bytes(8, "little"),
        len(tag_bytes).to_bytes(8, "little"),
        tag_bytes,
        data,
    ])
    return DataItem(
        raw=raw,
        id=base64url(hashlib.sha256(signature).digest()),
        signature=signature,
        owner=signer.public_key,
        tags=tuple(tag_list),
        data=data,
    )
