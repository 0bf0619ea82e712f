import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from eth_account import Account

from core.errors import ConfigError, WalletParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Wallet:
    """A signing identity loaded from the private key file.

    The key is kept out of ``repr`` so wallets can be logged safely.
    """

    address: str
    private_key: str = field(repr=False)


def normalize_private_key(raw: str) -> str:
    """Strip whitespace and add the ``0x`` prefix when it is missing."""
    key = raw.strip()
    return key if key.startswith("0x") else f"0x{key}"


def parse_private_key(line: str, line_no: int) -> Wallet:
    """
    Turn one private-key line into a :class:`Wallet`.

    Raises:
        WalletParseError: If the key cannot be used to derive an address.
    """
    private_key = normalize_private_key(line)
    try:
        account = Account.from_key(private_key)
    except Exception as e:
        # Never include the key material in the message
        raise WalletParseError(line_no, type(e).__name__) from None
    return Wallet(address=account.address, private_key=private_key)


def load_wallets(path: Union[str, Path]) -> List[Wallet]:
    """
    Load wallets from a private key file, preserving file order.

    Blank lines and ``#`` comments are ignored. A line that does not hold a
    valid key is logged and skipped; the remaining lines still load.

    Raises:
        ConfigError: If the file cannot be read.
    """
    key_path = Path(path)
    try:
        raw = key_path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read private key file {key_path}: {e}") from e

    # Undecodable bytes only spoil their own line; such a key fails to parse below
    lines = raw.decode("utf-8", errors="replace").splitlines()

    wallets: List[Wallet] = []
    for line_no, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            wallets.append(parse_private_key(stripped, line_no))
        except WalletParseError as e:
            logger.error(f"Skipping invalid private key in {key_path} ({e})")

    logger.info(f"Loaded {len(wallets)} wallets from private keys")
    return wallets
