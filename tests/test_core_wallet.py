import logging

import pytest

from core.errors import ConfigError, WalletParseError
from core.wallet_manager import (
    Wallet,
    load_wallets,
    normalize_private_key,
    parse_private_key,
)

KEY_A = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS_A = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
KEY_B = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
ADDRESS_B = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class TestParsePrivateKey:

    def test_known_address(self):
        wallet = parse_private_key(KEY_A, 1)
        assert wallet.address == ADDRESS_A
        assert wallet.private_key == KEY_A

    def test_prefix_is_optional(self):
        assert parse_private_key(KEY_A[2:], 1) == parse_private_key(KEY_A, 1)

    def test_deterministic_and_distinct(self):
        assert parse_private_key(KEY_A, 1).address == parse_private_key(KEY_A, 2).address
        assert parse_private_key(KEY_B, 1).address == ADDRESS_B
        assert parse_private_key(KEY_A, 1).address != parse_private_key(KEY_B, 1).address

    def test_invalid_key(self):
        with pytest.raises(WalletParseError) as exc_info:
            parse_private_key("0xnothex", 4)
        assert exc_info.value.line_no == 4
        assert "nothex" not in str(exc_info.value)

    def test_normalize(self):
        assert normalize_private_key("  abc \n") == "0xabc"
        assert normalize_private_key("0xabc") == "0xabc"

    def test_repr_hides_key(self):
        wallet = Wallet(address=ADDRESS_A, private_key=KEY_A)
        assert KEY_A not in repr(wallet)
        assert ADDRESS_A in repr(wallet)


class TestLoadWallets:

    def test_skips_comments_and_blank_lines(self, tmp_path):
        path = tmp_path / "private_keys.txt"
        path.write_text(f"# main wallets\n\n{KEY_A}\n   \n{KEY_B[2:]}\n# {KEY_B}\n")
        wallets = load_wallets(path)
        assert [w.address for w in wallets] == [ADDRESS_A, ADDRESS_B]

    def test_invalid_line_skipped(self, tmp_path, caplog):
        path = tmp_path / "private_keys.txt"
        path.write_text(f"{KEY_A}\nnot-a-key\n{KEY_B}\n")
        with caplog.at_level(logging.INFO):
            wallets = load_wallets(path)
        assert [w.address for w in wallets] == [ADDRESS_A, ADDRESS_B]
        assert "line 2" in caplog.text
        assert "Loaded 2 wallets from private keys" in caplog.text

    def test_non_utf8_comment_does_not_abort(self, tmp_path):
        path = tmp_path / "private_keys.txt"
        path.write_bytes(b"# caf\xe9 wallets\n" + KEY_A.encode() + b"\n")
        wallets = load_wallets(path)
        assert [w.address for w in wallets] == [ADDRESS_A]

    def test_non_utf8_key_line_skipped(self, tmp_path):
        path = tmp_path / "private_keys.txt"
        path.write_bytes(b"0xab\xff\xfe\n" + KEY_B.encode() + b"\n")
        wallets = load_wallets(path)
        assert [w.address for w in wallets] == [ADDRESS_B]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_wallets(tmp_path / "missing.txt")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "private_keys.txt"
        path.write_text("")
        assert load_wallets(path) == []
