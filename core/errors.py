"""Exception taxonomy for the Irys arcade bot.

Component operations raise these internally and convert them into a
success/failure value at their public boundary, so the orchestrator and the
scheduler only ever see booleans (or ``None``).  The only exception that is
allowed to travel up to :mod:`main` is :class:`ConfigError`.

Classes:
    BotError: Common base class.
    ConfigError: Invalid or missing configuration (fatal at startup).
    WalletParseError: A single private-key line could not be parsed.
    CaptchaFailure: Task creation failed, solver reported failure, or timeout.
    FaucetClaimFailure: The faucet rejected or could not process a claim.
    ChainCallFailure: Any JSON-RPC read, write, or confirmation failure.
    UploadFailure: The storage node rejected or failed an upload.
"""


class BotError(Exception):
    """Base class for all bot errors."""


class ConfigError(BotError):
    """Raised when configuration cannot be loaded or is invalid."""


class WalletParseError(BotError):
    """Raised when a private-key line cannot be turned into a wallet.

    Attributes:
        line_no: 1-based line number in the key file.
    """

    def __init__(self, line_no: int, reason: str) -> None:
        super().__init__(f"line {line_no}: {reason}")
        self.line_no = line_no
        self.reason = reason


class CaptchaFailure(BotError):
    """Raised when no captcha token could be obtained."""


class FaucetClaimFailure(BotError):
    """Raised when a faucet claim does not succeed."""


class ChainCallFailure(BotError):
    """Raised when a chain RPC call or a transaction fails."""


class UploadFailure(BotError):
    """Raised when a storage upload fails."""
