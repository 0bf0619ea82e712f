"""Application configuration for the Irys arcade bot.

Three layers of configuration, loaded once per process start:

* :data:`IRYS_NETWORK` -- immutable network constants (:class:`NetworkSettings`).
* :class:`BotSettings` -- process settings from environment variables and
  ``.env`` (log level, file paths, secret overrides).
* :class:`RunConfig` -- the YAML run configuration (feature toggles, timing,
  score ranges), loaded with :func:`load_run_config`.

Key exports:
    IRYS_NETWORK: Network constants for the Irys testnet.
    BotSettings: Environment-backed settings model.
    RunConfig: Root model of ``config.yaml``.
    load_run_config: Read and validate a YAML run configuration.
"""

# pylint: disable=no-member

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigError

# ---------------------------------------------------------------------------
# Base Paths
# ---------------------------------------------------------------------------
BASE_DIR: Path = Path(__file__).parent.parent
"""Project root directory (parent of ``core/``)."""

logger: logging.Logger = logging.getLogger(__name__)


class NetworkSettings(BaseModel):
    """Process-wide network constants.

    Attributes:
        name: Display name of the network.
        rpc_url: Execution-layer JSON-RPC endpoint.
        chain_id: EIP-155 chain id used when signing.
        currency_symbol: Native currency ticker.
        block_explorer_url: Explorer base URL (for log links).
        site_key: Turnstile site key of the faucet page.
        contract_address: Receiver of the per-game payment.
        payment_amount: Native amount paid per game (ether units).
        faucet_api_url: Faucet claim endpoint.
        faucet_page_url: Faucet web page (captcha page URL and referer).
        faucet_origin: Origin header sent with faucet claims.
        storage_node_url: Bundler node accepting score uploads.
        storage_token: Payment token name used in bundler URLs.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    rpc_url: str
    chain_id: int
    currency_symbol: str
    block_explorer_url: str
    site_key: str
    contract_address: str
    payment_amount: Decimal
    faucet_api_url: str
    faucet_page_url: str
    faucet_origin: str
    storage_node_url: str
    storage_token: str = "ethereum"


IRYS_NETWORK = NetworkSettings(
    name="IRYS NETWORK",
    rpc_url="https://testnet-rpc.irys.xyz/v1/execution-rpc",
    chain_id=1270,
    currency_symbol="IRYS",
    block_explorer_url="https://storage-explorer.irys.xyz",
    site_key="0x4AAAAAAA6vnrvBCtS4FAl-",
    contract_address="0xEFeB425135d5cDBEfFA5c9B8C16E81C7833dA02E",
    payment_amount=Decimal("0.005"),
    faucet_api_url="https://irys.xyz/api/faucet",
    faucet_page_url="https://irys.xyz/faucet",
    faucet_origin="https://irys.xyz",
    storage_node_url="https://uploader.irys.xyz",
)


class BotSettings(BaseSettings):
    """Environment-backed process settings.

    All fields can be set via environment variables or a ``.env`` file.

    Attributes:
        log_level: Root logging level name.
        log_file: Append-only run log path.
        log_max_bytes: Rotate the run log at this size (``0`` never rotates).
        log_backup_count: Number of gzip backups kept when rotating.
        config_file: Path of the YAML run configuration.
        capsolver_api_key: Overrides ``captcha.api_key`` from the YAML file.
        receipt_timeout_seconds: Upper bound on the transaction receipt wait
            (``None`` waits as long as the RPC transport allows).
    """

    log_level: str = "INFO"
    log_file: str = "app.log"
    log_max_bytes: int = 0
    log_backup_count: int = 0
    config_file: str = "config.yaml"
    capsolver_api_key: Optional[str] = None
    receipt_timeout_seconds: Optional[float] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class ConfigSection(BaseModel):
    """Base for YAML sections: a blank key (``delay_between_claims:``) keeps its default."""

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class WalletsConfig(ConfigSection):
    """``wallets`` section."""

    private_key_file: str = "private_keys.txt"


class CaptchaConfig(ConfigSection):
    """``captcha`` section."""

    api_key: str = ""


class FeaturesConfig(ConfigSection):
    """``features`` section: which actions run each cycle."""

    faucet_enabled: bool = True
    game_enabled: bool = True


class GeneralConfig(ConfigSection):
    """``general`` section.

    Attributes:
        games_per_wallet: Pipeline runs attempted per wallet per cycle
            (``0`` or blank means one).
        hours_between_runs: Wait between the end of one cycle and the next.
    """

    games_per_wallet: int = Field(default=1, ge=1)
    hours_between_runs: float = Field(default=25, ge=0)

    @field_validator("games_per_wallet", mode="before")
    @classmethod
    def _zero_games_means_one(cls, value: Any) -> Any:
        if value is None or value == 0 or value == "":
            return 1
        return value


class FaucetConfig(ConfigSection):
    """``faucet`` section."""

    # Seconds to wait after each successful claim
    delay_between_claims: float = Field(default=60, ge=0)


class GameConfig(ConfigSection):
    """``game`` section: score range, play time range and pacing."""

    min_score: int = 10
    max_score: int = 100
    min_play_time: int = Field(default=30, ge=0)
    max_play_time: int = Field(default=90, ge=0)
    # Seconds to wait between successful games of one wallet
    delay_between_games: float = Field(default=30, ge=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "GameConfig":
        if self.min_score > self.max_score:
            raise ValueError(
                f"min_score ({self.min_score}) is greater than "
                f"max_score ({self.max_score})"
            )
        if self.min_play_time > self.max_play_time:
            raise ValueError(
                f"min_play_time ({self.min_play_time}) is greater than "
                f"max_play_time ({self.max_play_time})"
            )
        return self


class RunConfig(BaseModel):
    """Root model of the YAML run configuration."""

    wallets: WalletsConfig = Field(default_factory=WalletsConfig)
    captcha: CaptchaConfig = Field(default_factory=CaptchaConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    faucet: FaucetConfig = Field(default_factory=FaucetConfig)
    game: GameConfig = Field(default_factory=GameConfig)

    def apply_settings(self, settings: BotSettings) -> "RunConfig":
        """Return a copy with environment overrides from *settings* applied."""
        if not settings.capsolver_api_key:
            return self
        captcha = self.captcha.model_copy(
            update={"api_key": settings.capsolver_api_key}
        )
        return self.model_copy(update={"captcha": captcha})

    def validate_for_startup(self) -> None:
        """Reject combinations that cannot work at runtime.

        Raises:
            ConfigError: The faucet is enabled but no captcha key is set.
        """
        if self.features.faucet_enabled and not self.captcha.api_key.strip():
            raise ConfigError(
                "features.faucet_enabled is true but captcha.api_key is empty"
            )


def load_run_config(path: Union[str, Path]) -> RunConfig:
    """Read and validate a YAML run configuration.

    Args:
        path: Location of the YAML file.

    Returns:
        The validated :class:`RunConfig`.

    Raises:
        ConfigError: The file is missing, is not valid YAML, or does not
            match the schema.
    """
    config_path = Path(path)
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration {config_path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at top level")

    try:
        config = RunConfig.model_validate(_drop_null_sections(data))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    logger.info("Configuration loaded from %s", config_path)
    return config


def _drop_null_sections(data: Dict[str, Any]) -> Dict[str, Any]:
    # An empty "faucet:" key in YAML parses as None; treat it as defaults
    return {key: value for key, value in data.items() if value is not None}
