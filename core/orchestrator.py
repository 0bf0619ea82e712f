"""Pipeline and scheduling engine for the Irys arcade bot.

This module drives all per-wallet activity:

* :class:`GamePipeline` runs one paid game for a wallet
  (payment, settle wait, play, score upload), aborting at the first failed
  stage.
* :class:`RunScheduler` walks the wallet set once per cycle, claiming from
  the faucet and running pipelines as configured, then waits for the next
  cycle until :meth:`RunScheduler.stop` is called.

Classes:
    PipelineStage: Enum of pipeline stages.
    PipelineResult: Outcome of one pipeline run.
    GamePipeline: Pay -> settle -> play -> publish sequence.
    CycleSummary: Per-cycle counters used for the aggregate report.
    RunScheduler: Main loop.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TYPE_CHECKING

from core.config import RunConfig
from core.monitoring import countdown, render_cycle_summary
from core.wallet_manager import Wallet

if TYPE_CHECKING:
    from core.payment import PaymentSubmitter
    from faucets.base import FaucetClient
    from games.scores import ScorePublisher
    from games.snake import SnakeGameSimulator

logger = logging.getLogger(__name__)

# Wait between a confirmed payment and the start of play
SETTLE_DELAY_SECONDS = 5


class PipelineStage(Enum):
    """Stages of a :class:`GamePipeline` run."""
    PAY = "pay"
    SETTLE = "settle"
    PLAY = "play"
    PUBLISH = "publish"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of one :meth:`GamePipeline.run`.

    Attributes:
        address: Wallet the pipeline ran for.
        stage: ``DONE`` or ``FAILED``.
        failed_at: Stage that failed, when ``stage`` is ``FAILED``.
        tx_hash: Payment transaction hash, once the payment confirmed.
        score: Played score, once the game finished.
    """
    address: str
    stage: PipelineStage = PipelineStage.PAY
    failed_at: Optional[PipelineStage] = None
    tx_hash: Optional[str] = None
    score: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.stage is PipelineStage.DONE


class GamePipeline:
    """
    Runs one paid game for a wallet.

    Stages execute strictly in order and a failed stage ends the run, so a
    game is never played without a confirmed payment and a score is never
    published without a played game.
    """

    def __init__(
        self,
        payer: "PaymentSubmitter",
        game: "SnakeGameSimulator",
        publisher: "ScorePublisher",
        settle_delay: float = SETTLE_DELAY_SECONDS,
    ):
        self.payer = payer
        self.game = game
        self.publisher = publisher
        self.settle_delay = settle_delay

    async def run(self, wallet: Wallet) -> PipelineResult:
        result = PipelineResult(address=wallet.address)
        try:
            result.stage = PipelineStage.PAY
            tx_hash = await self.payer.pay(wallet)
            if not tx_hash:
                return self._fail(result, "Payment failed")
            result.tx_hash = tx_hash

            result.stage = PipelineStage.SETTLE
            logger.info(f"Waiting {self.settle_delay}s for payment to settle")
            await asyncio.sleep(self.settle_delay)

            result.stage = PipelineStage.PLAY
            result.score = await self.game.play()

            result.stage = PipelineStage.PUBLISH
            if not await self.publisher.publish(wallet, result.score):
                return self._fail(result, "Score submission failed")
        except Exception as e:
            logger.error(
                f"Unexpected error in {result.stage.value} stage for {wallet.address}: {e}",
                exc_info=True,
            )
            return self._fail(result, "Unexpected error")

        result.stage = PipelineStage.DONE
        logger.info(f"Game completed for wallet {wallet.address} with score {result.score}")
        return result

    @staticmethod
    def _fail(result: PipelineResult, reason: str) -> PipelineResult:
        result.failed_at = result.stage
        result.stage = PipelineStage.FAILED
        logger.error(f"{reason} for wallet {result.address}, game aborted")
        return result


@dataclass
class CycleSummary:
    """Counters for one scheduler cycle."""
    cycle: int
    wallet_count: int
    faucet_enabled: bool
    game_enabled: bool
    games_per_wallet: int
    faucet_successes: int = 0
    game_successes: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def games_total(self) -> int:
        return self.wallet_count * self.games_per_wallet


CountdownFn = Callable[[float, Optional[asyncio.Event]], Awaitable[bool]]


class RunScheduler:
    """
    Main loop of the bot.

    Each cycle visits every wallet in file order. For a wallet it first
    claims from the faucet (when enabled), then runs up to
    ``games_per_wallet`` pipelines (when enabled), stopping that wallet's
    games at the first failure. Wallets never overlap.
    """

    def __init__(
        self,
        config: RunConfig,
        wallets: List[Wallet],
        faucet: Optional["FaucetClient"] = None,
        pipeline: Optional[GamePipeline] = None,
        countdown_fn: CountdownFn = countdown,
    ):
        """
        Initialize the scheduler.

        Args:
            config: Validated run configuration.
            wallets: Wallet set, in file order.
            faucet: Faucet client; required when the faucet is enabled.
            pipeline: Game pipeline; required when games are enabled.
            countdown_fn: Awaitable used for the wait between cycles.
        """
        if config.features.faucet_enabled and faucet is None:
            raise ValueError("faucet is enabled but no faucet client was given")
        if config.features.game_enabled and pipeline is None:
            raise ValueError("games are enabled but no game pipeline was given")

        self.config = config
        self.wallets = wallets
        self.faucet = faucet
        self.pipeline = pipeline
        self.countdown_fn = countdown_fn
        self.cycle_count = 0
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    async def _pause(self, seconds: float) -> bool:
        """Sleep for *seconds*; ``False`` if :meth:`stop` was called meanwhile."""
        if seconds <= 0:
            return not self.stopped
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return False
        except asyncio.TimeoutError:
            return True

    async def _claim_faucet(self, wallet: Wallet, summary: CycleSummary) -> None:
        logger.info(f"Claiming faucet for wallet {wallet.address}")
        result = await self.faucet.claim(wallet.address)
        if not result.success:
            logger.warning(f"Faucet claim failed for {wallet.address}: {result.status}")
            return
        summary.faucet_successes += 1
        delay = self.config.faucet.delay_between_claims
        logger.info(f"Waiting {delay} seconds before next claim")
        await self._pause(delay)

    async def _play_games(self, wallet: Wallet, summary: CycleSummary) -> None:
        games = self.config.general.games_per_wallet
        delay = self.config.game.delay_between_games
        for game_no in range(1, games + 1):
            if self.stopped:
                return
            logger.info(f"Starting game {game_no}/{games} for wallet {wallet.address}")
            result = await self.pipeline.run(wallet)
            if not result.success:
                logger.warning(
                    f"Stopping games for {wallet.address} after failure "
                    f"at {result.failed_at.value if result.failed_at else 'unknown'} stage"
                )
                return
            summary.game_successes += 1
            if game_no < games:
                logger.info(f"Waiting {delay} seconds before next game")
                await self._pause(delay)

    async def run_cycle(self) -> CycleSummary:
        """Visit every wallet once and report the aggregate counts."""
        self.cycle_count += 1
        features = self.config.features
        summary = CycleSummary(
            cycle=self.cycle_count,
            wallet_count=len(self.wallets),
            faucet_enabled=features.faucet_enabled,
            game_enabled=features.game_enabled,
            games_per_wallet=self.config.general.games_per_wallet,
        )
        logger.info(f"Starting cycle #{summary.cycle} for {summary.wallet_count} wallets")

        for index, wallet in enumerate(self.wallets, start=1):
            if self.stopped:
                logger.info("Stop requested, ending cycle early")
                break
            logger.info(f"Processing wallet {index}/{summary.wallet_count}: {wallet.address}")
            if features.faucet_enabled:
                await self._claim_faucet(wallet, summary)
            if features.game_enabled:
                await self._play_games(wallet, summary)

        if features.faucet_enabled:
            logger.info(
                f"Faucet claims completed. Success: {summary.faucet_successes}/{summary.wallet_count}"
            )
        if features.game_enabled:
            logger.info(
                f"Games completed. Success: {summary.game_successes}/{summary.games_total}"
            )
        render_cycle_summary(summary)
        return summary

    async def scheduler_loop(self) -> None:
        """Run cycles until :meth:`stop` is called.

        Between cycles the scheduler waits ``general.hours_between_runs``
        hours with a countdown display.
        """
        logger.info("Run scheduler loop started.")
        while not self._stop_event.is_set():
            await self.run_cycle()
            if self._stop_event.is_set():
                break

            wait_seconds = self.config.general.hours_between_runs * 3600
            logger.info(
                f"Cycle #{self.cycle_count} finished. Next run in "
                f"{self.config.general.hours_between_runs} hours"
            )
            finished = await self.countdown_fn(wait_seconds, self._stop_event)
            if not finished:
                break
        logger.info("Run scheduler loop stopped.")

    def stop(self) -> None:
        """Signal the loop to end at its next wait."""
        self._stop_event.set()
