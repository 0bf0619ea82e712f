"""
Irys Arcade Bot - Main Entry Point

Claims testnet tokens from the Irys faucet and plays paid Snake games for
every wallet in the private key file, once per cycle, forever.

Usage:
    python main.py                    # Run continuously
    python main.py --once             # Run a single cycle and exit
    python main.py --wallet-check     # Log wallet balances before starting
    python main.py --config my.yaml   # Use another run configuration
"""
from dotenv import load_dotenv

# Load environment variables from .env file into os.environ
load_dotenv()

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from core.config import BASE_DIR, BotSettings, RunConfig, load_run_config
from core.logging_setup import setup_logging
from core.orchestrator import GamePipeline, RunScheduler
from core.payment import PaymentSubmitter
from core.wallet_manager import Wallet, load_wallets
from faucets.irys import IrysFaucet
from games.scores import ScorePublisher
from games.snake import SnakeGameSimulator
from solvers.capsolver import CapSolverClient
from storage.irys import IrysUploader

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Irys Arcade Bot - faucet claims and Snake games")
    parser.add_argument("--config", type=str, help="Path of the YAML run configuration")
    parser.add_argument("--log-level", type=str, help="Override the log level (e.g. DEBUG)")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--wallet-check", action="store_true", help="Log wallet balances before starting")
    return parser.parse_args(argv)


def resolve_path(path: str) -> str:
    """Relative paths not found in the working directory fall back to the project root."""
    given = Path(path)
    if given.is_absolute() or given.exists():
        return path
    candidate = BASE_DIR / given
    return str(candidate) if candidate.exists() else path


async def check_wallets(payer: PaymentSubmitter, wallets: List[Wallet], symbol: str) -> None:
    for wallet in wallets:
        balance = await payer.get_balance(wallet.address)
        if balance is not None:
            logger.info(f"💰 {wallet.address} Balance: {balance} {symbol}")


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main execution flow.

    1. Parses command line arguments and sets up logging.
    2. Loads the run configuration and the wallet set.
    3. Builds the faucet client and the game pipeline as enabled.
    4. Runs the scheduler until stopped (or one cycle with ``--once``).

    Returns:
        Process exit code: 0 on orderly exit, 1 when startup fails.
    """
    args = parse_args(argv)
    settings = BotSettings()
    if args.log_level:
        settings.log_level = args.log_level.upper()

    setup_logging(
        settings.log_level,
        log_file=settings.log_file,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    solver: Optional[CapSolverClient] = None
    faucet: Optional[IrysFaucet] = None
    payer: Optional[PaymentSubmitter] = None
    uploader: Optional[IrysUploader] = None

    try:
        config: RunConfig = load_run_config(resolve_path(args.config or settings.config_file))
        config = config.apply_settings(settings)
        config.validate_for_startup()

        wallets = load_wallets(resolve_path(config.wallets.private_key_file))
        if not wallets:
            logger.warning("No wallets loaded, every cycle will be empty")

        if config.features.faucet_enabled:
            solver = CapSolverClient(config.captcha.api_key)
            faucet = IrysFaucet(solver)

        payer = PaymentSubmitter(receipt_timeout=settings.receipt_timeout_seconds)
        pipeline: Optional[GamePipeline] = None
        if config.features.game_enabled:
            uploader = IrysUploader()
            pipeline = GamePipeline(
                payer=payer,
                game=SnakeGameSimulator(config.game),
                publisher=ScorePublisher(uploader),
            )

        scheduler = RunScheduler(config, wallets, faucet=faucet, pipeline=pipeline)
    except Exception as e:
        logger.exception(f"Failed to start bot: {e}")
        await _cleanup(solver, faucet, payer, uploader)
        return 1

    def handle_sigterm():
        logger.info("🛑 Received SIGTERM. Initiating graceful shutdown...")
        scheduler.stop()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGTERM, handle_sigterm)

    try:
        if args.wallet_check:
            await check_wallets(payer, wallets, payer.network.currency_symbol)

        if args.once:
            await scheduler.run_cycle()
        else:
            await scheduler.scheduler_loop()
    finally:
        logger.info("🧹 Cleaning up resources...")
        scheduler.stop()
        await _cleanup(solver, faucet, payer, uploader)
    return 0


async def _cleanup(*clients) -> None:
    for client in clients:
        if client is None:
            continue
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Cleanup error: {e}")


def run() -> None:
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Process interrupted by user. Exiting...")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
