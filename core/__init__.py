"""
Core module for the Irys arcade bot.

This package contains the scheduling, configuration, wallet, payment and
console components that drive the faucet and game automation.

Submodules:
    config: Network constants, ``BotSettings`` and the YAML ``RunConfig``.
    errors: Exception taxonomy rooted at ``BotError``.
    orchestrator: ``GamePipeline`` and the ``RunScheduler`` main loop.
    wallet_manager: Private key file parsing into ``Wallet`` objects.
    payment: ``PaymentSubmitter`` for the on-chain per-game fee.
    monitoring: Rich countdown and per-cycle results table.
    logging_setup: Compressed rotating file + safe console logging.
"""
