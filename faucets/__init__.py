"""
Faucet claimers for the Irys arcade bot.

Submodules:
    base: ``FaucetClient`` base class and ``ClaimResult`` dataclass.
    irys: ``IrysFaucet`` -- captcha-gated claim against the Irys testnet faucet.
"""
