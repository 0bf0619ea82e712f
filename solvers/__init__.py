"""
Solvers module for the Irys arcade bot.

Provides CAPTCHA solving used by the faucet claimer.

Submodules:
    capsolver: ``CapSolverClient`` -- async client for the CapSolver service
        (Cloudflare Turnstile tasks, bounded result polling).
"""
