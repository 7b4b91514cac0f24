"""
PumpFleet
=========
pump.fun bonding-curve trading and multi-account distribution on Solana.

Submodules:
    config/     - .env Settings and explicit config dataclasses
    core/       - protocol constants, third-party log routing
    execution/  - quotes, instructions, trades, distribution, balances
    shared/     - errors, retry, logging, result types, ledger/market adapters
    director    - the end-to-end operator run
    cli         - Typer command line
"""

__version__ = "0.1.0"
