"""
PumpFleet - Unified CLI Entrypoint
==================================
    python main.py run --mint <MINT> --simulate
    python main.py balances --mint <MINT>
    python main.py wallets

Same commands as the `pumpfleet` console script.
"""

from pumpfleet.cli import app

if __name__ == "__main__":
    app()
