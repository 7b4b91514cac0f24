import os
from dotenv import load_dotenv

from pumpfleet.shared.errors import InvalidInput

# Load Environment Variables from the working directory .env
load_dotenv(os.path.join(os.getcwd(), ".env"))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise InvalidInput(f"{name}={raw!r} is not a valid {cast.__name__}") from None


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # PUMPFLEET CONFIGURATION (.env driven)
    # ═══════════════════════════════════════════════════════════════════

    # Console
    SILENT_MODE = _env_bool("SILENT_MODE", False)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")  # third-party libs only
    LOG_FILE = os.getenv("LOG_FILE", "")  # optional library log file

    # Funding wallet (base58 secret key)
    PRIVATE_KEY = os.getenv("PRIVATE_KEY", "")

    # Network
    RPC_URL = os.getenv("RPC_URL", "https://api.mainnet-beta.solana.com")
    RPC_TIMEOUT_S = _env_number("RPC_TIMEOUT_S", "30")
    PUMP_API_URL = os.getenv("PUMP_API_URL", "https://frontend-api.pump.fun")
    MARKET_DATA_TIMEOUT_S = _env_number("MARKET_DATA_TIMEOUT_S", "10")

    # Sub-account pool
    WALLETS_FILE = os.getenv("WALLETS_FILE", os.path.join(os.getcwd(), "wallets.json"))
    WALLET_COUNT = _env_number("WALLET_COUNT", "10", int)

    # Trading
    TX_MODE = os.getenv("TX_MODE", "execution")  # execution | simulation
    MINT = os.getenv("MINT", "")
    SOL_IN = _env_number("SOL_IN", "0.001")
    SLIPPAGE = _env_number("SLIPPAGE", "0.25")  # 25% as decimal
    PRIORITY_FEE_SOL = _env_number("PRIORITY_FEE_SOL", "0.0001")
    COMPUTE_UNIT_LIMIT = _env_number("COMPUTE_UNIT_LIMIT", "1000000", int)

    # Distribution
    TOKEN_SPLIT = _env_number("TOKEN_SPLIT", "10", int)  # parent balance // split per child
    SOL_PER_CHILD = _env_number("SOL_PER_CHILD", "0.001")
    TX_FEE_LAMPORTS = _env_number("TX_FEE_LAMPORTS", "5000", int)
    RENT_EXEMPT_LAMPORTS = _env_number("RENT_EXEMPT_LAMPORTS", "2039280", int)

    # Retry (one place for every call site)
    RETRY_MAX_ATTEMPTS = _env_number("RETRY_MAX_ATTEMPTS", "3", int)
    RETRY_DELAY_MS = _env_number("RETRY_DELAY_MS", "2000", int)
