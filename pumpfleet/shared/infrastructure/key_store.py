"""
Key Store
=========
Funding key decoding and the persisted sub-account pool.

Pool file format: JSON array of 64-int arrays (secret key bytes), in pool
order. The pool is written once when empty and never regenerated while it
holds at least one entry.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from pumpfleet.shared.errors import InvalidInput
from pumpfleet.shared.system.logging import Logger

DEFAULT_POOL_SIZE = 10


def parse_pubkey(value, name: str = "address") -> Pubkey:
    """Accept a Pubkey or its base58 string."""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(str(value).strip())
    except ValueError:
        raise InvalidInput(f"{name} is not a valid address: {value!r}") from None


def keypair_from_base58(secret: str) -> Keypair:
    """Decode a base58 64-byte secret key (Phantom / solana-keygen export)."""
    if not secret or not secret.strip():
        raise InvalidInput("funding key is empty (set PRIVATE_KEY)")
    try:
        secret_bytes = base58.b58decode(secret.strip())
    except ValueError:
        raise InvalidInput("funding key is not valid base58") from None
    if len(secret_bytes) != 64:
        raise InvalidInput(f"funding key must decode to 64 bytes, got {len(secret_bytes)}")
    try:
        return _keypair(secret_bytes)
    except ValueError:
        raise InvalidInput("funding key public half does not match its secret") from None


def _keypair(secret: bytes) -> Keypair:
    """64-byte secret (32 secret + 32 public) to a Keypair whose halves must agree."""
    keypair = Keypair.from_bytes(secret)
    if bytes(keypair.pubkey()) != secret[32:]:
        raise ValueError("public half does not match the secret")
    return keypair


def load_pool(path: Path) -> List[Keypair]:
    """Load the sub-account pool. A missing file is an empty pool."""
    path = Path(path)
    if not path.exists():
        return []
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidInput(f"wallet pool {path} is unreadable: {e}") from e

    if not isinstance(entries, list):
        raise InvalidInput(f"wallet pool {path} must be a JSON array")

    pool = []
    for i, entry in enumerate(entries):
        if (
            not isinstance(entry, list)
            or len(entry) != 64
            or not all(isinstance(b, int) and 0 <= b <= 255 for b in entry)
        ):
            raise InvalidInput(f"wallet pool {path}: entry {i} is not a 64-byte secret key")
        try:
            pool.append(_keypair(bytes(entry)))
        except ValueError as e:
            raise InvalidInput(f"wallet pool {path}: entry {i} is not a valid key pair: {e}") from e
    return pool


def save_pool(path: Path, pool: List[Keypair]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [list(bytes(kp)) for kp in pool]
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    try:
        os.chmod(path, 0o600)  # owner read/write only
    except OSError:
        Logger.debug(f"[WALLET] chmod not supported for {path}")


def load_or_create_pool(path: Path, count: int = DEFAULT_POOL_SIZE) -> List[Keypair]:
    """
    Return the persisted pool, generating `count` fresh key pairs only when
    the file is absent or empty.
    """
    if count < 1:
        raise InvalidInput(f"wallet count must be >= 1, got {count}")

    pool = load_pool(path)
    if pool:
        Logger.debug(f"[WALLET] Loaded {len(pool)} sub-accounts from {path}")
        return pool

    Logger.info(f"[WALLET] Creating {count} new sub-accounts...")
    pool = [Keypair() for _ in range(count)]
    save_pool(path, pool)
    Logger.success(f"[WALLET] Sub-accounts saved to {path}")
    return pool
