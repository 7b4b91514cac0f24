"""
Protocol Constants
==================
Program ids and well-known accounts for the pump.fun bonding curve on
Solana mainnet, plus the unit conversions every module shares.
"""

# Units
LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 2**64 - 1

# Native programs / sysvars
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
RENT_SYSVAR_ID = "SysvarRent111111111111111111111111111111111"

# SPL
SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH5odN1An8TmvMcL"

# pump.fun bonding curve program
PUMP_FUN_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
PUMP_FUN_GLOBAL = "4wTV1YmiEkRvAtNtsSGPtUrqRYQMe5SKy2uB4Jjaxnjf"
PUMP_FUN_FEE_RECIPIENT = "CebN5WGQ4jvEPvsVU4EoHEpgzq1VV7AbicfhtW4xC9iM"
PUMP_FUN_EVENT_AUTHORITY = "Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1"

# Anchor discriminators (u64, encoded little-endian on the wire)
PUMP_BUY_DISCRIMINATOR = 16927863322537952870
PUMP_SELL_DISCRIMINATOR = 12502976635542562355

# Ledger fee floor used by the SOL sweep
DEFAULT_TX_FEE_LAMPORTS = 5_000
# Rent-exempt minimum for a 165-byte token account
DEFAULT_RENT_EXEMPT_LAMPORTS = 2_039_280
