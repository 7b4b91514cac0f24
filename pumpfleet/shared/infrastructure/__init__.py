# Thin adapters over the Solana RPC, the pump.fun API and the key files
