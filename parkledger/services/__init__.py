"""Services Layer — VehicleRegistry and SessionLedger (imperative shell).

Invariants:
    - Services load and persist; decisions delegated to core/ pure functions
    - Mutations serialized by one asyncio.Lock shared by registry and ledger
"""
