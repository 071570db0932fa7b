"""ParkLedger Application Package — parking session lifecycle and billing.

Invariants:
    - Importing the package has no side effects; the app lives in parkledger.main
"""

__version__ = "1.0.0"
