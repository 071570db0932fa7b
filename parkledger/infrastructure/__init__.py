"""Infrastructure Layer — persistence, clock, rate policy, identity, logging.

Invariants:
    - Infrastructure implements the Protocols declared in core/repository_protocols.py
    - All database failures mapped to DatabaseError
"""
