"""API Dependencies — service singletons and bearer-token identity.

Invariants:
    - One SessionLedger (and therefore one lock) per process
    - Every protected route resolves identity through the IdentityResolver;
      a missing or unknown token is an AuthError, never an anonymous caller
    - Owner routes reject operators and vice versa (PermissionDeniedError)

Design Decisions:
    - Module-level singletons initialized in the lifespan, same pattern as
      infrastructure.database.db_manager; tests override the get_* dependencies
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from parkledger.config import Settings
from parkledger.core.domain_types import Role
from parkledger.core.errors import AuthError, PermissionDeniedError
from parkledger.core.repository_protocols import Clock, Identity, IdentityResolver
from parkledger.infrastructure.clock import SystemClock
from parkledger.infrastructure.identity import StaticTokenResolver
from parkledger.infrastructure.rate_policy import SettingsRatePolicy
from parkledger.services.session_ledger import SessionLedger
from parkledger.services.vehicle_registry import SessionScope, VehicleRegistry

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

# Singletons (initialized on startup)
ledger: SessionLedger | None = None
identity_resolver: IdentityResolver | None = None


def init_services(
    settings: Settings, session_scope: SessionScope, clock: Clock | None = None,
) -> SessionLedger:
    global ledger, identity_resolver
    registry = VehicleRegistry(session_scope, clock or SystemClock())
    ledger = SessionLedger(
        session_scope,
        registry,
        SettingsRatePolicy.from_settings(settings),
        settlement_mode=settings.settlement_mode,
        total_capacity=settings.lot_capacity,
    )
    identity_resolver = StaticTokenResolver.from_settings(settings)
    logger.info(
        f"Ledger ready: capacity={settings.lot_capacity}, "
        f"settlement_mode={settings.settlement_mode.value}",
    )
    return ledger


def get_ledger() -> SessionLedger:
    if not ledger:
        raise RuntimeError("Services not initialized")
    return ledger


def get_registry(svc: SessionLedger = Depends(get_ledger)) -> VehicleRegistry:
    return svc.registry


def get_identity_resolver() -> IdentityResolver:
    if not identity_resolver:
        raise RuntimeError("Services not initialized")
    return identity_resolver


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity:
    if credentials is None:
        raise AuthError("Missing bearer token")
    return resolver.resolve(credentials.credentials)


def require_owner(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != Role.OWNER:
        raise PermissionDeniedError(Role.OWNER.value)
    return identity


def require_operator(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != Role.OPERATOR:
        raise PermissionDeniedError(Role.OPERATOR.value)
    return identity
