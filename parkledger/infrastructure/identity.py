"""Identity Resolver — maps bearer tokens to owner/operator identities.

Invariants:
    - Unknown or empty tokens raise AuthError; never downgraded to anonymous
    - A token listed as operator resolves to the operator role even if it is
      also an owner token

Design Decisions:
    - Static token table from settings: credential storage is owned by the
      account service, this process only verifies what it is handed
"""

import hmac
import logging
from typing import Iterable, Mapping

from parkledger.config import Settings
from parkledger.core.domain_types import OwnerId, Role
from parkledger.core.errors import AuthError
from parkledger.core.repository_protocols import Identity

logger = logging.getLogger(__name__)


class StaticTokenResolver:
    """IdentityResolver over a fixed token table."""

    def __init__(
        self,
        owner_tokens: Mapping[str, str] | None = None,
        operator_tokens: Iterable[str] = (),
    ):
        self._owner_tokens = dict(owner_tokens or {})
        self._operator_tokens = list(operator_tokens)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticTokenResolver":
        return cls(settings.owner_tokens, settings.operator_tokens)

    def resolve(self, token: str) -> Identity:
        if not token:
            raise AuthError("Missing credentials")
        for operator_token in self._operator_tokens:
            if hmac.compare_digest(operator_token, token):
                return Identity(owner_id=OwnerId("operator"), role=Role.OPERATOR)
        owner_id = self._owner_tokens.get(token)
        if owner_id is None:
            logger.warning("Rejected unknown credential token")
            raise AuthError()
        return Identity(owner_id=OwnerId(owner_id), role=Role.OWNER)
