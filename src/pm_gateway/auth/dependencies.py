"""FastAPI dependencies: get_current_principal / require_capability.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import require_capability

    @router.post("/settle")
    async def settle(
        principal: Annotated[Principal, Depends(require_capability(Capability.SETTLE_PREDICTIONS))],
    ):
        ...

Authorization is decided here, from the token's scope claim. Engines and
services below the router never look at who the caller is.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pm_common.enums import Capability
from src.pm_common.errors import CapabilityRequiredError, InvalidTokenError
from src.pm_gateway.auth.jwt_handler import decode_token

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    user_id: str
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def can(self, capability: Capability) -> bool:
        return capability.value in self.capabilities


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """Decode the Bearer token into a Principal. Raises 401 (InvalidTokenError)."""
    if credentials is None:
        raise InvalidTokenError()
    payload = decode_token(credentials.credentials)
    scope = payload.get("scope") or ""
    return Principal(
        user_id=str(payload["sub"]),
        capabilities=frozenset(scope.split()),
    )


def require_capability(
    capability: Capability,
) -> Callable[[Principal], Awaitable[Principal]]:
    """Build a dependency that admits only principals holding `capability`."""

    async def _check(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not principal.can(capability):
            raise CapabilityRequiredError(capability.value)
        return principal

    return _check
