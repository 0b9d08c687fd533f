"""Request identity and ledger dependencies.

Session management lives with the upstream identity provider; by the time a
request reaches us it carries the provider's stable user id in the
``X-User-Id`` header. Ids we have never seen resolve to anonymous.
"""

from fastapi import Depends, Header

from backend.app.config import settings
from backend.app.db import async_session
from backend.app.services.errors import NotAuthenticated
from backend.app.services.ledger import VotingLedger

_ledger = VotingLedger(async_session, max_attempts=settings.vote_max_attempts)


def get_ledger() -> VotingLedger:
    """FastAPI dependency for the voting ledger (overridden in tests)."""
    return _ledger


async def get_current_user_id(
    x_user_id: str | None = Header(default=None),
    ledger: VotingLedger = Depends(get_ledger),
) -> str | None:
    """Resolve the caller's user id, or None for anonymous callers.

    The lookup runs in its own short transaction so no connection is held
    while the ledger opens write transactions for the same request.
    """
    if not x_user_id:
        return None
    return x_user_id if await ledger.user_exists(x_user_id) else None


async def require_user_id(user_id: str | None = Depends(get_current_user_id)) -> str:
    if user_id is None:
        raise NotAuthenticated()
    return user_id
