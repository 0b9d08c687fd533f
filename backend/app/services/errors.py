"""Typed errors raised by the voting ledger.

Each error carries the HTTP status and the user-facing message the API
returns, so routers never leak raw store error text.
"""


class LedgerError(Exception):
    status_code = 500
    code = "ledger_error"
    message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotAuthenticated(LedgerError):
    status_code = 401
    code = "not_authenticated"
    message = "Sign in to continue"


class InvalidRequest(LedgerError):
    status_code = 400
    code = "invalid_request"
    message = "Invalid request"


class FeatureForbidden(LedgerError):
    status_code = 403
    code = "feature_forbidden"
    message = "Only the person who suggested this feature can change it"


class FeatureNotFound(LedgerError):
    status_code = 404
    code = "feature_not_found"
    message = "Feature not found. Refresh the list and try again"


class FeatureDeleted(LedgerError):
    status_code = 410
    code = "feature_deleted"
    message = "This feature was removed. Refresh the list and try again"


class VoteConflict(LedgerError):
    status_code = 409
    code = "vote_conflict"
    message = "Your vote changed somewhere else at the same time. Please try again"


class StoreUnavailable(LedgerError):
    status_code = 503
    code = "store_unavailable"
    message = "Voting is temporarily unavailable. Please try again shortly"


class ConstraintConflict(Exception):
    """A concurrent writer got there first; the read-modify-write must be retried."""
