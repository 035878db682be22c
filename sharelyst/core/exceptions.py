"""
Domain exceptions for the settlement service.

Services raise these; the handlers registered in ``sharelyst.main`` turn
them into JSON error responses.
"""


class SharelystError(Exception):
    """Base exception for all business rule violations."""

    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class GroupNotFoundError(SharelystError):
    """Raised when a group identifier does not resolve to a group."""

    status_code = 404
    message = "Group not found"


class EmptyGroupError(SharelystError):
    """Raised when balances are requested for a group without members."""

    message = "No users in the group to split the bills"


class UnbalancedLedgerError(SharelystError):
    """
    Raised when member differences do not net to zero.

    This is an internal invariant violation, never a user error, so the
    public message stays generic.
    """

    status_code = 500
    message = "Internal server error"


class InvalidActionError(SharelystError):
    """Raised when a settle action is neither reset nor delete."""

    message = 'Action must be either "reset" or "delete"'


class NotInGroupError(SharelystError):
    """Raised when the caller must belong to a group but does not."""

    message = "You must be in a group to perform this action"


class AlreadyInGroupError(SharelystError):
    """Raised when a user in a group tries to create or join another one."""

    message = "You are already in a group"


class InvalidTransactionError(SharelystError):
    """Raised when a transaction payload fails validation."""

    message = "Invalid transaction"


class UnsettledGroupError(SharelystError):
    """Raised when a member tries to leave a group whose bills are still open."""

    message = "Settle the group's bills before leaving"
