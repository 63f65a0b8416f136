"""Domain exceptions for the Agent Autopilot.

These exceptions are framework-agnostic and represent business rule violations
or collaborator failures. They are caught and translated to HTTP responses by
the API layer's middleware, or folded into the cycle summary by the engine.
"""


class AutopilotError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "AUTOPILOT_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- State Machine Errors ---


class InvalidStateTransitionError(AutopilotError):
    """Raised when an attempted state transition is not allowed.

    Example: a bid already marked "lost" cannot become "won".
    """

    def __init__(self, current_state: str, attempted_state: str) -> None:
        super().__init__(
            message=f"Invalid state transition: {current_state} -> {attempted_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.attempted_state = attempted_state


class InvalidControlActionError(AutopilotError):
    """Raised when the control endpoint receives an unknown action."""

    def __init__(self, action: str) -> None:
        super().__init__(
            message=f'Invalid action "{action}". Use "start" or "stop".',
            code="INVALID_CONTROL_ACTION",
        )
        self.action = action


# --- Marketplace Errors ---


class MarketplaceError(AutopilotError):
    """Base exception for failures talking to the task marketplace."""

    def __init__(self, message: str, code: str, status_code: int | None = None) -> None:
        super().__init__(message=message, code=code)
        self.status_code = status_code


class SourceUnavailableError(MarketplaceError):
    """Raised when the open-task listing cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, code="SOURCE_UNAVAILABLE", status_code=status_code)


class SubmitFailedError(MarketplaceError):
    """Raised when the marketplace rejects or errors on a submission."""

    def __init__(self, task_id: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message, code="SUBMIT_FAILED", status_code=status_code)
        self.task_id = task_id


# --- Ledger Errors ---


class LedgerWriteError(AutopilotError):
    """Raised when a bid record could not be persisted.

    A lost record breaks de-duplication, so this is surfaced loudly.
    """

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(
            message=f"Ledger write failed for task {task_id}: {message}",
            code="LEDGER_WRITE_FAILED",
        )
        self.task_id = task_id


class DuplicateBidError(LedgerWriteError):
    """Raised when a task already has a pending or won bid."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id, "task already has an active bid")
        self.code = "DUPLICATE_BID"


class BidNotFoundError(AutopilotError):
    """Raised when a bid ID does not exist."""

    def __init__(self, bid_id: str) -> None:
        super().__init__(
            message=f"Bid not found: {bid_id}",
            code="BID_NOT_FOUND",
        )
        self.bid_id = bid_id


# --- Treasury Errors ---


class OversightNotFoundError(AutopilotError):
    """Raised when an oversight request ID does not exist."""

    def __init__(self, request_id: str) -> None:
        super().__init__(
            message=f"Oversight request not found: {request_id}",
            code="OVERSIGHT_NOT_FOUND",
        )
        self.request_id = request_id


class BalanceUnavailableError(AutopilotError):
    """Raised when the treasury balance cannot be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="BALANCE_UNAVAILABLE")


# --- Idempotency Errors ---


class DuplicateOperationError(AutopilotError):
    """Raised when a duplicate idempotency key is detected."""

    def __init__(self, idempotency_key: str) -> None:
        super().__init__(
            message=f"Duplicate operation detected for key: {idempotency_key}",
            code="DUPLICATE_OPERATION",
        )
