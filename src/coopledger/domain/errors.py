"""Shared domain error types.

Every error carries a stable ``code`` so an outer layer can map it to a
response without matching on message text.
"""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    code = "NOT_FOUND"


class ConflictError(DomainError):
    """Workflow invariant violated by the current state of an entity."""

    code = "CONFLICT"


class RoutingError(DomainError):
    """Branch to partition routing precondition violated."""

    code = "ROUTING_ERROR"


class InfrastructureError(Exception):
    """Storage unavailable, timed out or out of connections.

    Not a DomainError: callers may retry these with backoff.
    """

    code = "INFRASTRUCTURE_ERROR"


class InvalidTransactionDataError(ValidationError):
    """Transaction fields failed validation."""

    code = "INVALID_TRANSACTION_DATA"

    def __init__(self, errors: list[str]):
        super().__init__(f"Invalid transaction data: {', '.join(errors)}")
        self.errors = list(errors)


class InvalidChangeRequestDataError(ValidationError):
    """Change request payload failed validation."""

    code = "INVALID_CHANGE_REQUEST_DATA"

    def __init__(self, errors: list[str]):
        super().__init__(f"Invalid change request data: {', '.join(errors)}")
        self.errors = list(errors)


class NoValidChangesError(ValidationError):
    """Requested changes contain nothing that may be applied."""

    code = "NO_VALID_CHANGES"

    def __init__(self, request_id: Optional[str] = None):
        super().__init__("No valid changes to apply")
        self.request_id = request_id


class BranchMismatchError(ValidationError):
    """Change request branch differs from the target transaction's branch."""

    code = "BRANCH_MISMATCH"

    def __init__(self, transaction_id: str, expected: int, actual: int):
        super().__init__(
            f"Transaction {transaction_id} belongs to branch {actual}, not branch {expected}"
        )
        self.transaction_id = transaction_id
        self.expected = expected
        self.actual = actual


class TransactionNotFoundError(NotFoundError):
    """No partition holds the transaction."""

    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction with ID {transaction_id} not found")
        self.transaction_id = transaction_id


class TransactionUpdateFailedError(NotFoundError):
    """An update against a located transaction affected no rows."""

    code = "TRANSACTION_UPDATE_FAILED"

    def __init__(self, transaction_id: str, partition_name: str):
        super().__init__(
            f"Transaction {transaction_id} not found in {partition_name} or could not be updated"
        )
        self.transaction_id = transaction_id
        self.partition_name = partition_name


class ChangeRequestNotFoundError(NotFoundError):
    """Change request does not exist."""

    code = "CHANGE_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        super().__init__(f"Change request with ID {request_id} not found")
        self.request_id = request_id


class AlreadyProcessedError(ConflictError):
    """Change request is no longer pending."""

    code = "ALREADY_PROCESSED"

    def __init__(self, request_id: str, status: Optional[str] = None):
        message = f"Change request {request_id} has already been processed"
        if status is not None:
            message += f" (status: {status})"
        super().__init__(message)
        self.request_id = request_id
        self.status = status


class UnknownBranchError(RoutingError):
    """Branch is not in the static branch table."""

    code = "BRANCH_NOT_FOUND"

    def __init__(self, branch_id: object):
        super().__init__(f"Branch with ID {branch_id} not found")
        self.branch_id = branch_id


class BranchIdRequiredError(RoutingError):
    """A branch-scoped operation was called without a branch id."""

    code = "BRANCH_ID_REQUIRED"

    def __init__(self) -> None:
        super().__init__("Branch ID is required for data access")


class UnknownPartitionError(RoutingError):
    """A partition name is not one of the known partitions."""

    code = "PARTITION_NOT_FOUND"

    def __init__(self, partition_name: object):
        super().__init__(f"Unknown transaction partition '{partition_name}'")
        self.partition_name = partition_name
