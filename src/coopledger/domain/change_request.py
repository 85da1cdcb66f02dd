"""Change request workflow.

A requester disputes a recorded transaction; a reviewer in the same branch
approves or rejects it. State machine::

    pending -> approved
    pending -> rejected

Both terminal. The ledger is only touched when a ``modification`` request
is approved, inside the same unit of work as the status change.
Notifications go out after that unit of work commits.
"""

import json
import logging
from typing import Any, Mapping, Optional

from coopledger.database.base import Database
from coopledger.domain.audit import AuditEntry, AuditListener
from coopledger.domain.branches import Partition, PartitionRouter
from coopledger.domain.directory import LedgerDirectory
from coopledger.domain.entities import (
    ChangeRequest,
    ChangeRequestStatus,
    RequestType,
)
from coopledger.domain.errors import (
    AlreadyProcessedError,
    BranchMismatchError,
    ChangeRequestNotFoundError,
    InvalidChangeRequestDataError,
    NoValidChangesError,
    TransactionNotFoundError,
    ValidationError,
)
from coopledger.domain.filters import ChangeRequestFilters
from coopledger.domain.notifications import NotificationSink, decision_event, new_request_event
from coopledger.domain.schema import IGNORED_PATCH_FIELDS, coerce_fields, unknown_fields

logger = logging.getLogger(__name__)

REVIEWER_ROLE = "reviewer"
DECISIONS = (ChangeRequestStatus.APPROVED, ChangeRequestStatus.REJECTED)


def _json_object(value: Any, label: str, errors: list[str]) -> Optional[dict[str, Any]]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            errors.append(f"{label} must be valid JSON")
            return None
    if not isinstance(value, Mapping):
        errors.append(f"{label} must be an object")
        return None
    return json.loads(json.dumps(dict(value), default=str))


def _is_partition_name(value: Any) -> bool:
    try:
        Partition(value)
    except ValueError:
        return False
    return True


def _is_request_type(value: Any) -> bool:
    try:
        RequestType(value)
    except ValueError:
        return False
    return True


def validate_change_request_data(payload: Mapping[str, Any]) -> None:
    """Validate a change request payload.

    Raises:
        InvalidChangeRequestDataError: Listing every problem found
    """
    errors: list[str] = []

    if not payload.get("transaction_id"):
        errors.append("Transaction ID is required")

    table = payload.get("transaction_table")
    if not table:
        errors.append("Transaction table is required")
    elif not _is_partition_name(table):
        errors.append(f"Unknown transaction table '{table}'")

    if not payload.get("original_data"):
        errors.append("Original data is required")
    else:
        _json_object(payload["original_data"], "Original data", errors)

    if not payload.get("requested_changes"):
        errors.append("Requested changes are required")
    else:
        changes = _json_object(payload["requested_changes"], "Requested changes", errors)
        if changes is not None:
            for name in unknown_fields(changes):
                errors.append(f"Field '{name}' cannot be changed")
            errors.extend(coerce_fields(changes)[1])

    reason = payload.get("reason")
    if reason is None or not str(reason).strip():
        errors.append("Reason is required")

    request_type = payload.get("request_type", RequestType.MODIFICATION.value)
    if not _is_request_type(request_type):
        errors.append(f"Unknown request type '{request_type}'")

    if errors:
        raise InvalidChangeRequestDataError(errors)


def applicable_changes(request: ChangeRequest) -> dict[str, Any]:
    """Return the patch a request would apply, with branch reassignment dropped.

    Raises:
        NoValidChangesError: If nothing remains to apply
    """
    changes = request.requested_changes
    if isinstance(changes, str):
        changes = json.loads(changes)
    patch = {
        key: value
        for key, value in changes.items()
        if key not in IGNORED_PATCH_FIELDS
    }
    if not patch:
        raise NoValidChangesError(request.id)
    return patch


class ChangeRequestWorkflow:
    """Creates change requests and applies reviewer decisions."""

    def __init__(
        self,
        db: Database,
        directory: Optional[LedgerDirectory] = None,
        notifier: Optional[NotificationSink] = None,
        router: Optional[PartitionRouter] = None,
        audit: Optional[AuditListener] = None,
        reviewer_role: str = REVIEWER_ROLE,
    ):
        """Initialize change request workflow.

        Args:
            db: Database instance
            directory: Ledger directory used to apply approved patches
            notifier: Sink for transition events; events are dropped if None
            router: Branch to partition router
            audit: Optional listener receiving committed transitions
            reviewer_role: Role name of users eligible for auto-assignment
        """
        self.db = db
        self.router = router or (directory.router if directory is not None else PartitionRouter())
        self.directory = directory or LedgerDirectory(db, router=self.router)
        self.notifier = notifier
        self.audit = audit
        self.reviewer_role = reviewer_role

    validate = staticmethod(validate_change_request_data)

    def _notify(self, event) -> None:
        if event is not None and self.notifier is not None:
            self.notifier.deliver(event)

    def _record(self, entry: AuditEntry) -> None:
        if self.audit is not None:
            self.audit.record(entry)

    def create(self, requester_id: int, branch_id: int, payload: Mapping[str, Any]) -> ChangeRequest:
        """Record a pending change request and auto-assign a reviewer.

        Args:
            requester_id: User submitting the request
            branch_id: Requester's branch; must own the target transaction
            payload: transaction_id, transaction_table, original_data,
                requested_changes, reason and optional request_type

        Returns:
            The stored request. assigned_to is None if the branch has no
            active reviewer.

        Raises:
            BranchIdRequiredError, UnknownBranchError: If branch_id cannot be routed
            InvalidChangeRequestDataError: If the payload is incomplete
            TransactionNotFoundError: If the target is not in the named partition
            BranchMismatchError: If the target belongs to another branch
        """
        self.router.partition_for(branch_id)
        self.validate(payload)

        errors: list[str] = []
        original_data = _json_object(payload["original_data"], "Original data", errors)
        requested_changes = _json_object(payload["requested_changes"], "Requested changes", errors)
        partition = Partition.from_name(payload["transaction_table"])
        transaction_id = str(payload["transaction_id"])
        branch = self.router.branch_for(self.router.partition_for(branch_id))

        with self.db.unit_of_work() as s:
            target = self.db.get_transaction(partition, transaction_id, session=s)
            if target is None:
                raise TransactionNotFoundError(transaction_id)
            if target.branch_id != branch:
                raise BranchMismatchError(transaction_id, branch, target.branch_id)

            reviewer = self.db.find_reviewer(branch, self.reviewer_role, session=s)
            request = self.db.insert_change_request(
                {
                    "transaction_id": transaction_id,
                    "transaction_table": partition.value,
                    "requested_by": requester_id,
                    "assigned_to": reviewer.id if reviewer is not None else None,
                    "branch_id": branch,
                    "request_type": RequestType(payload.get("request_type", RequestType.MODIFICATION)).value,
                    "original_data": original_data,
                    "requested_changes": requested_changes,
                    "reason": str(payload["reason"]).strip(),
                    "status": ChangeRequestStatus.PENDING.value,
                },
                session=s,
            )

        if reviewer is None:
            logger.warning("No active reviewer in branch %s; %s left unassigned", branch, request.request_number)
        else:
            logger.info("Created %s assigned to user %s", request.request_number, reviewer.id)

        self._record(
            AuditEntry(
                requester_id, "change_request.create", "change_request", request.id,
                after={"status": request.status.value, "assigned_to": request.assigned_to},
            )
        )
        self._notify(new_request_event(request))
        return request

    def decide(
        self,
        request_id: str,
        decision: ChangeRequestStatus | str,
        reviewer_id: int,
        notes: Optional[str] = None,
    ) -> ChangeRequest:
        """Approve or reject a pending request.

        Approving a modification applies its patch to the target transaction
        in the same unit of work as the status change; if either fails,
        neither commits.

        Raises:
            ValidationError: If decision is not approved or rejected
            ChangeRequestNotFoundError: If the request does not exist
            AlreadyProcessedError: If the request is no longer pending
            NoValidChangesError: If an approved patch has nothing to apply
            TransactionNotFoundError, TransactionUpdateFailedError: If the
                target transaction cannot be updated
        """
        try:
            status = ChangeRequestStatus(decision)
        except ValueError:
            raise ValidationError(f"Invalid decision '{decision}'") from None
        if status not in DECISIONS:
            raise ValidationError(f"Invalid decision '{decision}'")

        notes = notes.strip() if notes and notes.strip() else None
        change = None

        with self.db.unit_of_work() as s:
            request = self.db.get_change_request(request_id, session=s)
            if request is None:
                raise ChangeRequestNotFoundError(request_id)
            if not request.is_pending:
                raise AlreadyProcessedError(request_id, request.status.value)

            if status is ChangeRequestStatus.APPROVED and request.request_type is RequestType.MODIFICATION:
                change = self.directory.update_by_id(
                    request.transaction_id, applicable_changes(request), actor_id=reviewer_id, session=s
                )

            updated = self.db.set_change_request_status(request_id, status, notes, reviewer_id, session=s)
            if updated is None:
                # Another decision committed after our pending check.
                raise AlreadyProcessedError(request_id)

        logger.info("%s %s by user %s", updated.request_number, status.value, reviewer_id)

        if change is not None:
            self._record(
                AuditEntry(
                    reviewer_id, "transaction.update", "transaction", request.transaction_id,
                    before=change.before.as_dict(), after=change.after.as_dict(),
                )
            )
        self._record(
            AuditEntry(
                reviewer_id, f"change_request.{'approve' if status is ChangeRequestStatus.APPROVED else 'reject'}",
                "change_request", request_id,
                before={"status": request.status.value},
                after={"status": updated.status.value, "reviewer_notes": updated.reviewer_notes},
            )
        )
        self._notify(decision_event(updated))
        return updated

    def approve(self, request_id: str, reviewer_id: int, notes: Optional[str] = None) -> ChangeRequest:
        return self.decide(request_id, ChangeRequestStatus.APPROVED, reviewer_id, notes)

    def reject(self, request_id: str, reviewer_id: int, notes: Optional[str] = None) -> ChangeRequest:
        return self.decide(request_id, ChangeRequestStatus.REJECTED, reviewer_id, notes)

    def get_request(self, request_id: str) -> Optional[ChangeRequest]:
        return self.db.get_change_request(request_id)

    def list_requests(self, filters: Optional[ChangeRequestFilters] = None) -> list[ChangeRequest]:
        return self.db.list_change_requests(filters or ChangeRequestFilters())

    def count_requests(self, filters: Optional[ChangeRequestFilters] = None) -> int:
        return self.db.count_change_requests(filters or ChangeRequestFilters())
