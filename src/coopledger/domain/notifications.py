"""Notification events emitted on change request transitions.

Delivery, storage and real-time push belong to whatever sink the caller
plugs in. The workflow only builds events and hands them over after the
transition has committed.
"""

import logging
from typing import Optional, Protocol

from coopledger.domain.entities import (
    ChangeRequest,
    ChangeRequestStatus,
    NotificationEvent,
    request_number,
)

logger = logging.getLogger(__name__)

__all__ = [
    "NotificationSink",
    "InMemoryNotificationSink",
    "LoggingNotificationSink",
    "new_request_event",
    "decision_event",
    "request_number",
]


class NotificationSink(Protocol):
    """Anything that accepts notification events."""

    def deliver(self, event: NotificationEvent) -> None:
        ...


class InMemoryNotificationSink:
    """Collects delivered events in a list."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def deliver(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def for_user(self, user_id: int) -> list[NotificationEvent]:
        return [event for event in self.events if event.user_id == user_id]

    def clear(self) -> None:
        self.events.clear()


class LoggingNotificationSink:
    """Writes events to the ``coopledger.notifications`` logger."""

    def __init__(self, logger_name: str = "coopledger.notifications"):
        self._log = logging.getLogger(logger_name)

    def deliver(self, event: NotificationEvent) -> None:
        self._log.info(
            "notify user=%s branch=%s [%s] %s: %s",
            event.user_id,
            event.branch_id,
            event.severity,
            event.title,
            event.body,
        )


def new_request_event(request: ChangeRequest) -> Optional[NotificationEvent]:
    """Build the reviewer notification for a freshly created request.

    Returns None when the request has no assignee.
    """
    if request.assigned_to is None:
        return None

    number = request.request_number
    return NotificationEvent(
        user_id=request.assigned_to,
        branch_id=request.branch_id,
        title=f"New Request {number} Received",
        body=f"A change request #{number} has been submitted. Please review and take action.",
        reference_id=request.id,
        severity="warning",
        metadata={"status": "pending", "request_type": request.request_type.value},
    )


def decision_event(request: ChangeRequest) -> NotificationEvent:
    """Build the requester notification for an approved or rejected request."""
    number = request.request_number
    notes = (request.reviewer_notes or "").strip()

    if request.status is ChangeRequestStatus.APPROVED:
        title = f"Request {number} Approved"
        tail = f"Note: {notes}" if notes else "The changes have been implemented."
        body = f"Your change request #{number} has been approved. {tail}"
        severity = "success"
    elif request.status is ChangeRequestStatus.REJECTED:
        title = f"Request {number} Rejected"
        tail = f"Reason: {notes}" if notes else "Please contact the reviewer for more details."
        body = f"Your change request #{number} has been rejected. {tail}"
        severity = "error"
    else:
        raise ValueError(f"No decision event for status '{request.status.value}'")

    return NotificationEvent(
        user_id=request.requested_by,
        branch_id=request.branch_id,
        title=title,
        body=body,
        reference_id=request.id,
        severity=severity,
        metadata={"status": request.status.value, "processed_by": request.processed_by},
    )
