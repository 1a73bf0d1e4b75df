"""
Request lifecycle: public submission, take, role-checked edits, deletion
and the read side used by the admin dashboard.

Status state machine:
    pending -> in_progress -> completed
    pending | in_progress -> cancelled
completed and cancelled are terminal.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import log_database_operation, transactional_database_operation
from core.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from core.logging_config import BookingLogger
from core.metrics import track_booking_operation, track_status_change
from core.validation import check_date, check_time
from crud import admin_user_crud, slot_crud, tech_request_crud
from db.enums import RequestStatus, UrgencyLevel
from db.models import TechRequest

from api.schemas.tech_request import NON_NULLABLE_FIELDS, TechRequestCreate
from api.services.booking_coordinator import BookingCoordinator
from api.services.role_policy import (
    Principal,
    RequestPatch,
    can_edit_request,
    can_reassign,
    can_take,
)

logger = logging.getLogger(__name__)
booking_logger = BookingLogger("requests")

ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: {
        RequestStatus.IN_PROGRESS,
        RequestStatus.COMPLETED,
        RequestStatus.CANCELLED,
    },
    RequestStatus.IN_PROGRESS: {
        RequestStatus.PENDING,
        RequestStatus.COMPLETED,
        RequestStatus.CANCELLED,
    },
    RequestStatus.COMPLETED: set(),
    RequestStatus.CANCELLED: set(),
}


@dataclass
class UpdateResult:
    """Updated request plus the status it had before the edit."""

    request: TechRequest
    previous_status: RequestStatus

    @property
    def status_changed(self) -> bool:
        return RequestStatus(self.request.status) != self.previous_status


def check_transition(current: RequestStatus, new: RequestStatus) -> None:
    """
    Raises:
        ConflictError: invalid_transition when `new` is not reachable from `current`
    """
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise ConflictError(
            "invalid_transition",
            f"Cannot change status from {current.value} to {new.value}",
            fields=["status"],
        )


def _plain(value: Any) -> Any:
    """Enum members are stored by value."""
    return getattr(value, "value", value)


class RequestService:
    """Service for tech request lifecycle operations."""

    @staticmethod
    @track_booking_operation("create_request")
    @transactional_database_operation("create_request")
    async def create_request(db: AsyncSession, data: TechRequestCreate) -> TechRequest:
        """
        Store a public submission: pending, unassigned, no slot.

        Args:
            db: Database session
            data: Validated submission

        Returns:
            Created request
        """
        request = await tech_request_crud.create_request(
            db,
            {
                "full_name": data.full_name,
                "phone": data.phone,
                "email": str(data.email),
                "address": data.address,
                "problem_description": data.problem_description,
                "urgency_level": _plain(data.urgency_level or UrgencyLevel.MEDIUM),
                "status": RequestStatus.PENDING.value,
            },
        )
        logger.info(f"Request submitted | ID: {request.id} | Urgency: {request.urgency_level}")
        return request

    @staticmethod
    @track_booking_operation("take_request")
    @transactional_database_operation("take_request")
    async def take_request(
        db: AsyncSession,
        request_id: int,
        principal: Principal,
        notes: Optional[str] = None,
    ) -> TechRequest:
        """
        Assign a request to the calling admin and mark it in progress.

        Taking a request already assigned to the caller succeeds again and
        changes nothing but `updated_at` (and `notes` when given).

        Args:
            db: Database session
            request_id: Request to take
            principal: Admin taking it
            notes: Replaces the request's notes when not None

        Returns:
            Updated request

        Raises:
            NotFoundError: request_not_found
            ConflictError: request_already_assigned when a volunteer tries to
                take someone else's request; request_closed for terminal requests
        """
        request = await tech_request_crud.find_request(db, request_id, for_update=True)
        if request is None:
            raise NotFoundError("request_not_found")

        if not can_take(principal.role, request, principal.id):
            raise ConflictError("request_already_assigned")

        current = RequestStatus(request.status)
        if current.is_terminal:
            raise ConflictError("request_closed")

        previous_admin_id = request.assigned_admin_id
        changes: Dict[str, Any] = {
            "assigned_admin_id": principal.id,
            "status": RequestStatus.IN_PROGRESS.value,
        }
        if notes is not None:
            changes["notes"] = notes

        await tech_request_crud.update_request(db, request, changes)

        booking_logger.request_taken(request.id, principal.id, previous_admin_id)
        if current != RequestStatus.IN_PROGRESS:
            booking_logger.status_changed(
                request.id, current.value, RequestStatus.IN_PROGRESS.value, principal.id
            )
            track_status_change(current.value, RequestStatus.IN_PROGRESS.value)
        return request

    @staticmethod
    @track_booking_operation("update_request")
    @transactional_database_operation("update_request")
    async def update_request(
        db: AsyncSession, request_id: int, patch: RequestPatch
    ) -> UpdateResult:
        """
        Apply an authorized patch (see role_policy.authorize_patch).

        Status changes run through the booking coordinator in the same
        transaction: cancelled releases the slot, completed deletes it.

        Args:
            db: Database session
            request_id: Request to edit
            patch: VolunteerPatch or SystemAdminPatch

        Returns:
            UpdateResult with the request and its previous status

        Raises:
            NotFoundError: request_not_found, admin_not_found for reassignment
                to an unknown or inactive admin
            ForbiddenError: request_not_assigned when a volunteer edits a
                request assigned to someone else; reassign_forbidden
            ConflictError: invalid_transition; request_has_slot when the
                schedule is edited while a slot is held
            InvalidInputError: empty_update, invalid_field for a cleared required
                field, invalid_date, invalid_time
        """
        principal = patch.principal
        changes = {name: _plain(value) for name, value in patch.changes.items()}
        if not changes:
            raise InvalidInputError("empty_update")

        cleared = [
            name for name in NON_NULLABLE_FIELDS
            if name in changes and changes[name] is None
        ]
        if cleared:
            raise InvalidInputError("invalid_field", fields=cleared)

        request = await tech_request_crud.find_request(db, request_id, for_update=True)
        if request is None:
            raise NotFoundError("request_not_found")

        if not can_edit_request(principal, request.assigned_admin_id):
            raise ForbiddenError("request_not_assigned")

        current = RequestStatus(request.status)
        new_status = RequestStatus(changes["status"]) if "status" in changes else current
        check_transition(current, new_status)

        if "assigned_admin_id" in changes:
            await RequestService._check_assignee(
                db, principal, request, changes["assigned_admin_id"]
            )

        for name in ("scheduled_date", "scheduled_time"):
            if changes.get(name) is not None:
                check = check_date if name == "scheduled_date" else check_time
                changes[name] = check(changes[name], name)

        if new_status != current:
            await BookingCoordinator.apply_status_change(db, request, new_status)

        schedule_edited = any(
            name in changes and changes[name] != getattr(request, name)
            for name in ("scheduled_date", "scheduled_time")
        )
        if schedule_edited and request.booked_slot_id is not None:
            raise ConflictError("request_has_slot", fields=["scheduled_date", "scheduled_time"])

        if new_status == RequestStatus.CANCELLED:
            # The released slot cleared the schedule; keep it cleared
            changes.pop("scheduled_date", None)
            changes.pop("scheduled_time", None)

        await tech_request_crud.update_request(db, request, changes)

        if new_status != current:
            booking_logger.status_changed(request.id, current.value, new_status.value, principal.id)
            track_status_change(current.value, new_status.value)

        return UpdateResult(request=request, previous_status=current)

    @staticmethod
    async def _check_assignee(
        db: AsyncSession,
        principal: Principal,
        request: TechRequest,
        assignee_id: Optional[int],
    ) -> None:
        if assignee_id == request.assigned_admin_id:
            return

        if assignee_id != principal.id and not can_reassign(principal.role):
            raise ForbiddenError("reassign_forbidden", fields=["assigned_admin_id"])

        if assignee_id is None:
            return

        admin = await admin_user_crud.find_admin(db, assignee_id)
        if admin is None or not admin.is_active:
            raise NotFoundError("admin_not_found", fields=["assigned_admin_id"])

    @staticmethod
    @track_booking_operation("delete_request")
    @transactional_database_operation("delete_request")
    async def delete_request(db: AsyncSession, request_id: int) -> None:
        """
        Hard-delete a request, releasing its slot first.

        Raises:
            NotFoundError: request_not_found
        """
        request = await tech_request_crud.find_request(db, request_id, for_update=True)
        if request is None:
            raise NotFoundError("request_not_found")

        await BookingCoordinator.on_delete(db, request)

    @staticmethod
    async def get_request(db: AsyncSession, request_id: int) -> TechRequest:
        request = await tech_request_crud.find_request(db, request_id)
        if request is None:
            raise NotFoundError("request_not_found")
        return request

    @staticmethod
    @log_database_operation("request listing")
    async def list_requests(
        db: AsyncSession,
        *,
        status: Optional[RequestStatus] = None,
        urgency_level: Optional[UrgencyLevel] = None,
        assigned_admin_id: Optional[int] = None,
        search: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[TechRequest], int]:
        """
        Filter and page requests, newest first.

        `date_from`/`date_to` are inclusive YYYY-MM-DD bounds on creation date.

        Returns:
            Tuple of (requests, total)
        """
        created_from = None
        created_before = None
        if date_from:
            created_from = datetime.fromisoformat(check_date(date_from, "date_from")).replace(
                tzinfo=timezone.utc
            )
        if date_to:
            created_before = datetime.fromisoformat(check_date(date_to, "date_to")).replace(
                tzinfo=timezone.utc
            ) + timedelta(days=1)

        return await tech_request_crud.list_requests(
            db,
            status=_plain(status),
            urgency_level=_plain(urgency_level),
            assigned_admin_id=assigned_admin_id,
            search=search.strip() if search else None,
            created_from=created_from,
            created_before=created_before,
            page=page,
            per_page=per_page,
        )

    @staticmethod
    @log_database_operation("dashboard statistics")
    async def get_dashboard_stats(db: AsyncSession) -> Dict[str, Any]:
        """
        Counts per status, slot totals, the five newest requests and every
        request currently in progress.
        """
        by_status = await tech_request_crud.count_by_status(db)
        total_slots, booked_slots = await slot_crud.count_slots(db)

        return {
            "requests": {"total": sum(by_status.values()), **by_status},
            "slots": {
                "total": total_slots,
                "booked": booked_slots,
                "available": total_slots - booked_slots,
            },
            "recent_requests": await tech_request_crud.recent_requests(db, limit=5),
            "in_progress_requests": await tech_request_crud.requests_with_status(
                db, RequestStatus.IN_PROGRESS
            ),
        }
