"""
Institution seat-limit guard.

Seats are consumed by approved, active memberships. Students and staff have
separate buckets; STAFF and ADMIN members share the staff bucket. A limit of
0 means the plan includes no seats of that kind.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from lexaccess.repositories.base_repo import CancellationToken
    from lexaccess.repositories.entitlement_repo import EntitlementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatUsage:
    used_students: int
    max_students: int
    used_staff: int
    max_staff: int

    @property
    def students_exceeded(self) -> bool:
        return self.used_students > self.max_students

    @property
    def staff_exceeded(self) -> bool:
        return self.used_staff > self.max_staff

    @property
    def exceeded(self) -> bool:
        return self.students_exceeded or self.staff_exceeded

    def describe(self) -> str:
        return (
            f"Students: {self.used_students}/{self.max_students}, "
            f"Staff: {self.used_staff}/{self.max_staff}."
        )


class InstitutionSeatGuard:
    """Compares consumed seats with the institution's plan limits."""

    def __init__(self, store: "EntitlementStore"):
        self._store = store

    def check(
        self,
        institution_id: int,
        cancel: Optional["CancellationToken"] = None,
    ) -> Optional[SeatUsage]:
        """
        Current seat usage, or None when the institution does not exist.
        """
        institution = self._store.get_institution(institution_id, cancel)
        if institution is None:
            return None

        used_students, used_staff = self._store.count_seat_usage(institution_id, cancel)
        usage = SeatUsage(
            used_students=used_students,
            max_students=institution.max_student_seats or 0,
            used_staff=used_staff,
            max_staff=institution.max_staff_seats or 0,
        )
        if usage.exceeded:
            logger.info(
                "institutions.seat_limit_exceeded",
                extra={
                    "institution_id": institution_id,
                    "used_students": usage.used_students,
                    "max_students": usage.max_students,
                    "used_staff": usage.used_staff,
                    "max_staff": usage.max_staff,
                },
            )
        return usage
