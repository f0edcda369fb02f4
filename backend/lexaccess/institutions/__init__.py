"""Institution-level guards."""

from lexaccess.institutions.seats import InstitutionSeatGuard, SeatUsage

__all__ = ["InstitutionSeatGuard", "SeatUsage"]
