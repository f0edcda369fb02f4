"""Usage auditing of access decisions."""

from lexaccess.usage.audit import UsageAuditLogger, log_access_once

__all__ = ["UsageAuditLogger", "log_access_once"]
