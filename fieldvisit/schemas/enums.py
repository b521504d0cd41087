from enum import Enum


class UserRole(str, Enum):
    field_agent = "field_agent"
    collection_manager = "collection_manager"


class VisitStatus(str, Enum):
    ptp = "PTP"
    not_found = "Not Found"
    partial_received = "Partial Received"
    received = "Received"
    others = "Others"


class AuditAction(str, Enum):
    user_created = "USER_CREATED"
    user_deactivated = "USER_DEACTIVATED"
    password_reset = "PASSWORD_RESET"


VISIT_STATUS_VALUES = [status.value for status in VisitStatus]
USER_ROLE_VALUES = [role.value for role in UserRole]
AUDIT_ACTION_VALUES = [action.value for action in AuditAction]
