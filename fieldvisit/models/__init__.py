from .auth_identity import AuthIdentity
from .profile import Profile
from .visit import Visit
from .audit_log import AuditLog

# Import Base for database operations
from fieldvisit.db.base import Base
