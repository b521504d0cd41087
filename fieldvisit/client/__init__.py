from .api import ApiClient, ApiError
from .session import SessionContext, SessionStore, SessionUser
from .visit_flow import VisitEntryFlow, VisitForm, Step
