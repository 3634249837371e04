"""UCalgaryConnect services - profiles, connections, events and derived views."""
from .auth_service import Identity, SupabaseAuthClient
from .connection_service import ConnectionService
from .event_service import EventService
from .profile_service import ProfileService
from .study_group_service import StudyGroupService

__all__ = [
    "Identity",
    "SupabaseAuthClient",
    "ConnectionService",
    "EventService",
    "ProfileService",
    "StudyGroupService",
]
