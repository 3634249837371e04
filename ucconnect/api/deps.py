"""
Service dependencies.

Services are built per request from the session factory the app was created
with (app.state.session_factory).
"""
from fastapi import Request

from ucconnect.config import Settings
from ucconnect.services.connection_service import ConnectionService
from ucconnect.services.event_service import EventService
from ucconnect.services.profile_service import ProfileService
from ucconnect.services.study_group_service import StudyGroupService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_profile_service(request: Request) -> ProfileService:
    return ProfileService(request.app.state.session_factory)


def get_connection_service(request: Request) -> ConnectionService:
    return ConnectionService(request.app.state.session_factory)


def get_event_service(request: Request) -> EventService:
    return EventService(request.app.state.session_factory)


def get_study_group_service(request: Request) -> StudyGroupService:
    return StudyGroupService(request.app.state.session_factory)
