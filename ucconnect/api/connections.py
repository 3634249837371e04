"""
Connections API Router.

Handles:
- Listing received/sent requests and active connections
- Sending a connection request
- Accepting or declining a received request
- Withdrawing a sent request
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import get_connection_service, get_profile_service
from ucconnect.api.rate_limit import write_limit
from ucconnect.api.schemas import (
    ConnectionCreateRequest,
    ConnectionResponse,
    ConnectionTab,
    ConnectionTabsResponse,
)
from ucconnect.services.auth_service import Identity
from ucconnect.services.connection_service import ConnectionService
from ucconnect.services.errors import (
    ConnectionNotFound,
    DuplicateConnection,
    InvalidConnection,
    ProfileNotFound,
)
from ucconnect.services.profile_service import ProfileService
from ucconnect.services.views import attach_profiles, build_connection_tabs

router = APIRouter(prefix="/connections", tags=["connections"])


def connection_response(
    connection,
    user_id: str,
    profiles: ProfileService,
    redirect: Optional[str] = None,
) -> ConnectionResponse:
    other = connection.other_party(user_id)
    view = attach_profiles([connection], profiles.get_profiles([other]), user_id)[0]
    return ConnectionResponse.from_view(view, redirect=redirect)


@router.get("", response_model=ConnectionTabsResponse)
async def list_connections(
    tab: ConnectionTab = Query("requests"),
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Pending requests (received and sent) and accepted connections."""
    rows = connections.list_connections_for_user(identity.user_id)
    others = {c.other_party(identity.user_id) for c in rows}
    tabs = build_connection_tabs(rows, profiles.get_profiles(others), identity.user_id)

    return ConnectionTabsResponse(
        tab=tab,
        requests=[ConnectionResponse.from_view(v) for v in tabs.requests],
        sent=[ConnectionResponse.from_view(v) for v in tabs.sent],
        connections=[ConnectionResponse.from_view(v) for v in tabs.connections],
        counts={
            "requests": len(tabs.requests),
            "sent": len(tabs.sent),
            "connections": len(tabs.connections),
        },
    )


@router.post("", response_model=ConnectionResponse, status_code=201)
@write_limit
async def create_connection(
    request: Request,
    body: ConnectionCreateRequest,
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Send a connection request to another student."""
    try:
        connection = connections.create_connection(identity.user_id, body.recipient_id)
    except InvalidConnection as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except DuplicateConnection:
        raise HTTPException(status_code=409, detail="You are already connected or have a pending request with this user")

    return connection_response(
        connection, identity.user_id, profiles, redirect="/connections?tab=sent"
    )


def _respond(connection_id: int, decision: str, identity: Identity,
             connections: ConnectionService, profiles: ProfileService,
             redirect: str) -> ConnectionResponse:
    try:
        connection = connections.respond_to_connection(connection_id, identity.user_id, decision)
    except ConnectionNotFound:
        raise HTTPException(status_code=404, detail="Connection request not found")
    return connection_response(connection, identity.user_id, profiles, redirect=redirect)


@router.post("/{connection_id}/accept", response_model=ConnectionResponse)
@write_limit
async def accept_connection(
    request: Request,
    connection_id: int,
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Accept a received request. Only the recipient can accept."""
    return _respond(
        connection_id, "accepted", identity, connections, profiles,
        redirect="/connections?tab=connections",
    )


@router.post("/{connection_id}/decline", response_model=ConnectionResponse)
@write_limit
async def decline_connection(
    request: Request,
    connection_id: int,
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Decline a received request. Only the recipient can decline."""
    return _respond(
        connection_id, "declined", identity, connections, profiles,
        redirect="/connections?tab=requests",
    )


@router.delete("/{connection_id}")
@write_limit
async def withdraw_connection(
    request: Request,
    connection_id: int,
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
):
    """Withdraw a pending request you sent."""
    try:
        connections.withdraw_connection(connection_id, identity.user_id)
    except ConnectionNotFound:
        raise HTTPException(status_code=404, detail="Connection request not found")

    return {"success": True, "message": "Connection request withdrawn"}
