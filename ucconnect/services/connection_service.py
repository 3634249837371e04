"""
Connection repository and relationship state machine.

States:
    pending -> accepted   (recipient only)
    pending -> declined   (recipient only)
    pending -> (deleted)  (requester only, withdraw)

accepted and declined are terminal. Every transition is a conditional
write filtered by id, the caller's role and status='pending', so a caller
with the wrong role (or a request that's already been answered) matches
zero rows and gets ConnectionNotFound.
"""
import logging
from typing import Optional

from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError

from ucconnect.models.database import (
    Connection,
    Profile,
    CONNECTION_PENDING,
    CONNECTION_ACCEPTED,
    CONNECTION_DECLINED,
    make_pair_key,
    utcnow,
)
from ucconnect.services.errors import (
    ConnectionNotFound,
    DuplicateConnection,
    InvalidConnection,
    ProfileNotFound,
)

logger = logging.getLogger(__name__)

DECISIONS = (CONNECTION_ACCEPTED, CONNECTION_DECLINED)


class ConnectionService:
    """Service for connection requests between students."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def list_connections_for_user(self, user_id: str) -> list[Connection]:
        """Every connection the user is part of, any status, oldest first."""
        with self.session_factory() as session:
            return list(session.execute(
                select(Connection)
                .where(or_(
                    Connection.user_id == user_id,
                    Connection.connected_user_id == user_id,
                ))
                .order_by(Connection.created_at, Connection.id)
            ).scalars().all())

    def list_all_accepted(self) -> list[Connection]:
        """All accepted connections system-wide."""
        with self.session_factory() as session:
            return list(session.execute(
                select(Connection)
                .where(Connection.status == CONNECTION_ACCEPTED)
                .order_by(Connection.id)
            ).scalars().all())

    def get_connection(self, connection_id: int) -> Optional[Connection]:
        with self.session_factory() as session:
            return session.get(Connection, connection_id)

    def create_connection(self, requester_id: str, recipient_id: str) -> Connection:
        """
        Send a connection request.

        Raises DuplicateConnection if any connection already relates the two
        users, in either direction and in any status.
        """
        if requester_id == recipient_id:
            raise InvalidConnection("You cannot connect with yourself")

        with self.session_factory() as session:
            recipient = session.execute(
                select(Profile.id).where(Profile.user_id == recipient_id)
            ).scalar_one_or_none()
            if recipient is None:
                raise ProfileNotFound(recipient_id)

            connection = Connection(
                user_id=requester_id,
                connected_user_id=recipient_id,
                pair_key=make_pair_key(requester_id, recipient_id),
                status=CONNECTION_PENDING,
            )
            session.add(connection)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateConnection(requester_id, recipient_id) from e

            session.refresh(connection)
            logger.info("Connection %s requested: %s -> %s", connection.id, requester_id, recipient_id)
            return connection

    def respond_to_connection(self, connection_id: int, recipient_id: str, decision: str) -> Connection:
        """Accept or decline a pending request addressed to recipient_id."""
        if decision not in DECISIONS:
            raise InvalidConnection(f"Unknown decision: {decision!r}")

        with self.session_factory() as session:
            result = session.execute(
                update(Connection)
                .where(
                    Connection.id == connection_id,
                    Connection.connected_user_id == recipient_id,
                    Connection.status == CONNECTION_PENDING,
                )
                .values(status=decision, updated_at=utcnow())
            )
            if result.rowcount == 0:
                session.rollback()
                logger.warning(
                    "Respond to connection %s by %s matched no rows", connection_id, recipient_id
                )
                raise ConnectionNotFound(connection_id)
            session.commit()

            connection = session.get(Connection, connection_id, populate_existing=True)
            logger.info("Connection %s %s by %s", connection_id, decision, recipient_id)
            return connection

    def accept_connection(self, connection_id: int, recipient_id: str) -> Connection:
        return self.respond_to_connection(connection_id, recipient_id, CONNECTION_ACCEPTED)

    def decline_connection(self, connection_id: int, recipient_id: str) -> Connection:
        return self.respond_to_connection(connection_id, recipient_id, CONNECTION_DECLINED)

    def withdraw_connection(self, connection_id: int, requester_id: str) -> None:
        """Delete a pending request sent by requester_id."""
        with self.session_factory() as session:
            result = session.execute(
                delete(Connection).where(
                    Connection.id == connection_id,
                    Connection.user_id == requester_id,
                    Connection.status == CONNECTION_PENDING,
                )
            )
            if result.rowcount == 0:
                session.rollback()
                raise ConnectionNotFound(connection_id)
            session.commit()
            logger.info("Connection %s withdrawn by %s", connection_id, requester_id)
