"""
CLI entry point for UCalgaryConnect.

Commands:
- init-db: Create database tables
- seed: Load demo skills, study groups and events
- serve: Start the API server
- leaderboard: Show the most connected students
- stats: Show row counts
"""
import argparse
import sys

from sqlalchemy import select, func

from ucconnect.config import get_settings


def _session_factory():
    from ucconnect.models.database import create_db_engine, create_session_factory, init_db

    engine = create_db_engine()
    init_db(engine)
    return create_session_factory(engine)


def init_database(args):
    """Create all tables."""
    _session_factory()
    print("Database initialized.")


def seed(args):
    """Load demo data."""
    from ucconnect.scripts.seed_demo import main as seed_main

    seed_main(_session_factory())


def serve(args):
    """Start the API server."""
    import uvicorn

    print(f"Starting UCalgaryConnect API on http://{args.host}:{args.port}")
    print(f"API docs available at http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "ucconnect.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


def leaderboard(args):
    """Show the leaderboard."""
    from ucconnect.services.connection_service import ConnectionService
    from ucconnect.services.profile_service import ProfileService
    from ucconnect.services.views import build_leaderboard

    session_factory = _session_factory()
    accepted = ConnectionService(session_factory).list_all_accepted()
    profiles = ProfileService(session_factory).list_profiles()
    entries = build_leaderboard(accepted, profiles, limit=args.limit)

    if not entries:
        print("No accepted connections yet.")
        return

    print(f"\n=== Top {args.limit} ===\n")
    for e in entries:
        print(f"{e.rank:>3}. {e.display_name:<30} {e.connection_count:>4} connections")


def stats(args):
    """Show table row counts."""
    from ucconnect.models.database import Profile, Connection, Event, StudyGroup

    session_factory = _session_factory()
    with session_factory() as session:
        def count(model):
            return session.execute(select(func.count()).select_from(model)).scalar() or 0

        by_status = dict(session.execute(
            select(Connection.status, func.count()).group_by(Connection.status)
        ).all())

        print("\n=== UCalgaryConnect Statistics ===")
        print(f"Profiles:           {count(Profile):,}")
        print(f"Connections:        {count(Connection):,}")
        for status in ("pending", "accepted", "declined"):
            print(f"  {status:<17} {by_status.get(status, 0):,}")
        print(f"Events:             {count(Event):,}")
        print(f"Study Groups:       {count(StudyGroup):,}")


def main(argv=None):
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="UCalgaryConnect - student networking API",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(func=init_database)

    seed_parser = subparsers.add_parser("seed", help="Load demo data")
    seed_parser.set_defaults(func=seed)

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=settings.api_host, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=settings.api_port, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=serve)

    board_parser = subparsers.add_parser("leaderboard", help="Show the most connected students")
    board_parser.add_argument("--limit", "-n", type=int, default=settings.leaderboard_size)
    board_parser.set_defaults(func=leaderboard)

    stats_parser = subparsers.add_parser("stats", help="Show row counts")
    stats_parser.set_defaults(func=stats)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
