import argparse
import asyncio
import getpass
import json
import logging
import sys

from .config import get_settings
from .logging_setup import configure_logging
from .session_manager import SessionManager, build_session_manager

logger = logging.getLogger("auth_session.cli")


def _parse_fields(pairs: list[str]) -> dict:
    fields = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        key, value = pair.split("=", 1)
        fields[key.strip()] = value
    return fields


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auth_session",
        description="Manage the client authentication session against the auth service",
    )
    parser.add_argument(
        "--backend-url",
        help="Auth service base URL (default: BACKEND_URL or http://localhost:3000)",
    )
    parser.add_argument(
        "--store",
        choices=["memory", "file", "redis"],
        help="Credential store backend (default: CREDENTIAL_STORE or file)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("restore", help="Validate the stored credential")
    sub.add_parser("whoami", help="Show the current user")
    sub.add_parser("logout", help="Forget the stored credential")

    login = sub.add_parser("login", help="Log in and store the credential")
    login.add_argument("username")
    login.add_argument("--password", help="Prompted for when omitted")

    register = sub.add_parser("register", help="Register a new user")
    register.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Registration field, repeatable",
    )
    return parser


async def run(manager: SessionManager, args: argparse.Namespace) -> int:
    try:
        if args.command == "logout":
            manager.logout()
            print("Logged out")
            return 0

        await manager.restore()

        if args.command == "login":
            password = args.password if args.password is not None else getpass.getpass("Password: ")
            error = await manager.login(args.username, password)
        elif args.command == "register":
            error = await manager.register(_parse_fields(args.field))
        else:
            error = ""

        if error:
            print(error, file=sys.stderr)
            return 1

        print(json.dumps(manager.snapshot(), indent=2, default=str))
        return 0
    finally:
        await manager.service.close()


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.backend_url:
        settings.backend_url = args.backend_url.rstrip("/")
    if args.store:
        settings.credential_store = args.store

    manager = build_session_manager(settings)
    manager.navigator.subscribe(lambda route: logger.info("route_changed route=%s", route))
    try:
        return asyncio.run(run(manager, args))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
