from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
from typing import Any

import httpx
from dotenv import load_dotenv

from storefront.api.errors import ApiClientError
from storefront.core.config import AppConfig
from storefront.core.logging import setup_logging
from storefront.runtime import StorefrontClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Storefront API client with persistent, auto-refreshing session."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and store the refresh token.")
    login.add_argument("--email", required=True)
    login.add_argument(
        "--password",
        default="",
        help="Account password. Prompted for when omitted.",
    )

    register = sub.add_parser("register", help="Create an account and sign in.")
    register.add_argument("--email", required=True)
    register.add_argument("--password", default="")
    register.add_argument("--first-name", required=True)
    register.add_argument("--last-name", required=True)

    sub.add_parser("me", help="Show the signed-in user.")
    sub.add_parser("logout", help="Sign out and forget the stored session.")

    get = sub.add_parser("get", help="GET an API path with the current session.")
    get.add_argument("path", help="Path relative to the API base URL, e.g. /orders.")
    return parser


async def run_command(client: StorefrontClient, args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        user = await client.auth.login(args.email, password)
        return {
            "status": "ok",
            "user": user.to_wire(),
            "landing_route": user.landing_route,
        }
    if args.command == "register":
        password = args.password or getpass.getpass("Password: ")
        user = await client.auth.register(
            email=args.email,
            password=password,
            first_name=args.first_name,
            last_name=args.last_name,
        )
        return {"status": "ok", "user": user.to_wire()}
    if args.command == "me":
        user = await client.auth.current_user()
        return {"status": "ok", "user": user.to_wire()}
    if args.command == "logout":
        await client.auth.logout()
        return {"status": "ok"}

    response = await client.request("GET", args.path)
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    return {"status_code": response.status_code, "body": body}


async def _main(config: AppConfig, args: argparse.Namespace) -> dict[str, Any]:
    async with StorefrontClient(config) as client:
        return await run_command(client, args)


def main() -> None:
    load_dotenv()
    config = AppConfig.from_env()
    setup_logging(config.logging.level)
    logger = logging.getLogger("main")
    args = build_parser().parse_args()
    try:
        summary = asyncio.run(_main(config, args))
    except ApiClientError as exc:
        raise SystemExit(f"Request failed: {exc.message}") from exc
    except httpx.RequestError as exc:
        raise SystemExit(f"Could not reach {config.api.base_url}: {exc}") from exc
    logger.info("Command %s completed.", args.command)
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
