"""
Operator command line for the connector.

Covers what site administrators do by hand: database setup, users,
the connection key and the CTA cache.

    python -m src.app_shell.cli status
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from src.adapters.clock import SystemClock
from src.adapters.forge_client import HttpxForgeApi
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import (
    SQLiteConnectionStore,
    SQLiteTransientCache,
    SQLiteUserRepo,
)
from src.api.deps import Settings
from src.components.auth import (
    SaveKeyInput,
    SignRequestInput,
    run_disconnect,
    run_save_key,
    run_sign_request,
    run_status,
    run_test_connection,
)
from src.components.cta import (
    ForgeApiError,
    RenderPreviewInput,
    clear_cache,
    fetch_all_ctas,
    run_render_preview,
    run_test_api,
)
from src.domain.entities import Author, to_mysql
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger("cli")


@dataclass
class CliContext:
    settings: Settings
    rules: Rules
    store: SQLiteConnectionStore
    users: SQLiteUserRepo
    cache: SQLiteTransientCache
    clock: SystemClock
    api: HttpxForgeApi

    @classmethod
    def create(cls, settings: Settings) -> "CliContext":
        if not Path(settings.rules_path).exists():
            logger.error("Rules file %s not found.", settings.rules_path)
            sys.exit(1)

        rules = load_rules(Path(settings.rules_path))
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()

        clock = SystemClock()
        return cls(
            settings=settings,
            rules=rules,
            store=SQLiteConnectionStore(settings.db_path),
            users=SQLiteUserRepo(settings.db_path),
            cache=SQLiteTransientCache(settings.db_path, clock),
            clock=clock,
            api=HttpxForgeApi(),
        )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.rules.site.timezone)


# --- Connection ---


def handle_save_key(ctx: CliContext, args: argparse.Namespace) -> int:
    result = run_save_key(
        SaveKeyInput(connection_key=args.key.strip()), ctx.store, ctx.clock, ctx.rules.auth, ctx.tz
    )
    if result.error is not None:
        print(f"Error: {result.error.message}")
        return 1
    print(result.message)
    return 0


def handle_test_connection(ctx: CliContext, args: argparse.Namespace) -> int:
    result = run_test_connection(ctx.store, ctx.rules.auth)
    if result.error is not None:
        print(f"Error: {result.error.message}")
        return 1
    print(result.message)
    return 0


def handle_status(ctx: CliContext, args: argparse.Namespace) -> int:
    print(json.dumps(run_status(ctx.store).as_dict(), indent=2))
    return 0


def disconnect_webhook(rules: Rules) -> tuple[str, str]:
    """URL and signed path of the disconnect webhook."""
    api_url = rules.cta.api_url.rstrip("/")
    hook = rules.ops.disconnect_webhook_path
    return api_url + hook, urlparse(api_url).path + hook


def notify_forge_disconnect(ctx: CliContext) -> None:
    """Tell Forge the site is going away; failures never block the disconnect."""
    settings = ctx.store.get()
    if not settings.connection_key or not settings.forge_site_id:
        return

    url, path = disconnect_webhook(ctx.rules)
    body = json.dumps({"action": "disconnect"}, separators=(",", ":"))
    signed = run_sign_request(
        SignRequestInput(method="POST", path=path, body=body),
        ctx.store,
        ctx.clock,
        ctx.rules.project.plugin_version,
    )
    headers = {"Content-Type": "application/json", **signed.headers}

    try:
        response = ctx.api.post(url, body, headers, ctx.rules.ops.disconnect_timeout_seconds)
        logger.info("Forge disconnect notification returned %s", response.status_code)
    except ForgeApiError as e:
        logger.warning("Forge disconnect notification failed: %s", e)


def handle_disconnect(ctx: CliContext, args: argparse.Namespace) -> int:
    notify_forge_disconnect(ctx)
    print(run_disconnect(ctx.store).message)
    return 0


def handle_sign(ctx: CliContext, args: argparse.Namespace) -> int:
    signed = run_sign_request(
        SignRequestInput(method=args.method.upper(), path=args.path, body=args.body),
        ctx.store,
        ctx.clock,
        ctx.rules.project.plugin_version,
    )
    if not signed.headers:
        print("Error: No connection key configured.")
        return 1
    for name, value in signed.headers.items():
        print(f"{name}: {value}")
    return 0


# --- Users & database ---


def handle_migrate(ctx: CliContext, args: argparse.Namespace) -> int:
    # Context creation already migrated; report the state.
    print(f"Database ready: {ctx.settings.db_path}")
    return 0


def handle_add_user(ctx: CliContext, args: argparse.Namespace) -> int:
    if ctx.users.get_by_username(args.username) is not None:
        print(f"Error: User {args.username} already exists.")
        return 1
    user = ctx.users.save(
        Author(
            username=args.username,
            display_name=args.display_name or args.username,
            email=args.email,
            roles=[args.role],
            registered=to_mysql(ctx.clock.now_utc()),
        )
    )
    print(f"Created user {user.id} ({user.username}, {args.role}).")
    return 0


# --- CTAs ---


def handle_cta_list(ctx: CliContext, args: argparse.Namespace) -> int:
    result = fetch_all_ctas(ctx.store.get(), ctx.rules.cta, ctx.api)
    if not result.success:
        print(f"Error: {result.errors[0].message}")
        return 1
    if not result.ctas:
        print("No CTAs found.")
        return 0
    for cta in result.ctas:
        if not isinstance(cta, dict):
            continue
        slug = cta.get("slug", "")
        state = "active" if cta.get("is_active") else "inactive"
        print(
            f"{cta.get('name', '')}\t{slug}\t{str(cta.get('type', '')).capitalize()}\t{state}"
            f'\t[forge_cta id="{slug}"]'
        )
    return 0


def handle_cta_clear_cache(ctx: CliContext, args: argparse.Namespace) -> int:
    print(clear_cache(ctx.cache).message)
    return 0


def handle_cta_test_api(ctx: CliContext, args: argparse.Namespace) -> int:
    result = run_test_api(ctx.store.get(), ctx.rules.cta, ctx.cache, ctx.api)
    if not result.success:
        print(f"Error: {result.errors[0].message}")
        return 1
    print(result.message)
    return 0


def handle_cta_render(ctx: CliContext, args: argparse.Namespace) -> int:
    with open(args.file, encoding="utf-8") as f:
        cta = json.load(f)
    result = run_render_preview(RenderPreviewInput(cta=cta))
    if not result.success:
        print(f"Error: {result.errors[0].message}")
        return 1
    print(result.html)
    return 0


HANDLERS = {
    "migrate": handle_migrate,
    "add-user": handle_add_user,
    "save-key": handle_save_key,
    "test-connection": handle_test_connection,
    "status": handle_status,
    "disconnect": handle_disconnect,
    "sign": handle_sign,
    "cta-list": handle_cta_list,
    "cta-clear-cache": handle_cta_clear_cache,
    "cta-test-api": handle_cta_test_api,
    "cta-render": handle_cta_render,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forge Connector CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Create or upgrade the database")

    user_parser = subparsers.add_parser("add-user", help="Add a site user")
    user_parser.add_argument("username")
    user_parser.add_argument("--email", required=True)
    user_parser.add_argument("--display-name", default="")
    user_parser.add_argument("--role", default="administrator")

    key_parser = subparsers.add_parser("save-key", help="Store a Forge connection key")
    key_parser.add_argument("key")

    subparsers.add_parser("test-connection", help="Check the stored connection key")
    subparsers.add_parser("status", help="Show the connection status")
    subparsers.add_parser("disconnect", help="Notify Forge and clear the connection")

    sign_parser = subparsers.add_parser("sign", help="Print signed headers for a request")
    sign_parser.add_argument("method")
    sign_parser.add_argument("path", help="Signed path, e.g. /forge/v1/status")
    sign_parser.add_argument("--body", default="")

    subparsers.add_parser("cta-list", help="List the site's CTAs from Forge")
    subparsers.add_parser("cta-clear-cache", help="Clear cached CTAs")
    subparsers.add_parser("cta-test-api", help="Check the CTA API and clear the cache")

    render_parser = subparsers.add_parser("cta-render", help="Render a CTA record from JSON")
    render_parser.add_argument("file")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    ctx = CliContext.create(Settings())
    return HANDLERS[args.command](ctx, args)


if __name__ == "__main__":
    sys.exit(main())
