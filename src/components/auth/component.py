"""
Auth component - HMAC request signing and the connection lifecycle.

Every request from Forge carries:
- X-Forge-Timestamp: unix seconds, must be within the tolerance window
- X-Forge-Signature: hex HMAC-SHA256 of "METHOD\\nPATH\\nTIMESTAMP\\nBODY"
  keyed with the connection key
- X-Forge-Site-ID (optional): pinned on the first authenticated request

Checks run in a fixed order (configured, headers, window, signature, site ID)
so a forged request can never pin a site ID.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import UTC, tzinfo

from src.domain.entities import ConnectionSettings, to_mysql
from src.domain.sanitize import leading_int
from src.rules.models import AuthRules

from .models import (
    AuthError,
    AuthOutput,
    ConnectInput,
    ConnectionOutput,
    ConnectionStatus,
    ConnectPermissionInput,
    SaveKeyInput,
    SignedHeaders,
    SignRequestInput,
    ValidateRequestInput,
)
from .ports import ConnectionStorePort, TimePort

logger = logging.getLogger(__name__)

DEFAULT_RULES = AuthRules()


# --- Signatures ---


def build_string_to_sign(method: str, path: str, timestamp: str | int, body: str) -> str:
    return f"{method}\n{path}\n{timestamp}\n{body}"


def compute_signature(
    secret: str, method: str, path: str, timestamp: str | int, body: str | bytes = ""
) -> str:
    """Hex HMAC-SHA256; a bytes body is signed exactly as received."""
    if isinstance(body, bytes):
        message = build_string_to_sign(method, path, timestamp, "").encode("utf-8") + body
    else:
        message = build_string_to_sign(method, path, timestamp, body).encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def validate_key_format(key: str, rules: AuthRules = DEFAULT_RULES) -> bool:
    """Key is the prefix followed by at least 32 ASCII alphanumerics."""
    if not key.startswith(rules.key_prefix):
        return False

    if len(key) < rules.key_min_length:
        return False

    key_body = key[len(rules.key_prefix) :]
    return key_body.isascii() and key_body.isalnum()


def _reject(code: str, message: str, status: int = 401) -> AuthOutput:
    logger.warning("Forge request rejected: %s", code)
    return AuthOutput(success=False, error=AuthError(code=code, message=message, status=status))


# --- Entry points ---


def run_validate_request(
    inp: ValidateRequestInput,
    store: ConnectionStorePort,
    time: TimePort,
    rules: AuthRules = DEFAULT_RULES,
) -> AuthOutput:
    settings = store.get()

    if not settings.connection_key:
        return _reject(
            "forge_not_configured",
            "Forge Connector is not configured. Please enter your connection key in Settings.",
        )

    if not inp.signature or not inp.timestamp:
        return _reject("forge_missing_auth", "Missing authentication headers.")

    request_time = leading_int(inp.timestamp)
    current_time = int(time.now_utc().timestamp())

    if abs(current_time - request_time) > rules.timestamp_tolerance_seconds:
        return _reject(
            "forge_expired_request", "Request has expired. Please check your server time."
        )

    expected = compute_signature(
        settings.connection_key, inp.method, inp.path, inp.timestamp, inp.body
    )
    if not hmac.compare_digest(expected.encode("utf-8"), inp.signature.encode("utf-8")):
        return _reject("forge_invalid_signature", "Invalid request signature.")

    pinned: str | None = None
    if inp.site_id:
        if settings.forge_site_id:
            if settings.forge_site_id != inp.site_id:
                return _reject("forge_site_mismatch", "Site ID mismatch.")
        else:
            store.save(settings.model_copy(update={"forge_site_id": inp.site_id}))
            pinned = inp.site_id
            logger.info("Pinned Forge site ID %s", inp.site_id)

    return AuthOutput(success=True, pinned_site_id=pinned)


def run_sign_request(
    inp: SignRequestInput,
    store: ConnectionStorePort,
    time: TimePort,
    plugin_version: str,
) -> SignedHeaders:
    """Headers for an outgoing request to Forge; empty when no key is stored."""
    settings = store.get()
    if not settings.connection_key:
        return SignedHeaders()

    timestamp = str(int(time.now_utc().timestamp()))
    signature = compute_signature(
        settings.connection_key, inp.method, inp.path, timestamp, inp.body
    )
    return SignedHeaders(
        headers={
            "X-Forge-Signature": signature,
            "X-Forge-Timestamp": timestamp,
            "X-Forge-Site-ID": settings.forge_site_id or "",
            "X-Forge-Plugin-Version": plugin_version,
        }
    )


def is_connected(store: ConnectionStorePort) -> bool:
    settings = store.get()
    return settings.connected and settings.has_key


def run_status(store: ConnectionStorePort) -> ConnectionStatus:
    settings = store.get()
    return ConnectionStatus(
        connected=settings.connected,
        connected_at=settings.connected_at,
        forge_site_id=settings.forge_site_id,
        has_key=settings.has_key,
    )


def run_check_connect_permission(
    inp: ConnectPermissionInput, store: ConnectionStorePort
) -> AuthOutput:
    """
    A connected site only accepts /connect carrying its current key.

    This lets Forge reconnect while preventing another account from taking
    the site over.
    """
    if not is_connected(store):
        return AuthOutput(success=True)

    if not inp.provided_key:
        return _reject(
            "forge_already_connected",
            "This site is already connected to Forge. "
            "Disconnect first or provide the existing connection key.",
            status=403,
        )

    stored_key = store.get().connection_key
    if not hmac.compare_digest(stored_key.encode("utf-8"), inp.provided_key.encode("utf-8")):
        return _reject(
            "forge_invalid_connection_key",
            "Invalid connection key. This site is already connected to a different Forge account.",
            status=403,
        )

    return AuthOutput(success=True)


def _store_connection(
    store: ConnectionStorePort,
    time: TimePort,
    connection_key: str,
    forge_site_id: str | None,
    tz: tzinfo,
) -> ConnectionSettings:
    settings = store.get().model_copy(
        update={
            "connection_key": connection_key,
            "connected": True,
            "connected_at": to_mysql(time.now_utc().astimezone(tz)),
            "forge_site_id": forge_site_id or None,
        }
    )
    store.save(settings)
    return settings


def run_connect(
    inp: ConnectInput,
    store: ConnectionStorePort,
    time: TimePort,
    rules: AuthRules = DEFAULT_RULES,
    tz: tzinfo = UTC,
) -> ConnectionOutput:
    if not inp.connection_key:
        return ConnectionOutput(
            error=AuthError("missing_key", "Connection key is required.", status=400)
        )

    if not validate_key_format(inp.connection_key, rules):
        return ConnectionOutput(
            error=AuthError("invalid_key", "Invalid connection key format.", status=400)
        )

    settings = _store_connection(store, time, inp.connection_key, inp.forge_site_id, tz)
    logger.info("Connected to Forge (site ID %s)", settings.forge_site_id or "not set")

    return ConnectionOutput(
        settings=settings,
        status=run_status(store),
        message="Connected successfully!",
        success=True,
    )


def run_save_key(
    inp: SaveKeyInput,
    store: ConnectionStorePort,
    time: TimePort,
    rules: AuthRules = DEFAULT_RULES,
    tz: tzinfo = UTC,
) -> ConnectionOutput:
    """Operator-side connect: store a key before Forge has sent a site ID."""
    if not inp.connection_key:
        return ConnectionOutput(
            error=AuthError("missing_key", "Connection key is required.", status=400)
        )

    if not validate_key_format(inp.connection_key, rules):
        return ConnectionOutput(
            error=AuthError(
                "invalid_key",
                f'Invalid connection key format. Key should start with "{rules.key_prefix}".',
                status=400,
            )
        )

    settings = _store_connection(store, time, inp.connection_key, None, tz)
    return ConnectionOutput(
        settings=settings,
        status=run_status(store),
        message="Connected successfully!",
        success=True,
    )


def run_test_connection(
    store: ConnectionStorePort, rules: AuthRules = DEFAULT_RULES
) -> ConnectionOutput:
    status = run_status(store)

    if not status.has_key:
        return ConnectionOutput(
            status=status,
            error=AuthError("no_key", "No connection key configured.", status=400),
        )

    if not validate_key_format(store.get().connection_key, rules):
        return ConnectionOutput(
            status=status,
            error=AuthError("invalid_key", "Connection key is invalid.", status=400),
        )

    return ConnectionOutput(status=status, message="Connection is working!", success=True)


def run_disconnect(store: ConnectionStorePort) -> ConnectionOutput:
    store.save(ConnectionSettings())
    logger.info("Disconnected from Forge")
    return ConnectionOutput(
        settings=ConnectionSettings(),
        status=run_status(store),
        message="Disconnected successfully.",
        success=True,
    )
