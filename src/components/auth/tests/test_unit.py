"""
Auth component unit tests.

Tests for request signature validation, site ID pinning and the connection
lifecycle.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from src.components.auth import (
    ConnectInput,
    ConnectPermissionInput,
    SaveKeyInput,
    SignRequestInput,
    ValidateRequestInput,
    build_string_to_sign,
    compute_signature,
    is_connected,
    run_check_connect_permission,
    run_connect,
    run_disconnect,
    run_save_key,
    run_sign_request,
    run_status,
    run_test_connection,
    run_validate_request,
    validate_key_format,
)
from src.domain.entities import ConnectionSettings

KEY = "fk_" + "a1B2c3D4" * 4
OTHER_KEY = "fk_" + "z9Y8x7W6" * 4

# --- Mock Implementations ---


class MockConnectionStore:
    """In-memory connection store for testing."""

    def __init__(self, settings: ConnectionSettings | None = None) -> None:
        self.settings = settings or ConnectionSettings()
        self.saves = 0

    def get(self) -> ConnectionSettings:
        return self.settings

    def save(self, settings: ConnectionSettings) -> None:
        self.settings = settings
        self.saves += 1


class MockTimePort:
    """Mock time port with a fixed clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now = self._now + timedelta(seconds=seconds)


# --- Fixtures ---


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def store() -> MockConnectionStore:
    return MockConnectionStore(ConnectionSettings(connection_key=KEY, connected=True))


def _signed(
    time_port: MockTimePort,
    method: str = "GET",
    path: str = "/forge/v1/status",
    body: str | bytes = "",
    key: str = KEY,
    site_id: str | None = None,
    timestamp: str | None = None,
) -> ValidateRequestInput:
    ts = timestamp or str(int(time_port.now_utc().timestamp()))
    return ValidateRequestInput(
        method=method,
        path=path,
        body=body,
        signature=compute_signature(key, method, path, ts, body),
        timestamp=ts,
        site_id=site_id,
    )


# --- Signatures ---


class TestSignatures:
    def test_string_to_sign_layout(self) -> None:
        assert build_string_to_sign("POST", "/forge/v1/posts", 1700000000, '{"a":1}') == (
            'POST\n/forge/v1/posts\n1700000000\n{"a":1}'
        )

    def test_signature_is_lowercase_hex(self) -> None:
        sig = compute_signature(KEY, "GET", "/forge/v1/status", "1700000000", "")
        assert len(sig) == 64
        assert sig == sig.lower()
        int(sig, 16)

    def test_signature_binds_every_part(self) -> None:
        base = compute_signature(KEY, "GET", "/forge/v1/status", "1", "")
        assert compute_signature(KEY, "POST", "/forge/v1/status", "1", "") != base
        assert compute_signature(KEY, "GET", "/forge/v1/sync", "1", "") != base
        assert compute_signature(KEY, "GET", "/forge/v1/status", "2", "") != base
        assert compute_signature(KEY, "GET", "/forge/v1/status", "1", "x") != base
        assert compute_signature(OTHER_KEY, "GET", "/forge/v1/status", "1", "") != base

    def test_bytes_body_matches_utf8_text(self) -> None:
        text = compute_signature(KEY, "POST", "/forge/v1/posts", "1", '{"title":"caf\u00e9"}')
        raw = '{"title":"caf\u00e9"}'.encode("utf-8")
        assert compute_signature(KEY, "POST", "/forge/v1/posts", "1", raw) == text


class TestKeyFormat:
    @pytest.mark.parametrize(
        "key,expected",
        [
            (KEY, True),
            ("fk_" + "a" * 32, True),
            ("fk_" + "a" * 31, False),
            ("xx_" + "a" * 32, False),
            ("fk_" + "a" * 31 + "-", False),
            ("fk_" + "é" * 32, False),
            ("", False),
        ],
    )
    def test_validate_key_format(self, key: str, expected: bool) -> None:
        assert validate_key_format(key) is expected


# --- Request validation ---


class TestValidateRequest:
    def test_valid_request(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        result = run_validate_request(_signed(time_port), store, time_port)
        assert result.success
        assert result.error is None

    def test_non_utf8_body_verified_over_raw_bytes(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        body = b"title=caf\xe9"
        result = run_validate_request(
            _signed(time_port, method="POST", body=body), store, time_port
        )
        assert result.success

    def test_tampered_bytes_body(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        inp = _signed(time_port, method="POST", body=b"title=caf\xe9")
        tampered = ValidateRequestInput(
            method=inp.method,
            path=inp.path,
            body=b"title=caf\xe8",
            signature=inp.signature,
            timestamp=inp.timestamp,
        )
        result = run_validate_request(tampered, store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_invalid_signature"

    def test_not_configured(self, time_port: MockTimePort) -> None:
        result = run_validate_request(_signed(time_port), MockConnectionStore(), time_port)
        assert not result.success
        assert result.error is not None
        assert result.error.code == "forge_not_configured"
        assert result.error.status == 401

    def test_missing_signature(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        inp = ValidateRequestInput(method="GET", path="/forge/v1/status", timestamp="1")
        result = run_validate_request(inp, store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_missing_auth"

    def test_empty_timestamp(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        inp = ValidateRequestInput(
            method="GET", path="/forge/v1/status", signature="abc", timestamp=""
        )
        result = run_validate_request(inp, store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_missing_auth"

    def test_timestamp_at_tolerance_edge_is_accepted(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        inp = _signed(time_port)
        time_port.advance(300)
        assert run_validate_request(inp, store, time_port).success

    def test_expired_request(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        inp = _signed(time_port)
        time_port.advance(301)
        result = run_validate_request(inp, store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_expired_request"

    def test_future_timestamp_outside_window(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        ts = str(int(time_port.now_utc().timestamp()) + 301)
        result = run_validate_request(_signed(time_port, timestamp=ts), store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_expired_request"

    def test_non_numeric_timestamp_is_expired(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        result = run_validate_request(_signed(time_port, timestamp="soon"), store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_expired_request"

    def test_signature_uses_timestamp_as_sent(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        ts = str(int(time_port.now_utc().timestamp())) + "abc"
        assert run_validate_request(_signed(time_port, timestamp=ts), store, time_port).success

    def test_invalid_signature(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        result = run_validate_request(_signed(time_port, key=OTHER_KEY), store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_invalid_signature"

    def test_tampered_body(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        inp = _signed(time_port, method="POST", body='{"title":"a"}')
        tampered = ValidateRequestInput(
            method=inp.method,
            path=inp.path,
            body='{"title":"b"}',
            signature=inp.signature,
            timestamp=inp.timestamp,
        )
        result = run_validate_request(tampered, store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_invalid_signature"


class TestSitePinning:
    def test_first_request_pins_site_id(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        result = run_validate_request(_signed(time_port, site_id="site-1"), store, time_port)
        assert result.success
        assert result.pinned_site_id == "site-1"
        assert store.settings.forge_site_id == "site-1"

    def test_matching_site_id(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore(
            ConnectionSettings(connection_key=KEY, connected=True, forge_site_id="site-1")
        )
        result = run_validate_request(_signed(time_port, site_id="site-1"), store, time_port)
        assert result.success
        assert result.pinned_site_id is None
        assert store.saves == 0

    def test_site_mismatch(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore(
            ConnectionSettings(connection_key=KEY, connected=True, forge_site_id="site-1")
        )
        result = run_validate_request(_signed(time_port, site_id="site-2"), store, time_port)
        assert result.error is not None
        assert result.error.code == "forge_site_mismatch"

    def test_absent_header_skips_check(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore(
            ConnectionSettings(connection_key=KEY, connected=True, forge_site_id="site-1")
        )
        assert run_validate_request(_signed(time_port), store, time_port).success

    def test_bad_signature_never_pins(
        self, store: MockConnectionStore, time_port: MockTimePort
    ) -> None:
        inp = _signed(time_port, key=OTHER_KEY, site_id="attacker")
        result = run_validate_request(inp, store, time_port)
        assert not result.success
        assert store.settings.forge_site_id is None
        assert store.saves == 0


# --- Outgoing signing ---


class TestSignRequest:
    def test_no_key_returns_empty_headers(self, time_port: MockTimePort) -> None:
        out = run_sign_request(
            SignRequestInput(method="GET", path="/api/x"), MockConnectionStore(), time_port, "1.0.0"
        )
        assert out.headers == {}

    def test_signed_headers(self, store: MockConnectionStore, time_port: MockTimePort) -> None:
        out = run_sign_request(
            SignRequestInput(method="POST", path="/api/x", body="{}"), store, time_port, "1.0.0"
        )
        ts = str(int(time_port.now_utc().timestamp()))
        assert out.headers["X-Forge-Timestamp"] == ts
        assert out.headers["X-Forge-Signature"] == compute_signature(KEY, "POST", "/api/x", ts, "{}")
        assert out.headers["X-Forge-Site-ID"] == ""
        assert out.headers["X-Forge-Plugin-Version"] == "1.0.0"


# --- Connection lifecycle ---


class TestConnectPermission:
    def test_not_connected_allows(self) -> None:
        result = run_check_connect_permission(ConnectPermissionInput(), MockConnectionStore())
        assert result.success

    def test_connected_without_key(self, store: MockConnectionStore) -> None:
        result = run_check_connect_permission(ConnectPermissionInput(), store)
        assert result.error is not None
        assert result.error.code == "forge_already_connected"
        assert result.error.status == 403

    def test_connected_with_other_key(self, store: MockConnectionStore) -> None:
        result = run_check_connect_permission(ConnectPermissionInput(OTHER_KEY), store)
        assert result.error is not None
        assert result.error.code == "forge_invalid_connection_key"

    def test_connected_with_same_key(self, store: MockConnectionStore) -> None:
        assert run_check_connect_permission(ConnectPermissionInput(KEY), store).success


class TestConnect:
    def test_missing_key(self, time_port: MockTimePort) -> None:
        out = run_connect(ConnectInput(connection_key=""), MockConnectionStore(), time_port)
        assert out.error is not None
        assert out.error.code == "missing_key"
        assert out.error.status == 400

    def test_invalid_key(self, time_port: MockTimePort) -> None:
        out = run_connect(ConnectInput(connection_key="fk_short"), MockConnectionStore(), time_port)
        assert out.error is not None
        assert out.error.code == "invalid_key"

    def test_connect_stores_settings(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore()
        out = run_connect(ConnectInput(KEY, forge_site_id="site-9"), store, time_port)
        assert out.success
        assert store.settings.connection_key == KEY
        assert store.settings.connected
        assert store.settings.connected_at == "2024-06-01 12:00:00"
        assert store.settings.forge_site_id == "site-9"
        assert is_connected(store)

    def test_empty_site_id_stored_as_none(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore()
        run_connect(ConnectInput(KEY, forge_site_id=""), store, time_port)
        assert store.settings.forge_site_id is None

    def test_disconnect_resets(self, store: MockConnectionStore) -> None:
        out = run_disconnect(store)
        assert out.success
        assert store.settings == ConnectionSettings()
        assert not is_connected(store)

    def test_status(self, store: MockConnectionStore) -> None:
        assert run_status(store).as_dict() == {
            "connected": True,
            "connected_at": None,
            "forge_site_id": None,
            "has_key": True,
        }


class TestOperatorKeyManagement:
    def test_save_key_rejects_bad_format(self, time_port: MockTimePort) -> None:
        out = run_save_key(SaveKeyInput("bad"), MockConnectionStore(), time_port)
        assert out.error is not None
        assert "fk_" in out.error.message

    def test_save_key_clears_site_id(self, time_port: MockTimePort) -> None:
        store = MockConnectionStore(ConnectionSettings(forge_site_id="old"))
        out = run_save_key(SaveKeyInput(KEY), store, time_port)
        assert out.success
        assert store.settings.forge_site_id is None

    def test_test_connection_without_key(self) -> None:
        out = run_test_connection(MockConnectionStore())
        assert out.error is not None
        assert out.error.message == "No connection key configured."

    def test_test_connection_with_invalid_key(self) -> None:
        out = run_test_connection(MockConnectionStore(ConnectionSettings(connection_key="fk_x")))
        assert out.error is not None
        assert out.error.message == "Connection key is invalid."

    def test_test_connection_ok(self, store: MockConnectionStore) -> None:
        out = run_test_connection(store)
        assert out.success
        assert out.message == "Connection is working!"
