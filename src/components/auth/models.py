from dataclasses import dataclass, field

from src.domain.entities import ConnectionSettings


@dataclass(frozen=True)
class AuthError:
    code: str
    message: str
    status: int = 401


@dataclass(frozen=True)
class ValidateRequestInput:
    method: str
    path: str
    body: str | bytes = b""
    signature: str | None = None
    timestamp: str | None = None
    site_id: str | None = None


@dataclass(frozen=True)
class SignRequestInput:
    method: str
    path: str
    body: str = ""


@dataclass(frozen=True)
class ConnectPermissionInput:
    provided_key: str = ""


@dataclass(frozen=True)
class ConnectInput:
    connection_key: str
    forge_site_id: str | None = None


@dataclass(frozen=True)
class SaveKeyInput:
    connection_key: str


@dataclass(frozen=True)
class AuthOutput:
    success: bool = False
    error: AuthError | None = None
    pinned_site_id: str | None = None


@dataclass(frozen=True)
class SignedHeaders:
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ConnectionStatus:
    connected: bool
    connected_at: str | None
    forge_site_id: str | None
    has_key: bool

    def as_dict(self) -> dict[str, object]:
        return {
            "connected": self.connected,
            "connected_at": self.connected_at,
            "forge_site_id": self.forge_site_id,
            "has_key": self.has_key,
        }


@dataclass(frozen=True)
class ConnectionOutput:
    settings: ConnectionSettings | None = None
    status: ConnectionStatus | None = None
    message: str = ""
    success: bool = False
    error: AuthError | None = None
