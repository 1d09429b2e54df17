"""
Auth component - HMAC request authentication and connection lifecycle.
"""

from .component import (
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

__all__ = [
    # Entry points
    "run_check_connect_permission",
    "run_connect",
    "run_disconnect",
    "run_save_key",
    "run_sign_request",
    "run_status",
    "run_test_connection",
    "run_validate_request",
    # Helpers
    "build_string_to_sign",
    "compute_signature",
    "is_connected",
    "validate_key_format",
    # Models
    "AuthError",
    "AuthOutput",
    "ConnectInput",
    "ConnectionOutput",
    "ConnectionStatus",
    "ConnectPermissionInput",
    "SaveKeyInput",
    "SignedHeaders",
    "SignRequestInput",
    "ValidateRequestInput",
    # Ports
    "ConnectionStorePort",
    "TimePort",
]
