"""
Typed errors for the transaction pipeline.

Everything raised by this package derives from ``EosioApiError`` so callers
can catch the whole family, or a specific failure mode:

    - ``ConfigurationError`` — caller asked for something inconsistent
      (exclusive TAPoS strategies, incomplete TAPoS fields, an ABI whose
      version this codec does not speak). Never retried.
    - ``AbiFetchError`` — the ABI provider failed; message names the account.
    - ``MissingAbiError`` — cache empty right after a successful fetch.
      Indicates a defect, not a transient condition.
    - ``RpcError`` — the node answered with an error body.
    - ``SerializationError`` — binary codec could not encode/decode a value.
    - ``KeyFormatError`` — malformed key or signature text (prefix,
      checksum, length).

Nothing in this package retries. Retry policy belongs to the transport.
"""

from __future__ import annotations

from typing import Any


class EosioApiError(Exception):
    """Base class for all errors raised by eosio_api."""


class ConfigurationError(EosioApiError, ValueError):
    """Inconsistent or incomplete transaction configuration."""


class UnsupportedAbiVersionError(ConfigurationError):
    """ABI buffer does not start with a supported ``eosio::abi/1.x`` version."""

    def __init__(self, version: str | None = None) -> None:
        self.version = version
        super().__init__("Unsupported abi version")


class AbiFetchError(EosioApiError):
    """The ABI provider failed for a specific account."""

    def __init__(self, account_name: str, cause: BaseException) -> None:
        self.account_name = account_name
        super().__init__(f"fetching abi for {account_name}: {cause}")


class MissingAbiError(EosioApiError):
    """No cached ABI exists immediately after it was stored."""

    def __init__(self, account_name: str) -> None:
        self.account_name = account_name
        super().__init__(f"Missing abi for {account_name}")


class SerializationError(EosioApiError, ValueError):
    """A value could not be encoded to, or decoded from, the wire format."""


class KeyFormatError(EosioApiError, ValueError):
    """Malformed key or signature text."""


class RpcError(EosioApiError):
    """The node reported a failure.

    Attributes:
        json: The decoded response body, kept for diagnostics.
        status_code: HTTP status of the response, when known.
    """

    def __init__(self, json: dict[str, Any], status_code: int | None = None) -> None:
        self.json = json
        self.status_code = status_code
        super().__init__(_rpc_error_message(json))


def _rpc_error_message(json: dict[str, Any]) -> str:
    """Pick the most specific message a node error body carries."""
    error = json.get("error")
    if isinstance(error, dict):
        details = error.get("details")
        if isinstance(details, list) and details and isinstance(details[0], dict):
            message = details[0].get("message")
            if message:
                return str(message)

    for key in ("processed", "result"):
        section = json.get(key)
        if isinstance(section, dict):
            exc = section.get("except")
            if isinstance(exc, dict) and exc.get("message"):
                return str(exc["message"])

    return str(json.get("message", "unknown rpc error"))
