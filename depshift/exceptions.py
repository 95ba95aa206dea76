"""
Errors raised by depshift.

Everything derives from :class:`DepShiftError`, which carries a
``details`` mapping that the CLI logs at debug level and renders after
the message.

Only fatal conditions are exceptions. Malformed upgrade metadata,
invalid selectors and packages missing from ``package.json`` are logged
and skipped instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from depshift.models.violation import PeerViolation

#: Longest response body kept in ``NetworkError.details``.
_MAX_RESPONSE_CHARS = 200


def _details(**fields: Any) -> Dict[str, Any]:
    """Keep the fields that were actually given."""
    return {key: value for key, value in fields.items() if value is not None}


class DepShiftError(Exception):
    """Root of the depshift error hierarchy.

    Args:
        message: Human-readable error message.
        details: Structured context, shown as ``key=value`` after the message.
    """

    __slots__ = ("message", "details")

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


class ConfigError(DepShiftError):
    """A configuration file is missing, unreadable or holds bad values."""

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        super().__init__(message, _details(path=config_path, option=option))
        self.config_path = config_path
        self.option = option


class InvalidOptionError(DepShiftError):
    """Command options contradict each other or cannot be parsed."""

    __slots__ = ("option", "value")

    def __init__(
        self,
        message: str,
        *,
        option: Optional[str] = None,
        value: Optional[str] = None,
    ) -> None:
        super().__init__(message, _details(option=option, value=value))
        self.option = option
        self.value = value


class FileOperationError(DepShiftError):
    """Reading, writing or backing up a file failed.

    ``operation`` is one of ``read``, ``write`` or ``backup``.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            _details(
                path=file_path,
                operation=operation,
                original_error=str(original_error) if original_error else None,
            ),
        )
        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ManifestError(DepShiftError):
    """The project's ``package.json`` cannot be used."""

    __slots__ = ("file_path",)

    def __init__(self, message: str, *, file_path: Optional[str] = None) -> None:
        super().__init__(message, _details(file=file_path))
        self.file_path = file_path


class ManifestNotFoundError(ManifestError):
    """No ``package.json`` where one is expected."""


class ManifestParseError(ManifestError):
    """``package.json`` is not a JSON object."""


class NetworkError(DepShiftError):
    """An HTTP request failed or returned something unusable.

    The response body, if any, is truncated in ``details`` but kept whole
    on ``response_body``.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        response = None
        if response_body is not None:
            response = response_body[:_MAX_RESPONSE_CHARS]
            if len(response_body) > _MAX_RESPONSE_CHARS:
                response += "..."
        super().__init__(
            message, _details(url=url, status_code=status_code, response=response)
        )
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryError(NetworkError):
    """The npm registry answered with an error for one package."""

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class RegistryPackageNotFoundError(RegistryError):
    """The registry has no metadata for a package."""


class UnresolvableRangeError(DepShiftError):
    """No published version satisfies the range declared in ``package.json``."""

    __slots__ = ("package_name", "declared_range")

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        declared_range: Optional[str] = None,
    ) -> None:
        super().__init__(message, _details(package=package_name, range=declared_range))
        self.package_name = package_name
        self.declared_range = declared_range


class PeerCompatibilityError(DepShiftError):
    """Peer-dependency validation found violations and ``--force`` is unset.

    Each violation was logged as it was found; ``violations`` keeps them
    for programmatic callers.
    """

    __slots__ = ("violations",)

    def __init__(
        self,
        message: str,
        *,
        violations: Sequence["PeerViolation"] = (),
    ) -> None:
        super().__init__(message, {"violations": len(violations)})
        self.violations = list(violations)
