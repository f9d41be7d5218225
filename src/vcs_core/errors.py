from __future__ import annotations


class TypedRepositoryError(RuntimeError):
    """Base class for typed operational errors surfaced to users."""

    error_code = "INTERNAL_ERROR"
    failure_class = "internal"
    user_message = "An internal error occurred."

    def metadata(self) -> dict[str, str]:
        return {
            "error_code": self.error_code,
            "failure_class": self.failure_class,
            "user_message": self.user_message,
        }

    def payload(self, *, detail: str | None = None) -> dict[str, str]:
        payload = self.metadata()
        payload["detail"] = str(self) if detail is None else str(detail)
        return payload


def typed_error_metadata(exc: BaseException) -> dict[str, str] | None:
    if isinstance(exc, TypedRepositoryError):
        return exc.metadata()
    return None


def typed_error_payload(exc: BaseException) -> dict[str, str] | None:
    if isinstance(exc, TypedRepositoryError):
        return exc.payload()
    return None


class ConfigError(TypedRepositoryError):
    """Configuration parsing or validation error."""

    error_code = "CONFIG_ERROR"
    failure_class = "configuration"
    user_message = "Configuration is invalid."


class UnsupportedVCSError(ConfigError):
    """Repository names a version control system with no implementation."""

    error_code = "UNSUPPORTED_VCS"
    user_message = "Unrecognized version control system."


class MalformedURIError(TypedRepositoryError):
    """Raw connection string is not a URI we can parse."""

    error_code = "MALFORMED_URI"
    failure_class = "validation"
    user_message = "The remote URI is not formatted correctly."


class AmbiguousSCPSyntaxError(MalformedURIError):
    """Scheme-qualified URI written with SCP-style ':path' syntax."""

    error_code = "AMBIGUOUS_SCP_SYNTAX"
    user_message = (
        "Remote URIs with an explicit protocol should be in the form "
        "'proto://domain/path', not 'proto://domain:/path'."
    )


class DisallowedProtocolError(TypedRepositoryError):
    """Remote URI protocol is outside the allow-list."""

    error_code = "DISALLOWED_PROTOCOL"
    failure_class = "validation"
    user_message = "The URI protocol is not allowed."


class WorkingCopyUnavailableError(TypedRepositoryError):
    """Local working copy is missing or unreadable."""

    error_code = "WORKING_COPY_UNAVAILABLE"
    failure_class = "working_copy"
    user_message = "The repository working copy is not available."


class CredentialResolutionError(TypedRepositoryError):
    """Credential lookup or resolution error."""

    error_code = "CREDENTIAL_RESOLUTION_ERROR"
    failure_class = "credentials"
    user_message = "Credential resolution failed."


class CredentialNotFoundError(CredentialResolutionError):
    """Configured credential reference no longer resolves."""

    error_code = "CREDENTIAL_NOT_FOUND"
    user_message = "The configured credential could not be found."


class CommandFormatError(TypedRepositoryError):
    """Command pattern and arguments do not agree."""

    error_code = "COMMAND_FORMAT_ERROR"
    failure_class = "internal"
    user_message = "Command could not be constructed."


class CommandExecutionError(TypedRepositoryError):
    """Version control command exited unsuccessfully."""

    error_code = "COMMAND_EXECUTION_ERROR"
    failure_class = "execution"
    user_message = "Version control command failed."

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class RepositoryNotFoundError(TypedRepositoryError):
    """Repository record does not exist."""

    error_code = "REPOSITORY_NOT_FOUND"
    failure_class = "not_found"
    user_message = "Repository not found."
