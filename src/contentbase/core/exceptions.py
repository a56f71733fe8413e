"""Error taxonomy shared by the domain services and the HTTP layer.

Services raise these exceptions; the API layer maps them to status codes in
``contentbase.infrastructure.api.app.register_exception_handlers``.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ValidationIssue:
    """A single field-level problem with client input."""

    path: str
    msg: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ContentBaseError(Exception):
    """Base class for all errors raised by ContentBase services."""


class BadRequestError(ContentBaseError):
    """Client input error, rendered as a list of field-level issues."""

    def __init__(self, issues: list[ValidationIssue] | ValidationIssue) -> None:
        if isinstance(issues, ValidationIssue):
            issues = [issues]
        self.issues = issues
        super().__init__("; ".join(f"{i.path}: {i.msg}" for i in issues))


class AmbiguousSchemaChangeError(BadRequestError):
    """A schema update changes more than one field at the same nesting level."""

    def __init__(self, path: str, msg: str) -> None:
        super().__init__(ValidationIssue(path=path or "fields", msg=msg))


class NotFoundError(ContentBaseError):
    """A collection, field or entry does not exist."""

    def __init__(self, path: str, msg: str) -> None:
        self.path = path
        self.msg = msg
        super().__init__(msg)


class ConflictError(ContentBaseError):
    """A unique collection attribute (name or title) is already taken."""

    def __init__(self, path: str, msg: str) -> None:
        self.path = path
        self.msg = msg
        super().__init__(msg)


class ServerError(ContentBaseError):
    """Internal or storage failure.

    The message is for logs only; callers receive a generic message.
    """

    public_message = "Something went wrong, try again"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MigrationError(ServerError):
    """Rewriting stored entries after a schema change failed."""
