"""Unit tests for the error taxonomy."""

from contentbase.core.exceptions import (
    AmbiguousSchemaChangeError,
    BadRequestError,
    MigrationError,
    ServerError,
    ValidationIssue,
)


def test_bad_request_accepts_single_issue():
    error = BadRequestError(ValidationIssue(path="entryIds", msg="required"))

    assert [i.to_dict() for i in error.issues] == [{"path": "entryIds", "msg": "required"}]
    assert str(error) == "entryIds: required"


def test_ambiguous_change_defaults_to_top_level_path():
    error = AmbiguousSchemaChangeError("", "Only one field can be renamed")

    assert error.issues[0].path == "fields"


def test_server_errors_keep_details_private():
    error = MigrationError("Failed to migrate entries of 'posts': disk I/O error")

    assert isinstance(error, ServerError)
    assert "disk" not in error.public_message
    assert "disk" in error.message
