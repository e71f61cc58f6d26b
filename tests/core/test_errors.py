"""Tests for error types and codes."""

import pytest

from repolens.core.errors import (
    ConfigError,
    ErrorCode,
    FileNotIndexed,
    IndexingPassFailed,
    InternalError,
    InvalidArgument,
    InvalidFilterPattern,
    PathOutsideRepository,
    RepoLensError,
    RepositoryNotFound,
    RepositoryNotIndexed,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.REPOSITORY_NOT_FOUND, 3000),
            (ErrorCode.INVALID_FILTER_PATTERN, 3000),
            (ErrorCode.INVALID_ARGUMENT, 3000),
            (ErrorCode.INTERNAL_ERROR, 9000),
            (ErrorCode.INTERNAL_TIMEOUT, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000

    def test_index_error_codes_are_stable(self) -> None:
        assert ErrorCode.REPOSITORY_NOT_FOUND == 3001
        assert ErrorCode.REPOSITORY_NOT_INDEXED == 3002
        assert ErrorCode.INDEXING_PASS_FAILED == 3003
        assert ErrorCode.INVALID_FILTER_PATTERN == 3004
        assert ErrorCode.FILE_NOT_INDEXED == 3005
        assert ErrorCode.PATH_OUTSIDE_REPOSITORY == 3006
        assert ErrorCode.INVALID_ARGUMENT == 3007


class TestRepoLensError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = RepoLensError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = RepoLensError(code=ErrorCode.INTERNAL_ERROR, message="Something broke")

        # When
        result = str(error)

        # Then
        assert result == "[9001] INTERNAL_ERROR: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Structured errors are ordinary exceptions."""
        # Given
        error = RepositoryNotFound.for_key("local:main:me/repo")

        # When / Then
        with pytest.raises(RepoLensError) as exc_info:
            raise error
        assert exc_info.value.code == ErrorCode.REPOSITORY_NOT_FOUND


class TestConfigError:
    """ConfigError factory method tests."""

    def test_given_parse_failure_when_created_then_has_path(self) -> None:
        # Given / When
        error = ConfigError.parse_error("/etc/x.yaml", "bad indent")

        # Then
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert error.details == {"path": "/etc/x.yaml", "reason": "bad indent"}
        assert "/etc/x.yaml" in error.message

    def test_given_invalid_value_when_created_then_value_stringified(self) -> None:
        # Given / When
        error = ConfigError.invalid_value("limits.search_default", 500, "too large")

        # Then
        assert error.code == ErrorCode.CONFIG_INVALID_VALUE
        assert error.details["value"] == "500"
        assert error.details["field"] == "limits.search_default"

    def test_given_missing_file_when_created_then_not_found_code(self) -> None:
        error = ConfigError.file_not_found("/nope.yaml")
        assert error.code == ErrorCode.CONFIG_FILE_NOT_FOUND


class TestIndexErrors:
    """Index error factory tests."""

    def test_given_unknown_key_when_not_found_then_mentions_key(self) -> None:
        # Given / When
        error = RepositoryNotFound.for_key("github:main:acme/api")

        # Then
        assert "github:main:acme/api" in error.message
        assert error.details == {"repo_id": "github:main:acme/api"}
        assert error.retryable is False

    def test_given_status_when_not_indexed_then_status_in_details(self) -> None:
        error = RepositoryNotIndexed.for_key("local:main:a/b", "indexing")
        assert error.code == ErrorCode.REPOSITORY_NOT_INDEXED
        assert error.details["status"] == "indexing"

    def test_given_exception_when_pass_failed_then_reason_captured(self) -> None:
        # Given
        cause = PermissionError("access denied")

        # When
        error = IndexingPassFailed.from_exception("local:main:a/b", cause)

        # Then
        assert error.code == ErrorCode.INDEXING_PASS_FAILED
        assert error.details["reason"] == "access denied"

    def test_given_blank_exception_when_pass_failed_then_type_name_used(self) -> None:
        error = IndexingPassFailed.from_exception("local:main:a/b", RuntimeError())
        assert error.details["reason"] == "RuntimeError"

    def test_given_timeout_when_pass_failed_then_seconds_in_message(self) -> None:
        error = IndexingPassFailed.timeout("local:main:a/b", 2.5)
        assert error.code == ErrorCode.INDEXING_PASS_FAILED
        assert "2.5" in error.message

    def test_given_bad_pattern_when_created_then_pattern_kept(self) -> None:
        error = InvalidFilterPattern.for_pattern("[", "unterminated character set")
        assert error.code == ErrorCode.INVALID_FILTER_PATTERN
        assert error.details["pattern"] == "["

    def test_file_not_indexed(self) -> None:
        error = FileNotIndexed.for_path("local:main:a/b", "src/x.ts")
        assert error.code == ErrorCode.FILE_NOT_INDEXED
        assert "src/x.ts" in error.message

    def test_path_outside_repository(self) -> None:
        error = PathOutsideRepository.for_path("../etc", "/repo")
        assert error.code == ErrorCode.PATH_OUTSIDE_REPOSITORY

    def test_invalid_argument(self) -> None:
        error = InvalidArgument.for_field("limit", 0, "must be a positive integer")
        assert error.code == ErrorCode.INVALID_ARGUMENT
        assert error.details["field"] == "limit"


class TestInternalError:
    def test_given_details_when_unexpected_then_details_kept(self) -> None:
        error = InternalError.unexpected("illegal transition", repository="x")
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {"repository": "x"}
