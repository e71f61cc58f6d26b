"""Tests for structured logging."""

import asyncio
import json
import logging
from pathlib import Path

import pytest
import structlog

from repolens.config.models import LoggingConfig, LogOutputConfig
from repolens.core.logging import configure_logging, get_request_id, request_scope
from repolens.index import IndexCoordinator, IndexRequest


def _events(log_file: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in log_file.read_text().splitlines() if line]


class TestRequestScope:
    """Request correlation tests."""

    def test_given_explicit_id_when_scoped_then_visible_inside_only(self) -> None:
        # When
        with request_scope("query-123") as rid:
            inside = get_request_id()

        # Then
        assert rid == "query-123"
        assert inside == "query-123"
        assert get_request_id() is None

    def test_given_no_id_when_scoped_then_generates_short_hex(self) -> None:
        with request_scope() as rid:
            assert len(rid) == 12
            assert get_request_id() == rid

    def test_given_enclosing_scope_when_nested_then_reuses_outer_id(self) -> None:
        # Given
        with request_scope("outer"):
            # When
            with request_scope(repository="github:main:acme/calc") as inner:
                fields = structlog.contextvars.get_contextvars()

            # Then
            assert inner == "outer"
            assert fields["repository"] == "github:main:acme/calc"
            assert "repository" not in structlog.contextvars.get_contextvars()

    def test_given_exception_when_raised_inside_then_binding_restored(self) -> None:
        with pytest.raises(RuntimeError), request_scope("boom"):
            raise RuntimeError("fail")

        assert get_request_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        structlog.contextvars.clear_contextvars()
        logging.getLogger().handlers.clear()

    def teardown_method(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        structlog.reset_defaults()

    def test_given_json_file_output_when_log_then_valid_json_lines(self, tmp_path: Path) -> None:
        """JSON output produces one valid object per event with the shared fields."""
        # Given
        log_file = tmp_path / "repolens.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        structlog.get_logger().info("indexing_started", repository="local:main:a/b")

        # Then
        data = _events(log_file)[-1]
        assert data["event"] == "indexing_started"
        assert data["repository"] == "local:main:a/b"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_request_scope_when_log_then_id_attached(self, tmp_path: Path) -> None:
        """The correlation ID travels with every event inside the scope."""
        # Given
        log_file = tmp_path / "repolens.log"
        configure_logging(
            config=LoggingConfig(
                outputs=[LogOutputConfig(format="json", destination=str(log_file))]
            )
        )

        # When
        with request_scope("abc123"):
            structlog.get_logger().info("query_executed")
        structlog.get_logger().info("after_scope")

        # Then
        inside, after = _events(log_file)[-2:]
        assert inside["request_id"] == "abc123"
        assert "request_id" not in after

    @pytest.mark.asyncio
    async def test_given_pass_and_query_when_logged_then_each_correlated(
        self, tmp_path: Path
    ) -> None:
        """Every line of one pass shares an ID; a later query gets its own."""
        # Given
        root = tmp_path / "proj"
        root.mkdir()
        (root / "main.ts").write_text("export const add = (a, b) => a + b;\n")
        log_file = tmp_path / "repolens.log"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        coordinator = IndexCoordinator()
        request = IndexRequest(remote="local", owner=str(tmp_path), name="proj")

        # When
        await coordinator.index_repository(request)
        coordinator.query("where is add", [request.key])

        # Then
        events = {e["event"]: e for e in _events(log_file)}
        pass_events = [
            events[name] for name in ("indexing_started", "files_resolved", "indexing_completed")
        ]
        pass_ids = {e["request_id"] for e in pass_events}
        assert len(pass_ids) == 1
        assert all(e["repository"] == request.key.id for e in pass_events)
        assert events["query_executed"]["request_id"] not in pass_ids
        assert events["query_executed"]["request_id"] == events["search_executed"]["request_id"]

    @pytest.mark.asyncio
    async def test_given_concurrent_scopes_when_logged_then_ids_do_not_leak(self) -> None:
        async def scoped(name: str) -> str | None:
            with request_scope(name):
                await asyncio.sleep(0)
                return get_request_id()

        assert await asyncio.gather(scoped("a"), scoped("b")) == ["a", "b"]
        assert get_request_id() is None

    def test_given_simple_params_when_configure_then_single_console_handler(self) -> None:
        """Simple setup installs exactly one handler at the requested level."""
        # When
        configure_logging(json_format=True, level="WARNING")

        # Then
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG should override the level="ERROR" param
        configure_logging(config=config, json_format=False, level="ERROR")
        structlog.get_logger().debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_logs_to_all(
        self, tmp_path: Path
    ) -> None:
        """Multiple outputs receive logs according to their levels."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="console", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = structlog.get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then - info_file should have INFO only
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content

        # Then - debug_file inherits DEBUG from the config level
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_reconfigure_when_called_twice_then_handlers_replaced(
        self, tmp_path: Path
    ) -> None:
        # Given
        config = LoggingConfig(
            outputs=[LogOutputConfig(format="json", destination=str(tmp_path / "a.log"))]
        )
        configure_logging(config=config)

        # When
        configure_logging(config=config)

        # Then
        assert len(logging.getLogger().handlers) == 1


class TestLogOutputConfig:
    def test_given_relative_file_when_validated_then_rejected(self) -> None:
        with pytest.raises(ValueError, match="absolute"):
            LogOutputConfig(destination="relative/file.log")
