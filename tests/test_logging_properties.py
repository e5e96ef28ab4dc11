"""Property-based tests for logging functionality.

**Feature: offline-delta-sync, Property 18: Sync log format**

Every log line emitted during a sync must be a JSON object carrying:
- timestamp
- severity level
- the event name and its fields
- the collection bound for the running pass
"""

import json
import logging
from datetime import datetime
from io import StringIO

import structlog
from hypothesis import given, settings
from hypothesis import strategies as st

from src.models.config import LoggingConfig
from src.utils.logging_config import configure_logging, configure_logging_from_config

collection_names = st.sampled_from(["topics", "authors", "news_resources"])


def capture_json_logs(level: int = logging.DEBUG) -> StringIO:
    """Route stdlib logging into a buffer and render structlog events as JSON."""
    log_buffer = StringIO()
    logging.basicConfig(format="%(message)s", level=level, stream=log_buffer, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return log_buffer


def read_entries(log_buffer: StringIO) -> list[dict]:
    lines = [line for line in log_buffer.getvalue().splitlines() if line.strip()]
    try:
        return [json.loads(line) for line in lines]
    except json.JSONDecodeError as e:
        raise AssertionError(f"Log output is not valid JSON: {lines}") from e


@given(
    log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    error_message=st.text(min_size=1, max_size=200),
)
@settings(max_examples=100)
def test_sync_log_format_contains_required_fields(log_level: str, error_message: str) -> None:
    """
    Property 18: Sync log format

    *For any* logged event, the entry contains timestamp, severity level and
    the logged error message.
    """
    log_buffer = capture_json_logs()
    log = structlog.stdlib.get_logger("test_logger")

    getattr(log, log_level.lower())("sync_failed", error=error_message)

    (log_entry,) = read_entries(log_buffer)

    assert "timestamp" in log_entry, f"Log entry missing 'timestamp' field: {log_entry}"
    try:
        datetime.fromisoformat(log_entry["timestamp"].replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        raise AssertionError(
            f"Timestamp is not in valid ISO format: {log_entry['timestamp']}"
        ) from e

    assert log_entry["level"].upper() == log_level.upper()
    assert log_entry["event"] == "sync_failed"
    assert log_entry["error"] == error_message


@given(
    collection=collection_names,
    base_version=st.integers(min_value=0, max_value=10**6),
    change_count=st.integers(min_value=0, max_value=10**4),
)
@settings(max_examples=50)
def test_bound_collection_is_merged_into_every_event(
    collection: str, base_version: int, change_count: int
) -> None:
    """
    Property 18 (Extended): context bound for a pass shows up on its events
    and disappears once the pass is over.
    """
    log_buffer = capture_json_logs()
    log = structlog.stdlib.get_logger("test_logger")

    with structlog.contextvars.bound_contextvars(collection=collection):
        log.info("change_list_received", base_version=base_version, change_count=change_count)
        log.warning("change_list_truncated", highest_observed=base_version + change_count)
    log.info("sync_session_completed")

    inside_first, inside_second, outside = read_entries(log_buffer)

    assert inside_first["collection"] == collection
    assert inside_first["base_version"] == base_version
    assert inside_first["change_count"] == change_count
    assert inside_second["collection"] == collection
    assert inside_second["level"] == "warning"
    assert "collection" not in outside


def test_logging_configuration_creates_valid_json_logs() -> None:
    """
    Test that configure_logging produces parseable JSON with callsite info.
    """
    log_buffer = StringIO()
    logging.basicConfig(format="%(message)s", level=logging.INFO, stream=log_buffer, force=True)

    configure_logging(log_level="INFO", json_logs=True, log_file=None)

    log = structlog.stdlib.get_logger("test_logger")
    with structlog.contextvars.bound_contextvars(collection="topics"):
        log.info("cursor_advanced", from_version=10, to_version=19)

    (log_entry,) = read_entries(log_buffer)

    assert log_entry["event"] == "cursor_advanced"
    assert log_entry["level"] == "info"
    assert log_entry["collection"] == "topics"
    assert log_entry["from_version"] == 10
    assert log_entry["to_version"] == 19
    assert log_entry["func_name"] == "test_logging_configuration_creates_valid_json_logs"
    assert "timestamp" in log_entry


def test_logging_configured_from_config_section(tmp_path) -> None:
    log_file = tmp_path / "sync.log"

    configure_logging_from_config(
        LoggingConfig(log_level="WARNING", json_logs=True, log_file=str(log_file))
    )

    log = structlog.stdlib.get_logger("config_logger")
    log.info("ignored_below_level")
    log.warning("cursor_regression_refused", base_version=30)

    for handler in logging.root.handlers:
        handler.flush()

    lines = log_file.read_text().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["event"] == "cursor_regression_refused"

    # leave no file handler attached to the root logger for later tests
    for handler in list(logging.root.handlers):
        if getattr(handler, "baseFilename", None) == str(log_file):
            logging.root.removeHandler(handler)
            handler.close()
