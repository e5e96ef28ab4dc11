#!/usr/bin/env python3
"""
Scheduled synchronization script for the offline-first sync service.

This script runs one sync session:
- Reads each collection's version cursor
- Pulls only the changes since that cursor from the change feed
- Applies upserts and deletes to the local SQLite store
- Advances the cursor and logs synchronization statistics

Designed to be run on a schedule (e.g., via cron, systemd timers, or Airflow)
or when connectivity comes back.

Usage:
    python scripts/scheduled_sync.py [--config CONFIG_PATH] [--collection NAME ...]
                                     [--continue-on-error]
"""

import argparse
import asyncio
import sys
from datetime import datetime

import structlog

from src.providers import build_sync_components
from src.utils.config_loader import ConfigLoader, ConfigurationError
from src.utils.logging_config import configure_logging_from_config

log = structlog.stdlib.get_logger()


def perform_sync(
    config_path: str | None = None,
    collections: list[str] | None = None,
    continue_on_error: bool = False,
) -> dict:
    """
    Perform one synchronization session.

    Args:
        config_path: Optional path to configuration file
        collections: Optional subset of collections to sync
        continue_on_error: Keep syncing remaining collections after a failure

    Returns:
        Dictionary with sync statistics
    """
    start_time = datetime.now()

    try:
        config_loader = ConfigLoader()
        config = config_loader.load_config(config_path)
    except ConfigurationError as e:
        log.error("configuration_failed", error=str(e))
        return {"success": False, "error": str(e), "start_time": start_time.isoformat()}

    configure_logging_from_config(config.logging)
    config_loader.validate_config(config)

    if continue_on_error:
        config.sync.stop_on_first_error = False

    log.info("sync_script_started", timestamp=start_time.isoformat(), collections=collections)

    try:
        components = build_sync_components(config, collections=collections)
    except ValueError as e:
        log.error("sync_setup_failed", error=str(e))
        return {"success": False, "error": str(e), "start_time": start_time.isoformat()}

    try:
        report = asyncio.run(components.coordinator.sync_all())
    finally:
        components.close()

    stats = {
        "success": report.success,
        "collections": {
            collection_report.collection: {
                "base_version": collection_report.base_version,
                "cursor_version": collection_report.cursor_version,
                "entities_upserted": collection_report.entities_upserted,
                "entities_deleted": collection_report.entities_deleted,
                "passes": collection_report.passes,
                "complete": collection_report.complete,
                "warnings": collection_report.warnings,
            }
            for collection_report in report.reports
        },
        "failed_collection": report.failed_collection,
        "error": report.error,
        "retryable": report.retryable,
        "skipped_collections": report.skipped_collections,
        "start_time": report.start_time.isoformat(),
        "end_time": report.end_time.isoformat(),
        "duration_seconds": report.duration_seconds,
    }

    log.info("sync_script_finished", success=report.success, failed=report.failed_collection)
    return stats


def print_summary(stats: dict) -> None:
    print("\n" + "=" * 60)
    print("SYNCHRONIZATION SUMMARY")
    print("=" * 60)

    for collection, collection_stats in stats.get("collections", {}).items():
        status = "complete" if collection_stats["complete"] else "partial"
        print(
            f"{collection}: v{collection_stats['base_version']} -> "
            f"v{collection_stats['cursor_version']} ({status}), "
            f"{collection_stats['entities_upserted']} upserted, "
            f"{collection_stats['entities_deleted']} deleted"
        )
        for warning in collection_stats["warnings"]:
            print(f"  warning: {warning}")

    if stats.get("success"):
        print("Status: SUCCESS")
    else:
        print("Status: FAILED")
        if stats.get("failed_collection"):
            print(f"Failed collection: {stats['failed_collection']}")
        print(f"Error: {stats.get('error', 'Unknown error')}")
        if stats.get("retryable"):
            print("The failure is transient; the next scheduled run will retry.")
        if stats.get("skipped_collections"):
            print(f"Skipped: {', '.join(stats['skipped_collections'])}")

    if "duration_seconds" in stats:
        print(f"Duration: {stats['duration_seconds']:.2f} seconds")
    print("=" * 60)


def main():
    """Main entry point for scheduled sync script."""
    parser = argparse.ArgumentParser(
        description="Scheduled synchronization for the offline-first sync service"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--collection",
        action="append",
        dest="collections",
        help="Collection to sync (repeatable; defaults to sync.collections)",
        default=None,
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep syncing the remaining collections after a failure",
    )

    args = parser.parse_args()

    stats = perform_sync(
        config_path=args.config,
        collections=args.collections,
        continue_on_error=args.continue_on_error,
    )
    print_summary(stats)

    sys.exit(0 if stats.get("success") else 1)


if __name__ == "__main__":
    main()
