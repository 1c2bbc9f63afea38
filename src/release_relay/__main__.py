"""Entry point for running Release Relay.

This module provides the main entry point for Release Relay.
It handles:
- Configuration loading
- Logging setup with secret sanitization
- Health checks and dry runs
- Relay lifecycle management
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from release_relay._version import __version__

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging before the config file is read.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from release_relay.utils.logging import LogLevel, configure_logging

    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.INFO,
        log_format=log_format,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="release-relay",
        description="Release Relay - lock and unlock release branches from Slack",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and validate without connecting to Slack",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and exit",
    )

    return parser.parse_args(argv)


async def run_relay(
    config_path: Path,
    dry_run: bool = False,
    health_check: bool = False,
    debug: bool = False,
) -> int:
    """Run Release Relay.

    Args:
        config_path: Path to configuration file
        dry_run: If True, only validate config without starting
        health_check: If True, run health check and exit
        debug: Keep debug logging regardless of the configured level

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    log.info("starting_release_relay", version=__version__, config_path=str(config_path))

    try:
        from release_relay.config.loader import load_config

        config = load_config(config_path)
        log.info("configuration_loaded")

        from release_relay.utils.logging import configure_logging

        configure_logging(
            level="DEBUG" if debug else config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

        if dry_run:
            from release_relay.utils.security import mask_config_value

            log.info(
                "dry_run_mode_config_valid",
                github_token=mask_config_value("token", config.github.token),
                repository=config.github.full_name,
                workflow=config.workflow.workflow_file,
                target_branch=config.workflow.target_branch,
            )
            return 0

        if health_check:
            from release_relay.utils.health import HealthChecker

            result = await HealthChecker(config).run_all_checks()

            if result.healthy:
                log.info("health_check_passed", details=result.details)
                return 0
            log.error("health_check_failed", report=result.to_dict())
            return 1

        from release_relay.core.relay import create_relay

        relay = create_relay(config)
        await relay.start()

        return 0

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(config_path), error=str(e))
        return 1
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        log.error("configuration_invalid", error=str(e))
        return 1
    except Exception as e:
        log.exception("fatal_error", error=str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(
            run_relay(args.config, args.dry_run, args.health_check, debug=args.debug)
        )
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
