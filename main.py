"""
SmartBin Monitor - Main Entry Point

Runs the telemetry engine headless: loads the initial snapshot, follows the
push channel, and logs every state change until interrupted.

Usage:
    python main.py --env dev          # Development mode
    python main.py --env prod         # Production mode
    python main.py --console -v       # Log to console, DEBUG level
"""

from __future__ import annotations
import asyncio
import argparse
import sys

from config.config_manager import ConfigManager, DEFAULT_CONFIG_DIR
from smartbin.application import AppContainer, DashboardState
from smartbin.domain.events import StateChange
from smartbin.utils import flush_all_loggers, get_logger, shutdown_logging
from smartbin.utils.logging_setup import setup_category_logging

logger = get_logger("smartbin.main")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="SmartBin waste classification monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --env dev              # Run against the development backend
  python main.py --config-dir ./conf    # Use a custom config directory
        """
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        choices=["dev", "prod"],
        help="Environment to run in (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default=str(DEFAULT_CONFIG_DIR),
        help="Directory holding base.yaml and per-environment overrides"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set log level (default: from config, ignored if --verbose is set)"
    )

    parser.add_argument(
        "--console",
        action="store_true",
        help="Also log to the console"
    )

    return parser.parse_args()


def log_state_change(change: StateChange, state: DashboardState) -> None:
    """Headless presentation: one log line per state change."""
    stats = state.stats
    logger.info(
        f"{change.value}: phase={state.phase.value} records={len(state.records)} "
        f"organic={stats.organic_percent}% inorganic={stats.inorganic_percent}% "
        f"device={'online' if state.device.online else 'offline'} "
        f"connection={state.connection.value}"
    )


async def main_async(args: argparse.Namespace) -> None:
    """Main async entry point."""
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    setup_category_logging(
        env=args.env,
        log_dir=config.logging.log_dir,
        level=args.log_level or config.logging.level,
        console=args.console or config.logging.console,
        verbose=args.verbose,
        json_files=config.logging.json,
    )
    logger.info(f"Starting SmartBin monitor (env={args.env}, backend={config.backend.base_url})")

    container = AppContainer(config)
    try:
        await container.initialize()
        container.reconciler.subscribe(log_state_change)
        await container.start()

        while True:
            await asyncio.sleep(60)
            logger.debug(f"Stream: {container.stream.get_connection_info()}")
            logger.debug(f"Reconciler: {container.reconciler.get_stats()}")
    except asyncio.CancelledError:
        logger.info("Received shutdown signal")
    finally:
        await container.cleanup()
        logger.info("SmartBin monitor shutdown complete")
        flush_all_loggers()
        shutdown_logging()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("Shutdown requested")
        sys.exit(0)
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
