"""
Canonical entry point for companion_relay package.

Usage:
    poetry run companion-relay --environment development
    poetry run companion-relay --environment production --port 8080
"""

import argparse
import logging
import os

import uvicorn
from companion_core.config.environments import get_settings


def setup_logging(config) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return None


def run_relay(args: argparse.Namespace) -> None:
    """Run the relay (HTTP API, live channel and dashboard)."""
    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    host = args.host or config.API_HOST
    port = args.port or config.PORT
    reload = args.reload and args.environment != "production"

    log.info(
        "Starting relay on %s:%s (environment=%s, history=%d, dashboard=%s, reload=%s)",
        host,
        port,
        args.environment,
        config.HISTORY_CAPACITY,
        config.DASHBOARD_DIR,
        reload,
    )

    uvicorn.run(
        "companion_relay.adapters.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.LOG_LEVEL.lower(),
    )
    return None


def main() -> None:
    """Main entry point for companion_relay."""
    parser = argparse.ArgumentParser(
        description="Air Quality Companion Relay - ingest, history and live fan-out"
    )
    parser.add_argument(
        "--environment",
        choices=["production", "development", "testing"],
        default=os.getenv("COMPANION_ENV", "development"),
        help="Environment to run in",
    )
    parser.add_argument("--host", help="Host to bind to (overrides config)")
    parser.add_argument("--port", type=int, help="Port to bind to (overrides PORT)")
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload (development only)"
    )

    args = parser.parse_args()

    # Set environment variable for config
    os.environ["COMPANION_ENV"] = args.environment

    run_relay(args)


if __name__ == "__main__":
    main()
