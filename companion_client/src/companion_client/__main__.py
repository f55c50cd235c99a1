"""
Canonical entry point for companion_client package.

Usage:
    poetry run companion-client watch
    poetry run companion-client --environment testing node --node-id bench-01
    poetry run companion-client track --count 60
    poetry run companion-client export --output history.csv
"""

import argparse
import logging
import os
import signal
import sys
import threading

from companion_core.application.particles import ParticleTrail
from companion_core.application.risk import RiskPolicy
from companion_core.config.environments import get_settings
from companion_core.domain.errors import GeolocationError, TransportError

from companion_client.dashboard import DashboardView
from companion_client.export import export_csv
from companion_client.local_history import LocalHistory
from companion_client.producers import (
    LiveChannel,
    NodeLoop,
    RandomWalkPositionSource,
    SimulatedNode,
    TrackerSession,
)
from companion_client.relay_client import RelayClient
from companion_client.sync import ConnectionStatus, HistoryPoller, LiveFeed


def setup_logging(config) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return None


def wait_for_shutdown(stoppables) -> None:
    """Block until SIGINT/SIGTERM, then stop and join every worker."""
    done = threading.Event()

    def handler(signum, frame):
        logging.getLogger(__name__).info("Received shutdown signal, stopping...")
        done.set()

    signal.signal(signal.SIGTERM, handler)
    signal.signal(signal.SIGINT, handler)
    done.wait()
    for s in stoppables:
        s.stop()
    for s in stoppables:
        if isinstance(s, threading.Thread):
            s.join(timeout=5)


class _Ticker(threading.Thread):
    daemon = True

    def __init__(self, interval_s: float, action):
        super().__init__(name="dashboard-printer")
        self.interval_s = interval_s
        self.action = action
        self.s_stop = threading.Event()

    def stop(self) -> None:
        self.s_stop.set()

    def run(self) -> None:
        while not self.s_stop.wait(self.interval_s):
            self.action()


class _Limited:
    """Ends a position source after a fixed number of fixes."""

    def __init__(self, source, count: int):
        self.source = source
        self.remaining = count

    def next_fix(self):
        if self.remaining <= 0:
            raise GeolocationError("fix limit reached")
        self.remaining -= 1
        return self.source.next_fix()


def run_watch(config, client: RelayClient, args: argparse.Namespace) -> None:
    """Keep a local history in sync and print the dashboard summary."""
    log = logging.getLogger(__name__)
    history = LocalHistory(config.CLIENT_HISTORY_CAPACITY)
    status = ConnectionStatus()
    view = DashboardView(
        history,
        status,
        RiskPolicy.from_settings(config),
        tz=args.tz,
        trail=ParticleTrail.from_settings(config),
    )

    def on_reading(reading) -> None:
        view.observe(reading)
        log.info(view.render())

    poller = HistoryPoller(client, history, status, config.POLL_INTERVAL_SEC)
    feed = LiveFeed(client.live_url, history, status, on_reading=on_reading)
    printer = _Ticker(args.every, lambda: log.info(view.render()))
    for t in (poller, feed, printer):
        t.start()
    wait_for_shutdown([poller, feed, printer])


def run_node(config, client: RelayClient, args: argparse.Namespace) -> None:
    """Run a simulated fixed node posting to the relay."""
    node = SimulatedNode(
        args.node_id or config.NODE_ID,
        args.lat if args.lat is not None else config.NODE_LAT,
        args.lon if args.lon is not None else config.NODE_LON,
    )
    loop = NodeLoop(node, client, args.interval or config.READ_INTERVAL_SEC)
    loop.start()
    wait_for_shutdown([loop])


def run_track(config, client: RelayClient, args: argparse.Namespace) -> None:
    """Run a simulated mobile tracker pushing location updates."""
    source = RandomWalkPositionSource(
        config.NODE_LAT, config.NODE_LON, step_m=args.step, interval_s=args.interval or 1.0
    )
    if args.count:
        source = _Limited(source, args.count)
    session = TrackerSession(source, LiveChannel(client.live_url), trail=ParticleTrail.from_settings(config))
    try:
        session.run()
    except KeyboardInterrupt:
        session.stop()
    if session.error:
        print(f"Tracking ended: {session.error}", file=sys.stderr)


def run_export(config, client: RelayClient, args: argparse.Namespace) -> None:
    """Write the relay history to a CSV file."""
    log = logging.getLogger(__name__)
    try:
        readings = client.fetch_history()
    except TransportError as exc:
        log.error(f"Export failed: {exc}")
        sys.exit(1)
    rows = export_csv(readings, args.output, tz=args.tz)
    log.info(f"Exported {rows} readings to {args.output}")


COMMANDS = {
    "watch": run_watch,
    "node": run_node,
    "track": run_track,
    "export": run_export,
}


def main() -> None:
    """Main entry point for companion_client."""
    parser = argparse.ArgumentParser(description="Air Quality Companion - relay clients")
    parser.add_argument(
        "--environment",
        choices=["production", "development", "testing"],
        default=os.getenv("COMPANION_ENV", "development"),
        help="Environment to run in",
    )
    parser.add_argument("--relay-url", help="Relay base URL (overrides RELAY_URL)")
    parser.add_argument("--tz", default="UTC", help="Time zone used for display and export")
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Follow the relay and print the dashboard summary")
    watch.add_argument("--every", type=float, default=10.0, help="Seconds between summaries")

    node = sub.add_parser("node", help="Simulate a fixed sensor node")
    node.add_argument("--node-id", help="Node ID (overrides NODE_ID)")
    node.add_argument("--lat", type=float)
    node.add_argument("--lon", type=float)
    node.add_argument("--interval", type=float, help="Seconds between readings")

    track = sub.add_parser("track", help="Simulate a GPS-tagged mobile tracker")
    track.add_argument("--interval", type=float, help="Seconds between fixes")
    track.add_argument("--step", type=float, default=8.0, help="Metres moved per fix")
    track.add_argument("--count", type=int, default=0, help="Stop after this many fixes")

    export = sub.add_parser("export", help="Export the relay history as CSV")
    export.add_argument("--output", "-o", required=True, help="CSV file to write")

    args = parser.parse_args()

    # Set environment variable for config
    os.environ["COMPANION_ENV"] = args.environment

    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    relay_url = args.relay_url or config.RELAY_URL
    log.info(f"Environment: {args.environment}")
    log.info(f"Relay: {relay_url}")

    client = RelayClient(relay_url, timeout=config.REQUEST_TIMEOUT_SEC)
    COMMANDS[args.command](config, client, args)


if __name__ == "__main__":
    main()
