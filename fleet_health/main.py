"""Command-line entry point for the fleet health-checker."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

import httpx
import yaml
from pydantic import ValidationError

from .config.loader import ConfigLoader
from .config.models import FleetCheckConfig
from .errors import DirectoryUnavailable, ReportDeliveryFailure
from .services.directory_client import DirectoryClient
from .services.report_client import ReportClient
from .sweep import CheckOrchestrator
from .utils.logger import logger_from_config
from .utils.metrics import AggregateReport


class SweepApp:
    """
    One health-check run.

    Looks up the instances, sweeps them, and delivers the report. Only a
    directory or delivery failure makes the run fail; individual check
    failures are part of the report.
    """

    def __init__(self, config: FleetCheckConfig, dry_run: bool = False, logger: logging.Logger = None):
        """
        Initialize sweep application.

        Args:
            config: Validated run configuration
            dry_run: If True, log the report payload instead of sending it
            logger: Optional logger instance
        """
        self.config = config
        self.dry_run = dry_run
        self.logger = logger or logger_from_config(config.logging)

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, shutting down")
        sys.exit(0)

    async def run_sweep(self) -> AggregateReport:
        """
        Execute one complete sweep.

        Returns:
            AggregateReport: The delivered (or, on dry run, logged) report

        Raises:
            DirectoryUnavailable: If the instance list could not be fetched
            ReportDeliveryFailure: If the report could not be delivered
        """
        async with httpx.AsyncClient() as client:
            directory = DirectoryClient(self.config.directory, client, self.logger)
            instances = await directory.fetch_instances()

            orchestrator = CheckOrchestrator(self.config, client, self.logger)
            report = await orchestrator.run(instances)

            if self.dry_run:
                self.logger.info("DRY RUN - report payload not sent")
                self.logger.info(json.dumps(report.to_payload()))
                return report

            sink = ReportClient(self.config.report, self.config.directory, client, self.logger)
            await sink.send(report)

        return report

    def run(self) -> int:
        """
        Run a sweep and map the outcome to a process exit status.

        Returns:
            int: 0 when the sweep completed and was reported, 1 otherwise
        """
        try:
            report = asyncio.run(self.run_sweep())
        except DirectoryUnavailable as e:
            self.logger.critical(f"Instance directory unavailable: {e}")
            return 1
        except ReportDeliveryFailure as e:
            self.logger.critical(f"Report delivery failed: {e}")
            return 1

        summary = report.summary()
        self.logger.info(
            f"Checks: {summary['total']} total, {summary['failed']} failed, "
            f"{summary['timed_out']} timed out in {summary['duration_s']}s"
        )
        return 0


def build_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Map command-line flags onto configuration sections."""
    return {
        "directory": {
            "token": args.token,
            "ips": args.ips,
            "client_id": args.client_id,
        },
        "metrics_proxy": {"url": args.jolokia},
        "logging": {"level": args.log_level},
    }


def main(argv: Optional[list] = None) -> int:
    """
    CLI entry point.

    Parses command-line arguments, runs one sweep and exits.
    """
    parser = argparse.ArgumentParser(
        description='Fleet health-checker: HTTP and JMX checks for registered app servers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sweep the instances registered for this host
  fleet-health --token SECRET --ips 10.4.100.215

  # Sweep but only log the report
  fleet-health --config config/config.yaml --dry-run
        """
    )

    parser.add_argument('--config', help='Path to YAML configuration file')
    parser.add_argument('--token', help='Security token (or FLEET_HEALTH_TOKEN)')
    parser.add_argument('--ips', help='Comma separated instance addresses to check')
    parser.add_argument('--client-id', help='Restrict to one client id')
    parser.add_argument('--jolokia', help='Jolokia proxy endpoint URL')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Run the sweep without sending the report (log only)'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: config, LOG_LEVEL env var, or INFO)'
    )

    args = parser.parse_args(argv)

    try:
        config = ConfigLoader.load(args.config, build_overrides(args))
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        print(f"Could not load configuration: {e}", file=sys.stderr)
        return 1

    app = SweepApp(config, dry_run=args.dry_run)
    return app.run()


if __name__ == '__main__':
    sys.exit(main())
