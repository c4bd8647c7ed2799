"""
Command-line front end of the Network Mapper.

Parses arguments, checks that the ping tool is present, loads the YAML
configuration and runs a batch scan or a single-device lookup.
"""

import argparse
import shutil
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .config.config_loader import ConfigLoader, ScanConfiguration, TopologyConfiguration
from .core.data_models import Device
from .core.device_cache import DeviceCache
from .core.scanner_orchestrator import ScannerOrchestrator
from .topology.topology_mapper import TopologyMapper
from .utils.error_handler import NetworkMapperError
from .utils.json_reporter import JSONReporter
from .utils.logger import LogLevel, get_logger, set_log_level


TABLE_HEADERS = ["IP Address", "Hostname", "MAC Address", "Type", "OS", "Open Ports"]
TABLE_WIDTHS = [15, 28, 17, 14, 26, 30]


class NetworkMapperApp:
    """
    Main application class for the Network Mapper.

    Wires configuration, cache, orchestrator and reporter together.
    One DeviceCache lives for the lifetime of the app and is shared by
    every operation it runs.
    """

    def __init__(self, install_signal_handlers: bool = True):
        self.logger = get_logger(__name__)
        self.cancel_event = threading.Event()
        self.orchestrator: Optional[ScannerOrchestrator] = None

        # SIGINT and SIGTERM both request cancellation
        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        """
        Turn the first shutdown signal into a cancellation request.

        The first signal stops admission of new hosts and topology probes;
        scans already in flight finish. A second signal exits at once.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_names = {signal.SIGINT: "SIGINT", signal.SIGTERM: "SIGTERM"}
        signal_name = signal_names.get(signum, f"Signal {signum}")

        if not self.cancel_event.is_set():
            self.logger.warning(f"Received {signal_name} - finishing in-flight scans, press again to force exit")
            self.cancel_event.set()
        else:
            self.logger.error("Force shutdown requested - terminating immediately")
            sys.exit(1)

    def _perform_preflight_checks(self) -> bool:
        """
        Check that the ping tool the reachability probe relies on is available.

        Returns:
            bool: True if all checks pass, False otherwise
        """
        self.logger.section("PRE-FLIGHT CHECKS")

        tool_path = shutil.which("ping")
        if tool_path:
            self.logger.debug(f"Found ping at: {tool_path}")
            self.logger.success("All pre-flight checks passed")
            return True

        self.logger.error("Required tool 'ping' not found in PATH")
        return False

    def _load_configurations(self, config_dir: Optional[str]) -> Tuple[ScanConfiguration, TopologyConfiguration]:
        if config_dir and not Path(config_dir).is_dir():
            self.logger.warning(f"Configuration directory does not exist: {config_dir}. Using defaults.")

        loader = ConfigLoader(config_dir)
        return loader.load_scan_config(), loader.load_topology_config()

    def _build_orchestrator(self, scan_config: ScanConfiguration) -> ScannerOrchestrator:
        device_cache = DeviceCache(scan_config.cache_ttl_minutes)
        return ScannerOrchestrator(scan_config=scan_config, device_cache=device_cache)

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the requested command.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 for success, non-zero for failure)
        """
        try:
            if not self._perform_preflight_checks():
                if not args.skip_checks:
                    self.logger.error("Pre-flight checks failed. Use --skip-checks to bypass.")
                    return 1
                self.logger.warning("Skipping pre-flight checks as requested")

            scan_config, topology_config = self._load_configurations(args.config_dir)
            self.orchestrator = self._build_orchestrator(scan_config)

            if args.command == "device":
                return self._run_device(args.address)
            return self._run_scan(args, topology_config)

        except NetworkMapperError as e:
            self.logger.error(f"Network mapping failed: {str(e)}", exception=e)
            return 1
        except KeyboardInterrupt:
            self.logger.warning("Scan interrupted by user")
            return 130  # Standard exit code for SIGINT

    def _run_scan(self, args: argparse.Namespace, topology_config: TopologyConfiguration) -> int:
        self.logger.section("NETWORK SCAN")
        result = self.orchestrator.scan_network(args.range, cancel_event=self.cancel_event)

        topology = None
        if args.topology and result.devices:
            mapper = TopologyMapper(topology_config)
            topology = mapper.map_topology(result.devices, cancel_event=self.cancel_event)

        self._print_devices(result.devices)

        if args.output:
            reporter = JSONReporter(args.output)
            report_path = reporter.generate_report(result, topology)
            self.logger.success(f"Report saved to: {report_path}")

        if self.cancel_event.is_set():
            self.logger.warning("Scan was cancelled before completion")
            return 130
        return 0

    def _run_device(self, address: str) -> int:
        self.logger.section(f"DEVICE {address}")
        device = self.orchestrator.get_device_details(address, cancel_event=self.cancel_event)
        if device is None:
            self.logger.warning(f"Device {address} not found or offline")
            return 1

        self._print_devices([device])
        if device.default_gateway:
            self.logger.info(f"Default gateway: {device.default_gateway}")
        return 0

    def _print_devices(self, devices: List[Device]) -> None:
        if not devices:
            self.logger.info("No devices found")
            return

        self.logger.table_header(TABLE_HEADERS, TABLE_WIDTHS)
        for device in devices:
            ports = ", ".join(str(port) for port in device.open_port_numbers)
            self.logger.table_row(
                [
                    device.primary_address or "",
                    device.hostname or "-",
                    device.mac_address or "-",
                    device.device_type.value,
                    device.operating_system or "-",
                    ports or "-",
                ],
                TABLE_WIDTHS,
                highlight=device.device_type.is_infrastructure,
            )


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="network-mapper",
        description="Network Mapper - host discovery, fingerprinting and topology mapping",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  network-mapper scan                              # Scan the configured default network
  network-mapper scan 10.0.0.0/24 --topology       # Scan a CIDR block and map the topology
  network-mapper scan 10.0.0.1-10.0.0.50 -o ./out  # Scan a range and write a JSON report
  network-mapper device 192.168.1.10               # Scan a single host
        """
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        help="Directory containing scanner_config.yml. Defaults to network_mapper/config/"
    )

    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Skip pre-flight checks for external tools (ping)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Network Mapper {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan a network range")
    scan_parser.add_argument(
        "range",
        nargs="?",
        help="CIDR block (192.168.1.0/24) or address range (10.0.0.1-10.0.0.20)"
    )
    scan_parser.add_argument(
        "--topology",
        action="store_true",
        help="Map the topology between discovered devices"
    )
    scan_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Directory for the JSON report"
    )

    device_parser = subparsers.add_parser("device", help="Scan a single device")
    device_parser.add_argument("address", help="IPv4 or IPv6 address of the device")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Network Mapper.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(LogLevel.DEBUG)

    app = NetworkMapperApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
