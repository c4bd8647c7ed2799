"""
Scanner Orchestrator for the Network Mapper.

This module provides the ScannerOrchestrator class that runs the per-address
pipeline (probe, gather, classify, stamp) across an expanded range with
bounded concurrency, writes results through to the device cache and exposes
the three boundary operations used by the CLI and the HTTP layer:
``scan_network``, ``get_device_details`` and ``list_cached_devices``.

Concurrency model: the calling thread admits one address at a time through a
bounded semaphore and hands it to a thread pool. Each pipeline returns its
Device through its future, and only the calling thread collects futures and
touches the result list.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from typing import List, Optional

from .address_range import AddressRangeExpander
from .data_models import Device, ScanNetworkResult
from .device_cache import Clock, DeviceCache, utc_now
from .device_classifier import DeviceClassifier
from ..config.config_loader import DEVICE_FRESHNESS_MINUTES, ScanConfiguration
from ..scanners.host_resolver import HostResolver
from ..scanners.ping_scanner import PingScanner
from ..scanners.port_scanner import PortScanner
from ..utils.error_handler import (
    NetworkMapperError,
    ProbeFailure,
    host_failure,
    unexpected_failure,
)
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_ipv6, is_valid_ip


ADMISSION_POLL_SECONDS = 0.1


class ScannerOrchestrator:
    """
    Orchestrates host scanning and owns the device cache write-through.

    Collaborators are injectable so tests can replace the network-facing
    probes with fakes.
    """

    def __init__(
        self,
        scan_config: Optional[ScanConfiguration] = None,
        device_cache: Optional[DeviceCache] = None,
        ping_scanner: Optional[PingScanner] = None,
        port_scanner: Optional[PortScanner] = None,
        host_resolver: Optional[HostResolver] = None,
        device_classifier: Optional[DeviceClassifier] = None,
        range_expander: Optional[AddressRangeExpander] = None,
        clock: Optional[Clock] = None,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize the scanner orchestrator.

        Args:
            scan_config: Scan settings, defaults when omitted
            device_cache: Shared device cache; a new one is created when omitted
            ping_scanner: Reachability prober
            port_scanner: TCP connect scanner
            host_resolver: Hostname / MAC / gateway resolver
            device_classifier: Device-type and OS classifier
            range_expander: CIDR and start-end range expander
            clock: Time source for timestamps and cache freshness
            logger: Logger instance
        """
        self.config = scan_config or ScanConfiguration()
        self.logger = logger or get_logger(__name__)
        self.clock = clock or utc_now

        self.device_cache = device_cache or DeviceCache(self.config.cache_ttl_minutes, clock=self.clock)
        self.ping_scanner = ping_scanner or PingScanner(self.config.ping_timeout_ms)
        self.port_scanner = port_scanner or PortScanner(self.config.ports, self.config.port_scan_timeout_ms)
        self.host_resolver = host_resolver or HostResolver()
        self.device_classifier = device_classifier or DeviceClassifier()
        self.range_expander = range_expander or AddressRangeExpander()

        self.freshness_window = timedelta(minutes=DEVICE_FRESHNESS_MINUTES)

    # Boundary operations

    def scan_network(self, network_range: Optional[str] = None,
                     cancel_event: Optional[threading.Event] = None) -> ScanNetworkResult:
        """
        Scan every host address of a range.

        Args:
            network_range: CIDR or start-end range; the configured default when empty
            cancel_event: Set to stop admitting new hosts

        Returns:
            ScanNetworkResult with devices sorted by primary IPv4 address.
            A malformed range gives an empty, successful result.

        Raises:
            ScanError: On any failure the engine did not anticipate
        """
        scan_start_time = self.clock()
        effective_range = (network_range or "").strip() or self.config.default_network

        try:
            self.logger.info(f"Starting network scan for {effective_range}")
            expansion = self.range_expander.expand(effective_range)
            if not expansion.ok:
                self.logger.warning(f"Nothing to scan: {expansion.diagnostic}")

            self.logger.info(f"Scanning {len(expansion.addresses)} IP addresses")
            scanned = self._scan_addresses(expansion.addresses, cancel_event)

            devices = [self.device_cache.add_or_update(device) for device in scanned]
            devices.sort(key=lambda d: d.sort_key())
        except NetworkMapperError:
            raise
        except Exception as e:
            self.logger.error("Error during network scan", exception=e)
            raise unexpected_failure("scan_network", "ScannerOrchestrator", e,
                                     network_range=effective_range) from e

        result = ScanNetworkResult(
            devices=devices,
            scan_start_time=scan_start_time,
            scan_end_time=self.clock(),
            network_scanned=effective_range,
        )
        self.logger.success(
            f"Network scan completed. Found {result.total_devices_found} devices",
            duration=f"{result.duration_seconds:.1f}s",
        )
        return result

    def get_device_details(self, address: str,
                           cancel_event: Optional[threading.Event] = None) -> Optional[Device]:
        """
        Return one device, rescanning it unless the cached record is fresh.

        A cached device seen within the last five minutes is returned as is.

        Args:
            address: IPv4 or IPv6 address of the device
            cancel_event: Cancellation signal

        Returns:
            Device, or None if the host is offline or the address is invalid

        Raises:
            ScanError: On any failure the engine did not anticipate
        """
        address = (address or "").strip()
        if not (is_valid_ip(address) or is_ipv6(address)):
            self.logger.warning(f"Invalid IP address format: {address}")
            return None

        try:
            cached = self.device_cache.get_by_address(address)
            if cached is not None and cached.last_seen is not None \
                    and self.clock() - cached.last_seen < self.freshness_window:
                self.logger.debug(f"Returning cached device for {address}")
                return cached

            device = self._scan_host(address, cancel_event)
            if device is None:
                self.logger.warning(f"Device {address} not found or offline")
                return None
            return self.device_cache.add_or_update(device)
        except NetworkMapperError:
            raise
        except Exception as e:
            self.logger.error(f"Error getting device details for {address}", exception=e)
            raise unexpected_failure("get_device_details", "ScannerOrchestrator", e,
                                     address=address) from e

    def list_cached_devices(self) -> List[Device]:
        devices = self.device_cache.get_all()
        devices.sort(key=lambda d: d.sort_key())
        return devices

    # Fan-out

    def _scan_addresses(self, addresses: List[str],
                        cancel_event: Optional[threading.Event]) -> List[Device]:
        if not addresses:
            return []

        max_workers = max(1, self.config.max_concurrent_scans)
        admission = threading.BoundedSemaphore(max_workers)
        futures: List[Future] = []
        devices: List[Device] = []

        self.logger.progress_start(f"Scanning {len(addresses)} addresses with up to {max_workers} in flight")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            for address in addresses:
                if not self._acquire_slot(admission, cancel_event):
                    self.logger.warning("Scan cancelled, no further hosts will be admitted",
                                        admitted=len(futures), total=len(addresses))
                    break
                try:
                    futures.append(executor.submit(self._admitted_scan, admission, address, cancel_event))
                except BaseException:
                    admission.release()
                    raise

            for future in as_completed(futures):
                device = future.result()
                if device is not None:
                    devices.append(device)

        self.logger.progress_end(f"{len(devices)} of {len(futures)} probed hosts are online")
        return devices

    def _acquire_slot(self, admission: threading.BoundedSemaphore,
                      cancel_event: Optional[threading.Event]) -> bool:
        # Blocks until a slot frees up; gives up only when cancelled
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return False
            if admission.acquire(timeout=ADMISSION_POLL_SECONDS):
                return True

    def _admitted_scan(self, admission: threading.BoundedSemaphore, address: str,
                       cancel_event: Optional[threading.Event]) -> Optional[Device]:
        try:
            return self._scan_host(address, cancel_event)
        finally:
            admission.release()

    # Per-address pipeline

    def _scan_host(self, address: str,
                   cancel_event: Optional[threading.Event] = None) -> Optional[Device]:
        """
        Probe, gather, classify and stamp a single address.

        A host that fails the reachability check is flagged offline in the
        cache if it was known there.

        Returns:
            Device for a reachable host, None otherwise. Failures inside the
            pipeline drop the host instead of propagating.
        """
        if cancel_event is not None and cancel_event.is_set():
            return None

        try:
            device = self._gather_host(address)
        except ProbeFailure as e:
            self.logger.warning(str(e), **e.error_context.additional_info)
            return None

        if device is None:
            self.device_cache.mark_offline(address)
            return None

        self.logger.info(f"Successfully scanned device {address} ({device.hostname or 'Unknown'})",
                         type=device.device_type.value, ports=len(device.open_ports))
        return device

    def _gather_host(self, address: str) -> Optional[Device]:
        """
        Returns:
            Device, or None when the host does not answer the reachability check

        Raises:
            ProbeFailure: A scanner or the classifier raised
        """
        step = "reachability"
        try:
            if not self.ping_scanner.scan(address):
                return None

            self.logger.debug(f"Device {address} is online, gathering details")
            device = Device.from_address(address)

            step = "attributes"
            attributes = self.host_resolver.scan(address)
            device.hostname = attributes.hostname
            device.mac_address = attributes.mac_address
            device.default_gateway = attributes.default_gateway

            step = "ports"
            device.set_open_ports(self.port_scanner.scan(address))

            step = "classification"
            self.device_classifier.classify(device)
        except Exception as e:
            raise host_failure(step, "ScannerOrchestrator", address, e) from e

        seen_at = self.clock()
        device.first_discovered = seen_at
        device.last_seen = seen_at
        return device
