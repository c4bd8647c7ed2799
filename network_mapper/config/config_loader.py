"""
Configuration loader for the Network Mapper.
Handles loading and validation of the YAML configuration file with fallback to defaults.
"""

import yaml
from typing import Any, List, Optional
from dataclasses import dataclass, field
from pathlib import Path

from ..utils.logger import get_logger


DEFAULT_CONFIG_FILE = "scanner_config.yml"

# Well-known ports probed by default, plus the printer ports used by the classifier
DEFAULT_PORTS = [
    21, 22, 23, 25, 53, 80, 110, 143, 443, 445,
    515, 631, 3306, 3389, 5432, 8080, 8443, 9100,
]

# Fixed engine constants
PORT_SCAN_CONCURRENCY = 10
DEVICE_FRESHNESS_MINUTES = 5
MAX_RANGE_ADDRESSES = 65536


@dataclass
class ScanConfiguration:
    """
    Process-wide scan settings, read-only while a scan runs.

    Attributes:
        default_network: Range scanned when the caller gives none
        ping_timeout_ms: Reachability probe timeout
        port_scan_timeout_ms: Per-port TCP connect timeout
        max_concurrent_scans: Host pipelines allowed in flight at once
        ports: TCP ports probed on every reachable host
        cache_ttl_minutes: Sliding expiration of cached devices
    """
    default_network: str = "192.168.1.0/24"
    ping_timeout_ms: int = 1000
    port_scan_timeout_ms: int = 500
    max_concurrent_scans: int = 50
    ports: List[int] = field(default_factory=lambda: list(DEFAULT_PORTS))
    cache_ttl_minutes: int = 60


@dataclass
class TopologyConfiguration:
    """Settings for SNMP-based neighbour discovery and inference."""
    snmp_community: str = "public"
    snmp_port: int = 161
    snmp_timeout: int = 2
    snmp_retries: int = 0
    max_walk_entries: int = 1000
    enable_inference: bool = True


class ConfigLoader:
    """
    Loads and validates the YAML configuration file for the Network Mapper.
    Provides fallback to default configurations when the file is missing.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the config directory relative to this file.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = get_logger(__name__)

    def _load_section(self, section: str, config_file: str) -> Optional[dict]:
        """
        Read one top-level section of the configuration file.

        Returns:
            The section mapping, or None when defaults should be used
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            self.logger.warning(f"Config file not found at {config_path}. Using default {section} configuration.")
            return None

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing config file {config_path}: {e}")
            self.logger.warning(f"Using default {section} configuration.")
            return None
        except OSError as e:
            self.logger.error(f"Unable to read config file {config_path}: {e}")
            self.logger.warning(f"Using default {section} configuration.")
            return None

        if not isinstance(config_data, dict) or not isinstance(config_data.get(section), dict):
            self.logger.warning(f"Invalid {section} config structure in {config_path}. Using default configuration.")
            return None

        return config_data[section]

    def load_scan_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> ScanConfiguration:
        """
        Load scan configuration from YAML file.

        Args:
            config_file: Name of the configuration file

        Returns:
            ScanConfiguration object with loaded or default configuration
        """
        data = self._load_section('scanner', config_file)
        if data is None:
            return ScanConfiguration()

        defaults = ScanConfiguration()
        return ScanConfiguration(
            default_network=self._validate_network(data.get('default_network', defaults.default_network), defaults.default_network),
            ping_timeout_ms=self._validate_positive_int(data.get('ping_timeout_ms', 1000), 'ping_timeout_ms', 1000),
            port_scan_timeout_ms=self._validate_positive_int(data.get('port_scan_timeout_ms', 500), 'port_scan_timeout_ms', 500),
            max_concurrent_scans=self._validate_positive_int(data.get('max_concurrent_scans', 50), 'max_concurrent_scans', 50),
            ports=self._validate_ports(data.get('ports', defaults.ports)),
            cache_ttl_minutes=self._validate_positive_int(data.get('cache_ttl_minutes', 60), 'cache_ttl_minutes', 60),
        )

    def load_topology_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> TopologyConfiguration:
        """
        Load topology configuration from YAML file.

        Args:
            config_file: Name of the configuration file

        Returns:
            TopologyConfiguration object with loaded or default configuration
        """
        data = self._load_section('topology', config_file)
        if data is None:
            return TopologyConfiguration()

        community = data.get('snmp_community', 'public')
        if not isinstance(community, str) or not community:
            self.logger.warning(f"Invalid snmp_community: {community}. Using default: public")
            community = 'public'

        retries = data.get('snmp_retries', 0)
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            self.logger.warning(f"Invalid snmp_retries: {retries}. Must be a non-negative integer. Using default: 0")
            retries = 0

        return TopologyConfiguration(
            snmp_community=community,
            snmp_port=self._validate_positive_int(data.get('snmp_port', 161), 'snmp_port', 161),
            snmp_timeout=self._validate_positive_int(data.get('snmp_timeout', 2), 'snmp_timeout', 2),
            snmp_retries=retries,
            max_walk_entries=self._validate_positive_int(data.get('max_walk_entries', 1000), 'max_walk_entries', 1000),
            enable_inference=bool(data.get('enable_inference', True)),
        )

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        try:
            int_value = int(value)
            if int_value <= 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
                return default
            return int_value
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default

    def _validate_network(self, value: Any, default: str) -> str:
        if not isinstance(value, str) or not value.strip():
            self.logger.warning(f"Invalid default_network: {value}. Using default: {default}")
            return default
        return value.strip()

    def _validate_ports(self, ports: Any) -> List[int]:
        """
        Validate the list of ports to probe.

        Args:
            ports: Ports to validate

        Returns:
            Sorted, de-duplicated port list or the default list
        """
        if not isinstance(ports, list):
            self.logger.warning(f"Invalid ports: {ports}. Must be a list. Using default port list")
            return list(DEFAULT_PORTS)

        valid_ports = set()
        for port in ports:
            if isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535:
                valid_ports.add(port)
            else:
                self.logger.warning(f"Invalid port: {port}. Skipping.")

        if not valid_ports:
            self.logger.warning("No valid ports found. Using default port list")
            return list(DEFAULT_PORTS)

        return sorted(valid_ports)

    def create_default_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> None:
        """
        Create the default configuration file if it doesn't exist.
        """
        config_path = self.config_dir / config_file
        if config_path.exists():
            return

        scan = ScanConfiguration()
        topology = TopologyConfiguration()
        default_config = {
            'scanner': {
                'default_network': scan.default_network,
                'ping_timeout_ms': scan.ping_timeout_ms,
                'port_scan_timeout_ms': scan.port_scan_timeout_ms,
                'max_concurrent_scans': scan.max_concurrent_scans,
                'ports': scan.ports,
                'cache_ttl_minutes': scan.cache_ttl_minutes,
            },
            'topology': {
                'snmp_community': topology.snmp_community,
                'snmp_port': topology.snmp_port,
                'snmp_timeout': topology.snmp_timeout,
                'snmp_retries': topology.snmp_retries,
                'max_walk_entries': topology.max_walk_entries,
                'enable_inference': topology.enable_inference,
            },
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.dump(default_config, f, default_flow_style=False, indent=2, sort_keys=False)
            self.logger.info(f"Created default config at {config_path}")
        except OSError as e:
            self.logger.error(f"Failed to create default config: {e}")
