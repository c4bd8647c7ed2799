"""
JSON Report Generator for the Network Mapper.

This module writes scan results (and optionally the topology map) to JSON
files using the camelCase wire contract, with timestamped file names,
collision handling and validation against a JSON schema.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import ValidationError, validate

from ..core.data_models import DeviceType, PortState, ScanNetworkResult
from .logger import get_logger


_NULLABLE_STRING = {"type": ["string", "null"]}

PORT_SCHEMA = {
    "type": "object",
    "required": ["portNumber", "protocol", "serviceName", "state"],
    "properties": {
        "portNumber": {"type": "integer", "minimum": 1, "maximum": 65535},
        "protocol": {"type": "string"},
        "serviceName": _NULLABLE_STRING,
        "state": {"enum": [state.value for state in PortState]},
    },
}

DEVICE_SCHEMA = {
    "type": "object",
    "required": [
        "id", "ipv4Addresses", "ipv6Addresses", "hostname", "macAddress",
        "openPorts", "deviceType", "operatingSystem", "lastSeen",
        "firstDiscovered", "isOnline", "defaultGateway", "connectedTo",
    ],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "ipv4Addresses": {"type": "array", "items": {"type": "string"}},
        "ipv6Addresses": {"type": "array", "items": {"type": "string"}},
        "hostname": _NULLABLE_STRING,
        "macAddress": _NULLABLE_STRING,
        "openPorts": {"type": "array", "items": PORT_SCHEMA},
        "deviceType": {"enum": [device_type.value for device_type in DeviceType]},
        "operatingSystem": _NULLABLE_STRING,
        "lastSeen": _NULLABLE_STRING,
        "firstDiscovered": _NULLABLE_STRING,
        "isOnline": {"type": "boolean"},
        "defaultGateway": _NULLABLE_STRING,
        "connectedTo": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
    },
}

REPORT_SCHEMA = {
    "type": "object",
    "required": ["reportMetadata", "scan"],
    "properties": {
        "reportMetadata": {
            "type": "object",
            "required": ["generatedAt", "generator"],
        },
        "scan": {
            "type": "object",
            "required": ["devices", "totalDevicesFound", "scanStartTime", "scanEndTime", "networkScanned"],
            "properties": {
                "devices": {"type": "array", "items": DEVICE_SCHEMA},
                "totalDevicesFound": {"type": "integer", "minimum": 0},
                "scanStartTime": {"type": "string"},
                "scanEndTime": {"type": "string"},
                "networkScanned": {"type": "string"},
            },
        },
        "topology": {
            "type": ["object", "null"],
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
    },
}


class JSONReporter:
    """
    Handles generation of JSON reports from scan results.

    This class is responsible for:
    - Converting scan results to the JSON wire format
    - Managing output file naming with timestamp-based collision handling
    - Validating the document against REPORT_SCHEMA before writing
    """

    def __init__(self, output_directory: str = "network_mapper_results"):
        """
        Initialize the JSON reporter.

        Args:
            output_directory: Directory where JSON reports will be saved
        """
        self.output_directory = Path(output_directory)
        self.logger = get_logger(__name__)

    def build_report(self, scan_result: ScanNetworkResult,
                     topology: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
        """
        Build the report document for a scan.

        Args:
            scan_result: Result of a batch scan
            topology: Optional adjacency map from the topology mapper

        Returns:
            JSON-serializable dictionary

        Raises:
            ValueError: If the document does not match REPORT_SCHEMA
        """
        report = {
            "reportMetadata": {
                "generatedAt": datetime.now().astimezone().isoformat(),
                "generator": "network-mapper",
                "scanDurationSeconds": scan_result.duration_seconds,
            },
            "scan": scan_result.to_dict(),
            "topology": topology,
        }

        try:
            validate(instance=report, schema=REPORT_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Report does not match schema: {e.message}") from e

        return report

    def generate_report(self, scan_result: ScanNetworkResult,
                        topology: Optional[Dict[str, List[str]]] = None) -> str:
        """
        Generate a JSON report file from scan results.

        Args:
            scan_result: Result of a batch scan
            topology: Optional adjacency map

        Returns:
            str: Path to the generated JSON file

        Raises:
            ValueError: If scan_result is invalid
            IOError: If file cannot be written
        """
        if scan_result is None:
            raise ValueError("Scan result cannot be None")

        self.logger.info(f"Generating JSON report for scan started at {scan_result.scan_start_time}")

        json_data = self.build_report(scan_result, topology)

        self.output_directory.mkdir(parents=True, exist_ok=True)
        filepath = self._handle_file_collision(
            self.output_directory / self._generate_filename(scan_result.scan_start_time)
        )

        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(json_data, f, indent=2, ensure_ascii=False)

            self.logger.info(f"JSON report successfully generated: {filepath}")
            return str(filepath)

        except IOError as e:
            self.logger.error(f"Failed to write JSON report to {filepath}: {e}")
            raise

    def _generate_filename(self, timestamp: datetime) -> str:
        # Format: network_map_YYYYMMDD_HHMMSS.json
        timestamp_str = timestamp.strftime("%Y%m%d_%H%M%S")
        return f"network_map_{timestamp_str}.json"

    def _handle_file_collision(self, filepath: Path) -> Path:
        """
        Handle filename collisions by adding incremental suffix.

        Args:
            filepath: Original file path

        Returns:
            Path: Unique file path
        """
        if not filepath.exists():
            return filepath

        base_name = filepath.stem
        extension = filepath.suffix
        counter = 1

        while True:
            new_name = f"{base_name}_{counter:03d}{extension}"
            new_filepath = filepath.parent / new_name

            if not new_filepath.exists():
                self.logger.info(f"File collision detected, using filename: {new_name}")
                return new_filepath

            counter += 1

            # Safety check to prevent infinite loop
            if counter > 999:
                raise IOError(f"Too many file collisions for {filepath}")
