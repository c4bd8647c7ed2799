"""
Device Classification System for the Network Mapper.

Classification is a pure function of the evidence already collected for a
device (open ports and hostname):
- device type comes from an ordered rule table where the first match wins
- the OS guess starts from well-known ports and is overridden by hostname keywords
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .data_models import Device, DeviceType


PRINTER_PORTS = {515, 631, 9100}
MANY_PORTS_THRESHOLD = 10


@dataclass
class ClassificationRule:
    """
    A rule for classifying devices.

    Attributes:
        name: Human-readable name for the rule
        device_type: The device type this rule classifies to
        matches: Predicate over the device evidence
    """
    name: str
    device_type: DeviceType
    matches: Callable[[Device], bool]


def _hostname_contains(device: Device, *keywords: str) -> bool:
    hostname = (device.hostname or "").lower()
    return any(keyword in hostname for keyword in keywords)


class DeviceClassifier:
    """
    Heuristic device-type and OS classifier.

    Rules are evaluated in a fixed precedence order, so a device with both
    RDP and SMB open is a Computer because the RDP rule comes first.
    """

    # Port-based OS guesses, first match wins
    PORT_OS_HINTS: List[Tuple[int, str]] = [
        (3389, "Windows (RDP detected)"),
        (445, "Windows (SMB detected)"),
        (22, "Linux/Unix (SSH detected)"),
    ]

    # Hostname keywords, evaluated after the port guess and overriding it
    HOSTNAME_OS_HINTS: List[Tuple[Tuple[str, ...], str]] = [
        (("windows", "win"), "Windows"),
        (("linux", "ubuntu", "debian", "centos"), "Linux"),
        (("mac", "apple"), "macOS"),
    ]

    def __init__(self):
        """Initialize the device classifier with the ordered rule table."""
        self.classification_rules = self._initialize_classification_rules()

    def _initialize_classification_rules(self) -> List[ClassificationRule]:
        return [
            ClassificationRule(
                name="RDP implies a desktop OS",
                device_type=DeviceType.COMPUTER,
                matches=lambda d: d.has_port(3389),
            ),
            ClassificationRule(
                name="SSH with a web service",
                device_type=DeviceType.SERVER,
                matches=lambda d: d.has_port(22) and (d.has_port(80) or d.has_port(443)),
            ),
            ClassificationRule(
                name="SMB file sharing",
                device_type=DeviceType.COMPUTER,
                matches=lambda d: d.has_port(445),
            ),
            ClassificationRule(
                name="Printer ports",
                device_type=DeviceType.PRINTER,
                matches=lambda d: any(d.has_port(port) for port in PRINTER_PORTS),
            ),
            ClassificationRule(
                name="Router management with router hostname",
                device_type=DeviceType.ROUTER,
                matches=lambda d: (d.has_port(23) or d.has_port(80))
                and _hostname_contains(d, "router", "gateway"),
            ),
            ClassificationRule(
                name="Many open ports",
                device_type=DeviceType.SERVER,
                matches=lambda d: len(d.open_ports) > MANY_PORTS_THRESHOLD,
            ),
        ]

    def classify_device(self, device: Device) -> DeviceType:
        """
        Classify a device from its open ports and hostname.

        Args:
            device: Device with ports and hostname already gathered

        Returns:
            DeviceType of the first matching rule, or UNKNOWN
        """
        for rule in self.classification_rules:
            if rule.matches(device):
                return rule.device_type
        return DeviceType.UNKNOWN

    def detect_operating_system(self, device: Device) -> Optional[str]:
        """
        Guess the operating system of a device.

        Args:
            device: Device with ports and hostname already gathered

        Returns:
            OS guess or None when there is no evidence
        """
        os_guess = None
        for port, label in self.PORT_OS_HINTS:
            if device.has_port(port):
                os_guess = label
                break

        if device.hostname:
            for keywords, label in self.HOSTNAME_OS_HINTS:
                if _hostname_contains(device, *keywords):
                    os_guess = label
                    break

        return os_guess

    def classify(self, device: Device) -> None:
        """Set both device_type and operating_system on the device."""
        device.device_type = self.classify_device(device)
        device.operating_system = self.detect_operating_system(device)
