"""
Address range expansion.

Turns a CIDR block ("192.168.1.0/24") or an inclusive IPv4 range
("10.0.0.1-10.0.0.20") into the ordered list of host addresses to probe.
Malformed input never raises out of ``expand``; it produces an empty list
and a diagnostic message instead.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..config.config_loader import MAX_RANGE_ADDRESSES
from ..utils.error_handler import RangeParseError
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import int_to_ip, ip_to_int, is_ipv6, is_valid_ip


@dataclass
class RangeExpansion:
    """Addresses produced for a range, or a diagnostic explaining why there are none."""
    addresses: List[str]
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


class AddressRangeExpander:
    """Expands CIDR and start-end ranges into host address lists."""

    def __init__(self, max_addresses: int = MAX_RANGE_ADDRESSES, logger: Optional[Logger] = None):
        self.max_addresses = max_addresses
        self.logger = logger or get_logger(__name__)

    def expand(self, range_text: str) -> RangeExpansion:
        """
        Expand a range string into host addresses.

        Args:
            range_text: CIDR notation or "start-end"

        Returns:
            RangeExpansion with the addresses in ascending order, or an empty
            list plus diagnostic when the input is rejected
        """
        try:
            text = (range_text or "").strip()
            if "/" in text:
                addresses = self._expand_cidr(text)
            elif "-" in text:
                addresses = self._expand_range(text)
            else:
                raise RangeParseError(f"Unrecognised range format: '{range_text}'")
        except RangeParseError as e:
            self.logger.warning(f"Range rejected: {e}")
            return RangeExpansion(addresses=[], diagnostic=str(e))

        self.logger.debug(f"Expanded {text} to {len(addresses)} addresses")
        return RangeExpansion(addresses=addresses)

    def _expand_cidr(self, cidr: str) -> List[str]:
        parts = cidr.split("/")
        if len(parts) != 2:
            raise RangeParseError(f"Invalid CIDR notation: '{cidr}'")

        base, prefix_text = parts[0].strip(), parts[1].strip()
        if not is_valid_ip(base):
            raise RangeParseError(f"Invalid IP address in CIDR: '{cidr}'")
        if not prefix_text.isdigit() or not 0 <= int(prefix_text) <= 32:
            raise RangeParseError(f"Invalid prefix length in CIDR: '{cidr}'")

        host_bits = 32 - int(prefix_text)
        if host_bits < 2:
            raise RangeParseError(f"CIDR {cidr} has no host addresses (prefix /{prefix_text})")

        host_count = 2 ** host_bits - 2
        if host_count > self.max_addresses:
            raise RangeParseError(
                f"CIDR {cidr} spans {host_count} addresses, more than the limit of {self.max_addresses}"
            )

        mask = (0xFFFFFFFF << host_bits) & 0xFFFFFFFF
        network = ip_to_int(base) & mask

        return [int_to_ip(network + offset) for offset in range(1, host_count + 1)]

    def _expand_range(self, range_text: str) -> List[str]:
        parts = range_text.split("-")
        if len(parts) != 2:
            raise RangeParseError(f"Invalid address range: '{range_text}'")

        start_text, end_text = parts[0].strip(), parts[1].strip()
        if is_ipv6(start_text) or is_ipv6(end_text):
            raise RangeParseError(f"Only IPv4 ranges are supported: '{range_text}'")
        if not is_valid_ip(start_text) or not is_valid_ip(end_text):
            raise RangeParseError(f"Invalid IP address in range: '{range_text}'")

        start, end = ip_to_int(start_text), ip_to_int(end_text)
        if start > end:
            raise RangeParseError(f"Start address {start_text} is greater than end address {end_text}")

        count = end - start + 1
        if count > self.max_addresses:
            raise RangeParseError(
                f"Range {range_text} spans {count} addresses, more than the limit of {self.max_addresses}"
            )

        return [int_to_ip(value) for value in range(start, end + 1)]
