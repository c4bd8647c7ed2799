"""
In-memory device cache with sliding expiration.

One DeviceCache is created per process (by the CLI or whatever hosts the
engine) and injected into the orchestrator and topology mapper. Every write
renews the entry's time-to-live; reads never do. Expired entries are dropped
lazily the next time the cache is touched. All access goes through a single
lock.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Callable, Dict, List, Optional

from .data_models import Device
from ..utils.logger import Logger, get_logger


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class _CacheEntry:
    device: Device
    expires_at: datetime


class DeviceCache:
    """
    TTL-bounded store of discovered devices keyed by device id.

    Attributes:
        ttl: Sliding expiration applied on every write
        clock: Time source, injectable for tests
    """

    def __init__(self, ttl_minutes: int = 60, clock: Optional[Clock] = None,
                 logger: Optional[Logger] = None):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock or utc_now
        self.logger = logger or get_logger(__name__)
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def _purge_expired(self) -> None:
        # Caller holds the lock
        now = self.clock()
        expired = [device_id for device_id, entry in self._entries.items() if entry.expires_at <= now]
        for device_id in expired:
            del self._entries[device_id]
        if expired:
            self.logger.debug(f"Evicted {len(expired)} expired devices from cache")

    def get_by_id(self, device_id: str) -> Optional[Device]:
        with self._lock:
            self._purge_expired()
            entry = self._entries.get(device_id)
            return entry.device if entry else None

    def get_by_address(self, address: str) -> Optional[Device]:
        """
        Find the cached device owning an IPv4 or IPv6 address.

        Linear scan over every cached device.
        """
        with self._lock:
            self._purge_expired()
            for entry in self._entries.values():
                if entry.device.has_address(address):
                    return entry.device
            return None

    def get_all(self) -> List[Device]:
        with self._lock:
            self._purge_expired()
            return [entry.device for entry in self._entries.values()]

    def add_or_update(self, device: Device) -> Device:
        """
        Insert a device or replace the cached record with the same id.

        When a record already exists it is refreshed in place so that
        ``first_discovered`` and topology links survive re-scans.

        Args:
            device: Freshly scanned device

        Returns:
            The cached Device instance
        """
        with self._lock:
            self._purge_expired()
            expires_at = self.clock() + self.ttl
            entry = self._entries.get(device.id)

            if entry is not None and entry.device is not device:
                entry.device.refresh_from(device)
                entry.expires_at = expires_at
                cached = entry.device
            else:
                self._entries[device.id] = _CacheEntry(device=device, expires_at=expires_at)
                cached = device

        self.logger.debug(f"Device {device.id} added/updated in cache")
        return cached

    def mark_offline(self, address: str) -> bool:
        """
        Flag the cached device owning ``address`` as unreachable.

        ``last_seen`` and the expiry are left alone, so a host that stays
        down still ages out of the cache.

        Returns:
            True if a cached device was updated
        """
        with self._lock:
            self._purge_expired()
            for entry in self._entries.values():
                if entry.device.has_address(address):
                    entry.device.is_online = False
                    device_id = entry.device.id
                    break
            else:
                return False

        self.logger.debug(f"Device {device_id} marked offline")
        return True

    def remove(self, device_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(device_id, None) is not None
        if removed:
            self.logger.debug(f"Device {device_id} removed from cache")
        return removed

    def count(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return self.count()
