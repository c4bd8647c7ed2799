"""
SNMP subtree walker.

Read-only SNMPv2c walks using a community string, built on the pysnmp 7.x
asyncio API. The topology prober calls ``walk`` from worker threads, so each
walk runs its own event loop through ``asyncio.run``.
"""

import asyncio
from typing import List, Optional, Tuple

from pysnmp.hlapi.v3arch.asyncio import (
    SnmpEngine,
    CommunityData,
    UdpTransportTarget,
    ContextData,
    ObjectType,
    ObjectIdentity,
    walk_cmd,
)
from pysnmp.error import PySnmpError

from ..config.config_loader import TopologyConfiguration
from ..utils.error_handler import ErrorContext, ErrorSeverity, ErrorType, ProtocolFailure
from ..utils.logger import Logger, get_logger


VarBind = Tuple[str, str]


class SnmpWalker:
    """
    Walks one OID subtree on one agent.

    A walk that fails before returning anything raises ProtocolFailure; a
    walk interrupted midway returns what it already collected.
    """

    def __init__(self, config: Optional[TopologyConfiguration] = None,
                 logger: Optional[Logger] = None):
        self.config = config or TopologyConfiguration()
        self.logger = logger or get_logger(__name__)

    def walk(self, address: str, base_oid: str) -> List[VarBind]:
        """
        Walk an OID subtree.

        Args:
            address: Agent IP address
            base_oid: Root of the subtree, dotted form without leading dot

        Returns:
            List of (oid, value) pairs in walk order

        Raises:
            ProtocolFailure: If the agent could not be queried at all
        """
        try:
            return asyncio.run(self._async_walk(address, base_oid))
        except ProtocolFailure:
            raise
        except (PySnmpError, OSError) as e:
            raise self._failure(address, base_oid, str(e)) from e

    async def _async_walk(self, address: str, base_oid: str) -> List[VarBind]:
        results: List[VarBind] = []
        prefix = base_oid + "."

        # Create transport target using .create() method for pysnmp 7.x
        transport_target = await UdpTransportTarget.create(
            (address, self.config.snmp_port),
            timeout=self.config.snmp_timeout,
            retries=self.config.snmp_retries,
        )

        snmp_engine = SnmpEngine()
        try:
            iterator = walk_cmd(
                snmp_engine,
                CommunityData(self.config.snmp_community, mpModel=1),
                transport_target,
                ContextData(),
                ObjectType(ObjectIdentity(base_oid)),
                lookupMib=False,
                lexicographicMode=False,  # Stop at end of subtree
                ignoreNonIncreasingOid=True,
            )

            async for errorIndication, errorStatus, errorIndex, varBinds in iterator:
                if errorIndication or errorStatus:
                    reason = str(errorIndication) if errorIndication else errorStatus.prettyPrint()
                    if not results:
                        raise self._failure(address, base_oid, reason)
                    self.logger.debug(f"SNMP walk of {base_oid} on {address} stopped early: {reason}")
                    break

                for name, value in varBinds:
                    oid_str = name.prettyPrint()
                    if not oid_str.startswith(prefix):
                        return results

                    results.append((oid_str, value.prettyPrint()))

                    if len(results) >= self.config.max_walk_entries:
                        self.logger.debug(
                            f"Reached entry limit ({self.config.max_walk_entries}) for {base_oid} on {address}"
                        )
                        return results
        finally:
            snmp_engine.close_dispatcher()

        return results

    def _failure(self, address: str, base_oid: str, reason: str) -> ProtocolFailure:
        context = ErrorContext(
            error_type=ErrorType.PROTOCOL_FAILURE,
            severity=ErrorSeverity.LOW,
            operation="snmp_walk",
            component="SnmpWalker",
            additional_info={"address": address, "oid": base_oid},
        )
        return ProtocolFailure(f"SNMP walk of {base_oid} on {address} failed: {reason}", context)
