"""WSUS administration queries returning typed snapshots."""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import ValidationError

from ..config.models import TransportConfig, WsusServerConfig
from ..utils.errors import WsusConnectionError
from .base import BaseTransport
from .local_transport import LocalTransport
from .objects import (
    ComputerGroup,
    DatabaseConfiguration,
    LastSynchronization,
    ServerConfiguration,
    ServerInfo,
    ServerStatus,
    SynchronizationInfo,
    SynchronizationStatus,
)
from .powershell import build_query_script
from .ssh_transport import SSHTransport
from .winrm_transport import WinRMTransport

TRANSPORTS = {
    "local": LocalTransport,
    "winrm": WinRMTransport,
    "ssh": SSHTransport,
}


def create_transport(config: TransportConfig, logger: logging.Logger) -> BaseTransport:
    """
    Instantiate the transport named by config.kind.

    Args:
        config: Transport configuration
        logger: Logger instance

    Returns:
        BaseTransport: Ready-to-use transport
    """
    return TRANSPORTS[config.kind](config, logger)


class WsusCollector:
    """Read-only client for one WSUS server."""

    def __init__(
        self,
        config: WsusServerConfig,
        transport: BaseTransport,
        logger: logging.Logger
    ):
        """
        Initialize WSUS collector.

        Args:
            config: WSUS endpoint configuration
            transport: Transport used to run query scripts
            logger: Logger instance
        """
        self.config = config
        self.transport = transport
        self.logger = logger.getChild(self.__class__.__name__)

    def _query(self, query: str) -> Any:
        """
        Run one query script and decode its JSON output.

        Raises:
            WsusConnectionError: If the server returned nothing or invalid JSON
        """
        self.logger.info(f"Querying {query} from {self.config.server}:{self.config.port}")

        output = self.transport.run_script(build_query_script(query, self.config))
        output = (output or "").lstrip("\ufeff").strip()
        if not output:
            raise WsusConnectionError(f"No data returned by WSUS server {self.config.server}")

        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise WsusConnectionError(f"Invalid response from WSUS server: {e}") from e

    def _parse(self, model: type, data: Any) -> Any:
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise WsusConnectionError(f"Unexpected {model.__name__} data: {e}") from e

    def get_server_info(self) -> Optional[ServerInfo]:
        """Server name, version and connection settings."""
        return self._parse(ServerInfo, self._query("ServerInfo"))

    def get_status(self) -> Optional[ServerStatus]:
        """Update and computer counters."""
        return self._parse(ServerStatus, self._query("ServerStatus"))

    def get_database_configuration(self) -> Optional[DatabaseConfiguration]:
        """Database server and authentication settings."""
        return self._parse(DatabaseConfiguration, self._query("DatabaseConfiguration"))

    def get_configuration(self) -> Optional[ServerConfiguration]:
        """General server configuration."""
        return self._parse(ServerConfiguration, self._query("ServerConfiguration"))

    def get_computer_groups(self) -> List[ComputerGroup]:
        """
        All computer target groups with their per-computer summaries.

        Returns:
            List[ComputerGroup]: Groups in server order
        """
        data = self._query("ComputerGroups")
        if data is None:
            return []
        if isinstance(data, dict):
            data = [data]
        groups = [self._parse(ComputerGroup, item) for item in data if item is not None]
        self.logger.info(f"Retrieved {len(groups)} computer group(s)")
        return groups

    def get_last_synchronization(
        self,
        now: Optional[datetime] = None
    ) -> Optional[LastSynchronization]:
        """
        Last synchronization info with the number of days since it started.

        Args:
            now: Reference time for NotSyncInDays (default: current UTC time)

        Returns:
            LastSynchronization, or None if the server never synchronized
        """
        info = self._parse(SynchronizationInfo, self._query("LastSynchronizationInfo"))
        if info is None:
            return None
        return LastSynchronization.from_info(info, now=now)

    def get_synchronization_status(self) -> Optional[SynchronizationStatus]:
        """Current synchronization state and progress."""
        return self._parse(SynchronizationStatus, self._query("SynchronizationStatus"))
