"""Action dispatch: build an object collection and render it for Zabbix."""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from .collectors.wsus_collector import WsusCollector
from .utils.errors import EmptyCollectionError, UnsupportedActionError
from .utils.filters import select_by_id_or_all
from .utils.formatting import format_value
from .utils.lld import emit_discovery_json
from .utils.logger import setup_logger
from .utils.metrics import parse_key_path, resolve
from .utils.output import DEFAULT_WIDTH, render_listing


class Action(Enum):
    """What to do with the collection."""

    DISCOVERY = "discovery"
    GET = "get"
    COUNT = "count"

    @classmethod
    def parse(cls, value: str) -> "Action":
        """Case-insensitive lookup by value."""
        for action in cls:
            if action.value == value.lower():
                return action
        raise ValueError(f"Unknown action: {value}")


class ObjectKind(Enum):
    """Object collections that can be queried."""

    INFO = "Info"
    STATUS = "Status"
    DATABASE = "Database"
    CONFIGURATION = "Configuration"
    COMPUTER_GROUP = "ComputerGroup"
    LAST_SYNCHRONIZATION = "LastSynchronization"
    SYNCHRONIZATION_STATUS = "SynchronizationStatus"

    @classmethod
    def parse(cls, value: str) -> "ObjectKind":
        """Case-insensitive lookup by value."""
        for kind in cls:
            if kind.value.lower() == value.lower():
                return kind
        raise ValueError(f"Unknown object: {value}")


# LLD macros per object kind, in emission order.
DISCOVERY_PROPERTIES: Dict[ObjectKind, List[str]] = {
    ObjectKind.COMPUTER_GROUP: ["NAME", "ID"],
}


class ActionDispatcher:
    """
    Runs one action against one object collection.

    Collections are lists: singleton objects are wrapped in a one-element
    list, and a missing object yields an empty list.
    """

    def __init__(
        self,
        collector: WsusCollector,
        logger: Optional[logging.Logger] = None,
        error_code: Optional[str] = None,
        pretty: bool = False,
        width: int = DEFAULT_WIDTH
    ):
        """
        Initialize dispatcher.

        Args:
            collector: WSUS collector to query
            logger: Optional logger instance
            error_code: Printed in place of missing metric values
            pretty: Pretty-print discovery JSON
            width: Listing width
        """
        self.collector = collector
        self.logger = (logger or setup_logger("dispatcher")).getChild(self.__class__.__name__)
        self.error_code = error_code
        self.pretty = pretty
        self.width = width

    def build_collection(self, kind: ObjectKind, id: Optional[str] = None) -> List[Any]:
        """
        Query the collection for an object kind.

        Args:
            kind: Object kind
            id: Computer group identifier filter (ignored for other kinds)

        Returns:
            List[Any]: Collection items
        """
        if kind is ObjectKind.COMPUTER_GROUP:
            groups = self.collector.get_computer_groups()
            return select_by_id_or_all(groups, "Id", id)

        if id is not None:
            self.logger.debug(f"Identifier filter ignored for {kind.value}")

        builders = {
            ObjectKind.INFO: self.collector.get_server_info,
            ObjectKind.STATUS: self.collector.get_status,
            ObjectKind.DATABASE: self.collector.get_database_configuration,
            ObjectKind.CONFIGURATION: self.collector.get_configuration,
            ObjectKind.LAST_SYNCHRONIZATION: self.collector.get_last_synchronization,
            ObjectKind.SYNCHRONIZATION_STATUS: self.collector.get_synchronization_status,
        }
        item = builders[kind]()
        return [] if item is None else [item]

    def run(
        self,
        action: Action,
        kind: ObjectKind,
        key: Optional[str] = None,
        id: Optional[str] = None
    ) -> str:
        """
        Build the collection and apply the action.

        Args:
            action: Action to apply
            kind: Object kind
            key: Dotted metric key path (get only)
            id: Identifier filter

        Returns:
            str: Text to print

        Raises:
            WsusConnectionError: If the WSUS server cannot be queried
            EmptyCollectionError: If 'get' finds no items
            UnsupportedActionError: If discovery is not defined for the kind
        """
        self.logger.info(f"Running {action.value} on {kind.value}")

        # Reject unsupported discovery before contacting the server.
        if action is Action.DISCOVERY and kind not in DISCOVERY_PROPERTIES:
            raise UnsupportedActionError(f"Discovery is not supported for {kind.value}")

        items = self.build_collection(kind, id)

        if action is Action.DISCOVERY:
            return self.discovery(items, kind)
        if action is Action.GET:
            return self.get(items, kind, key)
        return self.count(items)

    def discovery(self, items: List[Any], kind: ObjectKind) -> str:
        """Render the collection as a Zabbix LLD document."""
        return emit_discovery_json(items, DISCOVERY_PROPERTIES[kind], pretty=self.pretty)

    def get(self, items: List[Any], kind: ObjectKind, key: Optional[str] = None) -> str:
        """
        Extract one metric, or list the whole collection when no key is given.

        With several items (unfiltered computer groups) the metric is resolved
        on each item and the values are printed one per line.
        """
        if not items:
            raise EmptyCollectionError(f"No {kind.value} objects found")

        path = parse_key_path(key)
        if not path:
            return render_listing(items, width=self.width)

        values = []
        for item in items:
            value = resolve(item, path)
            if value is None:
                self.logger.info(f"Metric {key} not found on {kind.value}")
            values.append(format_value(value, error_fallback=self.error_code, escape=True))
        return "\n".join(values)

    def count(self, items: Optional[List[Any]]) -> str:
        """Number of items in the collection."""
        return str(len(items)) if items else "0"
