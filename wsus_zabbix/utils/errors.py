"""Terminal error conditions reported to Zabbix."""


class WsusZabbixError(Exception):
    """Base class for conditions that stop the query and produce a warning."""


class WsusConnectionError(WsusZabbixError):
    """The WSUS administration service is unreachable or returned nothing."""


class EmptyCollectionError(WsusZabbixError):
    """A 'get' was requested on a collection with no items."""


class UnsupportedActionError(WsusZabbixError):
    """The requested action is not defined for the object kind."""


class ConfigurationError(WsusZabbixError):
    """The configuration file or command-line options are invalid."""
