"""Base transport abstract class for running WSUS query scripts."""

from abc import ABC, abstractmethod
import logging
from functools import wraps

from ..config.models import TransportConfig
from ..utils.errors import WsusConnectionError


class BaseTransport(ABC):
    """Abstract base class for all PowerShell transports."""

    def __init__(self, config: TransportConfig, logger: logging.Logger):
        """
        Initialize base transport.

        Args:
            config: Transport configuration
            logger: Logger instance
        """
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    def run_script(self, script: str) -> str:
        """
        Run a PowerShell script and return its stdout.

        Args:
            script: PowerShell source

        Returns:
            str: Script stdout

        Raises:
            WsusConnectionError: If the script could not be run or failed

        Note:
            Implementations should use @safe_query so that any transport
            exception surfaces as WsusConnectionError.
        """
        pass


def safe_query(func):
    """
    Decorator mapping transport exceptions to WsusConnectionError.

    Args:
        func: Transport method to wrap

    Returns:
        Wrapped function that logs the failure and re-raises it as
        WsusConnectionError
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except WsusConnectionError as e:
            self.logger.error(f"Query failed: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Query failed: {e}", exc_info=True)
            raise WsusConnectionError(str(e)) from e
    return wrapper
