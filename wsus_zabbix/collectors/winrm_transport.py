"""PowerShell transport over WinRM."""

import logging

try:
    import winrm
except ImportError:
    winrm = None

from ..config.models import TransportConfig
from ..utils.errors import WsusConnectionError
from .base import BaseTransport, safe_query


class WinRMTransport(BaseTransport):
    """Runs the query script on a remote WSUS host through pywinrm."""

    def __init__(self, config: TransportConfig, logger: logging.Logger):
        """
        Initialize WinRM transport.

        Args:
            config: Transport configuration (host, credentials, winrm_transport)
            logger: Logger instance
        """
        super().__init__(config, logger)

        if winrm is None:
            self.logger.warning("pywinrm not installed, WinRM queries will fail")

    @property
    def endpoint(self) -> str:
        """WS-Management endpoint URL."""
        scheme = "https" if self.config.winrm_use_ssl else "http"
        return f"{scheme}://{self.config.host}:{self.config.effective_port}/wsman"

    @safe_query
    def run_script(self, script: str) -> str:
        """
        Run the script remotely and return stdout.

        Raises:
            WsusConnectionError: If pywinrm is missing or the remote script failed
        """
        if winrm is None:
            raise WsusConnectionError("pywinrm library required for WinRM connections")

        self.logger.debug(f"Connecting to {self.endpoint} as {self.config.username}")

        session = winrm.Session(
            self.endpoint,
            auth=(self.config.username or "", self.config.password or ""),
            transport=self.config.winrm_transport,
            read_timeout_sec=self.config.timeout_s + 10,
            operation_timeout_sec=self.config.timeout_s,
        )
        result = session.run_ps(script)

        stdout = result.std_out.decode("utf-8", errors="replace")
        if result.status_code != 0:
            stderr = result.std_err.decode("utf-8", errors="replace")
            raise WsusConnectionError(
                f"Remote PowerShell exited with code {result.status_code}: {stderr.strip()}"
            )

        return stdout
