"""PowerShell transport over OpenSSH for Windows."""

import logging

from ..config.models import TransportConfig
from ..utils.errors import WsusConnectionError
from .base import BaseTransport, safe_query
from .powershell import encode_command
from .ssh_helper import SSHHelper


class SSHTransport(BaseTransport):
    """Runs the query script on a remote WSUS host through its SSH server."""

    def __init__(self, config: TransportConfig, logger: logging.Logger):
        super().__init__(config, logger)

    @safe_query
    def run_script(self, script: str) -> str:
        """
        Run the script remotely and return stdout.

        Raises:
            WsusConnectionError: If paramiko is missing, the connection fails
                or the script exits non-zero
        """
        if not SSHHelper.is_available():
            raise WsusConnectionError("paramiko library required for SSH connections")

        command = (
            f"{self.config.powershell_path} -NoProfile -NonInteractive "
            f"-ExecutionPolicy Bypass -EncodedCommand {encode_command(script)}"
        )

        client = SSHHelper.create_client(self.config, self.logger)
        try:
            return SSHHelper.exec_command(
                client,
                command,
                timeout=self.config.timeout_s,
                logger=self.logger
            )
        finally:
            SSHHelper.close_client(client, self.logger)
