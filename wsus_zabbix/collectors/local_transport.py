"""PowerShell transport running on the WSUS host itself."""

import subprocess
import logging

from ..config.models import TransportConfig
from ..utils.errors import WsusConnectionError
from .base import BaseTransport, safe_query
from .powershell import encode_command


class LocalTransport(BaseTransport):
    """Runs the query script with a local powershell.exe."""

    def __init__(self, config: TransportConfig, logger: logging.Logger):
        super().__init__(config, logger)

    def command_line(self, script: str) -> list:
        """Argument vector for a non-interactive PowerShell run."""
        return [
            self.config.powershell_path,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy", "Bypass",
            "-EncodedCommand", encode_command(script),
        ]

    @safe_query
    def run_script(self, script: str) -> str:
        """
        Run the script and return stdout.

        Raises:
            WsusConnectionError: On non-zero exit code, timeout or missing executable
        """
        self.logger.debug(f"Running {self.config.powershell_path}")

        result = subprocess.run(
            self.command_line(script),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=self.config.timeout_s,
        )

        if result.returncode != 0:
            raise WsusConnectionError(
                f"PowerShell exited with code {result.returncode}: {result.stderr.strip()}"
            )

        return result.stdout
