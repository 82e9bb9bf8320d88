"""paramiko session handling for PowerShell over OpenSSH on Windows."""

import logging
from typing import Any, Dict, Optional

try:
    import paramiko
except ImportError:
    paramiko = None

from ..config.models import TransportConfig

CONNECT_TIMEOUT_S = 10


class SSHHelper:
    """Connects to the WSUS host's SSH server and runs one command per session."""

    @staticmethod
    def is_available() -> bool:
        """True when paramiko is installed."""
        return paramiko is not None

    @staticmethod
    def connect_options(config: TransportConfig) -> Dict[str, Any]:
        """
        Keyword arguments for SSHClient.connect().

        A configured key file is offered first; with a password and no key file,
        agent and ~/.ssh key lookup are disabled so the password is used.

        Args:
            config: Transport configuration

        Returns:
            Dict[str, Any]: connect() keyword arguments
        """
        options = {
            "hostname": config.host,
            "port": config.effective_port,
            "username": config.username,
            "timeout": CONNECT_TIMEOUT_S,
            "banner_timeout": CONNECT_TIMEOUT_S,
        }
        if config.ssh_key_path:
            options["key_filename"] = config.ssh_key_path
        if config.password:
            options["password"] = config.password
            if not config.ssh_key_path:
                options["look_for_keys"] = False
                options["allow_agent"] = False
        return options

    @staticmethod
    def create_client(config: TransportConfig, logger: logging.Logger) -> Any:
        """
        Open an SSH connection to the WSUS host.

        Args:
            config: Transport configuration
            logger: Logger instance

        Returns:
            paramiko.SSHClient: Connected client

        Raises:
            ImportError: If paramiko is not installed
            paramiko.SSHException: If authentication or the handshake fails
            OSError: If the host cannot be reached
        """
        if paramiko is None:
            raise ImportError("paramiko library required for SSH connections")

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        logger.debug(f"Connecting to {config.host}:{config.effective_port} as {config.username}")
        try:
            client.connect(**SSHHelper.connect_options(config))
        except Exception as e:
            logger.error(f"SSH connection to {config.host} failed: {e}")
            client.close()
            raise

        return client

    @staticmethod
    def exec_command(
        client: Any,
        command: str,
        timeout: int = 60,
        logger: Optional[logging.Logger] = None
    ) -> str:
        """
        Run a command and return its stdout.

        Both output streams are read to EOF before the exit status is
        collected: a remote process blocks once its unread output fills the
        channel window, so waiting for the exit status first can hang on
        large results.

        Args:
            client: Connected paramiko.SSHClient
            command: Command line to run
            timeout: Channel timeout in seconds
            logger: Optional logger instance

        Returns:
            str: Command stdout decoded as UTF-8

        Raises:
            RuntimeError: If the command exits non-zero
        """
        if logger:
            logger.debug(f"Executing command ({len(command)} chars)")

        stdin, stdout, stderr = client.exec_command(command, timeout=timeout)
        stdin.close()

        output = stdout.read()
        errors = stderr.read()
        exit_code = stdout.channel.recv_exit_status()

        if exit_code != 0:
            message = errors.decode("utf-8", errors="replace").strip()
            raise RuntimeError(f"Command failed with exit code {exit_code}: {message}")

        if logger:
            logger.debug(f"Command returned {len(output)} bytes")

        return output.decode("utf-8", errors="replace")

    @staticmethod
    def close_client(client: Any, logger: Optional[logging.Logger] = None) -> None:
        """Close the connection; failures are only logged."""
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            if logger:
                logger.warning(f"Error closing SSH connection: {e}")
