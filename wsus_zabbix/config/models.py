"""Pydantic configuration models for the WSUS query tool."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional


TRANSPORT_KINDS = ("local", "winrm", "ssh")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class WsusServerConfig(BaseModel):
    """WSUS administration endpoint, as seen from the host running PowerShell."""
    server: str = "localhost"
    port: int = Field(default=8530, ge=1, le=65535)
    use_ssl: bool = False


class TransportConfig(BaseModel):
    """How the PowerShell query reaches the WSUS host."""
    kind: str = "local"
    host: Optional[str] = None  # Remote transports only
    port: Optional[int] = Field(default=None, ge=1, le=65535)  # None: 5985/5986 for WinRM, 22 for SSH
    username: Optional[str] = None
    password: Optional[str] = None
    ssh_key_path: Optional[str] = None
    winrm_transport: str = "ntlm"
    winrm_use_ssl: bool = False
    powershell_path: str = "powershell.exe"
    timeout_s: int = Field(default=60, ge=1)

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Validate transport kind."""
        v = v.lower()
        if v not in TRANSPORT_KINDS:
            raise ValueError(f"Transport kind must be one of: {', '.join(TRANSPORT_KINDS)}")
        return v

    @model_validator(mode='after')
    def remote_host_required(self) -> 'TransportConfig':
        """Remote transports need a host to connect to."""
        if self.kind != "local" and not self.host:
            raise ValueError(f"Transport '{self.kind}' requires a host")
        return self

    @property
    def effective_port(self) -> int:
        """Port to connect to, falling back to the transport's default."""
        if self.port:
            return self.port
        if self.kind == "ssh":
            return 22
        return 5986 if self.winrm_use_ssl else 5985


class OutputConfig(BaseModel):
    """Output rendering defaults."""
    error_code: Optional[str] = None  # Printed instead of a warning on fatal errors
    console_cp: Optional[str] = None
    pretty_json: bool = False
    width: int = Field(default=255, ge=20)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "WARNING"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level name."""
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return v


class WsusZabbixConfig(BaseModel):
    """Root configuration model."""
    wsus: WsusServerConfig = Field(default_factory=WsusServerConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
