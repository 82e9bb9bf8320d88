"""Pydantic snapshots of WSUS administration objects."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.formatting import as_utc, format_value
from ..utils.status import ComplianceStatus, count_statuses

# Timestamps as written by the query script; the kind suffix is optional.
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(Z|[+-]\d{2}:\d{2})?$")


def _parse_timestamps(value: Any) -> Any:
    if isinstance(value, str) and _TIMESTAMP_RE.match(value):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, dict):
        return {key: _parse_timestamps(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_parse_timestamps(item) for item in value]
    return value


class WsusObject(BaseModel):
    """
    Read-only snapshot of a WSUS object.

    Declared fields are addressed by their WSUS property name (the alias);
    properties the model does not declare are kept as extras so that any
    metric the server returns stays reachable.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="after")
    def parse_extra_timestamps(self) -> "WsusObject":
        """Turn timestamp strings among undeclared properties, nested ones included, into datetimes."""
        extras = self.model_extra or {}
        for name, value in extras.items():
            extras[name] = _parse_timestamps(value)
        return self

    def properties(self) -> Dict[str, Any]:
        """
        Property name to value, declared fields first, then extras.

        Returns:
            Dict[str, Any]: Properties in WSUS naming
        """
        result = {}
        for field_name, field in type(self).model_fields.items():
            if field.exclude:
                continue
            result[field.alias or field_name] = getattr(self, field_name)
        result.update(self.model_extra or {})
        return result

    def get_property(self, name: str) -> Any:
        """
        Case-insensitive property lookup.

        Args:
            name: WSUS property name

        Returns:
            Property value, or None if the object has no such property
        """
        properties = self.properties()
        if name in properties:
            return properties[name]
        folded = name.casefold()
        for candidate, value in properties.items():
            if candidate.casefold() == folded:
                return value
        return None

    def __str__(self) -> str:
        pairs = "; ".join(
            f"{name}={format_value(value)}" for name, value in self.properties().items()
        )
        return "@{" + pairs + "}"


class VersionInfo(WsusObject):
    """System.Version, addressable by component (Version.Major) or as a whole."""

    major: Optional[int] = Field(None, alias="Major")
    minor: Optional[int] = Field(None, alias="Minor")
    build: Optional[int] = Field(None, alias="Build")
    revision: Optional[int] = Field(None, alias="Revision")

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Accept a dotted version string as well as a component mapping."""
        if not isinstance(value, str):
            return value
        if not value.strip():
            return None
        names = ("Major", "Minor", "Build", "Revision")
        try:
            parts = [int(part) for part in value.strip().split(".")]
        except ValueError:
            raise ValueError(f"Invalid version: {value}") from None
        return dict(zip(names, parts))

    def __str__(self) -> str:
        # Undefined components (-1 or missing) are left out, as Version.ToString() does.
        parts = [self.major, self.minor, self.build, self.revision]
        return ".".join(str(part) for part in parts if part is not None and part >= 0)


class ServerInfo(WsusObject):
    """IUpdateServer properties."""

    name: Optional[str] = Field(None, alias="Name")
    version: Optional[VersionInfo] = Field(None, alias="Version")
    port_number: Optional[int] = Field(None, alias="PortNumber")
    use_secure_connection: Optional[bool] = Field(None, alias="UseSecureConnection")
    server_protocol_version: Optional[VersionInfo] = Field(None, alias="ServerProtocolVersion")
    web_service_url: Optional[str] = Field(None, alias="WebServiceUrl")
    preferred_culture: Optional[str] = Field(None, alias="PreferredCulture")

    @field_validator("version", "server_protocol_version", mode="before")
    @classmethod
    def parse_version(cls, v: Any) -> Any:
        """Versions arrive as component objects; dotted strings are accepted too."""
        return VersionInfo.coerce(v)


class ServerStatus(WsusObject):
    """UpdateServerStatus counters."""

    update_count: Optional[int] = Field(None, alias="UpdateCount")
    approved_update_count: Optional[int] = Field(None, alias="ApprovedUpdateCount")
    declined_update_count: Optional[int] = Field(None, alias="DeclinedUpdateCount")
    not_approved_update_count: Optional[int] = Field(None, alias="NotApprovedUpdateCount")
    expired_update_count: Optional[int] = Field(None, alias="ExpiredUpdateCount")
    critical_or_security_updates_not_approved_for_install_count: Optional[int] = Field(
        None, alias="CriticalOrSecurityUpdatesNotApprovedForInstallCount"
    )
    updates_with_client_errors_count: Optional[int] = Field(
        None, alias="UpdatesWithClientErrorsCount"
    )
    updates_with_server_errors_count: Optional[int] = Field(
        None, alias="UpdatesWithServerErrorsCount"
    )
    updates_needing_files_count: Optional[int] = Field(None, alias="UpdatesNeedingFilesCount")
    updates_needed_by_computers_count: Optional[int] = Field(
        None, alias="UpdatesNeededByComputersCount"
    )
    updates_up_to_date_count: Optional[int] = Field(None, alias="UpdatesUpToDateCount")
    computer_target_count: Optional[int] = Field(None, alias="ComputerTargetCount")
    computer_targets_needing_updates_count: Optional[int] = Field(
        None, alias="ComputerTargetsNeedingUpdatesCount"
    )
    computer_targets_with_update_errors_count: Optional[int] = Field(
        None, alias="ComputerTargetsWithUpdateErrorsCount"
    )
    computers_up_to_date_count: Optional[int] = Field(None, alias="ComputersUpToDateCount")
    custom_computer_target_group_count: Optional[int] = Field(
        None, alias="CustomComputerTargetGroupCount"
    )


class DatabaseConfiguration(WsusObject):
    """IDatabaseConfiguration properties."""

    server_name: Optional[str] = Field(None, alias="ServerName")
    database_name: Optional[str] = Field(None, alias="DatabaseName")
    is_using_windows_internal_database: Optional[bool] = Field(
        None, alias="IsUsingWindowsInternalDatabase"
    )
    authentication_mode: Optional[str] = Field(None, alias="AuthenticationMode")
    user_name: Optional[str] = Field(None, alias="UserName")


class ServerConfiguration(WsusObject):
    """IUpdateServerConfiguration properties (the server returns many more as extras)."""

    server_id: Optional[UUID] = Field(None, alias="ServerId")
    sync_from_microsoft_update: Optional[bool] = Field(None, alias="SyncFromMicrosoftUpdate")
    upstream_wsus_server_name: Optional[str] = Field(None, alias="UpstreamWsusServerName")
    upstream_wsus_server_port_number: Optional[int] = Field(
        None, alias="UpstreamWsusServerPortNumber"
    )
    targeting_mode: Optional[str] = Field(None, alias="TargetingMode")
    host_binaries_on_microsoft_update: Optional[bool] = Field(
        None, alias="HostBinariesOnMicrosoftUpdate"
    )


class ComputerTargetSummary(WsusObject):
    """Per-computer update counts from GetTotalSummaryPerComputerTarget()."""

    computer_target_id: Optional[str] = Field(None, alias="ComputerTargetId")
    failed_count: int = Field(0, alias="FailedCount")
    not_installed_count: int = Field(0, alias="NotInstalledCount")
    downloaded_count: int = Field(0, alias="DownloadedCount")
    installed_pending_reboot_count: int = Field(0, alias="InstalledPendingRebootCount")
    unknown_count: int = Field(0, alias="UnknownCount")
    installed_count: int = Field(0, alias="InstalledCount")
    not_applicable_count: int = Field(0, alias="NotApplicableCount")
    last_updated: Optional[datetime] = Field(None, alias="LastUpdated")


class ComputerGroup(WsusObject):
    """Computer target group with compliance counters derived from its summaries."""

    name: str = Field(alias="Name")
    id: UUID = Field(alias="Id")
    summaries: List[ComputerTargetSummary] = Field(
        default_factory=list, alias="Summaries", exclude=True
    )
    computer_target_count: int = Field(0, alias="ComputerTargetCount")
    computer_targets_with_update_errors_count: int = Field(
        0, alias="ComputerTargetsWithUpdateErrorsCount"
    )
    computer_targets_needing_updates_count: int = Field(
        0, alias="ComputerTargetsNeedingUpdatesCount"
    )
    computers_up_to_date_count: int = Field(0, alias="ComputersUpToDateCount")
    computer_targets_with_unknown_status_count: int = Field(
        0, alias="ComputerTargetsWithUnknownStatusCount"
    )

    @model_validator(mode="after")
    def derive_counters(self) -> "ComputerGroup":
        """Compute the per-bucket counters from the summaries."""
        counts = count_statuses(self.summaries)
        self.computer_target_count = len(self.summaries)
        self.computer_targets_with_update_errors_count = counts[ComplianceStatus.ERROR]
        self.computer_targets_needing_updates_count = counts[ComplianceStatus.NEEDING_UPDATES]
        self.computers_up_to_date_count = counts[ComplianceStatus.UP_TO_DATE]
        self.computer_targets_with_unknown_status_count = counts[ComplianceStatus.UNKNOWN]
        return self


class SynchronizationInfo(WsusObject):
    """ISubscription.GetLastSynchronizationInfo() result."""

    id: Optional[UUID] = Field(None, alias="Id")
    start_time: Optional[datetime] = Field(None, alias="StartTime")
    end_time: Optional[datetime] = Field(None, alias="EndTime")
    started_manually: Optional[bool] = Field(None, alias="StartedManually")
    result: Optional[str] = Field(None, alias="Result")
    error: Optional[str] = Field(None, alias="Error")
    error_text: Optional[str] = Field(None, alias="ErrorText")
    new_updates: Optional[int] = Field(None, alias="NewUpdates")
    revised_updates: Optional[int] = Field(None, alias="RevisedUpdates")
    expired_updates: Optional[int] = Field(None, alias="ExpiredUpdates")


class LastSynchronization(WsusObject):
    """Last synchronization snapshot extended with the age of the last sync."""

    snapshot: SynchronizationInfo = Field(exclude=True)
    not_sync_in_days: Optional[int] = Field(None, alias="NotSyncInDays")

    @classmethod
    def from_info(
        cls,
        info: SynchronizationInfo,
        now: Optional[datetime] = None
    ) -> "LastSynchronization":
        """
        Build from a synchronization snapshot.

        Args:
            info: Last synchronization info
            now: Reference time (default: current UTC time)

        Returns:
            LastSynchronization: Snapshot plus NotSyncInDays
        """
        days = None
        if info.start_time is not None:
            now = as_utc(now) if now is not None else datetime.now(timezone.utc)
            # Whole days, truncated toward zero.
            days = int((now - as_utc(info.start_time)) / timedelta(days=1))
        return cls(snapshot=info, not_sync_in_days=days)

    def properties(self) -> Dict[str, Any]:
        result = self.snapshot.properties()
        result["NotSyncInDays"] = self.not_sync_in_days
        return result


class SynchronizationStatus(WsusObject):
    """Subscription synchronization status and progress."""

    status: Optional[str] = Field(None, alias="Status")
    phase: Optional[str] = Field(None, alias="Phase")
    total_items: Optional[int] = Field(None, alias="TotalItems")
    processed_items: Optional[int] = Field(None, alias="ProcessedItems")
