"""Tests for WSUS object snapshots."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from wsus_zabbix.collectors.objects import (
    ComputerGroup,
    LastSynchronization,
    ServerConfiguration,
    ServerInfo,
    SynchronizationInfo,
)


NOW = datetime(2024, 5, 4, 9, 0, tzinfo=timezone.utc)


class TestComputerGroup:
    """Derived compliance counters."""

    def test_counters_from_summaries(self, groups):
        group = groups[0]

        assert group.computer_target_count == 4
        assert group.get_property("ComputerTargetsWithUpdateErrorsCount") == 1
        assert group.get_property("ComputerTargetsNeedingUpdatesCount") == 1
        assert group.get_property("ComputersUpToDateCount") == 1
        assert group.get_property("ComputerTargetsWithUnknownStatusCount") == 1

    def test_pending_reboot_group(self, groups):
        group = groups[1]

        assert group.computer_target_count == 1
        assert group.computer_targets_needing_updates_count == 1
        assert group.computers_up_to_date_count == 0

    def test_group_without_computers(self):
        group = ComputerGroup.model_validate({"Name": "Empty", "Id": str(UUID(int=0))})

        assert group.computer_target_count == 0
        assert group.computers_up_to_date_count == 0

    def test_case_insensitive_lookup(self, groups):
        assert groups[0].get_property("NAME") == "All Computers"
        assert groups[0].get_property("id") == UUID("a0a08746-4dbe-4a37-9adf-9e7652c0b421")

    def test_summaries_are_not_properties(self, groups):
        assert "Summaries" not in groups[0].properties()
        assert groups[0].get_property("Summaries") is None


class TestExtraProperties:
    """Properties the models do not declare."""

    def test_extras_are_reachable(self):
        config = ServerConfiguration.model_validate({
            "TargetingMode": "Client",
            "AutoRefreshDeploymentsDeclinedUpdates": True,
        })

        assert config.get_property("TargetingMode") == "Client"
        assert config.get_property("autorefreshdeploymentsdeclinedupdates") is True

    def test_extra_timestamps_are_parsed(self):
        config = ServerConfiguration.model_validate({"LastConfigChange": "2024-05-01T10:00:00Z"})

        assert config.get_property("LastConfigChange") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)

    def test_unknown_property(self):
        assert ServerInfo.model_validate({"Name": "wsus01"}).get_property("Nope") is None

    def test_string_form(self):
        info = ServerInfo.model_validate({"Name": "wsus01", "PortNumber": 8530})

        assert str(info).startswith("@{Name=wsus01; Version=; PortNumber=8530;")


class TestLastSynchronization:
    """NotSyncInDays derivation."""

    def test_whole_days_since_start(self):
        info = SynchronizationInfo.model_validate({
            "StartTime": "2024-05-01T10:00:00Z",
            "Result": "Succeeded",
        })

        last = LastSynchronization.from_info(info, now=NOW)

        # 2 days 23 hours
        assert last.get_property("NotSyncInDays") == 2
        assert last.get_property("Result") == "Succeeded"

    def test_naive_start_time_is_utc(self):
        info = SynchronizationInfo.model_validate({"StartTime": "2024-05-03T09:00:00"})

        assert LastSynchronization.from_info(info, now=NOW).not_sync_in_days == 1

    def test_start_in_future_truncates_toward_zero(self):
        info = SynchronizationInfo(StartTime=NOW + timedelta(hours=36))

        assert LastSynchronization.from_info(info, now=NOW).not_sync_in_days == -1

    def test_never_started(self):
        last = LastSynchronization.from_info(SynchronizationInfo(), now=NOW)

        assert last.get_property("NotSyncInDays") is None

    def test_properties_embed_snapshot(self):
        info = SynchronizationInfo.model_validate({
            "Id": "5ad5e1c4-5b2c-4f4b-9a0b-5bd6d9b7f6a1",
            "StartTime": "2024-05-03T09:00:00Z",
        })

        properties = LastSynchronization.from_info(info, now=NOW).properties()

        assert list(properties)[0] == "Id"
        assert list(properties)[-1] == "NotSyncInDays"
        assert "snapshot" not in properties
