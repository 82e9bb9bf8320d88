"""Tests for the WSUS collector."""

import pytest
from datetime import datetime, timezone

from wsus_zabbix.collectors.objects import ComputerGroup, ServerInfo
from wsus_zabbix.collectors.powershell import build_query_script
from wsus_zabbix.collectors.local_transport import LocalTransport
from wsus_zabbix.collectors.ssh_transport import SSHTransport
from wsus_zabbix.collectors.winrm_transport import WinRMTransport
from wsus_zabbix.collectors.wsus_collector import create_transport
from wsus_zabbix.config.models import TransportConfig, WsusServerConfig
from wsus_zabbix.dispatcher import Action, ActionDispatcher, ObjectKind
from wsus_zabbix.utils.errors import WsusConnectionError


def test_server_info(make_collector):
    collector = make_collector(ServerInfo={"Name": "wsus01", "Version": "10.0.17763.678", "PortNumber": 8530})

    info = collector.get_server_info()

    assert isinstance(info, ServerInfo)
    assert info.name == "wsus01"
    assert info.port_number == 8530


def test_status_counters(make_collector):
    collector = make_collector(ServerStatus={"UpdateCount": 1200, "ComputerTargetCount": 35})

    status = collector.get_status()

    assert status.get_property("UpdateCount") == 1200
    assert status.get_property("ComputerTargetCount") == 35


def test_database_and_configuration(make_collector):
    collector = make_collector(
        DatabaseConfiguration={"ServerName": "MICROSOFT##WID", "IsUsingWindowsInternalDatabase": True},
        ServerConfiguration={"SyncFromMicrosoftUpdate": True, "TargetingMode": "Server"},
    )

    assert collector.get_database_configuration().is_using_windows_internal_database is True
    assert collector.get_configuration().targeting_mode == "Server"


def test_computer_groups(make_collector, raw_groups):
    collector = make_collector(ComputerGroups=raw_groups)

    groups = collector.get_computer_groups()

    assert [g.name for g in groups] == ["All Computers", "Servers"]
    assert all(isinstance(g, ComputerGroup) for g in groups)
    assert groups[0].computer_targets_with_update_errors_count == 1


def test_null_group_entries_are_dropped(make_collector, raw_groups):
    collector = make_collector(ComputerGroups=[None, raw_groups[1], None])

    groups = collector.get_computer_groups()

    assert [g.name for g in groups] == ["Servers"]


def test_single_group_object_is_wrapped(make_collector, raw_groups):
    """ConvertTo-Json may print a lone group as an object instead of an array."""
    collector = make_collector(ComputerGroups=raw_groups[1])

    assert [g.name for g in collector.get_computer_groups()] == ["Servers"]


def test_no_groups(make_collector):
    assert make_collector(ComputerGroups=[]).get_computer_groups() == []
    assert make_collector(ComputerGroups="null").get_computer_groups() == []


def test_last_synchronization(make_collector):
    collector = make_collector(LastSynchronizationInfo={
        "StartTime": "2024-05-01T02:00:00Z",
        "EndTime": "2024-05-01T02:12:31Z",
        "Result": "Succeeded",
        "NewUpdates": 12,
    })

    last = collector.get_last_synchronization(now=datetime(2024, 5, 11, 1, 0, tzinfo=timezone.utc))

    assert last.get_property("NotSyncInDays") == 9
    assert last.get_property("NewUpdates") == 12


def test_never_synchronized(make_collector):
    collector = make_collector(LastSynchronizationInfo="null")

    assert collector.get_last_synchronization() is None


def test_synchronization_status(make_collector):
    collector = make_collector(SynchronizationStatus={
        "Status": "Running",
        "Phase": "Updates",
        "TotalItems": 400,
        "ProcessedItems": 100,
    })

    status = collector.get_synchronization_status()

    assert status.status == "Running"
    assert status.get_property("ProcessedItems") == 100


def test_empty_output_is_connection_failure(make_collector):
    collector = make_collector(ServerInfo="  \r\n")

    with pytest.raises(WsusConnectionError):
        collector.get_server_info()


def test_invalid_json_is_connection_failure(make_collector):
    collector = make_collector(ServerInfo="Exception calling GetUpdateServer")

    with pytest.raises(WsusConnectionError, match="Invalid response"):
        collector.get_server_info()


def test_unexpected_data_is_connection_failure(make_collector):
    collector = make_collector(ComputerGroups=[{"Name": "no id"}])

    with pytest.raises(WsusConnectionError, match="ComputerGroup"):
        collector.get_computer_groups()


def test_query_script_quotes_server_name():
    script = build_query_script("ServerInfo", WsusServerConfig(server="o'brien", port=8531, use_ssl=True))

    assert "GetUpdateServer('o''brien', $true, 8531)" in script
    assert script.rstrip().endswith("ConvertTo-Json -InputObject $data -Depth 10 -Compress")
    assert script.lstrip().startswith("[Console]::OutputEncoding")


def test_unknown_query():
    with pytest.raises(KeyError):
        build_query_script("Updates", WsusServerConfig())


@pytest.mark.parametrize("kind,transport_class", [
    ("local", LocalTransport),
    ("winrm", WinRMTransport),
    ("ssh", SSHTransport),
])
def test_create_transport(kind, transport_class, logger):
    config = TransportConfig(kind=kind, host=None if kind == "local" else "wsus01")

    assert isinstance(create_transport(config, logger), transport_class)


def test_byte_order_mark_is_ignored(make_collector):
    collector = make_collector(ServerInfo='\ufeff{"Name":"wsus01"}')

    assert collector.get_server_info().name == "wsus01"


class TestNestedProperties:
    """Two-segment keys over nested objects as the query script writes them."""

    SERVER_INFO = {
        "Name": "wsus01",
        "Version": {
            "Major": 10, "Minor": 0, "Build": 17763, "Revision": 678,
            "MajorRevision": 0, "MinorRevision": 678,
        },
        "ServerProtocolVersion": {
            "Major": 1, "Minor": 20, "Build": -1, "Revision": -1,
            "MajorRevision": -1, "MinorRevision": -1,
        },
        "PortNumber": 8530,
    }

    @pytest.fixture
    def dispatcher(self, make_collector, logger):
        collector = make_collector(
            ServerInfo=self.SERVER_INFO,
            ServerConfiguration={
                "TargetingMode": "Client",
                "ProxyServerCredential": {"UserName": "proxy", "Domain": "CORP"},
                "LanguagesToSynchronize": ["en", "ru"],
                "EmailNotificationSettings": {
                    "LastChanged": "2024-05-01T10:00:00Z",
                    "SmtpHostName": "smtp.corp.local",
                },
            },
        )
        return ActionDispatcher(collector, logger=logger)

    def test_version_component(self, dispatcher):
        assert dispatcher.run(Action.GET, ObjectKind.INFO, key="Version.Major") == "10"
        assert dispatcher.run(Action.GET, ObjectKind.INFO, key="version.build") == "17763"

    def test_version_as_a_whole(self, dispatcher):
        assert dispatcher.run(Action.GET, ObjectKind.INFO, key="Version") == "10.0.17763.678"
        assert dispatcher.run(Action.GET, ObjectKind.INFO, key="ServerProtocolVersion") == "1.20"

    def test_nested_configuration_object(self, dispatcher):
        result = dispatcher.run(Action.GET, ObjectKind.CONFIGURATION, key="ProxyServerCredential.UserName")

        assert result == "proxy"

    def test_nested_timestamp(self, dispatcher):
        result = dispatcher.run(
            Action.GET, ObjectKind.CONFIGURATION, key="EmailNotificationSettings.LastChanged"
        )

        assert result == "1714557600"

    def test_missing_nested_property(self, dispatcher):
        assert dispatcher.run(Action.GET, ObjectKind.CONFIGURATION, key="ProxyServerCredential.Password") == ""

    def test_dotted_version_string(self, make_collector):
        info = make_collector(ServerInfo={"Version": "10.0.17763.678"}).get_server_info()

        assert info.get_property("Version").major == 10
        assert str(info.version) == "10.0.17763.678"
