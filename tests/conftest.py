"""Shared pytest configuration and fixtures."""

import json
import pytest
from unittest.mock import MagicMock

from wsus_zabbix.collectors.base import BaseTransport
from wsus_zabbix.collectors.objects import ComputerGroup, ComputerTargetSummary
from wsus_zabbix.collectors.wsus_collector import WsusCollector
from wsus_zabbix.config.models import TransportConfig, WsusServerConfig
from wsus_zabbix.utils.logger import setup_logger


# Text unique to each query body in the generated script.
QUERY_MARKERS = {
    "ServerInfo": "$data = ConvertTo-WsusPlain $wsus\n",
    "ServerStatus": "$wsus.GetStatus()",
    "DatabaseConfiguration": "$wsus.GetDatabaseConfiguration()",
    "ServerConfiguration": "$wsus.GetConfiguration()",
    "ComputerGroups": "$wsus.GetComputerTargetGroups()",
    "LastSynchronizationInfo": "GetLastSynchronizationInfo()",
    "SynchronizationStatus": "GetSynchronizationProgress()",
}


class FakeTransport(BaseTransport):
    """Transport returning canned query output keyed by query name."""

    def __init__(self, responses, logger):
        super().__init__(TransportConfig(), logger)
        self.responses = responses
        self.scripts = []

    def run_script(self, script: str) -> str:
        self.scripts.append(script)
        for query, output in self.responses.items():
            if QUERY_MARKERS[query] in script:
                return output
        raise AssertionError("Unexpected query script")


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def wsus_config():
    """Default WSUS endpoint configuration."""
    return WsusServerConfig(server="wsus01", port=8530)


@pytest.fixture
def make_summary():
    """Factory for computer-target summaries from WSUS-named counts."""
    def factory(**counts):
        return ComputerTargetSummary.model_validate(counts)
    return factory


@pytest.fixture
def raw_groups():
    """Computer groups as printed by the ComputerGroups query script."""
    return [
        {
            "Name": "All Computers",
            "Id": "a0a08746-4dbe-4a37-9adf-9e7652c0b421",
            "Summaries": [
                {"ComputerTargetId": "pc1", "FailedCount": 2, "NotInstalledCount": 1},
                {"ComputerTargetId": "pc2", "NotInstalledCount": 3, "DownloadedCount": 1},
                {"ComputerTargetId": "pc3", "InstalledCount": 40},
                {"ComputerTargetId": "pc4", "UnknownCount": 5, "InstalledCount": 10},
            ],
        },
        {
            "Name": "Servers",
            "Id": "b73ca6ed-5727-47f3-84de-015e03f6a88a",
            "Summaries": [
                {"ComputerTargetId": "srv1", "InstalledPendingRebootCount": 1},
            ],
        },
    ]


@pytest.fixture
def groups(raw_groups):
    """Parsed computer groups."""
    return [ComputerGroup.model_validate(item) for item in raw_groups]


@pytest.fixture
def make_collector(wsus_config, logger):
    """Factory for a WsusCollector backed by canned responses."""
    def factory(**responses):
        encoded = {
            query: value if isinstance(value, str) else json.dumps(value)
            for query, value in responses.items()
        }
        return WsusCollector(wsus_config, FakeTransport(encoded, logger), logger)
    return factory


@pytest.fixture
def mock_collector():
    """Collector mock with the WsusCollector interface."""
    return MagicMock(spec=WsusCollector)
