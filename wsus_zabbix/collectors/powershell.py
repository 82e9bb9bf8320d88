"""PowerShell query scripts for the WSUS administration API."""

import base64

from ..config.models import WsusServerConfig

MAX_NESTING = 2
# Deep enough for group -> Summaries -> summary plus MAX_NESTING levels.
JSON_DEPTH = 10

# Administration objects are flattened into ordered hashtables. DateTime
# values become ISO-8601 strings; Guid, Enum, Uri and TimeSpan become strings;
# nested objects (Version included) become nested hashtables down to
# MAX_NESTING levels, below which they are rendered with ToString(). The
# UpdateServer back-reference is skipped.
# stdout is switched to UTF-8 first: redirected output otherwise uses the OEM
# console codepage.
_PROLOGUE = r"""
[Console]::OutputEncoding = New-Object System.Text.UTF8Encoding $false
$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'
[void][Reflection.Assembly]::LoadWithPartialName('Microsoft.UpdateServices.Administration')

$MaxNesting = {max_nesting}
$SkipProperties = @('UpdateServer')

function ConvertTo-WsusValue {
    param($Value, [int]$Nesting)
    if ($null -eq $Value) { return $null }
    if ($Value -is [DateTime]) {
        return $Value.ToString('yyyy-MM-ddTHH:mm:ssK', [Globalization.CultureInfo]::InvariantCulture)
    }
    if ($Value -is [Guid] -or $Value -is [Enum] -or $Value -is [Uri] -or $Value -is [TimeSpan]) {
        return $Value.ToString()
    }
    if ($Value -is [string] -or $Value -is [ValueType]) { return $Value }
    if ($Nesting -ge $MaxNesting) { return $Value.ToString() }
    if ($Value -is [Collections.IDictionary]) {
        $nested = [ordered]@{}
        foreach ($key in $Value.Keys) { $nested[[string]$key] = ConvertTo-WsusValue $Value[$key] ($Nesting + 1) }
        return $nested
    }
    if ($Value -is [Collections.IEnumerable]) {
        return ,@($Value | ForEach-Object { ConvertTo-WsusValue $_ ($Nesting + 1) })
    }
    return ConvertTo-WsusPlain $Value ($Nesting + 1)
}

function ConvertTo-WsusPlain {
    param($InputObject, [int]$Nesting = 0)
    if ($null -eq $InputObject) { return $null }
    $result = [ordered]@{}
    foreach ($property in $InputObject.PSObject.Properties) {
        if ($SkipProperties -contains $property.Name) { continue }
        try { $value = $property.Value } catch { continue }
        $result[$property.Name] = ConvertTo-WsusValue $value $Nesting
    }
    $result
}

$wsus = [Microsoft.UpdateServices.Administration.AdminProxy]::GetUpdateServer('{server}', ${use_ssl}, {port})
"""

_EPILOGUE = r"""
ConvertTo-Json -InputObject $data -Depth {json_depth} -Compress
"""

QUERIES = {
    "ServerInfo": "$data = ConvertTo-WsusPlain $wsus",
    "ServerStatus": "$data = ConvertTo-WsusPlain $wsus.GetStatus()",
    "DatabaseConfiguration": "$data = ConvertTo-WsusPlain $wsus.GetDatabaseConfiguration()",
    "ServerConfiguration": "$data = ConvertTo-WsusPlain $wsus.GetConfiguration()",
    "ComputerGroups": r"""
$data = @($wsus.GetComputerTargetGroups() | ForEach-Object {
    $group = ConvertTo-WsusPlain $_
    $group['Summaries'] = @($_.GetTotalSummaryPerComputerTarget() | ForEach-Object { ConvertTo-WsusPlain $_ })
    $group
})""",
    "LastSynchronizationInfo": "$data = ConvertTo-WsusPlain $wsus.GetSubscription().GetLastSynchronizationInfo()",
    "SynchronizationStatus": r"""
$subscription = $wsus.GetSubscription()
$data = ConvertTo-WsusPlain $subscription.GetSynchronizationProgress()
if ($null -eq $data) { $data = [ordered]@{} }
$data['Status'] = $subscription.GetSynchronizationStatus().ToString()""",
}


def _quote(value: str) -> str:
    return value.replace("'", "''")


def build_query_script(query: str, wsus: WsusServerConfig) -> str:
    """
    Assemble the PowerShell script for one query.

    Args:
        query: Key of QUERIES
        wsus: WSUS endpoint configuration

    Returns:
        str: Complete script printing the result as JSON

    Raises:
        KeyError: If the query is unknown
    """
    prologue = (
        _PROLOGUE
        .replace("{server}", _quote(wsus.server))
        .replace("{use_ssl}", "true" if wsus.use_ssl else "false")
        .replace("{port}", str(wsus.port))
        .replace("{max_nesting}", str(MAX_NESTING))
    )
    epilogue = _EPILOGUE.replace("{json_depth}", str(JSON_DEPTH))
    return prologue + QUERIES[query] + "\n" + epilogue


def encode_command(script: str) -> str:
    """Base64 UTF-16LE encoding expected by powershell -EncodedCommand."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")
