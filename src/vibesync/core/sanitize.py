"""
Removal of machine-local fields from plugin and marketplace registries.

Every function returns a deep, independent copy; the input is never mutated,
so the same object can be exported and still serve as a local comparison
baseline.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

# Machine-local keys that must never leave the machine
PLUGIN_LOCAL_FIELDS = ('installPath',)
MARKETPLACE_LOCAL_FIELDS = ('installLocation',)

PluginsData = Dict[str, Any]
MarketplacesData = Dict[str, Dict[str, Any]]


def _strip_fields(entry: Any, fields) -> None:
    if isinstance(entry, dict):
        for name in fields:
            entry.pop(name, None)


def sanitize_plugins(data: PluginsData) -> PluginsData:
    """Return a copy of the installed-plugin registry without install paths."""
    result = copy.deepcopy(data)
    plugins = result.get('plugins') if isinstance(result, dict) else None
    if not isinstance(plugins, dict):
        return result

    for entries in plugins.values():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            _strip_fields(entry, PLUGIN_LOCAL_FIELDS)
    return result


def sanitize_marketplaces(data: MarketplacesData) -> MarketplacesData:
    """Return a copy of the marketplace registry without install locations."""
    result = copy.deepcopy(data)
    if not isinstance(result, dict):
        return result

    for entry in result.values():
        _strip_fields(entry, MARKETPLACE_LOCAL_FIELDS)
    return result


def mcp_servers_have_env(servers: Optional[Mapping[str, Any]]) -> bool:
    """Report whether any MCP server record carries a populated ``env`` field.

    ``env`` usually holds API keys and tokens. Non-mapping server values
    count as having no ``env``.
    """
    if not servers:
        return False
    return any(
        isinstance(server, Mapping) and bool(server.get('env'))
        for server in servers.values()
    )


def servers_with_env(servers: Optional[Mapping[str, Any]]) -> List[str]:
    """Names of the MCP servers that carry a populated ``env`` field."""
    if not servers:
        return []
    return [
        name for name, server in servers.items()
        if isinstance(server, Mapping) and server.get('env')
    ]
