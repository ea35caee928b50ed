from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from langchain_mcp_adapters.client import MultiServerMCPClient

from app_core.errors import ConfigurationError
from app_logging.activity_logger import ActivityLogger
from config.settings import Settings, settings as default_settings

logger = ActivityLogger("mcp_client_factory")


def _build_server_config(config: Settings) -> dict:
    """
    Server configuration for MultiServerMCPClient.

    Jira: uvx mcp-atlassian  (stdio transport, API-token auth)
    """
    return {
        "jira": {
            "command": "uvx",
            "args": ["mcp-atlassian"],
            "env": {
                "JIRA_URL": config.jira_url,
                "JIRA_USERNAME": config.jira_username,
                "JIRA_API_TOKEN": config.jira_api_token,
                **(
                    {"JIRA_PROJECTS_FILTER": config.jira_projects_filter}
                    if config.jira_projects_filter
                    else {}
                ),
            },
            "transport": "stdio",
        },
    }


@asynccontextmanager
async def get_mcp_client(config: Settings = default_settings) -> AsyncIterator[MultiServerMCPClient]:
    """
    Async context manager that starts the Jira MCP server subprocess and
    yields a connected MultiServerMCPClient.

    Usage:
        async with get_mcp_client() as client:
            tools = filter_jira_tools(await client.get_tools())
    """
    if not config.jira_url:
        raise ConfigurationError("Jira URL not configured")

    server_config = _build_server_config(config)
    logger.info("mcp_client_initializing", servers=list(server_config.keys()))

    client = MultiServerMCPClient(server_config)
    yield client
    logger.info("mcp_client_closed")


def filter_jira_tools(tools: list) -> list:
    """Return only Jira-related tools from the full tool list."""
    keywords = {"jira", "issue", "atlassian"}
    return [t for t in tools if any(kw in t.name.lower() for kw in keywords)]
