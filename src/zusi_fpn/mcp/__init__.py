from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from zusi_fpn.application.fahrplan_service import FahrplanService
from zusi_fpn.mcp.tools import register_tools


def create_mcp_app() -> FastMCP:
    """Create and configure the FastMCP application with all services wired."""
    fahrplan_svc = FahrplanService()

    mcp = FastMCP("Zusi Fahrplan Generator", stateless_http=True)
    register_tools(mcp, fahrplan_svc)
    return mcp
