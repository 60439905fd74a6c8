"""
MCP stdio server exposing the PhenoAge tools.

stdout carries the protocol; all logging goes to stderr.
"""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .tools import (
    CALCULATE_TOOL,
    RANGES_TOOL,
    TOOL_DESCRIPTIONS,
    call_tool,
    render_payload,
)

SERVER_NAME = "mcp-phenoage-clock"
CITATION = (
    "Based on: Levine et al. (2018) "
    "'An epigenetic biomarker of aging for lifespan and healthspan'"
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    SERVER_NAME,
    instructions="MCP server for calculating biological age using the Morgan Levine PhenoAge clock",
)


@mcp.tool(name=CALCULATE_TOOL, description=TOOL_DESCRIPTIONS[CALCULATE_TOOL])
def calculate_phenoage(biomarkers: Any = None) -> str:
    """
    biomarkers: age (years), albumin (g/dL), creatinine (mg/dL), glucose
    (mg/dL, fasting), crp (mg/L), lymphocytePercent (%), meanCellVolume (fL),
    redCellDistWidth (%), alkalinePhosphatase (U/L), whiteBloodCellCount
    (1000 cells/μL).

    Left untyped so that a list or a string still gets a failure payload
    instead of an argument error from the server.
    """
    return render_payload(call_tool(CALCULATE_TOOL, {"biomarkers": biomarkers}))


@mcp.tool(name=RANGES_TOOL, description=TOOL_DESCRIPTIONS[RANGES_TOOL])
def get_biomarker_ranges() -> str:
    return render_payload(call_tool(RANGES_TOOL))


def run_server() -> None:
    logger.info("PhenoAge Clock MCP server running")
    logger.info(CITATION)
    mcp.run(transport="stdio")
