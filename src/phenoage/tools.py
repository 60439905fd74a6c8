"""
Request/response tool operations.

Both the CLI and the MCP server call into these functions. They take already
deserialized arguments and return plain dict payloads:

  {"success": True, ...}              on success
  {"success": False, "error": "..."}  on any failure

Nothing raised by a request escapes `call_tool`, so a bad request never takes
the serving process down.
"""

import json
import logging
from typing import Any, Callable, Mapping, Optional

from .biomarkers import BiomarkerSet, BiomarkerValidationError
from .estimator import PhenoAgeComputationError, PhenoAgeResult, calculate_pheno_age
from .reference_ranges import RANGE_NOTES, get_reference_ranges

logger = logging.getLogger(__name__)

CALCULATE_TOOL = "calculate_phenoage"
RANGES_TOOL = "get_biomarker_ranges"

TOOL_DESCRIPTIONS = {
    CALCULATE_TOOL: (
        "Calculate biological age using the Morgan Levine PhenoAge clock based on blood biomarkers"
    ),
    RANGES_TOOL: "Get reference ranges and optimal values for PhenoAge biomarkers",
}


def failure(message: str) -> dict:
    return {"success": False, "error": message}


def _format_number(value: float) -> str:
    # 113 rather than 113.0
    return f"{value:g}"


def summarize(result: PhenoAgeResult) -> str:
    """One-line summary, e.g. "Your PhenoAge is 40.5 years (-4.5 years younger ...)"."""
    older = result.age_difference > 0
    return (
        f"Your PhenoAge is {_format_number(result.pheno_age)} years "
        f"({'+' if older else ''}{_format_number(result.age_difference)} years "
        f"{'older' if older else 'younger'} than your chronological age)"
    )


def calculate_phenoage(arguments: Optional[Mapping[str, Any]]) -> dict:
    """
    Validate the `biomarkers` argument, compute PhenoAge and build the payload.
    Validation and computation errors become failure payloads.
    """
    if not isinstance(arguments, Mapping) or arguments.get("biomarkers") is None:
        return failure("Missing biomarkers parameter")
    raw_biomarkers = arguments["biomarkers"]
    if not isinstance(raw_biomarkers, Mapping):
        return failure("biomarkers must be an object of biomarker values")

    try:
        biomarkers = BiomarkerSet.from_mapping(raw_biomarkers)
        result = calculate_pheno_age(biomarkers)
    except (BiomarkerValidationError, PhenoAgeComputationError) as e:
        logger.info(f"PhenoAge request rejected: {e}")
        return failure(str(e))

    payload = {
        "phenoAge": result.pheno_age,
        # echoed as given, so 45 stays 45 in the JSON
        "chronologicalAge": raw_biomarkers["age"],
        "ageDifference": result.age_difference,
        "mortalityScore": result.mortality_score,
        "interpretation": result.interpretation.message,
        "summary": summarize(result),
    }
    if result.was_clamped:
        payload["warning"] = result.warning
    return {"success": True, "result": payload}


def get_biomarker_ranges(arguments: Optional[Mapping[str, Any]] = None) -> dict:
    """Static reference ranges plus usage notes. Ignores any arguments."""
    return {
        "success": True,
        "ranges": get_reference_ranges(),
        "notes": dict(RANGE_NOTES),
    }


TOOL_HANDLERS: dict[str, Callable[[Optional[Mapping[str, Any]]], dict]] = {
    CALCULATE_TOOL: calculate_phenoage,
    RANGES_TOOL: get_biomarker_ranges,
}


def call_tool(name: str, arguments: Optional[Mapping[str, Any]] = None) -> dict:
    """
    Dispatch a tool call by name. Unknown tools and unexpected exceptions are
    reported as failure payloads.
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return failure(f"Unknown tool: {name}")
    try:
        return handler(arguments)
    except Exception as e:
        logger.exception(f"Tool {name!r} failed")
        return failure(str(e) or "Unknown error occurred")


def render_payload(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)
