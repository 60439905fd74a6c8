"""
Reference ranges for the nine PhenoAge blood biomarkers.

These are typical clinical reference intervals plus an "optimal" band, shown
to users next to their results. They are not the validation limits in
biomarkers.BIOMARKER_BOUNDS, which are much wider.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

_OPTIMAL_RANGE = re.compile(r"^\s*(?P<low>\d+(?:\.\d+)?)\s*-\s*(?P<high>\d+(?:\.\d+)?)\s*$")
_OPTIMAL_BELOW = re.compile(r"^\s*<\s*(?P<high>\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True)
class ReferenceRange:
    """
    Attributes:
        min_value: Lower end of the reference interval.
        max_value: Upper end of the reference interval.
        optimal: Optimal band as text, e.g. "4.0-5.0" or "<1.0".
        unit: Unit the interval is expressed in.
    """

    min_value: float
    max_value: float
    optimal: str
    unit: str

    def optimal_bounds(self) -> Tuple[Optional[float], float]:
        """
        Parse `optimal` into (low, high). "<x" has no lower bound.
        """
        m = _OPTIMAL_RANGE.match(self.optimal)
        if m:
            return float(m.group("low")), float(m.group("high"))
        m = _OPTIMAL_BELOW.match(self.optimal)
        if m:
            return None, float(m.group("high"))
        raise ValueError(f"Unrecognized optimal band: {self.optimal!r}")

    def to_dict(self) -> dict:
        return {
            "min": self.min_value,
            "max": self.max_value,
            "optimal": self.optimal,
            "unit": self.unit,
        }


REFERENCE_RANGES: Mapping[str, ReferenceRange] = MappingProxyType({
    "albumin": ReferenceRange(3.5, 5.0, "4.0-5.0", "g/dL"),
    "creatinine": ReferenceRange(0.6, 1.2, "0.6-1.0", "mg/dL"),
    "glucose": ReferenceRange(70, 100, "70-90", "mg/dL (fasting)"),
    "crp": ReferenceRange(0, 3.0, "<1.0", "mg/L"),
    "lymphocytePercent": ReferenceRange(20, 40, "25-35", "%"),
    "meanCellVolume": ReferenceRange(80, 100, "85-95", "fL"),
    "redCellDistWidth": ReferenceRange(11.5, 14.5, "11.5-13.0", "%"),
    "alkalinePhosphatase": ReferenceRange(44, 147, "44-100", "U/L"),
    "whiteBloodCellCount": ReferenceRange(4.5, 11.0, "4.5-7.5", "1000 cells/μL"),
})

RANGE_NOTES: Mapping[str, str] = MappingProxyType({
    "units": "Make sure to use the correct units for each biomarker",
    "fasting": "Glucose should be measured after fasting",
    "crp": "CRP is a marker of inflammation - lower is generally better",
})


def get_reference_ranges() -> dict[str, dict]:
    """Serialized copy of REFERENCE_RANGES (callers may mutate it freely)."""
    return {name: reference.to_dict() for name, reference in REFERENCE_RANGES.items()}
