"""
Biomarker domain model.

Defines the BiomarkerSet dataclass holding the ten PhenoAge inputs, the static
table of accepted physiological ranges, and the fail-fast validator.
"""

import math
import numbers
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class BiomarkerBound:
    """
    Accepted closed interval for one biomarker.

    Attributes:
        attribute: BiomarkerSet attribute name (e.g. 'mean_cell_volume').
        key: Wire name used by callers (e.g. 'meanCellVolume').
        min_value: Smallest accepted value (inclusive).
        max_value: Largest accepted value (inclusive).
        unit: Documented unit the value must already be expressed in.
        description: Human-readable label for help texts.
    """

    attribute: str
    key: str
    min_value: float
    max_value: float
    unit: str
    description: str


# Checked in this order; the first violation wins.
BIOMARKER_BOUNDS: tuple[BiomarkerBound, ...] = (
    BiomarkerBound("age", "age", 0, 120, "years", "Chronological age in years"),
    BiomarkerBound("albumin", "albumin", 1, 6, "g/dL", "Albumin in g/dL"),
    BiomarkerBound("creatinine", "creatinine", 0.1, 15, "mg/dL", "Creatinine in mg/dL"),
    BiomarkerBound("glucose", "glucose", 30, 500, "mg/dL", "Glucose in mg/dL (fasting)"),
    BiomarkerBound("crp", "crp", 0.01, 100, "mg/L", "C-reactive protein (CRP) in mg/L"),
    BiomarkerBound("lymphocyte_percent", "lymphocytePercent", 0, 100, "%", "Lymphocyte percentage"),
    BiomarkerBound("mean_cell_volume", "meanCellVolume", 50, 150, "fL", "Mean cell volume (MCV) in fL"),
    BiomarkerBound("red_cell_dist_width", "redCellDistWidth", 5, 30, "%", "Red cell distribution width (RDW) in %"),
    BiomarkerBound("alkaline_phosphatase", "alkalinePhosphatase", 10, 500, "U/L", "Alkaline phosphatase in U/L"),
    BiomarkerBound(
        "white_blood_cell_count",
        "whiteBloodCellCount",
        1,
        50,
        "1000 cells/μL",
        "White blood cell count in 1000 cells/μL",
    ),
)

BIOMARKER_KEYS: tuple[str, ...] = tuple(bound.key for bound in BIOMARKER_BOUNDS)


def _format_number(value: Any) -> str:
    # 1 rather than 1.0, like the numbers callers typed in
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return f"{value:g}"
    return repr(value)


class BiomarkerValidationError(ValueError):
    """
    Raised when a biomarker is missing, not a finite number, or out of range.

    Carries the offending field so callers can point at the bad input.
    """

    def __init__(
        self,
        field: str,
        value: Any,
        min_value: float | None = None,
        max_value: float | None = None,
        unit: str | None = None,
    ):
        self.field = field
        self.value = value
        self.min_value = min_value
        self.max_value = max_value
        self.unit = unit
        if min_value is None:
            message = f"{field} must be a valid number"
        else:
            message = (
                f"{field} must be between {_format_number(min_value)} and "
                f"{_format_number(max_value)} {unit}. Got: {_format_number(value)}"
            )
        super().__init__(message)


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class BiomarkerSet:
    """
    One patient's PhenoAge inputs, in the units listed in BIOMARKER_BOUNDS.

    Construction does not validate; run `validate_biomarkers` before estimating.
    """

    age: float
    albumin: float
    creatinine: float
    glucose: float
    crp: float
    lymphocyte_percent: float
    mean_cell_volume: float
    red_cell_dist_width: float
    alkaline_phosphatase: float
    white_blood_cell_count: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BiomarkerSet":
        """
        Build a BiomarkerSet from caller data keyed by wire names (camelCase)
        or attribute names (snake_case).

        Numbers are cast to float; anything else (missing values included, as
        None) is kept as given so `validate_biomarkers` reports it in order.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"biomarkers must be a mapping, got {type(data).__name__}")
        values = {}
        for bound in BIOMARKER_BOUNDS:
            if bound.key in data:
                value = data[bound.key]
            else:
                value = data.get(bound.attribute)
            if isinstance(value, numbers.Real) and not isinstance(value, bool):
                value = float(value)
            values[bound.attribute] = value
        return cls(**values)

    def to_dict(self) -> dict[str, float]:
        """Serialize using wire names, in table order."""
        return {bound.key: getattr(self, bound.attribute) for bound in BIOMARKER_BOUNDS}


def validate_biomarkers(biomarkers: BiomarkerSet) -> None:
    """
    Fail fast on the first biomarker that is not a finite number inside its
    accepted closed interval.
    """
    for bound in BIOMARKER_BOUNDS:
        value = getattr(biomarkers, bound.attribute)
        if not _is_finite_number(value):
            raise BiomarkerValidationError(bound.key, value)
        if value < bound.min_value or value > bound.max_value:
            raise BiomarkerValidationError(
                bound.key, value, bound.min_value, bound.max_value, bound.unit
            )

