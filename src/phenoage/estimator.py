"""
Phenotypic age estimator.

Implements Levine's PhenoAge:
  Levine et al. (2018) "An epigenetic biomarker of aging for lifespan and healthspan"

Pipeline for one BiomarkerSet:
1) linear predictor xb from fixed regression coefficients
2) Gompertz transform of xb into a mortality score
3) clamp the score into [MIN_MORTALITY, MAX_MORTALITY] so the logarithms below
   stay defined, remembering whether the clamp fired
4) invert the score into a phenotypic age
5) round (half away from zero) and classify the age gap

`calculate_pheno_age` is the public request path and validates first;
`estimate_pheno_age` assumes nothing and guards its own arithmetic.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from .biomarkers import BiomarkerSet, validate_biomarkers
from .interpretation import Interpretation

logger = logging.getLogger(__name__)

# Regression coefficients for xb (intercept first)
INTERCEPT = -19.907
COEFFICIENTS = {
    "albumin": -0.0336,
    "creatinine": 0.0095,
    "glucose": 0.1953,
    "crp": 0.0954,  # applied to ln(crp)
    "lymphocyte_percent": -0.0120,
    "mean_cell_volume": 0.0268,
    "red_cell_dist_width": 0.3306,
    "alkaline_phosphatase": 0.00188,
    "white_blood_cell_count": 0.0554,
    "age": 0.0804,
}

GAMMA = 0.0076927
HORIZON_MONTHS = 120

MIN_MORTALITY = 0.000001
MAX_MORTALITY = 0.999999

CLAMP_WARNING = (
    "Mortality score was at the mathematical limit and was adjusted to allow calculation"
)


class PhenoAgeComputationError(ArithmeticError):
    """Raised when no finite phenotypic age can be produced for the inputs."""


@dataclass(frozen=True)
class PhenoAgeResult:
    """
    Rounded outcome of one estimate.

    Attributes:
        pheno_age: Phenotypic age in years, one decimal.
        mortality_score: Clamped mortality score, three decimals.
        age_difference: pheno_age - chronological age, one decimal.
        interpretation: Band for age_difference.
        was_clamped: True if the mortality score hit the clamp limits.
    """

    pheno_age: float
    mortality_score: float
    age_difference: float
    interpretation: Interpretation
    was_clamped: bool = False

    @property
    def warning(self) -> str | None:
        return CLAMP_WARNING if self.was_clamped else None

    def to_dict(self) -> dict:
        out = {
            "phenoAge": self.pheno_age,
            "mortalityScore": self.mortality_score,
            "ageDifference": self.age_difference,
            "interpretation": self.interpretation.message,
        }
        if self.was_clamped:
            out["wasClamped"] = True
        return out


def round_half_away(value: float, places: int) -> float:
    """
    Round to `places` decimals, ties away from zero (2.25 -> 2.3, -2.25 -> -2.3).
    Works on the shortest repr of the float so 2.675 rounds to 2.68.
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    # no negative zero
    return rounded + 0.0


def linear_predictor(biomarkers: BiomarkerSet) -> float:
    try:
        log_crp = math.log(biomarkers.crp)
    except (ValueError, TypeError) as e:
        raise PhenoAgeComputationError(
            f"Cannot take the logarithm of crp={biomarkers.crp!r}: {e}"
        ) from e

    xb = INTERCEPT
    try:
        for attribute, coefficient in COEFFICIENTS.items():
            value = log_crp if attribute == "crp" else getattr(biomarkers, attribute)
            xb += coefficient * value
    except TypeError as e:
        raise PhenoAgeComputationError(f"Non-numeric biomarker value: {e}") from e

    if not math.isfinite(xb):
        raise PhenoAgeComputationError(
            "PhenoAge calculation resulted in invalid value. "
            "This can occur with extreme biomarker combinations."
        )
    return xb


def mortality_score(xb: float) -> float:
    """Unclamped Gompertz mortality score for linear predictor xb."""
    try:
        hazard = math.exp(xb)
    except OverflowError:
        # saturates: exp(-inf) below is 0, the score is 1
        hazard = math.inf
    scale = (math.exp(HORIZON_MONTHS * GAMMA) - 1) / GAMMA
    return 1 - math.exp(-hazard * scale)


def clamp_mortality(score: float) -> tuple[float, bool]:
    """Return (clamped score, whether clamping changed it)."""
    clamped = max(MIN_MORTALITY, min(MAX_MORTALITY, score))
    return clamped, clamped != score


def pheno_age_from_mortality(score: float) -> float:
    try:
        pheno_age = 141.50225 + math.log(-0.00553 * math.log(1 - score)) / 0.090165
    except (ValueError, OverflowError) as e:
        raise PhenoAgeComputationError(
            f"PhenoAge calculation error: {e}. "
            "This can occur with extreme biomarker combinations."
        ) from e
    if not math.isfinite(pheno_age):
        raise PhenoAgeComputationError(
            "PhenoAge calculation error: PhenoAge calculation resulted in invalid value. "
            "This can occur with extreme biomarker combinations."
        )
    return pheno_age


def estimate_pheno_age(biomarkers: BiomarkerSet) -> PhenoAgeResult:
    """
    Run the formula on `biomarkers` without validating ranges first.
    Raises PhenoAgeComputationError when no finite result exists.
    """
    xb = linear_predictor(biomarkers)
    raw_score = mortality_score(xb)
    score, was_clamped = clamp_mortality(raw_score)
    logger.debug(f"xb={xb!r} mortality_raw={raw_score!r} clamped={was_clamped}")
    if was_clamped:
        logger.warning(f"Mortality score {raw_score!r} clamped to {score!r}")

    pheno_age = pheno_age_from_mortality(score)
    age_difference = round_half_away(pheno_age - biomarkers.age, 1)

    return PhenoAgeResult(
        pheno_age=round_half_away(pheno_age, 1),
        mortality_score=round_half_away(score, 3),
        age_difference=age_difference,
        interpretation=Interpretation.from_age_difference(age_difference),
        was_clamped=was_clamped,
    )


def calculate_pheno_age(biomarkers: BiomarkerSet) -> PhenoAgeResult:
    """
    Validate `biomarkers`, then estimate.

    Raises BiomarkerValidationError for the first out-of-range field and
    PhenoAgeComputationError if the formula cannot produce a finite age.
    """
    validate_biomarkers(biomarkers)
    return estimate_pheno_age(biomarkers)
