import dataclasses
import math

import pytest

from phenoage import estimator
from phenoage.biomarkers import BiomarkerSet, BiomarkerValidationError
from phenoage.estimator import (
    CLAMP_WARNING,
    MAX_MORTALITY,
    MIN_MORTALITY,
    PhenoAgeComputationError,
    calculate_pheno_age,
    clamp_mortality,
    estimate_pheno_age,
    linear_predictor,
    mortality_score,
    pheno_age_from_mortality,
    round_half_away,
)
from phenoage.interpretation import Interpretation


def _textbook_pheno_age(v: dict) -> tuple[float, float]:
    """Straight transcription of the published formula, no clamping."""
    xb = (
        -19.907
        - 0.0336 * v["albumin"]
        + 0.0095 * v["creatinine"]
        + 0.1953 * v["glucose"]
        + 0.0954 * math.log(v["crp"])
        - 0.0120 * v["lymphocytePercent"]
        + 0.0268 * v["meanCellVolume"]
        + 0.3306 * v["redCellDistWidth"]
        + 0.00188 * v["alkalinePhosphatase"]
        + 0.0554 * v["whiteBloodCellCount"]
        + 0.0804 * v["age"]
    )
    gamma = 0.0076927
    mortality = 1 - math.exp(-math.exp(xb) * (math.exp(120 * gamma) - 1) / gamma)
    pheno_age = 141.50225 + math.log(-0.00553 * math.log(1 - mortality)) / 0.090165
    return mortality, pheno_age


def test_reference_panel_saturates_and_is_clamped(reference_biomarkers):
    """
    In the documented units the reference panel gives xb ~ 6.74, far past the
    point where the mortality score rounds to 1.0.
    """
    assert linear_predictor(reference_biomarkers) == pytest.approx(6.736184, abs=1e-5)

    result = calculate_pheno_age(reference_biomarkers)
    assert result.was_clamped is True
    assert result.warning == CLAMP_WARNING
    assert result.pheno_age == 113.0
    assert result.age_difference == 68.0
    assert result.mortality_score == 1.0
    assert result.interpretation is Interpretation.SIGNIFICANTLY_OLDER


def test_unclamped_panel_matches_formula(unclamped_values, unclamped_biomarkers):
    expected_mortality, expected_age = _textbook_pheno_age(unclamped_values)
    assert MIN_MORTALITY < expected_mortality < MAX_MORTALITY

    result = calculate_pheno_age(unclamped_biomarkers)
    assert result.was_clamped is False
    assert result.warning is None
    assert "wasClamped" not in result.to_dict()
    assert result.pheno_age == pytest.approx(expected_age, abs=0.05 + 1e-9)
    assert result.mortality_score == pytest.approx(expected_mortality, abs=0.0005 + 1e-9)
    assert result.age_difference == pytest.approx(
        expected_age - unclamped_values["age"], abs=0.05 + 1e-9
    )


def test_results_are_deterministic(reference_biomarkers, unclamped_biomarkers):
    for biomarkers in (reference_biomarkers, unclamped_biomarkers):
        first = calculate_pheno_age(biomarkers)
        second = calculate_pheno_age(BiomarkerSet.from_mapping(biomarkers.to_dict()))
        assert first == second
        assert first.to_dict() == second.to_dict()


def test_age_increases_xb_and_never_lowers_mortality(unclamped_biomarkers):
    previous_xb = None
    previous_score = None
    for age in range(20, 121, 10):
        biomarkers = dataclasses.replace(unclamped_biomarkers, age=float(age))
        xb = linear_predictor(biomarkers)
        score = mortality_score(xb)
        if previous_xb is not None:
            assert xb > previous_xb
            assert score >= previous_score
        previous_xb, previous_score = xb, score


def test_extreme_panel_is_clamped_not_rejected():
    extreme = BiomarkerSet.from_mapping(
        {
            "age": 120,
            "albumin": 1,
            "creatinine": 15,
            "glucose": 500,
            "crp": 100,
            "lymphocytePercent": 0,
            "meanCellVolume": 150,
            "redCellDistWidth": 30,
            "alkalinePhosphatase": 500,
            "whiteBloodCellCount": 50,
        }
    )
    result = calculate_pheno_age(extreme)
    assert result.was_clamped is True
    assert math.isfinite(result.pheno_age)
    assert result.pheno_age == 113.0
    assert result.age_difference == -7.0
    assert result.to_dict()["wasClamped"] is True


def test_low_saturation_is_clamped_when_called_directly(unclamped_biomarkers):
    """Unvalidated inputs can push the score below the lower clamp."""
    result = estimate_pheno_age(dataclasses.replace(unclamped_biomarkers, glucose=-100.0))
    assert result.was_clamped is True
    assert result.mortality_score == 0.0
    assert math.isfinite(result.pheno_age)


def test_calculate_validates_before_estimating(reference_biomarkers):
    with pytest.raises(BiomarkerValidationError):
        calculate_pheno_age(dataclasses.replace(reference_biomarkers, glucose=29.9))


@pytest.mark.parametrize("crp", [0.0, -1.0])
def test_non_positive_crp_is_a_computation_error(reference_biomarkers, crp):
    with pytest.raises(PhenoAgeComputationError):
        estimate_pheno_age(dataclasses.replace(reference_biomarkers, crp=crp))


@pytest.mark.parametrize("age", [math.nan, math.inf])
def test_non_finite_xb_is_a_computation_error(reference_biomarkers, age):
    with pytest.raises(PhenoAgeComputationError, match="extreme biomarker combinations"):
        estimate_pheno_age(dataclasses.replace(reference_biomarkers, age=age))


def test_non_numeric_value_is_a_computation_error(reference_biomarkers):
    with pytest.raises(PhenoAgeComputationError):
        estimate_pheno_age(dataclasses.replace(reference_biomarkers, albumin="high"))


def test_unclamped_score_saturates_on_overflow():
    assert mortality_score(1000.0) == 1.0
    assert mortality_score(-1000.0) == 0.0


@pytest.mark.parametrize(
    "score, expected",
    [
        (0.5, (0.5, False)),
        (MIN_MORTALITY, (MIN_MORTALITY, False)),
        (MAX_MORTALITY, (MAX_MORTALITY, False)),
        (1.0, (MAX_MORTALITY, True)),
        (0.0, (MIN_MORTALITY, True)),
    ],
)
def test_clamp_mortality(score, expected):
    assert clamp_mortality(score) == expected


def test_unclamped_score_of_one_cannot_be_inverted():
    with pytest.raises(PhenoAgeComputationError, match="extreme biomarker combinations"):
        pheno_age_from_mortality(1.0)


def test_upper_clamp_gives_fixed_pheno_age():
    assert pheno_age_from_mortality(MAX_MORTALITY) == pytest.approx(112.9793, abs=1e-3)


@pytest.mark.parametrize(
    "value, places, expected",
    [
        (2.25, 1, 2.3),
        (-2.25, 1, -2.3),
        (2.675, 2, 2.68),
        (0.0005, 3, 0.001),
        (0.9994, 3, 0.999),
        (112.97926, 1, 113.0),
    ],
)
def test_round_half_away_from_zero(value, places, expected):
    assert round_half_away(value, places) == expected


def test_round_half_away_drops_negative_zero():
    rounded = round_half_away(-0.04, 1)
    assert rounded == 0.0
    assert math.copysign(1.0, rounded) == 1.0


@pytest.mark.parametrize(
    "raw_pheno_age, age_difference, band",
    [
        (20.04, -10.0, Interpretation.SIGNIFICANTLY_YOUNGER),
        (20.06, -9.9, Interpretation.YOUNGER),
        (34.96, 5.0, Interpretation.SLIGHTLY_OLDER),
        (35.04, 5.0, Interpretation.SLIGHTLY_OLDER),
        (35.06, 5.1, Interpretation.OLDER),
    ],
)
def test_band_follows_the_rounded_age_difference(
    monkeypatch, unclamped_biomarkers, raw_pheno_age, age_difference, band
):
    """A raw gap of -9.96 is reported as -10.0 and banded with it."""
    assert unclamped_biomarkers.age == 30.0
    monkeypatch.setattr(estimator, "pheno_age_from_mortality", lambda score: raw_pheno_age)
    result = estimate_pheno_age(unclamped_biomarkers)
    assert result.age_difference == age_difference
    assert result.interpretation is band
