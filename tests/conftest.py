import pytest

from phenoage.biomarkers import BiomarkerSet


@pytest.fixture
def reference_values() -> dict:
    """
    A typical adult panel in the documented units (wire keys).
    With the fixed coefficients it saturates the mortality score.
    """
    return {
        "age": 45,
        "albumin": 4.2,
        "creatinine": 0.9,
        "glucose": 85,
        "crp": 0.5,
        "lymphocytePercent": 30,
        "meanCellVolume": 89,
        "redCellDistWidth": 12.5,
        "alkalinePhosphatase": 65,
        "whiteBloodCellCount": 6.2,
    }


@pytest.fixture
def unclamped_values(reference_values) -> dict:
    """
    Low glucose and a younger age keep xb near -3.27, so the mortality
    score (~0.9994) stays inside the clamp interval.
    """
    return {**reference_values, "age": 30, "albumin": 4.5, "creatinine": 0.8, "glucose": 40}


@pytest.fixture
def reference_biomarkers(reference_values) -> BiomarkerSet:
    return BiomarkerSet.from_mapping(reference_values)


@pytest.fixture
def unclamped_biomarkers(unclamped_values) -> BiomarkerSet:
    return BiomarkerSet.from_mapping(unclamped_values)
