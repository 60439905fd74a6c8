"""
Interpretation bands for the gap between phenotypic and chronological age.
"""

from enum import Enum


class Interpretation(Enum):
    """
    Six fixed bands, keyed by ageDifference = phenoAge - chronological age.
    The member value is the text shown to the caller.
    """
    SIGNIFICANTLY_YOUNGER = (
        "Your biological age is significantly younger than your chronological age. "
        "Excellent health indicators!"
    )
    YOUNGER = (
        "Your biological age is younger than your chronological age. "
        "Good health indicators."
    )
    NORMAL = (
        "Your biological age is close to your chronological age. "
        "Normal aging."
    )
    SLIGHTLY_OLDER = (
        "Your biological age is slightly older than your chronological age. "
        "Consider lifestyle improvements."
    )
    OLDER = (
        "Your biological age is older than your chronological age. "
        "Health improvements recommended."
    )
    SIGNIFICANTLY_OLDER = (
        "Your biological age is significantly older than your chronological age. "
        "Consult healthcare provider."
    )

    @property
    def message(self) -> str:
        return self.value

    @classmethod
    def from_age_difference(cls, age_difference: float) -> "Interpretation":
        """
        Pick the first band whose inclusive upper bound is >= age_difference.
        A value equal to a bound belongs to that bound's band.
        """
        upper_bounds = (
            (-10.0, cls.SIGNIFICANTLY_YOUNGER),
            (-5.0, cls.YOUNGER),
            (2.0, cls.NORMAL),
            (5.0, cls.SLIGHTLY_OLDER),
            (10.0, cls.OLDER),
        )
        for upper_bound, band in upper_bounds:
            if age_difference <= upper_bound:
                return band
        return cls.SIGNIFICANTLY_OLDER
