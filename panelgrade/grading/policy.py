"""
Grading policy constants.

The 70/30 split between the title-defense and individual rubrics and
the passing score of 70 are fixed by the defense guidelines. They are
bundled into a policy object so a program with different rules can pass
its own values through configuration.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from panelgrade.config import Settings

TITLE_DEFENSE_SHARE = 70.0
INDIVIDUAL_SHARE = 30.0
PASSING_SCORE = 70.0


class GradingPolicy(BaseModel):
    """Weights and cutoff applied by the aggregation core."""

    model_config = ConfigDict(frozen=True)

    title_defense_share: float = Field(default=TITLE_DEFENSE_SHARE, ge=0, le=100)
    individual_share: float = Field(default=INDIVIDUAL_SHARE, ge=0, le=100)
    passing_score: float = Field(default=PASSING_SCORE, ge=0, le=100)

    @model_validator(mode="after")
    def validate_shares(self) -> "GradingPolicy":
        """A panel's grade is worth exactly 100 points."""
        if abs(self.title_defense_share + self.individual_share - 100.0) > 1e-9:
            raise ValueError("title_defense_share and individual_share must sum to 100")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "GradingPolicy":
        """Build the policy from application settings."""
        return cls(
            title_defense_share=settings.title_defense_share,
            individual_share=settings.individual_share,
            passing_score=settings.passing_score,
        )


DEFAULT_POLICY = GradingPolicy()
