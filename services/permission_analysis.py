from typing import Optional
from loguru import logger
from config.settings import settings
from core.exceptions import UpstreamError, ValidationError
from core.risk_scorer import RiskScorer
from models.permissions import (FormatOptions, GroupPermissionInput, PermissionAnalysis,
                                RiskAssessment, RiskLevel)
from services.ai_narrative import PermissionNarrativeEngine, build_prompt

NO_PERMISSIONS_MESSAGE = "No permissions data provided"


class NarrativeFailed(UpstreamError):
    """Narrative generation failed after the score was computed."""

    def __init__(self, cause: UpstreamError, assessment: RiskAssessment):
        self.assessment = assessment
        super().__init__(cause.message, status_code=cause.status_code)


def apply_text_override(level: RiskLevel, text: str) -> RiskLevel:
    """Let the narrative push the label to an extreme, never to medium."""
    lowered = text.lower()
    if "high risk" in lowered:
        return RiskLevel.HIGH
    if "low risk" in lowered:
        return RiskLevel.LOW
    return level


class PermissionAnalysisService:
    def __init__(self, scorer: Optional[RiskScorer] = None,
                 narrative: Optional[PermissionNarrativeEngine] = None,
                 text_override: Optional[bool] = None):
        self.scorer = scorer or RiskScorer()
        self.narrative = narrative or PermissionNarrativeEngine()
        self.text_override = settings.RISK_TEXT_OVERRIDE if text_override is None else text_override

    def assess(self, groups: Optional[list[GroupPermissionInput]]) -> RiskAssessment:
        if not groups:
            raise ValidationError(NO_PERMISSIONS_MESSAGE)
        return self.scorer.score(groups)

    def analyze(self, groups: Optional[list[GroupPermissionInput]],
                options: Optional[FormatOptions] = None) -> PermissionAnalysis:
        assessment = self.assess(groups)
        logger.info(
            f"Scored {len(groups)} group(s): {assessment.risk_score:.1f} "
            f"({assessment.risk_level.value}), high risk: {list(assessment.high_risk_groups)}"
        )

        prompt = build_prompt(groups, assessment, options or FormatOptions())
        try:
            text = self.narrative.generate(prompt)
        except UpstreamError as e:
            raise NarrativeFailed(e, assessment) from e

        level = assessment.risk_level
        if self.text_override:
            level = apply_text_override(level, text)
            if level != assessment.risk_level:
                logger.info(f"Risk level overridden by analysis text: {level.value}")

        return PermissionAnalysis(
            analysis=text,
            risk_score=assessment.risk_score,
            risk_level=level,
            high_risk_groups=assessment.high_risk_groups,
        )
