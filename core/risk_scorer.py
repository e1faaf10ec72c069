from dataclasses import dataclass

from models.permissions import GroupPermissionInput, RiskAssessment, RiskLevel


@dataclass(frozen=True)
class RiskFactors:
    delete: float = 3
    update: float = 2
    create: float = 1
    read: float = 0.5
    group_threshold: float = 50
    boost_per_group: float = 0.2
    high_threshold: float = 50
    medium_threshold: float = 25
    max_score: float = 100


DEFAULT_RISK_FACTORS = RiskFactors()


class RiskScorer:
    """Turns per-group CRUD counts into a 0-100 score and a risk label.

    A group whose weighted count is strictly above ``group_threshold`` is
    reported as high-risk, and every such group boosts the averaged score.
    """

    def __init__(self, factors: RiskFactors = DEFAULT_RISK_FACTORS):
        self.factors = factors

    def raw_score(self, group: GroupPermissionInput) -> float:
        counts = group.permission_counts
        f = self.factors
        return (f.delete * counts.delete + f.update * counts.update
                + f.create * counts.create + f.read * counts.read)

    def score(self, groups: list[GroupPermissionInput]) -> RiskAssessment:
        f = self.factors
        total = 0.0
        high_risk = []
        for group in groups:
            raw = self.raw_score(group)
            total += raw
            if raw > f.group_threshold:
                high_risk.append(group.group_name)

        n = len(groups) or 1
        boost = 1 + f.boost_per_group * len(high_risk)
        score = max(0.0, min(f.max_score, (total / n) * boost))
        return RiskAssessment(
            risk_score=score,
            risk_level=self._level(score),
            high_risk_groups=tuple(high_risk),
        )

    def _level(self, score: float) -> RiskLevel:
        if score >= self.factors.high_threshold: return RiskLevel.HIGH
        elif score < self.factors.medium_threshold: return RiskLevel.LOW
        else: return RiskLevel.MEDIUM
