from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.odoo import GroupPermission, Faculty


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PermissionCount(BaseModel):
    """Number of models on which a group holds each CRUD right."""
    model_config = ConfigDict(frozen=True)

    create: int = 0
    read: int = 0
    update: int = 0
    delete: int = 0

    @field_validator("create", "read", "update", "delete", mode="before")
    @classmethod
    def _missing_is_zero(cls, value):
        return 0 if value is None else value

    def __add__(self, other: "PermissionCount") -> "PermissionCount":
        return PermissionCount(
            create=self.create + other.create,
            read=self.read + other.read,
            update=self.update + other.update,
            delete=self.delete + other.delete,
        )


class GroupPermissionInput(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    group_id: int = Field(alias="groupId")
    group_name: str = Field(alias="groupName")
    permission_counts: PermissionCount = Field(
        default_factory=PermissionCount, alias="permissionCounts")

    @field_validator("permission_counts", mode="before")
    @classmethod
    def _missing_counts(cls, value):
        return PermissionCount() if value is None else value


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    risk_score: float = Field(alias="riskScore")
    risk_level: RiskLevel = Field(alias="riskLevel")
    high_risk_groups: tuple[str, ...] = Field(default=(), alias="highRiskGroups")


class PermissionAnalysis(RiskAssessment):
    analysis: str


class FormatOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    concise: bool = False
    avoid_markdown: bool = Field(default=False, alias="avoidMarkdown")


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_permissions_data: Optional[list[GroupPermissionInput]] = Field(
        default=None, alias="groupPermissionsData")
    format_options: FormatOptions = Field(
        default_factory=FormatOptions, alias="formatOptions")


class GroupReview(BaseModel):
    """Access rows of one group and their CRUD summary."""
    model_config = ConfigDict(populate_by_name=True)

    group_id: int = Field(alias="groupId")
    group_name: str = Field(alias="groupName")
    permissions: list[GroupPermission] = Field(default_factory=list)
    summary: PermissionCount = Field(default_factory=PermissionCount)
    error: Optional[str] = None


class FacultyReview(BaseModel):
    faculty: Faculty
    groups: list[GroupReview] = Field(default_factory=list)
    total: PermissionCount = Field(default_factory=PermissionCount)
