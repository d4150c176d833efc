"""
Review context and context-dependent severity rules.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .severity import Severity


class ProjectType(str, Enum):
    """Licensing model of the project under review."""

    PROPRIETARY = "PROPRIETARY"
    OPEN_SOURCE = "OPEN_SOURCE"


class DeploymentContext(str, Enum):
    """Where the reviewed code runs."""

    PRODUCTION = "PRODUCTION"
    INTERNAL_TOOL = "INTERNAL_TOOL"


class RuleAction(str, Enum):
    """What a context rule does to the severity."""

    ESCALATE = "ESCALATE"
    DEESCALATE = "DEESCALATE"
    SET = "SET"  # force to target
    FLOOR = "FLOOR"  # raise to at least target


class ReviewContext(BaseModel):
    """Facts about the project that change how findings are triaged."""

    project_type: ProjectType = Field(
        default=ProjectType.PROPRIETARY, description="Licensing model"
    )
    deployment: DeploymentContext = Field(
        default=DeploymentContext.PRODUCTION, description="Deployment context"
    )
    agent_id: str = Field(
        default="checklist-reviewer",
        min_length=1,
        description="Agent id stamped on assembled findings",
    )


class ContextRule(BaseModel):
    """A row of the context-dependent severity table."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Rule name")
    categories: tuple[str, ...] = Field(
        default=(), description="Categories the rule applies to"
    )
    checkpoint_ids: tuple[str, ...] = Field(
        default=(), description="Checkpoint ids the rule applies to"
    )
    project_type: Optional[ProjectType] = Field(
        None, description="Only apply for this project type"
    )
    deployment: Optional[DeploymentContext] = Field(
        None, description="Only apply for this deployment context"
    )
    action: RuleAction = Field(..., description="Severity adjustment")
    steps: int = Field(default=1, ge=1, le=4, description="Levels to move")
    target: Optional[Severity] = Field(None, description="Target for SET and FLOOR")

    @field_validator("checkpoint_ids")
    @classmethod
    def normalise_ids(cls, v):
        return tuple(checkpoint_id.upper() for checkpoint_id in v)

    @model_validator(mode="after")
    def validate_target(self):
        """SET and FLOOR rules need a target severity."""
        if self.action in (RuleAction.SET, RuleAction.FLOOR) and self.target is None:
            raise ValueError(f"{self.action.value} rule requires a target severity")
        return self

    def matches(self, checkpoint_id: str, category: str, context: ReviewContext) -> bool:
        """Check whether this rule applies to a checkpoint in a context."""
        if self.categories or self.checkpoint_ids:
            in_category = category.lower() in {c.lower() for c in self.categories}
            in_ids = checkpoint_id.upper() in self.checkpoint_ids
            if not (in_category or in_ids):
                return False
        if self.project_type is not None and self.project_type != context.project_type:
            return False
        if self.deployment is not None and self.deployment != context.deployment:
            return False
        return True

    def apply(self, severity: Severity) -> Severity:
        """Return the adjusted severity."""
        if self.action == RuleAction.ESCALATE:
            return severity.escalate(self.steps)
        if self.action == RuleAction.DEESCALATE:
            return severity.deescalate(self.steps)
        if self.action == RuleAction.FLOOR:
            return max(severity, self.target)
        return self.target
