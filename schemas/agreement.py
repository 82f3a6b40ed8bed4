"""Founder-Cofounder Agreement schema.

The checklist a founder must work through before any code generation
stage is allowed to run.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class RiskLevel(str, Enum):
    """Severity of a risky choice."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ChecklistItem(BaseModel):
    """Critical requirement that must be completed before generation."""

    id: str = Field(..., description="Unique identifier (e.g., payment-provider)")
    category: str = Field(..., description="Category: scope, payments, legal, security, etc.")
    description: str = Field(..., description="What needs to be defined or finalized")
    evidence_requirement: str = Field(..., description="Evidence required to mark it complete")
    is_complete: bool = Field(False, description="Toggled by the founder only")


class OptionalItem(BaseModel):
    """Requirement that can safely evolve after launch."""

    id: str = Field(..., description="Unique identifier")
    category: str = Field(..., description="Category")
    description: str = Field(..., description="What the item covers")
    can_evolve_post_launch: bool = Field(True, description="Safe to defer past the MVP")
    is_included: bool = Field(False, description="Founder chose to include it now")


class RiskyChoice(BaseModel):
    """Decision with adverse consequences that needs explicit consent."""

    id: str = Field(..., description="Unique identifier")
    category: str = Field(..., description="Category")
    description: str = Field(..., description="The risk if proceeding as-is")
    risk_level: RiskLevel = Field(..., description="Severity")
    mitigation: str = Field(..., description="Suggested mitigation strategy")
    consent_language: str = Field("", description="Statement the founder agrees to")
    consent_granted: bool = Field(False, description="Set only by batch consent, never revoked")


class Agreement(BaseModel):
    """Complete Founder-Cofounder Agreement.

    ``is_complete`` is always derived from the items, never stored on its
    own. ``timestamp`` records the first time the agreement was reached and
    is never cleared afterwards.
    """

    critical_items: list[ChecklistItem] = Field(default_factory=list)
    optional_items: list[OptionalItem] = Field(default_factory=list)
    risky_choices: list[RiskyChoice] = Field(default_factory=list)

    risk_acknowledgments: list[str] = Field(
        default_factory=list,
        description="IDs of risky choices consented to, in consent order",
    )
    overall_readiness: int = Field(0, ge=0, le=100, description="Definition completeness 0-100")
    recommended_action: str = Field("", description="Next step for the founder")
    timestamp: datetime | None = Field(None, description="When agreement was first reached")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_complete(self) -> bool:
        return all(item.is_complete for item in self.critical_items) and all(
            risk.consent_granted for risk in self.risky_choices
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def founder_choices(self) -> list[str]:
        return [item.id for item in self.optional_items if item.is_included]

    def pending_risks(self) -> list[RiskyChoice]:
        """Risky choices still waiting for consent."""
        return [risk for risk in self.risky_choices if not risk.consent_granted]

    def incomplete_items(self) -> list[ChecklistItem]:
        """Critical items not yet completed."""
        return [item for item in self.critical_items if not item.is_complete]

    def snapshot(self) -> dict:
        """Compact summary handed to the assembly stage."""
        return {
            "is_complete": self.is_complete,
            "critical_completed": len(self.critical_items) - len(self.incomplete_items()),
            "critical_total": len(self.critical_items),
            "acknowledged_risks": list(self.risk_acknowledgments),
            "founder_choices": self.founder_choices,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class AgreementEvaluation(BaseModel):
    """Proposed initial shape of an agreement, produced by the evaluator."""

    critical_items: list[ChecklistItem] = Field(default_factory=list)
    optional_items: list[OptionalItem] = Field(default_factory=list)
    risky_choices: list[RiskyChoice] = Field(default_factory=list)
    overall_readiness: int = Field(0, ge=0, le=100)
    recommended_action: str = Field("")
    data_supplied: bool = Field(True, description="False when upstream data was absent/malformed")

    def to_agreement(self) -> Agreement:
        """Build a fresh Agreement from this proposal."""
        return Agreement(
            critical_items=[item.model_copy() for item in self.critical_items],
            optional_items=[item.model_copy() for item in self.optional_items],
            risky_choices=[risk.model_copy() for risk in self.risky_choices],
            overall_readiness=self.overall_readiness,
            recommended_action=self.recommended_action,
        )
