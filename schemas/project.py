"""Project data schema.

Upstream founder workspace data: the clarified business concept, features,
user flows and requirements the CTO Studio pipeline consumes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """Feature priority levels."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Complexity(str, Enum):
    """Technical complexity estimate for a feature."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class _WorkspaceModel(BaseModel):
    """Accepts both camelCase (workspace JSON) and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Feature(_WorkspaceModel):
    """A clarified product feature."""

    name: str = Field(..., description="Feature name")
    description: str = Field("", description="What the feature does")
    priority: Priority = Field(Priority.MEDIUM, description="Feature priority")
    user_story: str = Field("", description="As a [user], I want [feature], so that [benefit]")
    acceptance_criteria: list[str] = Field(
        default_factory=list,
        description="What must be true for the feature to be accepted",
    )
    complexity: Complexity = Field(Complexity.MODERATE, description="Technical complexity")


class UserFlow(_WorkspaceModel):
    """An end-to-end user journey."""

    flow_name: str = Field(..., description="Flow name")
    steps: list[str] = Field(default_factory=list, description="Ordered steps")
    pain_points: list[str] = Field(default_factory=list, description="Pain points addressed")


class Requirement(_WorkspaceModel):
    """A technical or non-functional requirement."""

    category: str = Field("general", description="Category: performance, security, etc.")
    requirement: str = Field(..., description="The requirement statement")
    justification: str = Field("", description="Why it is needed")


class TechStack(_WorkspaceModel):
    """Chosen or suggested technology stack."""

    frontend: str | None = Field(None, description="Frontend framework")
    backend: str | None = Field(None, description="Backend framework")
    database: str | None = Field(None, description="Database")
    hosting: str | None = Field(None, description="Hosting platform")

    def is_confirmed(self) -> bool:
        """True when every layer of the stack has been chosen."""
        return all([self.frontend, self.backend, self.database, self.hosting])


class Module(_WorkspaceModel):
    """A plug-and-play module selected for integration."""

    id: str = Field(..., description="Module identifier (e.g., stripe-payments)")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="What the module provides")
    generation_prompt: str = Field("", description="Extra instructions for integration")


class ProjectData(_WorkspaceModel):
    """Complete upstream project definition.

    This is what the founder workspace hands to CTO Studio after the
    conversation, clarification and validation steps.
    """

    business_concept: str = Field("", description="One-paragraph business concept")
    dream_statement: str = Field("", description="Founder's vision statement")
    features: list[Feature] = Field(default_factory=list, description="Clarified features")
    user_flows: list[UserFlow] = Field(default_factory=list, description="User flows")
    requirements: list[Requirement] = Field(
        default_factory=list,
        description="Technical requirements",
    )
    tech_stack: TechStack = Field(default_factory=TechStack, description="Technology stack")
    selected_modules: list[Module] = Field(
        default_factory=list,
        description="Modules selected for integration",
    )
    security_review_skipped: bool = Field(
        False,
        description="Founder opted out of a security review before launch",
    )

    def is_empty(self) -> bool:
        """True when there is nothing to classify."""
        return not (self.business_concept or self.features or self.user_flows or self.requirements)

    def searchable_text(self) -> str:
        """Lower-cased text blob used for keyword classification."""
        parts = [self.business_concept, self.dream_statement]
        for feature in self.features:
            parts.extend([feature.name, feature.description, feature.user_story])
        for flow in self.user_flows:
            parts.append(flow.flow_name)
            parts.extend(flow.steps)
        for req in self.requirements:
            parts.extend([req.category, req.requirement])
        for module in self.selected_modules:
            parts.extend([module.id, module.name, module.description])
        return " ".join(p for p in parts if p).lower()
