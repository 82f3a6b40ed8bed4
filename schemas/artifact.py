"""Generation artifact schema.

Terminal output of a completed run: the assembled application plus a
record of which stages degraded to fallback content.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .stage_outputs import AssembledApplication


class StageSummary(BaseModel):
    """Quality signal for one stage."""

    name: str = Field(..., description="Stage name")
    succeeded: bool = Field(...)
    used_fallback: bool = Field(...)
    attempts: int = Field(0)


class GenerationArtifact(BaseModel):
    """Structured description of the generated application."""

    run_id: str = Field(..., description="Run that produced the artifact")
    application: AssembledApplication = Field(...)
    stages: list[StageSummary] = Field(default_factory=list)
    agreement: dict[str, Any] = Field(
        default_factory=dict,
        description="Agreement snapshot the run was admitted with",
    )
    generated_at: datetime = Field(default_factory=datetime.now)

    @property
    def degraded_stages(self) -> list[str]:
        return [s.name for s in self.stages if s.used_fallback]

    def summary(self) -> dict[str, Any]:
        """Summary persisted for display without re-running the pipeline."""
        app = self.application
        return {
            "run_id": self.run_id,
            "file_count": len(app.complete_file_structure),
            "files": [f.file_path for f in app.complete_file_structure],
            "platform": app.deployment_config.platform,
            "degraded_stages": self.degraded_stages,
            "quality": app.quality_assurance.model_dump(),
            "generated_at": self.generated_at.isoformat(),
        }
