"""Stage output schemas.

Declared output shape for every generation stage. Top-level fields are
required: a response missing one of them is a shape violation and sends
the stage to retry/fallback. Nested fields carry defaults so partial
detail inside a well-formed response is accepted.
"""

from pydantic import BaseModel, Field


# =============================================================================
# Analysis
# =============================================================================


class FlowAnalysis(BaseModel):
    """End-to-end user flow as understood by the analysis stage."""

    flow_name: str = Field(..., description="Flow name")
    description: str = Field("", description="What the flow achieves")
    steps: list[str] = Field(default_factory=list)
    required_components: list[str] = Field(default_factory=list)
    error_handling: list[str] = Field(default_factory=list)
    success_criteria: str = Field("")


class FeatureAnalysis(BaseModel):
    """Core feature broken down for implementation."""

    name: str = Field(..., description="Feature name")
    description: str = Field("")
    priority: str = Field("medium")
    required_pages: list[str] = Field(default_factory=list)
    required_components: list[str] = Field(default_factory=list)
    api_endpoints: list[str] = Field(default_factory=list)
    data_models: list[str] = Field(default_factory=list)
    business_logic: str = Field("")
    acceptance_criteria: list[str] = Field(default_factory=list)


class DataModelSpec(BaseModel):
    """Entity in the application data model."""

    entity_name: str = Field(..., description="Entity name")
    fields: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)
    business_rules: list[str] = Field(default_factory=list)


class DesignSystem(BaseModel):
    """Visual design tokens."""

    primary_color: str = Field("#2563eb")
    secondary_color: str = Field("#7c3aed")
    font_family: str = Field("Inter")
    brand_personality: str = Field("")
    ui_style: str = Field("modern")
    responsive_breakpoints: list[str] = Field(default_factory=lambda: ["sm", "md", "lg"])


class ProjectAnalysis(BaseModel):
    """Output of the analysis stage: the technical specification."""

    project_type: str = Field(..., description="Kind of application")
    business_objective: str = Field(..., description="What the business needs")
    target_users: str = Field("")
    core_value_proposition: str = Field("")
    primary_user_flows: list[FlowAnalysis] = Field(...)
    core_features: list[FeatureAnalysis] = Field(...)
    data_models: list[DataModelSpec] = Field(default_factory=list)
    design_system: DesignSystem = Field(default_factory=DesignSystem)
    technical_constraints: list[str] = Field(default_factory=list)
    performance_requirements: list[str] = Field(default_factory=list)
    security_requirements: list[str] = Field(default_factory=list)


# =============================================================================
# Architecture
# =============================================================================


class FolderStructure(BaseModel):
    """Source tree layout under src/."""

    components: list[str] = Field(default_factory=list)
    pages: list[str] = Field(default_factory=list)
    hooks: list[str] = Field(default_factory=list)
    utils: list[str] = Field(default_factory=list)
    context: list[str] = Field(default_factory=list)


class Route(BaseModel):
    """Client-side route."""

    path: str = Field(..., description="URL path")
    component: str = Field(..., description="Page component name")
    protected: bool = Field(False, description="Requires authentication")
    description: str = Field("")


class StateManagement(BaseModel):
    """State management approach."""

    approach: str = Field("React Context")
    global_state: list[str] = Field(default_factory=list)
    context_providers: list[str] = Field(default_factory=list)


class AppArchitecture(BaseModel):
    """Output of the architecture stage."""

    folder_structure: FolderStructure = Field(...)
    routing_config: list[Route] = Field(...)
    state_management: StateManagement = Field(...)


# =============================================================================
# Components
# =============================================================================


class ComponentSpec(BaseModel):
    """Generated reusable component."""

    name: str = Field(..., description="Component name")
    file_path: str = Field(..., description="Relative file path")
    code: str = Field("", description="Component source (opaque generated text)")
    description: str = Field("")
    props: list[str] = Field(default_factory=list)
    related_feature: str | None = Field(None)


class ComponentLibrary(BaseModel):
    """Output of the components stage."""

    ui_components: list[ComponentSpec] = Field(...)
    layout_components: list[ComponentSpec] = Field(...)
    feature_components: list[ComponentSpec] = Field(default_factory=list)

    def all_components(self) -> list[ComponentSpec]:
        return [*self.ui_components, *self.layout_components, *self.feature_components]


# =============================================================================
# Pages
# =============================================================================


class PageSpec(BaseModel):
    """Generated page component."""

    name: str = Field(..., description="Page name")
    file_path: str = Field(..., description="Relative file path")
    route: str = Field(..., description="Route the page is mounted on")
    code: str = Field("")
    description: str = Field("")
    dependencies: list[str] = Field(default_factory=list)


class CorePages(BaseModel):
    """Output of the pages stage."""

    pages: list[PageSpec] = Field(...)


# =============================================================================
# Module integrations
# =============================================================================


class IntegrationSpec(BaseModel):
    """Integration code for one selected module."""

    module_name: str = Field(..., description="Module name")
    integration_code: str = Field("")
    configuration_steps: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    description: str = Field("")


class ModuleIntegrations(BaseModel):
    """Output of the integrations stage."""

    integrations: list[IntegrationSpec] = Field(...)


# =============================================================================
# Assembly
# =============================================================================


class EnvironmentVariable(BaseModel):
    """Environment variable needed at deploy time."""

    name: str = Field(...)
    description: str = Field("")
    required: bool = Field(True)
    default_value: str = Field("")


class DeploymentConfig(BaseModel):
    """Deployment instructions for the hosting platform."""

    platform: str = Field("vercel")
    build_command: str = Field("npm run build")
    deployment_steps: list[str] = Field(default_factory=list)
    environment_variables: list[EnvironmentVariable] = Field(default_factory=list)


class GeneratedFile(BaseModel):
    """A file in the generated application."""

    file_path: str = Field(..., description="Relative file path")
    content: str = Field("", description="File content (opaque generated text)")
    description: str = Field("")
    file_type: str = Field("")


class TestingSetup(BaseModel):
    """Test framework for the generated application."""

    framework: str = Field("vitest")
    test_files: list[str] = Field(default_factory=list)
    run_instructions: list[str] = Field(default_factory=list)


class QualityAssurance(BaseModel):
    """Self-assessed quality scores (0-100)."""

    code_completeness: float = Field(0, ge=0, le=100)
    feature_coverage: float = Field(0, ge=0, le=100)
    deployment_readiness: float = Field(0, ge=0, le=100)
    agreement_fulfillment: float = Field(0, ge=0, le=100)


class AssembledApplication(BaseModel):
    """Output of the assembly stage: the complete application description."""

    project_structure: dict[str, str] = Field(
        ...,
        description="Key project files by role (package_json, app_js, readme_md, ...)",
    )
    deployment_config: DeploymentConfig = Field(...)
    complete_file_structure: list[GeneratedFile] = Field(...)
    setup_instructions: list[str] = Field(default_factory=list)
    testing_setup: TestingSetup = Field(default_factory=TestingSetup)
    quality_assurance: QualityAssurance = Field(default_factory=QualityAssurance)
