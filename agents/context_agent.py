"""Project context derivation.

Deterministic helpers that turn the founder's project data into the
context the CTO Studio works from: a readiness score, module and tech
stack suggestions, and a Product Requirement Prompt (PRP).
"""

from dataclasses import dataclass, field

from schemas.project import Complexity, Module, ProjectData, TechStack

# Readiness points per populated section (max 10)
READINESS_WEIGHTS = {
    "business_concept": 2,
    "features": 3,
    "user_flows": 2,
    "requirements": 3,
}

READINESS_THRESHOLD = 7

# (keywords, also scan business concept, module)
MODULE_CATALOG: list[tuple[tuple[str, ...], bool, Module]] = [
    (
        ("payment",),
        True,
        Module(
            id="stripe-payments",
            name="Stripe Payment Gateway",
            description="Accept credit cards and handle payments",
        ),
    ),
    (
        ("user", "auth"),
        False,
        Module(
            id="auth-system",
            name="User Authentication",
            description="Secure user login and registration",
        ),
    ),
    (
        ("email", "notification"),
        False,
        Module(
            id="email-system",
            name="Email Notifications",
            description="Automated email system",
        ),
    ),
    (
        ("analytics", "dashboard"),
        False,
        Module(
            id="analytics",
            name="Analytics Dashboard",
            description="Track user behavior and metrics",
        ),
    ),
]


@dataclass
class ProjectContext:
    """Everything derived from the project data before generation."""

    prp: str
    readiness_score: int
    project_vision: str = ""
    feature_modules: list[str] = field(default_factory=list)
    suggested_modules: list[Module] = field(default_factory=list)
    suggested_tech_stack: TechStack = field(default_factory=TechStack)
    use_case_scenarios: dict[str, str] = field(default_factory=dict)

    @property
    def is_ready(self) -> bool:
        return self.readiness_score >= READINESS_THRESHOLD


def calculate_readiness_score(project: ProjectData) -> int:
    """Score how well-defined the project is, 0-10."""
    score = 0
    for section, points in READINESS_WEIGHTS.items():
        if getattr(project, section):
            score += points
    return min(score, 10)


def suggest_modules(project: ProjectData) -> list[Module]:
    """Suggest plug-and-play modules from feature keywords."""
    features_text = " ".join(
        " ".join([f.name, f.description, f.user_story, *f.acceptance_criteria])
        for f in project.features
    ).lower()
    concept = project.business_concept.lower()

    suggestions = []
    for keywords, scan_concept, module in MODULE_CATALOG:
        text = f"{features_text} {concept}" if scan_concept else features_text
        if any(k in text for k in keywords):
            suggestions.append(module.model_copy())
    return suggestions


def suggest_tech_stack(project: ProjectData) -> TechStack:
    """Recommend a technology stack from requirements and feature complexity."""
    complex_backend = any(
        f.complexity == Complexity.COMPLEX or "algorithm" in f.description.lower()
        for f in project.features
    )
    return TechStack(
        frontend="React",
        backend="Python (Django)" if complex_backend else "Node.js (Express)",
        database="PostgreSQL" if complex_backend else "MongoDB",
        hosting="Vercel",
    )


def _bullets(items: list[str], empty: str) -> str:
    if not items:
        return f"- {empty}"
    return "\n".join(f"- {item}" for item in items)


def generate_prp(project: ProjectData) -> str:
    """Render the Product Requirement Prompt markdown."""
    lines = [
        "# Product Requirement Prompt (PRP)",
        "",
        "## Project Vision",
        project.business_concept or "AI-powered business solution",
        "",
        "## Core Features & Requirements",
    ]
    for f in project.features:
        lines.extend([
            "",
            f"### {f.name}",
            f"**Description:** {f.description}",
            f"**Priority:** {f.priority.value}",
            f"**User Story:** {f.user_story}",
            "**Acceptance Criteria:**",
            _bullets(f.acceptance_criteria, "To be defined"),
            f"**Technical Complexity:** {f.complexity.value}",
        ])

    lines.extend(["", "## User Flows"])
    for flow in project.user_flows:
        steps = "\n".join(f"{i}. {step}" for i, step in enumerate(flow.steps, 1))
        lines.extend([
            "",
            f"### {flow.flow_name}",
            "**Steps:**",
            steps or "Steps to be defined",
            "",
            "**Pain Points to Address:**",
            _bullets(flow.pain_points, "To be identified"),
        ])

    lines.extend(["", "## Technical Requirements"])
    for req in project.requirements:
        lines.extend([
            "",
            f"### {req.category}",
            f"**Requirement:** {req.requirement}",
            f"**Justification:** {req.justification}",
        ])

    lines.extend([
        "",
        "## Success Metrics",
        "- User engagement: Track feature adoption rates",
        "- Performance: Sub-2s load times",
        "- Reliability: 99.9% uptime",
        "- User satisfaction: 4.5+ rating",
        "",
        "## Deployment Requirements",
        "- Scalable architecture",
        "- Security best practices",
        "- Mobile-responsive design",
        "- SEO optimization",
        "",
    ])
    return "\n".join(lines)


def build_project_context(project: ProjectData) -> ProjectContext:
    """Derive the full project context."""
    names = [f.name for f in project.features]
    return ProjectContext(
        prp=generate_prp(project),
        readiness_score=calculate_readiness_score(project),
        project_vision=project.dream_statement,
        feature_modules=names,
        suggested_modules=suggest_modules(project),
        suggested_tech_stack=suggest_tech_stack(project),
        use_case_scenarios={
            "normal": f"User successfully uses the main features: {', '.join(names)}",
            "edge": "User encounters slow internet or partial feature failures",
            "fail": "System handles gracefully when core services are unavailable",
        },
    )
