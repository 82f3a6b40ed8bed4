"""Agreement Evaluator for the Founder-Cofounder Agreement.

Classifies upstream project data into critical checklist items, optional
items and risky choices. Classification is a keyword scan over the
project definition: pure, deterministic, and never raises for bad input.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from schemas.agreement import (
    AgreementEvaluation,
    ChecklistItem,
    OptionalItem,
    RiskLevel,
    RiskyChoice,
)
from schemas.project import Complexity, Priority, ProjectData

from .context_agent import READINESS_THRESHOLD, calculate_readiness_score

logger = logging.getLogger(__name__)


PAYMENT_KEYWORDS = (
    "payment", "checkout", "subscription", "billing", "invoice",
    "purchase", "stripe", "paypal", "pricing plan",
)
PERSONAL_DATA_KEYWORDS = (
    "personal", "profile", "user data", "email address", "phone number",
    "address", "location", "upload", "contact",
)
AUTH_KEYWORDS = (
    "login", "log in", "sign in", "sign up", "signup", "register",
    "account", "password", "auth",
)
COMPLIANCE_KEYWORDS = (
    "health", "medical", "patient", "hipaa", "finance", "financial",
    "banking", "loan", "children", "kids", "minor", "coppa", "gdpr",
)
CARD_DATA_KEYWORDS = (
    "card number", "cvv", "store card", "save card", "card details",
    "store credit card", "save credit card",
)
LOCK_IN_PLATFORMS = (
    "firebase", "firestore", "amplify", "dynamodb", "cosmos",
    "bubble", "airtable", "parse server",
)

# (item id, category, description, keywords a covering module may match)
OPTIONAL_CAPABILITIES: list[tuple[str, str, str, tuple[str, ...]]] = [
    (
        "analytics",
        "analytics",
        "Product analytics and usage tracking",
        ("analytics", "tracking"),
    ),
    (
        "email-notifications",
        "communication",
        "Transactional email and notifications",
        ("email", "notification"),
    ),
    (
        "seo",
        "marketing",
        "Search engine optimization (meta tags, sitemap)",
        ("seo",),
    ),
    (
        "monitoring",
        "operations",
        "Error monitoring and uptime alerts",
        ("monitoring", "sentry", "logging"),
    ),
]

NO_DATA_ACTION = (
    "No project data yet. Complete the business concept, features, user flows "
    "and requirements so the agreement can be built."
)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "item"


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


class AgreementEvaluator:
    """Derive the initial shape of a Founder-Cofounder Agreement.

    Critical items are requirements whose absence would make generated code
    non-functional or legally/financially risky. Optional items can be
    deferred past launch. Risky choices carry irreversible or costly
    consequences and need explicit consent.
    """

    def evaluate(self, project_data: ProjectData | dict[str, Any] | None) -> AgreementEvaluation:
        """Classify project data into an agreement proposal.

        Args:
            project_data: ProjectData, its JSON dict form, or None

        Returns:
            AgreementEvaluation. ``data_supplied`` is False (with empty lists)
            when the data is absent or malformed.
        """
        project = self._coerce(project_data)
        if project is None:
            return AgreementEvaluation(
                overall_readiness=0,
                recommended_action=NO_DATA_ACTION,
                data_supplied=False,
            )

        text = project.searchable_text()
        readiness = calculate_readiness_score(project)

        critical = self._critical_items(project, text)
        optional = self._optional_items(project)
        risky = self._risky_choices(project, text, readiness)

        evaluation = AgreementEvaluation(
            critical_items=critical,
            optional_items=optional,
            risky_choices=risky,
            overall_readiness=readiness * 10,
            recommended_action=self._recommend(critical, risky),
        )
        logger.info(
            "Evaluated agreement: %d critical, %d optional, %d risky (readiness %d/10)",
            len(critical),
            len(optional),
            len(risky),
            readiness,
        )
        return evaluation

    def _coerce(self, project_data: Any) -> ProjectData | None:
        if project_data is None:
            return None
        if isinstance(project_data, ProjectData):
            project = project_data
        elif isinstance(project_data, dict):
            try:
                project = ProjectData.model_validate(project_data)
            except ValidationError as e:
                logger.warning("Malformed project data: %d validation error(s)", e.error_count())
                return None
        else:
            logger.warning("Unsupported project data type: %s", type(project_data).__name__)
            return None

        if project.is_empty():
            return None
        return project

    def _critical_items(self, project: ProjectData, text: str) -> list[ChecklistItem]:
        items = [
            ChecklistItem(
                id="core-scope",
                category="scope",
                description="Confirm the MVP feature list and each feature's acceptance criteria",
                evidence_requirement="Every in-scope feature has at least one acceptance criterion",
            ),
            ChecklistItem(
                id="primary-user-flows",
                category="ux",
                description="Confirm the end-to-end primary user flows",
                evidence_requirement="Each primary flow lists its steps from entry to success",
            ),
            ChecklistItem(
                id="tech-stack",
                category="technical",
                description="Confirm frontend, backend, database and hosting choices",
                evidence_requirement=(
                    "Stack confirmed"
                    if project.tech_stack.is_confirmed()
                    else "All four stack layers chosen (currently incomplete)"
                ),
            ),
        ]

        if _mentions(text, PAYMENT_KEYWORDS):
            items.append(ChecklistItem(
                id="payment-provider",
                category="payments",
                description="Choose the payment provider and pricing model",
                evidence_requirement="Provider account exists and prices are defined",
            ))
        if _mentions(text, PERSONAL_DATA_KEYWORDS) or _mentions(text, AUTH_KEYWORDS):
            items.append(ChecklistItem(
                id="data-ownership",
                category="legal",
                description="Define who owns user data and how it is retained and deleted",
                evidence_requirement="Privacy policy and data retention terms drafted",
            ))
        if _mentions(text, AUTH_KEYWORDS):
            items.append(ChecklistItem(
                id="auth-model",
                category="security",
                description="Define account types, login methods and permissions",
                evidence_requirement="Roles and the sign-in method are documented",
            ))
        if _mentions(text, COMPLIANCE_KEYWORDS):
            items.append(ChecklistItem(
                id="compliance",
                category="legal",
                description="Identify regulatory obligations for sensitive data (health, finance, minors)",
                evidence_requirement="Applicable regulations listed with an owner for each",
            ))
        return items

    def _optional_items(self, project: ProjectData) -> list[OptionalItem]:
        items: list[OptionalItem] = []
        seen: set[str] = set()

        for feature in project.features:
            if feature.priority != Priority.LOW:
                continue
            item_id = f"feature-{_slug(feature.name)}"
            if item_id in seen:
                continue
            seen.add(item_id)
            items.append(OptionalItem(
                id=item_id,
                category="feature",
                description=f"Low-priority feature: {feature.name}",
            ))

        module_text = " ".join(
            f"{m.id} {m.name} {m.description}" for m in project.selected_modules
        ).lower()
        for item_id, category, description, covered_by in OPTIONAL_CAPABILITIES:
            if _mentions(module_text, covered_by):
                continue
            items.append(OptionalItem(id=item_id, category=category, description=description))
        return items

    def _risky_choices(self, project: ProjectData, text: str, readiness: int) -> list[RiskyChoice]:
        risks: list[RiskyChoice] = []

        stack_text = " ".join(
            layer or ""
            for layer in (
                project.tech_stack.frontend,
                project.tech_stack.backend,
                project.tech_stack.database,
                project.tech_stack.hosting,
            )
        ).lower()
        if _mentions(stack_text, LOCK_IN_PLATFORMS):
            risks.append(RiskyChoice(
                id="vendor-lock-in",
                category="technical",
                description="Proprietary backend platform makes a later migration costly",
                risk_level=RiskLevel.MEDIUM,
                mitigation="Keep data access behind a repository layer; export data regularly",
                consent_language=(
                    "I accept that the chosen platform may be expensive to migrate away from."
                ),
            ))

        if project.security_review_skipped:
            risks.append(RiskyChoice(
                id="skip-security-review",
                category="security",
                description="Launching without a security review may expose user data",
                risk_level=RiskLevel.HIGH,
                mitigation="Schedule a review before handling real user data; run dependency audits",
                consent_language="I choose to launch without a security review and accept the risk.",
            ))

        if _mentions(text, CARD_DATA_KEYWORDS):
            risks.append(RiskyChoice(
                id="raw-card-storage",
                category="payments",
                description="Handling raw card data directly brings PCI-DSS obligations",
                risk_level=RiskLevel.CRITICAL,
                mitigation="Use the payment provider's hosted fields and store only tokens",
                consent_language=(
                    "I understand that storing card data directly requires PCI-DSS compliance."
                ),
            ))

        seen: set[str] = set()
        for feature in project.features:
            if feature.complexity != Complexity.COMPLEX or feature.acceptance_criteria:
                continue
            risk_id = f"underspecified-{_slug(feature.name)}"
            if risk_id in seen:
                continue
            seen.add(risk_id)
            risks.append(RiskyChoice(
                id=risk_id,
                category="scope",
                description=f"Complex feature '{feature.name}' has no acceptance criteria",
                risk_level=RiskLevel.MEDIUM,
                mitigation="Add acceptance criteria before generation",
                consent_language=(
                    f"I accept that '{feature.name}' will be generated from assumptions."
                ),
            ))

        if readiness < READINESS_THRESHOLD:
            risks.append(RiskyChoice(
                id="low-readiness",
                category="scope",
                description=f"Project definition readiness is {readiness}/10",
                risk_level=RiskLevel.HIGH,
                mitigation="Fill in the missing concept, features, flows or requirements",
                consent_language=(
                    "I accept that generated code will fill gaps in the project definition "
                    "with assumptions."
                ),
            ))

        if not project.requirements:
            risks.append(RiskyChoice(
                id="no-nonfunctional-requirements",
                category="technical",
                description="No performance, security or reliability requirements defined",
                risk_level=RiskLevel.LOW,
                mitigation="Add at least performance and security requirements",
                consent_language="I accept default non-functional requirements.",
            ))

        return risks

    @staticmethod
    def _recommend(critical: list[ChecklistItem], risky: list[RiskyChoice]) -> str:
        if risky:
            return (
                f"Complete {len(critical)} critical item(s) and review {len(risky)} "
                "risky choice(s) before generating code."
            )
        return f"Complete {len(critical)} critical item(s) before generating code."
