"""Tests for agents.agreement_agent: keyword classification of project data."""

import pytest

from agents.agreement_agent import NO_DATA_ACTION, AgreementEvaluator
from schemas.agreement import RiskLevel
from schemas.project import ProjectData


def _ids(items):
    return [item.id for item in items]


def test_sample_project_classification(project):
    evaluation = AgreementEvaluator().evaluate(project)

    assert evaluation.data_supplied is True
    assert _ids(evaluation.critical_items) == [
        "core-scope",
        "primary-user-flows",
        "tech-stack",
        "payment-provider",
    ]
    assert _ids(evaluation.optional_items) == [
        "feature-baker-reviews",
        "analytics",
        "email-notifications",
        "seo",
        "monitoring",
    ]
    assert _ids(evaluation.risky_choices) == [
        "vendor-lock-in",
        "skip-security-review",
        "underspecified-delivery-routing",
    ]
    assert evaluation.overall_readiness == 100


def test_accepts_camel_case_dict(project_data):
    evaluation = AgreementEvaluator().evaluate(project_data)
    assert evaluation.data_supplied is True
    assert "payment-provider" in _ids(evaluation.critical_items)


@pytest.mark.parametrize("data", [None, {}, {"features": "not a list"}, 42, "text"])
def test_missing_or_malformed_data(data):
    evaluation = AgreementEvaluator().evaluate(data)
    assert evaluation.data_supplied is False
    assert evaluation.critical_items == []
    assert evaluation.optional_items == []
    assert evaluation.risky_choices == []
    assert evaluation.recommended_action == NO_DATA_ACTION


def test_new_items_start_unchecked(project):
    evaluation = AgreementEvaluator().evaluate(project)
    assert not any(item.is_complete for item in evaluation.critical_items)
    assert not any(item.is_included for item in evaluation.optional_items)
    assert not any(risk.consent_granted for risk in evaluation.risky_choices)


def test_auth_and_personal_data_items():
    project = ProjectData(
        business_concept="Team workspace",
        features=[{"name": "Accounts", "description": "Users sign in with a password"}],
    )
    ids = _ids(AgreementEvaluator().evaluate(project).critical_items)
    assert "auth-model" in ids
    assert "data-ownership" in ids
    assert "payment-provider" not in ids


def test_compliance_item():
    project = ProjectData(business_concept="Booking tool for patient appointments")
    ids = _ids(AgreementEvaluator().evaluate(project).critical_items)
    assert "compliance" in ids


def test_raw_card_storage_is_critical_risk():
    project = ProjectData(
        business_concept="Shop",
        features=[{"name": "Wallet", "description": "Save card details for later"}],
    )
    risks = {r.id: r for r in AgreementEvaluator().evaluate(project).risky_choices}
    assert risks["raw-card-storage"].risk_level == RiskLevel.CRITICAL
    assert risks["raw-card-storage"].consent_language


def test_low_readiness_and_missing_requirements():
    project = ProjectData(business_concept="An idea")
    evaluation = AgreementEvaluator().evaluate(project)

    assert evaluation.overall_readiness == 20
    ids = _ids(evaluation.risky_choices)
    assert "low-readiness" in ids
    assert "no-nonfunctional-requirements" in ids


def test_selected_module_covers_optional_capability(project_data):
    project_data["selectedModules"].append(
        {"id": "analytics", "name": "Analytics Dashboard", "description": "Track usage"}
    )
    ids = _ids(AgreementEvaluator().evaluate(project_data).optional_items)
    assert "analytics" not in ids
    assert "seo" in ids


def test_duplicate_feature_names_yield_one_item():
    project = ProjectData(
        business_concept="Notes",
        features=[
            {"name": "Export", "priority": "low"},
            {"name": "export", "priority": "low"},
        ],
    )
    ids = _ids(AgreementEvaluator().evaluate(project).optional_items)
    assert ids.count("feature-export") == 1


def test_evaluation_is_deterministic(project):
    evaluator = AgreementEvaluator()
    assert evaluator.evaluate(project) == evaluator.evaluate(project)


def test_recommended_action_mentions_counts(project):
    evaluation = AgreementEvaluator().evaluate(project)
    assert "4 critical item(s)" in evaluation.recommended_action
    assert "3 risky choice(s)" in evaluation.recommended_action
