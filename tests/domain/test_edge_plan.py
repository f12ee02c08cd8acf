from __future__ import annotations

from provisioner.domain.edge import EdgeCapabilities, build_cloudflare_plan
from provisioner.domain.provisioning.plan import Provider, StepStatus


def test_defaults_are_derived_from_project_id() -> None:
    plan = build_cloudflare_plan(project_id="acme", account_id="acc_1")

    assert plan.provider is Provider.CLOUDFLARE
    assert plan.worker_name == "acme-worker"
    assert plan.d1_database_name == "acme-d1"
    assert plan.r2_bucket == "acme-assets"
    assert [step.id for step in plan.steps] == ["worker", "d1", "r2"]
    assert all(step.status is StepStatus.ENSURE for step in plan.steps)
    assert "D1 database name defaulted to acme-d1" in plan.notes
    assert "R2 bucket name defaulted to acme-assets" in plan.notes
    assert "Stripe webhook: missing" in plan.notes
    assert plan.warnings == []


def test_explicit_names_are_used_without_default_notes() -> None:
    plan = build_cloudflare_plan(
        project_id="acme",
        d1_database_name="main-db",
        r2_bucket="uploads",
        zone_id="zone_1",
        stripe_webhook_configured=True,
    )

    d1 = plan.step("d1")
    assert d1 is not None
    assert "main-db" in d1.detail
    assert not any("defaulted" in note for note in plan.notes)
    assert "Zone: zone_1" in plan.notes
    assert "Stripe webhook: configured" in plan.notes


def test_missing_capabilities_skip_steps_and_warn() -> None:
    capabilities = EdgeCapabilities(
        authenticated=True,
        can_use_d1=False,
        can_use_r2=True,
        user_email="ops@acme.example",
    )

    plan = build_cloudflare_plan(project_id="acme", capabilities=capabilities)

    d1 = plan.step("d1")
    r2 = plan.step("r2")
    assert d1 is not None
    assert r2 is not None
    assert d1.status is StepStatus.SKIPPED
    assert r2.status is StepStatus.ENSURE
    assert plan.warnings == ["No D1 permissions detected"]
    assert "Authenticated: ops@acme.example" in plan.notes
