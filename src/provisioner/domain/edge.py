"""Declarative Cloudflare plan: worker, D1 database and R2 bucket.

No remote survey happens here. Cloudflare's own tooling creates these
resources idempotently, so the plan only resolves names and reports three
fixed steps.

Default naming, stable across runs:
- worker: ``<project_id>-worker``
- D1 database: ``<project_id>-d1``
- R2 bucket: ``<project_id>-assets``
"""

from __future__ import annotations

from dataclasses import dataclass

from provisioner.domain.provisioning.plan import EdgePlan, PlanStep, StepStatus


@dataclass(frozen=True, slots=True, kw_only=True)
class EdgeCapabilities:
    """Permissions detected for the Cloudflare token, when known."""

    authenticated: bool = True
    can_use_d1: bool = True
    can_use_r2: bool = True
    user_email: str | None = None


def default_worker_name(project_id: str) -> str:
    return f"{project_id}-worker"


def default_d1_name(project_id: str) -> str:
    return f"{project_id}-d1"


def default_r2_bucket(project_id: str) -> str:
    return f"{project_id}-assets"


def build_cloudflare_plan(
    *,
    project_id: str,
    account_id: str | None = None,
    zone_id: str | None = None,
    d1_database_name: str | None = None,
    r2_bucket: str | None = None,
    stripe_webhook_configured: bool = False,
    capabilities: EdgeCapabilities | None = None,
) -> EdgePlan:
    worker = default_worker_name(project_id)
    d1_name = d1_database_name or default_d1_name(project_id)
    bucket = r2_bucket or default_r2_bucket(project_id)
    d1_allowed = capabilities is None or capabilities.can_use_d1
    r2_allowed = capabilities is None or capabilities.can_use_r2

    steps = [
        PlanStep(
            id="worker",
            title="Worker project",
            status=StepStatus.ENSURE,
            detail=f'Ensure worker "{worker}" exists',
        ),
        PlanStep(
            id="d1",
            title="D1 database",
            status=StepStatus.ENSURE if d1_allowed else StepStatus.SKIPPED,
            detail=(
                f'Ensure database "{d1_name}" exists'
                if d1_allowed
                else f'Skip database "{d1_name}" (no D1 permissions)'
            ),
        ),
        PlanStep(
            id="r2",
            title="R2 bucket",
            status=StepStatus.ENSURE if r2_allowed else StepStatus.SKIPPED,
            detail=(
                f'Ensure bucket "{bucket}" exists'
                if r2_allowed
                else f'Skip bucket "{bucket}" (no R2 permissions)'
            ),
        ),
    ]

    notes = [f"Project: {project_id}", f"Account: {account_id or 'not set'}"]
    if d1_database_name is None:
        notes.append(f"D1 database name defaulted to {d1_name}")
    if r2_bucket is None:
        notes.append(f"R2 bucket name defaulted to {bucket}")
    notes.append(f"Zone: {zone_id or 'not set'}")
    notes.append(f"Stripe webhook: {'configured' if stripe_webhook_configured else 'missing'}")

    warnings: list[str] = []
    if capabilities is not None:
        if capabilities.user_email:
            notes.append(f"Authenticated: {capabilities.user_email}")
        if not capabilities.authenticated:
            warnings.append("Cloudflare token is not authenticated")
        if not capabilities.can_use_d1:
            warnings.append("No D1 permissions detected")
        if not capabilities.can_use_r2:
            warnings.append("No R2 permissions detected")

    return EdgePlan(
        project_id=project_id,
        account_id=account_id,
        worker_name=worker,
        d1_database_name=d1_name,
        r2_bucket=bucket,
        steps=steps,
        notes=notes,
        warnings=warnings,
    )
