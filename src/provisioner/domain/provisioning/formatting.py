"""Render plans and execution results as plain text for CLI output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .plan import EdgePlan

if TYPE_CHECKING:
    from .plan import ExecutionResult, Plan


def format_plan(plan: Plan) -> str:
    header = f"Provider: {plan.provider}"
    if isinstance(plan, EdgePlan) and plan.account_id:
        header += f" (account {plan.account_id})"

    lines = [header]
    if plan.steps:
        lines.append("Steps:")
        lines.extend(f"  {step.status}: {step.title} — {step.detail}" for step in plan.steps)
    lines.append("Notes:")
    lines.extend(f"  {note}" for note in plan.notes)
    lines.extend(_warnings_block(plan.warnings))
    return "\n".join(lines)


def format_result(result: ExecutionResult) -> str:
    mode = "dry run" if result.dry_run else "applied"
    lines = [f"Provider: {result.provider} ({mode})"]

    if result.products:
        lines.append("Products:")
        for product in result.products:
            prices = ", ".join(product.price_ids) or "none"
            lines.append(f"  {product.product_name}: {product.product_id} (prices: {prices})")

    if result.webhook is not None:
        lines.append("Webhook:")
        lines.append(f"  {result.webhook.webhook_id} -> {result.webhook.webhook_url}")

    if result.outcomes:
        lines.append("Steps:")
        for outcome in result.outcomes:
            line = f"  {outcome.status}: {outcome.step_id}"
            if outcome.detail:
                line += f" — {outcome.detail}"
            lines.append(line)

    lines.extend(_warnings_block(result.warnings))
    return "\n".join(lines)


def _warnings_block(warnings: list[str]) -> list[str]:
    if not warnings:
        return []
    return ["Warnings:", *(f"  ⚠ {warning}" for warning in warnings)]
