from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from provisioner.app import apply_stripe, plan_stripe
from provisioner.config import BootstrapEnv
from provisioner.domain.errors import ProviderCallError
from provisioner.ui import cli as cli_module
from tests.support.billing import FakeBillingProvider

if TYPE_CHECKING:
    from pathlib import Path

    from provisioner.app import StripeRun
    from provisioner.config import ResilienceConfig
    from provisioner.domain.provisioning import BillingPlan


def _use_fake_provider(monkeypatch: pytest.MonkeyPatch, provider: FakeBillingProvider) -> None:
    def fake_plan(
        env: BootstrapEnv,
        *,
        resilience: ResilienceConfig | None = None,  # noqa: ARG001
    ) -> BillingPlan | None:
        return plan_stripe(env, provider=provider)

    def fake_apply(
        env: BootstrapEnv,
        *,
        resilience: ResilienceConfig | None = None,  # noqa: ARG001
        dry_run: bool = False,
    ) -> StripeRun | None:
        return apply_stripe(env, provider=provider, dry_run=dry_run)

    monkeypatch.setattr(cli_module, "plan_stripe", fake_plan)
    monkeypatch.setattr(cli_module, "apply_stripe", fake_apply)


@pytest.mark.usefixtures("project_env")
def test_preflight_prints_both_plans(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    provider = FakeBillingProvider()
    _use_fake_provider(monkeypatch, provider)

    exit_code = cli_module.main(["preflight"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Provider: stripe" in out
    assert "Price: 25.00 USD/month" in out
    assert "Provider: cloudflare" in out
    assert provider.mutation_count == 0


@pytest.mark.usefixtures("project_env")
def test_preflight_skip_wrangler_omits_cloudflare(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_fake_provider(monkeypatch, FakeBillingProvider())

    assert cli_module.main(["preflight", "--skip-wrangler"]) == 0
    assert "cloudflare" not in capsys.readouterr().out


@pytest.mark.usefixtures("project_env")
def test_apply_prints_redacted_env_updates_and_writes_catalog(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    _use_fake_provider(monkeypatch, FakeBillingProvider())
    catalog = tmp_path / "products.json"

    exit_code = cli_module.main(["apply", "--catalog", str(catalog), "--skip-wrangler"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Generated env updates:" in out
    assert "STRIPE_WEBHOOK_SECRET=whse..." in out
    rows = json.loads(catalog.read_text())
    assert [row["name"] for row in rows] == ["Founders", "Scale"]


@pytest.mark.usefixtures("project_env")
def test_apply_dry_run_mutates_nothing(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    provider = FakeBillingProvider()
    _use_fake_provider(monkeypatch, provider)

    assert cli_module.main(["apply", "--dry-run"]) == 0
    assert provider.mutation_count == 0
    assert "(dry run)" in capsys.readouterr().out


@pytest.mark.usefixtures("project_env")
def test_apply_dry_run_does_not_write_catalog(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
    tmp_path: Path,
) -> None:
    _use_fake_provider(monkeypatch, FakeBillingProvider())
    catalog = tmp_path / "products.json"
    caplog.set_level(logging.WARNING, logger="provisioner.ui.cli")

    exit_code = cli_module.main(
        ["apply", "--dry-run", "--catalog", str(catalog), "--skip-wrangler"]
    )

    assert exit_code == 0
    assert not catalog.exists()
    assert "Not writing products payload" in caplog.text


@pytest.mark.usefixtures("project_env")
def test_failed_steps_exit_with_status_one(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_fake_provider(monkeypatch, FakeBillingProvider(fail_on={"create_price": 0}))

    assert cli_module.main(["apply", "--skip-wrangler"]) == 1


@pytest.mark.usefixtures("project_env")
def test_fail_on_warnings(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_fake_provider(monkeypatch, FakeBillingProvider())

    assert cli_module.main(["preflight", "--fail-on-warnings"]) == 0

    def warn_plan(
        env: BootstrapEnv,
        *,
        resilience: ResilienceConfig | None = None,  # noqa: ARG001
    ) -> BillingPlan:
        plan = plan_stripe(env, provider=FakeBillingProvider())
        assert plan is not None
        plan.warnings.append("drift")
        return plan

    monkeypatch.setattr(cli_module, "plan_stripe", warn_plan)

    assert cli_module.main(["preflight"]) == 0
    assert cli_module.main(["preflight", "--fail-on-warnings"]) == 1


@pytest.mark.usefixtures("project_env")
def test_provider_errors_exit_with_status_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_plan(*_: object, **__: object) -> None:
        raise ProviderCallError("boom", operation="list products")

    monkeypatch.setattr(cli_module, "plan_stripe", failing_plan)

    assert cli_module.main(["preflight"]) == 1


def test_missing_project_id_exits_with_status_two() -> None:
    assert cli_module.main(["preflight"]) == 2


@pytest.mark.usefixtures("project_env")
def test_invalid_catalog_exits_with_status_two(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIPE_PRODUCTS", "BadProduct:notanumber,usd,month")
    _use_fake_provider(monkeypatch, FakeBillingProvider())

    assert cli_module.main(["apply"]) == 2


@pytest.mark.usefixtures("project_env")
def test_invalid_retry_flags_exit_with_status_two() -> None:
    assert cli_module.main(["preflight", "--attempts", "0"]) == 2


def test_unknown_command_is_rejected_by_argparse() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["destroy"])

    assert excinfo.value.code == 2


def test_flags_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_plan(env: BootstrapEnv, *, resilience: ResilienceConfig | None = None) -> None:
        captured["env"] = env
        captured["resilience"] = resilience

    monkeypatch.setattr(cli_module, "plan_stripe", fake_plan)

    exit_code = cli_module.main(
        [
            "preflight",
            "--project-id",
            "beta",
            "--base-url",
            "https://beta.example/",
            "--attempts",
            "3",
            "--delay",
            "0.25",
            "--timeout",
            "5",
            "--skip-wrangler",
        ]
    )

    assert exit_code == 0
    env = captured["env"]
    resilience = captured["resilience"]
    assert isinstance(env, BootstrapEnv)
    assert env.project_id == "beta"
    assert env.webhook_url() == "https://beta.example/api/webhooks/stripe"
    assert resilience is not None
    assert resilience.retry.total == 2
    assert resilience.retry.backoff_factor == 0.25
    assert resilience.timeout_seconds == 5.0
