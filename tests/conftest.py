from __future__ import annotations

import pytest

# Variables read by ``get_bootstrap_env``/``get_stripe_config``; cleared so a
# developer's shell or .env never leaks into a test run.
_PROVISIONER_ENV_VARS = (
    "PROJECT_ID",
    "PROJECT_DOMAIN",
    "STRIPE_SECRET_KEY",
    "STRIPE_PRODUCT_DEFINITIONS",
    "STRIPE_PRODUCTS",
    "STRIPE_WEBHOOK_URL",
    "STRIPE_WEBHOOK_SECRET",
    "CLOUDFLARE_ACCOUNT_ID",
    "CLOUDFLARE_ZONE_ID",
    "D1_DATABASE_NAME",
    "CLOUDFLARE_R2_BUCKET",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _PROVISIONER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "acme")
    monkeypatch.setenv("PROJECT_DOMAIN", "https://acme.example")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123456")
    monkeypatch.setenv("STRIPE_PRODUCTS", "Founders:2500,usd,month;Scale:4900,usd,month")
