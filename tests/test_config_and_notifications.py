import pytest

from conftest import make_settings
from orderdesk.services.email_service import text_to_html
from orderdesk.services.payment_events import normalize_payment_method
from orderdesk.services.payment_provider import PaymentMethodDetail


def test_list_settings_accept_comma_separated_values():
    settings = make_settings(business_notification_emails="a@example.com, b@example.com")
    assert settings.business_notification_emails == ["a@example.com", "b@example.com"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"payment_provider": "stub"},
        {"payment_provider": "stripe", "cors_origins": "*"},
        {"payment_provider": "stripe", "stripe_secret_key": "sk_live", "stripe_webhook_secret": None},
    ],
)
def test_production_rejects_unsafe_settings(overrides):
    with pytest.raises(ValueError):
        make_settings(env="production", **overrides)


def test_unknown_storage_backend_rejected():
    with pytest.raises(ValueError):
        make_settings(store_backend="redis")


@pytest.mark.parametrize(
    "detail, label",
    [
        (PaymentMethodDetail(type="card", wallet_type="apple_pay"), "Apple Pay"),
        (PaymentMethodDetail(type="card", wallet_type="google_pay"), "Google Pay"),
        (PaymentMethodDetail(type="card"), "Credit/Debit Card"),
        (PaymentMethodDetail(type="klarna"), "Klarna"),
        (PaymentMethodDetail(type="cashapp"), "Cash App"),
        (PaymentMethodDetail(type="us_bank_account"), "ACH Bank Transfer"),
        (PaymentMethodDetail(type="alipay"), "Alipay"),
        (PaymentMethodDetail(type="x" * 80), "X" + "x" * 59),
        (None, "Unknown"),
    ],
)
def test_payment_method_labels(detail, label):
    assert normalize_payment_method(detail) == label


def test_plain_text_is_escaped_for_html():
    assert text_to_html("Hi <Ada>\nThanks & bye") == "Hi &lt;Ada&gt;<br>Thanks &amp; bye"
