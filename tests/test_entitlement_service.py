import pytest

from src.services.entitlement_service import EntitlementService
from src.services.errors import MissingSessionError, PaymentRequiredError, UpstreamError
from src.services.payment_service import CheckoutSession


def test_demo_never_consults_payment_provider(payments):
    EntitlementService(payments).check("demo", None)
    EntitlementService(payments).check("demo", "cs_unpaid")

    assert payments.retrieved == []


@pytest.mark.parametrize("kind", ["one_time", "subscription"])
def test_missing_session_is_rejected_without_lookup(payments, kind):
    with pytest.raises(MissingSessionError) as excinfo:
        EntitlementService(payments).check(kind, None)

    assert excinfo.value.status_code == 401
    assert payments.retrieved == []


def test_unpaid_session_requires_payment(payments):
    with pytest.raises(PaymentRequiredError) as excinfo:
        EntitlementService(payments).check("one_time", "cs_unpaid")

    assert excinfo.value.status_code == 402
    assert payments.retrieved == ["cs_unpaid"]


def test_unknown_session_requires_payment(payments):
    with pytest.raises(PaymentRequiredError):
        EntitlementService(payments).check("subscription", "cs_does_not_exist")


def test_paid_session_is_allowed(payments):
    EntitlementService(payments).check("one_time", "cs_paid")


def test_complete_status_counts_as_paid(payments):
    payments.sessions["cs_sub"] = CheckoutSession(id="cs_sub", payment_status="no_payment_required", status="complete")

    EntitlementService(payments).check("subscription", "cs_sub")


def test_provider_outage_is_not_reported_as_unpaid(payments):
    payments.outage = True

    with pytest.raises(UpstreamError) as excinfo:
        EntitlementService(payments).check("one_time", "cs_paid")

    assert not isinstance(excinfo.value, PaymentRequiredError)
    assert excinfo.value.status_code == 500
