from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from odontoped.models.patient import PatientFormStatus
from odontoped.services.intake import (
    DashboardPeriod,
    FormAlreadySignedError,
    mark_form_shared,
    period_start,
    sign_form,
)

NOW = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


def _patient(status=PatientFormStatus.draft):
    return SimpleNamespace(status=status, assinatura_base64=None, assinatura_timestamp=None)


def test_share_only_changes_drafts():
    draft = _patient()
    assert mark_form_shared(draft) is True
    assert draft.status == PatientFormStatus.sent
    assert mark_form_shared(draft) is False


def test_sign_records_signature_and_time():
    patient = _patient(PatientFormStatus.sent)

    sign_form(patient, "assinatura", NOW)

    assert patient.status == PatientFormStatus.signed
    assert patient.assinatura_base64 == "assinatura"
    assert patient.assinatura_timestamp == NOW


def test_signed_forms_are_final():
    patient = _patient(PatientFormStatus.signed)
    with pytest.raises(FormAlreadySignedError):
        sign_form(patient, "outra", NOW)
    with pytest.raises(FormAlreadySignedError):
        mark_form_shared(patient)


@pytest.mark.parametrize(
    "period,expected_days",
    [
        (DashboardPeriod.last_7_days, 7),
        (DashboardPeriod.last_15_days, 15),
        (DashboardPeriod.last_30_days, 30),
        (DashboardPeriod.last_90_days, 90),
    ],
)
def test_period_start(period, expected_days):
    assert (NOW - period_start(period, NOW)).days == expected_days


def test_period_all_has_no_start():
    assert period_start(DashboardPeriod.all, NOW) is None
