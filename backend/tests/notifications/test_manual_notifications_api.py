from datetime import date, timedelta

from sqlalchemy import select

from conftest import seed_manual_notification
from odontoped.models import ManualNotification
from odontoped.services.reminders import DISPLAY_AT_IN_PAST


def _payload(**overrides):
    payload = {
        "titulo": "Pedido de material",
        "mensagem": "Conferir entrega das resinas",
        "data_exibicao": (date.today() + timedelta(days=2)).isoformat(),
        "hora_exibicao": "10:30",
        "telefone": "11977776666",
    }
    payload.update(overrides)
    return payload


def test_create_manual_notification(api_client, auth_headers, session_factory):
    response = api_client.post("/manual-notifications", headers=auth_headers, json=_payload())
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["sent"] is False
    assert body["telefone"] == "11977776666"

    with session_factory() as db:
        rows = db.scalars(select(ManualNotification)).all()
    assert len(rows) == 1
    assert rows[0].titulo == "Pedido de material"


def test_create_manual_notification_in_the_past_is_rejected(
    api_client, auth_headers, session_factory
):
    payload = _payload(data_exibicao=(date.today() - timedelta(days=1)).isoformat())
    response = api_client.post("/manual-notifications", headers=auth_headers, json=payload)
    assert response.status_code == 422
    assert response.json()["detail"] == DISPLAY_AT_IN_PAST

    with session_factory() as db:
        assert db.scalars(select(ManualNotification)).all() == []


def test_create_manual_notification_validates_form(api_client, auth_headers):
    response = api_client.post(
        "/manual-notifications", headers=auth_headers, json=_payload(titulo="ab")
    )
    assert response.status_code == 422

    response = api_client.post(
        "/manual-notifications", headers=auth_headers, json=_payload(hora_exibicao="25:00")
    )
    assert response.status_code == 422


def test_list_and_delete_manual_notifications(api_client, auth_headers, db_session):
    manual = seed_manual_notification(db_session)

    listed = api_client.get("/manual-notifications", headers=auth_headers)
    assert listed.status_code == 200, listed.text
    assert [row["id"] for row in listed.json()] == [str(manual.id)]

    response = api_client.delete(f"/manual-notifications/{manual.id}", headers=auth_headers)
    assert response.status_code == 204

    listed = api_client.get("/manual-notifications", headers=auth_headers)
    assert listed.json() == []

    response = api_client.delete(f"/manual-notifications/{manual.id}", headers=auth_headers)
    assert response.status_code == 204
