from datetime import date

from sqlalchemy import select

from conftest import seed_patient
from odontoped.models import AuditAction, AuditEntity, AuditLog


def _history(**overrides):
    payload = {
        "queixa_principal": "Dor ao mastigar",
        "tipo_parto": "Cesárea",
        "aleitamento": "Materno",
        "frequencia_escovacao": "3x ao dia",
        "contem_fluor": True,
        "uso_mamadeira": True,
        "peso_atual": "22kg",
        "condicoes": {
            "asma": {"presente": True, "descricao": "Usa bombinha"},
            "uso_chupeta": {"presente": False, "descricao": "ignorado"},
        },
    }
    payload.update(overrides)
    return payload


def test_health_history_is_empty_until_saved(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)

    response = api_client.get(f"/patients/{patient.id}/health-history", headers=auth_headers)

    assert response.status_code == 200, response.text
    assert response.json() is None


def test_save_health_history_creates_then_updates(
    api_client, auth_headers, db_session, session_factory
):
    patient = seed_patient(db_session)
    url = f"/patients/{patient.id}/health-history"

    response = api_client.put(url, headers=auth_headers, json=_history())
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["tipo_parto"] == "Cesárea"
    assert body["contem_fluor"] is True
    assert body["condicoes"]["asma"] == {"presente": True, "descricao": "Usa bombinha"}
    assert body["condicoes"]["uso_chupeta"] == {"presente": False, "descricao": None}

    response = api_client.put(url, headers=auth_headers, json=_history(peso_atual="23kg"))
    assert response.status_code == 200, response.text
    assert response.json()["id"] == body["id"]

    fetched = api_client.get(url, headers=auth_headers).json()
    assert fetched["peso_atual"] == "23kg"

    with session_factory() as db:
        entries = db.execute(
            select(AuditLog.action, AuditLog.entity_type, AuditLog.patient_id).order_by(
                AuditLog.id
            )
        ).all()
    assert [tuple(e) for e in entries] == [
        (AuditAction.create, AuditEntity.health_history, patient.id),
        (AuditAction.update, AuditEntity.health_history, patient.id),
    ]


def test_health_history_rejects_unknown_condition(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)
    payload = _history(condicoes={"gripe": {"presente": True}})

    response = api_client.put(
        f"/patients/{patient.id}/health-history", headers=auth_headers, json=payload
    )

    assert response.status_code == 422


def test_health_history_for_missing_patient(api_client, auth_headers):
    response = api_client.put("/patients/999/health-history", headers=auth_headers, json=_history())
    assert response.status_code == 404


def test_treatment_plan_upsert(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)
    url = f"/patients/{patient.id}/treatment-plan"
    assert api_client.get(url, headers=auth_headers).json() is None

    first = api_client.put(url, headers=auth_headers, json={"plano_tratamento": "Selante"})
    assert first.status_code == 200, first.text
    second = api_client.put(
        url, headers=auth_headers, json={"plano_tratamento": "Selante\nProfilaxia"}
    )

    assert second.json()["id"] == first.json()["id"]
    assert api_client.get(url, headers=auth_headers).json()["plano_tratamento"] == (
        "Selante\nProfilaxia"
    )


def test_treatment_records_crud(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)
    other = seed_patient(db_session, nome="Outra")
    url = f"/patients/{patient.id}/treatment-records"

    for day, text in ((3, "Profilaxia"), (20, "Restauração 55"), (10, "Aplicação de flúor")):
        response = api_client.post(
            url,
            headers=auth_headers,
            json={"data_realizacao": date(2024, 5, day).isoformat(), "descricao_procedimento": text},
        )
        assert response.status_code == 201, response.text
    record_id = response.json()["id"]

    listed = api_client.get(url, headers=auth_headers).json()
    assert [r["descricao_procedimento"] for r in listed] == [
        "Restauração 55",
        "Aplicação de flúor",
        "Profilaxia",
    ]

    response = api_client.patch(
        f"{url}/{record_id}", headers=auth_headers, json={"descricao_procedimento": "Flúor gel"}
    )
    assert response.status_code == 200, response.text
    assert response.json()["data_realizacao"] == "2024-05-10"

    foreign = api_client.delete(
        f"/patients/{other.id}/treatment-records/{record_id}", headers=auth_headers
    )
    assert foreign.status_code == 404

    response = api_client.delete(f"{url}/{record_id}", headers=auth_headers)
    assert response.status_code == 204
    assert len(api_client.get(url, headers=auth_headers).json()) == 2


def test_treatment_record_requires_description(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)
    response = api_client.post(
        f"/patients/{patient.id}/treatment-records",
        headers=auth_headers,
        json={"data_realizacao": "2024-05-01", "descricao_procedimento": ""},
    )
    assert response.status_code == 422


def test_patient_audit_includes_sub_records(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)
    api_client.put(
        f"/patients/{patient.id}/treatment-plan",
        headers=auth_headers,
        json={"plano_tratamento": "Selante"},
    )
    api_client.post(
        f"/patients/{patient.id}/treatment-records",
        headers=auth_headers,
        json={"data_realizacao": "2024-05-01", "descricao_procedimento": "Profilaxia"},
    )

    response = api_client.get(f"/audit/patients/{patient.id}", headers=auth_headers)
    assert response.status_code == 200, response.text
    assert [e["entity_type"] for e in response.json()] == ["treatment_record", "treatment_plan"]

    response = api_client.get(
        "/audit", headers=auth_headers, params={"entity_type": "treatment_plan"}
    )
    assert [e["action"] for e in response.json()] == ["create"]


def test_audit_records_signatures_as_present_only(api_client, auth_headers, db_session):
    patient = seed_patient(db_session)

    response = api_client.patch(
        f"/patients/{patient.id}",
        headers=auth_headers,
        json={"assinatura_dentista": "data:image/png;base64,AAAA"},
    )
    assert response.status_code == 200, response.text

    entry = api_client.get(f"/audit/patients/{patient.id}", headers=auth_headers).json()[0]
    assert entry["action"] == "update"
    assert entry["before_json"]["assinatura_dentista"] is False
    assert entry["after_json"]["assinatura_dentista"] is True
    assert entry["after_json"]["assinatura_base64"] is False
