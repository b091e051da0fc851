def test_site_settings_default_then_update(api_client, auth_headers):
    response = api_client.get("/settings/site", headers=auth_headers)
    assert response.status_code == 200, response.text
    assert response.json()["id"] is None
    assert response.json()["meta_title"] is None

    response = api_client.put(
        "/settings/site",
        headers=auth_headers,
        json={"meta_title": "Odontopediatria", "primary_color": "#0ea5e9"},
    )
    assert response.status_code == 200, response.text
    first = response.json()
    assert first["id"] is not None

    response = api_client.put(
        "/settings/site", headers=auth_headers, json={"about_text": "Atendimento infantil"}
    )
    body = response.json()
    assert body["id"] == first["id"]
    assert body["meta_title"] == "Odontopediatria"
    assert body["about_text"] == "Atendimento infantil"


def test_site_settings_update_requires_admin(api_client, reception_headers):
    response = api_client.get("/settings/site", headers=reception_headers)
    assert response.status_code == 200

    response = api_client.put(
        "/settings/site", headers=reception_headers, json={"meta_title": "Outro"}
    )
    assert response.status_code == 403
