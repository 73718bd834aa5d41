from conftest import login_as

PROFILE = {"nombre": "Ana María", "apellido": "Torres", "edad": 31, "telefono": "611222333"}


def test_read_profile(client, ids):
    login_as(client, "ana@example.com")
    data = client.get("/profile").json()["data"]
    assert data["id_paciente"] == ids["ana"]
    assert data["email"] == "ana@example.com"
    assert data["nombre"] == "Ana"
    assert data["edad"] == 30


def test_update_profile(client, ids):
    login_as(client, "ana@example.com")
    res = client.put("/profile", json=PROFILE)
    assert res.status_code == 200
    assert res.json()["message"] == "Perfil actualizado correctamente."

    data = client.get("/profile").json()["data"]
    assert data["nombre"] == "Ana María"
    assert data["id_paciente"] == ids["ana"]


def test_profile_created_lazily(client):
    login_as(client, "admin@example.com")
    data = client.get("/profile").json()["data"]
    assert data["id_paciente"] is None
    assert data["nombre"] is None

    res = client.put("/profile", json=PROFILE)
    assert res.json()["message"] == "Perfil creado correctamente."
    assert client.get("/profile").json()["data"]["id_paciente"] is not None


def test_profile_validation(client):
    login_as(client, "ana@example.com")
    res = client.put("/profile", json={**PROFILE, "edad": 16})
    assert res.status_code == 400
    assert res.json()["error"] == "Edad inválida. Debe ser mayor de 18 años."

    res = client.put("/profile", json={**PROFILE, "telefono": "123"})
    assert res.json()["error"] == "Teléfono inválido (mínimo 6 caracteres)."
