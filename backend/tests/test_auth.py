from clinic.services import auth_service
from conftest import login_as

VALID_REGISTRATION = {
    "first": "Elena",
    "last": "Martín",
    "age": 18,
    "phone": "+34 600-123-456",
    "email": "  Elena@Example.com ",
    "password": "abcdef",
}


def test_login_sets_session_cookie(client, ids):
    res = login_as(client, "ana@example.com")
    body = res.json()
    assert body["success"] is True
    assert body["usuario"] == {"id": ids["ana_user"], "email": "ana@example.com", "Rol": "patient"}
    assert "access_token" in res.cookies

    me = client.get("/me")
    assert me.status_code == 200
    assert me.json()["usuario"]["Rol"] == "patient"


def test_login_wrong_password(client):
    res = client.post("/login", json={"email": "ana@example.com", "password": "nope"})
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Contraseña incorrecta."


def test_login_unknown_email(client):
    res = client.post("/login", json={"email": "nadie@example.com", "password": "x"})
    assert res.status_code == 401
    assert res.json()["error"] == "El correo no está registrado."


def test_login_email_is_case_insensitive(client):
    res = client.post("/login", json={"email": " ANA@example.com", "password": "secreto-ana"})
    assert res.status_code == 200


def test_protected_route_without_session(client):
    res = client.get("/me")
    assert res.status_code == 401
    assert res.json()["code"] == "Unauthorized"


def test_invalid_token_rejected(client):
    res = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_logout_clears_cookie(client):
    login_as(client, "ana@example.com")
    assert client.post("/logout").json() == {"success": True}
    assert client.get("/me").status_code == 401


def test_register_adult_then_login(client):
    res = client.post("/register", json=VALID_REGISTRATION)
    assert res.status_code == 201, res.text
    assert res.json()["success"] is True

    login = client.post("/login", json={"email": "elena@example.com", "password": "abcdef"})
    assert login.status_code == 200
    assert login.json()["usuario"]["Rol"] == "patient"

    profile = client.get("/profile").json()["data"]
    assert profile["nombre"] == "Elena"
    assert profile["edad"] == 18


def test_register_underage_rejected(client):
    res = client.post("/register", json={**VALID_REGISTRATION, "age": 17})
    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "ValidationFailed"
    assert body["error"] == "Debes ser mayor de 18 años para crear una cuenta."


def test_register_validation_messages(client):
    cases = [
        ({"first": "  "}, "Nombre y apellido obligatorios."),
        ({"phone": "abc"}, "Ingrese un número de teléfono válido."),
        ({"email": "no-es-correo"}, "Ingrese un correo electrónico válido."),
        ({"password": "123"}, "La contraseña debe tener al menos 6 caracteres."),
    ]
    for override, message in cases:
        res = client.post("/register", json={**VALID_REGISTRATION, **override})
        assert res.status_code == 400, override
        assert res.json()["error"] == message


def test_register_duplicate_email(client):
    res = client.post("/register", json={**VALID_REGISTRATION, "email": "ANA@example.com"})
    assert res.status_code == 409
    assert res.json() == {"success": False, "code": "Conflict", "error": "El correo ya está en uso."}


def test_password_with_surrounding_spaces_can_log_in(client):
    res = client.post("/register", json={**VALID_REGISTRATION, "password": " clave123 "})
    assert res.status_code == 201

    for typed in (" clave123 ", "clave123"):
        login = client.post("/login", json={"email": "elena@example.com", "password": typed})
        assert login.status_code == 200, typed


def test_register_password_length_ignores_spaces(client):
    res = client.post("/register", json={**VALID_REGISTRATION, "password": "  123  "})
    assert res.status_code == 400
    assert res.json()["error"] == "La contraseña debe tener al menos 6 caracteres."


def test_register_email_race_is_a_conflict(client, monkeypatch):
    async def not_found(db, email):
        return None

    # la comprobación previa no ve al otro registro; decide el índice único
    monkeypatch.setattr(auth_service, "get_user_by_email", not_found)
    res = client.post("/register", json={**VALID_REGISTRATION, "email": "ana@example.com"})
    assert res.status_code == 409
    assert res.json() == {"success": False, "code": "Conflict", "error": "El correo ya está en uso."}

    monkeypatch.undo()
    assert client.post("/login", json={"email": "ana@example.com", "password": "secreto-ana"}).status_code == 200
