from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from clinic.errors import NotFoundOrForbidden, SlotTaken, register_error_handlers


def make_app():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/slot")
    async def slot():
        raise SlotTaken()

    @app.get("/missing")
    async def missing():
        raise NotFoundOrForbidden("No existe.")

    @app.get("/db")
    async def db():
        raise OperationalError("SELECT 1", {}, Exception("password=hunter2 connection refused"))

    return app


def test_clinic_error_envelope():
    client = TestClient(make_app())
    res = client.get("/slot")
    assert res.status_code == 409
    assert res.json() == {
        "success": False,
        "code": "SlotTaken",
        "error": "El horario seleccionado ya está ocupado.",
    }
    assert client.get("/missing").json()["error"] == "No existe."


def test_database_error_hides_driver_text():
    client = TestClient(make_app(), raise_server_exceptions=False)
    res = client.get("/db")
    assert res.status_code == 500
    body = res.json()
    assert body["code"] == "DatabaseError"
    assert "hunter2" not in body["error"]


def test_unknown_route_uses_envelope():
    res = TestClient(make_app()).get("/nope")
    assert res.status_code == 404
    assert res.json()["success"] is False
    assert res.json()["code"] == "HTTPError"
