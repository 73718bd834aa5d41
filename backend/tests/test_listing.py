from conftest import book, login_as


def test_calendar_without_appointments_is_empty_list(client):
    login_as(client, "marta@example.com")
    res = client.get("/calendar")
    assert res.status_code == 200
    assert res.json() == []


def test_calendar_events(client, ids):
    login_as(client, "ana@example.com")
    book(client, ids["marta"], fecha="2030-06-01", hora="10:00", motivo="Duelo", duracion=45)
    cancelled = book(client, ids["marta"], fecha="2030-06-03", hora="10:00").json()["id_cita"]
    client.post("/cancel-appointment", data={"id": cancelled})

    login_as(client, "marta@example.com")
    events = client.get("/calendar", params={"idDoctor": ids["marta"]}).json()
    assert len(events) == 1
    event = events[0]
    assert event["title"] == "Ana Torres"
    assert event["paciente"] == "Ana Torres"
    assert event["start"] == "2030-06-01 10:00:00"
    assert event["end"] == "2030-06-01 10:45:00"
    assert event["fecha"] == "01/06/2030"
    assert event["hora"] == "10:00"
    assert event["estado"] == "Pendiente"
    assert event["motivo"] == "Duelo"


def test_calendar_of_other_psychologist_forbidden(client, ids):
    login_as(client, "marta@example.com")
    res = client.get("/calendar", params={"idDoctor": ids["carlos"]})
    assert res.status_code == 403

    login_as(client, "ana@example.com")
    assert client.get("/calendar").status_code == 403

    login_as(client, "admin@example.com")
    assert client.get("/calendar", params={"idDoctor": ids["carlos"]}).json() == []


def test_patient_calendar(client, ids):
    login_as(client, "ana@example.com")
    book(client, ids["carlos"], fecha="2030-07-01", hora="18:00")
    events = client.get("/patient-calendar").json()
    assert [e["title"] for e in events] == ["Carlos Díaz"]
    assert events[0]["psicologo"] == "Carlos Díaz"


def test_next_appointment(client, ids):
    login_as(client, "ana@example.com")
    assert client.get("/next-appointment").json() == {"message": "No hay próximas citas"}

    book(client, ids["marta"], fecha="2031-01-10", hora="09:00")
    book(client, ids["carlos"], fecha="2030-12-01", hora="17:00")
    # las citas pasadas no cuentan
    book(client, ids["marta"], fecha="2020-01-01", hora="09:00")

    nxt = client.get("/next-appointment").json()
    assert nxt["fecha_cita"] == "2030-12-01T17:00:00"
    assert nxt["psicologo"] == "Carlos Díaz"
    assert nxt["especialidad"] == "Terapia familiar"
    assert nxt["duracion"] == 60


def test_patient_cannot_read_other_patient(client, ids):
    login_as(client, "ana@example.com")
    assert client.get("/next-appointment", params={"idPaciente": ids["luis"]}).status_code == 403
    assert client.get("/next-appointment", params={"idPaciente": ids["ana"]}).status_code == 200

    login_as(client, "marta@example.com")
    res = client.get("/patient-calendar", params={"idPaciente": ids["luis"]})
    assert res.status_code == 200
    assert res.json() == []


def test_patient_roster(client, ids):
    login_as(client, "luis@example.com")
    book(client, ids["marta"], fecha="2030-06-01", hora="10:00")
    login_as(client, "ana@example.com")
    book(client, ids["marta"], fecha="2030-06-02", hora="10:00")
    book(client, ids["marta"], fecha="2030-06-09", hora="10:00")
    book(client, ids["carlos"], fecha="2030-06-20", hora="10:00")

    login_as(client, "marta@example.com")
    client.post("/notes", json={"id_paciente": ids["ana"], "fecha_sesion": "2030-06-02", "contenido": "Primera sesión"})

    roster = client.get("/patients-roster").json()["data"]
    assert [p["nombre_completo"] for p in roster] == ["Ana Torres", "Luis Gómez"]
    ana, luis = roster
    assert ana["ultima_sesion"] == "2030-06-02"
    assert ana["ultima_cita"] == "2030-06-09T10:00:00"
    assert luis["ultima_sesion"] is None


def test_roster_requires_psychologist(client):
    login_as(client, "ana@example.com")
    res = client.get("/patients-roster")
    assert res.status_code == 403
    assert res.json()["error"] == "No se encontró el perfil del psicólogo."


def test_specialties_and_psychologists(client, ids):
    login_as(client, "ana@example.com")
    specialties = client.get("/specialties").json()["especialidades"]
    assert {s["nombre"] for s in specialties} == {"Terapia individual", "Terapia familiar"}

    res = client.get("/psychologists", params={"especialidad": ids["specialty_familiar"]})
    assert res.json() == {"success": True, "psicologos": [{"id": ids["carlos"], "nombre": "Carlos Díaz"}]}


def test_psychologist_me(client, ids):
    login_as(client, "marta@example.com")
    assert client.get("/psychologist/me").json() == {"success": True, "id_psicologo": ids["marta"]}
