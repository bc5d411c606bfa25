"""
Router docenti, tesoretti e anni scolastici
"""
import uuid
from datetime import date

from recupero.models.school_year import SchoolYear


def activity_for(teacher, school_year, recovery_type, **extra):
    return {
        "teacher_id": str(teacher.id),
        "school_year_id": str(school_year.id),
        "recovery_type_id": str(recovery_type.id),
        "date": "2024-10-07",
        "module_number": 3,
        "class_name": "3A",
        **extra,
    }


class TestTeachers:

    def test_list_ordered_with_budgets(self, client, auth_headers, budget):
        client.post("/api/v1/teachers", json={"cognome": "Bianchi", "nome": "Anna"}, headers=auth_headers)

        resp = client.get("/api/v1/teachers", headers=auth_headers)

        assert resp.status_code == 200
        teachers = resp.json()["teachers"]
        assert [t["cognome"] for t in teachers] == ["Bianchi", "Rossi"]
        assert teachers[0]["budgets"] == []
        rossi_budget = teachers[1]["budgets"][0]
        assert rossi_budget["modules_annual"] == 2
        assert rossi_budget["modules_remaining"] == 2
        assert rossi_budget["school_year"]["name"] == "2024-25"

    def test_create(self, client, auth_headers):
        resp = client.post(
            "/api/v1/teachers",
            json={"cognome": "  Verdi ", "nome": "Luca", "email": "Luca.Verdi@Scuola.it"},
            headers=auth_headers,
        )

        assert resp.status_code == 201
        teacher = resp.json()["teacher"]
        assert teacher["cognome"] == "Verdi"
        assert teacher["email"] == "luca.verdi@scuola.it"
        uuid.UUID(teacher["id"])

    def test_create_requires_names(self, client, auth_headers):
        resp = client.post("/api/v1/teachers", json={"cognome": "Verdi"}, headers=auth_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation error"
        assert body["details"]

        resp = client.post("/api/v1/teachers", json={"cognome": "   ", "nome": "Luca"}, headers=auth_headers)
        assert resp.status_code == 400

    def test_create_invalid_email(self, client, auth_headers):
        resp = client.post(
            "/api/v1/teachers", json={"cognome": "Verdi", "nome": "Luca", "email": "nope"}, headers=auth_headers
        )
        assert resp.status_code == 400

    def test_duplicate_email_conflict(self, client, auth_headers, teacher):
        resp = client.post(
            "/api/v1/teachers",
            json={"cognome": "Altro", "nome": "Docente", "email": teacher.email},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert "error" in resp.json()

    def test_get_update_delete(self, client, auth_headers, teacher):
        url = f"/api/v1/teachers/{teacher.id}"

        assert client.get(url, headers=auth_headers).json()["nome"] == "Mario"

        resp = client.put(url, json={"nome": "Mario Luigi"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["nome"] == "Mario Luigi"
        assert resp.json()["cognome"] == "Rossi"

        assert client.delete(url, headers=auth_headers).json() == {"success": True}
        resp = client.get(url, headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Docente non trovato"}


class TestBudgets:

    def test_list_with_filters(self, client, auth_headers, budget, teacher, school_year):
        resp = client.get("/api/v1/budgets", headers=auth_headers)
        assert resp.status_code == 200
        budgets = resp.json()["budgets"]
        assert len(budgets) == 1
        assert budgets[0]["teacher"] == {"id": str(teacher.id), "cognome": "Rossi", "nome": "Mario"}
        assert budgets[0]["saldo"] == 100

        resp = client.get("/api/v1/budgets", params={"teacherId": str(uuid.uuid4())}, headers=auth_headers)
        assert resp.json() == {"budgets": []}

        resp = client.get("/api/v1/budgets", params={"schoolYearId": str(school_year.id)}, headers=auth_headers)
        assert len(resp.json()["budgets"]) == 1

    def test_invalid_filter_is_a_validation_error(self, client, auth_headers):
        resp = client.get("/api/v1/budgets", params={"teacherId": "abc"}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Validation error"

    def test_get_budget_detail(self, client, auth_headers, budget, teacher, school_year):
        resp = client.get(f"/api/v1/budgets/{budget.id}", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["teacher"]["cognome"] == "Rossi"
        assert body["school_year"]["name"] == "2024-25"
        assert body["percentage_used"] == 0

        resp = client.get(f"/api/v1/budgets/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Tesoretto non trovato"}

    def test_update_recomputes_modules(self, client, auth_headers, budget, teacher, school_year, recovery_type):
        client.post("/api/v1/activities", json=activity_for(teacher, school_year, recovery_type), headers=auth_headers)

        resp = client.put(
            f"/api/v1/budgets/{budget.id}",
            json={"minutes_weekly": 200, "minutes_annual": 500, "import_source": "correzione"},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["minutes_annual"] == 500
        assert body["modules_annual"] == 10
        assert body["minutes_used"] == 50
        assert body["percentage_used"] == 10
        assert body["import_source"] == "correzione"

    def test_update_below_used_is_rejected(self, client, auth_headers, budget, teacher, school_year, recovery_type):
        client.post("/api/v1/activities", json=activity_for(teacher, school_year, recovery_type), headers=auth_headers)

        resp = client.put(
            f"/api/v1/budgets/{budget.id}", json={"minutes_weekly": 100, "minutes_annual": 40}, headers=auth_headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "I minuti annuali non possono essere inferiori a quelli già utilizzati"}

    def test_delete_with_activities_is_rejected(self, client, auth_headers, budget, teacher, school_year, recovery_type):
        client.post("/api/v1/activities", json=activity_for(teacher, school_year, recovery_type), headers=auth_headers)

        resp = client.delete(f"/api/v1/budgets/{budget.id}", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Impossibile eliminare")

    def test_delete(self, client, auth_headers, budget):
        resp = client.delete(f"/api/v1/budgets/{budget.id}", headers=auth_headers)
        assert resp.json() == {"success": True, "message": "Tesoretto eliminato con successo"}
        assert client.get("/api/v1/budgets", headers=auth_headers).json() == {"budgets": []}


class TestSchoolYears:

    def test_active_not_found(self, client, auth_headers):
        resp = client.get("/api/v1/school-years/active", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Nessun anno scolastico attivo trovato"}

    def test_active(self, client, auth_headers, school_year):
        resp = client.get("/api/v1/school-years/active", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "2024-25"
        assert resp.json()["is_active"] is True

    def test_activating_a_year_deactivates_the_others(self, client, auth_headers, school_year, db_session):
        resp = client.post(
            "/api/v1/school-years",
            json={"name": "2025-26", "start_date": "2025-09-01", "end_date": "2026-06-30", "is_active": True},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["weeks_count"] == 30

        db_session.expire_all()
        active = [y.name for y in db_session.query(SchoolYear).filter(SchoolYear.is_active.is_(True))]
        assert active == ["2025-26"]

        resp = client.get("/api/v1/school-years", params={"activeOnly": "true"}, headers=auth_headers)
        assert [y["name"] for y in resp.json()] == ["2025-26"]
        assert len(client.get("/api/v1/school-years", headers=auth_headers).json()) == 2

    def test_inactive_year_leaves_active_one(self, client, auth_headers, school_year):
        resp = client.post(
            "/api/v1/school-years",
            json={"name": "2023-24", "start_date": "2023-09-01", "end_date": "2024-06-30"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert client.get("/api/v1/school-years/active", headers=auth_headers).json()["name"] == "2024-25"

    def test_invalid_year(self, client, auth_headers):
        bad_name = {"name": "2024/25", "start_date": "2024-09-01", "end_date": "2025-06-30"}
        assert client.post("/api/v1/school-years", json=bad_name, headers=auth_headers).status_code == 400

        bad_dates = {"name": "2024-25", "start_date": "2025-06-30", "end_date": "2024-09-01"}
        assert client.post("/api/v1/school-years", json=bad_dates, headers=auth_headers).status_code == 400

    def test_duplicate_name(self, client, auth_headers, school_year):
        payload = {"name": "2024-25", "start_date": "2024-09-01", "end_date": "2025-06-30"}
        assert client.post("/api/v1/school-years", json=payload, headers=auth_headers).status_code == 409

    def test_get_update_and_activate(self, client, auth_headers, school_year, db_session):
        other = SchoolYear(name="2025-26", start_date=date(2025, 9, 1), end_date=date(2026, 6, 30))
        db_session.add(other)
        db_session.commit()
        url = f"/api/v1/school-years/{other.id}"

        assert client.get(url, headers=auth_headers).json()["is_active"] is False

        resp = client.put(url, json={"is_active": True, "weeks_count": 33}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["weeks_count"] == 33
        assert resp.json()["is_active"] is True
        assert client.get("/api/v1/school-years/active", headers=auth_headers).json()["name"] == "2025-26"

        db_session.expire_all()
        assert db_session.get(SchoolYear, school_year.id).is_active is False

    def test_update_checks_dates_against_stored_ones(self, client, auth_headers, school_year):
        resp = client.put(
            f"/api/v1/school-years/{school_year.id}", json={"end_date": "2024-08-01"}, headers=auth_headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "end_date deve essere successiva a start_date"}

        resp = client.put(f"/api/v1/school-years/{school_year.id}", json={"name": "24-25"}, headers=auth_headers)
        assert resp.status_code == 400

    def test_update_duplicate_name(self, client, auth_headers, school_year, db_session):
        other = SchoolYear(name="2025-26", start_date=date(2025, 9, 1), end_date=date(2026, 6, 30))
        db_session.add(other)
        db_session.commit()

        resp = client.put(f"/api/v1/school-years/{other.id}", json={"name": "2024-25"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_delete_with_budgets_is_rejected(self, client, auth_headers, budget, school_year):
        resp = client.delete(f"/api/v1/school-years/{school_year.id}", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Impossibile eliminare")

    def test_delete(self, client, auth_headers, school_year):
        url = f"/api/v1/school-years/{school_year.id}"
        assert client.delete(url, headers=auth_headers).json() == {"success": True}
        assert client.get(url, headers=auth_headers).status_code == 404
