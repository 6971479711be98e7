"""
Tests for /api/v1/packages endpoints
"""
import inspect
import io

import pytest
from openpyxl import Workbook

from app.api.v1 import admin as admin_routes
from app.api.v1 import packages as package_routes
from app.domain.role import Role
from app.infrastructure.db.models import Package

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestOwnPackages:
    def test_add_and_list(self, client, make_account, login):
        make_account()
        login("+996555000111")

        response = client.post("/api/v1/packages", json={"track_number": "LP1"})
        assert response.status_code == 201

        packages = client.get("/api/v1/packages").json()
        assert [p["track_number"] for p in packages] == ["LP1"]
        assert packages[0]["status"] == "waiting_arrival"
        assert packages[0]["total_price"] is None

    def test_requires_session(self, client):
        assert client.get("/api/v1/packages").status_code == 401

    def test_duplicate_conflict(self, client, make_account, login):
        make_account()
        login("+996555000111")
        client.post("/api/v1/packages", json={"track_number": "LP1"})
        response = client.post("/api/v1/packages", json={"track_number": "LP1"})
        assert response.status_code == 409


class TestImport:
    def test_import_and_in_transit(self, client, db_session, admin_account, make_account, login):
        make_account(client_code="YQ5")
        login("+996700900900")
        content = _xlsx([
            ["Трек-код", "Вес", "Код"],
            ["A1", 3.0, "YQ5"],
            ["A2", None, None],
            ["A1", 3.0, "YQ5"],
        ])

        response = client.post(
            "/api/v1/packages/import",
            files={"file": ("partiya.xlsx", content, XLSX_TYPE)},
            data={"track_column": "1", "weight_column": "2", "client_code_column": "3", "price_per_kg": "12"},
        )

        assert response.status_code == 200
        assert response.json() == {"inserted": 2, "updated": 1, "skipped": 0}

        in_transit = {p["track_number"]: p for p in client.get("/api/v1/packages/in-transit").json()}
        assert in_transit["A1"]["total_price"] == "36.00"
        assert in_transit["A1"]["owner"]["client_code"] == "YQ5"
        assert in_transit["A2"]["total_price"] is None

    def test_preview(self, client, admin_account, login):
        login("+996700900900")
        content = _xlsx([["Трек", "Вес"], ["A1", 1], ["A2", 2]])
        response = client.post(
            "/api/v1/packages/import/preview",
            files={"file": ("p.xlsx", content, XLSX_TYPE)},
        )
        assert response.json() == {"header": ["Трек", "Вес"], "rows": [["A1", 1], ["A2", 2]], "total_rows": 2}

    def test_wrong_file_type(self, client, admin_account, login):
        login("+996700900900")
        response = client.post(
            "/api/v1/packages/import",
            files={"file": ("p.csv", b"a,b", "text/csv")},
            data={"track_column": "1"},
        )
        assert response.status_code == 400

    def test_bad_price(self, client, admin_account, login):
        login("+996700900900")
        response = client.post(
            "/api/v1/packages/import",
            files={"file": ("p.xlsx", _xlsx([["T"], ["A1"]]), XLSX_TYPE)},
            data={"track_column": "1", "price_per_kg": "дорого"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Некорректная цена"

    def test_user_cannot_import(self, client, make_account, login):
        make_account()
        login("+996555000111")
        response = client.post(
            "/api/v1/packages/import",
            files={"file": ("p.xlsx", _xlsx([["T"], ["A1"]]), XLSX_TYPE)},
            data={"track_column": "1"},
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("endpoint", [
        package_routes.import_packages,
        package_routes.preview_import,
        admin_routes.admin_users_import,
    ])
    def test_upload_routes_run_in_threadpool(self, endpoint):
        # sync routes are dispatched to the threadpool, off the event loop
        assert not inspect.iscoroutinefunction(endpoint)


class TestStatusChange:
    def test_pvz_operator_scope(self, client, db_session, make_account, login):
        make_account(phone="+996555777777", client_code="JL900", pvz_location="dostuk", role=Role.PVZ)
        mine, _ = make_account(phone="+996555000222", client_code="JL5", pvz_location="dostuk")
        other, _ = make_account(phone="+996555000333", client_code="YQ5")
        db_session.add_all([
            Package(track_number="MINE", status="in_transit", user_id=mine.id),
            Package(track_number="OTHER", status="in_transit", user_id=other.id),
        ])
        db_session.commit()
        login("+996555777777")

        listed = [p["track_number"] for p in client.get("/api/v1/packages/in-transit").json()]
        assert listed == ["MINE"]

        mine_id = db_session.query(Package.id).filter(Package.track_number == "MINE").scalar()
        other_id = db_session.query(Package.id).filter(Package.track_number == "OTHER").scalar()
        assert client.patch(f"/api/v1/packages/{mine_id}/status", json={"status": "arrived"}).status_code == 200
        assert client.patch(f"/api/v1/packages/{other_id}/status", json={"status": "arrived"}).status_code == 403

    def test_user_cannot_change_status(self, client, db_session, make_account, login):
        user, _ = make_account()
        db_session.add(Package(track_number="LP1", status="in_transit", user_id=user.id))
        db_session.commit()
        login("+996555000111")
        package_id = db_session.query(Package.id).scalar()
        response = client.patch(f"/api/v1/packages/{package_id}/status", json={"status": "delivered"})
        assert response.status_code == 403

    def test_unknown_status(self, client, db_session, admin_account, login):
        db_session.add(Package(track_number="LP1", status="in_transit"))
        db_session.commit()
        login("+996700900900")
        package_id = db_session.query(Package.id).scalar()
        response = client.patch(f"/api/v1/packages/{package_id}/status", json={"status": "lost"})
        assert response.status_code == 400
