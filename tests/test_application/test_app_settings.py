"""
Tests for app settings, contacts and pickup points
"""
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.application.app_settings import (
    DEFAULT_PRIMARY_COLOR,
    AddContactUseCase,
    DeleteContactUseCase,
    SaveSettingsUseCase,
    current_price_per_kg,
    settings_to_dict,
)
from app.application.errors import ConflictError, NotFoundError, ValidationError
from app.application.pvz import CreatePvzUseCase, DeletePvzUseCase, UpdatePvzUseCase, list_pvz
from app.infrastructure.db.models import AppSettings


class TestSettings:
    def test_defaults_without_row(self, db_session):
        with patch("app.application.app_settings.get_settings") as cfg:
            cfg.return_value.DEFAULT_PRICE_PER_KG = Decimal("12.00")
            data = settings_to_dict(db_session)
        assert data["primary_color"] == DEFAULT_PRIMARY_COLOR
        assert data["price_per_kg"] == "12.00"
        assert data["contacts"] == []

    def test_first_save_creates_row_then_updates(self, db_session):
        SaveSettingsUseCase(db_session).execute(price_per_kg="15,5", primary_color="#112233")
        SaveSettingsUseCase(db_session).execute(contact_phone=" +996700000000 ")

        assert db_session.query(AppSettings).count() == 1
        data = settings_to_dict(db_session)
        assert data["price_per_kg"] == "15.50"
        assert data["primary_color"] == "#112233"
        assert data["contact_phone"] == "+996700000000"
        assert current_price_per_kg(db_session) == Decimal("15.5")

    def test_bad_color(self, db_session):
        with pytest.raises(ValidationError, match="#rrggbb"):
            SaveSettingsUseCase(db_session).execute(primary_color="green")

    def test_bad_price(self, db_session):
        with pytest.raises(ValidationError):
            SaveSettingsUseCase(db_session).execute(price_per_kg="-3")


class TestContacts:
    def test_add_and_delete(self, db_session):
        first = AddContactUseCase(db_session).execute("Склад", "+996700000001", "с 9 до 18")
        second = AddContactUseCase(db_session).execute("Офис", "+996700000002")

        contacts = settings_to_dict(db_session)["contacts"]
        assert [c["name"] for c in contacts] == ["Склад", "Офис"]
        assert contacts[0]["note"] == "с 9 до 18"

        DeleteContactUseCase(db_session).execute(first["id"])
        assert [c["id"] for c in settings_to_dict(db_session)["contacts"]] == [second["id"]]

    def test_name_and_phone_required(self, db_session):
        with pytest.raises(ValidationError):
            AddContactUseCase(db_session).execute("Склад", "  ")

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            DeleteContactUseCase(db_session).execute("missing")


class TestPvz:
    def _create(self, db_session, pvz_id="yq"):
        return CreatePvzUseCase(db_session).execute(pvz_id, "Нариман", "Ул. Сулайманова 32", "义乌 5697库")

    def test_create_uppercases_id(self, db_session):
        assert self._create(db_session) == "YQ"
        assert [p.id for p in list_pvz(db_session)] == ["YQ"]

    def test_invalid_id(self, db_session):
        with pytest.raises(ValidationError):
            self._create(db_session, pvz_id="Y1")

    def test_duplicate(self, db_session):
        self._create(db_session)
        with pytest.raises(ConflictError):
            self._create(db_session)

    def test_update_and_delete(self, db_session):
        self._create(db_session)
        UpdatePvzUseCase(db_session).execute("YQ", address="Ул. Ленина 1")
        assert list_pvz(db_session)[0].address == "Ул. Ленина 1"

        DeletePvzUseCase(db_session).execute("YQ")
        assert list_pvz(db_session) == []

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            UpdatePvzUseCase(db_session).execute("ZZ", name="X")
