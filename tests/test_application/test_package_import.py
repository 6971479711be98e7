"""
Tests for the package spreadsheet import
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.application.errors import ValidationError
from app.application.package_import import (
    ColumnMapping,
    ImportPackagesUseCase,
    PackageImportResult,
    parse_arrival_date,
)
from app.infrastructure.db.models import EventLog, Package
from app.utils.clock import ensure_aware

PRICE = Decimal("12")


def _run(db_session, rows, mapping=None, **kwargs):
    mapping = mapping or ColumnMapping(track_column=1, weight_column=2)
    return ImportPackagesUseCase(db_session).execute(rows, mapping, PRICE, **kwargs)


def _get(db_session, track):
    return db_session.query(Package).filter(Package.track_number == track).one()


class TestColumnMapping:
    def test_track_column_required(self):
        with pytest.raises(ValidationError, match="трек-кодами"):
            ColumnMapping(track_column=0).validate()

    def test_columns_start_at_one(self):
        with pytest.raises(ValidationError):
            ColumnMapping(track_column=1, weight_column=0).validate()


class TestParseArrivalDate:
    def test_empty(self):
        assert parse_arrival_date(None) is None

    def test_date_cell(self):
        assert parse_arrival_date(date(2026, 3, 1)) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", ["2026-03-01", "01.03.2026", "01/03/2026"])
    def test_text_formats(self, text):
        assert parse_arrival_date(text).date() == date(2026, 3, 1)

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_arrival_date("вчера")


class TestImportPackages:
    def test_insert_then_update(self, db_session):
        rows = [["A1", 3.0], ["A2", None], ["A1", 3.0]]

        result = _run(db_session, rows)

        assert result.as_dict() == {"inserted": 2, "updated": 1, "skipped": 0}
        assert result.processed == 3
        assert db_session.query(Package).count() == 2

        a1 = _get(db_session, "A1")
        assert a1.status == "in_transit"
        assert a1.weight == Decimal("3")
        assert a1.price_per_kg == Decimal("12")
        assert a1.total_price == Decimal("36.00")
        assert a1.arrived_at is not None

        a2 = _get(db_session, "A2")
        assert a2.weight == Decimal("0")
        assert a2.total_price is None
        assert a2.price_per_kg is None

    def test_reimport_reweighs_existing_package(self, db_session):
        rows = [["A1", 2.0], ["A2", 0], ["A1", 3.0]]

        first = _run(db_session, rows[:1])
        assert first.as_dict() == {"inserted": 1, "updated": 0, "skipped": 0}
        assert _get(db_session, "A1").total_price == Decimal("24.00")

        second = _run(db_session, rows[1:])
        assert second.as_dict() == {"inserted": 1, "updated": 1, "skipped": 0}

        a1 = _get(db_session, "A1")
        assert a1.weight == Decimal("3")
        assert a1.total_price == Decimal("36.00")
        a2 = _get(db_session, "A2")
        assert a2.weight == Decimal("0")
        assert a2.total_price is None

    def test_single_import_of_reweighed_rows(self, db_session):
        result = _run(db_session, [["A1", 2.0], ["A2", 0], ["A1", 3.0]])
        assert result.as_dict() == {"inserted": 2, "updated": 1, "skipped": 0}
        assert _get(db_session, "A1").total_price == Decimal("36.00")

    def test_price_uses_stored_weight(self, db_session):
        _run(db_session, [["A1", "1.23456"]])
        a1 = _get(db_session, "A1")
        assert a1.weight == Decimal("1.235")
        assert a1.total_price == Decimal("14.82")

    def test_blank_tracks_skipped(self, db_session):
        result = _run(db_session, [["A1", 1], [None, 2], ["   ", 3]])
        assert result.as_dict() == {"inserted": 1, "updated": 0, "skipped": 2}

    def test_update_without_weight_keeps_price(self, db_session):
        _run(db_session, [["A1", 2]])
        _run(db_session, [["A1", None]])
        a1 = _get(db_session, "A1")
        assert a1.weight == Decimal("2")
        assert a1.total_price == Decimal("24.00")

    def test_moves_existing_package_to_in_transit(self, db_session):
        db_session.add(Package(track_number="A1", status="waiting_arrival", user_id=7))
        db_session.commit()

        result = _run(db_session, [["A1", 1.5]])

        assert result.updated == 1
        a1 = _get(db_session, "A1")
        assert a1.status == "in_transit"
        assert a1.user_id == 7
        assert a1.total_price == Decimal("18.00")

    def test_operator_date_wins(self, db_session):
        operator_date = datetime(2026, 3, 5, tzinfo=timezone.utc)
        mapping = ColumnMapping(track_column=1, date_column=2)
        _run(db_session, [["A1", "01.03.2026"]], mapping, arrival_date=operator_date)
        assert ensure_aware(_get(db_session, "A1").arrived_at) == operator_date

    def test_row_date_used(self, db_session):
        mapping = ColumnMapping(track_column=1, date_column=2)
        _run(db_session, [["A1", "01.03.2026"]], mapping)
        assert _get(db_session, "A1").arrived_at.date() == date(2026, 3, 1)

    def test_bad_row_date_skips_row_only(self, db_session):
        mapping = ColumnMapping(track_column=1, date_column=2)
        result = _run(db_session, [["A1", "вчера"], ["A2", "01.03.2026"]], mapping)
        assert result.as_dict() == {"inserted": 1, "updated": 0, "skipped": 1}
        assert db_session.query(Package).filter(Package.track_number == "A1").first() is None

    def test_client_code_column(self, db_session):
        mapping = ColumnMapping(track_column=1, weight_column=2, client_code_column=3)
        _run(db_session, [["A1", 1, " yq5 "]], mapping)
        assert _get(db_session, "A1").client_code == "YQ5"

    def test_short_row(self, db_session):
        mapping = ColumnMapping(track_column=1, weight_column=5)
        result = _run(db_session, [["A1"]], mapping)
        assert result.inserted == 1
        assert _get(db_session, "A1").weight == Decimal("0")

    def test_numeric_track_number(self, db_session):
        _run(db_session, [[123456789, 1]])
        assert _get(db_session, "123456789").status == "in_transit"

    def test_row_failure_rolled_back_batch_continues(self, db_session):
        original = ImportPackagesUseCase._import_row

        def flaky(self, row, track_number, *args):
            if track_number == "BAD":
                raise RuntimeError("boom")
            return original(self, row, track_number, *args)

        with patch.object(ImportPackagesUseCase, "_import_row", flaky):
            result = _run(db_session, [["A1", 1], ["BAD", 1], ["A2", 1]])

        assert result.as_dict() == {"inserted": 2, "updated": 0, "skipped": 1}

    def test_audited(self, db_session):
        _run(db_session, [["A1", 1]], actor_user_id=5)
        event = db_session.query(EventLog).filter(EventLog.event_type == "packages_imported").one()
        assert event.actor_user_id == 5
        assert event.payload_json == {"inserted": 1, "updated": 0, "skipped": 0}


def test_empty_result():
    assert PackageImportResult().as_dict() == {"inserted": 0, "updated": 0, "skipped": 0}
