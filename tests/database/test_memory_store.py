from __future__ import annotations

from datetime import date

import pytest

from src.absence_booking.absence_booking.absences.date_range import DateRange
from src.absence_booking.absence_booking.absences.model import Absence
from src.absence_booking.absence_booking.core.enums import IsolationLevel, Role
from src.absence_booking.absence_booking.core.exceptions import AuthorizationError
from src.absence_booking.absence_booking.database.memory import InMemoryDatabase
from src.absence_booking.absence_booking.database.unit_of_work import (
    SerializationFailure,
    TransactionOptions,
    TransactionTimeout,
)
from src.absence_booking.absence_booking.users.model import User

ORG = "org-1"
MARCH = DateRange.create(date(2026, 3, 2), date(2026, 3, 6))


def _absence(date_range=MARCH, org=ORG) -> Absence:
    return Absence.create(
        organization_id=org,
        user_id="e1",
        date_range=date_range,
        reason="Conference travel",
        today=date(2026, 1, 15),
    )


def _db() -> InMemoryDatabase:
    db = InMemoryDatabase()
    db.add_user(User("e1", ORG, "Eve", "e1@example.com", Role.EMPLOYEE, "Engineering"))
    db.add_user(User("m1", ORG, "Mia", "m1@example.com", Role.MANAGER, "Engineering"))
    return db


def _interleave(db, isolation):
    """Two check-then-insert bookings that both read before either commits."""
    options = TransactionOptions(isolation=isolation)
    first = db.unit_of_work(ORG, options)
    second = db.unit_of_work(ORG, options)
    uow1 = first.__enter__()
    uow2 = second.__enter__()

    assert uow1.absences.find_overlapping("e1", MARCH) == []
    assert uow2.absences.find_overlapping("e1", MARCH) == []
    uow1.absences.save(_absence())
    uow2.absences.save(_absence())

    first.__exit__(None, None, None)
    return lambda: second.__exit__(None, None, None)


def test_serializable_rejects_write_skew():
    db = _db()
    commit_second = _interleave(db, IsolationLevel.SERIALIZABLE)

    with pytest.raises(SerializationFailure):
        commit_second()
    assert len(db.absence_repository(ORG).find_by_user_id("e1")) == 1


def test_read_committed_allows_write_skew():
    db = _db()
    commit_second = _interleave(db, IsolationLevel.READ_COMMITTED)

    commit_second()
    assert len(db.absence_repository(ORG).find_by_user_id("e1")) == 2


def test_serializable_ignores_unrelated_commits():
    db = _db()
    options = TransactionOptions(isolation=IsolationLevel.SERIALIZABLE)
    april = DateRange.create(date(2026, 4, 1), date(2026, 4, 3))

    with db.unit_of_work(ORG, options) as uow:
        uow.absences.find_overlapping("e1", april)
        db.absence_repository(ORG).save(_absence())
        uow.absences.save(_absence(april))

    assert len(db.absence_repository(ORG).find_by_user_id("e1")) == 2


def test_concurrent_writes_to_same_absence_conflict():
    db = _db()
    absence = db.absence_repository(ORG).save(_absence())
    options = TransactionOptions(isolation=IsolationLevel.READ_COMMITTED)

    with pytest.raises(SerializationFailure):
        with db.unit_of_work(ORG, options) as uow:
            current = uow.absences.find_by_id(absence.absence_id, for_update=True)
            db.absence_repository(ORG).save(current.reject())
            uow.absences.save(current.approve())

    assert db.absence_repository(ORG).find_by_id(absence.absence_id).is_rejected


def test_writes_are_invisible_until_commit_and_dropped_on_error():
    db = _db()
    outside = db.absence_repository(ORG)

    with pytest.raises(RuntimeError):
        with db.unit_of_work(ORG, TransactionOptions()) as uow:
            saved = uow.absences.save(_absence())
            assert uow.absences.find_by_id(saved.absence_id) is not None
            assert outside.find_by_id(saved.absence_id) is None
            raise RuntimeError("boom")

    assert outside.find_by_user_id("e1") == []


def test_exhausted_budget_times_out():
    db = _db()
    with pytest.raises(TransactionTimeout):
        with db.unit_of_work(ORG, TransactionOptions(timeout=-1)) as uow:
            uow.users.get_by_id("e1")


def test_save_refuses_other_tenant():
    db = _db()
    with pytest.raises(AuthorizationError):
        db.absence_repository(ORG).save(_absence(org="org-2"))


def test_queries_are_scoped_to_tenant():
    db = _db()
    db.absence_repository(ORG).save(_absence())

    assert db.absence_repository("org-2").find_by_user_id("e1") == []
    assert db.user_repository("org-2").get_by_id("e1") is None
    assert [u.user_id for u in db.user_repository(ORG).list_managers(department="Engineering")] == ["m1"]


def test_change_log_keeps_only_what_open_transactions_need():
    db = _db()
    db.absence_repository(ORG).save(_absence())
    assert db._log == []

    pending = db.unit_of_work(ORG, TransactionOptions(isolation=IsolationLevel.SERIALIZABLE))
    pending.__enter__()
    db.absence_repository(ORG).save(_absence(DateRange.create(date(2026, 4, 1), date(2026, 4, 2))))
    assert len(db._log) == 1

    pending.__exit__(None, None, None)
    assert db._log == []
