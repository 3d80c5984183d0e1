from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

from src.absence_booking.absence_booking.absences.service import AbsenceService
from src.absence_booking.absence_booking.core.enums import Role
from src.absence_booking.absence_booking.core.exceptions import ConflictError
from src.absence_booking.absence_booking.database.memory import InMemoryDatabase
from src.absence_booking.absence_booking.notifications.dispatcher import InMemoryNotificationDispatcher
from src.absence_booking.absence_booking.notifications.service import AbsenceNotifier
from src.absence_booking.absence_booking.users.model import User

ORG = "org-1"
WORKERS = 15


def _setup():
    db = InMemoryDatabase()
    db.add_user(User("m1", ORG, "Mia", "m1@example.com", Role.MANAGER, "Engineering"))
    db.add_user(User("e1", ORG, "Eve", "e1@example.com", Role.EMPLOYEE, "Engineering"))
    service = AbsenceService(db, AbsenceNotifier(InMemoryNotificationDispatcher()), clock=lambda: date(2026, 1, 15))
    return db, service


def _race(service, ranges):
    barrier = threading.Barrier(len(ranges))

    def book(r):
        barrier.wait()
        try:
            return service.create_absence(
                organization_id=ORG,
                user_id="e1",
                start_date=r[0],
                end_date=r[1],
                reason="Conference travel",
            )
        except ConflictError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=len(ranges)) as pool:
        return list(pool.map(book, ranges))


def test_same_range_race_has_exactly_one_winner():
    db, service = _setup()
    results = _race(service, [(date(2026, 3, 2), date(2026, 3, 6))] * WORKERS)

    winners = [r for r in results if not isinstance(r, ConflictError)]
    losers = [r for r in results if isinstance(r, ConflictError)]
    assert len(winners) == 1
    assert len(losers) == WORKERS - 1
    assert all(e.retryable and e.http_status == 409 for e in losers)
    assert [a.absence_id for a in db.absence_repository(ORG).find_by_user_id("e1")] == [winners[0].id]


def test_overlapping_ranges_race_keeps_stored_absences_disjoint():
    db, service = _setup()
    ranges = [(date(2026, 3, d), date(2026, 3, d + 3)) for d in range(1, WORKERS + 1)]
    _race(service, ranges)

    stored = list(db.absence_repository(ORG).find_by_user_id("e1"))
    assert stored
    for i, a in enumerate(stored):
        for b in stored[i + 1 :]:
            assert not a.date_range.overlaps(b.date_range)


def test_disjoint_ranges_all_succeed():
    db, service = _setup()
    ranges = [(date(2026, 3, d), date(2026, 3, d)) for d in (2, 4, 6, 8)]
    results = _race(service, ranges)

    assert not any(isinstance(r, ConflictError) for r in results)
    assert len(db.absence_repository(ORG).find_by_user_id("e1")) == 4
