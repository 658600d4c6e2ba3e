from datetime import date

import pytest

from rentpay.models.payment import PaymentRecord
from rentpay.models.rental import RentalAgreement
from rentpay.models.schedule import DueDateEntry
from rentpay.services.date_utils import days_in_month
from rentpay.services.schedule_service import build_schedule, generate_payment_dates, merge_statuses, summarize_schedule

TODAY = date(2026, 1, 20)


def dates_of(entries):
  return [entry.date for entry in entries]


def test_two_month_rental_crossing_the_year():
  entries = generate_payment_dates(date(2025, 12, 2), date(2026, 1, 2), 2, 1500, TODAY)
  assert dates_of(entries) == [date(2025, 12, 2), date(2026, 1, 2)]
  assert all(entry.amount == 1500 for entry in entries)


def test_single_month_rental_has_one_payment():
  entries = generate_payment_dates(date(2026, 1, 1), date(2026, 1, 31), 1, 2000, TODAY)
  assert dates_of(entries) == [date(2026, 1, 1)]


def test_multi_month_rental():
  entries = generate_payment_dates(date(2026, 1, 15), date(2026, 4, 15), 15, 3000, TODAY)
  assert dates_of(entries) == [date(2026, 1, 15), date(2026, 2, 15), date(2026, 3, 15), date(2026, 4, 15)]
  assert [entry.isPast for entry in entries] == [True, False, False, False]
  assert {entry.status for entry in entries} == {"unpaid"}


def test_anchor_day_after_end_is_never_generated():
  entries = generate_payment_dates(date(2026, 1, 1), date(2026, 1, 5), 10, 1500, TODAY)
  assert dates_of(entries) == [date(2026, 1, 1)]


def test_same_day_rental():
  entries = generate_payment_dates(date(2026, 2, 10), date(2026, 2, 10), 10, 5000, TODAY)
  assert dates_of(entries) == [date(2026, 2, 10)]


def test_anchor_clamps_to_month_end():
  entries = generate_payment_dates(date(2026, 1, 31), date(2026, 5, 31), 31, 1000, TODAY)
  assert dates_of(entries) == [
    date(2026, 1, 31),
    date(2026, 2, 28),
    date(2026, 3, 31),
    date(2026, 4, 30),
    date(2026, 5, 31),
  ]


def test_anchor_clamps_in_leap_february():
  entries = generate_payment_dates(date(2024, 1, 30), date(2024, 3, 30), 30, 1000, TODAY)
  assert dates_of(entries) == [date(2024, 1, 30), date(2024, 2, 29), date(2024, 3, 30)]


def test_missing_anchor_uses_start_day():
  entries = generate_payment_dates(date(2026, 3, 5), date(2026, 5, 20), None, 800, TODAY)
  assert dates_of(entries) == [date(2026, 3, 5), date(2026, 4, 5), date(2026, 5, 5)]


def test_reversed_range_is_empty():
  assert generate_payment_dates(date(2026, 5, 1), date(2026, 4, 1), 1, 800, TODAY) == []


@pytest.mark.parametrize(
  "start, end, anchor",
  [
    (date(2025, 11, 30), date(2026, 6, 1), 31),
    (date(2026, 1, 1), date(2027, 12, 31), 29),
    (date(2026, 2, 28), date(2026, 9, 3), 1),
    (date(2026, 7, 17), date(2026, 7, 18), 20),
  ],
)
def test_every_due_date_lies_in_the_rental_period(start, end, anchor):
  entries = generate_payment_dates(start, end, anchor, 1000, TODAY)
  days = dates_of(entries)
  assert days[0] == start
  assert all(start <= day <= end for day in days)
  assert days == sorted(set(days))
  for day in days[1:]:
    assert day.day == min(anchor, days_in_month(day.year, day.month))


def test_merge_overlays_matching_records():
  entries = generate_payment_dates(date(2026, 1, 15), date(2026, 3, 15), 15, 3000, TODAY)
  records = [
    PaymentRecord(due_date="2026-02-15T00:00:00+00:00", status="paid", amount=2500),
    PaymentRecord(due_date="2026-03-15", status="partial", amount=0),
    PaymentRecord(due_date="2027-01-01", status="paid", amount=9999),
  ]
  merged = merge_statuses(entries, records)
  assert dates_of(merged) == dates_of(entries)
  assert [(entry.status, entry.amount) for entry in merged] == [
    ("unpaid", 3000),
    ("paid", 2500),
    ("partial", 3000),
  ]


def test_merge_without_records_defaults_to_unpaid():
  entries = generate_payment_dates(date(2026, 1, 15), date(2026, 4, 15), 15, 3000, TODAY)
  merged = merge_statuses(entries, [])
  assert len(merged) == 4
  assert {entry.status for entry in merged} == {"unpaid"}


def test_summary():
  entries = [
    DueDateEntry(date=date(2026, 1, 1), amount=3000, status="paid"),
    DueDateEntry(date=date(2026, 2, 1), amount=3000, status="unpaid"),
    DueDateEntry(date=date(2026, 3, 1), amount=3000, status="cancelled"),
    DueDateEntry(date=date(2026, 4, 1), amount=3000, status="overdue"),
  ]
  summary = summarize_schedule(entries)
  assert summary.totalDue == 12000
  assert summary.totalPaid == 3000
  assert summary.totalOutstanding == 6000
  assert summary.paymentCount == 4
  assert summary.paidCount == 1
  assert summary.unpaidCount == 2
  assert summary.nextDue.date == date(2026, 2, 1)


def test_build_schedule():
  rental = RentalAgreement(
    id="r1",
    rental_start_date="2025-12-02T08:00:00.000Z",
    rental_end_date="2026-01-02T08:00:00.000Z",
    payment_day_of_month=2,
    monthly_rent_amount=1500,
  )
  schedule = build_schedule(rental, [PaymentRecord(due_date="2025-12-02", status="paid", amount=1500)], TODAY)
  assert [entry.status for entry in schedule.entries] == ["paid", "unpaid"]
  assert [month.label for month in schedule.months] == ["December 2025", "January 2026"]
  assert schedule.summary.nextDue.date == date(2026, 1, 2)
  assert schedule.summary.totalOutstanding == 1500


def test_build_schedule_without_terms_is_empty():
  schedule = build_schedule(RentalAgreement(id="r2", rental_start_date="2026-01-01"), [], TODAY)
  assert schedule.entries == []
  assert schedule.months == []
  assert schedule.summary.paymentCount == 0
