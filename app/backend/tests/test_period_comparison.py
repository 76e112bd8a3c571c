from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.models.entities import DonationStatus, TransactionStatus
from app.services.period_comparison import (
    PeriodWindow,
    compare_period,
    month_end,
    month_sequence,
    period_totals,
    shift_month,
)
from app.services.records import AssociationRecord, DonationRecord, TransactionRecord


class InMemorySource:
    """Period source over plain lists that records every call."""

    def __init__(
        self,
        donations: Sequence[DonationRecord] = (),
        transactions: Sequence[TransactionRecord] = (),
        associations: Sequence[AssociationRecord] = (),
    ) -> None:
        self.donations = list(donations)
        self.transactions = list(transactions)
        self.associations = list(associations)
        self.calls: list[str] = []

    def donations_between(self, start: date, end: date) -> list[DonationRecord]:
        self.calls.append("donations")
        return [row for row in self.donations if start <= row.donation_date <= end]

    def transactions_between(self, start: datetime, end: datetime) -> list[TransactionRecord]:
        self.calls.append("transactions")
        return [row for row in self.transactions if start <= row.occurred_at < end]

    def associations_validated_since(self, since: datetime) -> list[AssociationRecord]:
        self.calls.append("associations")
        return [
            row
            for row in self.associations
            if row.validated and row.validated_at is not None and row.validated_at >= since
        ]


def _donation(amount: str, day: date, status: DonationStatus = DonationStatus.VALIDATED) -> DonationRecord:
    return DonationRecord(
        id=uuid.uuid4(),
        amount=Decimal(amount),
        status=status,
        donation_date=day,
        donor_id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        association_id=uuid.uuid4(),
    )


def _transaction(amount: str, at: datetime, status: TransactionStatus) -> TransactionRecord:
    return TransactionRecord(
        id=uuid.uuid4(),
        donation_id=uuid.uuid4(),
        amount=Decimal(amount),
        fee=Decimal("1.00"),
        status=status,
        occurred_at=at,
    )


def test_previous_window_has_equal_length_and_ends_before_start() -> None:
    window = PeriodWindow(date(2024, 1, 1), date(2024, 1, 31))

    previous = window.previous()

    assert previous == PeriodWindow(date(2023, 12, 1), date(2023, 12, 31))
    assert previous.days == window.days


def test_single_day_window() -> None:
    window = PeriodWindow(date(2024, 3, 1), date(2024, 3, 1))

    assert window.days == 1
    assert window.previous() == PeriodWindow(date(2024, 2, 29), date(2024, 2, 29))
    assert window.ends_before == datetime(2024, 3, 2)


def test_window_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        PeriodWindow(date(2024, 2, 1), date(2024, 1, 1))


def test_window_factories() -> None:
    today = date(2024, 3, 15)

    assert PeriodWindow.trailing_days(today, 7) == PeriodWindow(date(2024, 3, 8), today)
    assert PeriodWindow.month_to_date(today) == PeriodWindow(date(2024, 3, 1), today)
    assert PeriodWindow.calendar_month(date(2024, 2, 10)) == PeriodWindow(date(2024, 2, 1), date(2024, 2, 29))


def test_month_helpers_cross_year_boundaries() -> None:
    assert shift_month(date(2024, 1, 20), -1) == date(2023, 12, 1)
    assert shift_month(date(2023, 12, 5), 1) == date(2024, 1, 1)
    assert month_end(date(2023, 2, 3)) == date(2023, 2, 28)
    assert month_sequence(date(2023, 11, 15), date(2024, 2, 1)) == [
        date(2023, 11, 1),
        date(2023, 12, 1),
        date(2024, 1, 1),
        date(2024, 2, 1),
    ]


def test_period_totals_filters_by_status() -> None:
    source = InMemorySource(
        donations=[
            _donation("100", date(2024, 1, 5)),
            _donation("40", date(2024, 1, 6), DonationStatus.PENDING),
            _donation("999", date(2024, 2, 1)),
        ],
        transactions=[
            _transaction("100", datetime(2024, 1, 5, 10), TransactionStatus.SUCCEEDED),
            _transaction("40", datetime(2024, 1, 31, 23, 59), TransactionStatus.FAILED),
            _transaction("999", datetime(2024, 2, 1), TransactionStatus.SUCCEEDED),
        ],
        associations=[
            AssociationRecord(id=uuid.uuid4(), name="A", validated=True, validated_at=datetime(2024, 1, 2)),
            AssociationRecord(id=uuid.uuid4(), name="B", validated=True, validated_at=datetime(2023, 6, 1)),
        ],
    )

    totals = period_totals(source, PeriodWindow(date(2024, 1, 1), date(2024, 1, 31)))

    assert totals["nombreDonsPeriode"] == 2
    assert totals["montantDonsPeriode"] == Decimal("100")
    assert totals["nombreTransactionsPeriode"] == 2
    assert totals["montantTransactionsPeriode"] == Decimal("100")
    assert totals["associationsValideesPeriode"] == 1


def test_compare_period_evolution_against_previous_window() -> None:
    source = InMemorySource(
        donations=[
            _donation("150", date(2024, 1, 10)),
            _donation("100", date(2023, 12, 10)),
        ]
    )

    result = compare_period(source, PeriodWindow(date(2024, 1, 1), date(2024, 1, 31)))

    assert result["dateDebut"] == date(2024, 1, 1)
    assert result["dateFin"] == date(2024, 1, 31)
    assert result["montantDonsPeriode"] == Decimal("150")
    assert result["evolutionMontant"] == Decimal("50")
    assert result["periodePrecedente"] == {
        "dateDebut": date(2023, 12, 1),
        "dateFin": date(2023, 12, 31),
        "nombreDonsPeriode": 1,
        "montantDonsPeriode": Decimal("100"),
    }


def test_compare_period_with_empty_previous_window() -> None:
    source = InMemorySource(donations=[_donation("10", date(2024, 1, 10))])

    result = compare_period(source, PeriodWindow(date(2024, 1, 1), date(2024, 1, 31)))

    assert result["evolutionMontant"] == Decimal("100")


def test_compare_period_queries_exactly_two_windows() -> None:
    source = InMemorySource()

    result = compare_period(source, PeriodWindow(date(2024, 1, 1), date(2024, 1, 31)))

    assert result["evolutionMontant"] == Decimal("0")
    assert source.calls.count("donations") == 2
    assert source.calls.count("transactions") == 2
    assert source.calls.count("associations") == 2
    assert "evolutionMontant" not in result["periodePrecedente"]
