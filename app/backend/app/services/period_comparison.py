"""Date-window aggregation and previous-period comparison."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol

from app.services.metrics import count_by, evolution_percent, sum_by
from app.services.records import AssociationRecord, DonationRecord, TransactionRecord

logger = logging.getLogger(__name__)


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def shift_month(value: date, delta: int) -> date:
    """First day of the month ``delta`` months away from ``value``'s month."""

    index = value.year * 12 + (value.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def month_end(value: date) -> date:
    return shift_month(value, 1) - timedelta(days=1)


def month_sequence(start_month: date, end_month: date) -> list[date]:
    current = month_start(start_month)
    end = month_start(end_month)
    months: list[date] = []
    while current <= end:
        months.append(current)
        current = shift_month(current, 1)
    return months


@dataclass(frozen=True, slots=True)
class PeriodWindow:
    """Inclusive ``[start, end]`` calendar window."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("PeriodWindow end must not precede start.")

    @classmethod
    def trailing_days(cls, today: date, days: int) -> PeriodWindow:
        """Window from ``days`` days ago up to and including ``today``."""

        return cls(today - timedelta(days=days), today)

    @classmethod
    def calendar_month(cls, day: date) -> PeriodWindow:
        return cls(month_start(day), month_end(day))

    @classmethod
    def month_to_date(cls, today: date) -> PeriodWindow:
        return cls(month_start(today), today)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def ends_before(self) -> datetime:
        """Exclusive timestamp bound covering the whole ``end`` day."""

        return datetime.combine(self.end + timedelta(days=1), time.min)

    def previous(self) -> PeriodWindow:
        """Equal-length window immediately preceding this one."""

        return PeriodWindow(
            self.start - timedelta(days=self.days),
            self.start - timedelta(days=1),
        )


class PeriodDataSource(Protocol):
    """Collaborator queries needed to aggregate one window."""

    def donations_between(self, start: date, end: date) -> Sequence[DonationRecord]: ...

    def transactions_between(self, start: datetime, end: datetime) -> Sequence[TransactionRecord]: ...

    def associations_validated_since(self, since: datetime) -> Sequence[AssociationRecord]: ...


def period_totals(source: PeriodDataSource, window: PeriodWindow) -> dict[str, object]:
    """Aggregate donations, transactions and validations for a single window."""

    donations = source.donations_between(window.start, window.end)
    transactions = source.transactions_between(window.starts_at, window.ends_before)
    associations = source.associations_validated_since(window.starts_at)

    return {
        "dateDebut": window.start,
        "dateFin": window.end,
        "nombreDonsPeriode": len(donations),
        "montantDonsPeriode": sum_by(donations, lambda don: don.is_validated, lambda don: don.amount),
        "nombreTransactionsPeriode": len(transactions),
        "montantTransactionsPeriode": sum_by(
            transactions,
            lambda transaction: transaction.is_succeeded,
            lambda transaction: transaction.amount,
        ),
        "associationsValideesPeriode": count_by(associations, lambda association: association.validated),
    }


def compare_period(source: PeriodDataSource, window: PeriodWindow) -> dict[str, object]:
    """Window totals plus the validated-amount evolution against the previous window.

    The previous window is aggregated with ``period_totals``, which never
    compares further back, so exactly one extra level of queries is issued.
    """

    current = period_totals(source, window)
    previous_window = window.previous()
    previous = period_totals(source, previous_window)

    current_amount = current["montantDonsPeriode"]
    previous_amount = previous["montantDonsPeriode"]
    logger.debug(
        "Compared window %s..%s (%s) with %s..%s (%s)",
        window.start,
        window.end,
        current_amount,
        previous_window.start,
        previous_window.end,
        previous_amount,
    )

    return {
        **current,
        "evolutionMontant": evolution_percent(current_amount, previous_amount),
        "periodePrecedente": {
            "dateDebut": previous_window.start,
            "dateFin": previous_window.end,
            "nombreDonsPeriode": previous["nombreDonsPeriode"],
            "montantDonsPeriode": previous_amount,
        },
    }
