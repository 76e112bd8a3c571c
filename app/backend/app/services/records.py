"""Immutable record types consumed by the statistics engine.

The repository maps ORM rows onto these records so that metric, profile and
period code never holds a database session or lazy-loads relations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.models.entities import DonationStatus, ProjectStatus, TransactionStatus

ANONYMOUS_DONOR_LABEL = "Donateur anonyme"


@dataclass(frozen=True, slots=True)
class DonationRecord:
    id: UUID
    amount: Decimal
    status: DonationStatus
    donation_date: date
    donor_id: UUID
    project_id: UUID
    association_id: UUID
    anonymous: bool = False
    message: str | None = None
    donor_name: str = ""
    project_title: str = ""

    @property
    def is_validated(self) -> bool:
        return self.status is DonationStatus.VALIDATED

    @property
    def has_message(self) -> bool:
        return bool(self.message and self.message.strip())

    @property
    def display_donor_name(self) -> str:
        """Donor name as shown publicly; anonymous donations stay masked."""

        if self.anonymous:
            return ANONYMOUS_DONOR_LABEL
        return self.donor_name


@dataclass(frozen=True, slots=True)
class ProjectRecord:
    id: UUID
    association_id: UUID
    title: str
    requested_amount: Decimal
    collected_amount: Decimal
    status: ProjectStatus
    start_date: date
    end_date: date | None
    created_at: datetime

    @property
    def is_in_progress(self) -> bool:
        return self.status is ProjectStatus.IN_PROGRESS

    @property
    def is_finished(self) -> bool:
        return self.status is ProjectStatus.COMPLETED or self.collected_amount >= self.requested_amount

    def is_overdue(self, today: date) -> bool:
        return self.end_date is not None and today > self.end_date and not self.is_finished


@dataclass(frozen=True, slots=True)
class AssociationRecord:
    id: UUID
    name: str
    validated: bool
    validated_at: datetime | None = None
    activity_domain: str | None = None


@dataclass(frozen=True, slots=True)
class DonorRecord:
    id: UUID
    display_name: str


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    id: UUID
    donation_id: UUID
    amount: Decimal
    fee: Decimal
    status: TransactionStatus
    occurred_at: datetime

    @property
    def is_succeeded(self) -> bool:
        return self.status is TransactionStatus.SUCCEEDED
