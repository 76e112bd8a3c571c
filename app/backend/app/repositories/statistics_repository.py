"""Read-only queries feeding the statistics engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import Session

from app.models.entities import (
    Association,
    Donation,
    DonationStatus,
    Donor,
    Project,
    ProjectStatus,
    RoleType,
    Transaction,
    TransactionStatus,
    User,
)
from app.services.records import (
    AssociationRecord,
    DonationRecord,
    DonorRecord,
    ProjectRecord,
    TransactionRecord,
)


@dataclass(frozen=True, slots=True)
class RecordScope:
    """Optional restriction of donation and transaction queries to one entity."""

    donor_id: UUID | None = None
    project_id: UUID | None = None
    association_id: UUID | None = None


def to_association_record(row: Association) -> AssociationRecord:
    return AssociationRecord(
        id=row.id,
        name=row.name,
        validated=row.validated,
        validated_at=row.validated_at,
        activity_domain=row.activity_domain,
    )


def to_project_record(row: Project) -> ProjectRecord:
    return ProjectRecord(
        id=row.id,
        association_id=row.association_id,
        title=row.title,
        requested_amount=row.requested_amount,
        collected_amount=row.collected_amount,
        status=row.status,
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
    )


def to_donor_record(row: Donor) -> DonorRecord:
    return DonorRecord(id=row.id, display_name=row.display_name)


def to_donation_record(donation: Donation, donor: Donor, project: Project) -> DonationRecord:
    return DonationRecord(
        id=donation.id,
        amount=donation.amount,
        status=donation.status,
        donation_date=donation.donation_date,
        donor_id=donation.donor_id,
        project_id=donation.project_id,
        association_id=project.association_id,
        anonymous=donation.anonymous,
        message=donation.message,
        donor_name=donor.display_name,
        project_title=project.title,
    )


def to_transaction_record(row: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        donation_id=row.donation_id,
        amount=row.amount,
        fee=row.fee,
        status=row.status,
        occurred_at=row.occurred_at,
    )


class StatisticsRepository:
    """Collaborator queries used by statistics and reporting services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Lookups ----------
    def get_association(self, association_id: UUID) -> Association | None:
        return self.db.scalar(select(Association).where(Association.id == association_id))

    def get_donor(self, donor_id: UUID) -> Donor | None:
        return self.db.scalar(select(Donor).where(Donor.id == donor_id))

    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    # ---------- Users ----------
    def count_users(self) -> int:
        return self.db.scalar(select(func.count()).select_from(User)) or 0

    def count_users_by_role(self, role: RoleType) -> int:
        return self.db.scalar(select(func.count()).select_from(User).where(User.role == role)) or 0

    # ---------- Donors ----------
    def list_donors(self) -> list[DonorRecord]:
        rows = self.db.scalars(select(Donor).order_by(Donor.last_name.asc(), Donor.first_name.asc())).all()
        return [to_donor_record(row) for row in rows]

    # ---------- Associations ----------
    def list_associations(self, *, validated: bool | None = None) -> list[AssociationRecord]:
        stmt = select(Association)
        if validated is not None:
            stmt = stmt.where(Association.validated == validated)
        rows = self.db.scalars(stmt.order_by(Association.created_at.asc(), Association.name.asc())).all()
        return [to_association_record(row) for row in rows]

    def list_associations_validated_since(
        self,
        since: datetime,
        *,
        association_id: UUID | None = None,
    ) -> list[AssociationRecord]:
        conditions = [Association.validated == True, Association.validated_at >= since]  # noqa: E712
        if association_id is not None:
            conditions.append(Association.id == association_id)
        rows = self.db.scalars(
            select(Association).where(and_(*conditions)).order_by(Association.validated_at.desc())
        ).all()
        return [to_association_record(row) for row in rows]

    # ---------- Projects ----------
    def list_projects(
        self,
        *,
        status: ProjectStatus | None = None,
        association_id: UUID | None = None,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[ProjectRecord]:
        conditions = []
        if status is not None:
            conditions.append(Project.status == status)
        if association_id is not None:
            conditions.append(Project.association_id == association_id)
        if created_from is not None:
            conditions.append(Project.created_at >= created_from)
        if created_before is not None:
            conditions.append(Project.created_at < created_before)

        stmt = select(Project)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        rows = self.db.scalars(stmt.order_by(Project.created_at.asc(), Project.title.asc())).all()
        return [to_project_record(row) for row in rows]

    def list_overdue_projects(self, today: date) -> list[ProjectRecord]:
        rows = self.db.scalars(
            select(Project)
            .where(
                and_(
                    Project.status == ProjectStatus.IN_PROGRESS,
                    Project.end_date.is_not(None),
                    Project.end_date < today,
                )
            )
            .order_by(Project.end_date.asc())
        ).all()
        return [to_project_record(row) for row in rows]

    def list_near_goal_projects(self, threshold: Decimal) -> list[ProjectRecord]:
        rows = self.db.scalars(
            select(Project)
            .where(
                and_(
                    Project.status == ProjectStatus.IN_PROGRESS,
                    Project.collected_amount >= Project.requested_amount * threshold,
                )
            )
            .order_by(Project.created_at.asc())
        ).all()
        return [to_project_record(row) for row in rows]

    # ---------- Donations ----------
    def _donation_select(self, scope: RecordScope | None) -> Select:
        stmt = (
            select(Donation, Donor, Project)
            .join(Donor, Donor.id == Donation.donor_id)
            .join(Project, Project.id == Donation.project_id)
        )
        if scope is not None:
            if scope.donor_id is not None:
                stmt = stmt.where(Donation.donor_id == scope.donor_id)
            if scope.project_id is not None:
                stmt = stmt.where(Donation.project_id == scope.project_id)
            if scope.association_id is not None:
                stmt = stmt.where(Project.association_id == scope.association_id)
        return stmt

    def list_donations(
        self,
        *,
        scope: RecordScope | None = None,
        status: DonationStatus | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        min_amount: Decimal | None = None,
    ) -> list[DonationRecord]:
        """Donations newest first; date bounds are inclusive."""

        stmt = self._donation_select(scope)
        if status is not None:
            stmt = stmt.where(Donation.status == status)
        if date_from is not None:
            stmt = stmt.where(Donation.donation_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Donation.donation_date <= date_to)
        if min_amount is not None:
            stmt = stmt.where(Donation.amount >= min_amount)

        rows = self.db.execute(
            stmt.order_by(Donation.donation_date.desc(), Donation.created_at.desc())
        ).all()
        return [to_donation_record(donation, donor, project) for donation, donor, project in rows]

    # ---------- Transactions ----------
    def list_transactions(
        self,
        *,
        scope: RecordScope | None = None,
        status: TransactionStatus | None = None,
        occurred_from: datetime | None = None,
        occurred_before: datetime | None = None,
    ) -> list[TransactionRecord]:
        """Transactions newest first; ``occurred_before`` is exclusive."""

        stmt = select(Transaction)
        if scope is not None and (scope.donor_id or scope.project_id or scope.association_id):
            stmt = stmt.join(Donation, Donation.id == Transaction.donation_id).join(
                Project, Project.id == Donation.project_id
            )
            if scope.donor_id is not None:
                stmt = stmt.where(Donation.donor_id == scope.donor_id)
            if scope.project_id is not None:
                stmt = stmt.where(Donation.project_id == scope.project_id)
            if scope.association_id is not None:
                stmt = stmt.where(Project.association_id == scope.association_id)
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        if occurred_from is not None:
            stmt = stmt.where(Transaction.occurred_at >= occurred_from)
        if occurred_before is not None:
            stmt = stmt.where(Transaction.occurred_at < occurred_before)

        rows = self.db.scalars(stmt.order_by(Transaction.occurred_at.desc())).all()
        return [to_transaction_record(row) for row in rows]

    def period_source(self, scope: RecordScope | None = None) -> RepositoryPeriodSource:
        return RepositoryPeriodSource(self, scope or RecordScope())


class RepositoryPeriodSource:
    """``PeriodDataSource`` backed by the repository, optionally entity-scoped.

    Only an association scope narrows the validated-association count; donor
    and project scopes keep it platform-wide.
    """

    def __init__(self, repo: StatisticsRepository, scope: RecordScope) -> None:
        self.repo = repo
        self.scope = scope

    def donations_between(self, start: date, end: date) -> Sequence[DonationRecord]:
        return self.repo.list_donations(scope=self.scope, date_from=start, date_to=end)

    def transactions_between(self, start: datetime, end: datetime) -> Sequence[TransactionRecord]:
        return self.repo.list_transactions(scope=self.scope, occurred_from=start, occurred_before=end)

    def associations_validated_since(self, since: datetime) -> Sequence[AssociationRecord]:
        return self.repo.list_associations_validated_since(since, association_id=self.scope.association_id)
