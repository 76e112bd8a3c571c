"""Statistics, dashboard and reporting service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from io import BytesIO
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.models.entities import (
    Association,
    DonationStatus,
    Donor,
    Project,
    ProjectStatus,
    RoleType,
    TransactionStatus,
    utcnow,
)
from app.repositories.statistics_repository import (
    RecordScope,
    StatisticsRepository,
    to_association_record,
    to_donor_record,
    to_project_record,
)
from app.services.entity_profiles import (
    MONTH_NAMES,
    AssociationProfileInput,
    DonorProfileInput,
    ProjectProfileInput,
    monthly_breakdown,
    profile_association,
    profile_donor,
    profile_project,
)
from app.services.metrics import count_by, distinct_count, evolution_percent, safe_average, safe_ratio, sum_by
from app.services.period_comparison import PeriodWindow, compare_period, period_totals, shift_month
from app.services.ranking import rank_associations, rank_donors, rank_projects

logger = logging.getLogger(__name__)

UNKNOWN_DOMAIN = "Autre"


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


@dataclass(slots=True)
class MonthOverMonth:
    current: PeriodWindow
    previous: PeriodWindow
    current_totals: dict[str, object]
    previous_totals: dict[str, object]
    new_projects_current: int
    new_projects_previous: int


class StatisticsService:
    """Composes platform, period and per-entity statistics from repository reads.

    Every call re-reads its inputs; nothing computed here is cached or stored.
    """

    def __init__(self, db: Session, *, today: date | None = None, settings: Settings | None = None) -> None:
        self.db = db
        self.repo = StatisticsRepository(db)
        self.settings = settings or get_settings()
        self._fixed_today = today

    def _today(self) -> date:
        return self._fixed_today or date.today()

    # ---------- Lookups / validation ----------
    def _get_association(self, association_id: UUID) -> Association:
        association = self.repo.get_association(association_id)
        if association is None:
            logger.info("Association %s not found for statistics", association_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Association not found.")
        return association

    def _get_donor(self, donor_id: UUID) -> Donor:
        donor = self.repo.get_donor(donor_id)
        if donor is None:
            logger.info("Donor %s not found for statistics", donor_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found.")
        return donor

    def _get_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            logger.info("Project %s not found for statistics", project_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        return project

    @staticmethod
    def _window(start: date, end: date) -> PeriodWindow:
        if end < start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="end_date must be greater than or equal to start_date.",
            )
        return PeriodWindow(start, end)

    def _optional_window(self, start: date | None, end: date | None) -> PeriodWindow | None:
        if start is None and end is None:
            return None
        if start is None or end is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="start_date and end_date must be provided together.",
            )
        return self._window(start, end)

    # ---------- Platform statistics ----------
    def general_statistics(self) -> dict[str, object]:
        associations = self.repo.list_associations()
        projects = self.repo.list_projects()
        donations = self.repo.list_donations()
        active_association_ids = {project.association_id for project in projects if project.is_in_progress}
        validated_associations = [association for association in associations if association.validated]

        def projects_with(project_status: ProjectStatus) -> int:
            return count_by(projects, lambda project: project.status is project_status)

        def donations_with(donation_status: DonationStatus) -> int:
            return count_by(donations, lambda donation: donation.status is donation_status)

        return {
            "totalUtilisateurs": self.repo.count_users(),
            "totalDonateurs": self.repo.count_users_by_role(RoleType.DONOR),
            "totalAssociations": self.repo.count_users_by_role(RoleType.ASSOCIATION),
            "totalAdministrateurs": self.repo.count_users_by_role(RoleType.ADMINISTRATOR),
            "associationsValidees": count_by(associations, lambda association: association.validated),
            "associationsEnAttente": count_by(associations, lambda association: not association.validated),
            "associationsAvecProjetsActifs": count_by(
                validated_associations,
                lambda association: association.id in active_association_ids,
            ),
            "totalProjets": len(projects),
            "projetsEnCours": projects_with(ProjectStatus.IN_PROGRESS),
            "projetsTermines": projects_with(ProjectStatus.COMPLETED),
            "projetsSuspendus": projects_with(ProjectStatus.SUSPENDED),
            "projetsAnnules": projects_with(ProjectStatus.CANCELLED),
            "projetsBrouillons": projects_with(ProjectStatus.DRAFT),
            "totalDons": len(donations),
            "donsValides": donations_with(DonationStatus.VALIDATED),
            "donsEnAttente": donations_with(DonationStatus.PENDING),
            "donsRefuses": donations_with(DonationStatus.REFUSED),
            "donsAnnules": donations_with(DonationStatus.CANCELLED),
            "donsRembourses": donations_with(DonationStatus.REFUNDED),
            "donsAnonymes": count_by(donations, lambda donation: donation.anonymous),
        }

    def financial_statistics(self) -> dict[str, object]:
        validated = self.repo.list_donations(status=DonationStatus.VALIDATED)
        transactions = self.repo.list_transactions()

        confirmed_total = sum_by(validated, None, lambda donation: donation.amount)
        succeeded_total = sum_by(transactions, lambda row: row.is_succeeded, lambda row: row.amount)
        fees_total = sum_by(transactions, lambda row: row.is_succeeded, lambda row: row.fee)
        succeeded_count = count_by(transactions, lambda row: row.is_succeeded)

        return {
            "totalDonsConfirmes": confirmed_total,
            "totalTransactionsReussies": succeeded_total,
            "totalFrais": fees_total,
            "tauxReussiteTransactions": safe_ratio(succeeded_count, len(transactions)),
            "donateursUniques": distinct_count(validated, lambda donation: donation.donor_id),
            "montantMoyenParDon": safe_average(confirmed_total, len(validated)),
            "montantNetCollecte": succeeded_total - fees_total,
        }

    def public_statistics(self) -> dict[str, object]:
        associations = self.repo.list_associations(validated=True)
        projects = self.repo.list_projects()
        validated = self.repo.list_donations(status=DonationStatus.VALIDATED)

        by_domain: dict[str, int] = {}
        for association in associations:
            domain = association.activity_domain or UNKNOWN_DOMAIN
            by_domain[domain] = by_domain.get(domain, 0) + 1

        completed = count_by(projects, lambda project: project.status is ProjectStatus.COMPLETED)
        return {
            "nombreAssociations": len(associations),
            "nombreProjetsActifs": count_by(projects, lambda project: project.is_in_progress),
            "montantTotalCollecte": sum_by(validated, None, lambda donation: donation.amount),
            "nombreDonateurs": distinct_count(validated, lambda donation: donation.donor_id),
            "nombreDonsTotal": len(validated),
            "associationsParDomaine": dict(sorted(by_domain.items())),
            "projetsTermines": completed,
            "tauxReussiteProjets": safe_ratio(completed, len(projects)),
        }

    def period_statistics(self, start_date: date, end_date: date) -> dict[str, object]:
        window = self._window(start_date, end_date)
        return compare_period(self.repo.period_source(), window)

    # ---------- Dashboards ----------
    def _alerts(self, today: date) -> dict[str, int]:
        return {
            "projetsEnRetard": len(self.repo.list_overdue_projects(today)),
            "associationsEnAttente": len(self.repo.list_associations(validated=False)),
            "transactionsEchouees": len(self.repo.list_transactions(status=TransactionStatus.FAILED)),
            "donsEnAttente": len(self.repo.list_donations(status=DonationStatus.PENDING)),
        }

    def activity_report(self) -> dict[str, object]:
        today = self._today()
        limit = self.settings.dashboard_top_limit
        week = PeriodWindow.trailing_days(today, self.settings.activity_window_days)
        source = self.repo.period_source()

        projects = self.repo.list_projects()
        validated = self.repo.list_donations(status=DonationStatus.VALIDATED)
        large_donations = self.repo.list_donations(
            status=DonationStatus.VALIDATED,
            date_from=week.start,
            min_amount=self.settings.large_donation_threshold,
        )

        return {
            "activiteSemaine": compare_period(source, week),
            "activiteMois": compare_period(source, PeriodWindow.month_to_date(today)),
            "nouveauxProjets": len(self.repo.list_projects(created_from=week.starts_at)),
            "projetsEnRetard": len(self.repo.list_overdue_projects(today)),
            "projetsProchesObjectif": len(self.repo.list_near_goal_projects(self.settings.near_goal_threshold)),
            "topAssociations": rank_associations(self.repo.list_associations(validated=True), projects, limit),
            "topDonateurs": rank_donors(self.repo.list_donors(), validated, limit),
            "donsRecents": len(self.repo.list_donations(date_from=week.start)),
            "transactionsRecentes": len(self.repo.list_transactions(occurred_from=week.starts_at)),
            "grosDonsSemaine": len(large_donations),
        }

    def global_dashboard(self) -> dict[str, object]:
        today = self._today()
        logger.info("Building global dashboard for %s", today)
        trend_window = PeriodWindow.trailing_days(today, self.settings.dashboard_trend_days)
        return {
            "date": today,
            "statistiquesGenerales": self.general_statistics(),
            "statistiquesFinancieres": self.financial_statistics(),
            "rapportActivite": self.activity_report(),
            "alertes": self._alerts(today),
            "tendances30Jours": compare_period(self.repo.period_source(), trend_window),
        }

    # ---------- Monthly reporting ----------
    def _month_over_month(self, today: date) -> MonthOverMonth:
        current = PeriodWindow.month_to_date(today)
        previous = PeriodWindow.calendar_month(shift_month(current.start, -1))
        source = self.repo.period_source()
        return MonthOverMonth(
            current=current,
            previous=previous,
            current_totals=period_totals(source, current),
            previous_totals=period_totals(source, previous),
            new_projects_current=len(
                self.repo.list_projects(created_from=current.starts_at, created_before=current.ends_before)
            ),
            new_projects_previous=len(
                self.repo.list_projects(created_from=previous.starts_at, created_before=previous.ends_before)
            ),
        )

    def monthly_report(self) -> dict[str, object]:
        today = self._today()
        logger.info("Building monthly report for %s-%02d", today.year, today.month)
        months = self._month_over_month(today)
        current = months.current_totals
        previous = months.previous_totals

        return {
            "periode": {
                "debut": months.current.start,
                "fin": months.current.end,
                "mois": MONTH_NAMES[today.month - 1],
                "annee": today.year,
            },
            "activiteMois": {
                **current,
                "nouveauxDons": current["nombreDonsPeriode"],
                "nouveauxProjets": months.new_projects_current,
                "nouvellesAssociations": current["associationsValideesPeriode"],
                "montantCollecteCeMois": current["montantDonsPeriode"],
            },
            "moisPrecedent": previous,
            "comparaisonMoisPrecedent": {
                "donsMoisPrecedent": previous["nombreDonsPeriode"],
                "evolutionDons": evolution_percent(current["nombreDonsPeriode"], previous["nombreDonsPeriode"]),
                "projetsActuelVsPrecedent": evolution_percent(
                    months.new_projects_current,
                    months.new_projects_previous,
                ),
                "montantActuelVsPrecedent": evolution_percent(
                    current["montantDonsPeriode"],
                    previous["montantDonsPeriode"],
                ),
            },
        }

    def monthly_trends(self) -> dict[str, object]:
        today = self._today()
        months = self._month_over_month(today)
        current = months.current_totals
        previous = months.previous_totals
        validated = self.repo.list_donations(status=DonationStatus.VALIDATED)

        return {
            "dons": {
                "donsCeMois": current["nombreDonsPeriode"],
                "donsMoisPrecedent": previous["nombreDonsPeriode"],
                "montantCeMois": current["montantDonsPeriode"],
                "montantMoisPrecedent": previous["montantDonsPeriode"],
                "evolutionMontant": evolution_percent(current["montantDonsPeriode"], previous["montantDonsPeriode"]),
            },
            "projets": {
                "projetsCreesCeMois": months.new_projects_current,
                "projetsCreesMoisPrecedent": months.new_projects_previous,
                "evolutionPourcentage": evolution_percent(
                    months.new_projects_current,
                    months.new_projects_previous,
                ),
            },
            "historiqueMensuel": monthly_breakdown(validated, today=today),
        }

    def period_report(self, start_date: date, end_date: date) -> dict[str, object]:
        window = self._window(start_date, end_date)
        limit = self.settings.report_top_limit
        projects = self.repo.list_projects()
        validated = self.repo.list_donations(status=DonationStatus.VALIDATED)
        transactions = self.repo.list_transactions(
            occurred_from=window.starts_at,
            occurred_before=window.ends_before,
        )
        succeeded = count_by(transactions, lambda row: row.is_succeeded)

        return {
            "dateDebut": window.start,
            "dateFin": window.end,
            "dateGeneration": utcnow(),
            "statistiquesGenerales": self.general_statistics(),
            "statistiquesPeriode": compare_period(self.repo.period_source(), window),
            "topAssociations": rank_associations(self.repo.list_associations(validated=True), projects, limit),
            "topDonateurs": rank_donors(self.repo.list_donors(), validated, limit),
            "topProjets": rank_projects(projects, limit),
            "analyseTransactions": {
                "totalTransactions": len(transactions),
                "transactionsReussies": succeeded,
                "transactionsEchouees": count_by(
                    transactions,
                    lambda row: row.status is TransactionStatus.FAILED,
                ),
                "tauxReussite": safe_ratio(succeeded, len(transactions)),
            },
        }

    # ---------- Per-entity reports ----------
    def association_report(
        self,
        association_id: UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, object]:
        association = self._get_association(association_id)
        window = self._optional_window(start_date, end_date)
        scope = RecordScope(association_id=association.id)

        stats = profile_association(
            AssociationProfileInput(
                association=to_association_record(association),
                projects=self.repo.list_projects(association_id=association.id),
                donations=self.repo.list_donations(scope=scope),
            )
        )
        if window is not None:
            stats["periode"] = compare_period(self.repo.period_source(scope), window)
        return stats

    def donor_report(
        self,
        donor_id: UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, object]:
        donor = self._get_donor(donor_id)
        window = self._optional_window(start_date, end_date)
        scope = RecordScope(donor_id=donor.id)

        stats = profile_donor(
            DonorProfileInput(
                donor=to_donor_record(donor),
                donations=self.repo.list_donations(scope=scope),
            )
        )
        if window is not None:
            stats["periode"] = compare_period(self.repo.period_source(scope), window)
        return stats

    def project_report(
        self,
        project_id: UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, object]:
        project = self._get_project(project_id)
        window = self._optional_window(start_date, end_date)
        scope = RecordScope(project_id=project.id)

        stats = profile_project(
            ProjectProfileInput(
                project=to_project_record(project),
                donations=self.repo.list_donations(scope=scope),
            ),
            today=self._today(),
        )
        if window is not None:
            stats["periode"] = compare_period(self.repo.period_source(scope), window)
        return stats

    # ---------- Exports ----------
    @classmethod
    def _flatten_report_rows(cls, payload: object, prefix: str = "") -> list[dict[str, str]]:
        """Flatten a nested report into ``section`` / ``metric`` / ``value`` rows."""

        rows: list[dict[str, str]] = []
        if isinstance(payload, dict):
            for key, value in payload.items():
                path = f"{prefix}.{key}" if prefix else str(key)
                rows.extend(cls._flatten_report_rows(value, path))
        elif isinstance(payload, list):
            for index, value in enumerate(payload, start=1):
                rows.extend(cls._flatten_report_rows(value, f"{prefix}[{index}]"))
        else:
            section, _, metric = prefix.partition(".")
            rows.append(
                {
                    "section": section if metric else "",
                    "metric": metric or section,
                    "value": cls._export_value(payload),
                }
            )
        return rows

    @staticmethod
    def _export_value(value: object) -> str:
        if value is None:
            return ""
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value.quantize(Decimal("0.01")))
        return str(value)

    def export_period_report(self, start_date: date, end_date: date, format_name: str) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in {"csv", "xlsx"}:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="format must be one of: csv, xlsx.",
            )

        report = self.period_report(start_date, end_date)
        rows = self._flatten_report_rows(report)
        fieldnames = ["section", "metric", "value"]
        base_filename = f"statistics-{start_date.isoformat()}-{end_date.isoformat()}"
        logger.info("Exporting period report %s as %s (%d rows)", base_filename, normalized_format, len(rows))

        if normalized_format == "csv":
            import csv
            import io

            sio = io.StringIO()
            writer = csv.DictWriter(sio, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=sio.getvalue().encode("utf-8"),
            )

        # XLSX
        from openpyxl import Workbook

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "report"
        sheet.append(fieldnames)
        for row in rows:
            sheet.append([row[column] for column in fieldnames])

        output = BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )
