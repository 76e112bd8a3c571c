"""Per-entity statistics bundles for donors, associations and projects.

The three profilers are independent: each takes an explicit input dataclass
holding the entity and its already-fetched related records and returns a
fresh ``dict`` with the documented report keys.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.models.entities import DonationStatus, ProjectStatus
from app.services.metrics import (
    HUNDRED,
    ZERO,
    count_by,
    distinct_count,
    first_by,
    q2,
    safe_average,
    safe_ratio,
    sum_by,
    to_decimal,
)
from app.services.period_comparison import month_end, month_sequence, shift_month
from app.services.records import AssociationRecord, DonationRecord, DonorRecord, ProjectRecord

MONTH_NAMES = (
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
)
BREAKDOWN_MONTHS = 12


class DonorLevel(str, enum.Enum):
    NEW = "New"
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"


# (level, minimum validated amount, minimum validated count), best tier first.
DONOR_LEVEL_TIERS: tuple[tuple[DonorLevel, Decimal, int], ...] = (
    (DonorLevel.PLATINUM, Decimal("5000"), 20),
    (DonorLevel.GOLD, Decimal("2000"), 10),
    (DonorLevel.SILVER, Decimal("500"), 5),
)


@dataclass(frozen=True, slots=True)
class DonorProfileInput:
    donor: DonorRecord
    donations: Sequence[DonationRecord]


@dataclass(frozen=True, slots=True)
class AssociationProfileInput:
    association: AssociationRecord
    projects: Sequence[ProjectRecord]
    donations: Sequence[DonationRecord]


@dataclass(frozen=True, slots=True)
class ProjectProfileInput:
    project: ProjectRecord
    donations: Sequence[DonationRecord]


def classify_donor(validated_amount: Decimal, validated_count: int) -> DonorLevel:
    for level, min_amount, min_count in DONOR_LEVEL_TIERS:
        if validated_amount >= min_amount or validated_count >= min_count:
            return level
    if validated_count >= 1:
        return DonorLevel.BRONZE
    return DonorLevel.NEW


def project_progress(project: ProjectRecord) -> Decimal:
    """Collected share of the requested amount, in percent with 2 decimals."""

    return q2(safe_ratio(project.collected_amount, project.requested_amount))


def largest_validated_donation(donations: Sequence[DonationRecord]) -> DonationRecord | None:
    """Largest validated donation; the earliest one wins a tie."""

    return first_by(
        (donation for donation in donations if donation.is_validated),
        key=lambda donation: (-donation.amount, donation.donation_date),
    )


def monthly_breakdown(
    donations: Sequence[DonationRecord],
    *,
    today: date,
    months: int = BREAKDOWN_MONTHS,
) -> dict[str, Decimal]:
    """Validated amount per calendar month, oldest first, ending with ``today``'s month."""

    breakdown: dict[str, Decimal] = {}
    for first_day in month_sequence(shift_month(today, -(months - 1)), today):
        last_day = month_end(first_day)
        breakdown[MONTH_NAMES[first_day.month - 1]] = sum_by(
            donations,
            lambda donation: donation.is_validated and first_day <= donation.donation_date <= last_day,
            lambda donation: donation.amount,
        )
    return breakdown


def profile_donor(data: DonorProfileInput) -> dict[str, object]:
    donations = data.donations
    validated = [donation for donation in donations if donation.is_validated]
    validated_amount = sum_by(validated, None, lambda donation: donation.amount)

    stats: dict[str, object] = {
        "donateurId": data.donor.id,
        "nom": data.donor.display_name,
        "nombreDons": len(donations),
        "nombreDonsValides": len(validated),
        "nombreDonsEnAttente": count_by(donations, lambda donation: donation.status is DonationStatus.PENDING),
        "montantTotalDonne": validated_amount,
        "montantMoyenParDon": safe_average(validated_amount, len(validated)),
        "donsAnonymes": count_by(donations, lambda donation: donation.anonymous),
        "nombreProjetsSoutenus": distinct_count(validated, lambda donation: donation.project_id),
        "nombreAssociationsSoutenues": distinct_count(validated, lambda donation: donation.association_id),
    }

    if donations:
        stats["premierDon"] = min(donation.donation_date for donation in donations)
        stats["dernierDon"] = max(donation.donation_date for donation in donations)

    largest = largest_validated_donation(validated)
    if largest is not None:
        stats["plusGrosDon"] = {
            "montant": largest.amount,
            "projet": largest.project_title,
            "date": largest.donation_date,
        }

    stats["niveauDonateur"] = classify_donor(validated_amount, len(validated)).value
    return stats


def profile_association(data: AssociationProfileInput) -> dict[str, object]:
    projects = data.projects
    collected = sum_by(projects, None, lambda project: project.collected_amount)
    requested = sum_by(projects, None, lambda project: project.requested_amount)

    stats: dict[str, object] = {
        "associationId": data.association.id,
        "nom": data.association.name,
        "validee": data.association.validated,
        "totalProjets": len(projects),
        "projetsEnCours": count_by(projects, lambda project: project.is_in_progress),
        "projetsTermines": count_by(projects, lambda project: project.status is ProjectStatus.COMPLETED),
        "montantTotalCollecte": collected,
        "montantTotalDemande": requested,
        "tauxReussite": safe_ratio(collected, requested),
        "totalDonsRecus": len(data.donations),
        "donateursUniques": distinct_count(data.donations, lambda donation: donation.donor_id),
    }

    top_project = first_by(projects, key=lambda project: (-project.collected_amount, project.created_at))
    if top_project is not None:
        stats["projetTopPerformant"] = {
            "projetId": top_project.id,
            "titre": top_project.title,
            "montantCollecte": top_project.collected_amount,
            "progres": project_progress(top_project),
        }
    return stats


def profile_project(data: ProjectProfileInput, *, today: date) -> dict[str, object]:
    project = data.project
    donations = data.donations

    stats: dict[str, object] = {
        "projetId": project.id,
        "titre": project.title,
        "montantDemande": project.requested_amount,
        "montantCollecte": project.collected_amount,
        "progres": project_progress(project),
        "montantRestant": max(ZERO, project.requested_amount - project.collected_amount),
        "nombreDons": len(donations),
        "nombreDonateurs": distinct_count(donations, lambda donation: donation.donor_id),
        "montantMoyenParDon": safe_average(project.collected_amount, len(donations)),
        "donsAvecMessage": count_by(donations, lambda donation: donation.has_message),
        "statut": project.status.value,
        "estEnCours": project.is_in_progress,
        "estTermine": project.is_finished,
        "estEnRetard": project.is_overdue(today),
    }

    if project.end_date is not None:
        total_days = (project.end_date - project.start_date).days
        elapsed_days = (today - project.start_date).days
        if total_days > 0:
            elapsed = to_decimal(elapsed_days) * HUNDRED / to_decimal(total_days)
            stats["tempsEcoulePercent"] = min(HUNDRED, elapsed)
        else:
            stats["tempsEcoulePercent"] = ZERO

    largest = largest_validated_donation(donations)
    if largest is not None:
        stats["plusGrosDon"] = {
            "montant": largest.amount,
            "donateur": largest.display_donor_name,
            "date": largest.donation_date,
        }

    stats["repartitionMensuelle"] = monthly_breakdown(donations, today=today)
    return stats
