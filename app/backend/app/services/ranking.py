"""Top-N selection and leaderboard rows."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from app.services.entity_profiles import project_progress
from app.services.metrics import ZERO, Number
from app.services.records import AssociationRecord, DonationRecord, DonorRecord, ProjectRecord

T = TypeVar("T")


def select_top_n(items: Sequence[T], n: int, key: Callable[[T], Number]) -> list[T]:
    """Return the ``n`` items with the highest ``key``, descending.

    The sort is stable, so equal keys keep their input order. Inputs shorter
    than ``n`` are sorted too, never returned as given.
    """

    if n <= 0:
        return []
    return sorted(items, key=key, reverse=True)[:n]


def rank_projects(projects: Sequence[ProjectRecord], n: int) -> list[dict[str, object]]:
    return [
        {
            "projetId": project.id,
            "titre": project.title,
            "montantCollecte": project.collected_amount,
            "progres": project_progress(project),
        }
        for project in select_top_n(projects, n, key=lambda project: project.collected_amount)
    ]


def rank_associations(
    associations: Sequence[AssociationRecord],
    projects: Sequence[ProjectRecord],
    n: int,
) -> list[dict[str, object]]:
    """Validated associations ordered by the collected amount of their projects."""

    collected: dict[UUID, Decimal] = {}
    project_counts: dict[UUID, int] = {}
    for project in projects:
        collected[project.association_id] = collected.get(project.association_id, ZERO) + project.collected_amount
        project_counts[project.association_id] = project_counts.get(project.association_id, 0) + 1

    candidates = [association for association in associations if association.validated]
    top = select_top_n(candidates, n, key=lambda association: collected.get(association.id, ZERO))
    return [
        {
            "associationId": association.id,
            "nom": association.name,
            "montantTotalCollecte": collected.get(association.id, ZERO),
            "nombreProjets": project_counts.get(association.id, 0),
        }
        for association in top
    ]


def rank_donors(
    donors: Sequence[DonorRecord],
    donations: Sequence[DonationRecord],
    n: int,
) -> list[dict[str, object]]:
    """Donors with at least one validated donation, ordered by validated amount."""

    totals: dict[UUID, Decimal] = {}
    counts: dict[UUID, int] = {}
    for donation in donations:
        if not donation.is_validated:
            continue
        totals[donation.donor_id] = totals.get(donation.donor_id, ZERO) + donation.amount
        counts[donation.donor_id] = counts.get(donation.donor_id, 0) + 1

    candidates = [donor for donor in donors if donor.id in totals]
    top = select_top_n(candidates, n, key=lambda donor: totals[donor.id])
    return [
        {
            "donateurId": donor.id,
            "nom": donor.display_name,
            "montantTotalDonne": totals[donor.id],
            "nombreDonsValides": counts[donor.id],
        }
        for donor in top
    ]
