from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from app.models.entities import DonationStatus, ProjectStatus
from app.services.entity_profiles import (
    AssociationProfileInput,
    DonorLevel,
    DonorProfileInput,
    ProjectProfileInput,
    classify_donor,
    monthly_breakdown,
    profile_association,
    profile_donor,
    profile_project,
    project_progress,
)
from app.services.records import (
    ANONYMOUS_DONOR_LABEL,
    AssociationRecord,
    DonationRecord,
    DonorRecord,
    ProjectRecord,
)

ASSOCIATION_ID = uuid.uuid4()


def _project(
    *,
    title: str = "Well",
    requested: str = "1000",
    collected: str = "0",
    status: ProjectStatus = ProjectStatus.IN_PROGRESS,
    start_date: date = date(2024, 1, 1),
    end_date: date | None = None,
    created_at: datetime = datetime(2024, 1, 1),
) -> ProjectRecord:
    return ProjectRecord(
        id=uuid.uuid4(),
        association_id=ASSOCIATION_ID,
        title=title,
        requested_amount=Decimal(requested),
        collected_amount=Decimal(collected),
        status=status,
        start_date=start_date,
        end_date=end_date,
        created_at=created_at,
    )


def _donation(
    amount: str,
    *,
    status: DonationStatus = DonationStatus.VALIDATED,
    donation_date: date = date(2024, 1, 10),
    donor_id: uuid.UUID | None = None,
    project_id: uuid.UUID | None = None,
    anonymous: bool = False,
    message: str | None = None,
    donor_name: str = "Alice Martin",
    project_title: str = "Well",
) -> DonationRecord:
    return DonationRecord(
        id=uuid.uuid4(),
        amount=Decimal(amount),
        status=status,
        donation_date=donation_date,
        donor_id=donor_id or uuid.uuid4(),
        project_id=project_id or uuid.uuid4(),
        association_id=ASSOCIATION_ID,
        anonymous=anonymous,
        message=message,
        donor_name=donor_name,
        project_title=project_title,
    )


def test_donor_profile_counts_only_validated_amounts() -> None:
    donor = DonorRecord(id=uuid.uuid4(), display_name="Alice Martin")
    donations = [
        _donation("100", donor_id=donor.id, donation_date=date(2024, 1, 5)),
        _donation("50", donor_id=donor.id, status=DonationStatus.PENDING, donation_date=date(2024, 2, 1)),
    ]

    stats = profile_donor(DonorProfileInput(donor=donor, donations=donations))

    assert stats["nombreDons"] == 2
    assert stats["nombreDonsValides"] == 1
    assert stats["nombreDonsEnAttente"] == 1
    assert stats["montantTotalDonne"] == Decimal("100")
    assert stats["montantMoyenParDon"] == Decimal("100")
    assert stats["niveauDonateur"] == "Bronze"
    assert stats["premierDon"] == date(2024, 1, 5)
    assert stats["dernierDon"] == date(2024, 2, 1)
    assert stats["plusGrosDon"]["montant"] == Decimal("100")


def test_donor_largest_donation_tie_prefers_earliest_date() -> None:
    donor = DonorRecord(id=uuid.uuid4(), display_name="Alice Martin")
    donations = [
        _donation("80", donor_id=donor.id, donation_date=date(2024, 3, 1), project_title="Later"),
        _donation("80", donor_id=donor.id, donation_date=date(2024, 1, 1), project_title="Earlier"),
        _donation("20", donor_id=donor.id, donation_date=date(2023, 12, 1)),
    ]

    stats = profile_donor(DonorProfileInput(donor=donor, donations=donations))

    assert stats["plusGrosDon"]["date"] == date(2024, 1, 1)
    assert stats["plusGrosDon"]["projet"] == "Earlier"


def test_donor_profile_without_donations() -> None:
    donor = DonorRecord(id=uuid.uuid4(), display_name="New Donor")

    stats = profile_donor(DonorProfileInput(donor=donor, donations=[]))

    assert stats["nombreDons"] == 0
    assert stats["montantMoyenParDon"] == Decimal("0")
    assert stats["niveauDonateur"] == "New"
    assert "premierDon" not in stats
    assert "plusGrosDon" not in stats


def test_donor_profile_distinct_projects_and_associations() -> None:
    donor = DonorRecord(id=uuid.uuid4(), display_name="Alice Martin")
    shared_project = uuid.uuid4()
    donations = [
        _donation("10", donor_id=donor.id, project_id=shared_project),
        _donation("20", donor_id=donor.id, project_id=shared_project),
        _donation("30", donor_id=donor.id),
    ]

    stats = profile_donor(DonorProfileInput(donor=donor, donations=donations))

    assert stats["nombreProjetsSoutenus"] == 2
    assert stats["nombreAssociationsSoutenues"] == 1


def test_donor_level_is_monotonic_in_amount_and_count() -> None:
    levels = [DonorLevel.NEW, DonorLevel.BRONZE, DonorLevel.SILVER, DonorLevel.GOLD, DonorLevel.PLATINUM]
    previous_rank = 0
    for amount in ("0", "10", "499", "500", "1999", "2000", "4999", "5000", "100000"):
        rank = levels.index(classify_donor(Decimal(amount), 1 if amount != "0" else 0))
        assert rank >= previous_rank
        previous_rank = rank

    previous_rank = 0
    for count in (0, 1, 4, 5, 9, 10, 19, 20, 50):
        rank = levels.index(classify_donor(Decimal("0"), count))
        assert rank >= previous_rank
        previous_rank = rank


def test_donor_level_thresholds() -> None:
    assert classify_donor(Decimal("5000"), 1) is DonorLevel.PLATINUM
    assert classify_donor(Decimal("10"), 20) is DonorLevel.PLATINUM
    assert classify_donor(Decimal("2000"), 1) is DonorLevel.GOLD
    assert classify_donor(Decimal("500"), 1) is DonorLevel.SILVER
    assert classify_donor(Decimal("10"), 5) is DonorLevel.SILVER


def test_association_profile_totals_and_top_project() -> None:
    association = AssociationRecord(id=ASSOCIATION_ID, name="Water For All", validated=True)
    projects = [
        _project(title="School", collected="300", status=ProjectStatus.COMPLETED),
        _project(title="Well", collected="700"),
    ]
    donor_id = uuid.uuid4()
    donations = [_donation("300", donor_id=donor_id), _donation("700", donor_id=donor_id)]

    stats = profile_association(
        AssociationProfileInput(association=association, projects=projects, donations=donations)
    )

    assert stats["montantTotalCollecte"] == Decimal("1000")
    assert stats["montantTotalDemande"] == Decimal("2000")
    assert stats["tauxReussite"] == Decimal("50")
    assert stats["totalProjets"] == 2
    assert stats["projetsEnCours"] == 1
    assert stats["projetsTermines"] == 1
    assert stats["totalDonsRecus"] == 2
    assert stats["donateursUniques"] == 1
    assert stats["projetTopPerformant"]["titre"] == "Well"
    assert stats["projetTopPerformant"]["progres"] == Decimal("70.00")


def test_association_profile_without_projects() -> None:
    association = AssociationRecord(id=ASSOCIATION_ID, name="Empty", validated=False)

    stats = profile_association(AssociationProfileInput(association=association, projects=[], donations=[]))

    assert stats["tauxReussite"] == Decimal("0")
    assert stats["validee"] is False
    assert "projetTopPerformant" not in stats


def test_association_top_project_tie_prefers_earliest_created() -> None:
    association = AssociationRecord(id=ASSOCIATION_ID, name="Tie", validated=True)
    projects = [
        _project(title="Later", collected="500", created_at=datetime(2024, 3, 1)),
        _project(title="Earlier", collected="500", created_at=datetime(2024, 2, 1)),
    ]

    stats = profile_association(AssociationProfileInput(association=association, projects=projects, donations=[]))

    assert stats["projetTopPerformant"]["titre"] == "Earlier"


def test_project_profile_progress_and_remaining() -> None:
    project = _project(requested="1000", collected="250")
    donor_id = uuid.uuid4()
    donations = [
        _donation("200", donor_id=donor_id, project_id=project.id, message="Bon courage"),
        _donation("50", donor_id=donor_id, project_id=project.id, message="   "),
    ]

    stats = profile_project(ProjectProfileInput(project=project, donations=donations), today=date(2024, 1, 20))

    assert stats["progres"] == Decimal("25.00")
    assert stats["montantRestant"] == Decimal("750")
    assert stats["nombreDons"] == 2
    assert stats["nombreDonateurs"] == 1
    assert stats["montantMoyenParDon"] == Decimal("125")
    assert stats["donsAvecMessage"] == 1
    assert stats["statut"] == "in_progress"
    assert stats["estEnCours"] is True
    assert stats["estTermine"] is False
    assert "tempsEcoulePercent" not in stats


def test_project_profile_over_funded_has_no_remaining_amount() -> None:
    project = _project(requested="1000", collected="1200")

    stats = profile_project(ProjectProfileInput(project=project, donations=[]), today=date(2024, 1, 20))

    assert stats["montantRestant"] == Decimal("0")
    assert stats["progres"] == Decimal("120.00")
    assert stats["estTermine"] is True
    assert stats["montantMoyenParDon"] == Decimal("0")


def test_project_profile_elapsed_time_and_overdue() -> None:
    project = _project(start_date=date(2024, 1, 1), end_date=date(2024, 1, 11))

    halfway = profile_project(ProjectProfileInput(project=project, donations=[]), today=date(2024, 1, 6))
    late = profile_project(ProjectProfileInput(project=project, donations=[]), today=date(2024, 2, 1))

    assert halfway["tempsEcoulePercent"] == Decimal("50")
    assert halfway["estEnRetard"] is False
    assert late["tempsEcoulePercent"] == Decimal("100")
    assert late["estEnRetard"] is True


def test_project_profile_largest_donation_masks_anonymous_donor() -> None:
    project = _project(collected="600")
    donations = [
        _donation("100", project_id=project.id, donor_name="Visible Donor"),
        _donation("500", project_id=project.id, anonymous=True, donor_name="Hidden Donor"),
    ]

    stats = profile_project(ProjectProfileInput(project=project, donations=donations), today=date(2024, 1, 20))

    assert stats["plusGrosDon"]["montant"] == Decimal("500")
    assert stats["plusGrosDon"]["donateur"] == ANONYMOUS_DONOR_LABEL


def test_monthly_breakdown_covers_twelve_months_ending_today() -> None:
    donations = [
        _donation("100", donation_date=date(2024, 2, 10)),
        _donation("40", donation_date=date(2024, 3, 1)),
        _donation("999", status=DonationStatus.REFUSED, donation_date=date(2024, 3, 2)),
        _donation("70", donation_date=date(2023, 1, 31)),
    ]

    breakdown = monthly_breakdown(donations, today=date(2024, 3, 15))

    assert len(breakdown) == 12
    assert list(breakdown)[0] == "APRIL"
    assert list(breakdown)[-1] == "MARCH"
    assert breakdown["FEBRUARY"] == Decimal("100")
    assert breakdown["MARCH"] == Decimal("40")
    assert breakdown["JANUARY"] == Decimal("0")


def test_project_progress_bounds() -> None:
    assert project_progress(_project(requested="1000", collected="0")) == Decimal("0")
    assert project_progress(_project(requested="1000", collected="1000")) == Decimal("100")
