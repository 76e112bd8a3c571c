"""ORM model package."""

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

__all__ = [
    "Association",
    "Donation",
    "DonationStatus",
    "Donor",
    "Project",
    "ProjectStatus",
    "RoleType",
    "Transaction",
    "TransactionStatus",
    "User",
]
