"""SQLAlchemy models package."""
from estagiopro.models.internship import Internship, WorkloadEntry
from estagiopro.models.alert import InternshipAlert

__all__ = [
    "Internship",
    "WorkloadEntry",
    "InternshipAlert",
]
