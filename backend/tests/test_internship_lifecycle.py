import os
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///./data/estagiopro.db")
os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from estagiopro.database import Base
from estagiopro.models.internship import Internship, WorkloadEntry
from estagiopro.services import lifecycle
from estagiopro.services.errors import (
    IllegalTransition,
    IncompleteWorkload,
    InvalidDates,
    InvalidReportIndex,
    InvalidWorkload,
    NotFound,
)


def _build_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)()


def _create(session, kind="mandatory", **overrides):
    data = {
        "kind": kind,
        "student_id": "student-1",
        "advisor_id": "advisor-1",
        "start_date": "2026-03-01",
        "end_date": "2026-12-15",
    }
    data.update(overrides)
    return lifecycle.create_internship(session, **data)


def _active(session, **overrides):
    internship = _create(session, **overrides)
    return lifecycle.transition(session, internship.id, "active")


def test_mandatory_internship_requires_390_hours():
    session = _build_session()

    internship = _create(session)

    assert internship.status == "pending"
    assert internship.required_workload_hours == 390
    assert internship.partial_workload_hours == 0
    assert lifecycle.remaining_workload(internship) == 390
    assert lifecycle.completed_report_count(internship) == 0


def test_mandatory_internship_rejects_other_required_hours():
    session = _build_session()

    with pytest.raises(InvalidWorkload):
        _create(session, required_workload_hours=200)

    assert session.query(Internship).count() == 0


def test_non_mandatory_internship_may_have_no_required_hours():
    session = _build_session()

    internship = _create(session, kind="non_mandatory")

    assert internship.required_workload_hours is None
    assert lifecycle.remaining_workload(internship) == 0


def test_create_rejects_end_before_start():
    session = _build_session()

    with pytest.raises(InvalidDates):
        _create(session, start_date="2026-06-01", end_date="2026-05-01")


def test_update_workload_absolute_and_delta():
    session = _build_session()
    internship = _active(session)

    internship = lifecycle.update_workload(session, internship.id, 300, note="first semester")
    assert internship.partial_workload_hours == 300
    assert lifecycle.remaining_workload(internship) == 90

    internship = lifecycle.update_workload(session, internship.id, 60, mode="delta", actor_id="coord-1")
    assert internship.partial_workload_hours == 360
    assert internship.status == "active"

    entries = session.query(WorkloadEntry).order_by(WorkloadEntry.new_hours).all()
    assert [(e.previous_hours, e.new_hours, e.mode) for e in entries] == [
        (0, 300, "absolute"),
        (300, 360, "delta"),
    ]
    assert entries[0].note == "first semester"
    assert entries[1].actor_id == "coord-1"


def test_update_workload_rejects_negative_total_and_keeps_record():
    session = _build_session()
    internship = _active(session)
    lifecycle.update_workload(session, internship.id, 40)

    with pytest.raises(InvalidWorkload):
        lifecycle.update_workload(session, internship.id, -50, mode="delta")
    with pytest.raises(InvalidWorkload):
        lifecycle.update_workload(session, internship.id, -1)

    reloaded = lifecycle.get_internship(session, internship.id)
    assert reloaded.partial_workload_hours == 40
    assert session.query(WorkloadEntry).count() == 1


def test_update_workload_rejects_unknown_mode():
    session = _build_session()
    internship = _active(session)

    with pytest.raises(InvalidWorkload):
        lifecycle.update_workload(session, internship.id, 10, mode="percent")


def test_over_completion_reports_zero_remaining():
    session = _build_session()
    internship = _active(session)

    internship = lifecycle.update_workload(session, internship.id, 450)

    assert internship.partial_workload_hours == 450
    assert lifecycle.remaining_workload(internship) == 0


def test_record_report_is_idempotent():
    session = _build_session()
    internship = _active(session)

    once = lifecycle.record_report(session, internship.id, 3, attached=True)
    flags_once = [once.report_flag(i) for i in range(1, 11)]
    updated_at_once = once.updated_at

    twice = lifecycle.record_report(session, internship.id, 3, attached=True)

    assert [twice.report_flag(i) for i in range(1, 11)] == flags_once
    assert twice.updated_at == updated_at_once
    assert lifecycle.completed_report_count(twice) == 1


def test_reports_have_no_ordering():
    session = _build_session()
    internship = _active(session)

    lifecycle.record_report(session, internship.id, 5)
    internship = lifecycle.record_report(session, internship.id, 10)

    assert internship.report_flag(1) is False
    assert lifecycle.completed_reports(internship) == [5, 10]

    internship = lifecycle.record_report(session, internship.id, 5, attached=False)
    assert lifecycle.completed_reports(internship) == [10]


@pytest.mark.parametrize("index", [0, 11, -1])
def test_record_report_rejects_out_of_range_index(index):
    session = _build_session()
    internship = _active(session)

    with pytest.raises(InvalidReportIndex):
        lifecycle.record_report(session, internship.id, index)


@pytest.mark.parametrize(
    "path",
    [
        ["active"],
        ["cancelled"],
        ["active", "cancelled"],
    ],
)
def test_legal_transitions(path):
    session = _build_session()
    internship = _create(session)

    for target in path:
        internship = lifecycle.transition(session, internship.id, target)

    assert internship.status == path[-1]


@pytest.mark.parametrize(
    "path, illegal",
    [
        ([], "pending"),
        ([], "completed"),
        (["active"], "active"),
        (["active"], "pending"),
        (["cancelled"], "active"),
        (["cancelled"], "cancelled"),
        (["active", "cancelled"], "completed"),
    ],
)
def test_illegal_transitions(path, illegal):
    session = _build_session()
    internship = _create(session)
    for target in path:
        internship = lifecycle.transition(session, internship.id, target)

    with pytest.raises(IllegalTransition):
        lifecycle.transition(session, internship.id, illegal)

    assert lifecycle.get_internship(session, internship.id).status == (path[-1] if path else "pending")


def test_completed_is_terminal():
    session = _build_session()
    internship = _active(session)
    lifecycle.update_workload(session, internship.id, 390)
    lifecycle.transition(session, internship.id, "completed")

    for target in ("pending", "active", "completed", "cancelled"):
        with pytest.raises(IllegalTransition):
            lifecycle.transition(session, internship.id, target)


def test_activation_requires_advisor_and_dates():
    session = _build_session()
    internship = _create(session, advisor_id=None, end_date=None)

    with pytest.raises(IllegalTransition, match="advisor.*end date"):
        lifecycle.transition(session, internship.id, "active")

    lifecycle.update_internship_details(
        session, internship.id, {"advisor_id": "advisor-2", "end_date": "2026-11-30"}
    )
    internship = lifecycle.transition(session, internship.id, "active")

    assert internship.status == "active"
    assert internship.advisor_id == "advisor-2"


def test_completion_requires_workload():
    session = _build_session()
    internship = _active(session)
    lifecycle.update_workload(session, internship.id, 300)

    with pytest.raises(IncompleteWorkload):
        lifecycle.transition(session, internship.id, "completed")
    assert lifecycle.get_internship(session, internship.id).status == "active"

    lifecycle.update_workload(session, internship.id, 390)
    internship = lifecycle.transition(session, internship.id, "completed")

    assert internship.status == "completed"


def test_completion_without_required_hours():
    session = _build_session()
    internship = _active(session, kind="non_mandatory")

    internship = lifecycle.transition(session, internship.id, "completed", actor_id="coord-1")

    assert internship.status == "completed"
    assert internship.updated_by == "coord-1"


def test_update_details_leaves_kind_and_status_alone():
    session = _build_session()
    internship = _create(session)

    internship = lifecycle.update_internship_details(
        session,
        internship.id,
        {"company_id": "company-9", "supervisor": "Ana", "kind": "non_mandatory", "status": "active"},
    )

    assert internship.company_id == "company-9"
    assert internship.supervisor == "Ana"
    assert internship.kind == "mandatory"
    assert internship.status == "pending"


def test_update_details_rejects_inverted_dates():
    session = _build_session()
    internship = _create(session)

    with pytest.raises(InvalidDates):
        lifecycle.update_internship_details(session, internship.id, {"end_date": "2026-01-01"})

    assert lifecycle.get_internship(session, internship.id).end_date == "2026-12-15"


def test_missing_internship_is_not_found():
    session = _build_session()

    with pytest.raises(NotFound):
        lifecycle.get_internship(session, "missing")
    with pytest.raises(NotFound):
        lifecycle.update_workload(session, "missing", 10)
    with pytest.raises(NotFound):
        lifecycle.transition(session, "missing", "active")


def test_list_internships_filters():
    session = _build_session()
    first = _active(session)
    _create(session, kind="non_mandatory", student_id="student-2")

    assert [i.id for i in lifecycle.list_internships(session, status="active")] == [first.id]
    assert len(lifecycle.list_internships(session, kind="non_mandatory")) == 1
    assert len(lifecycle.list_internships(session, student_id="student-2")) == 1
    assert len(lifecycle.list_internships(session)) == 2
