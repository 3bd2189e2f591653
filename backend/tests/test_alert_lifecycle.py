import json
import os
import sys

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///./data/estagiopro.db")
os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from estagiopro.database import Base
from estagiopro.models.alert import InternshipAlert
from estagiopro.models.internship import Internship
from estagiopro.services import alert_lifecycle
from estagiopro.services.errors import IllegalTransition, NotFound


def _build_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)()


def _add_alert(session, status="pending", target_users=("advisor-1",), alert_type="expiration_warning"):
    internship = Internship(
        kind="mandatory",
        student_id="student-1",
        advisor_id="advisor-1",
        status="active",
        end_date="2026-10-25",
        required_workload_hours=390,
    )
    session.add(internship)
    session.flush()

    alert = InternshipAlert(
        internship_id=internship.id,
        internship_kind="mandatory",
        alert_type=alert_type,
        severity="high",
        status=status,
        title="Mandatory internship nearing expiration",
        message="The internship ends on 25/10/2026. 6 days remaining.",
        days_until_expiration=6,
        target_users=json.dumps(list(target_users)),
    )
    session.add(alert)
    session.commit()
    return alert


def test_mark_sent_records_delivery():
    session = _build_session()
    alert = _add_alert(session)

    sent = alert_lifecycle.mark_sent(session, alert.id, delivery_reference="SM123")

    assert sent.status == "sent"
    assert sent.sent_at is not None
    assert sent.delivery_reference == "SM123"


def test_mark_sent_only_from_pending():
    session = _build_session()
    alert = _add_alert(session)
    alert_lifecycle.mark_sent(session, alert.id)
    sent_at = alert_lifecycle.get_alert(session, alert.id).sent_at

    with pytest.raises(IllegalTransition):
        alert_lifecycle.mark_sent(session, alert.id)

    assert alert_lifecycle.get_alert(session, alert.id).sent_at == sent_at


@pytest.mark.parametrize("start", ["pending", "sent"])
def test_mark_read_from_open_statuses(start):
    session = _build_session()
    alert = _add_alert(session, status=start)

    read = alert_lifecycle.mark_read(session, alert.id)

    assert read.status == "read"
    assert read.read_at is not None


def test_mark_read_is_idempotent():
    session = _build_session()
    alert = _add_alert(session)
    first = alert_lifecycle.mark_read(session, alert.id)
    read_at = first.read_at

    again = alert_lifecycle.mark_read(session, alert.id)

    assert again.status == "read"
    assert again.read_at == read_at


def test_read_alert_can_be_dismissed():
    session = _build_session()
    alert = _add_alert(session)
    alert_lifecycle.mark_read(session, alert.id)

    dismissed = alert_lifecycle.dismiss(session, alert.id)

    assert dismissed.status == "dismissed"
    assert dismissed.dismissed_at is not None
    assert dismissed.read_at is not None


@pytest.mark.parametrize(
    "operation",
    [alert_lifecycle.mark_sent, alert_lifecycle.mark_read, alert_lifecycle.dismiss],
)
def test_dismissed_is_terminal(operation):
    session = _build_session()
    alert = _add_alert(session)
    dismissed_at = alert_lifecycle.dismiss(session, alert.id).dismissed_at

    with pytest.raises(IllegalTransition):
        operation(session, alert.id)

    reloaded = alert_lifecycle.get_alert(session, alert.id)
    assert reloaded.status == "dismissed"
    assert reloaded.dismissed_at == dismissed_at


@pytest.mark.parametrize(
    "operation",
    [alert_lifecycle.mark_sent, alert_lifecycle.mark_read, alert_lifecycle.dismiss, alert_lifecycle.get_alert],
)
def test_missing_alert_is_not_found(operation):
    session = _build_session()

    with pytest.raises(NotFound):
        operation(session, "missing")


def test_alert_transitions_do_not_touch_internship():
    session = _build_session()
    alert = _add_alert(session)
    internship = session.query(Internship).one()
    before = (internship.status, internship.updated_at, internship.partial_workload_hours)

    alert_lifecycle.mark_read(session, alert.id)
    alert_lifecycle.dismiss(session, alert.id)

    internship = session.query(Internship).one()
    assert (internship.status, internship.updated_at, internship.partial_workload_hours) == before


def test_list_alerts_hides_dismissed_and_filters_by_target():
    session = _build_session()
    kept = _add_alert(session, target_users=("advisor-1",))
    other = _add_alert(session, target_users=("advisor-2",))
    hidden = _add_alert(session, target_users=("advisor-1",))
    alert_lifecycle.dismiss(session, hidden.id)

    assert {a.id for a in alert_lifecycle.list_alerts(session)} == {kept.id, other.id}
    assert {a.id for a in alert_lifecycle.list_alerts(session, include_dismissed=True)} == {
        kept.id, other.id, hidden.id,
    }
    assert [a.id for a in alert_lifecycle.list_alerts(session, target_user="advisor-1")] == [kept.id]
    assert [a.id for a in alert_lifecycle.list_alerts(session, status="dismissed")] == [hidden.id]


def test_list_alerts_limit_is_applied_in_query():
    session = _build_session()
    for _ in range(12):
        _add_alert(session)

    statements = []
    event.listen(
        session.get_bind(),
        "before_cursor_execute",
        lambda conn, cursor, statement, *args: statements.append(statement),
    )

    alerts = alert_lifecycle.list_alerts(session, limit=5)

    assert len(alerts) == 5
    assert any("LIMIT" in statement for statement in statements)


def test_list_alerts_target_filter_runs_before_limit():
    session = _build_session()
    wanted = [_add_alert(session, target_users=("advisor-1", "coordinator-1")) for _ in range(3)]
    for _ in range(5):
        _add_alert(session, target_users=("advisor-2",))
    _add_alert(session, target_users=("advisorX1",))

    alerts = alert_lifecycle.list_alerts(session, target_user="advisor-1", limit=3)
    assert {a.id for a in alerts} == {a.id for a in wanted}

    assert alert_lifecycle.list_alerts(session, target_user="advisor_1") == []
    assert len(alert_lifecycle.list_alerts(session, target_user="coordinator-1")) == 3
