from datetime import datetime, timezone

import pytest

from readability_study.errors import NotFoundError
from readability_study.models import CalibrationData, GazePoint
from readability_study.schemas import (
    AccuracyIn,
    CalibrationIn,
    GazePointIn,
    QuizResponseIn,
    ReadingEventIn,
    SessionIn,
)
from readability_study.telemetry import TelemetryLedger
from readability_study.utils import utcnow


@pytest.fixture()
def session_pk(registry) -> int:
    participant = registry.create_participant()
    return registry.create_session(SessionIn(participant_id=participant.id)).id


def test_records_each_kind(ledger, session_pk):
    rows = [
        ledger.record_calibration(CalibrationIn(session_id=session_pk, point_index=0, click_number=1, x=10, y=20)),
        ledger.record_accuracy(AccuracyIn(session_id=session_pk, accuracy=87.5, duration=5000, passed=True)),
        ledger.record_quiz_response(QuizResponseIn(session_id=session_pk, question_id="q1", answer_index=1, is_correct=True)),
        ledger.record_gaze_point(GazePointIn(session_id=session_pk, x=1.5, y=2.5, panel="A", phase="start")),
        ledger.record_reading_event(ReadingEventIn(session_id=session_pk, event_type="complete", panel="A", duration=4200)),
    ]
    for row in rows:
        assert row.id is not None
        assert row.session_id == session_pk
        assert row.timestamp is not None


def test_server_timestamp_when_omitted(ledger, session_pk):
    before = utcnow()
    row = ledger.record_gaze_point(GazePointIn(session_id=session_pk, x=0, y=0))
    after = utcnow()
    assert before <= row.timestamp <= after


def test_client_timestamp_is_kept(ledger, session_pk):
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    row = ledger.record_calibration(CalibrationIn(session_id=session_pk, point_index=2, click_number=3, x=1, y=1, timestamp=ts))
    assert row.timestamp == ts


def test_unknown_session_is_rejected(ledger, database):
    with pytest.raises(NotFoundError):
        ledger.record_gaze_point(GazePointIn(session_id=999, x=0, y=0))
    with database.session() as db:
        assert db.query(GazePoint).count() == 0


def test_rows_accumulate_in_arrival_order(ledger, session_pk, database):
    for i in range(3):
        ledger.record_calibration(CalibrationIn(session_id=session_pk, point_index=i, click_number=1, x=i, y=i))
    with database.session() as db:
        rows = db.query(CalibrationData).order_by(CalibrationData.id).all()
    assert [r.point_index for r in rows] == [0, 1, 2]


def test_ledger_exposes_no_mutation():
    public = {name for name in dir(TelemetryLedger) if not name.startswith("_")}
    assert public == {
        "record_calibration",
        "record_accuracy",
        "record_quiz_response",
        "record_gaze_point",
        "record_reading_event",
    }
