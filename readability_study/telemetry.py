# telemetry.py
import logging

from readability_study import schemas
from readability_study.db import Database
from readability_study.errors import NotFoundError
from readability_study.models import (
    StudySession,
    CalibrationData,
    AccuracyMeasurement,
    QuizResponse,
    GazePoint,
    ReadingEvent,
)
from readability_study.utils import utcnow

logger = logging.getLogger(__name__)


class TelemetryLedger:
    """
    Append-only store for per-session observations. Rows are written once
    and never updated or deleted.
    """

    def __init__(self, database: Database):
        self.database = database

    def _record(self, model, payload: schemas.TelemetryIn):
        fields = payload.model_dump()
        if fields.get("timestamp") is None:
            fields["timestamp"] = utcnow()

        with self.database.session() as db:
            if db.get(StudySession, payload.session_id) is None:
                raise NotFoundError(f"Session {payload.session_id} not found")
            row = model(**fields)
            db.add(row)
            db.commit()
            logger.debug("Recorded %s %s for session %s", model.__tablename__, row.id, row.session_id)
            return row

    def record_calibration(self, payload: schemas.CalibrationIn) -> CalibrationData:
        return self._record(CalibrationData, payload)

    def record_accuracy(self, payload: schemas.AccuracyIn) -> AccuracyMeasurement:
        return self._record(AccuracyMeasurement, payload)

    def record_quiz_response(self, payload: schemas.QuizResponseIn) -> QuizResponse:
        return self._record(QuizResponse, payload)

    def record_gaze_point(self, payload: schemas.GazePointIn) -> GazePoint:
        return self._record(GazePoint, payload)

    def record_reading_event(self, payload: schemas.ReadingEventIn) -> ReadingEvent:
        return self._record(ReadingEvent, payload)
