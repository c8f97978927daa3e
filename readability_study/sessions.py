# sessions.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from readability_study import schemas
from readability_study.db import Database
from readability_study.errors import ConflictError, NotFoundError
from readability_study.models import Participant, StudySession
from readability_study.utils import generate_session_id

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "web"


class SessionRegistry:
    def __init__(self, database: Database):
        self.database = database

    def create_participant(self, source: Optional[str] = None) -> Participant:
        source = (source or "").strip() or DEFAULT_SOURCE
        with self.database.session() as db:
            row = Participant(source=source)
            db.add(row)
            db.commit()
            return row

    def create_session(self, payload: schemas.SessionIn) -> StudySession:
        """
        Creates a study session for an existing participant. A blank
        session_id is replaced by a generated one. A duplicate session_id is
        a ConflictError and is not retried.
        """
        fields = payload.model_dump()
        fields["session_id"] = (fields.get("session_id") or "").strip() or generate_session_id()

        with self.database.session() as db:
            if db.get(Participant, payload.participant_id) is None:
                raise NotFoundError(f"Participant {payload.participant_id} not found")

            row = StudySession(**fields)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning("Session id collision: %s", fields["session_id"])
                raise ConflictError(f"Session id {fields['session_id']!r} already exists") from e
            return row
