# models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Float, Index, text
from sqlalchemy.orm import relationship

from readability_study.db import Base
from readability_study.utils import utcnow


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    source = Column(String(64), index=True, nullable=False, default="web")  # web|prolific|mturk|...
    created_at = Column(DateTime(timezone=True), default=utcnow)

    sessions = relationship("StudySession", back_populates="participant")


class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), unique=True, index=True, nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # legacy, superseded by calibration_data rows
    calibration_points = Column(Integer)

    font_left = Column(String(32))           # serif|sans
    font_right = Column(String(32))
    time_left_ms = Column(Integer)
    time_right_ms = Column(Integer)
    time_a_ms = Column(Integer)
    time_b_ms = Column(Integer)
    font_preference = Column(String(8))      # A|B
    preferred_font_type = Column(String(32))

    # legacy, superseded by quiz_responses rows
    quiz_responses_json = Column(Text)

    user_agent = Column(Text)
    screen_width = Column(Integer)
    screen_height = Column(Integer)

    participant = relationship("Participant", back_populates="sessions")


class StudyText(Base):
    __tablename__ = "study_texts"
    __table_args__ = (
        # at most one active row; dialects without partial indexes rely on the row lock in content.py
        Index(
            "uq_study_texts_single_active",
            "active",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active"),
        ).ddl_if(dialect=("postgresql", "sqlite")),
    )

    id = Column(Integer, primary_key=True, index=True)
    version = Column(String(128), unique=True, index=True, nullable=False)
    content = Column(Text)  # deprecated single passage, see passages
    font_left = Column(String(32), nullable=False, default="serif")
    font_right = Column(String(32), nullable=False, default="sans")
    active = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # children are always read through ordered queries in content.py
    passages = relationship("Passage", back_populates="study_text")
    quiz_questions = relationship("QuizQuestion", back_populates="study_text")


class Passage(Base):
    __tablename__ = "passages"

    id = Column(Integer, primary_key=True, index=True)
    study_text_id = Column(Integer, ForeignKey("study_texts.id"), index=True, nullable=False)
    order = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    title = Column(String(512))
    font_left = Column(String(32))   # null -> study text font
    font_right = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    study_text = relationship("StudyText", back_populates="passages")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    study_text_id = Column(Integer, ForeignKey("study_texts.id"), index=True, nullable=False)
    question_id = Column(String(64), nullable=False)  # "q1", "q2", ...
    prompt = Column(Text, nullable=False)
    choices = Column(Text, nullable=False)            # JSON array of strings
    answer = Column(Integer, nullable=False)          # index into choices
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    study_text = relationship("StudyText", back_populates="quiz_questions")


# --- telemetry: write-once rows, one ledger per session ---

class CalibrationData(Base):
    __tablename__ = "calibration_data"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id"), index=True, nullable=False)
    point_index = Column(Integer, nullable=False)   # 0-based calibration point
    click_number = Column(Integer, nullable=False)  # click on this point, 1-5
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)


class AccuracyMeasurement(Base):
    __tablename__ = "accuracy_measurements"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id"), index=True, nullable=False)
    accuracy = Column(Float, nullable=False)   # percent
    duration = Column(Integer, nullable=False)  # ms
    passed = Column(Boolean, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)


class QuizResponse(Base):
    __tablename__ = "quiz_responses"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id"), index=True, nullable=False)
    question_id = Column(String(64), nullable=False)
    answer_index = Column(Integer, nullable=False)
    is_correct = Column(Boolean)
    response_time = Column(Integer)  # ms
    timestamp = Column(DateTime(timezone=True), nullable=False)


class GazePoint(Base):
    __tablename__ = "gaze_points"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id"), index=True, nullable=False)
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)
    panel = Column(String(16))  # A|B|left|right
    phase = Column(String(16))  # start|middle|end
    timestamp = Column(DateTime(timezone=True), nullable=False)


class ReadingEvent(Base):
    __tablename__ = "reading_events"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id"), index=True, nullable=False)
    event_type = Column(String(32), nullable=False)  # start|pause|resume|complete
    panel = Column(String(16), nullable=False)
    duration = Column(Integer)  # ms, complete events
    timestamp = Column(DateTime(timezone=True), nullable=False)
