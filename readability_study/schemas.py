# schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

# Update requests below rely on pydantic's set-field tracking: a field the
# client sent (even "" / 0 / false / null) is applied, an omitted one is not.


# --- session registry ---

class ParticipantIn(BaseModel):
    source: Optional[str] = None


class ParticipantOut(BaseModel):
    success: bool = True
    id: int
    source: str


class SessionIn(BaseModel):
    participant_id: int
    session_id: Optional[str] = None
    calibration_points: Optional[int] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None
    time_left_ms: Optional[int] = None
    time_right_ms: Optional[int] = None
    time_a_ms: Optional[int] = None
    time_b_ms: Optional[int] = None
    font_preference: Optional[str] = None
    preferred_font_type: Optional[str] = None
    quiz_responses_json: Optional[str] = None
    user_agent: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None


class SessionOut(BaseModel):
    success: bool = True
    id: int
    session_id: str


# --- telemetry ledger ---

class TelemetryIn(BaseModel):
    session_id: int  # study session row id
    timestamp: Optional[datetime] = None


class CalibrationIn(TelemetryIn):
    point_index: int = Field(ge=0)
    click_number: int = Field(ge=1)
    x: float
    y: float


class AccuracyIn(TelemetryIn):
    accuracy: float
    duration: int = Field(ge=0)
    passed: bool


class QuizResponseIn(TelemetryIn):
    question_id: str = Field(min_length=1)
    answer_index: int = Field(ge=0)
    is_correct: Optional[bool] = None
    response_time: Optional[int] = Field(default=None, ge=0)


class GazePointIn(TelemetryIn):
    x: float
    y: float
    panel: Optional[str] = None
    phase: Optional[str] = None


class ReadingEventIn(TelemetryIn):
    event_type: str = Field(min_length=1)
    panel: str = Field(min_length=1)
    duration: Optional[int] = Field(default=None, ge=0)


class RecordedOut(BaseModel):
    success: bool = True
    id: int


# --- content store ---

class StudyTextCreate(BaseModel):
    version: str = Field(min_length=1)
    content: Optional[str] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None
    active: bool = False


class StudyTextUpdate(BaseModel):
    version: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None
    active: Optional[bool] = None


class StudyTextOut(BaseModel):
    id: int
    version: str
    content: Optional[str] = None
    font_left: str
    font_right: str
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudyTextCreatedOut(StudyTextOut):
    success: bool = True
    created: bool  # false when an existing version was returned


class PassageCreate(BaseModel):
    study_text_id: int
    content: str = Field(min_length=1)
    order: Optional[int] = Field(default=None, ge=0)  # omitted -> next free slot
    title: Optional[str] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None


class PassageUpdate(BaseModel):
    content: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    title: Optional[str] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None


class PassageOut(BaseModel):
    id: int
    study_text_id: int
    order: int
    content: str
    title: Optional[str] = None
    font_left: Optional[str] = None
    font_right: Optional[str] = None

    class Config:
        from_attributes = True


class ActivePassageOut(BaseModel):
    id: int
    order: int
    title: Optional[str] = None
    content: str
    font_left: str
    font_right: str


class ActiveStudyTextOut(BaseModel):
    """Either `passages` or the legacy `content` is present, never both."""
    id: int
    version: str
    font_left: str
    font_right: str
    passages: Optional[List[ActivePassageOut]] = None
    content: Optional[str] = None


class QuizQuestionCreate(BaseModel):
    study_text_id: int
    question_id: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    choices: List[str] = Field(min_length=1)
    answer: int = Field(ge=0)
    order: int = 0


class QuizQuestionUpdate(BaseModel):
    question_id: Optional[str] = Field(default=None, min_length=1)
    prompt: Optional[str] = Field(default=None, min_length=1)
    choices: Optional[List[str]] = Field(default=None, min_length=1)
    answer: Optional[int] = Field(default=None, ge=0)
    order: Optional[int] = None


class QuizQuestionOut(BaseModel):
    """Client-facing question; `id` is the human question id ("q1")."""
    id: str
    prompt: str
    choices: List[str]
    answer: int
    order: int


class AdminQuizQuestionOut(BaseModel):
    id: int
    study_text_id: int
    question_id: str
    prompt: str
    choices: List[str]
    answer: int
    order: int
    choices_error: Optional[str] = None


class QuestionErrorOut(BaseModel):
    id: int
    question_id: str
    error: str


class QuizQuestionListOut(BaseModel):
    study_text_id: int
    questions: List[QuizQuestionOut]
    errors: List[QuestionErrorOut] = []


class AdminQuizQuestionListOut(BaseModel):
    study_text_id: int
    questions: List[AdminQuizQuestionOut]
    errors: List[QuestionErrorOut] = []
