# main.py
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readability_study import config, schemas
from readability_study.content import ContentBundle, ContentStore, DecodedQuestion
from readability_study.db import Database
from readability_study.errors import StoreError
from readability_study.seed import seed_initial_data
from readability_study.sessions import SessionRegistry
from readability_study.telemetry import TelemetryLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_content(request: Request) -> ContentStore:
    return request.app.state.content


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_ledger(request: Request) -> TelemetryLedger:
    return request.app.state.ledger


# -----------------------------------------------------------------------------
# Response shaping
# -----------------------------------------------------------------------------
def _bundle_out(bundle: ContentBundle) -> dict:
    st = bundle.study_text
    out = {
        "id": st.id,
        "version": st.version,
        "font_left": st.font_left,
        "font_right": st.font_right,
    }
    if bundle.passages:
        out["passages"] = []
        for p in bundle.passages:
            font_left, font_right = bundle.fonts_for(p)
            out["passages"].append({
                "id": p.id,
                "order": p.order,
                "title": p.title,
                "content": p.content,
                "font_left": font_left,
                "font_right": font_right,
            })
    else:
        # legacy single-body version
        out["content"] = st.content or ""
    return out


def _question_out(d: DecodedQuestion) -> dict:
    return {
        "id": d.row.question_id,
        "prompt": d.row.prompt,
        "choices": d.choices,
        "answer": d.row.answer,
        "order": d.row.order,
    }


def _admin_question_out(d: DecodedQuestion) -> dict:
    return {
        "id": d.row.id,
        "study_text_id": d.row.study_text_id,
        "question_id": d.row.question_id,
        "prompt": d.row.prompt,
        "choices": d.choices,
        "answer": d.row.answer,
        "order": d.row.order,
        "choices_error": d.error,
    }


def _question_error_out(d: DecodedQuestion) -> dict:
    return {"id": d.row.id, "question_id": d.row.question_id, "error": d.error}


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@router.get("/health")
def health():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Participants & sessions
# -----------------------------------------------------------------------------
@router.post("/participant", response_model=schemas.ParticipantOut, status_code=201)
def create_participant(payload: schemas.ParticipantIn, registry: SessionRegistry = Depends(get_registry)):
    row = registry.create_participant(payload.source)
    return {"id": row.id, "source": row.source}


@router.post("/session", response_model=schemas.SessionOut, status_code=201)
def create_session(payload: schemas.SessionIn, registry: SessionRegistry = Depends(get_registry)):
    row = registry.create_session(payload)
    return {"id": row.id, "session_id": row.session_id}


# -----------------------------------------------------------------------------
# Telemetry (append-only)
# -----------------------------------------------------------------------------
@router.post("/calibration", response_model=schemas.RecordedOut, status_code=201)
def record_calibration(payload: schemas.CalibrationIn, ledger: TelemetryLedger = Depends(get_ledger)):
    return {"id": ledger.record_calibration(payload).id}


@router.post("/accuracy", response_model=schemas.RecordedOut, status_code=201)
def record_accuracy(payload: schemas.AccuracyIn, ledger: TelemetryLedger = Depends(get_ledger)):
    return {"id": ledger.record_accuracy(payload).id}


@router.post("/quiz-response", response_model=schemas.RecordedOut, status_code=201)
def record_quiz_response(payload: schemas.QuizResponseIn, ledger: TelemetryLedger = Depends(get_ledger)):
    return {"id": ledger.record_quiz_response(payload).id}


@router.post("/gaze-point", response_model=schemas.RecordedOut, status_code=201)
def record_gaze_point(payload: schemas.GazePointIn, ledger: TelemetryLedger = Depends(get_ledger)):
    return {"id": ledger.record_gaze_point(payload).id}


@router.post("/reading-event", response_model=schemas.RecordedOut, status_code=201)
def record_reading_event(payload: schemas.ReadingEventIn, ledger: TelemetryLedger = Depends(get_ledger)):
    return {"id": ledger.record_reading_event(payload).id}


# -----------------------------------------------------------------------------
# Study content (client)
# -----------------------------------------------------------------------------
@router.get("/study-text", response_model=schemas.ActiveStudyTextOut, response_model_exclude_none=True)
def get_study_text(version: Optional[str] = None, content: ContentStore = Depends(get_content)):
    return _bundle_out(content.get_active_version(version))


@router.get("/quiz-questions", response_model=schemas.QuizQuestionListOut)
def list_quiz_questions(study_text_id: Optional[int] = None, content: ContentStore = Depends(get_content)):
    result = content.list_questions_for_version(study_text_id)
    return {
        "study_text_id": result.study_text_id,
        "questions": [_question_out(d) for d in result.questions],
        "errors": [_question_error_out(d) for d in result.errors],
    }


# -----------------------------------------------------------------------------
# Admin: study text versions
# -----------------------------------------------------------------------------
@router.get("/admin/study-text", response_model=List[schemas.StudyTextOut])
def admin_list_study_texts(content: ContentStore = Depends(get_content)):
    return content.list_versions()


@router.get("/admin/study-text/{study_text_id}", response_model=schemas.StudyTextOut)
def admin_get_study_text(study_text_id: int, content: ContentStore = Depends(get_content)):
    return content.get_version(study_text_id)


@router.post("/admin/study-text", response_model=schemas.StudyTextCreatedOut, status_code=201)
def admin_create_study_text(
    payload: schemas.StudyTextCreate,
    response: Response,
    content: ContentStore = Depends(get_content),
):
    row, created = content.create_version(payload)
    if not created:
        response.status_code = 200
    out = schemas.StudyTextOut.model_validate(row).model_dump()
    return {**out, "created": created}


@router.put("/admin/study-text/{study_text_id}", response_model=schemas.StudyTextOut)
def admin_update_study_text(
    study_text_id: int,
    payload: schemas.StudyTextUpdate,
    content: ContentStore = Depends(get_content),
):
    return content.update_version(study_text_id, payload)


# -----------------------------------------------------------------------------
# Admin: passages
# -----------------------------------------------------------------------------
@router.get("/admin/passage", response_model=List[schemas.PassageOut])
def admin_list_passages(study_text_id: Optional[int] = None, content: ContentStore = Depends(get_content)):
    _, rows = content.list_passages(study_text_id)
    return rows


@router.get("/admin/passage/{passage_id}", response_model=schemas.PassageOut)
def admin_get_passage(passage_id: int, content: ContentStore = Depends(get_content)):
    return content.get_passage(passage_id)


@router.post("/admin/passage", response_model=schemas.PassageOut, status_code=201)
def admin_create_passage(payload: schemas.PassageCreate, content: ContentStore = Depends(get_content)):
    return content.create_passage(payload)


@router.put("/admin/passage/{passage_id}", response_model=schemas.PassageOut)
def admin_update_passage(
    passage_id: int,
    payload: schemas.PassageUpdate,
    content: ContentStore = Depends(get_content),
):
    return content.update_passage(passage_id, payload)


@router.delete("/admin/passage/{passage_id}")
def admin_delete_passage(passage_id: int, content: ContentStore = Depends(get_content)):
    content.delete_passage(passage_id)
    return {"success": True}


# -----------------------------------------------------------------------------
# Admin: quiz questions
# -----------------------------------------------------------------------------
@router.get("/admin/quiz-question", response_model=schemas.AdminQuizQuestionListOut)
def admin_list_quiz_questions(study_text_id: Optional[int] = None, content: ContentStore = Depends(get_content)):
    result = content.list_questions_for_version(study_text_id)
    return {
        "study_text_id": result.study_text_id,
        "questions": [_admin_question_out(d) for d in result.questions],
        "errors": [_question_error_out(d) for d in result.errors],
    }


@router.get("/admin/quiz-question/{question_pk}", response_model=schemas.AdminQuizQuestionOut)
def admin_get_quiz_question(question_pk: int, content: ContentStore = Depends(get_content)):
    return _admin_question_out(content.get_question(question_pk))


@router.post("/admin/quiz-question", response_model=schemas.AdminQuizQuestionOut, status_code=201)
def admin_create_quiz_question(payload: schemas.QuizQuestionCreate, content: ContentStore = Depends(get_content)):
    return _admin_question_out(content.create_question(payload))


@router.put("/admin/quiz-question/{question_pk}", response_model=schemas.AdminQuizQuestionOut)
def admin_update_quiz_question(
    question_pk: int,
    payload: schemas.QuizQuestionUpdate,
    content: ContentStore = Depends(get_content),
):
    return _admin_question_out(content.update_question(question_pk, payload))


@router.delete("/admin/quiz-question/{question_pk}")
def admin_delete_quiz_question(question_pk: int, content: ContentStore = Depends(get_content)):
    content.delete_question(question_pk)
    return {"success": True}


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Failures here abort startup
    database: Database = app.state.database
    database.create_all()
    if app.state.seed:
        seed_initial_data(database)
    logger.info("Readability backend ready")
    yield
    database.dispose()


async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "detail": jsonable_encoder(exc.errors())},
    )


def create_app(database: Optional[Database] = None, seed: Optional[bool] = None) -> FastAPI:
    database = database or Database(config.DATABASE_URL)

    app = FastAPI(title="Readability Study Backend", lifespan=lifespan)
    app.state.database = database
    app.state.seed = config.SEED_ON_STARTUP if seed is None else seed
    app.state.content = ContentStore(database)
    app.state.registry = SessionRegistry(database)
    app.state.ledger = TelemetryLedger(database)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
