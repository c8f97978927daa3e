# content.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from readability_study import schemas
from readability_study.db import Database
from readability_study.errors import ConflictError, NotFoundError, InvalidInputError
from readability_study.models import StudyText, Passage, QuizQuestion
from readability_study.utils import decode_choices, encode_choices

logger = logging.getLogger(__name__)

DEFAULT_FONT_LEFT = "serif"
DEFAULT_FONT_RIGHT = "sans"


@dataclass
class ContentBundle:
    study_text: StudyText
    passages: List[Passage] = field(default_factory=list)

    def fonts_for(self, passage: Passage) -> Tuple[str, str]:
        """Per-panel fonts for a passage, falling back to the study text's."""
        return (
            passage.font_left or self.study_text.font_left,
            passage.font_right or self.study_text.font_right,
        )


@dataclass
class DecodedQuestion:
    row: QuizQuestion
    choices: List[str]
    error: Optional[str] = None


@dataclass
class QuestionList:
    """Questions whose choices decoded, plus the ones that did not."""
    study_text_id: int
    questions: List[DecodedQuestion]
    errors: List[DecodedQuestion]


def _reject_nulls(changes: dict, fields) -> None:
    for name in fields:
        if name in changes and changes[name] is None:
            raise InvalidInputError(f"{name} cannot be null")


class ContentStore:
    """
    Study text versions with their ordered passages and quiz questions.

    At most one StudyText is active. Every write that activates a version
    clears the flag on all others inside the same transaction.
    """

    def __init__(self, database: Database):
        self.database = database

    # -------------------------------------------------------------------------
    # Study text versions
    # -------------------------------------------------------------------------
    @staticmethod
    def _deactivate_others(db, keep_id: Optional[int] = None) -> int:
        q = db.query(StudyText).filter(StudyText.active.is_(True))
        if keep_id is not None:
            q = q.filter(StudyText.id != keep_id)
        # Lock the currently active row so concurrent activations queue behind
        # this transaction. A race with no active row left to lock is caught by
        # the single-active unique index at commit.
        if not q.with_for_update().all():
            return 0
        return q.update({StudyText.active: False}, synchronize_session=False)

    @staticmethod
    def _active_row(db) -> Optional[StudyText]:
        return (
            db.query(StudyText)
            .filter(StudyText.active.is_(True))
            .order_by(StudyText.id.desc())
            .first()
        )

    def create_version(self, payload: schemas.StudyTextCreate) -> Tuple[StudyText, bool]:
        """
        Returns (row, created). An existing version label is returned as-is
        with created=False; nothing is duplicated or modified.
        """
        with self.database.session() as db:
            existing = db.query(StudyText).filter(StudyText.version == payload.version).first()
            if existing:
                logger.info("Study text version %r already exists (id=%s)", payload.version, existing.id)
                return existing, False

            row = StudyText(
                version=payload.version,
                content=payload.content,
                font_left=payload.font_left or DEFAULT_FONT_LEFT,
                font_right=payload.font_right or DEFAULT_FONT_RIGHT,
                active=payload.active,
            )
            if payload.active:
                self._deactivate_others(db)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                # lost a race with a concurrent create of the same label,
                # or with a concurrent activation of another version
                db.rollback()
                existing = db.query(StudyText).filter(StudyText.version == payload.version).first()
                if existing is None:
                    logger.warning("Activation of study text %r lost a concurrent race", payload.version)
                    raise ConflictError("Another study text version was activated concurrently; retry") from e
                logger.info("Study text version %r created concurrently (id=%s)", payload.version, existing.id)
                return existing, False

            if row.active:
                logger.info("Activated study text %r (id=%s)", row.version, row.id)
            return row, True

    def update_version(self, study_text_id: int, payload: schemas.StudyTextUpdate) -> StudyText:
        changes = payload.model_dump(exclude_unset=True)
        _reject_nulls(changes, ("version", "font_left", "font_right", "active"))

        with self.database.session() as db:
            row = db.get(StudyText, study_text_id)
            if row is None:
                raise NotFoundError(f"Study text {study_text_id} not found")

            new_version = changes.get("version")
            if new_version is not None and new_version != row.version:
                clash = db.query(StudyText.id).filter(StudyText.version == new_version).first()
                if clash:
                    raise ConflictError(f"Study text version {new_version!r} already exists")

            if changes.get("active") is True:
                self._deactivate_others(db, keep_id=row.id)

            for key, value in changes.items():
                setattr(row, key, value)

            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                if new_version is not None and db.query(StudyText.id).filter(
                    StudyText.version == new_version, StudyText.id != study_text_id
                ).first():
                    raise ConflictError(f"Study text version {new_version!r} already exists") from e
                logger.warning("Activation of study text %s lost a concurrent race", study_text_id)
                raise ConflictError("Another study text version was activated concurrently; retry") from e

            if changes.get("active") is True:
                logger.info("Activated study text %r (id=%s)", row.version, row.id)
            return row

    def get_version(self, study_text_id: int) -> StudyText:
        with self.database.session() as db:
            row = db.get(StudyText, study_text_id)
            if row is None:
                raise NotFoundError(f"Study text {study_text_id} not found")
            return row

    def list_versions(self) -> List[StudyText]:
        with self.database.session() as db:
            return (
                db.query(StudyText)
                .order_by(StudyText.created_at.desc(), StudyText.id.desc())
                .all()
            )

    def get_active_version(self, requested_version: Optional[str] = None) -> ContentBundle:
        """
        Looks up `requested_version` by label, falling back to the active
        version when the label is missing or unknown.
        """
        with self.database.session() as db:
            row = None
            if requested_version:
                row = db.query(StudyText).filter(StudyText.version == requested_version).first()
                if row is None:
                    logger.info("Study text %r not found, serving active version", requested_version)
            if row is None:
                row = self._active_row(db)
            if row is None:
                raise NotFoundError("No active study text")

            passages = self._ordered_passages(db, row.id)
            return ContentBundle(study_text=row, passages=passages)

    # -------------------------------------------------------------------------
    # Passages
    # -------------------------------------------------------------------------
    @staticmethod
    def _ordered_passages(db, study_text_id: int) -> List[Passage]:
        return (
            db.query(Passage)
            .filter(Passage.study_text_id == study_text_id)
            .order_by(Passage.order.asc(), Passage.id.asc())
            .all()
        )

    def create_passage(self, payload: schemas.PassageCreate) -> Passage:
        if not payload.content.strip():
            raise InvalidInputError("content is required")

        with self.database.session() as db:
            # Row lock on the parent serializes order assignment per study text
            parent = (
                db.query(StudyText)
                .filter(StudyText.id == payload.study_text_id)
                .with_for_update()
                .first()
            )
            if parent is None:
                raise NotFoundError(f"Study text {payload.study_text_id} not found")

            order = payload.order
            if order is None:
                current = (
                    db.query(func.max(Passage.order))
                    .filter(Passage.study_text_id == parent.id)
                    .scalar()
                )
                order = 0 if current is None else current + 1

            row = Passage(
                study_text_id=parent.id,
                order=order,
                content=payload.content,
                title=payload.title,
                font_left=payload.font_left,
                font_right=payload.font_right,
            )
            db.add(row)
            db.commit()
            return row

    def update_passage(self, passage_id: int, payload: schemas.PassageUpdate) -> Passage:
        changes = payload.model_dump(exclude_unset=True)
        _reject_nulls(changes, ("content", "order"))
        if "content" in changes and not changes["content"].strip():
            raise InvalidInputError("content cannot be empty")

        with self.database.session() as db:
            row = db.get(Passage, passage_id)
            if row is None:
                raise NotFoundError(f"Passage {passage_id} not found")
            for key, value in changes.items():
                setattr(row, key, value)
            db.commit()
            return row

    def delete_passage(self, passage_id: int) -> None:
        # no renumbering; gaps in order are fine
        with self.database.session() as db:
            row = db.get(Passage, passage_id)
            if row is None:
                raise NotFoundError(f"Passage {passage_id} not found")
            db.delete(row)
            db.commit()

    def get_passage(self, passage_id: int) -> Passage:
        with self.database.session() as db:
            row = db.get(Passage, passage_id)
            if row is None:
                raise NotFoundError(f"Passage {passage_id} not found")
            return row

    def list_passages(self, study_text_id: Optional[int] = None) -> Tuple[int, List[Passage]]:
        """Ordered passages of a study text, the active one when no id is given."""
        with self.database.session() as db:
            parent = self._parent_or_active(db, study_text_id)
            return parent.id, self._ordered_passages(db, parent.id)

    def _parent_or_active(self, db, study_text_id: Optional[int]) -> StudyText:
        if study_text_id is None:
            parent = self._active_row(db)
            if parent is None:
                raise NotFoundError("No active study text")
        else:
            parent = db.get(StudyText, study_text_id)
            if parent is None:
                raise NotFoundError(f"Study text {study_text_id} not found")
        return parent

    # -------------------------------------------------------------------------
    # Quiz questions
    # -------------------------------------------------------------------------
    @staticmethod
    def _decode(row: QuizQuestion) -> DecodedQuestion:
        choices, error = decode_choices(row.choices)
        if error:
            logger.warning("Quiz question %s (%s): %s", row.id, row.question_id, error)
        return DecodedQuestion(row=row, choices=choices, error=error)

    @staticmethod
    def _check_answer(choices: List[str], answer: int) -> None:
        if answer >= len(choices):
            raise InvalidInputError(f"answer {answer} is out of range for {len(choices)} choices")

    def create_question(self, payload: schemas.QuizQuestionCreate) -> DecodedQuestion:
        self._check_answer(payload.choices, payload.answer)

        with self.database.session() as db:
            if db.get(StudyText, payload.study_text_id) is None:
                raise NotFoundError(f"Study text {payload.study_text_id} not found")
            row = QuizQuestion(
                study_text_id=payload.study_text_id,
                question_id=payload.question_id,
                prompt=payload.prompt,
                choices=encode_choices(payload.choices),
                answer=payload.answer,
                order=payload.order,
            )
            db.add(row)
            db.commit()
            return DecodedQuestion(row=row, choices=list(payload.choices))

    def update_question(self, question_pk: int, payload: schemas.QuizQuestionUpdate) -> DecodedQuestion:
        changes = payload.model_dump(exclude_unset=True)
        _reject_nulls(changes, ("question_id", "prompt", "choices", "answer", "order"))

        with self.database.session() as db:
            row = db.get(QuizQuestion, question_pk)
            if row is None:
                raise NotFoundError(f"Quiz question {question_pk} not found")

            if "choices" in changes or "answer" in changes:
                choices = changes.get("choices")
                if choices is None:
                    choices, error = decode_choices(row.choices)
                    if error:
                        raise InvalidInputError(f"stored choices are unreadable ({error}); send choices with the answer")
                self._check_answer(choices, changes.get("answer", row.answer))

            for key, value in changes.items():
                if key == "choices":
                    value = encode_choices(value)
                setattr(row, key, value)
            db.commit()
            return self._decode(row)

    def delete_question(self, question_pk: int) -> None:
        with self.database.session() as db:
            row = db.get(QuizQuestion, question_pk)
            if row is None:
                raise NotFoundError(f"Quiz question {question_pk} not found")
            db.delete(row)
            db.commit()

    def get_question(self, question_pk: int) -> DecodedQuestion:
        with self.database.session() as db:
            row = db.get(QuizQuestion, question_pk)
            if row is None:
                raise NotFoundError(f"Quiz question {question_pk} not found")
            return self._decode(row)

    def list_questions_for_version(self, study_text_id: Optional[int] = None) -> QuestionList:
        with self.database.session() as db:
            parent = self._parent_or_active(db, study_text_id)
            rows = (
                db.query(QuizQuestion)
                .filter(QuizQuestion.study_text_id == parent.id)
                .order_by(QuizQuestion.order.asc(), QuizQuestion.id.asc())
                .all()
            )

        decoded = [self._decode(r) for r in rows]
        return QuestionList(
            study_text_id=parent.id,
            questions=[d for d in decoded if d.error is None],
            errors=[d for d in decoded if d.error is not None],
        )
