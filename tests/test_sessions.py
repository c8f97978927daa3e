import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from readability_study import utils
from readability_study.errors import ConflictError, NotFoundError
from readability_study.models import StudySession
from readability_study.schemas import SessionIn

HEX32 = re.compile(r"^[0-9a-f]{32}$")


def test_participant_source_defaults_to_web(registry):
    assert registry.create_participant().source == "web"
    assert registry.create_participant("  ").source == "web"
    assert registry.create_participant("prolific").source == "prolific"


def test_create_session_generates_hex_id(registry, database):
    participant = registry.create_participant()
    session = registry.create_session(SessionIn(participant_id=participant.id, font_left="serif", time_a_ms=5000))

    assert HEX32.match(session.session_id)
    with database.session() as db:
        stored = db.get(StudySession, session.id)
        assert stored.participant_id == participant.id
        assert stored.font_left == "serif"
        assert stored.time_a_ms == 5000


def test_create_session_keeps_supplied_id(registry):
    participant = registry.create_participant()
    session = registry.create_session(SessionIn(participant_id=participant.id, session_id="abc123"))
    assert session.session_id == "abc123"


def test_duplicate_session_id_is_a_conflict(registry):
    participant = registry.create_participant()
    registry.create_session(SessionIn(participant_id=participant.id, session_id="dup"))
    with pytest.raises(ConflictError):
        registry.create_session(SessionIn(participant_id=participant.id, session_id="dup"))


def test_session_requires_existing_participant(registry):
    with pytest.raises(NotFoundError):
        registry.create_session(SessionIn(participant_id=404))


def test_generated_session_ids_do_not_collide():
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: utils.generate_session_id(), range(10_000)))
    assert len(set(ids)) == 10_000
    assert all(HEX32.match(i) for i in ids)


def test_session_id_falls_back_to_timestamp(monkeypatch):
    def no_randomness(nbytes):
        raise NotImplementedError("no randomness source")

    monkeypatch.setattr(utils.secrets, "token_hex", no_randomness)
    sid = utils.generate_session_id()
    assert sid
    assert int(sid, 16) > 0
