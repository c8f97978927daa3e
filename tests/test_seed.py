from readability_study.models import Passage, QuizQuestion, StudyText
from readability_study.schemas import StudyTextCreate
from readability_study.seed import seed_initial_data


def test_seeds_default_version_once(database):
    assert seed_initial_data(database) is True
    assert seed_initial_data(database) is False

    with database.session() as db:
        texts = db.query(StudyText).all()
        assert [(t.version, t.active) for t in texts] == [("default", True)]
        assert db.query(Passage).count() == 6
        assert db.query(QuizQuestion).count() == 5


def test_seeded_content_is_ordered(database, content):
    seed_initial_data(database)
    bundle = content.get_active_version()
    assert [p.order for p in bundle.passages] == [0, 1, 2, 3, 4, 5]
    assert bundle.passages[0].title.startswith("Passage 1")

    result = content.list_questions_for_version()
    assert [d.row.question_id for d in result.questions] == ["q1", "q2", "q3", "q4", "q5"]
    assert all(len(d.choices) == 4 for d in result.questions)


def test_skips_when_any_study_text_exists(database, content):
    content.create_version(StudyTextCreate(version="custom"))
    assert seed_initial_data(database) is False
    with database.session() as db:
        assert db.query(Passage).count() == 0
