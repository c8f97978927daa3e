# seed.py
import logging

from readability_study.db import Database
from readability_study.models import StudyText, Passage, QuizQuestion
from readability_study.utils import encode_choices

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "default"

# (title, content, font_left, font_right)
DEFAULT_PASSAGES = [
    (
        "Passage 1: Introduction to Reading",
        "Reading is a complex cognitive process that involves decoding symbols to derive meaning. "
        "This process requires the coordination of multiple brain regions working together to transform "
        "written text into comprehensible information. The human brain processes visual information through "
        "the eyes, sending signals to various neural networks that interpret and understand the text.",
        "serif", "sans",
    ),
    (
        "Passage 2: Typography and Readability",
        "Typography plays a crucial role in how we perceive and understand written content. Different font "
        "styles can significantly impact reading speed, comprehension, and overall user experience. Serif "
        "fonts, with their decorative strokes, are often associated with traditional print media, while "
        "sans-serif fonts offer a cleaner, more modern appearance.",
        "sans", "serif",
    ),
    (
        "Passage 3: Reading Research",
        "Researchers have conducted extensive studies to understand how different typographic choices affect "
        "reading performance. These studies examine factors such as font size, line spacing, letter spacing, "
        "and font style. The goal is to identify optimal typography settings that maximize readability and "
        "comprehension for various audiences and contexts.",
        "serif", "sans",
    ),
    (
        "Passage 4: Digital Reading",
        "The shift from print to digital media has introduced new challenges and opportunities in typography. "
        "Screen readability differs from print, requiring careful consideration of font rendering, display "
        "resolution, and viewing conditions. Designers must balance aesthetic appeal with functional "
        "readability to create effective digital reading experiences.",
        "sans", "serif",
    ),
    (
        "Passage 5: Accessibility in Design",
        "Accessibility is a fundamental principle in modern design, ensuring that content is readable and "
        "understandable for people with diverse abilities and needs. This includes considerations for visual "
        "impairments, cognitive differences, and various reading contexts. Good typography choices can make "
        "content more accessible to a wider audience.",
        "serif", "sans",
    ),
    (
        "Passage 6: The Future of Reading",
        "As technology continues to evolve, so too will our understanding of reading and typography. Emerging "
        "technologies like e-ink displays, variable fonts, and adaptive interfaces offer new possibilities for "
        "optimizing reading experiences. The future of typography lies in creating flexible, responsive "
        "designs that adapt to individual preferences and reading contexts.",
        "sans", "serif",
    ),
]

# (question_id, prompt, choices, answer)
DEFAULT_QUESTIONS = [
    (
        "q1",
        "What is the purpose of this passage?",
        [
            "To teach advanced speed-reading",
            "To test font readability and comprehension",
            "To explain eye-tracking algorithms",
            "To measure typing accuracy",
        ],
        1,
    ),
    (
        "q2",
        "How should you read the passage?",
        [
            "As quickly as possible without understanding",
            "Only the first sentence",
            "At a natural pace focusing on understanding",
            "Backwards to test attention",
        ],
        2,
    ),
    (
        "q3",
        "According to the passage, what does reading involve?",
        [
            "Only recognizing letters",
            "Decoding symbols to derive meaning",
            "Memorizing text word-for-word",
            "Counting words per minute",
        ],
        1,
    ),
    (
        "q4",
        "What should you avoid when reading this passage?",
        [
            "Reading at a natural pace",
            "Focusing on understanding",
            "Skimming through the content",
            "Decoding the symbols",
        ],
        2,
    ),
    (
        "q5",
        'What is described as a "complex cognitive process"?',
        ["Writing", "Reading", "Speaking", "Listening"],
        1,
    ),
]


def seed_initial_data(database: Database) -> bool:
    """
    Populates the default study text, its passages and quiz questions when
    no study text exists yet. Returns True if anything was written.
    """
    with database.session() as db:
        if db.query(StudyText.id).first() is not None:
            return False

        study_text = StudyText(
            version=DEFAULT_VERSION,
            font_left="serif",
            font_right="sans",
            active=True,
        )
        db.add(study_text)
        db.flush()

        for order, (title, content, font_left, font_right) in enumerate(DEFAULT_PASSAGES):
            db.add(Passage(
                study_text_id=study_text.id,
                order=order,
                title=title,
                content=content,
                font_left=font_left,
                font_right=font_right,
            ))

        for order, (question_id, prompt, choices, answer) in enumerate(DEFAULT_QUESTIONS, start=1):
            db.add(QuizQuestion(
                study_text_id=study_text.id,
                question_id=question_id,
                prompt=prompt,
                choices=encode_choices(choices),
                answer=answer,
                order=order,
            ))

        db.commit()
        logger.info(
            "Seeded study text %r with %d passages and %d quiz questions",
            DEFAULT_VERSION, len(DEFAULT_PASSAGES), len(DEFAULT_QUESTIONS),
        )
        return True
