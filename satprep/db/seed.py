"""
Seed data for the prep service.

- A mixed-format question bank across every subject, mostly medium difficulty
  so a default diagnostic draws from a balanced pool
- A demo learner with a fixed bearer token for local use

Seeding is idempotent: questions are only inserted into an empty bank and
the demo learner is looked up by token first.
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from satprep.db.models import LearnerRecord, QuestionRecord

QUESTION_BANK: list[dict] = [
    # Math
    {
        "text": "If 3x + 7 = 22, what is the value of x?",
        "options": ["3", "5", "7", "15"],
        "correct_answer": "5",
        "subject": "Math",
        "format": "text",
    },
    {
        "text": "The graph shows a line through (0, 2) and (4, 10). What is its slope?",
        "options": ["1/2", "2", "4", "8"],
        "correct_answer": "2",
        "subject": "Math",
        "format": "diagram",
        "media_url": "/media/diagrams/line-slope.png",
    },
    {
        "text": "Listen to the word problem. How many apples does Maria have left?",
        "options": ["4", "6", "8", "12"],
        "correct_answer": "6",
        "subject": "Math",
        "format": "audio",
        "media_url": "/media/audio/apples.mp3",
    },
    {
        "text": "A right triangle in the figure has legs 6 and 8. What is the hypotenuse?",
        "options": ["10", "12", "14", "48"],
        "correct_answer": "10",
        "subject": "Math",
        "format": "diagram",
        "media_url": "/media/diagrams/right-triangle.png",
    },
    {
        "text": "What is 15% of 240?",
        "options": ["24", "30", "36", "40"],
        "correct_answer": "36",
        "subject": "Math",
        "format": "text",
    },
    # Reading
    {
        "text": "Which sentence best states the main idea of the passage?",
        "options": [
            "Cities should ban cars",
            "Urban gardens improve community health",
            "Vegetables are expensive",
            "Parks need more funding",
        ],
        "correct_answer": "Urban gardens improve community health",
        "subject": "Reading",
        "format": "text",
    },
    {
        "text": "Listen to the excerpt. What is the narrator's attitude toward the storm?",
        "options": ["Fearful", "Indifferent", "Awed", "Amused"],
        "correct_answer": "Awed",
        "subject": "Reading",
        "format": "audio",
        "media_url": "/media/audio/storm-excerpt.mp3",
    },
    {
        "text": "Based on the chart, in which year did readership peak?",
        "options": ["2015", "2017", "2019", "2021"],
        "correct_answer": "2019",
        "subject": "Reading",
        "format": "diagram",
        "media_url": "/media/diagrams/readership-chart.png",
    },
    {
        "text": "As used in the passage, 'novel' most nearly means",
        "options": ["book", "new", "long", "fictional"],
        "correct_answer": "new",
        "subject": "Reading",
        "format": "text",
    },
    # Writing
    {
        "text": "Choose the option that corrects the comma splice: 'The test was hard, I studied all week.'",
        "options": [
            "The test was hard I studied all week.",
            "The test was hard; I studied all week.",
            "The test was hard, and, I studied all week.",
            "NO CHANGE",
        ],
        "correct_answer": "The test was hard; I studied all week.",
        "subject": "Writing",
        "format": "text",
    },
    {
        "text": "Listen to the two sentences. Which transition best connects them?",
        "options": ["However", "Therefore", "Meanwhile", "For example"],
        "correct_answer": "However",
        "subject": "Writing",
        "format": "audio",
        "media_url": "/media/audio/transition.mp3",
    },
    {
        "text": "The outline in the figure is missing a paragraph. Where should it go?",
        "options": ["Before paragraph 1", "After paragraph 1", "After paragraph 2", "At the end"],
        "correct_answer": "After paragraph 2",
        "subject": "Writing",
        "format": "diagram",
        "media_url": "/media/diagrams/essay-outline.png",
    },
    {
        "text": "Which choice is most concise? 'In the event that it rains...'",
        "options": ["If it rains", "In case of the event of rain", "When and if it rains", "NO CHANGE"],
        "correct_answer": "If it rains",
        "subject": "Writing",
        "format": "text",
    },
    # English
    {
        "text": "Which word is the subject of the sentence 'Running every morning keeps her calm'?",
        "options": ["Running", "morning", "her", "calm"],
        "correct_answer": "Running",
        "subject": "English",
        "format": "text",
    },
    {
        "text": "Listen to the sentence. Which verb form is used incorrectly?",
        "options": ["has went", "was going", "had gone", "goes"],
        "correct_answer": "has went",
        "subject": "English",
        "format": "audio",
        "media_url": "/media/audio/verb-form.mp3",
    },
    {
        "text": "In the sentence diagram shown, which word modifies 'dog'?",
        "options": ["quickly", "brown", "ran", "park"],
        "correct_answer": "brown",
        "subject": "English",
        "format": "diagram",
        "media_url": "/media/diagrams/sentence-diagram.png",
    },
    {
        "text": "Choose the correct pronoun: 'Between you and ___, the plan is risky.'",
        "options": ["I", "me", "myself", "mine"],
        "correct_answer": "me",
        "subject": "English",
        "format": "text",
    },
    # Science
    {
        "text": "According to the graph, what happens to reaction rate as temperature rises?",
        "options": ["It decreases", "It increases", "It stays constant", "It cannot be determined"],
        "correct_answer": "It increases",
        "subject": "Science",
        "format": "diagram",
        "media_url": "/media/diagrams/reaction-rate.png",
    },
    {
        "text": "Listen to the experiment description. What is the independent variable?",
        "options": ["Plant height", "Amount of light", "Soil type", "Pot size"],
        "correct_answer": "Amount of light",
        "subject": "Science",
        "format": "audio",
        "media_url": "/media/audio/experiment.mp3",
    },
    {
        "text": "Which hypothesis is best supported by the data in Study 2?",
        "options": [
            "Salinity has no effect",
            "Higher salinity slows growth",
            "Higher salinity speeds growth",
            "Growth depends only on light",
        ],
        "correct_answer": "Higher salinity slows growth",
        "subject": "Science",
        "format": "text",
    },
    {
        "text": "The diagram shows a food web. Which organism is a primary consumer?",
        "options": ["Hawk", "Grass", "Rabbit", "Fungus"],
        "correct_answer": "Rabbit",
        "subject": "Science",
        "format": "diagram",
        "media_url": "/media/diagrams/food-web.png",
    },
    # Off-difficulty extras
    {
        "text": "What is 7 x 8?",
        "options": ["54", "56", "58", "64"],
        "correct_answer": "56",
        "subject": "Math",
        "format": "text",
        "difficulty": "easy",
    },
    {
        "text": "If f(x) = x^2 - 4x + 3, for which values of x is f(x) < 0?",
        "options": ["x < 1", "1 < x < 3", "x > 3", "x < 1 or x > 3"],
        "correct_answer": "1 < x < 3",
        "subject": "Math",
        "format": "text",
        "difficulty": "hard",
    },
    {
        "text": "Listen to the passage. Which rhetorical device does the speaker rely on most?",
        "options": ["Anaphora", "Hyperbole", "Understatement", "Allusion"],
        "correct_answer": "Anaphora",
        "subject": "Reading",
        "format": "audio",
        "difficulty": "hard",
        "media_url": "/media/audio/speech.mp3",
    },
]


def seed_question_bank(session: Session) -> int:
    """Insert the bundled questions into an empty bank. Returns rows inserted."""
    existing = session.scalar(select(func.count()).select_from(QuestionRecord))
    if existing:
        logger.debug(f"Question bank already has {existing} questions; skipping seed")
        return 0

    for item in QUESTION_BANK:
        session.add(QuestionRecord(**{"difficulty": "medium", **item}))
    session.flush()
    logger.info(f"Seeded {len(QUESTION_BANK)} questions")
    return len(QUESTION_BANK)


def ensure_learner(session: Session, name: str, api_token: str) -> LearnerRecord:
    """Get the learner holding this token, creating it if needed."""
    learner = session.scalar(select(LearnerRecord).where(LearnerRecord.api_token == api_token))
    if learner is None:
        learner = LearnerRecord(name=name, api_token=api_token)
        session.add(learner)
        session.flush()
        logger.info(f"Created learner {name!r}")
    return learner


def seed_all(session: Session, demo_name: str, demo_token: str) -> dict[str, int]:
    """Seed the question bank and the demo learner."""
    inserted = seed_question_bank(session)
    ensure_learner(session, demo_name, demo_token)
    return {"questions": inserted}
