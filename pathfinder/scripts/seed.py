"""
Seed demo users, assessment questions and tracks.

    python -m pathfinder.scripts.seed --reset
"""
import argparse
import asyncio
import logging

from sqlalchemy import delete

from pathfinder.core.auth import hash_password
from pathfinder.core.database import AsyncSessionLocal, close_db, init_db
from pathfinder.models.orm import Assessment, Lesson, Module, Question, Track, TrackProgress, User
from pathfinder.services.tracks import build_module

logger = logging.getLogger(__name__)

USERS = [
    ("IT Professional", "itprof@example.com", "IT Professional", "Experienced IT professional ready to create learning tracks"),
    ("John Student", "student@example.com", "student", "Eager to learn IT skills"),
    ("Career Switcher", "switcher@example.com", "career_switcher", "Switching careers into IT field"),
]

QUESTIONS = [
    ("Which of the following is the brain of the computer?", ["computer_fundamentals"], ["Monitor", "CPU", "RAM", "Hard Drive"], "CPU"),
    ("An operating system is an example of:", ["computer_fundamentals"], ["Hardware", "Software", "Storage", "Data"], "Software"),
    ("Which one stores data permanently?", ["computer_fundamentals"], ["RAM", "ROM", "Cache", "Registers"], "ROM"),
    ("Which of the following is a high-level programming language?", ["programming_logic"], ["Machine code", "Assembly", "Python", "Binary"], "Python"),
    ("Which data structure works on the principle FIFO?", ["programming_logic"], ["Stack", "Queue", "Array", "Tree"], "Queue"),
    ("What is the output of print(3 + 2 * 2) in Python?", ["programming_logic"], ["10", "7", "12", "9"], "7"),
    ("Solve: 15 x 4 - 20 / 5 = ?", ["math_logic"], ["55", "56", "40", "60"], "56"),
    ("Which device forwards packets between networks?", ["network"], ["Switch", "Router", "Hub", "Repeater"], "Router"),
    ("Which port does HTTPS use by default?", ["network"], ["21", "80", "443", "8080"], "443"),
    ("Which attack floods a service with traffic?", ["security"], ["Phishing", "DDoS", "SQL injection", "XSS"], "DDoS"),
    ("What does MFA add to a login?", ["security"], ["Speed", "A second factor", "Encryption", "Caching"], "A second factor"),
]

TRACKS = [
    {
        "title": "Network Fundamentals",
        "description": "Routing, switching and the network protocols behind the internet.",
        "difficulty": "beginner",
        "category": "networking",
        "modules": [
            {"type": "lesson", "lessons": [{"title": "OSI model"}, {"title": "IP addressing"}]},
            {"type": "quiz", "questions": [
                {"stem": "How many layers does the OSI model have?", "tags": ["network"], "options": ["5", "7"], "correct": "7"},
            ]},
        ],
    },
    {
        "title": "Security Essentials",
        "description": "Threats, defenses and everyday security hygiene.",
        "difficulty": "beginner",
        "category": "security",
        "modules": [{"type": "lesson", "lessons": [{"title": "Threat landscape"}]}],
    },
    {
        "title": "Programming with Python",
        "description": "Programming logic, data structures and problem solving.",
        "difficulty": "beginner",
        "category": "development",
        "modules": [{"type": "lesson", "lessons": [{"title": "Variables and types"}, {"title": "Control flow"}]}],
    },
    {
        "title": "Cloud Basics",
        "description": "Compute, storage and deployment on public clouds.",
        "difficulty": "intermediate",
        "category": "cloud",
        "modules": [],
    },
]


async def seed(reset: bool, password: str) -> None:
    await init_db()
    async with AsyncSessionLocal() as db:
        if reset:
            for model in (Assessment, TrackProgress, Question, Lesson, Module, Track, User):
                await db.execute(delete(model))
            logger.info("Tables cleared")

        hashed = hash_password(password)
        users = [User(name=n, email=e, password_hash=hashed, role=r, bio=b) for n, e, r, b in USERS]
        db.add_all(users)
        db.add_all(
            Question(stem=stem, type="mcq", tags=tags, options=options, correct=correct, weight=1)
            for stem, tags, options, correct in QUESTIONS
        )
        creator = users[0]
        await db.flush()
        for data in TRACKS:
            track = Track(
                title=data["title"],
                description=data["description"],
                difficulty=data["difficulty"],
                category=data["category"],
                creator_id=creator.id,
            )
            track.modules = [build_module(i, m) for i, m in enumerate(data["modules"])]
            db.add(track)
        await db.commit()
    await close_db()
    logger.info(f"Seeded {len(USERS)} users, {len(QUESTIONS)} questions, {len(TRACKS)} tracks")


def main():
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--reset", action="store_true", help="clear existing rows first")
    ap.add_argument("--password", default="password123", help="password for every demo user")
    args = ap.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(seed(args.reset, args.password))


if __name__ == "__main__":
    main()
