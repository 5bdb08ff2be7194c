from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from cvdocument.models import BulletItem, ExperienceBlock
from cvdocument.persistence import InMemoryDocumentStore


START = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock advancing by a fixed step on every call."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def now() -> datetime:
    return START


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def make_block():
    def _make(
        block_id: str,
        start: str = "",
        end: Optional[str] = None,
        title: str = "Engineer",
        company: str = "Acme",
        bullets=(),
    ) -> ExperienceBlock:
        return ExperienceBlock(
            id=block_id,
            title=title,
            company=company,
            start_date=start,
            end_date=end,
            bullets=tuple(BulletItem(id=f"{block_id}-b{i}", content=c) for i, c in enumerate(bullets)),
        )

    return _make


@pytest.fixture
def sample_cv_text() -> str:
    return "\n".join(
        [
            "Jane Doe",
            "",
            "Profile",
            "Experienced coordinator with a background in logistics and operations.",
            "",
            "Experience",
            "Project Coordinator | Acme | 2020 – Present",
            "- Led X",
            "- Coordinated Y",
            "Assistant | Acme | 2017 – 2020",
            "Handled daily administration for the operations team.",
            "",
            "Education",
            "BSc Business Administration, Copenhagen Business School, 2013 - 2016",
            "",
            "Skills",
            "Excel, SAP, Project planning",
            "",
            "Languages",
            "English - fluent, Danish (native)",
        ]
    )
