"""
Shared fixtures: an isolated in-memory database, a result cache on a fake
clock, and a TestClient wired to both through dependency overrides.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from main import app
from wellness.cache import ResultCache
from wellness.database import create_db_and_tables, get_session
from wellness.dependencies import get_cache
from wellness.models import Activity, DailyLog, Team, User


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResultCache:
    return ResultCache(clock=clock)


@pytest.fixture
def client(session, cache):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_cache] = lambda: cache

    # Not entered as a context manager, so the lifespan handler (real database) never runs
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def activity(session) -> Activity:
    activity = Activity(name="Exercise", emoji="💪", points=5, description="20 min workout")
    session.add(activity)
    session.commit()
    session.refresh(activity)
    return activity


@pytest.fixture
def make_team(session):
    """Create a team with a number of members."""
    def _make(name: str = "Striders", members: int = 5, total_points: int = 0):
        team = Team(name=name, total_points=total_points)
        session.add(team)
        session.commit()
        session.refresh(team)

        users = []
        for i in range(members):
            user = User(
                email=f"{name.lower()}.member{i}@example.com",
                full_name=f"{name} Member {i}",
                team_id=team.id,
            )
            session.add(user)
            users.append(user)
        session.commit()
        for user in users:
            session.refresh(user)
        return team, users

    return _make


@pytest.fixture
def give_points(session, activity):
    """Record a member's total points for a day as a single log row."""
    def _give(user: User, day: date, points: int):
        session.add(DailyLog(
            user_id=user.id,
            activity_id=activity.id,
            log_date=day,
            points=points,
        ))
        session.commit()

    return _give
