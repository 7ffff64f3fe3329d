from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import select

from wellness.errors import DataAccessError, NotFoundError, ValidationError
from wellness.models import Team, WellnessWednesday
from wellness.services import bonus
from wellness.services.activity_log import log_activity
from wellness.services.bonus import (
    BonusOutcome,
    evaluate_wellness_wednesday,
    list_bonus_history,
)

WEDNESDAY = date(2024, 5, 1)
THURSDAY = date(2024, 5, 2)


def bonus_records(session, team_id):
    return session.exec(
        select(WellnessWednesday).where(WellnessWednesday.team_id == team_id)
    ).all()


def team_points(session, team_id) -> int:
    session.expire_all()
    return session.get(Team, team_id).total_points


@pytest.fixture
def qualifying_team(make_team, give_points):
    team, members = make_team(total_points=100)
    for member in members:
        give_points(member, WEDNESDAY, 30)
    return team, members


def test_all_members_at_threshold_earn_bonus(session, qualifying_team):
    team, _ = qualifying_team

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.achieved is True
    assert result.outcome == BonusOutcome.ACHIEVED
    assert "25 points" in result.message

    records = bonus_records(session, team.id)
    assert len(records) == 1
    assert records[0].date == WEDNESDAY
    assert records[0].achieved is True
    assert records[0].bonus_points == 25
    assert team_points(session, team.id) == 125


def test_second_evaluation_does_not_credit_again(session, qualifying_team):
    team, _ = qualifying_team

    first = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)
    second = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert first.achieved is True
    assert second.achieved is True
    assert second.outcome == BonusOutcome.ALREADY_RECORDED
    assert len(bonus_records(session, team.id)) == 1
    assert team_points(session, team.id) == 125


def test_team_with_four_members_is_not_eligible(session, make_team, give_points):
    team, members = make_team(members=4)
    for member in members:
        give_points(member, WEDNESDAY, 40)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.achieved is False
    assert result.outcome == BonusOutcome.ROSTER_SIZE
    assert "4/5" in result.message
    assert bonus_records(session, team.id) == []
    assert team_points(session, team.id) == 0


def test_team_with_six_members_is_not_eligible(session, make_team, give_points):
    team, members = make_team(members=6)
    for member in members:
        give_points(member, WEDNESDAY, 30)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.outcome == BonusOutcome.ROSTER_SIZE
    assert "6/5" in result.message


def test_one_member_below_threshold_fails(session, make_team, give_points):
    team, members = make_team()
    give_points(members[0], WEDNESDAY, 29)
    for member in members[1:]:
        give_points(member, WEDNESDAY, 45)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.achieved is False
    assert result.outcome == BonusOutcome.BELOW_THRESHOLD
    assert "1 of 5" in result.message
    assert bonus_records(session, team.id) == []


def test_member_without_logs_counts_as_zero(session, make_team, give_points):
    team, members = make_team()
    for member in members[:4]:
        give_points(member, WEDNESDAY, 30)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.outcome == BonusOutcome.BELOW_THRESHOLD


def test_points_from_other_days_do_not_count(session, make_team, give_points):
    team, members = make_team()
    for member in members:
        give_points(member, THURSDAY, 30)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.outcome == BonusOutcome.BELOW_THRESHOLD


def test_any_weekday_can_be_evaluated(session, make_team, give_points):
    team, members = make_team()
    for member in members:
        give_points(member, THURSDAY, 30)

    result = evaluate_wellness_wednesday(session, team.id, THURSDAY)

    assert result.achieved is True
    assert bonus_records(session, team.id)[0].date == THURSDAY


def test_accepts_date_string(session, qualifying_team):
    team, _ = qualifying_team

    result = evaluate_wellness_wednesday(session, str(team.id), "2024-05-01")

    assert result.outcome == BonusOutcome.ACHIEVED


@pytest.mark.parametrize("bad_date", ["", "2024-13-01", "05/01/2024", "yesterday", "2024-5-1"])
def test_malformed_date_is_rejected(session, qualifying_team, bad_date):
    team, _ = qualifying_team

    with pytest.raises(ValidationError) as exc_info:
        evaluate_wellness_wednesday(session, team.id, bad_date)

    assert exc_info.value.field == "date"


@pytest.mark.parametrize("bad_team_id", [None, "", "abc", 0, -3, 3.7, "3.7", True, " 1e3"])
def test_malformed_team_id_is_rejected(session, bad_team_id):
    with pytest.raises(ValidationError) as exc_info:
        evaluate_wellness_wednesday(session, bad_team_id, WEDNESDAY)

    assert exc_info.value.field == "team_id"


def test_unknown_team(session):
    with pytest.raises(NotFoundError):
        evaluate_wellness_wednesday(session, 999, WEDNESDAY)


def test_database_failure_is_surfaced(session, qualifying_team, monkeypatch):
    team, _ = qualifying_team

    def broken_exec(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(session, "exec", broken_exec)

    with pytest.raises(DataAccessError):
        evaluate_wellness_wednesday(session, team.id, WEDNESDAY)


def test_unique_constraint_rejects_duplicate_record(session, make_team):
    team, _ = make_team()
    session.add(WellnessWednesday(team_id=team.id, date=WEDNESDAY, achieved=True, bonus_points=25))
    session.commit()

    session.add(WellnessWednesday(team_id=team.id, date=WEDNESDAY, achieved=True, bonus_points=25))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_racing_evaluation_is_stopped_by_unique_constraint(session, qualifying_team, monkeypatch):
    """A second evaluation that missed the existing record still credits nothing."""
    team, _ = qualifying_team
    evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    original = bonus.find_bonus_record
    calls = []

    def stale_lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None  # as if the other request had not committed yet
        return original(*args, **kwargs)

    monkeypatch.setattr(bonus, "find_bonus_record", stale_lookup)

    result = evaluate_wellness_wednesday(session, team.id, WEDNESDAY)

    assert result.achieved is True
    assert result.outcome == BonusOutcome.ALREADY_RECORDED
    assert len(calls) == 2
    assert len(bonus_records(session, team.id)) == 1
    assert team_points(session, team.id) == 125


def test_cached_points_are_refreshed_after_logging(session, make_team, give_points, cache):
    from wellness.models import Activity

    team, members = make_team()
    give_points(members[0], WEDNESDAY, 25)
    for member in members[1:]:
        give_points(member, WEDNESDAY, 30)

    first = evaluate_wellness_wednesday(session, team.id, WEDNESDAY, cache)
    assert first.outcome == BonusOutcome.BELOW_THRESHOLD

    hydration = Activity(name="Hydration", emoji="💧", points=5)
    session.add(hydration)
    session.commit()
    session.refresh(hydration)
    log_activity(session, members[0].id, hydration.id, WEDNESDAY, cache)

    second = evaluate_wellness_wednesday(session, team.id, WEDNESDAY, cache)
    assert second.outcome == BonusOutcome.ACHIEVED


def test_history_is_newest_first(session, make_team):
    team, _ = make_team()
    older = WellnessWednesday(team_id=team.id, date=WEDNESDAY, achieved=True, bonus_points=25)
    newer = WellnessWednesday(
        team_id=team.id, date=WEDNESDAY.replace(day=8), achieved=True, bonus_points=25,
    )
    session.add_all([older, newer])
    session.commit()

    history = list_bonus_history(session, team.id)

    assert [r.date for r in history] == [WEDNESDAY.replace(day=8), WEDNESDAY]


def test_history_is_empty_without_records(session, make_team):
    team, _ = make_team()
    assert list_bonus_history(session, team.id) == []
