"""Tests for the match board, company directory and role catalog."""

from portal.services.job_matches import (
    COMPANIES,
    JobMatchBoard,
    SKILLS,
    MatchStatus,
    get_company,
    get_job,
    top_skills,
)
from portal.services.role_catalog import (
    AVAILABLE_ROLES,
    get_role,
    roles_by_category,
    unknown_roles,
)


def test_initial_board():
    board = JobMatchBoard()

    assert [m.id for m in board.matches] == ["1", "2", "3"]
    assert board.active_count == 1
    assert board.get("2").status is MatchStatus.PENDING


def test_accept_makes_match_active():
    board = JobMatchBoard()

    match = board.accept("2")

    assert match.status is MatchStatus.ACTIVE
    assert board.get("2").status is MatchStatus.ACTIVE
    assert board.active_count == 2


def test_decline():
    board = JobMatchBoard()

    board.decline("1")

    assert board.get("1").status is MatchStatus.DECLINED
    assert board.active_count == 0


def test_unknown_match():
    board = JobMatchBoard()

    assert board.accept("99") is None
    assert board.decline("99") is None
    assert board.get("99") is None


def test_boards_are_independent():
    first, second = JobMatchBoard(), JobMatchBoard()

    first.decline("1")

    assert second.get("1").status is MatchStatus.ACTIVE


def test_decisions_do_not_leak_into_job_details():
    board = JobMatchBoard()
    board.decline("1")

    assert get_job("1").status is MatchStatus.ACTIVE
    assert get_job("404") is None


def test_company_lookup():
    assert get_company("102").name == "TechFlow"
    assert get_company("999") is None
    assert len({company.id for company in COMPANIES}) == len(COMPANIES)


def test_top_skills_strongest_first():
    top = top_skills()

    assert [skill.level for skill in top] == [95, 90, 85, 85]
    # Equal levels keep table order
    assert [skill.name for skill in top[2:]] == ["TypeScript", "Problem Solving"]
    assert len(top_skills(limit=10)) == len(SKILLS)


def test_role_lookup():
    assert get_role("pm").name == "Product Manager"
    assert get_role("astronaut") is None


def test_roles_grouped_in_catalog_order():
    grouped = roles_by_category()

    assert list(grouped) == ["engineering", "data", "product", "design", "management"]
    assert [role.id for role in grouped["engineering"]] == [
        "frontend",
        "backend",
        "fullstack",
        "mobile",
        "devops",
    ]
    assert sum(len(roles) for roles in grouped.values()) == len(AVAILABLE_ROLES)


def test_unknown_roles():
    assert unknown_roles(["frontend", "astronaut", "pm", "chef"]) == ["astronaut", "chef"]
    assert unknown_roles([]) == []
