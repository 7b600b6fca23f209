"""Next knockout round generation from the winners of a completed round."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from clubbracket.models.club_admin import ClubAdmin
from clubbracket.models.match import TournamentMatch
from clubbracket.services.errors import Conflict, NoKnockoutRound, TournamentNotFound
from clubbracket.services.knockout_advancement import advance_knockout_round, find_round_to_advance
from tests.factories import bracket_match, build_pools_tournament, persist
from tests.fakes import InMemoryBracketStore


def _quarters(decided=(True, True, True, True)):
    """Four quarter-finals; winner is team1 (registration 1, 3, 5, 7) where decided."""
    matches = []
    for i, done in enumerate(decided):
        t1, t2 = 2 * i + 1, 2 * i + 2
        matches.append(
            bracket_match(
                100 + i,
                1,
                "quarters",
                i + 1,
                t1,
                t2,
                status="completed" if done else "scheduled",
                winner=t1 if done else None,
            )
        )
    return matches


def _store(matches):
    store = InMemoryBracketStore(build_pools_tournament((4, 4)))
    store.matches.extend(matches)
    return store


class TestFindRoundToAdvance:
    def test_completed_quarters_lead_to_semis(self):
        assert find_round_to_advance(_quarters()) == ("quarters", "semis")

    def test_unfinished_round_is_not_advanced(self):
        assert find_round_to_advance(_quarters((True, True, False, True))) is None

    def test_round_with_existing_successor_is_skipped(self):
        semis = [
            bracket_match(200, 1, "semis", 1, 1, 3, status="completed", winner=3),
            bracket_match(201, 1, "semis", 2, 5, 7, status="completed", winner=5),
        ]
        assert find_round_to_advance(_quarters() + semis) == ("semis", "final")

    def test_final_never_advances(self):
        final = [bracket_match(300, 1, "final", 1, 3, 5, status="completed", winner=3)]
        assert find_round_to_advance(final) is None

    def test_completed_without_winner_is_not_decided(self):
        matches = _quarters()
        matches[0].winner_registration_id = None
        assert find_round_to_advance(matches) is None

    def test_unresolved_opponent_blocks_the_round(self):
        # Quarter 2 is waiting on a runner-up that never came
        matches = _quarters()
        matches[1].team2_registration_id = None
        matches[1].status = "scheduled"
        matches[1].winner_registration_id = None
        assert find_round_to_advance(matches) is None

        matches[1].status = "completed"
        matches[1].winner_registration_id = matches[1].team1_registration_id
        assert find_round_to_advance(matches) == ("quarters", "semis")


class TestAdvanceKnockoutRound:
    def test_pairs_winners_in_match_order(self):
        matches = _quarters()
        matches.reverse()  # storage order must not matter
        store = _store(matches)

        result = advance_knockout_round(store, 1)

        assert (result.current_round, result.next_round, result.matches_created) == ("quarters", "semis", 2)
        semis = sorted((m for m in store.matches if m.round_type == "semis"), key=lambda m: m.match_order)
        assert [(m.team1_registration_id, m.team2_registration_id) for m in semis] == [(1, 3), (5, 7)]
        assert all(m.status == "scheduled" and not m.is_bye for m in semis)
        assert store.locks == {}

    def test_odd_winner_gets_a_bye(self):
        matches = [
            bracket_match(100 + i, 1, "quarters", i + 1, 10 + i, 20 + i, status="completed", winner=10 + i)
            for i in range(3)
        ]
        store = _store(matches)

        advance_knockout_round(store, 1)

        semis = sorted((m for m in store.matches if m.round_type == "semis"), key=lambda m: m.match_order)
        assert len(semis) == 2
        bye = semis[1]
        assert bye.is_bye is True
        assert bye.team1_registration_id == 12
        assert bye.team2_registration_id is None
        assert bye.status == "completed"
        assert bye.winner_registration_id == 12

    def test_semis_to_final(self):
        store = _store(
            [
                bracket_match(200, 1, "semis", 1, 1, 3, status="completed", winner=3),
                bracket_match(201, 1, "semis", 2, 5, 7, status="completed", winner=5),
            ]
        )
        result = advance_knockout_round(store, 1)
        assert result.next_round == "final"
        final = [m for m in store.matches if m.round_type == "final"]
        assert [(m.team1_registration_id, m.team2_registration_id) for m in final] == [(3, 5)]

    def test_no_bracket(self):
        with pytest.raises(NoKnockoutRound):
            advance_knockout_round(_store([]), 1)

    def test_unfinished_round(self):
        store = _store(_quarters((True, False, True, True)))
        with pytest.raises(NoKnockoutRound):
            advance_knockout_round(store, 1)
        assert store.write_calls == []

    def test_unknown_tournament(self):
        with pytest.raises(TournamentNotFound):
            advance_knockout_round(InMemoryBracketStore(), 5)

    def test_locked_tournament(self):
        store = _store(_quarters())
        store.locks[1] = "pools-final-run"
        with pytest.raises(Conflict):
            advance_knockout_round(store, 1)


def test_endpoint_generates_next_round(client: TestClient, session: Session):
    data = build_pools_tournament((4, 4))
    persist(session, data.rows())
    persist(session, [ClubAdmin(club_id=10, user_id="admin-1", activated_at=datetime.utcnow())])
    a1, b1, a2, b2 = (data.reg(n).id for n in ("A1", "B1", "A2", "B2"))
    persist(
        session,
        [
            bracket_match(1, 1, "semis", 1, a1, b2, status="completed", winner=a1),
            bracket_match(2, 1, "semis", 2, b1, a2, status="completed", winner=a2),
        ],
    )

    resp = client.post("/api/tournaments/1/advance/final-next-round", headers={"X-User-Id": "admin-1"})

    assert resp.status_code == 200
    assert resp.json() == {"tournament_id": 1, "current_round": "semis", "next_round": "final", "matches_created": 1}
    session.expire_all()
    final = session.exec(select(TournamentMatch).where(TournamentMatch.round_type == "final")).all()
    assert [(m.team1_registration_id, m.team2_registration_id, m.match_order) for m in final] == [(a1, a2, 1)]

    again = client.post("/api/tournaments/1/advance/final-next-round", headers={"X-User-Id": "admin-1"})
    assert again.status_code == 400
    assert again.json()["error"] == "NoKnockoutRound"
