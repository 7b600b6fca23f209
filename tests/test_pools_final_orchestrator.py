"""
Pools → final bracket orchestration against the in-memory store:
precondition order, replace semantics, no writes on failure.
"""
import pytest

from clubbracket.models.pool import TournamentPool
from clubbracket.services.errors import (
    Conflict,
    IncompleteResults,
    InsufficientQualifiers,
    NoPools,
    NoRegistrations,
    StorageFailure,
    TournamentNotFound,
    TypeMismatch,
)
from clubbracket.services.pools_final_orchestrator import ProgressionState, advance_pools_to_final
from tests.factories import bracket_match, build_pools_tournament
from tests.fakes import InMemoryBracketStore


def _pairs(store, data):
    names = {r.id: r.team_name for r in data.registrations}
    bracket = sorted(store.list_final_bracket_matches(data.tournament.id), key=lambda m: m.match_order)
    return [(names.get(m.team1_registration_id), names.get(m.team2_registration_id)) for m in bracket]


class TestScenarios:
    def test_two_pools_of_four(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)

        result = advance_pools_to_final(store, 1)

        assert (result.num_pools, result.qualified_count, result.matches_created) == (2, 4, 2)
        assert result.round_type == "semis"
        assert result.state == ProgressionState.DONE
        assert _pairs(store, data) == [("A1", "B2"), ("B1", "A2")]
        bracket = store.list_final_bracket_matches(1)
        assert [m.match_order for m in sorted(bracket, key=lambda m: m.match_order)] == [1, 2]
        assert all(m.status == "scheduled" and not m.is_bye and m.round_number == 1 for m in bracket)

    def test_four_pools_reverse_rotation(self):
        data = build_pools_tournament((4, 4, 4, 4))
        store = InMemoryBracketStore(data)

        result = advance_pools_to_final(store, 1)

        assert (result.num_pools, result.qualified_count, result.matches_created) == (4, 8, 4)
        assert result.round_type == "quarters"
        assert _pairs(store, data) == [("A1", "D2"), ("B1", "C2"), ("C1", "B2"), ("D1", "A2")]

    def test_single_registration_pool_contributes_no_runner(self):
        data = build_pools_tournament((4, 1, 4))
        store = InMemoryBracketStore(data)

        result = advance_pools_to_final(store, 1)

        assert result.num_pools == 3
        assert result.qualified_count == 3 * 2 - 1
        runners = {p[1] for p in _pairs(store, data)}
        assert "B2" not in runners
        assert _pairs(store, data) == [("A1", "C2"), ("B1", None), ("C1", "A2")]

    def test_scheduled_pool_match_rejects_without_touching_bracket(self):
        data = build_pools_tournament((4, 4))
        existing = [
            bracket_match(1, 1, "semis", 1, data.reg("A1").id, data.reg("B2").id),
            bracket_match(2, 1, "semis", 2, data.reg("B1").id, data.reg("A2").id),
        ]
        pending = data.pool_matches[3]
        pending.status = "scheduled"
        pending.winner_registration_id = None
        store = InMemoryBracketStore(data)
        store.matches.extend(existing)

        with pytest.raises(IncompleteResults) as exc:
            advance_pools_to_final(store, 1)

        assert pending.id in exc.value.match_ids
        assert exc.value.state == ProgressionState.VALIDATING.value
        assert store.write_calls == []
        assert store.list_final_bracket_matches(1) == existing
        assert store.locks == {}


class TestRankingTieBreaks:
    def test_pair_total_rank_decides_equal_wins(self):
        data = build_pools_tournament((3, 3), pair_total_ranks={"A1": 40, "A2": 12, "A3": 30})
        # A1 beats A2, A2 beats A3, A3 beats A1: everyone on one win
        a1, a2, a3 = data.regs_by_pool[0]
        for m in data.pool_matches:
            if {m.team1_registration_id, m.team2_registration_id} == {a1.id, a3.id}:
                m.winner_registration_id = a3.id
        store = InMemoryBracketStore(data)

        advance_pools_to_final(store, 1)

        # Pool A order: A2 (12), A3 (30), A1 (40)
        assert _pairs(store, data) == [("A2", "B2"), ("B1", "A3")]


class TestPreconditionOrder:
    def test_unknown_tournament(self):
        with pytest.raises(TournamentNotFound):
            advance_pools_to_final(InMemoryBracketStore(), 42)

    def test_type_mismatch_checked_first(self):
        data = build_pools_tournament((4, 4), tournament_type="official_knockout")
        data.pool_matches[0].status = "scheduled"
        store = InMemoryBracketStore(data)

        with pytest.raises(TypeMismatch):
            advance_pools_to_final(store, 1)
        assert store.write_calls == []

    def test_pools_triple_draw_is_accepted(self):
        store = InMemoryBracketStore(build_pools_tournament((4, 4), tournament_type="pools_triple_draw"))
        assert advance_pools_to_final(store, 1).matches_created == 2

    def test_no_pools(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.pools = []

        with pytest.raises(NoPools):
            advance_pools_to_final(store, 1)

    def test_no_registrations_before_results(self):
        data = build_pools_tournament((4, 4))
        data.pool_matches[0].status = "scheduled"
        for r in data.registrations:
            r.pool_id = None
        store = InMemoryBracketStore(data)

        with pytest.raises(NoRegistrations):
            advance_pools_to_final(store, 1)

    def test_no_pool_matches_is_incomplete(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.matches = []

        with pytest.raises(IncompleteResults):
            advance_pools_to_final(store, 1)

    def test_registered_pool_without_matches_is_incomplete(self):
        data = build_pools_tournament((4, 4))
        pool_b = data.pools[1]
        data.pool_matches = [m for m in data.pool_matches if m.pool_id != pool_b.id]
        store = InMemoryBracketStore(data)

        with pytest.raises(IncompleteResults) as exc:
            advance_pools_to_final(store, 1)

        assert "pool 2" in exc.value.message
        assert exc.value.state == ProgressionState.VALIDATING.value
        assert store.write_calls == []

    def test_insufficient_qualifiers(self):
        data = build_pools_tournament((1, 1))
        # Pools of one have no matches; give them a completed placeholder so results are complete
        data.pool_matches.append(
            bracket_match(99, 1, "pool", 1, data.reg("A1").id, None, status="completed", winner=data.reg("A1").id)
        )
        data.pool_matches[-1].pool_id = data.pools[0].id
        data.pool_matches[-1].match_order = None
        store = InMemoryBracketStore(data)

        with pytest.raises(InsufficientQualifiers) as exc:
            advance_pools_to_final(store, 1)
        assert exc.value.state == ProgressionState.COMPUTING.value
        assert store.write_calls == []

    def test_empty_extra_pool_is_ignored(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.pools.append(TournamentPool(id=999, tournament_id=1, pool_number=3))

        result = advance_pools_to_final(store, 1)
        assert result.num_pools == 2


class TestRegeneration:
    def test_second_run_replaces_instead_of_duplicating(self):
        data = build_pools_tournament((4, 4, 4, 4))
        store = InMemoryBracketStore(data)

        first = advance_pools_to_final(store, 1)
        first_pairs = _pairs(store, data)
        second = advance_pools_to_final(store, 1)

        assert first.to_dict() == second.to_dict()
        assert len(store.list_final_bracket_matches(1)) == 4
        assert _pairs(store, data) == first_pairs

    def test_corrected_results_change_the_bracket(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        advance_pools_to_final(store, 1)

        # A2 now beat A1
        a1, a2 = data.reg("A1"), data.reg("A2")
        for m in data.pool_matches:
            if {m.team1_registration_id, m.team2_registration_id} == {a1.id, a2.id}:
                m.winner_registration_id = a2.id
        # A2 now on 3 wins, A1 on 2
        advance_pools_to_final(store, 1)
        assert _pairs(store, data) == [("A2", "B2"), ("B1", "A1")]
        assert len(store.list_final_bracket_matches(1)) == 2

    def test_started_bracket_is_protected(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.matches.append(bracket_match(1, 1, "semis", 1, data.reg("A1").id, data.reg("B2").id, status="in_progress"))

        with pytest.raises(Conflict):
            advance_pools_to_final(store, 1)
        assert store.write_calls == []

        result = advance_pools_to_final(store, 1, force=True)
        assert result.matches_created == 2
        assert len(store.list_final_bracket_matches(1)) == 2

    def test_qualification_rounds_survive_replacement(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        qualif = bracket_match(1, 1, "qualifications", 1, data.reg("A4").id, data.reg("B4").id)
        store.matches.append(qualif)

        advance_pools_to_final(store, 1)
        assert qualif in store.matches


class TestDryRun:
    def test_dry_run_plans_without_writing_or_locking(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.locks[1] = "held-by-someone-else"

        result = advance_pools_to_final(store, 1, dry_run=True)

        assert result.matches_created == 0
        assert [(m.team1_registration_id, m.team2_registration_id) for m in result.planned_matches] == [
            (data.reg("A1").id, data.reg("B2").id),
            (data.reg("B1").id, data.reg("A2").id),
        ]
        assert store.write_calls == []
        assert "planned_matches" in result.to_dict()


class TestLockingAndStorage:
    def test_concurrent_run_conflicts(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.locks[1] = "another-run"

        with pytest.raises(Conflict) as exc:
            advance_pools_to_final(store, 1)
        assert exc.value.retryable is True
        assert store.write_calls == []

    def test_lock_released_after_failure(self):
        data = build_pools_tournament((4, 4))
        data.pool_matches[0].status = "scheduled"
        store = InMemoryBracketStore(data)

        with pytest.raises(IncompleteResults):
            advance_pools_to_final(store, 1)
        assert store.locks == {}

    def test_storage_failure_propagates_and_releases_lock(self):
        data = build_pools_tournament((4, 4))
        store = InMemoryBracketStore(data)
        store.fail_on_write = StorageFailure("database unavailable")

        with pytest.raises(StorageFailure) as exc:
            advance_pools_to_final(store, 1)
        assert exc.value.state == ProgressionState.REPLACING.value
        assert store.list_final_bracket_matches(1) == []
        assert store.locks == {}
