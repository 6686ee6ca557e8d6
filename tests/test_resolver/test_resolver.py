"""
Tests para la política de resolución (Resolver).

Cubre:
- NoMatch con lista vacía
- Líder estricto
- Desempate: last_seen, longitud de ruta, orden lexicográfico
- Política 'report' (AmbiguousMatch)
- Escenario awesome-project / awesome-proj2
"""

import pytest

from gcd.errors import EXIT_AMBIGUOUS, EXIT_NO_MATCH, AmbiguousMatch, NoMatch
from gcd.index.models import Index, RepoRecord
from gcd.matching.matcher import EXACT, FuzzyMatcher, Match
from gcd.matching.resolver import Resolver


def _match(path: str, score: float, last_seen: float = 0.0) -> Match:
    return Match(
        record=RepoRecord.for_path(path, last_seen=last_seen),
        score=score,
        kind=EXACT,
        field="name",
    )


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def scenario_index() -> Index:
    return Index([
        RepoRecord(path="/home/u/projects/awesome-project", name="awesome-project"),
        RepoRecord(path="/home/u/other/awesome-proj2", name="awesome-proj2"),
    ])


# ── Tests: casos básicos ─────────────────────────────────────────────────


class TestResolve:
    """Tests para Resolver.resolve() con la política por defecto."""

    def test_empty_raises_no_match(self):
        with pytest.raises(NoMatch) as exc:
            Resolver().resolve([], query="ghost")
        assert exc.value.exit_code == EXIT_NO_MATCH
        assert "ghost" in str(exc.value)

    def test_single_entry(self):
        only = _match("/r/one", 1200.0)
        assert Resolver().resolve([only]) is only

    def test_strict_leader_regardless_of_order(self):
        low = _match("/r/low", 1500.0, last_seen=99.0)
        high = _match("/r/high", 3000.0)
        assert Resolver().resolve([low, high]) is high


class TestTieBreak:
    """Empates en cabeza: last_seen > ruta más corta > lexicográfico."""

    def test_most_recent_wins(self):
        old = _match("/a", 4000.0, last_seen=1.0)
        new = _match("/much/longer/path", 4000.0, last_seen=2.0)
        assert Resolver().resolve([old, new]) is new

    def test_shorter_path_wins(self):
        long_path = _match("/home/u/deep/tool", 4000.0)
        short_path = _match("/opt/tool", 4000.0)
        assert Resolver().resolve([long_path, short_path]) is short_path

    def test_lexicographic_path_wins(self):
        b = _match("/b/tool", 4000.0)
        a = _match("/a/tool", 4000.0)
        assert Resolver().resolve([b, a]) is a

    def test_lower_scores_do_not_take_part(self):
        leader = _match("/zzzz/leader", 4000.0, last_seen=1.0)
        recent_but_lower = _match("/a", 3999.0, last_seen=50.0)
        assert Resolver().resolve([recent_but_lower, leader]) is leader


class TestReportPolicy:
    """La política 'report' expone los empates en vez de elegir."""

    def test_tie_raises_ambiguous(self):
        b = _match("/b/tool", 4000.0)
        a = _match("/a/tool", 4000.0)
        other = _match("/c/toolbox", 3100.0)

        with pytest.raises(AmbiguousMatch) as exc:
            Resolver("report").resolve([b, other, a], query="tool")

        assert exc.value.exit_code == EXIT_AMBIGUOUS
        assert [m.record.path for m in exc.value.candidates] == ["/a/tool", "/b/tool"]

    def test_strict_leader_still_resolves(self):
        leader = _match("/r/leader", 4000.0)
        other = _match("/r/other", 3000.0)
        assert Resolver("report").resolve([leader, other]) is leader

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            Resolver("random")


# ── Tests: escenario completo ────────────────────────────────────────────


class TestScenario:
    """Matcher + Resolver sobre el índice de ejemplo."""

    def test_exact_name_wins(self, scenario_index):
        matches = FuzzyMatcher().match(scenario_index, "awesome-project")
        winner = Resolver().resolve(matches, query="awesome-project")
        assert winner.record.path == "/home/u/projects/awesome-project"

    def test_abbreviation_is_reproducible(self, scenario_index):
        results = {
            Resolver().resolve(
                FuzzyMatcher().match(scenario_index, "awp"), query="awp"
            ).record.path
            for _ in range(5)
        }
        # Mismo agrupamiento de huecos; gana el nombre más corto
        assert results == {"/home/u/other/awesome-proj2"}

    def test_unmatched_query(self, scenario_index):
        matches = FuzzyMatcher().match(scenario_index, "xyz123notarepo")
        with pytest.raises(NoMatch):
            Resolver().resolve(matches, query="xyz123notarepo")
