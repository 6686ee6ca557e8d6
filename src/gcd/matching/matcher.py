"""
Fuzzy Matcher — ranking de repositorios indexados contra una consulta.

Cada candidato se puntúa por niveles, de mayor a menor peso:

    exact        4000          nombre == consulta
    prefix       3000 + bonus  el nombre empieza por la consulta
    substring    2000 + bonus  la consulta aparece contigua en el nombre
    subsequence  1000 + bonus  los caracteres aparecen en orden, con huecos

El bonus de cada nivel está en [0, 1000), así que los niveles nunca se
solapan. Todas las comparaciones ignoran mayúsculas.

El nombre (último segmento de la ruta) es la clave principal. Solo si el
nombre no coincide se prueba la ruta completa, y esa puntuación se divide
por PATH_SCORE_DIVISOR para quedar por debajo de cualquier coincidencia
por nombre. Los candidatos sin coincidencia se excluyen: nunca se
devuelven con puntuación cero o negativa.
"""

from dataclasses import dataclass
from typing import Iterable

import structlog

from ..index.models import Index, RepoRecord

logger = structlog.get_logger()


EXACT = "exact"
PREFIX = "prefix"
SUBSTRING = "substring"
SUBSEQUENCE = "subsequence"

TIER_BASE: dict[str, float] = {
    EXACT: 4000.0,
    PREFIX: 3000.0,
    SUBSTRING: 2000.0,
    SUBSEQUENCE: 1000.0,
}

PATH_SCORE_DIVISOR = 10.0


@dataclass(frozen=True)
class Match:
    """Un candidato puntuado."""

    record: RepoRecord
    score: float
    kind: str       # exact | prefix | substring | subsequence
    field: str      # name | path


def rank_key(match: Match) -> tuple:
    """Orden total: score desc, last_seen desc, ruta más corta, ruta lexicográfica."""
    record = match.record
    return (-match.score, -record.last_seen, len(record.path), record.path)


def subsequence_penalty(query: str, text: str) -> int | None:
    """Penalización mínima de huecos para encajar query en text en orden.

    Cada hueco entre dos caracteres consecutivos de la consulta cuesta
    1 + su longitud, de modo que menos huecos y más cortos puntúan mejor.

    Returns:
        La penalización del mejor alineamiento, o None si query no es
        subsecuencia de text.
    """
    if not query or not _is_subsequence(query, text):
        return None

    n = len(text)
    # prev[j]: mejor penalización con el carácter actual de la consulta en text[j]
    prev: list[int | None] = [0 if c == query[0] else None for c in text]

    for qc in query[1:]:
        cur: list[int | None] = [None] * n
        # min(prev[k] - k) para k <= j - 2: un salto k -> j cuesta j - k
        run_min: int | None = None
        for j in range(n):
            if j >= 2 and prev[j - 2] is not None:
                value = prev[j - 2] - (j - 2)
                run_min = value if run_min is None else min(run_min, value)
            if text[j] != qc:
                continue
            options = []
            if j >= 1 and prev[j - 1] is not None:
                options.append(prev[j - 1])
            if run_min is not None:
                options.append(run_min + j)
            if options:
                cur[j] = min(options)
        prev = cur

    finals = [p for p in prev if p is not None]
    return min(finals) if finals else None


def _is_subsequence(query: str, text: str) -> bool:
    it = iter(text)
    return all(c in it for c in query)


def score_text(query: str, text: str) -> tuple[str, float] | None:
    """Puntúa query contra text (ambos ya en minúsculas).

    Returns:
        (kind, score) o None si no hay coincidencia.
    """
    if not query or not text:
        return None

    if text == query:
        return EXACT, TIER_BASE[EXACT]

    coverage = len(query) / len(text)

    if text.startswith(query):
        return PREFIX, round(TIER_BASE[PREFIX] + 999 * coverage, 3)

    position = text.find(query)
    if position >= 0:
        early = 1 - position / len(text)
        return SUBSTRING, round(TIER_BASE[SUBSTRING] + 900 * coverage + 99 * early, 3)

    penalty = subsequence_penalty(query, text)
    if penalty is None:
        return None

    # Tightness in (0, 1]: tighter clustering scores higher
    tightness = 1 / (1 + penalty)
    return SUBSEQUENCE, round(TIER_BASE[SUBSEQUENCE] + 600 * tightness + 399 * coverage, 3)


class FuzzyMatcher:
    """Puntúa y ordena los registros de un índice frente a una consulta.

    Solo lee el índice; nunca lo modifica. Para un índice y una consulta
    dados el resultado es siempre el mismo (orden total vía rank_key).
    """

    def match(
        self,
        index: Index | Iterable[RepoRecord],
        query: str,
        limit: int | None = None,
    ) -> list[Match]:
        """Devuelve los candidatos ordenados de mejor a peor.

        Args:
            index: Índice (o registros) a consultar
            query: Texto introducido por el usuario
            limit: Máximo de resultados (None = todos)
        """
        needle = query.strip().lower()
        if not needle:
            return []

        matches: list[Match] = []
        for record in index:
            match = self._score_record(record, needle)
            if match is not None:
                matches.append(match)

        matches.sort(key=rank_key)
        logger.debug("match.ranked", query=query, candidates=len(matches))
        return matches[:limit] if limit is not None else matches

    def _score_record(self, record: RepoRecord, needle: str) -> Match | None:
        scored = score_text(needle, record.name.lower())
        if scored is not None:
            kind, score = scored
            return Match(record=record, score=score, kind=kind, field="name")

        # Fallback: ruta completa, siempre por debajo de cualquier nombre
        path_text = record.path.replace("\\", "/").lower()
        scored = score_text(needle, path_text)
        if scored is not None:
            kind, score = scored
            return Match(
                record=record,
                score=round(score / PATH_SCORE_DIVISOR, 3),
                kind=kind,
                field="path",
            )
        return None
