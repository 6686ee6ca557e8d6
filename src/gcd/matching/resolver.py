"""
Resolution Policy — elige un único repositorio entre los candidatos.

Políticas:
- "auto" (por defecto): ante un empate en la mejor puntuación gana el
  visto más recientemente, después la ruta más corta y por último el
  orden lexicográfico de la ruta. Siempre hay un ganador determinista.
- "report": un empate en cabeza lanza AmbiguousMatch con los candidatos
  empatados para que el usuario afine la consulta.
"""

from typing import Literal

import structlog

from ..errors import AmbiguousMatch, NoMatch
from .matcher import Match, rank_key

logger = structlog.get_logger()

TieBreakPolicy = Literal["auto", "report"]
POLICIES: tuple[str, ...] = ("auto", "report")


class Resolver:
    """Convierte una lista de candidatos en una única ruta."""

    def __init__(self, policy: TieBreakPolicy = "auto") -> None:
        if policy not in POLICIES:
            raise ValueError(f"unknown tie-break policy: {policy!r}")
        self.policy = policy

    def resolve(self, matches: list[Match], query: str = "") -> Match:
        """Selecciona el ganador.

        Args:
            matches: Candidatos del FuzzyMatcher (en cualquier orden)
            query: Consulta original, solo para mensajes de error

        Raises:
            NoMatch: Si no hay candidatos
            AmbiguousMatch: Si hay empate y la política es "report"
        """
        if not matches:
            raise NoMatch(query)

        top = max(m.score for m in matches)
        leaders = sorted((m for m in matches if m.score == top), key=rank_key)

        if len(leaders) > 1 and self.policy == "report":
            logger.info("match.ambiguous", query=query, tied=len(leaders))
            raise AmbiguousMatch(query, leaders)

        winner = leaders[0]
        logger.debug(
            "match.resolved",
            query=query,
            path=winner.record.path,
            kind=winner.kind,
            score=winner.score,
            tied=len(leaders),
        )
        return winner
