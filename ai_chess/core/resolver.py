"""
Move resolution: turn a player's free text into a legal SAN move.

Agents reason out loud before committing, so the last move-shaped token in the
text is taken as the decision. Whenever that token is missing or illegal, a
uniformly random legal move is played instead. Given the same RNG state the
result is reproducible.
"""

from __future__ import annotations

import logging
import random
import re
from typing import List, Optional, Sequence

from .models import MoveOutcome, Resolution
from .rules import RulesContractError

logger = logging.getLogger(__name__)

# SAN token: castling, or piece + disambiguation + capture + square + promotion,
# with an optional check/mate suffix. Tokens glued to letters or digits are ignored.
SAN_REGEX = re.compile(
    r"(?<![\w-])"
    r"(O-O-O|O-O|0-0-0|0-0|[NBRQK]?[a-h]?[1-8]?x?[a-h][1-8](?:=[NBRQ])?)"
    r"([+#])?"
    r"(?![\w-])"
)

_ZERO_CASTLES = {"0-0": "O-O", "0-0-0": "O-O-O"}


def extract_candidates(text: str) -> List[str]:
    """All move-shaped tokens in the text, in order of appearance."""
    candidates = []
    for match in SAN_REGEX.finditer(text or ""):
        body = _ZERO_CASTLES.get(match.group(1), match.group(1))
        candidates.append(body + (match.group(2) or ""))
    return candidates


def extract_move(text: str) -> Optional[str]:
    """The last move-shaped token in the text, or None."""
    candidates = extract_candidates(text)
    return candidates[-1] if candidates else None


def match_legal(candidate: str, legal_moves: Sequence[str]) -> Optional[str]:
    """
    Find the legal move a candidate refers to.

    Exact membership first; otherwise a candidate that differs from a legal move
    only by its check/mate suffix maps to that legal move.
    """
    if candidate in legal_moves:
        return candidate
    bare = candidate.rstrip("+#")
    for move in legal_moves:
        if move.rstrip("+#") == bare:
            return move
    return None


def fallback_move(legal_moves: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Uniformly random legal move."""
    if not legal_moves:
        raise RulesContractError("No legal moves available outside a terminal position")
    return (rng or random).choice(list(legal_moves))


def resolve(
    text: Optional[str],
    legal_moves: Sequence[str],
    rng: Optional[random.Random] = None,
) -> Resolution:
    """
    Reconcile player output with the legal-move set.

    Args:
        text: Raw player output (reasoning followed by a move)
        legal_moves: Ground-truth legal moves in SAN
        rng: Random source for the fallback (module-level random if None)

    Returns:
        Resolution whose ``move`` is always a member of ``legal_moves``

    Raises:
        RulesContractError: If ``legal_moves`` is empty
    """
    if not legal_moves:
        raise RulesContractError("No legal moves available outside a terminal position")

    text = text or ""
    stripped = text.strip()
    if stripped in legal_moves:
        return Resolution(move=stripped, outcome=MoveOutcome.APPLIED, candidate=stripped, raw_text=text)

    candidate = extract_move(text)
    if candidate is None:
        outcome = MoveOutcome.UNPARSEABLE
        logger.warning(f"No move found in player output: {stripped[:200]!r}")
    else:
        move = match_legal(candidate, legal_moves)
        if move is not None:
            return Resolution(move=move, outcome=MoveOutcome.APPLIED, candidate=candidate, raw_text=text)
        outcome = MoveOutcome.REJECTED_ILLEGAL
        logger.warning(f"Illegal move proposed: {candidate}")

    return Resolution(
        move=fallback_move(legal_moves, rng),
        outcome=outcome,
        candidate=candidate,
        raw_text=text,
    )
