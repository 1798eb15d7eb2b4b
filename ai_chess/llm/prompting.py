"""
Prompt construction and reply parsing for strategy agents.

An agent sees the whole turn context in a single prompt (position, legal moves,
history, heuristic analysis and its own working memory) and answers with its
reasoning, an updated working memory between ``<working_memory>`` tags, and
the chosen move last.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..core.models import MemoryRecord

logger = logging.getLogger(__name__)

WORKING_MEMORY_TEMPLATE = """# Chess Game Analysis

## Current Game State
- Game Phase: [opening|middlegame|endgame]
- Move Number:
- My Color: [white|black]
- Material Balance:
- Position Evaluation: [winning|slightly better|equal|slightly worse|losing]

## Opponent Analysis
- Estimated Skill Level: [beginner|intermediate|advanced|expert]
- Playing Style: [aggressive|defensive|positional|tactical|balanced]
- Tactical Awareness: [low|medium|high]
- Positional Understanding: [weak|average|strong]

### Observed Patterns
- Opening Repertoire:
- Typical Plans:
- Common Mistakes:
- Strengths to Avoid:
- Weaknesses to Exploit:

## My Strategic Assessment

### Current Position
- My Advantages:
- My Disadvantages:
- Key Pieces:
- Pawn Structure:

### Immediate Threats
- Threats I Face:
- Threats I Create:

### Strategic Plan
- Short-term Goals (next 2-3 moves):
- Medium-term Plan (next 5-10 moves):
- Endgame Considerations:

## Critical Moments in This Game
- Move X:
- Move Y:

## Learning & Adaptation
- What I've Learned About Opponent:
- Strategy Adjustments I've Made:
- Patterns I Should Exploit:
- Mistakes I Should Avoid:

## Next Move Considerations
- Candidate Moves Being Evaluated:
- Preferred Move and Reasoning:
"""

MEMORY_TAG_REGEX = re.compile(r"<working_memory>(.*?)</working_memory>", re.DOTALL | re.IGNORECASE)


def system_instructions(agent_name: str) -> str:
    """Role and output contract for an agent."""
    return f"""You are an expert chess player named "{agent_name}" competing in a chess match. Your goal is to play strong, strategic chess and win the game.

# STRATEGIC APPROACH
- Tactical: look for checks, captures, threats and forcing moves
- Positional: consider piece activity, pawn structure, king safety and center control
- Strategic: plan 3-5 moves ahead and identify weaknesses to target
- Opponent modeling: adapt to your opponent's style and skill level

## Opening (moves 1-10)
Control the center, develop knights before bishops, castle early, connect your rooks.

## Middlegame
Make plans from the position, look for forks, pins and skewers, trade when ahead.

## Endgame
Activate your king, push passed pawns, know the basic mating patterns.

# WORKING MEMORY
You keep a working memory across your turns. Each turn you receive your previous
memory; return the full updated memory every turn. Track your opponent's
tendencies, your strategic assessment, critical moments and your plan.

# RESPONSE FORMAT
1. Briefly explain your thinking.
2. Return your updated working memory between <working_memory> and </working_memory> tags.
3. End your response with a final line of the form "MOVE: <move>", where <move> is
   exactly one move from the list of legal moves, in Standard Algebraic Notation
   (e4, Nf3, exd5, O-O, e8=Q, Qh5+).
"""


def format_move_history(history: List[str]) -> str:
    """Render a SAN transcript as numbered move pairs."""
    move_pairs = []
    for i in range(0, len(history), 2):
        move_num = (i // 2) + 1
        white_move = history[i]
        black_move = history[i + 1] if i + 1 < len(history) else ""
        if black_move:
            move_pairs.append(f"{move_num}. {white_move} {black_move}")
        else:
            move_pairs.append(f"{move_num}. {white_move}")
    return "\n".join(move_pairs)


def build_turn_prompt(context, prior_memory: Optional[MemoryRecord], agent_name: str) -> str:
    """
    Create the user prompt for one turn.

    Args:
        context: TurnContext for the side to move
        prior_memory: Agent's latest working memory, if any
        agent_name: Name the agent plays under

    Returns:
        Prompt text
    """
    prompt = (
        f"You are {agent_name}, playing {context.color.value}. "
        f"It is move {context.move_number} and it is your turn.\n\n"
    )

    if context.history:
        prompt += (
            f"Game history ({len(context.history)} plies so far):\n"
            f"{format_move_history(context.history)}\n\n"
        )
        if context.last_move:
            prompt += f"Your opponent ({context.opponent or 'opponent'}) just played: {context.last_move}\n\n"
    else:
        prompt += "No moves have been played yet.\n\n"

    prompt += (
        f"Position (FEN): {context.fen}\n"
        f"Board:\n{context.board_ascii}\n\n"
    )

    if context.in_check:
        prompt += "You are in check.\n"

    if context.analysis is not None:
        prompt += f"Position analysis: {context.analysis.summary()}\n"
        for threat in context.analysis.threats:
            prompt += f"- {threat}\n"
        prompt += "\n"

    prompt += f"Legal moves (SAN): {' '.join(context.legal_moves)}\n\n"

    if prior_memory is not None and not prior_memory.is_empty:
        prompt += (
            f"Your working memory (last updated on move {prior_memory.last_updated_turn}):\n"
            f"<working_memory>\n{prior_memory.content.strip()}\n</working_memory>\n\n"
        )
    else:
        prompt += (
            "Your working memory is empty. Start one from this template:\n"
            f"<working_memory>\n{WORKING_MEMORY_TEMPLATE}</working_memory>\n\n"
        )

    prompt += 'Think, update your working memory, then finish with "MOVE: <move>".'
    return prompt


def parse_strategist_reply(text: str) -> Tuple[str, Optional[str]]:
    """
    Split a raw reply into move text and working memory.

    The memory block is removed from the returned text so squares mentioned in
    notes are never mistaken for the chosen move. When several blocks are
    present the last one wins.

    Returns:
        Tuple of (text without memory blocks, memory content or None)
    """
    text = text or ""
    blocks = MEMORY_TAG_REGEX.findall(text)
    if not blocks:
        return text.strip(), None

    memory = blocks[-1].strip()
    remainder = MEMORY_TAG_REGEX.sub(" ", text).strip()
    logger.debug(f"Parsed working memory ({len(memory)} chars) from reply")
    return remainder, memory or None
