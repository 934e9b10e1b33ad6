"""
Prompt construction for chess move requests.

Providers are stateless across turns, so every prompt restates the full
position, the move history and the complete list of legal moves.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..core.rules import ChessGame


def format_move_history(moves: Sequence[str]) -> str:
    """Format SAN moves as numbered pairs: "1. e4 e5 2. Nf3"."""
    move_pairs = []
    for i in range(0, len(moves), 2):
        move_num = (i // 2) + 1
        white_move = moves[i]
        black_move = moves[i + 1] if i + 1 < len(moves) else ""
        if black_move:
            move_pairs.append(f"{move_num}. {white_move} {black_move}")
        else:
            move_pairs.append(f"{move_num}. {white_move}")
    return " ".join(move_pairs)


def build_prompt(
    color: str,
    opponent_name: str,
    fen: str,
    move_number: int,
    is_check: bool,
    legal_moves: Sequence[str],
    move_history: Sequence[str],
    previous_invalid_move: Optional[str] = None,
    retry: bool = False,
    timeout_s: Optional[float] = None,
    attempts_left: int = 1,
) -> str:
    """
    Build the single-shot chess prompt for one attempt.

    Args:
        color: "white" or "black"
        opponent_name: Display name of the opponent
        fen: Current position
        move_number: Full move number
        is_check: True if the side to move is in check
        legal_moves: Legal moves in SAN
        move_history: SAN moves played so far
        previous_invalid_move: Token rejected on the previous attempt, if any
        retry: True for every attempt after the first
        timeout_s: Time budget mentioned to the model
        attempts_left: Attempts remaining, this one included

    Returns:
        Prompt text
    """
    history_str = format_move_history(move_history) if move_history else "(game start)"

    prompt = f"You are playing chess as {color} against {opponent_name}. It is move {move_number}.\n"

    if retry:
        if previous_invalid_move:
            prompt += (
                f"\n!!! WARNING: Your previous answer \"{previous_invalid_move}\" is NOT a legal move. !!!\n"
            )
        else:
            prompt += "\n!!! WARNING: No legal move could be read from your previous answer. !!!\n"
        if attempts_left > 1:
            prompt += (
                f"You have {attempts_left} attempts left: answer with one of the legal moves below "
                "or you FORFEIT the game.\n"
            )
        else:
            prompt += (
                "This is your LAST chance: answer with one of the legal moves below "
                "or you FORFEIT the game.\n"
            )

    if is_check:
        prompt += "\n*** YOUR KING IS IN CHECK. You must resolve the check. ***\n"

    prompt += (
        f"\nCURRENT POSITION (FEN): {fen}\n"
        f"\nMOVE HISTORY: {history_str}\n"
        f"\nLEGAL MOVES: {', '.join(legal_moves)}\n"
        "\nYour goal is to win. Think about piece development, king safety, "
        "pawn structure, and tactical opportunities."
    )
    if timeout_s:
        prompt += f" You have {_format_duration(timeout_s)} to respond."

    prompt += (
        "\n\nAfter your analysis, output your chosen move on its own line in EXACTLY this format:\n"
        "MOVE: <your move>\n"
        "\nThe move MUST be exactly one of the legal moves listed above, in Standard Algebraic "
        "Notation (SAN). To resign instead, output:\n"
        "MOVE: RESIGN"
    )
    return prompt


def build_prompt_for_game(
    game: ChessGame,
    color: str,
    opponent_name: str,
    previous_invalid_move: Optional[str] = None,
    retry: bool = False,
    timeout_s: Optional[float] = None,
    attempts_left: int = 1,
) -> str:
    """Build the prompt for the side to move in a running game."""
    return build_prompt(
        color=color,
        opponent_name=opponent_name,
        fen=game.fen(),
        move_number=game.move_number(),
        is_check=game.is_check(),
        legal_moves=game.legal_moves(),
        move_history=game.history(),
        previous_invalid_move=previous_invalid_move,
        retry=retry,
        timeout_s=timeout_s,
        attempts_left=attempts_left,
    )


def _format_duration(seconds: float) -> str:
    if seconds >= 120:
        return f"{int(seconds // 60)} minutes"
    if seconds >= 60:
        return "1 minute"
    return f"{int(seconds)} seconds"
