from __future__ import annotations

from domain.models import OUTCOMES


def encode_outcome_choice(player_id: str, hand_index: int, outcome: str) -> str:
    """
    Encode a "set outcome" button.

    Format: out:{player_id}:{hand_index}:{outcome}
    """

    return f"out:{player_id}:{hand_index}:{outcome}"


def parse_outcome_choice(data: str) -> tuple[str, int, str]:
    parts = data.split(":")
    if len(parts) != 4 or parts[0] != "out" or parts[3] not in OUTCOMES:
        raise ValueError(f"Invalid outcome callback data: {data}")

    player_id = parts[1]
    hand_index = int(parts[2])
    return player_id, hand_index, parts[3]


def encode_double(player_id: str, hand_index: int) -> str:
    """
    Encode a "double / undo double" button.

    Format: dbl:{player_id}:{hand_index}
    """

    return f"dbl:{player_id}:{hand_index}"


def parse_double(data: str) -> tuple[str, int]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "dbl":
        raise ValueError(f"Invalid double callback data: {data}")

    return parts[1], int(parts[2])


def encode_split(player_id: str) -> str:
    """Format: spl:{player_id}"""

    return f"spl:{player_id}"


def parse_split(data: str) -> str:
    parts = data.split(":")
    if len(parts) != 2 or parts[0] != "spl" or not parts[1]:
        raise ValueError(f"Invalid split callback data: {data}")

    return parts[1]
