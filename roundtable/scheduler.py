"""Turn scheduling: per-round speaking order and per-turn debate style."""

import random

from roundtable.models import DEBATE_STYLES, Expert

_FORCED_STYLE = "challenging"
# "challenging" is forced once this many other styles have been used in a round
_FORCE_AFTER = 2


def is_final_round(round_number: int, total_rounds: int) -> bool:
    """Closing round with stable speaking order. Only discussions of 4+ rounds have one."""
    return round_number >= total_rounds and total_rounds >= 4


def expert_order(
    experts: list[Expert],
    round_number: int,
    total_rounds: int,
    rng: random.Random,
) -> list[Expert]:
    """Roster order for the final round, a fresh shuffle for every other round."""
    if is_final_round(round_number, total_rounds):
        return list(experts)
    shuffled = list(experts)
    rng.shuffle(shuffled)
    return shuffled


class StyleSelector:
    """Picks debate styles so each round gets variety and at least one critical turn."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._used: list[str] = []

    @property
    def used(self) -> list[str]:
        return list(self._used)

    def reset(self) -> None:
        self._used = []

    def next_style(self) -> str:
        available = [s for s in DEBATE_STYLES if s not in self._used]

        if not available:
            self._used = []
            style = self._rng.choice(DEBATE_STYLES)
        elif _FORCED_STYLE not in self._used and len(self._used) >= _FORCE_AFTER:
            style = _FORCED_STYLE
        else:
            style = self._rng.choice(available)

        self._used.append(style)
        return style
