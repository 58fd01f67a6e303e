"""Game AI example.

This example shows how a resumable procedure can replace a hand-written
state machine. The agent is called once per game tick with what it currently
observes, and answers with the action to take. Which phase of its behavior
the agent is in (looking for an opponent, fighting, recovering) is simply
the position of the procedure in its own code.

Run with:

python game.py

"""

import logging
from enum import Enum

import lockstep


class Action(Enum):
    WANDER = "wander"
    ATTACK = "attack"
    EVADE = "evade"
    HEAL = "heal"


def agent(is_opponent_near: bool, my_health: int) -> Action:
    while True:
        # Find an opponent.
        while not is_opponent_near:
            yield Action.WANDER

        # Do battle!
        min_health = my_health
        while my_health > 1 and is_opponent_near:
            yield Action.ATTACK
            if my_health < min_health:
                min_health = my_health
                yield Action.EVADE

        # Recover.
        if my_health < 5:
            yield Action.HEAL


def play(ticks: list[tuple[bool, int]]) -> list[Action]:
    """Run a fresh agent over a sequence of observations."""
    decide = lockstep.resumable(agent)
    return [decide(near, health) for near, health in ticks]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ticks = [(False, 3), (True, 3), (True, 2), (True, 2), (True, 1), (True, 1)]
    for (near, health), action in zip(ticks, play(ticks)):
        logging.info("near=%s health=%d -> %s", near, health, action.value)
