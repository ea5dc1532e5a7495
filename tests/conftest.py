"""Shared fixtures for the Centipede test suite."""

import random

import pytest

from centipede_engine import Centipede, Game, Segment


class QuietRandom(random.Random):
    """Deterministic RNG whose probability rolls never fire (no flies, fleas or flea mushrooms)"""

    def random(self):
        return 0.999

    def getrandbits(self, k):
        return super().getrandbits(k)


class LuckyRandom(random.Random):
    """Deterministic RNG whose probability rolls always fire"""

    def random(self):
        return 0.0

    def getrandbits(self, k):
        return super().getrandbits(k)


def decoy() -> Centipede:
    """A one-segment centipede parked in the top-left corner.

    Keeps the board from counting as cleared so a test can empty
    another centipede without triggering a level change.
    """
    return Centipede([Segment(1, 0, 1)])


@pytest.fixture
def game():
    """A fresh default game with no random spawns"""
    return Game(rng=QuietRandom(1234))


@pytest.fixture
def empty_game():
    """A game with no mushrooms and only the decoy centipede"""
    g = Game(rng=QuietRandom(1234))
    g.mushrooms = []
    g.centipedes = [decoy()]
    return g


@pytest.fixture
def lucky_game():
    g = Game(rng=LuckyRandom(99))
    g.mushrooms = []
    g.centipedes = [decoy()]
    return g
