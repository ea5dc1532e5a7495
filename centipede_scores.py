"""
High score table for Centipede.

Scores live in a flat text file, one ``name,score`` per line, best first.
Only the top ten are kept.
"""

import os
from dataclasses import dataclass
from typing import List

from loguru import logger

DEFAULT_HIGH_SCORE_FILE = 'highscores.txt'
MAX_ENTRIES = 10
MAX_NAME_LENGTH = 10


class HighScoreError(Exception):
    """Raised when the high score file cannot be written"""


@dataclass
class HighScore:
    """One leaderboard entry"""
    name: str
    score: int


def clean_name(name: str) -> str:
    """Trim a player name to something the file format can hold"""
    return name.replace(',', '').strip()[:MAX_NAME_LENGTH]


class HighScoreStore:
    """Reads and appends to the high score file"""

    def __init__(self, path: str = DEFAULT_HIGH_SCORE_FILE):
        self.path = path

    def load(self) -> List[HighScore]:
        """Top scores, best first. A missing or unreadable file is an empty table."""
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.warning(f"Could not read high scores from {self.path}: {e}")
            return []

        scores = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            parts = line.split(',')
            if len(parts) != 2:
                logger.warning(f"Skipping malformed high score line: {line!r}")
                continue
            try:
                scores.append(HighScore(parts[0], int(parts[1])))
            except ValueError:
                logger.warning(f"Skipping malformed high score line: {line!r}")

        scores.sort(key=lambda s: s.score, reverse=True)
        return scores[:MAX_ENTRIES]

    def qualifies(self, score: int) -> bool:
        """Would this score make it onto the table?"""
        scores = self.load()
        return len(scores) < MAX_ENTRIES or score > scores[-1].score

    def save(self, name: str, score: int) -> List[HighScore]:
        """Insert a score, keep the top ten, write the file back. Returns the new table."""
        scores = self.load()
        scores.append(HighScore(clean_name(name), score))
        scores.sort(key=lambda s: s.score, reverse=True)
        scores = scores[:MAX_ENTRIES]

        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                f.write('\n'.join(f"{s.name},{s.score}" for s in scores))
        except OSError as e:
            logger.error(f"Could not write high scores to {self.path}: {e}")
            raise HighScoreError(str(e)) from e

        logger.info(f"High score saved: {clean_name(name)} {score}")
        return scores
