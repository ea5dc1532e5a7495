#!/usr/bin/env python3
"""
Balance harness for Centipede.

Plays many games headlessly with a scripted AI and reports how hard the
game is: score distribution, survival time, levels reached and how many
deaths happened near a poisoned mushroom.

    python centipede_balance.py --games 1000 --seed 42
"""

import argparse
import random
import sys
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
from loguru import logger

from centipede_engine import Game

DODGE_RANGE = 5  # Rows from the bottom that trigger panic mode
SHOOT_CHANCE = 0.7
PANIC_SHOOT_CHANCE = 0.9
MAX_TICKS = 10000
TICK_SECONDS = 0.05


@dataclass
class GameStats:
    """Metrics for a single simulated game"""
    score: int = 0
    lives_lost: int = 0
    levels_completed: int = 0
    ticks_alive: int = 0
    deaths_by_poison: int = 0
    final_level: int = 1


@dataclass
class BalanceReport:
    """Summary over all simulated games"""
    total_games: int
    avg_score: float
    median_score: float
    std_score: float
    avg_lives_lost: float
    avg_levels_completed: float
    avg_survival_ticks: float
    avg_deaths_by_poison: float
    poison_death_rate: float
    too_easy: int
    balanced: int
    too_hard: int
    percentiles: dict = field(default_factory=dict)

    @property
    def ticks_per_life(self) -> float:
        return self.avg_survival_ticks / (self.avg_lives_lost + 1)


class ScriptedPlayer:
    """Cheap AI: dodge when the centipede is close, otherwise hunt"""

    def __init__(self, rng: random.Random):
        self.rng = rng

    def act(self, game: Game):
        panic = any(seg.y >= game.height - DODGE_RANGE for seg in game.segments)
        if panic:
            self.panic_dodge(game)
            if self.rng.random() < PANIC_SHOOT_CHANCE:
                game.shoot()
        else:
            self.normal_play(game)

    def panic_dodge(self, game: Game):
        """Step away from the closest low segment and climb if possible"""
        nearest_x = None
        nearest_dist = None
        for seg in game.segments:
            if seg.y >= game.height - 10:
                dist = abs(seg.x - game.player.x)
                if nearest_dist is None or dist < nearest_dist:
                    nearest_dist = dist
                    nearest_x = seg.x

        if nearest_x is None:
            return
        if game.player.x < nearest_x:
            game.move_x(-1)
        elif game.player.x > nearest_x:
            game.move_x(1)
        if game.player.y > game.height - 6:
            game.move_y(-1)

    def normal_play(self, game: Game):
        """Target priority: head, then flies, then any segment overhead"""
        target_x = None
        target_value = 0

        for seg in game.segments:
            if seg.head and seg.x == game.player.x:
                target_x, target_value = seg.x, 100
                break

        if target_value < 50:
            for fly in game.flies:
                if fly.active and abs(fly.x - game.player.x) < 3:
                    target_x, target_value = fly.x, 50
                    break

        if target_value == 0:
            for seg in game.segments:
                if seg.x == game.player.x:
                    target_x, target_value = seg.x, 10
                    break

        if target_value > 0:
            if game.player.x < target_x:
                game.move_x(1)
            elif game.player.x > target_x:
                game.move_x(-1)
            if self.rng.random() < SHOOT_CHANCE:
                game.shoot()
        else:
            # Hunt: random walk while spraying
            if self.rng.random() < 0.3:
                game.move_x(1 if self.rng.random() < 0.5 else -1)
            if self.rng.random() < 0.4:
                game.shoot()


def _death_near_poison(game: Game) -> bool:
    """Was a low segment sharing a row with a poisoned mushroom when the life went?"""
    for seg in game.segments:
        if seg.y >= game.height - 3:
            for mush in game.mushrooms:
                if mush.poisoned and mush.y == seg.y:
                    return True
    return False


def simulate_game(rng: random.Random, max_ticks: int = MAX_TICKS) -> GameStats:
    """Play one game to the end (or to max_ticks)"""
    game = Game(rng=rng)
    player = ScriptedPlayer(rng)
    stats = GameStats()

    for _ in range(max_ticks):
        if game.game_over:
            break
        stats.ticks_alive += 1

        player.act(game)
        # Poison is cleared on respawn, so look before the tick resolves
        poison_before = _death_near_poison(game)
        lives_before = game.lives
        game.update()

        if game.level > stats.final_level:
            stats.levels_completed += game.level - stats.final_level
            stats.final_level = game.level

        if game.lives < lives_before:
            stats.lives_lost += lives_before - game.lives
            if poison_before:
                stats.deaths_by_poison += 1

    stats.score = game.score
    return stats


def analyze(results: List[GameStats]) -> BalanceReport:
    """Aggregate per-game stats into a report"""
    if not results:
        raise ValueError("No games to analyze")

    scores = np.array([r.score for r in results])
    lives_lost = np.array([r.lives_lost for r in results])
    levels = np.array([r.levels_completed for r in results])
    ticks = np.array([r.ticks_alive for r in results])
    poison = np.array([r.deaths_by_poison for r in results])

    total_deaths = int(lives_lost.sum())
    too_easy = int(np.count_nonzero(levels >= 10))
    too_hard = int(np.count_nonzero(levels <= 1))

    return BalanceReport(
        total_games=len(results),
        avg_score=float(scores.mean()),
        median_score=float(np.median(scores)),
        std_score=float(scores.std()),
        avg_lives_lost=float(lives_lost.mean()),
        avg_levels_completed=float(levels.mean()),
        avg_survival_ticks=float(ticks.mean()),
        avg_deaths_by_poison=float(poison.mean()),
        poison_death_rate=float(poison.sum()) / total_deaths if total_deaths else 0.0,
        too_easy=too_easy,
        balanced=len(results) - too_easy - too_hard,
        too_hard=too_hard,
        percentiles={p: float(np.percentile(scores, p)) for p in (10, 25, 50, 75, 90, 95, 99)},
    )


def balance_score(report: BalanceReport) -> Tuple[float, List[str]]:
    """Rate the balance 0-100 and explain the deductions"""
    score = 100.0
    feedback = []

    # Ideal: 60-80% of games land between 2 and 9 levels
    balanced_pct = report.balanced / report.total_games * 100
    if balanced_pct < 50:
        score -= (50 - balanced_pct) / 2
        feedback.append(f"Only {balanced_pct:.1f}% balanced games (target: 60-80%)")
    elif balanced_pct > 90:
        feedback.append(f"Excellent balance: {balanced_pct:.1f}% games in 2-9 level range")

    easy_pct = report.too_easy / report.total_games * 100
    if easy_pct > 15:
        score -= easy_pct - 15
        feedback.append(f"Too easy: {easy_pct:.1f}% reach 10+ levels (target: <15%)")

    hard_pct = report.too_hard / report.total_games * 100
    if hard_pct > 20:
        score -= (hard_pct - 20) / 2
        feedback.append(f"Too hard: {hard_pct:.1f}% die in level 1 (target: <20%)")

    ticks_per_life = report.ticks_per_life
    if ticks_per_life < 150:
        score -= (150 - ticks_per_life) / 10
        feedback.append(f"Deaths too quick: {ticks_per_life:.0f} ticks/life (target: 200-400)")
    elif ticks_per_life > 500:
        score -= (ticks_per_life - 500) / 20
        feedback.append(f"Lives too long: {ticks_per_life:.0f} ticks/life (target: 200-400)")

    poison_pct = report.poison_death_rate * 100
    if poison_pct < 10:
        score -= 5
        feedback.append(f"Poison mushrooms underutilized: {poison_pct:.1f}% of deaths")
    elif poison_pct > 40:
        score -= 10
        feedback.append(f"Poison mushrooms too deadly: {poison_pct:.1f}% of deaths")
    else:
        feedback.append(f"Poison mushrooms well-balanced: {poison_pct:.1f}% of deaths")

    if report.std_score < report.avg_score * 0.3:
        score -= 5
        feedback.append("Games too similar - needs more randomness")

    return score, feedback


def print_report(report: BalanceReport):
    rating, feedback = balance_score(report)
    n = report.total_games

    print("AGGREGATE STATISTICS")
    print("====================")
    print(f"Total Games Simulated:  {n}")
    print(f"Average Score:          {report.avg_score:.0f}")
    print(f"Median Score:           {report.median_score:.0f}")
    print(f"Average Lives Lost:     {report.avg_lives_lost:.2f}")
    print(f"Average Levels Done:    {report.avg_levels_completed:.2f}")
    print(f"Avg Survival Time:      {report.avg_survival_ticks:.0f} ticks "
          f"(~{report.avg_survival_ticks * TICK_SECONDS:.1f} seconds)")
    print()
    print("DIFFICULTY DISTRIBUTION")
    print("=======================")
    print(f"Too Easy (10+ levels):  {report.too_easy} games ({report.too_easy / n * 100:.1f}%)")
    print(f"Balanced (2-9 levels):  {report.balanced} games ({report.balanced / n * 100:.1f}%)")
    print(f"Too Hard (0-1 levels):  {report.too_hard} games ({report.too_hard / n * 100:.1f}%)")
    print()
    print("DEATH ANALYSIS")
    print("==============")
    print(f"Avg Deaths by Poison:   {report.avg_deaths_by_poison:.2f}")
    print(f"Poison Death Rate:      {report.poison_death_rate * 100:.1f}% of all deaths")
    print()
    print("SCORE DISTRIBUTION")
    print("==================")
    for p, value in report.percentiles.items():
        print(f"{p:2d}th percentile:        {value:.0f}")
    print()
    print("BALANCE SCORE")
    print("=============")
    print(f"Overall Rating: {rating:.1f} / 100")
    for line in feedback:
        print(f"  - {line}")
    print()
    print(f"Target: 200-350 ticks/life | Actual: {report.ticks_per_life:.0f} ticks/life")
    if rating >= 80:
        print("VERDICT: Game is well-balanced and ready!")
    elif rating >= 60:
        print("VERDICT: Game is playable but needs minor tuning")
    else:
        print("VERDICT: Game needs significant rebalancing")


def run(games: int, seed: int = None, max_ticks: int = MAX_TICKS) -> BalanceReport:
    rng = random.Random(seed)
    results = []
    for i in range(games):
        results.append(simulate_game(rng, max_ticks))
        if (i + 1) % 100 == 0:
            logger.info(f"Progress: {i + 1}/{games} games completed")
    return analyze(results)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Simulate Centipede games and rate the difficulty")
    parser.add_argument('--games', type=int, default=1000)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--max-ticks', type=int, default=MAX_TICKS)
    parser.add_argument('--verbose', action='store_true', help="Log progress and game events")
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level='INFO' if args.verbose else 'WARNING')

    print(f"Simulating {args.games} games with AI player...")
    report = run(args.games, args.seed, args.max_ticks)
    print()
    print_report(report)


if __name__ == "__main__":
    main()
