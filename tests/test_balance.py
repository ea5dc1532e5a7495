"""Tests for the headless balance harness"""

import random

import pytest

from centipede_balance import (
    BalanceReport,
    GameStats,
    ScriptedPlayer,
    analyze,
    balance_score,
    main,
    run,
    simulate_game,
)
from centipede_engine import Game, Segment, Centipede


def stats(score, levels, lives_lost=3, ticks=300, poison=0):
    return GameStats(score=score, lives_lost=lives_lost, levels_completed=levels,
                     ticks_alive=ticks, deaths_by_poison=poison, final_level=levels + 1)


class TestSimulation:

    def test_respects_tick_limit(self):
        result = simulate_game(random.Random(1), max_ticks=50)
        assert result.ticks_alive <= 50
        assert result.final_level >= 1

    def test_deterministic_for_seed(self):
        a = simulate_game(random.Random(7), max_ticks=400)
        b = simulate_game(random.Random(7), max_ticks=400)
        assert a == b

    def test_lives_lost_never_exceed_lives(self):
        result = simulate_game(random.Random(3), max_ticks=5000)
        assert 0 <= result.lives_lost
        assert result.deaths_by_poison <= result.lives_lost

    def test_scripted_player_stays_in_band(self):
        rng = random.Random(5)
        game = Game(rng=random.Random(6))
        player = ScriptedPlayer(rng)
        for _ in range(300):
            player.act(game)
            game.update()
            assert 1 <= game.player.x <= game.width - 2
            assert game.height - 6 <= game.player.y <= game.height - 2

    def test_panic_dodge_steps_away(self):
        game = Game(rng=random.Random(1))
        game.mushrooms = []
        game.centipedes = [Centipede([Segment(30, game.height - 4, 1)])]
        ScriptedPlayer(random.Random(1)).panic_dodge(game)
        assert game.player.x == 24
        assert game.player.y == game.height - 3


class TestAnalyze:

    def test_difficulty_buckets(self):
        report = analyze([stats(100, 0), stats(5000, 5), stats(90000, 12)])
        assert report.total_games == 3
        assert (report.too_hard, report.balanced, report.too_easy) == (1, 1, 1)
        assert report.median_score == 5000
        assert report.avg_lives_lost == 3

    def test_poison_rate(self):
        report = analyze([stats(100, 2, lives_lost=2, poison=1), stats(100, 2, lives_lost=2, poison=0)])
        assert report.poison_death_rate == pytest.approx(0.25)

    def test_no_deaths(self):
        report = analyze([stats(100, 2, lives_lost=0)])
        assert report.poison_death_rate == 0.0

    def test_empty(self):
        with pytest.raises(ValueError):
            analyze([])

    def test_percentiles(self):
        report = analyze([stats(s, 2) for s in range(0, 1000, 10)])
        assert set(report.percentiles) == {10, 25, 50, 75, 90, 95, 99}
        assert report.percentiles[10] < report.percentiles[90]


class TestBalanceScore:

    def test_rating_and_feedback(self):
        report = analyze([stats(100, 0), stats(5000, 5), stats(90000, 12)])
        rating, feedback = balance_score(report)
        assert isinstance(rating, float)
        assert rating <= 100
        assert feedback

    def test_identical_games_penalized(self):
        report = BalanceReport(
            total_games=10, avg_score=1000, median_score=1000, std_score=0,
            avg_lives_lost=2, avg_levels_completed=4, avg_survival_ticks=600,
            avg_deaths_by_poison=0.5, poison_death_rate=0.25,
            too_easy=0, balanced=10, too_hard=0)
        rating, feedback = balance_score(report)
        assert rating == 95.0
        assert "Games too similar - needs more randomness" in feedback


class TestRun:

    def test_run_reports_all_games(self):
        report = run(3, seed=1, max_ticks=200)
        assert report.total_games == 3

    def test_run_is_seeded(self):
        assert run(2, seed=9, max_ticks=300) == run(2, seed=9, max_ticks=300)

    def test_main_prints_report(self, capsys):
        main(["--games", "2", "--seed", "1", "--max-ticks", "100"])
        out = capsys.readouterr().out
        assert "Simulating 2 games" in out
        assert "BALANCE SCORE" in out
