"""Tests for the high score file"""

import pytest

from centipede_scores import (
    MAX_ENTRIES,
    HighScore,
    HighScoreError,
    HighScoreStore,
    clean_name,
)


@pytest.fixture
def store(tmp_path):
    return HighScoreStore(str(tmp_path / "highscores.txt"))


class TestLoad:

    def test_missing_file_is_empty(self, store):
        assert store.load() == []

    def test_sorted_best_first(self, tmp_path):
        path = tmp_path / "scores.txt"
        path.write_text("ann,300\nbob,1200\ncy,50")
        scores = HighScoreStore(str(path)).load()
        assert [s.name for s in scores] == ["bob", "ann", "cy"]

    def test_malformed_lines_are_skipped(self, tmp_path):
        path = tmp_path / "scores.txt"
        path.write_text("ann,300\ngarbage\nbob,lots\n\nx,y,z\ncy,50\n")
        scores = HighScoreStore(str(path)).load()
        assert scores == [HighScore("ann", 300), HighScore("cy", 50)]

    def test_only_top_entries(self, tmp_path):
        path = tmp_path / "scores.txt"
        path.write_text("\n".join(f"p{i},{i * 10}" for i in range(15)))
        scores = HighScoreStore(str(path)).load()
        assert len(scores) == MAX_ENTRIES
        assert scores[0].score == 140
        assert scores[-1].score == 50


class TestSave:

    def test_save_writes_flat_file(self, store):
        store.save("ann", 300)
        store.save("bob", 1200)
        with open(store.path, encoding="utf-8") as f:
            assert f.read() == "bob,1200\nann,300"

    def test_save_returns_table(self, store):
        table = store.save("ann", 300)
        assert table == [HighScore("ann", 300)]

    def test_save_keeps_top_ten(self, store):
        for i in range(12):
            store.save(f"p{i}", i)
        scores = store.load()
        assert len(scores) == MAX_ENTRIES
        assert [s.score for s in scores] == list(range(11, 1, -1))

    def test_save_cleans_name(self, store):
        store.save("  Mr,Very Long Name  ", 10)
        assert store.load()[0].name == "MrVery Lon"

    def test_unwritable_path(self, tmp_path):
        store = HighScoreStore(str(tmp_path))
        with pytest.raises(HighScoreError):
            store.save("ann", 100)


class TestQualifies:

    def test_any_score_fits_a_short_table(self, store):
        store.save("ann", 500)
        assert store.qualifies(0)

    def test_full_table(self, store):
        for i in range(MAX_ENTRIES):
            store.save(f"p{i}", (i + 1) * 100)
        assert not store.qualifies(100)
        assert store.qualifies(101)


@pytest.mark.parametrize("raw,cleaned", [
    ("ann", "ann"),
    ("  ann  ", "ann"),
    ("a,n,n", "ann"),
    ("abcdefghijklmnop", "abcdefghij"),
    ("", ""),
])
def test_clean_name(raw, cleaned):
    assert clean_name(raw) == cleaned
