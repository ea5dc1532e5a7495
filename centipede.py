#!/usr/bin/env python3
"""
CENTIPEDE - Terminal arcade shooter

Controls:
  Arrow keys / WASD - Move gun
  Space - Shoot (hold for rapid fire)
  P - Pause/Resume
  R - Restart after game over
  Q - Quit
"""

import argparse
import curses
import os
import random
import sys
import time
from enum import Enum

from loguru import logger
from pynput import keyboard

from centipede_engine import FLY_POINTS, HEAD_POINTS, Cell, Game
from centipede_scores import DEFAULT_HIGH_SCORE_FILE, MAX_NAME_LENGTH, HighScoreError, HighScoreStore
from centipede_synth import RetroSynth

TICK_INTERVAL = 0.05  # One simulation step every 50 ms
SHOOT_EVERY_FRAMES = 2  # Held space fires every 100 ms
BOARD_WIDTH = 50
BOARD_HEIGHT = 28
HUD_ROWS = 6  # Title, two border rows, stats, controls, status

TITLE_ART = [
    "  _____ ______ _   _ _______ _____ _____  ______ _____  ______ ",
    " / ____|  ____| \\ | |__   __|_   _|  __ \\|  ____|  __ \\|  ____|",
    "| |    | |__  |  \\| |  | |    | | | |__) | |__  | |  | | |__   ",
    "| |    |  __| | . ` |  | |    | | |  ___/|  __| | |  | |  __|  ",
    "| |____| |____| |\\  |  | |   _| |_| |    | |____| |__| | |____ ",
    " \\_____|______|_| \\_|  |_|  |_____|_|    |______|_____/|______|",
]


class GameState(Enum):
    """Front-end screens"""
    SPLASH = 1
    PLAYING = 2
    NAME_ENTRY = 3
    GAME_OVER = 4


# Color pair ids
PAIR_DEFAULT = 1
PAIR_PLAYER = 2
PAIR_HEAD = 3
PAIR_BODY = 4
PAIR_MUSHROOM = 5
PAIR_POISON = 6
PAIR_BULLET = 7
PAIR_FLY = 8
PAIR_FLEA = 9
PAIR_TRAIL = 10
PAIR_EXPLOSION = 11
PAIR_STATS = 12
PAIR_TITLE = 13
PAIR_BORDER = 14

# Cell -> (glyph, color pair, bold)
GLYPHS = {
    Cell.EMPTY: (' ', PAIR_DEFAULT, False),
    Cell.MUSHROOM_4: ('M', PAIR_MUSHROOM, False),
    Cell.MUSHROOM_3: ('m', PAIR_MUSHROOM, False),
    Cell.MUSHROOM_2: ('*', PAIR_MUSHROOM, False),
    Cell.MUSHROOM_1: ('.', PAIR_MUSHROOM, False),
    Cell.POISON_MUSHROOM: ('X', PAIR_POISON, True),
    Cell.FLY: ('✺', PAIR_FLY, False),
    Cell.WING_TRAIL: ('~', PAIR_TRAIL, False),
    Cell.WING_DUST: ('.', PAIR_TRAIL, False),
    Cell.FLEA: ('┃', PAIR_FLEA, True),
    Cell.HEAD: ('@', PAIR_HEAD, True),
    Cell.BODY: ('O', PAIR_BODY, False),
    Cell.EXPLOSION_0: ('✶', PAIR_EXPLOSION, False),
    Cell.EXPLOSION_1: ('✸', PAIR_EXPLOSION, False),
    Cell.EXPLOSION_2: ('✹', PAIR_EXPLOSION, False),
    Cell.EXPLOSION_3: ('✺', PAIR_EXPLOSION, False),
    Cell.BULLET: ('|', PAIR_BULLET, False),
    Cell.PLAYER: ('A', PAIR_PLAYER, True),
}


def configure_logging(level: str = 'INFO', log_file: str = None):
    """Route loguru away from the terminal; curses owns the screen"""
    logger.remove()
    if log_file:
        logger.add(log_file, level=level.upper(), rotation='1 MB')


class TerminalGame:
    """Curses driver: owns the engine, the screen and the keyboard"""

    def __init__(self, stdscr, store: HighScoreStore, seed: int = None, mute: bool = False):
        self.stdscr = stdscr
        self.store = store
        self.rng = random.Random(seed)
        self.game = Game(BOARD_WIDTH, BOARD_HEIGHT, rng=self.rng)
        self.state = GameState.SPLASH
        self.paused = False
        self.frame_count = 0
        self.high_scores = self.store.load()
        self.synth = RetroSynth(enabled=not mute)

        self.height, self.width = stdscr.getmaxyx()
        self.pad = curses.newpad(self.height, self.width)

        # Held-space tracking; curses only reports presses, not releases
        self.space_held = False
        self.keyboard_listener = keyboard.Listener(
            on_press=self._on_key_press,
            on_release=self._on_key_release)
        self.keyboard_listener.start()

        curses.curs_set(0)
        stdscr.nodelay(1)
        stdscr.timeout(0)
        self._init_colors()

    def _init_colors(self):
        curses.start_color()
        curses.use_default_colors()
        if curses.COLORS >= 256:
            palette = {
                PAIR_DEFAULT: 252, PAIR_PLAYER: 10, PAIR_HEAD: 13, PAIR_BODY: 93,
                PAIR_MUSHROOM: 2, PAIR_POISON: 201, PAIR_BULLET: 11, PAIR_FLY: 208,
                PAIR_FLEA: 226, PAIR_TRAIL: 240, PAIR_EXPLOSION: 196, PAIR_STATS: 86,
                PAIR_TITLE: 205, PAIR_BORDER: 62,
            }
        else:
            palette = {
                PAIR_DEFAULT: curses.COLOR_WHITE, PAIR_PLAYER: curses.COLOR_GREEN,
                PAIR_HEAD: curses.COLOR_MAGENTA, PAIR_BODY: curses.COLOR_BLUE,
                PAIR_MUSHROOM: curses.COLOR_GREEN, PAIR_POISON: curses.COLOR_MAGENTA,
                PAIR_BULLET: curses.COLOR_YELLOW, PAIR_FLY: curses.COLOR_RED,
                PAIR_FLEA: curses.COLOR_YELLOW, PAIR_TRAIL: curses.COLOR_WHITE,
                PAIR_EXPLOSION: curses.COLOR_RED, PAIR_STATS: curses.COLOR_CYAN,
                PAIR_TITLE: curses.COLOR_MAGENTA, PAIR_BORDER: curses.COLOR_BLUE,
            }
        for pair, color in palette.items():
            curses.init_pair(pair, color, -1)

    def _on_key_press(self, key):
        if key == keyboard.Key.space:
            self.space_held = True

    def _on_key_release(self, key):
        if key == keyboard.Key.space:
            self.space_held = False

    def _addstr(self, win, y, x, text, attr=0):
        """Write text, clipping at the window edge"""
        if y < 0 or y >= self.height or x >= self.width:
            return
        text = text[:max(0, self.width - x - 1)]
        try:
            win.addstr(y, max(0, x), text, attr)
        except curses.error:
            pass  # Bottom-right cell can't be written without scrolling

    def _centered(self, win, y, text, attr=0):
        self._addstr(win, y, max(0, (self.width - len(text)) // 2), text, attr)

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    def show_splash(self) -> bool:
        """Title screen with high scores. Returns False if the player quit."""
        self.high_scores = self.store.load()
        flash = True
        while True:
            self.pad.erase()
            y = 1
            for line in TITLE_ART:
                self._centered(self.pad, y, line, curses.color_pair(PAIR_PLAYER) | curses.A_BOLD)
                y += 1
            y += 1
            self._centered(self.pad, y, "@OOOOOOOOO   Centipede      ✺~.  Fly (200 pts)   ┃  Flea (150 pts)",
                           curses.color_pair(PAIR_HEAD))
            y += 2
            self._centered(self.pad, y, "═══ HIGH SCORES ═══", curses.color_pair(PAIR_STATS) | curses.A_BOLD)
            y += 1
            for i, entry in enumerate(self.high_scores):
                self._centered(self.pad, y + i, f"{i + 1:2d}. {entry.name:<10s}  {entry.score:6d}",
                               curses.color_pair(PAIR_STATS))
            y += max(len(self.high_scores), 1) + 1
            if flash:
                self._centered(self.pad, y, ">>> PRESS ANY KEY TO CONTINUE <<<",
                               curses.color_pair(PAIR_BULLET) | curses.A_BOLD)
            self.pad.refresh(0, 0, 0, 0, self.height - 1, self.width - 1)

            key = self.stdscr.getch()
            if key in (ord('q'), ord('Q')):
                return False
            if key != -1:
                return True
            flash = not flash
            time.sleep(0.4)

    def prompt_for_name(self) -> str:
        """Blocking name entry after a qualifying game"""
        self.stdscr.nodelay(0)
        curses.curs_set(1)
        name = ""
        while True:
            self.stdscr.erase()
            top = max(1, self.height // 2 - 5)
            self._centered(self.stdscr, top, "NEW HIGH SCORE!", curses.color_pair(PAIR_EXPLOSION) | curses.A_BOLD)
            self._centered(self.stdscr, top + 2, f"Your Score: {self.game.score}", curses.color_pair(PAIR_STATS))
            self._centered(self.stdscr, top + 4, f"Enter your name (max {MAX_NAME_LENGTH} chars):",
                           curses.color_pair(PAIR_BULLET))
            self._centered(self.stdscr, top + 5, name + "_", curses.color_pair(PAIR_PLAYER) | curses.A_BOLD)
            self._centered(self.stdscr, top + 7, "Press [Enter] to save", curses.color_pair(PAIR_TRAIL))
            self.stdscr.refresh()

            ch = self.stdscr.getch()
            if ch in (10, 13, curses.KEY_ENTER):
                if name:
                    break
            elif ch in (8, 127, curses.KEY_BACKSPACE):
                name = name[:-1]
            elif 32 < ch < 127 and chr(ch) != ',' and len(name) < MAX_NAME_LENGTH:
                name += chr(ch)

        curses.curs_set(0)
        self.stdscr.nodelay(1)
        self.stdscr.timeout(0)
        return name

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_input(self) -> bool:
        """Drain pending keys. Returns False when the player quits."""
        while True:
            key = self.stdscr.getch()
            if key == -1:
                return True
            if key in (ord('q'), ord('Q')):
                return False

            if self.state == GameState.GAME_OVER:
                if key in (ord('r'), ord('R')):
                    self.restart()
                continue

            if self.state != GameState.PLAYING or not self.game.is_playing:
                continue

            if key in (ord('p'), ord('P')):
                self.paused = not self.paused
            elif self.paused:
                continue
            elif key in (curses.KEY_LEFT, ord('a'), ord('A')):
                self.game.move_x(-1)
            elif key in (curses.KEY_RIGHT, ord('d'), ord('D')):
                self.game.move_x(1)
            elif key in (curses.KEY_UP, ord('w'), ord('W')):
                self.game.move_y(-1)
            elif key in (curses.KEY_DOWN, ord('s'), ord('S')):
                self.game.move_y(1)
            elif key == ord(' '):
                self.game.shoot()
                self.synth.play('shoot')

    def restart(self):
        self.game.reset_game()
        self.state = GameState.PLAYING
        self.paused = False
        logger.info("New game started")

    # ------------------------------------------------------------------
    # Simulation step
    # ------------------------------------------------------------------

    def step(self):
        """One tick of the engine plus sound cues derived from what changed"""
        if self.space_held and self.frame_count % SHOOT_EVERY_FRAMES == 0:
            self.game.shoot()
            self.synth.play('shoot')

        score, lives, level = self.game.score, self.game.lives, self.game.level
        self.game.update()

        gained = self.game.score - score
        if gained >= FLY_POINTS:
            self.synth.play('fly_hit')
        elif gained >= HEAD_POINTS:
            self.synth.play('head_hit')
        elif gained > 0:
            self.synth.play('explosion')

        if self.game.game_over:
            self.synth.play('game_over')
        elif self.game.lives < lives:
            self.synth.play('lose_life')
        elif self.game.lives > lives:
            self.synth.play('bonus_life')
        if self.game.level > level:
            self.synth.play('level_up')

        if not self.game.is_playing:
            if self.game.score > 0 and self.store.qualifies(self.game.score):
                self.state = GameState.NAME_ENTRY
            else:
                self.state = GameState.GAME_OVER

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw(self):
        """Draw the board and HUD"""
        self.pad.erase()
        game = self.game

        self._addstr(self.pad, 0, 0, "CENTIPEDE", curses.color_pair(PAIR_TITLE) | curses.A_BOLD)

        border = curses.color_pair(PAIR_BORDER)
        self._addstr(self.pad, 1, 0, "┌" + "─" * game.width + "┐", border)
        for y, row in enumerate(game.render_grid()):
            self._addstr(self.pad, y + 2, 0, "│", border)
            for x, cell in enumerate(row):
                glyph, pair, bold = GLYPHS[cell]
                attr = curses.color_pair(pair) | (curses.A_BOLD if bold else 0)
                self._addstr(self.pad, y + 2, x + 1, glyph, attr)
            self._addstr(self.pad, y + 2, game.width + 1, "│", border)
        self._addstr(self.pad, game.height + 2, 0, "└" + "─" * game.width + "┘", border)

        hud_y = game.height + 3
        stats = (f"Score: {game.score}  |  Lives: {'♥' * game.lives}  |  Bullets: {game.active_bullets}"
                 f"  |  Segments: {len(game.segments)}  |  Flies: {game.active_flies}  |  Level: {game.level}")
        self._addstr(self.pad, hud_y, 0, stats, curses.color_pair(PAIR_STATS) | curses.A_BOLD)
        self._addstr(self.pad, hud_y + 1, 0,
                     "[←→ A/D] Move  [↑↓ W/S] Up/Down  [Space] Fire  [P] Pause  [Q] Quit",
                     curses.color_pair(PAIR_TRAIL))

        status = ""
        status_attr = curses.color_pair(PAIR_EXPLOSION) | curses.A_BOLD
        if game.game_over:
            status = "GAME OVER! Press [R] to restart"
        elif game.won:
            status = "YOU WIN! Press [R] to play again"
            status_attr = curses.color_pair(PAIR_PLAYER) | curses.A_BOLD
        elif game.respawning:
            status = f"RESPAWNING... {game.respawn_timer // 10}"
        elif self.paused:
            status = "PAUSED"
            status_attr = curses.color_pair(PAIR_BULLET) | curses.A_BOLD
        self._addstr(self.pad, hud_y + 2, 0, status, status_attr)

        self.pad.refresh(0, 0, 0, 0, self.height - 1, self.width - 1)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self):
        """Splash, then play until the player quits"""
        if not self.show_splash():
            return
        self.restart()

        while True:
            start_time = time.time()

            if not self.handle_input():
                break

            if self.state == GameState.PLAYING and not self.paused:
                self.step()
                self.frame_count += 1

            if self.state == GameState.NAME_ENTRY:
                name = self.prompt_for_name()
                try:
                    self.high_scores = self.store.save(name, self.game.score)
                except HighScoreError:
                    pass  # Already logged; the game goes on without the entry
                self.state = GameState.GAME_OVER

            self.draw()

            elapsed = time.time() - start_time
            sleep_time = TICK_INTERVAL - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

    def close(self):
        self.keyboard_listener.stop()
        self.synth.stop()


def main(stdscr, args):
    """Entry point for curses wrapper"""
    stdscr.clear()
    stdscr.refresh()

    height, width = stdscr.getmaxyx()
    need_height, need_width = BOARD_HEIGHT + HUD_ROWS, BOARD_WIDTH + 2
    if height < need_height or width < need_width:
        curses.endwin()
        print(f"Error: Terminal size must be at least {need_width}x{need_height}.")
        print(f"Current size: {width}x{height}")
        sys.exit(1)

    game = TerminalGame(stdscr, HighScoreStore(args.scores), seed=args.seed, mute=args.mute)
    try:
        game.run()
    finally:
        game.close()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Terminal Centipede")
    parser.add_argument('--seed', type=int, default=None, help="Random seed for a replayable game")
    parser.add_argument('--scores', default=os.environ.get('CENTIPEDE_HIGHSCORES', DEFAULT_HIGH_SCORE_FILE),
                        help="High score file")
    parser.add_argument('--mute', action='store_true', help="Disable sound")
    parser.add_argument('--log-file', default=os.environ.get('CENTIPEDE_LOG_FILE'),
                        help="Write logs to this file (logging is off otherwise)")
    parser.add_argument('--log-level', default=os.environ.get('CENTIPEDE_LOG_LEVEL', 'INFO'))
    return parser.parse_args(argv)


def cli():
    args = parse_args()
    configure_logging(args.log_level, args.log_file)
    curses.wrapper(main, args)


if __name__ == "__main__":
    cli()
