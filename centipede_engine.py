"""
Centipede - simulation engine

Owns the whole game state and advances it one tick at a time. No I/O,
no timers, no drawing: a driver calls update() on a fixed cadence,
forwards player intents (move_x, move_y, shoot) and reads render_grid()
plus the score/lives/level counters.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from loguru import logger


# Board defaults
DEFAULT_WIDTH = 50
DEFAULT_HEIGHT = 28
MIN_HEIGHT = 16
STARTING_LIVES = 3

# Scoring
HEAD_POINTS = 100
BODY_POINTS = 10
FLY_POINTS = 200
FLEA_POINTS = 150
MUSHROOM_HIT_POINTS = 1
MUSHROOM_DESTROY_POINTS = 4
BONUS_LIFE_SCORE = 20000  # Extra life every 20k points

# Spawning
INITIAL_MUSHROOMS = 25
LEVEL_MUSHROOMS = 10  # Added at the start of every new level
MUSHROOM_HEALTH = 4
MUSHROOM_SPAWN_ATTEMPTS = 10  # Random draws allowed per mushroom before giving up
FLY_SPAWN_CHANCE = 0.05
FLY_SPEED = 2
FLEA_SPAWN_CHANCE = 0.03
FLEA_MUSHROOM_THRESHOLD = 15  # Fleas only show up when the field is thin
FLEA_MUSHROOM_CHANCE = 0.4
FLEA_MUSHROOM_MIN_ROW = 5
EXPLOSION_FRAMES = 4

# Centipede
FIRST_CENTIPEDE_LENGTH = 10
SECOND_CENTIPEDE_LENGTH = 8
CENTIPEDE_START_X = 5
SECOND_CENTIPEDE_START_X = 25
CENTIPEDE_START_Y = 2
POISON_DROP = 3  # Rows fallen when hitting a poisoned mushroom

# Narrowest board that still fits the second centipede inside the walls
MIN_WIDTH = SECOND_CENTIPEDE_START_X + SECOND_CENTIPEDE_LENGTH + 1

# Player / respawn
PLAYER_BAND_ROWS = 6  # Player may roam the bottom rows height-6 .. height-2
RESPAWN_TICKS = 30
SAFETY_BAND_ROWS = 10  # Segments this close to the bottom are cleared on respawn


class Cell(Enum):
    """Symbols produced by render_grid()"""
    EMPTY = 0
    MUSHROOM_4 = 1
    MUSHROOM_3 = 2
    MUSHROOM_2 = 3
    MUSHROOM_1 = 4
    POISON_MUSHROOM = 5
    FLY = 6
    WING_TRAIL = 7
    WING_DUST = 8
    FLEA = 9
    HEAD = 10
    BODY = 11
    EXPLOSION_0 = 12
    EXPLOSION_1 = 13
    EXPLOSION_2 = 14
    EXPLOSION_3 = 15
    BULLET = 16
    PLAYER = 17


MUSHROOM_CELLS = {
    4: Cell.MUSHROOM_4,
    3: Cell.MUSHROOM_3,
    2: Cell.MUSHROOM_2,
    1: Cell.MUSHROOM_1,
}

EXPLOSION_CELLS = [Cell.EXPLOSION_0, Cell.EXPLOSION_1, Cell.EXPLOSION_2, Cell.EXPLOSION_3]


@dataclass
class GameObject:
    """Base class for everything that sits on the grid"""
    x: int
    y: int


class Player(GameObject):
    """The player's gun"""


class Segment(GameObject):
    """One body cell of a centipede"""
    def __init__(self, x: int, y: int, direction: int = 1, head: bool = False):
        super().__init__(x, y)
        self.direction = direction  # 1 = right, -1 = left
        self.head = head


class Bullet(GameObject):
    """Player's bullet, travels straight up"""
    def __init__(self, x: int, y: int):
        super().__init__(x, y)
        self.active = True

    def update(self):
        if not self.active:
            return
        self.y -= 1
        if self.y < 0:
            self.active = False


class Mushroom(GameObject):
    """Destructible obstacle"""
    def __init__(self, x: int, y: int, health: int = MUSHROOM_HEALTH, poisoned: bool = False):
        super().__init__(x, y)
        self.health = health
        self.poisoned = poisoned  # Poisoned mushrooms send the centipede down a chute


class Fly(GameObject):
    """Fast horizontal flyer that poisons mushrooms it touches"""
    def __init__(self, x: int, y: int, direction: int = 1):
        super().__init__(x, y)
        self.direction = direction
        self.active = True
        self.wing_flap = False

    def update(self, width: int):
        if not self.active:
            return
        self.x += self.direction * FLY_SPEED
        self.wing_flap = not self.wing_flap
        if self.x < 0 or self.x >= width:
            self.active = False


class Flea(GameObject):
    """Drops straight down, seeding mushrooms on the way"""
    def __init__(self, x: int, y: int):
        super().__init__(x, y)
        self.active = True


class Explosion(GameObject):
    """Short-lived hit effect"""
    def __init__(self, x: int, y: int, max_frame: int = EXPLOSION_FRAMES):
        super().__init__(x, y)
        self.frame = 0
        self.max_frame = max_frame
        self.active = True

    def update(self):
        if not self.active:
            return
        self.frame += 1
        if self.frame >= self.max_frame:
            self.active = False


class Centipede:
    """
    One centipede: an ordered run of segments.

    Segments are ordered tail -> head, so segments[-1] is the front of
    movement and is the only one flagged as head.
    """

    def __init__(self, segments: List[Segment]):
        self.segments = list(segments)
        self._restore_head()

    @classmethod
    def spawn(cls, length: int, start_x: int, y: int, direction: int, width: int) -> 'Centipede':
        """Lay out a straight centipede whose head leads in *direction*.

        The run is kept inside columns 1..width-2: it is capped at the
        width of the playfield and shifted left if it would hit the wall.
        """
        length = min(length, width - 2)
        start_x = max(1, min(start_x, width - 1 - length))
        if direction > 0:
            xs = range(start_x, start_x + length)  # Head is the rightmost cell
        else:
            xs = range(start_x + length - 1, start_x - 1, -1)  # Head is the leftmost cell
        return cls([Segment(x, y, direction) for x in xs])

    @property
    def head(self) -> Optional[Segment]:
        return self.segments[-1] if self.segments else None

    def __len__(self):
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def segment_at(self, x: int, y: int) -> Optional[Segment]:
        for seg in self.segments:
            if seg.x == x and seg.y == y:
                return seg
        return None

    def remove(self, segment: Segment):
        self.replace([seg for seg in self.segments if seg is not segment])

    def replace(self, segments: List[Segment]):
        """Swap in a filtered run of segments, keeping exactly one head"""
        self.segments = segments
        self._restore_head()

    def _restore_head(self):
        for seg in self.segments[:-1]:
            seg.head = False
        if self.segments:
            self.segments[-1].head = True


class Game:
    """Authoritative Centipede game state"""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 rng: Optional[random.Random] = None, lives: int = STARTING_LIVES,
                 max_bullets: Optional[int] = None):
        if width < MIN_WIDTH or height < MIN_HEIGHT:
            raise ValueError(f"Board must be at least {MIN_WIDTH}x{MIN_HEIGHT}, got {width}x{height}")
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else random.Random()
        self.starting_lives = lives
        self.max_bullets = max_bullets  # None = unlimited bullets
        self.reset_game()

    def reset_game(self):
        """Reset state for a new game"""
        self.player = Player(*self.spawn_position)
        self.centipedes: List[Centipede] = []
        self.bullets: List[Bullet] = []
        self.mushrooms: List[Mushroom] = []
        self.flies: List[Fly] = []
        self.fleas: List[Flea] = []
        self.explosions: List[Explosion] = []
        self.score = 0
        self.level = 1
        self.lives = self.starting_lives
        self.last_life_score = 0  # Last bonus-life threshold awarded
        self.respawning = False
        self.respawn_timer = 0
        self.game_over = False
        self.won = False  # Never set: clearing a centipede always advances the level
        self.tick_count = 0

        # Two centipedes heading towards each other
        self.spawn_centipede(FIRST_CENTIPEDE_LENGTH)
        self.centipedes.append(Centipede.spawn(
            SECOND_CENTIPEDE_LENGTH, SECOND_CENTIPEDE_START_X, CENTIPEDE_START_Y, -1, self.width))
        self.spawn_mushrooms(INITIAL_MUSHROOMS)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def spawn_position(self):
        return self.width // 2, self.height - 2

    @property
    def segments(self) -> List[Segment]:
        """Every live segment across all centipedes, in update order"""
        return [seg for centipede in self.centipedes for seg in centipede]

    @property
    def active_bullets(self) -> int:
        return sum(1 for b in self.bullets if b.active)

    @property
    def active_flies(self) -> int:
        return sum(1 for f in self.flies if f.active)

    @property
    def is_playing(self) -> bool:
        return not (self.game_over or self.won)

    def mushroom_at(self, x: int, y: int) -> Optional[Mushroom]:
        for mush in self.mushrooms:
            if mush.x == x and mush.y == y:
                return mush
        return None

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def spawn_centipede(self, length: int):
        """Spawn a centipede at the top left, heading right"""
        self.centipedes.append(Centipede.spawn(length, CENTIPEDE_START_X, CENTIPEDE_START_Y, 1, self.width))

    def spawn_mushrooms(self, count: int):
        """Scatter *count* new mushrooms above the player's area.

        Occupied cells are redrawn. Only a nearly full field runs out of
        attempts and gets fewer than *count*.
        """
        placed = 0
        attempts = count * MUSHROOM_SPAWN_ATTEMPTS
        while placed < count and attempts > 0:
            attempts -= 1
            x = self.rng.randrange(self.width - 2) + 1
            y = self.rng.randrange(self.height - 5) + 2
            if self.mushroom_at(x, y) is None:
                self.mushrooms.append(Mushroom(x, y))
                placed += 1
        if placed < count:
            logger.debug(f"Placed {placed} of {count} mushrooms, field is crowded")

    def spawn_fly(self):
        if self.rng.random() < FLY_SPAWN_CHANCE:
            y = self.rng.randrange(self.height - 10) + 3  # Middle of the field
            if self.rng.random() < 0.5:
                self.flies.append(Fly(self.width - 1, y, -1))
            else:
                self.flies.append(Fly(0, y, 1))

    def spawn_flea(self):
        # Fleas replenish a thinned-out mushroom field
        if len(self.mushrooms) < FLEA_MUSHROOM_THRESHOLD and self.rng.random() < FLEA_SPAWN_CHANCE:
            x = self.rng.randrange(self.width - 4) + 2
            self.fleas.append(Flea(x, 2))

    def create_explosion(self, x: int, y: int):
        self.explosions.append(Explosion(x, y))

    def regenerate_mushrooms(self):
        """Restore every mushroom to full health and clear poison"""
        for mush in self.mushrooms:
            mush.health = MUSHROOM_HEALTH
            mush.poisoned = False

    # ------------------------------------------------------------------
    # Player intents
    # ------------------------------------------------------------------

    def move_x(self, dx: int):
        new_x = self.player.x + dx
        if not 1 <= new_x <= self.width - 2:
            return
        if self.mushroom_at(new_x, self.player.y) is not None:
            return
        self.player.x = new_x

    def move_y(self, dy: int):
        new_y = self.player.y + dy
        if not self.height - PLAYER_BAND_ROWS <= new_y <= self.height - 2:
            return
        if self.mushroom_at(self.player.x, new_y) is not None:
            return
        self.player.y = new_y

    def shoot(self):
        if self.max_bullets is not None and self.active_bullets >= self.max_bullets:
            return
        self.bullets.append(Bullet(self.player.x, self.player.y - 1))

    # ------------------------------------------------------------------
    # Lives
    # ------------------------------------------------------------------

    def lose_life(self):
        if self.game_over:
            return
        self.lives -= 1
        if self.lives <= 0:
            self.game_over = True
            logger.info(f"Game over: score {self.score}, level {self.level}")
            return

        logger.debug(f"Life lost at tick {self.tick_count}, {self.lives} left")
        self.respawning = True
        self.respawn_timer = RESPAWN_TICKS
        self.player.x, self.player.y = self.spawn_position
        self.bullets = []
        # Second chance: no poison chutes waiting after a respawn
        self.regenerate_mushrooms()

    def _award_bonus_life(self):
        if self.score >= self.last_life_score + BONUS_LIFE_SCORE:
            self.lives += 1
            self.last_life_score = self.score - (self.score % BONUS_LIFE_SCORE)
            logger.info(f"Bonus life at {self.score} points, {self.lives} lives")

    def _clear_safety_band(self):
        """Drop segments sitting in the rows above the player after a respawn"""
        limit = self.height - SAFETY_BAND_ROWS
        for centipede in self.centipedes:
            centipede.replace([seg for seg in centipede if seg.y < limit])
        self.centipedes = [c for c in self.centipedes if c.segments]

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self):
        """Advance the game by one tick"""
        if self.game_over or self.won:
            return

        self.tick_count += 1

        if self.respawning:
            self.respawn_timer -= 1
            if self.respawn_timer <= 0:
                self.respawning = False
                self._clear_safety_band()
            return  # Everything stays frozen while respawning

        self._award_bonus_life()

        for bullet in self.bullets:
            bullet.update()
        for fly in self.flies:
            fly.update(self.width)
        for flea in self.fleas:
            self._update_flea(flea)

        self._check_fly_mushrooms()
        self._check_flea_player()

        for explosion in self.explosions:
            explosion.update()

        self.spawn_fly()
        self.spawn_flea()

        for centipede in self.centipedes:
            self._update_centipede(centipede)

        for bullet in self.bullets:
            if bullet.active:
                self._resolve_bullet(bullet)

        self._compact()

        if not self.centipedes:
            self._advance_level()

    def _update_flea(self, flea: Flea):
        if not flea.active:
            return
        flea.y += 1

        if self.rng.random() < FLEA_MUSHROOM_CHANCE and flea.y > FLEA_MUSHROOM_MIN_ROW:
            if self.mushroom_at(flea.x, flea.y) is None:
                self.mushrooms.append(Mushroom(flea.x, flea.y))

        if flea.y >= self.height - 2:
            flea.active = False

    def _check_fly_mushrooms(self):
        for fly in self.flies:
            if not fly.active:
                continue
            mush = self.mushroom_at(fly.x, fly.y)
            if mush is not None:
                mush.poisoned = True
                fly.active = False
                self.create_explosion(mush.x, mush.y)

    def _check_flea_player(self):
        for flea in self.fleas:
            if flea.active and flea.x == self.player.x and flea.y == self.player.y:
                self.lose_life()
                flea.active = False

    def _update_centipede(self, centipede: Centipede):
        """Move each segment in order; later segments see earlier moves"""
        survivors = []
        for seg in centipede:
            seg.x += seg.direction

            if seg.x <= 0 or seg.x >= self.width - 1:
                # Hit the edge - drop down and reverse
                seg.y += 1
                seg.direction *= -1
            else:
                mush = self.mushroom_at(seg.x, seg.y)
                if mush is not None:
                    seg.direction *= -1
                    if mush.poisoned:
                        seg.y += POISON_DROP
                        seg.direction *= -1
                    else:
                        seg.y += 1

            if seg.x == self.player.x and seg.y == self.player.y:
                self.lose_life()

            if seg.y >= self.height - 2:
                # Escaped into the player's row: costs a life once, then it's gone
                self.lose_life()
                continue
            survivors.append(seg)

        if len(survivors) != len(centipede):
            centipede.replace(survivors)

    def _resolve_bullet(self, bullet: Bullet):
        """Test one bullet against segments, flies, fleas and mushrooms, in that order"""
        for centipede in self.centipedes:
            seg = centipede.segment_at(bullet.x, bullet.y)
            if seg is not None:
                bullet.active = False
                self.create_explosion(seg.x, seg.y)
                self.score += HEAD_POINTS if seg.head else BODY_POINTS
                centipede.remove(seg)
                return

        for fly in self.flies:
            if fly.active and fly.x == bullet.x and fly.y == bullet.y:
                bullet.active = False
                fly.active = False
                self.create_explosion(fly.x, fly.y)
                self.score += FLY_POINTS
                return

        for flea in self.fleas:
            if flea.active and flea.x == bullet.x and flea.y == bullet.y:
                bullet.active = False
                flea.active = False
                self.create_explosion(flea.x, flea.y)
                self.score += FLEA_POINTS
                return

        mush = self.mushroom_at(bullet.x, bullet.y)
        if mush is not None:
            bullet.active = False
            self.create_explosion(mush.x, mush.y)
            mush.health -= 1
            self.score += MUSHROOM_HIT_POINTS
            if mush.health <= 0:
                self.mushrooms.remove(mush)
                self.score += MUSHROOM_DESTROY_POINTS

    def _compact(self):
        """Drop dead entities so long sessions don't grow without bound"""
        self.bullets = [b for b in self.bullets if b.active]
        self.flies = [f for f in self.flies if f.active]
        self.fleas = [f for f in self.fleas if f.active]
        self.explosions = [e for e in self.explosions if e.active]
        self.centipedes = [c for c in self.centipedes if c.segments]

    def _advance_level(self):
        self.level += 1
        length = FIRST_CENTIPEDE_LENGTH + self.level * 2
        self.spawn_centipede(length)
        self.spawn_mushrooms(LEVEL_MUSHROOMS)
        self.regenerate_mushrooms()
        logger.info(f"Level {self.level}: centipede of {length} segments")

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def render_grid(self) -> List[List[Cell]]:
        """Layered snapshot of the board; later layers win"""
        grid = [[Cell.EMPTY] * self.width for _ in range(self.height)]

        def put(x, y, cell):
            if 0 <= x < self.width and 0 <= y < self.height:
                grid[y][x] = cell

        for mush in self.mushrooms:
            cell = Cell.POISON_MUSHROOM if mush.poisoned else MUSHROOM_CELLS.get(mush.health)
            if cell is not None:
                put(mush.x, mush.y, cell)

        for fly in self.flies:
            if not fly.active:
                continue
            put(fly.x, fly.y, Cell.FLY)
            if fly.wing_flap:
                put(fly.x - fly.direction, fly.y, Cell.WING_TRAIL)
                put(fly.x - fly.direction * 2, fly.y, Cell.WING_DUST)

        for flea in self.fleas:
            if flea.active:
                put(flea.x, flea.y, Cell.FLEA)

        for seg in self.segments:
            put(seg.x, seg.y, Cell.HEAD if seg.head else Cell.BODY)

        for explosion in self.explosions:
            if explosion.active and explosion.frame < len(EXPLOSION_CELLS):
                put(explosion.x, explosion.y, EXPLOSION_CELLS[explosion.frame])

        for bullet in self.bullets:
            if bullet.active:
                put(bullet.x, bullet.y, Cell.BULLET)

        if not self.respawning:
            put(self.player.x, self.player.y, Cell.PLAYER)

        return grid
