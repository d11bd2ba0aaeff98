"""
Pure obstacle logic for Whirlbird — no rendering dependency.
Used by the game session, the headless simulator, and tests.

Play-field: x in [-10, 10], y in [-2, 10]. Obstacles spawn far away at
negative z and travel toward the player at z = 0.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence

# ─────────────────────────────────────────
# Layout
# ─────────────────────────────────────────
LANES = (-6.0, -3.0, 0.0, 3.0, 6.0)
LANE_COUNT = len(LANES)
GATE_Y = -2.0

# Opening of a gate: horizontal half-width, height above GATE_Y
GATE_HALF_W = 1.8
GATE_OPEN_H = 3.2

SPAWN_DISTANCE = 100.0
DESPAWN_DISTANCE = 14.0
SPAWN_INTERVAL = 2.2  # seconds, constant regardless of difficulty
BASE_SPEED = 18.0

MAX_PATTERN = 8

# ─────────────────────────────────────────
# Player
# ─────────────────────────────────────────
PLAYER_START = (0.0, 1.5, 0.0)
PLAYER_SIZE = 0.8
PLAYER_MIN_X, PLAYER_MAX_X = -8.0, 8.0
PLAYER_MIN_Y, PLAYER_MAX_Y = -1.0, 6.0
MOVE_SPEED = 10.0
LERP_FACTOR = 6.0


class ObstacleType(enum.Enum):
    GATE = "gate"
    RING = "ring"
    TREE = "tree"


# ─────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────

@dataclass
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def set(self, x: float, y: float, z: float) -> "Vec3":
        self.x, self.y, self.z = float(x), float(y), float(z)
        return self

    def copy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.z)


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding volume. Touching faces count as intersecting."""
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @classmethod
    def around(cls, center: Vec3, lo: Sequence[float], hi: Sequence[float]) -> "Box":
        return cls(
            center.x + lo[0], center.y + lo[1], center.z + lo[2],
            center.x + hi[0], center.y + hi[1], center.z + hi[2],
        )

    def expand_by_scalar(self, s: float) -> "Box":
        return Box(
            self.min_x - s, self.min_y - s, self.min_z - s,
            self.max_x + s, self.max_y + s, self.max_z + s,
        )

    def intersects(self, other: "Box") -> bool:
        return not (
            other.max_x < self.min_x or other.min_x > self.max_x
            or other.max_y < self.min_y or other.min_y > self.max_y
            or other.max_z < self.min_z or other.min_z > self.max_z
        )


# ─────────────────────────────────────────
# Renderable handles
# ─────────────────────────────────────────

class Renderable(Protocol):
    position: Vec3
    visible: bool

    def clone(self) -> "Renderable": ...
    def bounds(self) -> Box: ...


class Scene(Protocol):
    def add(self, handle: Renderable) -> None: ...
    def remove(self, handle: Renderable) -> None: ...


@dataclass
class Prop:
    """Headless renderable: a position plus local extents around it."""
    lo: tuple[float, float, float]
    hi: tuple[float, float, float]
    position: Vec3 = field(default_factory=Vec3)
    visible: bool = False

    def clone(self) -> "Prop":
        return Prop(self.lo, self.hi, self.position.copy(), self.visible)

    def bounds(self) -> Box:
        return Box.around(self.position, self.lo, self.hi)


class HeadlessScene:
    """Scene that only tracks membership. Stands in for a 3D scene graph."""

    def __init__(self):
        self._members: dict[int, Renderable] = {}

    def add(self, handle):
        self._members[id(handle)] = handle

    def remove(self, handle):
        self._members.pop(id(handle), None)

    def __contains__(self, handle):
        return id(handle) in self._members

    def __len__(self):
        return len(self._members)


# Gates and trees stand on their base, rings float around their centre.
TEMPLATE_EXTENTS = {
    ObstacleType.GATE: ((-1.75, 0.0, -0.3), (1.75, 3.5, 0.3)),
    ObstacleType.RING: ((-0.6, -0.6, -0.15), (0.6, 0.6, 0.15)),
    ObstacleType.TREE: ((-0.6, 0.0, -0.6), (0.6, 2.2, 0.6)),
}


def default_templates() -> dict[ObstacleType, Prop]:
    return {kind: Prop(lo, hi) for kind, (lo, hi) in TEMPLATE_EXTENTS.items()}


# ─────────────────────────────────────────
# Obstacles
# ─────────────────────────────────────────

@dataclass
class ObstacleInstance:
    handle: Renderable
    type: ObstacleType
    lane: float
    hit_box: Box
    passed: bool = False
    # Present only for gates
    open_min_y: float | None = None
    open_max_y: float | None = None

    @property
    def z(self) -> float:
        return self.handle.position.z


@dataclass(frozen=True)
class ObstacleCallbacks:
    on_pass: Callable[[], None]
    on_miss: Callable[[], None]


@dataclass
class ObstacleOptions:
    speed: float = BASE_SPEED
    spawn_distance: float = SPAWN_DISTANCE
    despawn_distance: float = DESPAWN_DISTANCE
    spawn_interval: float = SPAWN_INTERVAL


class ObstaclePool:
    """Per-type free lists of inactive handles."""

    def __init__(self, scene: Scene, templates: dict[ObstacleType, Renderable]):
        missing = [t.value for t in ObstacleType if t not in templates]
        if missing:
            raise ValueError(f"Missing templates for: {missing}")
        self._scene = scene
        self._templates = dict(templates)
        self._buckets: dict[ObstacleType, list[Renderable]] = {t: [] for t in ObstacleType}

    def acquire(self, kind: ObstacleType) -> Renderable:
        """Return an inactive handle; the caller activates and positions it."""
        bucket = self._buckets[kind]
        if bucket:
            return bucket.pop()
        return self._templates[kind].clone()

    def release(self, inst: ObstacleInstance) -> None:
        bucket = self._buckets[inst.type]
        if any(h is inst.handle for h in bucket):
            raise ValueError(f"{inst.type.value} handle released twice")
        inst.handle.visible = False
        self._scene.remove(inst.handle)
        bucket.append(inst.handle)

    def size(self, kind: ObstacleType) -> int:
        return len(self._buckets[kind])

    def contains(self, handle: Renderable) -> bool:
        return any(h is handle for bucket in self._buckets.values() for h in bucket)


def max_pattern_for(difficulty: int) -> int:
    """Number of wave patterns unlocked at a difficulty level."""
    return min(2 + difficulty // 2, MAX_PATTERN)


class ObstacleManager:
    """Wave spawner plus the per-frame motion and judge loop.

    Every wave holds exactly one gate the player must fly through. Hazards
    (rings, trees) are spawned closer to the player than the gate so they
    are met first, and at least two lanes stay free of hazards.
    """

    def __init__(self, scene: Scene, templates: dict[ObstacleType, Renderable] | None = None,
                 options: ObstacleOptions | None = None, rng: random.Random | None = None):
        self.scene = scene
        self.pool = ObstaclePool(scene, templates or default_templates())
        self.options = options or ObstacleOptions()
        self.rng = rng or random.Random()
        self._obstacles: list[ObstacleInstance] = []
        self.spawn_timer = 0.0
        self.wave_index = 0
        self.difficulty = 0

    @property
    def obstacles(self) -> tuple[ObstacleInstance, ...]:
        return tuple(self._obstacles)

    # ---- lifecycle ----------------------------------------------------
    def reset(self):
        for obs in self._obstacles:
            self.pool.release(obs)
        self._obstacles = []
        self.spawn_timer = 0.0
        self.wave_index = 0
        self.difficulty = 0

    def set_speed(self, speed: float):
        self.options.speed = speed

    def set_difficulty(self, level: int):
        self.difficulty = level

    # ---- per-frame ----------------------------------------------------
    def update(self, delta: float, player_pos: Vec3, cb: ObstacleCallbacks):
        self.spawn_timer += delta
        if self.spawn_timer >= self.options.spawn_interval:
            self.spawn_timer = 0.0
            self.spawn_wave()

        for obs in self._obstacles:
            obs.handle.position.z += self.options.speed * delta
            obs.hit_box = obs.handle.bounds()

            if obs.passed or obs.z < player_pos.z:
                continue
            obs.passed = True
            if obs.type is not ObstacleType.GATE:
                continue

            within_x = abs(obs.handle.position.x - player_pos.x) < GATE_HALF_W
            within_y = obs.open_min_y <= player_pos.y <= obs.open_max_y
            if within_x and within_y:
                cb.on_pass()
            else:
                # Flew over, around, or into the pillars
                cb.on_miss()

        keep = []
        for obs in self._obstacles:
            if obs.z > self.options.despawn_distance:
                self.pool.release(obs)
            else:
                keep.append(obs)
        self._obstacles = keep

    def check_collision(self, player_box: Box) -> bool:
        for obs in self._obstacles:
            if obs.type is ObstacleType.GATE:
                continue
            if player_box.intersects(obs.hit_box):
                return True
        return False

    # ---- wave patterns ------------------------------------------------
    def spawn_wave(self):
        wave = self.wave_index
        self.wave_index += 1
        occupied: set[float] = set()
        pattern = wave % max_pattern_for(self.difficulty)

        if pattern == 0:
            # Pure gate
            self._spawn(ObstacleType.GATE, LANES[2], GATE_Y, occupied)

        elif pattern == 1:
            # Off-centre gate
            self._spawn(ObstacleType.GATE, self._pick((LANES[1], LANES[3])), GATE_Y, occupied)

        elif pattern == 2:
            # Gate + one tree on approach
            self._spawn(ObstacleType.GATE, self._pick(LANES[1:4]), GATE_Y, occupied)
            lane = self._pick_clear(occupied)
            if lane is not None:
                self._spawn_ahead(ObstacleType.TREE, lane, GATE_Y, 8)

        elif pattern == 3:
            # Centre gate, trees flanking
            self._spawn(ObstacleType.GATE, LANES[2], GATE_Y, occupied)
            self._spawn_ahead(ObstacleType.TREE, LANES[0], GATE_Y, 6)
            self._spawn_ahead(ObstacleType.TREE, LANES[4], GATE_Y, 6)

        elif pattern == 4:
            # Ring floating in front of another lane
            self._spawn(ObstacleType.GATE, self._pick(LANES[1:4]), GATE_Y, occupied)
            lane = self._pick_clear(occupied)
            if lane is not None:
                self._spawn_ahead(ObstacleType.RING, lane, 1.5, 12)

        elif pattern == 5:
            # Two trees + a ring, centre gate
            self._spawn(ObstacleType.GATE, LANES[2], GATE_Y, occupied)
            self._spawn_ahead(ObstacleType.TREE, LANES[0], GATE_Y, 10)
            self._spawn_ahead(ObstacleType.TREE, LANES[4], GATE_Y, 10)
            self._spawn_ahead(ObstacleType.RING, self._pick((LANES[1], LANES[3])), 2.0, 15)

        elif pattern == 6:
            # Ring guards the gate lane from above, tree on a side lane
            gate_lane = self._pick(LANES[1:4])
            self._spawn(ObstacleType.GATE, gate_lane, GATE_Y, occupied)
            self._spawn_ahead(ObstacleType.RING, gate_lane, 3.5, 14)
            lane = self._pick_clear(occupied)
            if lane is not None:
                self._spawn_ahead(ObstacleType.TREE, lane, GATE_Y, 8)

        elif pattern == 7:
            # Gauntlet: tree corridor, ring, tree, gate at the end
            self._spawn(ObstacleType.GATE, LANES[2], GATE_Y, occupied)
            self._spawn_ahead(ObstacleType.TREE, LANES[0], GATE_Y, 10)
            self._spawn_ahead(ObstacleType.TREE, LANES[4], GATE_Y, 10)
            side = self._pick((LANES[1], LANES[3]))
            self._spawn_ahead(ObstacleType.RING, side, 2.0, 18)
            self._spawn_ahead(ObstacleType.TREE, side, GATE_Y, 22)

        else:
            self._spawn(ObstacleType.GATE, LANES[2], GATE_Y, occupied)

    # ---- spawn helpers ------------------------------------------------
    def _activate(self, kind: ObstacleType, x: float, y: float, z: float) -> ObstacleInstance:
        handle = self.pool.acquire(kind)
        handle.position.set(x, y, z)
        handle.visible = True
        self.scene.add(handle)
        inst = ObstacleInstance(handle=handle, type=kind, lane=x, hit_box=handle.bounds())
        self._obstacles.append(inst)
        return inst

    def _spawn(self, kind: ObstacleType, x: float, y: float, occupied: set[float]):
        inst = self._activate(kind, x, y, -self.options.spawn_distance)
        occupied.add(x)
        if kind is ObstacleType.GATE:
            inst.open_min_y = y
            inst.open_max_y = y + GATE_OPEN_H

    def _spawn_ahead(self, kind: ObstacleType, x: float, y: float, z_ahead: float):
        """Spawn a hazard z_ahead units nearer to the player than the spawn plane."""
        self._activate(kind, x, y, -(self.options.spawn_distance - z_ahead))

    def _pick(self, seq):
        return seq[self.rng.randrange(len(seq))]

    def _pick_clear(self, occupied: set[float]) -> float | None:
        free = [lane for lane in LANES if lane not in occupied]
        return self._pick(free) if free else None


# ─────────────────────────────────────────
# Player
# ─────────────────────────────────────────

def _clamp(v, lo, hi):
    return max(lo, min(hi, v))


class Player:
    def __init__(self):
        self.position = Vec3(*PLAYER_START)
        self.target = Vec3(*PLAYER_START)

    def reset(self):
        self.position.set(*PLAYER_START)
        self.target.set(*PLAYER_START)

    def steer(self, dx: int, dy: int, dt: float):
        """Move the target. dx/dy in {-1, 0, 1}, positive = right/up."""
        self.nudge(dx * MOVE_SPEED * dt, dy * MOVE_SPEED * dt)

    def nudge(self, dx: float, dy: float):
        self.target.x = _clamp(self.target.x + dx, PLAYER_MIN_X, PLAYER_MAX_X)
        self.target.y = _clamp(self.target.y + dy, PLAYER_MIN_Y, PLAYER_MAX_Y)

    def update(self, dt: float):
        self.position.x += (self.target.x - self.position.x) * LERP_FACTOR * dt
        self.position.y += (self.target.y - self.position.y) * LERP_FACTOR * dt

    def box(self, margin: float = 0.0) -> Box:
        h = PLAYER_SIZE / 2
        return Box.around(self.position, (-h, -h, -h), (h, h, h)).expand_by_scalar(-margin)
