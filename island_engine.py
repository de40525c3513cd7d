from __future__ import annotations

import csv
import math
import random
import re
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

Coord = Tuple[int, int]

# 4 axis directions for the walk and ring growth (dx, dy); y grows downward
DIR_VECTORS = {
    "N": (0, -1),
    "E": (1, 0),
    "S": (0, 1),
    "W": (-1, 0),
}
_STEPS: Tuple[Coord, ...] = tuple(DIR_VECTORS.values())

# English letter frequency, expanded once into a flat draw table
LETTER_WEIGHTS: Tuple[Tuple[str, int], ...] = (
    ("E", 12), ("T", 8), ("A", 7), ("O", 7), ("I", 7), ("N", 7),
    ("S", 6), ("H", 6), ("R", 6), ("D", 4), ("L", 4), ("C", 3), ("U", 3),
    ("M", 2), ("W", 2), ("F", 2), ("G", 2), ("Y", 2), ("P", 2),
    ("B", 1), ("V", 1), ("K", 1), ("J", 1), ("Q", 1), ("X", 1), ("Z", 1),
)
LETTER_TABLE: Tuple[str, ...] = tuple(ch for ch, n in LETTER_WEIGHTS for _ in range(n))


# -----------------------------------------------------------------------------
# Simple logger hook
# -----------------------------------------------------------------------------
# app.py can call set_logger(my_ui_logger). If you do nothing, we print().
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    """Log to UI if available; otherwise print. Keep messages simple."""
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Data shapes used across the app
# -----------------------------------------------------------------------------
@dataclass
class WalkCell:
    """One phrase letter placed on the walk."""
    x: int
    y: int
    letter: str
    index: int  # position in the letter sequence, 0 = start at the origin

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)


@dataclass
class FillerCell:
    """One camouflage letter around the walk."""
    x: int
    y: int
    letter: str
    ring: int                    # 1 touches the walk, 2 touches ring 1, ...
    erodable: bool = False       # borders open sea
    high_priority: bool = False  # three-sided pocket; never removed

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)


@dataclass
class IslandSpec:
    """
    Everything that tunes one island generation.
    Keep this explicit and simple so it is easy to build in app.py.
    """
    max_coord: int = 35                 # max(|x|, |y|) allowed for any cell
    max_attempts: int = 5               # walk retries before giving up
    outward_radius: float = 5.0         # prefer moving away from the origin inside this radius
    outward_min_length: int = 0         # ...but only once this many cells are placed
    ring_count: int = 3
    pattern_erosion: bool = True        # angular thinning of ring 3
    remove_run: Tuple[int, int] = (4, 8)
    keep_run: Tuple[int, int] = (1, 4)
    removal_fraction: float = 0.25      # share of filler removed in pairs
    seed: Optional[str] = None

    def __post_init__(self) -> None:
        if int(self.max_coord) < 1:
            raise ValueError(f"max_coord must be >= 1, got {self.max_coord}")
        if int(self.max_attempts) < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.ring_count not in (1, 2, 3):
            raise ValueError(f"ring_count must be 1, 2 or 3, got {self.ring_count}")
        if not 0.0 <= float(self.removal_fraction) < 1.0:
            raise ValueError(f"removal_fraction must be in [0, 1), got {self.removal_fraction}")
        if self.outward_radius < 0 or self.outward_min_length < 0:
            raise ValueError("outward_radius and outward_min_length must be >= 0")
        for name in ("remove_run", "keep_run"):
            lo, hi = getattr(self, name)
            if lo < 1 or lo > hi:
                raise ValueError(f"{name} must be (lo, hi) with 1 <= lo <= hi, got {(lo, hi)}")


@dataclass
class IslandResult:
    """
    The outcome of the generator. This is what the renderer and the
    erosion driver need.
    """
    phrase: str                  # original phrase, punctuation kept for display
    letters: List[str]           # normalized letters actually walked
    walk: List[WalkCell]
    filler: List[FillerCell]
    attempts: int = 1            # walk attempts used

    @property
    def template(self) -> str:
        return phrase_template(self.phrase)

    def to_dict(self) -> dict:
        """Plain output shape for external renderers (one shared coordinate space)."""
        return {
            "phrase": self.phrase,
            "walk": [
                {"x": c.x, "y": c.y, "letter": c.letter, "sequenceIndex": c.index}
                for c in self.walk
            ],
            "filler": [
                {"x": c.x, "y": c.y, "letter": c.letter, "ring": c.ring, "erodable": c.erodable}
                for c in self.filler
            ],
            "attempts": self.attempts,
        }


# -----------------------------------------------------------------------------
# Helpers: coordinates and letters
# -----------------------------------------------------------------------------
_LETTER_RE = re.compile(r"[A-Za-z0-9]")


def _neighbours(c: Coord) -> List[Coord]:
    x, y = c
    return [(x + dx, y + dy) for dx, dy in _STEPS]


def _in_bounds(c: Coord, limit: int) -> bool:
    return abs(c[0]) <= limit and abs(c[1]) <= limit


def normalize_letters(phrase) -> List[str]:
    """
    Keep only ASCII letters/digits, uppercased, in phrase order.
    Spaces and punctuation are dropped for walking; callers keep the
    original phrase for display.
    """
    if not phrase:
        return []
    if not isinstance(phrase, str):
        phrase = "".join(str(ch) for ch in phrase)
    return [ch.upper() for ch in _LETTER_RE.findall(phrase)]


def phrase_template(phrase: str) -> str:
    """'Time flies!' -> '____ _____!'"""
    return _LETTER_RE.sub("_", phrase or "")


def reveal_phrase(phrase: str, count: int) -> str:
    """Template with the first `count` letters/digits filled in (uppercase)."""
    out = []
    shown = 0
    for ch in phrase or "":
        if _LETTER_RE.fullmatch(ch):
            if shown < count:
                out.append(ch.upper())
                shown += 1
            else:
                out.append("_")
        else:
            out.append(ch)
    return "".join(out)


def random_filler_letter(rng: random.Random) -> str:
    return LETTER_TABLE[rng.randrange(len(LETTER_TABLE))]


# -----------------------------------------------------------------------------
# Walk: self-avoiding, non-self-touching, no backtracking
# -----------------------------------------------------------------------------
def _direction_order(cur: Coord, placed: int, rng: random.Random, spec: IslandSpec) -> List[Coord]:
    """
    Near the origin, try the steps that move away from it first (shuffled),
    then the others (shuffled). Further out, all four fully shuffled.
    """
    steps = list(_STEPS)
    dist = math.hypot(cur[0], cur[1])
    if placed >= spec.outward_min_length and dist < spec.outward_radius:
        outward = [s for s in steps if math.hypot(cur[0] + s[0], cur[1] + s[1]) > dist]
        rest = [s for s in steps if s not in outward]
        rng.shuffle(outward)
        rng.shuffle(rest)
        return outward + rest
    rng.shuffle(steps)
    return steps


def _accepts(cand: Coord, cur: Coord, visited: Set[Coord], limit: int) -> bool:
    if cand in visited:
        return False
    if not _in_bounds(cand, limit):
        return False
    if abs(cand[0] - cur[0]) + abs(cand[1] - cur[1]) != 1:
        return False
    # must not touch the walk anywhere except the cell we step from
    for n in _neighbours(cand):
        if n != cur and n in visited:
            return False
    return True


def generate_walk(
    letters: Sequence[str],
    rng: random.Random,
    spec: Optional[IslandSpec] = None,
) -> Optional[List[WalkCell]]:
    """
    Lay the letters on a walk starting at (0, 0).

    Returns the complete walk, or None on a dead end (no legal next cell).
    A dead end is an expected outcome, not an error; the caller retries
    with fresh randomness. An empty letter sequence is rejected.
    """
    spec = spec or IslandSpec()
    letters = list(letters)
    if not letters:
        raise ValueError("cannot walk an empty letter sequence")

    cur: Coord = (0, 0)
    visited: Set[Coord] = {cur}
    walk = [WalkCell(0, 0, letters[0], 0)]

    for i in range(1, len(letters)):
        nxt: Optional[Coord] = None
        for dx, dy in _direction_order(cur, len(walk), rng, spec):
            cand = (cur[0] + dx, cur[1] + dy)
            if _accepts(cand, cur, visited, spec.max_coord):
                nxt = cand
                break
        if nxt is None:
            _log(f"[walk] dead end at letter {i + 1}/{len(letters)} ('{letters[i]}')")
            return None
        visited.add(nxt)
        walk.append(WalkCell(nxt[0], nxt[1], letters[i], i))
        cur = nxt

    return walk


# -----------------------------------------------------------------------------
# Rings around the walk
# -----------------------------------------------------------------------------
def _walk_neighbour_count(c: Coord, walk_set: Set[Coord]) -> int:
    return sum(1 for n in _neighbours(c) if n in walk_set)


def is_congested(c: Coord, walk_set: Set[Coord]) -> bool:
    """True when the cell sits between two walk cells (left+right or up+down)."""
    x, y = c
    horizontal = (x - 1, y) in walk_set and (x + 1, y) in walk_set
    vertical = (x, y - 1) in walk_set and (x, y + 1) in walk_set
    return horizontal or vertical


def is_pocket(c: Coord, walk_set: Set[Coord]) -> bool:
    """Exactly three of the four neighbours are walk cells."""
    return _walk_neighbour_count(c, walk_set) == 3


def expand_rings(
    walk: Sequence[WalkCell],
    rng: random.Random,
    spec: Optional[IslandSpec] = None,
) -> Tuple[List[List[FillerCell]], Set[Coord]]:
    """
    Grow spec.ring_count rings of filler outward from the walk.

    Ring 1 skips every congested cell. Three-sided pockets are congested
    too, so they stay out of ring 1 but are recorded as high priority; if a
    later ring reaches one it is flagged and protected from removal.
    Later rings take every free neighbour of the previous ring.
    Returns (rings, high_priority_coords).
    """
    spec = spec or IslandSpec()
    walk_set = {c.coord for c in walk}
    claimed: Set[Coord] = set(walk_set)
    high_priority: Set[Coord] = set()

    ring1: List[FillerCell] = []
    for wc in walk:
        for n in _neighbours(wc.coord):
            if n in claimed or not _in_bounds(n, spec.max_coord):
                continue
            if is_pocket(n, walk_set):
                high_priority.add(n)
            if is_congested(n, walk_set):
                continue
            claimed.add(n)
            ring1.append(FillerCell(n[0], n[1], random_filler_letter(rng), 1))

    rings = [ring1]
    for ring_no in range(2, spec.ring_count + 1):
        ring: List[FillerCell] = []
        for fc in rings[-1]:
            for n in _neighbours(fc.coord):
                if n in claimed or not _in_bounds(n, spec.max_coord):
                    continue
                claimed.add(n)
                ring.append(FillerCell(
                    n[0], n[1], random_filler_letter(rng), ring_no,
                    high_priority=n in high_priority,
                ))
        rings.append(ring)

    _log(f"[island] rings: {', '.join(str(len(r)) for r in rings)} cells; {len(high_priority)} pocket(s)")
    return rings, high_priority


# -----------------------------------------------------------------------------
# Angular pattern thinning (outermost ring)
# -----------------------------------------------------------------------------
def order_by_angle(anchor: FillerCell, cells: Sequence[FillerCell]) -> List[FillerCell]:
    """Anchor first, then the rest sorted by angle around the anchor (ascending)."""
    others = [c for c in cells if c is not anchor]
    others.sort(key=lambda c: math.atan2(c.y - anchor.y, c.x - anchor.x))
    return [anchor] + others


def apply_angular_pattern(
    cells: Sequence[FillerCell],
    rng: random.Random,
    protected: Optional[Set[Coord]] = None,
    remove_run: Tuple[int, int] = (4, 8),
    keep_run: Tuple[int, int] = (1, 4),
) -> List[FillerCell]:
    """
    Drop runs of cells around the ring so gaps look like coastline rather
    than noise. Starting at the cell nearest the origin, alternately skip
    `n_remove` cells and keep `n_keep` cells. Protected cells always stay.
    """
    if not cells:
        return []
    protected = protected or set()

    anchor = min(cells, key=lambda c: math.hypot(c.x, c.y))
    ordered = order_by_angle(anchor, cells)

    n_remove = rng.randint(*remove_run)
    n_keep = rng.randint(*keep_run)

    kept: List[FillerCell] = []
    removing = True
    count = 0
    for cell in ordered:
        if removing:
            if cell.coord in protected:
                kept.append(cell)
            count += 1
            if count >= n_remove:
                removing = False
                count = 0
        else:
            kept.append(cell)
            count += 1
            if count >= n_keep:
                removing = True
                count = 0

    _log(f"[island] angular pattern remove={n_remove} keep={n_keep}: {len(cells)} -> {len(kept)}")
    return kept


# -----------------------------------------------------------------------------
# Paired removal, weighted toward the outer rings
# -----------------------------------------------------------------------------
class PairTier(IntEnum):
    """Removal priority of an adjacent filler pair; higher goes first."""
    INNER = 1          # both ring 1
    INNER_MIDDLE = 2   # one ring 2, other ring 1
    MIDDLE = 3         # both ring 2
    MIDDLE_OUTER = 4   # one ring 3
    OUTER = 5          # both ring 3


def pair_tier(ring_a: int, ring_b: int) -> PairTier:
    if ring_a == 3 and ring_b == 3:
        return PairTier.OUTER
    if ring_a == 3 or ring_b == 3:
        return PairTier.MIDDLE_OUTER
    if ring_a == 2 and ring_b == 2:
        return PairTier.MIDDLE
    if ring_a == 2 or ring_b == 2:
        return PairTier.INNER_MIDDLE
    return PairTier.INNER


def removal_target(total: int, fraction: float) -> int:
    """Smallest even number >= ceil(total * fraction)."""
    n = math.ceil(total * fraction)
    return n + (n % 2)


def remove_pairs(
    cells: Sequence[FillerCell],
    rng: random.Random,
    fraction: float = 0.25,
    protected: Optional[Set[Coord]] = None,
) -> List[FillerCell]:
    """
    Remove roughly `fraction` of the filler, always two adjacent cells at a
    time. Pairs in outer rings go first; pairs touching a high-priority cell
    are never candidates. Regions of four or fewer cells are left alone.
    """
    cells = list(cells)
    if len(cells) <= 4:
        return cells

    protected = set(protected or ()) | {c.coord for c in cells if c.high_priority}
    by_coord: Dict[Coord, FillerCell] = {c.coord: c for c in cells}

    tiers: Dict[PairTier, List[Tuple[Coord, Coord]]] = {t: [] for t in PairTier}
    for c in cells:
        if c.coord in protected:
            continue
        # right and down only, so every unordered pair is seen once
        for n in ((c.x + 1, c.y), (c.x, c.y + 1)):
            other = by_coord.get(n)
            if other is None or n in protected:
                continue
            tiers[pair_tier(c.ring, other.ring)].append((c.coord, n))

    ordered: List[Tuple[Coord, Coord]] = []
    for tier in sorted(PairTier, reverse=True):
        group = tiers[tier]
        rng.shuffle(group)
        ordered.extend(group)

    target = removal_target(len(cells), fraction)
    removed: Set[Coord] = set()
    for a, b in ordered:
        if len(removed) >= target:
            break
        if a in removed or b in removed:
            continue
        removed.add(a)
        removed.add(b)

    if len(removed) < target:
        _log(f"[island] pair removal ran out of pairs: {len(removed)} of {target}")
    return [c for c in cells if c.coord not in removed]


# -----------------------------------------------------------------------------
# Shore classification
# -----------------------------------------------------------------------------
def classify_shore(walk: Sequence[WalkCell], cells: Sequence[FillerCell]) -> List[FillerCell]:
    """Return copies of `cells` with erodable set iff a neighbour is open sea."""
    occupied = {w.coord for w in walk} | {c.coord for c in cells}
    return [
        replace(c, erodable=any(n not in occupied for n in _neighbours(c.coord)))
        for c in cells
    ]


def generate_region(
    walk: Sequence[WalkCell],
    rng: random.Random,
    spec: Optional[IslandSpec] = None,
) -> List[FillerCell]:
    """
    Build the camouflage island around a finished walk:
    rings -> angular thinning of ring 3 -> paired removal -> shore flags.
    """
    spec = spec or IslandSpec()
    if not walk:
        raise ValueError("generate_region needs a complete, non-empty walk")

    rings, high_priority = expand_rings(walk, rng, spec)
    if spec.ring_count == 3 and spec.pattern_erosion:
        rings[-1] = apply_angular_pattern(
            rings[-1], rng, high_priority, spec.remove_run, spec.keep_run
        )

    cells = [c for ring in rings for c in ring]
    before = len(cells)
    cells = remove_pairs(cells, rng, spec.removal_fraction, high_priority)
    _log(f"[island] pair removal: {before} -> {len(cells)}")
    return classify_shore(walk, cells)


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------
def generate_island(
    phrase: str,
    spec: Optional[IslandSpec] = None,
    rng: Optional[random.Random] = None,
) -> Optional[IslandResult]:
    """
    Orchestrator:
      - normalize the phrase to letters/digits
      - walk; on a dead end retry with fresh draws from the same rng
      - grow and thin the island around the first complete walk
    Returns None when no walk was found within spec.max_attempts.
    """
    spec = spec or IslandSpec()
    # Do NOT reseed between attempts: each retry keeps consuming the stream.
    _rng = rng if rng is not None else random.Random(spec.seed if spec.seed else None)
    if rng is None and spec.seed:
        _log(f"seed: {spec.seed}")

    letters = normalize_letters(phrase)
    if not letters:
        raise ValueError(f"phrase has no letters or digits: {phrase!r}")

    for attempt in range(1, spec.max_attempts + 1):
        walk = generate_walk(letters, _rng, spec)
        if walk is None:
            _log(f"[island] attempt {attempt}/{spec.max_attempts} failed for '{phrase}'")
            continue
        filler = generate_region(walk, _rng, spec)
        _log(f"[island] '{phrase}': {len(walk)} letters, {len(filler)} filler (attempt {attempt})")
        return IslandResult(phrase=phrase, letters=letters, walk=walk, filler=filler, attempts=attempt)

    _log(f"[island] cannot lay out '{phrase}' after {spec.max_attempts} attempts")
    return None


def generate_island_with_fallback(
    phrase: str,
    pool: Iterable[str],
    spec: Optional[IslandSpec] = None,
    rng: Optional[random.Random] = None,
) -> Optional[IslandResult]:
    """
    Like generate_island, but when the phrase cannot be laid out, try
    shorter phrases from `pool` (random order) until one works.
    """
    spec = spec or IslandSpec()
    _rng = rng if rng is not None else random.Random(spec.seed if spec.seed else None)

    result = generate_island(phrase, spec, _rng)
    if result is not None:
        return result

    length = len(normalize_letters(phrase))
    shorter = [p for p in pool if 0 < len(normalize_letters(p)) < length]
    _rng.shuffle(shorter)
    for alt in shorter:
        _log(f"[island] substituting shorter phrase '{alt}'")
        result = generate_island(alt, spec, _rng)
        if result is not None:
            return result
    return None


# -----------------------------------------------------------------------------
# Gameplay erosion (pure steps; the UI owns timing and animation)
# -----------------------------------------------------------------------------
@dataclass
class ErosionSchedule:
    """Cadence of the rising-water erosion once a puzzle is on screen."""
    initial_fraction: float = 0.05
    initial_interval: float = 15.0   # seconds
    standard_fraction: float = 0.10
    standard_interval: float = 10.0  # seconds
    initial_phase_count: int = 2
    flash_seconds: float = 3.0       # warning flash before cells vanish

    def fraction_for(self, phase: int) -> float:
        return self.initial_fraction if phase < self.initial_phase_count else self.standard_fraction

    def interval_for(self, phase: int) -> float:
        return self.initial_interval if phase < self.initial_phase_count else self.standard_interval


def identify_erodable_cells(
    walk: Sequence[WalkCell],
    filler: Sequence[FillerCell],
    exclude: Iterable[Coord] = (),
) -> List[FillerCell]:
    """Filler cells touching sea right now, minus any already scheduled (`exclude`)."""
    occupied = {w.coord for w in walk} | {c.coord for c in filler}
    skip = set(exclude)
    return [
        c for c in filler
        if c.coord not in skip and any(n not in occupied for n in _neighbours(c.coord))
    ]


def select_cells_to_erode(
    erodable: Sequence[FillerCell],
    count: int,
    rng: random.Random,
    prioritize_pairs: bool = True,
) -> List[FillerCell]:
    """
    Pick `count` cells to erode. With prioritize_pairs, adjacent pairs are
    taken first (never overlapping), then single cells fill the rest.
    """
    cells = list(erodable)
    if len(cells) <= count:
        return cells

    selected: List[FillerCell] = []
    taken: Set[Coord] = set()

    if prioritize_pairs:
        by_coord = {c.coord: c for c in cells}
        pairs = [
            (c, by_coord[n])
            for c in cells
            for n in ((c.x + 1, c.y), (c.x, c.y + 1))
            if n in by_coord
        ]
        rng.shuffle(pairs)
        for a, b in pairs:
            if count - len(selected) < 2:
                break
            if a.coord in taken or b.coord in taken:
                continue
            selected.extend((a, b))
            taken.update((a.coord, b.coord))

    remaining = [c for c in cells if c.coord not in taken]
    rng.shuffle(remaining)
    selected.extend(remaining[: count - len(selected)])
    return selected


def erode_step(
    result: IslandResult,
    fraction: float,
    rng: random.Random,
    exclude: Iterable[Coord] = (),
) -> Tuple[IslandResult, List[FillerCell]]:
    """
    One erosion tick: remove max(1, ceil(shore * fraction)) shore cells.
    Returns (new_result, eroded_cells). The walk is never touched; when
    no shore is left the result comes back unchanged with no cells.
    """
    erodable = identify_erodable_cells(result.walk, result.filler, exclude)
    if not erodable:
        return result, []

    count = max(1, math.ceil(len(erodable) * fraction))
    chosen = select_cells_to_erode(erodable, count, rng)
    gone = {c.coord for c in chosen}
    survivors = [c for c in result.filler if c.coord not in gone]
    _log(f"[erosion] eroding {len(chosen)} of {len(erodable)} shore cells")
    return replace(result, filler=classify_shore(result.walk, survivors)), chosen


# -----------------------------------------------------------------------------
# Grid view for renderers
# -----------------------------------------------------------------------------
@dataclass
class IslandGrid:
    """Bounding-box view of an island; "" marks open sea."""
    letters: List[List[str]]
    walk_mask: List[List[bool]]
    shore_mask: List[List[bool]]
    path: List[Tuple[int, int]]   # (row, col) of each walk cell, in order
    origin: Tuple[int, int]       # (row, col) of coordinate (0, 0)


def island_to_grid(result: IslandResult, margin: int = 0) -> IslandGrid:
    coords = [c.coord for c in result.walk] + [c.coord for c in result.filler]
    min_x = min(x for x, _ in coords) - margin
    min_y = min(y for _, y in coords) - margin
    w = max(x for x, _ in coords) - min_x + 1 + margin
    h = max(y for _, y in coords) - min_y + 1 + margin

    letters = [["" for _ in range(w)] for _ in range(h)]
    walk_mask = [[False] * w for _ in range(h)]
    shore_mask = [[False] * w for _ in range(h)]

    for c in result.filler:
        r, col = c.y - min_y, c.x - min_x
        letters[r][col] = c.letter
        shore_mask[r][col] = c.erodable
    path: List[Tuple[int, int]] = []
    for c in result.walk:
        r, col = c.y - min_y, c.x - min_x
        letters[r][col] = c.letter
        walk_mask[r][col] = True
        path.append((r, col))

    return IslandGrid(
        letters=letters,
        walk_mask=walk_mask,
        shore_mask=shore_mask,
        path=path,
        origin=(-min_y, -min_x),
    )


def render_preview_ascii(result: IslandResult) -> str:
    """
    Simple ASCII for quick debugging.
    """
    grid = island_to_grid(result)
    lines = []
    for row in grid.letters:
        lines.append(" ".join(ch if ch else "." for ch in row))
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Phrase CSV loading (UI calls these)
# -----------------------------------------------------------------------------
LENGTH_CATEGORIES: Dict[str, Tuple[int, float]] = {
    "short": (0, 15),
    "medium": (16, 25),
    "long": (26, math.inf),
}


@dataclass
class PhraseRow:
    """One phrase record from the phrase data CSV."""
    phrase: str
    letterlist: str = ""
    lettercount: int = 0
    wordcount: int = 0
    meaning: str = ""
    info: str = ""
    source: str = ""
    era: str = ""
    author: str = ""
    tags: List[str] = field(default_factory=list)
    extra: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """What gets walked: the letter list if given, else the phrase."""
        return self.letterlist or self.phrase


def _read_rows(path: str) -> List[List[str]]:
    """Read CSV rows as lists of strings. Strip whitespace in each cell."""
    rows: List[List[str]] = []
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            for r in reader:
                rows.append([c.strip() for c in r])
        _log(f"csv: loaded {len(rows)} rows from {path}")
    except Exception as e:
        _log(f"csv error: cannot read {path}: {e}")
        raise
    return rows


def _as_int(s: str) -> int:
    s = (s or "").strip()
    return int(s) if s.isdigit() else 0


def phrase_rows_from_table(rows: Sequence[Sequence[str]]) -> List[PhraseRow]:
    """
    Turn raw CSV rows (first row = header) into PhraseRow records.
    Without a 'phrase' column the first column is used. Rows with an empty
    phrase are skipped; missing counts are computed from the phrase.
    """
    if not rows:
        return []
    headers = [h.strip().lower() for h in rows[0]]
    known = {"phrase", "letterlist", "lettercount", "wordcount", "meaning",
             "info", "source", "era", "author", "phrasetags"}
    phrase_col = headers.index("phrase") if "phrase" in headers else 0

    out: List[PhraseRow] = []
    for r in rows[1:]:
        values = {h: (r[i].strip() if i < len(r) else "") for i, h in enumerate(headers)}
        phrase = r[phrase_col].strip() if phrase_col < len(r) else ""
        if not phrase:
            continue
        letterlist = values.get("letterlist", "")
        walked = letterlist or phrase
        out.append(PhraseRow(
            phrase=phrase,
            letterlist=letterlist,
            lettercount=_as_int(values.get("lettercount", "")) or len(normalize_letters(walked)),
            wordcount=_as_int(values.get("wordcount", "")) or len(walked.split()),
            meaning=values.get("meaning", ""),
            info=values.get("info", ""),
            source=values.get("source", ""),
            era=values.get("era", ""),
            author=values.get("author", ""),
            tags=[t.strip() for t in values.get("phrasetags", "").split(",") if t.strip()],
            extra={h: v for h, v in values.items() if h not in known and v},
        ))
    _log(f"phrases: {len(out)} rows")
    return out


def load_phrases_csv(path: str) -> List[PhraseRow]:
    """Load the phrase data CSV (header row required)."""
    return phrase_rows_from_table(_read_rows(path))


def pick_phrase(
    rows: Sequence[PhraseRow],
    rng: random.Random,
    length_category: str = "medium",
    era: str = "all",
) -> Optional[PhraseRow]:
    """
    Random phrase matching a length category ('short', 'medium', 'long',
    'all') and era ('all' or an exact era). Falls back to any row.
    """
    if not rows:
        return None
    if length_category != "all" and length_category not in LENGTH_CATEGORIES:
        raise ValueError(f"unknown length category: {length_category}")

    def _match(p: PhraseRow) -> bool:
        if length_category != "all":
            lo, hi = LENGTH_CATEGORIES[length_category]
            if not lo <= p.lettercount <= hi:
                return False
        return era == "all" or p.era == era

    matches = [p for p in rows if _match(p)]
    if not matches:
        _log(f"phrases: none match length={length_category} era={era}; picking from all")
        matches = list(rows)
    return rng.choice(matches)


def available_eras(rows: Sequence[PhraseRow]) -> List[str]:
    return sorted({p.era for p in rows if p.era})


def pick_phrases(
    rows: Sequence[PhraseRow],
    rng: random.Random,
    count: int,
    length_category: str = "medium",
    era: str = "all",
) -> List[PhraseRow]:
    """Up to `count` distinct rows, each drawn through pick_phrase."""
    remaining = list(rows)
    picks: List[PhraseRow] = []
    while remaining and len(picks) < count:
        row = pick_phrase(remaining, rng, length_category, era)
        picks.append(row)
        remaining.remove(row)
    return picks
