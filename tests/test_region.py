"""Tests for ring growth, angular thinning, pair removal and shore flags."""

import random

import pytest

import island_engine as eng


class ScriptedRandom(random.Random):
    """random.Random whose randint() answers from `script`."""
    script: list = []

    def randint(self, a, b):
        return self.script.pop(0)


def _scripted(*ints):
    r = ScriptedRandom(0)
    r.script = list(ints)
    return r


def _block(x0, y0, w, h, ring, **kw):
    return [eng.FillerCell(x, y, "E", ring, **kw) for y in range(y0, y0 + h) for x in range(x0, x0 + w)]


def _square_ring(radius, ring=3):
    return [
        eng.FillerCell(x, y, "E", ring)
        for y in range(-radius, radius + 1)
        for x in range(-radius, radius + 1)
        if max(abs(x), abs(y)) == radius
    ]


def _adjacent(a, b):
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def _walk(seed, text="Brevity is the soul of wit"):
    letters = eng.normalize_letters(text)
    r = random.Random(seed)
    for _ in range(50):
        walk = eng.generate_walk(letters, r)
        if walk is not None:
            return walk, r
    raise AssertionError(f"no walk for seed {seed}")


# Left arm runs one cell further down, so (0, 1) joins ring 1 and ring 2
# reaches the pocket at (0, 0).
HOOK = [(-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1), (1, 0)]


def _replay(r):
    twin = random.Random()
    twin.setstate(r.getstate())
    return twin


# ---------------------------------------------------------------- rings

def test_pocket_is_flagged_but_kept_out_of_ring_one(u_turn_walk, rng):
    rings, high = eng.expand_rings(u_turn_walk, rng, eng.IslandSpec(ring_count=1))
    ring1 = {c.coord for c in rings[0]}
    assert high == {(0, -1)}
    assert (0, -1) not in ring1
    # flanked left and right by the walk, but only two walk neighbours
    assert (0, 0) not in ring1
    assert not any(eng.is_congested(c, {w.coord for w in u_turn_walk}) for c in ring1)


def test_pocket_reached_by_a_later_ring_is_protected(walk_factory, rng):
    walk = walk_factory(HOOK)
    rings, high = eng.expand_rings(walk, rng)
    assert high == {(0, 0)}
    assert (0, 1) in {c.coord for c in rings[0]}
    ring2 = {c.coord: c for c in rings[1]}
    assert ring2[(0, 0)].high_priority
    assert not any(c.high_priority for c in rings[0])

    for seed in range(10):
        cells = eng.generate_region(walk, random.Random(seed), eng.IslandSpec(removal_fraction=0.9))
        kept = {c.coord: c for c in cells}
        assert (0, 0) in kept
        assert kept[(0, 0)].high_priority


def test_congestion_and_pocket_checks(u_turn_walk):
    walk_set = {c.coord for c in u_turn_walk}
    assert eng.is_congested((0, 0), walk_set)
    assert not eng.is_pocket((0, 0), walk_set)
    assert eng.is_pocket((0, -1), walk_set)
    assert not eng.is_congested((2, 0), walk_set)


@pytest.mark.parametrize("seed", range(15))
def test_ring_invariants(seed):
    walk, r = _walk(seed)
    walk_set = {c.coord for c in walk}
    rings, high = eng.expand_rings(walk, r)

    assert len(rings) == 3
    seen = set()
    for ring_no, ring in enumerate(rings, 1):
        for c in ring:
            assert c.ring == ring_no
            assert c.coord not in walk_set
            assert c.coord not in seen
            assert max(abs(c.x), abs(c.y)) <= 35
            seen.add(c.coord)

    for c in rings[0]:
        assert any(_adjacent(c.coord, w) for w in walk_set)
        assert not eng.is_congested(c.coord, walk_set)
    for ring in rings:
        for c in ring:
            assert c.high_priority == (c.coord in high)

    for prev, ring in zip(rings, rings[1:]):
        prev_coords = {c.coord for c in prev}
        for c in ring:
            assert any(_adjacent(c.coord, p) for p in prev_coords)


def test_ring_count_is_respected(rng, walk_factory):
    walk = walk_factory([(0, 0), (1, 0), (2, 0)])
    rings, _ = eng.expand_rings(walk, rng, eng.IslandSpec(ring_count=2))
    assert len(rings) == 2
    assert len(rings[0]) == 8  # above, below and both ends of a straight bar


def test_rings_stay_in_bounds(rng, walk_factory):
    walk = walk_factory([(0, 0), (1, 0)])
    rings, _ = eng.expand_rings(walk, rng, eng.IslandSpec(max_coord=1))
    for ring in rings:
        for c in ring:
            assert max(abs(c.x), abs(c.y)) <= 1


# ---------------------------------------------------------------- angular pattern

def test_angular_pattern_alternates_runs():
    cells = _square_ring(3)
    anchor = min(cells, key=lambda c: (c.x ** 2 + c.y ** 2))
    ordered = eng.order_by_angle(anchor, cells)
    kept = eng.apply_angular_pattern(cells, _scripted(4, 2))
    assert kept == [c for i, c in enumerate(ordered) if i % 6 in (4, 5)]


def test_angular_pattern_is_a_strict_subset(rng):
    cells = _square_ring(4)
    kept = eng.apply_angular_pattern(cells, rng)
    assert 0 < len(kept) < len(cells)
    assert {c.coord for c in kept} <= {c.coord for c in cells}


def test_angular_pattern_keeps_protected_cells(rng):
    cells = _square_ring(2)
    kept = eng.apply_angular_pattern(cells, rng, protected={c.coord for c in cells})
    assert len(kept) == len(cells)


def test_angular_pattern_empty(rng):
    assert eng.apply_angular_pattern([], rng) == []


def test_order_by_angle_starts_at_anchor():
    cells = _square_ring(1)
    ordered = eng.order_by_angle(cells[0], cells)
    assert ordered[0] is cells[0]
    assert sorted(c.coord for c in ordered) == sorted(c.coord for c in cells)


# ---------------------------------------------------------------- pair removal

@pytest.mark.parametrize("total,fraction,expected", [
    (10, 0.25, 4),
    (100, 0.25, 26),
    (8, 0.25, 2),
    (40, 0.2, 8),
    (7, 0.0, 0),
])
def test_removal_target(total, fraction, expected):
    assert eng.removal_target(total, fraction) == expected


def test_pair_tiers():
    assert eng.pair_tier(3, 3) is eng.PairTier.OUTER
    assert eng.pair_tier(2, 3) is eng.PairTier.MIDDLE_OUTER
    assert eng.pair_tier(2, 2) is eng.PairTier.MIDDLE
    assert eng.pair_tier(1, 2) is eng.PairTier.INNER_MIDDLE
    assert eng.pair_tier(1, 1) is eng.PairTier.INNER
    assert eng.PairTier.OUTER > eng.PairTier.MIDDLE_OUTER > eng.PairTier.MIDDLE


def test_remove_pairs_hits_even_target(rng):
    cells = _block(0, 0, 10, 10, 3)
    out = eng.remove_pairs(cells, rng, 0.25)
    assert len(cells) - len(out) == 26
    assert {c.coord for c in out} <= {c.coord for c in cells}


def test_remove_pairs_prefers_outer_rings(rng):
    outer = _block(0, 0, 4, 5, 3)
    inner = _block(20, 0, 4, 5, 1)
    out = eng.remove_pairs(outer + inner, rng, 0.25)
    removed = {c.coord for c in outer + inner} - {c.coord for c in out}
    assert len(removed) == 10
    assert all(x < 20 for x, _ in removed)


def test_remove_pairs_never_touches_high_priority(rng):
    cells = _block(0, 0, 3, 3, 1, high_priority=True) + _block(3, 0, 3, 3, 2)
    out = eng.remove_pairs(cells, rng, 0.5)
    kept = {c.coord for c in out}
    assert all(c.coord in kept for c in cells if c.high_priority)
    assert (len(cells) - len(out)) % 2 == 0


def test_remove_pairs_skips_tiny_regions(rng):
    cells = _block(0, 0, 2, 2, 3)
    assert eng.remove_pairs(cells, rng, 0.5) == cells


def test_remove_pairs_with_no_pairs_removes_nothing(rng):
    cells = [eng.FillerCell(x * 2, 0, "A", 3) for x in range(6)]
    assert eng.remove_pairs(cells, rng, 0.25) == cells


# ---------------------------------------------------------------- shore

def test_classify_shore(walk_factory):
    walk = walk_factory([(0, 0)])
    # a plus around (1, 0): (1, 0) is fully surrounded
    cells = [eng.FillerCell(x, y, "E", 1) for x, y in [(1, 0), (2, 0), (1, 1), (1, -1)]]
    flags = {c.coord: c.erodable for c in eng.classify_shore(walk, cells)}
    assert flags[(1, 0)] is False
    assert flags[(2, 0)] is True
    assert flags[(1, 1)] is True


# ---------------------------------------------------------------- full region

@pytest.mark.parametrize("seed", range(15))
def test_region_invariants(seed):
    walk, r = _walk(seed)
    walk_set = {c.coord for c in walk}
    rings, _ = eng.expand_rings(walk, _replay(r))
    claimed_pockets = {c.coord for ring in rings for c in ring if c.high_priority}
    cells = eng.generate_region(walk, r)
    coords = {c.coord for c in cells}
    occupied = coords | walk_set

    assert len(coords) == len(cells)
    assert not coords & walk_set
    for c in cells:
        assert c.erodable == any(n not in occupied for n in eng._neighbours(c.coord))
        assert c.high_priority == eng.is_pocket(c.coord, walk_set)
        if c.ring == 1:
            assert any(_adjacent(c.coord, w) for w in walk_set)
            assert not eng.is_congested(c.coord, walk_set)

    # a pocket claimed by any ring survives every stage
    assert claimed_pockets <= coords


def test_regions_vary_with_randomness():
    walk, _ = _walk(3)
    a = eng.generate_region(walk, random.Random(100))
    b = eng.generate_region(walk, random.Random(200))
    assert {c.coord for c in a} != {c.coord for c in b}


def test_region_needs_a_walk(rng):
    with pytest.raises(ValueError):
        eng.generate_region([], rng)


def test_region_without_pattern_erosion(rng, walk_factory):
    walk = walk_factory([(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)])
    spec = eng.IslandSpec(pattern_erosion=False, removal_fraction=0.0)
    cells = eng.generate_region(walk, rng, spec)
    rings, _ = eng.expand_rings(walk, random.Random(0), spec)
    assert len(cells) == sum(len(r) for r in rings)
