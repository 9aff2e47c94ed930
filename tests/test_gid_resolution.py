import random

from tmx_reader import Tileset, TilesetImage, parse_map, resolve_gid, tileset_for_gid


def make_tileset(name, first_gid, tile_count):
    return Tileset(first_gid=first_gid, name=name, tile_count=tile_count,
                   columns=4, image=TilesetImage(f"{name}.png"))


def test_resolves_owner_and_local_index():
    ground = make_tileset('ground', 1, 20)
    trees = make_tileset('trees', 21, 10)

    assert resolve_gid([ground, trees], 1) == (ground, 0)
    assert resolve_gid([ground, trees], 20) == (ground, 19)
    assert resolve_gid([ground, trees], 21) == (trees, 0)
    assert resolve_gid([ground, trees], 30) == (trees, 9)


def test_every_owned_gid_round_trips():
    tilesets = [make_tileset('a', 1, 16), make_tileset('b', 17, 8), make_tileset('c', 40, 5)]
    for tileset in tilesets:
        for gid in range(tileset.first_gid, tileset.first_gid + tileset.tile_count):
            owner, local_index = resolve_gid(tilesets, gid)
            assert owner is tileset
            assert owner.first_gid + local_index == gid


def test_unowned_gids_resolve_to_none():
    tilesets = [make_tileset('a', 1, 16), make_tileset('c', 40, 5)]
    assert resolve_gid(tilesets, 17) is None
    assert resolve_gid(tilesets, 39) is None
    assert resolve_gid(tilesets, 45) is None
    assert resolve_gid([], 1) is None


def test_empty_gid_never_resolves():
    claims_zero = make_tileset('zero', 0, 10)
    assert resolve_gid([claims_zero], 0) is None
    assert resolve_gid([claims_zero], -1) is None
    assert resolve_gid([claims_zero], 1) == (claims_zero, 1)


def test_overlapping_ranges_last_one_wins():
    a = make_tileset('a', 1, 20)
    b = make_tileset('b', 11, 20)

    assert resolve_gid([a, b], 5) == (a, 4)
    assert resolve_gid([a, b], 15) == (b, 4)
    assert resolve_gid([a, b], 25) == (b, 14)

    assert resolve_gid([b, a], 15) == (a, 14)


def test_overlap_winner_follows_sequence_order():
    tilesets = [make_tileset(f"t{i}", 1 + i * 3, 10) for i in range(6)]
    rng = random.Random(7)
    for _ in range(20):
        order = tilesets[:]
        rng.shuffle(order)
        for gid in range(1, 27):
            owners = [ts for ts in order if ts.owns(gid)]
            expected = owners[-1] if owners else None
            assert tileset_for_gid(order, gid) is expected


def test_map_document_resolves_through_its_tilesets(island_text):
    doc = parse_map(island_text)
    tileset, local_index = doc.resolve_gid(18)
    assert tileset.name == 'hotel-closed'
    assert local_index == 1
    assert doc.resolve_gid(0) is None
    assert doc.resolve_gid(49) is None
