import pytest

from tmx_reader import Layer, MapDocument, parse_map
from tmx_world.map.collision import CollisionIndex, CollisionRules, build_collision_index

from conftest import ISLAND_BLOCKED, ISLAND_TILESETS, build_tmx


def build(width, height, layers, tilesets=ISLAND_TILESETS, rules=None):
    return build_collision_index(parse_map(build_tmx(width, height, tilesets, layers)), rules)


def test_island_blocked_tiles(island_text):
    index = build_collision_index(parse_map(island_text))

    assert index.blocked_tiles() == ISLAND_BLOCKED
    assert len(index) == len(ISLAND_BLOCKED)
    assert index.to_ascii() == "####\n.#..\n.###"


def test_sand_over_water_is_walkable():
    index = build(1, 1, [
        {'name': 'water', 'data': [1]},
        {'name': 'sand', 'data': [2]},
    ])
    assert not index.is_blocked(0, 0)


def test_solid_building_over_sand_blocks():
    index = build(1, 1, [
        {'name': 'water', 'data': [1]},
        {'name': 'sand', 'data': [2]},
        {'name': 'buildings-base', 'data': [17]},
    ])
    assert index.is_blocked(0, 0)


def test_non_solid_building_does_not_block():
    index = build(1, 1, [
        {'name': 'water', 'data': [1]},
        {'name': 'sand', 'data': [2]},
        {'name': 'buildings-base', 'data': [33]},
    ])
    assert not index.is_blocked(0, 0)


def test_solid_building_blocks_without_terrain():
    index = build(2, 1, [{'name': 'buildings-base', 'data': [17, 0]}])
    assert index.blocked_tiles() == {(0, 0)}


def test_unowned_building_gid_does_not_block():
    index = build(1, 1, [{'name': 'buildings-base', 'data': [99]}])
    assert len(index) == 0


def test_solid_property_marks_tileset_solid():
    tilesets = [
        {'firstgid': 1, 'name': 'shed', 'tilecount': 4, 'properties': {'solid': 'true'}},
        {'firstgid': 5, 'name': 'fence', 'tilecount': 4, 'properties': {'solid': '1'}},
        {'firstgid': 9, 'name': 'rug', 'tilecount': 4, 'properties': {'solid': 'false'}},
    ]
    index = build(3, 1, [{'name': 'buildings-base', 'data': [1, 5, 9]}], tilesets)
    assert index.blocked_tiles() == {(0, 0), (1, 0)}


def test_unrelated_layers_are_ignored():
    index = build(2, 1, [
        {'name': 'decorations', 'data': [17, 17]},
        {'name': 'trees', 'data': [1, 1]},
    ])
    assert len(index) == 0


def test_layer_names_match_case_insensitively():
    index = build(2, 1, [
        {'name': 'Water', 'data': [1, 1]},
        {'name': 'SAND', 'data': [0, 2]},
    ])
    assert index.blocked_tiles() == {(0, 0)}


def test_custom_rules():
    rules = CollisionRules(blocking_layers=('lava',), walkable_layers=('bridge',),
                           building_layers=('walls',), solid_tilesets=('island-0',))
    index = build(3, 1, [
        {'name': 'lava', 'data': [1, 1, 0]},
        {'name': 'bridge', 'data': [0, 1, 0]},
        {'name': 'walls', 'data': [0, 0, 2]},
        {'name': 'water', 'data': [1, 1, 1]},
    ], rules=rules)
    assert index.blocked_tiles() == {(0, 0), (2, 0)}


def test_building_is_idempotent(island_text):
    doc = parse_map(island_text)
    first = build_collision_index(doc)
    second = build_collision_index(doc)
    assert first == second
    assert first is not second


def test_smaller_and_larger_layers_are_cropped_to_map():
    index = build(3, 2, [
        {'name': 'water', 'data': [1] * 8, 'width': 4, 'height': 2},
        {'name': 'sand', 'data': [2], 'width': 1, 'height': 1},
    ])
    assert index.blocked_tiles() == {(1, 0), (2, 0), (0, 1), (1, 1), (2, 1)}


def test_out_of_bounds_is_open(island_text):
    index = build_collision_index(parse_map(island_text))
    assert not index.is_blocked(-1, 0)
    assert not index.is_blocked(0, -1)
    assert not index.is_blocked(4, 0)
    assert not index.is_blocked(0, 3)
    assert (-5, -5) not in index
    assert (0, 0) in index


def test_any_blocked_clips_to_map(island_text):
    index = build_collision_index(parse_map(island_text))
    assert index.any_blocked(-3, -3, 0, 0)
    assert not index.any_blocked(-3, 1, 0, 2)
    assert not index.any_blocked(10, 10, 12, 12)
    assert not index.any_blocked(-4, -4, -1, -1)


def test_index_is_frozen_after_build(island_text):
    index = build_collision_index(parse_map(island_text))
    assert index.frozen
    with pytest.raises(ValueError):
        index.grid()[0, 0] = False


def test_manual_index_and_stats():
    index = CollisionIndex(4, 2)
    assert not index.frozen
    grid = index.grid()
    grid[0, 1] = True
    grid[1, 3] = True

    assert list(index) == [(1, 0), (3, 1)]
    assert index.key(3, 1) == 7
    assert index.get_stats() == {
        'total_tiles': 8,
        'solid_tiles': 2,
        'empty_tiles': 6,
        'solid_percent': 25.0,
    }
    assert index.to_ascii(blocked='X', open_tile=' ') == " X  \n   X"
    assert repr(index) == "CollisionIndex(4x2, blocked=2)"


def test_empty_map_has_empty_index():
    index = build_collision_index(parse_map(build_tmx(0, 0)))
    assert len(index) == 0
    assert index.get_stats()['solid_percent'] == 0
    assert not index.any_blocked(0, 0, 0, 0)


def test_huge_gid_tokens_do_not_break_building():
    tilesets = [{'firstgid': 1, 'name': 'island-0', 'tilecount': 16}]
    text = build_tmx(2, 1, tilesets, [
        {'name': 'water', 'raw': '99999999999999999999,1'},
        {'name': 'buildings-base', 'raw': '4294967295,0'},
    ])
    index = build_collision_index(parse_map(text))
    assert index.blocked_tiles() == {(1, 0)}


def test_inconsistent_layers_are_ignored_by_builder():
    doc = MapDocument(width=2, height=2, layers=(
        Layer(name='water', width=-2, height=-2, data=(1, 1, 1, 1)),
        Layer(name='water', width=2, height=2, data=(1, 1, 1)),
        Layer(name='water', width=2, height=1, data=(0, 1)),
    ))
    index = build_collision_index(doc)
    assert index.blocked_tiles() == {(1, 0)}
