"""Shared map builders for the tests."""

import pytest


def build_tmx(width, height, tilesets=(), layers=(), tilewidth=16, tileheight=16,
              map_attrs=None):
    """
    Build TMX text.

    tilesets: dicts with firstgid, name, tilecount and optional columns,
              image (False to omit), properties, tile_properties
    layers:   dicts with name, data (list of gids) and optional width,
              height, encoding, raw (data text used verbatim)
    """
    attrs = {'width': width, 'height': height}
    if tilewidth is not None:
        attrs['tilewidth'] = tilewidth
    if tileheight is not None:
        attrs['tileheight'] = tileheight
    attrs.update(map_attrs or {})
    attr_text = ' '.join(f'{k}="{v}"' for k, v in attrs.items())

    parts = [f'<?xml version="1.0" encoding="UTF-8"?>\n<map {attr_text}>']

    for ts in tilesets:
        parts.append(
            f'<tileset firstgid="{ts["firstgid"]}" name="{ts["name"]}" '
            f'tilewidth="16" tileheight="16" tilecount="{ts["tilecount"]}" '
            f'columns="{ts.get("columns", 4)}">'
        )
        if ts.get('properties'):
            parts.append('<properties>')
            for key, value in ts['properties'].items():
                parts.append(f'<property name="{key}" value="{value}"/>')
            parts.append('</properties>')
        if ts.get('image', True):
            parts.append(f'<image source="{ts["name"]}.png" width="64" height="64"/>')
        for tile_id, props in ts.get('tile_properties', {}).items():
            parts.append(f'<tile id="{tile_id}"><properties>')
            for key, value in props.items():
                parts.append(f'<property name="{key}" value="{value}"/>')
            parts.append('</properties></tile>')
        parts.append('</tileset>')

    for i, layer in enumerate(layers, start=1):
        lw = layer.get('width', width)
        lh = layer.get('height', height)
        encoding = layer.get('encoding', 'csv')
        text = layer.get('raw')
        if text is None:
            text = ',\n'.join(str(gid) for gid in layer['data'])
        parts.append(f'<layer id="{i}" name="{layer["name"]}" width="{lw}" height="{lh}">')
        parts.append(f'<data encoding="{encoding}">\n{text}\n</data>')
        parts.append('</layer>')

    parts.append('</map>')
    return '\n'.join(parts)


# Island sample, 4x3 tiles:
#
#   water           everywhere
#   sand            row 1
#   pavement        (0, 2)
#   buildings-base  (1, 1) hotel-closed (solid), (2, 1) paraphernalia (not solid)
#
# Expected blocked:
#   ####
#   .#..
#   .###
ISLAND_TILESETS = [
    {'firstgid': 1, 'name': 'island-0', 'tilecount': 16},
    {'firstgid': 17, 'name': 'hotel-closed', 'tilecount': 16},
    {'firstgid': 33, 'name': 'paraphernalia', 'tilecount': 16},
]

ISLAND_LAYERS = [
    {'name': 'water', 'data': [1] * 12},
    {'name': 'sand', 'data': [0, 0, 0, 0,
                              2, 2, 2, 2,
                              0, 0, 0, 0]},
    {'name': 'pavement', 'data': [0, 0, 0, 0,
                                  0, 0, 0, 0,
                                  3, 0, 0, 0]},
    {'name': 'buildings-base', 'data': [0, 0, 0, 0,
                                        0, 17, 33, 0,
                                        0, 0, 0, 0]},
]

ISLAND_BLOCKED = {
    (0, 0), (1, 0), (2, 0), (3, 0),
    (1, 1),
    (1, 2), (2, 2), (3, 2),
}


@pytest.fixture
def island_text():
    return build_tmx(4, 3, ISLAND_TILESETS, ISLAND_LAYERS)
