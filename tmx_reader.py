#!/usr/bin/env python3

"""
Module for reading TMX files (Tiled Map Format) into an immutable map document

=============================================================================
WHAT IS READ?
=============================================================================

The island maps are authored in the Tiled Map Editor and saved as TMX.
This module reads the subset of TMX the game consumes:

- Map dimensions and tile sizes
- Tilesets backed by a single spritesheet image
- Tile layers stored as plain CSV
- Custom properties on the map, on tilesets and on individual tiles

Everything else in the format (object layers, rotation/flip flags, infinite
maps, base64/zlib/gzip data, image collection tilesets) is not supported.

=============================================================================
TMX FILE STRUCTURE
=============================================================================

    <map version="1.10" orientation="orthogonal" width="100" height="100"
         tilewidth="16" tileheight="16">

        <tileset firstgid="1" name="island-0" tilewidth="16" tileheight="16"
                 tilecount="256" columns="16">
            <properties>
                <property name="terrain" value="water"/>
            </properties>
            <image source="assets/layers/island-layer-0.png"
                   width="256" height="256"/>
            <tile id="3">
                <properties>
                    <property name="speed" value="0.5"/>
                </properties>
            </tile>
        </tileset>

        <layer id="1" name="water" width="100" height="100">
            <data encoding="csv">
                1,2,3,4,5,...
            </data>
        </layer>
    </map>

=============================================================================
ROBUSTNESS OVER STRICTNESS
=============================================================================

Only a missing (or unreadable) <map> element is fatal. Everything else
degrades locally and is logged:

- Missing / non-numeric numeric attributes  → documented defaults
- Tileset without an <image>                 → tileset skipped
- Unparseable CSV token                      → treated as 0 (empty)
- Layer whose data length != width*height    → layer dropped

A map with one bad layer still loads a playable world.

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

    Tileset A (firstgid=1,   tilecount=100): GIDs 1-100
    Tileset B (firstgid=101, tilecount=50):  GIDs 101-150

    GID 0   = empty tile (no graphic)
    GID 150 = tile 49 of tileset B (150 - 101)

See resolve_gid() for the ownership rule and the tie-break on overlaps.

=============================================================================
"""

import asyncio
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PropertyValue = Union[str, int, float]


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_TILE_SIZE = 16        # Used for map and tileset tile width/height
DEFAULT_FIRST_GID = 1
DEFAULT_COLUMNS = 1
MAX_GID = 0xFFFFFFFF          # GIDs are unsigned 32-bit in TMX

_INT_RE = re.compile(r'^[+-]?\d+$', re.ASCII)
_NUMBER_RE = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$', re.ASCII)
_GID_RE = re.compile(r'^\+?\d+$', re.ASCII)


# =============================================================================
# ERRORS
# =============================================================================

class TmxError(Exception):
    """Base class for map loading errors."""


class MalformedMapError(TmxError):
    """
    The map text cannot produce any usable map.

    Raised when the text is not well-formed XML or contains no <map>
    element. No partial MapDocument is ever returned alongside it.
    """


# =============================================================================
# PROPERTY COERCION
# =============================================================================

def coerce_property_value(raw: str) -> PropertyValue:
    """
    Convert a property value string to a number when it is fully numeric.

    The same rule is used for map, tileset and tile properties:

        "12"      → 12        (int)
        "-0.5"    → -0.5      (float)
        "1e3"     → 1000.0    (float)
        " 7 "     → 7         (surrounding whitespace ignored)
        "12px"    → "12px"    (kept as text, not a full number)
        "true"    → "true"    (kept as text)
    """
    text = raw.strip()
    if _INT_RE.match(text):
        return int(text)
    if _NUMBER_RE.match(text):
        return float(text)
    return raw


def _parse_properties(elem: Optional[ET.Element]) -> Dict[str, PropertyValue]:
    """
    Parse a <properties> element into a name → value mapping.

    Entries with an empty name or an empty value are ignored.
    """
    properties: Dict[str, PropertyValue] = {}
    if elem is None:
        return properties

    for prop_elem in elem.findall('property'):
        name = prop_elem.get('name')
        value = prop_elem.get('value')
        if not name or not value:
            continue
        properties[name] = coerce_property_value(value)

    return properties


# =============================================================================
# NUMERIC ATTRIBUTES
# =============================================================================

def _int_attr(elem: ET.Element, name: str, default: int, context: str) -> int:
    """
    Read an integer attribute, falling back to a default.

    Absent attributes fall back silently (debug log). Present but
    non-numeric ones fall back with a warning. Real-valued text such as
    "16.0" is truncated.
    """
    raw = elem.get(name)
    if raw is None:
        logger.debug("%s: missing '%s', using %d", context, name, default)
        return default

    text = raw.strip()
    if _INT_RE.match(text):
        return int(text)
    if _NUMBER_RE.match(text):
        return int(float(text))

    logger.warning("%s: non-numeric '%s'=%r, using %d", context, name, raw, default)
    return default


# =============================================================================
# TILESET IMAGE CLASS
# =============================================================================

@dataclass(frozen=True)
class TilesetImage:
    """
    Spritesheet image reference of a tileset.

    source: Path to the image file (relative to the TMX file)
    width:  Image width in pixels (0 when not declared)
    height: Image height in pixels (0 when not declared)
    """
    source: str
    width: int = 0
    height: int = 0

    @classmethod
    def from_xml(cls, elem: ET.Element, context: str) -> 'TilesetImage':
        return cls(
            source=elem.get('source', ''),
            width=_int_attr(elem, 'width', 0, context),
            height=_int_attr(elem, 'height', 0, context),
        )


# =============================================================================
# TILESET CLASS
# =============================================================================

@dataclass(frozen=True, eq=False)
class Tileset:
    """
    One image-backed sheet of tiles.

    ==========================================================================
    OWNERSHIP RANGE
    ==========================================================================

    A tileset owns the half-open GID interval

        [first_gid, first_gid + tile_count)

    Well-formed maps never overlap these ranges. When they do, resolve_gid()
    still answers deterministically (last tileset in document order wins).

    ==========================================================================
    SPRITESHEET LAYOUT
    ==========================================================================

       +---+---+---+---+
       | 0 | 1 | 2 | 3 |      columns = 4
       +---+---+---+---+
       | 4 | 5 | 6 | 7 |      local index 6 → row 1, column 2
       +---+---+---+---+

    margin  = pixels around the edge of the whole image
    spacing = pixels between neighbouring tiles

    ==========================================================================
    """
    first_gid: int
    name: str
    tile_width: int = DEFAULT_TILE_SIZE
    tile_height: int = DEFAULT_TILE_SIZE
    tile_count: int = 0
    columns: int = DEFAULT_COLUMNS
    image: Optional[TilesetImage] = None
    spacing: int = 0
    margin: int = 0
    properties: Dict[str, PropertyValue] = field(default_factory=dict)
    tile_properties: Dict[int, Dict[str, PropertyValue]] = field(default_factory=dict)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> Optional['Tileset']:
        """
        Parse a tileset from a <tileset> element.

        Returns None (and logs) when the tileset has no <image>, since
        only single-image tilesets can be drawn.
        """
        name = elem.get('name', '')
        context = f"tileset '{name}'"

        img_elem = elem.find('image')
        if img_elem is None:
            logger.warning("Skipping %s: no <image> element", context)
            return None

        # Per-tile properties: only tiles that declare <properties>
        tile_properties: Dict[int, Dict[str, PropertyValue]] = {}
        for tile_elem in elem.iter('tile'):
            props_elem = tile_elem.find('properties')
            if props_elem is None:
                continue
            tile_id = _int_attr(tile_elem, 'id', 0, f"{context} tile")
            tile_properties[tile_id] = _parse_properties(props_elem)

        return cls(
            first_gid=_int_attr(elem, 'firstgid', DEFAULT_FIRST_GID, context),
            name=name,
            tile_width=_int_attr(elem, 'tilewidth', DEFAULT_TILE_SIZE, context),
            tile_height=_int_attr(elem, 'tileheight', DEFAULT_TILE_SIZE, context),
            tile_count=_int_attr(elem, 'tilecount', 0, context),
            columns=_int_attr(elem, 'columns', DEFAULT_COLUMNS, context),
            image=TilesetImage.from_xml(img_elem, f"{context} image"),
            spacing=_int_attr(elem, 'spacing', 0, context),
            margin=_int_attr(elem, 'margin', 0, context),
            # Direct child only: <tile> elements carry their own <properties>
            properties=_parse_properties(elem.find('properties')),
            tile_properties=tile_properties,
        )

    @property
    def last_gid(self) -> int:
        """Last GID owned by this tileset (first_gid - 1 when empty)."""
        return self.first_gid + self.tile_count - 1

    def owns(self, gid: int) -> bool:
        """True if gid falls inside [first_gid, first_gid + tile_count)."""
        return self.first_gid <= gid < self.first_gid + self.tile_count

    def get_tile_properties(self, local_index: int) -> Dict[str, PropertyValue]:
        """Properties of one tile, empty when the tile declares none."""
        return self.tile_properties.get(local_index, {})


# =============================================================================
# LAYER CLASS
# =============================================================================

@dataclass(frozen=True)
class Layer:
    """
    One tile layer - a row-major grid of GIDs.

    The layer NAME carries its meaning for collision ("water", "sand",
    "buildings-base", ...). There is no separate type field.

    Index calculation: data[y * width + x]

    len(data) always equals the layer's OWN width*height. A layer may be
    larger or smaller than the map; consumers crop it to the map extents.
    """
    name: str
    width: int
    height: int
    data: Tuple[int, ...] = ()
    id: int = 0

    def gid_at(self, x: int, y: int) -> int:
        """GID at column x, row y (0 when out of bounds)."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.data[y * self.width + x]
        return 0

    def non_empty_count(self) -> int:
        return sum(1 for gid in self.data if gid)


def _decode_csv(text: Optional[str], context: str) -> Tuple[int, ...]:
    """
    Decode CSV tile data.

    The whole block is stripped, split on ',', and each token stripped
    and parsed as a non-negative integer. Unparseable tokens, and values
    above MAX_GID, become 0.
    """
    tokens = (text or '').strip().split(',')

    gids: List[int] = []
    bad_tokens = 0
    for token in tokens:
        token = token.strip()
        if _GID_RE.match(token) and int(token) <= MAX_GID:
            gids.append(int(token))
        else:
            gids.append(0)
            bad_tokens += 1

    if bad_tokens:
        logger.warning("%s: %d unparseable tile token(s) treated as empty",
                       context, bad_tokens)

    return tuple(gids)


def _parse_layer(elem: ET.Element) -> Optional[Layer]:
    """
    Parse a <layer> element.

    Returns None when the layer has no <data>, a non-positive size, or
    decoded data whose length does not match width*height.
    """
    name = elem.get('name', '')
    context = f"layer '{name}'"

    data_elem = elem.find('data')
    if data_elem is None:
        logger.warning("Skipping %s: no <data> element", context)
        return None

    width = _int_attr(elem, 'width', 0, context)
    height = _int_attr(elem, 'height', 0, context)
    if width <= 0 or height <= 0:
        logger.warning("Dropping %s: non-positive size %dx%d", context, width, height)
        return None

    encoding = data_elem.get('encoding')
    if encoding == 'csv':
        data = _decode_csv(data_elem.text, context)
    else:
        logger.warning("%s: unsupported tile data encoding %r", context, encoding)
        data = ()

    if len(data) != width * height:
        logger.warning("Dropping %s: %d tiles for a %dx%d grid",
                       context, len(data), width, height)
        return None

    return Layer(
        name=name,
        width=width,
        height=height,
        data=data,
        id=_int_attr(elem, 'id', 0, context),
    )


# =============================================================================
# GID RESOLUTION
# =============================================================================

def resolve_gid(tilesets: Iterable[Tileset], gid: int) -> Optional[Tuple[Tileset, int]]:
    """
    Find which tileset owns a GID and the tile's local index within it.

    Parameters:
    -----------
    tilesets : iterable of Tileset
        Tilesets in document order
    gid : int
        Global tile ID

    Returns:
    --------
    (tileset, local_index) or None when no tileset owns the GID

    =======================================================================
    ALGORITHM
    =======================================================================

    GID 0 means "no tile" and never reaches the scan, even if some
    tileset claims first_gid=0.

    Every tileset is tested; each match OVERWRITES the candidate. The
    last matching tileset in document order therefore wins when ranges
    overlap:

        A: first_gid=1,  tile_count=20  → [1, 21)
        B: first_gid=11, tile_count=20  → [11, 31)

        GID 5  → (A, 4)
        GID 15 → (B, 4)     both own it, B comes last
        GID 25 → (B, 14)

    =======================================================================
    """
    if gid <= 0:
        return None

    result: Optional[Tuple[Tileset, int]] = None
    for tileset in tilesets:
        if tileset.owns(gid):
            result = (tileset, gid - tileset.first_gid)
    return result


def tileset_for_gid(tilesets: Iterable[Tileset], gid: int) -> Optional[Tileset]:
    """Like resolve_gid() but returns only the owning tileset."""
    resolved = resolve_gid(tilesets, gid)
    return resolved[0] if resolved else None


# =============================================================================
# MAP DOCUMENT CLASS (Main Entry Point)
# =============================================================================

@dataclass(frozen=True)
class MapDocument:
    """
    Parsed map - the root object produced by parse_map().

    Built once at load time and never mutated afterwards. It is read by the
    collision index builder and handed unchanged to whatever draws the map.

    ==========================================================================
    USAGE
    ==========================================================================

        document = MapDocument.load("map-v3.tmx")
        print(f"{document.width}x{document.height} tiles")

        water = document.get_layer("water")
        gid = water.gid_at(5, 10)
        tileset, local_index = document.resolve_gid(gid)

    ==========================================================================
    """
    width: int
    height: int
    tile_width: int = DEFAULT_TILE_SIZE
    tile_height: int = DEFAULT_TILE_SIZE
    tilesets: Tuple[Tileset, ...] = ()
    layers: Tuple[Layer, ...] = ()
    properties: Dict[str, PropertyValue] = field(default_factory=dict, compare=False)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'MapDocument':
        """
        Load and parse a TMX file from disk.

        Raises:
        -------
        OSError : If the file can't be read
        MalformedMapError : If it contains no usable <map>
        """
        filepath = Path(filepath)
        logger.info("Loading map: %s", filepath)
        return parse_map(filepath.read_text(encoding='utf-8'))

    @property
    def pixel_width(self) -> int:
        return self.width * self.tile_width

    @property
    def pixel_height(self) -> int:
        return self.height * self.tile_height

    def get_layer(self, name: str) -> Optional[Layer]:
        """First layer with this name, or None."""
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def get_tileset(self, name: str) -> Optional[Tileset]:
        """First tileset with this name, or None."""
        for tileset in self.tilesets:
            if tileset.name == name:
                return tileset
        return None

    def resolve_gid(self, gid: int) -> Optional[Tuple[Tileset, int]]:
        return resolve_gid(self.tilesets, gid)


def parse_map(text: str) -> MapDocument:
    """
    Parse TMX text into a MapDocument.

    Parameters:
    -----------
    text : str
        Complete TMX document (already fetched / read)

    Returns:
    --------
    MapDocument : Fully parsed map

    Raises:
    -------
    MalformedMapError : If the text is not XML or holds no <map> element

    The parse is a single synchronous pass: callers get either a complete
    document or an exception, never a partially filled one.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedMapError(f"Map text is not well-formed XML: {e}") from e

    map_elem = root if root.tag == 'map' else root.find('.//map')
    if map_elem is None:
        raise MalformedMapError("No <map> element found")

    # -----------------------------------------------------------------
    # TILESETS
    # -----------------------------------------------------------------
    tilesets: List[Tileset] = []
    for tileset_elem in map_elem.iter('tileset'):
        tileset = Tileset.from_xml(tileset_elem)
        if tileset is not None:
            tilesets.append(tileset)

    # -----------------------------------------------------------------
    # LAYERS (document order = draw / scan order)
    # -----------------------------------------------------------------
    layers: List[Layer] = []
    for layer_elem in map_elem.iter('layer'):
        layer = _parse_layer(layer_elem)
        if layer is not None:
            layers.append(layer)

    document = MapDocument(
        width=_int_attr(map_elem, 'width', 0, 'map'),
        height=_int_attr(map_elem, 'height', 0, 'map'),
        tile_width=_int_attr(map_elem, 'tilewidth', DEFAULT_TILE_SIZE, 'map'),
        tile_height=_int_attr(map_elem, 'tileheight', DEFAULT_TILE_SIZE, 'map'),
        tilesets=tuple(tilesets),
        layers=tuple(layers),
        properties=_parse_properties(map_elem.find('properties')),
    )

    for layer in document.layers:
        if (layer.width, layer.height) != (document.width, document.height):
            logger.info("Layer '%s' is %dx%d, map is %dx%d",
                        layer.name, layer.width, layer.height,
                        document.width, document.height)

    logger.info("Parsed map %dx%d (%dx%d px tiles): %d tilesets, %d layers",
                document.width, document.height,
                document.tile_width, document.tile_height,
                len(document.tilesets), len(document.layers))
    return document


async def load_map_async(filepath: Union[str, Path]) -> MapDocument:
    """
    Read a TMX file without blocking the event loop, then parse it.

    Only the file read is asynchronous; parsing is the same synchronous
    pass as parse_map().
    """
    text = await asyncio.to_thread(Path(filepath).read_text, encoding='utf-8')
    return parse_map(text)


def summarize_tilesets(tilesets: Sequence[Tileset]) -> List[str]:
    """One human-readable line per tileset (used by the CLI)."""
    lines = []
    for tileset in tilesets:
        lines.append(
            f"{tileset.name}: GIDs {tileset.first_gid}-{tileset.last_gid} "
            f"({tileset.tile_count} tiles, {tileset.columns} columns)"
        )
    return lines
