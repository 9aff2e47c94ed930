"""
Tileset images: texture keys, tile source rectangles and tile cutting (PIL)

=============================================================================
TEXTURE KEYS
=============================================================================

Whatever draws the map registers each tileset image under a texture KEY.
Usually the key is the tileset's name, but some island tilesets were renamed
in Tiled after their images were registered:

    tileset name       texture key
    ---------------    -----------
    island-layer-0  →  island-0
    island-layer-3  →  island-layer-3   (no remap needed)

TextureNameTable holds that remap; GID resolution itself knows nothing about
textures.

=============================================================================
SOURCE RECTANGLES
=============================================================================

A tile's pixels inside its spritesheet, for local index i:

    column = i % columns
    row    = i // columns
    x      = margin + column * (tile_width + spacing)
    y      = margin + row    * (tile_height + spacing)

=============================================================================
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from PIL import Image

from tmx_reader import MapDocument, Tileset, resolve_gid

from .. import config

logger = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]


class TextureNameTable:
    """Maps tileset names to the texture keys their images are loaded under."""

    def __init__(self, remap: Optional[Mapping[str, str]] = None):
        self.remap: Dict[str, str] = dict(config.TEXTURE_NAME_REMAP if remap is None else remap)

    def texture_key(self, tileset: Tileset) -> str:
        return self.remap.get(tileset.name, tileset.name)

    def missing_keys(self, document: MapDocument, available) -> Dict[str, str]:
        """
        Tilesets whose texture key is not among the available keys.

        Returns {tileset name: texture key} for each miss.
        """
        available = set(available)
        missing = {}
        for tileset in document.tilesets:
            key = self.texture_key(tileset)
            if key not in available:
                missing[tileset.name] = key
        return missing


def tile_source_rect(tileset: Tileset, local_index: int) -> Rect:
    """
    Pixel rectangle (x, y, width, height) of a tile inside its spritesheet.

    A tileset declaring columns=0 is treated as a single column.
    """
    columns = tileset.columns if tileset.columns > 0 else 1
    column = local_index % columns
    row = local_index // columns
    x = tileset.margin + column * (tileset.tile_width + tileset.spacing)
    y = tileset.margin + row * (tileset.tile_height + tileset.spacing)
    return x, y, tileset.tile_width, tileset.tile_height


class TileAtlas:
    """
    Cuts individual tile images out of tileset spritesheets.

    Images are opened lazily, converted to RGBA once and kept per tileset.
    Cut tiles are cached per GID.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    atlas = TileAtlas(document, base_path="maps/")
    image = atlas.get_tile_image(gid)        # PIL.Image or None
    ```

    ==========================================================================
    """

    def __init__(self, document: MapDocument, base_path: Union[str, Path] = '.',
                 names: Optional[TextureNameTable] = None):
        self.document = document
        self.base_path = Path(base_path)
        self.names = names or TextureNameTable()

        self._sheets: Dict[str, Image.Image] = {}
        self._tiles: Dict[int, Image.Image] = {}

    def image_path(self, tileset: Tileset) -> Path:
        return self.base_path / tileset.image.source

    def sheet(self, tileset: Tileset) -> Image.Image:
        """
        Full spritesheet of a tileset, loaded on first use.

        Raises:
        -------
        OSError : If the image file can't be opened
        """
        key = self.names.texture_key(tileset)
        if key not in self._sheets:
            path = self.image_path(tileset)
            with Image.open(path) as image:
                self._sheets[key] = image.convert('RGBA')
            logger.info("Loaded tileset: %s as '%s' (%dx%d)", path, key,
                        self._sheets[key].width, self._sheets[key].height)
        return self._sheets[key]

    def get_tile_image(self, gid: int) -> Optional[Image.Image]:
        """Image of one tile, or None for empty / unowned GIDs."""
        if gid in self._tiles:
            return self._tiles[gid]

        resolved = resolve_gid(self.document.tilesets, gid)
        if resolved is None:
            return None

        tileset, local_index = resolved
        x, y, w, h = tile_source_rect(tileset, local_index)
        tile = self.sheet(tileset).crop((x, y, x + w, y + h))
        self._tiles[gid] = tile
        return tile
