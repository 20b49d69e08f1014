"""Reader for the MagicaVoxel ``.vox`` file format."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterator

_MAGIC = b"VOX "
_CHUNK_HEADER = struct.Struct("<4sii")


class VoxError(ValueError):
    """Raised when ``.vox`` data is malformed."""


@dataclass
class VoxModel:
    """One model: its (x, y, z) size and voxels as (x, y, z, palette index) tuples."""

    size: tuple[int, int, int]
    voxels: list[tuple[int, int, int, int]] = field(default_factory=list)


@dataclass
class VoxData:
    """Parsed file contents; palette entries are little-endian packed RGBA."""

    version: int
    models: list[VoxModel]
    palette: list[int]


def _default_palette() -> list[int]:
    levels = (0xFF, 0xCC, 0x99, 0x66, 0x33, 0x00)
    ramp = (0xEE, 0xDD, 0xBB, 0xAA, 0x88, 0x77, 0x55, 0x44, 0x22, 0x11)
    colours = [(r, g, b) for r in levels for g in levels for b in levels][:-1]
    colours += [(v, 0, 0) for v in ramp]
    colours += [(0, v, 0) for v in ramp]
    colours += [(0, 0, v) for v in ramp]
    colours += [(v, v, v) for v in ramp]
    return [r | (g << 8) | (b << 16) | (0xFF << 24) for r, g, b in colours] + [0]


DEFAULT_PALETTE: tuple[int, ...] = tuple(_default_palette())


def _chunks(data: bytes) -> Iterator[tuple[bytes, bytes, bytes]]:
    offset = 0
    while offset < len(data):
        if offset + _CHUNK_HEADER.size > len(data):
            raise VoxError("truncated chunk header")
        chunk_id, content_size, children_size = _CHUNK_HEADER.unpack_from(data, offset)
        if content_size < 0 or children_size < 0:
            raise VoxError(f"negative size in chunk {chunk_id!r}")
        content_start = offset + _CHUNK_HEADER.size
        children_start = content_start + content_size
        end = children_start + children_size
        if end > len(data):
            raise VoxError(f"chunk {chunk_id!r} is truncated")
        yield chunk_id, data[content_start:children_start], data[children_start:end]
        offset = end


def parse_vox(data: bytes) -> VoxData:
    """Parse the bytes of a ``.vox`` file.

    Voxel colour indices are shifted down by one so they index ``palette``
    directly.
    """
    data = bytes(data)
    if len(data) < 8 or data[:4] != _MAGIC:
        raise VoxError("not a VOX file")
    (version,) = struct.unpack_from("<i", data, 4)

    top = _chunks(data[8:])
    first = next(top, None)
    if first is None or first[0] != b"MAIN":
        raise VoxError("missing MAIN chunk")

    models: list[VoxModel] = []
    palette: list[int] | None = None
    size: tuple[int, int, int] | None = None
    for chunk_id, content, _children in _chunks(first[2]):
        if chunk_id == b"SIZE":
            if len(content) < 12:
                raise VoxError("SIZE chunk is too short")
            size = struct.unpack_from("<iii", content)
        elif chunk_id == b"XYZI":
            if size is None:
                raise VoxError("XYZI chunk without a preceding SIZE chunk")
            if len(content) < 4:
                raise VoxError("XYZI chunk is too short")
            (count,) = struct.unpack_from("<i", content)
            if count < 0 or len(content) < 4 + 4 * count:
                raise VoxError("XYZI chunk is truncated")
            voxels = [
                (x, y, z, max(i - 1, 0))
                for x, y, z, i in struct.iter_unpack("4B", content[4:4 + 4 * count])
            ]
            models.append(VoxModel(size, voxels))
            size = None
        elif chunk_id == b"RGBA":
            usable = len(content) // 4 * 4
            palette = [colour for (colour,) in struct.iter_unpack("<I", content[:usable])]

    return VoxData(version, models, palette if palette is not None else list(DEFAULT_PALETTE))