"""Editable octree of pointer/colour nodes, loadable from ``.rsvo`` and ``.vox`` files."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from voxtree.octree import Octree, Vec3, Voxel, create_node
from voxtree.vox import VoxError, parse_vox

CHUNK_OFFSET = 2147483648

_RECORD = struct.Struct("<I3Bx")


@dataclass
class Node:
    """A node: ``pointer`` below CHUNK_OFFSET is a child index, otherwise a leaf."""

    pointer: int
    value: Voxel

    def __str__(self) -> str:
        voxel = f"  Voxel: ({self.value.r}, {self.value.g}, {self.value.b})"
        if self.pointer < CHUNK_OFFSET:
            return f"{voxel:<25} Pointer: {self.pointer}"
        return f"{voxel:<25} Pointer: BlockID: {self.pointer - CHUNK_OFFSET}"


class CpuOctree:
    """Octree whose children of a node are stored as 8 consecutive :class:`Node` entries."""

    def __init__(self, mask: int) -> None:
        self.top_mip = Voxel(50, 255, 50)
        self.nodes: list[Node] = []
        self.add_voxels(mask)

    @classmethod
    def _with_nodes(cls, nodes: list[Node], top_mip: Voxel) -> "CpuOctree":
        octree = cls.__new__(cls)
        octree.nodes = nodes
        octree.top_mip = top_mip
        return octree

    def add_voxels(self, mask: int) -> None:
        """Append 8 leaves; those whose bit is set in ``mask`` are filled."""
        for i in range(8):
            if (mask >> i) & 1:
                pointer = CHUNK_OFFSET + len(self.nodes) % 8 + 1
                self.nodes.append(Node(pointer, Voxel(255, 0, 0)))
            else:
                self.nodes.append(Node(CHUNK_OFFSET, Voxel(0, 0, 0)))

    def find_voxel(
        self, pos: Sequence[float], max_depth: Optional[int] = None
    ) -> tuple[int, int, Vec3]:
        """Descend towards ``pos``; return (index, depth, centre of the node found)."""
        px, py, pz = pos
        node_index = 0
        nx = ny = nz = 0.0
        depth = 0
        while True:
            depth += 1
            child = int(px >= nx) * 4 + int(py >= ny) * 2 + int(pz >= nz)
            ox, oy, oz = Octree.pos_offset(child, depth)
            nx, ny, nz = nx + ox, ny + oy, nz + oz
            index = node_index + child
            pointer = self.nodes[index].pointer
            if pointer >= CHUNK_OFFSET or depth == max_depth:
                return index, depth, (nx, ny, nz)
            node_index = pointer

    def get_node_mask(self, node: int) -> list[Voxel]:
        """Colours of the 8 children starting at ``node`` (the first child, not the parent)."""
        return [n.value for n in self.nodes[node:node + 8]]

    def _place(self, pos: Sequence[float], leaf: Node, depth: int) -> None:
        while True:
            node, node_depth, _ = self.find_voxel(pos)
            if node_depth == depth:
                self.nodes[node] = leaf
                return
            if node_depth > depth:
                raise ValueError(
                    f"cannot place at depth {depth}: position resolves at depth {node_depth}"
                )
            self.nodes[node].pointer = len(self.nodes)
            self.add_voxels(0)

    def put_in_block(self, pos: Sequence[float], block_id: int, depth: int) -> None:
        """Store a block reference at ``pos``, subdividing down to ``depth``."""
        self._place(pos, Node(CHUNK_OFFSET + block_id, Voxel(0, 0, 0)), depth)

    def put_in_voxel(self, pos: Sequence[float], voxel: Voxel, depth: int) -> None:
        """Store a coloured voxel at ``pos``, subdividing down to ``depth``."""
        self._place(pos, Node(CHUNK_OFFSET, voxel), depth)

    @classmethod
    def load_file(cls, file: Union[str, os.PathLike], octree_depth: int) -> "CpuOctree":
        """Load an ``.rsvo`` or ``.vox`` file."""
        path = Path(file)
        data = path.read_bytes()
        if path.suffix == ".rsvo":
            return cls.load_octree(data, octree_depth)
        if path.suffix == ".vox":
            return cls.load_vox(data)
        raise ValueError("Unknown file type")

    @classmethod
    def load_octree(cls, data: bytes, octree_depth: int) -> "CpuOctree":
        """Build an octree from ``.rsvo`` data, expanding ``octree_depth`` levels."""
        top_level_start = 16
        node_count_start = 20
        if len(data) <= top_level_start:
            raise ValueError("Truncated octree data")
        top_level = data[top_level_start]
        data_start = node_count_start + 4 * (top_level + 1)
        if len(data) <= data_start:
            raise ValueError("Truncated octree data")

        node_counts = [
            count for (count,) in struct.iter_unpack("<I", data[node_count_start:data_start])
        ]
        if octree_depth > top_level:
            raise ValueError(
                f"Octree depth ({octree_depth}) is greater than top level ({top_level})"
            )
        node_end = sum(node_counts[:octree_depth])

        octree = cls(data[data_start])
        data_index = 1
        node_index = 0
        while node_index < len(octree.nodes):
            node = octree.nodes[node_index]
            if node.pointer > CHUNK_OFFSET:
                if data_index < node_end:
                    if data_start + data_index >= len(data):
                        raise ValueError("Truncated octree data")
                    child_mask = data[data_start + data_index]
                    node.pointer = len(octree.nodes)
                    octree.add_voxels(child_mask)
                data_index += 1
            node_index += 1
        return octree

    @classmethod
    def load_vox(cls, data: bytes) -> "CpuOctree":
        """Build an octree from the first model of ``.vox`` data."""
        vox = parse_vox(data)
        if not vox.models:
            raise VoxError("VOX file holds no models")
        sx, sy, sz = vox.models[0].size
        if sx != sy or sx != sz:
            raise ValueError("Voxel model is not a cube!")
        size = sx
        if size <= 0 or size & (size - 1):
            raise ValueError("Voxel model size is not a power of 2!")
        depth = size.bit_length() - 1

        octree = cls(0)
        for x, y, z, index in vox.models[0].voxels:
            colour = vox.palette[index]
            pos = (
                (size - x - 1) / size * 2.0 - 1.0,
                z / size * 2.0 - 1.0,
                y / size * 2.0 - 1.0,
            )
            voxel = Voxel(colour & 0xFF, (colour >> 8) & 0xFF, (colour >> 16) & 0xFF)
            octree.put_in_voxel(pos, voxel, depth)
        return octree

    @classmethod
    def load_structure(
        cls, path: Union[str, os.PathLike]
    ) -> list[tuple[tuple[int, int, int], int]]:
        """Read a ``.vox`` file as a list of (position, block id) pairs."""
        vox = parse_vox(Path(path).read_bytes())
        if not vox.models:
            raise VoxError("VOX file holds no models")
        model = vox.models[0]
        sx, sy, _ = model.size
        return [
            ((sx // 2 - x, z, y - sy // 2), index + 1)
            for x, y, z, index in model.voxels
        ]

    def to_octree(self) -> Octree:
        """Convert to a packed :class:`Octree` (without positions)."""
        return Octree._from_nodes(
            create_node(node.pointer) if node.pointer < CHUNK_OFFSET else node.value.to_value()
            for node in self.nodes
        )

    def raw(self) -> list[int]:
        """The pointer of every node."""
        return [node.pointer for node in self.nodes]

    def bin(self) -> bytes:
        """Nodes as 8-byte records: little-endian pointer, r, g, b, one pad byte."""
        return b"".join(
            _RECORD.pack(node.pointer, node.value.r, node.value.g, node.value.b)
            for node in self.nodes
        )

    @classmethod
    def from_bin(cls, data: bytes) -> "CpuOctree":
        """Inverse of :meth:`bin`; the top mip is black."""
        if len(data) % _RECORD.size:
            raise ValueError(f"binary length {len(data)} is not a multiple of {_RECORD.size}")
        nodes = [
            Node(pointer, Voxel(r, g, b)) for pointer, r, g, b in _RECORD.iter_unpack(data)
        ]
        return cls._with_nodes(nodes, Voxel(0, 0, 0))

    def __str__(self) -> str:
        parts = [f"Nodes ({len(self.nodes)}):\n"]
        for count, node in enumerate(self.nodes, 1):
            parts.append(f"{node}\n")
            if count % 8 == 0:
                parts.append("\n")
        return "".join(parts)