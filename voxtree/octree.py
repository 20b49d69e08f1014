"""Sparse voxel octree packed into 32-bit words, with per-node positions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

VOXEL_OFFSET = 134217728
_U32 = 0xFFFFFFFF

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class Voxel:
    """An RGB colour stored in a voxel."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 0xFF:
                raise ValueError(f"colour channel out of range: {channel}")

    @classmethod
    def from_value(cls, value: int) -> "Voxel":
        """Build a voxel from a packed 0xRRGGBB value."""
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def to_value(self) -> int:
        """Packed leaf word as stored in an :class:`Octree`."""
        return ((VOXEL_OFFSET + self.to_cpu_value()) << 4) & _U32

    def to_cpu_value(self) -> int:
        """Packed 0xRRGGBB value."""
        return (self.r << 16) | (self.g << 8) | self.b

    def __str__(self) -> str:
        return f"({self.r}, {self.g}, {self.b})"


def create_node(value: int) -> int:
    """Packed word for an inner node whose children start at ``value``."""
    return (value << 4) & _U32


def _eight(mask: Iterable[Voxel]) -> list[Voxel]:
    voxels = list(mask)
    if len(voxels) != 8:
        raise ValueError(f"a node mask needs 8 voxels, got {len(voxels)}")
    return voxels


def _add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _fmt_float(x: float) -> str:
    if x == 0:
        return "-0" if math.copysign(1.0, x) < 0 else "0"
    if x.is_integer():
        return str(int(x))
    text = repr(float(x))
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


class Octree:
    """Octree of packed words; children of a node are stored as 8 consecutive words."""

    def __init__(self, mask: Iterable[Voxel]) -> None:
        voxels = _eight(mask)
        self.nodes: list[int] = [voxel.to_value() for voxel in voxels]
        self.positions: list[Vec3] = [self.pos_offset(i, 1) for i in range(8)]
        self.hole_stack: list[int] = []

    @classmethod
    def _from_nodes(cls, nodes: Iterable[int]) -> "Octree":
        octree = cls.__new__(cls)
        octree.nodes = list(nodes)
        octree.positions = []
        octree.hole_stack = []
        return octree

    def get_node(self, index: int) -> int:
        """The word at ``index`` without its low four flag bits."""
        return self.nodes[index] >> 4

    def subdivide(self, node: int, mask: Iterable[Voxel], depth: int) -> None:
        """Replace leaf ``node`` with 8 children, reusing a freed slot when possible."""
        voxels = _eight(mask)
        if self.get_node(node) < VOXEL_OFFSET:
            raise ValueError("Node already subdivided!")

        parent = self.positions[node]
        values = [voxel.to_value() for voxel in voxels]
        positions = [_add(parent, self.pos_offset(i, depth)) for i in range(8)]

        if self.hole_stack:
            index = self.hole_stack.pop()
            self.nodes[index:index + 8] = values
            self.positions[index:index + 8] = positions
        else:
            index = len(self.nodes)
            self.nodes.extend(values)
            self.positions.extend(positions)
        self.nodes[node] = create_node(index)

    def unsubdivide(self, node: int) -> None:
        """Collapse inner ``node`` back into a leaf and free its children's slot."""
        children = self.get_node(node)
        if children >= VOXEL_OFFSET:
            raise ValueError(f"Node {node} not subdivided!")
        if self.positions[node] == (0.0, 0.0, 0.0):
            raise ValueError("Tried to unsubdivide a node without position!")
        self.hole_stack.append(children)
        self.nodes[node] = Voxel(255, 0, 0).to_value()

    def find_voxel(
        self, pos: Sequence[float], max_depth: Optional[int] = None
    ) -> tuple[int, int, Vec3]:
        """Descend towards ``pos``; return (index, depth, centre of the node found)."""
        px, py, pz = pos
        node_index = 0
        node_pos: Vec3 = (0.0, 0.0, 0.0)
        depth = 0
        while True:
            depth += 1
            child = int(px >= node_pos[0]) * 4 + int(py >= node_pos[1]) * 2 + int(pz >= node_pos[2])
            node_pos = _add(node_pos, self.pos_offset(child, depth))
            index = node_index + child
            if self.get_node(index) >= VOXEL_OFFSET or depth == max_depth:
                return index, depth, node_pos
            node_index = self.get_node(index)

    def expanded(self, size: int) -> list[int]:
        """The node words padded with zeros up to ``size``."""
        if size < len(self.nodes):
            raise ValueError(f"cannot expand {len(self.nodes)} nodes to {size}")
        return self.nodes + [0] * (size - len(self.nodes))

    @staticmethod
    def pos_offset(child_index: int, depth: int) -> Vec3:
        """Offset of child ``child_index`` from its parent's centre at ``depth``."""
        scale = float(1 << depth)
        x = (child_index >> 2) & 1
        y = (child_index >> 1) & 1
        z = child_index & 1
        return ((x * 2.0 - 1.0) / scale, (y * 2.0 - 1.0) / scale, (z * 2.0 - 1.0) / scale)

    def __str__(self) -> str:
        parts = [f"Nodes ({len(self.nodes)}):\n"]
        for count, value in enumerate(self.nodes, 1):
            x, y, z = (_fmt_float(c) for c in self.positions[count - 1])
            if value >= VOXEL_OFFSET << 4:
                parts.append(f"  Voxel: {(value >> 4) - VOXEL_OFFSET} ({x}, {y}, {z})\n")
            else:
                parts.append(f"  Node: {value >> 4} ({x}, {y}, {z})\n")
            if count % 8 == 0:
                parts.append("\n")
        return "".join(parts)