# voxtree

Sparse voxel octrees in pure Python. It needs only the standard library.

The package has two octree forms:

- `voxtree.cpu_octree.CpuOctree` is a flat list of `Node` entries. Each node's eight children
  are stored next to each other. A node holds a `pointer` and a colour (`value`). A pointer
  below `CHUNK_OFFSET` is the index of the node's first child. Any other pointer marks a leaf,
  and `pointer - CHUNK_OFFSET` is its block id. This is the editable form, and the one that
  models load into.
- `voxtree.octree.Octree` is a packed list of 32-bit words. Each word is either a pointer to
  eight children or a colour voxel. It also records the centre of every node. When a node is
  collapsed, its freed group of eight children goes on `hole_stack` and is reused by the next
  `subdivide`.

Space runs from -1 to 1 on each axis. The child index of a point is `x * 4 + y * 2 + z`. Each
term is 1 when the point lies at or beyond the parent's centre on that axis.

## Installation

```
pip install voxtree
```

## Building an octree

```python
from voxtree.cpu_octree import CpuOctree
from voxtree.octree import Voxel

tree = CpuOctree(0)                                  # eight empty leaves
tree.put_in_voxel((0.3, -0.6, 0.8), Voxel(10, 20, 30), 3)
index, depth, centre = tree.find_voxel((0.3, -0.6, 0.8), None)
print(tree.nodes[index].value, depth, centre)        # (10, 20, 30) 3 (...)
```

Methods on `CpuOctree`:

- The constructor takes an 8-bit mask. Each set bit creates a filled (red) leaf.
- `add_voxels(mask)` appends a further group of eight leaves built from a mask.
- `put_in_block(pos, block_id, depth)` stores a block id in the leaf at `pos` instead of a colour.
  Like `put_in_voxel`, it subdivides down to `depth` as needed. It raises `ValueError` if the
  position already resolves deeper than `depth`.
- `get_node_mask(node)` returns the colours of the eight children that start at `node`.

`find_voxel(pos, max_depth)` returns three things: the index of the node reached, its depth and
its centre. The search stops at a leaf, or at `max_depth` when that is given.

## Loading models

```python
tree = CpuOctree.load_file("model.rsvo", 5)   # .rsvo sparse voxel octree, expanded 5 levels
tree = CpuOctree.load_file("model.vox", 0)    # MagicaVoxel model; the depth argument is unused
```

- Any other file extension raises `ValueError("Unknown file type")`.
- `.rsvo` loading raises `ValueError` if the data is truncated, or if the requested depth is
  greater than the file's top level.
- A `.vox` model must be a cube whose side is a power of two. Only the first model in the file
  is used.
- `CpuOctree.load_octree(data, depth)` and `CpuOctree.load_vox(data)` take the raw bytes
  directly.
- `CpuOctree.load_structure(path)` reads a `.vox` file as a list of
  `((x, y, z), palette index + 1)` pairs. The positions are centred on the model in x and z.

The `.vox` parser can also be used on its own. `voxtree.vox.parse_vox(data)` returns a
`VoxData`, which holds `version`, a list of `VoxModel` (`size` and `voxels`) and `palette`. The
palette holds little-endian packed RGBA entries, and is the default palette if the file has none.
Colour indices are shifted down by one, so they index `palette` directly. Malformed input raises
`VoxError`, a subclass of `ValueError`.

## Converting and serialising

- `tree.to_octree()` converts to the packed `Octree` form. The result holds only node words.
  Node positions are not carried over, so `str()` and `subdivide` need an `Octree` that was
  built directly.
- `tree.raw()` returns the pointer of every node.
- `tree.bin()` writes each node as an 8-byte record. A record is the little-endian pointer, then
  r, g and b, then one pad byte. `CpuOctree.from_bin(data)` reverses this and sets `top_mip` to
  black.
- `str(tree)` lists every node, in groups of eight.

## The packed form

```python
from voxtree.octree import Octree, Voxel

packed = Octree([Voxel(255, 0, 0)] * 8)
packed.subdivide(0, [Voxel(0, 0, 255)] * 8, 2)
packed.unsubdivide(0)        # node 0 becomes a red voxel; group 8..15 goes on hole_stack
words = packed.expanded(64)  # node words padded with zeros to 64 entries
```

Errors and helpers:

- `subdivide` raises `ValueError` on a node that is already subdivided.
- `unsubdivide` raises `ValueError` on a leaf, and on a node whose position is the origin.
- `expanded` raises `ValueError` if the size is smaller than the node count.
- `Voxel.to_cpu_value()` packs a colour as `0xRRGGBB`, and `Voxel.from_value()` reverses it.
- `Voxel.to_value()` and `create_node(index)` produce the packed leaf and pointer words.

## What it does not do

This is a data-structure library only. It has no renderer and no GPU upload code. It has no
command-line tool, and it cannot write `.vox` or `.rsvo` files.