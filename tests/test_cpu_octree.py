import struct

import pytest

from voxtree.cpu_octree import CHUNK_OFFSET, CpuOctree, Node
from voxtree.octree import Voxel


def _chunk(chunk_id, content=b"", children=b""):
    return chunk_id + struct.pack("<ii", len(content), len(children)) + content + children


def _vox(size, voxels, palette=None):
    body = _chunk(b"SIZE", struct.pack("<iii", *size))
    body += _chunk(b"XYZI", struct.pack("<i", len(voxels)) + b"".join(bytes(v) for v in voxels))
    if palette is not None:
        body += _chunk(b"RGBA", b"".join(bytes(c) for c in palette))
    return b"VOX " + struct.pack("<i", 150) + _chunk(b"MAIN", b"", body)


def _rsvo(top_level, counts, masks):
    header = bytes(16) + bytes([top_level, 0, 0, 0])
    return header + b"".join(struct.pack("<I", c) for c in counts) + bytes(masks)


def test_new_octree_follows_mask():
    octree = CpuOctree(0b101)
    assert octree.top_mip == Voxel(50, 255, 50)
    assert len(octree.nodes) == 8
    for i, node in enumerate(octree.nodes):
        if (0b101 >> i) & 1:
            assert node == Node(CHUNK_OFFSET + i + 1, Voxel(255, 0, 0))
        else:
            assert node == Node(CHUNK_OFFSET, Voxel(0, 0, 0))


def test_put_in_voxel_then_find():
    octree = CpuOctree(0)
    pos = (0.3, -0.6, 0.1)
    octree.put_in_voxel(pos, Voxel(1, 2, 3), 3)
    index, depth, _ = octree.find_voxel(pos)
    assert depth == 3
    assert octree.nodes[index] == Node(CHUNK_OFFSET, Voxel(1, 2, 3))
    assert len(octree.nodes) % 8 == 0


def test_find_voxel_max_depth_stops_at_inner_node():
    octree = CpuOctree(0)
    pos = (0.3, -0.6, 0.1)
    octree.put_in_voxel(pos, Voxel(1, 2, 3), 3)
    index, depth, _ = octree.find_voxel(pos, 1)
    assert depth == 1
    assert octree.nodes[index].pointer < CHUNK_OFFSET


def test_put_in_block_stores_block_id():
    octree = CpuOctree(0)
    octree.put_in_block((-0.4, 0.4, -0.4), 42, 2)
    index, depth, _ = octree.find_voxel((-0.4, 0.4, -0.4))
    assert depth == 2
    assert octree.nodes[index].pointer - CHUNK_OFFSET == 42


def test_put_too_shallow_raises():
    octree = CpuOctree(0)
    with pytest.raises(ValueError):
        octree.put_in_voxel((0.1, 0.1, 0.1), Voxel(1, 1, 1), 0)


def test_get_node_mask_returns_child_colours():
    octree = CpuOctree(0b11)
    assert octree.get_node_mask(0) == [node.value for node in octree.nodes]


def test_raw_lists_pointers():
    octree = CpuOctree(0b1)
    assert octree.raw() == [node.pointer for node in octree.nodes]


def test_bin_round_trip():
    octree = CpuOctree(0)
    octree.put_in_voxel((0.5, 0.5, -0.5), Voxel(9, 8, 7), 2)
    data = octree.bin()
    assert len(data) == 8 * len(octree.nodes)
    restored = CpuOctree.from_bin(data)
    assert restored.nodes == octree.nodes
    assert restored.top_mip == Voxel(0, 0, 0)


def test_from_bin_bad_length_raises():
    with pytest.raises(ValueError):
        CpuOctree.from_bin(b"\x00" * 7)


def test_to_octree_preserves_structure():
    octree = CpuOctree(0)
    pos = (-0.2, 0.7, 0.3)
    octree.put_in_voxel(pos, Voxel(4, 5, 6), 3)
    packed = octree.to_octree()
    assert len(packed.nodes) == len(octree.nodes)
    for i, node in enumerate(octree.nodes):
        if node.pointer < CHUNK_OFFSET:
            assert packed.get_node(i) == node.pointer
        else:
            assert packed.nodes[i] == node.value.to_value()
    assert packed.find_voxel(pos)[:2] == octree.find_voxel(pos)[:2]


def test_load_octree_expands_requested_levels():
    data = _rsvo(1, [3, 0], [0b11, 0b1, 0b10])
    octree = CpuOctree.load_octree(data, 1)
    assert len(octree.nodes) == 24
    assert octree.nodes[0].pointer < CHUNK_OFFSET
    first_children = octree.get_node_mask(octree.nodes[0].pointer)
    for bit, value in enumerate(first_children):
        assert (value == Voxel(255, 0, 0)) == bool((0b1 >> bit) & 1)


def test_load_octree_depth_zero_keeps_root_only():
    octree = CpuOctree.load_octree(_rsvo(1, [3, 0], [0b11, 0b1, 0b10]), 0)
    assert octree.nodes == CpuOctree(0b11).nodes


def test_load_octree_depth_too_large_raises():
    with pytest.raises(ValueError, match=r"Octree depth \(2\) is greater than top level \(1\)"):
        CpuOctree.load_octree(_rsvo(1, [3, 0], [0b11]), 2)


def test_load_file_unknown_extension(tmp_path):
    path = tmp_path / "model.txt"
    path.write_bytes(b"data")
    with pytest.raises(ValueError, match="Unknown file type"):
        CpuOctree.load_file(path, 1)


def test_load_file_vox_places_coloured_voxel(tmp_path):
    colour = (0x10, 0x20, 0x30, 0xFF)
    path = tmp_path / "model.vox"
    path.write_bytes(_vox((4, 4, 4), [(0, 0, 0, 1)], [colour] * 256))
    octree = CpuOctree.load_file(path, 0)
    index, depth, _ = octree.find_voxel((0.5, -1.0, -1.0))
    assert depth == 2
    assert octree.nodes[index].value == Voxel(*colour[:3])


def test_load_vox_non_cube_raises():
    with pytest.raises(ValueError, match="Voxel model is not a cube!"):
        CpuOctree.load_vox(_vox((4, 4, 2), []))


def test_load_vox_non_power_of_two_raises():
    with pytest.raises(ValueError, match="Voxel model size is not a power of 2!"):
        CpuOctree.load_vox(_vox((3, 3, 3), []))


def test_load_structure(tmp_path):
    path = tmp_path / "structure.vox"
    path.write_bytes(_vox((4, 4, 4), [(1, 2, 3, 6)]))
    assert CpuOctree.load_structure(path) == [((1, 3, 0), 6)]


def test_node_str_for_block_and_pointer():
    assert str(Node(CHUNK_OFFSET + 7, Voxel(1, 2, 3))) == "  Voxel: (1, 2, 3)        Pointer: BlockID: 7"
    assert str(Node(5, Voxel(1, 2, 3))).endswith(" Pointer: 5")


def test_octree_str_lists_every_node():
    octree = CpuOctree(0b1)
    text = str(octree)
    assert text.startswith("Nodes (8):\n")
    assert all(str(node) in text for node in octree.nodes)
    assert text.endswith("\n\n")