"""Sparse voxel octrees and loaders for .rsvo and .vox models."""

__version__ = "0.1.0"
__all__ = ["cpu_octree", "octree", "vox"]