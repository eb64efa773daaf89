"""Meshes made of sub-meshes, with bounding spheres and vertex optimisation."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Iterable

MAX_VERTICES = 64
MAX_TRIANGLES = 124
CONE_WEIGHT = 0.5

_FLT_MAX = 3.4028234663852886e38
_CACHE_SIZE = 32


class PrimitiveTopology(enum.IntEnum):
    """How an index list is assembled into primitives."""

    POINT_LIST = 0
    LINE_LIST = 1
    LINE_STRIP = 2
    TRIANGLE_LIST = 3
    TRIANGLE_STRIP = 4
    TRIANGLE_FAN = 5


Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]
Vec4 = tuple[float, float, float, float]


@dataclass(frozen=True)
class Vertex:
    """Position, normal and texture coordinates of one vertex."""

    pos: Vec3 = (0.0, 0.0, 0.0)
    normal: Vec3 = (0.0, 0.0, 0.0)
    uv: Vec2 = (0.0, 0.0)


def _generate_remap(indices: list[int], vertices: list[Vertex]) -> tuple[list[int], int]:
    """Map each referenced vertex to a unique id, in order of first use."""
    remap = [-1] * len(vertices)
    seen: dict[Vertex, int] = {}
    for index in indices:
        if remap[index] != -1:
            continue
        vertex = vertices[index]
        if vertex not in seen:
            seen[vertex] = len(seen)
        remap[index] = seen[vertex]
    return remap, len(seen)


def _vertex_score(cache_pos: int, live: int) -> float:
    if live == 0:
        return -1.0
    score = 0.0
    if cache_pos >= 0:
        if cache_pos < 3:
            score = 0.75
        else:
            score = (1.0 - (cache_pos - 3) / (_CACHE_SIZE - 3)) ** 1.5
    return score + 2.0 * live**-0.5


def _optimize_vertex_cache(indices: list[int], vertex_count: int) -> list[int]:
    """Reorder triangles so that vertices are reused while still in a small cache."""
    triangles = [tuple(indices[i : i + 3]) for i in range(0, len(indices), 3)]
    if not triangles:
        return []
    adjacency: list[list[int]] = [[] for _ in range(vertex_count)]
    for t, tri in enumerate(triangles):
        for v in tri:
            adjacency[v].append(t)
    live = [len(adj) for adj in adjacency]
    cache_pos = [-1] * vertex_count
    scores = [_vertex_score(-1, n) for n in live]

    def triangle_score(t: int) -> float:
        return sum(scores[v] for v in triangles[t])

    emitted = [False] * len(triangles)
    cache: list[int] = []
    result: list[int] = []
    next_unemitted = 0
    best: int | None = max(range(len(triangles)), key=triangle_score)

    while best is not None:
        tri = triangles[best]
        emitted[best] = True
        result.extend(tri)
        for v in tri:
            live[v] -= 1
            adjacency[v].remove(best)

        front = list(dict.fromkeys(tri))
        new_cache = front + [v for v in cache if v not in front]
        evicted = new_cache[_CACHE_SIZE:]
        cache = new_cache[:_CACHE_SIZE]
        for v in evicted:
            cache_pos[v] = -1
        for pos, v in enumerate(cache):
            cache_pos[v] = pos
        for v in (*cache, *evicted):
            scores[v] = _vertex_score(cache_pos[v], live[v])

        best = None
        best_score = -math.inf
        for v in cache:
            for t in adjacency[v]:
                score = triangle_score(t)
                if score > best_score:
                    best, best_score = t, score

        if best is None:
            while next_unemitted < len(triangles) and emitted[next_unemitted]:
                next_unemitted += 1
            if next_unemitted < len(triangles):
                best = next_unemitted
    return result


def _optimize_vertex_fetch(indices: list[int], vertices: list[Vertex]) -> tuple[list[int], list[Vertex]]:
    """Renumber vertices in order of first use; unused vertices are dropped."""
    order: dict[int, int] = {}
    new_indices = []
    for index in indices:
        if index not in order:
            order[index] = len(order)
        new_indices.append(order[index])
    new_vertices = [vertices[old] for old in order]
    return new_indices, new_vertices


@dataclass
class SubMesh:
    """One drawable part of a mesh."""

    vertices: list[Vertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    primitive_topology: PrimitiveTopology = PrimitiveTopology.TRIANGLE_LIST
    sphere_bound: Vec4 = (0.0, 0.0, 0.0, 0.0)
    material_name: str = ""

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    def calculate_bounding_sphere(self) -> Vec4:
        """Centroid-centred sphere containing every vertex; stored and returned."""
        if not self.vertices:
            self.sphere_bound = (0.0, 0.0, 0.0, 0.0)
            return self.sphere_bound
        count = len(self.vertices)
        center = tuple(sum(v.pos[axis] for v in self.vertices) / count for axis in range(3))
        radius = max(math.dist(center, v.pos) for v in self.vertices)
        self.sphere_bound = (*center, radius)
        return self.sphere_bound

    def optimize(self) -> None:
        """Merge duplicate vertices, reorder for cache and fetch locality."""
        if not self.vertices or not self.indices:
            return
        remap, unique_count = _generate_remap(self.indices, self.vertices)
        unique: list[Vertex | None] = [None] * unique_count
        for old, new in enumerate(remap):
            if new != -1:
                unique[new] = self.vertices[old]
        indices = [remap[i] for i in self.indices]

        if self.primitive_topology is PrimitiveTopology.TRIANGLE_LIST and len(indices) % 3 == 0:
            indices = _optimize_vertex_cache(indices, unique_count)

        self.indices, self.vertices = _optimize_vertex_fetch(indices, unique)  # type: ignore[arg-type]
        self.calculate_bounding_sphere()


class Mesh:
    """A model composed of several sub-meshes."""

    def __init__(self, sub_meshes: Iterable[SubMesh] = ()) -> None:
        self.sub_meshes: list[SubMesh] = []
        self.bound: Vec4 = (0.0, 0.0, 0.0, 0.0)
        for sub_mesh in sub_meshes:
            self.add_sub_mesh(sub_mesh)

    def add_sub_mesh(self, sub_mesh: SubMesh) -> None:
        """Append a sub-mesh and refresh the bounding sphere."""
        self.sub_meshes.append(sub_mesh)
        self.calculate_bounding_sphere()

    def __getitem__(self, index: int) -> SubMesh:
        if not 0 <= index < len(self.sub_meshes):
            raise IndexError("SubMesh index out of range")
        return self.sub_meshes[index]

    def __len__(self) -> int:
        return len(self.sub_meshes)

    def calculate_bounding_sphere(self) -> Vec4:
        """Sphere around the axis-aligned box of all vertices; stored and returned."""
        if not self.sub_meshes:
            self.bound = (0.0, 0.0, 0.0, 0.0)
            return self.bound
        low = [_FLT_MAX] * 3
        high = [-_FLT_MAX] * 3
        for sub_mesh in self.sub_meshes:
            for vertex in sub_mesh.vertices:
                low = [min(a, b) for a, b in zip(low, vertex.pos)]
                high = [max(a, b) for a, b in zip(high, vertex.pos)]
        center = tuple(0.5 * (a + b) for a, b in zip(low, high))
        radius = 0.5 * math.dist(low, high)
        self.bound = (*center, radius)
        return self.bound

    def optimize(self) -> None:
        """Optimise every sub-mesh and refresh the bounding sphere."""
        for sub_mesh in self.sub_meshes:
            sub_mesh.optimize()
        self.calculate_bounding_sphere()

    @property
    def total_vertex_count(self) -> int:
        return sum(len(s.vertices) for s in self.sub_meshes)

    @property
    def total_index_count(self) -> int:
        return sum(len(s.indices) for s in self.sub_meshes)