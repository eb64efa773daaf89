"""Loaders that read Wavefront OBJ and glTF 2.0 files into meshes."""

from __future__ import annotations

import base64
import json
import logging
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

import numpy as np

from .geometry import quaternion_matrix, scaling, translation
from .mesh import Mesh, PrimitiveTopology, SubMesh, Vertex

logger = logging.getLogger(__name__)

_DEFAULT_NORMAL = (0.0, 0.0, 1.0)
_DEFAULT_UV = (0.0, 0.0)


class MeshLoader(ABC):
    """Reads one kind of mesh file; remembers the path it was last given."""

    def __init__(self, file_path: str = "") -> None:
        self.file_path = file_path

    @abstractmethod
    def load(self, file_name: str | None = None) -> Mesh:
        """Load ``file_name``, or the stored path when it is omitted."""

    @abstractmethod
    def can_load(self, file_name: str) -> bool:
        """Tell whether this loader handles the file's extension."""

    def _resolve_path(self, file_name: str | None) -> Path:
        if file_name is not None:
            self.file_path = str(file_name)
        if not self.file_path:
            raise ValueError("no file path given")
        return Path(self.file_path)


def _extension(file_name: str) -> str:
    return Path(file_name).suffix.lower()


# ---------------------------------------------------------------------------
# OBJ
# ---------------------------------------------------------------------------


class _ObjError(RuntimeError):
    pass


_Corner = tuple[int, "int | None", "int | None"]


@dataclass
class _ObjShape:
    name: str = ""
    faces: list[tuple[list[_Corner], int]] = field(default_factory=list)


@dataclass
class _ObjData:
    positions: list[tuple[float, ...]] = field(default_factory=list)
    normals: list[tuple[float, ...]] = field(default_factory=list)
    texcoords: list[tuple[float, ...]] = field(default_factory=list)
    shapes: list[_ObjShape] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    material_map: dict[str, int] = field(default_factory=dict)


def _floats(args: list[str], count: int, line: int) -> tuple[float, ...]:
    try:
        values = [float(arg) for arg in args[:count]]
    except ValueError as exc:
        raise _ObjError(f"line {line}: invalid number") from exc
    values.extend([0.0] * (count - len(values)))
    return tuple(values)


def _resolve_index(text: str, count: int, line: int) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise _ObjError(f"line {line}: invalid index {text!r}") from exc
    if value == 0:
        raise _ObjError(f"line {line}: index must not be zero")
    if value > 0:
        return value - 1
    resolved = count + value
    if resolved < 0:
        raise _ObjError(f"line {line}: index {value} out of range")
    return resolved


def _parse_corner(token: str, data: _ObjData, line: int) -> _Corner:
    fields = token.split("/")
    position = _resolve_index(fields[0], len(data.positions), line)
    texcoord = None
    normal = None
    if len(fields) > 1 and fields[1]:
        texcoord = _resolve_index(fields[1], len(data.texcoords), line)
    if len(fields) > 2 and fields[2]:
        normal = _resolve_index(fields[2], len(data.normals), line)
    return position, texcoord, normal


def _read_material_names(path: Path) -> list[str]:
    names = []
    with path.open(encoding="utf-8", errors="replace") as stream:
        for raw in stream:
            parts = raw.split("#", 1)[0].split(None, 1)
            if parts and parts[0] == "newmtl":
                names.append(parts[1].strip() if len(parts) > 1 else "")
    return names


def _parse_obj(path: Path) -> _ObjData:
    data = _ObjData()
    current = _ObjShape()
    material_id = -1
    with path.open(encoding="utf-8", errors="replace") as stream:
        for number, raw in enumerate(stream, 1):
            parts = raw.split("#", 1)[0].split()
            if not parts:
                continue
            keyword, args = parts[0], parts[1:]
            if keyword == "v":
                data.positions.append(_floats(args, 3, number))
            elif keyword == "vn":
                data.normals.append(_floats(args, 3, number))
            elif keyword == "vt":
                data.texcoords.append(_floats(args, 2, number))
            elif keyword == "f":
                corners = [_parse_corner(token, data, number) for token in args]
                if len(corners) >= 3:
                    current.faces.append((corners, material_id))
            elif keyword in ("g", "o"):
                name = " ".join(args)
                if current.faces:
                    data.shapes.append(current)
                    current = _ObjShape(name)
                else:
                    current.name = name
            elif keyword == "usemtl":
                name = " ".join(args)
                material_id = data.material_map.get(name, -1)
                if material_id < 0:
                    logger.warning("obj warning: material %r not found", name)
            elif keyword == "mtllib":
                for candidate in args:
                    mtl_path = path.parent / candidate
                    if mtl_path.is_file():
                        for name in _read_material_names(mtl_path):
                            data.material_map[name] = len(data.materials)
                            data.materials.append(name)
                        break
                else:
                    logger.warning("obj warning: failed to load material file(s) %s", " ".join(args))
    if current.faces:
        data.shapes.append(current)
    return data


def _obj_vertex(data: _ObjData, corner: _Corner) -> Vertex:
    position, texcoord, normal = corner
    try:
        pos = data.positions[position]
        nrm = data.normals[normal] if normal is not None else _DEFAULT_NORMAL
        uv = data.texcoords[texcoord] if texcoord is not None else _DEFAULT_UV
    except IndexError as exc:
        raise _ObjError("face refers to a missing vertex attribute") from exc
    return Vertex(tuple(pos), tuple(nrm), tuple(uv))  # type: ignore[arg-type]


def _obj_sub_mesh(data: _ObjData, shape: _ObjShape) -> SubMesh:
    sub_mesh = SubMesh(primitive_topology=PrimitiveTopology.TRIANGLE_LIST)
    first_material = shape.faces[0][1]
    if 0 <= first_material < len(data.materials):
        sub_mesh.material_name = data.materials[first_material]
    for corners, _ in shape.faces:
        first = corners[0]
        for second, third in zip(corners[1:], corners[2:]):
            for corner in (first, second, third):
                sub_mesh.indices.append(len(sub_mesh.vertices))
                sub_mesh.vertices.append(_obj_vertex(data, corner))
    return sub_mesh


class ObjMeshLoader(MeshLoader):
    """Loads Wavefront OBJ files; polygons are fan-triangulated."""

    def can_load(self, file_name: str) -> bool:
        return _extension(file_name) == ".obj"

    def load(self, file_name: str | None = None) -> Mesh:
        path = self._resolve_path(file_name)
        try:
            data = _parse_obj(path)
            sub_meshes = [_obj_sub_mesh(data, shape) for shape in data.shapes]
        except (OSError, _ObjError) as exc:
            logger.error("obj error: %s", exc)
            raise RuntimeError(f"load obj file error: {self.file_path}") from exc

        mesh = Mesh()
        for sub_mesh in sub_meshes:
            sub_mesh.optimize()
            mesh.add_sub_mesh(sub_mesh)
        logger.info("load obj file success: %s", self.file_path)
        return mesh


# ---------------------------------------------------------------------------
# glTF
# ---------------------------------------------------------------------------


class _GltfError(RuntimeError):
    pass


_GLB_MAGIC = b"glTF"
_CHUNK_JSON = 0x4E4F534A
_CHUNK_BIN = 0x004E4942

_INDEX_TYPES = {
    5121: np.dtype("<u1"),
    5123: np.dtype("<u2"),
    5125: np.dtype("<u4"),
}

_MODES = {
    0: PrimitiveTopology.POINT_LIST,
    1: PrimitiveTopology.LINE_LIST,
    3: PrimitiveTopology.LINE_STRIP,
    4: PrimitiveTopology.TRIANGLE_LIST,
    5: PrimitiveTopology.TRIANGLE_STRIP,
    6: PrimitiveTopology.TRIANGLE_FAN,
}


def _parse_glb(raw: bytes) -> tuple[dict, bytes | None]:
    if len(raw) < 12 or raw[:4] != _GLB_MAGIC:
        raise _GltfError("not a binary glTF file")
    _version, total = struct.unpack_from("<II", raw, 4)
    end = min(total, len(raw))
    offset = 12
    json_chunk: bytes | None = None
    bin_chunk: bytes | None = None
    while offset + 8 <= end:
        length, chunk_type = struct.unpack_from("<II", raw, offset)
        offset += 8
        chunk = raw[offset : offset + length]
        if len(chunk) < length:
            raise _GltfError("truncated chunk")
        offset += length
        if chunk_type == _CHUNK_JSON and json_chunk is None:
            json_chunk = chunk
        elif chunk_type == _CHUNK_BIN and bin_chunk is None:
            bin_chunk = chunk
    if json_chunk is None:
        raise _GltfError("missing JSON chunk")
    return json.loads(json_chunk.decode("utf-8")), bin_chunk


def _load_buffers(doc: dict, base_dir: Path, bin_chunk: bytes | None) -> list[bytes]:
    buffers = []
    for number, buffer in enumerate(doc.get("buffers", [])):
        uri = buffer.get("uri")
        if uri is None:
            if number != 0 or bin_chunk is None:
                raise _GltfError(f"buffer {number} has no data")
            data = bin_chunk
        elif uri.startswith("data:"):
            header, _, payload = uri.partition(",")
            if ";base64" not in header:
                raise _GltfError(f"buffer {number} uses an unsupported data URI")
            data = base64.b64decode(payload)
        else:
            data = (base_dir / unquote(uri)).read_bytes()
        if len(data) < buffer.get("byteLength", 0):
            raise _GltfError(f"buffer {number} is shorter than its byteLength")
        buffers.append(data)
    return buffers


def _item(doc: dict, key: str, index: int) -> dict:
    items = doc.get(key, [])
    if not isinstance(index, int) or not 0 <= index < len(items):
        raise _GltfError(f"{key}[{index}] does not exist")
    return items[index]


def _view_data(doc: dict, buffers: list[bytes], accessor: dict) -> tuple[bytes, int, int]:
    view = _item(doc, "bufferViews", accessor["bufferView"])
    buffer_index = view["buffer"]
    if not 0 <= buffer_index < len(buffers):
        raise _GltfError(f"buffers[{buffer_index}] does not exist")
    offset = view.get("byteOffset", 0) + accessor.get("byteOffset", 0)
    return buffers[buffer_index], offset, view.get("byteStride", 0)


def _read_floats(doc: dict, buffers: list[bytes], index: int, components: int, count: int) -> np.ndarray:
    accessor = _item(doc, "accessors", index)
    if accessor.get("bufferView") is None:
        return np.zeros((count, components))
    buffer, offset, stride = _view_data(doc, buffers, accessor)
    stride = stride or components * 4
    if count and offset + (count - 1) * stride + components * 4 > len(buffer):
        raise _GltfError("accessor reads past the end of its buffer")
    values = np.ndarray(
        shape=(count, components), dtype="<f4", buffer=buffer, offset=offset, strides=(stride, 4)
    )
    return values.astype(float)


def _read_indices(doc: dict, buffers: list[bytes], index: int) -> list[int]:
    accessor = _item(doc, "accessors", index)
    count = accessor["count"]
    dtype = _INDEX_TYPES.get(accessor.get("componentType"))
    if dtype is None:
        raise RuntimeError("unsupported index component type")
    if accessor.get("bufferView") is None:
        return [0] * count
    buffer, offset, _ = _view_data(doc, buffers, accessor)
    if offset + count * dtype.itemsize > len(buffer):
        raise _GltfError("index accessor reads past the end of its buffer")
    return np.frombuffer(buffer, dtype=dtype, count=count, offset=offset).astype(int).tolist()


def _local_transform(node: dict) -> np.ndarray:
    matrix = node.get("matrix")
    if matrix is not None and len(matrix) == 16:
        return np.array(matrix, dtype=float).reshape(4, 4).T
    result = np.eye(4)
    offset = node.get("translation")
    if offset is not None and len(offset) == 3:
        result = result @ translation(offset)
    quat = node.get("rotation")
    if quat is not None and len(quat) == 4:
        result = result @ quaternion_matrix(quat[3], quat[0], quat[1], quat[2])
    factors = node.get("scale")
    if factors is not None and len(factors) == 3:
        result = result @ scaling(factors)
    return result


def _primitive_sub_mesh(
    doc: dict, buffers: list[bytes], primitive: dict, transform: np.ndarray
) -> SubMesh | None:
    attributes = primitive.get("attributes", {})
    if "POSITION" not in attributes:
        return None

    sub_mesh = SubMesh()
    material = primitive.get("material")
    if material is not None:
        sub_mesh.material_name = _item(doc, "materials", material).get("name", "")

    count = _item(doc, "accessors", attributes["POSITION"])["count"]
    positions = _read_floats(doc, buffers, attributes["POSITION"], 3, count)
    homogeneous = np.hstack([positions, np.ones((count, 1))]) @ transform.T
    positions = homogeneous[:, :3] / homogeneous[:, 3:4]

    if "NORMAL" in attributes:
        normals = _read_floats(doc, buffers, attributes["NORMAL"], 3, count)
        try:
            normal_matrix = np.linalg.inv(transform[:3, :3]).T
        except np.linalg.LinAlgError as exc:
            raise _GltfError("node transform is singular") from exc
        normals = normals @ normal_matrix.T
        with np.errstate(divide="ignore", invalid="ignore"):
            normals = normals / np.linalg.norm(normals, axis=1, keepdims=True)
    else:
        normals = np.tile(_DEFAULT_NORMAL, (count, 1))

    if "TEXCOORD_0" in attributes:
        uvs = _read_floats(doc, buffers, attributes["TEXCOORD_0"], 2, count)
    else:
        uvs = np.tile(_DEFAULT_UV, (count, 1))

    if primitive.get("indices") is not None:
        sub_mesh.indices = _read_indices(doc, buffers, primitive["indices"])
        if any(not 0 <= i < count for i in sub_mesh.indices):
            raise _GltfError("index out of range of the vertex data")
    else:
        sub_mesh.indices = list(range(count))

    sub_mesh.primitive_topology = _MODES.get(primitive.get("mode", 4), PrimitiveTopology.TRIANGLE_LIST)
    sub_mesh.vertices = [
        Vertex(tuple(p), tuple(n), tuple(uv))  # type: ignore[arg-type]
        for p, n, uv in zip(positions.tolist(), normals.tolist(), uvs.tolist())
    ]
    return sub_mesh


class GltfMeshLoader(MeshLoader):
    """Loads glTF 2.0 files, both ``.gltf`` and binary ``.glb``."""

    def can_load(self, file_name: str) -> bool:
        return _extension(file_name) in (".gltf", ".glb")

    def load(self, file_name: str | None = None) -> Mesh:
        path = self._resolve_path(file_name)
        try:
            if _extension(self.file_path) == ".glb":
                doc, bin_chunk = _parse_glb(path.read_bytes())
            else:
                doc, bin_chunk = json.loads(path.read_text(encoding="utf-8")), None
            buffers = _load_buffers(doc, path.parent, bin_chunk)
        except (OSError, ValueError, KeyError, struct.error, _GltfError) as exc:
            logger.error("gltf error: %s", exc)
            raise RuntimeError(f"load gltf file error: {self.file_path}") from exc

        mesh = Mesh()
        try:
            scene = _item(doc, "scenes", doc.get("scene", 0))

            def process_node(node_index: int, parent_transform: np.ndarray) -> None:
                node = _item(doc, "nodes", node_index)
                node_transform = parent_transform @ _local_transform(node)
                if node.get("mesh") is not None:
                    for primitive in _item(doc, "meshes", node["mesh"]).get("primitives", []):
                        sub_mesh = _primitive_sub_mesh(doc, buffers, primitive, node_transform)
                        if sub_mesh is None:
                            continue
                        sub_mesh.optimize()
                        mesh.add_sub_mesh(sub_mesh)
                for child in node.get("children", []):
                    process_node(child, node_transform)

            for root in scene.get("nodes", []):
                process_node(root, np.eye(4))
        except (KeyError, TypeError, _GltfError) as exc:
            logger.error("gltf error: %s", exc)
            raise RuntimeError(f"invalid gltf file: {self.file_path}") from exc

        logger.info("load gltf file success: %s", self.file_path)
        return mesh


_LOADER_TYPES: tuple[type[MeshLoader], ...] = (ObjMeshLoader, GltfMeshLoader)


def get_loader(file_name: str) -> MeshLoader | None:
    """Return a loader for ``file_name`` with its path set, or None."""
    for loader_type in _LOADER_TYPES:
        loader = loader_type()
        if loader.can_load(file_name):
            loader.file_path = str(file_name)
            return loader
    return None