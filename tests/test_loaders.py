import base64
import json
import math
import struct

import pytest

from lingze.loaders import GltfMeshLoader, ObjMeshLoader, get_loader
from lingze.mesh import PrimitiveTopology

TRIANGLE = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def _positions(sub_mesh):
    return sorted(v.pos for v in sub_mesh.vertices)


def _close(a, b, tol=1e-6):
    return all(math.isclose(x, y, abs_tol=tol) for x, y in zip(a, b))


def _build(positions, indices=None, index_type=5123, normals=None, uvs=None,
           node=None, mode=None, material=None, extra_nodes=None):
    blob = bytearray()
    views = []
    accessors = []

    def add(data, count, component_type, kind):
        while len(blob) % 4:
            blob.append(0)
        views.append({"buffer": 0, "byteOffset": len(blob), "byteLength": len(data)})
        blob.extend(data)
        accessors.append({"bufferView": len(views) - 1, "componentType": component_type,
                          "count": count, "type": kind})
        return len(accessors) - 1

    def floats(rows):
        flat = [c for row in rows for c in row]
        return struct.pack(f"<{len(flat)}f", *flat)

    attributes = {"POSITION": add(floats(positions), len(positions), 5126, "VEC3")}
    if normals is not None:
        attributes["NORMAL"] = add(floats(normals), len(normals), 5126, "VEC3")
    if uvs is not None:
        attributes["TEXCOORD_0"] = add(floats(uvs), len(uvs), 5126, "VEC2")
    primitive = {"attributes": attributes}
    if indices is not None:
        code = {5121: "B", 5123: "H", 5125: "I", 5122: "h"}[index_type]
        primitive["indices"] = add(struct.pack(f"<{len(indices)}{code}", *indices),
                                   len(indices), index_type, "SCALAR")
    if mode is not None:
        primitive["mode"] = mode
    doc = {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [dict(node or {}, mesh=0)] + list(extra_nodes or []),
        "meshes": [{"primitives": [primitive]}],
        "accessors": accessors,
        "bufferViews": views,
        "buffers": [{"byteLength": len(blob)}],
    }
    if material is not None:
        primitive["material"] = 0
        doc["materials"] = [{"name": material}]
    return doc, bytes(blob)


def _write_gltf(tmp_path, doc, blob, name="model.gltf"):
    doc = json.loads(json.dumps(doc))
    doc["buffers"][0]["uri"] = "data:application/octet-stream;base64," + base64.b64encode(blob).decode()
    path = tmp_path / name
    path.write_text(json.dumps(doc), encoding="utf-8")
    return str(path)


def _write_glb(tmp_path, doc, blob, name="model.glb"):
    js = json.dumps(doc).encode()
    js += b" " * (-len(js) % 4)
    bn = blob + b"\0" * (-len(blob) % 4)
    body = struct.pack("<II", len(js), 0x4E4F534A) + js + struct.pack("<II", len(bn), 0x004E4942) + bn
    path = tmp_path / name
    path.write_bytes(b"glTF" + struct.pack("<II", 2, 12 + len(body)) + body)
    return str(path)


@pytest.mark.parametrize(
    "name, obj, gltf",
    [
        ("a.obj", True, False),
        ("dir/A.OBJ", True, False),
        ("a.gltf", False, True),
        ("a.GLB", False, True),
        ("a.fbx", False, False),
        ("obj", False, False),
    ],
)
def test_can_load(name, obj, gltf):
    assert ObjMeshLoader().can_load(name) is obj
    assert GltfMeshLoader().can_load(name) is gltf


def test_get_loader_selects_by_extension():
    obj_loader = get_loader("scene/model.obj")
    assert isinstance(obj_loader, ObjMeshLoader)
    assert obj_loader.file_path == "scene/model.obj"
    assert isinstance(get_loader("model.glb"), GltfMeshLoader)
    assert get_loader("model.fbx") is None


def test_obj_triangle_defaults(tmp_path):
    path = _write(tmp_path / "t.obj", "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    mesh = ObjMeshLoader().load(path)
    assert len(mesh) == 1
    sub = mesh[0]
    assert _positions(sub) == sorted(TRIANGLE)
    assert sorted(sub.indices) == [0, 1, 2]
    assert all(v.normal == (0.0, 0.0, 1.0) for v in sub.vertices)
    assert all(v.uv == (0.0, 0.0) for v in sub.vertices)


def test_obj_quad_is_triangulated_and_merged(tmp_path):
    path = _write(tmp_path / "q.obj", "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3 4\n")
    sub = ObjMeshLoader().load(path)[0]
    assert len(sub.indices) == 6
    assert len(sub.vertices) == 4
    assert sub.primitive_topology is PrimitiveTopology.TRIANGLE_LIST


def test_obj_normals_and_texcoords(tmp_path):
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0.5 0.5\nvn 0 1 0\nf 1/1/1 2/1/1 3/1/1\n"
    sub = ObjMeshLoader().load(_write(tmp_path / "n.obj", text))[0]
    assert all(v.normal == (0.0, 1.0, 0.0) for v in sub.vertices)
    assert all(v.uv == (0.5, 0.5) for v in sub.vertices)


def test_obj_negative_indices_match_positive(tmp_path):
    base = "v 0 0 0\nv 1 0 0\nv 0 1 0\n"
    positive = ObjMeshLoader().load(_write(tmp_path / "p.obj", base + "f 1 2 3\n"))
    negative = ObjMeshLoader().load(_write(tmp_path / "m.obj", base + "f -3 -2 -1\n"))
    assert _positions(positive[0]) == _positions(negative[0])


def test_obj_material_from_mtllib(tmp_path):
    _write(tmp_path / "m.mtl", "newmtl first\nKd 1 0 0\nnewmtl second\n")
    text = "mtllib m.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl second\nf 1 2 3\n"
    sub = ObjMeshLoader().load(_write(tmp_path / "mat.obj", text))[0]
    assert sub.material_name == "second"


def test_obj_unknown_material_leaves_name_empty(tmp_path):
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl missing\nf 1 2 3\n"
    sub = ObjMeshLoader().load(_write(tmp_path / "u.obj", text))[0]
    assert sub.material_name == ""


def test_obj_groups_make_sub_meshes(tmp_path):
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 0 0 1\ng a\nf 1 2 3\ng b\nf 1 2 4\n"
    mesh = ObjMeshLoader().load(_write(tmp_path / "g.obj", text))
    assert len(mesh) == 2
    assert mesh.total_index_count == 6


def test_obj_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="load obj file error"):
        ObjMeshLoader().load(str(tmp_path / "missing.obj"))


def test_obj_bad_index(tmp_path):
    path = _write(tmp_path / "b.obj", "v 0 0 0\nf 1 2 3\n")
    with pytest.raises(RuntimeError, match="load obj file error"):
        ObjMeshLoader().load(path)


def test_load_stores_path_and_reuses_it(tmp_path):
    path = _write(tmp_path / "t.obj", "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    loader = ObjMeshLoader()
    first = loader.load(path)
    assert loader.file_path == path
    second = loader.load()
    assert _positions(first[0]) == _positions(second[0])


def test_gltf_triangle(tmp_path):
    doc, blob = _build(TRIANGLE, indices=[0, 1, 2])
    mesh = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))
    assert len(mesh) == 1
    sub = mesh[0]
    assert _positions(sub) == sorted(TRIANGLE)
    assert sorted(sub.indices) == [0, 1, 2]
    assert all(v.normal == (0.0, 0.0, 1.0) for v in sub.vertices)


def test_gltf_translation_node(tmp_path):
    offset = (1.0, 2.0, 3.0)
    doc, blob = _build(TRIANGLE, node={"translation": list(offset)})
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    expected = sorted(tuple(p + o for p, o in zip(pos, offset)) for pos in TRIANGLE)
    assert _positions(sub) == expected


def test_gltf_matrix_equals_trs(tmp_path):
    matrix = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 1, 2, 3, 1]
    doc_m, blob = _build(TRIANGLE, node={"matrix": matrix})
    doc_t, _ = _build(TRIANGLE, node={"translation": [1, 2, 3]})
    by_matrix = GltfMeshLoader().load(_write_gltf(tmp_path, doc_m, blob, "m.gltf"))[0]
    by_trs = GltfMeshLoader().load(_write_gltf(tmp_path, doc_t, blob, "t.gltf"))[0]
    assert _positions(by_matrix) == _positions(by_trs)


def test_gltf_rotation_turns_normals(tmp_path):
    s = math.sqrt(0.5)
    normals = [(1.0, 0.0, 0.0)] * 3
    doc, blob = _build(TRIANGLE, normals=normals, node={"rotation": [0.0, 0.0, s, s]})
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    for vertex in sub.vertices:
        assert _close(vertex.normal, (0.0, 1.0, 0.0))
        assert math.isclose(math.hypot(*vertex.normal), 1.0)


def test_gltf_child_inherits_parent_transform(tmp_path):
    doc, blob = _build(TRIANGLE, node={"translation": [0, 0, 5]})
    doc["nodes"] = [{"translation": [0, 0, 5], "children": [1]}, {"mesh": 0}]
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    assert all(v.pos[2] == 5.0 for v in sub.vertices)


def test_gltf_without_indices_is_sequential(tmp_path):
    doc, blob = _build(TRIANGLE)
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    assert sorted(sub.indices) == [0, 1, 2]
    assert len(sub.vertices) == 3


@pytest.mark.parametrize("index_type", [5121, 5123, 5125])
def test_gltf_index_types(tmp_path, index_type):
    quad = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    doc, blob = _build(quad, indices=[0, 1, 2, 0, 2, 3], index_type=index_type)
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    assert len(sub.indices) == 6
    assert _positions(sub) == sorted(quad)


def test_gltf_unsupported_index_type(tmp_path):
    doc, blob = _build(TRIANGLE, indices=[0, 1, 2], index_type=5122)
    with pytest.raises(RuntimeError, match="unsupported index component type"):
        GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))


@pytest.mark.parametrize(
    "mode, topology",
    [
        (0, PrimitiveTopology.POINT_LIST),
        (1, PrimitiveTopology.LINE_LIST),
        (3, PrimitiveTopology.LINE_STRIP),
        (4, PrimitiveTopology.TRIANGLE_LIST),
        (5, PrimitiveTopology.TRIANGLE_STRIP),
        (6, PrimitiveTopology.TRIANGLE_FAN),
        (2, PrimitiveTopology.TRIANGLE_LIST),
    ],
)
def test_gltf_modes(tmp_path, mode, topology):
    doc, blob = _build(TRIANGLE, mode=mode)
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    assert sub.primitive_topology is topology


def test_gltf_material_and_uvs(tmp_path):
    uvs = [(0.25, 0.75)] * 3
    doc, blob = _build(TRIANGLE, uvs=uvs, material="stone")
    sub = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    assert sub.material_name == "stone"
    assert all(v.uv == (0.25, 0.75) for v in sub.vertices)


def test_gltf_primitive_without_position_is_skipped(tmp_path):
    doc, blob = _build(TRIANGLE)
    doc["meshes"][0]["primitives"][0]["attributes"] = {}
    mesh = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))
    assert len(mesh) == 0


def test_glb_matches_gltf(tmp_path):
    doc, blob = _build(TRIANGLE, indices=[0, 1, 2], node={"scale": [2, 2, 2]})
    from_text = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))[0]
    from_binary = GltfMeshLoader().load(_write_glb(tmp_path, doc, blob))[0]
    assert _positions(from_text) == _positions(from_binary)
    assert from_binary.indices == from_text.indices


def test_glb_bad_magic(tmp_path):
    path = tmp_path / "bad.glb"
    path.write_bytes(b"nope" + b"\0" * 16)
    with pytest.raises(RuntimeError, match="load gltf file error"):
        GltfMeshLoader().load(str(path))


def test_gltf_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="load gltf file error"):
        GltfMeshLoader().load(str(tmp_path / "missing.gltf"))


def test_gltf_mesh_bound_covers_vertices(tmp_path):
    doc, blob = _build(TRIANGLE, indices=[0, 1, 2])
    mesh = GltfMeshLoader().load(_write_gltf(tmp_path, doc, blob))
    cx, cy, cz, radius = mesh.bound
    for vertex in mesh[0].vertices:
        assert math.dist((cx, cy, cz), vertex.pos) <= radius + 1e-9