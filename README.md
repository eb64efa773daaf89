# lingze

This package provides building blocks for a small real-time renderer. It is written in plain Python and uses numpy.

## What it contains

### `lingze.geometry`

- `translation(offset)`, `rotation(angle, axis)`, `scaling(factors)` and `quaternion_matrix(w, x, y, z)` return 4x4 numpy matrices. They follow the column-vector convention.
- `Camera` holds `pos`, `vert_angle` (pitch) and `hor_angle` (yaw). Both angles are in radians. `transform_matrix()` returns translate · yaw · pitch.

### `lingze.mesh`

- `Vertex` is a frozen dataclass. It holds `pos`, `normal` and `uv`.
- `PrimitiveTopology` lists the topologies: point, line, line strip, triangle list, triangle strip and triangle fan.
- `SubMesh` holds vertices, indices, a topology, a material name and `sphere_bound`.
  - `calculate_bounding_sphere()` centres the sphere on the centroid of the vertices.
  - `optimize()` merges duplicate vertices and drops unused ones. For triangle lists it also reorders the triangles so that vertices stay in a small cache. It then renumbers the vertices in the order they are first used, and recomputes the sphere.
- `Mesh` is a sequence of sub-meshes, with `len(mesh)` and `mesh[i]`. An index out of range raises `IndexError`.
  - `add_sub_mesh()` adds a sub-mesh.
  - `calculate_bounding_sphere()` returns the sphere around the axis-aligned box of all vertices.
  - `optimize()` optimises every sub-mesh.
  - `total_vertex_count` and `total_index_count` give the totals over all sub-meshes.
- The module also defines the constants `MAX_VERTICES`, `MAX_TRIANGLES` and `CONE_WEIGHT`.

### `lingze.loaders`

- `ObjMeshLoader` reads Wavefront OBJ files.
  - Polygons are fan-triangulated.
  - Each group or object becomes one sub-mesh.
  - Material names are taken from `newmtl` lines in the `mtllib` files.
- `GltfMeshLoader` reads glTF 2.0 files, both `.gltf` and binary `.glb`.
  - Buffers may be external files, base64 data URIs or the GLB binary chunk.
  - Node transforms are applied to positions and normals.
  - Primitives without `POSITION` are skipped.
  - Index types are unsigned byte, short and int. Any other index type raises `RuntimeError`.
- `get_loader(file_name)` picks a loader from the file extension, case-insensitively. It returns the loader with its `file_path` set, or `None` if no loader handles the extension.
- Each loader's `load(file_name=None)` uses the stored path when no name is given. A file that cannot be read or parsed raises `RuntimeError`.
- Warnings, errors and successes are reported through the `logging` logger `lingze.loaders`.

### `lingze.scene`

- `Entity` has a unique `id`, a `name`, a `parent`, `children` and a `Transform` that is always present.
  - `add_component(type, *args, **kwargs)` creates a component, or returns the existing one of that type.
  - `get_component` and `has_component` look up components by type.
  - `add_child(child)` moves `child` under this entity.
- `Transform` holds `position`, `rotation` (Euler angles in radians) and `scale`.
  - `local_matrix()` returns translate · Rz · Ry · Rx · scale. The result is cached until a value changes.
  - `world_matrix()` composes the local matrix with those of all ancestors.
- `StaticMeshComponent` holds a `mesh` and a `material` name.
- `Scene.create_entity(name)` creates a root entity; `root_entities` lists them.
- `Scene.update(delta_time)` advances `elapsed`.

### `lingze.sync`

- Flag and enum types: `PipelineStage`, `Access` and `ImageLayout`. Their values are those of the graphics API.
- Usage and queue types: `ImageUsage`, `BufferUsage`, `QueueFamilyType` and `QueueFamilyIndices`.
- `src_image_access_pattern` and `dst_image_access_pattern` give the access pattern of an image for a usage. The destination side raises `ValueError` for `ImageUsage.UNKNOWN`.
- `src_buffer_access_pattern` and `dst_buffer_access_pattern` do the same for buffers.
- `is_image_barrier_needed` returns `False` only for shader-read followed by shader-read.
- `is_buffer_barrier_needed` always returns `True` for valid usages.

### Utilities

- `lingze.pool.Pool` stores elements in slots and hands out integer ids.
  - Released ids are reused, most recently released first.
  - `get` and `release` raise `KeyError` for an empty slot.
  - Iterating yields the elements that are present.
  - `len()` counts all slots, released ones included.
- `lingze.handles.UniqueHandle` owns an object that has a `reset()` method.
  - `take()` moves ownership to a new handle.
  - `detach()` gives up ownership without resetting the object.
  - `reset()` detaches and resets the object.
  - `close()` resets the object only if the handle still owns it. Leaving a `with` block calls `close()`.
- `lingze.profiler.ProfilerTask` is a named, coloured time span. `length()` returns its duration.
- `lingze.palette`:
  - `rgba_le(color)` reverses the byte order of a 32-bit colour.
  - `random_color(seed)` hashes a seed into an RGB triple in [0, 1].
  - It also holds named colour constants such as `EMERALD` and `PETER_RIVER`.

## What it does not do

This package only prepares data. It does not:

- open a window;
- talk to a GPU;
- compile shaders;
- draw anything.

The synchronization module returns descriptions of barriers but does not record or submit them. The package has no command-line program.

## Installation

```
pip install .
```

To include the test dependencies:

```
pip install .[test]
```

## Examples

### Load a mesh

```python
from lingze.loaders import get_loader

loader = get_loader("model.obj")
mesh = loader.load()
print(len(mesh), mesh.total_vertex_count, mesh.calculate_bounding_sphere())
```

### Build a scene

```python
from lingze.scene import Scene, StaticMeshComponent

scene = Scene()
parent = scene.create_entity("parent")
child = scene.create_entity("child")
parent.add_child(child)

parent.transform.position = (1.0, 0.0, 0.0)
meshes = child.add_component(StaticMeshComponent)
meshes.material = "default"

print(child.transform.world_matrix())
```

### Compose transforms

```python
from lingze.geometry import rotation, scaling, translation

matrix = translation((0.0, 2.0, 0.0)) @ rotation(0.5, (0.0, 1.0, 0.0)) @ scaling((2.0, 2.0, 2.0))
```

### Look up barrier access patterns

```python
from lingze.sync import ImageUsage, dst_image_access_pattern

pattern = dst_image_access_pattern(ImageUsage.COLOR_ATTACHMENT)
print(pattern.stage, pattern.access_mask, pattern.layout)
```

## Running the tests

```
pytest
```