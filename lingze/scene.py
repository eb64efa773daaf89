"""Entity-component scene graph with hierarchical transforms."""

from __future__ import annotations

import itertools
from typing import TypeVar

import numpy as np

from .geometry import rotation, scaling, translation
from .mesh import Mesh

C = TypeVar("C", bound="Component")

_X_AXIS = (1.0, 0.0, 0.0)
_Y_AXIS = (0.0, 1.0, 0.0)
_Z_AXIS = (0.0, 0.0, 1.0)


def _vec3(values) -> np.ndarray:
    vec = np.array(values, dtype=float)
    if vec.shape != (3,):
        raise ValueError(f"expected three components, got shape {vec.shape}")
    return vec


class Component:
    """Base class of everything an entity can carry."""

    def __init__(self, entity: Entity) -> None:
        self.entity = entity


class Transform(Component):
    """Position, Euler rotation (radians) and scale of an entity."""

    def __init__(self, entity: Entity) -> None:
        super().__init__(entity)
        self._position = np.zeros(3)
        self._rotation = np.zeros(3)
        self._scale = np.ones(3)
        self._local: np.ndarray | None = None

    @property
    def position(self) -> np.ndarray:
        return self._position.copy()

    @position.setter
    def position(self, value) -> None:
        self._position = _vec3(value)
        self._local = None

    @property
    def rotation(self) -> np.ndarray:
        return self._rotation.copy()

    @rotation.setter
    def rotation(self, value) -> None:
        self._rotation = _vec3(value)
        self._local = None

    @property
    def scale(self) -> np.ndarray:
        return self._scale.copy()

    @scale.setter
    def scale(self, value) -> None:
        self._scale = _vec3(value)
        self._local = None

    def local_matrix(self) -> np.ndarray:
        """Return translate * rotate(z, y, x) * scale, cached until a change."""
        if self._local is None:
            rx, ry, rz = self._rotation
            rotate = rotation(rz, _Z_AXIS) @ rotation(ry, _Y_AXIS) @ rotation(rx, _X_AXIS)
            self._local = translation(self._position) @ rotate @ scaling(self._scale)
        return self._local.copy()

    def world_matrix(self) -> np.ndarray:
        """Return the local matrix composed with every ancestor's."""
        local = self.local_matrix()
        parent = self.entity.parent
        if parent is not None:
            return parent.transform.world_matrix() @ local
        return local


class StaticMeshComponent(Component):
    """Attaches a mesh and a material name to an entity."""

    def __init__(self, entity: Entity) -> None:
        super().__init__(entity)
        self.mesh: Mesh | None = None
        self.material: str = ""


class Entity:
    """A named node of the scene holding components and child entities."""

    _ids = itertools.count()

    def __init__(self, name: str = "Entity") -> None:
        self._id = next(Entity._ids)
        self.name = name
        self._parent: Entity | None = None
        self._children: list[Entity] = []
        self._components: dict[type, Component] = {}
        self._transform = self.add_component(Transform)

    @property
    def id(self) -> int:
        return self._id

    @property
    def parent(self) -> Entity | None:
        return self._parent

    @property
    def children(self) -> tuple[Entity, ...]:
        return tuple(self._children)

    @property
    def transform(self) -> Transform:
        return self._transform

    def add_component(self, component_type: type[C], *args, **kwargs) -> C:
        """Create a component of this type, or return the one already present."""
        existing = self._components.get(component_type)
        if existing is not None:
            return existing  # type: ignore[return-value]
        component = component_type(self, *args, **kwargs)
        self._components[component_type] = component
        return component

    def get_component(self, component_type: type[C]) -> C | None:
        """Return the component of this type, or None."""
        return self._components.get(component_type)  # type: ignore[return-value]

    def has_component(self, component_type: type) -> bool:
        return component_type in self._components

    def add_child(self, child: Entity) -> None:
        """Make ``child`` a child of this entity, detaching it from its old parent."""
        if child._parent is not None:
            siblings = child._parent._children
            if child in siblings:
                siblings.remove(child)
        child._parent = self
        self._children.append(child)


class Scene:
    """Owns the entities of one scene."""

    def __init__(self) -> None:
        self._root_entities: list[Entity] = []
        self._all_entities: list[Entity] = []
        self.elapsed = 0.0

    @property
    def root_entities(self) -> tuple[Entity, ...]:
        return tuple(self._root_entities)

    def create_entity(self, name: str = "Entity") -> Entity:
        """Create a new root entity."""
        entity = Entity(name)
        self._root_entities.append(entity)
        self._all_entities.append(entity)
        return entity

    def update(self, delta_time: float) -> None:
        """Advance the scene clock by ``delta_time``."""
        self.elapsed += delta_time