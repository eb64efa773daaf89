"""Access patterns and barrier decisions for image and buffer synchronisation."""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class QueueFamilyIndices:
    """Queue family indices used for rendering and for presentation."""

    graphics_family_index: int
    present_family_index: int


class QueueFamilyType(enum.Enum):
    """Kind of queue that performs an access."""

    GRAPHICS = 0
    TRANSFER = 1
    COMPUTE = 2
    PRESENT = 3
    UNDEFINED = 4


class PipelineStage(enum.IntFlag):
    """Pipeline stage bits, with the values the graphics API assigns them."""

    NONE = 0
    TOP_OF_PIPE = 0x00000001
    DRAW_INDIRECT = 0x00000002
    VERTEX_INPUT = 0x00000004
    VERTEX_SHADER = 0x00000008
    TESSELLATION_CONTROL_SHADER = 0x00000010
    TESSELLATION_EVALUATION_SHADER = 0x00000020
    GEOMETRY_SHADER = 0x00000040
    FRAGMENT_SHADER = 0x00000080
    EARLY_FRAGMENT_TESTS = 0x00000100
    LATE_FRAGMENT_TESTS = 0x00000200
    COLOR_ATTACHMENT_OUTPUT = 0x00000400
    COMPUTE_SHADER = 0x00000800
    TRANSFER = 0x00001000
    BOTTOM_OF_PIPE = 0x00002000
    HOST = 0x00004000
    ALL_GRAPHICS = 0x00008000
    ALL_COMMANDS = 0x00010000


class Access(enum.IntFlag):
    """Memory access bits, with the values the graphics API assigns them."""

    NONE = 0
    INDIRECT_COMMAND_READ = 0x00000001
    INDEX_READ = 0x00000002
    VERTEX_ATTRIBUTE_READ = 0x00000004
    UNIFORM_READ = 0x00000008
    INPUT_ATTACHMENT_READ = 0x00000010
    SHADER_READ = 0x00000020
    SHADER_WRITE = 0x00000040
    COLOR_ATTACHMENT_READ = 0x00000080
    COLOR_ATTACHMENT_WRITE = 0x00000100
    DEPTH_STENCIL_ATTACHMENT_READ = 0x00000200
    DEPTH_STENCIL_ATTACHMENT_WRITE = 0x00000400
    TRANSFER_READ = 0x00000800
    TRANSFER_WRITE = 0x00001000
    HOST_READ = 0x00002000
    HOST_WRITE = 0x00004000
    MEMORY_READ = 0x00008000
    MEMORY_WRITE = 0x00010000


class ImageLayout(enum.IntEnum):
    """Image layouts, with the values the graphics API assigns them."""

    UNDEFINED = 0
    GENERAL = 1
    COLOR_ATTACHMENT_OPTIMAL = 2
    DEPTH_STENCIL_ATTACHMENT_OPTIMAL = 3
    DEPTH_STENCIL_READ_ONLY_OPTIMAL = 4
    SHADER_READ_ONLY_OPTIMAL = 5
    TRANSFER_SRC_OPTIMAL = 6
    TRANSFER_DST_OPTIMAL = 7
    PREINITIALIZED = 8
    PRESENT_SRC = 1000001002


class ImageUsage(enum.Enum):
    """How an image is used at one point of a frame."""

    GRAPHICS_SHADER_READ = 0
    GRAPHICS_SHADER_READ_WRITE = 1
    COMPUTE_SHADER_READ = 2
    COMPUTE_SHADER_READ_WRITE = 3
    TRANSFER_DST = 4
    TRANSFER_SRC = 5
    COLOR_ATTACHMENT = 6
    DEPTH_ATTACHMENT = 7
    PRESENT = 8
    NONE = 9
    UNKNOWN = 10


class BufferUsage(enum.Enum):
    """How a buffer is used at one point of a frame."""

    VERTEX_BUFFER = 0
    GRAPHICS_SHADER_READ_WRITE = 1
    COMPUTE_SHADER_READ_WRITE = 2
    TRANSFER_DST = 3
    TRANSFER_SRC = 4
    NONE = 5
    UNKNOWN = 6


@dataclass(frozen=True)
class ImageAccessPattern:
    """Stage, access mask, layout and queue of one image access."""

    stage: PipelineStage
    access_mask: Access
    layout: ImageLayout
    queue_family_type: QueueFamilyType


@dataclass(frozen=True)
class ImageSubresourceBarrier:
    """Transition of an image from one access pattern to another."""

    src_access_pattern: ImageAccessPattern
    dst_access_pattern: ImageAccessPattern


@dataclass(frozen=True)
class BufferAccessPattern:
    """Stage, access mask and queue of one buffer access."""

    stage: PipelineStage
    access_mask: Access
    queue_family_type: QueueFamilyType


@dataclass(frozen=True)
class BufferBarrier:
    """Transition of a buffer from one access pattern to another."""

    src_access_pattern: BufferAccessPattern
    dst_access_pattern: BufferAccessPattern


_S = PipelineStage
_A = Access
_L = ImageLayout
_Q = QueueFamilyType

_SRC_IMAGE = {
    ImageUsage.GRAPHICS_SHADER_READ: ImageAccessPattern(
        _S.FRAGMENT_SHADER, _A.NONE, _L.SHADER_READ_ONLY_OPTIMAL, _Q.GRAPHICS
    ),
    ImageUsage.GRAPHICS_SHADER_READ_WRITE: ImageAccessPattern(
        _S.VERTEX_SHADER | _S.FRAGMENT_SHADER, _A.SHADER_WRITE, _L.GENERAL, _Q.GRAPHICS
    ),
    ImageUsage.COMPUTE_SHADER_READ: ImageAccessPattern(
        _S.COMPUTE_SHADER, _A.NONE, _L.SHADER_READ_ONLY_OPTIMAL, _Q.COMPUTE
    ),
    ImageUsage.COMPUTE_SHADER_READ_WRITE: ImageAccessPattern(
        _S.COMPUTE_SHADER, _A.SHADER_WRITE, _L.GENERAL, _Q.COMPUTE
    ),
    ImageUsage.TRANSFER_SRC: ImageAccessPattern(
        _S.TRANSFER, _A.NONE, _L.TRANSFER_SRC_OPTIMAL, _Q.TRANSFER
    ),
    ImageUsage.TRANSFER_DST: ImageAccessPattern(
        _S.TRANSFER, _A.TRANSFER_WRITE, _L.TRANSFER_DST_OPTIMAL, _Q.TRANSFER
    ),
    ImageUsage.COLOR_ATTACHMENT: ImageAccessPattern(
        _S.COLOR_ATTACHMENT_OUTPUT, _A.COLOR_ATTACHMENT_WRITE, _L.COLOR_ATTACHMENT_OPTIMAL, _Q.GRAPHICS
    ),
    ImageUsage.DEPTH_ATTACHMENT: ImageAccessPattern(
        _S.LATE_FRAGMENT_TESTS,
        _A.DEPTH_STENCIL_ATTACHMENT_WRITE,
        _L.DEPTH_STENCIL_ATTACHMENT_OPTIMAL,
        _Q.GRAPHICS,
    ),
    ImageUsage.PRESENT: ImageAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _L.PRESENT_SRC, _Q.PRESENT),
    ImageUsage.NONE: ImageAccessPattern(_S.TOP_OF_PIPE, _A.NONE, _L.UNDEFINED, _Q.UNDEFINED),
    ImageUsage.UNKNOWN: ImageAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _L.UNDEFINED, _Q.UNDEFINED),
}

_DST_IMAGE = {
    ImageUsage.GRAPHICS_SHADER_READ: ImageAccessPattern(
        _S.VERTEX_SHADER, _A.SHADER_READ, _L.SHADER_READ_ONLY_OPTIMAL, _Q.GRAPHICS
    ),
    ImageUsage.GRAPHICS_SHADER_READ_WRITE: ImageAccessPattern(
        _S.VERTEX_SHADER | _S.FRAGMENT_SHADER, _A.SHADER_READ | _A.SHADER_WRITE, _L.GENERAL, _Q.GRAPHICS
    ),
    ImageUsage.COMPUTE_SHADER_READ: ImageAccessPattern(
        _S.COMPUTE_SHADER, _A.SHADER_READ, _L.SHADER_READ_ONLY_OPTIMAL, _Q.COMPUTE
    ),
    ImageUsage.COMPUTE_SHADER_READ_WRITE: ImageAccessPattern(
        _S.COMPUTE_SHADER, _A.SHADER_WRITE | _A.SHADER_READ, _L.GENERAL, _Q.COMPUTE
    ),
    ImageUsage.TRANSFER_DST: ImageAccessPattern(
        _S.TRANSFER, _A.TRANSFER_WRITE, _L.TRANSFER_DST_OPTIMAL, _Q.TRANSFER
    ),
    ImageUsage.TRANSFER_SRC: ImageAccessPattern(
        _S.TRANSFER, _A.TRANSFER_READ, _L.TRANSFER_SRC_OPTIMAL, _Q.TRANSFER
    ),
    ImageUsage.COLOR_ATTACHMENT: ImageAccessPattern(
        _S.COLOR_ATTACHMENT_OUTPUT,
        _A.COLOR_ATTACHMENT_READ | _A.COLOR_ATTACHMENT_WRITE,
        _L.COLOR_ATTACHMENT_OPTIMAL,
        _Q.GRAPHICS,
    ),
    ImageUsage.DEPTH_ATTACHMENT: ImageAccessPattern(
        _S.LATE_FRAGMENT_TESTS | _S.EARLY_FRAGMENT_TESTS,
        _A.DEPTH_STENCIL_ATTACHMENT_READ | _A.DEPTH_STENCIL_ATTACHMENT_WRITE,
        _L.DEPTH_STENCIL_ATTACHMENT_OPTIMAL,
        _Q.GRAPHICS,
    ),
    ImageUsage.PRESENT: ImageAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _L.PRESENT_SRC, _Q.PRESENT),
    ImageUsage.NONE: ImageAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _L.UNDEFINED, _Q.UNDEFINED),
}

_SRC_BUFFER = {
    BufferUsage.VERTEX_BUFFER: BufferAccessPattern(_S.VERTEX_INPUT, _A.NONE, _Q.GRAPHICS),
    BufferUsage.GRAPHICS_SHADER_READ_WRITE: BufferAccessPattern(
        _S.VERTEX_SHADER | _S.FRAGMENT_SHADER, _A.SHADER_WRITE, _Q.GRAPHICS
    ),
    BufferUsage.COMPUTE_SHADER_READ_WRITE: BufferAccessPattern(_S.COMPUTE_SHADER, _A.SHADER_WRITE, _Q.COMPUTE),
    BufferUsage.TRANSFER_DST: BufferAccessPattern(_S.TRANSFER, _A.TRANSFER_WRITE, _Q.TRANSFER),
    BufferUsage.TRANSFER_SRC: BufferAccessPattern(_S.TRANSFER, _A.NONE, _Q.TRANSFER),
    BufferUsage.NONE: BufferAccessPattern(_S.TOP_OF_PIPE, _A.NONE, _Q.UNDEFINED),
    BufferUsage.UNKNOWN: BufferAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _Q.UNDEFINED),
}

_DST_BUFFER = {
    BufferUsage.VERTEX_BUFFER: BufferAccessPattern(_S.VERTEX_INPUT, _A.VERTEX_ATTRIBUTE_READ, _Q.GRAPHICS),
    BufferUsage.GRAPHICS_SHADER_READ_WRITE: BufferAccessPattern(
        _S.VERTEX_SHADER | _S.FRAGMENT_SHADER, _A.SHADER_WRITE | _A.SHADER_READ, _Q.GRAPHICS
    ),
    BufferUsage.COMPUTE_SHADER_READ_WRITE: BufferAccessPattern(
        _S.COMPUTE_SHADER, _A.SHADER_WRITE | _A.SHADER_READ, _Q.COMPUTE
    ),
    BufferUsage.TRANSFER_DST: BufferAccessPattern(_S.TRANSFER, _A.TRANSFER_WRITE, _Q.TRANSFER),
    BufferUsage.TRANSFER_SRC: BufferAccessPattern(_S.TRANSFER, _A.TRANSFER_READ, _Q.TRANSFER),
    BufferUsage.NONE: BufferAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _Q.UNDEFINED),
    BufferUsage.UNKNOWN: BufferAccessPattern(_S.BOTTOM_OF_PIPE, _A.NONE, _Q.UNDEFINED),
}


def src_image_access_pattern(usage: ImageUsage) -> ImageAccessPattern:
    """Access pattern of an image on the source side of a barrier."""
    return _SRC_IMAGE[ImageUsage(usage)]


def dst_image_access_pattern(usage: ImageUsage) -> ImageAccessPattern:
    """Access pattern of an image on the destination side of a barrier.

    Raises ValueError for :attr:`ImageUsage.UNKNOWN`, which cannot be a destination.
    """
    usage = ImageUsage(usage)
    if usage is ImageUsage.UNKNOWN:
        raise ValueError("an image cannot be transitioned to an unknown usage")
    return _DST_IMAGE[usage]


def is_image_barrier_needed(src_usage: ImageUsage, dst_usage: ImageUsage) -> bool:
    """Whether moving an image between these usages needs a barrier."""
    return not (
        src_usage is ImageUsage.GRAPHICS_SHADER_READ and dst_usage is ImageUsage.GRAPHICS_SHADER_READ
    )


def src_buffer_access_pattern(usage: BufferUsage) -> BufferAccessPattern:
    """Access pattern of a buffer on the source side of a barrier."""
    return _SRC_BUFFER[BufferUsage(usage)]


def dst_buffer_access_pattern(usage: BufferUsage) -> BufferAccessPattern:
    """Access pattern of a buffer on the destination side of a barrier."""
    return _DST_BUFFER[BufferUsage(usage)]


def is_buffer_barrier_needed(src_usage: BufferUsage, dst_usage: BufferUsage) -> bool:
    """Whether moving a buffer between these usages needs a barrier.

    The decision is conservative: every valid pair of usages needs one.
    Raises ValueError if either usage is not a :class:`BufferUsage`.
    """
    usages = (BufferUsage(src_usage), BufferUsage(dst_usage))
    return all(usage in _SRC_BUFFER for usage in usages)