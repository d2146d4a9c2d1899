"""
checkpoint.py
~~~~~~~~~~~~~

Raw binary checkpoints for :class:`~logicnet.core.network.Network`.

Layout, host byte order, no padding or header::

    uint32 n_inputs, uint32 n_hidden, uint32 n_outputs
    float64 weights_hidden[n_inputs * n_hidden]
    float64 biases_hidden[n_hidden]
    float64 weights_output[n_hidden * n_outputs]
    float64 biases_output[n_outputs]

The format carries no version tag and is not portable across hosts with a
different byte order.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict

import numpy as np

from .core.errors import (
    CheckpointCorruptError,
    CheckpointNotFoundError,
    CheckpointWriteError,
    ShapeMismatchError,
)
from .core.network import Network
from .core.types import PARAMETER_ORDER, Array, Shape

# Configure module logger
logger = logging.getLogger(__name__)

HEADER_DTYPE = np.dtype(np.uint32)
PARAM_DTYPE = np.dtype(np.float64)
HEADER_SIZE = 3 * HEADER_DTYPE.itemsize


def encode(network: Network) -> bytes:
    """Serialise ``network``'s shape and parameters to bytes."""

    header = np.array(network.shape.as_tuple(), dtype=HEADER_DTYPE)
    chunks = [header.tobytes()]
    for buf in network.parameters().values():
        chunks.append(np.ascontiguousarray(buf, dtype=PARAM_DTYPE).tobytes())
    return b"".join(chunks)


def _decode_shape(blob: bytes, path: str) -> Shape:
    if len(blob) < HEADER_SIZE:
        raise CheckpointCorruptError(
            f"Checkpoint {path} is truncated: {len(blob)} bytes, header needs {HEADER_SIZE}",
            path=path,
        )
    fields = np.frombuffer(blob, dtype=HEADER_DTYPE, count=3)
    return Shape(*(int(v) for v in fields))


def _decode_parameters(blob: bytes, shape: Shape, path: str) -> Dict[str, Array]:
    shapes = shape.parameter_shapes()
    expected = HEADER_SIZE + shape.parameter_count() * PARAM_DTYPE.itemsize
    if len(blob) != expected:
        raise CheckpointCorruptError(
            f"Checkpoint {path} has {len(blob)} bytes, expected {expected}",
            path=path,
        )
    state: Dict[str, Array] = {}
    offset = HEADER_SIZE
    for name in PARAMETER_ORDER:
        count = int(np.prod(shapes[name]))
        values = np.frombuffer(blob, dtype=PARAM_DTYPE, count=count, offset=offset)
        state[name] = values.reshape(shapes[name])
        offset += count * PARAM_DTYPE.itemsize
    return state


def _read(path: str | os.PathLike) -> bytes:
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise CheckpointNotFoundError(
            f"Cannot open checkpoint {os.fspath(path)}: {exc}", path=os.fspath(path)
        ) from exc


def read_checkpoint_shape(path: str | os.PathLike) -> Shape:
    """Return the shape stored in the checkpoint at ``path``."""

    return _decode_shape(_read(path), os.fspath(path))


def _default_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def save_checkpoint(network: Network, path: str | os.PathLike) -> str:
    """
    Write ``network`` to ``path``.

    Missing parent directories are created. The bytes go to a temporary
    sibling file which then replaces ``path``, so an existing checkpoint
    stays intact if writing fails. The file gets the usual umask-derived
    permissions.

    Args:
        network: Network whose shape and parameters are written
        path: Destination file

    Returns:
        str: The path written

    Raises:
        CheckpointWriteError: If the file cannot be created or written
    """
    target = Path(path)
    payload = encode(network)
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
        )
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        # mkstemp creates the file 0600
        os.chmod(tmp_name, _default_mode())
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error(f"Failed to save checkpoint {target}: {exc}")
        raise CheckpointWriteError(
            f"Cannot write checkpoint {target}: {exc}", path=str(target)
        ) from exc

    logger.debug(f"Saved checkpoint {target} ({len(payload)} bytes)")
    return str(target)


def load_checkpoint(network: Network, path: str | os.PathLike) -> Shape:
    """
    Restore ``network``'s parameters from ``path`` in place.

    Activation buffers are not touched. Nothing is written to the network
    unless the whole checkpoint validates.

    Args:
        network: Network to overwrite
        path: Source file

    Returns:
        Shape: The shape read from the checkpoint

    Raises:
        CheckpointNotFoundError: If the file is missing or cannot be opened
        ShapeMismatchError: If the stored shape differs from the network's
        CheckpointCorruptError: If the file is truncated or oversized
    """
    name = os.fspath(path)
    blob = _read(path)
    stored = _decode_shape(blob, name)
    if stored != network.shape:
        logger.warning(
            f"Checkpoint {name} shape {stored.as_tuple()} does not match "
            f"network {network.shape.as_tuple()}"
        )
        raise ShapeMismatchError(
            f"Network dimensions mismatch: checkpoint {stored.as_tuple()}, "
            f"network {network.shape.as_tuple()}",
            path=name,
            expected=network.shape,
            found=stored,
        )
    state = _decode_parameters(blob, stored, name)
    network.load_parameters(state)
    logger.info(f"Loaded checkpoint {name}")
    return stored


__all__ = [
    "encode",
    "load_checkpoint",
    "read_checkpoint_shape",
    "save_checkpoint",
]
