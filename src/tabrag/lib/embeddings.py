"""Shared embedding utilities (encoding, decoding, normalization).

Stores hand embeddings back in different shapes: a native array column
gives a list of floats, a text column (SQLite, pgvector through PostgREST)
gives a JSON string.  ``resolve_embedding`` folds every shape into a plain
``list[float]`` so scoring code only ever sees one representation.
"""

import json
import logging
import math
import numbers
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def is_numeric_sequence(value) -> bool:
    """True for a list/tuple-like sequence of finite real numbers (bools excluded)."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return False
    return all(_is_finite_real(x) for x in value)


def _is_finite_real(x) -> bool:
    if isinstance(x, bool) or not isinstance(x, numbers.Real):
        return False
    try:
        return math.isfinite(x)
    except OverflowError:
        # int too large for a float
        return False


def _reject_constant(name: str):
    raise ValueError(f"non-finite value {name} in embedding")


def encode_embedding(vec: Sequence[float]) -> str:
    """Encode a vector as compact JSON text."""
    if vec is None:
        raise TypeError("vec must not be None")
    if not is_numeric_sequence(vec):
        raise TypeError("vec must be a sequence of numbers")
    return json.dumps([float(x) for x in vec], separators=(",", ":"))


def decode_embedding(text: str) -> list[float]:
    """Decode a JSON-encoded vector to ``list[float]``.

    Raises ``ValueError`` if the text is not a JSON array of finite numbers
    (``NaN``, ``Infinity`` and overflowing literals such as ``1e400`` are
    rejected).
    """
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError) as exc:
        raise ValueError("invalid embedding encoding") from exc
    if not is_numeric_sequence(value):
        raise ValueError("embedding is not an array of numbers")
    return [float(x) for x in value]


def resolve_embedding(value, label: str | None = None) -> list[float]:
    """Normalize an embedding field to ``list[float]``; ``[]`` means absent.

    Undecodable strings are logged (using *label* to name the offending
    record) and treated as absent instead of raising.
    """
    if isinstance(value, str):
        try:
            return decode_embedding(value)
        except ValueError:
            logger.warning("Invalid embedding format for doc: %s", label or "<unknown>")
            return []
    if is_numeric_sequence(value):
        return [float(x) for x in value]
    return []
