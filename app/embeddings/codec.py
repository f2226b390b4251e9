"""
Binary encoding for stored embeddings.

Layout: N consecutive 4-byte little-endian IEEE-754 float32 values, no
header. The dimension is the blob length divided by four.
"""

from typing import List, Sequence

import numpy as np

FLOAT_WIDTH = 4
_DTYPE = np.dtype("<f4")


def encode_embedding(vector: Sequence[float]) -> bytes:
    """
    Encode an embedding as a float32 blob.

    Args:
        vector: Embedding values

    Returns:
        Blob of len(vector) * 4 bytes
    """
    return np.asarray(vector, dtype=_DTYPE).tobytes()


def decode_embedding(blob: bytes) -> List[float]:
    """
    Decode a float32 blob back into an embedding.

    Args:
        blob: Bytes produced by encode_embedding

    Returns:
        Embedding values

    Raises:
        ValueError: If blob length is not a multiple of four
    """
    if len(blob) % FLOAT_WIDTH != 0:
        raise ValueError(
            f"Embedding blob length {len(blob)} is not a multiple of {FLOAT_WIDTH}"
        )
    return np.frombuffer(blob, dtype=_DTYPE).tolist()
