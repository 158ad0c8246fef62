"""Decompression of TIFF segments."""

from __future__ import annotations

import logging
import zlib
from typing import Callable, Dict

import numpy as np

from rangetiff.enums import Compression, Predictor
from rangetiff.errors import (
    CorruptSegmentError,
    UnsupportedCompressionError,
    UnsupportedLayoutError,
)

logger = logging.getLogger(__name__)

LZW_CLEAR_CODE = 256
LZW_EOI_CODE = 257
LZW_FIRST_CODE = 258
LZW_MAX_CODE_LENGTH = 12


def lzw_decode(data: bytes) -> bytes:
    """
    Decode TIFF flavoured LZW.

    Codes are packed MSB first and start with 9 bits. The code length grows one
    code early, i.e. when the table holds 511, 1023 and 2047 entries.
    """
    out = bytearray()
    table = [bytes([i]) for i in range(256)] + [b"", b""]
    code_length = 9
    bit_position = 0
    total_bits = len(data) * 8
    previous = None

    while bit_position + code_length <= total_bits:
        byte_index = bit_position >> 3
        window = int.from_bytes(data[byte_index : byte_index + 3].ljust(3, b"\0"), "big")
        code = (window >> (24 - (bit_position & 7) - code_length)) & (
            (1 << code_length) - 1
        )
        bit_position += code_length

        if code == LZW_EOI_CODE:
            break
        elif code == LZW_CLEAR_CODE:
            del table[LZW_FIRST_CODE:]
            code_length = 9
            previous = None
            continue

        if previous is None:
            if code >= LZW_CLEAR_CODE:
                raise CorruptSegmentError(f"invalid LZW code {code} after clear code")
            entry = table[code]
        elif code < len(table):
            entry = table[code]
            table.append(previous + entry[:1])
        elif code == len(table):
            entry = previous + previous[:1]
            table.append(entry)
        else:
            raise CorruptSegmentError(
                f"invalid LZW code {code}, table only has {len(table)} entries"
            )

        out += entry
        previous = entry
        if len(table) + 1 >= (1 << code_length) and code_length < LZW_MAX_CODE_LENGTH:
            code_length += 1

    return bytes(out)


def packbits_decode(data: bytes) -> bytes:
    """Decode PackBits run-length encoding."""
    out = bytearray()
    position = 0
    length = len(data)
    while position < length:
        header = data[position]
        position += 1
        if header < 128:
            # literal run of header + 1 bytes
            count = header + 1
            out += data[position : position + count]
            position += count
        elif header > 128:
            # next byte repeated 257 - header times
            out += data[position : position + 1] * (257 - header)
            position += 1
        # 128 is a no-op
    return bytes(out)


def deflate_decode(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as exc:
        raise CorruptSegmentError(f"cannot inflate segment: {exc}") from exc


DECOMPRESSORS: Dict[Compression, Callable[[bytes], bytes]] = {
    Compression.none: bytes,
    Compression.lzw: lzw_decode,
    Compression.deflate: deflate_decode,
    Compression.deflate_legacy: deflate_decode,
    Compression.packbits: packbits_decode,
}


def to_compression(code: int) -> Compression:
    """Map a TIFF compression code to a supported Compression."""
    try:
        return Compression(code)
    except ValueError:
        raise UnsupportedCompressionError(f"unsupported compression code: {code}")


def decompress(compression: int, raw: bytes, expected_length: int) -> bytes:
    """
    Decompress one segment.

    Parameters
    ----------
    compression : int
        TIFF compression code.
    raw : bytes
        Segment bytes as stored in the file.
    expected_length : int
        Size of the decoded segment. Longer output is cut, as some encoders pad
        segments, shorter output raises a CorruptSegmentError.
    """
    codec = to_compression(compression)
    decoded = DECOMPRESSORS[codec](raw)
    if len(decoded) < expected_length:
        raise CorruptSegmentError(
            f"{codec.name} segment decoded to {len(decoded)} bytes, "
            f"expected {expected_length}"
        )
    elif len(decoded) > expected_length:
        logger.debug(
            "%s segment decoded to %s bytes, dropping %s trailing bytes",
            codec.name,
            len(decoded),
            len(decoded) - expected_length,
        )
        decoded = decoded[:expected_length]
    return decoded


def undo_predictor(samples: np.ndarray, predictor: int) -> np.ndarray:
    """
    Reverse the differencing applied before compression.

    samples has the shape (rows, cols, samples per pixel). Horizontal
    differences are accumulated along each row, separately per sample, using
    the sample type's wrap around arithmetic.
    """
    if predictor == Predictor.none:
        return samples
    elif predictor == Predictor.horizontal:
        if samples.dtype.kind == "f":
            raise UnsupportedLayoutError(
                "horizontal predictor is not supported on floating point samples"
            )
        return np.cumsum(samples, axis=1, dtype=samples.dtype)
    raise UnsupportedLayoutError(f"unsupported predictor: {predictor}")
