"""
Field-level helpers for reading and writing dBase (.DBF) files.

Little-endian integer access, fixed-width text and NUMERIC field encoding,
LOGICAL field decoding and a few byte predicates. Header parsing, record
iteration and file handling live with the DBF reader/writer that uses these.
"""

import logging
import struct
import warnings
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import BinaryIO, Iterable, Optional, Union


logger = logging.getLogger(__name__)


# Constants
DBF_PAD_BYTE = 0x20
DBF_LOGICAL_TRUE = b"YyTt"
DBF_LOGICAL_FALSE = b"NnFf"

_INT_RANGES = {
    (16, False): (0, 0xFFFF),
    (16, True): (-0x8000, 0x7FFF),
    (32, False): (0, 0xFFFFFFFF),
    (32, True): (-0x80000000, 0x7FFFFFFF),
}


# Data structures
class Alignment(Enum):
    """Where encoded text sits inside a padded field."""
    LEFT = "left"
    RIGHT = "right"


class Truncation(Enum):
    """How text longer than its field is cut down."""
    CHARS = "chars"  # first N characters, re-encoded
    BYTES = "bytes"  # longest prefix whose encoding fits in N bytes


class Logical(Enum):
    """Value of a LOGICAL (L) field. UNKNOWN covers '?', blanks and junk."""
    TRUE = "T"
    FALSE = "F"
    UNKNOWN = "?"

    def as_bool(self, default: Optional[bool] = None) -> Optional[bool]:
        """Return True/False, or `default` for UNKNOWN."""
        if self is Logical.TRUE:
            return True
        if self is Logical.FALSE:
            return False
        return default


ALIGN_LEFT = Alignment.LEFT
ALIGN_RIGHT = Alignment.RIGHT
TRUNCATE_CHARS = Truncation.CHARS
TRUNCATE_BYTES = Truncation.BYTES


# Errors
class DBFError(Exception):
    """Base class for errors raised by the DBF field helpers."""


class DBFCharsetError(DBFError, LookupError):
    """The character set name is not known to the codec registry."""


class DBFEndOfDataError(DBFError, EOFError):
    """The byte source ran out before a value could be read."""


# Helper functions
def _check_range(value: int, bits: int, signed: bool) -> None:
    low, high = _INT_RANGES[(bits, signed)]
    if not low <= value <= high:
        kind = "signed" if signed else "unsigned"
        raise ValueError(f"{value} does not fit in a {kind} {bits}-bit integer")


def _read_exact(src: BinaryIO, size: int) -> bytes:
    """Read exactly `size` bytes from `src`, retrying short reads."""
    buf = bytearray()
    while len(buf) < size:
        chunk = src.read(size - len(buf))
        if not chunk:
            raise DBFEndOfDataError(
                f"Expected {size} bytes from source, got {len(buf)}")
        buf += chunk
    return bytes(buf)


def _encode(text: str, charset: str, errors: str) -> bytes:
    try:
        return text.encode(charset, errors)
    except LookupError as e:
        raise DBFCharsetError(f"Unknown character set: {charset!r}") from e


def _fit_to_width(text: str, charset: str, length: int, errors: str) -> bytes:
    """Encode the longest character prefix of `text` that fits in `length` bytes."""
    end = min(len(text), length)
    encoded = _encode(text[:end], charset, errors)
    while len(encoded) > length and end > 0:
        end -= 1
        encoded = _encode(text[:end], charset, errors)
    # a byte-order mark alone can be wider than the field
    if len(encoded) > length:
        return b""
    return encoded


def _to_decimal(value: Union[int, float, Decimal]) -> Decimal:
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(value)
    else:
        number = Decimal(float(value))
    if not number.is_finite():
        raise ValueError(f"Cannot store {value!r} in a NUMERIC field")
    return number


def format_numeric(value: Union[int, float, Decimal], decimal_places: int) -> str:
    """
    Format a number the way a NUMERIC field stores it, without padding.

    Rounds half-even on the exact value (0.125 -> '.12', 2.5 -> '2'). A zero
    integer part is dropped when decimals follow ('.50'), a bare zero prints
    as '0', and negative values keep their '-' even when they round to zero.

    Args:
        value: The number to format (int, float or Decimal)
        decimal_places: Digits after the decimal point (0 for none)

    Returns:
        The formatted number as a string
    """
    if decimal_places < 0:
        raise ValueError(f"decimal_places must be >= 0, got {decimal_places}")

    number = _to_decimal(value)
    quantum = Decimal(1).scaleb(-decimal_places)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + decimal_places + 2)
        rounded = number.quantize(quantum, rounding=ROUND_HALF_EVEN)

    digits = format(rounded.copy_abs(), "f")
    sign = "-" if rounded.is_signed() else ""
    if decimal_places == 0:
        return sign + digits

    whole, fraction = digits.split(".")
    if whole == "0":
        whole = ""
    return f"{sign}{whole}.{fraction}"


# Byte order
def read_le_u16(src: BinaryIO, signed: bool = False) -> int:
    """
    Read a little-endian 16-bit integer from a binary stream.

    Args:
        src: Binary file-like object positioned at the value
        signed: Reinterpret the bits as two's complement

    Returns:
        The integer value
    """
    return struct.unpack("<h" if signed else "<H", _read_exact(src, 2))[0]


def read_le_u32(src: BinaryIO, signed: bool = False) -> int:
    """
    Read a little-endian 32-bit integer from a binary stream.

    Args:
        src: Binary file-like object positioned at the value
        signed: Reinterpret the bits as two's complement

    Returns:
        The integer value
    """
    return struct.unpack("<i" if signed else "<L", _read_exact(src, 4))[0]


def write_le_u16(dst: BinaryIO, value: int, signed: bool = False) -> None:
    """Write a 16-bit integer to a binary stream in little-endian order."""
    _check_range(value, 16, signed)
    dst.write(struct.pack("<h" if signed else "<H", value))


def write_le_u32(dst: BinaryIO, value: int, signed: bool = False) -> None:
    """Write a 32-bit integer to a binary stream in little-endian order."""
    _check_range(value, 32, signed)
    dst.write(struct.pack("<i" if signed else "<L", value))


def swap_u16(value: int, signed: bool = False) -> int:
    """Swap the two bytes of a 16-bit integer."""
    _check_range(value, 16, signed)
    fmt = "h" if signed else "H"
    return struct.unpack(">" + fmt, struct.pack("<" + fmt, value))[0]


def swap_u32(value: int, signed: bool = False) -> int:
    """Reverse the four bytes of a 32-bit integer."""
    _check_range(value, 32, signed)
    fmt = "i" if signed else "L"
    return struct.unpack(">" + fmt, struct.pack("<" + fmt, value))[0]


# Field encoding
def text_padding(text: str, charset: str, length: int,
                 alignment: Alignment = ALIGN_LEFT,
                 pad_byte: int = DBF_PAD_BYTE,
                 truncate: Truncation = TRUNCATE_CHARS,
                 errors: str = "replace") -> bytearray:
    """
    Encode text into a fixed-width field, padded with `pad_byte`.

    Text that encodes to `length` bytes or more is cut down instead of padded.
    With TRUNCATE_CHARS (the default) the first `length` characters are
    re-encoded, which is exact for single-byte charsets but may return more
    than `length` bytes for multi-byte ones. Text with fewer than `length`
    characters that still overflows is cut as with TRUNCATE_BYTES. That mode
    keeps whole
    characters that fit and pads the rest, so the result is always `length`
    bytes long.

    Any alignment other than ALIGN_RIGHT is treated as ALIGN_LEFT.

    Args:
        text: The value to store
        charset: Codec name (e.g. 'ascii', 'cp1252', 'cp437')
        length: Field width in bytes
        alignment: ALIGN_LEFT or ALIGN_RIGHT
        pad_byte: Byte used to fill the unused part of the field
        truncate: TRUNCATE_CHARS or TRUNCATE_BYTES
        errors: Codec error handler for unencodable characters

    Returns:
        The field bytes
    """
    if length < 0:
        raise ValueError(f"Field length must be >= 0, got {length}")
    if not 0 <= pad_byte <= 0xFF:
        raise ValueError(f"Padding byte must be in 0..255, got {pad_byte}")

    encoded = _encode(text, charset, errors)

    if length == 0:
        return bytearray()
    if len(encoded) >= length:
        if len(encoded) > length:
            logger.debug("Truncating %r to a %d byte field", text, length)
        if truncate is not TRUNCATE_BYTES and len(text) >= length:
            return bytearray(_encode(text[:length], charset, errors))
        encoded = _fit_to_width(text, charset, length, errors)

    buf = bytearray([pad_byte]) * length
    if alignment is ALIGN_RIGHT:
        offset = length - len(encoded)
    else:
        offset = 0
    buf[offset:offset + len(encoded)] = encoded
    return buf


def double_formatting(value: Union[int, float, Decimal], charset: str,
                      field_length: int, decimal_places: int) -> bytearray:
    """
    Encode a number as a right-aligned NUMERIC (N) field.

    Args:
        value: The number to store
        charset: Codec name used for the digits
        field_length: Field width in bytes, including sign and decimal point
        decimal_places: Digits after the decimal point (0 for none)

    Returns:
        The field bytes, space padded on the left
    """
    if decimal_places < 0:
        raise ValueError(f"decimal_places must be >= 0, got {decimal_places}")
    if field_length < decimal_places + 1:
        raise ValueError(
            f"Field length {field_length} is too small for {decimal_places} decimal places")

    text = format_numeric(value, decimal_places)
    if len(text) > field_length:
        logger.warning("Value %s does not fit in N(%d,%d), truncated to %r",
                       text, field_length, decimal_places, text[:field_length])
    return text_padding(text, charset, field_length, ALIGN_RIGHT)


# Field decoding
def to_boolean(value: Union[int, bytes, bytearray, str]) -> Logical:
    """
    Decode the byte of a LOGICAL (L) field.

    Args:
        value: The stored byte, as an int or a one-byte bytes/str

    Returns:
        Logical.TRUE for Y/y/T/t, Logical.FALSE for N/n/F/f,
        Logical.UNKNOWN for anything else
    """
    if isinstance(value, (bytes, bytearray, str)):
        if len(value) != 1:
            raise TypeError(f"Expected a single byte, got {value!r}")
        value = value[0] if not isinstance(value, str) else ord(value)
    elif isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected a byte value, got {type(value).__name__}")

    if not 0 <= value <= 0xFF:
        return Logical.UNKNOWN
    if value in DBF_LOGICAL_TRUE:
        return Logical.TRUE
    if value in DBF_LOGICAL_FALSE:
        return Logical.FALSE
    return Logical.UNKNOWN


# Predicates
def strip_spaces(data: Iterable[int]) -> bytes:
    """Remove every space (0x20) from the data, keeping the other bytes in order."""
    return bytes(data).replace(b" ", b"")


def trim_left_spaces(data: Iterable[int]) -> bytes:
    """
    Deprecated alias of strip_spaces.

    Despite the name this removes ALL spaces, not only leading ones.
    """
    warnings.warn(
        "trim_left_spaces() removes all spaces; use strip_spaces() instead",
        DeprecationWarning,
        stacklevel=2,
    )
    return strip_spaces(data)


def contains(data: Optional[Iterable[int]], value: int) -> bool:
    """Check whether a byte array contains the given byte. None counts as empty."""
    if data is None:
        return False
    for item in data:
        if item == value:
            return True
    return False


def is_pure_ascii(text: Optional[str]) -> bool:
    """Check that every character is in U+0000..U+007F. None and '' count as ASCII."""
    if text is None:
        return True
    return text.isascii()


__all__ = [
    'Alignment', 'Truncation', 'Logical',
    'ALIGN_LEFT', 'ALIGN_RIGHT', 'TRUNCATE_CHARS', 'TRUNCATE_BYTES',
    'DBF_PAD_BYTE', 'DBF_LOGICAL_TRUE', 'DBF_LOGICAL_FALSE',
    'DBFError', 'DBFCharsetError', 'DBFEndOfDataError',
    'read_le_u16', 'read_le_u32', 'write_le_u16', 'write_le_u32',
    'swap_u16', 'swap_u32',
    'text_padding', 'format_numeric', 'double_formatting',
    'to_boolean',
    'strip_spaces', 'trim_left_spaces', 'contains', 'is_pure_ascii'
]
