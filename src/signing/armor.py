"""
ASCII Armor Module

Encodes and decodes the textual "ASCII armor" envelope used to ship
detached signatures as text:

    -----BEGIN PGP SIGNATURE-----
    Version: build-signer

    <base64 body>
    =<base64 CRC-24 checksum>
    -----END PGP SIGNATURE-----
"""

import re
import base64
import binascii
from typing import Dict, Optional, Tuple

DEFAULT_BLOCK_TYPE = "PGP SIGNATURE"

CRC24_INIT = 0xB704CE
CRC24_POLY = 0x1864CFB

LINE_LENGTH = 64

_BEGIN_RE = re.compile(rb"^-----BEGIN ([A-Z0-9 ]+)-----$")
_END_RE = re.compile(rb"^-----END ([A-Z0-9 ]+)-----$")
_HEADER_RE = re.compile(rb"^([\x21-\x39\x3b-\x7e]+): ?(.*)$")


class ArmorError(Exception):
    """Raised when an armored envelope is recognized but cannot be decoded."""


def crc24(data: bytes) -> int:
    """CRC-24 checksum carried on the armor checksum line."""
    crc = CRC24_INIT
    for byte in data:
        crc ^= byte << 16
        for _ in range(8):
            crc <<= 1
            if crc & 0x1000000:
                crc ^= CRC24_POLY
    return crc & 0xFFFFFF


def is_armored(data: bytes) -> bool:
    """True if the data starts, after leading whitespace, with an armor BEGIN line."""
    first_line = data.lstrip().split(b"\n", 1)[0].rstrip(b"\r \t")
    return _BEGIN_RE.match(first_line) is not None


def decode(data: bytes) -> Tuple[str, Dict[str, str], bytes]:
    """
    Decode an armored envelope.

    Args:
        data: Armored bytes

    Returns:
        Tuple of (block type, armor headers, decoded body)

    Raises:
        ArmorError: if the envelope is malformed, the body is not valid
            base64 or the checksum does not match
    """
    lines = [line.rstrip(b"\r \t") for line in data.lstrip().split(b"\n")]

    begin = _BEGIN_RE.match(lines[0]) if lines else None
    if begin is None:
        raise ArmorError("Missing armor BEGIN line")
    block_type = begin.group(1)

    # Armor headers run up to the first blank line. Some signers omit the
    # blank line entirely when there are no headers.
    headers = {}
    index = 1
    while index < len(lines):
        line = lines[index]
        if not line:
            index += 1
            break
        header = _HEADER_RE.match(line)
        if header is None:
            break
        headers[header.group(1).decode('ascii')] = header.group(2).decode('utf-8', 'replace')
        index += 1

    body_lines = []
    checksum = None
    end_found = False
    for line in lines[index:]:
        end = _END_RE.match(line)
        if end is not None:
            if end.group(1) != block_type:
                raise ArmorError(
                    f"Armor END type {end.group(1).decode('ascii')!r} does not match "
                    f"BEGIN type {block_type.decode('ascii')!r}")
            end_found = True
            break
        if line.startswith(b"=") and len(line) == 5:
            checksum = line[1:]
        elif line:
            body_lines.append(line)

    if not end_found:
        raise ArmorError("Missing armor END line")

    try:
        body = base64.b64decode(b"".join(body_lines), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ArmorError(f"Armor body is not valid base64: {e}") from e

    if checksum is not None:
        try:
            expected = int.from_bytes(base64.b64decode(checksum, validate=True), 'big')
        except (binascii.Error, ValueError) as e:
            raise ArmorError(f"Armor checksum is not valid base64: {e}") from e
        actual = crc24(body)
        if expected != actual:
            raise ArmorError(f"Armor checksum mismatch: expected {expected:06x}, was {actual:06x}")

    return block_type.decode('ascii'), headers, body


def decode_if_armored(data: bytes) -> Optional[bytes]:
    """Return the decoded body of armored data, or None if data is not armored."""
    if not is_armored(data):
        return None
    return decode(data)[2]


def encode(body: bytes,
           block_type: str = DEFAULT_BLOCK_TYPE,
           headers: Optional[Dict[str, str]] = None) -> bytes:
    """Wrap raw bytes in an armored envelope with a CRC-24 checksum line."""
    encoded = base64.b64encode(body).decode('ascii')
    lines = [f"-----BEGIN {block_type}-----"]
    for key, value in (headers or {}).items():
        lines.append(f"{key}: {value}")
    lines.append("")
    lines.extend(encoded[i:i + LINE_LENGTH] for i in range(0, len(encoded), LINE_LENGTH))
    checksum = base64.b64encode(crc24(body).to_bytes(3, 'big')).decode('ascii')
    lines.append(f"={checksum}")
    lines.append(f"-----END {block_type}-----")
    return ("\n".join(lines) + "\n").encode('ascii')
