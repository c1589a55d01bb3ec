"""Geohash encoding, decoding and neighbourhood search."""

from __future__ import annotations

import base64
import math

__all__ = [
    "encode",
    "decode",
    "to_string",
    "to_int",
    "from_int",
    "to_range",
    "distance",
    "get_neighbours",
]

_DEFAULT_BIT_SIZE = 64
_UINT64_MASK = (1 << 64) - 1

_DR = math.pi / 180.0
_EARTH_RADIUS = 6372797.560856
_MERCATOR_MAX = 20037726.37

_B32_TABLE = bytes.maketrans(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZ234567", b"0123456789bcdefghjkmnpqrstuvwxyz"
)

Box = list[list[float]]


def _encode0(latitude: float, longitude: float, bit_size: int) -> tuple[bytes, Box]:
    """Interleave longitude and latitude bits; return the hash and its box."""
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    pos = (longitude, latitude)
    code = bytearray((bit_size + 7) // 8)
    precision = 0
    while precision < bit_size:
        for direction, val in enumerate(pos):
            mid = (box[direction][0] + box[direction][1]) / 2
            if val < mid:
                box[direction][1] = mid
            else:
                box[direction][0] = mid
                code[precision >> 3] |= 1 << (7 - (precision & 7))
            precision += 1
            if precision == bit_size:
                break
    return bytes(code), box


def _decode0(code: bytes) -> Box:
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    direction = 0
    for byte in code:
        for shift in range(7, -1, -1):
            mid = (box[direction][0] + box[direction][1]) / 2
            if byte & (1 << shift):
                box[direction][0] = mid
            else:
                box[direction][1] = mid
            direction ^= 1
    return box


def encode(latitude: float, longitude: float) -> int:
    """Encode a coordinate as a 64-bit geohash code."""
    buf, _ = _encode0(latitude, longitude, _DEFAULT_BIT_SIZE)
    return int.from_bytes(buf, "big")


def decode(code: int) -> tuple[float, float]:
    """Decode a 64-bit geohash code into (latitude, longitude)."""
    box = _decode0(from_int(code))
    lng = (box[0][0] + box[0][1]) / 2
    lat = (box[1][0] + box[1][1]) / 2
    return lat, lng


def to_string(buf: bytes) -> str:
    """Render geohash bytes in the geohash base32 alphabet."""
    return base64.b32encode(bytes(buf)).translate(_B32_TABLE).rstrip(b"=").decode("ascii")


def to_int(buf: bytes) -> int:
    """Read geohash bytes as a 64-bit code, zero-padding short input."""
    return int.from_bytes(bytes(buf[:8]).ljust(8, b"\x00"), "big")


def from_int(code: int) -> bytes:
    """Write a 64-bit code as 8 big-endian bytes."""
    return (code & _UINT64_MASK).to_bytes(8, "big")


def to_range(scope: bytes, precision: int) -> tuple[int, int]:
    """Return the [lower, upper) code range covered by a geohash prefix."""
    lower = to_int(scope)
    upper = (lower + (1 << (64 - precision))) & _UINT64_MASK
    return lower, upper


def _estimate_precision_by_radius(radius_meters: float, latitude: float) -> int:
    if radius_meters == 0:
        return _DEFAULT_BIT_SIZE - 1
    precision = 1
    while radius_meters < _MERCATOR_MAX:
        radius_meters *= 2
        precision += 1
    precision -= 2
    if latitude > 66 or latitude < -66:
        precision -= 1
        if latitude > 80 or latitude < -80:
            precision -= 1
    if precision < 0:
        # An unsigned step counter that went below zero clamps to the maximum.
        precision = 32
    if precision < 1:
        precision = 1
    if precision > 32:
        precision = 32
    return precision * 2 - 1


def _deg_rad(ang: float) -> float:
    return ang * _DR


def distance(latitude1: float, longitude1: float, latitude2: float, longitude2: float) -> float:
    """Great-circle distance in metres between two coordinates."""
    rad_lat1 = _deg_rad(latitude1)
    rad_lat2 = _deg_rad(latitude2)
    a = rad_lat1 - rad_lat2
    b = _deg_rad(longitude1) - _deg_rad(longitude2)
    return 2 * _EARTH_RADIUS * math.asin(
        math.sqrt(
            math.sin(a / 2) ** 2 + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(b / 2) ** 2
        )
    )


def _valid_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def _valid_lng(lng: float) -> float:
    if lng > 180:
        return lng - 360
    if lng < -180:
        return lng + 360
    return lng


def get_neighbours(latitude: float, longitude: float, radius_meters: float) -> list[tuple[int, int]]:
    """Return code ranges of the nine blocks around a coordinate.

    Order: upper-left, upper, upper-right, left, centre, right,
    lower-left, lower, lower-right.
    """
    precision = _estimate_precision_by_radius(radius_meters, latitude)
    center, box = _encode0(latitude, longitude, precision)
    height = box[0][1] - box[0][0]
    width = box[1][1] - box[1][0]
    center_lng = (box[0][1] + box[0][0]) / 2
    center_lat = (box[1][1] + box[1][0]) / 2
    max_lat = _valid_lat(center_lat + height)
    min_lat = _valid_lat(center_lat - height)
    max_lng = _valid_lng(center_lng + width)
    min_lng = _valid_lng(center_lng - width)

    def block(lat: float, lng: float) -> tuple[int, int]:
        code, _ = _encode0(lat, lng, precision)
        return to_range(code, precision)

    return [
        block(max_lat, min_lng),
        block(max_lat, center_lng),
        block(max_lat, max_lng),
        block(center_lat, min_lng),
        to_range(center, precision),
        block(center_lat, max_lng),
        block(min_lat, min_lng),
        block(min_lat, center_lng),
        block(min_lat, max_lng),
    ]