"""Byte builders for world and texture files used by the tests."""
from __future__ import annotations

import struct
from typing import Iterable, Optional


def lp_string(text: str) -> bytes:
    raw = text.encode("latin-1")
    return struct.pack("<i", len(raw)) + raw


def dictionary(names: Iterable[str]) -> bytes:
    names = list(names)
    out = b"DICT" + struct.pack("<i", len(names))
    for n in names:
        out += b"DFNM" + lp_string(n)
    return out + b"DEND"


def world_bytes(
    textures: Iterable[str] = (),
    resources: Iterable[str] = (),
    translation: bool = False,
    leaderboards: Optional[str] = None,
    player_level: bool = False,
    special_mode: bool = False,
    body: bytes = b"\x01\x02brushes-and-entities\x03",
) -> bytes:
    out = b"BUIV" + struct.pack("<i", 10000) + b"WRLD" + b"WLIF"
    if translation:
        out += b"DTRS"
    if leaderboards is not None:
        out += b"LDRB" + lp_string(leaderboards)
    if player_level:
        out += b"Plv0" + b"\x00" * 12
    out += lp_string("Test World") + b"\x00\x00\x00\x00"
    if special_mode:
        out += b"SpGM"
    out += lp_string("A world for tests")
    out += body

    first = dictionary(textures)
    second = dictionary(resources)

    first_at = len(out) + 8
    second_pos_at = first_at + len(first)
    second_at = second_pos_at + 8

    out += b"DPOS" + struct.pack("<i", first_at)
    out += first
    out += b"DPOS" + struct.pack("<i", second_at)
    out += second
    return out


def effect_texture_bytes(base_name: str, filler: int = 40) -> bytes:
    header = b"\x04\x00\x00\x00" + b"H" * 32
    return header + b"FXDT" + b"\x07" * filler + b"\x00" + base_name.encode("latin-1")


def plain_texture_bytes() -> bytes:
    return b"\x04\x00\x00\x00" + b"H" * 32 + b"FRMS" + b"\x00" * 64
