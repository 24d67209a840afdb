from __future__ import annotations

import struct
import zipfile
from pathlib import Path


def _lp(text: str) -> bytes:
    raw = text.encode("latin-1")
    return struct.pack("<i", len(raw)) + raw


def _dictionary(names) -> bytes:
    out = b"DICT" + struct.pack("<i", len(names))
    for n in names:
        out += b"DFNM" + _lp(n)
    return out + b"DEND"


def _world(textures, resources) -> bytes:
    out = b"BUIV" + struct.pack("<i", 10000) + b"WRLD" + b"WLIF"
    out += _lp("Demo World") + b"\x00\x00\x00\x00" + _lp("Generated demo level")
    out += b"\x00" * 64  # stands in for brushes and entities

    first = _dictionary(textures)
    first_at = len(out) + 8
    second_at = first_at + len(first) + 8
    out += b"DPOS" + struct.pack("<i", first_at) + first
    out += b"DPOS" + struct.pack("<i", second_at) + _dictionary(resources)
    return out


def main():
    root = Path("demo_game")
    for d in ("Levels", "Models", "Textures", "Sounds", "Music"):
        (root / d).mkdir(parents=True, exist_ok=True)

    (root / "Levels" / "Demo.wld").write_bytes(
        _world(
            ["Textures\\Floor.tex", "Textures\\Wall.tex"],
            ["Models\\Crate.mdl", "Sounds\\Door.wav", "Music\\Theme.ogg"],
        )
    )
    (root / "Levels" / "DemoTbn.tex").write_bytes(b"dummy_thumbnail")

    # Wall.tex is an effect texture built on Floor.tex
    (root / "Textures" / "Wall.tex").write_bytes(
        b"\x04\x00\x00\x00" + b"\x01" * 32 + b"FXDT" + b"\x02" * 40 + b"\x00" + b"Textures\\Floor.tex"
    )
    (root / "Textures" / "Floor.tex").write_bytes(b"dummy_tex")
    (root / "Models" / "Crate.mdl").write_bytes(b"dummy_mdl")
    (root / "Models" / "Crate.ini").write_text("[Model]\n", encoding="utf-8")
    (root / "Music" / "Theme.ogg").write_bytes(b"dummy_ogg")

    # Standard archive of the game; its files are never packed
    with zipfile.ZipFile(root / "SE1_10.gro", "w") as zf:
        zf.writestr("Sounds/Door.wav", b"dummy_wav")

    print(f"Created demo game at: {root.resolve()}")
    print(f"Try: python -m gropack {root.resolve() / 'Levels' / 'Demo.wld'} -f ini")

if __name__ == "__main__":
    main()
