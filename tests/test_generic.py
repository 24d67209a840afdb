import struct
import tempfile
import unittest
from pathlib import Path

from gropack.core.depends import ScanContext
from gropack.core.generic import (
    MarkerSet,
    executable_scan_start,
    scan_buffer,
    scan_generic,
    scan_generic_stream,
)
from gropack.core.stream import ChunkStream

from worldfiles import lp_string


def _pe_image(first_section: bytes, second_section: bytes) -> bytes:
    data = bytearray(0x200)
    data[0:2] = b"MZ"
    struct.pack_into("<I", data, 0x3C, 0x80)
    data[0x80:0x84] = b"PE\x00\x00"
    struct.pack_into("<H", data, 0x86, 2)      # NumberOfSections
    struct.pack_into("<H", data, 0x94, 0xE0)   # SizeOfOptionalHeader
    section_table = 0x80 + 24 + 0xE0
    struct.pack_into("<I", data, section_table + 20, 0x200)
    struct.pack_into("<I", data, section_table + 40 + 20, 0x300)

    body = bytearray(first_section.ljust(0x100, b"\x00"))
    return bytes(data) + bytes(body) + second_section


class TestScanBuffer(unittest.TestCase):
    def test_text_marker(self):
        ctx = ScanContext(root=".")
        found = scan_buffer(ctx, ChunkStream(b"junk TFNM Textures/Wall.tex\nmore text"))

        self.assertEqual(found, ["Textures/Wall.tex"])
        self.assertEqual(ctx.scheduled_paths(), ["Textures/Wall.tex"])

    def test_binary_and_executable_markers(self):
        data = (
            b"\x00\x01TFNM" + lp_string("Models\\A.mdl")
            + b"zzEFNM" + b"Sounds\\B.wav\x00"
            + b"TFNM Data\\C.txt\r\n"
        )
        ctx = ScanContext(root=".")
        found = scan_buffer(ctx, ChunkStream(data))

        self.assertEqual(found, ["Models\\A.mdl", "Sounds\\B.wav", "Data\\C.txt"])
        self.assertEqual(ctx.scheduled_paths(), ["Models/A.mdl", "Sounds/B.wav", "Data/C.txt"])

    def test_invalid_markers_are_skipped(self):
        data = b"TFNM" + struct.pack("<i", 4000) + b"TFNMnospace" + b"EFNM\x00" + b"TFNM"
        ctx = ScanContext(root=".")
        self.assertEqual(scan_buffer(ctx, ChunkStream(data)), [])
        self.assertEqual(ctx.scheduled_paths(), [])

    def test_custom_markers(self):
        markers = MarkerSet(binary=b"BNAM", executable=b"XNAM", text=b"TNAM")
        data = b"TNAM Textures\\A.tex\nTFNM Textures\\B.tex\n"
        ctx = ScanContext(root=".")
        self.assertEqual(scan_buffer(ctx, ChunkStream(data), markers), ["Textures\\A.tex"])


class TestExecutableScan(unittest.TestCase):
    def test_scan_start_is_second_section(self):
        image = _pe_image(b"EFNMCode\\Skip.wav\x00", b"EFNMSounds\\Keep.wav\x00")
        self.assertEqual(executable_scan_start(image), 0x300)
        self.assertEqual(executable_scan_start(b"not an image"), 0)
        self.assertEqual(executable_scan_start(b"MZ" + b"\x00" * 10), 0)

    def test_code_section_is_not_scanned(self):
        image = _pe_image(b"EFNMCode\\Skip.wav\x00", b"EFNMSounds\\Keep.wav\x00")

        ctx = ScanContext(root=".")
        scan_generic_stream(ctx, ChunkStream(image), "Bin/Game.dll")
        self.assertEqual(ctx.scheduled_paths(), ["Sounds/Keep.wav"])

        ctx = ScanContext(root=".")
        scan_generic_stream(ctx, ChunkStream(image), "Bin/Game.dat")
        self.assertEqual(ctx.scheduled_paths(), ["Code/Skip.wav", "Sounds/Keep.wav"])


class TestScanGeneric(unittest.TestCase):
    def test_scan_file(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "Scripts").mkdir()
            (root / "Scripts" / "Intro.txt").write_bytes(b"TFNM Music\\Intro.ogg\n")

            lines = []
            ctx = ScanContext(root=td, log_cb=lines.append)
            scan_generic(ctx, "Scripts/Intro.txt")
            self.assertEqual(ctx.scheduled_paths(), ["Music/Intro.ogg"])
            self.assertEqual(lines, ["1. Music/Intro.ogg"])

    def test_no_dependencies(self):
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "Plain.bin").write_bytes(b"\x00" * 16)

            lines = []
            ctx = ScanContext(root=td, log_cb=lines.append)
            scan_generic(ctx, "Plain.bin")
            self.assertEqual(lines, ["No dependencies"])

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                scan_generic(ScanContext(root=td), "Nope.bin")


if __name__ == "__main__":
    unittest.main()
