import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest import mock

from gropack.core.filenames import replace_variant_dirs
from gropack.core.reporting import export_run
from gropack.core.scanner import resolve_output, run
from gropack.models import PackOptions

from worldfiles import world_bytes


def _make_game(root: Path) -> None:
    (root / "Levels").mkdir()
    (root / "Models").mkdir()
    (root / "Textures").mkdir()
    (root / "Levels" / "Test.wld").write_bytes(
        world_bytes(
            textures=["Textures\\Wall.tex"],
            resources=["Models\\Box.mdl", "Sounds\\Hit.wav"],
        )
    )
    (root / "Models" / "Box.mdl").write_bytes(b"model")
    (root / "Textures" / "Wall.tex").write_bytes(b"texture")
    with zipfile.ZipFile(root / "SE1_10.gro", "w") as zf:
        zf.writestr("Sounds/Hit.wav", b"wav")


class TestRun(unittest.TestCase):
    def test_pack_world(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            _make_game(root)

            lines = []
            opts = PackOptions(root=td, output="Out.gro", sources=["Levels/Test.wld"], flags=["gro", "ini"])
            result = run(opts, log_cb=lines.append, profiles_dir=profiles)

            self.assertFalse(result.blocked)
            self.assertEqual(
                result.ctx.scheduled_paths(),
                ["Levels/Test.wld", "Textures/Wall.tex", "Models/Box.mdl", "Models/Box.ini"],
            )
            self.assertEqual(result.missing, ["Models/Box.ini"])
            self.assertEqual(result.output, str(root / "Out.gro"))
            self.assertEqual(result.summary.packed, 3)

            with zipfile.ZipFile(root / "Out.gro") as zf:
                self.assertEqual(
                    zf.namelist(),
                    ["Levels/Test.wld", "Textures/Wall.tex", "Models/Box.mdl"],
                )

            self.assertIn("Standard dependencies: 1", lines)
            self.assertIn("Extra dependencies for 'Levels/Test.wld':", lines)
            self.assertTrue(lines[-1].endswith("is ready!"))

            written = export_run(result, str(root / "m.json"), str(root / "r.html"))
            self.assertEqual(len(written), 2)
            self.assertTrue(all(Path(p).exists() for p in written))

    def test_dependencies_only(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            _make_game(root)

            opts = PackOptions(root=td, sources=["Levels/Test.wld"], flags=["dep"])
            result = run(opts, profiles_dir=profiles)

            self.assertIsNone(result.output)
            self.assertEqual(result.summary.packed, 0)
            self.assertEqual(result.missing, ["Sounds/Hit.wav"])
            self.assertFalse(any(p.name.endswith(".gro") and p.name != "SE1_10.gro" for p in root.iterdir()))

    def test_broken_source_skips_packing(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            _make_game(root)
            (root / "Levels" / "Bad.wld").write_bytes(b"BUIV\x01\x00\x00\x00NOPE")

            opts = PackOptions(root=td, output="Out.gro", sources=["Levels/Bad.wld", "Levels/Test.wld"])
            result = run(opts, profiles_dir=profiles)

            self.assertTrue(result.blocked)
            self.assertTrue(any(i.code == "FORMAT_ERROR" for i in result.issues))
            self.assertIn("Models/Box.mdl", result.ctx.scheduled_paths())
            self.assertIsNone(result.output)
            self.assertFalse((root / "Out.gro").exists())

    def test_unreadable_source_is_recorded(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            _make_game(root)

            opts = PackOptions(root=td, sources=["Levels/Test.wld"], flags=["dep"])
            with mock.patch("gropack.core.scanner.scan_world", side_effect=PermissionError("denied")):
                result = run(opts, profiles_dir=profiles)

            codes = [i.code for i in result.issues]
            self.assertIn("SOURCE_UNREADABLE", codes)
            self.assertTrue(result.blocked)

    def test_over_long_embedded_name_is_reported_missing(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            (root / "Sounds").mkdir()
            (root / "Sounds" / "Hit.wav").write_bytes(b"wav")
            (root / "Game.bin").write_bytes(b"EFNM" + b"A" * 300 + b"\x00" + b"EFNMSounds\\Hit.wav\x00")

            result = run(PackOptions(root=td, sources=["Game.bin"], flags=["dep"]), profiles_dir=profiles)
            self.assertFalse(result.blocked)
            self.assertEqual(result.missing, ["A" * 300])

            result = run(PackOptions(root=td, output="Out.gro", sources=["Game.bin"]), profiles_dir=profiles)
            self.assertFalse(result.blocked)
            with zipfile.ZipFile(root / "Out.gro") as zf:
                self.assertEqual(zf.namelist(), ["Game.bin", "Sounds/Hit.wav"])

    def test_shared_archive_entry_is_reported_missing(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            (root / "Levels").mkdir()
            (root / "Models").mkdir()
            (root / "Levels" / "W.wld").write_bytes(world_bytes(resources=["ModelsMP\\Box.mdl", "Models\\Box.mdl"]))
            (root / "Models" / "Box.mdl").write_bytes(b"model")

            opts = PackOptions(root=td, output="Out.gro", sources=["Levels/W.wld"], flags=["ssr"])
            result = run(opts, profiles_dir=profiles)

            scheduled = result.ctx.scheduled_paths()
            self.assertEqual(scheduled, ["Levels/W.wld", "ModelsMP/Box.mdl", "Models/Box.mdl"])
            self.assertEqual(result.missing, ["Models/Box.mdl"])
            self.assertFalse(result.blocked)
            self.assertEqual(result.summary.packed, 2)

            with zipfile.ZipFile(root / "Out.gro") as zf:
                names = zf.namelist()
            expected = [replace_variant_dirs(p) for p in scheduled if p not in result.missing]
            self.assertEqual(names, expected)

    def test_game_not_detected(self):
        with tempfile.TemporaryDirectory() as td, tempfile.TemporaryDirectory() as profiles:
            root = Path(td)
            _make_game(root)
            (root / "SE1_10.gro").unlink()

            opts = PackOptions(root=td, sources=["Levels/Test.wld"], flags=["dep", "gro"])
            result = run(opts, profiles_dir=profiles)
            self.assertTrue(any(i.code == "GAME_NOT_DETECTED" for i in result.issues))
            self.assertIn("Sounds/Hit.wav", result.ctx.scheduled_paths())

    def test_invalid_options_block(self):
        result = run(PackOptions(root=""))
        self.assertIsNone(result.ctx)
        self.assertTrue(result.blocked)
        with self.assertRaises(ValueError):
            export_run(result, "m.json")

    def test_resolve_output(self):
        with tempfile.TemporaryDirectory() as td:
            absolute = str(Path(td) / "x.gro")
            self.assertEqual(resolve_output("/game", absolute), absolute)
            self.assertEqual(resolve_output(td, "y.gro"), str(Path(td) / "y.gro"))


if __name__ == "__main__":
    unittest.main()
