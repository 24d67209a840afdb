import tempfile
import unittest
from pathlib import Path

from gropack.core.filenames import (
    NormalizedPath,
    dependency_key,
    escapes_root,
    file_ext,
    locate_file,
    normalize_filename,
    relative_name,
    replace_spaces,
    replace_variant_dirs,
    substitute_extension,
)


class TestNormalizeFilename(unittest.TestCase):
    def test_backslashes_are_standard(self):
        n = normalize_filename("Models\\Tree.mdl")
        self.assertEqual(n.path, "Models/Tree.mdl")
        self.assertFalse(n.nonstandard)

    def test_forward_slash_marks_nonstandard(self):
        n = normalize_filename("Models/Tree.mdl")
        self.assertEqual(n.path, "Models/Tree.mdl")
        self.assertTrue(n.nonstandard)

    def test_collapse_and_leading_slash(self):
        n = normalize_filename("\\Models\\\\Trees\\Oak.mdl")
        self.assertEqual(n.path, "Models/Trees/Oak.mdl")
        self.assertTrue(n.nonstandard)

        n = normalize_filename("Textures//Wall.tex")
        self.assertEqual(n.path, "Textures/Wall.tex")

    def test_only_one_leading_slash_removed_after_collapse(self):
        n = normalize_filename("///Data/Fonts.fnt")
        self.assertEqual(n.path, "Data/Fonts.fnt")

    def test_output_has_no_backslash_or_double_slash(self):
        for raw in ["a\\\\b", "\\\\x\\y", "c//d\\/e", "plain.txt", ""]:
            out = normalize_filename(raw).path
            self.assertNotIn("\\", out)
            self.assertNotIn("//", out)
            self.assertFalse(out.startswith("/"))

    def test_idempotent(self):
        first = normalize_filename("\\Models\\Box.mdl")
        self.assertIs(normalize_filename(first), first)
        self.assertEqual(normalize_filename(first).path, first.path)

    def test_str(self):
        self.assertEqual(str(NormalizedPath("A/b.tex")), "A/b.tex")


class TestPathHelpers(unittest.TestCase):
    def test_keys_and_extensions(self):
        self.assertEqual(dependency_key("Models/Box.MDL"), "models/box.mdl")
        self.assertEqual(file_ext("Models/Box.MDL"), ".mdl")
        self.assertEqual(file_ext("Makefile"), "")
        self.assertEqual(substitute_extension("Music/Song.mp3", ".ogg"), "Music/Song.ogg")

    def test_replace_variant_dirs(self):
        self.assertEqual(replace_variant_dirs("ModelsMP/Box.mdl"), "Models/Box.mdl")
        self.assertEqual(replace_variant_dirs("SoundsMP/a.wav"), "Sounds/a.wav")
        self.assertEqual(replace_variant_dirs("MusicMP/a.ogg"), "Music/a.ogg")
        self.assertEqual(replace_variant_dirs("DataMP/a.txt"), "Data/a.txt")
        self.assertEqual(replace_variant_dirs("TexturesMP/a.tex"), "Textures/a.tex")
        self.assertEqual(replace_variant_dirs("AnimationsMP/a.ani"), "Animations/a.ani")
        self.assertEqual(replace_variant_dirs("Models/Box.mdl"), "Models/Box.mdl")

    def test_replace_spaces(self):
        self.assertEqual(replace_spaces("Models/Big Tree.mdl"), "Models/Big_Tree.mdl")

    def test_locate_file_with_variant_fallback(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "Models").mkdir()
            (root / "Models" / "Box.mdl").write_bytes(b"m")

            self.assertIsNotNone(locate_file(td, "Models/Box.mdl"))
            self.assertIsNone(locate_file(td, "ModelsMP/Box.mdl"))

            found = locate_file(td, "ModelsMP/Box.mdl", variant=True)
            self.assertIsNotNone(found)
            self.assertEqual(relative_name(td, found), "Models/Box.mdl")

    def test_escapes_root(self):
        self.assertTrue(escapes_root("../x.txt"))
        self.assertTrue(escapes_root("Models/../../x.txt"))
        self.assertTrue(escapes_root("/etc/passwd"))
        self.assertFalse(escapes_root("Models/Box..mdl"))
        self.assertFalse(escapes_root("Models/Box.mdl"))

    def test_locate_file_never_escapes_or_raises(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td) / "game"
            root.mkdir()
            (Path(td) / "outside.txt").write_text("x")

            self.assertIsNone(locate_file(str(root), "../outside.txt"))
            self.assertIsNone(locate_file(str(root), "A" * 300))
            self.assertIsNone(locate_file(str(root), "ModelsMP/" + "B" * 300, variant=True))


if __name__ == "__main__":
    unittest.main()
