import unittest as ut
from bucketfs.prefixer import PathPrefixer


class PathPrefixerTest(ut.TestCase):

    def test_prefix_path(self):
        prefixer = PathPrefixer("root")
        self.assertEqual(prefixer.prefix_path("a/b.txt"), "root/a/b.txt")
        self.assertEqual(prefixer.prefix_path("/a/b.txt"), "root/a/b.txt")

    def test_prefix_normalized(self):
        self.assertEqual(PathPrefixer("/root/").prefix, "root/")
        self.assertEqual(PathPrefixer("root/sub").prefix, "root/sub/")
        self.assertEqual(PathPrefixer("\\root\\sub\\").prefix, "root/sub/")
        self.assertEqual(PathPrefixer("").prefix, "")
        self.assertEqual(PathPrefixer("/").prefix, "")

    def test_backslashes_in_path(self):
        prefixer = PathPrefixer("root")
        self.assertEqual(prefixer.prefix_path("a\\b\\c.txt"), "root/a/b/c.txt")
        self.assertEqual(prefixer.strip_prefix("root\\a\\c.txt"), "a/c.txt")

    def test_no_prefix(self):
        prefixer = PathPrefixer()
        self.assertEqual(prefixer.prefix_path("a/b.txt"), "a/b.txt")
        self.assertEqual(prefixer.strip_prefix("a/b.txt"), "a/b.txt")
        self.assertEqual(prefixer.prefix_directory_path(""), "")
        self.assertEqual(prefixer.prefix_directory_path("dir"), "dir/")

    def test_round_trip(self):
        for prefix in ("", "root", "root/sub", "/root/"):
            prefixer = PathPrefixer(prefix)
            for path in ("file.txt", "a/b/c.txt", "dir/", "a b/c+d.txt"):
                with self.subTest(prefix=prefix, path=path):
                    self.assertEqual(prefixer.strip_prefix(prefixer.prefix_path(path)), path)

    def test_prefix_directory_path(self):
        prefixer = PathPrefixer("root")
        self.assertEqual(prefixer.prefix_directory_path(""), "root/")
        self.assertEqual(prefixer.prefix_directory_path("dir"), "root/dir/")
        self.assertEqual(prefixer.prefix_directory_path("dir/"), "root/dir/")

    def test_strip_directory_prefix(self):
        prefixer = PathPrefixer("root")
        self.assertEqual(prefixer.strip_directory_prefix("root/dir/"), "dir")
        self.assertEqual(prefixer.strip_directory_prefix("root/dir/sub/"), "dir/sub")

    def test_strip_foreign_key(self):
        prefixer = PathPrefixer("root")
        self.assertEqual(prefixer.strip_prefix("other/file.txt"), "other/file.txt")
