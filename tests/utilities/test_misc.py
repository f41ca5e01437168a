import unittest

from bosun.utilities import misc


class TestMiscUtilities(unittest.TestCase):

    def test_parse_version(self):
        self.assertEqual(misc.parse_version("1.2.3"), [1, 2, 3])
        self.assertEqual(misc.parse_version("v2.0"), [2, 0, 0])
        self.assertEqual(misc.parse_version("1.4.0-beta.2"), [1, 4, 0])
        self.assertEqual(misc.parse_version("dev"), [0, 0, 0])

    def test_is_newer(self):
        self.assertTrue(misc.is_newer("1.10.0", "1.9.9"))
        self.assertTrue(misc.is_newer("2.0", "1.99.0"))
        self.assertFalse(misc.is_newer("1.0.0", "1.0"))
        self.assertFalse(misc.is_newer("0.9.0", "1.0.0"))
