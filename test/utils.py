"""
Tests for the internal helpers (Unset sentinel, coalesce, ordinal) and the package surface.
"""
import copy
import unittest
from unittest import TestCase

import pennant
from pennant.utils import *


class TestUnset(TestCase):
    def testSingleton(self):
        self.assertIs(Unset, UnsetType())
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionSupport(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class TestCoalesce(TestCase):
    def testReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        for falsy in (None, 0, "", []):
            self.assertIs(coalesce(falsy, "fallback"), falsy)


class TestOrdinal(TestCase):
    def testSpelledOut(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self):
        for number, expected in ((11, "11th"), (12, "12th"), (13, "13th"), (21, "21st"), (22, "22nd"), (103, "103rd"), (111, "111th")):
            self.assertEqual(ordinal(number), expected)

    def testRejectsNonIntegers(self):
        with self.assertRaises(TypeError):
            ordinal("1")
        with self.assertRaises(TypeError):
            ordinal(True)


class TestPackage(TestCase):
    def testMetadata(self):
        self.assertEqual(pennant.__title__, "pennant")
        self.assertTrue(pennant.__doc__.startswith("\nPennant:"))
        self.assertEqual(pennant.version_info[:3], (0, 1, 0))

    def testExportsEveryModule(self):
        for name in ("FlagSet", "DurationValue", "parse_integer", "trigger", "ErrorPolicy"):
            self.assertIn(name, pennant.__all__)
            self.assertTrue(hasattr(pennant, name), name)


if __name__ == "__main__":
    unittest.main()
