"""
Tests for the internal helpers (Unset, coalesce, rename, mirror, verbose).

Conventions
- Test method names follow CamelCase per project convention.
"""
import logging
import unittest
from types import MappingProxyType
from unittest import TestCase

from rich.logging import RichHandler

import clipper
from clipper.utils import *


class UtilsTest(TestCase):

    def testUnsetIsAFalseySingleton(self):
        self.assertIs(Unset, UnsetType())
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        with self.assertRaises(TypeError):
            type("Sub", (UnsetType,), {})

    def testCoalescePreservesFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameForms(self):
        def work():
            pass

        self.assertEqual(rename(work, "do_work").__name__, "do_work")

        @rename("other")
        def again():
            pass

        self.assertEqual(again.__qualname__, "other")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorReturnsImmutableViews(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")
            marks = mirror("marks")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._marks = {"x"}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.marks, frozenset("x"))

    def testPackageMetadata(self):
        self.assertEqual(clipper.__title__, "clipper")
        self.assertEqual(clipper.__author__, "The Clipper Authors")
        self.assertEqual(clipper.__version__, "%d.%d.%d" % clipper.version_info[:3])

    def testVerboseAttachesOneRichHandler(self):
        logger = verbose(logging.INFO)
        try:
            verbose(logging.INFO)
            self.assertEqual(logger.name, "clipper")
            self.assertEqual(sum(isinstance(handler, RichHandler) for handler in logger.handlers), 1)
            self.assertEqual(logger.level, logging.INFO)
        finally:
            for handler in [handler for handler in logger.handlers if isinstance(handler, RichHandler)]:
                logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)


if __name__ == "__main__":
    unittest.main()
