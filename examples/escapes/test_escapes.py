# This file is not part of the example. It is a test file to ensure the example
# works as expected during the CI process.


import unittest

from escapes import decode, to_digit


class TestEscapes(unittest.TestCase):
    def test_decode(self):
        self.assertEqual(decode("Hello,\x20world!\\n"), "Hello, world!\n")

    def test_hexadecimal(self):
        self.assertEqual(decode("A\\x41\\x4g!"), "AA!")

    def test_simple_escapes(self):
        self.assertEqual(decode("a\\tb\\\\c\\rd\\0"), "a\tb\\c\rd\0")

    def test_unnecessary_escape(self):
        self.assertEqual(decode("\\q\\\""), 'q"')

    def test_to_digit(self):
        self.assertEqual(to_digit("f"), 15)
        self.assertEqual(to_digit("7"), 7)
        self.assertIsNone(to_digit("g"))
