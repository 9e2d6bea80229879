from unittest import TestCase

from caldavclient.lib.python_utilities import to_normal_str
from caldavclient.lib.python_utilities import to_wire
from caldavclient.lib.url import URL


class TestUtils(TestCase):
    def test_to_wire(self):
        # fmt: off
        self.assertEqual(to_wire('blatti'), b'blatti')
        self.assertEqual(to_wire(b'blatti'), b'blatti')
        self.assertEqual(to_wire('bærsyltetøy'), 'bærsyltetøy'.encode('utf-8'))
        self.assertEqual(to_wire('a\nb'), b'a\r\nb')
        self.assertEqual(to_wire('a\r\nb'), b'a\r\nb')
        self.assertEqual(to_wire(''), b'')
        self.assertEqual(to_wire(b''), b'')
        self.assertEqual(to_wire(None), None)
        # fmt: on

    def test_to_normal_str(self):
        self.assertEqual(to_normal_str(b"a\r\nb"), "a\nb")
        self.assertEqual(to_normal_str("a\r\nb"), "a\nb")
        self.assertEqual(to_normal_str(None), None)


class TestURL(TestCase):
    def test_join(self):
        base = URL("https://cal.example.com/dav/")
        self.assertEqual(str(base.join("alice/")), "https://cal.example.com/dav/alice/")
        self.assertEqual(str(base.join("/other/")), "https://cal.example.com/other/")
        self.assertEqual(
            str(base.join("https://cal.example.com/dav/x.ics")),
            "https://cal.example.com/dav/x.ics",
        )
        self.assertEqual(
            str(URL("https://cal.example.com/dav").join("alice")),
            "https://cal.example.com/dav/alice",
        )
        self.assertIs(base.join(""), base)
        self.assertIs(base.join(None), base)

    def test_join_other_host(self):
        with self.assertRaises(ValueError):
            URL("https://cal.example.com/").join("https://evil.example.com/x")

    def test_is_absolute(self):
        self.assertTrue(URL("https://cal.example.com/dav/").is_absolute())
        self.assertFalse(URL("/dav/").is_absolute())
        self.assertFalse(URL("cal.example.com/dav/").is_absolute())

    def test_trailing_slash(self):
        self.assertEqual(
            str(URL("https://cal.example.com/dav").with_trailing_slash()),
            "https://cal.example.com/dav/",
        )
        self.assertEqual(
            str(URL("https://cal.example.com/dav///").strip_trailing_slash()),
            "https://cal.example.com/dav",
        )

    def test_equality(self):
        self.assertEqual(URL("/dav/"), "/dav/")
        self.assertEqual(URL.objectify("/dav/"), URL("/dav/"))
        self.assertIsNone(URL.objectify(None))
        self.assertEqual(URL(b"/dav/").path, "/dav/")
