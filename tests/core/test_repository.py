import unittest

from licensewalker.core.errors import RawUrlError, RepositoryReferenceError
from licensewalker.core.repository import (
    RepositoryReference,
    RepositorySlug,
    parse_repository_url,
    raw_url_from_content_url,
)


class TestParseRepositoryUrl(unittest.TestCase):

    def test_supported_forms(self):
        urls = [
            "https://github.com/acme/widget",
            "https://www.github.com/acme/widget/tree/main/packages",
            "git+https://github.com/acme/widget.git",
            "git://github.com/acme/widget.git",
            "git+ssh://git@github.com/acme/widget.git",
            "ssh://git@github.com:acme/widget.git",
            "git@github.com:acme/widget.git",
            "github:acme/widget",
            "acme/widget",
        ]
        for url in urls:
            with self.subTest(url=url):
                self.assertEqual(parse_repository_url(url), RepositorySlug("acme", "widget"))

    def test_unsupported_hosts_fail(self):
        for url in ["https://gitlab.com/acme/widget", "bitbucket:acme/widget", "not a url", ""]:
            with self.subTest(url=url):
                with self.assertRaises(RepositoryReferenceError):
                    parse_repository_url(url)

    def test_reference_from_metadata(self):
        self.assertEqual(
            RepositoryReference.from_metadata({"type": "git", "url": "github:acme/widget"}),
            RepositoryReference("github:acme/widget"),
        )
        self.assertEqual(RepositoryReference.from_metadata("acme/widget").parse().project, "widget")
        self.assertIsNone(RepositoryReference.from_metadata(None))
        self.assertIsNone(RepositoryReference.from_metadata({"type": "git"}))


class TestRawUrlFromContentUrl(unittest.TestCase):

    def test_transform(self):
        url = "https://api.github.com/repos/acme/widget/contents/LICENSE?ref=main"
        self.assertEqual(
            raw_url_from_content_url(url, "https://raw.githubusercontent.com"),
            "https://raw.githubusercontent.com/acme/widget/main/LICENSE",
        )

    def test_nested_path_and_escapes(self):
        url = "https://api.github.com/repos/acme/widget/contents/docs/READ%20ME.md?ref=v1.2.0"
        self.assertEqual(
            raw_url_from_content_url(url, "https://raw.example.com/"),
            "https://raw.example.com/acme/widget/v1.2.0/docs/READ ME.md",
        )

    def test_enterprise_api_prefix(self):
        url = "https://ghe.test/api/v3/repos/acme/widget/contents/LICENSE?ref=main"
        self.assertEqual(
            raw_url_from_content_url(url, "https://ghe.test/raw"),
            "https://ghe.test/raw/acme/widget/main/LICENSE",
        )

    def test_malformed_urls_fail_loudly(self):
        bad = [
            "https://api.github.com/repos/acme/widget/contents/LICENSE",
            "https://api.github.com/users/acme",
            "/repos/acme/widget/contents/LICENSE?ref=main",
            "LICENSE",
        ]
        for url in bad:
            with self.subTest(url=url):
                with self.assertRaises(RawUrlError):
                    raw_url_from_content_url(url)

    def test_raw_url_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            raw_url_from_content_url("nope")
