import unittest

import httpx

from licensewalker.clients.base import DirectoryEntry
from licensewalker.clients.github import GitHubClient
from licensewalker.core.errors import RepositoryError

LISTING = [
    {"name": "LICENSE", "type": "file", "url": "https://api.github.com/repos/acme/widget/contents/LICENSE?ref=main"},
    {"name": "README.md", "type": "file", "url": "https://api.github.com/repos/acme/widget/contents/README.md?ref=main"},
    {"name": "src", "type": "dir", "url": "https://api.github.com/repos/acme/widget/contents/src?ref=main"},
]


class TestGitHubClient(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.requests = []

    def make_client(self, http, token=None):
        return GitHubClient(http, api_base="https://api.github.com", token=token)

    async def test_list_directory(self):
        def handler(request):
            self.requests.append(request)
            return httpx.Response(200, json=LISTING)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            listing = await self.make_client(http, token="s3cret").list_directory("acme", "widget")

        self.assertTrue(listing.ok)
        self.assertEqual([e.name for e in listing.entries], ["LICENSE", "README.md", "src"])
        self.assertEqual(listing.entries[0], DirectoryEntry("LICENSE", LISTING[0]["url"]))
        self.assertEqual(str(self.requests[0].url), "https://api.github.com/repos/acme/widget/contents")
        self.assertEqual(self.requests[0].headers["Authorization"], "token s3cret")

    async def test_anonymous_requests_have_no_auth_header(self):
        def handler(request):
            self.requests.append(request)
            return httpx.Response(200, json=[])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            listing = await self.make_client(http).list_directory("acme", "widget")

        self.assertEqual(listing.entries, ())
        self.assertNotIn("Authorization", self.requests[0].headers)

    async def test_error_status_keeps_body(self):
        body = '{"message": "Not Found"}'

        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404, text=body))) as http:
            listing = await self.make_client(http).list_directory("acme", "gone")

        self.assertFalse(listing.ok)
        self.assertEqual(listing.status_code, 404)
        self.assertEqual(listing.body, body)
        self.assertEqual(listing.entries, ())

    async def test_file_payload_has_no_entries(self):
        payload = {"name": "widget", "type": "file"}

        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload))) as http:
            listing = await self.make_client(http).list_directory("acme", "widget")

        self.assertTrue(listing.ok)
        self.assertEqual(listing.entries, ())

    async def test_fetch_raw_content(self):
        def handler(request):
            if request.url.path.endswith("/LICENSE"):
                return httpx.Response(200, text="MIT License")
            return httpx.Response(404, text="404: Not Found")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = self.make_client(http)
            text = await client.fetch_raw_content("https://raw.githubusercontent.com/acme/widget/main/LICENSE")

            with self.assertRaises(RepositoryError):
                await client.fetch_raw_content("https://raw.githubusercontent.com/acme/widget/main/COPYING")

        self.assertEqual(text, "MIT License")

    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with self.assertRaises(RepositoryError):
                await self.make_client(http).list_directory("acme", "widget")
