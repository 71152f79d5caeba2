import pytest

from ceremony_verifier.lib.auth import sign
from ceremony_verifier.lib.errors import InvalidLocator
from ceremony_verifier.lib.request_builder import (
    build_request,
    canonicalize_locator,
    signature_path,
)
from tests.helpers.util import API_URL, VIEW_KEY_HEX


class TestCanonicalizeLocator:
    def test_strips_leading_dot_slash(self):
        assert canonicalize_locator("./foo/bar") == "foo/bar"
        assert canonicalize_locator("./foo/bar") == canonicalize_locator("foo/bar")

    def test_strips_inner_markers(self):
        assert canonicalize_locator("round/./chunk/./file") == "round/chunk/file"

    @pytest.mark.parametrize(
        "locator",
        [
            "foo/bar",
            "./chunks/3/challenge",
            "././chunks/3/response",
            ".../weird",
            "round_1/chunk_0/contribution_1.unverified",
        ],
    )
    def test_idempotent(self, locator):
        once = canonicalize_locator(locator)
        assert canonicalize_locator(once) == once
        assert "./" not in once

    def test_clean_locator_unchanged(self):
        locator = "round_1/chunk_0/contribution_1.verified"
        assert canonicalize_locator(locator) == locator

    @pytest.mark.parametrize("locator", ["..", "chunks/..", "chunks/3/.."])
    def test_rejects_parent_segments(self, locator):
        with pytest.raises(InvalidLocator) as excinfo:
            canonicalize_locator(locator)
        assert excinfo.value.locator == locator

    @pytest.mark.parametrize("locator", ["chunks/3/a?b#c", "a?x", "a#frag", "./chunks?/3"])
    def test_rejects_query_and_fragment_delimiters(self, locator):
        with pytest.raises(InvalidLocator) as excinfo:
            canonicalize_locator(locator)
        assert excinfo.value.locator == locator

    def test_parent_prefix_cannot_escape(self):
        canonical = canonicalize_locator("../../etc/passwd")
        assert ".." not in canonical.split("/")


def test_signature_path_prefixes_namespace():
    assert (
        signature_path("/coordinator/verifier/lock")
        == "/api/coordinator/verifier/lock"
    )


def test_build_request_sets_authorization():
    path = "/coordinator/locator/chunks/3/challenge"
    signature = sign(VIEW_KEY_HEX, "GET", signature_path(path))

    request = build_request(API_URL, "GET", path, signature)

    assert request.method == "GET"
    assert str(request.url) == f"{API_URL}{path}"
    assert request.headers["Authorization"] == str(signature)
    assert "Content-Type" not in request.headers


def test_build_request_binary_body():
    path = "/coordinator/verification/chunks/3/next_challenge"
    signature = sign(VIEW_KEY_HEX, "POST", signature_path(path))

    request = build_request(API_URL + "/", "POST", path, signature, b"\x00\x01next")

    assert str(request.url) == f"{API_URL}{path}"
    assert request.headers["Content-Type"] == "application/octet-stream"
    assert request.content == b"\x00\x01next"
