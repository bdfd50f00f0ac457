"""
Unit tests for URL validation and normalisation.

Tests cover:
  - Scheme handling
  - Hostname lowering and www stripping
  - Default port removal
  - Fragment removal, query preservation
  - Trailing slash handling
  - Rejection rules
  - Idempotence
"""

import pytest

from credvault.core.exceptions import UrlValidationError
from credvault.utils.url_normalizer import is_valid_url, normalize_url, validate_url


class TestNormalizeUrl:
    """Tests for the normalize_url function."""

    def test_adds_https_scheme_when_missing(self):
        """Should add https:// if no scheme is provided."""
        assert normalize_url("google.com") == "https://google.com/"

    def test_lowercase_scheme_and_host(self):
        """Should lowercase the scheme and hostname but not the path."""
        assert normalize_url("HTTP://GOOGLE.COM/Path") == "http://google.com/Path"

    def test_strips_www_label(self):
        assert normalize_url("https://www.google.com/a") == "https://google.com/a"

    def test_keeps_www_when_it_is_the_registrable_name(self):
        assert normalize_url("www.com") == "https://www.com/"

    def test_removes_default_http_port(self):
        """Should strip port 80 for http."""
        assert normalize_url("http://google.com:80/path") == "http://google.com/path"

    def test_removes_default_https_port(self):
        """Should strip port 443 for https."""
        assert normalize_url("https://google.com:443/path") == "https://google.com/path"

    def test_preserves_non_default_port(self):
        """Should keep non-default ports."""
        assert normalize_url("http://google.com:8080/path") == "http://google.com:8080/path"

    def test_removes_fragment(self):
        """Should strip the URL fragment (hash)."""
        assert normalize_url("https://google.com/page#section") == "https://google.com/page"

    def test_preserves_query_verbatim(self):
        """Query parameters keep their original order."""
        result = normalize_url("https://google.com/search?z=1&a=2&m=3")
        assert result == "https://google.com/search?z=1&a=2&m=3"

    def test_removes_all_trailing_slashes_on_path(self):
        assert normalize_url("https://google.com/path///") == "https://google.com/path"

    def test_keeps_root_slash(self):
        """Should keep the root path as /."""
        assert normalize_url("https://google.com") == "https://google.com/"
        assert normalize_url("https://google.com///") == "https://google.com/"

    def test_drops_userinfo(self):
        assert normalize_url("https://bob:pw@example.com/x") == "https://example.com/x"

    def test_canonical_example(self):
        assert normalize_url("https://WWW.Example.com:443/a/") == "https://example.com/a"

    @pytest.mark.parametrize(
        "url",
        [
            "example.com",
            "https://WWW.Example.com:443/a/",
            "http://www.www.shop.example.org:8080/cart/?id=7#top",
            "HTTPS://Login.Example.co.uk//",
            "example.com?q=1",
        ],
    )
    def test_is_idempotent(self, url):
        once = normalize_url(url)
        assert normalize_url(once) == once


class TestValidateUrl:
    """Tests for validate_url / is_valid_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "example.com",
            "https://sub.example.co.uk/login?x=1",
            "http://example.com:8080",
            "  www.example.org/path  ",
        ],
    )
    def test_accepts_registrable_hosts(self, url):
        assert is_valid_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "localhost",
            "http://localhost:3000/admin",
            "http://192.168.0.1/login",
            "10.0.0.1",
            "exa..mple.com",
            "javascript:alert(1)",
            "https://example.com/?next=javascript:alert(1)",
            "ftp://example.com",
            "android://com.example.app",
            "example",
            "example.c",
            "http://example.com:99999",
            "exa mple.com",
            "a" * 252 + ".com",
            "\ufeffexample.com",
            "exam\u200bple.com",
            "example\x7f.com",
        ],
    )
    def test_rejects_unusable_urls(self, url):
        assert is_valid_url(url) is False

    def test_error_names_offending_url(self):
        with pytest.raises(UrlValidationError) as exc_info:
            validate_url("http://192.168.0.1/login")

        assert exc_info.value.url == "http://192.168.0.1/login"
        assert "IP" in exc_info.value.reason
