"""
Tests for asset path helpers.
"""

import pytest

from assetdir.transport.paths import (
    canonicalize_path,
    content_url,
    metadata_url,
    quote_path,
    require_path,
)


class TestCanonicalizePath:
    """Tests for canonicalize_path."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("releases/app.zip", "releases/app.zip"),
            ("/releases/app.zip/", "releases/app.zip"),
            ("releases\\1.0\\app.zip", "releases/1.0/app.zip"),
            ("\\\\share\\file", "share/file"),
            ("", ""),
            (None, ""),
            ("///", ""),
        ],
    )
    def test_canonicalize(self, path, expected):
        assert canonicalize_path(path) == expected

    def test_require_path_rejects_empty(self):
        with pytest.raises(ValueError):
            require_path("/")
        with pytest.raises(ValueError):
            require_path(None)

    def test_require_path(self):
        assert require_path("\\a\\b") == "a/b"


class TestUrls:
    """Tests for relative request URLs."""

    def test_quote_keeps_separators(self):
        assert quote_path("a b/c#d.txt") == "a%20b/c%23d.txt"

    def test_content_url(self):
        assert content_url("releases/app 1.zip") == "content/releases/app%201.zip"

    def test_metadata_url(self):
        assert metadata_url("releases/app.zip") == "metadata/releases/app.zip"
