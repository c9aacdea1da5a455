"""HTTP transport for the asset directory API."""

from assetdir.transport.http import API_KEY_HEADER, HttpTransport
from assetdir.transport.paths import canonicalize_path, quote_path, require_path
from assetdir.transport.pipe import RequestBodyPipe

__all__ = [
    "API_KEY_HEADER",
    "HttpTransport",
    "RequestBodyPipe",
    "canonicalize_path",
    "quote_path",
    "require_path",
]
