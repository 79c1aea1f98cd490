"""Fixtures for backend binding tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from quire.backends import SupabaseClient

type ResponseFactory = Callable[..., Mock]


@pytest.fixture
def make_response() -> ResponseFactory:
    """Factory for fake ``requests.Response`` objects.

    Returns
    -------
    ResponseFactory
        Builds a response from a status code and an optional JSON payload.
    """

    def build(status_code: int = 200, payload: Any = None, content: bytes = b"") -> Mock:
        response = Mock()
        response.status_code = status_code
        response.ok = status_code < 400
        if payload is not None:
            response.json.return_value = payload
            response.text = json.dumps(payload)
            response.content = content or json.dumps(payload).encode()
        else:
            response.json.side_effect = ValueError("no JSON body")
            response.text = content.decode()
            response.content = content
        return response

    return build


@pytest.fixture
def client() -> SupabaseClient:
    """Supabase client with its HTTP session replaced by a mock."""
    client = SupabaseClient("https://xyz.supabase.co/", "anon-key", timeout=5.0)
    client.session.request = Mock()
    return client
