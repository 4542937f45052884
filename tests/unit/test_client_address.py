"""Tests for client address resolution and rate-limit key derivation."""

from app.shared.client_address import (
    UNKNOWN_ADDRESS,
    derive_rate_limit_key,
    extract_identity,
    get_client_address,
)


def test_forwarded_for_first_hop_wins() -> None:
    headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1", "x-real-ip": "10.0.0.9"}
    assert get_client_address(headers) == "203.0.113.7"


def test_header_precedence_and_fallback() -> None:
    assert get_client_address({"cf-connecting-ip": "198.51.100.2", "x-real-ip": "10.0.0.9"}) == "198.51.100.2"
    assert get_client_address({"x-real-ip": "10.0.0.9"}) == "10.0.0.9"
    assert get_client_address({"x-forwarded-for": " , "}) == UNKNOWN_ADDRESS
    assert get_client_address({}) == UNKNOWN_ADDRESS


def test_extract_identity_normalizes_and_skips_blank() -> None:
    fields = ("email", "username", "phone")
    assert extract_identity({"email": " A@Example.com "}, fields) == "a@example.com"
    assert extract_identity({"email": "", "username": "Bob"}, fields) == "bob"
    assert extract_identity({"phone": 5551234}, fields) == "5551234"
    assert extract_identity({"email": True}, fields) is None
    assert extract_identity(["a@x.com"], fields) is None


def test_derive_rate_limit_key() -> None:
    assert derive_rate_limit_key("a@x.com", "1.2.3.4") == "a@x.com:1.2.3.4"
    assert derive_rate_limit_key(None, "1.2.3.4") == "1.2.3.4"


def test_write_limiter_key_prefers_proxy_address() -> None:
    from starlette.requests import Request

    from app.core.limiter import client_address_key

    def request(headers: list[tuple[bytes, bytes]]) -> Request:
        return Request({"type": "http", "headers": headers, "client": ("10.1.1.1", 5000)})

    assert client_address_key(request([(b"x-forwarded-for", b"203.0.113.9")])) == "203.0.113.9"
    assert client_address_key(request([])) == "10.1.1.1"
