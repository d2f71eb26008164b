"""Tests for client IP extraction, fingerprinting and HMAC signing."""

from minnebo.security.identity import (
    FINGERPRINT_LENGTH,
    UNKNOWN_IP,
    RequestContext,
    extract_client_ip,
    fingerprint,
)
from minnebo.security.signing import constant_time_equals, sign, sign_fields

SECRET = "e3a91c7f5b2d08e6c4f1a9b73d5e0c28a6f4b1d97e3c5a08f2b6d4e1c9a7f305"


# ── Client IP ────────────────────────────────────────────────────────


class TestExtractClientIp:
    def test_first_public_forwarded_address(self, make_ctx):
        ctx = make_ctx(headers={"x-forwarded-for": "10.0.0.1, garbage, 192.168.1.9, 81.2.69.142, 8.8.8.8"})
        assert extract_client_ip(ctx) == "81.2.69.142"

    def test_skips_loopback_link_local_and_private(self, make_ctx):
        ctx = make_ctx(
            headers={"x-forwarded-for": "127.0.0.1, 169.254.1.1, 172.20.0.4, 172.32.0.4"}
        )
        assert extract_client_ip(ctx) == "172.32.0.4"

    def test_skips_out_of_range_octets(self, make_ctx):
        ctx = make_ctx(headers={"x-forwarded-for": "300.1.1.1, 1.2.3"}, client_host="198.51.100.7")
        assert extract_client_ip(ctx) == "198.51.100.7"

    def test_skips_ipv6_forwarded_entries(self, make_ctx):
        ctx = make_ctx(headers={"x-forwarded-for": "2001:db8::1"}, client_host="203.0.113.9")
        assert extract_client_ip(ctx) == "203.0.113.9"

    def test_falls_back_to_peer_address(self, make_ctx):
        ctx = make_ctx(headers={}, client_host="203.0.113.9")
        assert extract_client_ip(ctx) == "203.0.113.9"

    def test_unknown_without_any_source(self, make_ctx):
        ctx = make_ctx(headers={"x-forwarded-for": "10.1.1.1"}, client_host=None)
        assert extract_client_ip(ctx) == UNKNOWN_IP


# ── Fingerprint ──────────────────────────────────────────────────────


class TestFingerprint:
    def test_length_and_hex(self, make_ctx):
        fp = fingerprint(make_ctx())
        assert len(fp) == FINGERPRINT_LENGTH
        int(fp, 16)

    def test_deterministic(self, make_ctx):
        assert fingerprint(make_ctx()) == fingerprint(make_ctx())

    def test_header_name_case_ignored(self, make_ctx):
        lower = make_ctx(headers={"user-agent": "curl/8.0", "accept": "*/*"})
        upper = make_ctx(headers={"User-Agent": "curl/8.0", "Accept": "*/*"})
        assert fingerprint(lower) == fingerprint(upper)

    def test_path_and_method_change_fingerprint(self, make_ctx):
        base = fingerprint(make_ctx())
        assert fingerprint(make_ctx(path="/api/share")) != base
        assert fingerprint(make_ctx(method="GET")) != base

    def test_user_agent_changes_fingerprint(self, make_ctx):
        a = make_ctx(headers={"user-agent": "curl/8.0"})
        b = make_ctx(headers={"user-agent": "curl/8.1"})
        assert fingerprint(a) != fingerprint(b)

    def test_extra_header_names_change_fingerprint(self, make_ctx):
        a = make_ctx(headers={"user-agent": "curl/8.0"})
        b = make_ctx(headers={"user-agent": "curl/8.0", "x-requested-with": "fetch"})
        assert fingerprint(a) != fingerprint(b)

    def test_peer_address_not_part_of_fingerprint(self, make_ctx):
        a = make_ctx(client_host="198.51.100.7")
        b = make_ctx(client_host="203.0.113.9")
        assert fingerprint(a) == fingerprint(b)


def test_request_context_host_is_normalized():
    ctx = RequestContext(method="GET", path="/", headers={"Host": " LocalHost:3000 "})
    assert ctx.host == "localhost:3000"
    assert ctx.header("HOST") == " LocalHost:3000 "


# ── Signing ──────────────────────────────────────────────────────────


class TestSigning:
    def test_full_length_hex_tag(self):
        tag = sign(SECRET, "abc:12")
        assert len(tag) == 64
        assert tag == sign(SECRET, "abc:12")

    def test_secret_and_message_both_matter(self):
        assert sign(SECRET, "abc:12") != sign(SECRET, "abc:13")
        assert sign(SECRET, "abc:12") != sign(SECRET[::-1], "abc:12")

    def test_sign_fields_is_key_order_independent(self):
        a = sign_fields(SECRET, {"question": "q", "answer": "a", "timestamp": 1.5})
        b = sign_fields(SECRET, {"timestamp": 1.5, "answer": "a", "question": "q"})
        assert a == b

    def test_constant_time_equals(self):
        tag = sign(SECRET, "x")
        assert constant_time_equals(tag, tag)
        assert not constant_time_equals(tag, tag[:-1] + ("0" if tag[-1] != "0" else "1"))

    def test_constant_time_equals_length_mismatch(self):
        tag = sign(SECRET, "x")
        assert not constant_time_equals(tag[:16], tag)
        assert not constant_time_equals(tag, tag + "\0")
        assert not constant_time_equals("", tag)
