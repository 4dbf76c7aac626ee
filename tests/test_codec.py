"""Tests for biscuit.codec — parse/create pipelines."""

import logging
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import quote, unquote

import pytest

from biscuit import cipher, signer
from biscuit.codec import (
    CookieCodec,
    Protection,
    WireCookie,
    create,
    decode_component,
    encode_component,
    expire,
    format_segment,
    parse,
    parse_segments,
)
from biscuit.config import CodecConfig
from biscuit.errors import ConfigurationError, InvalidCookie, MalformedWire, SerializationError
from biscuit.keys import KeyRing

SECRET = "bubblegum"
RING = KeyRing((SECRET.encode(),))


def _header(*records: object) -> str:
    """Turn created records back into request ``Cookie`` text."""
    return "; ".join(f"{r.name}={r.value}" for r in records)  # type: ignore[attr-defined]


class TestParseSegments:
    def test_empty(self) -> None:
        assert parse_segments("") == []

    def test_pairs_in_order(self) -> None:
        assert parse_segments("a=1; b=2") == [WireCookie("a", "1"), WireCookie("b", "2")]

    def test_whitespace_trimmed(self) -> None:
        assert parse_segments("  a = 1 ;  b = 2  ") == [WireCookie("a", "1"), WireCookie("b", "2")]

    def test_first_equals_splits(self) -> None:
        assert parse_segments("token=abc=def=") == [WireCookie("token", "abc=def=")]

    def test_pairs_without_equals_skipped(self) -> None:
        assert parse_segments("a=1; broken; b=2") == [WireCookie("a", "1"), WireCookie("b", "2")]

    def test_empty_name_skipped(self) -> None:
        assert parse_segments("=orphan; a=1") == [WireCookie("a", "1")]

    def test_quoted_value_unwrapped(self) -> None:
        assert parse_segments('a="quoted"') == [WireCookie("a", "quoted")]

    def test_lone_quote_kept(self) -> None:
        assert parse_segments('a="') == [WireCookie("a", '"')]


class TestComponents:
    def test_encode_matches_encode_uri_component(self) -> None:
        assert encode_component("a b/c;d,e") == "a%20b%2Fc%3Bd%2Ce"
        assert encode_component("A-Z_a.z~0!*'()") == "A-Z_a.z~0!*'()"

    def test_encode_utf8(self) -> None:
        assert encode_component("café") == "caf%C3%A9"

    def test_decode(self) -> None:
        assert decode_component("j%3A%5B1%2C2%5D") == "j:[1,2]"

    def test_decode_invalid_utf8_raises(self) -> None:
        with pytest.raises(MalformedWire):
            decode_component("%FF")

    def test_format_segment(self) -> None:
        assert format_segment("cart", "j:[1]") == "cart=j%3A%5B1%5D"

    def test_format_segment_rejects_bad_name(self) -> None:
        with pytest.raises(InvalidCookie):
            format_segment("bad name", "x")


class TestProtection:
    def test_plain_without_keys(self) -> None:
        assert Protection.resolve(None) is Protection.PLAIN

    def test_signed_with_keys(self) -> None:
        assert Protection.resolve(RING) is Protection.SIGNED

    def test_encrypted_with_keys(self) -> None:
        assert Protection.resolve(RING, True) is Protection.ENCRYPTED

    def test_encrypted_without_keys_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret or key ring"):
            Protection.resolve(None, True)


class TestParsePlain:
    def test_no_cookies(self) -> None:
        assert parse("") == {}

    def test_plain_cookie(self) -> None:
        assert parse("user=foo") == {"user": "foo"}

    def test_tagged_array(self) -> None:
        assert parse("cart=j:[1,2,3]") == {"cart": [1, 2, 3]}

    def test_percent_encoded_tagged_array(self) -> None:
        assert parse("cart=j%3A%5B1%2C2%2C3%5D") == {"cart": [1, 2, 3]}

    def test_json_body_with_dots_and_equals(self) -> None:
        assert parse('data=j:{"a":"x.y=z"}') == {"data": {"a": "x.y=z"}}

    def test_plain_value_with_dot_untouched(self) -> None:
        assert parse("v=foo.bar") == {"v": "foo.bar"}

    def test_empty_value(self) -> None:
        assert parse("flag=") == {"flag": ""}

    def test_duplicate_names_last_wins(self) -> None:
        assert parse("a=1; a=2") == {"a": "2"}

    def test_malformed_escape_dropped(self) -> None:
        assert parse("a=%FF; b=ok") == {"b": "ok"}

    def test_bad_json_dropped(self) -> None:
        assert parse("a=j%3A%7Boops; b=ok") == {"b": "ok"}

    def test_deeply_nested_json_dropped(self) -> None:
        assert parse("bad=j:" + "[" * 5000 + "; good=ok") == {"good": "ok"}

    def test_encrypted_cookie_returned_raw_without_decrypt(self) -> None:
        record = create("user", "foo", None, SECRET, True)
        cookies = parse(_header(record))
        assert cookies == {"user": unquote(record.value)}
        assert cipher.decrypt(cookies["user"], RING) == str(signer.sign("foo", RING))


class TestParseSigned:
    def test_signed_string(self) -> None:
        wire = str(signer.sign("foo", RING))
        assert parse(f"user={quote(wire)}", SECRET) == {"user": "foo"}

    def test_signed_array(self) -> None:
        wire = str(signer.sign("j:[1,2,3]", RING))
        assert parse(f"cart={quote(wire)}", SECRET) == {"cart": [1, 2, 3]}

    def test_unsigned_cookie_dropped(self) -> None:
        assert parse("user=foo", SECRET) == {}

    def test_tampered_cookie_dropped(self) -> None:
        wire = str(signer.sign("foo", RING)).replace("foo", "fop", 1)
        assert parse(f"user={wire}; other=x", SECRET) == {}

    def test_bad_cookie_does_not_affect_others(self) -> None:
        good = str(signer.sign("ok", RING))
        assert parse(f"bad=nope.sig; good={good}", SECRET) == {"good": "ok"}

    def test_encrypted_cookie_dropped_without_decrypt(self) -> None:
        record = create("user", "foo", None, SECRET, True)
        assert parse(_header(record), SECRET) == {}

    def test_key_ring_list(self) -> None:
        record = create("user", "foo", None, ["old"])
        assert parse(_header(record), ["new", "old"]) == {"user": "foo"}

    def test_empty_key_ring_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            parse("user=foo", [])


class TestParseEncrypted:
    def test_decrypt_and_unsign(self) -> None:
        blob = cipher.encrypt(str(signer.sign("foo", RING)), RING)
        assert parse(f"user={quote(blob)}", SECRET, True) == {"user": "foo"}

    def test_decrypt_and_unsign_array(self) -> None:
        blob = cipher.encrypt(str(signer.sign("j:[1,2,3]", RING)), RING)
        assert parse(f"cart={quote(blob)}", SECRET, True) == {"cart": [1, 2, 3]}

    def test_encrypted_unsigned_payload_dropped(self) -> None:
        blob = cipher.encrypt("foo", RING)
        assert parse(f"user={quote(blob)}", SECRET, True) == {}

    def test_signed_but_not_encrypted_dropped(self) -> None:
        record = create("user", "foo", None, SECRET)
        assert parse(_header(record), SECRET, True) == {}

    def test_wrong_key_dropped(self) -> None:
        record = create("user", "foo", None, SECRET, True)
        assert parse(_header(record), "other", True) == {}

    def test_decrypt_without_keys_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            parse("user=foo", None, True)


class TestCreate:
    def test_plain(self) -> None:
        assert create("name", "foo").to_header_value() == "name=foo"

    def test_plain_number(self) -> None:
        assert create("age", 22).to_header_value() == "age=j%3A22"

    def test_signed(self) -> None:
        wire = str(signer.sign("foo", RING))
        assert create("name", "foo", {}, SECRET).to_header_value() == f"name={quote(wire)}"

    def test_signed_and_encrypted_pipeline_order(self) -> None:
        record = create("name", "foo", {}, SECRET, True)
        blob = unquote(record.value)
        assert cipher.decrypt(blob, RING) == str(signer.sign("foo", RING))

    def test_value_is_percent_encoded(self) -> None:
        record = create("cart", [1, 2, 3])
        assert record.value == "j%3A%5B1%2C2%2C3%5D"

    def test_attributes_kept_on_record(self) -> None:
        record = create("name", "foo", {"path": "/", "httponly": True})
        assert record.attributes == {"Path": "/", "HttpOnly": True}
        assert record.to_header_value() == "name=foo; Path=/; HttpOnly"

    def test_encrypt_without_secret_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            create("name", "foo", {}, None, True)

    def test_invalid_name_raises(self) -> None:
        with pytest.raises(InvalidCookie, match="Invalid cookie name"):
            create("bad;name", "foo")

    def test_invalid_attribute_raises_eagerly(self) -> None:
        with pytest.raises(InvalidCookie):
            create("name", "foo", {"path": "/a;b"})

    def test_flag_attribute_name_injection_raises(self) -> None:
        with pytest.raises(InvalidCookie):
            create("a", "b", {"x; Domain=evil.com": True})

    def test_unencodable_value_raises(self) -> None:
        with pytest.raises(SerializationError):
            create("name", object())


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        ["foo", "", "a.b=c;d", 22, 1.5, [1, 2, 3], {"name": "foo", "age": 22}],
    )
    @pytest.mark.parametrize(
        ("secret", "encrypted"),
        [(None, False), (SECRET, False), (SECRET, True), (["k1", "k2"], True)],
    )
    def test_create_then_parse(self, value: object, secret: object, encrypted: bool) -> None:
        record = create("c", value, None, secret, encrypted)  # type: ignore[arg-type]
        assert parse(_header(record), secret, encrypted) == {"c": value}  # type: ignore[arg-type]

    def test_encrypted_object_scenario(self) -> None:
        record = create("user", {"name": "foo", "age": 22}, {}, SECRET, True)
        assert parse(_header(record), [SECRET], decrypt=True) == {
            "user": {"name": "foo", "age": 22}
        }

    def test_rotated_ring_reads_old_cookies(self) -> None:
        old = create("user", "foo", None, RING, True)
        ring = RING.rotated("fresh")
        new = create("cart", [1], None, ring, True)
        assert parse(_header(old, new), ring, True) == {"user": "foo", "cart": [1]}

    def test_mixed_modes_in_one_request(self) -> None:
        header = _header(create("theme", "dark"), create("user", "foo", None, SECRET))
        plain = parse(header)
        assert plain["theme"] == "dark"
        assert plain["user"].startswith("foo.")
        assert parse(header, SECRET) == {"user": "foo"}

    def test_concurrent_calls(self) -> None:
        def work(i: int) -> dict[str, object]:
            record = create("n", {"i": i}, None, SECRET, True)
            return parse(_header(record), SECRET, True)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(64)))
        assert results == [{"n": {"i": i}} for i in range(64)]


class TestExpire:
    def test_expire(self) -> None:
        assert expire("session").to_header_value() == (
            "session=; Max-Age=0; Expires=Thu, 01 Jan 1970 00:00:00 GMT"
        )

    def test_expire_keeps_scope_attributes(self) -> None:
        header = expire("session", {"path": "/app", "max_age": 60}).to_header_value()
        assert header == "session=; Path=/app; Max-Age=0; Expires=Thu, 01 Jan 1970 00:00:00 GMT"


class TestCookieCodecConfig:
    def test_unknown_digest_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown digest"):
            CookieCodec(CodecConfig(digest="not-a-digest"))

    def test_empty_encryption_info_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            CookieCodec(CodecConfig(encryption_info=b""))

    def test_default_attributes(self) -> None:
        codec = CookieCodec(CodecConfig(default_attributes=(("path", "/"), ("httponly", True))))
        assert codec.create("a", "b").to_header_value() == "a=b; Path=/; HttpOnly"

    def test_call_attributes_override_defaults(self) -> None:
        codec = CookieCodec(CodecConfig(default_attributes=(("path", "/"), ("httponly", True))))
        record = codec.create("a", "b", {"Path": "/x", "httponly": False})
        assert record.to_header_value() == "a=b; Path=/x"

    def test_digest_mismatch_drops(self) -> None:
        strong = CookieCodec(CodecConfig(digest="sha512"))
        record = strong.create("a", "b", None, SECRET)
        assert strong.parse(_header(record), SECRET) == {"a": "b"}
        assert parse(_header(record), SECRET) == {}

    def test_encryption_info_separates_codecs(self) -> None:
        other = CookieCodec(CodecConfig(encryption_info=b"other-app"))
        record = other.create("a", "b", None, SECRET, True)
        assert other.parse(_header(record), SECRET, True) == {"a": "b"}
        assert parse(_header(record), SECRET, True) == {}

    def test_config_property(self) -> None:
        config = CodecConfig(digest="sha384")
        assert CookieCodec(config).config is config


class TestLogging:
    def test_dropped_cookie_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="biscuit.codec")
        parse("user=foo", SECRET)
        assert "user" in caplog.text
        assert "SignatureInvalid" in caplog.text
        assert SECRET not in caplog.text

    def test_nothing_logged_for_good_cookies(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="biscuit.codec")
        parse("user=foo")
        assert caplog.records == []
