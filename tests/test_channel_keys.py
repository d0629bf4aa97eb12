from __future__ import annotations

from core.channel_keys import (
    TOPIC_SUFFIX,
    build_channel_key,
    chat_id_from_key,
    expand_channel_key_variants,
    split_channel_key,
)


def test_build_and_split_channel_key() -> None:
    base = "@wg"
    assert build_channel_key(base, None) == base
    assert build_channel_key(base, 123) == f"{base}{TOPIC_SUFFIX}123"

    base_key, topic_id = split_channel_key(f"{base}{TOPIC_SUFFIX}123")
    assert base_key == base
    assert topic_id == 123

    base_key, topic_id = split_channel_key(base)
    assert base_key == base
    assert topic_id is None


def test_split_channel_key_with_bad_topic_id() -> None:
    assert split_channel_key("@wg#topic:abc") == ("@wg#topic:abc", None)


def test_chat_id_from_key() -> None:
    assert chat_id_from_key("chat_id:-100123") == -100123
    assert chat_id_from_key("chat_id:nope") is None
    assert chat_id_from_key("@wg") is None


def test_expand_username_key_is_unchanged() -> None:
    assert expand_channel_key_variants("@wg") == {"@wg"}


def test_expand_chat_id_variants_positive() -> None:
    variants = expand_channel_key_variants("chat_id:123")
    assert "chat_id:123" in variants
    assert "chat_id:-123" in variants
    assert "chat_id:-1000000000123" in variants


def test_expand_chat_id_variants_negative_100() -> None:
    variants = expand_channel_key_variants("chat_id:-100987654321")
    assert "chat_id:-100987654321" in variants
    assert "chat_id:987654321" in variants


def test_expand_chat_id_variants_with_topic_suffix() -> None:
    variants = expand_channel_key_variants("chat_id:42#topic:7")
    assert "chat_id:42#topic:7" in variants
    assert "chat_id:-42#topic:7" in variants
    assert "chat_id:-1000000000042#topic:7" in variants
