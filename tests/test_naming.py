"""Tests for lock file naming codecs."""

from __future__ import annotations

import logging

import pytest

from ci_locks.core.exceptions import LockNameError
from ci_locks.locks.naming import LegacyLockNameCodec, PercentLockNameCodec, create_name_codec

SAMPLE_IDS = [
    "app",
    "Infrastructure/app/db",
    "Environments/prod/web-01",
    "a/b/c/d/e",
    "/leading",
    "trailing/",
    "double//slash",
    "..",
    "../../etc/passwd",
    "with space",
    "percent%2Fliteral",
    "100%",
    "dollar$sign",
    "unicode/ÄÖÜ/日本",
    "name.lock",
    "back\\slash",
]


@pytest.mark.parametrize("resource_id", SAMPLE_IDS)
def test_percent_codec_round_trips(resource_id: str) -> None:
    codec = PercentLockNameCodec()
    assert codec.decode(codec.encode(resource_id)) == resource_id


@pytest.mark.parametrize("resource_id", SAMPLE_IDS)
def test_percent_codec_never_emits_path_separators(resource_id: str) -> None:
    file_name = PercentLockNameCodec().encode(resource_id)
    assert "/" not in file_name
    assert "\\" not in file_name
    assert file_name.endswith(".lock")
    assert file_name not in {".", ".."}


def test_percent_codec_is_collision_free_for_lookalike_ids() -> None:
    codec = PercentLockNameCodec()
    lookalikes = ["a/b", "a$b", "a%2Fb", "a%252Fb", "a_b"]
    encoded = {codec.encode(resource_id) for resource_id in lookalikes}
    assert len(encoded) == len(lookalikes)


def test_percent_codec_encodes_separator() -> None:
    assert PercentLockNameCodec().encode("Infrastructure/app/db") == "Infrastructure%2Fapp%2Fdb.lock"


def test_decode_strips_only_trailing_suffix() -> None:
    codec = PercentLockNameCodec()
    assert codec.decode("name.lock.lock") == "name.lock"
    assert LegacyLockNameCodec().decode("a.lock$b.lock") == "a.lock/b"


def test_decode_rejects_names_without_suffix() -> None:
    with pytest.raises(LockNameError):
        PercentLockNameCodec().decode("README")
    with pytest.raises(LockNameError):
        LegacyLockNameCodec().decode(".lock")


def test_percent_decode_rejects_invalid_utf8() -> None:
    with pytest.raises(LockNameError):
        PercentLockNameCodec().decode("%FF%FE.lock")


@pytest.mark.parametrize("codec", [PercentLockNameCodec(), LegacyLockNameCodec()])
def test_empty_id_is_rejected(codec) -> None:
    with pytest.raises(LockNameError):
        codec.encode("")


def test_legacy_codec_matches_historical_file_names() -> None:
    codec = LegacyLockNameCodec()
    assert codec.encode("Infrastructure/app/db") == "Infrastructure$app$db.lock"
    assert codec.decode("Infrastructure$app$db.lock") == "Infrastructure/app/db"


def test_legacy_codec_refuses_reserved_character() -> None:
    with pytest.raises(LockNameError, match="reserved character"):
        LegacyLockNameCodec().encode("Applications/cost$center")


def test_legacy_codec_refuses_nul() -> None:
    with pytest.raises(LockNameError):
        LegacyLockNameCodec().encode("bad\x00id")


def test_is_lock_file() -> None:
    codec = PercentLockNameCodec()
    assert codec.is_lock_file("a.lock")
    assert not codec.is_lock_file(".lock")
    assert not codec.is_lock_file("a.lock.tmp")
    assert not codec.is_lock_file("a.txt")


def test_lock_name_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        PercentLockNameCodec().encode("")


def test_create_name_codec_defaults_to_percent() -> None:
    assert isinstance(create_name_codec(), PercentLockNameCodec)


def test_create_name_codec_explicit_value() -> None:
    assert isinstance(create_name_codec("legacy"), LegacyLockNameCodec)
    assert isinstance(create_name_codec(" Percent "), PercentLockNameCodec)


def test_create_name_codec_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CI_LOCKS_NAMING", "legacy")
    assert isinstance(create_name_codec(), LegacyLockNameCodec)
    # Explicit value wins over the environment
    assert isinstance(create_name_codec("percent"), PercentLockNameCodec)


def test_create_name_codec_unknown_falls_back_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        codec = create_name_codec("base64")
    assert isinstance(codec, PercentLockNameCodec)
    assert "Unknown lock naming scheme 'base64'" in caplog.text


def test_percent_codec_keeps_non_ascii_verbatim() -> None:
    resource_id = "Applications/" + "日本語のアプリケーション名前です" * 2
    file_name = PercentLockNameCodec().encode(resource_id)

    assert file_name == "Applications%2F" + "日本語のアプリケーション名前です" * 2 + ".lock"
    assert len(file_name.encode("utf-8")) < 255


def test_percent_codec_escapes_only_unsafe_characters() -> None:
    codec = PercentLockNameCodec()
    assert codec.encode("a b$c") == "a b$c.lock"
    assert codec.encode("100%") == "100%25.lock"
    assert codec.encode("back\\slash") == "back%5Cslash.lock"
    assert codec.encode("nul\x00byte") == "nul%00byte.lock"


@pytest.mark.parametrize("file_name", ["a%2fb.lock", "x%ZZ.lock", "a%41.lock", "a%24b.lock"])
def test_percent_decode_rejects_non_canonical_names(file_name: str) -> None:
    with pytest.raises(LockNameError, match="canonical"):
        PercentLockNameCodec().decode(file_name)


def test_percent_codec_rejects_lone_surrogates() -> None:
    with pytest.raises(LockNameError, match="not encodable"):
        PercentLockNameCodec().encode("bad\udcffid")
