"""Tests for configuration content addressing."""

from __future__ import annotations

from pydantic import BaseModel

from quire.data.hashing import hash_config, hash_text, serialize_config


class StudyMetadata(BaseModel):
    """Config model used to check pydantic serialization."""

    title: str
    version: int


class TestSerializeConfig:
    """Tests for serialize_config."""

    def test_compact_json(self) -> None:
        """Test output has no whitespace between tokens."""
        assert serialize_config({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_preserves_key_order(self) -> None:
        """Test keys keep insertion order."""
        assert serialize_config({"b": 1, "a": 2}) == '{"b":1,"a":2}'

    def test_keeps_non_ascii(self) -> None:
        """Test non-ASCII text is not escaped."""
        assert serialize_config({"title": "Étude"}) == '{"title":"Étude"}'

    def test_pydantic_model(self) -> None:
        """Test pydantic models are dumped before serialization."""
        config = StudyMetadata(title="Pilot", version=2)
        assert serialize_config(config) == '{"title":"Pilot","version":2}'


class TestHashConfig:
    """Tests for hash_config and hash_text."""

    def test_known_digest(self) -> None:
        """Test hash_text is SHA-256 of the UTF-8 text."""
        assert hash_text("{}") == (
            "44136fa355b3678a1146ad16f7e8649e94fb4fc21fe77e8310c060f61caaff8a"
        )

    def test_deterministic(self) -> None:
        """Test identical content gives identical hashes."""
        first = hash_config({"version": 1, "components": {"intro": {}}})
        second = hash_config({"version": 1, "components": {"intro": {}}})
        assert first == second
        assert first.hash == second.hash

    def test_equal_content_from_separate_objects(self) -> None:
        """Test hashing depends on content, not object identity."""
        config = {"version": 1}
        assert hash_config(config).hash == hash_config(dict(config)).hash

    def test_sensitive_to_values(self) -> None:
        """Test changing a value changes the hash."""
        assert hash_config({"version": 1}).hash != hash_config({"version": 2}).hash

    def test_sensitive_to_nested_values(self) -> None:
        """Test changes deep in the document change the hash."""
        first = hash_config({"sequence": {"components": ["a", "b"]}})
        second = hash_config({"sequence": {"components": ["b", "a"]}})
        assert first.hash != second.hash

    def test_hex_digest_format(self) -> None:
        """Test the hash is a 64 character lower-case hex string."""
        digest = hash_config({"version": 1}).hash
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_blob_prefix(self) -> None:
        """Test the config blob prefix is derived from the hash."""
        version = hash_config({"version": 1})
        assert version.blob_prefix == f"configs/{version.hash}"
