import pytest

from src.domain.workflow.exceptions import InvalidIdentifierError, ValidationError
from src.domain.workflow.value_objects.identifier import Identifier, ReadableIdentifier


class TestIdentifier:
    def test_generate_produces_uuid4(self):
        identifier = Identifier.generate()

        assert Identifier.parse(str(identifier)) == identifier
        assert str(identifier)[14] == "4"

    def test_generate_is_unique(self):
        assert len({Identifier.generate() for _ in range(100)}) == 100

    def test_parse_round_trip(self):
        for _ in range(20):
            identifier = Identifier.generate()
            assert Identifier.parse(str(identifier)).equals(identifier)

    def test_parse_lowercases(self):
        raw = "3F2504E0-4F89-41D3-9A0C-0305E82C3301"

        identifier = Identifier.parse(raw)

        assert str(identifier) == raw.lower()
        assert identifier == Identifier.parse(raw.lower())

    @pytest.mark.parametrize(
        "raw",
        [
            "not-a-uuid",
            "",
            "3f2504e0-4f89-11d3-9a0c-0305e82c3301",  # version 1
            "3f2504e0-4f89-41d3-7a0c-0305e82c3301",  # bad variant nibble
            "3f2504e04f8941d39a0c0305e82c3301",
            " 3f2504e0-4f89-41d3-9a0c-0305e82c3301",
            "3f2504e0-4f89-41d3-9a0c-0305e82c3301\n",
        ],
    )
    def test_parse_rejects_malformed(self, raw):
        with pytest.raises(InvalidIdentifierError):
            Identifier.parse(raw)

    def test_invalid_identifier_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            Identifier.parse("not-a-uuid")

        assert exc_info.value.error_code == "INVALID_IDENTIFIER"
        assert exc_info.value.context["raw"] == "not-a-uuid"

    def test_is_immutable(self):
        identifier = Identifier.generate()

        with pytest.raises(AttributeError):
            identifier.value = "other"


class TestReadableIdentifier:
    def test_accepts_slugs_and_strips(self):
        identifier = ReadableIdentifier.parse("  http-request-1 ")

        assert str(identifier) == "http-request-1"
        assert identifier.equals(ReadableIdentifier.parse("http-request-1"))

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_rejects_blank(self, raw):
        with pytest.raises(InvalidIdentifierError):
            ReadableIdentifier.parse(raw)

    def test_not_equal_to_identifier_with_same_text(self):
        identifier = Identifier.generate()

        assert ReadableIdentifier.parse(str(identifier)) != identifier
