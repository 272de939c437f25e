"""Tests for docshape.decoding.mapper module."""

from datetime import UTC, datetime

import pytest

from docshape.core.errors import MissingFieldError, TypeMismatchError
from docshape.decoding.decoder import Decoder
from docshape.decoding.mapper import MAX_DEPTH, StructuralMapper, type_name
from docshape.examples.blocks import ImageBlock, Metadata, Post
from tests._support.shapes import (
    Collections,
    Color,
    Dimensions,
    Event,
    Node,
    Scalars,
    Sized,
    nested_nodes,
)


def mapper_and_ctx(*, weak: bool = False, namespace: str | None = None):
    decoder = Decoder(weak_typing=weak)
    return StructuralMapper(decoder.hooks), decoder.context(namespace=namespace)


class TestFieldLookup:
    def test_tags_per_namespace(self):
        """Fields are read under the tag of the active namespace."""
        mapper, ctx = mapper_and_ctx(namespace="yaml")
        image = mapper.map({"url": "a.png", "caption": "A", "alt": "ignored"}, ImageBlock, ctx)
        assert image.alt == "A"

    def test_missing_optional_keeps_default(self):
        """Absent optional fields keep their declared default."""
        mapper, ctx = mapper_and_ctx()
        image = mapper.map({"url": "a.png"}, ImageBlock, ctx)
        assert image == ImageBlock(url="a.png")

    def test_none_for_optional_field(self):
        """Null stores None in an Optional field."""
        mapper, ctx = mapper_and_ctx()
        image = mapper.map({"url": "a.png", "width": None}, ImageBlock, ctx)
        assert image.width is None

    def test_missing_required_field(self):
        """A missing required field names its tag, field, shape and path."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(MissingFieldError) as exc_info:
            mapper.map({"alt": "A"}, ImageBlock, ctx)
        error = exc_info.value
        assert error.tag == "url"
        assert error.context.field == "url"
        assert error.context.shape == "ImageBlock"
        assert error.context.path == "url"

    def test_null_for_required_field_is_missing(self):
        """Null counts as absent for required fields."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(MissingFieldError):
            mapper.map({"url": None}, ImageBlock, ctx)

    def test_unknown_keys_are_ignored(self):
        """Keys no field claims are dropped."""
        mapper, ctx = mapper_and_ctx()
        image = mapper.map({"url": "a.png", "colour": "red"}, ImageBlock, ctx)
        assert not hasattr(image, "colour")

    def test_non_mapping_document(self):
        """Shapes need a mapping document."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError):
            mapper.map(["url"], ImageBlock, ctx)


class TestEmbedding:
    def test_embedded_fields_read_from_parent_document(self):
        """Embedded fields read keys from the enclosing document."""
        mapper, ctx = mapper_and_ctx()
        post = mapper.map({"title": "T", "author": "ada", "tags": ["x"]}, Post, ctx)
        assert post.meta == Metadata(author="ada", tags=["x"])

    @pytest.mark.parametrize("namespace", ["json", "yaml"])
    def test_standalone_and_embedded_agree(self, namespace):
        """An embedded shape populates exactly like the same shape at top level."""
        mapper, ctx = mapper_and_ctx(namespace=namespace)
        author_key = "by" if namespace == "yaml" else "author"
        source = {author_key: "ada", "published_at": 1705314600, "tags": ["a", "b"]}

        standalone = mapper.map(source, Metadata, ctx)
        embedded = mapper.map({"title": "T", **source}, Post, ctx).meta
        assert standalone == embedded
        assert standalone.published_at == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_embedded_error_names_embedded_shape(self):
        """Failures in embedded fields name the embedded shape."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError) as exc_info:
            mapper.map({"title": "T", "tags": "not-a-list"}, Post, ctx)
        error = exc_info.value
        assert error.context.shape == "Metadata"
        assert error.context.field == "tags"
        assert error.context.path == "tags"


class TestWeakTyping:
    @pytest.mark.parametrize(
        "field, text, native",
        [
            ("count", "42", 42),
            ("count", " -7 ", -7),
            ("count", "3.0", 3),
            ("ratio", "0.25", 0.25),
            ("ratio", "1e3", 1000.0),
            ("enabled", "true", True),
            ("enabled", "FALSE", False),
            ("enabled", "True", True),
            ("label", 42, "42"),
            ("label", 2.5, "2.5"),
        ],
    )
    def test_text_coerces_like_native(self, field, text, native):
        """Weakly typed text decodes like the native value."""
        mapper, ctx = mapper_and_ctx(weak=True)
        coerced = mapper.map({field: text}, Scalars, ctx)
        typed = mapper.map({field: native}, Scalars, ctx)
        assert getattr(coerced, field) == getattr(typed, field) == native

    @pytest.mark.parametrize(
        "field, text",
        [("count", "forty-two"), ("count", "3.5"), ("ratio", "abc"), ("enabled", "yes"), ("enabled", "1")],
    )
    def test_uncoercible_text_is_mismatch(self, field, text):
        """Text that does not parse as the target still fails."""
        mapper, ctx = mapper_and_ctx(weak=True)
        with pytest.raises(TypeMismatchError) as exc_info:
            mapper.map({field: text}, Scalars, ctx)
        assert exc_info.value.context.field == field

    @pytest.mark.parametrize("field, text", [("count", "42"), ("enabled", "true"), ("label", 42)])
    def test_strict_mode_rejects_text(self, field, text):
        """Without weak typing text never becomes a number or bool."""
        mapper, ctx = mapper_and_ctx(weak=False)
        with pytest.raises(TypeMismatchError):
            mapper.map({field: text}, Scalars, ctx)


class TestNumericRules:
    def test_int_accepted_for_float(self):
        """Integers widen to float."""
        mapper, ctx = mapper_and_ctx()
        assert mapper.map({"ratio": 2}, Scalars, ctx).ratio == 2.0

    def test_integral_float_accepted_for_int(self):
        """Integral floats narrow to int."""
        mapper, ctx = mapper_and_ctx()
        assert mapper.map({"count": 2.0}, Scalars, ctx).count == 2

    def test_fractional_float_rejected_for_int(self):
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError, match="expected integer, got float"):
            mapper.map({"count": 2.5}, Scalars, ctx)

    @pytest.mark.parametrize("weak", [False, True])
    def test_bool_never_numeric(self, weak):
        """Booleans never satisfy numeric fields."""
        mapper, ctx = mapper_and_ctx(weak=weak)
        with pytest.raises(TypeMismatchError):
            mapper.map({"count": True}, Scalars, ctx)


class TestContainers:
    def test_collections(self):
        """Lists, tuples, sets, dicts, enums, literals and unions convert per element."""
        mapper, ctx = mapper_and_ctx()
        document = {
            "names": ["a", "b"],
            "pair": [1, "x"],
            "ids": [1, 2, 2],
            "scores": {"a": 1, "b": 0.5},
            "color": "green",
            "mode": "slow",
            "either": "text",
            "maybe": None,
            "anything": {"free": ["form"]},
        }
        result = mapper.map(document, Collections, ctx)
        assert result.names == ["a", "b"]
        assert result.pair == (1, "x")
        assert result.ids == {1, 2}
        assert result.scores == {"a": 1.0, "b": 0.5}
        assert result.color is Color.GREEN
        assert result.mode == "slow"
        assert result.either == "text"
        assert result.maybe is None
        assert result.anything == {"free": ["form"]}

    def test_enum_by_member_name(self):
        """Enums also accept member names."""
        mapper, ctx = mapper_and_ctx()
        assert mapper.map({"color": "RED"}, Collections, ctx).color is Color.RED

    def test_enum_mismatch(self):
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError, match="not a member of Color"):
            mapper.map({"color": "blue"}, Collections, ctx)

    def test_literal_mismatch(self):
        """Values outside a Literal are rejected."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError):
            mapper.map({"mode": "medium"}, Collections, ctx)

    def test_sequence_element_path(self):
        """Sequence element failures report their index."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError) as exc_info:
            mapper.map({"names": ["a", 3]}, Collections, ctx)
        assert exc_info.value.context.path == "names[1]"

    def test_mapping_value_path(self):
        """Mapping value failures report their key."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError) as exc_info:
            mapper.map({"scores": {"a": "high"}}, Collections, ctx)
        assert exc_info.value.context.path == "scores.a"

    def test_tuple_length(self):
        """Fixed tuples need exactly as many items as declared."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError, match="expected 2 items"):
            mapper.map({"pair": [1]}, Collections, ctx)

    def test_string_is_not_a_sequence(self):
        """Text is never split into a list."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError):
            mapper.map({"names": "ab"}, Collections, ctx)

    def test_union_without_match(self):
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError):
            mapper.map({"either": [1]}, Collections, ctx)

    def test_union_keeps_member_failure_as_cause(self):
        """A member that fails inside the value is chained, not dropped."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError) as exc_info:
            mapper.map({"size": {"width": 3}}, Sized, ctx)
        error = exc_info.value
        assert error.context.path == "size"
        assert isinstance(error.__cause__, MissingFieldError)
        assert error.__cause__.tag == "height"
        assert error.__cause__.context.path == "size.height"
        assert "Missing required field 'height'" in error.to_dict()["cause"]

    def test_union_member_match(self):
        """The first member that converts wins."""
        mapper, ctx = mapper_and_ctx()
        assert mapper.map({"size": {"width": 3, "height": 4}}, Sized, ctx).size == Dimensions(3, 4)
        assert mapper.map({"size": 5}, Sized, ctx).size == 5


class TestTimestamps:
    @pytest.mark.parametrize("value", ["2024-01-15T10:30:00Z", 1705314600, 1705314600000.0])
    def test_time_hook_inside_mapping(self, value):
        """The timestamp hook applies to datetime fields during mapping."""
        mapper, ctx = mapper_and_ctx()
        event = mapper.map({"name": "launch", "at": value}, Event, ctx)
        assert event.at == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_without_hooks_text_is_mismatch(self):
        """Without hooks timestamp text is just a mismatch."""
        decoder = Decoder(hooks=())
        mapper = StructuralMapper(decoder.hooks)
        with pytest.raises(TypeMismatchError):
            mapper.map({"name": "launch", "at": "2024-01-15T10:30:00Z"}, Event, decoder.context())


class TestDepthLimit:
    def test_nesting_within_limit(self):
        mapper, ctx = mapper_and_ctx()
        node = mapper.map(nested_nodes(10), Node, ctx)
        depth = 0
        while node.children:
            node = node.children[0]
            depth += 1
        assert depth == 10
        assert node.name == "leaf"

    def test_nesting_past_limit_is_mismatch(self):
        """Values more than MAX_DEPTH path segments down are rejected."""
        mapper, ctx = mapper_and_ctx()
        with pytest.raises(TypeMismatchError, match=f"deeper than {MAX_DEPTH} levels") as exc_info:
            mapper.map(nested_nodes(MAX_DEPTH), Node, ctx)
        error = exc_info.value
        assert error.expected == f"depth <= {MAX_DEPTH}"
        assert error.context.path.count("children") > MAX_DEPTH // 2

    def test_any_values_are_not_walked(self):
        mapper, ctx = mapper_and_ctx()
        deep: list = []
        for _ in range(MAX_DEPTH * 2):
            deep = [deep]
        assert mapper.map({"anything": deep}, Collections, ctx).anything is deep


class TestTypeName:
    def test_names(self):
        assert type_name(int) == "integer"
        assert type_name(Color) == "Color"
        assert type_name(list[int]) == "list[int]"
