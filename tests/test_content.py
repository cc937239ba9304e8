import pytest

from qrchitect.content import (
    CATEGORY_HINTS,
    SAMPLE_CONTENT,
    ContentCategory,
    format_content,
    suggest_default,
)
from qrchitect.errors import EmptyContentError, ErrorKind


@pytest.mark.parametrize(
    "category, raw, expected",
    [
        (ContentCategory.URL, "example.com", "https://example.com"),
        (ContentCategory.URL, "https://a.b", "https://a.b"),
        (ContentCategory.URL, "http://a.b", "http://a.b"),
        (ContentCategory.URL, "ftp://a.b", "https://ftp://a.b"),
        (ContentCategory.EMAIL, "a@b.com", "mailto:a@b.com"),
        (ContentCategory.EMAIL, "mailto:a@b.com", "mailto:a@b.com"),
        (ContentCategory.PHONE, "+1234567890", "tel:+1234567890"),
        (ContentCategory.PHONE, "tel:555", "tel:555"),
        (ContentCategory.TEXT, "hi", "hi"),
        (ContentCategory.TEXT, "https://not-a-link", "https://not-a-link"),
    ],
)
def test_format_content(category, raw, expected):
    assert format_content(category, raw) == expected


def test_format_content_accepts_plain_strings():
    assert format_content("email", "x@y.z") == "mailto:x@y.z"


def test_malformed_input_is_accepted_verbatim():
    assert format_content(ContentCategory.EMAIL, "not an email") == "mailto:not an email"
    assert format_content(ContentCategory.PHONE, "call me") == "tel:call me"


@pytest.mark.parametrize("category", [ContentCategory.URL, ContentCategory.EMAIL, ContentCategory.PHONE])
@pytest.mark.parametrize("raw", ["example.com", "https://x.y", "a@b", "+49 30 1234", "tel:1", "mailto:q"])
def test_format_content_is_idempotent(category, raw):
    once = format_content(category, raw)
    assert format_content(category, once) == once


@pytest.mark.parametrize("category", list(ContentCategory))
def test_empty_content_is_rejected(category):
    with pytest.raises(EmptyContentError) as exc_info:
        format_content(category, "")
    assert exc_info.value.kind is ErrorKind.EMPTY_CONTENT
    assert exc_info.value.field == "content"


def test_whitespace_is_not_empty():
    assert format_content(ContentCategory.TEXT, "  ") == "  "


class TestSuggestDefault:
    def test_keeps_matching_content(self):
        assert suggest_default(ContentCategory.URL, "https://mysite.org") == "https://mysite.org"
        assert suggest_default(ContentCategory.EMAIL, "me@mysite.org") == "me@mysite.org"
        assert suggest_default(ContentCategory.PHONE, "+44 20 7946 0000") == "+44 20 7946 0000"
        assert suggest_default(ContentCategory.TEXT, "Hello there") == "Hello there"

    def test_replaces_leftover_content(self):
        assert suggest_default(ContentCategory.EMAIL, "https://example.com") == SAMPLE_CONTENT[ContentCategory.EMAIL]
        assert suggest_default(ContentCategory.PHONE, "example@email.com") == "+1234567890"
        assert suggest_default(ContentCategory.URL, "+1234567890") == "https://example.com"
        assert suggest_default(ContentCategory.TEXT, "example@email.com") == "Hello World!"

    def test_empty_content_gets_sample(self):
        for category in ContentCategory:
            assert suggest_default(category, "") == SAMPLE_CONTENT[category]

    def test_plus_sign_in_text_is_a_false_positive(self):
        # Heuristic only: "1 + 1" looks like a phone number to it.
        assert suggest_default(ContentCategory.TEXT, "1 + 1") == "Hello World!"


def test_every_category_has_hints_and_title():
    for category in ContentCategory:
        label, placeholder, description = CATEGORY_HINTS[category]
        assert label and placeholder and description
    assert ContentCategory.PHONE.title == "Phone"
    assert ContentCategory.URL.title == "Url"
