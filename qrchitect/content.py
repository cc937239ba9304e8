"""Turn user-entered content into the payload string embedded in the QR code."""

import logging
from enum import Enum

from qrchitect.errors import EmptyContentError

logger = logging.getLogger(__name__)


class ContentCategory(Enum):
    """Kind of content the user is encoding."""

    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    TEXT = "text"

    @property
    def title(self) -> str:
        """Capitalized name used in export filenames (e.g. "Url", "Phone")."""
        return self.value.capitalize()


# Scheme prefixes added to bare input. A payload that already starts with
# one of the accepted prefixes is passed through untouched.
_SCHEME_PREFIXES = {
    ContentCategory.URL: ("https://", ("http://", "https://")),
    ContentCategory.EMAIL: ("mailto:", ("mailto:",)),
    ContentCategory.PHONE: ("tel:", ("tel:",)),
}

# Sample values offered when the current content looks like it belongs
# to another category.
SAMPLE_CONTENT = {
    ContentCategory.URL: "https://example.com",
    ContentCategory.EMAIL: "example@email.com",
    ContentCategory.PHONE: "+1234567890",
    ContentCategory.TEXT: "Hello World!",
}

_CATEGORY_MARKERS = {
    ContentCategory.URL: "://",
    ContentCategory.EMAIL: "@",
    ContentCategory.PHONE: "+",
}

# Field label, placeholder and description shown next to the content input.
CATEGORY_HINTS = {
    ContentCategory.URL: ("URL", "https://example.com", "Enter the URL for your QR code"),
    ContentCategory.EMAIL: ("Email Address", "example@email.com", "Enter an email address"),
    ContentCategory.PHONE: ("Phone Number", "+1234567890", "Enter a phone number with country code"),
    ContentCategory.TEXT: ("Text", "Enter any text here", "Enter plain text for your QR code"),
}


def format_content(category: ContentCategory, raw_content: str) -> str:
    """Build the canonical payload for a piece of content.

    URLs get an ``https://`` scheme unless they already carry ``http://`` or
    ``https://``; e-mail addresses get ``mailto:`` and phone numbers get
    ``tel:``. Text is returned as-is. Nothing beyond the scheme prefix is
    checked, so malformed addresses are accepted verbatim.

    Args:
        category: The content category.
        raw_content: Content as typed by the user.

    Returns:
        The payload string to encode.

    Raises:
        EmptyContentError: If raw_content is empty.
    """
    if not raw_content:
        raise EmptyContentError()

    category = ContentCategory(category)
    if category not in _SCHEME_PREFIXES:
        return raw_content

    prefix, accepted = _SCHEME_PREFIXES[category]
    if raw_content.startswith(accepted):
        return raw_content
    return f"{prefix}{raw_content}"


def suggest_default(category: ContentCategory, current_content: str) -> str:
    """Suggest replacement content after the user switches category.

    Best-effort only: content lacking the new category's marker (``://``,
    ``@`` or ``+``), or text content carrying any of those markers, is
    swapped for a sample value. Plain text containing a ``+`` will be
    replaced too.
    """
    category = ContentCategory(category)

    if not current_content:
        return SAMPLE_CONTENT[category]

    if category is ContentCategory.TEXT:
        looks_foreign = any(marker in current_content for marker in _CATEGORY_MARKERS.values())
    else:
        looks_foreign = _CATEGORY_MARKERS[category] not in current_content

    if looks_foreign:
        logger.debug("Replacing %r with %s sample content", current_content, category.value)
        return SAMPLE_CONTENT[category]
    return current_content
