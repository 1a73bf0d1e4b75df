"""
Text sanitization for customer-submitted content.

Request fields come from an unauthenticated public form and end up in the
admin UI and in HTML notification emails. Uses the nh3 library for both
markup stripping and HTML escaping.
"""

from typing import Optional

import nh3


def strip_markup(content: Optional[str]) -> Optional[str]:
    """
    Remove any HTML from free text, keeping plain text untouched.

    Example:
        >>> strip_markup('My <script>alert(1)</script>printer is broken')
        'My printer is broken'

        >>> strip_markup('Printer & scanner')
        'Printer & scanner'
    """
    if content is None:
        return None

    content = content.strip()
    if not content or not nh3.is_html(content):
        return content

    return nh3.clean(content, tags=set(), attributes={}, strip_comments=True).strip()


def escape_for_html(content: Optional[str]) -> str:
    """
    Escape plain text for embedding in an HTML email body.

    Every character with meaning in HTML (including whitespace) is turned
    into an entity, so the result is safe in element and attribute context.
    """
    if not content:
        return ""
    return nh3.clean_text(content)
