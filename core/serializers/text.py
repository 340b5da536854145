import html

import bleach


def clean_text(value):
    """Strip markup from free text; entities bleach escapes are turned back into characters."""
    if not value:
        return value
    return html.unescape(bleach.clean(value, strip=True))
