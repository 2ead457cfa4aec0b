"""
Envelope normalization applied before format detection and extraction.

Producers disagree on namespace prefixes (`<ns2:Amt>` vs `<Amt>`), XML
prologs and CDATA wrapping. Normalizing these away lets every downstream
matcher work on bare tag names. The substitutions only touch angle-bracket
markup, so plain text such as MT940 passes through unchanged.
"""
import logging
import re

logger = logging.getLogger(__name__)

_BOM = "\ufeff"
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_PROLOG_RE = re.compile(r"<\?xml[^>]*\?>\s*", re.IGNORECASE)
# One or more `prefix:` segments after `<` or `</`, each a valid XML name
_TAG_PREFIX_RE = re.compile(r"<(/?)(?:[A-Za-z_][\w.\-]*:)+(?=[A-Za-z_])")


def _single_pass(text: str) -> str:
    text = text.lstrip(_BOM)
    text = _CDATA_RE.sub(lambda match: match.group(1), text)
    text = _PROLOG_RE.sub("", text)
    return _TAG_PREFIX_RE.sub(r"<\1", text)


def normalize(raw: str) -> str:
    """
    Strip the XML prolog, collapse `prefix:Tag` to `Tag` and unwrap CDATA.

    Idempotent: normalize(normalize(x)) == normalize(x). Never raises; a
    non-string or empty input yields an empty string.
    """
    if not raw or not isinstance(raw, str):
        return ""

    # Every pass that changes the text shortens it, so this terminates at a fixed point
    text = raw
    previous = None
    while text != previous:
        previous = text
        text = _single_pass(text)
    return text
