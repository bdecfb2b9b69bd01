"""Inline-style and class inspection shared by both normalizers.

Both the BeautifulSoup normalizer and the string normalizer decide emphasis
from the raw ``style`` / ``class`` attribute text, so the decision lives here
as pure functions over strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from clipmd import settings

# ---------------------------------------------------------------------------
# Tag vocabularies
# ---------------------------------------------------------------------------

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
LIST_TAGS = frozenset({"ul", "ol"})

BLOCK_TAGS = frozenset(
    {
        "p", "div", "section", "article",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "ul", "ol", "li", "dl",
        "table", "tr", "td", "th",
        "blockquote", "pre", "hr", "figure",
    }
)

WRAPPER_TAGS = ("span", "font")

TABLE_STRUCTURE_TAGS = frozenset({"table", "thead", "tbody", "tfoot", "tr"})

# Attributes that survive stripping, per tag.
KEEP_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "a": ("href",),
    "img": ("src", "alt"),
}

NOISE_TAGS = ("script", "style", "title", "head", "meta", "link", "colgroup", "col")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Bold or heading marker inside a spanning cell (section-header detection)
SECTION_MARKER_RE = re.compile(
    r"<(?:strong|b|h[1-6])\b|font-weight\s*:\s*(?:bold|[5-9]00)",
    re.IGNORECASE,
)

_ICON_CLASS_RE = re.compile(
    r"(?:^|\s)(?:fa[srlbd]?|fa-[\w-]+|[\w-]*icon[\w-]*)(?=\s|$)",
    re.IGNORECASE,
)

_CLASS_SUFFIX_RE = re.compile(r"^[a-zA-Z_-]+(\d+)$")

_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+)))?""",
)

# Attribute section of a start tag.  Quoted values may contain ">".
TAG_ATTRS = r"""(?:[^>"']|"[^"]*"|'[^']*')*"""


# ---------------------------------------------------------------------------
# Attribute / style parsing
# ---------------------------------------------------------------------------

def parse_attrs(attr_text: str) -> dict[str, str]:
    """Parse the attribute section of a start tag into a lowercase-keyed dict."""
    attrs: dict[str, str] = {}
    for m in _ATTR_RE.finditer(attr_text or ""):
        name = m.group(1).lower()
        value = next((g for g in m.group(2, 3, 4) if g is not None), "")
        attrs.setdefault(name, value)
    return attrs


def parse_style(style: str | None) -> dict[str, str]:
    """Parse an inline ``style`` attribute into ``{property: value}``."""
    declarations: dict[str, str] = {}
    for part in (style or "").split(";"):
        prop, sep, value = part.partition(":")
        if not sep:
            continue
        declarations[prop.strip().lower()] = value.strip().lower()
    return declarations


def class_text(value: object) -> str:
    """Normalise a class attribute (BeautifulSoup gives a list) to a string."""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value or "")


def is_icon_class(classes: str) -> bool:
    return bool(_ICON_CLASS_RE.search(classes or ""))


# ---------------------------------------------------------------------------
# Emphasis inference
# ---------------------------------------------------------------------------

def _weight_is_bold(value: str) -> bool:
    value = value.replace("!important", "").strip()
    if value in ("bold", "bolder"):
        return True
    if value.isdigit():
        return int(value) >= settings.BOLD_MIN_WEIGHT
    return False


def _weight_is_normal(value: str) -> bool:
    value = value.replace("!important", "").strip()
    if value in ("normal", "lighter"):
        return True
    return value.isdigit() and int(value) < settings.BOLD_MIN_WEIGHT


def _classes_look_bold(classes: str) -> bool:
    names = classes.split()
    if len(names) >= settings.BOLD_MIN_CLASS_COUNT:
        return True
    low, high = settings.BOLD_CLASS_SUFFIX_RANGE
    for name in names:
        m = _CLASS_SUFFIX_RE.match(name)
        if m and low <= int(m.group(1)) <= high:
            return True
    return False


@dataclass(frozen=True)
class RunStyle:
    """Semantic emphasis carried by one styled run."""

    bold: bool = False
    italic: bool = False
    strike: bool = False

    @property
    def tags(self) -> tuple[str, ...]:
        """Wrapper tags in nesting order, outermost first."""
        out: list[str] = []
        if self.bold:
            out.append("strong")
        if self.italic:
            out.append("em")
        if self.strike:
            out.append("del")
        return tuple(out)


def infer_run_style(
    style: str | None,
    classes: str = "",
    *,
    class_heuristics: bool = False,
) -> RunStyle:
    """Return the emphasis a ``span``/``font`` run declares."""
    decl = parse_style(style)
    bold = _weight_is_bold(decl.get("font-weight", ""))
    if not bold and class_heuristics and classes:
        bold = _classes_look_bold(classes)
    italic = decl.get("font-style", "") in ("italic", "oblique")
    decoration = decl.get("text-decoration", "") + " " + decl.get("text-decoration-line", "")
    strike = "line-through" in decoration
    return RunStyle(bold=bold, italic=italic, strike=strike)


def declares_normal_weight(style: str | None) -> bool:
    """True for ``<b style="font-weight:normal">`` (Google Docs guid wrapper)."""
    return _weight_is_normal(parse_style(style).get("font-weight", ""))


def declares_normal_style(style: str | None) -> bool:
    return parse_style(style).get("font-style", "") == "normal"
