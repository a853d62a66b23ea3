"""Markdown parser for the awesome-selfhosted catalog.

The upstream README is free-form markdown. Everything between the
``## Software`` heading and the next second-level heading is the catalog
body; each ``###`` heading in it is a category and each list item that
starts with a link is an application::

    ### Feed Readers

    Apps for reading feeds

    - [Name](https://home.page) - Description. ([Demo](https://demo), [Source Code](https://src)) `License` `Language`

Parsing is permissive: a line that cannot be understood is skipped and the
scan carries on. Categories that end up without any application are left
out of the result.
"""

import logging
import re
from typing import List, Optional

from ihostit.catalog.models import ParsedApp, ParsedCategory

logger = logging.getLogger(__name__)

SECTION_MARKER = "## Software"
SUBCATEGORY_SEPARATOR = " - "
DEFAULT_LICENSE = "Unknown"

SECTION_HEADING_RE = re.compile(r"^##(?:\s|$)")
CATEGORY_HEADING_RE = re.compile(r"^###(?:\s|$)")
CATEGORY_MARKUP_RE = re.compile(r"^###\s*")
FOOTNOTE_RE = re.compile(r"\s+\^.*$")
LIST_ITEM_RE = re.compile(r"^[-*+]\s")
APP_CANDIDATE_RE = re.compile(r"^[-*+]\s+\[")
APP_LINK_RE = re.compile(r"^[-*+]\s+\[([^\]]+)\]\(([^)]+)\)(.*)$")
DESCRIPTION_SEPARATOR_RE = re.compile(r"^\s*-\s*(.*)$")
DESCRIPTION_RE = re.compile(r"^([^(`]+)")
DEMO_RE = re.compile(r"\[(?:Live Demo|Demo)\]\(([^)]+)\)", re.IGNORECASE)
SOURCE_CODE_RE = re.compile(r"\[Source Code\]\(([^)]+)\)", re.IGNORECASE)
BACKTICK_RE = re.compile(r"`([^`]+)`")


def parse_catalog(document: str) -> List[ParsedCategory]:
    """Parse the README into categories, in document order.

    Returns an empty list when the ``## Software`` section is missing.
    """
    lines = document.splitlines()
    categories: List[ParsedCategory] = []
    current: Optional[ParsedCategory] = None
    in_section = False
    skipped_lines = 0

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()

        if not in_section:
            if line == SECTION_MARKER:
                in_section = True
            continue

        if SECTION_HEADING_RE.match(line):
            if line == SECTION_MARKER:
                continue
            break

        if CATEGORY_HEADING_RE.match(line):
            _close_category(current, categories)
            next_line = lines[index + 1] if index + 1 < len(lines) else ""
            current = _open_category(line, next_line)
            continue

        if current is None or not APP_CANDIDATE_RE.match(line):
            continue

        app = parse_app_line(line, current.name, current.subcategory)
        if app:
            current.apps.append(app)
        else:
            skipped_lines += 1

    _close_category(current, categories)

    if not in_section:
        logger.warning("Section marker %r not found, no catalog data parsed", SECTION_MARKER)
    logger.debug(
        "Parsed %s categories and %s apps (%s app lines skipped)",
        len(categories),
        sum(len(category.apps) for category in categories),
        skipped_lines,
    )
    return categories


def parse_category_name(heading: str) -> Optional[str]:
    """Category name for a ``###`` heading, or None when the heading is not a category."""
    name = CATEGORY_MARKUP_RE.sub("", heading.strip())
    name = FOOTNOTE_RE.sub("", name).strip()
    if not name or "back to top" in name.lower():
        return None
    return name


def parse_subcategory(category_name: str) -> Optional[str]:
    if SUBCATEGORY_SEPARATOR not in category_name:
        return None
    # "Communication - Email - Complete Solutions" tags its apps with "Email"
    return category_name.split(SUBCATEGORY_SEPARATOR)[1].strip() or None


def parse_app_line(
    line: str, category: str, subcategory: Optional[str] = None
) -> Optional[ParsedApp]:
    """Parse one list item into an app; None when the leading link is missing."""
    match = APP_LINK_RE.match(line.strip())
    if not match:
        logger.debug("Skipping unparseable app line: %s", line)
        return None

    name = match.group(1).strip()
    homepage_url = match.group(2).strip()
    if not name or not homepage_url:
        logger.debug("Skipping app line without name or url: %s", line)
        return None

    description = ""
    separator = DESCRIPTION_SEPARATOR_RE.match(match.group(3))
    if separator:
        text = DESCRIPTION_RE.match(separator.group(1).strip())
        if text:
            description = text.group(1).strip()
            if description.endswith("."):
                description = description[:-1].rstrip()

    demo = DEMO_RE.search(line)
    source_code = SOURCE_CODE_RE.search(line)

    # Upstream convention: first backtick token is the license, second the language
    tokens = BACKTICK_RE.findall(line)
    license = tokens[0] if tokens else DEFAULT_LICENSE
    language = tokens[1] if len(tokens) > 1 else None

    return ParsedApp(
        name=name,
        description=description,
        homepage_url=homepage_url,
        source_code_url=source_code.group(1).strip() if source_code else None,
        demo_url=demo.group(1).strip() if demo else None,
        license=license,
        language=language,
        category=category,
        subcategory=subcategory,
    )


def _open_category(heading: str, next_line: str) -> Optional[ParsedCategory]:
    name = parse_category_name(heading)
    if name is None:
        logger.debug("Ignoring heading without a category: %s", heading)
        return None

    description = ""
    candidate = next_line.strip()
    if candidate and not candidate.startswith("#") and not LIST_ITEM_RE.match(candidate):
        description = candidate

    return ParsedCategory(
        name=name,
        description=description,
        subcategory=parse_subcategory(name),
    )


def _close_category(category: Optional[ParsedCategory], categories: List[ParsedCategory]):
    if category is None:
        return
    if category.apps:
        categories.append(category)
    else:
        logger.debug("Dropping category without apps: %s", category.name)
