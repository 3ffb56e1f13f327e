"""OPML parser for importing and exporting feed subscriptions."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field


@dataclass
class OPMLFeed:
    """A feed entry from an OPML file."""
    url: str
    title: str | None
    category: str | None


@dataclass
class OPMLDocument:
    """Parsed OPML document."""
    title: str | None
    feeds: list[OPMLFeed]
    categories: list[str] = field(default_factory=list)


def parse_opml(xml_content: str | bytes) -> OPMLDocument:
    """
    Parse OPML XML content and extract feed subscriptions.

    Only outlines with type="rss" are feeds. Outlines without a type are
    folders; their name becomes the category of the feeds inside them.
    Outlines of any other type are ignored.

    Args:
        xml_content: Raw OPML XML

    Returns:
        OPMLDocument with title, feeds and folder names

    Raises:
        ValueError: If XML is invalid or not OPML format
    """
    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML: {e}")

    # Verify it's an OPML document
    if root.tag.lower() != "opml":
        raise ValueError(f"Not an OPML document (root element: {root.tag})")

    doc_title = None
    head = root.find("head")
    if head is not None:
        title_elem = head.find("title")
        if title_elem is not None and title_elem.text:
            doc_title = title_elem.text.strip()

    body = root.find("body")
    if body is None:
        raise ValueError("OPML document missing <body> element")

    document = OPMLDocument(title=doc_title, feeds=[])
    _parse_outlines(body, document, category=None)
    return document


def _parse_outlines(
    element: ET.Element,
    document: OPMLDocument,
    category: str | None
) -> None:
    for outline in element.findall("outline"):
        outline_type = (outline.get("type") or "").strip().lower()
        xml_url = outline.get("xmlUrl") or outline.get("xmlurl")

        if outline_type == "rss":
            if xml_url:
                title = outline.get("title") or outline.get("text")
                document.feeds.append(OPMLFeed(
                    url=xml_url.strip(),
                    title=title.strip() if title else None,
                    category=category
                ))
        elif not outline_type:
            folder_name = (outline.get("title") or outline.get("text") or "").strip()
            if folder_name and folder_name not in document.categories:
                document.categories.append(folder_name)
            _parse_outlines(outline, document, category=folder_name or category)


def generate_opml(
    feeds: list[OPMLFeed],
    categories: list[str] | None = None,
    title: str = "Feed Subscriptions"
) -> str:
    """
    Generate OPML XML from a list of feeds.

    Feeds without a category sit at the top level; the rest are grouped
    into one folder per category. Categories listed in `categories` get a
    folder even when they hold no feeds.

    Returns:
        OPML XML string
    """
    root = ET.Element("opml", version="2.0")

    head = ET.SubElement(root, "head")
    title_elem = ET.SubElement(head, "title")
    title_elem.text = title

    body = ET.SubElement(root, "body")

    categorized: dict[str | None, list[OPMLFeed]] = {name: [] for name in categories or []}
    for feed in feeds:
        categorized.setdefault(feed.category, []).append(feed)

    for feed in categorized.pop(None, []):
        _add_feed_outline(body, feed)

    for category, cat_feeds in categorized.items():
        folder = ET.SubElement(body, "outline", text=category, title=category)
        for feed in cat_feeds:
            _add_feed_outline(folder, feed)

    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(
        root, encoding="unicode"
    )


def _add_feed_outline(parent: ET.Element, feed: OPMLFeed) -> None:
    """Add a feed outline element to parent."""
    attrs = {
        "type": "rss",
        "xmlUrl": feed.url,
    }
    if feed.title:
        attrs["text"] = feed.title
        attrs["title"] = feed.title
    else:
        attrs["text"] = feed.url

    ET.SubElement(parent, "outline", **attrs)
