"""RSS 2.0 / Atom parsing into plain dicts. Top-level parse failure is MalformedPayload."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from trendboard.feeds.errors import MalformedPayload

ATOM_NS = {"atom": "http://www.w3.org/2005/Atom", "media": "http://search.yahoo.com/mrss/"}


def _root(xml_text: str) -> ET.Element:
    try:
        return ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedPayload(f"unparseable feed: {e}") from e


def parse_rss_items(xml_text: str) -> list[dict[str, str]]:
    """channel.item[] -> [{title, link, pubDate, description, source}]."""
    root = _root(xml_text)
    channel = root.find("channel")
    if channel is None:
        return []
    items: list[dict[str, str]] = []
    for item in channel.findall("item"):
        items.append(
            {
                "title": item.findtext("title", default=""),
                "link": item.findtext("link", default=""),
                "pubDate": item.findtext("pubDate", default=""),
                "description": item.findtext("description", default=""),
                "source": item.findtext("source", default=""),
                "guid": item.findtext("guid", default=""),
            }
        )
    return items


def parse_atom_entries(xml_text: str) -> list[dict[str, str]]:
    """feed.entry[] -> [{id, title, link, updated, content, author, thumbnail}]."""
    root = _root(xml_text)
    entries: list[dict[str, str]] = []
    for entry in root.findall("atom:entry", ATOM_NS):
        link_node = entry.find("atom:link", ATOM_NS)
        thumb = entry.find("media:thumbnail", ATOM_NS)
        author = entry.find("atom:author", ATOM_NS)
        category = entry.find("atom:category", ATOM_NS)
        entries.append(
            {
                "id": entry.findtext("atom:id", default="", namespaces=ATOM_NS),
                "title": entry.findtext("atom:title", default="", namespaces=ATOM_NS),
                "link": link_node.attrib.get("href", "") if link_node is not None else "",
                "updated": entry.findtext("atom:updated", default="", namespaces=ATOM_NS)
                or entry.findtext("atom:published", default="", namespaces=ATOM_NS),
                "content": entry.findtext("atom:content", default="", namespaces=ATOM_NS),
                "author": author.findtext("atom:name", default="", namespaces=ATOM_NS) if author is not None else "",
                "thumbnail": thumb.attrib.get("url", "") if thumb is not None else "",
                "category": category.attrib.get("term", "") if category is not None else "",
            }
        )
    return entries
