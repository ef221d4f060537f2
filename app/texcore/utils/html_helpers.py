# app/texcore/utils/html_helpers.py

import html
import re
from typing import Dict, List, Any
from bs4 import BeautifulSoup, Tag
import logging


def slugify(text: str) -> str:
    """Anchor id for a heading: whitespace to hyphens, word characters only, lowercase."""
    slug = re.sub(r"\s+", "-", text)
    slug = re.sub(r"[^\w-]", "", slug)
    return slug.lower()


class HTMLHelper:
    """Utilities for reading and escaping preview HTML."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def escape_html(self, content: str) -> str:
        """
        Escape HTML special characters in content.

        Args:
            content: String content to escape

        Returns:
            Escaped HTML content
        """
        try:
            return html.escape(content, quote=True)
        except Exception as e:
            self.logger.error(f"Error escaping HTML: {str(e)}")
            return ""

    def extract_anchors(self, html_content: str) -> List[Dict[str, Any]]:
        """
        List the linkable headings of a compiled document.

        Args:
            html_content: Output of the compiler

        Returns:
            One entry per numbered heading with id, level, number and text
        """
        try:
            soup = BeautifulSoup(html_content, "html.parser")
            anchors = []
            for heading in soup.find_all(["h1", "h2", "h3"]):
                if not isinstance(heading, Tag) or not heading.get("id"):
                    continue
                number_tag = heading.find("span", class_="section-number")
                number = number_tag.get_text(strip=True) if number_tag else ""
                text = heading.get_text(" ", strip=True)
                if number and text.startswith(number):
                    text = text[len(number):].strip()
                anchors.append({
                    "id": heading["id"],
                    "level": int(heading.name[1]),
                    "number": number,
                    "text": text,
                })
            return anchors

        except Exception as e:
            self.logger.error(f"Error extracting anchors: {str(e)}")
            return []
