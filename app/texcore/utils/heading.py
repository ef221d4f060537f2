from typing import List, Optional
import logging
import re

from ..models.types import HeadingInfo
from .html_helpers import slugify

HEADING_COMMANDS = {
    1: "section",
    2: "subsection",
    3: "subsubsection",
}


class HeadingHandler:
    """Finds, numbers and renders \\section-style headings."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._patterns = {
            level: re.compile(r"\\" + command + r"\{(.*?)\}")
            for level, command in HEADING_COMMANDS.items()
        }

    # Structure analysis
    def analyze_document_structure(self, content: str) -> List[HeadingInfo]:
        """
        Find every heading and assign LaTeX-style dotted numbers.

        Args:
            content: LaTeX text after inline formatting

        Returns:
            Headings in document order with numbers filled in
        """
        try:
            headings = [
                HeadingInfo(text=match.group(1), level=level, source_index=match.start())
                for level, pattern in self._patterns.items()
                for match in pattern.finditer(content)
            ]
            headings.sort(key=lambda h: h.source_index)
            self._assign_numbers(headings)

            self.logger.debug(f"Found {len(headings)} headings")
            return headings

        except Exception as e:
            self.logger.error(f"Error analyzing document structure: {str(e)}")
            return []

    def _assign_numbers(self, headings: List[HeadingInfo]) -> None:
        section_number = 0
        subsection_number = 0
        subsubsection_number = 0

        for i, heading in enumerate(headings):
            if heading.level == 1:
                section_number += 1
                subsection_number = 0
                subsubsection_number = 0
                heading.number = f"{section_number}"

            elif heading.level == 2:
                parent = self._find_last_index_before(headings, i, 1)
                if parent >= 0:
                    if self._continues_sibling_run(headings, i, parent):
                        subsection_number += 1
                    else:
                        subsection_number = 1
                    heading.number = f"{headings[parent].number}.{subsection_number}"
                else:
                    subsection_number += 1
                    heading.number = f"1.{subsection_number}"
                subsubsection_number = 0

            elif heading.level == 3:
                parent = self._find_last_index_before(headings, i, 2)
                if parent >= 0:
                    if self._continues_sibling_run(headings, i, parent):
                        subsubsection_number += 1
                    else:
                        subsubsection_number = 1
                    heading.number = f"{headings[parent].number}.{subsubsection_number}"
                else:
                    section = self._find_last_index_before(headings, i, 1)
                    subsubsection_number += 1
                    if section >= 0:
                        heading.number = f"{headings[section].number}.1.{subsubsection_number}"
                    else:
                        heading.number = f"1.1.{subsubsection_number}"

    def _continues_sibling_run(self, headings: List[HeadingInfo], index: int, parent: int) -> bool:
        """Whether the previous heading is a same-level sibling under the same parent."""
        if index == 0:
            return False
        previous = headings[index - 1]
        if previous.level != headings[index].level:
            return False
        return self._find_last_index_before(headings, index - 1, headings[parent].level) == parent

    @staticmethod
    def _find_last_index_before(headings: List[HeadingInfo], index: int, level: int) -> int:
        for i in range(index - 1, -1, -1):
            if headings[i].level == level:
                return i
        return -1

    # Rendering
    def process_sections_with_structure(self, content: str, headings: List[HeadingInfo]) -> str:
        """
        Replace heading commands with numbered HTML headings, then title metadata.

        Args:
            content: LaTeX text the headings were analysed from
            headings: Output of analyze_document_structure

        Returns:
            Text with <h1>-<h3> elements in place of the heading commands
        """
        try:
            parts = []
            last_index = 0

            for heading in sorted(headings, key=lambda h: h.source_index):
                command = HEADING_COMMANDS.get(heading.level)
                if command is None:
                    continue

                tag_pattern = f"\\{command}{{{heading.text}}}"
                tag_index = content.find(tag_pattern, last_index)
                if tag_index == -1:
                    continue

                parts.append(content[last_index:tag_index])
                parts.append(self.render_heading(heading))
                last_index = tag_index + len(tag_pattern)

            parts.append(content[last_index:])
            result = "".join(parts)

            result = re.sub(r"\\title\{(.*?)\}", r'<h1 class="title">\1</h1>', result)
            result = re.sub(r"\\author\{(.*?)\}", r'<div class="author">\1</div>', result)
            result = re.sub(r"\\date\{(.*?)\}", r'<div class="date">\1</div>', result)
            return result

        except Exception as e:
            self.logger.error(f"Error processing sections: {str(e)}")
            return content

    def render_heading(self, heading: HeadingInfo) -> str:
        return (
            f'<h{heading.level} id="{heading.slug}">'
            f'<span class="section-number">{heading.number}</span> {heading.text}'
            f'</h{heading.level}>'
        )

    def generate_table_of_contents(self, headings: List[HeadingInfo]) -> str:
        """Table of contents linking every heading by slug."""
        if not headings:
            return '<div class="toc"><h2>Table of Contents</h2><p>No headings found.</p></div>'

        items = [
            f'<li class="toc-h{heading.level}">'
            f'<a href="#{slugify(heading.text)}"><span class="section-number">{heading.number}</span> {heading.text}</a>'
            f'</li>'
            for heading in headings
        ]
        return '<div class="toc"><h2>Table of Contents</h2><ul>' + "\n".join(items) + "</ul></div>"
