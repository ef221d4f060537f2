# app/texcore/compiler/content.py

"""Body pass: lists, tables, math environments and paragraphs."""

import logging
import re

from .tables import process_latex_tables

logger = logging.getLogger(__name__)

LIST_ENVIRONMENTS = {
    "enumerate": "ol",
    "itemize": "ul",
}
ITEM_SEPARATOR = re.compile(r"\\item\s+")
EQUATION_PATTERN = re.compile(r"\\begin\{equation\*?\}([\s\S]*?)\\end\{equation\*?\}")
ALIGN_PATTERN = re.compile(r"\\begin\{align\*?\}([\s\S]*?)\\end\{align\*?\}")

# Math opened by an unescaped $, or by \( and \[, is left untouched by text unescaping
MATH_SEGMENT = re.compile(
    r"((?<!\\)\$\$[\s\S]*?\$\$|(?<!\\)\$(?:\\.|[^$\\])*\$|\\\([\s\S]*?\\\)|\\\[[\s\S]*?\\\])"
)
TEXT_ESCAPES = {
    "\\%": "%",
    "\\&": "&amp;",
    "\\#": "#",
    "\\_": "_",
}

BLOCK_PREFIXES = ("<h", "<div", "<ol>", "<ul>", "<table", "$$")
HEADING_END = re.compile(r"(</h[1-3]>)[ \t]*\n")


def process_lists(content: str) -> str:
    """Convert enumerate and itemize environments into HTML lists."""
    try:
        for environment, tag in LIST_ENVIRONMENTS.items():
            pattern = re.compile(
                r"\\begin\{" + environment + r"\}([\s\S]*?)\\end\{" + environment + r"\}"
            )

            def render(match, tag=tag):
                items = [
                    f"<li>{item.strip()}</li>"
                    for item in ITEM_SEPARATOR.split(match.group(1))
                    if item.strip()
                ]
                return f"<{tag}>" + "\n".join(items) + f"</{tag}>"

            content = pattern.sub(render, content)
        return content

    except Exception as e:
        logger.error(f"List processing failed: {str(e)}")
        return content


def process_math_environments(content: str) -> str:
    """Turn equation and align environments into display math for MathJax."""
    try:
        content = EQUATION_PATTERN.sub(lambda m: f"$$\n{m.group(1).strip()}\n$$", content)
        content = ALIGN_PATTERN.sub(
            lambda m: f"$$\n\\begin{{aligned}}{m.group(1).strip()}\\end{{aligned}}\n$$",
            content
        )
        return content

    except Exception as e:
        logger.error(f"Math environment processing failed: {str(e)}")
        return content


def unescape_text_specials(content: str) -> str:
    """Resolve \\%, \\&, \\# and \\_ in running text, leaving math alone."""
    try:
        segments = MATH_SEGMENT.split(content)
        for index in range(0, len(segments), 2):
            text = segments[index]
            for escape, replacement in TEXT_ESCAPES.items():
                text = text.replace(escape, replacement)
            segments[index] = text
        return "".join(segments)

    except Exception as e:
        logger.error(f"Text escape processing failed: {str(e)}")
        return content


def wrap_paragraphs(content: str) -> str:
    """Split on blank lines and wrap every non-block chunk in <p>."""
    try:
        # Headings close their own block even without a blank line after them
        content = HEADING_END.sub(r"\1\n\n", content)
        chunks = [chunk.strip() for chunk in re.split(r"\n\s*\n", content) if chunk.strip()]
        return "\n".join(
            chunk if chunk.startswith(BLOCK_PREFIXES) else f"<p>{chunk}</p>"
            for chunk in chunks
        )

    except Exception as e:
        logger.error(f"Paragraph wrapping failed: {str(e)}")
        return content


def process_content(content: str, strip_text_escapes: bool = True) -> str:
    """Run the body pass stages in order."""
    content = process_lists(content)
    content = process_latex_tables(content)
    content = process_math_environments(content)
    if strip_text_escapes:
        content = unescape_text_specials(content)
    return wrap_paragraphs(content)
