# app/texcore/compiler/preprocess.py

"""Stages that run before any structural analysis of the source."""

from typing import List
import logging
import re

from ..models.types import PackageInfo

logger = logging.getLogger(__name__)

USEPACKAGE_PATTERN = re.compile(r"\\usepackage(?:\[(.*?)\])?\{(.*?)\}")
PAGE_BREAK = '<div class="page-break"></div>'

INLINE_FORMATTING = [
    (re.compile(r"\\textbf\{([^{}]*)\}"), r"<strong>\1</strong>"),
    (re.compile(r"\\textit\{([^{}]*)\}"), r"<em>\1</em>"),
    (re.compile(r"\\emph\{([^{}]*)\}"), r"<em>\1</em>"),
    (re.compile(r"\\underline\{([^{}]*)\}"), r"<u>\1</u>"),
    (re.compile(r"\\texttt\{([^{}]*)\}"), r"<code>\1</code>"),
]


def remove_latex_comments(source: str) -> str:
    """Drop everything from an unescaped % to the end of its line."""
    try:
        result = []
        in_comment = False
        i = 0

        while i < len(source):
            char = source[i]
            # A backslash escapes the next character, so \% and \\ are copied whole
            if not in_comment and char == "\\" and i + 1 < len(source):
                result.append(source[i:i + 2])
                i += 2
                continue

            if char == "%":
                in_comment = True

            if char == "\n":
                in_comment = False
                result.append("\n")
            elif not in_comment:
                result.append(char)
            i += 1

        return "".join(result)

    except Exception as e:
        logger.error(f"Comment removal failed: {str(e)}")
        return source


def extract_packages(latex: str) -> List[PackageInfo]:
    """One PackageInfo per name in every \\usepackage[options]{a,b,...}."""
    try:
        packages = []
        for match in USEPACKAGE_PATTERN.finditer(latex):
            options = match.group(1)
            for name in match.group(2).split(","):
                name = name.strip()
                if name:
                    packages.append(PackageInfo(name=name, options=options))
        return packages

    except Exception as e:
        logger.error(f"Package extraction failed: {str(e)}")
        return []


def strip_document_shell(latex: str) -> str:
    """Remove the preamble commands and the document environment markers."""
    try:
        content = re.sub(r"\\documentclass(\[.*?\])?\{.*?\}", "", latex)
        content = content.replace("\\begin{document}", "")
        content = content.replace("\\end{document}", "")
        content = USEPACKAGE_PATTERN.sub("", content)
        return content.strip()

    except Exception as e:
        logger.error(f"Document shell removal failed: {str(e)}")
        return latex


def process_latex_commands(content: str, passes: int = 5) -> str:
    """
    Rewrite inline text formatting and page breaks.

    Each pass rewrites the innermost brace level, so nesting deeper than
    ``passes`` is left partly untouched.
    """
    try:
        for _ in range(passes):
            for pattern, replacement in INLINE_FORMATTING:
                content = pattern.sub(replacement, content)

        content = content.replace("\\newpage", PAGE_BREAK)
        content = content.replace("\\pagebreak", PAGE_BREAK)
        return content

    except Exception as e:
        logger.error(f"Inline command processing failed: {str(e)}")
        return content
