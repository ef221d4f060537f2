# app/texcore/compiler/mathjax.py

"""Wraps compiled body HTML into a standalone page that loads MathJax."""

from typing import Iterable, List, Optional
import json
import logging

from ..models.types import PackageInfo

logger = logging.getLogger(__name__)

# LaTeX package name -> MathJax TeX extension
PACKAGE_MAP = {
    "amsmath": "ams",
    "amssymb": "ams",
    "amsthm": "ams",
    "mathtools": "ams",
    "physics": "physics",
    "cancel": "cancel",
    "color": "color",
    "xcolor": "color",
    "bm": "boldsymbol",
    "enumerate": "enumerate",
    "algorithm": "algorithm",
    "algorithmic": "algorithm",
    "mhchem": "mhchem",
}

STYLESHEET = """
body {
  font-family: 'Times New Roman', Times, serif;
  line-height: 1.5;
  max-width: 800px;
  margin: 0 auto;
  padding: 20px;
}
h1 { font-size: 24px; margin-top: 24px; margin-bottom: 16px; }
h2 { font-size: 20px; margin-top: 20px; margin-bottom: 14px; }
h3 { font-size: 18px; margin-top: 18px; margin-bottom: 12px; }
h1.title { text-align: center; }
.author, .date { text-align: center; margin-bottom: 8px; }
p { margin-bottom: 16px; }
strong { font-weight: bold; }
em { font-style: italic; }
code { font-family: 'Courier New', Courier, monospace; }
.mjx-chtml { display: inline-block; }
.toc { margin: 20px 0; }
.toc h2 { margin-top: 0; margin-bottom: 16px; }
.toc ul { list-style-type: none; margin: 0; padding: 0; }
.toc-h1 { margin-left: 0; margin-bottom: 8px; }
.toc-h2 { margin-left: 20px; margin-bottom: 6px; }
.toc-h3 { margin-left: 40px; margin-bottom: 6px; }
.toc a { text-decoration: none; color: inherit; }
.section-number { margin-right: 8px; font-weight: bold; }

ul, ol { margin: 16px 0; padding-left: 30px; }
li { margin-bottom: 8px; }
ol { list-style-type: decimal; }
ol ol { list-style-type: lower-alpha; }
ol ol ol { list-style-type: lower-roman; }

table { border-collapse: collapse; width: 100%; }
table.centered { margin-left: auto; margin-right: auto; }
td { padding: 8px; border: 1px solid #ddd; }
tr.hline { border-bottom: 2px solid #000; height: 1px; }
.table-container { margin: 20px 0; overflow-x: auto; }
.table-caption { text-align: center; font-style: italic; margin-top: 8px; }
.table-container[data-placement="h"] { position: relative; }
.table-container[data-placement="t"] { margin-top: 0; }
.table-container[data-placement="b"] { margin-top: 30px; }
.table-container[data-placement="p"] { page-break-inside: avoid; }

.page-break {
  page-break-after: always;
  margin: 30px 0;
  border-bottom: 1px dashed #ccc;
}
"""


def mathjax_packages(packages: Iterable[PackageInfo], base: Optional[List[str]] = None) -> List[str]:
    """
    MathJax extensions to load for a document.

    Args:
        packages: Packages found in the LaTeX preamble
        base: Extensions that are always loaded

    Returns:
        ``base`` followed by every mapped package, without duplicates
    """
    selected = list(base or [])
    for package in packages:
        extension = PACKAGE_MAP.get(package.name)
        if extension is None:
            logger.debug(f"No MathJax extension for package {package.name}")
            continue
        if extension not in selected:
            selected.append(extension)
    return selected


def mathjax_settings(extensions: List[str]) -> dict:
    """The ``window.MathJax`` configuration object."""
    return {
        "tex": {
            "inlineMath": [["$", "$"], ["\\(", "\\)"]],
            "displayMath": [["$$", "$$"], ["\\[", "\\]"]],
            "processEscapes": True,
            "processEnvironments": True,
            "packages": extensions,
        },
        "options": {
            "skipHtmlTags": ["script", "noscript", "style", "textarea", "pre", "code"],
            "ignoreHtmlClass": "tex2jax_ignore",
            "processHtmlClass": "tex2jax_process",
        },
    }


def render_document(body: str, extensions: List[str], mathjax_url: str) -> str:
    """Standalone HTML page around ``body``; math is left for MathJax to typeset."""
    settings = json.dumps(mathjax_settings(extensions), indent=2)
    return (
        "<html>\n"
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<script>\nwindow.MathJax = {settings};\n</script>\n"
        f'<script type="text/javascript" id="MathJax-script" async src="{mathjax_url}"></script>\n'
        f"<style>{STYLESHEET}</style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )
