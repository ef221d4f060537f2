import logging
from datetime import date

import pytest
from bs4 import BeautifulSoup

from app_config import CompilerConfig
from app.texcore.compiler import latex_compiler
from app.texcore.compiler.latex_compiler import LaTeXCompiler, compile_latex, format_date
from app.texcore.compiler.mathjax import mathjax_packages
from app.texcore.compiler.preprocess import (
    extract_packages,
    process_latex_commands,
    remove_latex_comments,
    strip_document_shell,
)
from app.texcore.compiler.tables import parse_column_spec, parse_placement, process_tabular_environment
from app.texcore.models.types import PackageInfo
from app.texcore.utils.heading import HeadingHandler
from app.texcore.utils.html_helpers import HTMLHelper, slugify

TODAY = date(2024, 3, 5)


@pytest.fixture
def compiler():
    return LaTeXCompiler(today=TODAY)


def body_of(html):
    return BeautifulSoup(html, "html.parser").body


def test_section_numbering(compiler):
    html = compiler.compile("\\section{A}\\subsection{B}\\subsection{C}\\section{D}")
    headings = body_of(html).find_all(["h1", "h2", "h3"])

    assert [h.name for h in headings] == ["h1", "h2", "h2", "h1"]
    numbers = [h.find("span", class_="section-number").get_text() for h in headings]
    assert numbers == ["1", "1.1", "1.2", "2"]
    assert [h["id"] for h in headings] == ["a", "b", "c", "d"]


def test_subsubsection_numbering():
    handler = HeadingHandler()
    headings = handler.analyze_document_structure(
        "\\section{A}\\subsubsection{X}\\subsection{B}\\subsubsection{Y}\\subsubsection{Z}"
    )
    assert [h.number for h in headings] == ["1", "1.1.1", "1.1", "1.1.1", "1.1.2"]


def test_headings_without_parent():
    handler = HeadingHandler()
    headings = handler.analyze_document_structure("\\subsection{B}\\subsubsection{C}")
    assert [h.number for h in headings] == ["1.1", "1.1.1"]


def test_tabular_rows(compiler):
    latex = (
        "\\begin{tabular}{lcr}\n"
        "\\hline\n"
        "a & b & c \\\\\n"
        "\\hline\n"
        "1 & 2 & 3 \\\\\n"
        "\\end{tabular}"
    )
    table = body_of(compiler.compile(latex)).find("table")
    rows = table.find_all("tr")

    assert [row.get("class") for row in rows] == [["hline"], None, ["hline"], None]
    cells = rows[1].find_all("td")
    assert [c.get_text() for c in cells] == ["a", "b", "c"]
    assert [c["style"] for c in cells] == [
        "text-align: left", "text-align: center", "text-align: right"
    ]


def test_short_rows_are_padded(compiler):
    latex = "\\begin{tabular}{l|l|l}\nonly \\\\\n\\end{tabular}"
    cells = body_of(compiler.compile(latex)).find_all("td")
    assert [c.get_text() for c in cells] == ["only", "", ""]


def test_table_float(compiler):
    latex = (
        "\\begin{table}[ht]\n"
        "\\centering\n"
        "\\begin{tabular}{ll}\n"
        "x & y \\\\\n"
        "\\end{tabular}\n"
        "\\caption{Measurements}\n"
        "\\label{tab:data}\n"
        "\\end{table}"
    )
    container = body_of(compiler.compile(latex)).find("div", class_="table-container")

    assert container["data-placement"] == "h"
    assert container.find("table")["class"] == ["centered"]
    caption = container.find("div", class_="table-caption")
    assert caption.get_text() == "Measurements"
    assert caption["id"] == "tab:data"


def test_escaped_percent_survives_comment_removal(compiler):
    body = body_of(compiler.compile("100\\% done % note"))
    assert body.find("p").get_text() == "100% done"
    assert "note" not in body.get_text()


def test_remove_latex_comments():
    source = "keep % drop\nnext \\% line\\\\% gone"
    assert remove_latex_comments(source) == "keep \nnext \\% line\\\\"


def test_document_shell_removed(compiler):
    latex = (
        "\\documentclass[12pt]{article}\n"
        "\\usepackage{amsmath}\n"
        "\\begin{document}\n"
        "Hello.\n"
        "\\end{document}\n"
    )
    assert strip_document_shell(latex) == "Hello."
    body = body_of(compiler.compile(latex))
    assert body.find("p").get_text() == "Hello."
    assert "documentclass" not in body.get_text()


def test_extract_packages():
    packages = extract_packages("\\usepackage[utf8]{inputenc}\n\\usepackage{amsmath, bm}")
    assert packages == [
        PackageInfo("inputenc", "utf8"),
        PackageInfo("amsmath"),
        PackageInfo("bm"),
    ]


def test_mathjax_package_mapping():
    packages = [PackageInfo(name) for name in ("amssymb", "xcolor", "color", "bm", "inputenc", "mhchem")]
    base = CompilerConfig().base_mathjax_packages
    assert mathjax_packages(packages, base) == base + ["color", "boldsymbol", "mhchem"]


def test_mathjax_config_in_page(compiler):
    html = compiler.compile("\\usepackage{physics}\nText")
    assert "window.MathJax" in html
    assert '"physics"' in html
    assert CompilerConfig().mathjax_url in html


def test_inline_formatting():
    assert process_latex_commands("\\textbf{a \\textit{b}}") == "<strong>a <em>b</em></strong>"
    assert process_latex_commands("\\emph{x}\\newpage") == '<em>x</em><div class="page-break"></div>'


def test_formatting_passes_limit_nesting():
    latex = "\\textbf{\\textbf{x}}"
    assert process_latex_commands(latex, passes=1) == "\\textbf{<strong>x</strong>}"


def test_table_of_contents(compiler):
    html = compiler.compile("\\tableofcontents\n\n\\section{First Part}\n\\subsection{Next}")
    toc = body_of(html).find("div", class_="toc")

    items = toc.find_all("li")
    assert [li["class"] for li in items] == [["toc-h1"], ["toc-h2"]]
    assert [li.a["href"] for li in items] == ["#first-part", "#next"]
    assert items[1].find("span", class_="section-number").get_text() == "1.1"


def test_empty_table_of_contents(compiler):
    html = compiler.compile("\\tableofcontents")
    assert "No headings found." in html


def test_today(compiler):
    body = body_of(compiler.compile("Written \\today."))
    assert body.find("p").get_text() == "Written March 5, 2024."
    assert format_date(date(2023, 12, 25)) == "December 25, 2023"


def test_title_block(compiler):
    body = body_of(compiler.compile("\\title{Paper}\n\\author{Ada}\n\\date{\\today}"))
    assert body.find("h1", class_="title").get_text() == "Paper"
    assert body.find("div", class_="author").get_text() == "Ada"
    assert body.find("div", class_="date").get_text() == "March 5, 2024"


def test_lists(compiler):
    latex = (
        "\\begin{enumerate}\n\\item One\n\\item Two\n\\end{enumerate}\n\n"
        "\\begin{itemize}\n\\item Dot\n\\end{itemize}"
    )
    body = body_of(compiler.compile(latex))
    assert [li.get_text() for li in body.find("ol").find_all("li")] == ["One", "Two"]
    assert [li.get_text() for li in body.find("ul").find_all("li")] == ["Dot"]


def test_math_environments(compiler):
    html = compiler.compile(
        "\\begin{equation}\nE = mc^2\n\\end{equation}\n\n"
        "\\begin{align*}\na &= b \\\\\nc &= d\n\\end{align*}"
    )
    assert "$$\nE = mc^2\n$$" in html
    assert "\\begin{aligned}" in html
    assert "\\begin{align*}" not in html


def test_math_escapes_untouched(compiler):
    html = compiler.compile("Rate $50\\%$ and 50\\% off")
    assert "$50\\%$" in html
    assert "50% off" in html


def test_escaped_dollars_are_not_math(compiler):
    body = body_of(compiler.compile("cost \\$5, 10\\% off, \\$6"))
    assert body.find("p").get_text() == "cost \\$5, 10% off, \\$6"


def test_single_line_tabular():
    latex = "\\begin{tabular}{lcr} a & b & c \\\\ \\hline \\end{tabular}"
    assert process_tabular_environment(latex) == (
        "<table><tr>"
        '<td style="text-align: left">a</td>'
        '<td style="text-align: center">b</td>'
        '<td style="text-align: right">c</td>'
        "</tr><tr class='hline'></tr></table>"
    )


def test_paragraphs(compiler):
    body = body_of(compiler.compile("\\section{S}\nFirst paragraph.\n\nSecond paragraph."))
    assert [p.get_text() for p in body.find_all("p")] == ["First paragraph.", "Second paragraph."]


def test_compile_never_raises(monkeypatch):
    def broken(content, strip_text_escapes=True):
        raise RuntimeError("boom")

    monkeypatch.setattr(latex_compiler, "process_content", broken)
    html = LaTeXCompiler().compile("a < b")
    assert "<pre>a &lt; b</pre>" in html


def test_validation_warnings_are_logged(caplog):
    caplog.set_level(logging.WARNING, logger="app.texcore")
    html = compile_latex("\\textbf{bold", today=TODAY)
    assert "<body>" in html
    assert any("unclosed brace" in record.getMessage() for record in caplog.records)


def test_extract_anchors(compiler):
    html = compiler.compile("\\section{Alpha Beta}\n\\subsection{Gamma}")
    assert HTMLHelper().extract_anchors(html) == [
        {"id": "alpha-beta", "level": 1, "number": "1", "text": "Alpha Beta"},
        {"id": "gamma", "level": 2, "number": "1.1", "text": "Gamma"},
    ]


def test_column_spec_and_placement():
    assert parse_column_spec("l|c|p{3cm}") == (3, ["left", "center", "left"])
    assert parse_column_spec("") == (1, [])
    assert parse_placement("!tb") == "t"
    assert parse_placement(None) is None


def test_slugify():
    assert slugify("Results & Discussion") == "results--discussion"
    assert slugify("  Spaced   Out ") == "-spaced-out-"
