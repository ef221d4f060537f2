# app/texcore/compiler/latex_compiler.py

from datetime import date
from typing import List, Optional, Tuple

from app_config import CompilerConfig
from ..models.types import HeadingInfo, PackageInfo, ProcessingPhase
from ..utils.heading import HeadingHandler
from ..utils.html_helpers import HTMLHelper
from ..utils.latex_validator import LaTeXValidator
from ..utils.logger import TexLogger, log_processing_phase
from .content import process_content
from .mathjax import mathjax_packages, render_document
from .preprocess import (
    extract_packages,
    process_latex_commands,
    remove_latex_comments,
    strip_document_shell,
)


def format_date(day: date) -> str:
    """``\\today`` style date, e.g. "March 5, 2024"."""
    return f"{day:%B} {day.day}, {day.year}"


def process_special_commands(
    content: str,
    headings: List[HeadingInfo],
    today: Optional[date] = None,
    heading_handler: Optional[HeadingHandler] = None
) -> str:
    """Expand \\today and \\tableofcontents."""
    content = content.replace("\\today", format_date(today or date.today()))

    if "\\tableofcontents" in content:
        handler = heading_handler or HeadingHandler()
        content = content.replace("\\tableofcontents", handler.generate_table_of_contents(headings))

    return content


class LaTeXCompiler:
    """Main orchestrator for the LaTeX to HTML pipeline."""

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        logger: Optional[TexLogger] = None,
        today: Optional[date] = None
    ):
        self.config = config or CompilerConfig()
        self.logger = logger or TexLogger("compiler")
        self.today = today
        self.document_id: Optional[str] = None
        self.heading_handler = HeadingHandler()
        self.validator = LaTeXValidator()
        self.html_helper = HTMLHelper()

    def compile(self, latex: str, document_id: Optional[str] = None) -> str:
        """
        Compile a LaTeX document into a standalone HTML page.

        Never raises: if the pipeline itself fails the page shows the
        escaped source instead.

        Args:
            latex: Full document source
            document_id: Optional id used in log messages

        Returns:
            HTML document string
        """
        self.document_id = document_id
        try:
            return self._compile(latex)
        except Exception as e:
            self.logger.error(f"Compilation failed, showing source: {str(e)}")
            body = f"<pre>{self.html_helper.escape_html(latex)}</pre>"
            return render_document(body, list(self.config.base_mathjax_packages), self.config.mathjax_url)

    @log_processing_phase(ProcessingPhase.COMPILATION)
    def _compile(self, latex: str) -> str:
        content, packages = self._preprocess(latex)
        content, headings = self._structure(content)
        body = self._content(content)

        extensions = mathjax_packages(packages, self.config.base_mathjax_packages)
        self.logger.debug(
            f"Compiled {len(headings)} headings, {len(packages)} packages"
        )
        return render_document(body, extensions, self.config.mathjax_url)

    @log_processing_phase(ProcessingPhase.PREPROCESSING)
    def _preprocess(self, latex: str) -> Tuple[str, List[PackageInfo]]:
        content = remove_latex_comments(latex)
        packages = extract_packages(content)
        content = strip_document_shell(content)

        if self.config.validate_source:
            self._report_diagnostics(content)

        return process_latex_commands(content, self.config.formatting_passes), packages

    @log_processing_phase(ProcessingPhase.STRUCTURE)
    def _structure(self, content: str) -> Tuple[str, List[HeadingInfo]]:
        headings = self.heading_handler.analyze_document_structure(content)
        content = self.heading_handler.process_sections_with_structure(content, headings)
        content = process_special_commands(content, headings, self.today, self.heading_handler)
        return content, headings

    @log_processing_phase(ProcessingPhase.CONTENT)
    def _content(self, content: str) -> str:
        return process_content(content, self.config.strip_text_escapes)

    def _report_diagnostics(self, content: str) -> None:
        result = self.validator.validate_document(content)
        for message in result.messages:
            where = f" at offset {message.offset}" if message.offset is not None else ""
            self.logger.warning(f"LaTeX {message.severity.value}: {message.message}{where}")


def compile_latex(
    latex: str,
    config: Optional[CompilerConfig] = None,
    today: Optional[date] = None
) -> str:
    """Compile ``latex`` with a one-off LaTeXCompiler."""
    return LaTeXCompiler(config=config, today=today).compile(latex)
