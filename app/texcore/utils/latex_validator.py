from typing import List
import re
import logging

from ..models.types import ValidationMessage, ValidationResult, ValidationSeverity


class LaTeXValidator:
    """Cheap structural checks run before compiling; findings are advisory."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.environment_pattern = re.compile(r'\\(begin|end)\{([^}]*)\}')

    def validate_document(self, latex: str) -> ValidationResult:
        try:
            messages: List[ValidationMessage] = []
            messages.extend(self._check_braces(latex))
            messages.extend(self._check_environments(latex))
            messages.extend(self._check_math_delimiters(latex))
            return ValidationResult(
                is_valid=not any(m.severity == ValidationSeverity.ERROR for m in messages),
                messages=messages
            )

        except Exception as e:
            self.logger.error(f"LaTeX validation error: {str(e)}")
            return ValidationResult(is_valid=False, messages=[
                ValidationMessage(message=str(e), severity=ValidationSeverity.ERROR)
            ])

    def _check_braces(self, latex: str) -> List[ValidationMessage]:
        depth = 0
        escaped = False
        for offset, char in enumerate(latex):
            if escaped:
                escaped = False
                continue
            if char == '\\':
                escaped = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth < 0:
                    return [ValidationMessage(
                        message="Unexpected closing brace",
                        severity=ValidationSeverity.ERROR,
                        offset=offset
                    )]
        if depth:
            return [ValidationMessage(
                message=f"{depth} unclosed brace(s)",
                severity=ValidationSeverity.ERROR
            )]
        return []

    def _check_environments(self, latex: str) -> List[ValidationMessage]:
        messages = []
        stack = []
        for match in self.environment_pattern.finditer(latex):
            kind, name = match.group(1), match.group(2)
            if kind == 'begin':
                stack.append((name, match.start()))
            elif stack and stack[-1][0] == name:
                stack.pop()
            else:
                messages.append(ValidationMessage(
                    message=f"\\end{{{name}}} without matching \\begin",
                    severity=ValidationSeverity.ERROR,
                    offset=match.start()
                ))
        for name, offset in stack:
            messages.append(ValidationMessage(
                message=f"Environment '{name}' is never closed",
                severity=ValidationSeverity.ERROR,
                offset=offset
            ))
        return messages

    def _check_math_delimiters(self, latex: str) -> List[ValidationMessage]:
        dollars = len(re.findall(r'(?<!\\)\$', latex))
        if dollars % 2 != 0:
            return [ValidationMessage(message="Odd number of $ delimiters")]
        return []
