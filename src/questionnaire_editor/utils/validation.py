"""
Findings collection for questionnaire parsing, editing and checking.

This module provides the validation framework shared by the XML parser, the
editing session and the document validator. It can be used to:
- Collect issues found while reading a document (missing ids, unknown elements)
- Collect refused edits and rejected field values
- Report data-quality findings (duplicate ids, a stale nextid counter)
- Write a plain-text report of everything collected

The validation system supports three severity levels:
- CRITICAL: Fatal issues that MUST be addressed
- ERROR: Serious issues that SHOULD be addressed
- WARNING: Minor issues that COULD be improved

And three validation modes:
- STRICT: Raises exceptions immediately for any ERROR or CRITICAL issue
- NORMAL: Raises exceptions for CRITICAL issues, but only collects ERROR and WARNING issues
- LENIENT: Collects all issues without raising exceptions (the editor default,
  findings never block editing)
"""
from enum import Enum
from typing import List, Optional
import logging
from pathlib import Path
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Defines the severity levels for validation issues."""
    CRITICAL = "CRITICAL"  # Fatal issues that prevent proper functioning
    ERROR = "ERROR"        # Serious issues that should be fixed
    WARNING = "WARNING"    # Minor issues or suggestions for improvement


class ValidationLevel(Enum):
    """Determines how strictly collected issues are handled."""
    STRICT = "STRICT"     # Will raise ERROR and CRITICAL exceptions immediately
    NORMAL = "NORMAL"     # Will raise on CRITICAL, but only collect the other severity levels
    LENIENT = "LENIENT"   # Collect all issues, never raise


class ValidationResult(BaseModel):
    """A single finding, displayed to the user as severity plus message."""
    model_config = ConfigDict(frozen=True)

    severity: ValidationSeverity
    message: str
    node_id: Optional[str] = None
    node_type: Optional[str] = None
    field_name: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ValidationCollector:
    """Collects and manages findings."""

    def __init__(self, validation_level: ValidationLevel = ValidationLevel.LENIENT):
        """Initialize the collector.

        Args:
            validation_level: Determines how strictly to handle issues.
                            Defaults to LENIENT.
        """
        self.validation_level = validation_level
        self.results: List[ValidationResult] = []

    def add_result(self,
                   severity: ValidationSeverity,
                   message: str,
                   node_id: Optional[str] = None,
                   node_type: Optional[str] = None,
                   field_name: Optional[str] = None) -> ValidationResult:
        """Add a finding and handle it according to the validation level.

        Args:
            severity: The severity level of the issue
            message: Description of the issue
            node_id: ID of the affected node (if applicable)
            node_type: Type of the affected node (if applicable)
            field_name: Name of the affected field (if applicable)

        Returns:
            The stored result

        Raises:
            ValueError: If validation level and severity require an exception
        """
        result = ValidationResult(
            severity=severity,
            message=message,
            node_id=node_id,
            node_type=node_type,
            field_name=field_name
        )
        self.results.append(result)

        self._log_result(result)
        self._handle_result(result)
        return result

    def add_pydantic_error(self, error, node_id: Optional[str] = None,
                           node_type: Optional[str] = None) -> None:
        """Convert a pydantic ValidationError into one finding per failed field."""
        for err in error.errors():
            self.add_result(
                severity=ValidationSeverity.ERROR,
                message=f"Field validation error: {err['msg']}",
                node_id=node_id,
                node_type=node_type,
                field_name='.'.join(str(loc) for loc in err['loc'])
            )

    def clear(self) -> None:
        self.results.clear()

    def _log_result(self, result: ValidationResult) -> None:
        log_message = self._format_log_message(result)

        if result.severity in (ValidationSeverity.CRITICAL, ValidationSeverity.ERROR):
            logger.error(log_message)
        else:
            logger.warning(log_message)

    def _handle_result(self, result: ValidationResult) -> None:
        """Raise when the validation level and severity require it.

        Raises:
            ValueError: If validation level and severity require an exception
        """
        if self.validation_level == ValidationLevel.STRICT:
            if result.severity in [ValidationSeverity.CRITICAL, ValidationSeverity.ERROR]:
                raise ValueError(self._format_error_message(result))
        elif self.validation_level == ValidationLevel.NORMAL:
            if result.severity == ValidationSeverity.CRITICAL:
                raise ValueError(self._format_error_message(result))

    def save_report(self, output_path: Path) -> None:
        """Save collected findings to a text file.

        Args:
            output_path: Path where to save the report
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            self._write_report_header(f)
            self._write_results_by_severity(f)
            self._write_report_summary(f)

    def _write_report_header(self, file) -> None:
        file.write("Questionnaire Validation Report\n")
        file.write("=" * 50 + "\n")
        file.write(f"Validation Level: {self.validation_level.value}\n")
        file.write(f"Total Issues: {len(self.results)}\n")
        file.write("-" * 50 + "\n\n")

    def _write_results_by_severity(self, file) -> None:
        for severity in ValidationSeverity:
            results = self.get_results_by_severity(severity)
            if results:
                file.write(f"\n{severity.value} Issues ({len(results)}):\n")
                file.write("-" * 30 + "\n")

                for result in results:
                    file.write(f"- {result.message}\n")
                    if result.node_id:
                        file.write(f"  Node ID: {result.node_id}\n")
                    if result.node_type:
                        file.write(f"  Node Type: {result.node_type}\n")
                    if result.field_name:
                        file.write(f"  Field: {result.field_name}\n")
                    file.write(f"  Time: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S')}\n")
                    file.write("\n")

    def _write_report_summary(self, file) -> None:
        file.write("\nSummary:\n")
        file.write("-" * 30 + "\n")
        for severity in ValidationSeverity:
            count = len(self.get_results_by_severity(severity))
            file.write(f"{severity.value}: {count} issues\n")

        if self.has_critical_issues:
            file.write("\nWARNING: Critical issues were found!\n")

    @staticmethod
    def _format_log_message(result: ValidationResult) -> str:
        message = f"{result.severity.value}: {result.message}"
        if result.node_id:
            message += f" (Node ID: {result.node_id})"
        if result.node_type:
            message += f" (Type: {result.node_type})"
        return message

    @staticmethod
    def _format_error_message(result: ValidationResult) -> str:
        return f"{result.severity.value}: {result.message}"

    def get_results_by_severity(self, severity: ValidationSeverity) -> List[ValidationResult]:
        """Get all findings of a specific severity.

        Args:
            severity: The severity level to filter by

        Returns:
            List of findings with the specified severity
        """
        return [r for r in self.results if r.severity == severity]

    @property
    def has_errors(self) -> bool:
        """True if any ERROR or CRITICAL finding was collected"""
        return any(r.severity != ValidationSeverity.WARNING for r in self.results)

    @property
    def has_critical_issues(self) -> bool:
        return any(r.severity == ValidationSeverity.CRITICAL for r in self.results)
