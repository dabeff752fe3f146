# flowfix/structural/issues.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

ERROR = "error"
WARNING = "warning"
INFO = "info"


@dataclass
class ValidationIssue:
    """One finding of a validator. A non-empty ``fix`` marks it as auto-repairable."""
    severity: str  # "error" | "warning" | "info"
    code: str
    message: str
    node_id: Optional[str] = None
    node_name: Optional[str] = None
    fix: Optional[str] = None
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ValidationResult:
    issues: List[ValidationIssue] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    info: List[ValidationIssue] = field(default_factory=list)
    is_valid: bool = True
    fixable: bool = False

    def add(
        self,
        severity: str,
        code: str,
        message: str,
        node_id: Optional[str] = None,
        node_name: Optional[str] = None,
        fix: Optional[str] = None,
        details: Any = None,
    ) -> ValidationIssue:
        issue = ValidationIssue(severity, code, message, node_id, node_name, fix, details)
        self.issues.append(issue)
        if severity == ERROR:
            self.errors.append(issue)
            self.is_valid = False
        elif severity == WARNING:
            self.warnings.append(issue)
        else:
            self.info.append(issue)
        if fix:
            self.fixable = True
        return issue

    def error(self, code: str, message: str, **kwargs: Any) -> ValidationIssue:
        return self.add(ERROR, code, message, **kwargs)

    def warning(self, code: str, message: str, **kwargs: Any) -> ValidationIssue:
        return self.add(WARNING, code, message, **kwargs)

    def note(self, code: str, message: str, **kwargs: Any) -> ValidationIssue:
        return self.add(INFO, code, message, **kwargs)

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]

    def has_code(self, code: str) -> bool:
        return any(i.code == code for i in self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "fixable": self.fixable,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "info": [i.to_dict() for i in self.info],
        }


def merge_results(*results: ValidationResult) -> ValidationResult:
    """Union several results, keeping issue order per contributor."""
    combined = ValidationResult()
    for r in results:
        combined.issues.extend(r.issues)
        combined.errors.extend(r.errors)
        combined.warnings.extend(r.warnings)
        combined.info.extend(r.info)
        combined.fixable = combined.fixable or r.fixable
    combined.is_valid = not combined.errors
    return combined
