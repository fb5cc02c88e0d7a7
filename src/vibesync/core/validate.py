"""
Structural checks for JSON documents before they are trusted as import sources.

Validators never raise. Callers decide whether a failed validation is fatal;
the import treats it as "skip this file and continue".
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..utils.fs import read_json_safe


@dataclass
class ValidationResult:
    """Outcome of validating a single file."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    data: Optional[Dict[str, Any]] = None


def _ok(data: Dict[str, Any]) -> ValidationResult:
    return ValidationResult(valid=True, errors=[], data=data)


def _fail(error: str) -> ValidationResult:
    return ValidationResult(valid=False, errors=[error])


def _is_object(value: Any) -> bool:
    return isinstance(value, dict)


def _describe(value: Any) -> str:
    if isinstance(value, list):
        return 'array'
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return type(value).__name__


def validate_json_file(file_path: Union[str, Path]) -> ValidationResult:
    """Check that the file parses to a JSON object."""
    data = read_json_safe(file_path)
    if data is None:
        return _fail(f"Cannot parse JSON: {file_path}")
    if not _is_object(data):
        return _fail(f"Expected object, got {_describe(data)}: {file_path}")
    return _ok(data)


def _validate_optional_object(file_path: Union[str, Path], key: str) -> ValidationResult:
    base = validate_json_file(file_path)
    if not base.valid:
        return base

    if key in base.data and not _is_object(base.data[key]):
        name = Path(file_path).name
        return _fail(f"{name}: {key} must be an object, got {_describe(base.data[key])}")
    return base


def validate_settings_json(file_path: Union[str, Path]) -> ValidationResult:
    """Settings must be an object whose ``enabledPlugins``, if any, is an object."""
    return _validate_optional_object(file_path, 'enabledPlugins')


def validate_plugins_json(file_path: Union[str, Path]) -> ValidationResult:
    """The plugin registry must be an object whose ``plugins``, if any, is an object."""
    return _validate_optional_object(file_path, 'plugins')


def validate_marketplaces_json(file_path: Union[str, Path]) -> ValidationResult:
    return validate_json_file(file_path)
