from __future__ import annotations

from typing import List, Optional


class RecordingError(Exception):
    """Error representing a recording that cannot be decoded"""
    def __init__(self, cause: str, lineno: Optional[int] = None) -> None:
        self.cause = cause
        self.lineno = lineno

    def __str__(self) -> str:
        if self.lineno is None:
            return "Recording Error: " + self.cause
        return "Recording Error (line " + str(self.lineno) + "): " + self.cause


class ConfigurationError(Exception):
    """Error representing a generic problem with configuration"""
    def __init__(self, cause: str) -> None:
        self.cause = cause

    def __str__(self) -> str:
        return "Configuration Error: " + self.cause


class ConfigurationFileError(ConfigurationError):
    """Error representing issues with loading or validating a configuration file"""
    def __init__(self, path: str, errors: List[str]) -> None:
        self.path = path
        self.errors = errors

    def __str__(self) -> str:
        return "Failed to load configuration file: " + str(self.path) + "\n" + \
                "\n".join("\tMismatch: " + e for e in self.errors)
