"""
Evidence Providers
==================

The gap detector never reads source files itself. It asks an
``EvidenceProvider`` what is known about a file, a symbol in a file, a
keyword, or the tests covering a file. Concrete providers (AST walkers,
file searchers, remote indexes) live outside this package.

``StaticEvidenceProvider`` answers from in-memory tables and is used for
replaying recorded evidence and in tests.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from .enums import EvidenceKind
from .evidence import Evidence, create_evidence


class EvidenceProvider(ABC):
    """Source of evidence about a codebase."""

    @abstractmethod
    def evidence_for(self, file_path: str, symbol: str | None = None) -> list[Evidence]:
        """
        Evidence about a file, or about ``symbol`` inside that file.

        Implementations report absence as negative evidence
        (``file-not-found`` / ``function-not-found``) rather than raising.
        """

    def search(self, keyword: str) -> list[Evidence]:
        """Weak evidence for a keyword when a requirement has no pointers."""
        return []

    def test_evidence(self, file_path: str) -> list[Evidence]:
        """Evidence about tests covering ``file_path``."""
        return []


class StaticEvidenceProvider(EvidenceProvider):
    """
    Evidence provider backed by dictionaries.

    Args:
        files: file path -> evidence for the file itself
        symbols: (file path, symbol) -> evidence for that symbol
        keywords: keyword -> number of files whose name matches it
        tests: file path -> test file covering it
    """

    def __init__(
        self,
        files: dict[str, list[Evidence]] | None = None,
        symbols: dict[tuple[str, str], list[Evidence]] | None = None,
        keywords: dict[str, int] | None = None,
        tests: dict[str, str] | None = None,
    ):
        self.files = files or {}
        self.symbols = symbols or {}
        self.keywords = keywords or {}
        self.tests = tests or {}

    def evidence_for(self, file_path: str, symbol: str | None = None) -> list[Evidence]:
        if symbol is None:
            if file_path in self.files:
                return list(self.files[file_path])
            return [
                create_evidence(
                    EvidenceKind.FILE_NOT_FOUND, f"File not found: {file_path}", location=file_path
                )
            ]

        key = (file_path, symbol)
        if key in self.symbols:
            return list(self.symbols[key])
        return [
            create_evidence(
                EvidenceKind.FUNCTION_NOT_FOUND,
                f"Function {symbol} not found",
                location=file_path,
            )
        ]

    def search(self, keyword: str) -> list[Evidence]:
        count = self.keywords.get(keyword, 0)
        if count <= 0:
            return []
        return [
            create_evidence(
                EvidenceKind.NAME_SIMILARITY_ONLY, f'Found {count} files matching "{keyword}"'
            )
        ]

    def test_evidence(self, file_path: str) -> list[Evidence]:
        test_file = self.tests.get(file_path)
        if test_file:
            return [
                create_evidence(
                    EvidenceKind.TEST_FILE_EXISTS,
                    f"Test file exists for {file_path}",
                    location=test_file,
                )
            ]
        return [
            create_evidence(
                EvidenceKind.TEST_FILE_MISSING, f"No test file for {file_path}", location=file_path
            )
        ]

    @classmethod
    def with_files(cls, paths: Iterable[str]) -> "StaticEvidenceProvider":
        """Provider where each path exists with no further detail."""
        return cls(
            files={
                path: [
                    create_evidence(
                        EvidenceKind.EXACT_FUNCTION_MATCH,
                        f"File exists: {path}",
                        location=path,
                        confidence_impact=30,
                    )
                ]
                for path in paths
            }
        )
