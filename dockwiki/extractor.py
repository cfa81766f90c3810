"""Line-based heuristic that finds functions and their leading comments."""

from __future__ import annotations

import re
from typing import List

from .errors import ExtractionFailed
from .models import FunctionRecord

_BLOCK_OPEN = re.compile(r'^(/\*\*|/\*|"""|\'\'\')')
_BLOCK_CLOSE = re.compile(r'(\*/|"""|\'\'\')$')
_COMMENT_MARKERS = re.compile(r"^(?://+|#+|\*+)\s?")
_SIGNATURE = re.compile(
    r"(?:\b(?:function|def)|\b(?P<prefix>\w+))\s+(?P<name>\w+)\s*\((?P<params>.*?)\)"
)
_NOT_DECLARATIONS = {"return", "new", "await", "yield", "throw", "typeof", "case", "else", "in", "of"}
_CONTROL_FLOW = {"if", "for", "while", "switch", "catch", "with", "elif"}
_DOCSTRING_QUOTES = {'"""', "'''"}


class FunctionRecordExtractor:
    """Produces candidate ``FunctionRecord`` entries for a source file.

    This is a deliberately small heuristic: block comments and line comments
    accumulate into a pending description, a recognised signature opens a new
    record carrying that description, and the lines that follow make up the
    record's code span until the next signature.
    """

    def extract(self, path: str, content: str | bytes) -> List[FunctionRecord]:
        text = self._decode(path, content)
        records: List[FunctionRecord] = []
        code_lines: List[str] = []
        pending_doc: List[str] = []
        docstring: List[str] | None = None
        in_comment = False

        for raw_line in text.splitlines():
            line = raw_line.strip()

            if not in_comment and _BLOCK_OPEN.match(line):
                # A quoted block directly under a signature documents that signature.
                if line[:3] in _DOCSTRING_QUOTES and len(code_lines) == 1 and not records[-1].description:
                    docstring = []
                target = pending_doc if docstring is None else docstring
                remainder = _BLOCK_OPEN.sub("", line, count=1).strip()
                if remainder and _BLOCK_CLOSE.search(remainder):
                    target.append(_BLOCK_CLOSE.sub("", remainder).strip())
                    if docstring is not None:
                        records[-1].description = _join(docstring)
                        docstring = None
                    continue
                in_comment = True
                if remainder:
                    target.append(self._clean_comment(remainder))
                continue
            if in_comment:
                target = pending_doc if docstring is None else docstring
                if _BLOCK_CLOSE.search(line):
                    in_comment = False
                    closing = _BLOCK_CLOSE.sub("", line).strip()
                    if closing:
                        target.append(self._clean_comment(closing))
                    if docstring is not None:
                        records[-1].description = _join(docstring)
                        docstring = None
                    continue
                target.append(self._clean_comment(line))
                continue
            if line.startswith("//") or line.startswith("#"):
                pending_doc.append(self._clean_comment(line))
                continue

            match = self._match_signature(line)
            if match is not None:
                if records:
                    records[-1].code = "\n".join(code_lines).strip()
                name, params = match
                records.append(
                    FunctionRecord(
                        name=name,
                        parameters=params,
                        description=_join(pending_doc),
                    )
                )
                pending_doc = []
                code_lines = []

            if records:
                code_lines.append(line)

        if records:
            records[-1].code = "\n".join(code_lines).strip()
        return records

    @staticmethod
    def _decode(path: str, content: str | bytes) -> str:
        if isinstance(content, str):
            return content
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionFailed(path, "file is not valid UTF-8") from exc

    @staticmethod
    def _clean_comment(line: str) -> str:
        return _COMMENT_MARKERS.sub("", line).strip()

    @staticmethod
    def _match_signature(line: str) -> tuple[str, List[str]] | None:
        match = _SIGNATURE.search(line)
        if match is None:
            return None
        name = match.group("name")
        if match.group("prefix") in _NOT_DECLARATIONS or name in _CONTROL_FLOW:
            return None
        params = [param.strip() for param in match.group("params").split(",")]
        return name, [param for param in params if param]


def _join(parts: List[str]) -> str:
    return "\n".join(part for part in parts if part).strip()


__all__ = ["FunctionRecordExtractor"]
