"""MDRF text -> Document: the heading-driven structural parser"""

import logging
import re
from typing import Any, NoReturn, Optional

import pydantic

from mdrf.core.bridge import DEFAULT_CODEC, YamlCodec, read_optional_metadata
from mdrf.core.lines import LineCursor, read_fenced_block, split_lines
from mdrf.core.models import MDRF_VERSION, VERSION_KEY, Document, FileStatus, is_supported_version
from mdrf.errors import DecodeError


logger = logging.getLogger(__name__)

H1_RE = re.compile(r'# +(.+)')
H2_RE = re.compile(r'##\s+([^:]+):\s+(.+)')
H3_RE = re.compile(r'###\s+(.+?)(?:\s+\((Renamed|Moved|Removed)\))?', re.IGNORECASE)
H4_RE = re.compile(r'####\s+Thread\s+([0-9]+)(?:\s+on\s+Line\s+([0-9]+))?', re.IGNORECASE)
H5_RE = re.compile(r'#####\s+(?:\[([^\]]+)\]\s+)?([^\s(]+)\s+\((.+)\)')
DIFF_MARKER_RE = re.compile(r'\*\*Diff:\*\*', re.IGNORECASE)
REPLY_TO_RE = re.compile(r':reply_to\[([^\]]+)\]')
TIMESTAMP_RE = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})')
BODY_END_RE = re.compile(r'#{2,5}\s')
BODY_H1_RE = re.compile(r'#\s')

FRONT_MATTER_DELIMITER = '---'
DIFF_MARKER = '**Diff:**'
PATH_STATUSES = {FileStatus.renamed.value, FileStatus.moved.value}


def is_iso_timestamp(value: str) -> bool:
    """True when value is YYYY-MM-DDTHH:MM:SS[.fraction] followed by Z or ±HH:MM."""
    return TIMESTAMP_RE.fullmatch(value) is not None


class _ParseState:
    """Cursor plus the open group/file/thread for one parse call.

    Opening a heading clears every deeper pointer.
    """

    def __init__(self, lines: list[str], codec: YamlCodec):
        self.cursor = LineCursor(lines)
        self.codec = codec
        self.groups: list[dict[str, Any]] = []
        self.group: Optional[dict[str, Any]] = None
        self.file: Optional[dict[str, Any]] = None
        self.thread: Optional[dict[str, Any]] = None

    def fail(self, reason: str, line: Optional[int] = None) -> NoReturn:
        raise self.cursor.error(reason, line)

    def metadata(self, key: str) -> Optional[Any]:
        return read_optional_metadata(self.cursor, key, self.codec)

    # --- headings ---

    def open_group(self, line: str) -> None:
        m = H2_RE.fullmatch(line)
        if not m:
            self.fail(f"Invalid H2 format: {line!r}")
        name_id = m.group(2).strip()
        if not m.group(1).strip():
            self.fail("H2 group type cannot be empty.")
        if not name_id:
            self.fail("H2 group name_id cannot be empty.")
        group: dict[str, Any] = {"type": m.group(1).strip(), "name_id": name_id, "files": []}
        self.cursor.advance()

        meta = self.metadata("group_metadata")
        if meta is not None:
            if not isinstance(meta, dict):
                self.fail("'group_metadata' must be a mapping.")
            if meta:
                group["group_metadata"] = meta

        self.groups.append(group)
        self.group, self.file, self.thread = group, None, None

    def open_file(self, line: str) -> None:
        if self.group is None:
            self.fail("Found H3 without a parent H2 group.")
        m = H3_RE.fullmatch(line)
        if not m:
            self.fail(f"Invalid H3 format: {line!r}")
        path = m.group(1).strip()
        if not path:
            self.fail("H3 file path cannot be empty.")
        status = m.group(2).lower() if m.group(2) else FileStatus.modified.value
        file: dict[str, Any] = {"path": path, "status": status}
        self.cursor.advance()

        meta_line = self.cursor.line_number
        meta = self.metadata("metadata")
        if meta is not None:
            self._apply_file_metadata(file, meta, meta_line)

        self._read_diff(file)
        file["threads"] = []
        self.group["files"].append(file)
        self.file, self.thread = file, None

    def _apply_file_metadata(self, file: dict[str, Any], meta: Any, line: int) -> None:
        if not isinstance(meta, dict):
            self.fail("File 'metadata' must be a mapping.", line)
        if not meta.get("file_path"):
            self.fail("File metadata block must contain 'file_path' key.", line)
        if meta["file_path"] != file["path"]:
            self.fail(f"File metadata 'file_path' ({meta['file_path']!r}) does not match H3 path ({file['path']!r}).", line)
        file["metadata"] = meta

        change_type = meta.get("change_type")
        if change_type:
            if not isinstance(change_type, str) or change_type not in FileStatus.__members__:
                allowed = ", ".join(FileStatus.__members__)
                self.fail(f"Unknown change_type {change_type!r}; expected one of: {allowed}.", line)
            file["status"] = change_type
        if meta.get("old_path") and file["status"] in PATH_STATUSES:
            if not isinstance(meta["old_path"], str):
                self.fail("File metadata 'old_path' must be text.", line)
            file["old_path"] = meta["old_path"]

    def _read_diff(self, file: dict[str, Any]) -> None:
        cursor = self.cursor
        if cursor.at_end():
            self.fail(f"Unexpected end of input after H3, expected '{DIFF_MARKER}'.")
        if not DIFF_MARKER_RE.fullmatch(cursor.peek()):
            self.fail(f"Expected '{DIFF_MARKER}' marker after H3 heading/metadata.")
        cursor.advance()
        if cursor.at_end():
            self.fail(f"Unexpected end of input after '{DIFF_MARKER}', expected diff block.")
        file["diff"] = read_fenced_block(cursor, "diff").content

    def open_thread(self, line: str) -> None:
        if self.file is None:
            self.fail("Found H4 without a parent H3 file.")
        m = H4_RE.fullmatch(line)
        if not m:
            self.fail(f"Invalid H4 format: {line!r}")
        thread_number = int(m.group(1))
        if thread_number < 1:
            self.fail("H4 thread number must be an integer >= 1.")
        thread: dict[str, Any] = {"thread_number": thread_number}
        if m.group(2) is not None:
            line_number = int(m.group(2))
            if line_number < 1:
                self.fail("H4 line number must be an integer >= 1.")
            thread["line_number"] = line_number
        self.cursor.advance()

        meta = self.metadata("thread_meta")
        if meta is not None:
            if not isinstance(meta, dict):
                self.fail("'thread_meta' must be a mapping.")
            if meta:
                thread["thread_meta"] = meta

        thread["comments"] = []
        self.file["threads"].append(thread)
        self.thread = thread

    def open_comment(self, line: str) -> None:
        if self.thread is None:
            self.fail("Found H5 without a parent H4 thread.")
        m = H5_RE.fullmatch(line)
        if not m:
            self.fail(f"Invalid H5 format: {line!r}")
        comment_id, username, timestamp = m.groups()
        if not is_iso_timestamp(timestamp):
            self.fail(f"Invalid ISO 8601 timestamp in H5: {timestamp!r}")
        comment: dict[str, Any] = {}
        if comment_id:
            comment["id"] = comment_id
        comment.update(username=username, timestamp=timestamp)
        self.cursor.advance()

        reply = REPLY_TO_RE.fullmatch(self.cursor.peek() or '')
        if reply:
            comment["reply_to"] = reply.group(1)
            self.cursor.advance()

        comment["body"] = self._read_body()
        self.thread["comments"].append(comment)

    def _read_body(self) -> str:
        cursor = self.cursor
        start = cursor.line_number
        body: list[str] = []
        while not cursor.at_end():
            line = cursor.peek()
            if BODY_END_RE.match(line):
                break
            if BODY_H1_RE.match(line):
                self.fail("H1 (#) heading is not allowed within a comment body.")
            body.append(line)
            cursor.advance()
        text = '\n'.join(body).strip()
        if not text:
            self.fail("Comment body cannot be empty.", start)
        return text


def _read_title(cursor: LineCursor) -> str:
    m = H1_RE.fullmatch(cursor.peek())
    if not m or not m.group(1).strip():
        raise cursor.error("File must start with H1 ('# <title>').")
    cursor.advance()
    return m.group(1).strip()


def _read_front_matter(cursor: LineCursor, codec: YamlCodec) -> dict[str, Any]:
    # the canonical generator puts one blank line between the title and the block
    while not cursor.at_end() and cursor.peek().strip() == '':
        cursor.advance()
    if cursor.at_end():
        raise cursor.error("Missing YAML front matter after H1.")
    if cursor.peek() != FRONT_MATTER_DELIMITER:
        raise cursor.error("H1 must be followed by YAML front matter (---).")

    start = cursor.line_number
    cursor.advance()
    collected: list[str] = []
    while not cursor.at_end():
        line = cursor.peek()
        cursor.advance()
        if line == FRONT_MATTER_DELIMITER:
            break
        collected.append(line)
    else:
        raise cursor.error("YAML front matter block started with --- but was not closed.", start)

    try:
        front_matter = codec.decode('\n'.join(collected))
    except DecodeError as e:
        raise cursor.error(f"Failed to parse YAML front matter: {e.reason}", start) from e
    if not isinstance(front_matter, dict) or not is_supported_version(front_matter.get(VERSION_KEY)):
        raise cursor.error(f"YAML front matter must contain '{VERSION_KEY}: {MDRF_VERSION}'.", start)
    front_matter[VERSION_KEY] = MDRF_VERSION
    return front_matter


def parse_to_object(text: str, codec: YamlCodec = DEFAULT_CODEC) -> Document:
    """Parse MDRF text into a Document. Raises ParseError on the first fault."""
    state = _ParseState(split_lines(text), codec)
    cursor = state.cursor
    title = _read_title(cursor)
    front_matter = _read_front_matter(cursor, codec)

    while not cursor.at_end():
        line = cursor.peek()
        if line.strip() == '':
            cursor.advance()
        elif line.startswith('## '):
            state.open_group(line)
        elif line.startswith('### '):
            state.open_file(line)
        elif line.startswith('#### '):
            state.open_thread(line)
        elif line.startswith('##### '):
            state.open_comment(line)
        else:
            state.fail(f"Unexpected content. Expected H2-H5 heading or end of input, but got: {line[:50]!r}")

    try:
        doc = Document(title=title, front_matter=front_matter, groups=state.groups)
    except pydantic.ValidationError as e:
        raise cursor.error(f"Parsed content does not fit the document model: {e}") from e
    logger.debug("Parsed MDRF document %r with %d group(s)", doc.title, len(doc.groups))
    return doc


def parse_to_yaml(text: str, yaml_indent: int = 2, codec: YamlCodec = DEFAULT_CODEC) -> str:
    """Parse MDRF text and encode the resulting Document as one YAML document."""
    doc = parse_to_object(text, codec)
    return codec.encode(doc.model_dump(mode="json", exclude_none=True), yaml_indent)
