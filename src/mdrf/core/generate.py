"""Document -> MDRF text: validation and canonical emission"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

import pydantic

from mdrf.core.bridge import DEFAULT_CODEC, YamlCodec, decode_mapping
from mdrf.core.models import (
    MDRF_VERSION, VERSION_KEY, Comment, Document, File, FileStatus, GenerationOptions, Group, Thread,
)
from mdrf.errors import ValidationError


logger = logging.getLogger(__name__)

STATUS_SUFFIX = {
    FileStatus.renamed: " (Renamed)",
    FileStatus.moved: " (Moved)",
    FileStatus.removed: " (Removed)",
}


def _describe(error: dict) -> str:
    loc = ".".join(str(part) for part in error["loc"])
    return f"{loc}: {error['msg']}" if loc else error["msg"]


def validate_document(value: Any, options: GenerationOptions) -> Document:
    """Check the full shape of value before anything is emitted.

    Accepts a Document or a plain mapping; raises ValidationError listing every problem.
    """
    if isinstance(value, Document):
        doc = value
    elif isinstance(value, Mapping):
        try:
            doc = Document.model_validate(dict(value))
        except pydantic.ValidationError as e:
            raise ValidationError([_describe(err) for err in e.errors()]) from e
    else:
        raise ValidationError(f"document must be a mapping, got {type(value).__name__}")

    if not options.auto_numbering:
        problems = [
            f"groups.{g}.files.{f}.threads.{t}.thread_number: must be a positive integer when auto_numbering is off"
            for g, group in enumerate(doc.groups)
            for f, file in enumerate(group.files)
            for t, thread in enumerate(file.threads)
            if thread.thread_number is None or thread.thread_number < 1
        ]
        if problems:
            raise ValidationError(problems)
    return doc


class _Emitter:
    """Collects output lines for one generation call."""

    def __init__(self, options: GenerationOptions, codec: YamlCodec):
        self.options = options
        self.codec = codec
        self.lines: list[str] = []

    def yaml(self, value: Any) -> str:
        return self.codec.encode(value, self.options.yaml_indent).strip()

    def metadata(self, key: str, value: Optional[dict[str, Any]]) -> None:
        if value:
            self.lines.extend(["```yaml", self.yaml({key: value}), "```"])

    def document(self, doc: Document) -> None:
        front_matter = {**doc.front_matter, VERSION_KEY: MDRF_VERSION}
        self.lines.extend([f"# {doc.title}", "", "---", self.yaml(front_matter), "---"])
        for group in doc.groups:
            self.lines.append("")
            self.group(group)

    def group(self, group: Group) -> None:
        self.lines.append(f"## {group.type}: {group.name_id}")
        self.metadata("group_metadata", group.group_metadata)
        for file in group.files:
            self.lines.append("")
            self.file(file)

    def file(self, file: File) -> None:
        self.lines.append(f"### {file.path}{STATUS_SUFFIX.get(file.status, '')}")
        self.metadata("metadata", file.metadata)
        self.lines.extend(["**Diff:**", "```diff", file.diff, "```"])
        for position, thread in enumerate(file.threads, start=1):
            self.lines.append("")
            self.thread(thread, position if self.options.auto_numbering else thread.thread_number)

    def thread(self, thread: Thread, number: int) -> None:
        heading = f"#### Thread {number}"
        if thread.line_number is not None and thread.line_number >= 1:
            heading += f" on Line {thread.line_number}"
        self.lines.append(heading)
        self.metadata("thread_meta", thread.thread_meta)
        for position, comment in enumerate(thread.comments, start=1):
            self.comment(comment, f"{number}.{position}" if self.options.auto_numbering else comment.id)

    def comment(self, comment: Comment, label: Optional[str]) -> None:
        bracket = f"[{label}] " if label else ""
        self.lines.append(f"##### {bracket}{comment.username} ({comment.timestamp})")
        if comment.reply_to:
            self.lines.append(f":reply_to[{comment.reply_to}]")
        self.lines.append(comment.body)

    def text(self) -> str:
        return "\n".join(self.lines).rstrip("\n") + "\n"


def generate_from_object(
    document: Any,
    options: Optional[GenerationOptions] = None,
    codec: YamlCodec = DEFAULT_CODEC,
    ) -> str:
    """Render a Document (or an equivalent mapping) as canonical MDRF text."""
    options = options or GenerationOptions()
    doc = validate_document(document, options)
    emitter = _Emitter(options, codec)
    emitter.document(doc)
    logger.debug("Generated MDRF for %r (%d line(s), auto_numbering=%s)",
                 doc.title, len(emitter.lines), options.auto_numbering)
    return emitter.text()


def generate_from_yaml(
    text: str,
    options: Optional[GenerationOptions] = None,
    codec: YamlCodec = DEFAULT_CODEC,
    ) -> str:
    """Decode an object-model YAML document, then render it as MDRF text.

    Malformed YAML raises DecodeError; a decodable but invalid object raises ValidationError.
    """
    if not isinstance(text, str):
        raise ValidationError(f"YAML input must be text, got {type(text).__name__}")
    return generate_from_object(decode_mapping(text, codec), options, codec)
