"""Integration tests for parse -> generate -> parse cycles.

Reference document (review.mdrf)
--------------------------------
Two groups; the first holds a modified file with group/file/thread metadata,
a reply chain and a multi-paragraph body, plus a renamed file with an empty
diff; the second holds a removed file with no threads.

Properties checked:
    round-trip     parse(generate(parse(text))) == parse(text)
    idempotence    parse(generate(doc)) == doc for a hand-built Document
    fixed point    generate(parse(generate(doc))) == generate(doc)
    yaml path      generate_from_yaml(parse_to_yaml(text)) reparses equal
"""

import pytest

from mdrf.core.generate import generate_from_object, generate_from_yaml
from mdrf.core.models import Comment, Document, File, FileStatus, GenerationOptions, Group, Thread
from mdrf.core.parse import parse_to_object, parse_to_yaml


REVIEW_MDRF = """\
# Review of feature X
---
mdrf_version: 3.0
reviewers:
  - alice
  - bob
---
## pull_request: PR-42
```yaml
group_metadata:
  url: https://example.com/pr/42
  labels: [ui, backend]
```
### src/app.py
```yaml
metadata:
  file_path: src/app.py
  language: python
```
**Diff:**
```diff
@@ -1,2 +1,2 @@
-print('a')

+print('b')
```
#### Thread 1 on Line 2
```yaml
thread_meta:
  resolved: false
```
##### [c1] alice (2024-01-01T10:00:00Z)
Why change this?
##### [c2] bob (2024-01-01T11:30:00.123+09:00)
:reply_to[c1]
Because **b** is better.

- reason one
- reason two
#### Thread 2
##### carol (2024-01-02T08:00:00-05:00)
Nit: trailing space.
### docs/new.md (Renamed)
```yaml
metadata:
  file_path: docs/new.md
  old_path: docs/old.md
```
**Diff:**
```diff
```
## issue: ISSUE-7
### removed.txt (Removed)
**Diff:**
```diff
-gone
```
"""


@pytest.fixture(name="document")
def document_fixture():
    """A hand-built Document with explicit, distinct numbering."""
    return Document(
        title="Hand built",
        front_matter={"mdrf_version": "3.0", "project": "demo"},
        groups=[
            Group(
                type="review",
                name_id="r1",
                group_metadata={"owner": "team-a"},
                files=[
                    File(
                        path="lib/core.py",
                        status=FileStatus.moved,
                        old_path="core.py",
                        metadata={"file_path": "lib/core.py", "old_path": "core.py"},
                        diff="-import os\n+import sys",
                        threads=[
                            Thread(thread_number=1, line_number=1, comments=[
                                Comment(id="1.1", username="dan", timestamp="2024-03-01T12:00:00Z", body="Why sys?"),
                                Comment(id="1.2", username="eve", timestamp="2024-03-01T12:05:00+01:00",
                                        reply_to="1.1", body="Needed for argv."),
                            ]),
                            Thread(thread_number=2, thread_meta={"severity": "low"}, comments=[
                                Comment(username="dan", timestamp="2024-03-02T00:00:00Z", body="ok"),
                            ]),
                        ],
                    ),
                    # 'added' has no heading marker; it survives reparsing through change_type
                    File(path="README.md", status=FileStatus.added,
                         metadata={"file_path": "README.md", "change_type": "added"},
                         diff="+# Readme", threads=[]),
                ],
            ),
        ],
    )


def test_round_trip_preserves_structure():
    """Regenerated text reparses to an equal Document."""
    doc = parse_to_object(REVIEW_MDRF)
    assert parse_to_object(generate_from_object(doc)) == doc


def test_round_trip_counts():
    """Nothing is dropped or reordered on the way through."""
    doc = parse_to_object(generate_from_object(parse_to_object(REVIEW_MDRF)))
    pr, issue = doc.groups
    assert [f.path for f in pr.files] == ["src/app.py", "docs/new.md"]
    assert [t.thread_number for t in pr.files[0].threads] == [1, 2]
    assert [c.id for c in pr.files[0].threads[0].comments] == ["c1", "c2"]
    assert pr.files[0].diff == "@@ -1,2 +1,2 @@\n-print('a')\n\n+print('b')"
    assert pr.files[0].threads[0].comments[1].body.endswith("- reason one\n- reason two")
    assert pr.group_metadata == {"url": "https://example.com/pr/42", "labels": ["ui", "backend"]}
    assert issue.files[0].status == FileStatus.removed
    assert doc.front_matter["reviewers"] == ["alice", "bob"]


def test_idempotence(document):
    """A valid Document survives generate -> parse unchanged."""
    assert parse_to_object(generate_from_object(document)) == document


def test_canonical_fixed_point(document):
    """Generating from the reparsed Document yields identical text."""
    text = generate_from_object(document)
    assert generate_from_object(parse_to_object(text)) == text


def test_yaml_path_round_trip():
    """parse_to_yaml output feeds generate_from_yaml without loss."""
    doc = parse_to_object(REVIEW_MDRF)
    yaml_text = parse_to_yaml(REVIEW_MDRF, yaml_indent=4)
    assert parse_to_object(generate_from_yaml(yaml_text)) == doc


def test_auto_numbering_round_trip(document):
    """Auto-numbered output reparses with sequential ids."""
    text = generate_from_object(document, GenerationOptions(auto_numbering=True))
    doc = parse_to_object(text)
    threads = doc.groups[0].files[0].threads
    assert [t.thread_number for t in threads] == [1, 2]
    assert [c.id for c in threads[0].comments] == ["1.1", "1.2"]
    assert threads[1].comments[0].id == "2.1"


def test_empty_metadata_blocks_round_trip():
    """Empty group and thread metadata blocks reparse equal after regeneration."""
    text = """\
# T
---
mdrf_version: 3.0
---
## review: r1
```yaml
group_metadata: {}
```
### a.txt
**Diff:**
```diff
+x
```
#### Thread 1
```yaml
thread_meta: {}
```
##### alice (2024-01-01T00:00:00Z)
hello
"""
    doc = parse_to_object(text)
    assert parse_to_object(generate_from_object(doc)) == doc
