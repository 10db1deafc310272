"""Shared fixtures for core unit tests"""

import pytest


MINIMAL_MDRF = """\
# T
---
mdrf_version: 3.0
---
## review: r1
### a.txt
**Diff:**
```diff
+x
```
#### Thread 1
##### alice (2024-01-01T00:00:00Z)
hello
"""

SAMPLE_MDRF = """\
# Review of feature X

---
mdrf_version: 3.0
author: bob
---

## pull_request: PR-42
```yaml
group_metadata:
  url: https://example.com/pr/42
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

 context
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

Second paragraph.

### docs/old.md (Renamed)
```yaml
metadata:
  file_path: docs/old.md
  old_path: docs/older.md
```
**Diff:**
```diff
```

#### Thread 3
##### carol (2024-02-02T00:00:00Z)
LGTM

## issue: ISSUE-7

### removed.txt (Removed)
**Diff:**
```diff
-gone
```
"""


@pytest.fixture(name="minimal_text")
def minimal_text_fixture():
    return MINIMAL_MDRF


@pytest.fixture(name="sample_text")
def sample_text_fixture():
    return SAMPLE_MDRF
