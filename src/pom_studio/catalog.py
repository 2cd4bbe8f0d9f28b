from __future__ import annotations
import re
from typing import Iterable, List, Tuple
from uuid import uuid4

from pydantic import BaseModel

from pom_studio.models import PageObject, TestCaseStep


# Textual scan, not a parser: non-void, non-public or otherwise different
# signatures are skipped.
_METHOD_RE = re.compile(r"public\s+void\s+([a-zA-Z0-9_]+)\s*\([^)]*\)")

KEY_SEP = "::"


class CatalogEntry(BaseModel):
    page_id: str
    page_name: str
    method_name: str

    @property
    def key(self) -> str:
        return KEY_SEP.join([self.page_id, self.page_name, self.method_name])

    @property
    def label(self) -> str:
        return f"{self.page_name}: {self.method_name}"


def extract_method_names(methods_text: str | None) -> List[str]:
    if not methods_text:
        return []
    return _METHOD_RE.findall(methods_text)


def build_method_catalog(pages: Iterable[PageObject]) -> List[CatalogEntry]:
    entries: List[CatalogEntry] = []
    for page in pages:
        for name in extract_method_names(page.generated_methods):
            entries.append(CatalogEntry(page_id=page.id, page_name=page.name, method_name=name))
    return entries


def parse_step_key(key: str) -> Tuple[str, str, str]:
    """Split "<pageId>::<pageName>::<methodName>" back into its parts."""
    page_id, sep, rest = key.partition(KEY_SEP)
    page_name, sep2, method_name = rest.rpartition(KEY_SEP)
    if not sep or not sep2 or not method_name:
        raise ValueError(f"Invalid method key: {key!r}")
    return page_id, page_name, method_name


def steps_from_keys(keys: Iterable[str]) -> List[TestCaseStep]:
    steps: List[TestCaseStep] = []
    for key in keys:
        page_id, page_name, method_name = parse_step_key(key)
        steps.append(TestCaseStep(
            id=f"step-{uuid4().hex[:12]}",
            page_id=page_id,
            page_name=page_name,
            method_name=method_name,
        ))
    return steps
