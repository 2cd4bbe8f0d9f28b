from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Literal, get_args


# ---- locator ----
LocatorType = Literal["id", "name", "className", "tagName", "linkText", "partialLinkText", "css", "xpath"]

LOCATOR_TYPES = get_args(LocatorType)


class _Model(BaseModel):
    # stored documents use camelCase keys (generatedMethods, pageSource, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Locator(_Model):
    id: str
    name: str
    type: LocatorType
    value: str


# ---- page ----
class PageObject(_Model):
    id: str
    name: str
    locators: List[Locator] = Field(default_factory=list)
    generated_methods: Optional[str] = None
    page_source: Optional[str] = None  # saved HTML of the page
    page_url: Optional[str] = None

    def find_locator(self, locator_id: str) -> Optional[Locator]:
        for loc in self.locators:
            if loc.id == locator_id:
                return loc
        return None


# ---- test data ----
class TestData(_Model):
    __test__ = False

    id: str
    key: str
    value: str
    scope: str = "global"  # "global" or a page id


# ---- test cases ----
class TestCaseStep(_Model):
    __test__ = False

    id: str
    page_id: str
    page_name: str  # cached copy, not kept in sync with the page
    method_name: str


class TestCase(_Model):
    __test__ = False

    id: str
    name: str
    steps: List[TestCaseStep] = Field(default_factory=list)
    generated_code: Optional[str] = None
