from __future__ import annotations

import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set
from uuid import uuid4

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from pom_studio.errors import NotFoundError
from pom_studio.models import Locator, LocatorType, PageObject, TestCase, TestCaseStep, TestData
from pom_studio.seed import seed_pages, seed_test_cases, seed_test_data


PAGES = "pages"
TEST_DATA = "test_data"
TEST_CASES = "test_cases"

# storage key per collection; bump the suffix when the document shape changes
STORAGE_KEYS = {
    PAGES: "pages_v1",
    TEST_DATA: "testdata_v1",
    TEST_CASES: "testcases_v1",
}

_ADAPTERS = {
    PAGES: TypeAdapter(List[PageObject]),
    TEST_DATA: TypeAdapter(List[TestData]),
    TEST_CASES: TypeAdapter(List[TestCase]),
}

_SEEDS = {
    PAGES: seed_pages,
    TEST_DATA: seed_test_data,
    TEST_CASES: seed_test_cases,
}

Listener = Callable[[str], None]


class StoreBackend(ABC):
    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored document for `key`, or None if there is none."""
        raise NotImplementedError

    @abstractmethod
    def write(self, key: str, text: str) -> None:
        raise NotImplementedError


class MemoryBackend(StoreBackend):
    def __init__(self, documents: Optional[Dict[str, str]] = None) -> None:
        self.documents: Dict[str, str] = dict(documents or {})

    def read(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    def write(self, key: str, text: str) -> None:
        self.documents[key] = text


class FileBackend(StoreBackend):
    """One `<key>.json` file per collection under `directory`."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)


def _slug(name: str) -> str:
    # ids only hold [a-z0-9-]; "::" would break catalog keys
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "page"


def _load_collection(backend: StoreBackend, collection: str) -> list:
    key = STORAGE_KEYS[collection]
    try:
        raw = backend.read(key)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Reading {key} failed ({e}); using seed data")
        return _SEEDS[collection]()
    if raw is None:
        logger.debug(f"No stored {key}; using seed data")
        return _SEEDS[collection]()
    try:
        return _ADAPTERS[collection].validate_json(raw)
    except ValidationError as e:
        logger.debug(f"Stored {key} is unreadable ({e.error_count()} errors); using seed data")
        return _SEEDS[collection]()


class PageStore:
    """In-memory pages, test data and test cases with explicit persistence.

    Every mutation goes through a method on this class. Listeners registered
    with `subscribe` are told which collection changed. Nothing is written
    until `save()` is called, unless the store was built with `autosave=True`,
    in which case each mutation (or each `transaction()` block) is saved as
    soon as it completes. Saves are per collection, last writer wins.
    """

    def __init__(
        self,
        pages: Optional[List[PageObject]] = None,
        test_data: Optional[List[TestData]] = None,
        test_cases: Optional[List[TestCase]] = None,
        backend: Optional[StoreBackend] = None,
        autosave: bool = False,
    ) -> None:
        self.pages: List[PageObject] = list(pages or [])
        self.test_data: List[TestData] = list(test_data or [])
        self.test_cases: List[TestCase] = list(test_cases or [])
        self.backend = backend
        self.autosave = autosave
        self._listeners: List[Listener] = []
        self._dirty: Set[str] = set()
        self._pending: Set[str] = set()
        self._depth = 0

    @classmethod
    def load(cls, backend: StoreBackend, autosave: bool = False) -> "PageStore":
        store = cls(
            pages=_load_collection(backend, PAGES),
            test_data=_load_collection(backend, TEST_DATA),
            test_cases=_load_collection(backend, TEST_CASES),
            backend=backend,
            autosave=autosave,
        )
        logger.debug(
            f"Store loaded: {len(store.pages)} pages, {len(store.test_data)} test data, "
            f"{len(store.test_cases)} test cases"
        )
        return store

    # ---- subscription / persistence ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def dirty(self) -> Set[str]:
        return set(self._dirty)

    @contextmanager
    def transaction(self) -> Iterator["PageStore"]:
        """Group mutations: listeners and autosave fire once, when the block exits."""
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._flush()

    def save(self) -> None:
        if self.backend is None:
            raise RuntimeError("PageStore has no backend to save to")
        for collection in sorted(self._dirty):
            items = getattr(self, collection)
            text = _ADAPTERS[collection].dump_json(items, by_alias=True, exclude_none=True, indent=2)
            self.backend.write(STORAGE_KEYS[collection], text.decode("utf-8"))
            logger.debug(f"Saved {STORAGE_KEYS[collection]} ({len(items)} items)")
        self._dirty.clear()

    def _changed(self, collection: str) -> None:
        self._dirty.add(collection)
        self._pending.add(collection)
        if self._depth == 0:
            self._flush()

    def _flush(self) -> None:
        pending, self._pending = self._pending, set()
        if not pending:
            return
        if self.autosave and self.backend is not None:
            self.save()
        for collection in sorted(pending):
            for listener in list(self._listeners):
                listener(collection)

    def replace(self, collection: str, items: list) -> None:
        """Swap a whole collection for `items` (validated documents or models)."""
        setattr(self, collection, _ADAPTERS[collection].validate_python(items))
        self._changed(collection)

    # ---- pages ----

    def get_page(self, page_id: str) -> Optional[PageObject]:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def _page(self, page_id: str) -> PageObject:
        page = self.get_page(page_id)
        if page is None:
            raise NotFoundError("Page", page_id)
        return page

    def add_page(self, name: str) -> PageObject:
        page = PageObject(
            id=f"{_slug(name)}-{uuid4().hex[:8]}",
            name=name,
            locators=[],
            generated_methods="",
        )
        self.pages.append(page)
        self._changed(PAGES)
        return page

    def update_page_name(self, page_id: str, name: str) -> PageObject:
        page = self._page(page_id)
        page.name = name
        self._changed(PAGES)
        return page

    def delete_page(self, page_id: str) -> None:
        # test case steps that point at the page are left dangling
        page = self._page(page_id)
        self.pages.remove(page)
        self._changed(PAGES)

    def update_page_methods(self, page_id: str, methods: str) -> PageObject:
        page = self._page(page_id)
        page.generated_methods = methods
        self._changed(PAGES)
        return page

    def append_page_methods(self, page_id: str, methods: str) -> PageObject:
        page = self._page(page_id)
        existing = page.generated_methods
        return self.update_page_methods(page_id, f"{existing}\n\n{methods}" if existing else methods)

    def update_page_source(self, page_id: str, html: str) -> PageObject:
        page = self._page(page_id)
        page.page_source = html
        self._changed(PAGES)
        return page

    def update_page_url(self, page_id: str, url: str) -> PageObject:
        page = self._page(page_id)
        page.page_url = url
        self._changed(PAGES)
        return page

    # ---- locators ----

    def add_locator(self, page_id: str, name: str, type: LocatorType, value: str) -> Locator:
        page = self._page(page_id)
        locator = Locator(id=uuid4().hex, name=name, type=type, value=value)
        page.locators.append(locator)
        self._changed(PAGES)
        return locator

    def update_locator(self, page_id: str, locator_id: str, **changes) -> Locator:
        page = self._page(page_id)
        locator = page.find_locator(locator_id)
        if locator is None:
            raise NotFoundError("Locator", locator_id)
        unknown = set(changes) - {"name", "type", "value"}
        if unknown:
            raise ValueError(f"Cannot update locator fields: {', '.join(sorted(unknown))}")
        updated = Locator.model_validate({**locator.model_dump(), **changes})
        page.locators[page.locators.index(locator)] = updated
        self._changed(PAGES)
        return updated

    def delete_locator(self, page_id: str, locator_id: str) -> None:
        page = self._page(page_id)
        locator = page.find_locator(locator_id)
        if locator is None:
            raise NotFoundError("Locator", locator_id)
        page.locators.remove(locator)
        self._changed(PAGES)

    # ---- test data ----

    def _test_data(self, data_id: str) -> TestData:
        for item in self.test_data:
            if item.id == data_id:
                return item
        raise NotFoundError("Test data", data_id)

    def add_test_data(self, key: str, value: str, scope: str = "global") -> TestData:
        item = TestData(id=uuid4().hex, key=key, value=value, scope=scope)
        self.test_data.append(item)
        self._changed(TEST_DATA)
        return item

    def update_test_data(self, data_id: str, **changes) -> TestData:
        item = self._test_data(data_id)
        unknown = set(changes) - {"key", "value", "scope"}
        if unknown:
            raise ValueError(f"Cannot update test data fields: {', '.join(sorted(unknown))}")
        updated = TestData.model_validate({**item.model_dump(), **changes})
        self.test_data[self.test_data.index(item)] = updated
        self._changed(TEST_DATA)
        return updated

    def delete_test_data(self, data_id: str) -> None:
        self.test_data.remove(self._test_data(data_id))
        self._changed(TEST_DATA)

    def test_data_for(self, page_id: Optional[str] = None) -> List[TestData]:
        """Global entries plus, when `page_id` is given, the ones scoped to that page."""
        return [d for d in self.test_data if d.scope == "global" or (page_id and d.scope == page_id)]

    # ---- test cases ----

    def get_test_case(self, case_id: str) -> Optional[TestCase]:
        for tc in self.test_cases:
            if tc.id == case_id:
                return tc
        return None

    def _test_case(self, case_id: str) -> TestCase:
        tc = self.get_test_case(case_id)
        if tc is None:
            raise NotFoundError("Test case", case_id)
        return tc

    def add_test_case(self, name: str, steps: List[TestCaseStep]) -> TestCase:
        tc = TestCase(id=f"tc-{uuid4().hex[:8]}", name=name, steps=list(steps))
        self.test_cases.append(tc)
        self._changed(TEST_CASES)
        return tc

    def update_test_case(self, case_id: str, name: str, steps: List[TestCaseStep]) -> TestCase:
        # full replacement, previously saved code is dropped
        tc = self._test_case(case_id)
        updated = TestCase(id=case_id, name=name, steps=list(steps))
        self.test_cases[self.test_cases.index(tc)] = updated
        self._changed(TEST_CASES)
        return updated

    def save_test_case_code(self, case_id: str, code: str) -> TestCase:
        tc = self._test_case(case_id)
        tc.generated_code = code
        self._changed(TEST_CASES)
        return tc

    def delete_test_case(self, case_id: str) -> None:
        self.test_cases.remove(self._test_case(case_id))
        self._changed(TEST_CASES)
