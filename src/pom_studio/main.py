from __future__ import annotations
import argparse
import asyncio
import os
import sys
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import ValidationError

from pom_studio.ai import generate_methods_for_page, suggest_locator_for_page
from pom_studio.catalog import build_method_catalog, steps_from_keys
from pom_studio.codegen import generate_java_code
from pom_studio.errors import NotFoundError, PomStudioError
from pom_studio.forms import LocatorForm, LocatorSuggestionForm, TestCaseForm, TestDataForm, field_errors
from pom_studio.llm.mock import MockProvider
from pom_studio.models import LOCATOR_TYPES, PageObject
from pom_studio.store import FileBackend, PageStore, PAGES, TEST_CASES, TEST_DATA


DEFAULT_STORE_DIR = ".pom_studio"

_LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} | {message}"


def _load_env():
    path = find_dotenv(usecwd=True)
    if path:
        load_dotenv(path)
    else:
        load_dotenv()


def init_logger(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_LOG_FORMAT)


def _get_llm(provider: str):
    if provider == "mock":
        return MockProvider()
    if provider == "openai_compat":
        from pom_studio.llm.openai_compat import OpenAICompatProvider
        return OpenAICompatProvider()
    raise ValueError(f"Unknown provider: {provider}")


def _fail(message: str) -> int:
    print(f"[ERROR] {message}", file=sys.stderr)
    return 1


def _form_failed(exc: ValidationError) -> int:
    for field, msg in field_errors(exc).items():
        print(f"{field}: {msg}", file=sys.stderr)
    return 1


def _require_page(store: PageStore, page_id: str) -> PageObject:
    page = store.get_page(page_id)
    if page is None:
        raise NotFoundError("Page", page_id)
    return page


# ---- commands ----

def cmd_pages(store: PageStore, args) -> int:
    for page in store.pages:
        print(f"{page.id}\t{page.name}\t{len(page.locators)} locators")
    return 0


def cmd_add_page(store: PageStore, args) -> int:
    if not args.name.strip():
        return _fail("Page name is required")
    page = store.add_page(args.name)
    store.save()
    print(f"[OK] Page {page.id} created")
    return 0


def cmd_add_locator(store: PageStore, args) -> int:
    _require_page(store, args.page_id)
    try:
        form = LocatorForm(name=args.name, type=args.type, value=args.value)
    except ValidationError as e:
        return _form_failed(e)
    locator = store.add_locator(args.page_id, form.name, form.type, form.value)
    store.save()
    print(f"[OK] Locator {locator.id} added")
    return 0


def cmd_render(store: PageStore, args) -> int:
    page = _require_page(store, args.page_id)
    code = generate_java_code(page, page.generated_methods)
    if args.out:
        Path(args.out).write_text(code + "\n", encoding="utf-8")
        print(f"[OK] Class written to {args.out}")
    else:
        print(code)
    return 0


def cmd_methods(store: PageStore, args) -> int:
    for entry in build_method_catalog(store.pages):
        print(f"{entry.key}\t{entry.label}")
    return 0


def cmd_generate_methods(store: PageStore, args) -> int:
    _require_page(store, args.page_id)
    if not args.description.strip():
        return _fail("A description is required")
    llm = _get_llm(args.provider)
    result = asyncio.run(generate_methods_for_page(store, args.page_id, args.description, llm))
    if result.error:
        return _fail(result.error)
    store.save()
    print(result.data.methods)
    return 0


def cmd_suggest_locator(store: PageStore, args) -> int:
    page = _require_page(store, args.page_id)
    html = Path(args.html).read_text(encoding="utf-8")
    source = Path(args.source).read_text(encoding="utf-8") if args.source else page.page_source
    try:
        form = LocatorSuggestionForm(url=args.url or page.page_url or "", html=html, page_source=source or "")
    except ValidationError as e:
        return _form_failed(e)

    llm = _get_llm(args.provider)
    result = asyncio.run(suggest_locator_for_page(
        store, args.page_id, form.html, llm, url=args.url or page.page_url, page_source=form.page_source
    ))
    if result.error:
        return _fail(result.error)

    s = result.data
    print(yaml.safe_dump(s.model_dump(by_alias=True), allow_unicode=True, sort_keys=False).rstrip())
    if args.add:
        locator = store.add_locator(args.page_id, args.add, s.locator_type, s.locator)
        print(f"[OK] Locator {locator.id} added")
    store.save()
    return 0


def cmd_add_test_data(store: PageStore, args) -> int:
    try:
        form = TestDataForm(key=args.key, value=args.value, scope=args.scope)
    except ValidationError as e:
        return _form_failed(e)
    item = store.add_test_data(form.key, form.value, form.scope)
    store.save()
    print(f"[OK] Test data {item.id} added")
    return 0


def cmd_add_test_case(store: PageStore, args) -> int:
    try:
        form = TestCaseForm(name=args.name, steps=args.steps)
    except ValidationError as e:
        return _form_failed(e)
    tc = store.add_test_case(form.name, steps_from_keys(form.steps))
    store.save()
    print(f"[OK] Test case {tc.id} created with {len(tc.steps)} steps")
    return 0


def cmd_test_cases(store: PageStore, args) -> int:
    for tc in store.test_cases:
        print(f"{tc.id}\t{tc.name}")
        for i, step in enumerate(tc.steps, 1):
            print(f"  {i}. {step.page_name}: {step.method_name}")
    return 0


def cmd_export(store: PageStore, args) -> int:
    doc = {
        PAGES: [p.to_document() for p in store.pages],
        TEST_DATA: [d.to_document() for d in store.test_data],
        TEST_CASES: [tc.to_document() for tc in store.test_cases],
    }
    text = yaml.safe_dump(doc, allow_unicode=True, sort_keys=False)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"[OK] Store exported to {args.out}")
    else:
        print(text)
    return 0


def cmd_import(store: PageStore, args) -> int:
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        return _fail(f"Cannot parse {args.file}: {e}")
    if not isinstance(doc, dict):
        return _fail("Import file must be a mapping of collections")

    collections = [c for c in (PAGES, TEST_DATA, TEST_CASES) if c in doc]
    with store.transaction():
        for collection in collections:
            store.replace(collection, doc[collection] or [])
    store.save()
    print(f"[OK] Imported {', '.join(collections) or 'nothing'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pom-studio", description="Maintain Selenium page objects and test cases")
    p.add_argument("--store-dir", default=None, help="Store directory (default: $POM_STUDIO_HOME or .pom_studio)")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("pages", help="List pages")
    sp.set_defaults(func=cmd_pages)

    sp = sub.add_parser("add-page", help="Create a page")
    sp.add_argument("name")
    sp.set_defaults(func=cmd_add_page)

    sp = sub.add_parser("add-locator", help="Add a locator to a page")
    sp.add_argument("page_id")
    sp.add_argument("--name", required=True)
    sp.add_argument("--type", default="id", choices=LOCATOR_TYPES)
    sp.add_argument("--value", required=True)
    sp.set_defaults(func=cmd_add_locator)

    sp = sub.add_parser("render", help="Print the Java page object class")
    sp.add_argument("page_id")
    sp.add_argument("--out", default=None, help="Write to this file instead of stdout")
    sp.set_defaults(func=cmd_render)

    sp = sub.add_parser("methods", help="List the method catalog")
    sp.set_defaults(func=cmd_methods)

    sp = sub.add_parser("generate-methods", help="Generate methods with the LLM and append them to a page")
    sp.add_argument("page_id")
    sp.add_argument("description")
    sp.add_argument("--provider", default="mock", choices=["mock", "openai_compat"])
    sp.set_defaults(func=cmd_generate_methods)

    sp = sub.add_parser("suggest-locator", help="Ask the LLM for the best locator of an element")
    sp.add_argument("page_id")
    sp.add_argument("--html", required=True, help="File holding the element HTML")
    sp.add_argument("--url", default=None, help="Page URL (default: the page's saved URL)")
    sp.add_argument("--source", default=None, help="File holding the page source (default: saved source)")
    sp.add_argument("--provider", default="mock", choices=["mock", "openai_compat"])
    sp.add_argument("--add", default=None, metavar="NAME", help="Add the suggestion as a locator with this name")
    sp.set_defaults(func=cmd_suggest_locator)

    sp = sub.add_parser("add-test-data", help="Add a test data entry")
    sp.add_argument("key")
    sp.add_argument("value")
    sp.add_argument("--scope", default="global", help="'global' or a page id")
    sp.set_defaults(func=cmd_add_test_data)

    sp = sub.add_parser("add-test-case", help="Create a test case from method catalog keys")
    sp.add_argument("name")
    sp.add_argument("steps", nargs="*", help="Keys as printed by `methods`")
    sp.set_defaults(func=cmd_add_test_case)

    sp = sub.add_parser("test-cases", help="List test cases")
    sp.set_defaults(func=cmd_test_cases)

    sp = sub.add_parser("export", help="Dump all collections as YAML")
    sp.add_argument("--out", default=None)
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("import", help="Replace collections from a YAML export")
    sp.add_argument("file")
    sp.set_defaults(func=cmd_import)

    return p


def main(argv: list[str] | None = None) -> int:
    _load_env()
    args = build_parser().parse_args(argv)
    init_logger("DEBUG" if args.verbose else os.getenv("POM_STUDIO_LOG_LEVEL", "WARNING"))

    store_dir = args.store_dir or os.getenv("POM_STUDIO_HOME", DEFAULT_STORE_DIR)
    store = PageStore.load(FileBackend(store_dir))
    try:
        return args.func(store, args)
    except (PomStudioError, ValueError, OSError) as e:
        return _fail(str(e))


if __name__ == "__main__":
    sys.exit(main())
