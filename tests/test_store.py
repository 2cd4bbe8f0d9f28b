import json

import pytest
from pydantic import ValidationError

from pom_studio.catalog import build_method_catalog, steps_from_keys
from pom_studio.errors import NotFoundError
from pom_studio.models import TestCaseStep
from pom_studio.store import (
    PAGES,
    STORAGE_KEYS,
    TEST_CASES,
    TEST_DATA,
    FileBackend,
    MemoryBackend,
    PageStore,
)


def test_empty_backend_loads_seed(store):
    assert [p.id for p in store.pages] == ["login-page", "dashboard-page"]
    assert len(store.test_data) == 4
    assert store.test_cases[0].name == "Successful Login"
    assert store.dirty == set()


def test_corrupt_collection_falls_back_to_seed_independently():
    backend = MemoryBackend({
        STORAGE_KEYS[PAGES]: "{not json",
        STORAGE_KEYS[TEST_DATA]: json.dumps([{"id": "d1", "key": "k", "value": "v", "scope": "global"}]),
        STORAGE_KEYS[TEST_CASES]: json.dumps([{"id": 1}]),
    })
    store = PageStore.load(backend)
    assert store.get_page("login-page") is not None
    assert [d.id for d in store.test_data] == ["d1"]
    assert store.test_cases[0].id == "tc-1"


def test_seed_copies_are_independent():
    a = PageStore.load(MemoryBackend())
    b = PageStore.load(MemoryBackend())
    a.delete_page("login-page")
    assert b.get_page("login-page") is not None


def test_mutations_are_not_written_until_save(store, backend):
    store.add_page("Checkout")
    assert backend.writes == []
    assert store.dirty == {PAGES}

    store.save()
    assert backend.writes == [STORAGE_KEYS[PAGES]]
    assert store.dirty == set()


def test_save_round_trip_uses_camel_case_documents(store, backend):
    page = store.add_page("Checkout")
    store.update_page_url(page.id, "https://shop.example/checkout")
    store.save()

    doc = json.loads(backend.documents[STORAGE_KEYS[PAGES]])
    saved = next(p for p in doc if p["id"] == page.id)
    assert saved["pageUrl"] == "https://shop.example/checkout"
    assert saved["generatedMethods"] == ""
    assert "pageSource" not in saved

    reloaded = PageStore.load(backend)
    assert reloaded.pages == store.pages


def test_autosave_writes_each_mutation():
    backend = MemoryBackend()
    store = PageStore.load(backend, autosave=True)
    store.add_test_data("Locale", "en-GB")
    assert STORAGE_KEYS[TEST_DATA] in backend.documents
    assert STORAGE_KEYS[PAGES] not in backend.documents


def test_transaction_notifies_and_saves_once(backend):
    store = PageStore.load(backend, autosave=True)
    seen = []
    store.subscribe(seen.append)

    with store.transaction():
        page = store.add_page("Cart")
        store.add_locator(page.id, "Checkout Button", "id", "checkout")
        store.add_test_data("Coupon", "SAVE10", scope=page.id)
        assert seen == []
        assert backend.writes == []

    assert seen == [PAGES, TEST_DATA]
    assert sorted(backend.writes) == sorted([STORAGE_KEYS[PAGES], STORAGE_KEYS[TEST_DATA]])


def test_unsubscribe(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.add_page("One")
    unsubscribe()
    store.add_page("Two")
    assert seen == [PAGES]


def test_save_without_backend():
    with pytest.raises(RuntimeError):
        PageStore().save()


def test_add_page_derives_id_from_name(store):
    page = store.add_page("My  Checkout Page")
    assert page.id.startswith("my-checkout-page-")
    assert page.locators == []
    assert page.generated_methods == ""
    assert store.add_page("My Checkout Page").id != page.id


def test_update_and_delete_page(store):
    store.update_page_name("dashboard-page", "Home")
    assert store.get_page("dashboard-page").name == "Home"

    store.delete_page("dashboard-page")
    assert store.get_page("dashboard-page") is None
    with pytest.raises(NotFoundError):
        store.delete_page("dashboard-page")


def test_deleting_a_page_leaves_test_case_steps_dangling(store):
    store.delete_page("login-page")
    steps = store.test_cases[0].steps
    assert [s.page_id for s in steps] == ["login-page"] * 3


def test_locator_lifecycle(store):
    loc = store.add_locator("dashboard-page", "Search Box", "name", "q")
    assert store.get_page("dashboard-page").locators[-1] == loc

    updated = store.update_locator("dashboard-page", loc.id, value="query", type="css")
    assert updated.id == loc.id
    assert (updated.name, updated.type, updated.value) == ("Search Box", "css", "query")
    assert store.get_page("dashboard-page").locators[-1] == updated

    store.delete_locator("dashboard-page", loc.id)
    assert store.get_page("dashboard-page").find_locator(loc.id) is None


def test_locator_id_cannot_change(store):
    with pytest.raises(ValueError):
        store.update_locator("login-page", "1", id="99")


def test_locator_type_is_validated(store):
    with pytest.raises(ValidationError):
        store.update_locator("login-page", "1", type="shadowRoot")


def test_unknown_ids_raise_not_found(store):
    with pytest.raises(NotFoundError) as exc:
        store.add_locator("missing", "A", "id", "a")
    assert isinstance(exc.value, KeyError)
    assert str(exc.value) == "Page not found: missing"

    with pytest.raises(NotFoundError):
        store.delete_locator("login-page", "nope")
    with pytest.raises(NotFoundError):
        store.update_test_data("nope", value="x")
    with pytest.raises(NotFoundError):
        store.save_test_case_code("nope", "code")


def test_append_page_methods(store):
    page = store.add_page("Search")
    store.append_page_methods(page.id, "public void a() {}")
    assert store.get_page(page.id).generated_methods == "public void a() {}"

    store.append_page_methods(page.id, "public void b() {}")
    assert store.get_page(page.id).generated_methods == "public void a() {}\n\npublic void b() {}"

    store.update_page_methods(page.id, "")
    assert store.get_page(page.id).generated_methods == ""


def test_page_source(store):
    store.update_page_source("login-page", "<html></html>")
    assert store.get_page("login-page").page_source == "<html></html>"


def test_test_data_scoping(store):
    store.update_test_data("data-4", value="other")
    assert [d.id for d in store.test_data_for()] == ["data-1", "data-2", "data-3"]
    assert [d.id for d in store.test_data_for("login-page")] == ["data-1", "data-2", "data-3", "data-4"]

    store.delete_test_data("data-1")
    assert [d.id for d in store.test_data_for("login-page")] == ["data-2", "data-3", "data-4"]


def test_test_case_lifecycle(store):
    step = TestCaseStep(id="s1", page_id="dashboard-page", page_name="Dashboard", method_name="clickLogoutLink")
    tc = store.add_test_case("Logout", [step])
    assert tc.id.startswith("tc-")

    store.save_test_case_code(tc.id, "// code")
    assert store.get_test_case(tc.id).generated_code == "// code"

    store.update_test_case(tc.id, "Logout twice", [step, step])
    updated = store.get_test_case(tc.id)
    assert updated.name == "Logout twice"
    assert len(updated.steps) == 2
    assert updated.generated_code is None

    store.delete_test_case(tc.id)
    assert store.get_test_case(tc.id) is None


def test_replace_collection(store):
    store.replace(TEST_DATA, [{"id": "x", "key": "k", "value": "v", "scope": "global"}])
    assert [d.id for d in store.test_data] == ["x"]
    assert store.dirty == {TEST_DATA}


def test_file_backend_round_trip(tmp_path):
    store_dir = tmp_path / "store"
    store = PageStore.load(FileBackend(store_dir))
    assert not store_dir.exists()

    store.add_locator("login-page", "Remember Me", "id", "remember")
    store.save()
    assert (store_dir / "pages_v1.json").exists()
    assert not (store_dir / "testdata_v1.json").exists()

    reloaded = PageStore.load(FileBackend(store_dir))
    assert reloaded.get_page("login-page").locators[-1].name == "Remember Me"


def test_undecodable_file_falls_back_to_seed(tmp_path):
    (tmp_path / "pages_v1.json").write_bytes(b"\xff\xfe\x00garbage")
    store = PageStore.load(FileBackend(tmp_path))
    assert [p.id for p in store.pages] == ["login-page", "dashboard-page"]


def test_page_id_keeps_catalog_keys_parseable(store):
    page = store.add_page("Admin::Users")
    assert page.id.startswith("admin-users-")
    store.update_page_methods(page.id, "public void openUser(String id) {}")

    keys = [e.key for e in build_method_catalog(store.pages) if e.page_id == page.id]
    (step,) = steps_from_keys(keys)
    assert (step.page_id, step.page_name, step.method_name) == (page.id, "Admin::Users", "openUser")


def test_slug_of_punctuation_only_name(store):
    assert store.add_page("!!!").id.startswith("page-")
