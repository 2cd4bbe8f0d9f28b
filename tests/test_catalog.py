import pytest

from pom_studio.catalog import (
    CatalogEntry,
    build_method_catalog,
    extract_method_names,
    parse_step_key,
    steps_from_keys,
)
from pom_studio.models import PageObject
from pom_studio.seed import seed_pages


def test_only_public_void_methods_are_listed():
    text = """
public void clickLoginButton() {
    driver.findElement(loginButton).click();
}

public String getText() {
    return driver.findElement(header).getText();
}

private void helper() {}

public static void util() {}

public void enterUsername(String username) {
    driver.findElement(usernameField).sendKeys(username);
}
"""
    assert extract_method_names(text) == ["clickLoginButton", "enterUsername"]


def test_parameter_list_may_span_lines():
    text = "public void fillForm(\n    String a,\n    String b\n) {}"
    assert extract_method_names(text) == ["fillForm"]


@pytest.mark.parametrize("text", [None, "", "not java at all"])
def test_nothing_to_extract(text):
    assert extract_method_names(text) == []


def test_catalog_over_seed_pages():
    entries = build_method_catalog(seed_pages())
    assert [e.key for e in entries] == [
        "login-page::Login Page::clickLoginButton",
        "login-page::Login Page::enterUsername",
        "login-page::Login Page::enterPassword",
        "dashboard-page::Dashboard::clickLogoutLink",
    ]
    assert entries[0].label == "Login Page: clickLoginButton"


def test_pages_without_methods_are_skipped():
    pages = [PageObject(id="a", name="A"), PageObject(id="b", name="B", generated_methods="")]
    assert build_method_catalog(pages) == []


def test_parse_step_key():
    assert parse_step_key("login-page::Login Page::enterUsername") == ("login-page", "Login Page", "enterUsername")


def test_parse_step_key_keeps_separator_inside_page_name():
    entry = CatalogEntry(page_id="p1", page_name="A::B", method_name="go")
    assert parse_step_key(entry.key) == ("p1", "A::B", "go")


@pytest.mark.parametrize("key", ["", "nope", "page::name", "page::name::"])
def test_parse_step_key_rejects_malformed(key):
    with pytest.raises(ValueError):
        parse_step_key(key)


def test_steps_from_keys():
    steps = steps_from_keys([
        "login-page::Login Page::enterUsername",
        "login-page::Login Page::enterUsername",
    ])
    assert [s.method_name for s in steps] == ["enterUsername", "enterUsername"]
    assert steps[0].page_id == "login-page"
    assert steps[0].page_name == "Login Page"
    assert steps[0].id != steps[1].id
