from __future__ import annotations
import re
from typing import List

from pom_studio.models import PageObject
from pom_studio.naming import to_camel_case


_BY_FACTORIES = {
    "id": "By.id",
    "name": "By.name",
    "className": "By.className",
    "tagName": "By.tagName",
    "linkText": "By.linkText",
    "partialLinkText": "By.partialLinkText",
    "css": "By.cssSelector",
    "xpath": "By.xpath",
}
_DEFAULT_BY_FACTORY = "By.xpath"

_METHODS_PLACEHOLDER = "\n".join([
    "",
    "    // Add methods to interact with the elements here",
    "    // For example:",
    "    /*",
    "    public void clickLoginButton() {",
    "        driver.findElement(loginButton).click();",
    "    }",
    "    */",
])

_FIELD_RE = re.compile(r"^    public static final By (\S*) = ", re.MULTILINE)


def by_factory(locator_type: str) -> str:
    return _BY_FACTORIES.get(locator_type, _DEFAULT_BY_FACTORY)


def class_name_for(page_name: str) -> str:
    return re.sub(r"\s+", "", page_name) + "Page"


def _field_line(locator) -> str:
    value = locator.value.replace('"', '\\"')
    return f'    public static final By {to_camel_case(locator.name)} = {by_factory(locator.type)}("{value}");'


def generate_java_code(page: PageObject, extra_methods: str | None = None) -> str:
    """Render the Selenium page object class for `page`.

    `extra_methods` is spliced in verbatim after the locator fields; when it
    is empty a commented usage example is emitted instead.
    """
    class_name = class_name_for(page.name)
    locators_code = "\n".join(_field_line(loc) for loc in page.locators)
    methods_code = f"\n{extra_methods}" if extra_methods else _METHODS_PLACEHOLDER

    lines = [
        "import org.openqa.selenium.By;",
        "import org.openqa.selenium.WebDriver;",
        "",
        f"public class {class_name} {{",
        "",
        "    private WebDriver driver;",
        "",
        f"    public {class_name}(WebDriver driver) {{",
        "        this.driver = driver;",
        "    }",
        "",
        f"    // Locators for {page.name}",
        locators_code,
        methods_code,
        "}",
    ]
    return "\n".join(lines).strip()


def locator_field_names(source: str) -> List[str]:
    """Field names of the `public static final By` declarations in rendered source."""
    return _FIELD_RE.findall(source)
