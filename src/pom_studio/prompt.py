from __future__ import annotations
import json
from textwrap import dedent
from typing import List


SUGGEST_LOCATOR_SYSTEM_PROMPT = dedent("""
You are an AI expert in suggesting the best locator for a given element on a webpage.
You are given the HTML of the element, the full HTML source code of the page, and the URL of the page.

Rules:
- Suggest the single best locator for the element. Its type must be one of: xpath, css, id.
- Prefer a unique id, then a short css selector, then xpath (last resort).
- Explain why you chose that locator.
- Include a confidence score between 0 and 1.
- Output ONLY a JSON object. No markdown, no prose.
""").strip()


SUGGEST_LOCATOR_SCHEMA = r'''
{
  "locator": "string",
  "locatorType": "xpath|css|id",
  "confidence": "number between 0 and 1",
  "explanation": "string"
}
'''.strip()


GENERATE_METHODS_SYSTEM_PROMPT = dedent("""
You are an expert Selenium test automation engineer who writes clean, maintainable Java code.
Your task is to generate Java methods for a Page Object class based on a natural language description.

Rules:
1. Generate one or more public void Java methods that perform the actions described.
2. Use the provided locators. The locators are defined as static 'By' variables in the class. You must refer to them by their camelCaseName.
3. Assume a 'WebDriver driver' instance is available in the class scope and has been initialized.
4. Each generated method should have a Javadoc comment explaining what it does.
5. Do not include the class definition or the locator definitions in your output. Only generate the methods.
6. If the description implies interacting with input fields, generate methods that accept string parameters (e.g. 'public void enterUsername(String username)').
7. Output ONLY a JSON object {"methods": "<java source>"}. No markdown, no explanations.
""").strip()


def build_suggest_locator_prompt(html: str, page_source: str, url: str) -> str:
    return "\n\n".join([
        f"Element HTML: {html}",
        f"Page Source: {page_source}",
        f"URL: {url}",
        f"OUTPUT SCHEMA (JSON):\n{SUGGEST_LOCATOR_SCHEMA}",
        "Now produce ONLY a JSON object conforming to the schema.",
    ])


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def build_generate_methods_prompt(page_name: str, locators: List[dict], description: str) -> str:
    """`locators` items carry name, camelCaseName, type and value."""
    locator_lines = "\n".join(
        f"- Name: {_quote(loc['name'])}, camelCaseName: {_quote(loc['camelCaseName'])}, "
        f"Type: {loc['type']}, Value: {_quote(loc['value'])}"
        for loc in locators
    ) or "- (none)"

    return "\n\n".join([
        f"Page Object Class Name: {page_name}Page",
        f"Available Locators (use the camelCaseName for variable names):\n{locator_lines}",
        f'User Interaction Description:\n"{description}"',
        "Now generate the Java methods as a JSON object {\"methods\": \"...\"}.",
    ])
