from __future__ import annotations
import json
import re

from pom_studio.llm.base import LLMProvider
from pom_studio.prompt import GENERATE_METHODS_SYSTEM_PROMPT, SUGGEST_LOCATOR_SYSTEM_PROMPT


_ELEMENT_RE = re.compile(r"^Element HTML: (.*?)\n\nPage Source:", re.DOTALL)
_ATTR_RE = r'\b{}\s*=\s*["\']([^"\']+)["\']'
_TAG_RE = re.compile(r"<\s*([a-zA-Z][\w-]*)")
_CAMEL_RE = re.compile(r'camelCaseName: ("(?:[^"\\]|\\.)*")')


class MockProvider(LLMProvider):
    """Deterministic offline replies for the locator and method prompts."""

    async def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        if system_prompt == SUGGEST_LOCATOR_SYSTEM_PROMPT:
            out = self._suggest(user_prompt)
        elif system_prompt == GENERATE_METHODS_SYSTEM_PROMPT:
            out = self._methods(user_prompt)
        else:
            raise ValueError("MockProvider received an unknown prompt")
        return json.dumps(out, ensure_ascii=False)

    def _suggest(self, user_prompt: str) -> dict:
        m = _ELEMENT_RE.search(user_prompt)
        html = m.group(1) if m else ""

        id_match = re.search(_ATTR_RE.format("id"), html)
        if id_match:
            return {
                "locator": id_match.group(1),
                "locatorType": "id",
                "confidence": 0.95,
                "explanation": "The element has an id attribute, which is usually unique and stable.",
            }
        tag_match = _TAG_RE.search(html)
        tag = tag_match.group(1).lower() if tag_match else "*"
        class_match = re.search(_ATTR_RE.format("class"), html)
        if class_match:
            classes = ".".join(class_match.group(1).split())
            return {
                "locator": f"{tag}.{classes}",
                "locatorType": "css",
                "confidence": 0.7,
                "explanation": "No id is present; the tag and class names form a short CSS selector.",
            }
        return {
            "locator": f"//{tag}",
            "locatorType": "xpath",
            "confidence": 0.4,
            "explanation": "No id or class is present; falling back to an XPath on the tag name.",
        }

    def _methods(self, user_prompt: str) -> dict:
        blocks = []
        for quoted in _CAMEL_RE.findall(user_prompt):
            var = json.loads(quoted)
            if not var:
                continue
            method = "click" + var[0].upper() + var[1:]
            blocks.append(
                "/**\n"
                f" * Clicks the {var} element.\n"
                " */\n"
                f"public void {method}() {{\n"
                f"    driver.findElement({var}).click();\n"
                "}"
            )
        return {"methods": "\n\n".join(blocks)}
