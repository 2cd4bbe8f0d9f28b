from __future__ import annotations
import json
import re
from typing import Any, Generic, List, Literal, Optional, TypeVar

from loguru import logger
from pydantic import AnyUrl, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from pom_studio.errors import LLMOutputError, NotFoundError
from pom_studio.llm.base import LLMProvider
from pom_studio.models import Locator
from pom_studio.naming import to_camel_case
from pom_studio.prompt import (
    GENERATE_METHODS_SYSTEM_PROMPT,
    SUGGEST_LOCATOR_SYSTEM_PROMPT,
    build_generate_methods_prompt,
    build_suggest_locator_prompt,
)
from pom_studio.store import PageStore


T = TypeVar("T")


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- requests ----
class LocatorSuggestionRequest(_Payload):
    html: str
    page_source: str
    url: AnyUrl


class MethodGenerationRequest(_Payload):
    page_name: str
    locators: List[Locator]
    description: str


# ---- results ----
class LocatorSuggestion(_Payload):
    locator: str
    locator_type: Literal["xpath", "css", "id"]
    confidence: float = Field(ge=0, le=1)
    explanation: str


class GeneratedMethods(_Payload):
    methods: str


class ActionResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _sanitize_llm_json(text: str) -> str:
    """Extract first JSON object from model output (remove ```json fences, ignore chatter)."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise LLMOutputError("LLM output does not contain a JSON object")
    return text[start:end + 1]


def _parse_reply(raw: str) -> dict:
    try:
        data = json.loads(_sanitize_llm_json(raw))
    except json.JSONDecodeError as e:
        raise LLMOutputError(f"LLM output is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise LLMOutputError("LLM output is not a JSON object")
    return data


def describe_locators(locators: List[Locator]) -> List[dict]:
    """Locator payload for the model: each entry carries the generated field name."""
    return [
        {
            "name": loc.name,
            "camelCaseName": to_camel_case(loc.name),
            "type": loc.type,
            "value": loc.value,
        }
        for loc in locators
    ]


async def suggest_locator(request: LocatorSuggestionRequest, llm: LLMProvider) -> LocatorSuggestion:
    user_prompt = build_suggest_locator_prompt(request.html, request.page_source, str(request.url))
    raw = await llm.complete_json(SUGGEST_LOCATOR_SYSTEM_PROMPT, user_prompt)
    return LocatorSuggestion.model_validate(_parse_reply(raw))


async def generate_methods(request: MethodGenerationRequest, llm: LLMProvider) -> GeneratedMethods:
    user_prompt = build_generate_methods_prompt(
        request.page_name, describe_locators(request.locators), request.description
    )
    raw = await llm.complete_json(GENERATE_METHODS_SYSTEM_PROMPT, user_prompt)
    return GeneratedMethods.model_validate(_parse_reply(raw))


def _error_message(e: Exception) -> str:
    return str(e) or "An unknown error occurred."


async def suggest_locator_action(payload: Any, llm: LLMProvider) -> ActionResult[LocatorSuggestion]:
    """Never raises: failures come back as a one-line `error`."""
    try:
        request = LocatorSuggestionRequest.model_validate(payload)
    except ValidationError:
        return ActionResult(error="Invalid input.")

    try:
        return ActionResult(data=await suggest_locator(request, llm))
    except Exception as e:
        logger.exception("Locator suggestion failed")
        return ActionResult(error=f"AI suggestion failed: {_error_message(e)}")


async def generate_methods_action(payload: Any, llm: LLMProvider) -> ActionResult[GeneratedMethods]:
    try:
        request = MethodGenerationRequest.model_validate(payload)
    except ValidationError as e:
        return ActionResult(error=f"Invalid input: {e}")

    try:
        return ActionResult(data=await generate_methods(request, llm))
    except Exception as e:
        logger.exception("Method generation failed")
        return ActionResult(error=f"AI method generation failed: {_error_message(e)}")


async def generate_methods_for_page(
    store: PageStore, page_id: str, description: str, llm: LLMProvider
) -> ActionResult[GeneratedMethods]:
    """Generate methods for a page and append them to its methods text.

    The result is dropped when the page no longer exists once the model answers.
    """
    page = store.get_page(page_id)
    if page is None:
        raise NotFoundError("Page", page_id)

    logger.info(f"Generating methods for {page.name!r}")
    result = await generate_methods_action(
        {"page_name": page.name, "locators": list(page.locators), "description": description}, llm
    )
    if result.data is None:
        return result
    if store.get_page(page_id) is None:
        logger.debug(f"Page {page_id} was deleted while generating; discarding methods")
        return result
    store.append_page_methods(page_id, result.data.methods)
    return result


async def suggest_locator_for_page(
    store: PageStore,
    page_id: str,
    html: str,
    llm: LLMProvider,
    url: Optional[str] = None,
    page_source: Optional[str] = None,
) -> ActionResult[LocatorSuggestion]:
    """Suggest a locator for an element of a stored page.

    Falls back to the page's saved URL and source; the values used are saved
    back on the page when the suggestion succeeds.
    """
    page = store.get_page(page_id)
    if page is None:
        raise NotFoundError("Page", page_id)

    url = url or page.page_url or ""
    page_source = page_source or page.page_source or ""
    logger.info(f"Suggesting locator on {page.name!r}")
    result = await suggest_locator_action({"html": html, "page_source": page_source, "url": url}, llm)
    if result.data is None or store.get_page(page_id) is None:
        return result

    with store.transaction():
        if url != page.page_url:
            store.update_page_url(page_id, url)
        if page_source != page.page_source:
            store.update_page_source(page_id, page_source)
    return result
