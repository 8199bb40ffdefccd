import base64
import json
from typing import Any, Dict, List, Optional

import httpx

from drapicorn.config import GeminiSettings, logger

DEFAULT_MIME_TYPE = "image/png"
REQUEST_TIMEOUT_SECONDS = 120.0


class GeminiError(Exception):
    """Raised when a Gemini call fails or returns an unusable response."""


class GeminiResponseFormatError(GeminiError):
    """Raised when a response body cannot be decoded as the requested JSON."""


class MissingCredentialError(GeminiError):
    """Raised when no Gemini API key is configured."""


def require_api_key(settings: GeminiSettings) -> str:
    """Return the configured key or fail before any Gemini call is made."""
    if not settings.api_key:
        logger.error("GEMINI_KEY is not configured")
        raise MissingCredentialError("GEMINI_KEY is not configured")
    return settings.api_key


def text_part(text: str) -> Dict[str, Any]:
    return {"text": text}


def image_part(reference: str, mime_type: str = DEFAULT_MIME_TYPE) -> Dict[str, Any]:
    """Build an inline image part from raw base64 or a data URI."""
    if reference.startswith("data:"):
        header, _, data = reference.partition(",")
        if not data:
            raise ValueError("Invalid data URI provided for image input")
        declared = header[len("data:") :].split(";", 1)[0]
        return {"inline_data": {"mime_type": declared or mime_type, "data": data}}

    cleaned = reference.strip()
    if not cleaned:
        raise ValueError("Empty base64 image input provided")
    return {"inline_data": {"mime_type": mime_type, "data": cleaned}}


def encode_image_bytes(content: bytes) -> str:
    return base64.b64encode(content).decode("utf-8")


def _first_candidate_parts(api_result: Dict[str, Any]) -> List[Dict[str, Any]]:
    if "error" in api_result:
        raise GeminiError(f"Gemini API error: {api_result['error']}")

    if "candidates" not in api_result or not api_result["candidates"]:
        raise GeminiError("Gemini API returned no candidates")

    candidate = api_result["candidates"][0]
    return candidate.get("content", {}).get("parts", []) or []


def extract_image_payload(api_result: Dict[str, Any]) -> Optional[str]:
    """Return the base64 data of the first image-bearing part, if any."""
    for part in _first_candidate_parts(api_result):
        # Check both camelCase and snake_case formats
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            return inline["data"]
    return None


def extract_text(api_result: Dict[str, Any]) -> str:
    parts = _first_candidate_parts(api_result)
    return "".join(part.get("text", "") for part in parts if "text" in part)


def extract_json(raw_text: str) -> Any:
    """Parse the JSON document from a model's text output."""

    cleaned = raw_text.strip()

    # Remove markdown code block delimiters
    if cleaned.startswith("```"):
        first_newline = cleaned.find("\n")
        if first_newline > 0:
            cleaned = cleaned[first_newline + 1 :]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error(f"Failed to parse JSON from Gemini response: {raw_text[:500]}")
        raise GeminiResponseFormatError(
            f"Gemini response was not valid JSON: {exc}"
        ) from exc


class GeminiClient:
    """Thin async client for the Generative Language generateContent endpoint."""

    def __init__(
        self,
        settings: GeminiSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        require_api_key(settings)
        self.settings = settings
        self._http_client = http_client

    async def generate_structured(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        """Request JSON output and return the decoded document."""
        generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if schema is not None:
            generation_config["responseSchema"] = schema
        if temperature is not None:
            generation_config["temperature"] = temperature

        api_result = await self._generate(
            model,
            parts,
            generation_config=generation_config,
            system_instruction=system_instruction,
            tools=tools,
        )
        result_text = extract_text(api_result)
        if not result_text:
            raise GeminiError("Gemini response contained no text output")
        return extract_json(result_text)

    async def generate_image(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        aspect_ratio: Optional[str] = None,
    ) -> Optional[str]:
        """Request an image and return its base64 payload, or None."""
        generation_config: Dict[str, Any] = {"responseModalities": ["IMAGE", "TEXT"]}
        if aspect_ratio:
            generation_config["imageConfig"] = {"aspectRatio": aspect_ratio}

        api_result = await self._generate(
            model, parts, generation_config=generation_config
        )
        return extract_image_payload(api_result)

    async def generate_text(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        api_result = await self._generate(model, parts, tools=tools)
        return extract_text(api_result)

    async def _generate(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        generation_config: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.settings.base_url}/models/{model}:generateContent"

        payload: Dict[str, Any] = {"contents": [{"parts": parts}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if tools:
            payload["tools"] = tools

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.settings.api_key,
        }

        logger.debug(f"Calling Gemini model {model} with {len(parts)} part(s)")

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(
                    timeout=REQUEST_TIMEOUT_SECONDS
                ) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            raise GeminiError(
                f"Gemini API HTTP error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise GeminiError(f"Network error calling Gemini API: {str(e)}") from e
        except ValueError as e:
            raise GeminiError(f"Gemini API returned a non-JSON body: {e}") from e


__all__ = [
    "GeminiClient",
    "GeminiError",
    "GeminiResponseFormatError",
    "MissingCredentialError",
    "encode_image_bytes",
    "extract_image_payload",
    "extract_json",
    "extract_text",
    "image_part",
    "require_api_key",
    "text_part",
]
