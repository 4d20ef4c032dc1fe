from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

from app.crm.errors import ServiceUnavailable, Unauthenticated
from app.crm.modules.generation.prompts import ImageStyle, TextPersona, image_prompt, system_instruction
from app.crm.records import Platform

logger = logging.getLogger(__name__)


class GenerationService:
    def generate_text(self, prompt: str, persona: TextPersona, platform: Platform) -> str:
        raise NotImplementedError

    def generate_image(self, prompt: str, style: ImageStyle) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class GeminiClient(GenerationService):
    """
    One-shot calls to the Gemini API via google-genai. No retries: any failure
    surfaces as ServiceUnavailable (or Unauthenticated) and the caller drops it.
    """

    api_key: str
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    temperature: float = 0.8

    def _client(self):
        from google import genai

        if not self.api_key:
            raise Unauthenticated("GOOGLE_API_KEY is not configured")
        return genai.Client(api_key=self.api_key)

    def _call(self, **kwargs):
        from google.genai import errors

        client = self._client()
        try:
            return client.models.generate_content(**kwargs)
        except errors.APIError as e:
            logger.error("Gemini API error (model=%s code=%s): %s", kwargs.get("model"), e.code, e.message)
            if e.code in (401, 403):
                raise Unauthenticated(f"Gemini rejected credentials ({e.code})") from e
            raise ServiceUnavailable(f"Gemini API error ({e.code})") from e
        except Exception as e:
            logger.exception("Gemini request failed (model=%s)", kwargs.get("model"))
            raise ServiceUnavailable("Gemini request failed") from e

    def generate_text(self, prompt: str, persona: TextPersona, platform: Platform) -> str:
        from google.genai import types

        response = self._call(
            model=self.text_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction(platform, persona),
                temperature=self.temperature,
            ),
        )
        text = (response.text or "").strip()
        if not text:
            raise ServiceUnavailable("Empty text response")
        return text

    def generate_image(self, prompt: str, style: ImageStyle) -> str:
        response = self._call(model=self.image_model, contents=image_prompt(prompt, style))
        for candidate in response.candidates or []:
            content = candidate.content
            for part in (content.parts if content else None) or []:
                inline = part.inline_data
                if inline and inline.data:
                    data = inline.data
                    if isinstance(data, str):
                        encoded = data
                    else:
                        encoded = base64.b64encode(data).decode("ascii")
                    return f"data:{inline.mime_type or 'image/png'};base64,{encoded}"
        raise ServiceUnavailable("No image data returned")


def generation_from_config(config: dict) -> GenerationService:
    return GeminiClient(
        api_key=(config.get("GOOGLE_API_KEY") or "").strip(),
        text_model=(config.get("GENAI_TEXT_MODEL") or "gemini-2.5-flash").strip(),
        image_model=(config.get("GENAI_IMAGE_MODEL") or "gemini-2.5-flash-image").strip(),
    )
