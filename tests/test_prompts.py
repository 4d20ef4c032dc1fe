import pytest

from app.crm.errors import Unauthenticated
from app.crm.modules.generation.client import GeminiClient, generation_from_config
from app.crm.modules.generation.prompts import (
    ImageStyle,
    TextPersona,
    image_prompt,
    parse_persona,
    parse_style,
    system_instruction,
)
from app.crm.records import Platform


def test_persona_only_changes_prompt_text():
    base = system_instruction(Platform.XIAOHONGSHU, TextPersona.GEMINI)
    assert "Xiaohongshu" in base
    assert "hashtags" in base
    assert "DeepSeek" in system_instruction(Platform.XIAOHONGSHU, TextPersona.DEEPSEEK)
    assert "Doubao" in system_instruction(Platform.XIAOHONGSHU, TextPersona.DOUBAO)


def test_platform_tone():
    assert "price" in system_instruction(Platform.XIANYU, TextPersona.GEMINI)


def test_parse_persona_and_style_defaults():
    assert parse_persona("qwen") == TextPersona.QWEN
    assert parse_persona("ChatGPT") == TextPersona.CHATGPT
    assert parse_persona(None) == TextPersona.DEEPSEEK
    assert parse_persona("gpt-99") == TextPersona.DEEPSEEK
    assert parse_style("JIMENG") == ImageStyle.JIMENG
    assert parse_style("watercolor") == ImageStyle.DOUBAO


def test_image_prompt_appends_style():
    assert image_prompt("a black van", ImageStyle.JIMENG).startswith("a black van, dreamy")
    assert image_prompt("a black van", None) == "a black van, professional photography, high resolution"


def test_generation_from_config():
    client = generation_from_config({"GOOGLE_API_KEY": " k ", "GENAI_TEXT_MODEL": "", "GENAI_IMAGE_MODEL": "img"})
    assert client == GeminiClient(api_key="k", text_model="gemini-2.5-flash", image_model="img")


def test_missing_api_key_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        GeminiClient(api_key="").generate_image("a van", ImageStyle.DOUBAO)
