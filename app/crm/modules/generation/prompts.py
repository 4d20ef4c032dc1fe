"""
Prompt construction for marketing copy and images.

Persona and style choices only change the prompt text. There is a single real
backend behind them.
"""
from __future__ import annotations

import enum

from app.crm.constants import PLATFORM_LABELS
from app.crm.records import Platform


class TextPersona(str, enum.Enum):
    DEEPSEEK = "DeepSeek"
    GEMINI = "Gemini"
    DOUBAO = "Doubao"
    WENXIN = "Wenxin"
    QWEN = "Qwen"
    CHATGPT = "ChatGPT"


class ImageStyle(str, enum.Enum):
    DOUBAO = "doubao"
    JIMENG = "jimeng"


_PLATFORM_TONE = {
    Platform.XIAOHONGSHU: (
        "Use emojis liberally. Tone should be excited and sharing, like a friend's "
        "recommendation: authentic, lively. Use hashtags."
    ),
    Platform.XIANYU: (
        "Tone should be direct, efficient, value-for-money and trustworthy. "
        "Focus on condition and price."
    ),
}

_STYLE_SUFFIX = {
    ImageStyle.DOUBAO: (
        ", highly detailed, vibrant colors, asian aesthetic, social media style, "
        "high quality, commercial photography"
    ),
    ImageStyle.JIMENG: ", dreamy, artistic, soft lighting, creative composition, 4k resolution, cinematic",
}

_DEFAULT_STYLE_SUFFIX = ", professional photography, high resolution"


def parse_persona(value: str | None) -> TextPersona:
    raw = (value or "").strip()
    for p in TextPersona:
        if raw.lower() in (p.value.lower(), p.name.lower()):
            return p
    return TextPersona.DEEPSEEK


def parse_style(value: str | None) -> ImageStyle:
    try:
        return ImageStyle((value or "").strip().lower())
    except ValueError:
        return ImageStyle.DOUBAO


def system_instruction(platform: Platform, persona: TextPersona) -> str:
    text = (
        f"You are a professional social media operations expert for {PLATFORM_LABELS[platform.value]}. "
        + _PLATFORM_TONE[platform]
    )
    if persona == TextPersona.DEEPSEEK:
        text += (
            " You are simulating the DeepSeek-V3 model. Be extremely logical, deep, and structured in "
            "your reasoning, yet creative in output. Optimize for high engagement and conversion."
        )
    elif persona != TextPersona.GEMINI:
        text += f" Simulate the writing style of the {persona.value} AI model."
    return text


def image_prompt(prompt: str, style: ImageStyle | None) -> str:
    return prompt + (_STYLE_SUFFIX.get(style, _DEFAULT_STYLE_SUFFIX) if style else _DEFAULT_STYLE_SUFFIX)
