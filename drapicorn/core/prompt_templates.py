"""Prompt templates and builders for Drapicorn's Gemini generation flows."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, List, Optional

from drapicorn.models import (
    ChatMessage,
    ItemType,
    PreviewOptions,
    TechPackMeta,
)


def is_korean(lang: str) -> bool:
    return (lang or "").upper() == "KO"


def language_name(lang: str) -> str:
    return "Korean" if is_korean(lang) else "English"


# --- TECH PACK PROMPTS ---

TECHPACK_USER_TEMPLATE = """Create a professional technical package for: {ITEM_NAME}.
Item Type: {ITEM_TYPE}. Fit: {FIT}. Length: {LENGTH}.

[CRITICAL INPUTS]
Body Measurements (Human): {MEASUREMENTS}

[TASK]
1. Analyze the body measurements.
2. Calculate the "Finished Garment Measurements" (POM) by adding appropriate ease/allowance based on the "{FIT}" fit (e.g., Oversized needs large chest allowance).
3. Fill the measurement object with specific manufacturing specs (e.g. Front Rise, Thigh for bottoms; Armhole, Cuff for tops).

Additional Notes: {NOTES}."""

TECHPACK_SYSTEM_TEMPLATE = """You are an expert Technical Designer and Pattern Maker.
Output strict JSON.
Language: {LANGUAGE}.
Your goal is to provide ready-to-use factory specifications.
Ensure 'measurement' values are numbers with units (e.g. "72cm") representing the CLOTHES, not the body."""


def build_techpack_user_prompt(
    options: PreviewOptions, meta: Optional[TechPackMeta] = None
) -> str:
    measurements = (
        json.dumps(options.measurements.model_dump(by_alias=True), ensure_ascii=False)
        if options.measurements
        else "null"
    )
    return TECHPACK_USER_TEMPLATE.format(
        ITEM_NAME=(meta.item_name if meta and meta.item_name else "this design"),
        ITEM_TYPE=options.item_type.value,
        FIT=options.fit,
        LENGTH=options.length,
        MEASUREMENTS=measurements,
        NOTES=(meta.additional_notes if meta and meta.additional_notes else "None"),
    )


def build_techpack_system_prompt(lang: str) -> str:
    return TECHPACK_SYSTEM_TEMPLATE.format(LANGUAGE=language_name(lang))


# --- IMAGE PROMPTS ---


@dataclass(frozen=True)
class ImagePromptDefaults:
    """Fixed wording used by the flat sketch and styled photo prompts."""

    flat_ko: str = (
        "전문 의류 도식화(Technical Flat). {ITEM_TYPE}. 앞면(Front)과 뒷면(Back)을 나란히 배치. "
        "흑백 라인 아트(Line art only). 명암 없음. 깨끗한 흰색 배경. 디테일한 봉제선 표시."
    )
    flat_en: str = (
        "Professional Fashion Technical Flat Sketch of {ITEM_TYPE}. "
        "SHOW BOTH FRONT VIEW AND BACK VIEW SIDE-BY-SIDE. Black and white line art only. "
        "No shading. Clean white background. Detailed stitching lines."
    )
    photo_ko: str = "리얼리스틱 스튜디오 패션 촬영물 생성. {FRAMING}"
    photo_en: str = "Realistic studio fashion photography creation. {FRAMING}"
    framing_top: str = (
        "Upper body close-up fashion photography, focus on the top garment, "
        "professional studio lighting."
    )
    framing_bottom: str = (
        "Lower body fashion photography, waist down, focus on trousers/skirt."
    )
    framing_full: str = "Full body fashion photography, professional studio lighting."


DEFAULTS = ImagePromptDefaults()


def build_flat_sketch_prompt(options: PreviewOptions) -> str:
    template = DEFAULTS.flat_ko if is_korean(options.lang) else DEFAULTS.flat_en
    return template.format(ITEM_TYPE=options.item_type.value)


def photo_framing(item_type: ItemType) -> str:
    if item_type == ItemType.TOP:
        return DEFAULTS.framing_top
    if item_type in (ItemType.BOTTOM, ItemType.JEANS):
        return DEFAULTS.framing_bottom
    return DEFAULTS.framing_full


def build_styled_photo_prompt(options: PreviewOptions) -> str:
    template = DEFAULTS.photo_ko if is_korean(options.lang) else DEFAULTS.photo_en
    return template.format(FRAMING=photo_framing(options.item_type))


# --- STUDIO TOOL PROMPTS ---

VARIATION_TEMPLATE = """Fashion Design Sketch Variation {INDEX}.
Based on the input sketch, creatively alter the following attributes: {AXES}.
Creativity Intensity: {INTENSITY}/5.
Keep the core identity but explore new possibilities.
Output a high-quality fashion sketch/render."""

VARIATION_REFERENCE_SUFFIX = " Incorporate style/texture from the reference image."


def build_variation_prompt(
    index: int, axes: Iterable[str], intensity: int, with_reference: bool = False
) -> str:
    prompt = VARIATION_TEMPLATE.format(
        INDEX=index + 1, AXES=", ".join(axes), INTENSITY=intensity
    )
    if with_reference:
        prompt += VARIATION_REFERENCE_SUFFIX
    return prompt


MARKET_REACTION_TEMPLATE = """Simulate a Pre-order / Crowdfunding campaign for: {ITEM_NAME}.
Target audience: Fashion forward Gen Z.
Predict funding success rate, backer count, and sales volume.
Provide demographic breakdown."""


def build_market_reaction_prompt(meta: TechPackMeta) -> str:
    return MARKET_REACTION_TEMPLATE.format(ITEM_NAME=meta.item_name)


FACTORY_CHAT_TEMPLATE = """You are an experienced Garment Factory Manager in Seoul (Dongdaemun) or Vietnam.
Your tone is professional but busy, practical, and helpful. You want to secure the order but are realistic about timelines and costs.

[Current Tech Pack Context]
Item: {ITEM_NAME}
Brand: {BRAND_NAME}
Quantity: {QUANTITY}
Due Date: {DUE_DATE}
Materials: Based on conversation.

[Conversation History]
{HISTORY}

[Task]
Respond to the last USER message.
{TASK}
- Keep response short (1-2 sentences), like a text message.
- Language: {LANGUAGE}."""

FACTORY_QC_TASK = """- THE USER JUST SENT A QC/CORRECTION REPORT. Acknowledge receipt immediately.
- Confirm you will apply the corrections (mention specific corrections like "fixing the sleeve length" or "adjusting color").
- Estimate when the NEXT sample (or final production) will be ready."""

FACTORY_DEFAULT_TASK = """- If they ask about cost/MOQ, give realistic estimates.
- If they ask about timeline, mention current busy season."""

FACTORY_LANGUAGE_KO = (
    'Korean (Natural business messenger tone, e.g. "네 사장님," "수정해서 다시 올릴게요.")'
)
FACTORY_LANGUAGE_EN = "English (Business casual)"


def format_chat_history(history: List[ChatMessage]) -> str:
    lines = []
    for message in history:
        if message.type == "QC_REPORT" and message.qc_data:
            lines.append(
                f"[USER SENT QC REPORT]: Round {message.qc_data.sample_round}, "
                f"Corrections: {', '.join(message.qc_data.corrections)}"
            )
        else:
            lines.append(f"{message.sender}: {message.text}")
    return "\n".join(lines)


def build_factory_prompt(
    history: List[ChatMessage], meta: TechPackMeta, lang: str
) -> str:
    is_qc = bool(history) and history[-1].type == "QC_REPORT"
    return FACTORY_CHAT_TEMPLATE.format(
        ITEM_NAME=meta.item_name,
        BRAND_NAME=meta.brand_name,
        QUANTITY=meta.quantity,
        DUE_DATE=meta.due_date,
        HISTORY=format_chat_history(history),
        TASK=FACTORY_QC_TASK if is_qc else FACTORY_DEFAULT_TASK,
        LANGUAGE=FACTORY_LANGUAGE_KO if is_korean(lang) else FACTORY_LANGUAGE_EN,
    )


NEWS_REGION_FOCUS = {
    "EUROPE": "Focus on European fashion luxury markets (Paris, Milan, London, Berlin).",
    "USA": "Focus on the US fashion market (NYC, LA, Streetwear, Techwear innovations).",
    "KOREA": "Focus on South Korean fashion (K-Fashion trends, Dongdaemun industry, KR designers).",
    "NEW_DROPS": (
        "Focus EXCLUSIVELY on specific NEW PRODUCT RELEASES (Drops) from famous brands "
        "(e.g. Balenciaga, Nike, Supreme, Gentle Monster, Arc'teryx) released in the last 7 days. "
        "Find 4 distinct items."
    ),
}
NEWS_GLOBAL_FOCUS = "Provide global fashion industry trends and major announcements."

NEWS_TEMPLATE = """Find top 4 most significant fashion industry news articles/products for today.
Target Region/Topic: {REGION}

[OUTPUT INSTRUCTION]
For each article found, generate a JSON object matching the schema.

**CRITICAL: The 'summary' field MUST be a detailed Intelligence Report (approx 80-100 words).**
- Explain the context, key details, and strategic impact.
- Language: {LANGUAGE}.
{DROPS}"""

NEWS_DROPS_INSTRUCTION = """
[SPECIAL INSTRUCTION FOR NEW DROPS]
1. 'title' should be the Product Name + Brand.
2. 'features' array MUST include exactly these 3 elements in order if found:
   - "Price: [Amount]" (e.g. Price: $250 or Price: 320,000 KRW)
   - "Finishing: [Method]" (e.g. Finishing: Garment Dyed, Laser Cut, Raw Hem)
   - "Detail: [Key Feature]" (e.g. Detail: Hidden magnetic closure, Waterproof zippers)
3. 'thumbnail': ONLY include if you find a valid, direct HTTP URL to an image. If uncertain or none found, leave empty or null. Do not hallucinate URLs."""

NEWS_SYSTEM_PROMPT = """You are a Senior Fashion Market Intelligence Analyst.
Your goal is to provide deep, actionable insights.
For 'New Drops', focus on product specifications (Price, Finishing, Material).
Always output valid JSON."""


def build_news_prompt(lang: str, region: str) -> str:
    region_key = (region or "").upper()
    return NEWS_TEMPLATE.format(
        REGION=NEWS_REGION_FOCUS.get(region_key, NEWS_GLOBAL_FOCUS),
        LANGUAGE=language_name(lang),
        DROPS=NEWS_DROPS_INSTRUCTION if region_key == "NEW_DROPS" else "",
    )


__all__ = [
    "DEFAULTS",
    "ImagePromptDefaults",
    "NEWS_SYSTEM_PROMPT",
    "build_factory_prompt",
    "build_flat_sketch_prompt",
    "build_market_reaction_prompt",
    "build_news_prompt",
    "build_styled_photo_prompt",
    "build_techpack_system_prompt",
    "build_techpack_user_prompt",
    "build_variation_prompt",
    "format_chat_history",
    "is_korean",
    "language_name",
    "photo_framing",
]
