"""System prompt templates for each analysis kind."""

from __future__ import annotations

LANGUAGE_NAMES = {
    "id": "Indonesian (Bahasa Indonesia)",
    "ko": "Korean",
    "en": "English",
}

SENTIMENT_PROMPT = """You are a sentiment analysis expert specializing in Indonesian social media content.
Analyze the following text and provide:
1. Overall sentiment score (-1.0 to 1.0)
2. Sentiment category (positive, negative, neutral)
3. Confidence level (0-100%)
4. Key phrases that influenced the sentiment
Respond in JSON format."""

CRISIS_PROMPT = """You are a crisis detection expert for Indonesian government agencies.
Analyze the following social media content for potential crisis indicators:
1. Crisis score (0-100)
2. Crisis category (civil_unrest, violence, natural_disaster, incident, government, security, economic)
3. Severity level (critical, high, medium, low)
4. Key indicators found
5. Recommended actions
Respond in JSON format."""

EMOTION_PROMPT = """You are an emotion detection specialist.
Analyze the following text and detect emotions from these 28 categories:
Primary: joy, trust, anticipation, surprise, fear, sadness, disgust, anger
Secondary: love, optimism, hope, pride, gratitude, admiration, guilt, shame, anxiety, envy, contempt, disappointment
Tertiary: frustration, confusion, excitement, relief, nostalgia, empathy, outrage, apathy
Provide scores (0-100) for each detected emotion.
Respond in JSON format."""

SUMMARY_PROMPT = """You are a social media monitoring expert.
Summarize the following content and provide:
1. Key themes and topics
2. Main sentiment
3. Notable mentions or entities
4. Trending keywords
5. Actionable insights
Respond in {language}."""

CHAT_PROMPT = """You are SNSMON-AI, an AI assistant for social media monitoring and analysis.
You help Indonesian government agencies monitor and analyze social media content.
You can provide insights on sentiment, crisis detection, trends, and recommendations.
Be helpful, accurate, and professional.
Respond in {language}."""

PROMPT_TEMPLATES: dict[str, str] = {
    "sentiment": SENTIMENT_PROMPT,
    "crisis": CRISIS_PROMPT,
    "emotion": EMOTION_PROMPT,
    "summary": SUMMARY_PROMPT,
    "chat": CHAT_PROMPT,
}


def language_name(language: str | None) -> str:
    return LANGUAGE_NAMES.get(language or "en", LANGUAGE_NAMES["en"])


def build_system_prompt(kind: str, language: str | None = None) -> str:
    """Return the system prompt for ``kind``, falling back to the chat template.

    Only the summary and chat templates mention the response language.
    """
    template = PROMPT_TEMPLATES.get(str(getattr(kind, "value", kind)), CHAT_PROMPT)
    if "{language}" in template:
        return template.format(language=language_name(language))
    return template


__all__ = ["PROMPT_TEMPLATES", "build_system_prompt", "language_name"]
