# content generator — turns AggregatedStats into a report body
#
# two strategies behind one interface:
#   - ExternalModelStrategy: gemini via langchain, strict safety system prompt,
#     json contract parsed from the first balanced object in the response
#   - TemplateStrategy: deterministic rules, never fails, no network
#
# ContentGenerator tries the external model when one is configured and falls
# back to the template on any GenerationUnavailableError. the choice of
# strategies is made once at startup from settings and never changes.

import asyncio
import json
import logging
import random
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers import StrOutputParser
from pydantic import ValidationError

from moodwell.config import Settings, settings
from moodwell.errors import GenerationUnavailableError
from moodwell.models.report import (
    AggregatedStats,
    GenerationResult,
    PatternItem,
    ReportContent,
    SuggestionItem,
)
from moodwell.services.aggregator import DAY_NAMES, UNKNOWN

logger = logging.getLogger(__name__)

TEMPLATE_MODEL = "template"

AFFIRMATIONS = [
    "Every day is a new chance. You are stronger than you think.",
    "Your emotions matter. Thank you for taking care of yourself.",
    "You have the right to feel what you feel. You are on a good path.",
    "Small steps lead to big changes. Keep going.",
    "Noticing your emotions is the first step towards wellbeing.",
    "Appreciate your progress, even the small bits.",
    "Every effort counts. You are doing great.",
]

# system instruction — literal braces are doubled for ChatPromptTemplate
SYSTEM_PROMPT = """You are an empathetic, supportive assistant that helps people reflect on their mood and emotional wellbeing.

CRITICAL RULES:
1. NEVER diagnose a mental health condition or disorder
2. NEVER suggest that the user has depression, anxiety or any other clinical condition
3. ALWAYS encourage contacting a professional when something looks serious
4. Use warm, supportive language
5. Focus on positive aspects and opportunities for growth
6. Avoid judging, criticising or lecturing

Respond ONLY with JSON in the following structure:
{{
  "summary": "2-3 sentences summarising the period",
  "patterns": [{{"title": "...", "description": "...", "category": "positive/neutral/concern"}}],
  "strengths": ["strength 1", "strength 2"],
  "suggestions": [{{"title": "...", "description": "...", "category": "..."}}],
  "affirmation": "a positive closing affirmation"
}}"""

REPORT_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", "{prompt}"),
])


def _period_label(kind: str) -> str:
    return "month" if kind == "monthly" else "week"


def _format_counts(counts: dict[str, int]) -> str:
    if not counts:
        return "none"
    return ", ".join(f"{label}: {count}" for label, count in counts.items())


def build_prompt(stats: AggregatedStats, kind: str) -> str:
    """field-by-field prompt so the same stats always produce the same text"""
    lines = [
        f"Analyse the user's mood data from the last {_period_label(kind)} and prepare a supportive report.",
        "",
        "DATA:",
        f"- Mood entries: {stats.total_mood_entries}",
        f"- Average emotion intensity: {stats.average_intensity}/10",
        f"- Most common mood: {stats.most_common_mood}",
        f"- Most common reason: {stats.most_common_reason}",
        f"- Mood trend: {stats.mood_trend}",
        f"- Mood distribution: {_format_counts(stats.mood_distribution)}",
        "",
        f"- Day ratings: {stats.total_ratings}",
        f"- Average day rating: {stats.average_rating}/5",
        f"- Best day: {stats.best_day or 'no data'}",
        f"- Worst day: {stats.worst_day or 'no data'}",
        "",
        f"- Small victories: {stats.total_victories}",
        f"- Victory categories: {_format_counts(stats.victories_by_category)}",
        "",
        "WEEKDAY PATTERNS (average intensity):",
    ]

    weekday_lines = [
        f"- {DAY_NAMES[day]}: {stats.weekday_averages[day]}"
        for day in range(7)
        if stats.weekday_counts[day] > 0
    ]
    lines.extend(weekday_lines or ["- no data"])

    if stats.recent_notes:
        lines.extend(["", "RECENT NOTES:", *stats.recent_notes])
    if stats.recent_victories:
        lines.extend(["", "RECENT VICTORIES:", *stats.recent_victories])

    lines.extend(["", "Prepare a supportive, positive report. Respond ONLY with JSON."])
    return "\n".join(lines)


def extract_json_object(text: str) -> Optional[str]:
    """return the first balanced {...} in text, ignoring braces inside strings"""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # unbalanced from this brace, try the next one
        start = text.find("{", start + 1)
    return None


def _coerce_items(raw, model) -> list:
    """keep the dict entries that validate, drop the rest"""
    items = []
    if not isinstance(raw, list):
        return items
    for item in raw:
        if not isinstance(item, dict):
            continue
        data = dict(item)
        # older prompt contract used "type" for the category
        if "category" not in data and "type" in data:
            data["category"] = data.pop("type")
        if model is PatternItem and data.get("category") not in ("positive", "neutral", "concern"):
            data["category"] = "neutral"
        try:
            items.append(model.model_validate(data))
        except ValidationError:
            continue
    return items


def parse_model_response(text: str) -> ReportContent:
    """parse the model's json contract, missing fields default to empty values"""
    raw = extract_json_object(text or "")
    if raw is None:
        raise GenerationUnavailableError("No JSON object in model response")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GenerationUnavailableError(f"Malformed JSON in model response: {e}") from e

    strengths = parsed.get("strengths") or []
    return ReportContent(
        summary=str(parsed.get("summary") or ""),
        patterns=_coerce_items(parsed.get("patterns"), PatternItem),
        strengths=[str(s) for s in strengths if s] if isinstance(strengths, list) else [],
        suggestions=_coerce_items(parsed.get("suggestions"), SuggestionItem),
        affirmation=str(parsed.get("affirmation") or ""),
    )


class TemplateStrategy:
    """rule-based report content"""

    model_name = TEMPLATE_MODEL

    def generate(self, stats: AggregatedStats, kind: str = "weekly") -> ReportContent:
        return ReportContent(
            summary=self._summary(stats, kind),
            patterns=self._patterns(stats),
            strengths=self._strengths(stats),
            suggestions=self._suggestions(stats),
            affirmation=random.choice(AFFIRMATIONS),
        )

    def _summary(self, stats: AggregatedStats, kind: str) -> str:
        summary = f"This {_period_label(kind)} you logged {stats.total_mood_entries} mood entries"
        if stats.average_intensity > 0:
            summary += f" with an average intensity of {stats.average_intensity}/10"
        if stats.total_ratings > 0:
            summary += f" and {stats.total_ratings} day ratings (average: {stats.average_rating}/5)"
        summary += "."

        # declining trend gets no sentence here
        if stats.mood_trend == "improving":
            summary += " Your mood shows a positive trend!"
        elif stats.mood_trend == "stable":
            summary += " Your mood has been stable."
        return summary

    def _patterns(self, stats: AggregatedStats) -> list[PatternItem]:
        patterns = []
        if stats.most_common_mood and stats.most_common_mood != UNKNOWN:
            patterns.append(PatternItem(
                title="Dominant mood",
                description=f'You most often felt "{stats.most_common_mood}"',
                category="neutral",
            ))
        if stats.most_common_reason and stats.most_common_reason != UNKNOWN:
            patterns.append(PatternItem(
                title="Main influence",
                description=f'The most common reason was "{stats.most_common_reason}"',
                category="neutral",
            ))
        if stats.best_day:
            patterns.append(PatternItem(
                title="Best day",
                description=f"Your best rated day was {stats.best_day}",
                category="positive",
            ))
        return patterns

    def _strengths(self, stats: AggregatedStats) -> list[str]:
        strengths = ["You track your mood regularly"]
        if stats.total_victories > 0:
            strengths.append(f"You noticed {stats.total_victories} small wins")
        if stats.total_mood_entries >= 5:
            strengths.append("You are building emotional awareness")
        if stats.total_ratings >= 3:
            strengths.append("You rate your days regularly")
        return strengths

    def _suggestions(self, stats: AggregatedStats) -> list[SuggestionItem]:
        suggestions = []
        if stats.total_mood_entries < 3:
            suggestions.append(SuggestionItem(
                title="Log more often",
                description="Try recording your mood more often to better understand your patterns",
                category="growth",
            ))
        if stats.total_victories == 0:
            suggestions.append(SuggestionItem(
                title="Small victories",
                description="Start writing down everyday successes, even the small ones",
                category="growth",
            ))
        suggestions.append(SuggestionItem(
            title="Keep going",
            description="Keep tracking your mood and looking for patterns",
            category="growth",
        ))
        return suggestions


class ExternalModelStrategy:
    """gemini-backed report content, raises GenerationUnavailableError on any failure"""

    def __init__(self, chain, model_name: str, timeout: float):
        self.chain = chain
        self.model_name = model_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Settings) -> "ExternalModelStrategy":
        llm = ChatGoogleGenerativeAI(
            model=config.GEMINI_MODEL,
            google_api_key=config.GEMINI_API_KEY,
            temperature=config.GENERATION_TEMPERATURE,
            max_output_tokens=config.GENERATION_MAX_TOKENS,
            max_retries=0,
        )
        chain = REPORT_PROMPT | llm | StrOutputParser()
        return cls(chain, model_name=config.GEMINI_MODEL, timeout=config.GENERATION_TIMEOUT_SECONDS)

    async def generate(self, stats: AggregatedStats, kind: str = "weekly") -> ReportContent:
        prompt = build_prompt(stats, kind)
        try:
            text = await asyncio.wait_for(
                self.chain.ainvoke({"prompt": prompt}),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationUnavailableError(f"Model call timed out after {self.timeout}s") from e
        except Exception as e:
            raise GenerationUnavailableError(f"Model call failed: {e}") from e

        return parse_model_response(text)


class ContentGenerator:
    """external model first when configured, template otherwise or on failure"""

    def __init__(
        self,
        external: Optional[ExternalModelStrategy] = None,
        template: Optional[TemplateStrategy] = None,
    ):
        self.external = external
        self.template = template or TemplateStrategy()

    def is_generation_enabled(self) -> bool:
        return self.external is not None

    @property
    def model_name(self) -> str:
        if self.external is not None:
            return self.external.model_name
        return TEMPLATE_MODEL

    async def generate(self, stats: AggregatedStats, kind: str = "weekly") -> ReportContent:
        result = await self.generate_with_metadata(stats, kind)
        return result.content

    async def generate_with_metadata(self, stats: AggregatedStats, kind: str = "weekly") -> GenerationResult:
        if self.external is not None:
            try:
                content = await self.external.generate(stats, kind)
                return GenerationResult(content=content, model=self.external.model_name, ai_generated=True)
            except GenerationUnavailableError as e:
                logger.warning(f"AI generation failed, falling back to template: {e}")
            except Exception as e:
                logger.error(f"Unexpected error in AI generation, falling back to template: {e}")

        content = self.template.generate(stats, kind)
        return GenerationResult(content=content, model=TEMPLATE_MODEL, ai_generated=False)


def build_content_generator(config: Settings) -> ContentGenerator:
    """pick the strategies for this process from configuration"""
    api_key = config.GEMINI_API_KEY or ""
    if len(api_key) > 10:
        try:
            external = ExternalModelStrategy.from_settings(config)
        except Exception as e:
            logger.warning(f"Could not initialise Gemini client, using templates: {e}")
            return ContentGenerator()
        logger.info(f"Report generation using Gemini model {config.GEMINI_MODEL}")
        return ContentGenerator(external=external)

    logger.info("No Gemini API key configured, report generation uses templates")
    return ContentGenerator()


# process-wide generator (decided once)
_content_generator: Optional[ContentGenerator] = None


def get_content_generator() -> ContentGenerator:
    """get or create the singleton content generator"""
    global _content_generator
    if _content_generator is None:
        _content_generator = build_content_generator(settings)
    return _content_generator
