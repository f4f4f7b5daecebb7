"""
Weekly program generation using Claude API.
"""

import json
import logging
import re

import anthropic

from program_pipeline.errors import ConfigurationError, GatewayError
from program_pipeline.program_types import SCHEMA_VERSION


logger = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(r"^```\w*\n?")
FENCE_CLOSE_RE = re.compile(r"\n?```$")

DRAFT_SHAPE_EXAMPLE = {
    "schema_version": SCHEMA_VERSION,
    "program_name": "Upper/Lower Hypertrophy Week 1",
    "days": [
        {
            "day_of_week": 1,
            "label": "Upper Body",
            "exercises": [
                {
                    "name": "Barbell Bench Press",
                    "category": "compound",
                    "sets": 4,
                    "reps": "6-8",
                    "rpe": 8,
                    "load_text": "",
                    "rest": "2-3 min",
                    "notes": "",
                },
                {
                    "name": "Cable Lateral Raise",
                    "category": "accessory",
                    "sets": 3,
                    "reps": 15,
                    "rpe": 9,
                    "load_text": "",
                },
            ],
        }
    ],
}


def strip_code_fences(text):
    """Remove a surrounding markdown code fence, if present."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = FENCE_OPEN_RE.sub("", text)
        text = FENCE_CLOSE_RE.sub("", text)
        text = text.strip()
    return text


def _format_mapping(mapping):
    lines = []
    for key in sorted(mapping or {}):
        value = mapping[key]
        if value is None or value == "" or value == [] or value == {}:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(item) for item in value)
        elif isinstance(value, dict):
            value = json.dumps(value, sort_keys=True)
        lines.append(f"- {key}: {value}")
    return "\n".join(lines) if lines else "- (none provided)"


class GenerationGateway:
    """Calls the generative model once per cache miss and returns the raw draft."""

    def __init__(self, client, model, max_tokens=4096):
        """
        Args:
            client: anthropic.Anthropic instance (or a compatible test double)
            model: Claude model to use
            max_tokens: Maximum tokens for the response
        """
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, config, api_key):
        if not api_key:
            raise ConfigurationError(
                f"Missing API key: set {config['claude'].get('api_key_env', 'ANTHROPIC_API_KEY')} in your environment or .env"
            )
        client = anthropic.Anthropic(
            api_key=api_key,
            timeout=config["claude"].get("timeout", 120),
        )
        return cls(
            client,
            model=config["claude"]["model"],
            max_tokens=config["claude"]["max_tokens"],
        )

    def build_prompt(self, profile, constraints):
        """Build the generation prompt from the user profile and cohort constraints."""
        days = constraints.get("days_per_week")
        days_line = f"exactly {days} training days" if days else "the number of training days that fits the profile"
        session = constraints.get("session_minutes")
        session_line = f"about {session} minutes per session" if session else "sessions of about 60 minutes"

        return f"""You are an expert strength and conditioning coach generating one week of a personalized training program.

ATHLETE PROFILE:
{_format_mapping(profile)}

PROGRAM CONSTRAINTS:
{_format_mapping(constraints)}

Requirements:
- Plan {days_line}, {session_line}.
- Give every day a short label naming its focus (e.g. "Push", "Pull", "Legs", "Upper Body", "Lower Body", "Full Body").
- Prescribe each exercise with an integer number of sets, reps as a number or a "low-high" range, and an RPE from 1 to 10.
- Mark main barbell lifts and other heavy multi-joint movements with category "compound"; everything else is "accessory".
- Leave load_text empty unless you have a specific load cue to give.

OUTPUT FORMAT:
Return ONLY a JSON object with this shape. No markdown, no commentary.
{json.dumps(DRAFT_SHAPE_EXAMPLE, indent=2)}
"""

    def generate(self, profile, constraints):
        """
        Request one raw weekly draft.

        Returns:
            Parsed JSON object when the response is valid JSON, otherwise the
            response text unchanged (left for the draft validator to reject).

        Raises:
            GatewayError on transport/API failure or an empty response
        """
        prompt = self.build_prompt(profile or {}, constraints or {})
        logger.info("Requesting weekly program from %s", self.model)

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            logger.error("Program generation call failed: %s", exc)
            raise GatewayError(f"Program generation failed: {exc}") from exc

        content = getattr(message, "content", None) or []
        text = strip_code_fences(getattr(content[0], "text", "") if content else "")
        if not text:
            logger.error("Program generation returned an empty response")
            raise GatewayError("Program generation returned an empty response")

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Generation response is not valid JSON; passing raw text to validation")
            return text
