from loguru import logger
from config.settings import settings
from core.exceptions import ConfigurationError, UpstreamError
from models.permissions import FormatOptions, GroupPermissionInput, RiskAssessment


def build_prompt(groups: list[GroupPermissionInput], assessment: RiskAssessment,
                 options: FormatOptions) -> str:
    blocks = "\n\n".join(
        f"Group: {g.group_name}\n"
        f"Permission counts:\n"
        f"- Create: {g.permission_counts.create} models\n"
        f"- Read: {g.permission_counts.read} models\n"
        f"- Update: {g.permission_counts.update} models\n"
        f"- Delete: {g.permission_counts.delete} models"
        for g in groups
    )
    flagged = ", ".join(assessment.high_risk_groups) or "none"

    rules = []
    if options.concise:
        rules.append("Be extremely concise and direct. Use short sentences and minimal words.")
    if options.avoid_markdown:
        rules.append("Do not use any markdown syntax in your response. Use plain text only.")
    formatting = ("\n\nFormatting requirements:\n" + "\n".join(rules)) if rules else ""

    return f"""Analyze the following Odoo ERP user permissions summary and identify potential security risks or issues:

{blocks}

Computed risk score: {assessment.risk_score:.1f}/100 ({assessment.risk_level.value})
Groups flagged as high risk: {flagged}

Please provide a concise analysis of:
1. Overall risk assessment (low, medium, or high)
2. Potential security vulnerabilities
3. Recommendations to improve security

Focus on permission combinations and counts that might lead to data breaches, unauthorized access, or operational risks.
For example, high number of delete permissions might indicate excessive rights.{formatting}"""


class PermissionNarrativeEngine:
    def __init__(self, client=None, model=None):
        self.model = model or settings.OPENAI_MODEL
        self.client = client
        self.enabled = client is not None or settings.is_openai_configured()
        if not self.enabled:
            logger.warning("AI analysis disabled — OPENAI_API_KEY not set.")

    def _client(self):
        if self.client is None:
            from openai import OpenAI
            kwargs = {"api_key": settings.OPENAI_API_KEY}
            if settings.OPENAI_BASE_URL:
                kwargs["base_url"] = settings.OPENAI_BASE_URL
            self.client = OpenAI(**kwargs)
        return self.client

    def generate(self, prompt: str) -> str:
        if not self.enabled:
            raise ConfigurationError("OpenAI API key is not configured")
        try:
            stream = self._client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.3, max_tokens=800, stream=True,
            )
            text = ""
            for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    text += chunk.choices[0].delta.content
        except Exception as e:
            logger.error(f"OpenAI error: {e}")
            raise UpstreamError(str(e) or "Failed to analyze permissions") from e

        if not text.strip():
            raise UpstreamError("Empty response from OpenAI API")
        return text.strip()
