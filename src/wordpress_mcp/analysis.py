"""
AI-assisted review of file changes.

Sends a batch of changes to the configured LLM and parses its verdict. The
model is asked for a JSON object; anything else falls back to a neutral
"monitor" result instead of failing.
"""

import json
import logging
import re
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, Field, ValidationError

from wordpress_mcp.files.models import FileChange
from wordpress_mcp.llm.base import LLMProvider

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 4000

ANALYSIS_PROMPT = """You are a WordPress security expert.
Analyze these file changes and return ONLY a JSON object:
{{
  "message": "Summary of findings",
  "action": "monitor" | "revert" | "investigate" | "error",
  "data": {{"securityRisk": "low|medium|high", "details": "..."}},
  "success": true
}}
File Changes: {changes}"""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ChangeAnalysis(BaseModel):
    """Verdict returned for a batch of changes."""

    message: str
    action: Optional[str] = None
    data: Optional[Any] = None
    success: bool = True


FALLBACK_ANALYSIS = ChangeAnalysis(
    message="Analysis completed (fallback, non-JSON response).",
    action="monitor",
    success=True,
)


def parse_analysis(text: str) -> ChangeAnalysis:
    """Parse the model output, falling back when it is not the expected JSON."""
    stripped = text.strip()
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    try:
        return ChangeAnalysis.model_validate(json.loads(stripped))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Non-JSON analysis response, using fallback: {e}")
        return FALLBACK_ANALYSIS.model_copy()


class ChangeAnalyzer:
    """
    Asks an LLM to assess file changes for security and performance risks.

    Usage:
        analyzer = ChangeAnalyzer(get_provider(LLMConfig(api_key="sk-...")))
        analysis = await analyzer.analyze_file_changes([
            {"path": "wp-config.php", "type": "modified"},
        ])
        print(analysis.action)
    """

    def __init__(self, llm: LLMProvider):
        self.llm = llm

    def _serialize(self, changes: Sequence[Union[FileChange, dict[str, Any]]]) -> str:
        items = []
        for change in changes:
            if isinstance(change, FileChange):
                item = change.model_dump(mode="json", exclude={"timestamp"}, exclude_none=True)
            else:
                item = {k: v for k, v in change.items() if v is not None}
            content = item.get("content")
            if isinstance(content, str) and len(content) > MAX_CONTENT_CHARS:
                item["content"] = content[:MAX_CONTENT_CHARS] + "\n... [truncated]"
            items.append(item)
        return json.dumps(items, indent=2)

    async def analyze_file_changes(
        self, changes: Sequence[Union[FileChange, dict[str, Any]]]
    ) -> ChangeAnalysis:
        """
        Analyze a batch of changes.

        Raises:
            LLMError: If the provider call fails
        """
        prompt = ANALYSIS_PROMPT.format(changes=self._serialize(changes))
        response = await self.llm.complete(prompt, temperature=0.0)
        analysis = parse_analysis(response.content)
        logger.info(f"Analyzed {len(changes)} change(s): {analysis.action}")
        return analysis

    async def close(self) -> None:
        await self.llm.close()
