"""Turn a script or scene list into one video prompt per ~8 second clip.

A single ``generateContent`` call asks a text model to break a script into
scenes, or to tidy up and pad out a list of scenes the user already wrote.
The reply is split into one prompt per line, ready to feed a video batch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any

from pydantic import BaseModel, ConfigDict

from veoqueue.core.api.http import ApiError, AsyncApiClient
from veoqueue.core.config.models import DEFAULT_PLANNER_MODEL
from veoqueue.core.generation.cancellation import raise_if_cancelled, run_cancellable
from veoqueue.core.generation.errors import NoContentProduced, SubmissionFailed
from veoqueue.core.generation.protocol import (
    Content,
    ContentPart,
    GenerateContentRequest,
    GenerateContentResponse,
)

logger = logging.getLogger(__name__)

SECONDS_PER_PROMPT = 8
DEFAULT_PLANNER_ERROR = "Failed to generate prompts"

_SKIPPED_PREFIXES = ("Script:", "Role:", "```")


class PromptPlan(BaseModel):
    """What will be asked of the model for one script.

    Attributes:
        num_prompts: Clips needed to cover the duration.
        input_lines: Non-blank lines of the script.
        is_list: Whether the script reads as a scene list rather than prose.
        instruction: Full text sent to the model.
    """

    model_config = ConfigDict(frozen=True)

    num_prompts: int
    input_lines: int
    is_list: bool
    instruction: str

    @property
    def expected_prompts(self) -> int:
        """Long scene lists keep every line; otherwise one prompt per clip."""
        if self.is_list and self.input_lines > self.num_prompts:
            return self.input_lines
        return self.num_prompts


def prompts_needed(duration_s: int) -> int:
    """Number of 8 second clips covering ``duration_s``.

    Raises:
        ValueError: If the duration is shorter than one clip
    """
    if duration_s < SECONDS_PER_PROMPT:
        raise ValueError(f"Duration must be at least {SECONDS_PER_PROMPT} seconds")
    return math.ceil(duration_s / SECONDS_PER_PROMPT)


def _non_blank_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


def is_scene_list(script: str, num_prompts: int) -> bool:
    """A script with more lines than half the clip count is treated as a scene list."""
    return len(_non_blank_lines(script)) > num_prompts * 0.5


def build_plan(script: str, duration_s: int, style: dict[str, Any] | None = None) -> PromptPlan:
    """Build the instruction for ``script``.

    Args:
        script: Story text or one scene per line
        duration_s: Target video length in seconds
        style: Visual style settings included verbatim as JSON (omitted when empty)

    Raises:
        ValueError: If the script is blank or the duration too short
    """
    if not script.strip():
        raise ValueError("Script is empty")
    num_prompts = prompts_needed(duration_s)
    input_lines = len(_non_blank_lines(script))
    is_list = is_scene_list(script, num_prompts)

    instruction = "Role: Professional Video Director.\n"

    if style:
        instruction += (
            "\nVisual Style Guidelines (MUST FOLLOW STRICTLY):\n"
            f"```json\n{json.dumps(style, indent=2, ensure_ascii=False)}\n```\n"
            "Ensure all generated prompts adhere to these visual constraints "
            "(camera, lighting, vibe, etc.).\n\n"
        )

    if is_list and input_lines > num_prompts:
        instruction += (
            f"Task: Format and enhance a list of {input_lines} scenes for AI video "
            "generation (Veo).\n"
            f"IMPORTANT: Keep ALL {input_lines} scenes. Do NOT remove/summarize.\n"
            f"Return exactly one prompt per line. No numbering.\n\nInput:\n{script}"
        )
    elif is_list:
        instruction += (
            f"Task: Expand a list of scenes to exactly {num_prompts} prompts for a "
            f"{duration_s}s video (~{SECONDS_PER_PROMPT}s each).\n"
            "1. Keep original meaning.\n"
            "2. Expand if short.\n"
            "3. Return ONLY list of prompts, one per line. No numbering.\n\n"
            f"Input:\n{script}"
        )
    else:
        instruction += (
            f"Task: Break down the script into exactly {num_prompts} distinct visual "
            f"scenes for a {duration_s}s video (~{SECONDS_PER_PROMPT}s each).\n"
            "1. Tell the story step-by-step.\n"
            "2. Vivid, standalone English visual descriptions.\n"
            "3. Smooth transitions.\n"
            "4. Focus on visual details.\n"
            "5. Return ONLY list of prompts, one per line. No numbering.\n\n"
            f"Script:\n{script}"
        )

    return PromptPlan(
        num_prompts=num_prompts,
        input_lines=input_lines,
        is_list=is_list,
        instruction=instruction,
    )


def split_prompt_lines(text: str) -> list[str]:
    """One prompt per non-blank line, dropping echoed headers and code fences."""
    lines = (line.strip() for line in text.split("\n"))
    return [line for line in lines if line and not line.startswith(_SKIPPED_PREFIXES)]


class PromptPlanner:
    """Asks a text model for the prompts of a script.

    Args:
        api: Provider client
        model: Text model id
    """

    def __init__(self, api: AsyncApiClient, model: str = DEFAULT_PLANNER_MODEL) -> None:
        self._api = api
        self.model = model

    async def plan(
        self,
        script: str,
        duration_s: int,
        credential: str,
        *,
        style: dict[str, Any] | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> list[str]:
        """Return the prompts for ``script``, in story order.

        Raises:
            ValueError: If the script is blank or the duration too short
            SubmissionFailed: If the provider call fails
            NoContentProduced: If the reply has no text
            Cancelled: If ``cancel_token`` is set
        """
        plan = build_plan(script, duration_s, style)
        logger.debug(
            "Planning %d prompts from %d lines (list=%s)",
            plan.num_prompts,
            plan.input_lines,
            plan.is_list,
        )
        raise_if_cancelled(cancel_token)
        response = await run_cancellable(self._request(plan, credential), cancel_token)

        text = response.first_text()
        if not text:
            raise NoContentProduced(response.empty_reason())
        prompts = split_prompt_lines(text)
        if not prompts:
            raise NoContentProduced()
        if len(prompts) != plan.expected_prompts:
            logger.info(
                "Asked for %d prompts, model returned %d", plan.expected_prompts, len(prompts)
            )
        return prompts

    async def _request(self, plan: PromptPlan, credential: str) -> GenerateContentResponse:
        body = GenerateContentRequest(
            contents=[Content(role="user", parts=[ContentPart(text=plan.instruction)])]
        ).to_wire()
        try:
            resp = await self._api.post(
                f"models/{self.model}:generateContent",
                params={"key": credential},
                json_body=body,
            )
            return self._api.parse_pydantic(resp, GenerateContentResponse)
        except ApiError as e:
            raise SubmissionFailed(e.provider_message(DEFAULT_PLANNER_ERROR)) from e
