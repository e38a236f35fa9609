from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any

import httpx
from openai import AsyncOpenAI, OpenAIError

from repo_analyzer_mcp.clients.errors.completions import CompletionRequestError, MalformedCompletionError
from repo_analyzer_mcp.config import (
    get_completion_api_key,
    get_completion_base_url,
    get_completion_max_tokens,
    get_completion_model,
    get_completion_referer,
    get_completion_timeout,
)

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletionMessageParam


def get_openai_client(
    api_key: str | None = None,
    base_url: str | None = None,
    referer: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncOpenAI:
    # No retries: a failed completion is surfaced to the caller immediately.
    return AsyncOpenAI(
        api_key=api_key or get_completion_api_key(),
        base_url=base_url or get_completion_base_url(),
        default_headers={"HTTP-Referer": referer or get_completion_referer()},
        max_retries=0,
        timeout=get_completion_timeout(),
        http_client=http_client,
    )


def extract_first_choice_text(completion: Any, action: str) -> str:  # pyright: ignore[reportAny]
    """Read the message text of the first choice, tolerating bodies that do not match the expected shape."""

    choices = getattr(completion, "choices", None)  # pyright: ignore[reportAny]

    if not isinstance(choices, list) or not choices:
        raise MalformedCompletionError(action=action, reason="the response has no choices")

    message = getattr(choices[0], "message", None)  # pyright: ignore[reportAny]
    content = getattr(message, "content", None)  # pyright: ignore[reportAny]

    if not isinstance(content, str):
        raise MalformedCompletionError(action=action, reason="the first choice has no message content")

    return content


class CompletionClient:
    """Sends one chat-style request per call to an OpenAI-compatible completions endpoint."""

    _openai_client: AsyncOpenAI | None
    model: str
    max_tokens: int | None
    logger: Logger
    log_responses: bool

    def __init__(
        self,
        openai_client: AsyncOpenAI | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        logger: Logger | None = None,
        log_responses: bool = False,
    ):
        self._openai_client = openai_client
        self.model = model or get_completion_model()
        self.max_tokens = max_tokens or get_completion_max_tokens()
        self.logger = logger or getLogger(__name__)
        self.log_responses = log_responses

    @property
    def openai_client(self) -> AsyncOpenAI:
        # Built on first use so the server starts without completion credentials.
        if self._openai_client is None:
            self._openai_client = get_openai_client()
        return self._openai_client

    async def complete(self, system_prompt: str, user_prompt: str, action: str = "Complete") -> str:
        """Send a system and a user message and return the text of the first choice.

        Raises:
            CompletionRequestError: If the request fails or the response carries no usable choice.
        """

        messages: list[ChatCompletionMessageParam] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        request_args: dict[str, Any] = {"model": self.model, "messages": messages}
        if self.max_tokens is not None:
            request_args["max_tokens"] = self.max_tokens

        self.logger.info(f"Performing {action} with model {self.model} and a prompt of {len(system_prompt) + len(user_prompt)} characters")

        try:
            completion = await self.openai_client.chat.completions.create(**request_args)  # pyright: ignore[reportAny]
        except OpenAIError as e:
            self.logger.exception(f"Error performing {action} with model {self.model}: {e}")
            raise CompletionRequestError(action=action, message=str(e)) from e
        except ValueError as e:
            # The body could not be decoded as a completion.
            self.logger.exception(f"Malformed response performing {action} with model {self.model}: {e}")
            raise MalformedCompletionError(action=action, reason=str(e)) from e

        text: str = extract_first_choice_text(completion, action=action)

        response_logger = self.logger.info if self.log_responses else self.logger.debug
        response_logger(f"Completed {action} with {len(text)} characters")

        return text
