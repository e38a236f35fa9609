from repo_analyzer_mcp.clients.errors.github import ClientError


class CompletionRequestError(ClientError):
    """A request to the completion backend failed."""

    def __init__(self, action: str, message: str | None = None):
        super().__init__(message="A completion request failed.", extra_info={"action": action, "message": message})


class MalformedCompletionError(CompletionRequestError):
    """The completion backend answered without a usable first choice."""

    def __init__(self, action: str, reason: str):
        super().__init__(action=action, message=f"Malformed completion response: {reason}")
