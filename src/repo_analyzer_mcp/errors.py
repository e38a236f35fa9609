from repo_analyzer_mcp.clients.errors.github import ExtraInfoType, describe


class AnalyzerError(Exception):
    """An error from the Repo Analyzer core."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        super().__init__(describe(message, extra_info))


class InvalidReferenceError(AnalyzerError):
    """The repository identifier is malformed or not allowed."""

    def __init__(self, identifier: str, reason: str | None = None):
        super().__init__(message="Invalid GitHub repo URL or format.", extra_info={"identifier": identifier, "reason": reason})


class MissingRepoContextError(AnalyzerError):
    """A repository-relative path was resolved without an open repository."""

    def __init__(self, path: str):
        super().__init__(message="Missing GitHub repo info for file path.", extra_info={"path": path})


class ContentFetchError(AnalyzerError):
    """The contents of a file could not be fetched."""

    def __init__(self, ref: str, message: str | None = None):
        super().__init__(message="Could not fetch file contents.", extra_info={"ref": ref, "message": message})


class AnalysisFailureError(AnalyzerError):
    """The completion backend did not produce a usable analysis."""

    def __init__(self, action: str, message: str | None = None):
        super().__init__(message="Analysis failed.", extra_info={"action": action, "message": message})


class TreeConflictError(AnalyzerError):
    """Two tree entries disagree on whether a path is a file or a folder."""

    def __init__(self, path: str, existing_type: str, new_type: str):
        super().__init__(
            message="Conflicting tree entries.",
            extra_info={"path": path, "existing_type": existing_type, "new_type": new_type},
        )


class SupersededRequestError(AnalyzerError):
    """A newer request on the same channel replaced this one."""

    def __init__(self, channel: str, request_id: int, latest_request_id: int):
        super().__init__(
            message="The request was superseded by a newer request.",
            extra_info={"channel": channel, "request_id": str(request_id), "latest_request_id": str(latest_request_id)},
        )
