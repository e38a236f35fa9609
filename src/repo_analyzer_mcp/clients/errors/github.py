ExtraInfoType = dict[str, str | None]


def describe(message: str, extra_info: ExtraInfoType | None) -> str:
    """Append the non-empty `extra_info` pairs to a message, e.g. `Failed. (action: Get repository)`."""

    details: list[str] = [f"{key}: {value}" for key, value in (extra_info or {}).items() if value is not None]

    return f"{message} ({', '.join(details)})" if details else message


class ClientError(Exception):
    """A failed call to an outside service."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        super().__init__(describe(message, extra_info))


class RequestError(ClientError):
    """A GitHub API request failed."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        super().__init__(message="The GitHub request failed.", extra_info={"action": action, "message": message, **(extra_info or {})})


class ResourceNotFoundError(RequestError):
    """GitHub answered 404."""

    def __init__(self, action: str, resource: str | None = None):
        super().__init__(action=action, message="The resource could not be found.", extra_info={"resource": resource})
