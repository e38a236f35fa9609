from typing import Annotated

from pydantic import Field

IDENTIFIER_DESCRIPTION = "The repository to open: a GitHub URL (optionally with /tree/<branch>) or `owner/repo`."
IDENTIFIER = Annotated[str, Field(description=IDENTIFIER_DESCRIPTION)]

REF_DESCRIPTION = (
    "The file to analyze: an absolute URL, a path starting with `/` inside the open repository, "
    "or a local file path when the local file service is running."
)
REF = Annotated[str, Field(description=REF_DESCRIPTION)]
