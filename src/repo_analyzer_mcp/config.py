import os

DEFAULT_GITHUB_HOST = "github.com"
DEFAULT_RAW_CONTENT_URL = "https://raw.githubusercontent.com"
DEFAULT_BRANCH = "main"

DEFAULT_COMPLETION_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_COMPLETION_MODEL = "anthropic/claude-sonnet-4"
DEFAULT_COMPLETION_REFERER = "https://github.com/repo-analyzer"

DEFAULT_EXCLUDED_PREFIXES = ["dist/", "node_modules/"]
DEFAULT_EXCLUDED_EXTENSIONS = ["jpg", "jpeg"]

DEFAULT_LOCAL_FILE_SERVICE_URL = "http://localhost:8000"
DEFAULT_LOCAL_EXCLUDED_FOLDERS = ["dist", "node_modules"]


def _get_list(env_var: str, default: list[str]) -> list[str]:
    if (value := os.getenv(env_var)) is None:
        return list(default)

    return [item.strip() for item in value.split(",") if item.strip()]


def _get_float(env_var: str) -> float | None:
    if value := os.getenv(env_var):
        return float(value)

    return None


def get_github_token() -> str | None:
    for env_var in ("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"):
        if token := os.getenv(env_var):
            return token
    return None


def get_github_host() -> str:
    return os.getenv("GITHUB_HOST") or DEFAULT_GITHUB_HOST


def get_raw_content_url() -> str:
    return (os.getenv("GITHUB_RAW_CONTENT_URL") or DEFAULT_RAW_CONTENT_URL).rstrip("/")


def get_default_branch() -> str:
    return os.getenv("DEFAULT_BRANCH") or DEFAULT_BRANCH


def get_completion_api_key() -> str | None:
    return os.getenv("OPENROUTER_API_KEY") or os.getenv("OPENAI_API_KEY")


def get_completion_base_url() -> str:
    return os.getenv("COMPLETION_BASE_URL") or DEFAULT_COMPLETION_BASE_URL


def get_completion_model() -> str:
    return os.getenv("COMPLETION_MODEL") or DEFAULT_COMPLETION_MODEL


def get_completion_referer() -> str:
    return os.getenv("COMPLETION_REFERER") or DEFAULT_COMPLETION_REFERER


def get_completion_max_tokens() -> int | None:
    if value := os.getenv("COMPLETION_MAX_TOKENS"):
        return int(value)
    return None


def get_completion_timeout() -> float | None:
    return _get_float("COMPLETION_TIMEOUT_SECONDS")


def get_fetch_timeout() -> float | None:
    return _get_float("FETCH_TIMEOUT_SECONDS")


def get_excluded_prefixes() -> list[str]:
    return _get_list("EXCLUDED_PREFIXES", DEFAULT_EXCLUDED_PREFIXES)


def get_excluded_extensions() -> list[str]:
    return _get_list("EXCLUDED_EXTENSIONS", DEFAULT_EXCLUDED_EXTENSIONS)


def get_local_file_service_url() -> str:
    return (os.getenv("LOCAL_FILE_SERVICE_URL") or DEFAULT_LOCAL_FILE_SERVICE_URL).rstrip("/")


def get_local_excluded_folders() -> list[str]:
    return _get_list("LOCAL_EXCLUDED_FOLDERS", DEFAULT_LOCAL_EXCLUDED_FOLDERS)


def local_file_service_enabled() -> bool:
    return bool(os.getenv("ENABLE_LOCAL_FILE_SERVICE"))
