from collections.abc import Iterable, Iterator, Sequence
from typing import Literal, Self

from githubkit.versions.v2022_11_28.models import GitTree
from pydantic import BaseModel, Field

from repo_analyzer_mcp.errors import TreeConflictError

FOLDER = "folder"
FILE = "file"

NodeType = Literal["file", "folder"]


def get_file_extension(file_path: str) -> str | None:
    file_name = file_path.split("/")[-1]
    if "." not in file_name:
        return None
    return file_name.split(".")[-1]


def normalize_extension(extension: str) -> str:
    return extension.strip().lstrip(".").lower()


def matches_excluded_prefix(path: str, excluded_prefixes: Iterable[str]) -> bool:
    """A prefix like `dist/` excludes `dist/...` as well as the `dist` folder entry itself."""

    return any(f"{path}/".startswith(prefix) for prefix in excluded_prefixes if prefix)


def matches_excluded_extension(path: str, excluded_extensions: set[str]) -> bool:
    if not (extension := get_file_extension(path)):
        return False
    return extension.lower() in excluded_extensions


def name_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive order first, lowercase before uppercase when names only differ in case.

    Punctuation compares by code point (`-` < `.` < `_`), unlike locale collation which puts `_` first."""

    return name.casefold(), name.swapcase()


class TreeEntry(BaseModel):
    """One entry of a flat repository listing."""

    path: str = Field(description="The repository-relative path of the entry, without a leading slash.")
    kind: Literal["blob", "tree"] = Field(description="Whether the entry is a file (blob) or a directory (tree).")

    @classmethod
    def from_git_tree(cls, git_tree: GitTree) -> list[Self]:
        # Submodules are reported as `commit` entries and are listed as files.
        return [cls(path=item.path, kind="tree" if item.type == "tree" else "blob") for item in git_tree.tree if item.path]


class FileNode(BaseModel):
    """A file or folder in the rendered repository tree."""

    name: str = Field(description="The name of the file or folder.")
    path: str = Field(description="The path of the file or folder, starting with a slash.")
    type: NodeType = Field(description="Whether the node is a file or a folder.")
    children: list["FileNode"] | None = Field(default=None, description="The children of a folder. Not set for files.")

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER

    def iter_nodes(self) -> Iterator["FileNode"]:
        yield self
        for child in self.children or []:
            yield from child.iter_nodes()

    @property
    def count_files(self) -> int:
        return sum(1 for node in self.iter_nodes() if not node.is_folder)


def sort_file_nodes(nodes: Iterable[FileNode]) -> list[FileNode]:
    """Folders before files, then by name."""

    return sorted(nodes, key=lambda node: (not node.is_folder, name_sort_key(node.name)))


def count_tree_files(nodes: Sequence[FileNode]) -> int:
    return sum(node.count_files for node in nodes)


class _TrieNode:
    def __init__(self, name: str, path: str, node_type: NodeType):
        self.name: str = name
        self.path: str = path
        self.type: NodeType = node_type
        self.children: dict[str, _TrieNode] = {}

    def to_file_node(self) -> FileNode:
        if self.type == FILE:
            return FileNode(name=self.name, path=self.path, type=FILE)

        return FileNode(
            name=self.name,
            path=self.path,
            type=FOLDER,
            children=sort_file_nodes(child.to_file_node() for child in self.children.values()),
        )


class FileTreeBuilder:
    """Inserts slash-delimited paths into a trie keyed by path segment."""

    def __init__(self, excluded_prefixes: Iterable[str] = (), excluded_extensions: Iterable[str] = ()):
        self.excluded_prefixes: list[str] = [prefix for prefix in excluded_prefixes if prefix]
        self.excluded_extensions: set[str] = {normalize_extension(extension) for extension in excluded_extensions if extension.strip()}
        self.root: dict[str, _TrieNode] = {}

    def is_excluded(self, entry: TreeEntry) -> bool:
        if matches_excluded_prefix(entry.path, self.excluded_prefixes):
            return True

        return entry.kind != "tree" and matches_excluded_extension(entry.path, self.excluded_extensions)

    def insert(self, entry: TreeEntry) -> None:
        parts: list[str] = [part for part in entry.path.split("/") if part]
        if not parts:
            return

        siblings: dict[str, _TrieNode] = self.root

        for index, part in enumerate(parts):
            is_last: bool = index == len(parts) - 1
            node_type: NodeType = (FOLDER if entry.kind == "tree" else FILE) if is_last else FOLDER
            path: str = "/" + "/".join(parts[: index + 1])

            node: _TrieNode | None = siblings.get(part)

            if node is None:
                node = _TrieNode(name=part, path=path, node_type=node_type)
                siblings[part] = node
            elif node.type != node_type:
                raise TreeConflictError(path=path, existing_type=node.type, new_type=node_type)

            siblings = node.children

    def add(self, entries: Iterable[TreeEntry]) -> Self:
        for entry in entries:
            if self.is_excluded(entry):
                continue
            self.insert(entry)
        return self

    def build(self) -> list[FileNode]:
        return sort_file_nodes(node.to_file_node() for node in self.root.values())


def build_file_tree(
    entries: Iterable[TreeEntry],
    excluded_prefixes: Iterable[str] = (),
    excluded_extensions: Iterable[str] = (),
) -> list[FileNode]:
    """Build a sorted, filtered tree from a flat list of repository entries.

    Args:
        entries: The flat entries, in any order.
        excluded_prefixes: Entries whose path starts with any of these prefixes are dropped, with their whole subtree.
        excluded_extensions: Files with any of these extensions (case-insensitive) are dropped.

    Raises:
        TreeConflictError: If the same path is listed both as a file and as a folder.
    """

    return FileTreeBuilder(excluded_prefixes=excluded_prefixes, excluded_extensions=excluded_extensions).add(entries).build()
