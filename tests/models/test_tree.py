import random
from types import SimpleNamespace
from typing import Any

import pytest
from inline_snapshot import snapshot

from repo_analyzer_mcp.errors import TreeConflictError
from repo_analyzer_mcp.models.repository.tree import (
    FileNode,
    TreeEntry,
    build_file_tree,
    count_tree_files,
    get_file_extension,
    matches_excluded_prefix,
    sort_file_nodes,
)


def entries(*items: tuple[str, str]) -> list[TreeEntry]:
    return [TreeEntry(path=path, kind=kind) for path, kind in items]  # pyright: ignore[reportArgumentType]


def dump(nodes: list[FileNode]) -> list[dict[str, Any]]:
    return [node.model_dump(exclude_none=True) for node in nodes]


def assert_paths_follow_parents(nodes: list[FileNode], parent_path: str = "") -> None:
    for node in nodes:
        assert node.path == f"{parent_path}/{node.name}"
        assert (node.children is not None) == node.is_folder
        assert_paths_follow_parents(node.children or [], node.path)


def assert_siblings_ordered(nodes: list[FileNode]) -> None:
    folders = [node.name for node in nodes if node.is_folder]
    files = [node.name for node in nodes if not node.is_folder]

    assert [node.name for node in nodes] == folders + files
    assert folders == sorted(folders, key=str.casefold)
    assert files == sorted(files, key=str.casefold)

    for node in nodes:
        assert_siblings_ordered(node.children or [])


SAMPLE_ENTRIES = entries(
    ("src", "tree"),
    ("src/index.ts", "blob"),
    ("src/components", "tree"),
    ("src/components/FileTree.tsx", "blob"),
    ("src/components/App.tsx", "blob"),
    ("README.md", "blob"),
    ("package.json", "blob"),
    ("docs/guide.md", "blob"),
    ("assets/logo.JPG", "blob"),
    ("assets/icon.svg", "blob"),
    ("dist", "tree"),
    ("dist/bundle.js", "blob"),
    ("node_modules/react/index.js", "blob"),
)


class TestBuildFileTree:
    def test_nested_example(self):
        tree = build_file_tree(entries(("a/b.txt", "blob"), ("a/c/d.txt", "blob")))

        assert dump(tree) == snapshot(
            [
                {
                    "name": "a",
                    "path": "/a",
                    "type": "folder",
                    "children": [
                        {
                            "name": "c",
                            "path": "/a/c",
                            "type": "folder",
                            "children": [{"name": "d.txt", "path": "/a/c/d.txt", "type": "file"}],
                        },
                        {"name": "b.txt", "path": "/a/b.txt", "type": "file"},
                    ],
                }
            ]
        )

    def test_folders_before_files(self):
        tree = build_file_tree(entries(("zeta.txt", "blob"), ("alpha.txt", "blob"), ("zoo/x.txt", "blob"), ("beta", "tree")))

        assert [(node.name, node.type) for node in tree] == [
            ("beta", "folder"),
            ("zoo", "folder"),
            ("alpha.txt", "file"),
            ("zeta.txt", "file"),
        ]

    def test_names_ignore_case_and_put_lowercase_first(self):
        tree = build_file_tree(entries(("Readme.md", "blob"), ("readme.md", "blob"), ("Makefile", "blob"), ("app.py", "blob")))

        assert [node.name for node in tree] == ["app.py", "Makefile", "readme.md", "Readme.md"]

    def test_punctuation_orders_by_code_point(self):
        tree = build_file_tree(entries(("a_b", "blob"), ("a.b", "blob"), ("a-b", "blob")))

        assert [node.name for node in tree] == ["a-b", "a.b", "a_b"]

    def test_paths_follow_parents(self):
        tree = build_file_tree(SAMPLE_ENTRIES)

        assert_paths_follow_parents(tree)
        assert_siblings_ordered(tree)

    def test_independent_of_input_order(self):
        expected = dump(build_file_tree(SAMPLE_ENTRIES))

        shuffled = list(SAMPLE_ENTRIES)
        randomizer = random.Random(42)

        for _ in range(25):
            randomizer.shuffle(shuffled)
            assert dump(build_file_tree(shuffled)) == expected

        assert dump(build_file_tree(reversed(SAMPLE_ENTRIES))) == expected

    def test_excluded_prefixes_leave_no_residual_folder(self):
        tree = build_file_tree(SAMPLE_ENTRIES, excluded_prefixes=["dist/", "node_modules/"])

        paths = {node.path for root in tree for node in root.iter_nodes()}

        assert not any(path.startswith(("/dist", "/node_modules")) for path in paths)
        assert "/src/components/App.tsx" in paths

    def test_excluded_extensions_are_case_insensitive(self):
        tree = build_file_tree(SAMPLE_ENTRIES, excluded_extensions=[".jpg", "JPEG"])

        assets = next(node for node in tree if node.name == "assets")

        assert dump(assets.children or []) == [{"name": "icon.svg", "path": "/assets/icon.svg", "type": "file"}]

    def test_excluded_extension_does_not_apply_to_folders(self):
        tree = build_file_tree(entries(("photos.jpg", "tree"), ("photos.jpg/a.txt", "blob")), excluded_extensions=["jpg"])

        assert [node.name for node in tree] == ["photos.jpg"]

    def test_default_exclusions_from_configuration(self):
        tree = build_file_tree(SAMPLE_ENTRIES, excluded_prefixes=["dist/", "node_modules/"], excluded_extensions=["jpg", "jpeg"])

        assert [node.name for node in tree] == ["assets", "docs", "src", "package.json", "README.md"]
        assert count_tree_files(tree) == 7

    def test_duplicate_entries_are_idempotent(self):
        once = build_file_tree(entries(("src", "tree"), ("src/a.py", "blob")))
        twice = build_file_tree(entries(("src", "tree"), ("src/a.py", "blob"), ("src/a.py", "blob"), ("src", "tree")))

        assert dump(twice) == dump(once)

    def test_explicit_folder_after_implicit_folder(self):
        tree = build_file_tree(entries(("src/a.py", "blob"), ("src", "tree")))

        assert dump(tree) == [
            {"name": "src", "path": "/src", "type": "folder", "children": [{"name": "a.py", "path": "/src/a.py", "type": "file"}]}
        ]

    def test_empty_folder_is_kept(self):
        assert dump(build_file_tree(entries(("empty", "tree")))) == [{"name": "empty", "path": "/empty", "type": "folder", "children": []}]

    @pytest.mark.parametrize(
        "conflicting",
        [
            [("src", "tree"), ("src", "blob")],
            [("src/a.py", "blob"), ("src", "blob")],
            [("src", "blob"), ("src", "tree")],
            [("src", "blob"), ("src/a.py", "blob")],
        ],
    )
    def test_file_and_folder_conflicts_are_rejected(self, conflicting: list[tuple[str, str]]):
        with pytest.raises(TreeConflictError, match="Conflicting tree entries"):
            _ = build_file_tree(entries(*conflicting))

    def test_empty_input(self):
        assert build_file_tree([]) == []


class TestTreeEntry:
    def test_from_git_tree(self):
        git_tree = SimpleNamespace(
            tree=[
                SimpleNamespace(path="src", type="tree"),
                SimpleNamespace(path="src/a.py", type="blob"),
                SimpleNamespace(path="vendor/lib", type="commit"),
            ]
        )

        assert TreeEntry.from_git_tree(git_tree) == entries(("src", "tree"), ("src/a.py", "blob"), ("vendor/lib", "blob"))  # pyright: ignore[reportArgumentType]


def test_get_file_extension():
    assert get_file_extension("src/logo.JPG") == "JPG"
    assert get_file_extension("Makefile") is None
    assert get_file_extension("v1.2/Makefile") is None


def test_matches_excluded_prefix():
    assert matches_excluded_prefix("dist", ["dist/"])
    assert matches_excluded_prefix("dist/a.js", ["dist/"])
    assert not matches_excluded_prefix("distribution/a.js", ["dist/"])


def test_sort_file_nodes():
    nodes = [
        FileNode(name="b.txt", path="/b.txt", type="file"),
        FileNode(name="a", path="/a", type="folder", children=[]),
        FileNode(name="a.txt", path="/a.txt", type="file"),
    ]

    assert [node.name for node in sort_file_nodes(nodes)] == ["a", "a.txt", "b.txt"]
