import json

from astgraph.graph import CodeGraph, Language, NodeId, SymbolKind, SymbolNode
from astgraph.paths import (
    build_file_index,
    load_path_aliases,
    normalize_path,
    resolve_alias_target,
    resolve_import_by_path,
    strip_ext,
)


def add_node(graph, path, kind=SymbolKind.FILE, name=None):
    name = name or path
    node_id = NodeId.new(path, name, kind, 0)
    graph.add_node(
        SymbolNode(
            id=node_id,
            name=name,
            kind=kind,
            file_path=path,
            line_range=(0, 0),
            language=Language.TYPESCRIPT,
        )
    )
    return node_id


def test_normalize_keeps_clean_path():
    assert normalize_path("/repo/src/app") == "/repo/src/app"
    assert normalize_path("repo/src") == "repo/src"


def test_normalize_collapses_dots():
    assert normalize_path("/repo/src/../lib/./x") == "/repo/lib/x"


def test_normalize_backslashes_and_idempotence():
    once = normalize_path("repo\\src\\..\\lib")
    assert once == normalize_path("repo/src/../lib")
    assert normalize_path(once) == once
    assert "\\" not in once


def test_strip_ext():
    assert strip_ext("/a/b.tsx") == "/a/b"
    assert strip_ext("/a/b.mjs") == "/a/b"
    assert strip_ext("/a/b.py") == "/a/b.py"


def test_resolve_alias_target():
    aliases = [("@", "/repo/src")]
    assert resolve_alias_target("@/components/Button", aliases) == "/repo/src/components/Button"
    assert resolve_alias_target("@", aliases) == "/repo/src"
    assert resolve_alias_target("react", aliases) is None


def test_file_index_and_probe():
    graph = CodeGraph()
    util = add_node(graph, "/repo/src/util.ts")
    comp = add_node(graph, "/repo/src/comp/index.tsx")
    add_node(graph, "/repo/src/other.ts", kind=SymbolKind.FUNCTION, name="other")
    index = build_file_index(graph)
    assert index["/repo/src/util"] == util
    assert index["/repo/src/util.ts"] == util
    assert "/repo/src/other" not in index
    assert resolve_import_by_path("/repo/src/util", index) == [util]
    assert resolve_import_by_path("/repo/src/lib/../util", index) == [util]
    assert resolve_import_by_path("/repo/src/comp", index) == [comp]
    assert resolve_import_by_path("/repo/src/missing", index) is None


def test_file_index_normalizes_backslashes():
    graph = CodeGraph()
    file_id = add_node(graph, "C:\\repo\\src\\util.ts")
    index = build_file_index(graph)
    assert resolve_import_by_path("C:/repo/src/util", index) == [file_id]


def test_load_path_aliases_from_tsconfig(tmp_path):
    config = {
        "compilerOptions": {
            "baseUrl": "./src",
            "paths": {"@/*": ["*"], "~lib/*": ["lib/*"]},
        }
    }
    (tmp_path / "tsconfig.json").write_text(json.dumps(config), encoding="utf-8")
    aliases = load_path_aliases(tmp_path)
    src = (tmp_path / "src").as_posix()
    assert aliases == [("@", src), ("~lib", (tmp_path / "src" / "lib").as_posix())]
    assert resolve_alias_target("@/a", aliases) == src + "/a"


def test_load_path_aliases_without_base_url(tmp_path):
    config = {"compilerOptions": {"paths": {"#app/*": ["app/*"]}}}
    (tmp_path / "jsconfig.json").write_text(json.dumps(config), encoding="utf-8")
    assert load_path_aliases(tmp_path) == [("#app", (tmp_path / "app").as_posix())]


def test_no_config_gives_no_aliases(tmp_path):
    assert load_path_aliases(tmp_path) == []


def test_tsconfig_wins_even_without_paths(tmp_path):
    (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {}}', encoding="utf-8")
    jsconfig = {"compilerOptions": {"paths": {"@/*": ["src/*"]}}}
    (tmp_path / "jsconfig.json").write_text(json.dumps(jsconfig), encoding="utf-8")
    assert load_path_aliases(tmp_path) == []