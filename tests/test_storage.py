import pytest

from astgraph.storage import BackendKind, GraphStorage, default_db_path


def test_default_db_path_location(tmp_path):
    path = default_db_path(tmp_path)
    assert path == tmp_path / ".ast-graph" / "graph.db"


def test_default_db_path_creates_directory(tmp_path):
    path = default_db_path(tmp_path)
    assert path.parent.is_dir()
    assert not path.exists()


def test_default_db_path_is_repeatable(tmp_path):
    first = default_db_path(tmp_path)
    second = default_db_path(str(tmp_path))
    assert first == second


def test_default_db_path_tolerates_unwritable_root(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    path = default_db_path(blocker)
    assert path == blocker / ".ast-graph" / "graph.db"
    assert not path.parent.exists()


def test_backend_kind_sqlite():
    assert BackendKind("sqlite") is BackendKind.SQLITE


def test_graph_storage_is_abstract():
    with pytest.raises(TypeError):
        GraphStorage()