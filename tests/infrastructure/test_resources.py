import pytest
from pathlib import Path


def test_store_load_resource(session_workdir):
    from longorwide.infrastructure.resources import _store_resource, _load_resource

    data = {"a": 1, "b": 2}
    filename = _store_resource(data, session_workdir / "test_manifest.json", "store_resource_test_data", "Test data storage", "json")
    loaded_data = _load_resource(session_workdir / "test_manifest.json", filename)

    assert data == loaded_data


def test_stored_filename_has_random_suffix(session_workdir):
    import re
    from longorwide.infrastructure.resources import _store_resource

    manifest_path = session_workdir / "test_manifest.json"
    first = _store_resource("x", manifest_path, "suffix_test", "Text", "txt")
    second = _store_resource("x", manifest_path, "suffix_test", "Text", "txt")

    assert re.fullmatch(r"suffix_test_[0-9A-F]{8}\.txt", first)
    assert first != second


def test_create_project_manifest(session_workdir):
    from longorwide.infrastructure.resources import create_project_manifest

    manifest = create_project_manifest(str(session_workdir), "test_project")

    assert manifest["project_name"] == "test_project"
    assert "created_at" in manifest
    assert manifest["resources"] == []
    assert (session_workdir / "test_project_manifest.json").exists()


def test_read_project_manifest(session_workdir):
    from longorwide.infrastructure.resources import create_project_manifest, read_project_manifest

    create_project_manifest(str(session_workdir), "read_test")
    manifest = read_project_manifest(str(session_workdir / "read_test_manifest.json"))

    assert manifest["project_name"] == "read_test"
    assert "resources" in manifest


def test_read_missing_manifest_fails(session_workdir):
    from longorwide.infrastructure.resources import read_project_manifest

    with pytest.raises(FileNotFoundError, match="create_project_manifest"):
        read_project_manifest(str(session_workdir / "nowhere_manifest.json"))


def test_add_to_project_manifest(session_workdir):
    from longorwide.infrastructure.resources import create_project_manifest, add_to_project_manifest, read_project_manifest

    manifest_path = str(session_workdir / "add_test_manifest.json")
    create_project_manifest(str(session_workdir), "add_test")

    add_to_project_manifest(
        manifest_path,
        "test_file_12345678.csv",
        "csv",
        "Test CSV file"
    )

    manifest = read_project_manifest(manifest_path)
    assert len(manifest["resources"]) == 1
    assert manifest["resources"][0]["filename"] == "test_file_12345678.csv"
    assert manifest["resources"][0]["type_tag"] == "csv"


def test_manifest_records_creating_function(session_workdir):
    import pandas as pd
    from longorwide.infrastructure.resources import create_project_manifest, read_project_manifest
    from longorwide.tools.transform.reshape import wide_to_long_dataset
    from longorwide.infrastructure.resources import _store_resource

    manifest_path = str(session_workdir / "lineage_test_manifest.json")
    create_project_manifest(str(session_workdir), "lineage_test")

    wide = pd.DataFrame({"id": [1, 2], "t1": [3, 4], "t2": [5, 6]})
    input_filename = _store_resource(wide, manifest_path, "wide", "Wide data", "csv")
    wide_to_long_dataset(input_filename, manifest_path, ["id"], ["t1", "t2"], "long")

    entry = read_project_manifest(manifest_path)["resources"][-1]
    assert entry["parent_function_name"] == "wide_to_long_dataset"
    assert entry["parent_function_inputs"]["id_cols"] == ["id"]
    assert entry["module_name"] == "longorwide.tools.transform.reshape"


def test_remove_from_project_manifest(session_workdir):
    from longorwide.infrastructure.resources import (
        create_project_manifest,
        add_to_project_manifest,
        remove_from_project_manifest,
        read_project_manifest
    )

    manifest_path = str(session_workdir / "remove_test_manifest.json")
    create_project_manifest(str(session_workdir), "remove_test")

    add_to_project_manifest(manifest_path, "file1.csv", "csv", "File 1")
    add_to_project_manifest(manifest_path, "file2.csv", "csv", "File 2")

    removed = remove_from_project_manifest(manifest_path, "file1.csv")

    assert removed["filename"] == "file1.csv"
    manifest = read_project_manifest(manifest_path)
    assert len(manifest["resources"]) == 1
    assert manifest["resources"][0]["filename"] == "file2.csv"
    assert remove_from_project_manifest(manifest_path, "file1.csv") is None


def test_remove_from_project_manifest_deletes_file(request):
    import tempfile
    from longorwide.infrastructure.resources import create_project_manifest, remove_from_project_manifest, _store_resource

    d = Path(tempfile.mkdtemp()) / request.node.name
    create_project_manifest(str(d), "delete_test")
    manifest_path = str(d / "delete_test_manifest.json")

    filename = _store_resource("some text", manifest_path, "note", "A note", "txt")
    assert (d / filename).exists()

    remove_from_project_manifest(manifest_path, filename, delete_file=True)
    assert not (d / filename).exists()


def test_list_untracked_resources(session_workdir):
    from longorwide.infrastructure.resources import (
        create_project_manifest,
        add_to_project_manifest,
        list_untracked_resources_in_project
    )

    manifest_path = str(session_workdir / "untracked_test_manifest.json")
    create_project_manifest(str(session_workdir), "untracked_test")

    # Create a file that's not in manifest
    (session_workdir / "orphan_file.txt").write_text("orphan")

    # Add a tracked file to manifest
    add_to_project_manifest(manifest_path, "tracked_file.csv", "csv", "Tracked")

    untracked = list_untracked_resources_in_project(manifest_path)

    assert "orphan_file.txt" in untracked
    assert "tracked_file.csv" not in untracked
    assert "untracked_test_manifest.json" not in untracked


def test_get_supported_resource_types():
    from longorwide.infrastructure.resources import get_supported_resource_types

    types = get_supported_resource_types()

    assert isinstance(types, list)
    assert "csv" in types
    assert "json" in types
    assert "txt" in types


def test_store_and_load_csv(session_workdir):
    import pandas as pd
    from longorwide.infrastructure.resources import _store_resource, _load_resource, create_project_manifest

    manifest_path = str(session_workdir / "csv_test_manifest.json")
    create_project_manifest(str(session_workdir), "csv_test")

    df = pd.DataFrame({"col1": [1, 2, 3], "col2": ["a", "b", "c"]})
    filename = _store_resource(df, manifest_path, "test_df", "Test DataFrame", "csv")
    loaded_df = _load_resource(manifest_path, filename)

    pd.testing.assert_frame_equal(loaded_df, df)


def test_store_unsupported_type_fails(session_workdir):
    from longorwide.infrastructure.resources import _store_resource

    with pytest.raises(ValueError, match="Unsupported resource type"):
        _store_resource({"a": 1}, session_workdir / "test_manifest.json", "bad", "Bad type", "pickle")


def test_load_nonexistent_resource(session_workdir):
    from longorwide.infrastructure.resources import _load_resource, create_project_manifest

    manifest_path = str(session_workdir / "error_test_manifest.json")
    create_project_manifest(str(session_workdir), "error_test")

    with pytest.raises(ValueError, match="not found in manifest"):
        _load_resource(manifest_path, "nonexistent_file.csv")


def test_load_tracked_but_missing_file(session_workdir):
    from longorwide.infrastructure.resources import _load_resource, add_to_project_manifest, create_project_manifest

    manifest_path = str(session_workdir / "gone_test_manifest.json")
    create_project_manifest(str(session_workdir), "gone_test")
    add_to_project_manifest(manifest_path, "gone_ABCDEF12.csv", "csv", "Deleted by hand")

    with pytest.raises(FileNotFoundError):
        _load_resource(manifest_path, "gone_ABCDEF12.csv")


def test_create_manifest_twice_fails(session_workdir):
    from longorwide.infrastructure.resources import create_project_manifest

    create_project_manifest(str(session_workdir), "duplicate_test")

    with pytest.raises(FileExistsError):
        create_project_manifest(str(session_workdir), "duplicate_test")
