import json
import os

import pytest

from tankakit.export import (
    BEL_RUNE,
    MANIFEST_FILE,
    ExportError,
    ExportMergeStrategy,
    delete_previously_exported_manifests,
    dir_empty,
    export_manifest_file,
    file_exists,
    finalize_export_path,
    prepare_export_dir,
    replace_tmpl_text,
    write_export_file,
)

INLINE = "test-export-envs/inline-envs/main.jsonnet"
STATIC = "test-export-envs/static-env/main.jsonnet"

INITIAL = {
    "inline-namespace1/my-configmap.yaml": INLINE,
    "inline-namespace1/my-deployment.yaml": INLINE,
    "inline-namespace1/my-service.yaml": INLINE,
    "inline-namespace2/my-deployment.yaml": INLINE,
    "inline-namespace2/my-service.yaml": INLINE,
    "static/initial-deployment.yaml": STATIC,
    "static/initial-service.yaml": STATIC,
}

INITIAL_MANIFEST = """{
    "inline-namespace1/my-configmap.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace1/my-deployment.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace1/my-service.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace2/my-deployment.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace2/my-service.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "static/initial-deployment.yaml": "test-export-envs/static-env/main.jsonnet",
    "static/initial-service.yaml": "test-export-envs/static-env/main.jsonnet"
}"""

UPDATED_MANIFEST = """{
    "inline-namespace1/my-configmap.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace1/my-deployment.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace1/my-service.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace2/my-deployment.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "inline-namespace2/my-service.yaml": "test-export-envs/inline-envs/main.jsonnet",
    "static/updated-deployment.yaml": "test-export-envs/static-env/main.jsonnet",
    "static/updated-service.yaml": "test-export-envs/static-env/main.jsonnet"
}"""

STATIC_ONLY_MANIFEST = """{
    "static/updated-again-deployment.yaml": "test-export-envs/static-env/main.jsonnet",
    "static/updated-again-service.yaml": "test-export-envs/static-env/main.jsonnet"
}"""


def _populate(root, mapping):
    for rel in mapping:
        write_export_file(os.path.join(root, rel), "kind: Test\n")
    export_manifest_file(root, mapping, [])


def _files(root):
    found = set()
    for dirpath, _, names in os.walk(root):
        for name in names:
            found.add(os.path.relpath(os.path.join(dirpath, name), root))
    return found


def _read(root):
    with open(os.path.join(root, MANIFEST_FILE)) as handle:
        return handle.read()


@pytest.mark.parametrize(
    "s, old, new, want",
    [
        ("a", "a", "b", "b"),
        ("{{a}}{{.}}", "a", "b", "{{a}}{{.}}"),
        ("a{{a}}a{{a}}a", "a", "b", "b{{a}}b{{a}}b"),
        ("a}}a{{a", "a", "b", "b}}b{{b"),
        (
            '{{index .metadata.labels "app.kubernetes.io/name"}}/{{.metadata.name}}',
            "/",
            BEL_RUNE,
            '{{index .metadata.labels "app.kubernetes.io/name"}}\u0007{{.metadata.name}}',
        ),
    ],
)
def test_replace_tmpl_text(s, old, new, want):
    assert replace_tmpl_text(s, old, new) == want


def test_finalize_export_path_separators():
    rendered = "ns" + BEL_RUNE + "a" + os.sep + "b"
    assert finalize_export_path(rendered) == "ns" + os.sep + "a-b"


def test_file_exists(tmp_path):
    target = tmp_path / "x.yaml"
    assert file_exists(target) is False
    target.write_text("x")
    assert file_exists(target) is True


def test_dir_empty_creates_missing_dir(tmp_path):
    target = tmp_path / "new" / "dir"
    assert dir_empty(target) is True
    assert target.is_dir()


def test_dir_empty_false_with_content(tmp_path):
    (tmp_path / "f").write_text("x")
    assert dir_empty(tmp_path) is False


def test_write_export_file_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "c.yaml"
    write_export_file(str(target), "hello")
    assert target.read_text() == "hello"


def test_export_manifest_file_format(tmp_path):
    export_manifest_file(tmp_path, INITIAL, [])
    assert _read(tmp_path) == INITIAL_MANIFEST


def test_export_manifest_file_noop(tmp_path):
    export_manifest_file(tmp_path, {}, [])
    assert not (tmp_path / MANIFEST_FILE).exists()


def test_export_manifest_file_merges_and_deletes(tmp_path):
    export_manifest_file(tmp_path, INITIAL, [])
    export_manifest_file(
        tmp_path,
        {
            "static/updated-deployment.yaml": STATIC,
            "static/updated-service.yaml": STATIC,
        },
        ["static/initial-deployment.yaml", "static/initial-service.yaml"],
    )
    assert _read(tmp_path) == UPDATED_MANIFEST


def test_export_manifest_file_rejects_bad_json(tmp_path):
    (tmp_path / MANIFEST_FILE).write_text("not json")
    with pytest.raises(ExportError, match="unmarshalling existing manifest file"):
        export_manifest_file(tmp_path, {"a.yaml": "env"}, [])


def test_delete_previously_exported_manifests(tmp_path):
    mapping = {
        "inline-namespace1/my-service.yaml": INLINE,
        "static/updated-again-deployment.yaml": STATIC,
        "static/updated-again-service.yaml": STATIC,
    }
    _populate(tmp_path, mapping)

    delete_previously_exported_manifests(tmp_path, [INLINE])

    assert _files(tmp_path) == {
        os.path.join("static", "updated-again-deployment.yaml"),
        os.path.join("static", "updated-again-service.yaml"),
        MANIFEST_FILE,
    }
    assert _read(tmp_path) == STATIC_ONLY_MANIFEST


def test_delete_without_manifest_keeps_files(tmp_path):
    (tmp_path / "keep.yaml").write_text("x")
    delete_previously_exported_manifests(tmp_path, [INLINE])
    assert _files(tmp_path) == {"keep.yaml"}


def test_prepare_export_dir_not_empty(tmp_path):
    _populate(tmp_path, INITIAL)
    with pytest.raises(ExportError) as info:
        prepare_export_dir(tmp_path, ExportMergeStrategy.NONE)
    assert str(info.value) == (
        f"output dir `{tmp_path}` not empty. Pass a different --merge-strategy to ignore this"
    )


def test_prepare_export_dir_fail_conflicts_keeps_files(tmp_path):
    _populate(tmp_path, INITIAL)
    prepare_export_dir(tmp_path, "fail-on-conflicts", [STATIC])
    assert file_exists(tmp_path / "static" / "initial-service.yaml")
    assert json.loads(_read(tmp_path)) == INITIAL


def test_prepare_export_dir_replace_envs(tmp_path):
    _populate(tmp_path, INITIAL)
    prepare_export_dir(tmp_path, ExportMergeStrategy.REPLACE_ENVS, [STATIC])
    remaining = json.loads(_read(tmp_path))
    assert STATIC not in remaining.values()
    assert len(remaining) == 5
    assert not file_exists(tmp_path / "static" / "initial-service.yaml")


def test_prepare_export_dir_deleted_envs(tmp_path):
    _populate(tmp_path, INITIAL)
    prepare_export_dir(tmp_path, ExportMergeStrategy.REPLACE_ENVS, [STATIC], [INLINE])
    assert _files(tmp_path) == {MANIFEST_FILE}
    assert json.loads(_read(tmp_path)) == {}


def test_prepare_export_dir_empty_creates(tmp_path):
    target = tmp_path / "out"
    prepare_export_dir(target)
    assert target.is_dir()
    assert dir_empty(target) is True


def test_export_merge_strategy_values():
    assert ExportMergeStrategy("replace-envs") is ExportMergeStrategy.REPLACE_ENVS
    with pytest.raises(ValueError):
        ExportMergeStrategy("bogus")