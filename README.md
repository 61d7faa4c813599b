# tankakit

`tankakit` takes the JSON tree produced by evaluating a Jsonnet environment and
turns it into a flat, ordered list of Kubernetes manifests (plain `dict`s). It
also carries the helpers needed around that: `kind/name` filtering, default
namespaces, labels and annotations, selection of inline Environment objects,
version constraints, export directories and the confirmation prompt used
before changing a cluster.

## Installation

```
pip install tankakit
```

For running the test suite:

```
pip install "tankakit[test]"
pytest
```

## Modules

| Module | What it provides |
| --- | --- |
| `tankakit.extract` | `extract(raw)` walks a JSON tree and returns every object with a non-empty string `apiVersion` and `kind`, keyed by its dotted path (`.app.deployment`, `.list.[0]`). A `__ksonnet` field is dropped and `None` values are skipped. `check_kubernetes_manifest(obj)` raises `ValueError` saying why an object is not a manifest. A branch ending in a primitive raises `PrimitiveReachedError`, whose message names the path and shows the enclosing object as YAML. |
| `tankakit.filter` | `str_exps(*args)` builds anchored, case-insensitive `kind/name` matchers; a leading `!` turns an expression into an exclusion. Invalid expressions raise `BadExpressionError`. `regexps(patterns)` builds unanchored matchers. `Matchers`, `RegexMatcher` and `NegMatcher` hold them; `kind_name(manifest)` and `filter_manifests(manifests, exprs)` apply them. |
| `tankakit.namespace` | `apply_namespace(manifests, default)` sets `metadata.namespace` on manifests that lack one, except built-in cluster-wide kinds. The `tanka.dev/namespaced` annotation (`"true"` / anything else) overrides that choice. |
| `tankakit.ordering` | `sort_manifests(manifests)` sorts in place into install order: a fixed list of well-known kinds first (Namespace, NetworkPolicy, ..., Ingress, APIService), other kinds alphabetically after them, then by namespace, name and `generateName`. `sort_key(manifest)` is the key used. |
| `tankakit.process` | `process(data, config, exprs)` runs the whole pipeline: extract, `unwrap` `*List` kinds into their items, namespace, `label`, `resource_defaults`, optional filtering and sorting. `ProcessConfig` holds the environment name, default namespace, whether to inject the `tanka.dev/environment` label, and default annotations and labels. |
| `tankakit.selection` | `extract_envs(data)` returns the `Environment` objects in an evaluated tree; `select_environment(envs, path, name)` picks one by (partial) name, preferring an exact match, and raises `MultipleEnvsError` or `LookupError`. |
| `tankakit.errors` | `NoEnvError`, `MultipleEnvsError` and `ParallelError` (a collection of errors from concurrent work). |
| `tankakit.evaluators` | Jsonnet snippet builders: `pattern_eval_script(expr)`, `build_eval_script(entrypoint, eval_script, tla_names)`, `metadata_single_env_eval_script(name)`, `single_env_eval_script(name)` and the `METADATA_EVAL_SCRIPT` constant. |
| `tankakit.version` | `check_version(constraint, current)` checks a semantic version against a constraint such as `>= 0.20, < 1.0` or `~1.2 \|\| ^2.0`. It returns `False` when skipped (empty constraint or the `dev` version), `True` when satisfied, and raises `VersionError` otherwise. |
| `tankakit.export` | Export-directory handling: `ExportMergeStrategy` (`""`, `fail-on-conflicts`, `replace-envs`), `prepare_export_dir`, the `manifest.json` index (`export_manifest_file`, `delete_previously_exported_manifests`), `write_export_file`, `dir_empty`, `file_exists`, and the path helpers `replace_tmpl_text` and `finalize_export_path`. Failures raise `ExportError`. |
| `tankakit.workflow` | Decisions for apply/diff/delete/prune: `AutoApprove`, `resolve_apply_strategy` (raises `ApplyStrategyUnknownError`), `default_diff_strategy`, `needs_confirmation`, `confirm_message`, `check_connect_spec` (raises `IncompleteSpecError`) and `parse_jsonnet_implementation`. |
| `tankakit.term` | `confirm(msg, approval)` prompts on stdin/stdout and `confirm_from(reader, writer, msg, approval)` on any streams; both raise `ConfirmationFailed` unless the approval word is typed. `colordiff(diff, use_color)` colours a unified diff with ANSI codes; by default only when stdout is a terminal and `NO_COLOR` is unset. |

## Example

```python
from tankakit.extract import extract
from tankakit.filter import filter_manifests, str_exps
from tankakit.namespace import apply_namespace
from tankakit.ordering import sort_manifests

tree = {
    "app": {
        "deployment": {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": "grafana"},
        },
        "service": {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {"name": "grafana"},
        },
    }
}

found = extract(tree)            # {".app.deployment": {...}, ".app.service": {...}}
manifests = list(found.values())
manifests = apply_namespace(manifests, "monitoring")
manifests = filter_manifests(manifests, str_exps("deployment/.*"))
sort_manifests(manifests)
```

The same in one call:

```python
from tankakit.filter import str_exps
from tankakit.process import ProcessConfig, process

config = ProcessConfig(name="default", namespace="monitoring", inject_labels=True)
manifests = process(tree, config, str_exps("deployment/.*"))
```

Invalid trees raise an error that names the offending path and shows the
object that was being inspected:

```python
from tankakit.extract import PrimitiveReachedError, extract

try:
    extract({"service": {"apiVersion": "v1", "spec": {}}})
except PrimitiveReachedError as err:
    print(err)   # found invalid Kubernetes object (at .service): missing attribute "kind" ...
```

## Confirmation prompts

```python
from tankakit.term import ConfirmationFailed, confirm
from tankakit.workflow import confirm_message

try:
    confirm(confirm_message("Applying to", "default", "dev", "https://localhost", "dev"), "yes")
except ConfirmationFailed:
    print("aborted")
```

## What this package does not do

- It does not evaluate Jsonnet. `tankakit.evaluators` only builds the snippets;
  the evaluated JSON tree has to come from elsewhere.
- It does not talk to a Kubernetes cluster. There is no apply, diff, delete or
  prune against a live cluster; `tankakit.workflow` only makes the decisions
  around those steps.
- It does not find environments on disk or read `spec.json` files.
- It does not render file name templates for exports; `tankakit.export` handles
  the directory, the `manifest.json` index and path separators around them.
- It has no command-line tool.