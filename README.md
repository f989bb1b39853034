# ketch

A Python library that models applications and frameworks for a Kubernetes
application delivery tool. It also holds the logic behind listing, exporting
and removing frameworks.

## Installation

```
pip install .
```

The test dependencies are an extra:

```
pip install ".[test]"
pytest
```

## What it provides

- `ketch.app` defines `App`, `AppSpec`, `AppDeploymentSpec`, `ProcessSpec`, `Env`,
  `CanarySpec`, `AppStatus`, `AppCondition` and the enums `AppPhase`,
  `AppConditionType`, `ConditionStatus` and `PodState`.
  - `App.set_units`, `App.start` and `App.stop` scale processes. They take a
    `Selector` from `ketch.selector`. `new_selector(version, process)` treats an
    empty process name, or a version of 0 or less, as "all".
  - `App.set_envs`, `App.envs` and `App.unset_envs` manage environment variables.
  - `App.cnames` and `App.default_cname` return an app's addresses. The default
    cname has the form `<app name>.<service endpoint>.shipa.cloud`.
  - `App.units` returns the total unit count. A process with no count has one unit.
  - `App.set_condition` and `App.phase` track status.
  - `App.do_canary(now)` moves traffic one step towards the canary deployment.
    `App.do_rollback()` sends all traffic back to the primary deployment.
- `ketch.framework` defines `Framework`, `FrameworkSpec`, `FrameworkStatus`,
  `IngressControllerSpec`, `IngressControllerType` and `FrameworkPhase`.
  - Admission checks: `Framework.validate_create(lister)`,
    `Framework.validate_update(old, lister)` and `Framework.validate_delete()`.
    A lister is any object with a `list_frameworks()` method.
  - `FrameworkSpec.to_dict` and `FrameworkSpec.from_dict` convert to and from the
    YAML/JSON field names (`namespace`, `appQuotaLimit`, `ingressController`, …).
- `ketch.ports`: `ExposedPort.parse("888/udp")` returns port 888 with protocol
  `UDP`. `to_docker_format()` turns it back into a string.
- `ketch.ketch_yaml`: `KetchYamlData` holds hooks, health checks and Kubernetes
  port settings for a deployment. It has `from_dict` and `to_dict`.
- `ketch.columns`: `marshal(value)` renders a dataclass, a list of dataclasses
  or a mapping as aligned text columns. `write(data, out, output_flag)` writes
  the result to a stream. A heading comes from a field's `column` metadata, or
  else from its name spaced and upper-cased. A field whose column is `-` is
  left out.
- `ketch.line_sort`: `sort_lines(rows)` sorts rows of equal width in place,
  column by column.
- `ketch.framework_commands` provides `framework_list`, `framework_list_names`,
  `export_framework` and `framework_remove`. Each one works through a
  `FrameworkClient` that you supply.
  - `export_framework` writes the spec as YAML to a new file. It refuses to
    overwrite an existing file.
  - `framework_remove` asks on the reader stream before it removes the namespace.
- `ketch.errors`: `KetchError` and its subclasses cover the model's own errors:
  missing processes or deployments, framework validation and canary steps.
  - Bad input raises the standard exceptions. `ExposedPort.parse` and
    `sort_lines` raise `ValueError`. `marshal` raises `TypeError`.
    `export_framework` raises `FileExistsError`.

## Example

```python
from ketch.app import App, AppSpec, AppDeploymentSpec, ProcessSpec
from ketch.selector import new_selector

app = App(
    name="web-app",
    spec=AppSpec(
        deployments=[
            AppDeploymentSpec(
                version=1,
                processes=[ProcessSpec(name="web", units=1)],
            )
        ]
    ),
)
app.set_units(new_selector(1, "web"), 3)
assert app.units() == 3
```

## What it does not do

- It has no command-line program and no controller.
- It does not talk to a Kubernetes cluster. Reading and deleting frameworks and
  namespaces is left to the `FrameworkClient` you pass in.
- Adding and updating frameworks are not provided as operations.