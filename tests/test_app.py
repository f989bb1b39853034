import copy
from datetime import datetime, timedelta, timezone

import pytest

from ketch.app import (
    App,
    AppCondition,
    AppConditionType,
    AppDeploymentSpec,
    AppPhase,
    AppSpec,
    AppStatus,
    CanarySpec,
    ConditionStatus,
    Env,
    IngressSpec,
    ProcessSpec,
    RoutingSettings,
)
from ketch.errors import CanaryError, DeploymentNotFoundError, ProcessNotFoundError
from ketch.framework import Framework, FrameworkSpec, IngressControllerSpec
from ketch.ports import ExposedPort
from ketch.selector import Selector


def _spec(*deployments):
    return AppSpec(
        deployments=[
            AppDeploymentSpec(
                version=version,
                processes=[ProcessSpec(name=name, units=units) for name, units in processes],
            )
            for version, processes in deployments
        ]
    )


def default_spec():
    return _spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 0), ("worker", 0)]))


@pytest.mark.parametrize(
    "selector, error",
    [
        (Selector(process="database"), ProcessNotFoundError),
        (Selector(deployment_version=8), DeploymentNotFoundError),
    ],
)
def test_set_units_errors(selector, error):
    app = App(spec=default_spec())
    with pytest.raises(error):
        app.set_units(selector, 4)


@pytest.mark.parametrize(
    "selector, want",
    [
        (Selector(), _spec((1, [("web", 4), ("worker", 4)]), (2, [("web", 4), ("worker", 4)]))),
        (Selector(process="web"), _spec((1, [("web", 4), ("worker", 2)]), (2, [("web", 4), ("worker", 0)]))),
        (Selector(deployment_version=2), _spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 4), ("worker", 4)]))),
        (
            Selector(deployment_version=2, process="worker"),
            _spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 0), ("worker", 4)])),
        ),
    ],
)
def test_set_units(selector, want):
    app = App(spec=default_spec())
    app.set_units(selector, 4)
    assert app.spec == want


ENVS = [Env("KETCH", "true"), Env("THEKETCH", "true"), Env("API_KEY", "placeholder")]


@pytest.mark.parametrize(
    "initial, new, want",
    [
        (ENVS, [], {"KETCH": "true", "THEKETCH": "true", "API_KEY": "placeholder"}),
        (
            ENVS,
            [Env("KETCH", "false"), Env("THEKETCH", "1")],
            {"KETCH": "false", "THEKETCH": "1", "API_KEY": "placeholder"},
        ),
        ([], [Env("KETCH", "false"), Env("THEKETCH", "1")], {"KETCH": "false", "THEKETCH": "1"}),
    ],
)
def test_set_envs(initial, new, want):
    app = App(spec=AppSpec(env=list(initial)))
    app.set_envs(new)
    assert {env.name: env.value for env in app.spec.env} == want
    assert len(app.spec.env) == len(want)


@pytest.mark.parametrize(
    "initial, names, want",
    [
        (ENVS, ["KETCH", "API_KEY"], {"KETCH": "true", "API_KEY": "placeholder"}),
        ([Env("KETCH", "true")], ["KETCH", "API_KEY", "SOME_VAR"], {"KETCH": "true"}),
        ([], ["KETCH", "API_KEY", "SOME_VAR"], {}),
    ],
)
def test_envs(initial, names, want):
    app = App(spec=AppSpec(env=list(initial)))
    assert app.envs(names) == want


def test_envs_without_names_returns_all():
    app = App(spec=AppSpec(env=list(ENVS)))
    assert app.envs([]) == {"KETCH": "true", "THEKETCH": "true", "API_KEY": "placeholder"}


@pytest.mark.parametrize(
    "initial, unset, want",
    [
        (ENVS, ["KETCH", "THEKETCH", "API_KEY", "SOME_KEY"], {}),
        (ENVS, ["KETCH", "SOME_KEY"], {"THEKETCH": "true", "API_KEY": "placeholder"}),
        ([], ["KETCH", "SOME_KEY"], {}),
    ],
)
def test_unset_envs(initial, unset, want):
    app = App(spec=AppSpec(env=list(initial)))
    app.unset_envs(unset)
    assert {env.name: env.value for env in app.spec.env} == want


def _framework(endpoint="", issuer=""):
    return Framework(
        spec=FrameworkSpec(
            ingress_controller=IngressControllerSpec(service_endpoint=endpoint, cluster_issuer=issuer)
        )
    )


@pytest.mark.parametrize(
    "app_name, generate, framework, want",
    [
        ("app-2", True, _framework("20.20.20.20"), "app-2.20.20.20.20.shipa.cloud"),
        ("app-1", True, Framework(), None),
        ("app-1", False, _framework("20.20.20.20"), None),
        ("app-1", True, None, None),
    ],
)
def test_default_cname(app_name, generate, framework, want):
    app = App(name=app_name, spec=AppSpec(ingress=IngressSpec(generate_default_cname=generate)))
    assert app.default_cname(framework) == want


@pytest.mark.parametrize(
    "generate, framework, cnames, want",
    [
        (
            True,
            _framework("10.20.30.40"),
            ["theketch.io", "app.theketch.io"],
            ["http://ketch.10.20.30.40.shipa.cloud", "http://theketch.io", "http://app.theketch.io"],
        ),
        (
            True,
            _framework("10.20.30.40", "letsencrypt"),
            ["theketch.io", "app.theketch.io"],
            ["http://ketch.10.20.30.40.shipa.cloud", "https://theketch.io", "https://app.theketch.io"],
        ),
        (False, _framework("10.20.30.40"), ["theketch.io", "app.theketch.io"], ["http://theketch.io", "http://app.theketch.io"]),
        (False, _framework("10.20.30.40"), [], []),
        (True, _framework("10.20.30.40"), [], ["http://ketch.10.20.30.40.shipa.cloud"]),
    ],
)
def test_cnames(generate, framework, cnames, want):
    app = App(name="ketch", spec=AppSpec(ingress=IngressSpec(generate_default_cname=generate, cnames=cnames)))
    assert app.cnames(framework) == want


@pytest.mark.parametrize(
    "spec, want",
    [
        (AppSpec(deployments=[AppDeploymentSpec(version=1)]), 0),
        (_spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 8), ("worker", 10)])), 21),
        (_spec((1, [("web", None), ("worker", None)]), (2, [("web", None), ("worker", None)])), 4),
    ],
)
def test_units(spec, want):
    assert App(spec=spec).units() == want


def stop_spec():
    return _spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 4), ("worker", 5)]))


@pytest.mark.parametrize(
    "selector, want",
    [
        (Selector(process="web"), _spec((1, [("web", 0), ("worker", 2)]), (2, [("web", 0), ("worker", 5)]))),
        (Selector(deployment_version=1), _spec((1, [("web", 0), ("worker", 0)]), (2, [("web", 4), ("worker", 5)]))),
        (
            Selector(deployment_version=2, process="worker"),
            _spec((1, [("web", 1), ("worker", 2)]), (2, [("web", 4), ("worker", 0)])),
        ),
        (Selector(), _spec((1, [("web", 0), ("worker", 0)]), (2, [("web", 0), ("worker", 0)]))),
    ],
)
def test_stop(selector, want):
    app = App(spec=stop_spec())
    app.stop(selector)
    assert app.spec == want


def start_spec():
    return _spec(
        (1, [("web", 1), ("worker", 2), ("db", None), ("db-2", 0)]),
        (2, [("web", 4), ("worker", 5), ("db", None), ("db-2", 0)]),
    )


@pytest.mark.parametrize(
    "selector, want",
    [
        (
            Selector(),
            _spec(
                (1, [("web", 1), ("worker", 2), ("db", 1), ("db-2", 1)]),
                (2, [("web", 4), ("worker", 5), ("db", 1), ("db-2", 1)]),
            ),
        ),
        (
            Selector(process="db"),
            _spec(
                (1, [("web", 1), ("worker", 2), ("db", 1), ("db-2", 0)]),
                (2, [("web", 4), ("worker", 5), ("db", 1), ("db-2", 0)]),
            ),
        ),
        (
            Selector(deployment_version=2),
            _spec(
                (1, [("web", 1), ("worker", 2), ("db", None), ("db-2", 0)]),
                (2, [("web", 4), ("worker", 5), ("db", 1), ("db-2", 1)]),
            ),
        ),
        (
            Selector(deployment_version=1, process="db"),
            _spec(
                (1, [("web", 1), ("worker", 2), ("db", 1), ("db-2", 0)]),
                (2, [("web", 4), ("worker", 5), ("db", None), ("db-2", 0)]),
            ),
        ),
    ],
)
def test_start(selector, want):
    app = App(spec=start_spec())
    app.start(selector)
    assert app.spec == want


def test_start_unknown_deployment():
    with pytest.raises(DeploymentNotFoundError):
        App(spec=start_spec()).start(Selector(deployment_version=9))


@pytest.mark.parametrize(
    "spec, status, want",
    [
        (_spec((0, [("", 1)])), ConditionStatus.TRUE, AppPhase.RUNNING),
        (_spec((0, [("", 1)])), ConditionStatus.FALSE, AppPhase.ERROR),
        (AppSpec(), ConditionStatus.TRUE, AppPhase.CREATED),
    ],
)
def test_phase(spec, status, want):
    app = App(spec=spec, status=AppStatus(conditions=[AppCondition(AppConditionType.SCHEDULED, status)]))
    assert app.phase() == want


T1 = datetime(2021, 2, 1, 9, 0, tzinfo=timezone.utc)
T2 = datetime(2021, 2, 1, 9, 5, tzinfo=timezone.utc)
SCHEDULED = AppConditionType.SCHEDULED
TRUE = ConditionStatus.TRUE


@pytest.mark.parametrize(
    "current, want",
    [
        ([], [AppCondition(SCHEDULED, TRUE, T2, "message")]),
        ([AppCondition(SCHEDULED, TRUE, T1, "old-message")], [AppCondition(SCHEDULED, TRUE, T2, "message")]),
        ([AppCondition(SCHEDULED, ConditionStatus.FALSE, T1, "message")], [AppCondition(SCHEDULED, TRUE, T2, "message")]),
        ([AppCondition(SCHEDULED, TRUE, T1, "message")], [AppCondition(SCHEDULED, TRUE, T1, "message")]),
    ],
)
def test_set_condition(current, want):
    app = App(status=AppStatus(conditions=copy.deepcopy(current)))
    app.set_condition(SCHEDULED, TRUE, "message", T2)
    assert app.status.conditions == want


def test_status_condition_lookup():
    status = AppStatus(conditions=[AppCondition(SCHEDULED, TRUE, T1, "message")])
    assert status.condition(SCHEDULED) == AppCondition(SCHEDULED, TRUE, T1, "message")
    assert AppStatus().condition(SCHEDULED) is None


def time_ref(hours, minutes):
    return datetime(2021, 2, 1, hours, minutes, tzinfo=timezone.utc)


def canary_app(current_step, weights, active=True, scheduled=True):
    return App(
        spec=AppSpec(
            canary=CanarySpec(
                steps=3,
                step_weight=33,
                step_time_interval=timedelta(minutes=10),
                next_scheduled_time=time_ref(10, 30) if scheduled else None,
                current_step=current_step,
                active=active,
            ),
            deployments=[
                AppDeploymentSpec(version=2, routing_settings=RoutingSettings(weights[0])),
                AppDeploymentSpec(version=3, routing_settings=RoutingSettings(weights[1])),
            ],
        )
    )


def test_do_canary_step():
    app = canary_app(1, (67, 33))
    app.do_canary(time_ref(10, 31))
    assert app.spec.canary == CanarySpec(
        steps=3,
        step_weight=33,
        step_time_interval=timedelta(minutes=10),
        next_scheduled_time=time_ref(10, 40),
        current_step=2,
        active=True,
    )
    assert [d.routing_settings.weight for d in app.spec.deployments] == [34, 66]


def test_do_canary_last_step():
    app = canary_app(2, (34, 66))
    app.do_canary(time_ref(10, 31))
    assert app.spec.canary == CanarySpec(
        steps=3, step_weight=33, step_time_interval=timedelta(minutes=10), current_step=3, active=False
    )
    assert app.spec.deployments == [AppDeploymentSpec(version=3, routing_settings=RoutingSettings(100))]


@pytest.mark.parametrize(
    "app, now",
    [
        (canary_app(2, (34, 66), active=False), time_ref(10, 31)),
        (canary_app(2, (34, 66), active=False), time_ref(10, 25)),
        (canary_app(2, (34, 66), active=True), time_ref(10, 25)),
    ],
)
def test_do_canary_no_changes(app, now):
    original = copy.deepcopy(app)
    app.do_canary(now)
    assert app == original


def test_do_canary_not_scheduled():
    app = canary_app(2, (34, 66), scheduled=False)
    with pytest.raises(CanaryError) as info:
        app.do_canary(time_ref(10, 45))
    assert str(info.value) == "canary is active but the next step is not scheduled"


def test_do_canary_without_second_deployment():
    app = canary_app(1, (67, 33))
    app.spec.deployments = app.spec.deployments[:1]
    with pytest.raises(CanaryError) as info:
        app.do_canary(time_ref(10, 31))
    assert str(info.value) == "no canary deployment found"


def test_do_rollback():
    app = canary_app(2, (34, 66))
    app.do_rollback()
    assert [d.routing_settings.weight for d in app.spec.deployments] == [100, 0]
    assert app.spec.canary.active is False


def test_exposed_ports_by_version():
    port = ExposedPort(port=8080, protocol="TCP")
    app = App(
        spec=AppSpec(
            deployments=[
                AppDeploymentSpec(version=1, exposed_ports=[port]),
                AppDeploymentSpec(version=2),
            ]
        )
    )
    assert app.exposed_ports() == {1: [port], 2: []}