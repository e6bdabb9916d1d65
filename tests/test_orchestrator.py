"""End-to-end pipeline tests with a scripted remote host."""

import pytest

from appdeploy.core.orchestrator import (
    CleanupOrchestrator,
    DeploymentOrchestrator,
    InvalidTransitionError,
    PipelineStateMachine,
)
from appdeploy.exceptions import DeploymentError, InputValidationError
from appdeploy.models.deployment import CLEANUP_CHAIN, DEPLOY_CHAIN, PipelineState, ProjectIdentity, ProjectWorkingCopy


class FakeSynchronizer:
    """Returns a prepared working copy and records the params it saw."""

    seen = []

    def __init__(self, params, logger, workspace=None):
        self.params = params
        self.workspace = workspace
        FakeSynchronizer.seen.append(params)

    def sync(self):
        path = self.workspace / "app"
        path.mkdir(parents=True, exist_ok=True)
        (path / "Dockerfile").write_text("FROM node:20\n")
        return ProjectWorkingCopy(path=path, identity=ProjectIdentity("app"), branch="main", commit="0123456789")


class ComposeSynchronizer(FakeSynchronizer):
    def sync(self):
        copy = super().sync()
        (copy.path / "docker-compose.yml").write_text("services: {}\n")
        return copy


def positions(executor, pattern):
    return [i for i, script in enumerate(executor.scripts) if pattern in script]


@pytest.fixture
def make_orchestrator(logger, params, tmp_path, no_sleep):
    FakeSynchronizer.seen = []

    def factory(executor, parameter_source=None, synchronizer=FakeSynchronizer):
        return DeploymentOrchestrator(
            logger,
            parameter_source=parameter_source or (lambda: params),
            workspace=tmp_path / "workspace",
            executor_factory=lambda p, log: executor,
            synchronizer_factory=synchronizer,
        )

    return factory


def test_full_deployment(make_orchestrator, healthy_executor, logger):
    orchestrator = make_orchestrator(healthy_executor)

    copy = orchestrator.run()
    logger.close()

    assert orchestrator.state is PipelineState.VALIDATED
    assert orchestrator.history == DEPLOY_CHAIN
    assert copy.identity.name == "app"
    assert healthy_executor.connected
    log = logger.log_path.read_text()
    assert "DEPLOYMENT COMPLETED SUCCESSFULLY" in log
    assert "http://203.0.113.10" in log
    assert "Status: SUCCESS" in log


def test_token_dropped_after_sync(make_orchestrator, healthy_executor, logger, params):
    orchestrator = make_orchestrator(healthy_executor)
    orchestrator.run()
    logger.close()

    assert FakeSynchronizer.seen[0].access_token == params.access_token
    assert orchestrator.params.access_token == ""
    assert params.access_token not in logger.log_path.read_text()
    assert not any(params.access_token in script for script in healthy_executor.scripts)


def test_stage_order(make_orchestrator, healthy_executor):
    make_orchestrator(healthy_executor).run()
    ex = healthy_executor
    assert ex.index_of("apt-get update") < ex.index_of("docker build") < ex.index_of("nginx -t") < ex.index_of(
        "is-active --quiet docker"
    )


def test_unreachable_app_stops_before_proxy(make_orchestrator, healthy_executor):
    healthy_executor.on("curl -fsS -o /dev/null http://localhost:3000", exit_status=7)
    orchestrator = make_orchestrator(healthy_executor)

    with pytest.raises(DeploymentError):
        orchestrator.run()

    assert orchestrator.state is PipelineState.FAILED
    assert orchestrator.history[-2] is PipelineState.PROVISIONED
    assert not healthy_executor.ran("nginx -t")


def test_invalid_parameters_never_connect(logger, tmp_path):
    created = []

    def bad_source():
        raise InputValidationError("Invalid IP address format")

    orchestrator = DeploymentOrchestrator(
        logger,
        parameter_source=bad_source,
        workspace=tmp_path,
        executor_factory=lambda p, log: created.append(p),
    )

    with pytest.raises(InputValidationError):
        orchestrator.run()

    assert created == []
    assert orchestrator.state is PipelineState.FAILED


def test_interrupt_marks_failed(make_orchestrator, healthy_executor, params):
    def interrupted():
        raise KeyboardInterrupt

    orchestrator = make_orchestrator(healthy_executor, parameter_source=interrupted)
    with pytest.raises(KeyboardInterrupt):
        orchestrator.run()
    assert orchestrator.state is PipelineState.FAILED


def test_no_transition_after_terminal_state(make_orchestrator, healthy_executor):
    orchestrator = make_orchestrator(healthy_executor)
    orchestrator.run()
    with pytest.raises(InvalidTransitionError):
        orchestrator._transition(PipelineState.FAILED)


def test_cannot_skip_states(make_orchestrator, healthy_executor):
    orchestrator = make_orchestrator(healthy_executor)
    with pytest.raises(InvalidTransitionError):
        orchestrator._transition(PipelineState.DEPLOYED)


@pytest.mark.parametrize("orchestrator_class", [DeploymentOrchestrator, CleanupOrchestrator])
def test_both_chains_share_state_machine(orchestrator_class):
    assert issubclass(orchestrator_class, PipelineStateMachine)


def test_cleanup_chain(logger, params, executor):
    orchestrator = CleanupOrchestrator(
        logger,
        parameter_source=lambda: params.without_secret(),
        executor_factory=lambda p, log: executor,
    )

    identity = orchestrator.run()
    logger.close()

    assert identity.name == "app"
    assert orchestrator.history == CLEANUP_CHAIN
    assert executor.ran("docker rm app_container")
    assert "Cleanup completed successfully" in logger.log_path.read_text()


def test_second_run_reaches_same_state(make_orchestrator, healthy_executor):
    first = make_orchestrator(healthy_executor)
    first.run()
    second = make_orchestrator(healthy_executor)
    second.run()

    assert first.history == second.history == DEPLOY_CHAIN

    ex = healthy_executor
    site_writes = [ex.scripts[i] for i in positions(ex, "<<'APPDEPLOY_EOF'")]
    assert len(site_writes) == 2
    assert site_writes[0] == site_writes[1]

    runs = [ex.scripts[i] for i in positions(ex, "docker run")]
    assert len(runs) == 2
    assert runs[0] == runs[1]
    assert "--name app_container" in runs[0] and runs[0].endswith("app_image")

    second_start = positions(ex, "apt-get update")[1]
    second_run = positions(ex, "docker run")[1]
    stop = [i for i in positions(ex, "docker stop app_container") if i > second_start][0]
    remove = [i for i in positions(ex, "docker rm app_container") if i > second_start][0]
    assert second_start < stop < remove < second_run


def test_second_compose_run_tears_down_first(make_orchestrator, healthy_executor):
    make_orchestrator(healthy_executor, synchronizer=ComposeSynchronizer).run()
    make_orchestrator(healthy_executor, synchronizer=ComposeSynchronizer).run()

    ex = healthy_executor
    downs = positions(ex, "docker-compose down --remove-orphans")
    ups = positions(ex, "docker-compose up -d --build")
    assert len(downs) == len(ups) == 2
    assert downs[0] < ups[0] < downs[1] < ups[1]
    assert not ex.ran("docker run")


def test_cleanup_leaves_local_working_copy(logger, params, executor, tmp_path, monkeypatch):
    local = tmp_path / "app"
    local.mkdir()
    (local / "Dockerfile").write_text("FROM node:20\n")
    monkeypatch.chdir(tmp_path)

    CleanupOrchestrator(
        logger,
        parameter_source=lambda: params.without_secret(),
        executor_factory=lambda p, log: executor,
    ).run()

    assert (local / "Dockerfile").exists()
    assert executor.ran("rm -rf /home/deploy/app")
