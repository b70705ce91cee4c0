import pytest

from deckgen.errors import StepError
from deckgen.workspace import DEFAULT_STEPS, InvalidTransition, StepStatus, WorkspaceProgress


def _complete(workspace, *step_ids):
    for step_id in step_ids:
        workspace.start(step_id)
        workspace.complete(step_id)


def test_new_workspace_is_pending():
    workspace = WorkspaceProgress()

    assert [step.id for step in workspace.steps] == [step[0] for step in DEFAULT_STEPS]
    assert workspace.overall_status is StepStatus.PENDING
    assert workspace.current is None


def test_steps_must_run_in_order():
    workspace = WorkspaceProgress()

    with pytest.raises(InvalidTransition):
        workspace.start("research")

    workspace.start("analyze")
    with pytest.raises(InvalidTransition):
        workspace.start("research")
    assert workspace.current.id == "analyze"
    assert workspace.overall_status is StepStatus.IN_PROGRESS


def test_all_completed_is_completed():
    workspace = WorkspaceProgress()

    _complete(workspace, *(step[0] for step in DEFAULT_STEPS))

    assert workspace.overall_status is StepStatus.COMPLETED
    assert workspace.succeeded


def test_failure_halts_and_leaves_later_steps_pending():
    workspace = WorkspaceProgress()
    _complete(workspace, "analyze", "research", "structure")
    workspace.start("generate-content")

    workspace.fail("generate-content", ValueError("bad json"))

    assert workspace.overall_status is StepStatus.ERROR
    assert workspace.failed_step.error == "bad json"
    assert workspace.not_attempted() == ["enrich-images", "style", "finalize"]
    with pytest.raises(InvalidTransition):
        workspace.start("enrich-images")


def test_log_requires_running_step():
    workspace = WorkspaceProgress()

    with pytest.raises(InvalidTransition):
        workspace.log("analyze", "too early")

    workspace.start("analyze")
    workspace.log("analyze", "topic ok")
    assert workspace.get("analyze").details == ["topic ok"]


def test_completed_step_cannot_restart():
    workspace = WorkspaceProgress()
    _complete(workspace, "analyze")

    with pytest.raises(InvalidTransition):
        workspace.start("analyze")


def test_unknown_step_raises_key_error():
    with pytest.raises(KeyError):
        WorkspaceProgress().get("deploy")


def test_listeners_see_every_transition():
    workspace = WorkspaceProgress()
    seen = []
    workspace.subscribe(lambda step: seen.append((step.id, step.status)))

    workspace.start("analyze")
    workspace.log("analyze", "detail")
    workspace.complete("analyze")

    assert seen == [
        ("analyze", StepStatus.IN_PROGRESS),
        ("analyze", StepStatus.IN_PROGRESS),
        ("analyze", StepStatus.COMPLETED),
    ]


@pytest.mark.asyncio
async def test_step_context_wraps_errors():
    workspace = WorkspaceProgress()

    with pytest.raises(StepError) as excinfo:
        async with workspace.step("analyze"):
            raise ValueError("blank topic")

    assert excinfo.value.step_id == "analyze"
    assert isinstance(excinfo.value.cause, ValueError)
    assert workspace.get("analyze").status is StepStatus.ERROR
    assert workspace.to_dict()["status"] == "error"


@pytest.mark.asyncio
async def test_step_context_completes_on_success():
    workspace = WorkspaceProgress()

    async with workspace.step("analyze") as step:
        assert step.status is StepStatus.IN_PROGRESS

    assert workspace.get("analyze").status is StepStatus.COMPLETED
    assert workspace.get("analyze").finished_at is not None
