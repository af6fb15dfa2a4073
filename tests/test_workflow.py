"""Tests for Workflow."""

import pytest

from conftest import FakeBackend
from orchestra.errors import BackendError, StageError
from orchestra.models import Message
from orchestra.workflow import Workflow


def build(*stages, **kwargs):
    workflow = Workflow(**kwargs)
    for stage in stages:
        workflow.add(stage)
    return workflow.build()


class TestWorkflowBuild:
    """Tests for adding stages and sealing."""

    def test_add_is_chainable(self, make_agent):
        """Test fluent stage registration."""
        first, second = make_agent("One"), make_agent("Two")
        workflow = Workflow().add(first).add(second)

        assert workflow.stages == (first, second)
        assert len(workflow) == 2

    def test_add_none_rejected(self):
        """Test that None is not a stage."""
        with pytest.raises(ValueError):
            Workflow().add(None)

    def test_sealed_workflow_is_frozen(self, make_agent):
        """Test that build() prevents further changes."""
        workflow = build(make_agent("One"))

        assert workflow.sealed
        with pytest.raises(RuntimeError):
            workflow.add(make_agent("Two"))
        with pytest.raises(RuntimeError):
            workflow.clear()

    def test_clear(self, make_agent):
        """Test removing stages before sealing."""
        workflow = Workflow().add(make_agent("One")).clear()
        assert len(workflow) == 0


class TestWorkflowInvoke:
    """Tests for Workflow.invoke()."""

    @pytest.mark.asyncio
    async def test_stages_see_previous_outputs(self, make_agent):
        """Test that stage 3 gets the original messages plus both earlier answers."""
        researcher = make_agent("Researcher", replies=["facts"])
        writer = make_agent("Writer", replies=["draft"])
        editor = make_agent("Editor", replies=["final"], system_prompt="Edit")
        workflow = build(researcher, writer, editor)

        response = await workflow.invoke([Message.user("Write about owls")])

        assert response.content == "final"
        assert response.token_usage == 30
        assert response.stage_responses is None
        assert editor.backend.requests[0] == [
            {"role": "system", "content": "Edit"},
            {"role": "user", "content": "Write about owls"},
            {"role": "assistant", "content": "facts"},
            {"role": "assistant", "content": "draft"},
        ]

    @pytest.mark.asyncio
    async def test_capture_all_stages(self, make_agent):
        """Test per-stage responses when capturing."""
        workflow = build(
            make_agent("One", replies=["a"]),
            make_agent("Two", replies=["b"]),
            capture_all_stages=True,
        )

        response = await workflow.invoke([Message.user("go")])

        assert [r.content for r in response.stage_responses] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_capture_per_call_override(self, make_agent):
        """Test overriding capture for one call."""
        workflow = build(make_agent("One", replies=["a"]))

        response = await workflow.invoke([Message.user("go")], capture_all_stages=True)

        assert len(response.stage_responses) == 1

    @pytest.mark.asyncio
    async def test_stage_error_carries_index(self, make_agent):
        """Test that a failing stage is reported with its position."""
        failing = make_agent("Writer", backend=FakeBackend([BackendError("boom")]))
        workflow = build(make_agent("One", replies=["a"]), failing)

        with pytest.raises(StageError) as exc_info:
            await workflow.invoke([Message.user("go")])

        error = exc_info.value
        assert error.stage_index == 2
        assert error.stage_name == "Writer"
        assert isinstance(error.cause, BackendError)
        assert "Workflow failed at stage 2 (Writer): boom" == str(error)

    @pytest.mark.asyncio
    async def test_empty_workflow_echoes_last_message(self):
        """Test running a workflow without stages."""
        response = await Workflow().build().invoke([Message.user("same")])

        assert response.content == "same"
        assert response.token_usage == 0


class TestWorkflowStream:
    """Tests for Workflow.stream()."""

    @pytest.mark.asyncio
    async def test_only_last_stage_is_yielded(self, make_agent):
        """Test default streaming of the final stage."""
        second = make_agent("Two", replies=["second"])
        workflow = build(make_agent("One", replies=["first"]), second)

        text = "".join([f async for f in workflow.stream([Message.user("go")])])

        assert text == "second"
        assert second.backend.requests[0][-1] == {"role": "assistant", "content": "first"}

    @pytest.mark.asyncio
    async def test_capture_yields_every_stage(self, make_agent):
        """Test streaming all stages when capturing."""
        workflow = build(
            make_agent("One", replies=["first "]),
            make_agent("Two", replies=["second"]),
        )

        fragments = [
            f async for f in workflow.stream([Message.user("go")], capture_all_stages=True)
        ]

        assert "".join(fragments) == "first second"

    @pytest.mark.asyncio
    async def test_stream_stage_error(self, make_agent):
        """Test that stream failures carry the stage index."""
        workflow = build(make_agent("One", backend=FakeBackend([BackendError("down")])))

        with pytest.raises(StageError) as exc_info:
            async for _ in workflow.stream([Message.user("go")]):
                pass
        assert exc_info.value.stage_index == 1
