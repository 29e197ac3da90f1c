"""
Linear human-in-the-loop workflows on top of LangGraph.

A workflow is an ordered list of steps compiled into a linear ``StateGraph``.
Steps that need input from an external actor pause with ``interrupt()``; the
paused position and the accumulated state are kept by the checkpointer under
the run id (the LangGraph ``thread_id``) until ``resume`` feeds the data back
with ``Command(resume=...)``.

Run lifecycle::

    start() -> running -> suspended(step, payload) -> resume() -> running -> ...
                       -> completed(output)
                       -> failed(error)
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple, Type
from pydantic import BaseModel
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import StateGraph, END
from langgraph.types import Command, interrupt

from kpi_studio.config.state import WorkflowRun, WorkflowState

logger = logging.getLogger(__name__)


class WorkflowError(RuntimeError):
    """Raised when the run API is used out of order"""


class WorkflowStep:
    """One step of a workflow and the shapes it exchanges while paused"""

    def __init__(self, name: str, description: str, handler: Callable,
                 resume_model: Optional[Type[BaseModel]] = None,
                 suspend_model: Optional[Type[BaseModel]] = None):
        self.name = name
        self.description = description
        self.handler = handler
        self.resume_model = resume_model
        self.suspend_model = suspend_model

    @property
    def can_suspend(self) -> bool:
        return self.resume_model is not None

    def __repr__(self):
        return f"WorkflowStep({self.name!r})"


class BaseWorkflow:
    """Runs a fixed sequence of steps with suspend/resume support.

    Nothing about a run is held in memory: its status, paused step and payload
    are read back from the checkpointer, so any instance built on the same
    checkpointer (in this process or after a restart) can resume it.
    """

    workflow_id: str = "workflow"
    state_schema: Type[WorkflowState] = WorkflowState

    def __init__(self, checkpointer=None):
        self.checkpointer = checkpointer or MemorySaver()
        self.steps = self._define_steps()
        self._steps_by_name = {step.name: step for step in self.steps}
        self.graph = self._build_workflow()

    def _define_steps(self) -> List[WorkflowStep]:
        raise NotImplementedError

    def _build_workflow(self):
        """Compile the steps into a linear graph"""
        workflow = StateGraph(self.state_schema)

        for step in self.steps:
            workflow.add_node(step.name, step.handler)

        workflow.set_entry_point(self.steps[0].name)
        for current, following in zip(self.steps, self.steps[1:]):
            workflow.add_edge(current.name, following.name)
        workflow.add_edge(self.steps[-1].name, END)

        return workflow.compile(checkpointer=self.checkpointer)

    def get_step(self, name: str) -> WorkflowStep:
        return self._steps_by_name[name]

    def start(self, input_data: Optional[Dict[str, Any]] = None,
              run_id: Optional[str] = None) -> WorkflowRun:
        """Start a run and execute it up to its first pause, completion or failure"""
        run_id = run_id or f"{self.workflow_id}-{uuid.uuid4().hex[:12]}"
        if self._snapshot(run_id).created_at is not None:
            raise WorkflowError(f"Run {run_id} already exists")

        logger.info(f"Starting {self.workflow_id} run {run_id}")
        initial_state = {
            'start': True,
            **(input_data or {}),
            'run_id': run_id,
            'workflow_id': self.workflow_id,
        }
        return self._advance(run_id, initial_state)

    def resume(self, run_id: str, resume_data: Optional[Dict[str, Any]]) -> WorkflowRun:
        """Feed resume data to the paused step of a suspended run.

        The data is validated against the step's resume model first; a
        ``pydantic.ValidationError`` leaves the run suspended.
        """
        run = self.get_run(run_id)
        if not run.is_suspended():
            raise WorkflowError(
                f"Run {run_id} is {run.status.value}; only suspended runs can be resumed"
            )

        step = self._steps_by_name[run.current_step]
        validated = step.resume_model.model_validate(resume_data or {})

        logger.info(f"Resuming {self.workflow_id} run {run_id} at step {step.name}")
        return self._advance(run_id, Command(resume=validated.model_dump(by_alias=True)))

    def get_run(self, run_id: str) -> WorkflowRun:
        """Status of a run as recorded by the checkpointer"""
        snapshot = self._snapshot(run_id)
        if snapshot.created_at is None or _state_value(snapshot.values, 'workflow_id') != self.workflow_id:
            raise WorkflowError(f"Unknown run {run_id} for workflow {self.workflow_id}")

        run = WorkflowRun(run_id=run_id, workflow_id=self.workflow_id)
        pending = self._pending_interrupt(snapshot)

        if pending:
            run.mark_suspended(*pending)
        elif snapshot.next:
            # an unfinished step that is not paused raised, or its process died
            failed_step = snapshot.next[0]
            error = next((task.error for task in snapshot.tasks if task.error is not None), None)
            run.mark_failed(failed_step, str(error) if error is not None
                            else f"Run stopped at step {failed_step} without completing")
        else:
            run.mark_completed(_state_value(snapshot.values, 'output'))
        return run

    def _snapshot(self, run_id: str):
        return self.graph.get_state({"configurable": {"thread_id": run_id}})

    def _advance(self, run_id: str, graph_input: Any) -> WorkflowRun:
        config = {"configurable": {"thread_id": run_id}}

        try:
            self.graph.invoke(graph_input, config=config)
        except Exception as e:
            snapshot = self.graph.get_state(config)
            failed_step = snapshot.next[0] if snapshot.next else None
            logger.error(f"{self.workflow_id} run {run_id} failed at step {failed_step}: {e}")
            raise

        run = self.get_run(run_id)
        if run.is_suspended():
            logger.info(f"{self.workflow_id} run {run_id} suspended at step {run.current_step}")
        elif run.is_failed():
            raise WorkflowError(f"Run {run_id} stopped before {run.current_step} without suspending")
        else:
            logger.info(f"{self.workflow_id} run {run_id} completed")
        return run

    @staticmethod
    def _pending_interrupt(snapshot) -> Optional[Tuple[str, Any]]:
        for task in snapshot.tasks:
            if task.interrupts:
                return task.name, task.interrupts[0].value
        return None

    def suspend_until(self, step_name: str, payload: BaseModel,
                      is_ready: Callable[[Any], bool]) -> Any:
        """Pause the running step until resume data satisfies ``is_ready``.

        Must be called from inside a step handler. Resume data lacking the
        required fields suspends the step again with the same payload.
        """
        step = self._steps_by_name[step_name]
        wire_payload = payload.model_dump(by_alias=True)

        while True:
            resume_data = step.resume_model.model_validate(interrupt(wire_payload) or {})
            if is_ready(resume_data):
                return resume_data
            logger.info(f"Step {step_name} resumed without the required data, suspending again")


def _state_value(values: Any, key: str) -> Any:
    if isinstance(values, dict):
        return values.get(key)
    return getattr(values, key, None)
