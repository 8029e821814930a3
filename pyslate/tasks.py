"""Task graph for Pyslate builds.

Build targets are nodes of a directed acyclic graph. Each node names the nodes
it requires and declares the source patterns it reads and the output paths it
writes. Running a target runs its whole dependency closure: nodes whose
requirements have succeeded are started as soon as possible, independent nodes
run in parallel, and a failing node only takes down the nodes that depend on it.

Key classes:
- Task: A node of the graph.
- TaskResult: Outcome of one node in a run.
- RunReport: Outcomes of every node in a run.
- TaskGraph: Registry and runner.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter

from .errors import TaskGraphError

OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass(frozen=True)
class Task:
    """A node of the task graph.

    Attributes:
        name: Target name (e.g. 'build-css').
        action: Callable doing the work; None for nodes that only group others.
        requires: Names of nodes that must succeed first.
        inputs: Source path patterns the node reads.
        outputs: Output paths the node writes, relative to the build directory.
        description: One-line help text.
    """

    name: str
    action: Callable[[], object] | None = None
    requires: tuple[str, ...] = ()
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    description: str = ""


@dataclass
class TaskResult:
    """Outcome of one node.

    Attributes:
        name: Node name.
        status: 'ok', 'failed' or 'skipped'.
        error: Exception raised by a failed node.
        duration: Seconds spent in the node's action.
        value: Return value of the action.
    """

    name: str
    status: str
    error: Exception | None = None
    duration: float = 0.0
    value: object = None

    @property
    def ok(self) -> bool:
        return self.status == OK


@dataclass
class RunReport:
    """Results of a graph run, in completion order."""

    targets: tuple[str, ...]
    results: dict[str, TaskResult] = field(default_factory=dict)

    def record(self, result: TaskResult) -> None:
        self.results[result.name] = result

    def succeeded(self, name: str) -> bool:
        result = self.results.get(name)
        return result is not None and result.ok

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results.values())

    @property
    def failures(self) -> list[TaskResult]:
        return [result for result in self.results.values() if result.status == FAILED]


class TaskGraph:
    """Registry of tasks and the runner that schedules them."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            self.add(task)

    def add(self, task: Task) -> None:
        if task.name in self._tasks:
            raise TaskGraphError(f"Duplicate task: {task.name}")
        self._tasks[task.name] = task

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskGraphError(f"Unknown task: {name}") from None

    def names(self) -> list[str]:
        return list(self._tasks)

    def _closure(self, targets: Iterable[str]) -> dict[str, tuple[str, ...]]:
        graph: dict[str, tuple[str, ...]] = {}
        stack = list(targets)
        while stack:
            name = stack.pop()
            if name in graph:
                continue
            task = self.get(name)
            graph[name] = task.requires
            stack.extend(task.requires)
        return graph

    def resolve(self, targets: Iterable[str]) -> list[str]:
        """Return the targets and everything they require, dependencies first.

        Raises:
            TaskGraphError: On an unknown task or a dependency cycle.
        """
        try:
            return list(TopologicalSorter(self._closure(targets)).static_order())
        except CycleError as exc:
            cycle = " -> ".join(exc.args[1])
            raise TaskGraphError(f"Dependency cycle: {cycle}") from exc

    def validate(self) -> None:
        """Check that no output path is claimed by two tasks.

        Raises:
            TaskGraphError: If two tasks declare the same output.
        """
        owners: dict[str, str] = {}
        for task in self._tasks.values():
            for output in task.outputs:
                if output in owners:
                    raise TaskGraphError(
                        f"Output {output} is written by both {owners[output]} and {task.name}"
                    )
                owners[output] = task.name
        self.resolve(self._tasks)

    def run(self, targets: Iterable[str], jobs: int | None = None) -> RunReport:
        """Run targets and their dependencies.

        Args:
            targets: Names of the nodes to run.
            jobs: Maximum number of nodes running at once.

        Returns:
            RunReport with one result per node of the dependency closure.
        """
        targets = tuple(targets)
        try:
            sorter = TopologicalSorter(self._closure(targets))
            sorter.prepare()
        except CycleError as exc:
            cycle = " -> ".join(exc.args[1])
            raise TaskGraphError(f"Dependency cycle: {cycle}") from exc

        report = RunReport(targets=targets)
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            running = {}
            while sorter.is_active():
                for name in sorter.get_ready():
                    task = self._tasks[name]
                    blocked = [dep for dep in task.requires if not report.succeeded(dep)]
                    if blocked:
                        print(f"Skipping {name}: {', '.join(blocked)} did not succeed")
                        report.record(TaskResult(name, SKIPPED))
                        sorter.done(name)
                        continue
                    running[pool.submit(self._execute, task)] = name
                if not running:
                    continue
                finished, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in finished:
                    name = running.pop(future)
                    report.record(future.result())
                    sorter.done(name)
        return report

    @staticmethod
    def _execute(task: Task) -> TaskResult:
        if task.action is None:
            return TaskResult(task.name, OK)
        print(f"Running {task.name}...")
        start = time.perf_counter()
        try:
            value = task.action()
        except Exception as exc:
            elapsed = time.perf_counter() - start
            print(f"Task {task.name} failed: {exc}")
            return TaskResult(task.name, FAILED, error=exc, duration=elapsed)
        elapsed = time.perf_counter() - start
        print(f"Finished {task.name} in {elapsed:.2f}s")
        return TaskResult(task.name, OK, duration=elapsed, value=value)
