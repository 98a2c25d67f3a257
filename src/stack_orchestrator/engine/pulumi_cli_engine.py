"""Engine adapter driving the pulumi CLI as a subprocess."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
import tempfile
import threading
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, TextIO

import yaml

from .engine_contract import EngineError, EventChannel, WorkspaceSettings
from .engine_events import StdOutEvent, parse_engine_event

_LOGGER = logging.getLogger(__name__)

PROJECT_FILENAME = "Pulumi.yaml"
EVENT_LOG_DIRNAME = ".events"


class ProcessHandle(Protocol):
    """Subset of ``subprocess.Popen`` used while streaming an operation."""

    stdout: Iterable[str] | None

    def wait(self) -> int: ...


CommandRunner = Callable[[Sequence[str], Path, Mapping[str, str]], str]
ProcessStarter = Callable[[Sequence[str], Path, Mapping[str, str]], ProcessHandle]


class PulumiCliEngine:  # pylint: disable=too-few-public-methods
    """Prepares file-backed workspaces and stacks for the pulumi CLI."""

    state_dirname = ".pulumi"

    def __init__(
        self,
        binary: str = "pulumi",
        *,
        run_command: CommandRunner | None = None,
        start_process: ProcessStarter | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self._binary = binary
        self._run_command = run_command or _run_checked_command
        self._start_process = start_process or _start_streaming_process
        self._poll_interval = poll_interval

    def prepare(self, workspace: WorkspaceSettings) -> PulumiCliStack:
        """Write the project file and select (or create) the stage's stack."""
        workspace.work_dir.mkdir(parents=True, exist_ok=True)
        write_project_file(workspace)
        _LOGGER.info("built workspace")

        stack = PulumiCliStack(
            binary=self._binary,
            workspace=workspace,
            run_command=self._run_command,
            start_process=self._start_process,
            poll_interval=self._poll_interval,
        )
        stack.select(create=workspace.create)
        _LOGGER.info("built stack")
        return stack


class PulumiCliStack:
    """One selected stack; every call shells out to the pulumi CLI."""

    def __init__(
        self,
        *,
        binary: str,
        workspace: WorkspaceSettings,
        run_command: CommandRunner,
        start_process: ProcessStarter,
        poll_interval: float,
    ) -> None:
        self._binary = binary
        self._workspace = workspace
        self._run_command = run_command
        self._start_process = start_process
        self._poll_interval = poll_interval

    def select(self, *, create: bool) -> None:
        args = ["stack", "select", "--stack", self._workspace.stage, "--non-interactive"]
        if create:
            args.append("--create")
        self._run(args)

    def set_all_config(self, config: Mapping[str, str]) -> None:
        if not config:
            return
        args = ["config", "set-all", "--stack", self._workspace.stage]
        for key, value in config.items():
            args.extend(["--plaintext", f"{key}={value}"])
        self._run(args)
        _LOGGER.info("built config")

    def up(self, channel: EventChannel) -> None:
        self._stream(["up", "--yes", "--skip-preview"], channel)

    def destroy(self, channel: EventChannel) -> None:
        self._stream(["destroy", "--yes", "--skip-preview"], channel)

    def refresh(self, channel: EventChannel | None = None, *, targets: Sequence[str] = ()) -> None:
        args = ["refresh", "--yes", "--skip-preview"]
        for target in targets:
            args.extend(["--target", target])
        self._stream(args, channel)

    def export_state(self) -> dict[str, Any]:
        output = self._run(
            ["stack", "export", "--show-secrets", "--stack", self._workspace.stage]
        )
        try:
            exported = json.loads(output)
        except json.JSONDecodeError as exc:
            raise EngineError("Engine exported a state that is not valid JSON.") from exc
        if not isinstance(exported, dict):
            raise EngineError("Engine exported a state whose root is not an object.")
        return exported

    def import_state(self, exported: Mapping[str, Any]) -> None:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            suffix=".json",
            dir=self._workspace.work_dir,
            delete=False,
        ) as handle:
            json.dump(exported, handle)
            import_path = Path(handle.name)
        try:
            self._run(
                ["stack", "import", "--file", str(import_path), "--stack", self._workspace.stage]
            )
        finally:
            import_path.unlink(missing_ok=True)

    def _env(self) -> dict[str, str]:
        env = dict(self._workspace.env)
        env["PULUMI_HOME"] = str(self._workspace.home_dir)
        env["PULUMI_SKIP_UPDATE_CHECK"] = "true"
        return env

    def _run(self, args: Sequence[str]) -> str:
        return self._run_command((self._binary, *args), self._workspace.work_dir, self._env())

    def _stream(self, args: Sequence[str], channel: EventChannel | None) -> None:
        """Run one operation, streaming its progress onto ``channel`` when given.

        Without a channel no event log is requested and output lines are only
        logged at debug level.
        """
        command: tuple[str, ...] = (
            self._binary,
            *args,
            "--stack",
            self._workspace.stage,
            "--non-interactive",
        )
        event_log: Path | None = None
        follower: EventLogFollower | None = None
        if channel is not None:
            event_log = self._workspace.work_dir / EVENT_LOG_DIRNAME / f"{uuid.uuid4().hex}.json"
            event_log.parent.mkdir(parents=True, exist_ok=True)
            command = (*command, "--event-log", str(event_log))
            follower = EventLogFollower(event_log, channel, poll_interval=self._poll_interval)
            follower.start()
        try:
            process = self._start_process(command, self._workspace.work_dir, self._env())
            for line in process.stdout or ():
                text = line.rstrip("\n")
                if channel is None:
                    _LOGGER.debug("%s", text)
                else:
                    channel.put(StdOutEvent(text=text))
            return_code = process.wait()
        except OSError as exc:
            raise EngineError(f"Engine command could not start: {shlex.join(command)}") from exc
        finally:
            if follower is not None:
                follower.stop()
            if channel is not None:
                channel.close()
            if event_log is not None:
                event_log.unlink(missing_ok=True)
        if return_code != 0:
            raise EngineError(f"Engine {args[0]} failed with exit code {return_code}")


class EventLogFollower:
    """Tails the engine's newline-delimited JSON event log onto a channel."""

    def __init__(self, path: Path, channel: EventChannel, *, poll_interval: float = 0.05) -> None:
        self._path = path
        self._channel = channel
        self._poll_interval = poll_interval
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._follow, name="engine-event-log", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        """Signal completion and wait until everything written so far was forwarded."""
        self._stopped.set()
        self._thread.join()

    def _follow(self) -> None:
        pending = ""
        handle: TextIO | None = None
        try:
            while True:
                finishing = self._stopped.is_set()
                if handle is None and self._path.exists():
                    handle = self._path.open(encoding="utf-8")
                chunk = handle.read() if handle is not None else ""
                if chunk:
                    pending += chunk
                    *lines, pending = pending.split("\n")
                    for line in lines:
                        self._emit(line)
                if finishing:
                    self._emit(pending)
                    return
                if not chunk:
                    self._stopped.wait(self._poll_interval)
        finally:
            if handle is not None:
                handle.close()

    def _emit(self, line: str) -> None:
        text = line.strip()
        if not text:
            return
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            _LOGGER.warning("skipping malformed engine event: %s", text[:200])
            return
        if isinstance(payload, Mapping):
            self._channel.put(parse_engine_event(payload))


def write_project_file(workspace: WorkspaceSettings) -> Path:
    """Write the engine project file binding the stack to a file backend in the work dir."""
    project: dict[str, Any] = {
        "name": workspace.project_name,
        "runtime": "nodejs",
        "backend": {"url": f"file://{workspace.work_dir}"},
    }
    if workspace.main is not None:
        project["main"] = str(workspace.main)
    path = workspace.work_dir / PROJECT_FILENAME
    path.write_text(yaml.safe_dump(project, sort_keys=False), encoding="utf-8")
    return path


def _run_checked_command(command: Sequence[str], cwd: Path, env: Mapping[str, str]) -> str:
    """Run one engine command and wrap subprocess errors with domain-friendly messages."""
    try:
        completed = subprocess.run(
            list(command),
            cwd=cwd,
            env=dict(env),
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as exc:
        raise EngineError(f"Engine command not found: {shlex.join(command)}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise EngineError(
            f"Engine command failed with exit code {exc.returncode}: {shlex.join(command)}"
            + (f"\n{stderr}" if stderr else "")
        ) from exc
    return completed.stdout


def _start_streaming_process(
    command: Sequence[str], cwd: Path, env: Mapping[str, str]
) -> subprocess.Popen[str]:
    return subprocess.Popen(  # pylint: disable=consider-using-with
        list(command),
        cwd=cwd,
        env=dict(env),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
