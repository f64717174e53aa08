"""Build crafting tasks from TOML task files and command-line specs."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Sequence, Union

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from talan.craft.types import Action, Material, Task
from talan.macros import MacroParseError, parse_macro_file

_COUNT_PREFIX_RE = re.compile(r"^(?P<count>\d+)\s*x\s+(?P<name>.+)$", re.IGNORECASE)


class TaskFileError(ValueError):
    """Raised when a task file or material spec is invalid."""


def parse_material(spec: str) -> Material:
    """Parse ``"Name:2"`` or ``"2x Name"``. A bare name counts once."""
    text = str(spec or "").strip()
    if not text:
        raise TaskFileError("empty material spec")

    match = _COUNT_PREFIX_RE.match(text)
    if match is not None:
        name, count_text = match.group("name"), match.group("count")
    elif ":" in text:
        name, _, count_text = text.rpartition(":")
    else:
        name, count_text = text, "1"

    name = name.strip()
    if not name:
        raise TaskFileError("material spec has no name: {0!r}".format(spec))
    try:
        count = int(count_text.strip())
    except ValueError as exc:
        raise TaskFileError("invalid material count in {0!r}".format(spec)) from exc
    if count <= 0:
        raise TaskFileError("material count must be positive in {0!r}".format(spec))
    return Material(name=name, count=count)


def _int_field(entry: Dict[str, object], key: str, default: int, minimum: int, where: str) -> int:
    value = entry.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TaskFileError("{0}: `{1}` must be an integer".format(where, key))
    if value < minimum:
        raise TaskFileError("{0}: `{1}` must be >= {2}".format(where, key, minimum))
    return value


def _materials(entry: Dict[str, object], where: str) -> List[Material]:
    raw = entry.get("materials", [])
    if not isinstance(raw, list):
        raise TaskFileError("{0}: `materials` must be a list".format(where))
    materials: List[Material] = []
    for position, item in enumerate(raw):
        label = "{0} material {1}".format(where, position)
        if isinstance(item, str):
            materials.append(parse_material(item))
            continue
        if not isinstance(item, dict):
            raise TaskFileError("{0}: expected a table or string".format(label))
        name = str(item.get("name") or "").strip()
        if not name:
            raise TaskFileError("{0}: missing `name`".format(label))
        materials.append(Material(name=name, count=_int_field(item, "count", 1, 1, label)))
    return materials


def build_task(
    *,
    item: str,
    actions: Sequence[Action],
    count: int = 1,
    index: int = 0,
    gearset: int = 0,
    collectable: bool = False,
    materials: Sequence[Material] = (),
) -> Task:
    name = str(item or "").strip()
    if not name:
        raise TaskFileError("task item name is empty")
    if count < 1:
        raise TaskFileError("task count must be >= 1")
    if index < 0 or gearset < 0:
        raise TaskFileError("task index and gearset must be >= 0")
    if not actions:
        raise TaskFileError("task for {0!r} has no actions".format(name))
    return Task(
        item=name,
        actions=tuple(actions),
        count=int(count),
        index=int(index),
        gearset=int(gearset),
        collectable=bool(collectable),
        materials=tuple(materials),
    )


def load_task_file(path: Union[str, Path]) -> List[Task]:
    task_path = Path(path)
    try:
        parsed = tomllib.loads(task_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TaskFileError("cannot read task file {0}: {1}".format(task_path, exc)) from exc
    except tomllib.TOMLDecodeError as exc:
        raise TaskFileError("invalid task file {0}: {1}".format(task_path, exc)) from exc

    entries = parsed.get("tasks")
    if not isinstance(entries, list) or not entries:
        raise TaskFileError("task file {0} has no [[tasks]] entries".format(task_path))

    tasks: List[Task] = []
    for position, entry in enumerate(entries):
        where = "task {0}".format(position)
        if not isinstance(entry, dict):
            raise TaskFileError("{0}: expected a table".format(where))
        macro = str(entry.get("macro") or "").strip()
        if not macro:
            raise TaskFileError("{0}: missing `macro`".format(where))
        macro_path = Path(macro)
        if not macro_path.is_absolute():
            macro_path = task_path.parent / macro_path
        try:
            actions = parse_macro_file(macro_path)
        except MacroParseError as exc:
            raise TaskFileError("{0}: {1}".format(where, exc)) from exc

        collectable = entry.get("collectable", False)
        if not isinstance(collectable, bool):
            raise TaskFileError("{0}: `collectable` must be true or false".format(where))
        tasks.append(
            build_task(
                item=str(entry.get("item") or ""),
                actions=actions,
                count=_int_field(entry, "count", 1, 1, where),
                index=_int_field(entry, "index", 0, 0, where),
                gearset=_int_field(entry, "gearset", 0, 0, where),
                collectable=collectable,
                materials=_materials(entry, where),
            )
        )
    return tasks
