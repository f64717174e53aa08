from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import pytest

from talan.config import initialize_project_config, resolve_project_config_root
from talan.craft.types import Action, Material, Task, WaitClass


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True, exist_ok=True)

    monkeypatch.chdir(workspace)
    initialize_project_config(workspace_dir=workspace)

    return {
        "workspace": workspace,
        "config_root": resolve_project_config_root(workspace),
    }


def make_task(
    item: str = "Bronze Ingot",
    actions: Sequence[str] = ("Basic Touch", "Basic Synthesis"),
    *,
    count: int = 1,
    index: int = 0,
    gearset: int = 0,
    collectable: bool = False,
    materials: Sequence[Material] = (Material("Copper Ore", 2), Material("Tin Ore", 1)),
    short: Sequence[str] = ("Basic Touch",),
) -> Task:
    parsed: List[Action] = [
        Action(name=name, wait=WaitClass.SHORT if name in short else WaitClass.LONG)
        for name in actions
    ]
    return Task(
        item=item,
        actions=tuple(parsed),
        count=count,
        index=index,
        gearset=gearset,
        collectable=collectable,
        materials=tuple(materials),
    )
