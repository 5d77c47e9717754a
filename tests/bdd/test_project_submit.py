"""Behaviour tests for submitting project status against recorded API responses.

The ``projects/update_status`` cassette under ``tests/cassettes`` replays the
``PUT /projects/{id}`` exchange, so no live network access is needed.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
import requests
from betamax import Betamax
from pytest_bdd import given, parsers, scenarios, then, when

from trs_export.projects import Project, ProjectClient, submit_project_status
from trs_export.status import ProjectStatusState

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "project_submit.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture(scope="session")
def cassette_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "cassettes"


@pytest.fixture
def scenario_state() -> ScenarioState:
    return {}


@given(parsers.parse("a project with progress set to {percent:d} percent"))
def given_project_progress(scenario_state: ScenarioState, percent: int) -> None:
    scenario_state["state"] = ProjectStatusState().set_completion(percent)


@given("the project is put on hold")
def given_on_hold(scenario_state: ScenarioState) -> None:
    state = typ.cast("ProjectStatusState", scenario_state["state"])
    scenario_state["state"] = state.toggle_hold()


@given("project API responses are replayed via betamax")
def given_betamax(scenario_state: ScenarioState, cassette_dir: Path) -> None:
    session = requests.Session()
    recorder = Betamax(
        session,
        cassette_library_dir=str(cassette_dir),
        default_cassette_options={"record_mode": "once"},
    )
    scenario_state["session"] = session
    scenario_state["recorder"] = recorder


@when(parsers.parse('the status of project "{project_id}" is submitted'))
def when_submit(scenario_state: ScenarioState, project_id: str) -> None:
    session = typ.cast("requests.Session", scenario_state["session"])
    recorder = typ.cast("Betamax", scenario_state["recorder"])
    state = typ.cast("ProjectStatusState", scenario_state["state"])
    client = ProjectClient(token="test-token", session=session)

    with recorder.use_cassette("projects/update_status"):
        scenario_state["project"] = submit_project_status(client, project_id, state)


@then(parsers.parse('the API confirms project "{project_id}" is "{status}" at {percent:d} percent'))
def then_confirmed(
    scenario_state: ScenarioState, project_id: str, status: str, percent: int
) -> None:
    project = typ.cast("Project", scenario_state["project"])
    assert project.id == project_id
    assert project.status == status
    assert project.progress == percent
