# tests/test_suggestions.py
import json
from types import SimpleNamespace

import pytest

from utils.suggestions import (
    DEFAULT_RATIONALE, UNASSIGNED_NOT_FOUND, SuggestionError, build_task_prompt, enhance_tasks,
    match_assignee, parse_phase_suggestions, parse_task_enhancements,
    parse_task_suggestions, suggest_phases, suggest_tasks,
)


class DummyClient:
    """Stands in for anthropic.Anthropic; records the prompt it was sent."""

    def __init__(self, text=None, error=None):
        self.text, self.error, self.calls = text, error, []
        self.messages = self

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


def test_parse_task_suggestions_applies_defaults():
    raw = "```json\n" + json.dumps([
        {"title": "Set up CI", "description": "Pipelines", "priority": "critical",
         "estimated_hours": -2, "suggested_due_date": "next week"},
        {"title": "Write docs", "description": "README", "priority": "high",
         "estimated_hours": 6, "suggested_due_date": "2026-11-01", "rationale": "Needed"},
    ]) + "\n```"
    tasks = parse_task_suggestions(raw)
    assert tasks[0]["priority"] == "medium"
    assert tasks[0]["estimated_hours"] == 4
    assert tasks[0]["suggested_due_date"] is None
    assert tasks[0]["rationale"] == DEFAULT_RATIONALE
    assert tasks[1]["priority"] == "high"
    assert tasks[1]["suggested_due_date"] == "2026-11-01"
    assert tasks[1]["rationale"] == "Needed"


@pytest.mark.parametrize("raw", ["not json", "[]", "{}", '[{"title": "x"}]'])
def test_parse_task_suggestions_rejects_bad_payloads(raw):
    with pytest.raises(SuggestionError):
        parse_task_suggestions(raw)


def test_parse_phase_suggestions_defaults():
    phases = parse_phase_suggestions(json.dumps([
        {"name": "Plan", "description": "Scope", "suggested_status": "later", "suggested_sequence_order": 0},
    ]))
    assert phases[0]["suggested_status"] == "pending"
    assert phases[0]["suggested_sequence_order"] == 1
    assert phases[0]["suggested_tasks"] == []


def test_build_task_prompt_includes_context():
    prompt = build_task_prompt({"name": "Apollo"}, {"teamMembers": [{"full_name": "Ada"}]}, [{"title": "Kickoff"}])
    assert "Apollo" in prompt and "Ada" in prompt and "Kickoff" in prompt


def test_suggest_tasks_uses_injected_client():
    client = DummyClient(text=json.dumps([{"title": "A", "description": "B"}]))
    tasks = suggest_tasks(client, {"name": "Apollo"}, {}, [])
    assert tasks[0]["title"] == "A"
    assert client.calls[0]["messages"][0]["role"] == "user"
    assert "Apollo" in client.calls[0]["messages"][0]["content"]


def test_suggest_phases_wraps_client_errors():
    with pytest.raises(SuggestionError):
        suggest_phases(DummyClient(error=RuntimeError("boom")), {"name": "Apollo"}, [])


TEAM = [
    {"user_id": "u1", "full_name": "Ada Lovelace", "role": "member"},
    {"user_id": "u2", "full_name": "Grace Hopper", "role": "manager"},
]
OPEN_TASKS = [
    {"id": "t1", "title": "Schema", "priority": "high", "estimated_hours": 6},
    {"id": "t2", "title": "Docs", "priority": None, "estimated_hours": None},
    {"id": "t3", "title": "Deploy", "priority": "low", "estimated_hours": 2},
]


def test_match_assignee_only_looks_at_the_team():
    assert match_assignee("  grace hopper ", TEAM) == "u2"
    assert match_assignee("Linus", TEAM) is None
    assert match_assignee(None, TEAM) is None
    assert match_assignee("Ada Lovelace", []) is None


def test_parse_task_enhancements_validates_against_team_and_tasks():
    raw = json.dumps([
        {"id": "t1", "assigned_to": "outsider", "suggested_assignee": "Mallory", "priority": "extreme"},
        {"id": "t2", "suggested_assignee": "Ada Lovelace", "estimated_hours": 3, "rationale": "Writes well"},
        {"id": "t3", "assigned_to": "u2"},
        {"id": "nope", "title": "Invented"},
    ])
    out = parse_task_enhancements(raw, OPEN_TASKS, TEAM)
    assert [e["id"] for e in out] == ["t1", "t2", "t3"]

    t1, t2, t3 = out
    assert t1["assigned_to"] is None and t1["suggested_assignee"] == UNASSIGNED_NOT_FOUND
    assert t1["priority"] == "high" and t1["estimated_hours"] == 6
    assert t2["assigned_to"] == "u1" and t2["priority"] == "medium" and t2["estimated_hours"] == 3
    assert t3["suggested_assignee"] == "Grace Hopper" and t3["title"] == "Deploy"
    assert t3["rationale"] == DEFAULT_RATIONALE


def test_parse_task_enhancements_rejects_when_nothing_matches():
    with pytest.raises(SuggestionError):
        parse_task_enhancements(json.dumps([{"id": "zzz"}]), OPEN_TASKS, TEAM)


def test_enhance_tasks_sends_team_ids():
    client = DummyClient(text=json.dumps([{"id": "t1", "assigned_to": "u1"}]))
    out = enhance_tasks(client, {"name": "Apollo"}, TEAM, [], OPEN_TASKS)
    assert out[0]["suggested_assignee"] == "Ada Lovelace"
    prompt = client.calls[0]["messages"][0]["content"]
    assert '"u1"' in prompt and "Schema" in prompt
    with pytest.raises(SuggestionError):
        enhance_tasks(DummyClient(error=RuntimeError("down")), {}, TEAM, [], OPEN_TASKS)
