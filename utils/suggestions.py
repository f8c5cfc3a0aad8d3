# utils/suggestions.py
"""AI task/phase suggestions and task enhancement.

Builds a JSON-context prompt, sends it through the Anthropic Messages API
and normalises the returned JSON array. The client is injected so callers
(and tests) decide how it is built.
"""
import json
import logging
import re

import config
from models.phase import PHASE_STATUSES
from models.task import TASK_PRIORITIES

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATED_HOURS = 4
DEFAULT_RATIONALE = "Task created by AI suggestion system based on project requirements."
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class SuggestionError(Exception):
    pass


def make_client():
    import anthropic

    api_key = config.get_setting("ANTHROPIC_API_KEY")
    if not api_key:
        raise SuggestionError("ANTHROPIC_API_KEY is not configured")
    return anthropic.Anthropic(api_key=api_key)


def _dumps(obj) -> str:
    return json.dumps(obj, indent=2, default=str)


def build_task_prompt(project: dict, knowledge: dict, existing_tasks: list, count: int = 5) -> str:
    return f"""You are an AI project management assistant. Based on the following project information, suggest {count} new tasks.
Return ONLY a JSON array without any markdown formatting or additional text.

Project Details:
{_dumps(project)}

Team Knowledge Base (team members with department and position, project phases, documents):
{_dumps(knowledge)}

Existing Tasks:
{_dumps(existing_tasks)}

Format each task exactly like this, with no additional fields or text:
[
  {{
    "title": "string",
    "description": "string",
    "priority": "low" | "medium" | "high" | "urgent",
    "estimated_hours": number,
    "suggested_assignee": "full_name_of_team_member",
    "suggested_phase": "name_of_phase",
    "suggested_due_date": "YYYY-MM-DD",
    "rationale": "Why the task is needed and why the assignee fits."
  }}
]

Use team member full names, realistic hour estimates and due dates between the project start and end dates."""


def build_phase_prompt(project: dict, existing_phases: list, count: int = 5) -> str:
    return f"""You are a project management AI assistant. Based on the following project information, suggest {count} logical project phases.
Return ONLY a JSON array without any markdown formatting or additional text.

Project Details:
{_dumps(project)}

Existing Phases:
{_dumps(existing_phases)}

Format each phase exactly like this:
[
  {{
    "name": "string",
    "description": "string",
    "suggested_status": "pending" | "in_progress" | "completed" | "cancelled",
    "suggested_sequence_order": number,
    "estimated_start_date": "YYYY-MM-DD",
    "estimated_end_date": "YYYY-MM-DD",
    "suggested_tasks": ["string"]
  }}
]

For sequence_order, start with 1 and increment sequentially."""


def _load_array(text: str) -> list:
    text = (text or "").strip()
    if "```" in text:
        text = re.sub(r"```(?:json)?", "", text).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("unparseable suggestion response: %s", text[:500])
        raise SuggestionError("Failed to generate valid suggestions") from e
    if not isinstance(data, list) or not data:
        raise SuggestionError("Invalid suggestions format")
    return data


def _positive_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def parse_task_suggestions(text: str) -> list[dict]:
    tasks = _load_array(text)
    for task in tasks:
        if not isinstance(task, dict) or not task.get("title") or not task.get("description"):
            raise SuggestionError("Invalid task suggestion format: missing title or description")
        if task.get("priority") not in TASK_PRIORITIES:
            task["priority"] = "medium"
        if not _positive_number(task.get("estimated_hours")):
            task["estimated_hours"] = DEFAULT_ESTIMATED_HOURS
        due = task.get("suggested_due_date")
        if due and not (isinstance(due, str) and _DATE_RE.match(due)):
            task["suggested_due_date"] = None
        if not task.get("rationale"):
            task["rationale"] = DEFAULT_RATIONALE
    return tasks


def parse_phase_suggestions(text: str) -> list[dict]:
    phases = _load_array(text)
    for phase in phases:
        if not isinstance(phase, dict) or not phase.get("name") or not phase.get("description"):
            raise SuggestionError("Invalid phase suggestion format: missing name or description")
        if phase.get("suggested_status") not in PHASE_STATUSES:
            phase["suggested_status"] = "pending"
        if not _positive_number(phase.get("suggested_sequence_order")):
            phase["suggested_sequence_order"] = 1
        phase.setdefault("suggested_tasks", [])
    return phases


def _complete(client, prompt: str, max_tokens: int = 4096) -> str:
    response = client.messages.create(
        model=config.ai_model(),
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )
    return response.content[0].text


def suggest_tasks(client, project: dict, knowledge: dict, existing_tasks: list) -> list[dict]:
    try:
        text = _complete(client, build_task_prompt(project, knowledge, existing_tasks))
    except Exception as e:
        logger.error("task suggestion request failed: %s", e)
        raise SuggestionError(f"AI request failed: {e}") from e
    return parse_task_suggestions(text)


def suggest_phases(client, project: dict, existing_phases: list) -> list[dict]:
    try:
        text = _complete(client, build_phase_prompt(project, existing_phases))
    except Exception as e:
        logger.error("phase suggestion request failed: %s", e)
        raise SuggestionError(f"AI request failed: {e}") from e
    return parse_phase_suggestions(text)


UNASSIGNED_NOT_FOUND = "Unassigned (user not found)"


def match_assignee(name, team: list):
    """User id of the team member whose full name matches ``name`` (case-insensitive), else None."""
    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    for m in team:
        if (m.get("full_name") or "").strip().lower() == wanted:
            return m["user_id"]
    return None


def build_enhance_prompt(project: dict, team: list, phases: list, tasks: list) -> str:
    valid = [[m["user_id"], m.get("full_name")] for m in team]
    return f"""You are an AI project management assistant. Analyze the following tasks and enhance them with appropriate missing properties.
Return ONLY a JSON array without any markdown formatting or additional text.

Project Details:
{_dumps(project)}

Project Phases:
{_dumps(phases)}

Team Members:
{_dumps(team)}

Valid User IDs (users that exist in the database):
{_dumps(valid)}

Tasks to Enhance:
{_dumps(tasks)}

For each task in the list, provide enhanced properties in the following JSON format:
[
  {{
    "id": "task_id_from_input",
    "title": "original_task_title",
    "assigned_to": "user_id_of_best_fit_team_member",
    "suggested_assignee": "full_name_of_best_fit_team_member",
    "priority": "low" | "medium" | "high" | "urgent",
    "estimated_hours": number,
    "rationale": "Why this team member fits, and how the priority and hours were chosen."
  }}
]

Only use user IDs from the "Valid User IDs" list."""


def parse_task_enhancements(text: str, tasks: list, team: list) -> list[dict]:
    """Validate enhancements against the original tasks and the project team.

    Entries for unknown task ids are dropped. Assignees outside the team are
    cleared; a name-only assignee is resolved to its team member's id.
    """
    originals = {t["id"]: t for t in tasks}
    names = {m["user_id"]: m.get("full_name") for m in team}
    out = []
    for e in _load_array(text):
        if not isinstance(e, dict) or e.get("id") not in originals:
            logger.warning("dropping enhancement for unknown task %r", e.get("id") if isinstance(e, dict) else e)
            continue
        original = originals[e["id"]]
        e.setdefault("title", original.get("title"))
        if e.get("priority") not in TASK_PRIORITIES:
            e["priority"] = original.get("priority") or "medium"
        if not _positive_number(e.get("estimated_hours")):
            e["estimated_hours"] = original.get("estimated_hours") or DEFAULT_ESTIMATED_HOURS
        assignee = e.get("assigned_to")
        if assignee and assignee not in names:
            logger.warning("suggested assignee %s is not on the project team", assignee)
            e["assigned_to"] = assignee = None
            if e.get("suggested_assignee"):
                e["suggested_assignee"] = UNASSIGNED_NOT_FOUND
        if assignee and not e.get("suggested_assignee"):
            e["suggested_assignee"] = names[assignee]
        if not assignee and e.get("suggested_assignee") and e["suggested_assignee"] != UNASSIGNED_NOT_FOUND:
            e["assigned_to"] = match_assignee(e["suggested_assignee"], team)
            if not e["assigned_to"]:
                e["suggested_assignee"] = UNASSIGNED_NOT_FOUND
        if not e.get("rationale"):
            e["rationale"] = DEFAULT_RATIONALE
        out.append(e)
    if not out:
        raise SuggestionError("Invalid task enhancements format")
    return out


def enhance_tasks(client, project: dict, team: list, phases: list, tasks: list) -> list[dict]:
    try:
        text = _complete(client, build_enhance_prompt(project, team, phases, tasks))
    except Exception as e:
        logger.error("task enhancement request failed: %s", e)
        raise SuggestionError(f"AI request failed: {e}") from e
    return parse_task_enhancements(text, tasks, team)
