"""
Plain-text and HTML bodies for dispatch notifications.
"""

import math
from html import escape
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team

FOOTER = "This is an automated message from SaferHoods Incident Response System."

# Shown to the reporter when no team detail is available
PLACEHOLDER_TEAM = {"name": "Response Team", "type": "Emergency", "distance": 5.0, "eta_minutes": 25}


def map_link(incident: Optional[Incident]) -> str:
    latitude = incident.location.latitude if incident else 0
    longitude = incident.location.longitude if incident else 0
    return f"https://www.google.com/maps/search/?api=1&query={latitude},{longitude}"


def _team_field(team: Any, name: str, default=None):
    if isinstance(team, dict):
        return team.get(name, default)
    return getattr(team, name, default)


def team_assignment_message(team: Team, incident: Incident, assignment: AssignmentRecord) -> Tuple[str, str, str]:
    """Return (subject, text, html) for a team assignment."""
    address = incident.location.address
    link = map_link(incident)
    priority = assignment.priority.value

    subject = f"URGENT: New incident assignment - {incident.type}: {incident.title}"

    text = (
        "URGENT: You have been assigned to respond to an incident\n\n"
        f"Team: {team.name} ({team.type})\n"
        f"Incident Type: {incident.type}\n"
        f"Incident Title: {incident.title}\n"
        f"Description: {incident.description}\n"
        f"Location: {address}\n"
        f"Map Link: {link}\n"
        f"Priority: {priority}\n\n"
        f"Instructions: {assignment.instructions}\n\n"
        "Please respond immediately according to protocol.\n"
        f"{FOOTER}\n"
    )

    html = (
        "<h2>URGENT: New Incident Assignment</h2>"
        f"<p><strong>Team:</strong> {escape(team.name)} ({escape(team.type)})</p>"
        f"<p><strong>Incident Type:</strong> {escape(incident.type)}</p>"
        f"<p><strong>Incident Title:</strong> {escape(incident.title)}</p>"
        f"<p><strong>Description:</strong> {escape(incident.description)}</p>"
        f"<p><strong>Location:</strong> {escape(address)}</p>"
        f"<p><strong>Priority:</strong> <span class=\"priority-{priority.lower()}\">{priority}</span></p>"
        f"<p><strong>Instructions:</strong><br>{escape(assignment.instructions)}</p>"
        f"<a href=\"{link}\">View Location on Map</a>"
        f"<p>{FOOTER}</p>"
    )
    return subject, text, html


def _team_lines(assigned_teams: Sequence) -> List[Dict[str, Any]]:
    teams = list(assigned_teams) or [PLACEHOLDER_TEAM]
    lines = []
    for team in teams:
        distance = _team_field(team, "distance") or _team_field(team, "distance_km") or 5.0
        eta = _team_field(team, "eta_minutes") or math.ceil(distance * 5)
        lines.append({
            "name": _team_field(team, "name", "Response Team"),
            "type": _team_field(team, "type", "Emergency"),
            "distance": float(distance),
            "eta_minutes": eta,
        })
    return lines


def reporter_update_message(incident: Incident, assigned_teams: Sequence) -> Tuple[str, str, str]:
    """Return (subject, text, html) for the reporter update."""
    subject = f"SaferHoods: Update on your incident report - {incident.title}"
    lines = _team_lines(assigned_teams)

    teams_text = "The following teams have been dispatched:\n\n"
    teams_html = "<h3>The following teams have been dispatched:</h3><ul>"
    for line in lines:
        teams_text += (
            f"- {line['name']} ({line['type']})\n"
            f"  Distance: {line['distance']:.2f} km\n"
            f"  ETA: Approximately {line['eta_minutes']} minutes\n\n"
        )
        teams_html += (
            f"<li><strong>{escape(str(line['name']))} ({escape(str(line['type']))})</strong><br>"
            f"Distance: {line['distance']:.2f} km<br>"
            f"ETA: Approximately {line['eta_minutes']} minutes</li>"
        )
    teams_html += "</ul>"

    text = (
        f"Thank you for reporting the incident: {incident.title}\n\n"
        "Your report has been processed and help is on the way.\n\n"
        f"{teams_text}"
        "We appreciate your vigilance in helping to keep our community safe.\n"
        f"{FOOTER}\n"
    )
    html = (
        f"<p>Thank you for reporting the incident: <strong>{escape(incident.title)}</strong></p>"
        "<p>Your report has been processed and help is on the way.</p>"
        f"{teams_html}<p>{FOOTER}</p>"
    )
    return subject, text, html
