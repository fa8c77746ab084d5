"""
CSV builders: assessment export, results attachment and upload template
"""
import csv
import io
from typing import Iterable, List

from assessment_server.models import Assessment


EXPORT_HEADER = [
    "Judge Name", "Team Name",
    "Complexity Understanding", "Clear Storytelling", "Systems Action Plan", "Overall Assessment",
    "Complexity Comments", "Storytelling Comments", "Action Plan Comments", "Overall Comments",
    "Submitted At",
]

# Results attachment adds the percentage after the four ratings
RESULTS_HEADER = EXPORT_HEADER[:6] + ["Total Score %"] + EXPORT_HEADER[6:]

TEMPLATE_HEADER = ["team_name"] + [
    f"member{i}_{field}" for i in range(1, 5) for field in ("name", "email")
]

TEMPLATE_ROWS = [
    ["Team Alpha", "John Smith", "john.smith@example.com", "Sarah Johnson", "sarah.johnson@example.com",
     "Mike Chen", "mike.chen@example.com", "Lisa Brown", "lisa.brown@example.com"],
    ["Team Beta", "Alex Wilson", "alex.wilson@example.com", "Emma Davis", "emma.davis@example.com",
     "Ryan Taylor", "ryan.taylor@example.com", "", ""],
    ["Team Gamma", "Jordan Lee", "jordan.lee@example.com", "Casey Miller", "casey.miller@example.com",
     "", "", "", ""],
]


def _ratings_cells(a: Assessment) -> List:
    r = a.ratings
    return [r.complexity, r.storytelling, r.action_plan, r.overall]


def _comment_cells(a: Assessment) -> List[str]:
    c = a.comments
    return [c.complexity, c.storytelling, c.action_plan, c.overall]


def quote_cell(value) -> str:
    """Always double-quote, doubling inner quotes"""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def _plain_cell(value) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in ',"\r\n'):
        return quote_cell(text)
    return text


def _write(header: List[str], rows: Iterable[List], quote_columns: range) -> str:
    """
    Render rows with comma separators and \\n line endings

    Columns in quote_columns are always quoted; other cells only when they
    contain a separator, quote or newline.
    """
    lines = [",".join(header)]
    for row in rows:
        lines.append(",".join(
            quote_cell(value) if idx in quote_columns else _plain_cell(value)
            for idx, value in enumerate(row)
        ))
    return "\n".join(lines) + "\n"


def export_assessments_csv(assessments: Iterable[Assessment]) -> str:
    """11-column export; comment columns always quoted"""
    rows = [
        [a.judge_name, a.team_name] + _ratings_cells(a) + _comment_cells(a) + [a.submitted_at]
        for a in assessments
    ]
    return _write(EXPORT_HEADER, rows, quote_columns=range(6, 10))


def results_csv(assessments: Iterable[Assessment]) -> str:
    """12-column results attachment with per-assessment total percentage"""
    rows = [
        [a.judge_name, a.team_name] + _ratings_cells(a) + [f"{a.percentage():.1f}%"]
        + _comment_cells(a) + [a.submitted_at]
        for a in assessments
    ]
    return _write(RESULTS_HEADER, rows, quote_columns=range(7, 11))


def teams_template_csv() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADER)
    writer.writerows(TEMPLATE_ROWS)
    return buf.getvalue()
