# tsoam/services/homecell_reports.py
"""
Printable exports for a home cell (member roster) and a district (zone list).

Each report is built once as plain rows plus a header block, then rendered
as CSV (spreadsheet import) or a standalone HTML page that prints to PDF.
"""

from __future__ import annotations

import csv
import html
import io
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from tsoam.models.members import Member
from tsoam.services.homecells import get_district, get_homecell

FORMATS = ("csv", "html")

MEMBER_COLUMNS = ["Full Name", "Member ID", "Email", "Phone", "Status", "Membership Date"]
ZONE_COLUMNS = ["Zone ID", "Zone Name", "Zone Leader", "Leader Phone", "Home Cells", "Members", "Status"]

_STYLE = """
body { font-family: Arial, sans-serif; margin: 20px; }
h1 { color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px; }
h2 { color: #555; margin-top: 20px; }
table { width: 100%; border-collapse: collapse; margin-top: 10px; }
th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }
th { background-color: #f8f9fa; }
.label { font-weight: bold; color: #555; }
.footer { margin-top: 30px; padding-top: 10px; border-top: 1px solid #ddd; font-size: 12px; color: #888; }
"""


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "-", name).strip("-").lower() or "report"


def _status(active: bool) -> str:
    return "Active" if active else "Inactive"


def _leader(db: Session, leader_id: Optional[str]) -> Tuple[str, str]:
    """(name, phone) of the member whose member_id is `leader_id`."""
    if not leader_id:
        return "Not assigned", ""
    m = db.execute(select(Member).where(Member.member_id == leader_id)).scalars().first()
    if m is None:
        return leader_id, ""
    return m.full_name, m.phone or ""


# -------------------------------- builders -------------------------------- #

def homecell_report(db: Session, pk: int) -> Dict[str, Any]:
    hc = get_homecell(db, pk)
    district = get_district(db, hc.district_pk)
    members = db.execute(
        select(Member).where(Member.homecell_id == hc.id).order_by(Member.full_name)
    ).scalars().all()
    leader, leader_phone = _leader(db, hc.leader_id)
    rows = [
        [
            m.full_name,
            m.member_id,
            m.email or "",
            m.phone or "",
            m.membership_status,
            (m.membership_date or m.created_at.date()).isoformat(),
        ]
        for m in members
    ]
    return {
        "title": hc.name,
        "filename": f"homecell-{_slug(hc.name)}",
        "csv_filename": f"homecell-{_slug(hc.name)}-members.csv",
        "info": [
            ("Home Cell ID", hc.homecell_id),
            ("Zone", hc.zone.name),
            ("District", district.name),
            ("Leader", leader),
            ("Leader Phone", leader_phone or "N/A"),
            ("Meeting Day", hc.meeting_day or "N/A"),
            ("Meeting Time", hc.meeting_time.strftime("%H:%M") if hc.meeting_time else "N/A"),
            ("Location", hc.meeting_location or "N/A"),
            ("Status", _status(hc.is_active)),
        ],
        "stats": [
            ("Total Members", len(members)),
            ("Active Members", sum(1 for m in members if m.membership_status == "Active")),
            ("Inactive Members", sum(1 for m in members if m.membership_status == "Inactive")),
            ("Male", sum(1 for m in members if m.gender == "Male")),
            ("Female", sum(1 for m in members if m.gender == "Female")),
        ],
        "table_title": f"Members List ({len(rows)})",
        "columns": MEMBER_COLUMNS,
        "rows": rows,
    }


def district_report(db: Session, pk: int) -> Dict[str, Any]:
    d = get_district(db, pk)
    rows = []
    for z in d.zones:
        cells = [h for h in z.homecells if h.is_active]
        leader, phone = _leader(db, z.leader_id)
        rows.append([z.zone_id, z.name, leader, phone, len(cells), sum(h.member_count for h in cells), _status(z.is_active)])
    return {
        "title": d.name,
        "filename": f"district-{_slug(d.name)}",
        "csv_filename": f"district-{_slug(d.name)}-zones.csv",
        "info": [("District ID", d.district_id), ("Status", _status(d.is_active))],
        "stats": [
            ("Total Zones", len(rows)),
            ("Home Cells", sum(r[4] for r in rows)),
            ("Members", sum(r[5] for r in rows)),
        ],
        "table_title": "Zones in this District",
        "columns": ZONE_COLUMNS,
        "rows": rows,
    }


# -------------------------------- renderers -------------------------------- #

def to_csv(report: Dict[str, Any]) -> str:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(report["columns"])
    writer.writerows(report["rows"])
    return out.getvalue()


def esc(value: Any) -> str:
    return html.escape(str(value))


def to_html(report: Dict[str, Any], generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    parts: List[str] = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="UTF-8">',
        f"<title>{esc(report['title'])} Report</title>",
        f"<style>{_STYLE}</style></head><body>",
        f"<h1>{esc(report['title'])}</h1>",
    ]
    parts += [f'<p><span class="label">{esc(k)}:</span> {esc(v)}</p>' for k, v in report["info"]]
    parts.append("<h2>Summary Statistics</h2>")
    parts += [f'<p><span class="label">{esc(k)}:</span> {esc(v)}</p>' for k, v in report["stats"]]
    if report["rows"]:
        parts.append(f"<h2>{esc(report['table_title'])}</h2>")
        parts.append("<table><thead><tr>" + "".join(f"<th>{esc(c)}</th>" for c in report["columns"]) + "</tr></thead><tbody>")
        parts += ["<tr>" + "".join(f"<td>{esc(v)}</td>" for v in row) + "</tr>" for row in report["rows"]]
        parts.append("</tbody></table>")
    parts.append(
        f'<div class="footer"><p>Generated on {generated_at.strftime("%Y-%m-%d %H:%M UTC")}</p>'
        "<p>TSOAM Church Management System</p></div>"
    )
    parts.append("</body></html>")
    return "\n".join(parts)


def render(report: Dict[str, Any], fmt: str) -> Tuple[str, str, str]:
    """(body, media type, filename) for `fmt`."""
    if fmt == "csv":
        return to_csv(report), "text/csv", report["csv_filename"]
    if fmt == "html":
        return to_html(report), "text/html", report["filename"] + ".html"
    raise ValueError(f"Unsupported export format {fmt!r}; use one of {', '.join(FORMATS)}")
