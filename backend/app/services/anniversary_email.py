"""Anniversary digest email to agents via Mailgun.

One email per agent per run, listing every policy approaching its
anniversary. Delivery problems are logged and reported as False; they never
stop the anniversary run.
"""
import logging
from datetime import datetime
from typing import Sequence

import requests

from app.core.config import settings
from app.models.agent import Agent

logger = logging.getLogger(__name__)

AFL_TEAL = "#0D4D4D"
AFL_MINT = "#3DD6C3"


def _days_label(days: int) -> str:
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    return f"{days} days"


def build_anniversary_digest_html(agent: Agent, hits: Sequence) -> tuple[str, str]:
    """Build the digest. `hits` are due anniversary occurrences. Returns (subject, html_body)."""
    count = len(hits)
    noun = "policy" if count == 1 else "policies"
    subject = f"Policy Anniversary Alert: {count} {noun} approaching 1 year"

    rows = []
    for hit in sorted(hits, key=lambda h: h.occurrence.days_until):
        policy = hit.policy
        days = hit.occurrence.days_until
        badge = "background:#FEE2E2;color:#991B1B;" if days <= 7 else "background:#FEF3C7;color:#92400E;"
        anchor = hit.occurrence.anchor
        anchor_str = anchor.strftime("%B %d, %Y") if isinstance(anchor, datetime) else ""
        rows.append(f"""<tr>
          <td style="padding:8px 12px;border-bottom:1px solid #f0f0f0;font-weight:600;">{hit.client.name or "Unknown Client"}</td>
          <td style="padding:8px 12px;border-bottom:1px solid #f0f0f0;">{policy.policy_type or "Policy"} #{policy.policy_number or "-"}</td>
          <td style="padding:8px 12px;border-bottom:1px solid #f0f0f0;">{policy.carrier or ""}</td>
          <td style="padding:8px 12px;border-bottom:1px solid #f0f0f0;text-align:center;">
            <span style="display:inline-block;padding:2px 8px;border-radius:12px;font-size:12px;font-weight:600;{badge}" title="{anchor_str}">{_days_label(days)}</span>
          </td>
        </tr>""")

    intro = "policy is" if count == 1 else "policies are"
    their = "its" if count == 1 else "their"
    html = f"""<!DOCTYPE html>
<html><head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin:0;padding:0;background:#f1f5f9;font-family:Arial,sans-serif;">
<div style="max-width:600px;margin:0 auto;padding:20px;color:#2D3748;line-height:1.6;">
  <h2 style="color:{AFL_TEAL};margin-bottom:8px;">Policy Anniversary Alert</h2>
  <p style="font-size:15px;color:#4A5568;">
    Hi {agent.display_name}, the following {intro} approaching {their} 1-year anniversary.
    This is a great time to reach out and discuss whether a policy review makes sense.
  </p>
  <table style="width:100%;border-collapse:collapse;margin:20px 0;font-size:14px;">
    <thead>
      <tr style="background:#F7FAFC;">
        <th style="padding:8px 12px;text-align:left;font-size:12px;color:#718096;">CLIENT</th>
        <th style="padding:8px 12px;text-align:left;font-size:12px;color:#718096;">POLICY</th>
        <th style="padding:8px 12px;text-align:left;font-size:12px;color:#718096;">CARRIER</th>
        <th style="padding:8px 12px;text-align:center;font-size:12px;color:#718096;">ANNIVERSARY</th>
      </tr>
    </thead>
    <tbody>{"".join(rows)}</tbody>
  </table>
  <p style="margin-top:24px;">
    <a href="{settings.APP_URL}/dashboard" style="display:inline-block;padding:12px 24px;background:{AFL_MINT};color:{AFL_TEAL};text-decoration:none;border-radius:8px;font-weight:600;">
      Open Dashboard
    </a>
  </p>
</div>
</body></html>"""
    return subject, html


def send_anniversary_digest(agent: Agent, hits: Sequence) -> bool:
    """Send the digest via Mailgun. Returns True when Mailgun accepted it."""
    if not hits or not agent.email:
        return False
    if not settings.MAILGUN_API_KEY or not settings.MAILGUN_DOMAIN:
        logger.debug("Mailgun not configured, skipping anniversary digest")
        return False

    subject, html = build_anniversary_digest_html(agent, hits)
    try:
        resp = requests.post(
            f"https://api.mailgun.net/v3/{settings.MAILGUN_DOMAIN}/messages",
            auth=("api", settings.MAILGUN_API_KEY),
            data={
                "from": f"{settings.MAILGUN_FROM_NAME} <{settings.MAILGUN_FROM_EMAIL}>",
                "to": [agent.email],
                "subject": subject,
                "html": html,
            },
            timeout=15,
        )
    except requests.RequestException as e:
        logger.error(f"Anniversary digest email error for agent {agent.id}: {e}")
        return False

    if resp.status_code != 200:
        logger.warning(f"Mailgun returned {resp.status_code} for agent {agent.id} digest: {resp.text[:200]}")
        return False

    logger.info(f"Anniversary digest sent to agent {agent.id} ({len(hits)} policies)")
    return True
