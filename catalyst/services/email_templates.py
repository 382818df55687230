"""
Email templates for the transactional messages Catalyst sends.

Each builder returns a ready EmailMessage with matching HTML and plain-text
bodies. Every interpolated value is HTML-escaped.
"""

import json
from html import escape
from typing import Any, Dict

from catalyst.services.mailers import EmailMessage

FOOTER = "© Catalyst (RozgarSathi) - AI-Powered Career Platform"

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .header { background: #4F46E5; color: white; padding: 20px; }
    .content { padding: 20px; }
    .section { margin: 20px 0; }
    .cta { background: #4F46E5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block; margin: 20px 0; }
    .footer { background: #f5f5f5; padding: 20px; text-align: center; font-size: 12px; color: #666; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>{_STYLE}</style>
</head>
<body>
  <div class="header"><h1>{title}</h1></div>
  <div class="content">
{body}
  </div>
  <div class="footer"><p>{FOOTER}</p></div>
</body>
</html>"""


def interview_report_email(
    to: str,
    candidate_name: str,
    date: str,
    transcript: str,
    feedback: str,
) -> EmailMessage:
    """Interview transcript plus AI feedback."""
    html = _page(
        f"Interview Report - {escape(candidate_name)}",
        f"""    <div class="section"><h2>Interview Date</h2><p>{escape(date)}</p></div>
    <div class="section"><h2>Transcript</h2><pre style="white-space: pre-wrap">{escape(transcript)}</pre></div>
    <div class="section"><h2>AI Feedback</h2><p>{escape(feedback)}</p></div>""",
    )
    text = (
        f"Interview Report\n\nCandidate: {candidate_name}\nDate: {date}\n\n"
        f"Transcript:\n{transcript}\n\nFeedback:\n{feedback}"
    )
    return EmailMessage(to=to, subject=f"Interview Report - {candidate_name}", html=html, text=text)


def welcome_email(to: str, name: str, app_url: str) -> EmailMessage:
    """Welcome message for a new user."""
    dashboard_url = f"{app_url.rstrip('/')}/dashboard"
    html = _page(
        "Welcome to Catalyst!",
        f"""    <h2>Hi {escape(name)},</h2>
    <p>Welcome to Catalyst (RozgarSathi) - your AI-powered career companion!</p>
    <p>We're excited to help you accelerate your career journey with:</p>
    <ul>
      <li>AI-powered resume building and optimization</li>
      <li>Interactive interview practice with real-time feedback</li>
      <li>Personalized job recommendations from top Indian job boards</li>
      <li>Career research and guidance</li>
    </ul>
    <a href="{escape(dashboard_url, quote=True)}" class="cta">Get Started</a>""",
    )
    text = (
        f"Hi {name},\n\nWelcome to Catalyst (RozgarSathi) - your AI-powered career companion!\n\n"
        f"Get started at: {dashboard_url}"
    )
    return EmailMessage(to=to, subject="Welcome to Catalyst!", html=html, text=text)


def report_email(to: str, report_type: str, data: Dict[str, Any]) -> EmailMessage:
    """Generic report: `data` rendered as pretty-printed JSON."""
    rendered = json.dumps(data, indent=2, default=str, ensure_ascii=False)
    html = _page(
        f"Catalyst - {escape(report_type)} Report",
        f"""    <div class="section"><pre style="white-space: pre-wrap; font-family: inherit">{escape(rendered)}</pre></div>""",
    )
    text = f"Catalyst {report_type} Report\n\n{rendered}"
    return EmailMessage(to=to, subject=f"Catalyst - Your {report_type} Report", html=html, text=text)
