"""
Envoi d'emails (SMTP) et modèles de messages.

Without MAIL_USERNAME configured the message is only logged, which is what
development and tests rely on.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from eduverse.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str) -> None:
    """Send an HTML email. Raises smtplib.SMTPException on delivery failure."""
    if not settings.mail_configured:
        logger.info(f"Email (not sent, SMTP not configured) to={to} subject={subject!r}")
        logger.debug(html)
        return

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(html, "html"))

    with smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT, timeout=15) as server:
        server.ehlo()
        if settings.MAIL_TLS:
            server.starttls()
            server.ehlo()
        server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        server.sendmail(settings.MAIL_FROM, [to], msg.as_string())
    logger.info(f"Email sent to={to} subject={subject!r}")


def _layout(title: str, body: str, link: Optional[str] = None, link_label: str = "View Details") -> str:
    button = ""
    if link:
        href = link if link.startswith("http") else f"{settings.APP_URL.rstrip('/')}{link}"
        button = f'<p><a href="{escape(href)}" style="color: #007bff; text-decoration: none;">{link_label}</a></p>'
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">{escape(title)}</h2>
  {body}
  {button}
  <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
  <p style="color: #999; font-size: 12px;">This is an automated notification from {escape(settings.APP_NAME)}.</p>
</div>
"""


def notification_email(title: str, message: str, link: Optional[str] = None) -> str:
    return _layout(title, f'<p style="color: #666; line-height: 1.6;">{escape(message)}</p>', link)


def welcome_email(display_name: str, role: str) -> str:
    body = (
        f"<p>Hello {escape(display_name)},</p>"
        f"<p>Your {escape(role)} account has been created. You can now sign in and start learning.</p>"
    )
    return _layout(f"Welcome to {settings.APP_NAME}", body, "/login", "Sign in")


def enrollment_request_email(student_name: str, student_email: str, course_title: str,
                             message: Optional[str] = None) -> str:
    body = (
        f"<p><strong>{escape(student_name)}</strong> ({escape(student_email)}) has requested to enroll in "
        f"<strong>{escape(course_title)}</strong>.</p>"
    )
    if message:
        body += f"<p>Message: <em>{escape(message)}</em></p>"
    return _layout("New Enrollment Request", body, "/admin/enrollment-requests", "Review request")


def enrollment_approved_email(student_name: str, course_title: str, course_id: str,
                              message: Optional[str] = None) -> str:
    body = (
        f"<p>Hello {escape(student_name)},</p>"
        f"<p>Your enrollment request for <strong>{escape(course_title)}</strong> has been approved.</p>"
    )
    if message:
        body += f"<p>{escape(message)}</p>"
    return _layout("Enrollment Approved", body, f"/courses/{course_id}", "Start the course")


def enrollment_denied_email(student_name: str, course_title: str, message: Optional[str] = None) -> str:
    body = (
        f"<p>Hello {escape(student_name)},</p>"
        f"<p>Your enrollment request for <strong>{escape(course_title)}</strong> was not approved.</p>"
    )
    if message:
        body += f"<p>Reason: {escape(message)}</p>"
    return _layout("Enrollment Request Denied", body, "/courses", "Browse courses")
