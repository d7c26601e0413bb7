import asyncio
import logging
import smtplib
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jobportal.config import (
    MAIL_USERNAME,
    MAIL_PASSWORD,
    MAIL_FROM_NAME,
    SMTP_HOST,
    SMTP_PORT,
    SMTP_USE_TLS,
    FRONTEND_URL,
)

logger = logging.getLogger(__name__)

# Thread pool for async email sending
executor = ThreadPoolExecutor(max_workers=3)


def build_message(to_email, subject, text_content=None, html_content=None):
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = f"{MAIL_FROM_NAME} <{MAIL_USERNAME}>"
    message["To"] = to_email

    if text_content:
        message.attach(MIMEText(text_content, "plain"))
    if html_content:
        message.attach(MIMEText(html_content, "html"))
    return message


def send_email_sync(to_email, subject, text_content=None, html_content=None):
    """Send one email over SMTP. Returns False instead of raising."""
    if not MAIL_USERNAME or not MAIL_PASSWORD:
        logger.warning("Email credentials not configured; not sending %r to %s", subject, to_email)
        return False

    message = build_message(to_email, subject, text_content, html_content)

    try:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        try:
            server.ehlo()
            if SMTP_USE_TLS:
                server.starttls()
                server.ehlo()
            server.login(MAIL_USERNAME, MAIL_PASSWORD)
            server.send_message(message)
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email to %s failed: %s", to_email, e)
        return False

    logger.info("Email sent to %s", to_email)
    return True


async def send_email(to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> bool:
    """Best-effort delivery off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, send_email_sync, to, subject, text, html)


def render_job_alert_html(candidate_name, company_name, company_logo, title, location, job_type):
    if not company_logo:
        company_logo = f"https://ui-avatars.com/api/?name={company_name}&background=random"

    return f"""
<div style="font-family:'Segoe UI',Tahoma,Geneva,Verdana,sans-serif;max-width:600px;margin:auto;border:1px solid #e5e7eb;border-radius:16px;overflow:hidden;color:#1f2937;">
    <div style="background-color:#f8fafc;padding:30px;text-align:center;border-bottom:1px solid #e5e7eb;">
        <img src="{company_logo}" alt="{company_name} Logo" style="width:80px;height:80px;border-radius:12px;object-fit:cover;">
        <h2 style="margin-top:15px;color:#111827;font-size:20px;">{company_name} is hiring!</h2>
    </div>
    <div style="padding:30px;">
        <p style="font-size:16px;color:#4b5563;">Hello {candidate_name},</p>
        <p style="font-size:16px;color:#4b5563;">A new position has just been posted that matches your career interests:</p>
        <div style="background-color:#eff6ff;border-left:4px solid #3b82f6;padding:20px;margin:20px 0;border-radius:8px;">
            <h3 style="margin:0;color:#1e40af;font-size:18px;">{title}</h3>
            <p style="margin:5px 0 0 0;color:#3b82f6;font-weight:600;">{location} &bull; {job_type}</p>
        </div>
        <div style="text-align:center;margin-top:30px;">
            <a href="{FRONTEND_URL}/jobs" style="background-color:#2563eb;color:#ffffff;padding:14px 28px;text-decoration:none;border-radius:10px;font-weight:bold;display:inline-block;">View Full Job Description</a>
        </div>
    </div>
    <div style="background-color:#f9fafb;padding:20px;text-align:center;">
        <p style="font-size:12px;color:#9ca3af;margin:0;">
            You are receiving this because you enabled Job Alerts.<br>
            &copy; {datetime.utcnow().year} JobPortal. All rights reserved.
        </p>
    </div>
</div>
"""
