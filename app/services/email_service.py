import smtplib
from pathlib import Path
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app.core.config import settings

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

# Helper to get template
def get_template(template_name):
    return _env.get_template(template_name)

# Helper to send email via SMTP. Returns True only when the server accepted the message.
def send_email_via_smtp(to_email, subject, html_content) -> bool:
    # Only HOST is required. User/Pass are optional (for Mailpit)
    if not settings.SMTP_HOST:
        logger.warning(f"SMTP host not configured. Skipping email to {to_email}.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as server:
            server.ehlo()

            # TLS only on submission ports; Mailpit on 1025 runs plain
            if settings.SMTP_PORT in [587, 2525]:
                server.starttls()
                server.ehlo()

            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

            server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

        logger.info(f"Email sent to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


# ---------------------------------------------------------
# FACULTY CREDENTIALS EMAIL
# ---------------------------------------------------------
def send_faculty_credentials_email(data: dict) -> bool:
    """
    data requires: full_name, email, temp_password
    optional: department_name
    """
    try:
        template = get_template('faculty_credentials.html')
        context = {
            "name": data.get("full_name"),
            "email": data.get("email"),
            "temp_password": data.get("temp_password"),
            "department_name": data.get("department_name"),
            "login_url": f"{settings.FRONTEND_URL}/login",
        }
        html_content = template.render(context)
    except Exception as e:
        logger.error(f"Error preparing credentials email: {e}")
        return False

    return send_email_via_smtp(data.get("email"), "Your faculty account has been created", html_content)
