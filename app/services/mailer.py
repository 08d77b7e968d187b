import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from app import config

logger = logging.getLogger(__name__)

BRAND_NAME = "قضيتك"


class Mailer:
    """SMTP relay used for password-reset codes and admin replies."""

    def __init__(self, host=None, port=None, username=None, password=None, from_email=None, use_tls=None):
        self.host = host if host is not None else config.SMTP_HOST
        self.port = port if port is not None else config.SMTP_PORT
        self.username = username if username is not None else config.SMTP_USERNAME
        self.password = password if password is not None else config.SMTP_PASSWORD
        self.from_email = from_email or config.SMTP_FROM or self.username
        self.use_tls = config.SMTP_TLS if use_tls is None else use_tls

    def send(self, to_email: str, subject: str, body_html: str, body_text: str = None):
        msg = MIMEMultipart("related")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email

        alternative = MIMEMultipart("alternative")
        msg.attach(alternative)

        if body_text:
            alternative.attach(MIMEText(body_text, "plain", "utf-8"))
        alternative.attach(MIMEText(body_html, "html", "utf-8"))

        server = smtplib.SMTP(self.host, self.port, timeout=15)
        try:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(self.from_email, [to_email], msg.as_string())
        finally:
            server.quit()
        logger.info(f"Email '{subject}' sent to {to_email}")


def get_mailer() -> Mailer:
    return Mailer()


def _layout(title: str, heading: str, content: str) -> str:
    return f"""<!DOCTYPE html>
<html dir="rtl" lang="ar">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - {BRAND_NAME}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, Helvetica, sans-serif; background-color: #f4f4f4; direction: rtl;">
  <table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%" style="background-color: #f4f4f4; padding: 20px 0;">
    <tr>
      <td align="center">
        <table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%" style="max-width: 600px; background-color: #ffffff; border-radius: 10px; overflow: hidden;">
          <tr>
            <td style="background: linear-gradient(to left, #2e7d32, #4ade80); padding: 20px; text-align: center;">
              <h1 style="color: #ffffff; font-size: 24px; margin: 10px 0;">{heading}</h1>
            </td>
          </tr>
          <tr>
            <td style="padding: 30px; color: #333333;">
{content}
            </td>
          </tr>
          <tr>
            <td style="background-color: #f8fafc; padding: 20px; text-align: center; color: #6b7280; font-size: 14px;">
              <p style="margin: 0;">© {BRAND_NAME}. جميع الحقوق محفوظة.</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def password_reset_email(code: str, expire_minutes: int) -> str:
    content = f"""
              <h2 style="font-size: 20px; color: #2e7d32; margin-bottom: 20px;">رمز التحقق الخاص بك</h2>
              <p style="font-size: 16px; line-height: 1.6; margin-bottom: 20px;">
                مرحبًا،<br>
                لقد تلقينا طلبًا لإعادة تعيين كلمة المرور لحسابك في <strong>{BRAND_NAME}</strong>. يرجى استخدام رمز التحقق التالي لإكمال العملية:
              </p>
              <div style="text-align: center; margin: 20px 0;">
                <span style="display: inline-block; background-color: #facc15; color: #1a4d1e; font-size: 24px; font-weight: bold; padding: 10px 20px; border-radius: 5px; letter-spacing: 2px;">{code}</span>
              </div>
              <p style="font-size: 16px; line-height: 1.6; margin-bottom: 20px;">
                هذا الرمز صالح لمدة <strong>{expire_minutes} دقائق</strong>. إذا لم تطلب إعادة تعيين كلمة المرور، يرجى تجاهل هذا البريد الإلكتروني.
              </p>"""
    return _layout("إعادة تعيين كلمة المرور", "إعادة تعيين كلمة المرور", content)


def message_reply_email(subject: str, body: str) -> str:
    content = f"""
              <h2 style="font-size: 20px; color: #2e7d32; margin-bottom: 20px;">{escape(subject)}</h2>
              <p style="font-size: 16px; line-height: 1.6; margin-bottom: 20px;">
                مرحبًا،<br>
                شكرًا لتواصلك مع <strong>{BRAND_NAME}</strong>. فيما يلي ردنا على رسالتك:
              </p>
              <div style="background-color: #f8fafc; padding: 20px; border-radius: 5px; margin-bottom: 20px;">
                <p style="font-size: 16px; line-height: 1.6; color: #333333;">{escape(body)}</p>
              </div>"""
    return _layout("رد على رسالتك", "رد على رسالتك", content)
