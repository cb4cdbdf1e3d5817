"""Outbound email through Amazon SES.

Every send is best-effort: failures are logged and reported as ``False``,
never raised into the action that triggered them.
"""
import logging

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

OTP_SUBJECTS = {
    'email_verification': "{code} is your CollabSpace verification code",
    'password_reset': "{code} is your CollabSpace password reset code",
}

OTP_INTROS = {
    'email_verification': "Enter this code to verify your email address:",
    'password_reset': "Enter this code to reset your password:",
}

OTP_HTML = """<!DOCTYPE html>
<html>
  <body style="margin: 0; padding: 40px 20px; background-color: #0f172a; font-family: sans-serif; text-align: center;">
    <h1 style="color: #f1f5f9; font-size: 22px;">CollabSpace</h1>
    <p style="color: #cbd5e1; font-size: 15px;">{intro}</p>
    <p style="font-size: 36px; font-weight: 700; letter-spacing: 8px; color: #f1f5f9; font-family: monospace;">{code}</p>
    <p style="color: #64748b; font-size: 12px;">This code expires in 24 hours. If you didn't request it, you can ignore this email.</p>
  </body>
</html>
"""

JOIN_REQUEST_HTML = """<!DOCTYPE html>
<html>
  <body style="margin: 0; padding: 40px 20px; background-color: #0f172a; font-family: sans-serif;">
    <h1 style="color: #f1f5f9; font-size: 22px;">New Join Request</h1>
    <p style="color: #cbd5e1; font-size: 15px;">
      <strong>{requester}</strong> wants to join your project <strong>{project}</strong>.
    </p>
    <a href="{url}" style="color: #38bdf8;">View Request</a>
  </body>
</html>
"""


class Mailer:
    def __init__(self, sender, app_url, region='us-east-1', access_key=None, secret_key=None, enabled=True):
        self.sender = sender
        self.app_url = app_url
        self.enabled = enabled
        self.client = None
        if enabled:
            self.client = boto3.client(
                'ses',
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                config=BotoConfig(connect_timeout=5, read_timeout=10, retries={'max_attempts': 3}),
            )

    @classmethod
    def from_config(cls, config):
        return cls(
            sender=config['EMAIL_FROM'],
            app_url=config['APP_URL'],
            region=config['AWS_REGION'],
            access_key=config.get('AWS_ACCESS_KEY'),
            secret_key=config.get('AWS_SECRET_KEY'),
            enabled=config.get('MAIL_ENABLED', True),
        )

    def send(self, to_email, subject, text, html=None):
        if not self.enabled:
            logger.info("Email delivery disabled; dropped %r to %s", subject, to_email)
            return False

        body = {'Text': {'Data': text, 'Charset': 'UTF-8'}}
        if html:
            body['Html'] = {'Data': html, 'Charset': 'UTF-8'}
        try:
            self.client.send_email(
                Source=self.sender,
                Destination={'ToAddresses': [to_email]},
                Message={'Subject': {'Data': subject, 'Charset': 'UTF-8'}, 'Body': body},
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Failed to send %r to %s: %s", subject, to_email, e)
            return False
        return True

    def send_otp(self, to_email, code, purpose='email_verification'):
        intro = OTP_INTROS.get(purpose, OTP_INTROS['email_verification'])
        subject = OTP_SUBJECTS.get(purpose, OTP_SUBJECTS['email_verification']).format(code=code)
        text = f"{intro} {code}\n\nThis code expires in 24 hours."
        return self.send(to_email, subject, text, OTP_HTML.format(intro=intro, code=code))

    def send_join_request(self, owner_email, project_title, requester_name):
        url = f"{self.app_url}/app/projects"
        subject = f"New join request for {project_title}"
        text = f"{requester_name} wants to join your project {project_title}.\n\nReview it at {url}"
        html = JOIN_REQUEST_HTML.format(requester=requester_name, project=project_title, url=url)
        return self.send(owner_email, subject, text, html)

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
