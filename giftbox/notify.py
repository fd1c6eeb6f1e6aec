import logging
import smtplib
from email.mime.text import MIMEText

import requests
from flask import current_app

log = logging.getLogger("giftbox")


def configure_logging(log_file=None, level=logging.INFO):
    log.setLevel(level)
    if log.handlers:
        return log
    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        log.addHandler(fh)
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    log.addHandler(ch)
    return log


def notify(msg: str):
    """Send a staff alert over Slack and/or email, whichever is configured."""
    cfg = current_app.config
    try:
        if cfg.get("SLACK_WEBHOOK_URL"):
            requests.post(cfg["SLACK_WEBHOOK_URL"], json={"text": msg}, timeout=5)
    except Exception as e:
        log.warning(f"Slack notify failed: {e}")
    try:
        if cfg.get("SMTP_HOST") and cfg.get("ALERT_EMAIL_TO"):
            m = MIMEText(msg)
            m["Subject"] = f"[{cfg['SITE_NAME']}] Notification"
            m["From"] = cfg.get("SMTP_USER") or "noreply@localhost"
            m["To"] = cfg["ALERT_EMAIL_TO"]
            with smtplib.SMTP(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=5) as s:
                s.starttls()
                if cfg.get("SMTP_USER") and cfg.get("SMTP_PASS"):
                    s.login(cfg["SMTP_USER"], cfg["SMTP_PASS"])
                s.send_message(m)
    except Exception as e:
        log.warning(f"Email notify failed: {e}")
