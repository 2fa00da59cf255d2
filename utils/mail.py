# utils/mail.py
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from flask import current_app

from errors import DeliveryError

__all__ = ["send_email", "mask_email"]


def mask_email(addr: Optional[str]) -> str:
    """alice@example.com -> a***@e***.com for log lines."""
    if not addr:
        return ""
    try:
        local, domain = addr.split("@", 1)
    except ValueError:
        return (addr[:6] + "…") if len(addr) > 6 else addr
    local_mask = local[0] + "***" if len(local) > 1 else "*"
    # keep domain TLD visible
    dot = domain.rfind(".")
    if dot > 0:
        dom_mask = domain[0] + "***" + domain[dot:]
    else:
        dom_mask = (domain[:1] or "") + "***"
    return f"{local_mask}@{dom_mask}"


def send_email(*, to: str, subject: str, html: str = "", text: str = "") -> None:
    """
    Sends an email through the configured SMTP relay in a single attempt.
    Required config (see config.Config):
      - MAIL_LOGIN
      - MAIL_PASSWORD
      - MAIL_FROM         (e.g. 'YourApp <no-reply@example.com>')
    Optional:
      - MAIL_HOST         (default: smtp-relay.brevo.com)
      - MAIL_PORT         (default: 587)
      - MAIL_USE_SSL      (implicit TLS instead of STARTTLS, usually port 465)
      - MAIL_TIMEOUT      (socket timeout in seconds)
    Raises DeliveryError when the relay does not accept the message.
    """
    cfg = current_app.config
    host      = cfg.get("MAIL_HOST") or "smtp-relay.brevo.com"
    port      = cfg.get("MAIL_PORT") or 587
    use_ssl   = bool(cfg.get("MAIL_USE_SSL"))
    login     = cfg.get("MAIL_LOGIN")
    password  = cfg.get("MAIL_PASSWORD")
    mail_from = cfg.get("MAIL_FROM")
    timeout   = cfg.get("MAIL_TIMEOUT", 20)

    if not (login and password and mail_from):
        current_app.logger.error("[mail] MAIL_LOGIN / MAIL_PASSWORD / MAIL_FROM not configured")
        raise DeliveryError("Email delivery is not configured")

    msg = EmailMessage()
    msg["From"] = mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")

    mode = "SSL" if use_ssl else "STARTTLS"
    try:
        ctx = ssl.create_default_context()
        if use_ssl:
            with smtplib.SMTP_SSL(host, port, context=ctx, timeout=timeout) as s:
                s.login(login, password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(host, port, timeout=timeout) as s:
                s.ehlo()
                s.starttls(context=ctx)
                s.ehlo()
                s.login(login, password)
                s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.warning("[mail] %s %s:%s failed: %r", mode, host, port, e)
        raise DeliveryError() from e

    current_app.logger.info("[mail] sent via %s:%s to %s", host, port, mask_email(to))
