"""
Notifications Module - Admin notifications via Telegram and SMTP
"""

import smtplib
import threading
import requests
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from flask import current_app


def get_admin_notifications_config():
    """Load admin notification settings from the app configuration"""
    return {
        'telegram': {
            'bot_token': current_app.config.get('ADMIN_TELEGRAM_BOT_TOKEN') or '',
            'chat_id': current_app.config.get('ADMIN_TELEGRAM_CHAT_ID') or ''
        },
        'smtp': {
            'host': current_app.config.get('ADMIN_SMTP_HOST') or '',
            'port': current_app.config.get('ADMIN_SMTP_PORT') or '587',
            'email': current_app.config.get('ADMIN_SMTP_EMAIL') or '',
            'password': current_app.config.get('ADMIN_SMTP_PASSWORD') or '',
            'recipient': current_app.config.get('ADMIN_RECIPIENT_EMAIL') or ''
        }
    }


def send_telegram_message(app, bot_token, chat_id, text):
    """Post a message to the Telegram Bot API; returns success"""
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {
            'chat_id': chat_id,
            'text': text,
            'parse_mode': 'HTML'
        }
        response = requests.post(url, json=payload, timeout=10)
        if response.status_code == 200:
            app.logger.info("Admin Telegram notification sent")
            return True
        app.logger.error(f"Telegram API error: {response.status_code}")
        return False
    except requests.RequestException as e:
        app.logger.error(f"Admin Telegram Error: {str(e)}")
        return False


def send_smtp_message(app, smtp_cfg, msg):
    """Deliver a prepared message through the admin SMTP account"""
    try:
        with smtplib.SMTP(smtp_cfg['host'], int(smtp_cfg.get('port') or 587)) as server:
            server.starttls()
            server.login(smtp_cfg['email'], smtp_cfg['password'])
            server.send_message(msg)
        app.logger.info("Admin SMTP notification sent")
        return True
    except (smtplib.SMTPException, OSError) as e:
        app.logger.error(f"Admin SMTP send error: {str(e)}")
        return False


def send_admin_notification(subject, message_text, html_body=None):
    """
    Send notification to the site owner via Telegram and SMTP

    Each channel is skipped when its credentials are not configured and
    delivered on a background thread otherwise.

    Args:
        subject (str): Notification subject
        message_text (str): Notification message
        html_body (str, optional): HTML version of the message

    Returns:
        list: Names of the channels a delivery was started on
    """
    app = current_app._get_current_object()
    config = get_admin_notifications_config()
    started = []

    # 1. Telegram
    tg_token = config['telegram']['bot_token']
    tg_chat = config['telegram']['chat_id']
    if tg_token and tg_chat:
        text = f"📬 <b>[Portfolio Admin]</b>\n📌 <b>{subject}</b>\n\n{message_text}"
        threading.Thread(
            target=send_telegram_message, args=(app, tg_token, tg_chat, text), daemon=True
        ).start()
        started.append('telegram')
    else:
        app.logger.debug("Admin Telegram credentials not configured")

    # 2. SMTP
    smtp_cfg = config['smtp']
    if all([smtp_cfg.get('host'), smtp_cfg.get('email'), smtp_cfg.get('password')]):
        msg = MIMEMultipart('alternative')
        msg['Subject'] = f"[Portfolio Admin] {subject}"
        msg['From'] = smtp_cfg['email']
        msg['To'] = smtp_cfg.get('recipient') or smtp_cfg['email']

        content = html_body if html_body else f"<h3>Portfolio Notification</h3><p>{message_text}</p>"
        msg.attach(MIMEText(content, 'html'))

        threading.Thread(target=send_smtp_message, args=(app, smtp_cfg, msg), daemon=True).start()
        started.append('smtp')
    else:
        app.logger.debug("Admin SMTP credentials not configured")

    return started


__all__ = [
    'get_admin_notifications_config',
    'send_telegram_message',
    'send_smtp_message',
    'send_admin_notification'
]
