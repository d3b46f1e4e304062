import logging
from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Environment

from . import config

logger = logging.getLogger(__name__)

templates = Environment(autoescape=True)

VERIFICATION_RESULT_TEMPLATE = templates.from_string("""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .content { max-width: 600px; margin: 0 auto; padding: 40px; background: white; border-radius: 10px; }
        h1 { color: #667eea; }
        .reason { background: #fff3cd; padding: 15px; border-radius: 5px; }
    </style>
</head>
<body>
    <div class="content">
        {% if approved %}
        <h1>✅ Верифікацію підтверджено</h1>
        <p>Ваші документи перевірено. Тепер клієнти бачать ваш профіль та можуть бронювати сесії.</p>
        {% else %}
        <h1>❌ Верифікацію відхилено</h1>
        <p>На жаль, ми не змогли підтвердити ваші документи.</p>
        {% if reason %}<div class="reason"><strong>Причина:</strong> {{ reason }}</div>{% endif %}
        <p>Ви можете завантажити документи повторно у своєму профілі.</p>
        {% endif %}
        <p><a href="{{ profile_url }}">Перейти до профілю</a></p>
    </div>
</body>
</html>
""")


def get_mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=config.MAIL_USERNAME,
        MAIL_PASSWORD=config.MAIL_PASSWORD,
        MAIL_FROM=config.MAIL_FROM,
        MAIL_PORT=config.MAIL_PORT,
        MAIL_SERVER=config.MAIL_SERVER,
        MAIL_FROM_NAME=config.MAIL_FROM_NAME,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )


def render_verification_result(status: str, reason=None) -> str:
    return VERIFICATION_RESULT_TEMPLATE.render(
        approved=status == "approved",
        reason=reason,
        profile_url=f"{config.FRONTEND_URL}/specialist",
    )


async def send_verification_result_email(email: str, status: str, reason=None) -> bool:
    """Відправити спеціалісту результат перевірки документів"""
    if not config.MAIL_ENABLED:
        logger.warning(f"Email вимкнено, лист про верифікацію для {email} не відправлено")
        return False

    message = MessageSchema(
        subject="Результат верифікації - ServiceHub",
        recipients=[email],
        body=render_verification_result(status, reason),
        subtype=MessageType.html
    )

    fm = FastMail(get_mail_config())
    await fm.send_message(message)
    logger.info(f"Лист про верифікацію ({status}) відправлено на {email}")
    return True
