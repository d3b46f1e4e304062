"""
Telegram Bot Service для ServiceHub
Відправляє адмінам сповіщення про бронювання та верифікації
"""
import logging
from telegram import Bot
from telegram.error import TelegramError

from .config import TELEGRAM_BOT_TOKEN, TELEGRAM_ADMIN_CHAT_IDS

logger = logging.getLogger(__name__)

STATUS_TITLES = {
    "accepted": "✅ <b>Бронювання прийнято</b>",
    "rejected": "🚫 <b>Бронювання відхилено</b>",
    "cancelled": "❌ <b>Бронювання скасовано</b>",
}


def parse_chat_ids(raw: str) -> list:
    """Парсити chat_id з рядка, розділеного комами"""
    return [int(chat_id.strip()) for chat_id in raw.split(",") if chat_id.strip()]


def format_slot(slot_date: str, start_time: str, end_time: str) -> str:
    return f"📅 <b>Дата:</b> {slot_date}\n🕐 <b>Час:</b> {start_time[:5]} - {end_time[:5]}"


class TelegramNotifier:
    """Клас для відправки Telegram сповіщень"""

    def __init__(self, bot_token=TELEGRAM_BOT_TOKEN, admin_chat_ids=TELEGRAM_ADMIN_CHAT_IDS):
        self.bot_token = bot_token
        self.admin_chat_ids = parse_chat_ids(admin_chat_ids or "")
        self.bot = None

        if self.bot_token:
            self.bot = Bot(token=self.bot_token)
            logger.info("✅ Telegram Bot ініціалізовано")
        else:
            logger.warning("⚠️ TELEGRAM_BOT_TOKEN не встановлено")

    async def _broadcast(self, message: str) -> bool:
        if not self.bot or not self.admin_chat_ids:
            logger.warning("Telegram бот не налаштований або немає адмінів для сповіщень")
            return False

        success_count = 0
        for chat_id in self.admin_chat_ids:
            try:
                await self.bot.send_message(chat_id=chat_id, text=message, parse_mode="HTML")
                success_count += 1
                logger.info(f"✅ Повідомлення відправлено адміну {chat_id}")
            except TelegramError as e:
                logger.error(f"❌ Помилка відправки адміну {chat_id}: {e}")

        return success_count > 0

    async def send_new_booking_notification(
        self,
        booking_id: int,
        client_id: int,
        specialist_id: int,
        slot_date: str,
        start_time: str,
        end_time: str,
    ) -> bool:
        """Відправити сповіщення про нове бронювання"""
        message = (
            "🎉 <b>Нове бронювання!</b>\n\n"
            f"{format_slot(slot_date, start_time, end_time)}\n\n"
            f"👤 <b>Клієнт:</b> #{client_id}\n"
            f"🧑‍🔧 <b>Спеціаліст:</b> #{specialist_id}\n\n"
            f"🆔 Бронювання #{booking_id}"
        )
        return await self._broadcast(message)

    async def send_booking_status_notification(
        self,
        booking_id: int,
        status: str,
        slot_date: str,
        start_time: str,
        end_time: str,
    ) -> bool:
        """Відправити сповіщення про зміну статусу бронювання"""
        title = STATUS_TITLES.get(status, f"<b>Бронювання: {status}</b>")
        message = (
            f"{title}\n\n"
            f"{format_slot(slot_date, start_time, end_time)}\n\n"
            f"🆔 Бронювання #{booking_id}"
        )
        return await self._broadcast(message)

    async def send_verification_submitted_notification(self, verification_id: int, specialist_id: int) -> bool:
        """Повідомити адмінів про нові документи на перевірку"""
        message = (
            "🪪 <b>Нові документи на верифікацію</b>\n\n"
            f"🧑‍🔧 <b>Спеціаліст:</b> #{specialist_id}\n"
            f"🆔 Верифікація #{verification_id}"
        )
        return await self._broadcast(message)


# Глобальний екземпляр
telegram_notifier = TelegramNotifier()
