# app.py

import asyncio
import html
import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Optional

from telegram import Bot, InputFile, Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest, TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)
from telegram.request import HTTPXRequest

from config import Settings
from domain.dtos import ExportFile, ImageUpload, Preview
from domain.enums import ErrorKind, ExportFormat
from domain.errors import ClipboardFailed, ExtractionFailed, ValidationFailed
from services.clipboard import ClipboardService
from services.exporter import serialize
from services.extraction_client import ExtractionClient
from services.image_utils import make_preview, render_card
from services.palette_model import PaletteModel
from services.presenter import palette_keyboard, palette_text
from services.upload_controller import MSG_EXTRACTION_FAILED, Error, Ready, UploadController, validate_upload

log = logging.getLogger("app")


class TelegramClipboardWriter:
    """Telegram has no clipboard API: the hex goes out as a tap-to-copy <code> message."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def write(self, text: str) -> None:
        try:
            await self.bot.send_message(self.chat_id, f"<code>{html.escape(text)}</code>", parse_mode=ParseMode.HTML)
        except TelegramError as e:
            raise ClipboardFailed(str(e)) from e


class TelegramFileSaver:
    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def save(self, export: ExportFile) -> None:
        document = InputFile(io.BytesIO(export.content.encode("utf-8")), filename=export.filename)
        await self.bot.send_document(self.chat_id, document=document)


@dataclass
class ChatSession:
    controller: UploadController
    clipboard: ClipboardService
    saver: TelegramFileSaver
    export_format: ExportFormat = ExportFormat.css
    message_id: Optional[int] = None  # message carrying the current palette keyboard

    @property
    def model(self) -> PaletteModel:
        return self.controller.model


class BotApp:
    """Composition root. Wires services and Telegram handlers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.client = ExtractionClient(settings.api_base, timeout=settings.request_timeout)
        self.sessions: Dict[int, ChatSession] = {}
        # OpenCV decode/encode stays off the event loop
        self.pool = ThreadPoolExecutor(max_workers=min(4, os.cpu_count() or 2))

    def session(self, chat_id: int, bot: Bot) -> ChatSession:
        s = self.sessions.get(chat_id)
        if s is not None:
            return s
        controller = UploadController(
            self.client,
            PaletteModel(),
            preview_factory=self.make_preview,
            max_bytes=self.settings.max_upload_bytes,
        )
        clipboard = ClipboardService(
            TelegramClipboardWriter(bot, chat_id),
            indicator_seconds=self.settings.copy_indicator_seconds,
        )
        s = ChatSession(controller=controller, clipboard=clipboard, saver=TelegramFileSaver(bot, chat_id))

        async def refresh(copied) -> None:
            await self._refresh_keyboard(bot, chat_id, s)

        clipboard.on_change = refresh
        self.sessions[chat_id] = s
        return s

    async def make_preview(self, data: bytes, media_type: str) -> Optional[Preview]:
        return await asyncio.get_running_loop().run_in_executor(self.pool, make_preview, data, media_type)

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_html(
            "<b>Hi!</b> Send me an image and I will extract its dominant colors\n"
            "with HEX, RGB, HSL and share of the image.\n\n"
            "Commands: /help, /reset, /health"
        )

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_text(
            "Send a photo or an image file (PNG, JPG up to 10MB).\n"
            "Tap a color to copy its hex code, pick CSS / JSON / TAILWIND and press Download to get an export.\n"
            "/reset clears the current palette."
        )

    async def reset(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        s = self.session(update.effective_chat.id, context.bot)
        s.controller.reset()
        s.clipboard.close()
        s.message_id = None
        await update.message.reply_text("Palette cleared. Send a new image.")

    async def health(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            info = await self.client.health()
        except ExtractionFailed as e:
            await update.message.reply_text(f"❌ {e}")
            return
        await update.message.reply_text(f"✅ {info.get('service', 'extraction service')}: {info.get('status', 'unknown')}")

    async def on_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.message
        if not message or not message.photo:
            return
        photo = message.photo[-1]
        # Telegram re-encodes photos as JPEG
        await self._handle_upload(update, context, photo.file_id, "image/jpeg", photo.file_size, f"{photo.file_unique_id}.jpg")

    async def on_document(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.message
        if not message or not message.document:
            return
        doc = message.document
        await self._handle_upload(update, context, doc.file_id, doc.mime_type or "", doc.file_size, doc.file_name or "image")

    async def _handle_upload(self, update: Update, context: ContextTypes.DEFAULT_TYPE, file_id: str,
                             media_type: str, size: Optional[int], filename: str) -> None:
        message = update.message
        s = self.session(update.effective_chat.id, context.bot)
        s.clipboard.close()
        s.message_id = None
        # drop whatever is in flight before the download starts
        s.controller.reset()
        generation = s.controller.generation

        declared = ImageUpload(data=b"", media_type=media_type, size=size or 0, filename=filename)
        try:
            validate_upload(declared, self.settings.max_upload_bytes)
        except ValidationFailed:
            # rejected from declared metadata, nothing is downloaded
            state = await s.controller.submit(declared)
        else:
            try:
                await context.bot.send_chat_action(message.chat_id, ChatAction.UPLOAD_PHOTO)
                file = await context.bot.get_file(file_id)
                bio = io.BytesIO()
                await file.download_to_memory(out=bio)
            except TelegramError as e:
                log.warning("Download of %s failed: %s", filename, e)
                if s.controller.generation == generation:
                    s.controller.fail(ErrorKind.extraction_failed, MSG_EXTRACTION_FAILED)
                    await message.reply_text(MSG_EXTRACTION_FAILED)
                return
            if s.controller.generation != generation:
                # a newer upload arrived while this one was downloading
                return
            data = bio.getvalue()
            state = await s.controller.submit(ImageUpload(data=data, media_type=media_type,
                                                          size=size or len(data), filename=filename))

        if state is None:
            # superseded by a newer upload in this chat
            return
        if isinstance(state, Error):
            await message.reply_text(state.message)
            return
        if not isinstance(state, Ready):
            return

        palette = state.palette
        if len(palette) == 0:
            await message.reply_text("No colors were found in this image.")
            return
        try:
            card = await asyncio.get_running_loop().run_in_executor(
                self.pool, render_card, s.controller.preview, palette
            )
            await message.reply_photo(photo=card)
        except (ValueError, TelegramError):
            log.exception("Failed to send swatch card")

        if s.controller.state is not state:
            return
        sent = await message.reply_html(
            palette_text(palette, self.settings.max_display_colors),
            reply_markup=palette_keyboard(palette, self.settings.max_display_colors, s.export_format),
        )
        if s.controller.state is state:
            s.message_id = sent.message_id

    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        s = self.session(update.effective_chat.id, context.bot)
        if s.model.is_empty or query.message is None or query.message.message_id != s.message_id:
            await query.answer("This palette is outdated. Send a new image.")
            return

        action, _, arg = (query.data or "").partition(":")
        palette = s.model.palette
        if action == "copy":
            index = int(arg) if arg.isdigit() else -1
            if not 0 <= index < len(palette):
                await query.answer()
                return
            hex_code = palette[index].display_hex
            copied = await s.clipboard.copy(hex_code, index)
            await query.answer(f"Copied {hex_code}" if copied else "Copy failed")
        elif action == "fmt":
            try:
                s.export_format = ExportFormat.parse(arg)
            except ValueError:
                await query.answer()
                return
            await query.answer(f"Export format: {s.export_format.value.upper()}")
            await self._refresh_keyboard(context.bot, update.effective_chat.id, s)
        elif action == "export":
            export = serialize(palette, s.export_format)
            await query.answer(f"Sending {export.filename}")
            try:
                await s.saver.save(export)
            except TelegramError as e:
                log.warning("Export of %s failed: %s", export.filename, e)
                await context.bot.send_message(update.effective_chat.id, "Export failed. Please try again.")
        else:
            await query.answer()

    async def _refresh_keyboard(self, bot: Bot, chat_id: int, s: ChatSession) -> None:
        if s.message_id is None or s.model.is_empty:
            return
        markup = palette_keyboard(s.model.palette, self.settings.max_display_colors, s.export_format,
                                  copied=s.clipboard.copied_id)
        try:
            await bot.edit_message_reply_markup(chat_id=chat_id, message_id=s.message_id, reply_markup=markup)
        except BadRequest as e:
            # "message is not modified" and deleted messages are harmless here
            log.debug("Keyboard refresh skipped: %s", e)
        except TelegramError as e:
            log.warning("Keyboard refresh failed: %s", e)

    async def shutdown(self, app: Application) -> None:
        for s in self.sessions.values():
            s.clipboard.close()
        await self.client.aclose()
        self.pool.shutdown(wait=False)

    def build_application(self) -> Application:
        request = HTTPXRequest(
            connect_timeout=20.0,
            read_timeout=40.0,
            write_timeout=20.0,
            pool_timeout=10.0,
            connection_pool_size=8,
        )

        app = (
            Application.builder()
            .token(self.settings.bot_token)
            .request(request)
            .concurrent_updates(True)
            .post_shutdown(self.shutdown)
            .build()
        )
        app.add_handler(CommandHandler("start", self.start))
        app.add_handler(CommandHandler("help", self.help))
        app.add_handler(CommandHandler("reset", self.reset))
        app.add_handler(CommandHandler("health", self.health))
        app.add_handler(MessageHandler(filters.PHOTO, self.on_photo))
        app.add_handler(MessageHandler(filters.Document.ALL, self.on_document))
        app.add_handler(CallbackQueryHandler(self.on_callback))
        return app


def main() -> None:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not settings.bot_token:
        log.error("BOT_TOKEN is not set")
        return
    bot = BotApp(settings)
    app = bot.build_application()
    log.info("Bot started, extraction service at %s", settings.api_base)
    app.run_polling(close_loop=False)


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
