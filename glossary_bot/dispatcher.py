# glossary_bot/dispatcher.py

import logging
from typing import Callable, Dict, Optional

from glossary_bot.bot_messages import (
    CMD_ADD,
    CMD_DETAILS,
    CMD_HELP,
    CMD_MULTI_ADD,
    CMD_REMOVE,
    DEFAULT_MESSAGES,
    BotMessages,
)
from glossary_bot.command_parser import parse_command, parse_key_value, parse_multi_add
from glossary_bot.glossary_store import GlossaryStore
from glossary_bot.models import AddResult, PostedMessage, Room, Sender
from glossary_bot.normalizer import is_valid_key, normalize_value
from glossary_bot.reply_formatter import ReplyFormatter
from glossary_bot.transport import Transport, UserReader

logger = logging.getLogger("glossary_bot")


class GlossaryDispatcher:
    """
    Entry point for one posted message.

    Idle -> guard -> classify -> one handler -> reply -> Idle. Handlers only
    build reply text; sending happens once, here, and a failed send is logged
    and dropped.
    """

    def __init__(
        self,
        store: GlossaryStore,
        transport: Transport,
        user_reader: UserReader,
        messages: BotMessages = DEFAULT_MESSAGES,
        formatter: Optional[ReplyFormatter] = None,
    ):
        self.store = store
        self.transport = transport
        self.user_reader = user_reader
        self.messages = messages
        self.formatter = formatter or ReplyFormatter(messages)

        self._handlers: Dict[str, Callable[[str, Sender], str]] = {
            CMD_ADD: self.handle_add,
            CMD_MULTI_ADD: self.handle_multi_add,
            CMD_REMOVE: self.handle_remove,
            CMD_DETAILS: self.handle_details,
            CMD_HELP: self.handle_help,
        }

    # -----------------------
    # Inbound
    # -----------------------

    def should_process_message(self, message: PostedMessage) -> bool:
        if message.room.kind != self.messages.direct_room_kind:
            logger.debug("Message is not in a direct room, ignoring")
            return False

        app_user = self.user_reader.get_app_user()
        if app_user is None or message.sender.id == app_user.id:
            logger.debug("Message from the bot itself (or bot identity unknown), ignoring")
            return False

        if not (message.text or "").strip():
            logger.debug("Empty message, ignoring")
            return False

        return True

    def on_message_posted(self, message: PostedMessage) -> Optional[str]:
        """
        Returns the reply text that was sent, or None when the message was filtered out.
        """
        logger.debug(
            "Message received id=%s room=%s kind=%s sender=%s",
            message.id, message.room.id, message.room.kind, message.sender.id,
        )

        if not self.should_process_message(message):
            return None

        parsed = parse_command(message.text, self.messages.commands, self.messages.command_prefix)

        if parsed.command is not None:
            logger.debug("Command detected: %s", parsed.command)
            handler = self._handlers.get(parsed.command)
            if handler is None:
                logger.warning("Unknown command type: %s", parsed.command)
                return None
            reply = handler(parsed.payload, message.sender)
        else:
            reply = self.handle_search(parsed.payload)

        self.send_message(message.room, reply)
        return reply

    # -----------------------
    # Outbound
    # -----------------------

    def send_message(self, room: Optional[Room], text: str) -> None:
        if room is None or not room.id or not (text or "").strip():
            logger.warning("Refusing to send an empty message or to a missing room")
            return

        try:
            self.transport.send_text(room, text)
        except Exception as e:
            logger.error("Error sending message to room=%s: %s", room.id, e)

    # -----------------------
    # Handlers
    # -----------------------

    def handle_add(self, payload: str, sender: Sender) -> str:
        pair = parse_key_value(payload)
        if pair is None:
            return self.messages.invalid_add_format

        logger.info("Add command key=%r value=%r", pair.key, pair.value)
        result = self.store.add_value(pair.key, pair.value, sender.resolve_identity())

        if result == AddResult.ADDED:
            return self.formatter.render(self.messages.value_added, key=pair.key, value=pair.value)
        if result == AddResult.DUPLICATE:
            return self.formatter.render(self.messages.duplicate_value, key=pair.key)
        return self.messages.save_error

    def handle_multi_add(self, payload: str, sender: Sender) -> str:
        pairs = parse_multi_add(payload)
        if not pairs:
            return self.messages.invalid_multi_add_format

        logger.info("Multi-add command count=%d", len(pairs))
        author = sender.resolve_identity()

        added = 0
        duplicates = 0
        errors = 0
        for pair in pairs:
            result = self.store.add_value(pair.key, pair.value, author)
            if result == AddResult.ADDED:
                added += 1
            elif result == AddResult.DUPLICATE:
                duplicates += 1
            else:
                errors += 1

        return self.formatter.format_multi_add_summary(added, duplicates, errors)

    def handle_remove(self, payload: str, sender: Sender) -> str:
        pair = parse_key_value(payload)

        if pair is not None:
            logger.info("Remove value command key=%r value=%r", pair.key, pair.value)
            if self.store.remove_value(pair.key, pair.value):
                return self.formatter.render(self.messages.value_removed, key=pair.key, value=pair.value)
            return self.formatter.render(self.messages.value_not_found, key=pair.key, value=pair.value)

        key = (payload or "").strip()
        if not is_valid_key(key):
            return self.messages.invalid_remove_format

        logger.info("Remove key command key=%r", key)
        if self.store.remove_key(key):
            return self.formatter.render(self.messages.key_removed, key=key)
        return self.formatter.render(self.messages.key_not_found, key=key)

    def handle_details(self, payload: str, sender: Sender) -> str:
        pair = parse_key_value(payload)
        if pair is None:
            return self.messages.invalid_details_format

        entry = self.store.get_values(pair.key)
        if not entry:
            return self.formatter.render(self.messages.key_not_found, key=pair.key)

        target = normalize_value(pair.value)
        item = next((v for v in entry if normalize_value(v.value) == target), None)
        if item is None:
            return self.formatter.render(self.messages.value_not_found, key=pair.key, value=pair.value)

        return self.formatter.format_details(pair.key, item)

    def handle_help(self, payload: str, sender: Sender) -> str:
        return self.messages.help_text

    def handle_search(self, key: str) -> str:
        if not is_valid_key(key):
            return self.messages.invalid_search_key

        logger.info("Searching key=%r", key)
        values = self.store.get_display_values(key)

        if values:
            logger.info("Values found key=%r count=%d", key, len(values))
            return self.formatter.format_values(key, values)

        logger.info("No values found, suggesting !add key=%r", key)
        return self.formatter.render(self.messages.key_not_found_search, key=key)
