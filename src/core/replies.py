"""User-facing reply texts.

Keeping formatting here prevents drift between commands and keeps replies
consistent. Replies are plain text; no parse mode is used when sending.
"""

from __future__ import annotations

from typing import Iterable

from core.models import Rule, Schedule

HELP_TEXT = "\n".join(
    [
        "🤖 Auto-Reply Bot Commands",
        "",
        "Message Auto-Reply:",
        "• The bot replies automatically to messages matching a saved rule",
        "",
        "Rule Management:",
        "• /listrules - List all saved rules",
        '• /addrule "trigger" "reply" - Add new rule',
        '• /editrule "trigger" "new_reply" - Edit existing rule',
        '• /deleterule "trigger" - Delete rule',
        "",
        "Contacts:",
        "• /addcontact <number> - Allow auto-replies for a contact",
        "• /listcontacts - List allowed contacts",
        "• /removecontact <number> - Remove a contact",
        "",
        "Outbound Messages:",
        '• /send <number> "message" - Send a message now',
        '• /schedule <number> "message" HH:MM - Send a message every day',
        "• /listschedules - List daily schedules",
        "• /cancelschedule <number> HH:MM - Cancel a daily schedule",
        "",
        "Examples:",
        '• /addrule "hello" "Hi there! How can I help you?"',
        '• /send 9876543210 "Hello from Telegram!"',
        '• /schedule 9876543210 "Good morning!" 08:00',
        "",
        "Note: Rules are case-insensitive and match partial text.",
    ]
)


def format_welcome(rule_count: int) -> str:
    return "\n".join(
        [
            "🎉 Welcome to the Auto-Reply Bot!",
            "",
            "This bot automatically replies to your messages based on predefined rules.",
            "",
            "Type /help to see all available commands.",
            "",
            f"Current rules: {rule_count}",
        ]
    )


def format_rule_list(rules: Iterable[Rule]) -> str:
    lines = [f'{index}. "{rule.trigger}" → "{rule.reply}"' for index, rule in enumerate(rules, start=1)]
    if not lines:
        return "📭 No rules saved yet."
    return "📜 Saved Rules:\n\n" + "\n".join(lines)


def format_rule_added(rule: Rule) -> str:
    return (
        f'✅ Rule added:\nTrigger: "{rule.trigger}"\nReply: "{rule.reply}"\n\n'
        f'This rule will now auto-reply to messages containing "{rule.trigger}"'
    )


def format_rule_updated(trigger: str, old_reply: str, new_reply: str) -> str:
    return f'✏️ Rule updated:\nTrigger: "{trigger}"\nOld reply: "{old_reply}"\nNew reply: "{new_reply}"'


def format_contact_list(contact_ids: Iterable[str]) -> str:
    lines = [f"{index}. +{contact_id}" for index, contact_id in enumerate(contact_ids, start=1)]
    if not lines:
        return "📭 No contacts allowed yet."
    return "📇 Allowed Contacts:\n\n" + "\n".join(lines)


def format_schedule_list(schedules: Iterable[Schedule]) -> str:
    lines = [
        f'{index}. +{schedule.contact_id} at {schedule.time_label} → "{schedule.message}"'
        for index, schedule in enumerate(schedules, start=1)
    ]
    if not lines:
        return "📭 No schedules saved yet."
    return "⏰ Daily Schedules:\n\n" + "\n".join(lines)
