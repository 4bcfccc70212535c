"""
Routine Assistant: Telegram Bot.

Telegram is the host for the routine engine: commands map onto the
RoutineService, and a repeating job runs the heartbeat and pushes any due
reminder or check-in to the allowed users.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from pydantic import BaseModel
from telegram import Update
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from src.config import settings
from src.core.routine_service import ResponseKind, ServiceResponse

if TYPE_CHECKING:
    from src.core.routine_service import RoutineService
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _to_plain(value: Any) -> Any:
    """Turn result dataclasses / pydantic models into JSON-friendly data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return _to_plain(asdict(value))
    if isinstance(value, dict):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def render_response(response: ServiceResponse) -> str:
    """Render any service response as plain text for a chat reply."""
    if response.kind is ResponseKind.QUERY_RESULT:
        data = _to_plain(getattr(response, "data", None))
        return json.dumps(data, indent=2, ensure_ascii=False)
    return response.message


def _format_today(data: Any) -> str:
    if not data.reminders:
        return f"No reminders enabled for {data.date}."
    lines = [f"Reminders for {data.date}:"]
    for r in data.reminders:
        mark = "✅" if r.completed else ("⏭️" if r.skipped else "•")
        lines.append(f"{mark} {r.time} {r.id}")
    return "\n".join(lines)


def _service(context: ContextTypes.DEFAULT_TYPE) -> RoutineService:
    return context.bot_data["service"]


async def _reply(update: Update, response: ServiceResponse) -> None:
    await update.message.reply_text(render_response(response))


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

_STATS_OPERATION = {
    "reminders": "compliance",
    "sleep": "stats",
    "supplements": "report",
    "workouts": "stats",
}


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: welcome message."""
    await update.message.reply_text(
        "Welcome to Routine Assistant!\n\n"
        "I keep track of your reminders, sleep, supplements and workouts, "
        "and nudge you when something is due.\n\n"
        "Type /help for the full command list."
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help: list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/today: today's reminders\n"
        "/done <id>: mark a reminder completed\n"
        "/skip <id>: skip a reminder for today\n"
        "/sleep <hours> [quality]: log last night's sleep\n"
        "/took <supplement>: log a supplement\n"
        "/checkin [location]: check in to a workout\n"
        "/stats <reminders|sleep|supplements|workouts> [days]\n"
        "/run <area> <command> [args...]: any other command\n"
        "/help: show this message"
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today: show today's reminders."""
    try:
        response = _service(context).execute("reminders", "today")
    except Exception as exc:
        logger.error("/today error: %s", exc)
        await update.message.reply_text("Couldn't load today's reminders. Please try again.")
        return

    if response.kind is ResponseKind.QUERY_RESULT:
        await update.message.reply_text(_format_today(response.data))
    else:
        await _reply(update, response)


async def _run_reminder_status(
    update: Update, context: ContextTypes.DEFAULT_TYPE, operation: str,
) -> None:
    args = context.args
    if not args:
        await update.message.reply_text(
            f"Usage: /{'done' if operation == 'complete' else 'skip'} <reminder_id>\n"
            "Use /today to see IDs."
        )
        return
    try:
        response = _service(context).execute("reminders", operation, args[0])
    except Exception as exc:
        logger.error("/%s error: %s", operation, exc)
        await update.message.reply_text(f"Couldn't update reminder {args[0]}. Please try again.")
        return
    await _reply(update, response)


@authorized_only
async def cmd_done(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <id>: mark a reminder as completed today."""
    await _run_reminder_status(update, context, "complete")


@authorized_only
async def cmd_skip(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /skip <id>: skip a reminder for today."""
    await _run_reminder_status(update, context, "skip")


@authorized_only
async def cmd_sleep(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /sleep <hours> [quality] [notes...]."""
    args = context.args
    if not args:
        await update.message.reply_text("Usage: /sleep <hours> [quality 1-10] [notes]")
        return
    call_args: list[Any] = [args[0]]
    if len(args) > 1:
        call_args.append(args[1])
    if len(args) > 2:
        call_args.append(" ".join(args[2:]))
    try:
        response = _service(context).execute("sleep", "log", *call_args)
    except Exception as exc:
        logger.error("/sleep error: %s", exc)
        await update.message.reply_text("Couldn't log your sleep. Please try again.")
        return
    await _reply(update, response)


@authorized_only
async def cmd_took(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /took <supplement>: log a supplement intake."""
    name = " ".join(context.args or []).strip()
    if not name:
        await update.message.reply_text("Usage: /took <supplement name>")
        return
    try:
        response = _service(context).execute("supplements", "log", name)
    except Exception as exc:
        logger.error("/took error: %s", exc)
        await update.message.reply_text(f"Couldn't log {name}. Please try again.")
        return
    await _reply(update, response)


@authorized_only
async def cmd_checkin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /checkin [location]: start a workout session."""
    location = " ".join(context.args or []).strip()
    args = [location] if location else []
    try:
        response = _service(context).execute("workouts", "checkin", *args)
    except Exception as exc:
        logger.error("/checkin error: %s", exc)
        await update.message.reply_text("Couldn't check you in. Please try again.")
        return
    await _reply(update, response)


@authorized_only
async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats <area> [days]."""
    args = context.args or []
    if not args or args[0].lower() not in _STATS_OPERATION:
        await update.message.reply_text(
            "Usage: /stats <reminders|sleep|supplements|workouts> [days]"
        )
        return
    domain = args[0].lower()
    try:
        response = _service(context).execute(domain, _STATS_OPERATION[domain], *args[1:2])
    except Exception as exc:
        logger.error("/stats error: %s", exc)
        await update.message.reply_text("Couldn't build your stats. Please try again.")
        return
    await _reply(update, response)


@authorized_only
async def cmd_run(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /run <area> <command> [args...]: the full command surface."""
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("Usage: /run <area> <command> [args...]")
        return
    domain, operation, *rest = args
    try:
        response = _service(context).execute(domain.lower(), operation.lower(), *rest)
    except Exception as exc:
        logger.error("/run %s %s error: %s", domain, operation, exc)
        await update.message.reply_text("Something went wrong. Please try again.")
        return
    await _reply(update, response)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    service: RoutineService | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Routine service. Defaults to one opened on settings.DATA_DIR.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if service is None:
        from src.core.routine_service import build_routine_service
        service = build_routine_service()

    if notifier is None:
        from src.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    app.bot_data["service"] = service
    app.bot_data["notifier"] = notifier

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("done", cmd_done))
    app.add_handler(CommandHandler("skip", cmd_skip))
    app.add_handler(CommandHandler("sleep", cmd_sleep))
    app.add_handler(CommandHandler("took", cmd_took))
    app.add_handler(CommandHandler("checkin", cmd_checkin))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("run", cmd_run))

    _setup_heartbeat(app, service, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_heartbeat(
    app: Application,
    service: RoutineService,
    notifier: NotificationPort,
) -> None:
    """Register the repeating heartbeat job."""
    from src.core.scheduler import TriggerGate, send_heartbeat

    gate = TriggerGate()

    async def _heartbeat_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            await send_heartbeat(service, notifier, settings.ALLOWED_USER_IDS, gate=gate)
        except Exception as exc:
            logger.error("Heartbeat tick failed: %s", exc)

    app.job_queue.run_repeating(
        _heartbeat_job_callback,
        interval=settings.HEARTBEAT_INTERVAL_SECONDS,
        first=1,
        name="heartbeat",
    )

    logger.info("Heartbeat scheduled every %ds", settings.HEARTBEAT_INTERVAL_SECONDS)


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    token = settings.TELEGRAM_BOT_TOKEN
    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting Routine Assistant bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
