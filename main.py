"""
Routine Assistant: Entry Point.

Single entry point: `python main.py` starts the Telegram bot, which runs
the heartbeat job and exposes the routine commands.
"""

from src.bot.telegram_bot import main

if __name__ == "__main__":
    main()
