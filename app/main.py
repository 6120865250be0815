"""
Console Entry Point for Expense Agent

Runs the bot against stdin/stdout. Every line typed is one message of a
single conversation; the replies are printed back.

    $ expense-agent
    gastei 25,50 no cinema
    sim
    sim
    /report

Configuration comes from the environment / .env (see expense_agent.config).
"""

import asyncio

import structlog

from expense_agent.audit import configure_logging
from expense_agent.config import get_settings, validate_all_settings
from expense_agent.orchestrator import create_app_components


logger = structlog.get_logger(__name__)


async def run() -> None:
    bot = create_app_components()
    await bot.run()


def main() -> int:
    checks = validate_all_settings()
    failed = {k: v for k, v in checks.items() if k.endswith("_error")}
    if failed:
        for name, error in failed.items():
            print(f"Configuration error ({name[:-len('_error')]}): {error}")
        return 1

    settings = get_settings()
    app_settings = settings.app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)
    logger.info(
        "starting",
        environment=app_settings.app_environment,
        ledger=str(settings.ledger.ledger_path),
    )

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("shutting_down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
