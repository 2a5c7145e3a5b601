import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config import get_settings
from database import session_scope
from recurrence import local_today
from services import BudgetService


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def roll_budgets_forward(source: str = "manual") -> int:
    today = local_today()
    logger.info(f"budget_rollover_run: source={source} month={today:%Y-%m}")
    with session_scope() as session:
        created = BudgetService(session).generate_recurring(today.year, today.month)
    logger.info(f"budget_rollover_run: source={source} budgets_created={len(created)}")
    return len(created)


class SchedulerManager:
    def __init__(self) -> None:
        settings = get_settings()
        self.enabled = settings.budget_rollover
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)

    def _run_job(self, source: str = "manual") -> None:
        roll_budgets_forward(source)

    def start(self) -> None:
        if not self.enabled:
            logger.info("Scheduler disabled (LEDGER_BUDGET_ROLLOVER=false)")
            return

        self._run_job("startup")

        trigger = CronTrigger(hour=0, minute=5)
        self.scheduler.add_job(
            self._run_job,
            trigger,
            args=["daily_00:05"],
            id="budget_rollover_daily",
            replace_existing=True,
            misfire_grace_time=3600,
        )

        trigger = IntervalTrigger(hours=1)
        self.scheduler.add_job(
            self._run_job,
            trigger,
            args=["hourly_safety_net"],
            id="budget_rollover_hourly",
            replace_existing=True,
            misfire_grace_time=300,
        )

        self.scheduler.start()
        logger.info("Scheduler started with daily 00:05 and hourly safety net")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
