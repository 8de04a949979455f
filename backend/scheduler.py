from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import settings
from tasks.notifications import run_inventory_checks

scheduler = BackgroundScheduler(timezone=settings.APP_TIMEZONE)

# Every 6 hours, on the hour
scheduler.add_job(
    run_inventory_checks,
    CronTrigger(hour="*/6", minute=0, timezone=settings.APP_TIMEZONE),
    id="inventory_notifications_job",
    replace_existing=True,
)
