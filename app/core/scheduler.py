import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.database import SessionLocal
from app.services.notification import notification_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def purge_read_notifications():
    db = SessionLocal()
    try:
        deleted = notification_service.purge_read_notifications(db)
        logger.info(f"Read notification purge finished: {deleted} notifications deleted")
    except Exception as e:
        logger.error(f"Error purging read notifications: {e}")
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            purge_read_notifications,
            'cron',
            hour=0,
            minute=0,
            id='purge_read_notifications',
            name='Purge Read Notifications',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Scheduler started with daily notification purge job")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
