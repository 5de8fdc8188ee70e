import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.course_progress import course_progress_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def reconcile_enrollment_aggregates():
    db = SessionLocal()
    try:
        repaired = course_progress_service.reconcile_all_enrollments(db)
        logger.info(f"Enrollment reconciliation finished: {repaired} aggregates repaired")
    except Exception as e:
        db.rollback()
        logger.error(f"Error reconciling enrollment aggregates: {e}")
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            reconcile_enrollment_aggregates,
            'interval',
            minutes=settings.RECONCILE_INTERVAL_MINUTES,
            id='reconcile_enrollment_aggregates',
            name='Reconcile Enrollment Progress Aggregates',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Scheduler started with enrollment reconciliation job")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
