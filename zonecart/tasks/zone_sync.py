# zonecart/tasks/zone_sync.py
from zonecart.celery_worker import celery_app
from zonecart.data.database import SessionLocal
from zonecart.domain.errors import ConcurrencyConflict, NotFoundError
from zonecart.services.lock_service import LockService
from zonecart.services.zone_sync import ZoneMembershipSynchronizer
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)
lock_service = LockService()


@celery_app.task(bind=True, max_retries=3, name="zonecart.tasks.zone_sync.sync_zone_task")
def sync_zone_task(self, zone_id: int):
    logger.info(f"Zone sync task started for zone {zone_id}")

    db = SessionLocal()
    try:
        report = ZoneMembershipSynchronizer(db, lock_service).sync(zone_id)
        return report.as_dict()
    except ConcurrencyConflict as e:
        # inny sweep tej strefy trwa, sprobuj po nim
        logger.info(f"Zone {zone_id} sync busy, retrying: {e}")
        raise self.retry(exc=e, countdown=5)
    except NotFoundError:
        logger.warning(f"Zone {zone_id} deleted before sync ran")
        return None
    finally:
        db.close()
