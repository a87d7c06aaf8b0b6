"""
Celery Tasks
Background export of completed orders to the Excel ledger.
"""

import logging
import time

from kombu.exceptions import OperationalError

from cafe_orders.celery_worker import celery_app
from cafe_orders.schemas import Order
from cafe_orders.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def export_completed_order(self, order_data: dict) -> dict:
    """
    Append a completed order to the Excel ledger.
    This task runs asynchronously via Celery worker.

    Args:
        order_data: Order record with wire keys

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('id', 'unknown')

    logger.info(f"Task {task_id}: exporting order #{order_id}")
    start_time = time.time()

    result = ExcelManager.export_completed_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"Task {task_id}: order #{order_id} done in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: order #{order_id} failed - {result['message']}")

    return result


def queue_ledger_export(order: Order) -> None:
    """
    Queue a completed order for the ledger.

    Broker outages are logged; the completion itself is already committed.
    """
    try:
        export_completed_order.delay(order.to_record())
    except (OperationalError, OSError) as e:
        logger.warning(f"Could not queue ledger export for order #{order.id}: {e}")
