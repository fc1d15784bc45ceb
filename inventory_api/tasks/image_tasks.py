import logging

from inventory_api.tasks.celery_app import celery_app
from inventory_api.utils.storage import remove_file

logger = logging.getLogger(__name__)


@celery_app.task(name="remove_image_file")
def remove_image_file(filename: str) -> dict:
    """
    Remove the stored file of a deleted product image.

    The database row is already gone when this runs, so a failure here only
    leaves an orphaned file behind. It is logged and never retried.
    """
    removed = remove_file(filename)
    if removed:
        logger.info(f"Stored image {filename} removed")
    return {"filename": filename, "removed": removed}


def schedule_file_removal(filename: str) -> None:
    """Queue removal of a stored file, removing it inline if the broker is unreachable."""
    try:
        remove_image_file.delay(filename)
    except Exception as e:
        logger.warning(f"Could not queue removal of {filename}, removing inline: {e}")
        remove_file(filename)
