from celery import Celery
from celery.signals import setup_logging
from charity_auction.core.config import settings
from charity_auction.core.logging import configure_logging

celery_app = Celery(
    'charity_auction',
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=['charity_auction.tasks.auto_bid']
)

celery_app.conf.update(
    result_backend=settings.celery_result_backend,
    task_serializer='json',
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    accept_content=['json'],
    result_expires=3600,
)

# Ticks that sit in the queue longer than one interval are dropped, the next
# tick re-derives the same state anyway.
celery_app.conf.beat_schedule = {
    'sweep-auto-bids': {
        'task': 'auto_bids.sweep',
        'schedule': settings.AUTOBID_SWEEP_INTERVAL,
        'options': {'expires': settings.AUTOBID_SWEEP_INTERVAL},
    },
    'close-expired-auctions': {
        'task': 'auctions.close_expired',
        'schedule': settings.AUCTION_CLOSE_INTERVAL,
        'options': {'expires': settings.AUCTION_CLOSE_INTERVAL},
    },
}


@setup_logging.connect
def on_setup_logging(**kwargs):
    # Workers log through loguru like the API
    configure_logging()
