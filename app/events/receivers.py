from django.dispatch import receiver

from .services.summaries import enqueue_summary
from .signals import punch_recorded


@receiver(punch_recorded, dispatch_uid='events.enqueue_summary_job')
def enqueue_summary_job(sender, record, **kwargs):
    enqueue_summary(record.person, record.date)
