from django.dispatch import Signal

# Sent with ``record`` after an attendance record has been written.
punch_recorded = Signal()
