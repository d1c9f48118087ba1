# inventory/models/sequence.py

"""
SEQUENCE COUNTER

Monotonic counters used to order layers and consumptions that share a
timestamp. Incremented only through inventory.services.sequence.
"""

from django.db import models


class SequenceCounter(models.Model):
    name = models.CharField(max_length=32, unique=True)
    value = models.BigIntegerField(default=0)

    def __str__(self):
        return f"{self.name}={self.value}"
