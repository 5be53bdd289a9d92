# core/models/document_sequence.py

"""
DOCUMENT SEQUENCE (PERSISTED COUNTER)

One row per numbering key, e.g.:
- "SALE-2026"  -> SALE-2026-0001, SALE-2026-0002, ...
- "SM"         -> SM-000001, SM-000002, ...

The row is locked (select_for_update) while a number is issued, so two
concurrent transactions can never hand out the same document number.
"""

from django.db import models


class DocumentSequence(models.Model):
    key = models.CharField(max_length=64, unique=True)
    last_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key} @ {self.last_value}"
