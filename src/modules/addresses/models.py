"""Postal addresses referenced by orders as shipping / billing address.

Addresses belong to a user (``NULL`` for addresses captured during a guest
checkout).  The order engine only reads them; an address referenced by an
order is protected from deletion so the order keeps pointing at where it
was shipped.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Address(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
        null=True,
        blank=True,
    )
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default="India")

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.address_line1}, {self.city} {self.postal_code}"
