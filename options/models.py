"""
options/models.py — Storage for runtime site options

One row per option. Values are stored as text; options.repository coerces them
back to the type of the documented default (bool / int / str).
"""

from django.db import models


class Option(models.Model):
    name = models.CharField(max_length=50, unique=True, help_text="Option key, e.g. sign_score.")
    value = models.TextField(blank=True, default="", help_text="Raw option value (text).")

    class Meta:
        ordering = ["name"]
        verbose_name = "Option"
        verbose_name_plural = "Options"

    def __str__(self):
        return f"{self.name} = {self.value}"
