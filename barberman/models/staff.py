"""Barber model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Barber(models.Model):
    """Staff member who renders services and records visits."""

    code = models.SlugField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=200)
    is_active = models.BooleanField(_("active"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("barber")
        verbose_name_plural = _("barbers")
        ordering = ["name"]

    def __str__(self):
        return self.name
