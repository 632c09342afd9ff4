"""
Account models.
"""

import uuid

from django.conf import settings
from django.db import models

from .roles import Actor, Role

PUBLIC_KEY_LENGTH = 15


class Profile(models.Model):
    """
    Portal identity attached to a Django auth user.

    The auth user carries the password and login name (the email); the
    profile carries everything the portal shows and the role.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    mobile = models.CharField(max_length=20, blank=True, default="")
    role = models.CharField(max_length=10, choices=Role.choices, db_index=True)
    public_key = models.CharField(max_length=PUBLIC_KEY_LENGTH, db_index=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "profiles"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.role})"

    def save(self, *args, **kwargs):
        if not self.public_key:
            self.public_key = str(self.id)[:PUBLIC_KEY_LENGTH]
        super().save(*args, **kwargs)

    @property
    def actor(self) -> Actor:
        return Actor(id=self.id, role=Role(self.role), name=self.name)
