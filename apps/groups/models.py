"""
Models for the Groups app: groups, memberships, invites and join requests.
"""
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.groups import rules
from common.models import TimestampedModel


def default_max_members():
    return settings.TRIPSHARE['DEFAULT_MAX_MEMBERS']


class Group(TimestampedModel):
    """
    A travel group that users can create and join.
    """
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    cover_image = models.URLField(max_length=500, blank=True, default='')
    invite_code = models.CharField(
        max_length=16,
        unique=True,
        db_index=True,
        help_text='Reusable code used to join the group.',
    )
    max_members = models.PositiveIntegerField(
        default=default_max_members,
        validators=[MinValueValidator(2)],
    )
    is_public = models.BooleanField(default=False)
    requires_approval = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_groups',
    )

    class Meta:
        db_table = 'groups'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def member_count(self):
        return self.members.filter(status=GroupMember.Status.ACTIVE).count()

    @property
    def is_at_capacity(self):
        return rules.is_at_capacity(self.member_count, self.max_members)


class GroupMember(TimestampedModel):
    """
    Membership record linking a user to a group with a role.

    Leaving or being removed only changes ``status``; rejoining reuses the row.
    """
    class Role(models.TextChoices):
        OWNER = rules.OWNER, 'Owner'
        ADMIN = rules.ADMIN, 'Admin'
        MEMBER = rules.MEMBER, 'Member'

    class Status(models.TextChoices):
        ACTIVE = rules.ACTIVE, 'Active'
        LEFT = 'left', 'Left'
        REMOVED = 'removed', 'Removed'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='members',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='group_memberships',
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.MEMBER,
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    joined_at = models.DateTimeField(default=timezone.now)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'group_members'
        unique_together = ['group', 'user']
        ordering = ['joined_at']

    def __str__(self):
        return f'{self.user} in {self.group} ({self.role}, {self.status})'

    @property
    def is_active(self):
        return rules.is_active_status(self.status)

    @property
    def is_admin(self):
        return rules.is_admin_role(self.role)

    @property
    def is_owner(self):
        return rules.is_owner_role(self.role)


class GroupInvite(TimestampedModel):
    """
    A single-use, time-limited invitation, optionally aimed at one user or email.
    """
    class Status(models.TextChoices):
        PENDING = rules.INVITE_PENDING, 'Pending'
        ACCEPTED = 'accepted', 'Accepted'
        DECLINED = 'declined', 'Declined'
        EXPIRED = 'expired', 'Expired'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='invites',
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_group_invites',
    )
    invited_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='group_invites',
    )
    email = models.EmailField(null=True, blank=True)
    token = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )

    class Meta:
        db_table = 'group_invites'
        ordering = ['-created_at']

    def __str__(self):
        target = self.invited_user or self.email or 'anyone'
        return f'Invite to {self.group} for {target} ({self.status})'

    @property
    def is_expired(self):
        return rules.invite_is_expired(self.expires_at, timezone.now())

    @property
    def is_valid(self):
        return rules.invite_is_valid(self.status, self.expires_at, timezone.now())

    def mark_expired_if_needed(self):
        """Flip a lapsed PENDING invite to EXPIRED. Returns True if it changed."""
        if self.status == self.Status.PENDING and self.is_expired:
            self.status = self.Status.EXPIRED
            self.save(update_fields=['status', 'updated_at'])
            return True
        return False


class GroupJoinRequest(TimestampedModel):
    """
    A request to join a group, resolved once by an admin or the owner.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='join_requests',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='group_join_requests',
    )
    message = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'group_join_requests'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['group', 'user'],
                condition=Q(status='pending'),
                name='unique_pending_join_request',
            ),
        ]

    def __str__(self):
        return f'{self.user} -> {self.group} ({self.status})'
