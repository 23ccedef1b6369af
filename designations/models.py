import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class ActiveDesignationManager(models.Manager):
    """Only rows that have not been soft deleted"""

    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class Designation(models.Model):
    """Designation/Job Title model, one rung of the organisational ladder"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    code = models.CharField(
        max_length=50,
        unique=True,
        help_text="Short unique token, derived from the name when omitted"
    )
    description = models.TextField(blank=True)

    # ========== HIERARCHY ==========
    # Two independent edge relations: the org chart and the management chain.
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='children',
        help_text="Org-chart parent designation"
    )
    reporting_to = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='reports',
        help_text="Designation this one reports to administratively"
    )
    level = models.PositiveIntegerField(
        default=0,
        help_text="Hierarchy depth (0=top of the ladder)"
    )
    sort_order = models.IntegerField(
        default=0,
        help_text="Tie-break ordering within a level"
    )
    department = models.CharField(max_length=100, blank=True, null=True)

    # ========== COMPENSATION ==========
    min_salary = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )
    max_salary = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )

    responsibilities = models.JSONField(default=list, blank=True)
    requirements = models.JSONField(default=list, blank=True)

    # ========== SYSTEM FIELDS ==========
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_designations'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_designations'
    )

    objects = models.Manager()
    active = ActiveDesignationManager()

    class Meta:
        ordering = ['level', 'sort_order', 'name']
        verbose_name = 'Designation'
        verbose_name_plural = 'Designations'
        indexes = [
            models.Index(fields=['level', 'sort_order'], name='designation_level_8c1f2a_idx'),
            models.Index(fields=['department'], name='designation_departm_4b7e91_idx'),
            models.Index(fields=['is_active'], name='designation_is_acti_d35c07_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        """Validate salary band and direct self references"""
        errors = {}
        if (
            self.min_salary is not None
            and self.max_salary is not None
            and self.min_salary > self.max_salary
        ):
            errors['max_salary'] = "Maximum salary cannot be less than minimum salary."
        if self.pk and self.parent_id == self.pk:
            errors['parent'] = "A designation cannot be its own parent."
        if self.pk and self.reporting_to_id == self.pk:
            errors['reporting_to'] = "A designation cannot report to itself."
        if errors:
            raise ValidationError(errors)

    @property
    def is_root(self):
        return self.parent_id is None
